"""
Status de vencimento e seleção de clientes para campanhas
Todas as funções são puras: recebem o "hoje" já normalizado do chamador,
para que uma mesma listagem classifique todos os clientes contra o mesmo dia.
"""

import logging
from datetime import date
from typing import Iterable, List, Tuple

from erros import ErroValidacao
from models import (
    Cliente, StatusCliente, CAMPANHAS, DIAS_ALERTA_VENCIMENTO, DIAS_PROXIMOS_VENCIMENTOS,
    STATUS_ATIVO, STATUS_EXPIRADO, STATUS_VENCENDO
)
from utils import calcular_dias_entre

logger = logging.getLogger(__name__)


def classificar_status(vencimento: date, hoje: date) -> StatusCliente:
    """Classifica o vencimento em (rótulo, dias restantes)"""
    dias_restantes = calcular_dias_entre(vencimento, hoje)

    if dias_restantes < 0:
        return StatusCliente(STATUS_EXPIRADO, dias_restantes)
    if dias_restantes <= DIAS_ALERTA_VENCIMENTO:
        return StatusCliente(STATUS_VENCENDO, dias_restantes)
    return StatusCliente(STATUS_ATIVO, dias_restantes)


def status_do_cliente(cliente: Cliente, hoje: date) -> StatusCliente:
    return classificar_status(cliente.vencimento, hoje)


def selecionar_por_dias_restantes(clientes: Iterable[Cliente], dias: int, hoje: date) -> List[Cliente]:
    """Clientes com exatamente `dias` dias restantes, na ordem de entrada"""
    return [c for c in clientes if status_do_cliente(c, hoje).dias_restantes == dias]


def selecionar_campanha(clientes: Iterable[Cliente], chave: str, hoje: date) -> List[Cliente]:
    """Clientes elegíveis para a campanha `chave`"""
    campanha = CAMPANHAS.get(chave)
    if campanha is None:
        raise ErroValidacao(f"Campanha desconhecida: {chave}")

    selecionados = selecionar_por_dias_restantes(clientes, campanha.dias_restantes, hoje)
    logger.info(f"Campanha {chave}: {len(selecionados)} cliente(s) elegível(is)")
    return selecionados


def selecionar_proximos_vencimentos(
    clientes: Iterable[Cliente],
    hoje: date,
    max_dias: int = DIAS_PROXIMOS_VENCIMENTOS,
) -> List[Tuple[Cliente, StatusCliente]]:
    """Clientes com 0 <= dias restantes <= max_dias, os mais próximos primeiro"""
    com_status = [(c, status_do_cliente(c, hoje)) for c in clientes]
    proximos = [(c, s) for c, s in com_status if 0 <= s.dias_restantes <= max_dias]
    return sorted(proximos, key=lambda item: item[1].dias_restantes)


# Campos aceitos para ordenação da lista de clientes
CAMPOS_ORDENACAO = {
    'nome', 'telefone', 'cidade_estado', 'login_iptv',
    'data_ativacao', 'vencimento', 'plano_id', 'servidor_id'
}


def filtrar_clientes(
    clientes: Iterable[Cliente],
    termo: str = '',
    apenas_com_lembrete: bool = False,
    ordenar_por: str = 'nome',
    decrescente: bool = False,
) -> List[Cliente]:
    """
    Filtra por nome ou login IPTV (sem diferenciar maiúsculas) e,
    opcionalmente, apenas clientes com lembrete; depois ordena.
    'status' ordena pela data de vencimento.
    """
    if ordenar_por == 'status':
        ordenar_por = 'vencimento'
    if ordenar_por not in CAMPOS_ORDENACAO:
        raise ErroValidacao(f"Campo de ordenação inválido: {ordenar_por}")

    termo = (termo or '').strip().lower()
    filtrados = [
        c for c in clientes
        if (termo in c.nome.lower() or termo in c.login_iptv.lower())
        and (not apenas_com_lembrete or c.lembrete)
    ]

    def chave(cliente):
        valor = getattr(cliente, ordenar_por)
        if isinstance(valor, str):
            return (0, valor.lower())
        # Datas ausentes vão para o fim
        return (0, valor) if valor is not None else (1, date.max)

    return sorted(filtrados, key=chave, reverse=decrescente)
