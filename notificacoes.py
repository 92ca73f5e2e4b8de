"""
Histórico de notificações
Registro somente-anexação: entradas novas entram no topo e o histórico é
reordenado por horário de envio, do mais recente para o mais antigo.
"""

import uuid
import logging
from datetime import datetime
from typing import Iterable, List, Optional, Union

from erros import ErroValidacao
from models import LogNotificacao, EntradaNotificacao
from utils import agora_br, parsear_datetime

logger = logging.getLogger(__name__)

Entrada = Union[EntradaNotificacao, dict]


def _normalizar_entrada(entrada: Entrada) -> EntradaNotificacao:
    if isinstance(entrada, EntradaNotificacao):
        return entrada
    try:
        return EntradaNotificacao(
            cliente_id=entrada['cliente_id'],
            cliente_nome=entrada['cliente_nome'],
            mensagem=entrada['mensagem'],
        )
    except KeyError as e:
        raise ErroValidacao(f"Entrada de notificação sem o campo {e}")


def gerar_id_notificacao(cliente_id: str) -> str:
    return f"notif-{cliente_id}-{uuid.uuid4().hex}"


def criar_logs(entradas: Iterable[Entrada], enviado_em: datetime) -> List[LogNotificacao]:
    """Atribui id único e horário de envio a cada entrada, mantendo a ordem do lote"""
    # Horário sem fuso é tratado como horário de Brasília
    enviado_em = parsear_datetime(enviado_em)
    logs = []
    for entrada in entradas:
        entrada = _normalizar_entrada(entrada)
        logs.append(LogNotificacao(
            id=gerar_id_notificacao(entrada.cliente_id),
            cliente_id=entrada.cliente_id,
            cliente_nome=entrada.cliente_nome,
            mensagem=entrada.mensagem,
            enviado_em=enviado_em,
        ))
    return logs


def mesclar_historico(novos: List[LogNotificacao], existentes: List[LogNotificacao]) -> List[LogNotificacao]:
    """
    Novos no topo, depois ordenação estável decrescente por horário:
    empates preservam a ordem do lote.
    """
    return sorted(list(novos) + list(existentes), key=lambda log: log.enviado_em, reverse=True)


class RegistroNotificacoes:
    """Grava envios concluídos no histórico do repositório"""

    def __init__(self, repositorio, relogio=agora_br):
        self.repo = repositorio
        self.relogio = relogio

    def registrar(self, entradas: Iterable[Entrada], enviado_em: Optional[datetime] = None) -> List[LogNotificacao]:
        """Registra o lote e retorna apenas as entradas novas"""
        entradas = list(entradas)
        if not entradas:
            return []

        # Horário capturado no momento do registro, não da composição
        if enviado_em is None:
            enviado_em = self.relogio()

        novos = criar_logs(entradas, enviado_em)
        self.repo.anexar_notificacoes(novos)
        logger.info(f"{len(novos)} notificação(ões) registrada(s) no histórico")
        return novos

    def listar(self) -> List[LogNotificacao]:
        return self.repo.listar_notificacoes()
