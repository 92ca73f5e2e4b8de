"""
Renovação rápida de assinaturas
"""

import logging
from dataclasses import replace
from datetime import date, timedelta

from models import Cliente, DIAS_RENOVACAO
from utils import normalizar_data

logger = logging.getLogger(__name__)


def calcular_data_base(vencimento: date, hoje: date) -> date:
    """
    Data a partir da qual a renovação conta: o vencimento atual se ainda não
    passou, senão hoje.
    """
    vencimento = normalizar_data(vencimento)
    hoje = normalizar_data(hoje)
    return vencimento if vencimento >= hoje else hoje


def calcular_novo_vencimento(vencimento: date, hoje: date, dias: int = DIAS_RENOVACAO) -> date:
    return calcular_data_base(vencimento, hoje) + timedelta(days=dias)


def renovar_cliente(cliente: Cliente, hoje: date) -> Cliente:
    """
    Retorna uma cópia do cliente com o vencimento estendido em 30 dias e o
    lembrete limpo. Cada chamada soma mais 30 dias: não repetir automaticamente.
    """
    novo_vencimento = calcular_novo_vencimento(cliente.vencimento, hoje)
    logger.info(
        f"Renovação do cliente {cliente.id} ({cliente.nome}): "
        f"{cliente.vencimento} -> {novo_vencimento}"
    )
    return replace(cliente, vencimento=novo_vencimento, lembrete=False)
