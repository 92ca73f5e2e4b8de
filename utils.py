"""
Funções Utilitárias do Sistema
Timezone brasileiro, datas de vencimento e formatação de dados
"""

import re
import logging
from datetime import datetime, date
import pytz
from typing import Optional, Union, Any

# Configurar timezone brasileiro
TIMEZONE_BR = pytz.timezone('America/Sao_Paulo')

logger = logging.getLogger(__name__)

# === FUNÇÕES DE DATA E HORA ===

def agora_br() -> datetime:
    """Retorna datetime atual no fuso horário de Brasília"""
    return datetime.now(TIMEZONE_BR)

def relogio_para(timezone: str):
    """Relógio (função sem argumentos) no fuso informado"""
    tz = pytz.timezone(timezone)
    return lambda: datetime.now(tz)

def hoje_br() -> date:
    """Retorna a data de hoje (meia-noite) no fuso horário de Brasília"""
    return agora_br().date()

def parsear_data_iso(data_str: str) -> date:
    """Converte string AAAA-MM-DD (ou ISO completo) para date"""
    data_str = data_str.strip()
    if 'T' in data_str:
        return datetime.fromisoformat(data_str.replace('Z', '+00:00')).date()
    return datetime.strptime(data_str, '%Y-%m-%d').date()

def parsear_data_br(data_str: str) -> Optional[date]:
    """Converte string em formato brasileiro para date"""
    try:
        return datetime.strptime(data_str, '%d/%m/%Y').date()
    except ValueError:
        try:
            return datetime.strptime(data_str, '%d/%m/%y').date()
        except ValueError:
            return None

def normalizar_data(valor: Union[datetime, date, str]) -> date:
    """
    Reduz qualquer representação de data a uma data de calendário.
    Datetimes perdem a hora (equivale a zerar para meia-noite).
    """
    if isinstance(valor, datetime):
        return valor.date()
    if isinstance(valor, date):
        return valor
    if isinstance(valor, str):
        return parsear_data_br(valor) or parsear_data_iso(valor)
    raise TypeError(f"Data inválida: {valor!r}")

def parsear_datetime(valor: Union[datetime, str]) -> datetime:
    """Converte string ISO 8601 para datetime tz-aware"""
    if isinstance(valor, str):
        valor = datetime.fromisoformat(valor.replace('Z', '+00:00'))
    if valor.tzinfo is None:
        valor = TIMEZONE_BR.localize(valor)
    return valor

def calcular_dias_entre(data1: Union[date, str], data2: Union[date, str] = None) -> int:
    """Calcula diferença em dias inteiros de calendário (data1 - data2)"""
    if data2 is None:
        data2 = hoje_br()

    return (normalizar_data(data1) - normalizar_data(data2)).days

def formatar_data_br(dt: Union[datetime, date, str, None]) -> str:
    """Formata data no padrão brasileiro (DD/MM/AAAA)"""
    if not dt:
        return 'N/A'

    try:
        dt = normalizar_data(dt)
    except (ValueError, TypeError):
        return 'Data inválida'

    return dt.strftime('%d/%m/%Y')

def formatar_datetime_br(dt: Union[datetime, str]) -> str:
    """Formata data/hora completa no padrão brasileiro"""
    if isinstance(dt, str):
        try:
            dt = parsear_datetime(dt)
        except ValueError:
            return dt

    if dt.tzinfo is None:
        dt = TIMEZONE_BR.localize(dt)
    else:
        dt = dt.astimezone(TIMEZONE_BR)

    return dt.strftime('%d/%m/%Y às %H:%M')

# === FUNÇÕES DE FORMATAÇÃO ===

def formatar_valor(valor: Any) -> str:
    """Formata valor com duas casas e vírgula decimal, sem símbolo (ex: 40,00)"""
    if valor is None:
        return 'N/A'
    return f"{float(valor):.2f}".replace('.', ',')

def limpar_telefone(telefone: str) -> str:
    """Remove formatação do telefone mantendo apenas números"""
    if not telefone:
        return ""

    return re.sub(r'\D', '', telefone)

def validar_telefone(telefone: str) -> bool:
    """Valida se há um número para o link do WhatsApp (qualquer formato)"""
    return bool(limpar_telefone(telefone))

def truncar_texto(texto: str, limite: int = 100, sufixo: str = "...") -> str:
    """Trunca texto mantendo palavras completas"""
    if len(texto) <= limite:
        return texto

    texto_truncado = texto[:limite - len(sufixo)]

    # Encontrar o último espaço para não cortar palavras
    ultimo_espaco = texto_truncado.rfind(' ')
    if ultimo_espaco > 0:
        texto_truncado = texto_truncado[:ultimo_espaco]

    return texto_truncado + sufixo

__all__ = [
    'agora_br', 'relogio_para', 'hoje_br', 'normalizar_data', 'parsear_data_iso',
    'parsear_datetime', 'calcular_dias_entre', 'formatar_data_br', 'formatar_datetime_br',
    'formatar_valor', 'limpar_telefone', 'validar_telefone', 'truncar_texto'
]
