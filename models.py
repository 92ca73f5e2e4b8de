"""
Modelos de dados para o sistema de gestão de clientes IPTV
Define as estruturas persistidas (como dicionários) e os tipos derivados
"""

from dataclasses import dataclass, asdict
from datetime import datetime, date
from typing import Optional, NamedTuple

from utils import normalizar_data, parsear_datetime


def _para_bool(valor) -> bool:
    """Aceita booleanos e as strings 'true'/'false' vindas de formulários"""
    if isinstance(valor, str):
        return valor.strip().lower() == 'true'
    return bool(valor)


@dataclass
class Cliente:
    """Modelo de dados para clientes"""
    id: Optional[str] = None
    nome: str = ""
    telefone: str = ""
    cidade_estado: str = ""
    login_iptv: str = ""
    senha_iptv: Optional[str] = None
    data_ativacao: Optional[date] = None
    vencimento: Optional[date] = None
    plano_id: str = ""
    servidor_id: str = ""
    lembrete: bool = False

    def to_dict(self) -> dict:
        dados = asdict(self)
        dados['data_ativacao'] = self.data_ativacao.isoformat() if self.data_ativacao else None
        dados['vencimento'] = self.vencimento.isoformat() if self.vencimento else None
        return dados

    @classmethod
    def from_dict(cls, dados: dict) -> 'Cliente':
        ativacao = dados.get('data_ativacao')
        vencimento = dados.get('vencimento')
        return cls(
            id=dados.get('id'),
            nome=dados.get('nome', ''),
            telefone=dados.get('telefone', ''),
            cidade_estado=dados.get('cidade_estado', ''),
            login_iptv=dados.get('login_iptv', ''),
            senha_iptv=dados.get('senha_iptv') or None,
            data_ativacao=normalizar_data(ativacao) if ativacao else None,
            vencimento=normalizar_data(vencimento) if vencimento else None,
            plano_id=dados.get('plano_id') or '',
            servidor_id=dados.get('servidor_id') or '',
            lembrete=_para_bool(dados.get('lembrete', False)),
        )


@dataclass
class Plano:
    """Modelo de dados para planos de assinatura"""
    id: Optional[str] = None
    nome: str = ""
    descricao: str = ""
    valor_mensal: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, dados: dict) -> 'Plano':
        return cls(
            id=dados.get('id'),
            nome=dados.get('nome', ''),
            descricao=dados.get('descricao', ''),
            valor_mensal=float(dados.get('valor_mensal') or 0),
        )


@dataclass
class Servidor:
    """Modelo de dados para servidores IPTV"""
    id: Optional[str] = None
    nome: str = ""
    url: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, dados: dict) -> 'Servidor':
        return cls(id=dados.get('id'), nome=dados.get('nome', ''), url=dados.get('url', ''))


@dataclass
class TemplateMensagem:
    """Modelo de dados para templates de mensagens"""
    id: Optional[str] = None
    nome: str = ""
    conteudo: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, dados: dict) -> 'TemplateMensagem':
        return cls(id=dados.get('id'), nome=dados.get('nome', ''), conteudo=dados.get('conteudo', ''))


@dataclass(frozen=True)
class LogNotificacao:
    """Registro imutável de uma notificação enviada"""
    id: str
    cliente_id: str
    cliente_nome: str
    mensagem: str
    enviado_em: datetime

    def to_dict(self) -> dict:
        dados = asdict(self)
        dados['enviado_em'] = self.enviado_em.isoformat()
        return dados

    @classmethod
    def from_dict(cls, dados: dict) -> 'LogNotificacao':
        return cls(
            id=dados['id'],
            cliente_id=dados.get('cliente_id', ''),
            cliente_nome=dados.get('cliente_nome', ''),
            mensagem=dados.get('mensagem', ''),
            enviado_em=parsear_datetime(dados['enviado_em']),
        )


@dataclass(frozen=True)
class EntradaNotificacao:
    """Envio concluído ainda sem id e horário"""
    cliente_id: str
    cliente_nome: str
    mensagem: str


class StatusCliente(NamedTuple):
    """Status calculado (nunca persistido)"""
    rotulo: str
    dias_restantes: int


@dataclass(frozen=True)
class Campanha:
    """Regra que seleciona quem recebe uma notificação em um ponto do ciclo"""
    chave: str
    titulo: str
    dias_restantes: int
    mensagem_padrao: str
    aviso_vazio: str


# Status de vencimento
STATUS_ATIVO = 'Ativo'
STATUS_VENCENDO = 'Vencendo'
STATUS_EXPIRADO = 'Expirado'

STATUS_VENCIMENTO = {
    STATUS_ATIVO: '🟢 Ativo',
    STATUS_VENCENDO: '🟡 Vencendo',
    STATUS_EXPIRADO: '🔴 Expirado'
}

# Limite superior (inclusive) da faixa "Vencendo"
DIAS_ALERTA_VENCIMENTO = 3

# Período fixo de renovação rápida, independente do plano
DIAS_RENOVACAO = 30

# Janela da lista "Clientes com Vencimento Próximo"
DIAS_PROXIMOS_VENCIMENTOS = 7

# Placeholders reconhecidos nos templates
PLACEHOLDERS_TEMPLATE = {
    'Nome': 'Nome do cliente',
    'Plano': 'Nome do plano do cliente',
    'Vencimento': 'Data de vencimento formatada (DD/MM/AAAA)',
    'Valor': 'Valor mensal do plano (ex: 40,00)'
}

# Campanhas de notificação (correspondência exata de dias restantes)
CAMPANHAS = {
    'lembrete_3_dias': Campanha(
        chave='lembrete_3_dias',
        titulo='Lembretes (Vence em 3 dias)',
        dias_restantes=3,
        mensagem_padrao=(
            'Olá, [Nome]! Seu plano IPTV vence em 3 dias. Valor: R$[Valor]. '
            'Para renovar, entre em contato conosco.'
        ),
        aviso_vazio='Nenhum cliente com vencimento em exatamente 3 dias.'
    ),
    'vence_hoje': Campanha(
        chave='vence_hoje',
        titulo='Avisos (Vence Hoje)',
        dias_restantes=0,
        mensagem_padrao=(
            'Olá, [Nome]! Gostaríamos de lembrar que seu plano IPTV vence hoje. '
            'Valor: R$[Valor]. Evite a interrupção do serviço! Fale conosco para renovar.'
        ),
        aviso_vazio='Nenhum cliente com vencimento hoje.'
    ),
    'cobranca_vencido': Campanha(
        chave='cobranca_vencido',
        titulo='Cobrança (Vencido)',
        dias_restantes=-1,
        mensagem_padrao=(
            'Olá, [Nome]. Identificamos que seu plano IPTV venceu ontem. Para reativar '
            'seu acesso e continuar aproveitando, por favor, entre em contato.'
        ),
        aviso_vazio='Nenhum cliente com plano vencido ontem.'
    ),
}

# Chaves de armazenamento por entidade
CHAVES_ARMAZENAMENTO = {
    'clientes': 'wtv_clients',
    'planos': 'wtv_plans',
    'servidores': 'wtv_servers',
    'templates': 'wtv_templates',
    'notificacoes': 'wtv_notifications',
}

MODELOS_ENTIDADE = {
    'clientes': Cliente,
    'planos': Plano,
    'servidores': Servidor,
    'templates': TemplateMensagem,
}

PREFIXOS_ID = {
    'clientes': 'cliente',
    'planos': 'plano',
    'servidores': 'servidor',
    'templates': 'template',
}
