from datetime import date, datetime

import pytest

from database import RepositorioMemoria, semear_dados_exemplo
from gestor import GestorIPTV
from models import Cliente, Plano, Servidor
from utils import TIMEZONE_BR
from whatsapp import DisparadorWhatsApp

HOJE = date(2024, 6, 1)


def agora_fixo():
    return TIMEZONE_BR.localize(datetime(2024, 6, 1, 10, 0))


def novo_cliente(nome='Cliente Teste', vencimento=HOJE, **campos):
    dados = dict(
        nome=nome,
        telefone='5511987654321',
        cidade_estado='São Paulo/SP',
        login_iptv=nome.lower().replace(' ', '.'),
        data_ativacao=date(2024, 5, 1),
        vencimento=vencimento,
        plano_id='plan2',
        servidor_id='server1',
    )
    dados.update(campos)
    return Cliente(**dados)


class DisparadorFalso(DisparadorWhatsApp):
    """Guarda os envios em vez de abrir o navegador"""

    def __init__(self):
        super().__init__()
        self.enviados = []

    def enviar(self, telefone, mensagem):
        link = super().enviar(telefone, mensagem)
        self.enviados.append((telefone, mensagem))
        return link


@pytest.fixture
def hoje():
    return HOJE


@pytest.fixture
def repo():
    return RepositorioMemoria()


@pytest.fixture
def repo_semeado():
    repositorio = RepositorioMemoria()
    semear_dados_exemplo(repositorio, hoje=HOJE, agora=agora_fixo())
    return repositorio


@pytest.fixture
def repo_basico(repo):
    repo.adicionar('planos', Plano(nome='Plano Premium', valor_mensal=40.0))
    repo.adicionar('servidores', Servidor(nome='Servidor BR', url='http://br.server.com'))
    return repo


@pytest.fixture
def disparador():
    return DisparadorFalso()


@pytest.fixture
def gestor(repo_semeado, disparador):
    return GestorIPTV(repo_semeado, disparador, relogio=agora_fixo)
