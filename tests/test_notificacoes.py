from datetime import datetime, timedelta

import pytest

from conftest import agora_fixo
from erros import ErroValidacao
from models import EntradaNotificacao, LogNotificacao
from notificacoes import RegistroNotificacoes, criar_logs, mesclar_historico
from utils import TIMEZONE_BR


def log(log_id, horas_atras, cliente_id='client1'):
    return LogNotificacao(
        id=log_id, cliente_id=cliente_id, cliente_nome='João da Silva',
        mensagem='Olá!', enviado_em=agora_fixo() - timedelta(hours=horas_atras)
    )


class TestCriarLogs:
    def test_ids_unicos_e_horario_compartilhado(self):
        entradas = [
            EntradaNotificacao('client1', 'João da Silva', 'm1'),
            EntradaNotificacao('client1', 'João da Silva', 'm2'),
        ]
        logs = criar_logs(entradas, agora_fixo())
        assert len({l.id for l in logs}) == 2
        assert all(l.id.startswith('notif-client1-') for l in logs)
        assert all(l.enviado_em == agora_fixo() for l in logs)
        assert [l.mensagem for l in logs] == ['m1', 'm2']

    def test_aceita_dicionarios(self):
        logs = criar_logs([{'cliente_id': 'c', 'cliente_nome': 'N', 'mensagem': 'm'}], agora_fixo())
        assert logs[0].cliente_nome == 'N'

    def test_dicionario_incompleto(self):
        with pytest.raises(ErroValidacao):
            criar_logs([{'cliente_id': 'c'}], agora_fixo())


def test_mesclar_historico_ordena_decrescente_e_preserva_empates():
    existentes = [log('antigo', 24), log('mais_antigo', 300)]
    novos = [log('a', 0), log('b', 0), log('c', 0)]

    historico = mesclar_historico(novos, existentes)
    assert [l.id for l in historico] == ['a', 'b', 'c', 'antigo', 'mais_antigo']


class TestRegistroNotificacoes:
    def test_lote_vazio_nao_grava(self, repo):
        registro = RegistroNotificacoes(repo, agora_fixo)
        assert registro.registrar([]) == []
        assert repo._ler('wtv_notifications') is None

    def test_registrar_retorna_somente_novos(self, repo_semeado):
        registro = RegistroNotificacoes(repo_semeado, agora_fixo)
        novos = registro.registrar([
            EntradaNotificacao('client2', 'Maria Oliveira', 'Olá, Maria!'),
            EntradaNotificacao('client4', 'Ana Costa', 'Olá, Ana!'),
        ])

        assert [l.cliente_id for l in novos] == ['client2', 'client4']
        historico = registro.listar()
        assert len(historico) == 4
        assert [l.cliente_id for l in historico[:2]] == ['client2', 'client4']
        assert [l.id for l in historico[2:]] == ['notif1', 'notif2']

    def test_historico_existente_preservado(self, repo_semeado):
        registro = RegistroNotificacoes(repo_semeado, agora_fixo)
        antes = registro.listar()
        registro.registrar([EntradaNotificacao('client1', 'João da Silva', 'x')])
        depois = registro.listar()
        assert depois[1:] == antes

    def test_horario_capturado_no_registro(self, repo):
        horarios = iter([
            TIMEZONE_BR.localize(datetime(2024, 6, 1, 9, 0)),
            TIMEZONE_BR.localize(datetime(2024, 6, 1, 11, 0)),
        ])
        registro = RegistroNotificacoes(repo, lambda: next(horarios))
        registro.registrar([EntradaNotificacao('c1', 'Primeiro', 'm')])
        registro.registrar([EntradaNotificacao('c2', 'Segundo', 'm')])

        assert [l.cliente_nome for l in registro.listar()] == ['Segundo', 'Primeiro']

    def test_registros_sao_imutaveis(self, repo):
        novo, = RegistroNotificacoes(repo, agora_fixo).registrar([EntradaNotificacao('c', 'N', 'm')])
        with pytest.raises(AttributeError):
            novo.mensagem = 'outra'

    def test_horario_sem_fuso_entra_como_brasilia(self, repo_semeado):
        registro = RegistroNotificacoes(repo_semeado, agora_fixo)
        novo, = registro.registrar(
            [EntradaNotificacao('client2', 'Maria Oliveira', 'Olá, Maria!')],
            enviado_em=datetime(2024, 6, 1, 12, 0)
        )

        assert novo.enviado_em == TIMEZONE_BR.localize(datetime(2024, 6, 1, 12, 0))
        historico = registro.listar()
        assert [l.id for l in historico] == [novo.id, 'notif1', 'notif2']

    def test_relogio_sem_fuso(self, repo_semeado):
        registro = RegistroNotificacoes(repo_semeado, lambda: datetime(2024, 6, 1, 8, 30))
        novo, = registro.registrar([EntradaNotificacao('client4', 'Ana Costa', 'Olá, Ana!')])
        assert novo.enviado_em.tzinfo is not None
        assert registro.listar()[0].id == novo.id
