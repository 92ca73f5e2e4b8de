from datetime import date

import pytest

from conftest import HOJE, novo_cliente
from erros import ErroNaoEncontrado, ErroValidacao
from models import Plano, TemplateMensagem
from templates import TemplateManager, dados_cliente, renderizar

PREMIUM = Plano(id='plan2', nome='Plano Premium', valor_mensal=40.0)


def test_renderiza_todos_os_placeholders():
    cliente = novo_cliente('João da Silva', date(2024, 6, 4))
    mensagem = renderizar(
        'Olá, [Nome]! Seu plano [Plano] vence em [Vencimento]. Valor: R$[Valor].',
        dados_cliente(cliente, PREMIUM)
    )
    assert mensagem == 'Olá, João da Silva! Seu plano Plano Premium vence em 04/06/2024. Valor: R$40,00.'


def test_placeholder_repetido_e_desconhecido():
    cliente = novo_cliente('Ana')
    mensagem = renderizar('[Nome], [Nome] [Desconto]', dados_cliente(cliente, PREMIUM))
    assert mensagem == 'Ana, Ana [Desconto]'


def test_plano_ausente_vira_na():
    dados = dados_cliente(novo_cliente('Órfão', plano_id='plan-removido'), None)
    assert dados['Plano'] == 'N/A'
    assert dados['Valor'] == 'N/A'


class TestTemplateManager:
    @pytest.fixture
    def manager(self, repo_semeado):
        return TemplateManager(repo_semeado)

    def test_crud(self, manager):
        criado = manager.criar_template('Boas-vindas', 'Bem-vindo, [Nome]!')
        assert criado.id.startswith('template-')
        assert manager.obter_template(criado.id).conteudo == 'Bem-vindo, [Nome]!'

        manager.atualizar_template(TemplateMensagem(id=criado.id, nome='Boas-vindas', conteudo='Oi, [Nome]'))
        assert manager.obter_template(criado.id).conteudo == 'Oi, [Nome]'

        manager.excluir_template(criado.id)
        with pytest.raises(ErroNaoEncontrado):
            manager.obter_template(criado.id)

    def test_validar_template(self, manager):
        assert manager.validar_template('Olá, [Nome] - [Valor]') == []
        erros = manager.validar_template('Olá, [Apelido] [Nome')
        assert 'Variável desconhecida: [Apelido]' in erros
        assert 'Colchetes desbalanceados no template' in erros

    @pytest.mark.parametrize('nome, conteudo', [
        ('', 'Olá'),
        ('Sem conteúdo', '   '),
        ('Inválido', 'Olá, [Apelido]'),
    ])
    def test_criar_invalido_nao_grava(self, manager, nome, conteudo):
        antes = manager.listar_templates()
        with pytest.raises(ErroValidacao):
            manager.criar_template(nome, conteudo)
        assert manager.listar_templates() == antes

    def test_atualizar_inexistente(self, manager):
        with pytest.raises(ErroNaoEncontrado):
            manager.atualizar_template(TemplateMensagem(id='template-x', nome='X', conteudo='[Nome]'))

    def test_preview_usa_dados_de_exemplo(self, manager):
        preview = manager.gerar_preview('[Nome] / [Plano] / [Vencimento] / R$[Valor]', HOJE)
        assert preview == 'João da Silva / Plano Premium / 04/06/2024 / R$40,00'

    def test_buscar_templates(self, manager):
        assert [t.id for t in manager.buscar_templates('LEMBRETE')] == ['template1']
        assert [t.id for t in manager.buscar_templates('pagamento')] == ['template2']
