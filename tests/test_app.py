from types import SimpleNamespace

import pytest

from app import criar_app
from conftest import agora_fixo
from erros import ErroArmazenamento


@pytest.fixture
def client(gestor):
    app = criar_app(gestor=gestor, config=SimpleNamespace())
    app.testing = True
    return app.test_client()


def test_saude(client):
    assert client.get('/api/saude').get_json() == {'status': 'ok'}


def test_dashboard(client):
    dados = client.get('/api/dashboard').get_json()
    assert dados['total_clientes'] == 5
    assert dados['proximos_vencimentos'][0]['nome'] == 'João da Silva'


class TestClientes:
    def test_listar_ordenado(self, client):
        resposta = client.get('/api/clientes?ordenar_por=vencimento&ordem=desc')
        assert resposta.status_code == 200
        assert [c['id'] for c in resposta.get_json()] == ['client5', 'client4', 'client2', 'client1', 'client3']

    def test_ordenacao_invalida(self, client):
        resposta = client.get('/api/clientes?ordenar_por=senha_iptv')
        assert resposta.status_code == 400
        assert 'erro' in resposta.get_json()

    def test_criar(self, client):
        resposta = client.post('/api/clientes', json={
            'nome': 'Bruno Lima', 'telefone': '(81) 99999-0000', 'login_iptv': 'bruno',
            'cidade_estado': 'Recife/PE', 'lembrete': 'false',
            'data_ativacao': '2024-06-01', 'vencimento': '01/07/2024',
            'plano_id': 'plan1', 'servidor_id': 'server2',
        })
        assert resposta.status_code == 201
        criado = resposta.get_json()
        assert criado['id'].startswith('cliente-')
        assert criado['vencimento'] == '2024-07-01'
        assert criado['lembrete'] is False

    def test_criar_sem_plano(self, client):
        resposta = client.post('/api/clientes', json={'nome': 'X', 'telefone': '5511987654321',
                                                      'vencimento': '2024-07-01'})
        assert resposta.status_code == 400
        assert resposta.get_json()['erro'] == 'Por favor, selecione um plano e um servidor.'

    def test_data_invalida(self, client):
        resposta = client.post('/api/clientes', json={'nome': 'X', 'vencimento': 'amanhã'})
        assert resposta.status_code == 400

    def test_corpo_nao_json(self, client):
        assert client.post('/api/clientes', data='texto').status_code == 400

    def test_atualizar_inexistente(self, client):
        resposta = client.put('/api/clientes/client-x', json={
            'nome': 'X', 'telefone': '5511987654321', 'cidade_estado': 'Recife/PE', 'login_iptv': 'x',
            'data_ativacao': '2024-06-01', 'vencimento': '2024-07-01',
            'plano_id': 'plan1', 'servidor_id': 'server1',
        })
        assert resposta.status_code == 404

    def test_excluir(self, client):
        assert client.delete('/api/clientes/client2').status_code == 204
        assert client.delete('/api/clientes/client2').status_code == 404

    def test_renovar(self, client):
        resposta = client.post('/api/clientes/client3/renovar')
        assert resposta.status_code == 200
        assert resposta.get_json()['vencimento'] == '2024-07-01'
        assert resposta.get_json()['lembrete'] is False


def test_planos_e_servidores(client):
    resposta = client.post('/api/planos', json={'nome': 'Plano Família', 'valor_mensal': 70})
    assert resposta.status_code == 201
    assert len(client.get('/api/planos').get_json()) == 4

    assert client.post('/api/servidores', json={'nome': 'Sem URL'}).status_code == 400
    assert client.delete('/api/servidores/server3').status_code == 204


def test_templates_e_preview(client):
    assert client.post('/api/templates', json={'nome': 'Ruim', 'conteudo': '[Apelido]'}).status_code == 400

    resposta = client.post('/api/templates/preview', json={'conteudo': 'Oi [Nome], R$[Valor] [Apelido]'})
    dados = resposta.get_json()
    assert dados['preview'] == 'Oi João da Silva, R$40,00 [Apelido]'
    assert dados['erros'] == ['Variável desconhecida: [Apelido]']

    encontrados = client.get('/api/templates?busca=aviso').get_json()
    assert [t['id'] for t in encontrados] == ['template2']


class TestCampanhas:
    def test_listar(self, client):
        chaves = [c['chave'] for c in client.get('/api/campanhas').get_json()]
        assert chaves == ['lembrete_3_dias', 'vence_hoje', 'cobranca_vencido']

    def test_detalhar(self, client):
        dados = client.get('/api/campanhas/lembrete_3_dias?template_id=template1').get_json()
        assert dados['clientes'][0]['cliente_nome'] == 'João da Silva'
        assert 'vence em 3 dias, no dia 04/06/2024' in dados['clientes'][0]['mensagem']

    def test_desconhecida(self, client):
        assert client.get('/api/campanhas/promocao').status_code == 400

    def test_enviar(self, client):
        resposta = client.post('/api/campanhas/lembrete_3_dias/enviar', json={'cliente_id': 'client1'})
        assert resposta.status_code == 201
        dados = resposta.get_json()
        assert dados['link'].startswith('https://api.whatsapp.com/send?phone=5511987654321')
        assert dados['log']['enviado_em_formatado'] == '01/06/2024 às 10:00'

        historico = client.get('/api/notificacoes').get_json()
        assert historico[0]['id'] == dados['log']['id']
        assert len(historico) == 3

    def test_enviar_sem_cliente(self, client):
        assert client.post('/api/campanhas/vence_hoje/enviar', json={}).status_code == 400


def test_armazenamento_indisponivel(client, gestor, monkeypatch):
    def falhar(*args, **kwargs):
        raise ErroArmazenamento('disco cheio')

    monkeypatch.setattr(gestor.repo, '_ler', falhar)
    resposta = client.get('/api/clientes')
    assert resposta.status_code == 503
    assert resposta.get_json()['erro'] == 'Armazenamento indisponível'


def test_campo_obrigatorio_ausente(client):
    resposta = client.post('/api/clientes', json={
        'nome': 'Sem Login', 'telefone': '5511987654321', 'cidade_estado': 'Recife/PE',
        'data_ativacao': '2024-06-01', 'vencimento': '2024-07-01',
        'plano_id': 'plan1', 'servidor_id': 'server1',
    })
    assert resposta.status_code == 400
    assert resposta.get_json()['erro'] == 'Login IPTV é obrigatório'


def test_dados_de_exemplo_usam_relogio_configurado(monkeypatch):
    monkeypatch.setattr('app.relogio_para', lambda timezone: agora_fixo)
    config = SimpleNamespace(
        armazenamento=SimpleNamespace(backend='memoria'),
        whatsapp=SimpleNamespace(base_url='https://api.whatsapp.com/send', abrir_navegador=False),
        system=SimpleNamespace(timezone='Pacific/Kiritimati', semear_dados=True),
    )

    client = criar_app(config=config).test_client()
    campanha = client.get('/api/campanhas/lembrete_3_dias').get_json()
    assert [c['cliente_id'] for c in campanha['clientes']] == ['client1']

    vencimentos = {c['id']: c['vencimento'] for c in client.get('/api/clientes').get_json()}
    assert vencimentos['client1'] == '2024-06-04'
