"""
Repositórios de dados
Cada coleção (clientes, planos, servidores, templates, notificações) é lida e
gravada como um snapshot inteiro sob uma chave, como no armazenamento local do
navegador. Backends: memória, arquivo JSON e PostgreSQL (tabela chave/valor).
"""

import os
import json
import uuid
import logging
import tempfile
import threading
from dataclasses import replace
from datetime import date, timedelta
from typing import List, Optional

import psycopg2
from psycopg2.extras import Json

from erros import ErroArmazenamento, ErroNaoEncontrado, ErroValidacao
from models import (
    Cliente, Plano, Servidor, TemplateMensagem, LogNotificacao,
    CHAVES_ARMAZENAMENTO, MODELOS_ENTIDADE, PREFIXOS_ID
)
from notificacoes import mesclar_historico
from utils import agora_br

logger = logging.getLogger(__name__)

NOMES_ENTIDADE = {
    'clientes': 'Cliente',
    'planos': 'Plano',
    'servidores': 'Servidor',
    'templates': 'Template',
}


def _mask_conn_dict(d):
    # Não vaze senha nos logs
    if not isinstance(d, dict):
        return d
    out = {}
    for k, v in d.items():
        if k.lower() in ("password", "pgpassword"):
            out[k] = "****"
        else:
            out[k] = v
    return out


class RepositorioBase:
    """
    Operações por entidade sobre snapshots. Subclasses implementam apenas
    `_ler(chave)` (None se a chave nunca foi gravada) e `_gravar(chave, lista)`.
    """

    def __init__(self):
        self._lock = threading.Lock()

    # -------------------------
    # Backend
    # -------------------------
    def _ler(self, chave) -> Optional[list]:
        raise NotImplementedError

    def _gravar(self, chave, registros: list):
        raise NotImplementedError

    # -------------------------
    # Helpers
    # -------------------------
    def _chave(self, entidade):
        if entidade not in MODELOS_ENTIDADE:
            raise ErroValidacao(f"Entidade desconhecida: {entidade}")
        return CHAVES_ARMAZENAMENTO[entidade]

    def _carregar(self, entidade) -> List[dict]:
        return list(self._ler(self._chave(entidade)) or [])

    def _novo_id(self, entidade):
        return f"{PREFIXOS_ID[entidade]}-{uuid.uuid4().hex[:12]}"

    def esta_vazio(self) -> bool:
        """True se a coleção de clientes nunca foi gravada"""
        return self._ler(CHAVES_ARMAZENAMENTO['clientes']) is None

    # -------------------------
    # Entidades
    # -------------------------
    def listar(self, entidade) -> list:
        modelo = MODELOS_ENTIDADE.get(entidade)
        return [modelo.from_dict(d) for d in self._carregar(entidade)]

    def obter(self, entidade, registro_id):
        for registro in self.listar(entidade):
            if registro.id == registro_id:
                return registro
        raise ErroNaoEncontrado(NOMES_ENTIDADE[entidade], registro_id)

    def adicionar(self, entidade, registro):
        """Grava um registro sem id e devolve a cópia com id"""
        with self._lock:
            registros = self._carregar(entidade)
            novo = replace(registro, id=self._novo_id(entidade))
            registros.append(novo.to_dict())
            self._gravar(self._chave(entidade), registros)

        logger.info(f"{NOMES_ENTIDADE[entidade]} cadastrado: ID {novo.id}")
        return novo

    def atualizar(self, entidade, registro):
        with self._lock:
            registros = self._carregar(entidade)
            for indice, atual in enumerate(registros):
                if atual.get('id') == registro.id:
                    registros[indice] = registro.to_dict()
                    break
            else:
                raise ErroNaoEncontrado(NOMES_ENTIDADE[entidade], registro.id)
            self._gravar(self._chave(entidade), registros)

        logger.info(f"{NOMES_ENTIDADE[entidade]} {registro.id} atualizado")
        return registro

    def excluir(self, entidade, registro_id):
        with self._lock:
            registros = self._carregar(entidade)
            restantes = [r for r in registros if r.get('id') != registro_id]
            if len(restantes) == len(registros):
                raise ErroNaoEncontrado(NOMES_ENTIDADE[entidade], registro_id)
            self._gravar(self._chave(entidade), restantes)

        logger.info(f"{NOMES_ENTIDADE[entidade]} {registro_id} excluído")

    # -------------------------
    # Notificações (somente anexação)
    # -------------------------
    def listar_notificacoes(self) -> List[LogNotificacao]:
        registros = self._ler(CHAVES_ARMAZENAMENTO['notificacoes']) or []
        logs = [LogNotificacao.from_dict(d) for d in registros]
        return sorted(logs, key=lambda log: log.enviado_em, reverse=True)

    def anexar_notificacoes(self, novos: List[LogNotificacao]) -> List[LogNotificacao]:
        with self._lock:
            historico = mesclar_historico(novos, self.listar_notificacoes())
            self._gravar(CHAVES_ARMAZENAMENTO['notificacoes'], [log.to_dict() for log in historico])
        return list(novos)


class RepositorioMemoria(RepositorioBase):
    """Snapshots em memória (serializados para não vazar referências)"""

    def __init__(self):
        super().__init__()
        self._dados = {}

    def _ler(self, chave):
        bruto = self._dados.get(chave)
        return json.loads(bruto) if bruto is not None else None

    def _gravar(self, chave, registros):
        self._dados[chave] = json.dumps(registros, ensure_ascii=False)


class RepositorioJson(RepositorioBase):
    """Um único documento JSON em disco, uma chave por coleção"""

    def __init__(self, caminho):
        super().__init__()
        self.caminho = os.path.abspath(caminho)
        logger.info(f"Armazenamento JSON: {self.caminho}")

    def _ler_documento(self) -> dict:
        if not os.path.exists(self.caminho):
            return {}
        try:
            with open(self.caminho, 'r', encoding='utf-8') as f:
                documento = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Erro ao ler armazenamento {self.caminho}: {e}")
            raise ErroArmazenamento(f"Não foi possível ler {self.caminho}: {e}") from e

        if not isinstance(documento, dict):
            raise ErroArmazenamento(f"Formato inválido em {self.caminho}")
        return documento

    def _ler(self, chave):
        return self._ler_documento().get(chave)

    def _gravar(self, chave, registros):
        documento = self._ler_documento()
        documento[chave] = registros

        diretorio = os.path.dirname(self.caminho)
        try:
            os.makedirs(diretorio, exist_ok=True)
            fd, temporario = tempfile.mkstemp(dir=diretorio, suffix='.tmp')
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(documento, f, ensure_ascii=False, indent=2)
            os.replace(temporario, self.caminho)
        except OSError as e:
            logger.error(f"Erro ao gravar armazenamento {self.caminho}: {e}")
            raise ErroArmazenamento(f"Não foi possível gravar {self.caminho}: {e}") from e


class RepositorioPostgres(RepositorioBase):
    """Snapshots em PostgreSQL, tabela chave/valor com JSONB"""

    def __init__(self, database_url=None, connection_params=None):
        super().__init__()
        self.database_url = database_url
        self.connection_params = connection_params or {}

        logger.info("🔧 Configuração do banco:")
        if self.database_url:
            logger.info(f"- DATABASE_URL: {self.database_url[:50]}...")
        logger.info(f"- Parâmetros (sem senha): {_mask_conn_dict(self.connection_params)}")

        self.init_database()

    def get_connection(self):
        """Cria nova conexão com o banco (DATABASE_URL prioritário)"""
        try:
            if self.database_url:
                conn = psycopg2.connect(self.database_url)
            else:
                conn = psycopg2.connect(**self.connection_params)
            conn.autocommit = False
            return conn
        except psycopg2.Error as e:
            logger.error(f"Erro ao conectar com PostgreSQL: {e}")
            logger.error(f"Parâmetros (sem senha): {_mask_conn_dict(self.connection_params)}")
            raise ErroArmazenamento(f"PostgreSQL indisponível: {e}") from e

    def _executar(self, query, params=None, buscar=False):
        conn = self.get_connection()
        try:
            with conn:
                with conn.cursor() as cursor:
                    cursor.execute(query, params)
                    return cursor.fetchone() if buscar else cursor.rowcount
        except psycopg2.Error as e:
            logger.error(f"Erro ao executar query: {e}")
            raise ErroArmazenamento(f"Falha no PostgreSQL: {e}") from e
        finally:
            conn.close()

    def init_database(self):
        """Cria a tabela de armazenamento se não existir"""
        self._executar("""
            CREATE TABLE IF NOT EXISTS armazenamento (
                chave VARCHAR(100) PRIMARY KEY,
                valor JSONB NOT NULL,
                atualizado_em TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        logger.info("Banco de dados inicializado com sucesso!")

    def _ler(self, chave):
        linha = self._executar("SELECT valor FROM armazenamento WHERE chave = %s", (chave,), buscar=True)
        if linha is None:
            return None
        valor = linha[0]
        # JSONB já chega decodificado; texto vindo de drivers antigos não
        return json.loads(valor) if isinstance(valor, str) else valor

    def _gravar(self, chave, registros):
        self._executar("""
            INSERT INTO armazenamento (chave, valor, atualizado_em)
            VALUES (%s, %s, CURRENT_TIMESTAMP)
            ON CONFLICT (chave) DO UPDATE
            SET valor = EXCLUDED.valor, atualizado_em = CURRENT_TIMESTAMP
        """, (chave, Json(registros)))


def criar_repositorio(config) -> RepositorioBase:
    """Escolhe o backend de acordo com a configuração"""
    armazenamento = config.armazenamento
    backend = armazenamento.backend.lower()

    if backend == 'memoria':
        return RepositorioMemoria()
    if backend == 'json':
        return RepositorioJson(armazenamento.caminho)
    if backend == 'postgres':
        return RepositorioPostgres(
            database_url=armazenamento.database_url,
            connection_params=armazenamento.connection_params
        )
    raise ErroValidacao(f"Backend de armazenamento desconhecido: {armazenamento.backend}")


# -------------------------
# Dados de exemplo
# -------------------------
def semear_dados_exemplo(repo: RepositorioBase, hoje: Optional[date] = None, agora=None) -> bool:
    """Popula o armazenamento vazio com dados de exemplo relativos a hoje"""
    if not repo.esta_vazio():
        return False

    agora = agora or agora_br()
    hoje = hoje or agora.date()

    planos = [
        Plano(id='plan1', nome='Plano Básico', descricao='Canais SD e HD', valor_mensal=25.0),
        Plano(id='plan2', nome='Plano Premium', descricao='Canais Full HD e 4K', valor_mensal=40.0),
        Plano(id='plan3', nome='Plano Total', descricao='Todos os canais + Filmes e Séries', valor_mensal=55.0),
    ]
    servidores = [
        Servidor(id='server1', nome='Servidor Principal (USA)', url='http://usa.server.com'),
        Servidor(id='server2', nome='Servidor Secundário (BR)', url='http://br.server.com'),
        Servidor(id='server3', nome='Servidor VIP (EU)', url='http://eu.server.com'),
    ]

    def dias(n):
        return hoje + timedelta(days=n)

    clientes = [
        Cliente(id='client1', nome='João da Silva', telefone='5511987654321', servidor_id='server2',
                cidade_estado='São Paulo/SP', login_iptv='joao.silva',
                data_ativacao=dias(-27), vencimento=dias(3), plano_id='plan2'),
        Cliente(id='client2', nome='Maria Oliveira', telefone='5521912345678', servidor_id='server1',
                cidade_estado='Rio de Janeiro/RJ', login_iptv='maria.o',
                data_ativacao=dias(-15), vencimento=dias(15), plano_id='plan1'),
        Cliente(id='client3', nome='Carlos Pereira', telefone='5531999998888', servidor_id='server3',
                cidade_estado='Belo Horizonte/MG', login_iptv='carlos.p',
                data_ativacao=dias(-40), vencimento=dias(-10), plano_id='plan3', lembrete=True),
        Cliente(id='client4', nome='Ana Costa', telefone='5571988887777', servidor_id='server2',
                cidade_estado='Salvador/BA', login_iptv='ana.costa',
                data_ativacao=dias(-5), vencimento=dias(25), plano_id='plan2'),
        Cliente(id='client5', nome='Pedro Martins', telefone='5561977776666', servidor_id='server1',
                cidade_estado='Brasília/DF', login_iptv='pedro.m',
                data_ativacao=dias(-1), vencimento=dias(29), plano_id='plan1'),
    ]
    templates = [
        TemplateMensagem(
            id='template1', nome='Lembrete de 3 dias',
            conteudo='Olá, [Nome]! Seu plano IPTV [Plano] vence em 3 dias, no dia [Vencimento]. '
                     'O valor para renovação é de R$[Valor]. Para renovar, entre em contato conosco.'
        ),
        TemplateMensagem(
            id='template2', nome='Aviso de Vencimento',
            conteudo='Olá, [Nome]. Gostaríamos de informar que seu plano [Plano] venceu hoje, dia '
                     '[Vencimento]. Para evitar a interrupção do serviço, por favor, realize o pagamento.'
        ),
    ]
    notificacoes = [
        LogNotificacao(
            id='notif1', cliente_id='client1', cliente_nome='João da Silva',
            mensagem='Olá, João da Silva! Seu plano IPTV vence em 3 dias. Valor: R$40,00. '
                     'Para renovar, entre em contato conosco.',
            enviado_em=agora - timedelta(days=1)
        ),
        LogNotificacao(
            id='notif2', cliente_id='client3', cliente_nome='Carlos Pereira',
            mensagem='Olá, Carlos Pereira! Seu plano IPTV venceu. Para reativar, entre em contato conosco.',
            enviado_em=agora - timedelta(days=13)
        ),
    ]

    with repo._lock:
        repo._gravar(CHAVES_ARMAZENAMENTO['planos'], [p.to_dict() for p in planos])
        repo._gravar(CHAVES_ARMAZENAMENTO['servidores'], [s.to_dict() for s in servidores])
        repo._gravar(CHAVES_ARMAZENAMENTO['templates'], [t.to_dict() for t in templates])
        repo._gravar(CHAVES_ARMAZENAMENTO['notificacoes'], [n.to_dict() for n in notificacoes])
        repo._gravar(CHAVES_ARMAZENAMENTO['clientes'], [c.to_dict() for c in clientes])

    logger.info("Dados de exemplo inseridos no armazenamento")
    return True
