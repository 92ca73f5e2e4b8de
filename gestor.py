"""
Gestor de clientes IPTV
Orquestra repositório, status de vencimento, campanhas, renovação e histórico
para a camada de interface. Cada operação calcula "hoje" uma única vez.
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from erros import ErroValidacao
from models import (
    Cliente, Plano, Servidor, TemplateMensagem, LogNotificacao, EntradaNotificacao,
    StatusCliente, CAMPANHAS, STATUS_EXPIRADO, STATUS_VENCENDO, STATUS_VENCIMENTO,
    DIAS_PROXIMOS_VENCIMENTOS
)
from notificacoes import RegistroNotificacoes
from renovacao import renovar_cliente
from templates import TemplateManager
from utils import agora_br, formatar_data_br, validar_telefone
from vencimentos import (
    classificar_status, filtrar_clientes, selecionar_campanha, selecionar_proximos_vencimentos
)
from whatsapp import DisparadorWhatsApp

logger = logging.getLogger(__name__)


class GestorIPTV:
    def __init__(self, repositorio, disparador: Optional[DisparadorWhatsApp] = None, relogio=agora_br):
        """Inicializa o gestor com o repositório injetado"""
        self.repo = repositorio
        self.disparador = disparador or DisparadorWhatsApp()
        self.relogio = relogio
        self.templates = TemplateManager(repositorio)
        self.registro = RegistroNotificacoes(repositorio, relogio)

    def hoje(self) -> date:
        return self.relogio().date()

    # -------------------------
    # Clientes
    # -------------------------
    def listar_clientes(self) -> List[Cliente]:
        return self.repo.listar('clientes')

    def obter_cliente(self, cliente_id) -> Cliente:
        return self.repo.obter('clientes', cliente_id)

    def validar_cliente(self, cliente: Cliente):
        """Valida antes de tocar no armazenamento"""
        if not cliente.plano_id or not cliente.servidor_id:
            raise ErroValidacao("Por favor, selecione um plano e um servidor.")
        if not (cliente.nome or '').strip():
            raise ErroValidacao("Nome do cliente é obrigatório")
        if not validar_telefone(cliente.telefone):
            raise ErroValidacao("Telefone (WhatsApp) é obrigatório")
        if not (cliente.cidade_estado or '').strip():
            raise ErroValidacao("Cidade/Estado é obrigatório")
        if not (cliente.login_iptv or '').strip():
            raise ErroValidacao("Login IPTV é obrigatório")
        if not isinstance(cliente.vencimento, date):
            raise ErroValidacao("Data de vencimento inválida")
        if not isinstance(cliente.data_ativacao, date):
            raise ErroValidacao("Data de ativação inválida")

    def salvar_cliente(self, cliente: Cliente) -> Cliente:
        """Cadastra (sem id) ou atualiza (com id) um cliente"""
        self.validar_cliente(cliente)
        if cliente.id:
            return self.repo.atualizar('clientes', cliente)
        return self.repo.adicionar('clientes', cliente)

    def excluir_cliente(self, cliente_id):
        # Logs antigos mantêm o nome do cliente; não há exclusão em cascata
        self.repo.excluir('clientes', cliente_id)

    def detalhar_cliente(self, cliente: Cliente, status: StatusCliente,
                         planos: Dict[str, Plano], servidores: Dict[str, Servidor]) -> dict:
        """Cliente + status + nomes de plano/servidor (referências órfãs viram N/A)"""
        plano = planos.get(cliente.plano_id)
        servidor = servidores.get(cliente.servidor_id)
        dados = cliente.to_dict()
        dados.update({
            'status': status.rotulo,
            'status_exibicao': STATUS_VENCIMENTO[status.rotulo],
            'dias_restantes': status.dias_restantes,
            'vencimento_formatado': formatar_data_br(cliente.vencimento),
            'plano_nome': plano.nome if plano else 'N/A',
            'servidor_nome': servidor.nome if servidor else 'N/A',
        })
        return dados

    def listar_clientes_com_status(self, termo: str = '', apenas_com_lembrete: bool = False,
                                   ordenar_por: str = 'nome', decrescente: bool = False) -> List[dict]:
        hoje = self.hoje()
        planos = self._planos_por_id()
        servidores = self._servidores_por_id()
        clientes = filtrar_clientes(self.listar_clientes(), termo, apenas_com_lembrete, ordenar_por, decrescente)
        return [
            self.detalhar_cliente(c, classificar_status(c.vencimento, hoje), planos, servidores)
            for c in clientes
        ]

    def renovar(self, cliente_id) -> Cliente:
        """Renovação rápida: +30 dias a partir do vencimento ou de hoje"""
        cliente = self.obter_cliente(cliente_id)
        renovado = renovar_cliente(cliente, self.hoje())
        return self.repo.atualizar('clientes', renovado)

    # -------------------------
    # Planos e servidores
    # -------------------------
    def listar_planos(self) -> List[Plano]:
        return self.repo.listar('planos')

    def salvar_plano(self, plano: Plano) -> Plano:
        if not (plano.nome or '').strip():
            raise ErroValidacao("Nome do plano é obrigatório")
        if plano.valor_mensal is None or plano.valor_mensal < 0:
            raise ErroValidacao("Valor mensal deve ser maior ou igual a zero")
        if plano.id:
            return self.repo.atualizar('planos', plano)
        return self.repo.adicionar('planos', plano)

    def excluir_plano(self, plano_id):
        self.repo.excluir('planos', plano_id)

    def listar_servidores(self) -> List[Servidor]:
        return self.repo.listar('servidores')

    def salvar_servidor(self, servidor: Servidor) -> Servidor:
        if not (servidor.nome or '').strip() or not (servidor.url or '').strip():
            raise ErroValidacao("Nome e URL do servidor são obrigatórios")
        if servidor.id:
            return self.repo.atualizar('servidores', servidor)
        return self.repo.adicionar('servidores', servidor)

    def excluir_servidor(self, servidor_id):
        self.repo.excluir('servidores', servidor_id)

    def _planos_por_id(self) -> Dict[str, Plano]:
        return {p.id: p for p in self.listar_planos()}

    def _servidores_por_id(self) -> Dict[str, Servidor]:
        return {s.id: s for s in self.listar_servidores()}

    # -------------------------
    # Templates
    # -------------------------
    def listar_templates(self, termo: str = '') -> List[TemplateMensagem]:
        if termo:
            return self.templates.buscar_templates(termo)
        return self.templates.listar_templates()

    def salvar_template(self, template: TemplateMensagem) -> TemplateMensagem:
        if template.id:
            return self.templates.atualizar_template(template)
        return self.templates.criar_template(template.nome, template.conteudo)

    def excluir_template(self, template_id):
        self.templates.excluir_template(template_id)

    # -------------------------
    # Dashboard
    # -------------------------
    def estatisticas_dashboard(self) -> dict:
        hoje = self.hoje()
        clientes = self.listar_clientes()
        planos = self._planos_por_id()
        servidores = self._servidores_por_id()
        status = [classificar_status(c.vencimento, hoje) for c in clientes]

        proximos = selecionar_proximos_vencimentos(clientes, hoje, DIAS_PROXIMOS_VENCIMENTOS)
        return {
            'total_clientes': len(clientes),
            'clientes_ativos': len([s for s in status if s.rotulo != STATUS_EXPIRADO]),
            'vencendo': len([s for s in status if s.rotulo == STATUS_VENCENDO]),
            'total_planos': len(planos),
            'proximos_vencimentos': [self.detalhar_cliente(c, s, planos, servidores) for c, s in proximos],
        }

    # -------------------------
    # Campanhas e envio
    # -------------------------
    def _campanha(self, chave):
        campanha = CAMPANHAS.get(chave)
        if campanha is None:
            raise ErroValidacao(f"Campanha desconhecida: {chave}")
        return campanha

    def clientes_da_campanha(self, chave, hoje: Optional[date] = None) -> List[Cliente]:
        return selecionar_campanha(self.listar_clientes(), chave, hoje or self.hoje())

    def _conteudo_mensagem(self, chave, template_id=None) -> str:
        if template_id:
            return self.templates.obter_template(template_id).conteudo
        return self._campanha(chave).mensagem_padrao

    def compor_mensagem(self, chave, cliente: Cliente, template_id=None,
                        planos: Optional[Dict[str, Plano]] = None) -> str:
        planos = planos if planos is not None else self._planos_por_id()
        conteudo = self._conteudo_mensagem(chave, template_id)
        return self.templates.processar_template(conteudo, cliente, planos.get(cliente.plano_id))

    def mensagens_da_campanha(self, chave, template_id=None) -> dict:
        """Lista os clientes elegíveis com a mensagem pronta de cada um"""
        campanha = self._campanha(chave)
        clientes = self.clientes_da_campanha(chave)
        planos = self._planos_por_id()

        itens = []
        for cliente in clientes:
            mensagem = self.compor_mensagem(chave, cliente, template_id, planos)
            itens.append({
                'cliente_id': cliente.id,
                'cliente_nome': cliente.nome,
                'telefone': cliente.telefone,
                'mensagem': mensagem,
            })

        return {
            'chave': campanha.chave,
            'titulo': campanha.titulo,
            'dias_restantes': campanha.dias_restantes,
            'clientes': itens,
            'aviso': campanha.aviso_vazio if not itens else None,
        }

    def enviar_notificacao(self, chave, cliente_id, template_id=None) -> dict:
        """Compõe, dispara e só então registra o envio no histórico"""
        cliente = self.obter_cliente(cliente_id)
        campanha = self._campanha(chave)

        dias_restantes = classificar_status(cliente.vencimento, self.hoje()).dias_restantes
        if dias_restantes != campanha.dias_restantes:
            raise ErroValidacao(f"Cliente {cliente.nome} não está na campanha '{campanha.titulo}'")

        mensagem = self.compor_mensagem(chave, cliente, template_id)
        link = self.disparador.enviar(cliente.telefone, mensagem)

        log, = self.registro.registrar([
            EntradaNotificacao(cliente_id=cliente.id, cliente_nome=cliente.nome, mensagem=mensagem)
        ])
        logger.info(f"Notificação '{chave}' enviada para {cliente.nome}")
        return {'link': link, 'log': log}

    def historico_notificacoes(self) -> List[LogNotificacao]:
        return self.registro.listar()
