"""
Sistema de Gerenciamento de Templates
Gerencia templates de mensagens e substitui os placeholders [Nome], [Plano],
[Vencimento] e [Valor] pelos dados do cliente
"""

import re
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from erros import ErroValidacao
from models import Cliente, Plano, TemplateMensagem, PLACEHOLDERS_TEMPLATE
from utils import formatar_data_br, formatar_valor, hoje_br

logger = logging.getLogger(__name__)

PADRAO_PLACEHOLDER = re.compile(r'\[([A-Za-zÀ-ÿ_]+)\]')


def dados_cliente(cliente: Cliente, plano: Optional[Plano] = None) -> Dict[str, str]:
    """Prepara o mapeamento de placeholders para um cliente (plano ausente vira N/A)"""
    return {
        'Nome': cliente.nome,
        'Plano': plano.nome if plano else 'N/A',
        'Vencimento': formatar_data_br(cliente.vencimento),
        'Valor': formatar_valor(plano.valor_mensal) if plano else 'N/A',
    }


def renderizar(conteudo: str, dados: Dict[str, str]) -> str:
    """Substitui placeholders conhecidos; os desconhecidos ficam como estão"""
    def substituir(match):
        nome = match.group(1)
        if nome in dados:
            return str(dados[nome])
        return match.group(0)

    return PADRAO_PLACEHOLDER.sub(substituir, conteudo)


class TemplateManager:
    def __init__(self, repositorio):
        """Inicializa o gerenciador de templates"""
        self.repo = repositorio
        self.variaveis_disponiveis = PLACEHOLDERS_TEMPLATE

    def listar_templates(self) -> List[TemplateMensagem]:
        return self.repo.listar('templates')

    def obter_template(self, template_id) -> TemplateMensagem:
        """Obtém template por ID (ErroNaoEncontrado se não existir)"""
        return self.repo.obter('templates', template_id)

    def criar_template(self, nome, conteudo) -> TemplateMensagem:
        """Cria novo template após validar o conteúdo"""
        self._validar_ou_falhar(nome, conteudo)
        template = self.repo.adicionar('templates', TemplateMensagem(nome=nome, conteudo=conteudo))
        logger.info(f"Template criado: {nome} (ID: {template.id})")
        return template

    def atualizar_template(self, template: TemplateMensagem) -> TemplateMensagem:
        """Atualiza template existente"""
        self._validar_ou_falhar(template.nome, template.conteudo)
        atualizado = self.repo.atualizar('templates', template)
        logger.info(f"Template {template.id} atualizado com sucesso")
        return atualizado

    def excluir_template(self, template_id):
        self.repo.excluir('templates', template_id)
        logger.info(f"Template {template_id} excluído")

    def validar_template(self, conteudo) -> List[str]:
        """Valida conteúdo do template verificando placeholders"""
        erros = []

        for variavel in PADRAO_PLACEHOLDER.findall(conteudo or ''):
            if variavel not in self.variaveis_disponiveis:
                erros.append(f"Variável desconhecida: [{variavel}]")

        # Verificar balanceamento de colchetes
        if (conteudo or '').count('[') != (conteudo or '').count(']'):
            erros.append("Colchetes desbalanceados no template")

        return erros

    def _validar_ou_falhar(self, nome, conteudo):
        if not (nome or '').strip():
            raise ErroValidacao("Nome do template é obrigatório")
        if not (conteudo or '').strip():
            raise ErroValidacao("Conteúdo do template é obrigatório")

        erros = self.validar_template(conteudo)
        if erros:
            raise ErroValidacao(f"Erros no template: {', '.join(erros)}")

    def processar_template(self, conteudo, cliente: Cliente, plano: Optional[Plano] = None) -> str:
        """Gera a mensagem final de um cliente"""
        return renderizar(conteudo, dados_cliente(cliente, plano))

    def gerar_preview(self, conteudo, hoje: Optional[date] = None) -> str:
        """Gera preview do template com dados de exemplo"""
        hoje = hoje or hoje_br()
        exemplo_cliente = Cliente(nome='João da Silva', vencimento=hoje + timedelta(days=3))
        exemplo_plano = Plano(nome='Plano Premium', valor_mensal=40.0)
        return self.processar_template(conteudo, exemplo_cliente, exemplo_plano)

    def buscar_templates(self, termo) -> List[TemplateMensagem]:
        """Busca templates por nome ou conteúdo"""
        termo_lower = (termo or '').lower()
        return [
            t for t in self.listar_templates()
            if termo_lower in t.nome.lower() or termo_lower in t.conteudo.lower()
        ]
