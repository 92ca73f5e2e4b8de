#!/usr/bin/env python3
"""
Aplicação Web - Gestor IPTV
API JSON (Flask) para clientes, planos, servidores, templates, campanhas de
notificação e histórico de envios
"""

import logging
from flask import Flask, Blueprint, request, jsonify, current_app

from config import get_config, setup_logging
from database import criar_repositorio, semear_dados_exemplo
from erros import ErroArmazenamento, ErroNaoEncontrado, ErroValidacao
from gestor import GestorIPTV
from models import Cliente, Plano, Servidor, TemplateMensagem, CAMPANHAS
from utils import formatar_datetime_br, relogio_para, truncar_texto
from whatsapp import DisparadorWhatsApp

logger = logging.getLogger(__name__)

api = Blueprint('api', __name__, url_prefix='/api')


def _gestor() -> GestorIPTV:
    return current_app.config['GESTOR']


def _json_corpo() -> dict:
    dados = request.get_json(silent=True)
    if not isinstance(dados, dict):
        raise ErroValidacao("Corpo da requisição deve ser um objeto JSON")
    return dados


def _converter(modelo, dados: dict, registro_id=None):
    """Monta o modelo a partir do JSON; o id da URL prevalece sobre o do corpo"""
    dados = dict(dados)
    dados['id'] = registro_id
    try:
        return modelo.from_dict(dados)
    except (ValueError, TypeError) as e:
        raise ErroValidacao(f"Dados inválidos: {e}")


def _log_para_dict(log) -> dict:
    dados = log.to_dict()
    dados['enviado_em_formatado'] = formatar_datetime_br(log.enviado_em)
    dados['resumo'] = truncar_texto(log.mensagem, 80)
    return dados


# -------------------------
# Saúde e dashboard
# -------------------------
@api.route('/saude', methods=['GET'])
def saude():
    return jsonify({'status': 'ok'})


@api.route('/dashboard', methods=['GET'])
def dashboard():
    return jsonify(_gestor().estatisticas_dashboard())


# -------------------------
# Clientes
# -------------------------
@api.route('/clientes', methods=['GET'])
def listar_clientes():
    clientes = _gestor().listar_clientes_com_status(
        termo=request.args.get('busca', ''),
        apenas_com_lembrete=request.args.get('lembrete', 'false').lower() == 'true',
        ordenar_por=request.args.get('ordenar_por', 'nome'),
        decrescente=request.args.get('ordem', 'asc').lower() == 'desc',
    )
    return jsonify(clientes)


@api.route('/clientes', methods=['POST'])
def criar_cliente():
    cliente = _gestor().salvar_cliente(_converter(Cliente, _json_corpo()))
    return jsonify(cliente.to_dict()), 201


@api.route('/clientes/<cliente_id>', methods=['PUT'])
def atualizar_cliente(cliente_id):
    cliente = _gestor().salvar_cliente(_converter(Cliente, _json_corpo(), cliente_id))
    return jsonify(cliente.to_dict())


@api.route('/clientes/<cliente_id>', methods=['DELETE'])
def excluir_cliente(cliente_id):
    _gestor().excluir_cliente(cliente_id)
    return '', 204


@api.route('/clientes/<cliente_id>/renovar', methods=['POST'])
def renovar_cliente(cliente_id):
    cliente = _gestor().renovar(cliente_id)
    return jsonify(cliente.to_dict())


# -------------------------
# Planos e servidores
# -------------------------
@api.route('/planos', methods=['GET'])
def listar_planos():
    return jsonify([p.to_dict() for p in _gestor().listar_planos()])


@api.route('/planos', methods=['POST'])
def criar_plano():
    plano = _gestor().salvar_plano(_converter(Plano, _json_corpo()))
    return jsonify(plano.to_dict()), 201


@api.route('/planos/<plano_id>', methods=['PUT'])
def atualizar_plano(plano_id):
    plano = _gestor().salvar_plano(_converter(Plano, _json_corpo(), plano_id))
    return jsonify(plano.to_dict())


@api.route('/planos/<plano_id>', methods=['DELETE'])
def excluir_plano(plano_id):
    _gestor().excluir_plano(plano_id)
    return '', 204


@api.route('/servidores', methods=['GET'])
def listar_servidores():
    return jsonify([s.to_dict() for s in _gestor().listar_servidores()])


@api.route('/servidores', methods=['POST'])
def criar_servidor():
    servidor = _gestor().salvar_servidor(_converter(Servidor, _json_corpo()))
    return jsonify(servidor.to_dict()), 201


@api.route('/servidores/<servidor_id>', methods=['PUT'])
def atualizar_servidor(servidor_id):
    servidor = _gestor().salvar_servidor(_converter(Servidor, _json_corpo(), servidor_id))
    return jsonify(servidor.to_dict())


@api.route('/servidores/<servidor_id>', methods=['DELETE'])
def excluir_servidor(servidor_id):
    _gestor().excluir_servidor(servidor_id)
    return '', 204


# -------------------------
# Templates
# -------------------------
@api.route('/templates', methods=['GET'])
def listar_templates():
    templates = _gestor().listar_templates(request.args.get('busca', ''))
    return jsonify([t.to_dict() for t in templates])


@api.route('/templates', methods=['POST'])
def criar_template():
    template = _gestor().salvar_template(_converter(TemplateMensagem, _json_corpo()))
    return jsonify(template.to_dict()), 201


@api.route('/templates/<template_id>', methods=['PUT'])
def atualizar_template(template_id):
    template = _gestor().salvar_template(_converter(TemplateMensagem, _json_corpo(), template_id))
    return jsonify(template.to_dict())


@api.route('/templates/<template_id>', methods=['DELETE'])
def excluir_template(template_id):
    _gestor().excluir_template(template_id)
    return '', 204


@api.route('/templates/preview', methods=['POST'])
def preview_template():
    conteudo = _json_corpo().get('conteudo', '')
    gerenciador = _gestor().templates
    return jsonify({
        'preview': gerenciador.gerar_preview(conteudo, _gestor().hoje()),
        'erros': gerenciador.validar_template(conteudo),
    })


# -------------------------
# Campanhas e histórico
# -------------------------
@api.route('/campanhas', methods=['GET'])
def listar_campanhas():
    return jsonify([
        {'chave': c.chave, 'titulo': c.titulo, 'dias_restantes': c.dias_restantes}
        for c in CAMPANHAS.values()
    ])


@api.route('/campanhas/<chave>', methods=['GET'])
def clientes_campanha(chave):
    return jsonify(_gestor().mensagens_da_campanha(chave, request.args.get('template_id')))


@api.route('/campanhas/<chave>/enviar', methods=['POST'])
def enviar_campanha(chave):
    dados = _json_corpo()
    if not dados.get('cliente_id'):
        raise ErroValidacao("cliente_id é obrigatório")

    resultado = _gestor().enviar_notificacao(chave, dados['cliente_id'], dados.get('template_id'))
    return jsonify({'link': resultado['link'], 'log': _log_para_dict(resultado['log'])}), 201


@api.route('/notificacoes', methods=['GET'])
def historico():
    return jsonify([_log_para_dict(log) for log in _gestor().historico_notificacoes()])


# -------------------------
# Erros
# -------------------------
def _erro_nao_encontrado(e):
    return jsonify({'erro': str(e)}), 404


def _erro_validacao(e):
    return jsonify({'erro': str(e)}), 400


def _erro_armazenamento(e):
    logger.error(f"Armazenamento indisponível: {e}")
    return jsonify({'erro': 'Armazenamento indisponível', 'detalhe': str(e)}), 503


def criar_app(gestor: GestorIPTV = None, config=None) -> Flask:
    """Cria a aplicação Flask com o gestor injetado (ou montado pela configuração)"""
    config = config or get_config()

    if gestor is None:
        relogio = relogio_para(config.system.timezone)
        repositorio = criar_repositorio(config)
        if config.system.semear_dados:
            semear_dados_exemplo(repositorio, agora=relogio())
        disparador = DisparadorWhatsApp(config.whatsapp.base_url, config.whatsapp.abrir_navegador)
        gestor = GestorIPTV(repositorio, disparador, relogio)

    app = Flask(__name__)
    app.config['GESTOR'] = gestor
    app.json.ensure_ascii = False

    app.register_blueprint(api)
    app.register_error_handler(ErroNaoEncontrado, _erro_nao_encontrado)
    app.register_error_handler(ErroValidacao, _erro_validacao)
    app.register_error_handler(ErroArmazenamento, _erro_armazenamento)

    logger.info("Aplicação Flask inicializada")
    return app


if __name__ == '__main__':
    import os

    setup_logging()
    port = int(os.getenv('PORT', 5000))
    criar_app().run(host=os.getenv('HOST', '0.0.0.0'), port=port, debug=False)
