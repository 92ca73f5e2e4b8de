"""
Disparo de mensagens via link do WhatsApp Web
O envio é abrir uma conversa com a mensagem pronta; não há confirmação de entrega.
"""

import logging
import webbrowser
from urllib.parse import quote

from erros import ErroValidacao
from utils import limpar_telefone

logger = logging.getLogger(__name__)

WHATSAPP_BASE_URL = 'https://api.whatsapp.com/send'


def gerar_link_whatsapp(telefone: str, mensagem: str, base_url: str = WHATSAPP_BASE_URL) -> str:
    """Monta o link com telefone só com dígitos e mensagem codificada"""
    numero = limpar_telefone(telefone)
    if not numero:
        raise ErroValidacao("Cliente sem telefone para envio pelo WhatsApp")

    return f"{base_url}?phone={numero}&text={quote(mensagem, safe='')}"


class DisparadorWhatsApp:
    """Abre (opcionalmente) a conversa no navegador e devolve o link"""

    def __init__(self, base_url: str = WHATSAPP_BASE_URL, abrir_navegador: bool = False):
        self.base_url = base_url
        self.abrir_navegador = abrir_navegador

    def enviar(self, telefone: str, mensagem: str) -> str:
        link = gerar_link_whatsapp(telefone, mensagem, self.base_url)

        if self.abrir_navegador:
            aberto = webbrowser.open(link, new=2)
            if not aberto:
                logger.warning(f"Navegador não abriu o link para {limpar_telefone(telefone)}")

        logger.debug(f"Link WhatsApp gerado para {limpar_telefone(telefone)}")
        return link
