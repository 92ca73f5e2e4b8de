from unittest.mock import patch

import pytest

from erros import ErroValidacao
from whatsapp import DisparadorWhatsApp, gerar_link_whatsapp


def test_link_com_digitos_e_mensagem_codificada():
    link = gerar_link_whatsapp('+55 (11) 98765-4321', 'Olá, João! R$40,00 & mais')
    assert link == (
        'https://api.whatsapp.com/send?phone=5511987654321'
        '&text=Ol%C3%A1%2C%20Jo%C3%A3o%21%20R%2440%2C00%20%26%20mais'
    )


def test_link_sem_telefone():
    with pytest.raises(ErroValidacao):
        gerar_link_whatsapp('', 'Olá')


def test_base_url_configuravel():
    link = gerar_link_whatsapp('5511987654321', 'oi', base_url='https://wa.example.com/send')
    assert link.startswith('https://wa.example.com/send?phone=5511987654321')


def test_disparador_nao_abre_navegador_por_padrao():
    with patch('whatsapp.webbrowser.open') as abrir:
        link = DisparadorWhatsApp().enviar('5511987654321', 'oi')
    abrir.assert_not_called()
    assert link.endswith('&text=oi')


def test_disparador_abre_navegador():
    with patch('whatsapp.webbrowser.open', return_value=True) as abrir:
        link = DisparadorWhatsApp(abrir_navegador=True).enviar('5511987654321', 'oi')
    abrir.assert_called_once_with(link, new=2)
