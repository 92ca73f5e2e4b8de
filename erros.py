"""
Exceções do sistema de gestão
Cada erro encerra a operação que o disparou; nenhuma é repetida automaticamente.
"""


class ErroGestor(Exception):
    """Erro base do gestor"""


class ErroNaoEncontrado(ErroGestor, LookupError):
    """Registro referenciado não existe (visão desatualizada)"""

    def __init__(self, entidade, registro_id):
        self.entidade = entidade
        self.registro_id = registro_id
        super().__init__(f"{entidade} não encontrado: {registro_id}")


class ErroValidacao(ErroGestor, ValueError):
    """Dado obrigatório ausente ou inválido; o armazenamento não é tocado"""


class ErroArmazenamento(ErroGestor, RuntimeError):
    """Armazenamento indisponível para leitura ou escrita"""
