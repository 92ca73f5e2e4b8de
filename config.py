"""
Configurações do Sistema
Gerencia configurações centralizadas e validações de ambiente
"""

import os
import sys
import logging
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from pathlib import Path

import pytz
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

BACKENDS_VALIDOS = ('memoria', 'json', 'postgres')

def _env_bool(nome: str, padrao: str) -> bool:
    return os.getenv(nome, padrao).lower() == 'true'

@dataclass
class ArmazenamentoConfig:
    """Configurações do armazenamento de registros"""
    backend: str = 'json'
    caminho: str = 'dados/gestor_iptv.json'
    database_url: Optional[str] = None
    connection_params: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> bool:
        """Valida configurações do armazenamento"""
        backend = self.backend.lower()
        if backend not in BACKENDS_VALIDOS:
            return False
        if backend == 'json':
            return bool(self.caminho)
        if backend == 'postgres':
            return bool(self.database_url or self.connection_params.get('host'))
        return True

@dataclass
class WhatsAppConfig:
    """Configurações do disparo por link do WhatsApp"""
    base_url: str = 'https://api.whatsapp.com/send'
    abrir_navegador: bool = False

    def validate(self) -> bool:
        return self.base_url.startswith(('http://', 'https://'))

@dataclass
class SystemConfig:
    """Configurações gerais do sistema"""
    log_level: str = "INFO"
    timezone: str = "America/Sao_Paulo"
    debug_mode: bool = False
    semear_dados: bool = True

    def validate(self) -> bool:
        """Valida configurações do sistema"""
        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        return self.log_level.upper() in valid_log_levels and self.timezone in pytz.all_timezones_set

class Config:
    """Classe principal de configurações"""

    def __init__(self, carregar_env: bool = True):
        """Inicializa configurações carregando variáveis de ambiente"""
        if carregar_env:
            self._load_environment()

        host = os.getenv('PGHOST', 'localhost')
        # Se não for localhost, exigimos SSL por padrão
        default_sslmode = 'disable' if host in ('localhost', '127.0.0.1') else 'require'

        # Configurações do armazenamento
        self.armazenamento = ArmazenamentoConfig(
            backend=os.getenv('STORAGE_BACKEND', 'json'),
            caminho=os.getenv('STORAGE_PATH', 'dados/gestor_iptv.json'),
            database_url=os.getenv('DATABASE_URL'),
            connection_params={
                'host': host,
                'database': os.getenv('PGDATABASE', 'gestor_iptv'),
                'user': os.getenv('PGUSER', 'postgres'),
                'password': os.getenv('PGPASSWORD', ''),
                'port': os.getenv('PGPORT', '5432'),
                'sslmode': os.getenv('PGSSLMODE', default_sslmode),
            }
        )

        # Configurações do WhatsApp
        self.whatsapp = WhatsAppConfig(
            base_url=os.getenv('WHATSAPP_BASE_URL', 'https://api.whatsapp.com/send'),
            abrir_navegador=_env_bool('WHATSAPP_ABRIR_NAVEGADOR', 'false')
        )

        # Configurações do sistema
        self.system = SystemConfig(
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
            timezone=os.getenv('TIMEZONE', 'America/Sao_Paulo'),
            debug_mode=_env_bool('DEBUG_MODE', 'false'),
            semear_dados=_env_bool('SEMEAR_DADOS', 'true')
        )

    def _load_environment(self):
        """Carrega variáveis do arquivo .env se existir"""
        env_path = Path('.env')
        if env_path.exists():
            load_dotenv(env_path)
            logger.info("Arquivo .env carregado com sucesso")
        else:
            logger.info("Arquivo .env não encontrado, usando variáveis do sistema")

    def validate_all(self) -> Dict[str, Any]:
        """Valida todas as configurações"""
        validation_results = {
            'armazenamento': self.armazenamento.validate(),
            'whatsapp': self.whatsapp.validate(),
            'system': self.system.validate(),
            'errors': [],
            'warnings': []
        }

        # Verificar configurações críticas
        if not validation_results['armazenamento']:
            validation_results['errors'].append(
                f"Armazenamento inválido: backend '{self.armazenamento.backend}' "
                f"(use {', '.join(BACKENDS_VALIDOS)})"
            )

        if not validation_results['whatsapp']:
            validation_results['errors'].append("WHATSAPP_BASE_URL deve começar com http:// ou https://")

        if not validation_results['system']:
            validation_results['errors'].append(
                f"LOG_LEVEL ({self.system.log_level}) ou TIMEZONE ({self.system.timezone}) inválido"
            )

        if self.armazenamento.backend.lower() == 'memoria':
            validation_results['warnings'].append("Armazenamento em memória: dados perdidos ao reiniciar")

        validation_results['valid'] = len(validation_results['errors']) == 0

        return validation_results

    def is_debug_enabled(self) -> bool:
        """Verifica se debug está habilitado"""
        return self.system.debug_mode or _env_bool('DEBUG', 'false')

    def get_log_level(self) -> int:
        """Obtém nível de log numérico"""
        levels = {
            'DEBUG': logging.DEBUG,
            'INFO': logging.INFO,
            'WARNING': logging.WARNING,
            'ERROR': logging.ERROR,
            'CRITICAL': logging.CRITICAL
        }
        return levels.get(self.system.log_level.upper(), logging.INFO)

    def configure_logging(self):
        """Configura sistema de logging"""
        log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

        logging.basicConfig(
            level=self.get_log_level(),
            format=log_format,
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # Reduzir verbosidade do servidor de desenvolvimento
        logging.getLogger('werkzeug').setLevel(logging.WARNING)

        # Se em debug, adicionar mais detalhes
        if self.is_debug_enabled():
            logging.getLogger().setLevel(logging.DEBUG)
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
            )

            # Reconfigurar handlers existentes
            for handler in logging.root.handlers:
                handler.setFormatter(formatter)

        logger.info(f"Logging configurado - Nível: {self.system.log_level}")

    def print_summary(self):
        """Imprime resumo das configurações"""
        print("\n" + "="*60)
        print("📺 GESTOR IPTV - CLIENTES E NOTIFICAÇÕES")
        print("="*60)

        print(f"🐛 Debug: {'✅ Ativo' if self.is_debug_enabled() else '❌ Inativo'}")
        print(f"📝 Log Level: {self.system.log_level}")
        print(f"🕐 Timezone: {self.system.timezone}")

        print(f"\n🗄️ Armazenamento:")
        print(f"   Backend: {self.armazenamento.backend}")
        if self.armazenamento.backend.lower() == 'json':
            print(f"   Arquivo: {self.armazenamento.caminho}")
        if self.armazenamento.backend.lower() == 'postgres':
            print(f"   DATABASE_URL: {'✅ Configurado' if self.armazenamento.database_url else '❌ Não configurado'}")
            print(f"   Host: {self.armazenamento.connection_params.get('host')}")

        print(f"\n📱 WhatsApp:")
        print(f"   Link base: {self.whatsapp.base_url}")
        print(f"   Abrir navegador: {'✅ Sim' if self.whatsapp.abrir_navegador else '❌ Não'}")

        print("="*60)

        validation = self.validate_all()
        if validation['valid']:
            print("✅ Todas as configurações críticas estão válidas!")
        else:
            print("❌ Encontrados problemas nas configurações:")
            for error in validation['errors']:
                print(f"   🔴 {error}")

        if validation['warnings']:
            print("⚠️ Avisos de configuração:")
            for warning in validation['warnings']:
                print(f"   🟡 {warning}")

        print("="*60 + "\n")

# Instância global de configurações (criada sob demanda)
_config: Optional[Config] = None

def get_config() -> Config:
    """Retorna instância global de configurações"""
    global _config
    if _config is None:
        _config = Config()
    return _config

def validate_environment() -> bool:
    """Valida ambiente rapidamente"""
    return get_config().validate_all()['valid']

def setup_logging():
    """Configura logging do sistema"""
    get_config().configure_logging()

if __name__ == "__main__":
    get_config().print_summary()
    sys.exit(0 if validate_environment() else 1)
