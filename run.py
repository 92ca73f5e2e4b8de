#!/usr/bin/env python3
"""
Script de execução do Gestor IPTV
Detecta o ambiente e usa o servidor apropriado
"""

import os
import sys
import subprocess

from config import get_config


def run_with_gunicorn():
    """Run with Gunicorn for production"""
    port = os.getenv('PORT', '5000')
    cmd = [
        'gunicorn',
        '--bind', f'0.0.0.0:{port}',
        # Um único operador e snapshots inteiros: um worker só
        '--workers', '1',
        '--timeout', '120',
        '--access-logfile', '-',
        '--error-logfile', '-',
        'app:criar_app()'
    ]
    print(f"Starting with Gunicorn on port {port}")
    sys.exit(subprocess.run(cmd).returncode)


def run_with_flask():
    """Run with Flask development server"""
    from app import criar_app

    config = get_config()
    config.configure_logging()

    validation = config.validate_all()
    if not validation['valid']:
        config.print_summary()
        sys.exit(1)

    port = int(os.getenv('PORT', 5000))
    host = os.getenv('HOST', '127.0.0.1')

    print(f"Starting Flask development server on {host}:{port}")
    criar_app(config=config).run(host=host, port=port, debug=config.is_debug_enabled())


def main():
    """Main entry point - auto-detects environment"""
    is_production = (
        os.getenv('PORT') is not None or
        os.getenv('ENVIRONMENT') == 'production'
    )

    if is_production:
        print("Production environment detected")
        run_with_gunicorn()
    else:
        print("Development environment detected")
        run_with_flask()


if __name__ == '__main__':
    main()
