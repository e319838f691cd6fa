"""
CLI do Mapa de Clientes.

Usage:
    python -m mapa_clientes init-db
    python -m mapa_clientes sync
    python -m mapa_clientes run [--interval 30]
    python -m mapa_clientes status
    python -m mapa_clientes serve [--host 0.0.0.0] [--port 8000]
    python -m mapa_clientes geocode "<endereco>" [--cep 01310100]
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from dotenv import load_dotenv

# .env na raiz do projeto, se existir
_env_path = Path(__file__).resolve().parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _settings():
    from mapa_clientes.core.config import get_settings

    settings = get_settings()
    if settings.DEBUG:
        logging.getLogger().setLevel(logging.DEBUG)
    return settings


def cmd_init_db(args):
    """Create tables."""
    from mapa_clientes.core.database import init_db

    _settings()
    init_db()


def _print_resumo(resumo):
    print("\n" + "=" * 50)
    print("  Sincronização - Resumo")
    print("=" * 50)
    print(f"  {'Status':.<30} {resumo.status:>10}")
    print(f"  {'Entradas':.<30} {resumo.total_entradas:>10,}")
    print(f"  {'Retomada no índice':.<30} {resumo.indice_inicial:>10,}")
    print(f"  {'Processados':.<30} {resumo.processados:>10,}")
    print(f"  {'Geocodificados':.<30} {resumo.geocodificados:>10,}")
    print(f"  {'Falhas':.<30} {resumo.falhas:>10,}")
    print(f"  {'Não encontrados no CRM':.<30} {len(resumo.nao_encontrados):>10,}")
    for nome in resumo.nao_encontrados[:20]:
        print(f"    - {nome}")
    if resumo.motivo_pausa:
        print(f"  Pausa: {resumo.motivo_pausa}")
    print("=" * 50)


def _criar_servico():
    from mapa_clientes.core.database import get_session, init_db
    from mapa_clientes.services.sync_service import criar_sync_service

    settings = _settings()
    init_db()
    return criar_sync_service(settings, get_session)


def cmd_sync(args):
    """Run a single sync pass."""
    service = _criar_servico()
    resumo = service.run_pass()
    _print_resumo(resumo)
    if resumo.status == "source_error":
        sys.exit(1)


def cmd_run(args):
    """Run sync passes forever, one every --interval minutes."""
    service = _criar_servico()
    intervalo = args.interval or service.settings.SYNC_INTERVAL_MINUTES
    logger.info("⏱️ Sincronização a cada %d minutos (Ctrl+C para sair)", intervalo)

    try:
        while True:
            inicio = time.monotonic()
            try:
                resumo = service.run_pass()
                logger.info("Passagem encerrada: %s", resumo.status)
            except Exception as e:
                logger.error("❌ Passagem falhou: %s", e, exc_info=True)
            restante = intervalo * 60 - (time.monotonic() - inicio)
            if restante > 0:
                time.sleep(restante)
    except KeyboardInterrupt:
        logger.info("Encerrado pelo usuário")


def cmd_status(args):
    """Show cursor and pause state."""
    from mapa_clientes.core.database import get_session
    from mapa_clientes.services.repositorio import ClienteRepository
    from mapa_clientes.services.sync_service import obter_status

    settings = _settings()
    session = get_session()
    try:
        status = obter_status(ClienteRepository(session), settings)
    finally:
        session.close()

    print("\n" + "=" * 50)
    print("  Sincronização - Estado")
    print("=" * 50)
    if status.pausado:
        print(f"  Pausada desde {status.pausado_desde:%d/%m/%Y %H:%M} UTC")
        print(f"  Retoma após   {status.retomar_em:%d/%m/%Y %H:%M} UTC")
        print(f"  Motivo: {status.motivo}")
    else:
        print("  Sem pausa")
    if status.cursor_id_odoo is not None or status.cursor_nome:
        print(f"  Cursor: {status.cursor_nome} (id {status.cursor_id_odoo})")
    else:
        print("  Sem cursor (próxima passagem começa do início)")
    print("=" * 50)


def cmd_serve(args):
    """Start the read API."""
    import uvicorn

    settings = _settings()
    uvicorn.run(
        "mapa_clientes.api.main:app",
        host=args.host,
        port=args.port,
        log_level="debug" if settings.DEBUG else "info",
    )


def cmd_geocode(args):
    """Resolve one address and print the result."""
    from mapa_clientes.core.exceptions import MapaClientesError
    from mapa_clientes.services.geocoding import GeocodingResolver
    from mapa_clientes.services.transporte import criar_cliente_http

    settings = _settings()
    with criar_cliente_http(settings.HTTP_TIMEOUT_SEGUNDOS) as client:
        resolver = GeocodingResolver(settings, client)
        try:
            geo = resolver.resolve(args.endereco, args.cep)
        except MapaClientesError as e:
            print(f"Erro: {e}")
            sys.exit(2)

    if geo is None:
        print("Nenhuma coordenada encontrada.")
        sys.exit(1)

    print(f"\n  {geo.lat:.6f}, {geo.lng:.6f}  ({geo.fonte})")
    if geo.normalized:
        for key, value in geo.normalized.model_dump().items():
            if value:
                print(f"  {key}: {value}")


def main():
    parser = argparse.ArgumentParser(
        prog="mapa_clientes",
        description="Mapa de Clientes - sincronização Odoo + planilha com geocodificação",
    )
    subparsers = parser.add_subparsers(dest="command", help="Comando a executar")

    subparsers.add_parser("init-db", help="Criar tabelas no banco")
    subparsers.add_parser("sync", help="Executar uma passagem de sincronização")

    run = subparsers.add_parser("run", help="Sincronizar periodicamente")
    run.add_argument("--interval", type=int, default=None, help="Intervalo em minutos (padrão: SYNC_INTERVAL_MINUTES)")

    subparsers.add_parser("status", help="Estado do cursor e da pausa")

    srv = subparsers.add_parser("serve", help="Subir a API de leitura")
    srv.add_argument("--host", type=str, default="0.0.0.0")
    srv.add_argument("--port", type=int, default=8000)

    geo = subparsers.add_parser("geocode", help="Geocodificar um endereço (diagnóstico)")
    geo.add_argument("endereco", type=str, help="Endereço completo")
    geo.add_argument("--cep", type=str, default=None, help="CEP do endereço")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "init-db": cmd_init_db,
        "sync": cmd_sync,
        "run": cmd_run,
        "status": cmd_status,
        "serve": cmd_serve,
        "geocode": cmd_geocode,
    }

    commands[args.command](args)


if __name__ == "__main__":
    main()
