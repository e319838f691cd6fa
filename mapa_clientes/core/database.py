"""
Configuração do banco de dados com SQLAlchemy
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from mapa_clientes.core.config import get_settings
import logging

logger = logging.getLogger(__name__)

# Base para modelos
Base = declarative_base()

# Variáveis globais que serão inicializadas depois
engine = None
SessionLocal = None


def _init_engine():
    """Inicializar engine - chamado apenas quando necessário"""
    global engine, SessionLocal

    if engine is not None:
        return  # Já inicializado

    settings = get_settings()
    logger.info(f"[DATABASE] Inicializando com DATABASE_URL: {settings.DATABASE_URL[:50]}...")

    engine = create_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        pool_pre_ping=True,
    )
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


def get_session() -> Session:
    """Get a new database session."""
    _init_engine()
    return SessionLocal()


def get_db():
    """Dependency para injetar sessão do banco"""
    session = get_session()
    try:
        yield session
    finally:
        session.close()


def init_db(bind=None):
    """Inicializar tabelas do banco"""
    # Registrar modelos no metadata
    from mapa_clientes import models  # noqa: F401

    if bind is None:
        _init_engine()
        bind = engine
    try:
        logger.info("[DATABASE] Criando tabelas...")
        Base.metadata.create_all(bind)
        logger.info("[DATABASE] ✓ Tabelas criadas com sucesso")
    except Exception as e:
        logger.error(f"[DATABASE] ✗ Erro ao inicializar banco: {e}", exc_info=True)
        raise


def close_db():
    """Fechar conexões do banco"""
    global engine, SessionLocal
    if engine is not None:
        engine.dispose()
        engine = None
        SessionLocal = None
