"""Fixtures compartilhadas: settings sem esperas, SQLite em memória e HTTP falso."""

from typing import Callable

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mapa_clientes.core.config import Settings
from mapa_clientes.core.database import init_db


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        ODOO_URL="http://odoo.test/jsonrpc",
        ODOO_DB="teste",
        ODOO_USER="integracao",
        ODOO_PASS="segredo",
        ODOO_BATCH_SIZE=2,
        ROSTER_PATH=None,
        GOOGLE_MAPS_KEY=None,
        GOOGLE_GEOCODE_URL="https://google.test/geocode/json",
        VIACEP_URL="https://viacep.test/ws",
        VIACEP_MAX_TENTATIVAS=2,
        VIACEP_BACKOFF_SEGUNDOS=0,
        NOMINATIM_HOSTS="https://nom1.test,https://nom2.test",
        NOMINATIM_DELAY_SEGUNDOS=0,
        NOMINATIM_BACKOFF_SEGUNDOS=0,
        NOMINATIM_MAX_TENTATIVAS=3,
        PAUSA_HORAS=7,
    )


@pytest.fixture
def sleeps() -> list:
    """Registra as esperas pedidas em vez de dormir."""
    return []


@pytest.fixture
def fake_sleep(sleeps) -> Callable[[float], None]:
    return sleeps.append


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_client():
    """httpx.Client cujas requisições vão para um handler local."""

    def _make(handler) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(handler))

    return _make
