from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from mapa_clientes.api.main import app
from mapa_clientes.core.config import get_settings
from mapa_clientes.core.database import get_db
from mapa_clientes.schemas.parceiro import ItemEquipamento
from mapa_clientes.services.repositorio import ClienteRepository

AGORA = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def client(session_factory, settings):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def populado(db):
    repo = ClienteRepository(db)
    repo.upsert_cliente({
        "id_odoo": 10, "nome": "Acme Ltda", "cidade": "Recife", "estado": "PE",
        "latitude": -8.05, "longitude": -34.9, "atualizado_em": AGORA,
    })
    repo.upsert_cliente({"id_odoo": 11, "nome": "Sem Coordenada", "atualizado_em": AGORA})
    repo.substituir_equipamentos(10, [ItemEquipamento(nome="Gerador", quantidade=2)])
    db.commit()
    return repo


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


class TestClientes:
    def test_lista_so_geocodificados(self, client, populado):
        resp = client.get("/clientes")
        assert resp.status_code == 200
        data = resp.json()
        assert [c["id_odoo"] for c in data] == [10]
        assert data[0]["latitude"] == -8.05
        assert data[0]["estado"] == "PE"

    def test_equipamentos(self, client, populado):
        resp = client.get("/clientes/10/equipamentos")
        assert resp.status_code == 200
        assert resp.json() == [{"nome": "Gerador", "quantidade": 2}]

    def test_equipamentos_cliente_inexistente(self, client, populado):
        resp = client.get("/clientes/999/equipamentos")
        assert resp.status_code == 404


class TestSyncStatus:
    def test_sem_pausa(self, client):
        data = client.get("/sync/status").json()
        assert data["pausado"] is False
        assert data["cursor_id_odoo"] is None

    def test_com_pausa_e_cursor(self, client, db):
        repo = ClienteRepository(db)
        repo.salvar_pausa(AGORA, "Nominatim indisponível")
        repo.salvar_cursor(10, "Acme Ltda", AGORA)
        db.commit()

        data = client.get("/sync/status").json()

        assert data["pausado"] is True
        assert data["motivo"] == "Nominatim indisponível"
        assert data["retomar_em"].startswith("2026-10-19T19:00:00")
        assert data["cursor_nome"] == "Acme Ltda"
