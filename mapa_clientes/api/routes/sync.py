"""Router do estado da sincronização."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mapa_clientes.core.config import Settings, get_settings
from mapa_clientes.core.database import get_db
from mapa_clientes.schemas.sync import SyncStatus
from mapa_clientes.services.repositorio import ClienteRepository
from mapa_clientes.services.sync_service import obter_status

router = APIRouter(prefix="/sync", tags=["Sincronização"])


@router.get("/status", response_model=SyncStatus)
def get_status(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Pausa vigente (e quando retoma) e posição do cursor."""
    return obter_status(ClienteRepository(db), settings)
