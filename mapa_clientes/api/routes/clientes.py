"""Router de leitura dos clientes geocodificados."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from mapa_clientes.core.database import get_db
from mapa_clientes.schemas.sync import ClienteOut, EquipamentoOut
from mapa_clientes.services.repositorio import ClienteRepository

router = APIRouter(prefix="/clientes", tags=["Clientes"])


@router.get("", response_model=list[ClienteOut])
def listar_clientes(db: Session = Depends(get_db)):
    """Clientes com coordenadas, para o mapa."""
    return ClienteRepository(db).listar_geocodificados()


@router.get("/{id_odoo}/equipamentos", response_model=list[EquipamentoOut])
def listar_equipamentos(id_odoo: int, db: Session = Depends(get_db)):
    repo = ClienteRepository(db)
    if repo.obter_cliente(id_odoo) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Cliente não encontrado",
        )
    return repo.listar_equipamentos(id_odoo)
