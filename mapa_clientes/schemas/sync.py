"""Schemas de saída: resumo da passagem, status da sincronização e clientes."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ResumoPassagem(BaseModel):
    """Resultado de uma passagem de sincronização."""
    status: str  # 'completed', 'paused' (pausa vigente), 'paused_on_error' ou 'source_error'
    total_entradas: int = 0
    nao_encontrados: list[str] = []
    processados: int = 0
    geocodificados: int = 0
    falhas: int = 0
    indice_inicial: int = 0
    motivo_pausa: str | None = None


class SyncStatus(BaseModel):
    pausado: bool
    pausado_desde: datetime | None = None
    motivo: str | None = None
    retomar_em: datetime | None = None
    cursor_id_odoo: int | None = None
    cursor_nome: str | None = None


class EquipamentoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    nome: str
    quantidade: int | None = None


class ClienteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id_odoo: int
    nome: str
    telefone: str | None = None
    celular: str | None = None
    email: str | None = None
    site: str | None = None
    logradouro: str | None = None
    numero: str | None = None
    complemento: str | None = None
    bairro: str | None = None
    cidade: str | None = None
    estado: str | None = None
    cep: str | None = None
    pais: str | None = None
    endereco_completo: str | None = None
    latitude: float | None = None
    longitude: float | None = None
