"""Schemas de endereço e geocodificação."""

from pydantic import BaseModel


class FragmentoCep(BaseModel):
    """Endereço retornado pelo ViaCEP para um CEP."""
    logradouro: str | None = None
    bairro: str | None = None
    cidade: str | None = None
    uf: str | None = None
    cep: str | None = None


class ComponentesEndereco(BaseModel):
    """Campos estruturados de um endereço (entrada do endereço canônico)."""
    logradouro: str | None = None
    numero: str | None = None
    bairro: str | None = None
    cidade: str | None = None
    uf: str | None = None
    cep: str | None = None
    pais: str | None = None


class GeoResultado(BaseModel):
    """Coordenadas obtidas e, quando houver, o endereço normalizado pelo provedor."""
    lat: float
    lng: float
    normalized: ComponentesEndereco | None = None
    fonte: str | None = None  # 'google' ou 'nominatim'
