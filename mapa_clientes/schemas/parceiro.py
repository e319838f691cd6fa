"""Schemas das entradas da planilha e dos parceiros do Odoo."""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

# Campos pedidos ao Odoo em res.partner
ODOO_FIELDS = [
    "name",
    "display_name",
    "street",
    "street2",
    "zip",
    "city",
    "l10n_br_endereco_numero",
    "l10n_br_endereco_bairro",
    "state_id",
    "country_id",
    "phone",
    "mobile",
    "email",
    "website",
    "customer_rank",
]


class EntradaPlanilha(BaseModel):
    """Uma linha da planilha: "Empresa, Contato" e o texto livre dos equipamentos."""
    model_config = ConfigDict(frozen=True)

    nome: str
    equipamentos_texto: str = ""


class ItemEquipamento(BaseModel):
    """Item extraído do texto de equipamentos."""
    nome: str
    quantidade: int | None = None


def _many2one_label(value: Any) -> str | None:
    """Odoo devolve many2one como [id, "rótulo"] ou False."""
    if isinstance(value, (list, tuple)) and len(value) >= 2:
        return str(value[1]).strip() or None
    return None


class ParceiroCrm(BaseModel):
    """Parceiro (res.partner) do Odoo, já normalizado na fronteira."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    display_name: str | None = None
    street: str | None = None
    street2: str | None = None
    numero: str | None = None
    bairro: str | None = None
    city: str | None = None
    uf: str | None = None
    zip: str | None = None
    country: str | None = None
    phone: str | None = None
    mobile: str | None = None
    email: str | None = None
    website: str | None = None
    customer_rank: int = 0

    @model_validator(mode="before")
    @classmethod
    def _from_odoo(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        # Odoo usa False para campo vazio
        raw = {k: (None if v is False else v) for k, v in data.items()}

        estado = _many2one_label(raw.get("state_id"))
        uf = raw.get("uf")
        if uf is None and estado:
            m = re.search(r"\((.*?)\)", estado)
            uf = m.group(1) if m else None

        country = raw.get("country")
        if country is None:
            country = _many2one_label(raw.get("country_id"))

        def texto(key: str, *fallbacks: str) -> str | None:
            for k in (key, *fallbacks):
                v = raw.get(k)
                if v is not None and str(v).strip():
                    return str(v).strip()
            return None

        return {
            "id": raw.get("id"),
            "name": texto("name") or "",
            "display_name": texto("display_name"),
            "street": texto("street"),
            "street2": texto("street2"),
            "numero": texto("numero", "l10n_br_endereco_numero"),
            "bairro": texto("bairro", "l10n_br_endereco_bairro"),
            "city": texto("city"),
            "uf": uf,
            "zip": texto("zip"),
            "country": country,
            "phone": texto("phone"),
            "mobile": texto("mobile"),
            "email": texto("email"),
            "website": texto("website"),
            "customer_rank": raw.get("customer_rank") or 0,
        }

    @property
    def is_customer(self) -> bool:
        return self.customer_rank > 0
