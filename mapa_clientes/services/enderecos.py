"""Normalização de CEP/UF e montagem do endereço canônico usado na geocodificação."""

import re
from typing import Optional

from mapa_clientes.schemas.geo import ComponentesEndereco, FragmentoCep
from mapa_clientes.schemas.parceiro import ParceiroCrm

PAIS_PADRAO = "Brasil"
CEP_DIGITOS = 8
# Endereço com menos caracteres úteis que isso não serve para geocodificar
MIN_CARACTERES_UTEIS = 8


def normalizar_cep(cep: Optional[str]) -> str:
    """Remove formatacao do CEP: '57000-000' -> '57000000'."""
    return re.sub(r"\D", "", str(cep or ""))


def cep_valido(cep: Optional[str]) -> bool:
    return len(normalizar_cep(cep)) == CEP_DIGITOS


def limpar_uf(value: Optional[str]) -> Optional[str]:
    """Sigla de UF com duas letras; 'BR' é país, não UF."""
    uf = str(value or "").strip().upper()
    if not re.fullmatch(r"[A-Z]{2}", uf):
        return None
    if uf == "BR":
        return None
    return uf


def _limpar(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    t = re.sub(r"\s+", " ", str(value)).strip().strip(",").strip()
    return t or None


def montar_endereco(comp: ComponentesEndereco) -> Optional[str]:
    """
    Monta o endereço canônico: logradouro, número, bairro, cidade, UF, CEP, país.

    Retorna None quando sobra só o país ou quando o texto é curto demais
    para uma consulta útil.
    """
    parts = [
        _limpar(comp.logradouro),
        _limpar(comp.numero),
        _limpar(comp.bairro),
        _limpar(comp.cidade),
        limpar_uf(comp.uf),
        normalizar_cep(comp.cep) if cep_valido(comp.cep) else None,
        _limpar(comp.pais) or PAIS_PADRAO,
    ]
    q = ", ".join(p for p in parts if p)
    q = re.sub(r"\s+", " ", q)
    q = re.sub(r"\s*,(\s*,)*\s*", ", ", q).strip(" ,")

    if not q or q.lower() == PAIS_PADRAO.lower():
        return None
    if len(re.sub(r"[, ]", "", q)) < MIN_CARACTERES_UTEIS:
        return None
    return q


def componentes_do_parceiro(parceiro: ParceiroCrm) -> ComponentesEndereco:
    return ComponentesEndereco(
        logradouro=parceiro.street,
        numero=parceiro.numero,
        bairro=parceiro.bairro,
        cidade=parceiro.city,
        uf=limpar_uf(parceiro.uf),
        cep=normalizar_cep(parceiro.zip) if cep_valido(parceiro.zip) else None,
        pais=parceiro.country or PAIS_PADRAO,
    )


def componentes_do_cep(fragmento: FragmentoCep) -> ComponentesEndereco:
    return ComponentesEndereco(
        logradouro=fragmento.logradouro,
        bairro=fragmento.bairro,
        cidade=fragmento.cidade,
        uf=limpar_uf(fragmento.uf),
        cep=normalizar_cep(fragmento.cep) if cep_valido(fragmento.cep) else None,
        pais=PAIS_PADRAO,
    )


def endereco_do_cep(fragmento: FragmentoCep) -> Optional[str]:
    """Endereço de consulta a partir do ViaCEP (sem o CEP, que atrapalha o Nominatim)."""
    comp = componentes_do_cep(fragmento)
    return montar_endereco(comp.model_copy(update={"cep": None}))
