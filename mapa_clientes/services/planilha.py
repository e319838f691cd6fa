"""
Leitura da planilha de clientes/equipamentos.

Células mescladas chegam vazias nas linhas de baixo: nome e equipamentos
herdam o valor da linha anterior. Linhas ainda sem nome são descartadas e
linhas repetidas do mesmo cliente viram uma entrada só.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from mapa_clientes.schemas.parceiro import EntradaPlanilha

logger = logging.getLogger(__name__)


def _texto(value) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) and pd.isna(value):
        return None
    t = str(value).strip()
    return t or None


def entradas_de_linhas(linhas: Iterable[tuple]) -> list[EntradaPlanilha]:
    """(nome, equipamentos) já preenchidos -> entradas únicas por nome, na ordem original."""
    por_nome: dict[str, list[str]] = {}
    for nome, equipamentos in linhas:
        nome = _texto(nome)
        if not nome:
            continue
        textos = por_nome.setdefault(nome, [])
        equipamentos = _texto(equipamentos)
        if equipamentos and equipamentos not in textos:
            textos.append(equipamentos)

    return [
        EntradaPlanilha(nome=nome, equipamentos_texto="\n".join(textos))
        for nome, textos in por_nome.items()
    ]


def ler_planilha(
    path: str | Path,
    coluna_nome: str,
    coluna_equipamentos: str,
    sheet: int | str = 0,
) -> list[EntradaPlanilha]:
    path = Path(path)
    logger.info("Lendo planilha %s ...", path)

    if path.suffix.lower() == ".csv":
        df = pd.read_csv(path, dtype=str)
    else:
        df = pd.read_excel(path, sheet_name=sheet, dtype=str)

    faltando = [c for c in (coluna_nome, coluna_equipamentos) if c not in df.columns]
    if faltando:
        raise ValueError(f"Colunas não encontradas na planilha: {', '.join(faltando)}")

    df = df[[coluna_nome, coluna_equipamentos]]
    df = df.replace(r"^\s*$", pd.NA, regex=True).ffill()

    entradas = entradas_de_linhas(
        zip(df[coluna_nome].tolist(), df[coluna_equipamentos].tolist())
    )
    logger.info("Planilha: %d linhas -> %d clientes", len(df), len(entradas))
    return entradas
