"""
Parser do texto livre de equipamentos da planilha.

Ex: "[COD123] Gerador x2; Compressor (1)"
    -> [Gerador (2), Compressor (1)]
"""

import re
from typing import Optional

from mapa_clientes.schemas.parceiro import ItemEquipamento

_SEPARADORES = re.compile(r"[;,\n\r|]")
# Prefixo de código interno: "P/2023/15 - "
_PREFIXO_CODIGO = re.compile(r"^\s*[A-Za-z]/\d{4}/\d+\s*[-–—]\s*")
_CODIGO_COLCHETES = re.compile(r"\[[^\]]*\](.*)$", re.DOTALL)
_PONTUACAO_INICIAL = re.compile(r"^[\s\-–—:.;,)\]*•]+")

# Quantidade no final: "Item x2", "Item (2)", "Item — 2", "Item 2"
_QUANTIDADE = [
    re.compile(r"^(.*\S)\s+[xX]\s*(\d+)$"),
    re.compile(r"^(.*\S)\s*\(\s*(\d+)\s*\)$"),
    re.compile(r"^(.*\S)\s*[-–—]\s*(\d+)$"),
    re.compile(r"^(.*\S)\s+(\d+)$"),
]


def limpar_fragmento(fragmento: str) -> str:
    t = _PREFIXO_CODIGO.sub("", fragmento)
    m = _CODIGO_COLCHETES.search(t)
    if m:
        t = m.group(1)
    t = _PONTUACAO_INICIAL.sub("", t)
    return re.sub(r"\s+", " ", t).strip()


def extrair_quantidade(texto: str) -> tuple[str, Optional[int]]:
    for padrao in _QUANTIDADE:
        m = padrao.match(texto)
        if m:
            return m.group(1).strip(" -–—:"), int(m.group(2))
    return texto.strip(" -–—:"), None


def parse_equipamentos(texto: Optional[str]) -> list[ItemEquipamento]:
    """Quebra o texto em itens; fragmentos sem nome são descartados."""
    if not texto:
        return []

    itens = []
    for fragmento in _SEPARADORES.split(str(texto)):
        limpo = limpar_fragmento(fragmento)
        if not limpo:
            continue
        nome, quantidade = extrair_quantidade(limpo)
        if not re.search(r"[^\W\d_]", nome):
            continue
        itens.append(ItemEquipamento(nome=nome, quantidade=quantidade))
    return itens


def agrupar_itens(itens: list[ItemEquipamento]) -> list[ItemEquipamento]:
    """Junta itens de mesmo nome (chave única por cliente), somando quantidades."""
    por_nome: dict[str, ItemEquipamento] = {}
    for item in itens:
        atual = por_nome.get(item.nome)
        if atual is None:
            por_nome[item.nome] = item
            continue
        if atual.quantidade is None and item.quantidade is None:
            continue
        total = (atual.quantidade or 0) + (item.quantidade or 0)
        por_nome[item.nome] = ItemEquipamento(nome=item.nome, quantidade=total)
    return list(por_nome.values())
