"""
Matching de nomes da planilha contra parceiros do Odoo.

Ordem:
  1. Igualdade exata (normalizada) com display_name ou name
  2. Contém / está contido, preferindo o parceiro que contém o nome pedido
     e, no empate, o nome mais longo (mais completo)
"""

import re
import unicodedata
from typing import Iterable, Optional

from mapa_clientes.schemas.parceiro import ParceiroCrm

# Candidatos mais curtos que isso casariam com qualquer nome
MIN_CANDIDATO_FUZZY = 3


def normalizar_nome(texto: Optional[str]) -> str:
    """Sem acentos, minúsculo, espaços colapsados."""
    if not texto:
        return ""
    t = unicodedata.normalize("NFKD", str(texto))
    t = "".join(c for c in t if not unicodedata.combining(c))
    return re.sub(r"\s+", " ", t).strip().lower()


def candidatos(nome: str) -> list[str]:
    """
    Nome inteiro mais as partes antes e depois da primeira vírgula
    (convenção "Empresa, Contato" da planilha).
    """
    inteiro = normalizar_nome(nome)
    result = [inteiro] if inteiro else []
    if "," in nome:
        antes, depois = nome.split(",", 1)
        for parte in (antes, depois):
            p = normalizar_nome(parte)
            if p and p not in result:
                result.append(p)
    return result


def _nomes_parceiro(parceiro: ParceiroCrm) -> list[str]:
    nomes = []
    for n in (parceiro.display_name, parceiro.name):
        norm = normalizar_nome(n)
        if norm and norm not in nomes:
            nomes.append(norm)
    return nomes


def _score_contencao(pedidos: list[str], nomes: list[str]) -> Optional[int]:
    """1 se o nome do parceiro contém o pedido, 0 se só o inverso, None se nenhum."""
    score = None
    for c in pedidos:
        if len(c) < MIN_CANDIDATO_FUZZY:
            continue
        for n in nomes:
            if c in n:
                return 1
            if len(n) >= MIN_CANDIDATO_FUZZY and n in c:
                score = 0
    return score


def find_match(nome: str, parceiros: Iterable[ParceiroCrm]) -> Optional[ParceiroCrm]:
    pedidos = candidatos(nome)
    if not pedidos:
        return None
    parceiros = list(parceiros)

    # Igualdade: o nome inteiro tem precedência sobre as partes
    nomes_por_parceiro = [(p, _nomes_parceiro(p)) for p in parceiros]
    for c in pedidos:
        for p, nomes in nomes_por_parceiro:
            if c in nomes:
                return p

    melhor = None
    melhor_chave = None
    for p in parceiros:
        nomes = _nomes_parceiro(p)
        score = _score_contencao(pedidos, nomes)
        if score is None:
            continue
        chave = (score, len(normalizar_nome(p.name)))
        if melhor_chave is None or chave > melhor_chave:
            melhor, melhor_chave = p, chave
    return melhor


def is_found(nome: str, encontrados: Iterable[str]) -> bool:
    """O nome pedido aparece (exato ou por contenção) entre os nomes encontrados?"""
    pedidos = candidatos(nome)
    if not pedidos:
        return False
    nomes = [n for n in (normalizar_nome(e) for e in encontrados) if n]
    if any(c in nomes for c in pedidos):
        return True
    return _score_contencao(pedidos, nomes) is not None
