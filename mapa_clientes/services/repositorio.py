"""
Gateway de persistência: clientes, equipamentos, cursor e pausa.

Upserts em SQL puro (INSERT ... ON CONFLICT), aceito por PostgreSQL e SQLite.
O commit fica com quem chama: a sincronização confirma cliente a cliente.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, bindparam, select, text
from sqlalchemy.orm import Session

from mapa_clientes.models import Cliente, Equipamento, SINGLETON_ID, SyncCursor, SyncPausa
from mapa_clientes.schemas.parceiro import ItemEquipamento
from mapa_clientes.services.equipamentos import agrupar_itens

logger = logging.getLogger(__name__)

CAMPOS_CLIENTE = [
    "id_odoo", "nome", "telefone", "celular", "email", "site",
    "logradouro", "numero", "complemento", "bairro", "cidade",
    "estado", "cep", "pais", "endereco_completo",
    "latitude", "longitude", "atualizado_em",
]

_UPSERT_CLIENTE = text(f"""
    INSERT INTO clientes ({", ".join(CAMPOS_CLIENTE)})
    VALUES ({", ".join(":" + c for c in CAMPOS_CLIENTE)})
    ON CONFLICT (id_odoo) DO UPDATE SET
        {", ".join(f"{c} = EXCLUDED.{c}" for c in CAMPOS_CLIENTE if c != "id_odoo")}
""").bindparams(bindparam("atualizado_em", type_=DateTime(timezone=True)))


def _escapar_like(valor: str) -> str:
    return valor.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ClienteRepository:
    """Acesso à base local usado pela sincronização e pela API."""

    def __init__(self, session: Session):
        self.session = session

    # ---- Clientes ----

    def upsert_cliente(self, dados: dict) -> None:
        """Cria ou sobrescreve todos os campos do cliente (chave: id_odoo)."""
        params = {c: dados.get(c) for c in CAMPOS_CLIENTE}
        self.session.execute(_UPSERT_CLIENTE, params)

    def substituir_equipamentos(self, id_odoo: int, itens: list[ItemEquipamento]) -> int:
        """Apaga todos os equipamentos do cliente e grava os novos."""
        self.session.execute(
            text("DELETE FROM equipamentos WHERE cliente_id = :id"), {"id": id_odoo}
        )
        itens = agrupar_itens(itens)
        for item in itens:
            self.session.execute(text("""
                INSERT INTO equipamentos (cliente_id, nome, quantidade)
                VALUES (:id, :nome, :qtd)
                ON CONFLICT (cliente_id, nome) DO UPDATE SET
                    quantidade = EXCLUDED.quantidade
            """), {"id": id_odoo, "nome": item.nome, "qtd": item.quantidade})
        return len(itens)

    def buscar_duplicados(
        self,
        id_odoo: int,
        cep: Optional[str],
        cidade: Optional[str],
        logradouro: Optional[str],
    ) -> list[dict]:
        """
        Outros clientes no mesmo CEP, ou na mesma cidade com logradouro parecido.
        Só diagnóstico: nada é mesclado.

        "Parecido" quer dizer que o logradouro gravado contém o informado
        (sem caixa, com % e _ tratados como texto). Não há busca por
        similaridade; a lista se limita aos 50 primeiros por id_odoo.
        """
        conditions = []
        params: dict = {"id": id_odoo}

        if cep:
            conditions.append("cep = :cep")
            params["cep"] = cep
        if cidade and logradouro:
            conditions.append(
                "(LOWER(cidade) = :cidade AND LOWER(logradouro) LIKE :rua ESCAPE '\\')"
            )
            params["cidade"] = cidade.strip().lower()
            params["rua"] = f"%{_escapar_like(logradouro.strip().lower())}%"

        if not conditions:
            return []

        rows = self.session.execute(text(f"""
            SELECT id_odoo, nome, logradouro, cidade, cep
            FROM clientes
            WHERE id_odoo != :id AND ({" OR ".join(conditions)})
            ORDER BY id_odoo
            LIMIT 50
        """), params).mappings().all()
        return [dict(r) for r in rows]

    def listar_geocodificados(self) -> list[Cliente]:
        stmt = (
            select(Cliente)
            .where(Cliente.latitude.is_not(None), Cliente.longitude.is_not(None))
            .order_by(Cliente.nome)
            .execution_options(populate_existing=True)
        )
        return list(self.session.scalars(stmt))

    def obter_cliente(self, id_odoo: int) -> Optional[Cliente]:
        stmt = select(Cliente).where(Cliente.id_odoo == id_odoo).execution_options(populate_existing=True)
        return self.session.scalars(stmt).first()

    def listar_equipamentos(self, id_odoo: int) -> list[Equipamento]:
        stmt = select(Equipamento).where(Equipamento.cliente_id == id_odoo).order_by(Equipamento.nome)
        stmt = stmt.execution_options(populate_existing=True)
        return list(self.session.scalars(stmt))

    # ---- Cursor ----

    def obter_cursor(self) -> Optional[SyncCursor]:
        cursor = self.session.get(SyncCursor, SINGLETON_ID, populate_existing=True)
        if cursor is None or (cursor.ultimo_id_odoo is None and not cursor.ultimo_nome):
            return None
        return cursor

    def salvar_cursor(self, id_odoo: Optional[int], nome: Optional[str], agora: datetime) -> None:
        self.session.merge(SyncCursor(
            id=SINGLETON_ID, ultimo_id_odoo=id_odoo, ultimo_nome=nome, atualizado_em=agora,
        ))

    def limpar_cursor(self) -> None:
        cursor = self.session.get(SyncCursor, SINGLETON_ID)
        if cursor is not None:
            self.session.delete(cursor)
            self.session.flush()

    # ---- Pausa ----

    def obter_pausa(self) -> Optional[SyncPausa]:
        pausa = self.session.get(SyncPausa, SINGLETON_ID, populate_existing=True)
        if pausa is None or pausa.pausado_desde is None:
            return None
        return pausa

    def salvar_pausa(self, desde: datetime, motivo: str) -> None:
        self.session.merge(SyncPausa(id=SINGLETON_ID, pausado_desde=desde, motivo=motivo))

    def limpar_pausa(self) -> None:
        pausa = self.session.get(SyncPausa, SINGLETON_ID)
        if pausa is not None:
            self.session.delete(pausa)
            self.session.flush()
