"""Estado durável da sincronização: cursor de retomada e pausa (linhas únicas)."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from mapa_clientes.core.database import Base

SINGLETON_ID = 1


class SyncCursor(Base):
    __tablename__ = "sync_cursor"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SINGLETON_ID)
    ultimo_id_odoo: Mapped[int | None] = mapped_column(BigInteger)
    ultimo_nome: Mapped[str | None] = mapped_column(String(300))
    atualizado_em: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class SyncPausa(Base):
    __tablename__ = "sync_pausa"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SINGLETON_ID)
    pausado_desde: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    motivo: Mapped[str | None] = mapped_column(Text)
