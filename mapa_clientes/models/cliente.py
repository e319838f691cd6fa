"""Clientes sincronizados do Odoo e seus equipamentos."""

from datetime import datetime

from sqlalchemy import (
    BigInteger, DateTime, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from mapa_clientes.core.database import Base


class Cliente(Base):
    """Cliente do CRM com endereço normalizado e coordenadas."""

    __tablename__ = "clientes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id_odoo: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True, index=True)
    nome: Mapped[str] = mapped_column(String(300), nullable=False)

    # Contato
    telefone: Mapped[str | None] = mapped_column(String(50))
    celular: Mapped[str | None] = mapped_column(String(50))
    email: Mapped[str | None] = mapped_column(String(200))
    site: Mapped[str | None] = mapped_column(String(200))

    # Endereco
    logradouro: Mapped[str | None] = mapped_column(String(300))
    numero: Mapped[str | None] = mapped_column(String(30))
    complemento: Mapped[str | None] = mapped_column(String(200))
    bairro: Mapped[str | None] = mapped_column(String(200))
    cidade: Mapped[str | None] = mapped_column(String(150))
    estado: Mapped[str | None] = mapped_column(String(2))
    cep: Mapped[str | None] = mapped_column(String(8), index=True)
    pais: Mapped[str | None] = mapped_column(String(100))
    endereco_completo: Mapped[str | None] = mapped_column(Text)

    # Coordenadas
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)

    atualizado_em: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("idx_clientes_cidade", "cidade"),
    )


class Equipamento(Base):
    """Item de equipamento comprado, vindo da planilha."""

    __tablename__ = "equipamentos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    cliente_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("clientes.id_odoo", ondelete="CASCADE"), nullable=False, index=True
    )
    nome: Mapped[str] = mapped_column(String(300), nullable=False)
    quantidade: Mapped[int | None] = mapped_column(Integer)

    __table_args__ = (
        UniqueConstraint("cliente_id", "nome", name="uq_equipamentos_cliente_nome"),
    )
