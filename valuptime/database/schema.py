"""Relational schema for block participation and the validator registry.

A block's ``validators`` array is normalised into one block_signature row
per (height, validator address).
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Block(Base):
    __tablename__ = "blocks"

    height: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=False,
        comment="Block height",
    )


class BlockSignature(Base):
    """One validator signing one block."""

    __tablename__ = "block_signatures"

    height: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("blocks.height", ondelete="CASCADE"),
        primary_key=True,
    )
    validator_address: Mapped[str] = mapped_column(
        String,
        primary_key=True,
        index=True,
        comment="Consensus (hex) address of the signing validator",
    )


class Validator(Base):
    """Validator registry entry.

    ``address`` is not unique: the registry may hold several rows for one
    address, and readers take the lowest ``id`` first.
    """

    __tablename__ = "validators"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(
        String,
        nullable=False,
        index=True,
        comment="Consensus (hex) address, joins block_signatures.validator_address",
    )
    operator_address: Mapped[str] = mapped_column(String, nullable=False, default="")
    moniker: Mapped[str] = mapped_column(String, nullable=False, default="")


__all__ = ["Base", "Block", "BlockSignature", "Validator"]
