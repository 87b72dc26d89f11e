"""SQL-backed BlockSource and ValidatorRegistry.

Uses an SQLAlchemy async engine; any async driver works
(``postgresql+asyncpg://``, ``sqlite+aiosqlite://``). Driver and query
failures surface as DataAccessError.
"""

from __future__ import annotations

from typing import Collection, Iterable

import bittensor as bt
from sqlalchemy import bindparam, insert, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from valuptime.database.schema import Base, Block, BlockSignature, Validator
from valuptime.engine.errors import DataAccessError
from valuptime.engine.models import (
    AggregateGroup,
    BlockRecord,
    UpgradeWindow,
    ValidatorMetadata,
)

# ---------------------------------------------------------------------------
# SQL queries
# ---------------------------------------------------------------------------

_SELECT_BLOCKS = text("""
    SELECT b.height, s.validator_address
    FROM blocks b
    LEFT JOIN block_signatures s ON s.height = b.height
    WHERE b.height >= :start_block
      AND b.height <= :end_block
    ORDER BY b.height, s.validator_address
""")

_SELECT_BLOCK = text("""
    SELECT b.height, s.validator_address
    FROM blocks b
    LEFT JOIN block_signatures s ON s.height = b.height
    WHERE b.height = :height
    ORDER BY s.validator_address
""")

_AGGREGATE_PARTICIPATION = text("""
    SELECT
        s.validator_address AS id,
        COUNT(*) AS uptime_count,
        SUM(CASE WHEN s.height >= :w1_start AND s.height <= :w1_end
                 THEN 1 ELSE 0 END) AS window1_count,
        SUM(CASE WHEN s.height >= :w2_start AND s.height <= :w2_end
                 THEN 1 ELSE 0 END) AS window2_count
    FROM block_signatures s
    JOIN blocks b ON b.height = s.height
    WHERE s.height >= :start_block
      AND s.height <= :end_block
    GROUP BY s.validator_address
    ORDER BY s.validator_address
""")

_SELECT_VALIDATORS = text("""
    SELECT address, operator_address, moniker
    FROM validators
    WHERE address IN :addresses
    ORDER BY id
""").bindparams(bindparam("addresses", expanding=True))


def _window_params(prefix: str, window: UpgradeWindow) -> dict[str, int]:
    return {
        f"{prefix}_start": window.start_height,
        f"{prefix}_end": window.end_height,
    }


def _group_blocks(rows: Iterable) -> list[BlockRecord]:
    """Fold (height, validator_address) rows, sorted by height, into BlockRecords."""
    blocks: list[BlockRecord] = []
    height: int | None = None
    participants: set[str] = set()
    for row in rows:
        if row.height != height:
            if height is not None:
                blocks.append(BlockRecord(height=height, participants=participants))
            height = row.height
            participants = set()
        if row.validator_address is not None:
            participants.add(row.validator_address)
    if height is not None:
        blocks.append(BlockRecord(height=height, participants=participants))
    return blocks


class SQLStore:
    """Relational BlockSource + ValidatorRegistry."""

    def __init__(self, database_url: str | None = None, *, engine: AsyncEngine | None = None):
        if engine is None:
            if not database_url:
                raise ValueError("database_url or engine is required")
            engine = create_async_engine(database_url)
        self.engine = engine

    async def close(self) -> None:
        await self.engine.dispose()

    async def create_schema(self) -> None:
        """Create the tables if they do not exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    # -- Writes (loading / fixtures) --

    async def put_blocks(self, blocks: Iterable[BlockRecord]) -> int:
        """Insert blocks and their signatures. Returns the number of blocks."""
        block_rows = []
        signature_rows = []
        for block in blocks:
            block_rows.append({"height": block.height})
            signature_rows.extend(
                {"height": block.height, "validator_address": addr}
                for addr in sorted(block.participants)
            )

        try:
            async with self.engine.begin() as conn:
                if block_rows:
                    await conn.execute(insert(Block), block_rows)
                if signature_rows:
                    await conn.execute(insert(BlockSignature), signature_rows)
        except SQLAlchemyError as e:
            raise DataAccessError(f"failed to write blocks: {e}") from e
        return len(block_rows)

    async def put_validators(self, records: Iterable[ValidatorMetadata]) -> int:
        """Append registry records, preserving their order."""
        rows = [
            {
                "address": r.identifier,
                "operator_address": r.operator_address,
                "moniker": r.moniker,
            }
            for r in records
        ]
        if not rows:
            return 0
        try:
            async with self.engine.begin() as conn:
                await conn.execute(insert(Validator), rows)
        except SQLAlchemyError as e:
            raise DataAccessError(f"failed to write validators: {e}") from e
        return len(rows)

    # -- BlockSource --

    async def fetch_blocks(self, start_block: int, end_block: int) -> list[BlockRecord]:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(
                    _SELECT_BLOCKS,
                    {"start_block": start_block, "end_block": end_block},
                )
                rows = result.all()
        except SQLAlchemyError as e:
            raise DataAccessError(
                f"failed to fetch blocks: {e}",
                start_block=start_block,
                end_block=end_block,
            ) from e

        blocks = _group_blocks(rows)
        bt.logging.debug({"sql_store": {"fetch_blocks": len(blocks), "rows": len(rows)}})
        return blocks

    async def get_block(self, height: int) -> BlockRecord | None:
        """Fetch a single block by height."""
        try:
            async with self.engine.connect() as conn:
                rows = (await conn.execute(_SELECT_BLOCK, {"height": height})).all()
        except SQLAlchemyError as e:
            raise DataAccessError(
                f"failed to fetch block {height}: {e}",
                start_block=height,
                end_block=height,
            ) from e
        blocks = _group_blocks(rows)
        return blocks[0] if blocks else None

    async def aggregate_participation(
        self,
        start_block: int,
        end_block: int,
        window1: UpgradeWindow,
        window2: UpgradeWindow,
    ) -> list[AggregateGroup]:
        params = {
            "start_block": start_block,
            "end_block": end_block,
            **_window_params("w1", window1),
            **_window_params("w2", window2),
        }
        try:
            async with self.engine.connect() as conn:
                rows = (await conn.execute(_AGGREGATE_PARTICIPATION, params)).mappings().all()
        except SQLAlchemyError as e:
            raise DataAccessError(
                f"failed to aggregate participation: {e}",
                start_block=start_block,
                end_block=end_block,
            ) from e

        ids = [r["id"] for r in rows]
        details: dict[str, list[ValidatorMetadata]] = {}
        for record in await self.get_validators(ids):
            details.setdefault(record.identifier, []).append(record)

        return [
            AggregateGroup(
                id=r["id"],
                uptime_count=int(r["uptime_count"]),
                window1_count=int(r["window1_count"] or 0),
                window2_count=int(r["window2_count"] or 0),
                validator_details=details.get(r["id"], []),
            )
            for r in rows
        ]

    # -- ValidatorRegistry --

    async def get_validators(self, identifiers: Collection[str]) -> list[ValidatorMetadata]:
        if not identifiers:
            return []
        try:
            async with self.engine.connect() as conn:
                rows = (
                    await conn.execute(_SELECT_VALIDATORS, {"addresses": list(identifiers)})
                ).mappings().all()
        except SQLAlchemyError as e:
            raise DataAccessError(f"failed to look up validators: {e}") from e

        return [
            ValidatorMetadata(
                identifier=r["address"],
                operator_address=r["operator_address"],
                moniker=r["moniker"],
            )
            for r in rows
        ]


__all__ = ["SQLStore"]
