"""BlockSource / ValidatorRegistry protocols - pluggable storage interface.

Implementations: SQLStore (database), FilesystemStore (JSON dumps).
"""

from __future__ import annotations

from typing import Collection, Protocol, runtime_checkable

from valuptime.engine.models import (
    AggregateGroup,
    BlockRecord,
    UpgradeWindow,
    ValidatorMetadata,
)


@runtime_checkable
class BlockSource(Protocol):
    """Read access to per-block validator participation."""

    async def fetch_blocks(self, start_block: int, end_block: int) -> list[BlockRecord]:
        """Fetch blocks with height in [start_block, end_block], sorted by height."""
        ...

    async def aggregate_participation(
        self,
        start_block: int,
        end_block: int,
        window1: UpgradeWindow,
        window2: UpgradeWindow,
    ) -> list[AggregateGroup]:
        """Group participation by validator inside the store.

        Must agree with engine.aggregate_participation over fetch_blocks.
        """
        ...


@runtime_checkable
class ValidatorRegistry(Protocol):
    """Lookup of validator metadata by signing address."""

    async def get_validators(self, identifiers: Collection[str]) -> list[ValidatorMetadata]:
        """Return registry records for the given identifiers in source order.

        Unknown identifiers are simply absent from the result.
        """
        ...


__all__ = ["BlockSource", "ValidatorRegistry"]
