"""Uptime run: fetch participation, aggregate, enrich, score.

The two store round-trips (block fetch, registry lookup) run one after the
other, each under an optional deadline. Everything between them is the
pure engine in valuptime.engine.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, TypeVar

import bittensor as bt

from valuptime.engine.aggregator import aggregate_participation
from valuptime.engine.enricher import enrich_validators, index_metadata
from valuptime.engine.errors import DataAccessError
from valuptime.engine.models import (
    EnrichedValidator,
    ScoringConfig,
    UptimeReport,
    ValidatorMetadata,
)
from valuptime.engine.scoring import check_scoring_range, score_validators
from valuptime.store.interface import BlockSource, ValidatorRegistry

T = TypeVar("T")


class UptimeCalculator:
    """Computes an UptimeReport for a block range."""

    def __init__(
        self,
        source: BlockSource,
        registry: ValidatorRegistry,
        config: ScoringConfig,
        *,
        call_timeout: float | None = None,
        store_aggregation: bool = False,
    ):
        """
        Args:
            source: Where blocks come from.
            registry: Where validator metadata comes from.
            config: Node reward and (already shifted) upgrade windows.
            call_timeout: Deadline in seconds for each store call. None waits forever.
            store_aggregation: Let the source group participation itself
                (one round-trip) instead of folding fetched blocks here.
        """
        self.source = source
        self.registry = registry
        self.config = config
        self.call_timeout = call_timeout
        self.store_aggregation = store_aggregation

    async def _call(self, what: str, aw: Awaitable[T], start_block: int, end_block: int) -> T:
        try:
            return await asyncio.wait_for(aw, timeout=self.call_timeout)
        except asyncio.TimeoutError as e:
            raise DataAccessError(
                f"{what} exceeded deadline of {self.call_timeout}s",
                start_block=start_block,
                end_block=end_block,
            ) from e
        except ConnectionError as e:
            raise DataAccessError(
                f"{what} failed: {e}",
                start_block=start_block,
                end_block=end_block,
            ) from e
        except DataAccessError as e:
            if e.start_block is not None:
                raise
            # Registry faults carry no block range of their own
            raise DataAccessError(
                f"{what} failed: {e.message}",
                start_block=start_block,
                end_block=end_block,
                validator_id=e.validator_id,
            ) from e

    async def _enriched_from_blocks(self, start_block: int, end_block: int) -> list[EnrichedValidator]:
        blocks = await self._call(
            "fetch_blocks",
            self.source.fetch_blocks(start_block, end_block),
            start_block,
            end_block,
        )
        aggregates = aggregate_participation(
            blocks, start_block, end_block, self.config.window1, self.config.window2,
        )
        bt.logging.info({"uptime_run": {"step": "aggregate", "blocks": len(blocks), "validators": len(aggregates)}})

        metadata = await self._call(
            "get_validators",
            self.registry.get_validators([a.id for a in aggregates]),
            start_block,
            end_block,
        )
        return enrich_validators(aggregates, metadata)

    async def _enriched_from_store(self, start_block: int, end_block: int) -> list[EnrichedValidator]:
        groups = await self._call(
            "aggregate_participation",
            self.source.aggregate_participation(
                start_block, end_block, self.config.window1, self.config.window2,
            ),
            start_block,
            end_block,
        )
        bt.logging.info({"uptime_run": {"step": "store_aggregate", "validators": len(groups)}})

        details: list[ValidatorMetadata] = []
        for group in groups:
            details.extend(group.validator_details)
        return enrich_validators([g.to_aggregate() for g in groups], index_metadata(details))

    async def run(self, start_block: int, end_block: int) -> UptimeReport:
        """Compute the report for [start_block, end_block].

        Raises:
            InvalidRangeError: before any store call, for unusable ranges.
            DataAccessError: a store call failed or timed out. Nothing is scored.
        """
        check_scoring_range(start_block, end_block, self.config)

        t0 = time.monotonic()
        bt.logging.info({"uptime_run": {"step": "start", "start_block": start_block, "end_block": end_block}})

        if self.store_aggregation:
            enriched = await self._enriched_from_store(start_block, end_block)
        else:
            enriched = await self._enriched_from_blocks(start_block, end_block)

        unmatched = sum(1 for v in enriched if v.metadata is None)
        if unmatched:
            bt.logging.warning({"uptime_run": {"step": "enrich", "without_metadata": unmatched}})

        scored = score_validators(enriched, self.config, start_block, end_block)

        bt.logging.info({
            "uptime_run": {
                "step": "done",
                "validators": len(scored),
                "elapsed_s": round(time.monotonic() - t0, 3),
            }
        })
        return UptimeReport(
            start_block=start_block,
            end_block=end_block,
            node_rewards=self.config.node_rewards,
            validators=scored,
        )


__all__ = ["UptimeCalculator"]
