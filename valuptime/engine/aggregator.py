"""Participation aggregation: fold block records into per-validator counts.

Equivalent to the document-store pipeline

    $match height in [start, end] -> $unwind validators -> $group by validator

with two conditional sums for the upgrade windows, but runs over a plain
sequence of BlockRecords so it can be tested without a database.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from pydantic import ValidationError

from .errors import DataAccessError, InvalidRangeError
from .models import BlockRecord, UpgradeWindow, ValidatorAggregate


@dataclass
class _Counts:
    uptime: int = 0
    window1: int = 0
    window2: int = 0


def _as_block(item: Any, start_block: int, end_block: int) -> BlockRecord:
    if isinstance(item, BlockRecord):
        return item
    try:
        return BlockRecord.model_validate(item)
    except ValidationError as e:
        raise DataAccessError(
            f"malformed block record: {e.error_count()} validation error(s)",
            start_block=start_block,
            end_block=end_block,
        ) from e


def aggregate_participation(
    blocks: Iterable[BlockRecord | dict[str, Any]],
    start_block: int,
    end_block: int,
    window1: UpgradeWindow,
    window2: UpgradeWindow,
) -> list[ValidatorAggregate]:
    """Count participation per validator across ``[start_block, end_block]``.

    Every (height, validator) pair in range adds one to ``uptime_count``,
    and one to each window count whose inclusive range holds the height.
    Windows are independent, so overlapping windows both count.

    Args:
        blocks: Block records (or raw ``{"height", "participants"}`` mappings).
            Blocks outside the range are skipped.
        start_block: First height, inclusive.
        end_block: Last height, inclusive.
        window1: First upgrade window.
        window2: Second upgrade window.

    Returns:
        One ValidatorAggregate per distinct validator seen in range, sorted
        by id.

    Raises:
        InvalidRangeError: start_block > end_block.
        DataAccessError: a block record is malformed. No partial result.
    """
    if start_block > end_block:
        raise InvalidRangeError(
            "start block is after end block",
            start_block=start_block,
            end_block=end_block,
        )

    counts: dict[str, _Counts] = {}

    for item in blocks:
        block = _as_block(item, start_block, end_block)
        if not start_block <= block.height <= end_block:
            continue

        in_window1 = window1.contains(block.height)
        in_window2 = window2.contains(block.height)

        for validator_id in block.participants:
            c = counts.get(validator_id)
            if c is None:
                c = counts[validator_id] = _Counts()
            c.uptime += 1
            if in_window1:
                c.window1 += 1
            if in_window2:
                c.window2 += 1

    return [
        ValidatorAggregate(
            id=validator_id,
            uptime_count=c.uptime,
            window1_count=c.window1,
            window2_count=c.window2,
        )
        for validator_id, c in sorted(counts.items())
    ]


__all__ = ["aggregate_participation"]
