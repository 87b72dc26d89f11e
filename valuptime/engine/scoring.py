"""Deterministic point computation for enriched validators.

Points per validator:
- window points: span bonus from the configured upgrade height to the end block
- uptime points: share of the requested range signed, scaled to UPTIME_SCALE
- node reward: run-wide constant
- total: sum of the above

Pure and stateless. score_validators is the batch path used by the
pipeline; it must give exactly the same numbers as score_validator.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .errors import InvalidRangeError
from .models import EnrichedValidator, ScoredValidator, ScoringConfig, UpgradeWindow

UPTIME_SCALE = 300.0


def check_scoring_range(start_block: int, end_block: int, config: ScoringConfig) -> None:
    """Reject ranges that would divide by zero and inverted upgrade windows.

    Raises:
        InvalidRangeError: start_block >= end_block, or an enabled window
            whose start is after its end.
    """
    if start_block >= end_block:
        raise InvalidRangeError(
            "end block must be greater than start block",
            start_block=start_block,
            end_block=end_block,
        )
    for name, window in (("window1", config.window1), ("window2", config.window2)):
        if window.enabled and window.start_height > window.end_height:
            raise InvalidRangeError(
                f"{name} bounds are inverted ({window.start_height} > {window.end_height})",
                start_block=start_block,
                end_block=end_block,
            )


def window_points(window: UpgradeWindow, window_count: int, end_block: int) -> float:
    """Span bonus for one upgrade window.

    Zero when the upgrade never happened (start height 0) or the validator
    never signed inside the window. Otherwise every block from the
    configured upgrade height through end_block earns points_per_block,
    regardless of how many of those blocks the validator signed.
    """
    if not window.enabled or window_count == 0:
        return 0.0
    return float(window.points_per_block * (end_block - window.start_height + 1))


def uptime_points(uptime_count: int, start_block: int, end_block: int) -> float:
    return (uptime_count / (end_block - start_block)) * UPTIME_SCALE


def score_validator(
    validator: EnrichedValidator,
    config: ScoringConfig,
    start_block: int,
    end_block: int,
) -> ScoredValidator:
    """Score a single validator."""
    check_scoring_range(start_block, end_block, config)

    agg = validator.aggregate
    w1 = window_points(config.window1, agg.window1_count, end_block)
    w2 = window_points(config.window2, agg.window2_count, end_block)
    up = uptime_points(agg.uptime_count, start_block, end_block)

    return ScoredValidator(
        identifier=agg.id,
        operator_address=validator.operator_address,
        moniker=validator.moniker,
        uptime_count=agg.uptime_count,
        window1_count=agg.window1_count,
        window2_count=agg.window2_count,
        window1_points=w1,
        window2_points=w2,
        uptime_points=up,
        node_reward_points=config.node_rewards,
        total_points=w1 + w2 + up + config.node_rewards,
    )


def _window_points_batch(window: UpgradeWindow, counts: np.ndarray, end_block: int) -> np.ndarray:
    if not window.enabled:
        return np.zeros(counts.shape, dtype=np.float64)
    bonus = float(window.points_per_block * (end_block - window.start_height + 1))
    return np.where(counts > 0, bonus, 0.0)


def score_validators(
    validators: Sequence[EnrichedValidator],
    config: ScoringConfig,
    start_block: int,
    end_block: int,
) -> list[ScoredValidator]:
    """Score every validator in one pass.

    The range is validated before anything is computed, so an invalid
    range raises even when there are no validators.

    Args:
        validators: Enriched validators, any order.
        config: Node reward and upgrade windows for the run.
        start_block: First height of the requested range.
        end_block: Last height of the requested range.

    Returns:
        ScoredValidators in the same order as the input.
    """
    check_scoring_range(start_block, end_block, config)
    if not validators:
        return []

    uptime = np.array([v.aggregate.uptime_count for v in validators], dtype=np.int64)
    w1_counts = np.array([v.aggregate.window1_count for v in validators], dtype=np.int64)
    w2_counts = np.array([v.aggregate.window2_count for v in validators], dtype=np.int64)

    span = float(end_block - start_block)
    up = (uptime / span) * UPTIME_SCALE
    w1 = _window_points_batch(config.window1, w1_counts, end_block)
    w2 = _window_points_batch(config.window2, w2_counts, end_block)
    total = w1 + w2 + up + config.node_rewards

    return [
        ScoredValidator(
            identifier=v.identifier,
            operator_address=v.operator_address,
            moniker=v.moniker,
            uptime_count=v.aggregate.uptime_count,
            window1_count=v.aggregate.window1_count,
            window2_count=v.aggregate.window2_count,
            window1_points=float(w1[i]),
            window2_points=float(w2[i]),
            uptime_points=float(up[i]),
            node_reward_points=config.node_rewards,
            total_points=float(total[i]),
        )
        for i, v in enumerate(validators)
    ]


__all__ = [
    "UPTIME_SCALE",
    "check_scoring_range",
    "score_validator",
    "score_validators",
    "uptime_points",
    "window_points",
]
