"""Aggregation and scoring engine for validator uptime points.

Turns per-block participation records into per-validator counts, joins
them with registry metadata, and scores them:

    aggregate_participation -> enrich_validators -> score_validators
"""

from .aggregator import aggregate_participation
from .enricher import enrich_validators, index_metadata
from .errors import ConfigError, DataAccessError, InvalidRangeError, UptimeError
from .models import (
    AggregateGroup,
    BlockRecord,
    EnrichedValidator,
    ScoredValidator,
    ScoringConfig,
    UpgradeWindow,
    UptimeReport,
    ValidatorAggregate,
    ValidatorMetadata,
)
from .scoring import UPTIME_SCALE, check_scoring_range, score_validator, score_validators

__all__ = [
    "UPTIME_SCALE",
    "AggregateGroup",
    "BlockRecord",
    "ConfigError",
    "DataAccessError",
    "EnrichedValidator",
    "InvalidRangeError",
    "ScoredValidator",
    "ScoringConfig",
    "UpgradeWindow",
    "UptimeError",
    "UptimeReport",
    "ValidatorAggregate",
    "ValidatorMetadata",
    "aggregate_participation",
    "check_scoring_range",
    "enrich_validators",
    "index_metadata",
    "score_validator",
    "score_validators",
]
