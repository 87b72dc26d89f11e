"""Join validator aggregates with registry metadata."""

from __future__ import annotations

from typing import Iterable, Mapping

from .models import EnrichedValidator, ValidatorAggregate, ValidatorMetadata


def index_metadata(records: Iterable[ValidatorMetadata]) -> dict[str, ValidatorMetadata]:
    """Index metadata by identifier; the first record in source order wins."""
    index: dict[str, ValidatorMetadata] = {}
    for record in records:
        index.setdefault(record.identifier, record)
    return index


def enrich_validators(
    aggregates: Iterable[ValidatorAggregate],
    metadata: Iterable[ValidatorMetadata] | Mapping[str, ValidatorMetadata],
) -> list[EnrichedValidator]:
    """Attach at most one metadata record to each aggregate.

    Matching is by exact identifier. A validator with no registry entry is
    kept with empty metadata; a missing record is not an error. When the
    registry holds several records for one identifier the first one seen
    is used.

    Args:
        aggregates: Output of aggregate_participation.
        metadata: Registry records in source order, or a prebuilt index
            from index_metadata.
    """
    if isinstance(metadata, Mapping):
        index = dict(metadata)
    else:
        index = index_metadata(metadata)

    return [
        EnrichedValidator(aggregate=agg, metadata=index.get(agg.id))
        for agg in aggregates
    ]


__all__ = ["enrich_validators", "index_metadata"]
