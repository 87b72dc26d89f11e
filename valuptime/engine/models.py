"""Pydantic models for the uptime aggregation and scoring engine.

Flow of types through a run:
- BlockRecord: one block and the validators that signed it
- ValidatorAggregate: per-validator counts folded from BlockRecords
- EnrichedValidator: aggregate joined with registry metadata
- ScoredValidator: final immutable report row
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class BlockRecord(BaseModel):
    """A block height and the set of validator addresses that signed it."""

    model_config = ConfigDict(frozen=True)

    height: int = Field(ge=0)
    participants: frozenset[str] = Field(default_factory=frozenset)

    @field_validator("participants", mode="before")
    @classmethod
    def _coerce_participants(cls, value: Any) -> Any:
        # Documents store validators as an array; a null array means nobody signed.
        if value is None:
            return frozenset()
        return value

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> BlockRecord:
        """Build from a stored block document (``{"height", "validators"}``)."""
        return cls(height=doc["height"], participants=doc.get("validators"))


class UpgradeWindow(BaseModel):
    """Inclusive height range rewarded for running an upgraded binary.

    A ``start_height`` of 0 means no upgrade has happened yet.
    """

    model_config = ConfigDict(frozen=True)

    start_height: int = Field(default=0, ge=0)
    end_height: int = Field(default=0, ge=0)
    points_per_block: int = 0

    @property
    def enabled(self) -> bool:
        return self.start_height != 0

    def contains(self, height: int) -> bool:
        return self.start_height <= height <= self.end_height

    @classmethod
    def from_upgrade_heights(cls, start: int, end: int, points_per_block: int) -> UpgradeWindow:
        """Build from configured upgrade heights.

        Votes count from the block after the upgrade, so both bounds shift
        by one. An unset start (0) stays 0.
        """
        if start == 0:
            return cls(start_height=0, end_height=0, points_per_block=points_per_block)
        return cls(start_height=start + 1, end_height=end + 1, points_per_block=points_per_block)


class ScoringConfig(BaseModel):
    """Run-wide scoring parameters."""

    model_config = ConfigDict(frozen=True)

    node_rewards: int = 0
    window1: UpgradeWindow = Field(default_factory=UpgradeWindow)
    window2: UpgradeWindow = Field(default_factory=UpgradeWindow)


# ---------------------------------------------------------------------------
# Aggregation / enrichment
# ---------------------------------------------------------------------------


class ValidatorAggregate(BaseModel):
    """Participation counts for one validator over the scanned range."""

    model_config = ConfigDict(frozen=True)

    id: str
    uptime_count: int = Field(default=0, ge=0)
    window1_count: int = Field(default=0, ge=0)
    window2_count: int = Field(default=0, ge=0)


class ValidatorMetadata(BaseModel):
    """Registry record for a validator."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    operator_address: str = ""
    moniker: str = ""

    @field_validator("operator_address", "moniker", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> ValidatorMetadata:
        """Build from a stored validator document.

        Shape: ``{"address", "operator_address", "description": {"moniker"}}``.
        """
        description = doc.get("description") or {}
        return cls(
            identifier=doc["address"],
            operator_address=doc.get("operator_address"),
            moniker=description.get("moniker"),
        )


class AggregateGroup(ValidatorAggregate):
    """Storage-side aggregation result: counts plus joined registry rows."""

    validator_details: list[ValidatorMetadata] = Field(default_factory=list)

    def to_aggregate(self) -> ValidatorAggregate:
        return ValidatorAggregate(
            id=self.id,
            uptime_count=self.uptime_count,
            window1_count=self.window1_count,
            window2_count=self.window2_count,
        )


class EnrichedValidator(BaseModel):
    """A ValidatorAggregate joined with its metadata, if any was found."""

    model_config = ConfigDict(frozen=True)

    aggregate: ValidatorAggregate
    metadata: ValidatorMetadata | None = None

    @property
    def identifier(self) -> str:
        return self.aggregate.id

    @property
    def operator_address(self) -> str:
        return self.metadata.operator_address if self.metadata else ""

    @property
    def moniker(self) -> str:
        return self.metadata.moniker if self.metadata else ""


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

HEX_ADDRESS_SUFFIX = " (Hex Address)"


class ScoredValidator(BaseModel):
    """Final report row for one validator."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    operator_address: str = ""
    moniker: str = ""
    uptime_count: int
    window1_count: int
    window2_count: int
    window1_points: float
    window2_points: float
    uptime_points: float
    node_reward_points: int
    total_points: float

    @property
    def display_address(self) -> str:
        """Operator address, or the signing address when none is registered."""
        if self.operator_address:
            return self.operator_address
        return self.identifier + HEX_ADDRESS_SUFFIX


class UptimeReport(BaseModel):
    """Fully scored result set for one block range."""

    model_config = ConfigDict(frozen=True)

    start_block: int
    end_block: int
    node_rewards: int
    validators: list[ScoredValidator] = Field(default_factory=list)


__all__ = [
    "HEX_ADDRESS_SUFFIX",
    "AggregateGroup",
    "BlockRecord",
    "EnrichedValidator",
    "ScoredValidator",
    "ScoringConfig",
    "UpgradeWindow",
    "UptimeReport",
    "ValidatorAggregate",
    "ValidatorMetadata",
]
