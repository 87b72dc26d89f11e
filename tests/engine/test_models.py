"""Tests for engine Pydantic models."""

import pytest
from pydantic import ValidationError

from valuptime.engine.models import (
    AggregateGroup,
    BlockRecord,
    EnrichedValidator,
    ScoredValidator,
    UpgradeWindow,
    ValidatorAggregate,
    ValidatorMetadata,
)


class TestBlockRecord:

    def test_duplicate_participants_collapse(self):
        block = BlockRecord(height=1, participants=["A", "A", "B"])
        assert block.participants == frozenset({"A", "B"})

    def test_from_document(self):
        block = BlockRecord.from_document({"_id": "x", "height": 42, "validators": ["A", "B"]})
        assert block.height == 42
        assert block.participants == {"A", "B"}

    def test_null_validators_is_empty(self):
        block = BlockRecord.from_document({"height": 3, "validators": None})
        assert block.participants == frozenset()

    def test_frozen(self):
        block = BlockRecord(height=1, participants=["A"])
        with pytest.raises(ValidationError):
            block.height = 2

    def test_negative_height_rejected(self):
        with pytest.raises(ValidationError):
            BlockRecord(height=-1)


class TestUpgradeWindow:

    def test_contains_is_inclusive(self):
        window = UpgradeWindow(start_height=10, end_height=12, points_per_block=1)
        assert not window.contains(9)
        assert window.contains(10)
        assert window.contains(12)
        assert not window.contains(13)

    def test_unset_window_is_disabled_but_keeps_its_range(self):
        window = UpgradeWindow(start_height=0, end_height=3)
        assert not window.enabled
        assert window.contains(0)
        assert window.contains(3)
        assert not window.contains(4)

    def test_from_upgrade_heights_shifts_by_one(self):
        window = UpgradeWindow.from_upgrade_heights(953628, 953828, 5)
        assert window.start_height == 953629
        assert window.end_height == 953829
        assert window.points_per_block == 5

    def test_from_upgrade_heights_keeps_unset(self):
        window = UpgradeWindow.from_upgrade_heights(0, 0, 5)
        assert window.start_height == 0
        assert not window.enabled


class TestValidatorMetadata:

    def test_from_document(self):
        meta = ValidatorMetadata.from_document({
            "address": "ABCDEF",
            "operator_address": "regenvaloper1abc",
            "description": {"moniker": "node-1"},
        })
        assert meta.identifier == "ABCDEF"
        assert meta.operator_address == "regenvaloper1abc"
        assert meta.moniker == "node-1"

    def test_from_document_missing_fields(self):
        meta = ValidatorMetadata.from_document({"address": "ABCDEF"})
        assert meta.operator_address == ""
        assert meta.moniker == ""


class TestAggregateGroup:

    def test_to_aggregate_drops_details(self):
        group = AggregateGroup(
            id="A",
            uptime_count=3,
            window1_count=1,
            window2_count=0,
            validator_details=[ValidatorMetadata(identifier="A", moniker="alpha")],
        )
        assert group.to_aggregate() == ValidatorAggregate(id="A", uptime_count=3, window1_count=1)


class TestEnrichedValidator:

    def test_properties_without_metadata(self):
        v = EnrichedValidator(aggregate=ValidatorAggregate(id="A", uptime_count=1))
        assert v.identifier == "A"
        assert v.operator_address == ""
        assert v.moniker == ""


class TestScoredValidator:

    def test_display_address(self):
        common = dict(
            uptime_count=1, window1_count=0, window2_count=0,
            window1_points=0.0, window2_points=0.0, uptime_points=1.0,
            node_reward_points=0, total_points=1.0,
        )
        assert ScoredValidator(identifier="HEX", **common).display_address == "HEX (Hex Address)"
        assert ScoredValidator(identifier="HEX", operator_address="op", **common).display_address == "op"
