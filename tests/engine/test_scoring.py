"""Tests for the deterministic point computation."""

import pytest

from valuptime.engine.errors import InvalidRangeError
from valuptime.engine.models import (
    EnrichedValidator,
    ScoringConfig,
    UpgradeWindow,
    ValidatorAggregate,
    ValidatorMetadata,
)
from valuptime.engine.scoring import (
    UPTIME_SCALE,
    check_scoring_range,
    score_validator,
    score_validators,
    uptime_points,
    window_points,
)


def _enriched(vid: str, uptime: int, w1: int = 0, w2: int = 0, **meta) -> EnrichedValidator:
    metadata = ValidatorMetadata(identifier=vid, **meta) if meta else None
    return EnrichedValidator(
        aggregate=ValidatorAggregate(id=vid, uptime_count=uptime, window1_count=w1, window2_count=w2),
        metadata=metadata,
    )


def _config(node_rewards: int = 0, w1: UpgradeWindow | None = None, w2: UpgradeWindow | None = None) -> ScoringConfig:
    return ScoringConfig(
        node_rewards=node_rewards,
        window1=w1 or UpgradeWindow(),
        window2=w2 or UpgradeWindow(),
    )


class TestScenarioA:
    """Heights 1..5, V1 signs all, window1=[2,3] at 10/block, window2 unset."""

    def test_points(self):
        config = _config(
            node_rewards=100,
            w1=UpgradeWindow(start_height=2, end_height=3, points_per_block=10),
        )
        scored = score_validator(_enriched("V1", uptime=5, w1=2), config, start_block=1, end_block=5)

        assert scored.uptime_count == 5
        assert scored.window1_points == 40.0
        assert scored.window2_points == 0.0
        assert scored.uptime_points == 375.0
        assert scored.node_reward_points == 100
        assert scored.total_points == 40.0 + 0.0 + 375.0 + 100


class TestWindowPoints:

    def test_span_from_configured_start_to_end_block(self):
        window = UpgradeWindow(start_height=101, end_height=150, points_per_block=3)
        # Bonus covers 101..1000, not only the blocks signed in the window
        assert window_points(window, window_count=1, end_block=1000) == 3 * 900

    def test_unset_start_gives_zero(self):
        window = UpgradeWindow(start_height=0, end_height=0, points_per_block=10)
        assert window_points(window, window_count=7, end_block=100) == 0.0

    def test_no_window_participation_gives_zero(self):
        window = UpgradeWindow(start_height=10, end_height=20, points_per_block=10)
        assert window_points(window, window_count=0, end_block=100) == 0.0

    def test_independent_of_hit_count(self):
        window = UpgradeWindow(start_height=10, end_height=20, points_per_block=2)
        assert window_points(window, 1, 50) == window_points(window, 11, 50)

    def test_returns_float(self):
        window = UpgradeWindow(start_height=1, end_height=2, points_per_block=1)
        assert isinstance(window_points(window, 1, 10), float)


class TestUptimePoints:

    def test_full_participation_over_span(self):
        # Denominator is end - start, so signing every block of 1..101 gives 303
        assert uptime_points(101, 1, 101) == pytest.approx(303.0)
        assert uptime_points(100, 1, 101) == UPTIME_SCALE

    def test_zero(self):
        assert uptime_points(0, 1, 10) == 0.0


class TestRangeChecks:

    def test_equal_start_and_end_rejected(self):
        with pytest.raises(InvalidRangeError) as exc_info:
            check_scoring_range(5, 5, _config())
        assert exc_info.value.start_block == 5
        assert exc_info.value.end_block == 5

    def test_start_after_end_rejected(self):
        with pytest.raises(InvalidRangeError):
            check_scoring_range(10, 5, _config())

    def test_inverted_window_rejected(self):
        config = _config(w2=UpgradeWindow(start_height=50, end_height=40, points_per_block=1))
        with pytest.raises(InvalidRangeError, match="window2"):
            check_scoring_range(1, 100, config)

    def test_unset_window_not_checked(self):
        check_scoring_range(1, 100, _config())

    def test_score_validator_checks_before_scoring(self):
        with pytest.raises(InvalidRangeError):
            score_validator(_enriched("A", 1), _config(), 3, 3)

    def test_batch_rejects_equal_range_even_when_empty(self):
        with pytest.raises(InvalidRangeError):
            score_validators([], _config(), 7, 7)


class TestScoreValidators:

    def test_batch_matches_single(self):
        config = _config(
            node_rewards=50,
            w1=UpgradeWindow(start_height=20, end_height=30, points_per_block=7),
            w2=UpgradeWindow(start_height=60, end_height=70, points_per_block=3),
        )
        validators = [
            _enriched("A", uptime=99, w1=11, w2=11, operator_address="op_a", moniker="a"),
            _enriched("B", uptime=37, w1=0, w2=4),
            _enriched("C", uptime=1, w1=1, w2=0, moniker="c-only"),
            _enriched("D", uptime=0),
        ]
        batch = score_validators(validators, config, 1, 100)
        single = [score_validator(v, config, 1, 100) for v in validators]
        assert batch == single

    def test_preserves_order_and_metadata(self):
        validators = [
            _enriched("B", 2, operator_address="op_b", moniker="bee"),
            _enriched("A", 1),
        ]
        result = score_validators(validators, _config(), 0, 10)

        assert [s.identifier for s in result] == ["B", "A"]
        assert result[0].operator_address == "op_b"
        assert result[0].moniker == "bee"
        assert result[1].operator_address == ""

    def test_node_rewards_applied_to_everyone(self):
        result = score_validators([_enriched("A", 0), _enriched("B", 4)], _config(node_rewards=25), 0, 4)
        assert [s.node_reward_points for s in result] == [25, 25]
        assert result[0].total_points == 25.0
        assert result[1].total_points == 325.0

    def test_point_fields_are_python_floats(self):
        config = _config(w1=UpgradeWindow(start_height=1, end_height=5, points_per_block=2))
        (s,) = score_validators([_enriched("A", 3, w1=2)], config, 1, 5)
        for value in (s.window1_points, s.window2_points, s.uptime_points, s.total_points):
            assert type(value) is float
        assert type(s.uptime_count) is int

    def test_empty(self):
        assert score_validators([], _config(), 1, 2) == []

    def test_display_address_fallback(self):
        (with_op, without_op) = score_validators(
            [_enriched("A", 1, operator_address="regenvaloper1xyz"), _enriched("B", 1)],
            _config(),
            0,
            1,
        )
        assert with_op.display_address == "regenvaloper1xyz"
        assert without_op.display_address == "B (Hex Address)"
