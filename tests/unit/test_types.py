"""Unit tests for idle types."""

from datetime import datetime, timezone

import pytest
from dormant.idle.types import GatingReason, GatingReasons, IdleState, IdleStatus


class TestGatingReasons:
    """Test the gating reason set."""

    def test_add_is_idempotent(self):
        reasons = GatingReasons()
        reasons.add(GatingReason.HIGH_CPU)
        reasons.add(GatingReason.HIGH_CPU)

        assert len(reasons) == 1

    def test_preserves_insertion_order(self):
        reasons = GatingReasons([GatingReason.INHIBIT, GatingReason.BELOW_TIMEOUT])
        assert reasons.to_list() == ["inhibit", "below_timeout"]

    def test_discard_missing_is_noop(self):
        reasons = GatingReasons([GatingReason.HIGH_GPU])
        reasons.discard(GatingReason.INHIBIT)

        assert reasons.to_list() == ["high_gpu"]

    def test_union_leaves_operands_unchanged(self):
        left = GatingReasons([GatingReason.HIGH_CPU])
        right = GatingReasons([GatingReason.HIGH_CPU, GatingReason.INHIBIT])

        merged = left.union(right)

        assert merged.to_list() == ["high_cpu", "inhibit"]
        assert left.to_list() == ["high_cpu"]

    def test_accepts_raw_values(self):
        reasons = GatingReasons()
        reasons.add("inhibit")

        assert GatingReason.INHIBIT in reasons

    def test_parse_rejects_unknown(self):
        with pytest.raises(ValueError):
            GatingReasons.parse(["high_cpu", "sleepy"])

    def test_empty_is_falsy(self):
        assert not GatingReasons()


class TestIdleState:
    """Test persisted field layout."""

    def test_to_dict_field_names(self):
        state = IdleState(
            status=IdleStatus.IDLE,
            idle_for_seconds=120,
            threshold_seconds=300,
            cpu_idle_pct=97.5,
            gpu_idle_pct=99.0,
            gating_reasons=GatingReasons([GatingReason.BELOW_TIMEOUT]),
            last_update=datetime(2026, 3, 1, 8, 30, tzinfo=timezone.utc),
        )

        assert state.to_dict() == {
            "status": "idle",
            "idle_for_s": 120,
            "threshold_s": 300,
            "cpu_idle_pct": 97.5,
            "gpu_idle_pct": 99.0,
            "gating_reasons": ["below_timeout"],
            "last_update": "2026-03-01T08:30:00+00:00",
        }

    def test_from_dict_accepts_zulu_time(self):
        state = IdleState.from_dict({
            "status": "active",
            "idle_for_s": 0,
            "threshold_s": 300,
            "cpu_idle_pct": 40.0,
            "gpu_idle_pct": 100.0,
            "gating_reasons": ["high_cpu"],
            "last_update": "2026-03-01T08:30:00Z",
        })

        assert state.status == IdleStatus.ACTIVE
        assert state.last_update == datetime(2026, 3, 1, 8, 30, tzinfo=timezone.utc)

    def test_from_dict_null_reasons(self):
        state = IdleState.from_dict({
            "status": "idle",
            "gating_reasons": None,
            "last_update": "2026-03-01T08:30:00+00:00",
        })

        assert not state.gating_reasons
