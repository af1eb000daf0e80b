"""Unit tests for the saga runner and subscription window arithmetic."""

from datetime import date

import pytest

from app.core.saga import Saga
from app.services.merchant_service import add_months, subscription_window


@pytest.mark.unit
class TestSaga:
    def test_results_are_stored_under_step_names(self):
        ctx = (
            Saga("ok")
            .add_step("a", lambda ctx: 1)
            .add_step("b", lambda ctx: ctx["a"] + 1)
            .run()
        )
        assert ctx == {"a": 1, "b": 2}

    def test_failure_compensates_completed_steps_in_reverse(self):
        calls = []

        def fail(ctx):
            raise ValueError("step c failed")

        saga = (
            Saga("reverse")
            .add_step("a", lambda ctx: "a", compensate=lambda ctx: calls.append("undo a"))
            .add_step("b", lambda ctx: "b", compensate=lambda ctx: calls.append("undo b"))
            .add_step("c", fail, compensate=lambda ctx: calls.append("undo c"))
        )
        with pytest.raises(ValueError, match="step c failed"):
            saga.run()
        assert calls == ["undo b", "undo a"]

    def test_failing_compensation_keeps_original_error(self):
        calls = []

        def broken_undo(ctx):
            raise RuntimeError("cleanup failed")

        def fail(ctx):
            raise KeyError("original")

        saga = (
            Saga("cleanup")
            .add_step("a", lambda ctx: "a", compensate=lambda ctx: calls.append("undo a"))
            .add_step("b", lambda ctx: "b", compensate=broken_undo)
            .add_step("c", fail)
        )
        with pytest.raises(KeyError):
            saga.run()
        assert calls == ["undo a"]


@pytest.mark.unit
class TestSubscriptionWindow:
    def test_plain_months(self):
        assert add_months(date(2026, 1, 15), 3) == date(2026, 4, 15)

    def test_year_rollover(self):
        assert add_months(date(2026, 11, 1), 6) == date(2027, 5, 1)

    def test_day_is_clamped_to_month_end(self):
        assert add_months(date(2026, 8, 31), 6) == date(2027, 2, 28)
        assert add_months(date(2027, 8, 31), 6) == date(2028, 2, 29)

    def test_window_is_utc(self):
        started, expires = subscription_window(date(2026, 1, 1), 12)
        assert started.tzinfo is not None
        assert (expires.year, expires.month, expires.day) == (2027, 1, 1)
