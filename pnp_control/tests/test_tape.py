"""Tests for the tape reel allocator.

Validates sequential slot dispensing, exhaustion at capacity, and that the
cursor never moves backwards or past the capacity.
"""

from __future__ import annotations

import pytest

from pnp_control.feeds.tape import Position, TapeExhaustedError, TapeReel


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def reel() -> TapeReel:
    return TapeReel(origin=(0.0, 0.0, 5.0), spacing=(4.0, 0.0), capacity=3)


# ---------------------------------------------------------------------------
# Dispensing
# ---------------------------------------------------------------------------


class TestSequentialDispensing:
    def test_slots_in_order(self, reel: TapeReel) -> None:
        assert reel.next_position() == (0.0, 0.0, 5.0)
        assert reel.next_position() == (4.0, 0.0, 5.0)
        assert reel.next_position() == (8.0, 0.0, 5.0)

    def test_returns_position(self, reel: TapeReel) -> None:
        pos = reel.next_position()
        assert isinstance(pos, Position)
        assert pos.z == 5.0

    def test_cursor_advances(self, reel: TapeReel) -> None:
        assert reel.cursor == 0
        reel.next_position()
        assert reel.cursor == 1
        assert reel.remaining == 2

    def test_diagonal_spacing(self) -> None:
        reel = TapeReel(origin=(1.0, 2.0, 0.5), spacing=(2.0, 0.5), capacity=3)
        reel.next_position()
        reel.next_position()
        assert reel.next_position() == pytest.approx((5.0, 3.0, 0.5))

    def test_z_constant(self) -> None:
        reel = TapeReel(origin=(0.0, 0.0, 1.6), spacing=(0.0, -4.0), capacity=5)
        zs = {reel.next_position().z for _ in range(5)}
        assert zs == {1.6}

    def test_slot_position_does_not_consume(self, reel: TapeReel) -> None:
        assert reel.slot_position(2) == (8.0, 0.0, 5.0)
        assert reel.cursor == 0


# ---------------------------------------------------------------------------
# Exhaustion
# ---------------------------------------------------------------------------


class TestExhaustion:
    def test_fourth_call_exhausted(self, reel: TapeReel) -> None:
        for _ in range(3):
            reel.next_position()
        with pytest.raises(TapeExhaustedError):
            reel.next_position()
        assert reel.cursor == 3

    def test_cursor_stays_at_capacity(self, reel: TapeReel) -> None:
        for _ in range(3):
            reel.next_position()
        for _ in range(5):
            with pytest.raises(TapeExhaustedError):
                reel.next_position()
        assert reel.cursor == reel.capacity
        assert reel.exhausted
        assert reel.remaining == 0

    def test_empty_reel(self) -> None:
        reel = TapeReel(origin=(0.0, 0.0, 0.0), spacing=(1.0, 0.0), capacity=0)
        assert reel.exhausted
        with pytest.raises(TapeExhaustedError):
            reel.next_position()
        assert reel.cursor == 0

    def test_angle_readable_when_exhausted(self) -> None:
        reel = TapeReel(spacing=(4.0, 0.0), angle=270.0, capacity=1)
        reel.next_position()
        assert reel.exhausted
        assert reel.angle == 270.0


class TestRepr:
    def test_repr_shows_usage(self, reel: TapeReel) -> None:
        reel.next_position()
        assert "used=1/3" in repr(reel)
