"""Tape reel -- sequential feed-position allocator.

A tape is a fixed-pitch strip of identical components.  Slot ``i`` sits at
``origin + i * spacing`` on X/Y; Z stays at the origin's Z.  The reel
keeps a single cursor counting the slots already handed out.

Consumption is physically irreversible: once a component is sucked out of
its slot, software cannot put it back.  The cursor therefore only ever
moves forward, and an exhausted reel raises without touching it.
"""

from __future__ import annotations

from typing import NamedTuple


class TapeExhaustedError(Exception):
    """Raised when a reel has no components left."""

    pass


class Position(NamedTuple):
    """Absolute machine position in mm."""

    x: float
    y: float
    z: float


class TapeReel:
    """One tape of components and its dispense cursor.

    Parameters
    ----------
    origin : tuple[float, float, float]
        Position of the first (index 0) component.
    spacing : tuple[float, float]
        Offset between consecutive components.
    angle : float
        Orientation of a component in its slot, in degrees.
    capacity : int
        Number of components on the tape.
    """

    def __init__(
        self,
        origin: tuple[float, float, float] = (0.0, 0.0, 0.0),
        spacing: tuple[float, float] = (0.0, 0.0),
        angle: float = 0.0,
        capacity: int = 0,
    ) -> None:
        self.origin = Position(*origin)
        self.spacing = (float(spacing[0]), float(spacing[1]))
        self.angle = float(angle)
        self.capacity = int(capacity)
        self._cursor = 0

    def __repr__(self) -> str:
        ox, oy, oz = self.origin
        dx, dy = self.spacing
        return (
            f"TapeReel(origin=({ox:.3f}, {oy:.3f}, {oz:.3f}), "
            f"spacing=({dx:.3f}, {dy:.3f}), angle={self.angle:.1f}, "
            f"used={self._cursor}/{self.capacity})"
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def cursor(self) -> int:
        """Number of components already dispensed."""
        return self._cursor

    @property
    def remaining(self) -> int:
        return self.capacity - self._cursor

    @property
    def exhausted(self) -> bool:
        return self._cursor >= self.capacity

    def slot_position(self, index: int) -> Position:
        """Position of slot *index*, without consuming anything."""
        return Position(
            self.origin.x + index * self.spacing[0],
            self.origin.y + index * self.spacing[1],
            self.origin.z,
        )

    # ------------------------------------------------------------------
    # Dispensing
    # ------------------------------------------------------------------

    def next_position(self) -> Position:
        """Return the next unused slot and advance the cursor.

        Returns
        -------
        Position
            Slot position for the component just dispensed.

        Raises
        ------
        TapeExhaustedError
            If every slot has been used.  The cursor is left unchanged.
        """
        if self.exhausted:
            raise TapeExhaustedError(
                f"All {self.capacity} component(s) on this tape are used"
            )
        pos = self.slot_position(self._cursor)
        self._cursor += 1
        return pos
