"""Job IR -- the vocabulary between placement data and G-code.

Every job action is an immutable, slotted dataclass.  Operations use
**semantic** names (``PickComponent``, not ``G1 Z5``), **millimetre**
units and **absolute machine** coordinates.  Board-local coordinates only
appear on the input side, in ``PlacementRequest``.

Grouping
--------
A ``PickAndPlace`` pairs the pick of one component from its tape with the
place of that component on the board.  The generator always emits the
pick block first.  A request that cannot be served becomes a
``SkippedPlacement`` instead, carrying the reason and a message.
"""

from __future__ import annotations

import enum
from abc import ABC
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


def feed_key(footprint: str, value: str) -> str:
    """Component identity key used to look up a feed: ``footprint@value``."""
    return f"{footprint}@{value}"


@dataclass(frozen=True, slots=True)
class PlacementRequest:
    """One component to place on the board.

    Parameters
    ----------
    component_name : str
        Reference designator or other human-readable label (``"R12"``).
    footprint, value : str
        Identity fields; combined into the feed lookup key.
    x, y : float
        Target position in board-local mm.
    angle : float
        Desired final orientation in degrees.
    """

    component_name: str
    footprint: str
    value: str
    x: float
    y: float
    angle: float = 0.0

    @property
    def key(self) -> str:
        return feed_key(self.footprint, self.value)

    @property
    def label(self) -> str:
        """Name used in G-code comments and diagnostics."""
        return f"{self.component_name} ({self.key})"


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Operation(ABC):
    """Base class for all job operations."""

    pass


# ---------------------------------------------------------------------------
# Pick / place operations  (absolute machine mm)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PickComponent(Operation):
    """Lift one component out of its tape slot.

    Parameters
    ----------
    label : str
        Component label for the G-code comment.
    x, y : float
        Slot position.
    hover_z : float
        Transport height; approach and retreat happen here.
    pick_z : float
        Slot surface height the nozzle descends to.
    axis : float
        Nozzle rotation-axis value for the pickup orientation.
    """

    label: str
    x: float
    y: float
    hover_z: float
    pick_z: float
    axis: float


@dataclass(frozen=True, slots=True)
class PlaceComponent(Operation):
    """Set the held component down on the board.

    Parameters
    ----------
    label : str
        Component label for the G-code comment.
    x, y : float
        Target position (board origin already applied).
    hover_z : float
        Transport height.
    place_z : float
        Height the nozzle descends to before releasing.
    axis : float
        Nozzle rotation-axis value for the placement orientation.
    """

    label: str
    x: float
    y: float
    hover_z: float
    place_z: float
    axis: float


@dataclass(frozen=True, slots=True)
class PickAndPlace:
    """Ordered pick-then-place pair for one accepted request."""

    request: PlacementRequest
    pick: PickComponent
    place: PlaceComponent


# ---------------------------------------------------------------------------
# Skips
# ---------------------------------------------------------------------------


class SkipReason(enum.Enum):
    """Why a placement request produced no motion."""

    NO_FEED = "no_feed"
    FEED_EXHAUSTED = "feed_exhausted"


@dataclass(frozen=True, slots=True)
class SkippedPlacement:
    """A request that was skipped, with the diagnostic that was logged."""

    request: PlacementRequest
    reason: SkipReason
    message: str
