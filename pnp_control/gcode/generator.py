"""Toolpath generator -- placement requests to pick-and-place G-code.

For each request the generator looks up the tape for the part's
``footprint@value`` key, takes the next slot from it and emits a pick
block followed by a place block.  All coordinates in the output are
absolute machine coordinates; the board origin is added here.

Z convention:
    Heights are relative to the tape surface of the slot just picked.
    Both blocks travel at ``slot.z + hover_clearance_mm``; the place block
    descends to ``slot.z + board_depth_offset_mm``.

Rotation:
    The nozzle is turned by an extruder axis.  Angles are reduced to
    ``[0, 360)`` and scaled by ``MachineConfig.units_per_degree``.  The
    pickup angle is the tape orientation; the place angle is the part's
    target angle relative to the tape orientation.

Skips:
    A part with no tape, or whose tape is used up, is skipped with a
    WARNING and recorded in ``ToolpathResult.skipped``.  Nothing else is
    touched, so the rest of the board is still generated.  A slot that
    was taken is never given back, even if a later step for the same
    request fails.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from io import StringIO
from typing import Iterable

from pnp_control.configs.loader import MachineConfig
from pnp_control.feeds.config import FeedConfig, UnknownFeedError
from pnp_control.feeds.tape import TapeExhaustedError
from pnp_control.job_ir.operations import (
    PickAndPlace,
    PickComponent,
    PlaceComponent,
    PlacementRequest,
    SkippedPlacement,
    SkipReason,
)

logger = logging.getLogger(__name__)


class GCodeError(Exception):
    """Raised when G-code generation fails due to invalid input."""

    pass


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _f(feed_mm_s: float) -> str:
    """Convert mm/s feed rate to G-code ``F`` parameter (mm/min)."""
    return f"F{feed_mm_s * 60.0:.1f}"


@dataclass
class ToolpathResult:
    """Outcome of one generation run.

    ``gcode`` is the complete program.  ``placed`` and ``skipped`` keep
    input order.
    """

    gcode: str
    placed: list[PickAndPlace] = field(default_factory=list)
    skipped: list[SkippedPlacement] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.skipped


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class ToolpathGenerator:
    """Convert placement requests to pick-and-place G-code.

    Parameters
    ----------
    config : MachineConfig
        Validated machine configuration (heights, axis gearing, pins).
    feeds : FeedConfig
        Fully built feed configuration.  Its reels are consumed as parts
        are placed.
    """

    def __init__(self, config: MachineConfig, feeds: FeedConfig) -> None:
        self._cfg = config
        self._feeds = feeds

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate(self, requests: Iterable[PlacementRequest]) -> ToolpathResult:
        """Generate the complete program for *requests*, in order.

        Returns
        -------
        ToolpathResult
            Program text plus the placed and skipped requests.

        Raises
        ------
        GCodeError
            If a request carries a non-finite coordinate or angle.
        """
        buf = StringIO()
        result = ToolpathResult(gcode="")
        self._write_header(buf)

        for request in requests:
            outcome = self.emit_placement(request)
            if isinstance(outcome, SkippedPlacement):
                result.skipped.append(outcome)
                continue
            self._write_pick(outcome.pick, buf)
            self._write_place(outcome.place, buf)
            result.placed.append(outcome)

        self._write_footer(buf)
        result.gcode = buf.getvalue()

        logger.info(
            "Generated %d placement(s), skipped %d",
            len(result.placed), len(result.skipped),
        )
        return result

    def generate_placement(self, request: PlacementRequest) -> str:
        """G-code for a single request, without header or footer.

        Returns an empty string when the request is skipped.
        """
        outcome = self.emit_placement(request)
        if isinstance(outcome, SkippedPlacement):
            return ""
        buf = StringIO()
        self._write_pick(outcome.pick, buf)
        self._write_place(outcome.place, buf)
        return buf.getvalue()

    def emit_placement(
        self, request: PlacementRequest,
    ) -> PickAndPlace | SkippedPlacement:
        """Resolve the feed, take a slot and compute the pick/place pair.

        Parameters
        ----------
        request : PlacementRequest
            Part to place.

        Returns
        -------
        PickAndPlace | SkippedPlacement
            The motion pair, or the skip record if the part has no tape
            or its tape is empty.
        """
        self._validate_request(request)

        key = request.key
        try:
            tape = self._feeds.tape_for(key)
        except UnknownFeedError:
            return self._skip(
                request, SkipReason.NO_FEED, f"No tape for '{key}'",
            )

        try:
            slot = tape.next_position()
        except TapeExhaustedError:
            return self._skip(
                request,
                SkipReason.FEED_EXHAUSTED,
                f"We are out of components for '{key}'",
            )

        hover = self._cfg.z.hover_clearance_mm
        bx, by = self._feeds.board_origin
        label = request.label

        pick = PickComponent(
            label=label,
            x=slot.x,
            y=slot.y,
            hover_z=slot.z + hover,
            pick_z=slot.z,
            axis=self._cfg.axis_value(tape.angle),
        )
        place = PlaceComponent(
            label=label,
            x=request.x + bx,
            y=request.y + by,
            hover_z=slot.z + hover,
            place_z=slot.z + self._cfg.z.board_depth_offset_mm,
            axis=self._cfg.axis_value(request.angle - tape.angle + 360.0),
        )
        logger.debug(
            "%s: slot %d/%d at (%.3f, %.3f, %.3f)",
            label, tape.cursor, tape.capacity, slot.x, slot.y, slot.z,
        )
        return PickAndPlace(request=request, pick=pick, place=place)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _skip(
        self, request: PlacementRequest, reason: SkipReason, message: str,
    ) -> SkippedPlacement:
        logger.warning("%s: %s", request.component_name, message)
        return SkippedPlacement(request=request, reason=reason, message=message)

    def _validate_request(self, request: PlacementRequest) -> None:
        for name in ("x", "y", "angle"):
            value = getattr(request, name)
            if not math.isfinite(value):
                raise GCodeError(
                    f"{request.label}: {name}={value} is not a finite number"
                )

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def _write_pick(self, op: PickComponent, buf: StringIO) -> None:
        axis = self._cfg.nozzle_axis.letter
        vacuum = self._cfg.actuators.vacuum_pin
        buf.write("\n")
        buf.write(f"; Pick {op.label}\n")
        buf.write(
            f"G1 X{op.x:.3f} Y{op.y:.3f} Z{op.hover_z:.3f} {axis}{op.axis:.3f}"
            " ; Move over component to pick.\n"
        )
        buf.write(f"G1 Z{op.pick_z:.3f} ; move down\n")
        buf.write("G4\n")
        buf.write(f"M42 P{vacuum} S255 ; turn on suckage\n")
        buf.write(f"G1 Z{op.hover_z:.3f} ; Move up a bit for traveling\n")

    def _write_place(self, op: PlaceComponent, buf: StringIO) -> None:
        axis = self._cfg.nozzle_axis.letter
        act = self._cfg.actuators
        buf.write("\n")
        buf.write(f"; Place {op.label}\n")
        buf.write(
            f"G1 X{op.x:.3f} Y{op.y:.3f} Z{op.hover_z:.3f} {axis}{op.axis:.3f}"
            " ; Move over component to place.\n"
        )
        buf.write(f"G1 Z{op.place_z:.3f} ; move down.\n")
        buf.write("G4\n")
        buf.write(f"M42 P{act.vacuum_pin} S0 ; turn off suckage\n")
        buf.write("G4\n")
        buf.write(f"M42 P{act.blow_pin} S255 ; blow\n")
        buf.write(f"G4 P{act.blow_ms} ; .. for {act.blow_ms}ms\n")
        buf.write(f"M42 P{act.blow_pin} S0 ; done.\n")
        buf.write(f"G1 Z{op.hover_z:.3f} ; Move up\n")

    # ------------------------------------------------------------------
    # Header / footer
    # ------------------------------------------------------------------

    def _write_header(self, buf: StringIO) -> None:
        ax = self._cfg.nozzle_axis
        z = self._cfg.z
        buf.write("; Generated by pnp_control toolpath generator\n")
        buf.write(
            f"; Nozzle rotation on the {ax.letter} axis, "
            f"{ax.distance_per_turn:.5f} units per turn\n"
        )
        buf.write("G28 X0 Y0 ; home x/y, needle over free space\n")
        buf.write("G28 Z0 ; now it is safe to home z\n")
        if ax.letter == "E":
            buf.write(f"{ax.extruder_tool} ; nozzle rotation extruder\n")
            buf.write("M302 ; allow cold extrusion\n")
        buf.write(f"G92 {ax.letter}0 ; nozzle angle 0\n")
        buf.write(
            f"G1 Z{z.park_z_mm:.3f} {ax.letter}0 {_f(self._cfg.motion.park_feed_mm_s)}"
            " ; move needle out of the way\n"
        )

    def _write_footer(self, buf: StringIO) -> None:
        buf.write("\n")
        buf.write("M84 ; done.\n")
