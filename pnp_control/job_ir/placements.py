"""Placement-list readers.

Turns a board's part list into an ordered list of ``PlacementRequest``.
Two formats are supported:

``.pos``
    KiCad ASCII footprint position file::

        ### Footprint positions - created on ...
        ## Unit = mm, Angle = deg.
        # Ref     Val       Package        PosX      PosY      Rot    Side
        C1        100n      C_0603       120.0000  -80.0000   90.0000  top
        ## End

``.yaml`` / ``.yml``
    ``placements.v1`` schema, see ``pnp_control.utils.validators``.

Row order is preserved exactly; it becomes the physical placement order.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Iterable, Literal

import yaml

from pnp_control.job_ir.operations import PlacementRequest
from pnp_control.utils.validators import load_placements_file

logger = logging.getLogger(__name__)

Side = Literal["top", "bottom", "all"]

_KICAD_SIDES = {"top": "top", "bottom": "bottom", "front": "top", "back": "bottom"}


class PlacementFileError(Exception):
    """Raised when a placement list cannot be read."""

    pass


def _wanted(side: str, selected: Side) -> bool:
    return selected == "all" or side == selected


def parse_kicad_pos(
    lines: Iterable[str],
    side: Side = "all",
    source: str = "<string>",
) -> list[PlacementRequest]:
    """Parse KiCad ``.pos`` rows into placement requests.

    Parameters
    ----------
    lines : Iterable[str]
        File contents, one row per item.
    side : ``"top"`` | ``"bottom"`` | ``"all"``
        Keep only rows on this board side.
    source : str
        Name used in error messages.

    Returns
    -------
    list[PlacementRequest]
        Requests in file order.

    Raises
    ------
    PlacementFileError
        On a row with too few columns, a non-numeric or non-finite
        coordinate, or an unknown side.
    """
    requests: list[PlacementRequest] = []
    for lineno, line in enumerate(lines, start=1):
        fields = line.split()
        if not fields or fields[0].startswith("#"):
            continue
        if len(fields) < 6:
            raise PlacementFileError(
                f"{source}:{lineno}: expected at least 6 columns "
                f"(Ref Val Package PosX PosY Rot), got {len(fields)}"
            )
        ref, val, package = fields[0], fields[1], fields[2]
        try:
            x, y, rot = float(fields[3]), float(fields[4]), float(fields[5])
        except ValueError as exc:
            raise PlacementFileError(
                f"{source}:{lineno}: invalid number in {line.strip()!r}"
            ) from exc
        if not all(math.isfinite(v) for v in (x, y, rot)):
            raise PlacementFileError(
                f"{source}:{lineno}: coordinates must be finite numbers "
                f"in {line.strip()!r}"
            )

        row_side = "top"
        if len(fields) > 6:
            row_side = _KICAD_SIDES.get(fields[6].lower(), "")
            if not row_side:
                raise PlacementFileError(
                    f"{source}:{lineno}: unknown side {fields[6]!r} "
                    f"(expected one of {', '.join(_KICAD_SIDES)})"
                )
        if not _wanted(row_side, side):
            continue
        requests.append(PlacementRequest(
            component_name=ref,
            footprint=package,
            value=val,
            x=x,
            y=y,
            angle=rot,
        ))
    return requests


def _load_yaml_placements(path: Path, side: Side) -> list[PlacementRequest]:
    try:
        doc = load_placements_file(path)
    except (ValueError, yaml.YAMLError) as exc:
        raise PlacementFileError(str(exc)) from exc
    return [
        PlacementRequest(
            component_name=p.ref,
            footprint=p.footprint,
            value=p.value,
            x=p.x,
            y=p.y,
            angle=p.rotation,
        )
        for p in doc.placements
        if _wanted(p.side, side)
    ]


def load_placements(
    path: str | Path, side: Side = "all",
) -> list[PlacementRequest]:
    """Load a placement list, dispatching on the file suffix.

    Parameters
    ----------
    path : str | Path
        ``.pos`` (KiCad) or ``.yaml`` / ``.yml`` (placements.v1) file.
    side : ``"top"`` | ``"bottom"`` | ``"all"``
        Board side filter.

    Returns
    -------
    list[PlacementRequest]
        Requests in file order.

    Raises
    ------
    PlacementFileError
        If the file is missing, unreadable, of unknown type, or malformed.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if not path.exists():
        raise PlacementFileError(f"Placement file not found: {path}")

    if suffix in (".yaml", ".yml"):
        requests = _load_yaml_placements(path, side)
    elif suffix == ".pos":
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PlacementFileError(f"Cannot read {path}: {exc}") from exc
        requests = parse_kicad_pos(text.splitlines(), side=side, source=str(path))
    else:
        raise PlacementFileError(
            f"Unsupported placement file type '{suffix}' for {path}. "
            f"Expected .pos, .yaml or .yml"
        )

    logger.info("Loaded %d placement(s) from %s", len(requests), path)
    return requests
