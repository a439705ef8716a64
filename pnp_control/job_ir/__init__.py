"""
Job Intermediate Representation module.

Defines placement requests and pick/place operations as immutable
dataclasses, plus readers for placement lists.  This vocabulary is the
contract between the board's part list and G-code generation.
"""

from pnp_control.job_ir.operations import (
    Operation,
    PickAndPlace,
    PickComponent,
    PlaceComponent,
    PlacementRequest,
    SkippedPlacement,
    SkipReason,
    feed_key,
)
from pnp_control.job_ir.placements import (
    PlacementFileError,
    load_placements,
    parse_kicad_pos,
)

__all__ = [
    "Operation",
    "PickAndPlace",
    "PickComponent",
    "PlaceComponent",
    "PlacementFileError",
    "PlacementRequest",
    "SkippedPlacement",
    "SkipReason",
    "feed_key",
    "load_placements",
    "parse_kicad_pos",
]
