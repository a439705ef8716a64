"""YAML schema validation for placement lists.

Placement files (``placements.v1``) are validated with pydantic so that a
typo in a part list fails fast with the offending entry and field named,
before any reel is touched.

Units:
    - Geometry: millimeters (mm), board-local
    - Rotation: degrees

Usage:
    from pnp_control.utils import validators
    placements = validators.load_placements_file("board.yaml")

Example file::

    schema: placements.v1
    placements:
      - ref: R1
        footprint: R_0805
        value: 10k
        x: 12.5
        y: 4.0
        rotation: 90
"""

from pathlib import Path
from typing import List, Literal, Union

from pydantic import BaseModel, Field, field_validator


# ============================================================================
# PLACEMENTS SCHEMA V1
# ============================================================================

class PlacementV1(BaseModel):
    """One component placement, board-local coordinates."""
    ref: str = Field(..., min_length=1, description="Reference designator, e.g. R12")
    footprint: str = Field(..., min_length=1, description="Footprint / package name")
    value: str = Field(..., min_length=1, description="Component value, e.g. 10k")
    x: float = Field(..., allow_inf_nan=False, description="Target X in mm")
    y: float = Field(..., allow_inf_nan=False, description="Target Y in mm")
    rotation: float = Field(0.0, allow_inf_nan=False, description="Final orientation in degrees")
    side: Literal["top", "bottom"] = Field("top", description="Board side")

    @field_validator('footprint', 'value')
    @classmethod
    def validate_no_whitespace(cls, v: str) -> str:
        # Feed keys are whitespace-delimited in the feed file.
        if any(ch.isspace() for ch in v):
            raise ValueError(f"must not contain whitespace, got: {v!r}")
        return v


class PlacementsFileV1(BaseModel):
    """Complete placement list (placements.v1.yaml schema)."""
    schema_version: str = Field(..., alias="schema")
    placements: List[PlacementV1] = Field(default_factory=list)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "placements.v1":
            raise ValueError(f"Expected schema 'placements.v1', got '{v}'")
        return v


# ============================================================================
# PUBLIC API
# ============================================================================

def load_placements_file(path: Union[str, Path]) -> PlacementsFileV1:
    """Load and validate a placement list from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to a placements.v1.yaml file

    Returns
    -------
    PlacementsFileV1
        Validated placement list, entries in file order

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails (with actionable error message)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Placement file not found: {path}")

    data = fs.load_yaml(path)
    if not isinstance(data, dict):
        raise ValueError(f"Placement file {path} must contain a mapping")
    try:
        return PlacementsFileV1(**data)
    except Exception as e:
        raise ValueError(f"Placement file validation failed at {path}: {e}") from e
