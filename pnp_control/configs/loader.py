"""Configuration loader for the pick-and-place machine.

Loads and validates ``machine.yaml`` into typed, frozen dataclasses.
Every physical constant the toolpath depends on (hover clearance, board
depth offset, nozzle-axis gearing, actuator pins) comes from the config.
The generator takes the config at construction, so one run can be checked
against several hardware calibrations.

Feed rates are stored in **mm/s** throughout Python.  Conversion to the
G-code ``F`` parameter (mm/min) happens only in the G-code generator.

Usage::

    from pnp_control.configs.loader import load_config
    cfg = load_config()                       # default path
    cfg = load_config("/custom/machine.yaml") # explicit path
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from pnp_control.utils.fs import load_yaml

logger = logging.getLogger(__name__)

FULL_TURN_DEG = 360.0


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Angle helpers
# ---------------------------------------------------------------------------


def normalize_angle(degrees: float) -> float:
    """Reduce *degrees* to the canonical range ``[0, 360)``.

    Python's float modulo already takes the sign of the divisor; the extra
    check catches tiny negative inputs that round up to exactly 360.
    """
    a = degrees % FULL_TURN_DEG
    if a >= FULL_TURN_DEG:
        a = 0.0
    return a


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ZConfig:
    """Z heights in mm, relative to the tape surface.

    One hover clearance and one board depth offset apply to every part.
    Parts of different heights are not modelled.
    """

    hover_clearance_mm: float
    board_depth_offset_mm: float
    park_z_mm: float


@dataclass(frozen=True)
class NozzleAxisConfig:
    """Axis repurposed to rotate the nozzle.

    ``distance_per_turn`` is the axis travel that turns the nozzle through
    one full revolution; it encodes the gearing of the drive.
    """

    letter: str
    distance_per_turn: float
    extruder_tool: str


@dataclass(frozen=True)
class ActuatorConfig:
    """Vacuum and blow-off outputs (``M42`` pins)."""

    vacuum_pin: int
    blow_pin: int
    blow_ms: int


@dataclass(frozen=True)
class MotionConfig:
    """Feed rates in mm/s."""

    park_feed_mm_s: float


@dataclass(frozen=True)
class MachineConfig:
    """Complete machine configuration loaded from ``machine.yaml``.

    All linear dimensions are in **millimeters**.
    All feed rates are in **mm/s**.
    """

    z: ZConfig
    nozzle_axis: NozzleAxisConfig
    actuators: ActuatorConfig
    motion: MotionConfig

    # -- Convenience helpers ------------------------------------------------

    @property
    def units_per_degree(self) -> float:
        """Nozzle-axis units per degree of rotation (calibration factor)."""
        return self.nozzle_axis.distance_per_turn / FULL_TURN_DEG

    def axis_value(self, degrees: float) -> float:
        """Convert an orientation to a nozzle-axis position.

        Parameters
        ----------
        degrees : float
            Any angle; reduced to ``[0, 360)`` first.

        Returns
        -------
        float
            Absolute axis value.
        """
        return normalize_angle(degrees) * self.units_per_degree


# ---------------------------------------------------------------------------
# Internal parsing helpers
# ---------------------------------------------------------------------------


def _parse_z(data: dict[str, Any]) -> ZConfig:
    """Parse the ``z`` section."""
    return ZConfig(
        hover_clearance_mm=float(data.get("hover_clearance_mm", 10.0)),
        board_depth_offset_mm=float(data.get("board_depth_offset_mm", -2.0)),
        park_z_mm=float(data.get("park_z_mm", 35.0)),
    )


def _parse_nozzle_axis(data: dict[str, Any]) -> NozzleAxisConfig:
    """Parse the ``nozzle_axis`` section."""
    return NozzleAxisConfig(
        letter=str(data.get("letter", "E")).upper(),
        distance_per_turn=float(data["distance_per_turn"]),
        extruder_tool=str(data.get("extruder_tool", "T1")),
    )


def _parse_actuators(data: dict[str, Any]) -> ActuatorConfig:
    """Parse the ``actuators`` section."""
    return ActuatorConfig(
        vacuum_pin=int(data["vacuum_pin"]),
        blow_pin=int(data["blow_pin"]),
        blow_ms=int(data.get("blow_ms", 100)),
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate_config(cfg: MachineConfig) -> None:
    """Validate cross-field consistency.

    Raises
    ------
    ConfigError
        On any invalid combination.
    """
    # -- Finite -------------------------------------------------------------
    for name, value in (
        ("z.hover_clearance_mm", cfg.z.hover_clearance_mm),
        ("z.board_depth_offset_mm", cfg.z.board_depth_offset_mm),
        ("z.park_z_mm", cfg.z.park_z_mm),
        ("nozzle_axis.distance_per_turn", cfg.nozzle_axis.distance_per_turn),
        ("motion.park_feed_mm_s", cfg.motion.park_feed_mm_s),
    ):
        if not math.isfinite(value):
            raise ConfigError(f"{name} must be a finite number, got {value}")

    # -- Z ------------------------------------------------------------------
    z = cfg.z
    if z.hover_clearance_mm <= 0:
        raise ConfigError(
            f"z.hover_clearance_mm must be > 0, got {z.hover_clearance_mm}"
        )
    if z.board_depth_offset_mm >= z.hover_clearance_mm:
        raise ConfigError(
            f"z.board_depth_offset_mm ({z.board_depth_offset_mm}) must be "
            f"below the hover clearance ({z.hover_clearance_mm})"
        )

    # -- Nozzle axis --------------------------------------------------------
    ax = cfg.nozzle_axis
    if ax.letter in ("X", "Y", "Z") or len(ax.letter) != 1 or not ax.letter.isalpha():
        raise ConfigError(
            f"nozzle_axis.letter must be a single non-XYZ axis letter, "
            f"got '{ax.letter}'"
        )
    if ax.distance_per_turn <= 0:
        raise ConfigError(
            f"nozzle_axis.distance_per_turn must be > 0, "
            f"got {ax.distance_per_turn}"
        )

    # -- Actuators ----------------------------------------------------------
    act = cfg.actuators
    if act.vacuum_pin == act.blow_pin:
        raise ConfigError(
            f"actuators.vacuum_pin and blow_pin must differ, "
            f"both are {act.vacuum_pin}"
        )
    for name, pin in (("vacuum_pin", act.vacuum_pin), ("blow_pin", act.blow_pin)):
        if pin < 0:
            raise ConfigError(f"actuators.{name} must be >= 0, got {pin}")
    if act.blow_ms < 0:
        raise ConfigError(f"actuators.blow_ms must be >= 0, got {act.blow_ms}")

    # -- Motion -------------------------------------------------------------
    if cfg.motion.park_feed_mm_s <= 0:
        raise ConfigError(
            f"motion.park_feed_mm_s must be > 0, got {cfg.motion.park_feed_mm_s}"
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def config_from_dict(data: dict[str, Any]) -> MachineConfig:
    """Build and validate a ``MachineConfig`` from already-parsed YAML.

    Raises
    ------
    ConfigError
        If any field is missing or fails validation.
    """
    try:
        config = MachineConfig(
            z=_parse_z(data.get("z") or {}),
            nozzle_axis=_parse_nozzle_axis(data["nozzle_axis"]),
            actuators=_parse_actuators(data["actuators"]),
            motion=MotionConfig(
                park_feed_mm_s=float(
                    (data.get("motion") or {}).get("park_feed_mm_s", 2500.0 / 60.0)
                ),
            ),
        )
    except KeyError as exc:
        raise ConfigError(
            f"Missing required configuration key: {exc}"
        ) from exc
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigError(
            f"Invalid configuration value: {exc}"
        ) from exc

    _validate_config(config)
    return config


def load_config(path: str | Path | None = None) -> MachineConfig:
    """Load and validate machine configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``machine.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    MachineConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If any field is missing or fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    if path is None:
        path = Path(__file__).parent / "machine.yaml"
    else:
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from %s", path)

    try:
        data = load_yaml(path)
    except yaml.YAMLError as exc:
        raise ConfigError(str(exc)) from exc
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")

    config = config_from_dict(data)
    logger.info("Configuration loaded successfully")
    return config
