"""Tests for the machine configuration loader.

Validates that:
    - The shipped machine.yaml loads and passes validation
    - Angle normalization lands in [0, 360) for any input
    - Invalid or missing values raise ConfigError

Tests avoid hardcoding machine.yaml tunables except where a default is
part of the documented behaviour.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from pnp_control.configs.loader import (
    ConfigError,
    MachineConfig,
    config_from_dict,
    load_config,
    normalize_angle,
)


def _minimal(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "nozzle_axis": {"distance_per_turn": 36.0},
        "actuators": {"vacuum_pin": 6, "blow_pin": 8},
    }
    data.update(overrides)
    return data


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def config() -> MachineConfig:
    """Load the default machine.yaml shipped with the package."""
    return load_config()


# ---------------------------------------------------------------------------
# Shipped config
# ---------------------------------------------------------------------------


class TestShippedConfig:
    def test_loads(self, config: MachineConfig) -> None:
        assert config.z.hover_clearance_mm > 0
        assert config.nozzle_axis.distance_per_turn > 0

    def test_units_per_degree(self, config: MachineConfig) -> None:
        expected = config.nozzle_axis.distance_per_turn / 360.0
        assert config.units_per_degree == pytest.approx(expected)

    def test_pins_differ(self, config: MachineConfig) -> None:
        assert config.actuators.vacuum_pin != config.actuators.blow_pin

    def test_frozen(self, config: MachineConfig) -> None:
        with pytest.raises(AttributeError):
            config.z = None  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_reference_defaults(self) -> None:
        cfg = config_from_dict(_minimal())
        assert cfg.z.hover_clearance_mm == 10.0
        assert cfg.z.board_depth_offset_mm == -2.0
        assert cfg.z.park_z_mm == 35.0
        assert cfg.nozzle_axis.letter == "E"
        assert cfg.nozzle_axis.extruder_tool == "T1"
        assert cfg.actuators.blow_ms == 100
        assert cfg.motion.park_feed_mm_s * 60.0 == pytest.approx(2500.0)

    def test_axis_letter_uppercased(self) -> None:
        cfg = config_from_dict(_minimal(
            nozzle_axis={"letter": "a", "distance_per_turn": 360.0},
        ))
        assert cfg.nozzle_axis.letter == "A"


# ---------------------------------------------------------------------------
# Angles
# ---------------------------------------------------------------------------


class TestAngles:
    @pytest.mark.parametrize(
        "degrees, expected",
        [
            (0.0, 0.0),
            (10.0, 10.0),
            (360.0, 0.0),
            (370.0, 10.0),
            (-10.0, 350.0),
            (-360.0, 0.0),
            (725.0, 5.0),
        ],
    )
    def test_normalize(self, degrees: float, expected: float) -> None:
        assert normalize_angle(degrees) == pytest.approx(expected)

    def test_normalize_tiny_negative(self) -> None:
        a = normalize_angle(-1e-20)
        assert 0.0 <= a < 360.0

    def test_axis_value_scales(self) -> None:
        cfg = config_from_dict(_minimal())  # 36 units per turn
        assert cfg.units_per_degree == pytest.approx(0.1)
        assert cfg.axis_value(90.0) == pytest.approx(9.0)

    def test_axis_value_wraps(self) -> None:
        cfg = config_from_dict(_minimal())
        assert cfg.axis_value(370.0) == pytest.approx(1.0)
        assert cfg.axis_value(-90.0) == pytest.approx(27.0)


# ---------------------------------------------------------------------------
# Validation errors
# ---------------------------------------------------------------------------


class TestValidation:
    def test_missing_nozzle_axis(self) -> None:
        data = _minimal()
        del data["nozzle_axis"]
        with pytest.raises(ConfigError, match="Missing required"):
            config_from_dict(data)

    def test_missing_distance_per_turn(self) -> None:
        with pytest.raises(ConfigError, match="distance_per_turn"):
            config_from_dict(_minimal(nozzle_axis={"letter": "E"}))

    @pytest.mark.parametrize("value", [0.0, -50.0])
    def test_distance_per_turn_positive(self, value: float) -> None:
        with pytest.raises(ConfigError, match="distance_per_turn"):
            config_from_dict(_minimal(nozzle_axis={"distance_per_turn": value}))

    def test_non_numeric(self) -> None:
        with pytest.raises(ConfigError, match="Invalid configuration value"):
            config_from_dict(_minimal(nozzle_axis={"distance_per_turn": "lots"}))

    @pytest.mark.parametrize("letter", ["X", "Z", "EE", "1"])
    def test_bad_axis_letter(self, letter: str) -> None:
        with pytest.raises(ConfigError, match="letter"):
            config_from_dict(_minimal(
                nozzle_axis={"letter": letter, "distance_per_turn": 36.0},
            ))

    def test_hover_positive(self) -> None:
        with pytest.raises(ConfigError, match="hover_clearance_mm"):
            config_from_dict(_minimal(z={"hover_clearance_mm": 0.0}))

    def test_depth_below_hover(self) -> None:
        with pytest.raises(ConfigError, match="board_depth_offset_mm"):
            config_from_dict(_minimal(
                z={"hover_clearance_mm": 5.0, "board_depth_offset_mm": 5.0},
            ))

    def test_same_pins(self) -> None:
        with pytest.raises(ConfigError, match="must differ"):
            config_from_dict(_minimal(actuators={"vacuum_pin": 6, "blow_pin": 6}))

    def test_negative_blow(self) -> None:
        with pytest.raises(ConfigError, match="blow_ms"):
            config_from_dict(_minimal(
                actuators={"vacuum_pin": 6, "blow_pin": 8, "blow_ms": -1},
            ))

    def test_park_feed_positive(self) -> None:
        with pytest.raises(ConfigError, match="park_feed_mm_s"):
            config_from_dict(_minimal(motion={"park_feed_mm_s": 0}))

    @pytest.mark.parametrize("overrides, field", [
        ({"z": {"hover_clearance_mm": float("nan")}}, "z.hover_clearance_mm"),
        ({"z": {"board_depth_offset_mm": float("-inf")}}, "z.board_depth_offset_mm"),
        ({"z": {"park_z_mm": float("inf")}}, "z.park_z_mm"),
        ({"nozzle_axis": {"distance_per_turn": float("inf")}}, "nozzle_axis.distance_per_turn"),
        ({"motion": {"park_feed_mm_s": float("nan")}}, "motion.park_feed_mm_s"),
    ])
    def test_non_finite(self, overrides: dict[str, Any], field: str) -> None:
        with pytest.raises(ConfigError, match=f"{field} must be a finite number"):
            config_from_dict(_minimal(**overrides))

    def test_non_finite_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "machine.yaml"
        path.write_text(
            "z:\n  hover_clearance_mm: .nan\n"
            "nozzle_axis:\n  distance_per_turn: .inf\n"
            "actuators:\n  vacuum_pin: 6\n  blow_pin: 8\n"
        )
        with pytest.raises(ConfigError, match="finite"):
            load_config(path)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class TestLoadFile:
    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "machine.yaml"
        path.write_text(yaml.safe_dump(_minimal(z={"hover_clearance_mm": 12.0})))
        cfg = load_config(path)
        assert cfg.z.hover_clearance_mm == 12.0

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "machine.yaml"
        path.write_text("")
        with pytest.raises(ConfigError, match="Empty"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "machine.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)

    def test_broken_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "machine.yaml"
        path.write_text("z: [1, 2\n")
        with pytest.raises(ConfigError):
            load_config(path)
