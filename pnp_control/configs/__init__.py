"""Machine configuration loading and validation."""

from pnp_control.configs.loader import (
    ActuatorConfig,
    ConfigError,
    MachineConfig,
    MotionConfig,
    NozzleAxisConfig,
    ZConfig,
    config_from_dict,
    load_config,
    normalize_angle,
)

__all__ = [
    "ActuatorConfig",
    "ConfigError",
    "MachineConfig",
    "MotionConfig",
    "NozzleAxisConfig",
    "ZConfig",
    "config_from_dict",
    "load_config",
    "normalize_angle",
]
