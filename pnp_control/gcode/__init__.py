"""
G-code generation module.

Converts placement requests to pick-and-place G-code, consuming tape
slots from the feed configuration.
"""

from pnp_control.gcode.generator import GCodeError, ToolpathGenerator, ToolpathResult

__all__ = ["GCodeError", "ToolpathGenerator", "ToolpathResult"]
