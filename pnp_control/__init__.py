"""
Pick-and-place control package.

Turns a board part list and a tape feed description into G-code for a
pick-and-place machine.

Subpackages:
    configs: Machine configuration loading and validation
    feeds: Tape reels and the feed configuration
    job_ir: Placement requests and pick/place operations
    gcode: Toolpath (G-code) generation
    utils: Filesystem, logging and schema helpers
"""

__all__ = ["configs", "feeds", "job_ir", "gcode", "utils"]
__version__ = "0.1.0"
