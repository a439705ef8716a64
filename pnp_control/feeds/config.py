"""Feed configuration -- which tape supplies which component.

The feed file is line oriented.  The first whitespace-delimited token of a
line names a directive, the rest is its payload::

    # Board origin in machine coordinates
    Board:
    origin: 100 200

    Tape: 0805@100n 0805@0.1u
    origin: 10 20 1.5
    spacing: 4 0
    angle: 90
    count: 50

``Tape:`` opens a new reel and binds every listed key to it; several keys
may share one reel.  ``Board:`` closes the current reel so that the next
``origin:`` sets the board offset.  ``spacing:``, ``angle:`` and
``count:`` need an open reel.  Unknown directives are ignored so that
newer files keep loading on older versions.

Any malformed payload rejects the whole file: the caller gets either a
complete ``FeedConfig`` or a ``FeedConfigError``, never a partial result.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, NamedTuple

from pnp_control.feeds.tape import Position, TapeReel

logger = logging.getLogger(__name__)

COMMENT_MARKER = "#"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class FeedConfigError(Exception):
    """Raised when the feed configuration cannot be built."""

    pass


class UnknownFeedError(Exception):
    """Raised when no tape is bound to a component key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"No tape for '{key}'")
        self.key = key


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


class ReelUsage(NamedTuple):
    """Dispense summary for one physical reel."""

    keys: tuple[str, ...]
    used: int
    capacity: int

    @property
    def remaining(self) -> int:
        return self.capacity - self.used


@dataclass
class FeedConfig:
    """Board offset plus the key -> reel mapping.

    Aliased keys hold the same ``TapeReel`` object, so dispensing through
    one key advances the cursor seen through every other key.
    """

    board_origin: tuple[float, float] = (0.0, 0.0)
    feed_by_key: dict[str, TapeReel] = field(default_factory=dict)

    def tape_for(self, key: str) -> TapeReel:
        """Return the reel bound to *key* or raise ``UnknownFeedError``."""
        try:
            return self.feed_by_key[key]
        except KeyError:
            raise UnknownFeedError(key) from None

    def reels(self) -> list[TapeReel]:
        """Distinct reels, in the order their first key was bound."""
        seen: dict[int, TapeReel] = {}
        for reel in self.feed_by_key.values():
            seen.setdefault(id(reel), reel)
        return list(seen.values())

    def keys_for(self, reel: TapeReel) -> tuple[str, ...]:
        return tuple(k for k, r in self.feed_by_key.items() if r is reel)

    def usage(self) -> list[ReelUsage]:
        return [
            ReelUsage(self.keys_for(reel), reel.cursor, reel.capacity)
            for reel in self.reels()
        ]


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class _FeedParser:
    """Single-pass directive interpreter.

    Directives apply to whichever context (board or reel) was most
    recently opened.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.config = FeedConfig()
        self.current: TapeReel | None = None
        self._spaced: dict[int, TapeReel] = {}
        self._lineno = 0
        self._handlers: dict[str, Callable[[list[str]], None]] = {
            "Board:": self._board,
            "Tape:": self._tape,
            "origin:": self._origin,
            "spacing:": self._spacing,
            "angle:": self._angle,
            "count:": self._count,
        }

    # -- helpers -------------------------------------------------------

    def _error(self, message: str) -> FeedConfigError:
        return FeedConfigError(f"{self.source}:{self._lineno}: {message}")

    def _floats(self, directive: str, args: list[str], n: int) -> list[float]:
        if len(args) < n:
            raise self._error(
                f"{directive} expects {n} number(s), got {' '.join(args)!r}"
            )
        try:
            values = [float(tok) for tok in args[:n]]
        except ValueError:
            raise self._error(
                f"Parse problem {directive} {' '.join(args)!r}"
            ) from None
        if not all(math.isfinite(v) for v in values):
            raise self._error(f"{directive} values must be finite")
        return values

    def _require_tape(self, directive: str) -> TapeReel:
        if self.current is None:
            raise self._error(f"{directive} without Tape:")
        return self.current

    # -- directives ----------------------------------------------------

    def _board(self, args: list[str]) -> None:
        self.current = None

    def _tape(self, args: list[str]) -> None:
        if not args:
            raise self._error("Tape: needs at least one component key")
        reel = TapeReel()
        for key in args:
            if key in self.config.feed_by_key:
                logger.warning(
                    "%s:%d: '%s' was already bound to a tape; "
                    "the new tape replaces it",
                    self.source, self._lineno, key,
                )
            self.config.feed_by_key[key] = reel
        self.current = reel

    def _origin(self, args: list[str]) -> None:
        if self.current is not None:
            x, y, z = self._floats("origin:", args, 3)
            self.current.origin = Position(x, y, z)
        else:
            x, y = self._floats("origin:", args, 2)
            self.config.board_origin = (x, y)

    def _spacing(self, args: list[str]) -> None:
        tape = self._require_tape("spacing:")
        dx, dy = self._floats("spacing:", args, 2)
        if dx == 0 and dy == 0:
            raise self._error("spacing: at least one of dx, dy must be non-zero")
        tape.spacing = (dx, dy)
        self._spaced[id(tape)] = tape

    def _angle(self, args: list[str]) -> None:
        tape = self._require_tape("angle:")
        (tape.angle,) = self._floats("angle:", args, 1)

    def _count(self, args: list[str]) -> None:
        tape = self._require_tape("count:")
        if not args:
            raise self._error("count: expects an integer")
        try:
            count = int(args[0])
        except ValueError:
            raise self._error(f"Parse problem count: {args[0]!r}") from None
        if count < 0:
            raise self._error(f"count: must be >= 0, got {count}")
        tape.capacity = count

    # -- driver --------------------------------------------------------

    def feed(self, lineno: int, line: str) -> None:
        self._lineno = lineno
        tokens = line.split()
        if not tokens or tokens[0].startswith(COMMENT_MARKER):
            return
        directive, args = tokens[0], tokens[1:]
        handler = self._handlers.get(directive)
        if handler is None:
            logger.debug(
                "%s:%d: ignoring unknown directive %r",
                self.source, lineno, directive,
            )
            return
        handler(args)

    def finish(self) -> FeedConfig:
        for reel in self.config.reels():
            if reel.capacity > 1 and id(reel) not in self._spaced:
                keys = ", ".join(self.config.keys_for(reel))
                raise FeedConfigError(
                    f"{self.source}: tape for {keys} holds {reel.capacity} "
                    f"components but has no spacing:"
                )
        return self.config


def _log_feeds(config: FeedConfig) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    bx, by = config.board_origin
    logger.debug("Board-origin: (%.3f, %.3f)", bx, by)
    for key, reel in config.feed_by_key.items():
        logger.debug("%s\t%r", key, reel)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_feed_config(
    lines: Iterable[str], source: str = "<string>",
) -> FeedConfig:
    """Build a ``FeedConfig`` from feed-file lines.

    Parameters
    ----------
    lines : Iterable[str]
        Directive lines (a file object works).
    source : str
        Name used in error messages.

    Returns
    -------
    FeedConfig
        Fully populated configuration.

    Raises
    ------
    FeedConfigError
        On the first malformed or out-of-context directive.
    """
    parser = _FeedParser(source)
    for lineno, line in enumerate(lines, start=1):
        parser.feed(lineno, line)
    config = parser.finish()
    _log_feeds(config)
    return config


def load_feed_config(path: str | Path) -> FeedConfig:
    """Load the feed file at *path*.

    Raises
    ------
    FeedConfigError
        If the file cannot be read or any directive is invalid.
    """
    path = Path(path)
    logger.info("Loading feeds from %s", path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            config = parse_feed_config(f, source=str(path))
    except OSError as exc:
        raise FeedConfigError(f"Cannot read feed file {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise FeedConfigError(f"Feed file {path} is not UTF-8 text: {exc}") from exc

    logger.info(
        "Loaded %d tape(s) for %d component key(s)",
        len(config.reels()), len(config.feed_by_key),
    )
    return config
