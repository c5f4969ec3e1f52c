"""Structured logging for glasswrap.

Library modules log through ``structlog.get_logger(__name__)`` and never
configure anything themselves; the CLI calls :func:`configure_logging`
once per invocation. Render and export code additionally goes through a
:class:`RenderLogger`, which mirrors each event into a :class:`RenderStats`
so callers (and tests) can inspect what a run did.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

import structlog

# Handlers owned by configure_logging, replaced on the next call.
_installed_handlers: list[logging.Handler] = []

_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
    structlog.processors.JSONRenderer(sort_keys=True),
]


@dataclass
class RenderStats:
    """Counters and timings collected by a :class:`RenderLogger`."""

    layers_rendered: int = 0
    bands_converted: int = 0
    strips_drawn: int = 0
    draw_calls: int = 0
    cancelled_count: int = 0
    fallback_count: int = 0
    error_count: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)
    layer_timings_ms: list[float] = field(default_factory=list)
    start_time: float | None = None
    end_time: float | None = None

    def start(self) -> None:
        self.start_time = time.perf_counter()

    def stop(self) -> None:
        self.end_time = time.perf_counter()

    @property
    def duration_seconds(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return self.end_time - self.start_time

    @property
    def avg_layer_time_ms(self) -> float | None:
        if not self.layer_timings_ms:
            return None
        return sum(self.layer_timings_ms) / len(self.layer_timings_ms)


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def configure_logging(
    log_file: Path | None = None,
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    quiet: bool = False,
) -> structlog.stdlib.BoundLogger:
    """Route structlog events to the console and, optionally, a log file.

    Calling this again swaps out the handlers installed by the previous
    call, so repeated CLI invocations in one process do not duplicate
    output.

    Args:
        log_file: JSON log destination; console only when None
        console_level: Minimum level printed to stderr
        file_level: Minimum level written to ``log_file``
        quiet: Only errors reach the console

    Returns:
        The ``glasswrap`` logger, already configured
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = []
    if log_file is not None:
        to_file = logging.FileHandler(log_file, encoding="utf-8")
        to_file.setLevel(_level(file_level))
        to_file.setFormatter(logging.Formatter("%(message)s"))
        handlers.append(to_file)

    to_console = logging.StreamHandler()
    to_console.setLevel(logging.ERROR if quiet else _level(console_level))
    to_console.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    handlers.append(to_console)

    for handler in handlers:
        root.addHandler(handler)
        _installed_handlers.append(handler)

    structlog.configure(
        processors=_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("glasswrap")
    logger.info(
        "Logging initialized",
        log_file=str(log_file) if log_file else None,
        console_level=console_level.upper(),
        file_level=file_level.upper(),
    )
    return logger


class RenderLogger:
    """Logs render and export events while counting them in :class:`RenderStats`."""

    def __init__(self, logger: structlog.stdlib.BoundLogger) -> None:
        self._log = logger
        self._stats = RenderStats()

    @property
    def stats(self) -> RenderStats:
        return self._stats

    def log_layer_start(self, side: str, strips: int, mode: str) -> None:
        self._log.debug("Rendering layer", side=side, strips=strips, mode=mode)

    def log_layer_complete(
        self,
        side: str,
        strips: int,
        draw_calls: int,
        duration_ms: float,
    ) -> None:
        stats = self._stats
        stats.layers_rendered += 1
        stats.strips_drawn += strips
        stats.draw_calls += draw_calls
        stats.layer_timings_ms.append(duration_ms)
        self._log.info(
            "Layer rendered",
            side=side,
            strips=strips,
            draw_calls=draw_calls,
            ms=round(duration_ms, 1),
        )

    def log_band_complete(self, index: int, rows: int, duration_ms: float) -> None:
        self._stats.bands_converted += 1
        self._log.debug("Band converted", band=index, rows=rows, ms=round(duration_ms, 1))

    def log_cancelled(self, generation: int) -> None:
        """Record a render abandoned because newer parameters arrived."""
        self._stats.cancelled_count += 1
        self._log.debug("Render superseded", generation=generation)

    def log_fallback(self, asset: str, reason: str) -> None:
        """Record an asset that failed to load and was replaced."""
        self._stats.fallback_count += 1
        self._log.warning("Using fallback", asset=asset, reason=reason)

    def log_error(
        self,
        target: str,
        error: Exception | str,
        traceback: str | None = None,
    ) -> None:
        """Record a failed layer or band.

        Args:
            target: What failed, e.g. ``"band 3"`` or ``"front"``
            error: The exception, or its message when it came from a worker
            traceback: Formatted traceback from a worker process, if any
        """
        message = str(error)
        self._stats.error_count += 1
        self._stats.errors.append((target, message))
        self._log.error(
            "Render failed",
            target=target,
            error=message,
            error_type=type(error).__name__ if isinstance(error, Exception) else None,
            traceback=traceback,
        )
