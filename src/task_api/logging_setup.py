from __future__ import annotations

import logging
import sys
from typing import Union


class _AccessNoiseFilter(logging.Filter):
    """
    Keep task_api logs, but let third-party loggers (uvicorn access lines,
    asyncio, httpx in tests) through only at WARNING or above.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "task_api" or record.name.startswith("task_api."):
            return True
        if record.name == "uvicorn.error":
            return record.levelno >= logging.INFO
        return record.levelno >= logging.WARNING


# PUBLIC_INTERFACE
def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Configure the root logger with a single stderr handler.

    Pre-existing handlers are removed so repeated calls do not duplicate
    output. Call this once, before the first log line is emitted.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(_AccessNoiseFilter())
    root.addHandler(ch)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)
