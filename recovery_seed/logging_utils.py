from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

DEFAULT_LOG_PATH = "/var/log/recovery-seed.log"

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: Union[int, str] = logging.INFO,
    also_console: bool = True,
) -> str:
    """Attach file (and optionally console) handlers to the root logger.

    Recovery systems are usually created from a daemon running on the device
    where the log directory may be read-only; when the requested file cannot
    be opened a ``recovery-seed.log`` in the working directory is used instead.

    Calling this more than once is a no-op. Returns the log file in use.
    """

    root = logging.getLogger()
    root.setLevel(_coerce_level(level))

    if getattr(root, "_recovery_seed_configured", False):
        return getattr(root, "_recovery_seed_log_path", log_path)

    fmt = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)
    handlers: list[logging.Handler] = []

    file_handler: Optional[logging.Handler] = None
    chosen_path = log_path
    try:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
    except OSError:
        chosen_path = str(Path.cwd() / "recovery-seed.log")
        file_handler = logging.FileHandler(chosen_path)
    file_handler.setFormatter(fmt)
    handlers.append(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        handlers.append(console)

    for h in handlers:
        root.addHandler(h)

    setattr(root, "_recovery_seed_configured", True)
    setattr(root, "_recovery_seed_log_path", chosen_path)

    logging.getLogger(__name__).info(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
    )
    return chosen_path
