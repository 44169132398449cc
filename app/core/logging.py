"""Process-wide logging: stdout plus a rotating file under `logs/`."""

import logging
import logging.handlers
import sys
import time
import traceback
from pathlib import Path
from types import TracebackType

from app.config import Settings

LOG_LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

# Loggers that install their own handlers and must be rerouted through ours.
_ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "apscheduler")
# Firestore's watch stream and the push HTTP client log every reconnect at INFO/DEBUG.
_NOISY_LOGGERS = ("google.cloud.firestore_v1.watch", "google.api_core.bidi", "urllib3.connectionpool")

_log_file_path: Path | None = None


class TruncatedFormatter(logging.Formatter):
  """Keep the exception header and the innermost frames on the console."""

  def __init__(self, *args: object, tail_lines: int = 5, **kwargs: object) -> None:
    super().__init__(*args, **kwargs)
    self._tail_lines = tail_lines

  # ruff: noqa: N802
  def formatException(self, ei: tuple[type[BaseException] | None, BaseException | None, TracebackType | None]) -> str:
    lines = traceback.format_exception(*ei)
    if len(lines) <= self._tail_lines + 1:
      return "".join(lines)
    return "".join([lines[0], "    ...\n", *lines[-self._tail_lines :]])


def _rotated_name(default_name: str) -> str:
  """Name backups `relay_app_<ts>.log-1` so they sort next to the live file."""
  stem, _, suffix = default_name.rpartition(".")
  return f"{stem}-{suffix}" if stem and suffix.isdigit() else default_name


def _build_handlers(settings: Settings, log_dir: Path) -> tuple[logging.Handler, logging.Handler, Path]:
  try:
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"relay_app_{time.strftime('%Y%m%d_%H%M%S')}.log"
    log_path.touch(exist_ok=True)
  except OSError as exc:
    raise RuntimeError(f"Cannot write logs under {log_dir}: {exc}") from exc

  console = logging.StreamHandler(sys.stdout)
  console.setFormatter(TruncatedFormatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))

  rotating = logging.handlers.RotatingFileHandler(log_path, encoding="utf-8", maxBytes=settings.log_max_bytes, backupCount=settings.log_backup_count)
  rotating.namer = _rotated_name
  rotating.setFormatter(logging.Formatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))
  return console, rotating, log_path


def setup_logging(settings: Settings, log_dir: Path | None = None) -> Path:
  """Install handlers on the root logger and reroute framework loggers; returns the log file path."""
  log_dir = log_dir or Path(__file__).resolve().parents[2] / "logs"
  console, rotating, log_path = _build_handlers(settings, log_dir)

  level = logging.DEBUG if settings.debug else logging.INFO
  logging.basicConfig(level=level, handlers=[console, rotating], force=True)

  for name in _ROUTED_LOGGERS:
    routed = logging.getLogger(name)
    routed.handlers = [console, rotating]
    routed.propagate = False

  for name in _NOISY_LOGGERS:
    logging.getLogger(name).setLevel(logging.WARNING)

  return log_path


def initialize_logging(settings: Settings) -> None:
  """Configure logging once per process."""
  global _log_file_path
  if _log_file_path is not None:
    return
  _log_file_path = setup_logging(settings)
  logging.getLogger(__name__).info("Logging initialized. Writing to %s", _log_file_path)
