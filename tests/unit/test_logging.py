from __future__ import annotations

import logging
import sys

import pytest
from app.config import get_settings
from app.core.logging import TruncatedFormatter, _rotated_name, setup_logging


@pytest.fixture
def restore_logging():
  root = logging.getLogger()
  saved = (list(root.handlers), root.level)
  routed = {name: (list(logging.getLogger(name).handlers), logging.getLogger(name).propagate) for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "apscheduler")}
  yield
  for handler in root.handlers:
    if handler not in saved[0]:
      handler.close()
  root.handlers, root.level = saved
  for name, (handlers, propagate) in routed.items():
    logging.getLogger(name).handlers = handlers
    logging.getLogger(name).propagate = propagate


def test_rotated_name_uses_dash_suffix():
  assert _rotated_name("logs/relay_app_20261018_090000.log.1") == "logs/relay_app_20261018_090000.log-1"
  assert _rotated_name("logs/relay_app_20261018_090000.log") == "logs/relay_app_20261018_090000.log"


def test_truncated_formatter_keeps_header_and_tail():
  def _recurse(depth):
    if depth == 0:
      raise RuntimeError("deep failure")
    _recurse(depth - 1)

  try:
    _recurse(10)
  except RuntimeError:
    rendered = TruncatedFormatter(tail_lines=2).formatException(sys.exc_info())

  lines = rendered.splitlines()
  assert lines[0] == "Traceback (most recent call last):"
  assert "    ..." in lines
  assert lines[-1] == "RuntimeError: deep failure"


def test_setup_logging_writes_to_rotating_file(tmp_path, restore_logging):
  log_path = setup_logging(get_settings(), log_dir=tmp_path)

  logging.getLogger("app.test").info("relay log line")
  for handler in logging.getLogger().handlers:
    handler.flush()

  assert log_path.parent == tmp_path
  assert "relay log line" in log_path.read_text(encoding="utf-8")
  assert logging.getLogger("uvicorn.error").propagate is False
  assert logging.getLogger("google.cloud.firestore_v1.watch").level == logging.WARNING
