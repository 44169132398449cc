"""Minimal `.env` support for local runs."""

from __future__ import annotations

import os
import re
from pathlib import Path

_INLINE_COMMENT_RE = re.compile(r"\s#")


def default_env_path() -> Path:
  return Path(__file__).resolve().parents[2] / ".env"


def parse_env_line(raw: str) -> tuple[str, str] | None:
  """Split one `KEY=value` line; blanks, comments and malformed lines yield None."""
  line = raw.strip()
  if not line or line.startswith("#"):
    return None

  line = line.removeprefix("export ").lstrip()
  key, sep, value = line.partition("=")
  key = key.strip()
  if not sep or not key:
    return None

  value = value.strip()
  if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
    return key, value[1:-1]

  # `#` only starts a comment in unquoted values when preceded by whitespace.
  match = _INLINE_COMMENT_RE.search(value)
  if match:
    value = value[: match.start()].rstrip()
  return key, value


def load_env_file(path: Path, *, override: bool = False) -> list[str]:
  """Export entries from a `.env` file and return the keys that were applied."""
  if not path.is_file():
    return []

  applied: list[str] = []
  for raw in path.read_text(encoding="utf-8").splitlines():
    parsed = parse_env_line(raw)
    if parsed is None:
      continue

    key, value = parsed
    if key in os.environ and not override:
      continue
    os.environ[key] = value
    applied.append(key)
  return applied
