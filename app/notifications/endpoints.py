"""Syntactic validation for push delivery endpoints."""

from __future__ import annotations

import re
import urllib.parse

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*$")


def is_valid_endpoint(endpoint: object) -> bool:
  """Return True when the endpoint parses as a well-formed absolute URL."""
  if not isinstance(endpoint, str):
    return False

  candidate = endpoint.strip()
  if not candidate or candidate != endpoint or any(char.isspace() for char in candidate):
    return False

  try:
    parsed = urllib.parse.urlsplit(candidate)
    # Accessing the port forces validation of the netloc (bad ports, unbalanced IPv6 brackets).
    _ = parsed.port
  except ValueError:
    return False

  if not _SCHEME_RE.match(parsed.scheme):
    return False

  return bool(parsed.netloc) and bool(parsed.hostname)
