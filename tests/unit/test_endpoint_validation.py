from __future__ import annotations

import pytest
from app.notifications.endpoints import is_valid_endpoint


@pytest.mark.parametrize(
  "endpoint",
  [
    "https://fcm.googleapis.com/fcm/send/abc:def",
    "https://updates.push.services.mozilla.com/wpush/v2/gAAAA",
    "https://push.example/1",
    "http://localhost:8080/push",
    "https://[::1]:8443/push",
  ],
)
def test_well_formed_absolute_urls_are_valid(endpoint):
  assert is_valid_endpoint(endpoint) is True


@pytest.mark.parametrize(
  "endpoint",
  [
    "not-a-url",
    "",
    "   ",
    "/relative/path",
    "push.example/1",
    "https://",
    "https://push.example:99999/1",
    "https://[::1/push",
    "https://push example/1",
    "https://push.example/a b",
    "mailto:x@y.z",
    "://missing-scheme.example",
    None,
    42,
  ],
)
def test_malformed_endpoints_are_invalid_and_never_raise(endpoint):
  assert is_valid_endpoint(endpoint) is False
