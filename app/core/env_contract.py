"""Runtime environment contract checks for the relay service.

How/Why:
- Keep runtime configuration explicit so deploy-time mistakes fail immediately.
- Prevent secret leakage by redacting sensitive values in startup logs.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass

EnvValidator = Callable[[str, dict[str, str]], str | None]


@dataclass(frozen=True)
class EnvVarDefinition:
  """Describe how an environment variable must be validated."""

  name: str
  required: bool
  secret: bool
  validator: EnvValidator | None = None


class EnvContractError(RuntimeError):
  """Raised when required runtime environment keys are missing or invalid."""


def _parse_bool(raw: str | None, *, default: bool = False) -> bool:
  """Parse boolean-ish environment values consistently for contract checks."""
  if raw is None:
    return default

  return raw.strip().lower() in {"1", "true", "yes", "on"}


def _validate_allowed_origins(value: str, _: dict[str, str]) -> str | None:
  """Enforce strict CORS origins so wildcards cannot be introduced silently."""
  origins = [origin.strip() for origin in value.split(",") if origin.strip()]
  if not origins:
    return "must include at least one origin."

  if "*" in origins:
    return "must not include wildcard origins."

  return None


def _validate_environment_name(value: str, _: dict[str, str]) -> str | None:
  """Keep environment names predictable for deployment and startup controls."""
  normalized = value.strip().lower()
  if normalized in {"dev", "development", "stage", "staging", "prod", "production", "test", "testing"}:
    return None

  return "must be one of: development, stage, production, test (or aliases)."


def _validate_required_if_push_enabled(value: str, env_map: dict[str, str]) -> str | None:
  """Require VAPID material only when push delivery is explicitly enabled."""
  if not _parse_bool(env_map.get("RELAY_PUSH_NOTIFICATIONS_ENABLED")):
    return None

  if value.strip() == "":
    return "must be set when RELAY_PUSH_NOTIFICATIONS_ENABLED is true."

  return None


REQUIRED_ENV_REGISTRY: tuple[EnvVarDefinition, ...] = (
  EnvVarDefinition(name="RELAY_ENV", required=True, secret=False, validator=_validate_environment_name),
  EnvVarDefinition(name="RELAY_ALLOWED_ORIGINS", required=True, secret=False, validator=_validate_allowed_origins),
  EnvVarDefinition(name="FIREBASE_PROJECT_ID", required=True, secret=False),
  EnvVarDefinition(name="FIREBASE_SERVICE_ACCOUNT_JSON_PATH", required=False, secret=False),
  EnvVarDefinition(name="RELAY_PUSH_NOTIFICATIONS_ENABLED", required=False, secret=False),
  EnvVarDefinition(name="RELAY_PUSH_VAPID_PUBLIC_KEY", required=False, secret=False, validator=_validate_required_if_push_enabled),
  EnvVarDefinition(name="RELAY_PUSH_VAPID_PRIVATE_KEY", required=False, secret=True, validator=_validate_required_if_push_enabled),
  EnvVarDefinition(name="RELAY_PUSH_VAPID_SUB", required=False, secret=False, validator=_validate_required_if_push_enabled),
)


def validate_env_values(env_map: dict[str, str]) -> list[str]:
  """Validate a provided env map against contract rules."""
  errors: list[str] = []
  for definition in REQUIRED_ENV_REGISTRY:
    value = env_map.get(definition.name, "")
    if definition.required and value.strip() == "":
      errors.append(f"{definition.name}: required variable is missing.")
      continue

    # Conditional validators must see blank values too.
    if definition.validator:
      validation_error = definition.validator(value, env_map)
      if validation_error:
        errors.append(f"{definition.name}: {validation_error}")

  return errors


def validate_runtime_env_or_raise(*, logger: logging.Logger) -> None:
  """Validate and log runtime env values using the centralized contract."""
  # Default to False so local runs and tests can start without full config.
  # Production environments should explicitly set RELAY_ENV_CONTRACT_ENFORCE=1.
  env_contract_enabled = _parse_bool(os.getenv("RELAY_ENV_CONTRACT_ENFORCE"), default=False)
  resolved_values: dict[str, str] = {}
  for definition in REQUIRED_ENV_REGISTRY:
    value = os.getenv(definition.name, "")
    resolved_values[definition.name] = value
    if definition.secret:
      logger.info("ENV_CHECK key=%s value=<redacted>", definition.name)
    elif value == "":
      logger.info("ENV_CHECK key=%s value=<missing>", definition.name)
    else:
      logger.info("ENV_CHECK key=%s value=%s", definition.name, value)

  errors = validate_env_values(resolved_values)

  if not errors:
    logger.info("ENV_CHECK status=ok checked=%d", len(REQUIRED_ENV_REGISTRY))
    return

  message = "ENV_CHECK status=failed violations:\n- {errors}".format(errors="\n- ".join(errors))
  if env_contract_enabled:
    logger.error(message)
    raise EnvContractError(message)

  logger.warning("ENV_CHECK enforcement disabled by RELAY_ENV_CONTRACT_ENFORCE=0")
  logger.warning(message)
