"""Error reporting for the signing server.

Forwarded signtool options name certificates (`/sha1`, `/n`) and key
containers (`/kc`, `/csp`), so they must not reach Sentry. `_scrub_event`
runs as the `before_send` hook and redacts them from:

  - `extra` and request bodies, by key (`subcommands`, `*password*`, ...)
  - breadcrumbs recorded from the signing modules' log lines, whose
    messages may quote the tool's command line

Nothing is initialised when no DSN is configured.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"

_SENSITIVE_KEYS = frozenset({"subcommands", "password", "secret", "token", "dsn", "key"})

# Loggers that may print the tool's command line or output
_SIGNING_LOGGERS = ("signserver.signtool",)


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return any(sensitive in lowered for sensitive in _SENSITIVE_KEYS)


def _redact_keys(data: dict[str, Any]) -> None:
    """Redact sensitive values in-place, descending into nested dicts."""
    for key, value in data.items():
        if _is_sensitive(key):
            data[key] = REDACTED
        elif isinstance(value, dict):
            _redact_keys(value)


def _redact_breadcrumbs(event: dict[str, Any]) -> None:
    breadcrumbs = event.get("breadcrumbs")
    if isinstance(breadcrumbs, dict):
        breadcrumbs = breadcrumbs.get("values")
    if not isinstance(breadcrumbs, list):
        return

    for crumb in breadcrumbs:
        if not isinstance(crumb, dict):
            continue
        if str(crumb.get("category", "")).startswith(_SIGNING_LOGGERS):
            crumb["message"] = REDACTED
            crumb.pop("data", None)
        elif isinstance(crumb.get("data"), dict):
            _redact_keys(crumb["data"])


def _scrub_event(event: dict[str, Any], hint: Any) -> dict[str, Any]:
    """Sentry before_send hook."""
    if isinstance(event.get("extra"), dict):
        _redact_keys(event["extra"])

    request_data = event.get("request", {}).get("data")
    if isinstance(request_data, dict):
        _redact_keys(request_data)

    _redact_breadcrumbs(event)
    return event


def init_sentry(dsn: str, environment: str = "development") -> None:
    if not dsn or not dsn.strip():
        logger.debug("Sentry DSN not configured, error reporting disabled")
        return

    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        integrations=[FastApiIntegration()],
        traces_sample_rate=0.0,
        send_default_pii=False,
        before_send=_scrub_event,
    )
    logger.info("Sentry initialised (environment=%s)", environment)
