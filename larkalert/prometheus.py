"""Decoding of raw Alertmanager webhook bodies."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


class AlertParseError(ValueError):
    """Raised when a webhook body is not valid JSON."""


@dataclass(eq=True)
class RawAlert:
    """One alert from the webhook body, addressed by dotted paths."""

    data: Any

    def get(self, path: str, default: Any = None) -> Any:
        """Return the value at a dotted path such as ``labels.env``."""
        current = self.data
        for part in path.split("."):
            if isinstance(current, Mapping) and part in current:
                current = current[part]
            elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
                current = current[int(part)]
            else:
                return default
        return current


def get_raw_alert_info(body: str | bytes) -> list[RawAlert]:
    """Decode a webhook body and return its alerts; empty when there are none."""
    try:
        document = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.error("failed to decode prometheus alert body: %s", exc)
        raise AlertParseError(f"invalid alert body: {exc}") from exc

    alerts = document.get("alerts") if isinstance(document, dict) else None
    if not isinstance(alerts, list) or not alerts:
        logger.error("alert list is empty")
        return []
    return [RawAlert(alert) for alert in alerts]