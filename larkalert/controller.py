"""Turning Alertmanager webhook bodies into Lark notifications."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from larkalert.feishu import FeishuNotifier, NotifyError
from larkalert.models import FsMsgInput
from larkalert.prometheus import RawAlert, get_raw_alert_info

logger = logging.getLogger(__name__)

SHANGHAI = timezone(timedelta(hours=8), "Asia/Shanghai")

_TIMESTAMP = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[T ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?"
    r"(Z|z|[+-]\d{2}:?\d{2})?$"
)


class Notifier(Protocol):
    """Anything able to deliver a Lark message."""

    def notify(self, msg: FsMsgInput) -> bool: ...


def format_starts_at(value: Any) -> str:
    """Render an alert timestamp as ``YYYY-MM-DD HH:MM:SS`` in Shanghai time.

    Timestamps without an offset are taken as Shanghai time already.
    Missing or empty values give an empty string.
    """
    if value is None:
        return ""
    text = str(value).strip()
    if not text:
        return ""
    match = _TIMESTAMP.match(text)
    if match is None:
        raise ValueError(f"invalid timestamp: {value!r}")
    date, clock, fraction, zone = match.groups()
    micro = (fraction or "")[:6].ljust(6, "0")
    iso = f"{date}T{clock}.{micro}"
    if zone:
        if zone in ("Z", "z"):
            iso += "+00:00"
        else:
            digits = zone[1:].replace(":", "")
            iso += f"{zone[0]}{digits[:2]}:{digits[2:]}"
    moment = datetime.fromisoformat(iso)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=SHANGHAI)
    return moment.astimezone(SHANGHAI).strftime("%Y-%m-%d %H:%M:%S")


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (Mapping, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def build_message_input(alert: RawAlert, chat_id: str, hook: str) -> FsMsgInput:
    """Build the template message for one raw alert."""
    labels = alert.get("labels")
    other_labels = dict(labels) if isinstance(labels, Mapping) else {}
    template_variable = {
        "alertname": _text(alert.get("labels.alertname")),
        "generatorURL": _text(alert.get("generatorURL")),
        "severity": _text(alert.get("labels.severity")),
        "startsAt": format_starts_at(alert.get("startsAt")),
        "summary": _text(alert.get("annotations.summary")),
        "description": _text(alert.get("annotations.description")),
        "otherlabels": other_labels,
        "env": _text(alert.get("labels.env")),
        "status": _text(alert.get("status")),
    }
    return FsMsgInput(
        hook=hook,
        receive_id_type="chat_id",
        receive_id=chat_id,
        msg_type="interactive",
        content={"type": "template", "data": {"template_variable": template_variable}},
    )


def handle_prometheus_fs(
    body: str | bytes,
    chat_id: str,
    hook: str,
    notifier: Notifier | None = None,
) -> int:
    """Send every alert in ``body`` to the chat; return how many were delivered."""
    notifier = notifier if notifier is not None else FeishuNotifier()
    delivered = 0
    for alert in get_raw_alert_info(body):
        msg = build_message_input(alert, chat_id, hook)
        try:
            if notifier.notify(msg):
                delivered += 1
        except NotifyError as exc:
            logger.error("failed to send prometheus alert to chat: %s", exc)
            raise
    return delivered