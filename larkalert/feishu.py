"""Building Lark interactive cards for alerts and posting them to bot hooks."""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from larkalert.models import FsMsgInput

logger = logging.getLogger(__name__)

HOOK_BASE_URL = "https://open.larksuite.com/open-apis/bot/v2/hook/"

_NOTIFY_SEVERITIES = frozenset({"critical", "warning", "resolved"})

_LABEL_GROUPS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("🖥️ 系统资源", ("pod", "namespace", "container")),
    ("🚨 告警信息", ("severity", "alertname")),
    ("🌍 环境配置", ("env", "cluster")),
)

_LABEL_COLORS = {
    "critical": "#FF4D4D",
    "warning": "#FF9A2E",
    "pod": "#3370FF",
    "namespace": "#3370FF",
    "container": "#3370FF",
    "env": "#00B567",
    "alertname": "#FF9A2E",
}

_ZWSP = "\u200b"


class NotifyError(Exception):
    """Raised when a message cannot be built or delivered."""


def extract_field(data: Mapping[str, Any] | None, key: str) -> str:
    """Return ``data[key]`` if it is a string, otherwise an empty string."""
    if not data:
        return ""
    value = data.get(key)
    return value if isinstance(value, str) else ""


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "<nil>"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def extract_other_labels(template_variable: Mapping[str, Any] | None) -> str:
    """Render the ``otherlabels`` mapping as ``{key: value`` lines ``}``."""
    labels = (template_variable or {}).get("otherlabels")
    if not isinstance(labels, Mapping):
        return "{}"
    lines = "\n".join(f"{key}: {_format_value(value)}" for key, value in labels.items())
    return "{" + lines + "}"


def parse_labels(labels_str: str) -> dict[str, str]:
    """Parse the text produced by :func:`extract_other_labels` back into a mapping."""
    text = labels_str.strip()
    if text.startswith("{") and text.endswith("}"):
        text = text[1:-1]
    labels: dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition(": ")
        if sep and key:
            labels[key] = value
    return labels


def get_label_color(key: str) -> str:
    """Colour used to show a label key."""
    return _LABEL_COLORS.get(key, "#666")


def _field(title: str, value: str) -> dict[str, Any]:
    return {
        "is_short": True,
        "text": {"tag": "lark_md", "content": f"{_ZWSP}**{title}**:\n{value}"},
    }


def build_rich_text_message(
    alertname: str,
    severity: str,
    description: str,
    env: str,
    starts_at: str,
    generator_url: str,
    other_labels: str,
    status: str,
    summary: str,
) -> dict[str, Any]:
    """Build the interactive card payload for one alert."""
    if status == "resolved":
        status_text, color, title_prefix = "告警恢复", "green", "✅"
    else:
        status_text, title_prefix = "告警通知", "⚠️"
        color = {"critical": "red", "warning": "orange"}.get(severity, "blue")

    return {
        "msg_type": "interactive",
        "card": {
            "header": {
                "title": {
                    "tag": "plain_text",
                    "content": f"{title_prefix}【{severity.upper()}】{status_text}",
                },
                "template": color,
            },
            "elements": [
                {
                    "tag": "div",
                    "fields": [
                        _field("告警名称", alertname),
                        _field("状态", f'<font color="{color}">{status_text}</font>'),
                    ],
                },
                {
                    "tag": "div",
                    "fields": [_field("环境", env), _field("时间", starts_at)],
                },
                {"tag": "markdown", "content": f"{_ZWSP}**描述**:\n{description}"},
                {"tag": "markdown", "content": f"{_ZWSP}**summary**:\n{summary}"},
                {
                    "tag": "markdown",
                    "content": f"{_ZWSP}**其他标签**:\n```\n{other_labels}\n```",
                },
                {"tag": "hr"},
                {
                    "tag": "action",
                    "actions": [
                        {
                            "tag": "button",
                            "text": {"tag": "plain_text", "content": "查看详情"},
                            "url": generator_url,
                            "type": "primary",
                        }
                    ],
                },
            ],
        },
    }


def build_label_components(labels_str: str) -> list[dict[str, Any]]:
    """Build grouped column sets showing the labels in ``labels_str``."""
    labels = parse_labels(labels_str)
    components: list[dict[str, Any]] = []
    for group_name, keys in _LABEL_GROUPS:
        fields = [
            {
                "tag": "div",
                "text": {
                    "tag": "lark_md",
                    "content": f"`{key}:` <font color='{get_label_color(key)}'>{labels[key]}</font>",
                },
            }
            for key in keys
            if key in labels
        ]
        if not fields:
            continue
        components.append(
            {
                "tag": "column_set",
                "flex_mode": "flow",
                "background_style": "grey",
                "columns": [
                    {
                        "tag": "column",
                        "width": "weighted",
                        "weight": 30,
                        "elements": [
                            {
                                "tag": "markdown",
                                "content": f"{_ZWSP}**{_ZWSP}{group_name}**{_ZWSP}",
                            }
                        ],
                    },
                    {"tag": "column", "width": "weighted", "weight": 70, "elements": fields},
                ],
            }
        )
    return components


@dataclass
class FeishuNotifier:
    """Sends alert cards to Lark bot hooks."""

    base_url: str = HOOK_BASE_URL
    timeout: float = 10.0

    def notify(self, msg: FsMsgInput) -> bool:
        """Send the alert card built from ``msg``; return False when its severity is skipped."""
        try:
            content = json.loads(json.dumps(msg.content))
        except (TypeError, ValueError) as exc:
            raise NotifyError(f"message content is not serialisable: {exc}") from exc
        logger.debug("alert data: %s", content)

        data = content.get("data") if isinstance(content, dict) else None
        if not isinstance(data, dict):
            raise NotifyError("data field missing or not in expected format")

        template_variable = data.get("template_variable")
        if not isinstance(template_variable, dict):
            logger.error("template_variable field missing or not in expected format")
            template_variable = {}

        severity = extract_field(template_variable, "severity")
        payload = build_rich_text_message(
            alertname=extract_field(template_variable, "alertname"),
            severity=severity,
            description=extract_field(template_variable, "description"),
            env=extract_field(template_variable, "env"),
            starts_at=extract_field(template_variable, "startsAt"),
            generator_url=extract_field(template_variable, "generatorURL"),
            other_labels=extract_other_labels(template_variable),
            status=extract_field(template_variable, "status"),
            summary=extract_field(template_variable, "summary"),
        )

        if severity not in _NOTIFY_SEVERITIES:
            return False
        self.send(payload, msg.hook)
        return True

    def send(self, payload: Mapping[str, Any], hook: str) -> None:
        """POST ``payload`` as JSON to the bot hook ``hook``."""
        try:
            body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise NotifyError(f"payload is not serialisable: {exc}") from exc
        try:
            request = urllib.request.Request(
                self.base_url + hook,
                data=body,
                method="POST",
                headers={"Content-Type": "application/json"},
            )
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                response.read()
        except urllib.error.HTTPError as exc:
            logger.warning("lark hook answered with status %s", exc.code)
        except (urllib.error.URLError, OSError, ValueError) as exc:
            logger.error("request to lark failed: %s", exc)
            raise NotifyError(f"request to lark failed: {exc}") from exc