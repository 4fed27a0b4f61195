"""Data models for Prometheus webhook requests and Lark messages."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


def _normalise(name: str) -> str:
    return name.replace("_", "").replace("-", "").lower()


def _lookup(data: Mapping[str, Any], name: str, default: Any = None) -> Any:
    """Find a key, ignoring case, underscores and dashes."""
    if name in data:
        return data[name]
    wanted = _normalise(name)
    for key, value in data.items():
        if isinstance(key, str) and _normalise(key) == wanted:
            return value
    return default


def _text(data: Mapping[str, Any], name: str) -> str:
    value = _lookup(data, name)
    return "" if value is None else str(value)


def _mapping(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = _lookup(data, name)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"{name} must be an object")
    return value


@dataclass
class Labels:
    """Labels of a Prometheus alert."""

    alertname: str
    env: str = ""
    namespace: str = ""
    severity: str = ""


@dataclass
class Annotations:
    """Annotations of a Prometheus alert."""

    description: str = ""
    summary: str = ""


@dataclass
class Alert:
    """A single alert as sent by Alertmanager."""

    status: str
    labels: Labels
    annotations: Annotations = field(default_factory=Annotations)
    starts_at: str = ""
    ends_at: str = ""
    generator_url: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Alert:
        """Build an alert from decoded JSON, checking required fields."""
        if not isinstance(data, Mapping):
            raise ValueError("alert must be an object")
        status = _text(data, "status")
        if not status:
            raise ValueError("alert status is required")
        raw_labels = _mapping(data, "labels")
        alertname = _text(raw_labels, "alertname")
        if not alertname:
            raise ValueError("alert label alertname is required")
        raw_annotations = _mapping(data, "annotations")
        return cls(
            status=status,
            labels=Labels(
                alertname=alertname,
                env=_text(raw_labels, "env"),
                namespace=_text(raw_labels, "namespace"),
                severity=_text(raw_labels, "severity"),
            ),
            annotations=Annotations(
                description=_text(raw_annotations, "description"),
                summary=_text(raw_annotations, "summary"),
            ),
            starts_at=_text(data, "starts_at"),
            ends_at=_text(data, "ends_at"),
            generator_url=_text(data, "generator_url"),
        )


@dataclass
class PrometheusFSRequest:
    """Webhook request asking for alerts to be pushed to a Lark chat."""

    chat_id: str = ""
    alerts: list[Alert] = field(default_factory=list)
    external_url: str = ""
    hook: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], chat_id: str = "") -> PrometheusFSRequest:
        """Build a request from the decoded body and the chat_id query value."""
        if not isinstance(data, Mapping):
            raise ValueError("request body must be an object")
        raw_alerts = _lookup(data, "alerts")
        if raw_alerts is None:
            raw_alerts = []
        if not isinstance(raw_alerts, list):
            raise ValueError("alerts must be a list")
        return cls(
            chat_id=chat_id,
            alerts=[Alert.from_dict(item) for item in raw_alerts],
            external_url=_text(data, "external_url"),
            hook=_text(data, "hook"),
        )


@dataclass
class FsMsgInput:
    """A message to be delivered through a Lark bot hook."""

    hook: str
    receive_id_type: str
    receive_id: str
    msg_type: str
    content: dict[str, Any] = field(default_factory=dict)


@dataclass
class FsDepartmentInput:
    """Credentials and root department used to list departments."""

    app_id: str
    app_secret: str
    top_open_department_id: str = ""
    top_department_id: str = ""
    top_department_name: str = ""


@dataclass
class FsDepartmentOutput:
    """A department as returned by the Lark directory."""

    open_department_id: str
    department_id: str
    name: str
    leader_user_id: str = ""
    parent_department_id: str = ""
    has_list_child: bool = False


@dataclass
class PrometheusReportListOutput:
    """A stored alert report entry."""

    id: int
    alertname: str
    k8s_cluster: str = ""
    level: str = ""
    start_time: datetime | None = None
    labels: dict[str, str] = field(default_factory=dict)


@dataclass
class PrometheusListAlertnameKeyOutput:
    """An alert name with its identifier."""

    id: int
    alertname: str