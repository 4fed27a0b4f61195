"""Receive Prometheus Alertmanager webhooks and forward alerts to Lark/Feishu bots."""

__version__ = "0.1.0"