# larkalert

A small HTTP service that receives Prometheus Alertmanager webhook
notifications and forwards each alert to a Lark (Feishu) group bot as an
interactive message card.

## Installation

```
pip install .
```

The package needs nothing beyond the Python standard library. It runs on
Python 3.10 or later.

## Running the server

```
larkalert [--host HOST] [--port PORT]
```

By default the server listens on `0.0.0.0`, port 8000. It logs at INFO level
to standard error and stops on Ctrl-C. It has one endpoint:

```
POST /api/prometheus/fs?chat_id=<chat id>
```

The body is the JSON document that Alertmanager posts to webhook receivers.
The chat id may also be given as `chatId` or `ChatId`. The `hook` field of the
body chooses the Lark bot. Its value is the token that follows
`/open-apis/bot/v2/hook/` in the bot's webhook address. If the body has no
`hook` field, a `hook` query parameter is used instead.

Every answer is a JSON object with `code`, `message` and `data` keys:

| HTTP status | `code` | When |
|-------------|--------|------|
| 200 | 0 | all alerts were handled |
| 400 | 51 | an alert has no `status`, or no `labels.alertname` |
| 500 | 50 | the body is not JSON, or sending to Lark failed |
| 404 | 65 | any other path or method |

## Alertmanager configuration

```yaml
receivers:
  - name: lark
    webhook_configs:
      - url: "http://larkalert:8000/api/prometheus/fs?chat_id=oc_example"
```

## What gets sent

A card is built for every alert in the payload. It shows:

* the alert name and status;
* the `env` label;
* the start time, as `YYYY-MM-DD HH:MM:SS` in Asia/Shanghai time (a
  timestamp without an offset is taken as Shanghai time already);
* the `description` and `summary` annotations;
* all labels;
* a "查看详情" button that links to the alert's `generatorURL`.

The header colour depends on the alert:

* Resolved alerts have a green header.
* Firing alerts have a red header for `critical`, orange for `warning`, and
  blue otherwise.

Only alerts whose `severity` label is `critical`, `warning` or `resolved` are
delivered. Other alerts are skipped.

## Using it as a library

```python
from larkalert.controller import handle_prometheus_fs
from larkalert.feishu import FeishuNotifier

delivered = handle_prometheus_fs(body, chat_id="oc_example", hook="token", notifier=FeishuNotifier())
```

`handle_prometheus_fs` returns the number of alerts that were delivered. It
raises `larkalert.feishu.NotifyError` when a message cannot be sent. It raises
`larkalert.prometheus.AlertParseError` when the body is not valid JSON.

The modules can also be used on their own:

* `larkalert.prometheus.get_raw_alert_info` splits a raw webhook body into
  `RawAlert` objects. `RawAlert.get("labels.env")` reads a value by its dotted
  path.
* `larkalert.controller.build_message_input` turns one `RawAlert` into an
  `FsMsgInput`. `larkalert.controller.format_starts_at` converts a timestamp.
* `larkalert.feishu.build_rich_text_message` builds the card payload without
  sending anything.
* `larkalert.feishu.build_label_components` groups labels into column sets.
  It reads the label text that `extract_other_labels` produces.
* `FeishuNotifier.notify` decides whether to send a message and sends it.
  `FeishuNotifier.send` posts any payload to a hook. Both `base_url` and
  `timeout` can be set.
* `larkalert.server.create_server` returns a `ThreadingHTTPServer` that has
  not been started yet. Any object with a `notify(msg)` method can be passed
  to it as the notifier.

## Limitations

* Lark's answer is not checked. An HTTP error status from the hook is only
  logged as a warning. Only network failures raise `NotifyError`.
* `FsDepartmentInput`, `FsDepartmentOutput`, `PrometheusReportListOutput` and
  `PrometheusListAlertnameKeyOutput` in `larkalert.models` are plain data
  classes. The package does not look up the Lark department directory, and
  it does not store alert reports anywhere.
* Messages go only to group bot webhooks. Nothing is sent to individual users.

## Development

```
pip install -e ".[test]"
pytest
```