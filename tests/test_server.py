import json
import threading
import urllib.error
import urllib.request
from http import HTTPStatus

import pytest

from larkalert import server as srv
from larkalert.feishu import NotifyError


ALERT = {
    "status": "firing",
    "labels": {"alertname": "HighCPU", "env": "prod", "severity": "critical"},
    "annotations": {"summary": "cpu high", "description": "cpu above 90%"},
    "startsAt": "2023-01-01T00:00:00Z",
    "generatorURL": "http://prometheus.example.com/graph",
}


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    def notify(self, msg):
        self.messages.append(msg)
        return True


class FailingNotifier:
    def notify(self, msg):
        raise NotifyError("lark unreachable")


def _start(notifier):
    server = srv.create_server("127.0.0.1", 0, notifier)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    return server, thread, f"http://{host}:{port}"


@pytest.fixture
def running():
    notifier = RecordingNotifier()
    server, thread, base = _start(notifier)
    yield base, notifier
    server.shutdown()
    server.server_close()
    thread.join()


@pytest.fixture
def failing():
    server, thread, base = _start(FailingNotifier())
    yield base
    server.shutdown()
    server.server_close()
    thread.join()


def _request(url, body=None, method="POST"):
    data = body.encode("utf-8") if isinstance(body, str) else body
    request = urllib.request.Request(
        url, data=data, method=method, headers={"Content-Type": "application/json"}
    )
    try:
        with urllib.request.urlopen(request, timeout=5) as response:
            return response.status, json.loads(response.read())
    except urllib.error.HTTPError as exc:
        return exc.code, json.loads(exc.read())


def test_post_forwards_alerts(running):
    base, notifier = running
    body = json.dumps({"alerts": [ALERT], "hook": "hook-id"})
    status, reply = _request(f"{base}{srv.ROUTE}?chat_id=oc_chat", body)
    assert status == HTTPStatus.OK
    assert reply == {"code": srv.CODE_OK, "message": "", "data": None}
    assert len(notifier.messages) == 1
    msg = notifier.messages[0]
    assert msg.hook == "hook-id"
    assert msg.receive_id == "oc_chat"
    assert msg.content["data"]["template_variable"]["alertname"] == "HighCPU"


def test_hook_from_query_when_body_has_none(running):
    base, notifier = running
    body = json.dumps({"alerts": [ALERT]})
    status, reply = _request(f"{base}{srv.ROUTE}?chat_id=c&hook=query-hook", body)
    assert status == HTTPStatus.OK
    assert reply["code"] == srv.CODE_OK
    assert notifier.messages[0].hook == "query-hook"


def test_invalid_json_is_internal_error(running):
    base, notifier = running
    status, reply = _request(f"{base}{srv.ROUTE}", "{broken")
    assert status == HTTPStatus.INTERNAL_SERVER_ERROR
    assert reply["code"] == srv.CODE_INTERNAL_ERROR
    assert notifier.messages == []


def test_missing_alertname_fails_validation(running):
    base, notifier = running
    alert = dict(ALERT, labels={"env": "prod"})
    status, reply = _request(f"{base}{srv.ROUTE}", json.dumps({"alerts": [alert]}))
    assert status == HTTPStatus.BAD_REQUEST
    assert reply["code"] == srv.CODE_VALIDATION_FAILED
    assert "alertname" in reply["message"]
    assert notifier.messages == []


def test_unknown_path_is_not_found(running):
    base, _ = running
    status, reply = _request(f"{base}/api/other", "{}")
    assert status == HTTPStatus.NOT_FOUND
    assert reply["code"] == srv.CODE_NOT_FOUND
    assert reply["message"] == HTTPStatus.NOT_FOUND.phrase


def test_get_on_route_is_not_found(running):
    base, _ = running
    status, reply = _request(f"{base}{srv.ROUTE}", method="GET")
    assert status == HTTPStatus.NOT_FOUND
    assert reply["code"] == srv.CODE_NOT_FOUND


def test_notify_failure_is_reported(failing):
    status, reply = _request(f"{failing}{srv.ROUTE}", json.dumps({"alerts": [ALERT]}))
    assert status == HTTPStatus.INTERNAL_SERVER_ERROR
    assert reply["code"] == srv.CODE_INTERNAL_ERROR
    assert "lark unreachable" in reply["message"]


def test_create_server_keeps_notifier():
    notifier = RecordingNotifier()
    server = srv.create_server("127.0.0.1", 0, notifier)
    try:
        assert server.notifier is notifier
        assert server.RequestHandlerClass is srv.AlertRequestHandler
    finally:
        server.server_close()


def test_main_help_exits_cleanly(capsys):
    with pytest.raises(SystemExit) as info:
        srv.main(["--help"])
    assert info.value.code == 0
    assert "--port" in capsys.readouterr().out