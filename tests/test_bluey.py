import queue
import threading
from types import SimpleNamespace

import pytest

from escapepod.bluey import (
    Bluey,
    Device,
    Status,
    StatusReport,
    VectorSettings,
    WifiConnectResult,
    WifiNetwork,
    translate_status,
)
from escapepod.rpcstatus import Code, RpcError


class FakeConnection:
    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.calls = []
        self.fail = set()
        self.auth_ok = True
        self.ota_status = 3
        self.release = threading.Event()
        self.started = threading.Event()
        self.devices = [SimpleNamespace(id=7, name="Vector-A1", address="aa:bb")]

    def _call(self, name, *args):
        self.calls.append((name, args))
        if name in self.fail:
            raise RuntimeError(f"{name} failed")

    def close(self):
        self._call("close")

    def connect(self, device_id):
        self._call("connect", device_id)

    def scan(self):
        self._call("scan")
        return self.devices

    def send_pin(self, pin):
        self._call("send_pin", pin)

    def get_status(self):
        self._call("get_status")
        return SimpleNamespace(wifi_ssid="home", version="1.2", esn="00000000")

    def auth(self, token):
        self._call("auth", token)
        return self.auth_ok

    def configure_settings(self, settings):
        self._call("configure_settings", settings)

    def wifi_scan(self):
        self._call("wifi_scan")
        return [SimpleNamespace(wifi_ssid="home", signal_strength=70, auth_type=6, hidden=False)]

    def wifi_connect(self, ssid, password, timeout, auth_type):
        self._call("wifi_connect", ssid, password, timeout, auth_type)
        return SimpleNamespace(state=1, result=2)

    def ota_start(self, url):
        self._call("ota_start", url)
        return SimpleNamespace(status=self.ota_status)

    def ota_cancel(self):
        self._call("ota_cancel")

    def download_logs(self):
        self.started.set()
        self.release.wait(5)
        self._call("download_logs")


@pytest.fixture
def made():
    return []


@pytest.fixture
def bluey(tmp_path, made):
    def factory(**kwargs):
        conn = FakeConnection(**kwargs)
        made.append(conn)
        return conn

    return Bluey(tmp_path, queue.Queue(), factory)


def authorized(bluey):
    bluey.init()
    bluey.send_pin("123456")
    return bluey


def test_translate_status_known_and_unknown():
    assert translate_status(3) == "ota completed"
    assert translate_status(216) == "downgrade not allowed"
    assert translate_status(999) == "other exception"


def test_init_passes_directory_and_queue(bluey, made, tmp_path):
    assert bluey.state is Status.NOT_CONNECTED
    assert bluey.init() is Status.CONNECTED
    assert made[0].kwargs["log_directory"] == str(tmp_path)
    assert made[0].kwargs["status_queue"] is bluey.status_queue


def test_init_twice_is_rejected(bluey):
    bluey.init()
    with pytest.raises(RpcError) as info:
        bluey.init()
    assert info.value.code is Code.INVALID_ARGUMENT
    assert "CONNECTED" in info.value.message


def test_init_without_factory_fails(tmp_path):
    with pytest.raises(RpcError) as info:
        Bluey(tmp_path).init()
    assert info.value.code is Code.UNKNOWN


def test_init_factory_error_is_unknown(tmp_path):
    def factory(**kwargs):
        raise RuntimeError("no adapter")

    b = Bluey(tmp_path, None, factory)
    with pytest.raises(RpcError) as info:
        b.init()
    assert info.value.code is Code.UNKNOWN
    assert info.value.message == "no adapter"
    assert b.state is Status.NOT_CONNECTED


def test_scan_requires_connection(bluey):
    with pytest.raises(RpcError) as info:
        bluey.scan()
    assert info.value.code is Code.INVALID_ARGUMENT
    assert info.value.message.endswith("NOT_CONNECTED")


def test_scan_returns_devices(bluey):
    bluey.init()
    assert bluey.scan() == [Device(7, "Vector-A1", "aa:bb")]


def test_scan_error_is_unavailable(bluey, made):
    bluey.init()
    made[0].fail.add("scan")
    with pytest.raises(RpcError) as info:
        bluey.scan()
    assert info.value.code is Code.UNAVAILABLE


def test_connect_passes_id(bluey, made):
    bluey.init()
    assert bluey.connect(7) is Status.CONNECTED
    assert ("connect", (7,)) in made[0].calls


def test_send_pin_authorizes(bluey, made):
    authorized(bluey)
    assert bluey.state is Status.AUTHORIZED
    assert [c[0] for c in made[0].calls] == ["send_pin", "get_status"]


def test_send_pin_failure(bluey, made):
    bluey.init()
    made[0].fail.add("send_pin")
    with pytest.raises(RpcError) as info:
        bluey.send_pin("000000")
    assert info.value.code is Code.UNKNOWN
    assert info.value.message == "invalid pin"
    assert bluey.state is Status.CONNECTED


def test_auth_success_and_failure(bluey, made):
    authorized(bluey)
    made[0].auth_ok = False
    with pytest.raises(RpcError) as info:
        bluey.auth("token")
    assert info.value.code is Code.UNAUTHENTICATED
    assert info.value.message == "authentication failed"
    made[0].auth_ok = True
    assert bluey.auth("token") is True
    assert bluey.state is Status.AUTHENTICATED


def test_configure_requires_authentication(bluey, made):
    authorized(bluey)
    settings = VectorSettings(timezone="UTC", locale="en-US", clock_24_hour=True)
    with pytest.raises(RpcError) as info:
        bluey.configure(settings)
    assert info.value.code is Code.INVALID_ARGUMENT
    bluey.auth("token")
    bluey.configure(settings)
    assert ("configure_settings", (settings,)) in made[0].calls


def test_status_report(bluey):
    authorized(bluey)
    assert bluey.status() == StatusReport(Status.AUTHORIZED, "home", "1.2", "00000000")


def test_wifi_scan_and_connect(bluey, made):
    authorized(bluey)
    assert bluey.wifi_scan() == [WifiNetwork("home", 70, 6, False)]
    password = "password"
    assert bluey.wifi_connect("home", password, 6) == WifiConnectResult(1, 2)
    assert ("wifi_connect", ("home", password, 5, 6)) in made[0].calls


def test_ota_start_reports_translated_status(bluey):
    authorized(bluey)
    bluey.ota_start("http://localhost/update.ota").join(5)
    assert bluey.status_queue.get(timeout=5) == {"ota_status": {"error": "ota completed"}}


def test_ota_start_reports_error(bluey, made):
    authorized(bluey)
    made[0].fail.add("ota_start")
    bluey.ota_start("http://localhost/update.ota").join(5)
    assert bluey.status_queue.get(timeout=5) == {"ota_status": {"error": "ota_start failed"}}


def test_ota_cancel_error(bluey, made):
    authorized(bluey)
    made[0].fail.add("ota_cancel")
    with pytest.raises(RpcError) as info:
        bluey.ota_cancel()
    assert info.value.code is Code.UNKNOWN


def test_fetch_logs_marks_busy_then_restores(bluey, made):
    authorized(bluey)
    worker = bluey.fetch_logs()
    assert made[0].started.wait(5)
    assert bluey.state is Status.BUSY
    with pytest.raises(RpcError) as info:
        bluey.fetch_logs()
    assert info.value.code is Code.UNKNOWN
    made[0].release.set()
    worker.join(5)
    assert bluey.state is Status.AUTHORIZED


def test_fetch_logs_needs_connection(bluey):
    with pytest.raises(RpcError) as info:
        bluey.fetch_logs()
    assert info.value.code is Code.UNKNOWN


def test_close(bluey):
    with pytest.raises(RpcError) as info:
        bluey.close()
    assert info.value.code is Code.INVALID_ARGUMENT
    bluey.init()
    bluey.close()
    assert bluey.state is Status.NOT_CONNECTED
    assert bluey.init() is Status.CONNECTED


def test_close_error_is_internal(bluey, made):
    bluey.init()
    made[0].fail.add("close")
    with pytest.raises(RpcError) as info:
        bluey.close()
    assert info.value.code is Code.INTERNAL
    assert info.value.message.startswith("cannot close connection: ")


def test_list_and_delete_logs(bluey, tmp_path):
    (tmp_path / "b.log").write_text("x")
    (tmp_path / "a.log").write_text("y")
    assert bluey.list_logs() == ["a.log", "b.log"]
    bluey.delete_logs("a.log")
    assert bluey.list_logs() == ["b.log"]
    with pytest.raises(RpcError) as info:
        bluey.delete_logs("a.log")
    assert info.value.code is Code.INTERNAL


def test_list_logs_missing_directory(tmp_path):
    with pytest.raises(OSError):
        Bluey(tmp_path / "missing").list_logs()