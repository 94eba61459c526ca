"""Robot set-up over Bluetooth: pairing, Wi-Fi, updates and log retrieval."""

from __future__ import annotations

import os
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from .rpcstatus import Code, RpcError

OTA_STATUS_MESSAGES: dict[int, str] = {
    1: "unknown status",
    2: "ota in progress",
    3: "ota completed",
    4: "rebooting",
    5: "ota error",
    10: "unknown system error",
    200: "unexpected tar contents",
    201: "unhandled manifest version or feature",
    202: "boot control hal failure",
    203: "could not open url",
    204: "invalid file format",
    205: "decompress error",
    206: "block error",
    207: "imgdiff error",
    208: "i/o error",
    209: "signature validation error",
    210: "decryption error",
    211: "wrong base version",
    212: "subprocess exception",
    213: "wrong serial number",
    214: "dev/prod mismatch",
    215: "socket timeout error",
    216: "downgrade not allowed",
}

WIFI_CONNECT_TIMEOUT = 5


def translate_status(code: int) -> str:
    """Return the description of an update status code."""
    return OTA_STATUS_MESSAGES.get(code, "other exception")


class Status(IntEnum):
    """State of the Bluetooth session with a robot."""

    UNKNOWN = 0
    NOT_CONNECTED = 1
    CONNECTED = 2
    AUTHORIZED = 3
    AUTHENTICATED = 4
    BUSY = 5


@dataclass(frozen=True)
class Device:
    """A robot found by a Bluetooth scan."""

    id: int
    name: str
    address: str


@dataclass(frozen=True)
class WifiNetwork:
    """A Wi-Fi network seen by the robot."""

    wifi_ssid: str
    signal_strength: int
    auth_type: int
    hidden: bool


@dataclass(frozen=True)
class VectorSettings:
    """User settings sent to the robot."""

    timezone: str = ""
    default_location: str = ""
    locale: str = ""
    allow_data_analytics: bool = False
    metric_distance: bool = False
    metric_temperature: bool = False
    alexa_opt_in: bool = False
    button_wakeword: int = 0
    clock_24_hour: bool = False


@dataclass(frozen=True)
class StatusReport:
    """The session state together with what the robot reports about itself."""

    status: Status
    wifi_ssid: str
    version: str
    esn: str


@dataclass(frozen=True)
class WifiConnectResult:
    """Outcome of asking the robot to join a Wi-Fi network."""

    state: int
    result: int


_BLOCKED_FOR_LOGS = frozenset({Status.UNKNOWN, Status.NOT_CONNECTED, Status.BUSY})


class Bluey:
    """Drives one Bluetooth session with a robot.

    ``connection_factory`` is called with ``log_directory`` and
    ``status_queue`` keywords and must return a connection object.
    """

    def __init__(
        self,
        directory: str | os.PathLike[str] = ".",
        status_queue: Any = None,
        connection_factory: Callable[..., Any] | None = None,
    ) -> None:
        self.directory = os.fspath(directory)
        self.status_queue = queue.Queue() if status_queue is None else status_queue
        self._factory = connection_factory
        self._conn: Any = None
        self._status = Status.NOT_CONNECTED

    @property
    def state(self) -> Status:
        """The current session state."""
        return self._status

    def _wrong_state(self) -> RpcError:
        return RpcError(
            Code.INVALID_ARGUMENT,
            f"you may not run this command with connection of type {self._status.name}",
        )

    def _require(self, *allowed: Status) -> None:
        if self._status not in allowed:
            raise self._wrong_state()

    def init(self) -> Status:
        """Open the Bluetooth adapter."""
        self._require(Status.NOT_CONNECTED, Status.UNKNOWN)
        if self._factory is None:
            raise RpcError(Code.UNKNOWN, "no bluetooth connection factory configured")
        try:
            conn = self._factory(
                log_directory=self.directory, status_queue=self.status_queue
            )
        except Exception as exc:
            raise RpcError(Code.UNKNOWN, str(exc)) from exc
        self._conn = conn
        self._status = Status.CONNECTED
        return self._status

    def close(self) -> None:
        """Shut the Bluetooth connection."""
        if self._conn is None:
            raise RpcError(Code.INVALID_ARGUMENT, "no active connection")
        try:
            self._conn.close()
        except Exception as exc:
            raise RpcError(Code.INTERNAL, f"cannot close connection: {exc}") from exc
        self._status = Status.NOT_CONNECTED
        self._conn = None

    def connect(self, device_id: int) -> Status:
        """Connect to the robot with the given scan id."""
        self._require(Status.CONNECTED)
        try:
            self._conn.connect(int(device_id))
        except Exception as exc:
            raise RpcError(Code.UNKNOWN, str(exc)) from exc
        self._status = Status.CONNECTED
        return self._status

    def scan(self) -> list[Device]:
        """Return the robots in range."""
        self._require(Status.CONNECTED)
        try:
            found = self._conn.scan()
        except Exception as exc:
            raise RpcError(Code.UNAVAILABLE, str(exc)) from exc
        return [Device(int(d.id), d.name, d.address) for d in found]

    def send_pin(self, pin: str) -> None:
        """Send the pin shown on the robot's screen."""
        self._require(Status.CONNECTED)
        try:
            self._conn.send_pin(pin)
        except Exception as exc:
            raise RpcError(Code.UNKNOWN, "invalid pin") from exc
        try:
            self._conn.get_status()
        except Exception as exc:
            raise RpcError(Code.UNKNOWN, str(exc)) from exc
        self._status = Status.AUTHORIZED

    def auth(self, token: str) -> bool:
        """Send the cloud token to the robot."""
        self._require(Status.AUTHORIZED)
        try:
            success = bool(self._conn.auth(token))
        except Exception as exc:
            raise RpcError(Code.UNKNOWN, str(exc)) from exc
        if not success:
            raise RpcError(Code.UNAUTHENTICATED, "authentication failed")
        self._status = Status.AUTHENTICATED
        return success

    def configure(self, settings: VectorSettings) -> None:
        """Send user settings to the robot."""
        self._require(Status.AUTHENTICATED)
        try:
            self._conn.configure_settings(settings)
        except Exception as exc:
            raise RpcError(Code.UNKNOWN, str(exc)) from exc

    def status(self) -> StatusReport:
        """Return the session state and the robot's own report."""
        self._require(Status.AUTHORIZED)
        try:
            report = self._conn.get_status()
        except Exception as exc:
            raise RpcError(Code.UNKNOWN, str(exc)) from exc
        return StatusReport(
            status=self._status,
            wifi_ssid=report.wifi_ssid,
            version=report.version,
            esn=report.esn,
        )

    def wifi_scan(self) -> list[WifiNetwork]:
        """Return the Wi-Fi networks the robot can see."""
        self._require(Status.AUTHORIZED)
        try:
            networks = self._conn.wifi_scan()
        except Exception as exc:
            raise RpcError(Code.UNAVAILABLE, str(exc)) from exc
        return [
            WifiNetwork(
                wifi_ssid=n.wifi_ssid,
                signal_strength=int(n.signal_strength),
                auth_type=int(n.auth_type),
                hidden=bool(n.hidden),
            )
            for n in networks
        ]

    def wifi_connect(self, ssid: str, password: str, auth_type: int) -> WifiConnectResult:
        """Ask the robot to join a Wi-Fi network."""
        self._require(Status.AUTHORIZED)
        try:
            result = self._conn.wifi_connect(
                ssid, password, WIFI_CONNECT_TIMEOUT, int(auth_type)
            )
        except Exception as exc:
            raise RpcError(Code.UNKNOWN, str(exc)) from exc
        return WifiConnectResult(state=int(result.state), result=int(result.result))

    def ota_start(self, url: str) -> threading.Thread:
        """Start an update download in the background; progress goes to the queue."""
        self._require(Status.AUTHORIZED)
        worker = threading.Thread(target=self._run_ota, args=(url,), daemon=True)
        worker.start()
        return worker

    def _run_ota(self, url: str) -> None:
        try:
            response = self._conn.ota_start(url)
        except Exception as exc:
            message = str(exc)
        else:
            message = translate_status(int(response.status))
        self.status_queue.put({"ota_status": {"error": message}})

    def ota_cancel(self) -> None:
        """Stop an update download."""
        self._require(Status.AUTHORIZED)
        try:
            self._conn.ota_cancel()
        except Exception as exc:
            raise RpcError(Code.UNKNOWN, str(exc)) from exc

    def fetch_logs(self) -> threading.Thread:
        """Download the robot's logs in the background."""
        if self._status in _BLOCKED_FOR_LOGS:
            raise RpcError(Code.UNKNOWN, self._wrong_state().message)
        worker = threading.Thread(target=self._download_logs, daemon=True)
        worker.start()
        return worker

    def _download_logs(self) -> None:
        previous = self._status
        self._status = Status.BUSY
        try:
            self._conn.download_logs()
        except Exception:
            pass
        finally:
            self._status = previous

    def list_logs(self) -> list[str]:
        """Return the names of the downloaded log files, sorted."""
        return sorted(os.listdir(self.directory))

    def delete_logs(self, name: str) -> None:
        """Delete one downloaded log file."""
        path = os.path.normpath(f"{self.directory}/{name}")
        try:
            os.remove(path)
        except OSError as exc:
            raise RpcError(Code.INTERNAL, f"cannot delete file path: {exc}") from exc