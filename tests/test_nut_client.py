from __future__ import annotations

import socket
import threading
from typing import Dict, List

import pytest

from sources.nut import NutConnectionError, NutResponseError, NutServerClient

VARIABLES = {
    "battery.charge": "100",
    "ups.status": "OL CHRG",
    "ups.mfr": 'Quote "Co"',
}


class FakeUpsd:
    """Single-connection upsd speaking just enough of the protocol."""

    def __init__(
        self, variables: Dict[str, str], password: str = "secret", starttls: bool = False
    ) -> None:
        self.variables = variables
        self.password = password
        self.starttls = starttls
        self.received: List[str] = []
        self._server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._server.bind(("127.0.0.1", 0))
        self._server.listen(1)
        self.port = self._server.getsockname()[1]
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _reply(self, line: str) -> str:
        parts = line.split(" ")
        if parts[0] == "VER":
            return "Network UPS Tools upsd 2.8.0"
        if parts[0] == "STARTTLS":
            return "OK STARTTLS" if self.starttls else "ERR FEATURE-NOT-CONFIGURED"
        if parts[0] == "USERNAME":
            return "OK"
        if parts[0] == "PASSWORD":
            return "OK" if line == f'PASSWORD "{self.password}"' else "ERR ACCESS-DENIED"
        if parts[:2] == ["GET", "VAR"] and len(parts) == 4:
            ups, name = parts[2], parts[3]
            if ups != "ups1":
                return "ERR UNKNOWN-UPS"
            if name not in self.variables:
                return "ERR VAR-NOT-SUPPORTED"
            value = self.variables[name].replace("\\", "\\\\").replace('"', '\\"')
            return f'VAR {ups} {name} "{value}"'
        if parts[0] == "LOGOUT":
            return "OK Goodbye"
        return "ERR UNKNOWN-COMMAND"

    def _serve(self) -> None:
        try:
            conn, _ = self._server.accept()
        except OSError:
            return
        with conn, conn.makefile("rb") as reader:
            for raw in reader:
                line = raw.decode("utf-8").rstrip("\n")
                self.received.append(line)
                try:
                    conn.sendall((self._reply(line) + "\n").encode("utf-8"))
                except OSError:
                    break
                if line == "LOGOUT":
                    break

    def wait_done(self) -> None:
        self._thread.join(timeout=1.0)

    def close(self) -> None:
        self._server.close()
        self.wait_done()


@pytest.fixture()
def upsd():
    server = FakeUpsd(VARIABLES)
    yield server
    server.close()


def test_query_returns_requested_variables(upsd: FakeUpsd) -> None:
    connection = NutServerClient(timeout=1.0).connect("127.0.0.1", upsd.port)
    try:
        values = connection.query("ups1", ["battery.charge", "ups.status", "ups.mfr"])
    finally:
        connection.close()

    assert values == VARIABLES


def test_unsupported_variables_are_omitted(upsd: FakeUpsd) -> None:
    connection = NutServerClient(timeout=1.0).connect("127.0.0.1", upsd.port)
    try:
        values = connection.query("ups1", ["battery.charge", "input.voltage"])
    finally:
        connection.close()

    assert values == {"battery.charge": "100"}


def test_login_sends_credentials(upsd: FakeUpsd) -> None:
    connection = NutServerClient(timeout=1.0).connect(
        "127.0.0.1", upsd.port, username="monitor", password="secret"
    )
    assert connection.server_version().startswith("Network UPS Tools")
    connection.close()
    upsd.wait_done()

    assert upsd.received[:2] == ['USERNAME "monitor"', 'PASSWORD "secret"']
    assert upsd.received[-1] == "LOGOUT"


def test_rejected_login_is_a_connection_error(upsd: FakeUpsd) -> None:
    with pytest.raises(NutConnectionError, match="ACCESS-DENIED"):
        NutServerClient(timeout=1.0).connect(
            "127.0.0.1", upsd.port, username="monitor", password="wrong"
        )


def test_get_var_error_code(upsd: FakeUpsd) -> None:
    connection = NutServerClient(timeout=1.0).connect("127.0.0.1", upsd.port)
    try:
        with pytest.raises(NutResponseError) as excinfo:
            connection.get_var("ups9", "battery.charge")
    finally:
        connection.close()

    assert excinfo.value.code == "UNKNOWN-UPS"


def test_unreachable_server_raises_connection_error() -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as spare:
        spare.bind(("127.0.0.1", 0))
        port = spare.getsockname()[1]

    with pytest.raises(NutConnectionError):
        NutServerClient(timeout=0.5).connect("127.0.0.1", port)


def test_closed_connection_refuses_commands(upsd: FakeUpsd) -> None:
    connection = NutServerClient(timeout=1.0).connect("127.0.0.1", upsd.port)
    connection.close()

    assert connection.closed
    with pytest.raises(NutConnectionError):
        connection.query("ups1", ["battery.charge"])


class PassThroughContext:
    """Stands in for an SSLContext; the fake upsd keeps speaking plain text."""

    def __init__(self) -> None:
        self.server_hostnames: List[str] = []

    def wrap_socket(self, sock: socket.socket, server_hostname: str) -> socket.socket:
        self.server_hostnames.append(server_hostname)
        return sock


def test_starttls_upgrades_before_login() -> None:
    upsd = FakeUpsd(VARIABLES, starttls=True)
    context = PassThroughContext()
    try:
        connection = NutServerClient(timeout=1.0, ssl_context=context).connect(
            "127.0.0.1", upsd.port, tls=True, username="monitor", password="secret"
        )
        values = connection.query("ups1", ["battery.charge"])
        connection.close()
        upsd.wait_done()
    finally:
        upsd.close()

    assert values == {"battery.charge": "100"}
    assert context.server_hostnames == ["127.0.0.1"]
    assert upsd.received[:3] == ["STARTTLS", 'USERNAME "monitor"', 'PASSWORD "secret"']


def test_starttls_refused_is_a_connection_error(upsd: FakeUpsd) -> None:
    context = PassThroughContext()

    with pytest.raises(NutConnectionError, match="FEATURE-NOT-CONFIGURED"):
        NutServerClient(timeout=1.0, ssl_context=context).connect(
            "127.0.0.1", upsd.port, tls=True
        )

    assert context.server_hostnames == []
