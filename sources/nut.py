"""Minimal Network UPS Tools (upsd) client.

Speaks the line-based NUT network protocol over TCP: optional STARTTLS,
optional USERNAME/PASSWORD login, and ``GET VAR`` queries.

Example:
    >>> client = NutServerClient(timeout=1.0)
    >>> conn = client.connect("localhost", 3493)
    >>> conn.query("ups1", ["battery.charge", "ups.status"])
    {'battery.charge': '100', 'ups.status': 'OL'}
"""

from __future__ import annotations

import logging
import socket
import ssl
from typing import BinaryIO, Dict, Iterable, Optional

DEFAULT_PORT = 3493

logger = logging.getLogger(__name__)


class NutError(Exception):
    """Base class for NUT client failures."""


class NutConnectionError(NutError):
    """The server could not be reached, refused login, or dropped the link."""


class NutResponseError(NutError):
    """The server answered a single request with ``ERR <code>``."""

    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _unquote(value: str) -> str:
    if len(value) < 2 or not (value.startswith('"') and value.endswith('"')):
        return value
    out = []
    chars = iter(value[1:-1])
    for char in chars:
        if char == "\\":
            out.append(next(chars, ""))
        else:
            out.append(char)
    return "".join(out)


class NutConnection:
    """An open session with one upsd server. Not safe to share across threads."""

    def __init__(self, sock: socket.socket, host: str, port: int) -> None:
        self.host = host
        self.port = port
        self._sock = sock
        self._reader: BinaryIO = sock.makefile("rb")
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def command(self, line: str) -> str:
        """Send one request line and return the single response line."""
        if self._closed:
            raise NutConnectionError(f"Connection to {self.host}:{self.port} is closed.")
        try:
            self._sock.sendall(line.encode("utf-8") + b"\n")
            raw = self._reader.readline()
        except OSError as exc:
            self.close()
            raise NutConnectionError(
                f"Lost connection to {self.host}:{self.port}: {exc}"
            ) from exc
        if not raw:
            self.close()
            raise NutConnectionError(f"Server {self.host}:{self.port} closed the connection.")
        response = raw.decode("utf-8", errors="replace").rstrip("\r\n")
        if response.startswith("ERR "):
            raise NutResponseError(response[4:].strip())
        return response

    def server_version(self) -> str:
        return self.command("VER")

    def get_var(self, ups_name: str, variable: str) -> str:
        response = self.command(f"GET VAR {ups_name} {variable}")
        prefix = f"VAR {ups_name} {variable} "
        if not response.startswith(prefix):
            raise NutResponseError(f"UNEXPECTED-RESPONSE {response}")
        return _unquote(response[len(prefix):])

    def query(self, ups_name: str, variable_names: Iterable[str]) -> Dict[str, str]:
        """Fetch the requested variables; unsupported ones are left out.

        Raises:
            NutConnectionError: If the connection fails part way through.
        """
        values: Dict[str, str] = {}
        for variable in variable_names:
            try:
                values[variable] = self.get_var(ups_name, variable)
            except NutResponseError as exc:
                logger.debug(
                    "Variable %s unavailable on %s: %s",
                    variable,
                    ups_name,
                    exc.code,
                    extra={"ups_name": ups_name, "reason": exc.code},
                )
        return values

    def start_tls(self, context: ssl.SSLContext) -> None:
        response = self.command("STARTTLS")
        if not response.startswith("OK"):
            raise NutConnectionError(f"STARTTLS refused by {self.host}:{self.port}: {response}")
        try:
            self._reader.close()
            self._sock = context.wrap_socket(self._sock, server_hostname=self.host)
        except (OSError, ssl.SSLError) as exc:
            self.close()
            raise NutConnectionError(
                f"TLS handshake with {self.host}:{self.port} failed: {exc}"
            ) from exc
        self._reader = self._sock.makefile("rb")

    def login(self, username: str, password: Optional[str]) -> None:
        try:
            self.command(f"USERNAME {_quote(username)}")
            if password is not None:
                self.command(f"PASSWORD {_quote(password)}")
        except NutResponseError as exc:
            self.close()
            raise NutConnectionError(
                f"Login to {self.host}:{self.port} as {username!r} failed: {exc.code}"
            ) from exc

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._sock.sendall(b"LOGOUT\n")
        except OSError:
            pass
        try:
            self._reader.close()
        finally:
            self._sock.close()


class NutServerClient:
    """Factory for :class:`NutConnection` objects with a shared timeout."""

    def __init__(self, timeout: float = 1.0, ssl_context: Optional[ssl.SSLContext] = None) -> None:
        self.timeout = timeout
        self._ssl_context = ssl_context

    def connect(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        tls: bool = False,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> NutConnection:
        try:
            sock = socket.create_connection((host, port), timeout=self.timeout)
        except OSError as exc:
            raise NutConnectionError(f"Cannot connect to {host}:{port}: {exc}") from exc

        connection = NutConnection(sock, host, port)
        try:
            if tls:
                connection.start_tls(self._ssl_context or ssl.create_default_context())
            # Read-only queries work without auth; only log in when both are set.
            if username and password is not None:
                connection.login(username, password)
        except NutResponseError as exc:
            connection.close()
            raise NutConnectionError(f"Handshake with {host}:{port} failed: {exc.code}") from exc
        except NutConnectionError:
            connection.close()
            raise
        return connection
