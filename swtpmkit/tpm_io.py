"""Reading TPM commands from and writing responses to a client connection."""

from __future__ import annotations

import logging
import os
import select
import socket
from typing import Iterable

from .debug import hex_dump_lines

TPM_REQ_HEADER_SIZE = 10
"""Size of a TPM request header: tag (2), size (4) and ordinal (4)."""

_log = logging.getLogger(__name__)


class TpmIOError(OSError):
    """Reading from or writing to the TPM client failed."""


def _log_buffer(label: str, data: bytes) -> None:
    if not _log.isEnabledFor(logging.DEBUG):
        return
    _log.debug("%s length %d", label, len(data))
    for line in hex_dump_lines(" ", data):
        _log.debug("%s", line)


class Connection:
    """A connection to a TPM client over a file descriptor.

    The descriptor is owned by the connection and closed on disconnect.
    A descriptor of -1 marks a closed connection.
    """

    def __init__(self, fd: int = -1) -> None:
        self.fd = fd

    @property
    def connected(self) -> bool:
        return self.fd >= 0

    def fileno(self) -> int:
        return self.fd

    def read(self, max_size: int) -> bytes:
        """Read one TPM command of at most max_size bytes.

        Reading continues until at least a full request header has
        arrived. Raises TpmIOError if the connection is closed, broken
        or reaches end of file first.
        """
        if self.fd < 0:
            raise TpmIOError("connection is not open")
        buffer = bytearray()
        while len(buffer) < TPM_REQ_HEADER_SIZE:
            remaining = max_size - len(buffer)
            if remaining <= 0:
                raise TpmIOError("buffer too small for a TPM request header")
            try:
                chunk = os.read(self.fd, remaining)
            except OSError as exc:
                raise TpmIOError(exc.errno, f"read failed: {exc.strerror}") from exc
            if not chunk:
                raise TpmIOError("connection closed by peer")
            buffer += chunk
        data = bytes(buffer)
        _log_buffer(" SWTPM_IO_Read:", data)
        return data

    def write(self, parts: Iterable[bytes]) -> None:
        """Write all parts, in order, to the client."""
        chunks = [bytes(part) for part in parts]
        if len(chunks) > 1:
            _log_buffer(" SWTPM_IO_Write:", chunks[1])
        elif chunks:
            _log_buffer(" SWTPM_IO_Write:", chunks[0])
        if self.fd < 0:
            raise TpmIOError(f"connection not open, fd {self.fd}")
        view = memoryview(b"".join(chunks))
        total = len(view)
        while view:
            try:
                written = os.write(self.fd, view)
            except OSError as exc:
                raise TpmIOError(exc.errno, f"write failed: {exc.strerror}") from exc
            if written <= 0:
                raise TpmIOError(
                    f"Failed to write all bytes {total - len(view)} != {total}"
                )
            view = view[written:]

    def disconnect(self) -> None:
        """Close the connection; doing so twice is harmless."""
        if self.fd >= 0:
            try:
                os.close(self.fd)
            except OSError:
                pass
            self.fd = -1

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, *exc_info) -> None:
        self.disconnect()

    def __repr__(self) -> str:
        return f"Connection(fd={self.fd})"


def accept_connection(sock_fd: int, notify_fd: int) -> Connection:
    """Wait for a client on the listening socket sock_fd and accept it.

    If notify_fd becomes readable first, waiting is abandoned and
    TpmIOError is raised. The listening socket stays open.
    """
    while True:
        readable, _, _ = select.select([sock_fd, notify_fd], [], [])
        if notify_fd in readable:
            raise TpmIOError("interrupted by notification")
        if sock_fd in readable:
            break

    listener = socket.socket(fileno=sock_fd)
    try:
        client, _addr = listener.accept()
    except OSError as exc:
        raise TpmIOError(exc.errno, f"accept() failed: {exc.strerror}") from exc
    finally:
        listener.detach()
    return Connection(client.detach())