"""Parameters of the server socket that TPM clients connect to."""

from __future__ import annotations

import os
from enum import IntFlag
from typing import Optional


class ServerFlag(IntFlag):
    """Behaviour flags of the server socket."""

    DISCONNECT = 1 << 0
    FD_GIVEN = 1 << 1


class Server:
    """A server socket descriptor with its flags and optional socket path.

    Closing the server closes the descriptor, if any, and removes the
    socket file, if a path was given.
    """

    def __init__(
        self,
        fd: int,
        flags: ServerFlag | int = ServerFlag(0),
        sockpath: Optional[str] = None,
    ) -> None:
        self.fd = fd
        self.flags = ServerFlag(flags)
        self.sockpath = os.fspath(sockpath) if sockpath is not None else None

    def swap_fd(self, fd: int) -> int:
        """Replace the descriptor and return the previous one."""
        old, self.fd = self.fd, fd
        return old

    def close(self) -> None:
        """Close the descriptor and remove the socket file."""
        if self.fd >= 0:
            try:
                os.close(self.fd)
            except OSError:
                pass
            self.fd = -1
        if self.sockpath is not None:
            try:
                os.unlink(self.sockpath)
            except OSError:
                pass
            self.sockpath = None

    def __enter__(self) -> "Server":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"Server(fd={self.fd}, flags={self.flags!r}, "
            f"sockpath={self.sockpath!r})"
        )