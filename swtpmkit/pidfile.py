"""Writing and removing the file that records the process ID."""

from __future__ import annotations

import os
import sys
from typing import Optional

_PIDFILE_MODE = 0o644


class PidFileError(OSError):
    """The pid file could not be written."""


def _fd_to_path(fd: int) -> str:
    """Return the path of the file open on fd."""
    if sys.platform == "darwin":
        import fcntl

        buf = fcntl.fcntl(fd, getattr(fcntl, "F_GETPATH", 50), b"\0" * 1024)
        return buf.split(b"\0", 1)[0].decode()
    return os.readlink(f"/proc/self/fd/{fd}")


class PidFile:
    """A pid file given either by path or by an already open descriptor."""

    def __init__(self) -> None:
        self.path: Optional[str] = None
        self.fd: int = -1

    def set_path(self, path: str) -> None:
        """Use the file at path; it is created or truncated on write."""
        self.path = os.fspath(path)

    def set_fd(self, fd: int) -> None:
        """Use an open descriptor; it is closed after writing."""
        self.fd = fd

    def write(self, pid: int) -> None:
        """Write pid to the pid file; do nothing if none was configured."""
        if self.path is not None:
            try:
                fd = os.open(
                    self.path,
                    os.O_WRONLY | os.O_CREAT | os.O_TRUNC
                    | getattr(os, "O_NOFOLLOW", 0),
                    _PIDFILE_MODE,
                )
            except OSError as exc:
                raise PidFileError(
                    exc.errno,
                    f"Could not open pidfile {self.path} : {exc.strerror}",
                ) from exc
        elif self.fd >= 0:
            fd = self.fd
            try:
                self.path = _fd_to_path(fd)
            except OSError as exc:
                raise PidFileError(
                    exc.errno, f"Could not get path of pidfile fd {fd}"
                ) from exc
            self.fd = -1
        else:
            return

        data = str(pid).encode()
        try:
            with os.fdopen(fd, "wb", buffering=0) as stream:
                view = memoryview(data)
                while view:
                    written = stream.write(view)
                    view = view[written:]
        except OSError as exc:
            raise PidFileError(
                exc.errno, f"Could not write to pidfile : {exc.strerror}"
            ) from exc

    def remove(self) -> None:
        """Delete the pid file, ignoring errors, and forget its path."""
        if self.path is None:
            return
        try:
            os.unlink(self.path)
        except OSError:
            pass
        self.path = None

    def __enter__(self) -> "PidFile":
        return self

    def __exit__(self, *exc_info) -> None:
        self.remove()