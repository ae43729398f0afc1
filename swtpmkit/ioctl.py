"""Wire structures and constants of the TPM control channel.

All multi-byte fields are big-endian. Responses carry only the response
part of each structure, starting with the 32-bit TPM result code.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum, IntFlag

STATE_BLOB_SIZE = 3 * 1024
"""Chunk size used when transferring state blobs through ioctls."""

GETINFO_SIZE = 3 * 1024
"""Size of the info buffer returned through ioctls."""

INIT_FLAG_DELETE_VOLATILE = 1 << 0
"""Init flag: delete the volatile state file after reading it."""


class ProtocolError(ValueError):
    """A control channel message is malformed or a field is out of range."""


class Capability(IntFlag):
    """Capability bits returned by the get-capability command."""

    INIT = 1
    SHUTDOWN = 1 << 1
    GET_TPMESTABLISHED = 1 << 2
    SET_LOCALITY = 1 << 3
    HASHING = 1 << 4
    CANCEL_TPM_CMD = 1 << 5
    STORE_VOLATILE = 1 << 6
    RESET_TPMESTABLISHED = 1 << 7
    GET_STATEBLOB = 1 << 8
    SET_STATEBLOB = 1 << 9
    STOP = 1 << 10
    GET_CONFIG = 1 << 11
    SET_DATAFD = 1 << 12
    SET_BUFFERSIZE = 1 << 13
    GET_INFO = 1 << 14
    SEND_COMMAND_HEADER = 1 << 15


class Command(IntEnum):
    """Command codes of the socket-based control channel."""

    GET_CAPABILITY = 0x01
    INIT = 0x02
    SHUTDOWN = 0x03
    GET_TPMESTABLISHED = 0x04
    SET_LOCALITY = 0x05
    HASH_START = 0x06
    HASH_DATA = 0x07
    HASH_END = 0x08
    CANCEL_TPM_CMD = 0x09
    STORE_VOLATILE = 0x0A
    RESET_TPMESTABLISHED = 0x0B
    GET_STATEBLOB = 0x0C
    SET_STATEBLOB = 0x0D
    STOP = 0x0E
    GET_CONFIG = 0x0F
    SET_DATAFD = 0x10
    SET_BUFFERSIZE = 0x11
    GET_INFO = 0x12


class BlobType(IntEnum):
    """Kinds of TPM state blob."""

    PERMANENT = 1
    VOLATILE = 2
    SAVESTATE = 3


class StateFlag(IntFlag):
    """Flags accompanying state blob transfers."""

    DECRYPTED = 1  # on input: get decrypted state
    ENCRYPTED = 2  # on output: state is encrypted


class ConfigFlag(IntFlag):
    """Runtime configuration flags reported by get-config."""

    FILE_KEY = 0x1
    MIGRATION_KEY = 0x2


class InfoFlag(IntFlag):
    """Selectors for the get-info command."""

    TPMSPECIFICATION = 1 << 0
    TPMATTRIBUTES = 1 << 1


def _pack(fmt: str, *values: int) -> bytes:
    try:
        return struct.pack(fmt, *values)
    except struct.error as exc:
        raise ProtocolError(str(exc)) from exc


def _unpack(fmt: str, data: bytes, what: str) -> tuple:
    size = struct.calcsize(fmt)
    if len(data) < size:
        raise ProtocolError(
            f"{what}: need at least {size} bytes, got {len(data)}"
        )
    return struct.unpack_from(fmt, data)


def _payload(data: bytes, offset: int, length: int, what: str) -> bytes:
    end = offset + length
    if len(data) < end:
        raise ProtocolError(
            f"{what}: announced {length} bytes of data, "
            f"only {len(data) - offset} present"
        )
    return bytes(data[offset:end])


def parse_result(data: bytes) -> int:
    """Return the TPM result code at the start of a response."""
    (result,) = _unpack(">I", data, "result")
    return result


@dataclass(frozen=True)
class EstablishedResponse:
    """Response to get-tpmestablished."""

    tpm_result: int
    established: bool

    _FORMAT = ">IB3x"  # padded like the native structure

    def to_bytes(self) -> bytes:
        return _pack(self._FORMAT, self.tpm_result, 1 if self.established else 0)

    @classmethod
    def from_bytes(cls, data: bytes) -> "EstablishedResponse":
        result, bit = _unpack(">IB", data, "established response")
        return cls(result, bool(bit))


@dataclass(frozen=True)
class LocalityRequest:
    """Request for set-locality and reset-tpmestablished."""

    locality: int

    def to_bytes(self) -> bytes:
        return _pack(">B", self.locality)

    @classmethod
    def from_bytes(cls, data: bytes) -> "LocalityRequest":
        (loc,) = _unpack(">B", data, "locality request")
        return cls(loc)


@dataclass(frozen=True)
class InitRequest:
    """Request for init."""

    init_flags: int = 0

    def to_bytes(self) -> bytes:
        return _pack(">I", self.init_flags)

    @classmethod
    def from_bytes(cls, data: bytes) -> "InitRequest":
        (flags,) = _unpack(">I", data, "init request")
        return cls(flags)


@dataclass(frozen=True)
class HashDataRequest:
    """Request for hash-data: a length followed by the data."""

    data: bytes

    def to_bytes(self) -> bytes:
        return _pack(">I", len(self.data)) + bytes(self.data)

    @classmethod
    def from_bytes(cls, data: bytes) -> "HashDataRequest":
        (length,) = _unpack(">I", data, "hash data request")
        return cls(_payload(data, 4, length, "hash data request"))


@dataclass(frozen=True)
class GetStateRequest:
    """Request for get-stateblob."""

    state_flags: int
    blob_type: int
    offset: int = 0

    def to_bytes(self) -> bytes:
        return _pack(">III", self.state_flags, self.blob_type, self.offset)

    @classmethod
    def from_bytes(cls, data: bytes) -> "GetStateRequest":
        flags, blob_type, offset = _unpack(">III", data, "get state request")
        return cls(flags, blob_type, offset)


@dataclass(frozen=True)
class GetStateResponse:
    """Response to get-stateblob carrying (part of) a state blob."""

    tpm_result: int
    state_flags: int
    totlength: int
    data: bytes

    def to_bytes(self) -> bytes:
        header = _pack(
            ">IIII", self.tpm_result, self.state_flags,
            self.totlength, len(self.data),
        )
        return header + bytes(self.data)

    @classmethod
    def from_bytes(cls, data: bytes) -> "GetStateResponse":
        result, flags, total, length = _unpack(">IIII", data, "get state response")
        return cls(result, flags, total,
                   _payload(data, 16, length, "get state response"))


@dataclass(frozen=True)
class SetStateRequest:
    """Request for set-stateblob carrying (part of) a state blob."""

    state_flags: int
    blob_type: int
    data: bytes

    def to_bytes(self) -> bytes:
        header = _pack(">III", self.state_flags, self.blob_type, len(self.data))
        return header + bytes(self.data)

    @classmethod
    def from_bytes(cls, data: bytes) -> "SetStateRequest":
        flags, blob_type, length = _unpack(">III", data, "set state request")
        return cls(flags, blob_type,
                   _payload(data, 12, length, "set state request"))


@dataclass(frozen=True)
class ConfigResponse:
    """Response to get-config."""

    tpm_result: int
    flags: int

    def to_bytes(self) -> bytes:
        return _pack(">II", self.tpm_result, self.flags)

    @classmethod
    def from_bytes(cls, data: bytes) -> "ConfigResponse":
        result, flags = _unpack(">II", data, "config response")
        return cls(result, flags)


@dataclass(frozen=True)
class BufferSizeRequest:
    """Request for set-buffersize; 0 queries the current size."""

    buffersize: int = 0

    def to_bytes(self) -> bytes:
        return _pack(">I", self.buffersize)

    @classmethod
    def from_bytes(cls, data: bytes) -> "BufferSizeRequest":
        (size,) = _unpack(">I", data, "buffer size request")
        return cls(size)


@dataclass(frozen=True)
class BufferSizeResponse:
    """Response to set-buffersize."""

    tpm_result: int
    buffersize: int
    minsize: int
    maxsize: int

    def to_bytes(self) -> bytes:
        return _pack(">IIII", self.tpm_result, self.buffersize,
                     self.minsize, self.maxsize)

    @classmethod
    def from_bytes(cls, data: bytes) -> "BufferSizeResponse":
        return cls(*_unpack(">IIII", data, "buffer size response"))


@dataclass(frozen=True)
class GetInfoRequest:
    """Request for get-info."""

    flags: int
    offset: int = 0

    def to_bytes(self) -> bytes:
        return _pack(">QII", self.flags, self.offset, 0)

    @classmethod
    def from_bytes(cls, data: bytes) -> "GetInfoRequest":
        flags, offset, _pad = _unpack(">QII", data, "get info request")
        return cls(flags, offset)


@dataclass(frozen=True)
class GetInfoResponse:
    """Response to get-info carrying (part of) the info text."""

    tpm_result: int
    totlength: int
    buffer: bytes

    def to_bytes(self) -> bytes:
        header = _pack(">III", self.tpm_result, self.totlength, len(self.buffer))
        return header + bytes(self.buffer)

    @classmethod
    def from_bytes(cls, data: bytes) -> "GetInfoResponse":
        result, total, length = _unpack(">III", data, "get info response")
        return cls(result, total, _payload(data, 12, length, "get info response"))