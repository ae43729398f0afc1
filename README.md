# swtpmkit

Pieces of a software TPM emulator. Each one can be used on its own.

## Modules

- `swtpmkit.ioctl` handles the control-channel protocol. It has these parts:
  - Command numbers (`Command`) and capability bits (`Capability`).
  - Blob types (`BlobType`) and the flag sets `StateFlag`, `ConfigFlag` and `InfoFlag`.
  - The constants `STATE_BLOB_SIZE`, `GETINFO_SIZE` and `INIT_FLAG_DELETE_VOLATILE`.
  - Big-endian message classes, each a frozen dataclass with `to_bytes()` and `from_bytes()`. The classes are `EstablishedResponse`, `LocalityRequest`, `InitRequest`, `HashDataRequest`, `GetStateRequest`, `GetStateResponse`, `SetStateRequest`, `ConfigResponse`, `BufferSizeRequest`, `BufferSizeResponse`, `GetInfoRequest` and `GetInfoResponse`.

  `parse_result()` reads the 32-bit result code at the front of a response. Input that is too short, or values out of range, raise `ProtocolError`.
- `swtpmkit.options` parses comma-separated option strings such as `type=unixio,path=/tmp/ctrl,mode=0600`.
  - Call `parse_options()` with a list of `OptionDesc` templates.
  - Each template's `OptionType` is one of `STRING`, `INT`, `UINT`, `BOOLEAN`, `MODE_T`, `UID_T` or `GID_T`.
  - A bare name stands for `name=true`.
  - The result is an `OptionValues` with typed getters: `get_string`, `get_int`, `get_uint`, `get_bool`, `get_mode`, `get_uid` and `get_gid`.
  - User and group names are looked up in the system databases.
  - Unknown options and bad values raise `OptionError`.
- `swtpmkit.aes` does AES-CBC with PKCS#7-style padding for TPM state blobs.
  - Use `encrypt(data, key, iv)` and `decrypt(data, key, iv)` with a `SymmetricKey` of 16 or 32 bytes.
  - The padding block is the key length.
  - An IV, if given, must be as long as the key. Without one, a zero IV is used.
  - Failures raise `EncryptError` or `DecryptError`.
- `swtpmkit.pidfile` provides `PidFile`, which writes the process ID to a path or to an open descriptor.
  - `remove()` deletes the file again.
  - Used as a context manager, it removes the file on exit.
  - Write failures raise `PidFileError`.
- `swtpmkit.server` provides `Server`, which holds a data-channel descriptor, its `ServerFlag` flags (`DISCONNECT`, `FD_GIVEN`) and an optional socket path.
  - `swap_fd()` replaces the descriptor and returns the previous one.
  - `close()` closes the descriptor and unlinks the path.
- `swtpmkit.tpm_io` provides `Connection`, which reads TPM command packets and writes responses.
  - `read()` waits for at least a full 10-byte request header.
  - `write()` sends a sequence of byte strings in order.
  - `accept_connection(sock_fd, notify_fd)` waits for a client on a listening socket. If the notification descriptor becomes readable first, it gives up.
  - I/O failures raise `TpmIOError`.
- `swtpmkit.debug` provides `hex_dump_lines()` and `print_all()`, which produce hex dumps with 16 bytes per line.

## Example

```python
from swtpmkit.aes import SymmetricKey, encrypt, decrypt
from swtpmkit.ioctl import GetStateRequest, BlobType, StateFlag
from swtpmkit.options import OptionDesc, OptionType, parse_options

values = parse_options(
    "type=unixio,path=/tmp/ctrl,mode=0600",
    [
        OptionDesc("type", OptionType.STRING),
        OptionDesc("path", OptionType.STRING),
        OptionDesc("mode", OptionType.MODE_T),
    ],
)
print(values.get_string("path", None), oct(values.get_mode("mode", 0o770)))

key = SymmetricKey(bytes(16))
blob = encrypt(b"state", key, None)
assert decrypt(blob, key, None) == b"state"

request = GetStateRequest(StateFlag.DECRYPTED, BlobType.PERMANENT)
assert GetStateRequest.from_bytes(request.to_bytes()) == request
```

## What this package does not do

swtpmkit contains no TPM itself. It does not process TPM commands and does not store TPM state. It has no main loop that serves clients and handles control-channel commands, and no command-line program to start an emulator. These modules are parts that such a program would be built from.

## Installation

```
pip install swtpmkit
```

Tests run with `pytest` after `pip install swtpmkit[test]`.