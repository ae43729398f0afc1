"""Building blocks for a software TPM emulator: control-channel messages,
option strings, AES state encryption, pid files, server parameters,
command I/O and hex dumps."""

__version__ = "0.1.0"