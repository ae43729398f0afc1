"""AES-CBC encryption of TPM state with PKCS#7-style padding.

The padding block size is the length of the key in use: 16 bytes for
AES-128 and 32 bytes for AES-256. An initialisation vector, if given,
must be as long as the key. Only its first 16 bytes take part in the
chaining. Without one, an all-zero vector is used.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

AES128_BLOCK_SIZE = 16
AES256_BLOCK_SIZE = 32

_CIPHER_BLOCK = 16


class EncryptError(ValueError):
    """Data could not be encrypted with the given key and IV."""


class DecryptError(ValueError):
    """Data could not be decrypted or its padding is invalid."""


@dataclass(frozen=True)
class SymmetricKey:
    """An AES key of 16 or 32 bytes."""

    user_key: bytes

    def __post_init__(self) -> None:
        if len(self.user_key) not in (AES128_BLOCK_SIZE, AES256_BLOCK_SIZE):
            raise ValueError(
                f"AES key must be {AES128_BLOCK_SIZE} or {AES256_BLOCK_SIZE} "
                f"bytes, got {len(self.user_key)}"
            )
        object.__setattr__(self, "user_key", bytes(self.user_key))

    def __len__(self) -> int:
        return len(self.user_key)

    def __repr__(self) -> str:
        return f"SymmetricKey(<{len(self.user_key)} bytes>)"


def _chaining_vector(key: SymmetricKey, iv: Optional[bytes], error: type) -> bytes:
    if iv is None:
        return bytes(_CIPHER_BLOCK)
    if len(iv) != len(key):
        raise error(f"IV is {len(iv)} bytes, but expected {len(key)} bytes")
    return bytes(iv[:_CIPHER_BLOCK])


def _cipher(key: SymmetricKey, ivec: bytes) -> Cipher:
    return Cipher(algorithms.AES(key.user_key), modes.CBC(ivec))


def encrypt(data: bytes, key: SymmetricKey, iv: Optional[bytes] = None) -> bytes:
    """Pad data to a multiple of the key length and encrypt it in CBC mode."""
    ivec = _chaining_vector(key, iv, EncryptError)
    block = len(key)
    pad_length = block - (len(data) % block)
    padded = bytes(data) + bytes([pad_length]) * pad_length
    encryptor = _cipher(key, ivec).encryptor()
    return encryptor.update(padded) + encryptor.finalize()


def decrypt(data: bytes, key: SymmetricKey, iv: Optional[bytes] = None) -> bytes:
    """Decrypt CBC data and strip and verify its padding."""
    block = len(key)
    if len(data) < block:
        raise DecryptError("bad length")
    ivec = _chaining_vector(key, iv, DecryptError)
    if len(data) % _CIPHER_BLOCK:
        raise DecryptError(
            f"length {len(data)} is not a multiple of {_CIPHER_BLOCK}"
        )
    decryptor = _cipher(key, ivec).decryptor()
    plain = decryptor.update(bytes(data)) + decryptor.finalize()

    pad_length = plain[-1]
    if pad_length == 0 or pad_length > block:
        raise DecryptError(f"illegal pad length {pad_length}")
    unpadded_length = len(plain) - pad_length
    for index, value in enumerate(plain[unpadded_length:]):
        if value != pad_length:
            raise DecryptError(f"bad pad {value:02x} at index {index}")
    return plain[:unpadded_length]