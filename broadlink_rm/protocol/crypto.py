# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
AES-128-CBC encryption of command and response payloads.

Each packet is encrypted independently with the session's current key and IV;
there is no chaining across packets and no padding. Callers must supply payloads
whose length is a multiple of 16 bytes.
"""

from __future__ import annotations

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..internal_types import *
from ..exceptions import PacketFormatError
from .constants import AES_BLOCK_SIZE, INITIAL_KEY, INITIAL_IV

class SessionCipher:
    """Holds the key and IV of one device session."""

    key: bytes
    iv: bytes

    def __init__(self, key: bytes=INITIAL_KEY, iv: bytes=INITIAL_IV) -> None:
        self._check_length("key", key)
        self._check_length("IV", iv)
        self.key = bytes(key)
        self.iv = bytes(iv)

    @staticmethod
    def _check_length(name: str, value: bytes) -> None:
        if len(value) != AES_BLOCK_SIZE:
            raise PacketFormatError(f"AES-128 {name} must be {AES_BLOCK_SIZE} bytes, got {len(value)}")

    @staticmethod
    def check_block_aligned(data: bytes) -> None:
        if len(data) % AES_BLOCK_SIZE != 0:
            raise PacketFormatError(
                f"Payload length {len(data)} is not a multiple of {AES_BLOCK_SIZE}; padding is the caller's responsibility")

    def set_key(self, key: bytes) -> None:
        """Replace the key (after the handshake reply)."""
        self._check_length("key", key)
        self.key = bytes(key)

    def _cipher(self) -> Cipher:
        return Cipher(algorithms.AES(self.key), modes.CBC(self.iv))

    def encrypt(self, plaintext: bytes) -> bytes:
        self.check_block_aligned(plaintext)
        encryptor = self._cipher().encryptor()
        return encryptor.update(plaintext) + encryptor.finalize()

    def decrypt(self, ciphertext: bytes) -> bytes:
        self.check_block_aligned(ciphertext)
        decryptor = self._cipher().decryptor()
        return decryptor.update(ciphertext) + decryptor.finalize()
