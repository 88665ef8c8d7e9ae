"""
AES helpers for Bark encrypted pushes.

Keys and IVs are short alphanumeric strings whose UTF-8 bytes are used
directly as AES key material, matching what Bark apps expect when a user
pastes the same key into the device settings.
"""

from __future__ import annotations

import base64
import secrets
import string

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from barkpush.exceptions import EncryptionError
from barkpush.models.push import EncryptionAlgorithm

ASCII_CHARSET = string.ascii_uppercase + string.ascii_lowercase + string.digits

IV_LENGTH = 16

_KEY_LENGTHS = {
    EncryptionAlgorithm.AES128: 16,
    EncryptionAlgorithm.AES192: 24,
    EncryptionAlgorithm.AES256: 32,
}


def generate_ascii_string(length: int) -> str:
    """Return a random alphanumeric string of ``length`` characters."""
    return "".join(secrets.choice(ASCII_CHARSET) for _ in range(length))


def get_key_length(algorithm: EncryptionAlgorithm | str) -> int:
    """Key length in bytes for an algorithm name; unknown names get 32."""
    try:
        return _KEY_LENGTHS[EncryptionAlgorithm(algorithm)]
    except ValueError:
        return 32


def generate_key(algorithm: EncryptionAlgorithm | str = EncryptionAlgorithm.AES256) -> str:
    return generate_ascii_string(get_key_length(algorithm))


def generate_iv() -> str:
    return generate_ascii_string(IV_LENGTH)


def _key_material(key: str, iv: str) -> tuple[bytes, bytes]:
    key_bytes = key.encode("utf-8")
    iv_bytes = iv.encode("utf-8")

    if len(key_bytes) not in _KEY_LENGTHS.values():
        msg = f"Invalid AES key length: {len(key_bytes)} bytes (expected 16, 24 or 32)"
        raise EncryptionError(msg, context={"key_length": len(key_bytes)})
    if len(iv_bytes) != IV_LENGTH:
        msg = f"Invalid IV length: {len(iv_bytes)} bytes (expected {IV_LENGTH})"
        raise EncryptionError(msg, context={"iv_length": len(iv_bytes)})

    return key_bytes, iv_bytes


def encrypt_aes_cbc(plaintext: str, key: str, iv: str) -> str:
    """
    Encrypt text with AES-CBC and PKCS#7 padding.

    Args:
        plaintext: Text to encrypt (UTF-8 encoded before encryption)
        key: 16/24/32 character ASCII key, used byte-for-byte
        iv: 16 character ASCII IV, used byte-for-byte

    Returns:
        Base64-encoded ciphertext

    Raises:
        EncryptionError: If the key or IV has an invalid length
    """
    key_bytes, iv_bytes = _key_material(key, iv)

    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(key_bytes), modes.CBC(iv_bytes)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()

    return base64.b64encode(ciphertext).decode("ascii")


def decrypt_aes_cbc(ciphertext: str, key: str, iv: str) -> str:
    """Inverse of :func:`encrypt_aes_cbc`."""
    key_bytes, iv_bytes = _key_material(key, iv)

    decryptor = Cipher(algorithms.AES(key_bytes), modes.CBC(iv_bytes)).decryptor()
    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    try:
        padded = decryptor.update(base64.b64decode(ciphertext)) + decryptor.finalize()
        data = unpadder.update(padded) + unpadder.finalize()
        return data.decode("utf-8")
    except ValueError as e:
        # binascii.Error, bad block length, bad padding and UnicodeDecodeError
        msg = "Ciphertext could not be decrypted with the given key and IV"
        raise EncryptionError(msg) from e
