""" Utility for base64 and fingerprint operations. """

import base64
import binascii
import hashlib
from typing import Union


def b64encode(data: bytes) -> str:
    # Standard (padded) base64 as ASCII text.
    return base64.b64encode(data).decode("ascii")


def b64decode(text: Union[str, bytes]) -> bytes:
    """Strictly decode standard base64; raises ValueError on junk input."""
    if isinstance(text, str):
        try:
            text = text.encode("ascii")
        except UnicodeEncodeError as exc:
            raise ValueError("base64 text must be ASCII") from exc
    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"invalid base64: {exc}") from exc


def to_bytes(content: Union[str, bytes]) -> bytes:
    if isinstance(content, str):
        return content.encode("utf-8")
    if isinstance(content, (bytes, bytearray, memoryview)):
        return bytes(content)
    raise TypeError(f"expected str or bytes, got {type(content).__name__}")


def fingerprint(public_key_der: bytes) -> str:

    # SHA-256 over the SPKI DER bytes, hex encoded.

    return hashlib.sha256(public_key_der).hexdigest()


def decode_text(data: bytes) -> str:
    # Decrypted text content is always UTF-8.
    return data.decode("utf-8")
