"""Text convenience wrappers around the record transform."""

import base64

from .engine import SymmetricMorph


def encrypt_text(text: str, cipher: SymmetricMorph) -> str:
    if not isinstance(text, str):
        raise TypeError("encrypt_text expects str")
    record = cipher.encrypt(text.encode("utf-8"))
    return base64.b64encode(record).decode("ascii")


def decrypt_text(token: str, cipher: SymmetricMorph) -> str:
    try:
        record = base64.b64decode(token.encode("ascii"), validate=True)
    except (ValueError, UnicodeEncodeError) as exc:
        raise ValueError("Token is not valid base64") from exc
    return cipher.decrypt(record).decode("utf-8")


__all__ = ["decrypt_text", "encrypt_text"]
