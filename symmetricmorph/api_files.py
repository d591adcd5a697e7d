"""File-oriented convenience wrappers."""

from .engine import SymmetricMorph


def encrypt_file(
    file: str,
    password: str | bytes | None = None,
    *,
    key: bytes | None = None,
    output: str | None = None,
    iterations: int | None = None,
    key_length: int = SymmetricMorph.DEFAULT_KEY_LEN,
    chunk_size: int | None = None,
    silent: bool = False,
):
    return SymmetricMorph.encrypt_file(
        file,
        password,
        key=key,
        output=output,
        iterations=iterations,
        key_length=key_length,
        chunk_size=chunk_size,
        silent=silent,
    )


def decrypt_file(
    file: str,
    password: str | bytes | None = None,
    *,
    key: bytes | None = None,
    output: str | None = None,
    silent: bool = False,
):
    return SymmetricMorph.decrypt_file(
        file,
        password,
        key=key,
        output=output,
        silent=silent,
    )


def save_key(path: str, key: bytes):
    return SymmetricMorph.save_key(path, key)


def load_key(path: str):
    return SymmetricMorph.load_key(path)


__all__ = ["decrypt_file", "encrypt_file", "load_key", "save_key"]
