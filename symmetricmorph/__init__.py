"""
SYMMETRICMORPH - stream cipher with cascading feedback and a stream MAC

Every primitive (key derivation, keystream, diffusion state, authentication
tag) is built from byte arithmetic; no cryptographic library is involved.

Typical use:

    cipher, salt = from_password("StrongPassword123")
    record = cipher.encrypt(b"Hello, SymmetricMorph!")
    same = from_password_with_salt("StrongPassword123", salt)
    assert same.decrypt(record) == b"Hello, SymmetricMorph!"

The salt is NOT stored in the record; keep it next to the ciphertext.
"""

from .main import *
from .api_files import decrypt_file, encrypt_file, load_key, save_key
from .api_strings import decrypt_text, encrypt_text
from .version import __version__

def from_password(password, iterations=None, key_length: int = SymmetricMorph.DEFAULT_KEY_LEN): return SymmetricMorph.from_password(password, iterations, key_length)
def from_password_with_salt(password, salt: bytes, iterations=None, key_length: int = SymmetricMorph.DEFAULT_KEY_LEN): return SymmetricMorph.from_password_with_salt(password, salt, iterations, key_length)
def from_key(key: bytes): return SymmetricMorph.from_key(key)
def generate_key(length: int = SymmetricMorph.DEFAULT_KEY_LEN): return SymmetricMorph.generate_key(length)
