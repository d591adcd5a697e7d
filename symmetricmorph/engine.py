# SYMMETRICMORPH CIPHER ENGINE ->

import os as _os_module

import numpy as _np_module


class SymmetricMorphError(ValueError):
    """Base class for errors raised while decoding SymmetricMorph data."""


class FormatError(SymmetricMorphError):
    """Raised when a record, stream or container is structurally malformed."""


class IntegrityError(SymmetricMorphError):
    """Raised when the authentication tag of a record does not match."""


class SymmetricMorph:
    """Stream cipher with cascading feedback, dynamic masking and a stream MAC.

    Every primitive (key derivation, keystream, diffusion state, tag) is built
    from byte arithmetic only. An instance owns one immutable key and may be
    shared between threads: every call allocates its own working state.
    """

    import concurrent.futures
    import os
    import pathlib
    import struct
    import time
    import typing
    import numpy as np

    @staticmethod
    def _env_int(name: str) -> "SymmetricMorph.typing.Optional[int]":
        value = _os_module.getenv(name)
        if not value:
            return None
        try:
            parsed = int(value)
        except (TypeError, ValueError):
            return None
        if parsed <= 0:
            return None
        return parsed

    ENGINE_VERSION = "1.0.3"
    NONCE_LEN = 8
    TAG_LEN = 32
    HEADER_LEN = NONCE_LEN + TAG_LEN
    STATE_LEN = 64
    DEFAULT_KEY_LEN = 64
    DEFAULT_SALT_LEN = 24
    KDF_ITERATIONS = 20_000
    _TEST_KDF_ITERS = _env_int("SYMMORPH_TEST_KDF_ITERS")
    _KDF_ITERS_ENV = _env_int("SYMMORPH_KDF_ITERS")
    if _KDF_ITERS_ENV is not None:
        KDF_ITERATIONS = _KDF_ITERS_ENV
    elif _TEST_KDF_ITERS is not None:
        KDF_ITERATIONS = _TEST_KDF_ITERS
    STREAM_CHUNK_SIZE = _env_int("SYMMORPH_STREAM_CHUNK_SIZE") or 64 * 1024
    STREAM_LEN_PREFIX = 4
    _CPU_COUNT = max(1, os.cpu_count() or 1)
    _SILENT_MODE: typing.ClassVar[bool] = False

    # initial transform registers
    FEEDBACK_INIT = 0xA5
    PREV_INIT = (0x6C, 0x3A, 0x91)
    MAC_INIT = 157

    class _Keystream:
        """Counter-driven byte generator over a 64-entry table."""

        TABLE_LEN = 64

        def __init__(self, seed: bytes):
            if not seed:
                raise ValueError("Keystream seed must not be empty")
            seed_len = len(seed)
            self._table = [
                seed[i % seed_len] ^ ((i * 97) % 256)
                for i in range(self.TABLE_LEN)
            ]
            self._counter = 0

        def next_byte(self) -> int:
            table = self._table
            c = self._counter
            i = c % 64
            j = (c * 5 + 11) % 64
            k = (c * 7 + 17) % 64
            val = (table[i] + (table[j] ^ (table[k] >> 3)) + c) & 0xFF
            table[i] = (table[i] ^ (val << (c % 7))) & 0xFF
            self._counter = c + 1
            return val

        def take(self, count: int) -> bytes:
            return bytes(self.next_byte() for _ in range(count))

        def __iter__(self):
            return self

        def __next__(self) -> int:
            return self.next_byte()

    class _DiffusionState:
        """64-byte state evolved once per processed byte."""

        _IDX = _np_module.arange(64, dtype=_np_module.int64)
        _ROTL = _IDX % 5
        _ROTR = _IDX % 7
        _ABSORB_OFFSET = _IDX * 31
        _SPREAD_OFFSET = _IDX * 17
        _SWAP_BASE = _IDX * 13

        def __init__(self, key: bytes):
            key_arr = SymmetricMorph.np.frombuffer(key, dtype=SymmetricMorph.np.uint8).astype(SymmetricMorph.np.int64)
            self._state = (key_arr[self._IDX % len(key)] ^ (self._IDX * 67 + 19)) & 0xFF

        def __getitem__(self, pos: int) -> int:
            return int(self._state[pos])

        def __len__(self) -> int:
            return len(self._state)

        def snapshot(self) -> bytes:
            return self._state.astype(SymmetricMorph.np.uint8).tobytes()

        def update(
            self,
            out: int,
            feedback: int,
            r: int,
            iteration: int,
            prev1: int,
            prev2: int,
            prev3: int
        ) -> None:
            np = SymmetricMorph.np
            state = self._state
            inv = ~out & 0xFF
            mixed = (prev1 ^ prev2 ^ prev3 ^ feedback ^ r) & 0xFF

            state ^= (out + mixed + self._ABSORB_OFFSET) & 0xFF
            state[:] = (np.left_shift(state, self._ROTL) | np.right_shift(state, 8 - self._ROTL)) & 0xFF

            if iteration % 4 == 3:
                swap = (self._SWAP_BASE + iteration) % len(state)
                state[:] = state[swap] ^ inv

            # every slot depends only on itself here, so the descending pass
            # collapses to one array op
            state += inv ^ self._SPREAD_OFFSET ^ feedback
            state &= 0xFF
            state[:] = (np.right_shift(state, self._ROTR) | np.left_shift(state, 8 - self._ROTR)) & 0xFF

    def __init__(self, key: bytes):
        key_bytes = SymmetricMorph._coerce_bytes(key, "key")
        if not key_bytes:
            raise ValueError("Key must not be empty")
        self._key = key_bytes

    def __repr__(self) -> str:
        return f"SymmetricMorph(key_length={self.key_length})"

    @property
    def key_length(self) -> int:
        return len(self._key)

    # ------------------------------------------------------------------
    # construction

    @classmethod
    def from_password(
        cls,
        password: "SymmetricMorph.typing.Union[str, bytes, bytearray, memoryview]",
        iterations: "SymmetricMorph.typing.Optional[int]" = None,
        key_length: int = DEFAULT_KEY_LEN
    ) -> "SymmetricMorph.typing.Tuple[SymmetricMorph, bytes]":
        """Derive a key from ``password`` and a fresh salt.

        Returns ``(cipher, salt)``. The salt is not embedded in ciphertext, so
        callers must keep it to rebuild the cipher with
        :meth:`from_password_with_salt`.
        """
        salt = cls._generate_salt(cls.DEFAULT_SALT_LEN)
        return cls.from_password_with_salt(password, salt, iterations, key_length), salt

    @classmethod
    def from_password_with_salt(
        cls,
        password: "SymmetricMorph.typing.Union[str, bytes, bytearray, memoryview]",
        salt: bytes,
        iterations: "SymmetricMorph.typing.Optional[int]" = None,
        key_length: int = DEFAULT_KEY_LEN
    ) -> "SymmetricMorph":
        rounds = cls.KDF_ITERATIONS if iterations is None else int(iterations)
        pw = cls._password_units(password)
        salt_bytes = cls._coerce_bytes(salt, "salt")
        return cls(cls._derive_key(pw, salt_bytes, rounds, key_length))

    @classmethod
    def from_key(cls, key: bytes) -> "SymmetricMorph":
        return cls(key)

    @classmethod
    def generate_key(cls, length: int = DEFAULT_KEY_LEN) -> bytes:
        """Return ``length`` pseudo-random bytes for raw-key mode.

        The generator is seeded from one byte of the wall clock, so this is
        not a strong entropy source.
        """
        if length < 1:
            raise ValueError("Key length must be at least 1")
        stream = cls._Keystream(bytes([cls._wall_clock_ms() & 0xFF]))
        return stream.take(length)

    # ------------------------------------------------------------------
    # record transform

    def encrypt(self, plaintext: bytes) -> bytes:
        data = SymmetricMorph._coerce_bytes(plaintext, "plaintext")
        nonce = SymmetricMorph._generate_nonce()
        payload, mac_acc = self._transform(data, nonce, decrypting=False)
        tag = SymmetricMorph._generate_mac(mac_acc, self._key)
        return nonce + tag + payload

    def decrypt(self, record: bytes) -> bytes:
        blob = SymmetricMorph._coerce_bytes(record, "record")
        if len(blob) < SymmetricMorph.HEADER_LEN:
            raise FormatError(
                f"Record too short: {len(blob)} bytes (minimum {SymmetricMorph.HEADER_LEN})"
            )
        nonce = blob[:SymmetricMorph.NONCE_LEN]
        tag = blob[SymmetricMorph.NONCE_LEN:SymmetricMorph.HEADER_LEN]
        payload = blob[SymmetricMorph.HEADER_LEN:]
        plain, mac_acc = self._transform(payload, nonce, decrypting=True)
        expected = SymmetricMorph._generate_mac(mac_acc, self._key)
        if not SymmetricMorph._constant_time_compare(tag, expected):
            raise IntegrityError("MAC verification failed (integrity broken)")
        return plain

    def _transform(
        self,
        data: bytes,
        nonce: bytes,
        *,
        decrypting: bool
    ) -> "SymmetricMorph.typing.Tuple[bytes, int]":
        stream = SymmetricMorph._Keystream(self._key + nonce)
        state = SymmetricMorph._DiffusionState(self._key)
        state_len = len(state)
        feedback = SymmetricMorph.FEEDBACK_INIT
        prev1, prev2, prev3 = SymmetricMorph.PREV_INIT
        mac_acc = SymmetricMorph.MAC_INIT
        out_buf = bytearray(len(data))

        for i, byte in enumerate(data):
            r = stream.next_byte()
            pos = (i + feedback + prev1 + prev2) % state_len
            mask = (state[pos] ^ feedback ^ prev1 ^ prev2 ^ prev3) & 0xFF
            shift = i % 5
            if decrypting:
                cipher_byte = byte
                out_buf[i] = SymmetricMorph._rotr8(cipher_byte, shift) ^ mask ^ r
            else:
                cipher_byte = SymmetricMorph._rotl8((byte ^ mask ^ r) & 0xFF, shift)
                out_buf[i] = cipher_byte

            state.update(cipher_byte, feedback, r, i, prev1, prev2, prev3)

            prev3 = prev2
            prev2 = prev1
            prev1 = cipher_byte

            feedback = (feedback ^ cipher_byte ^ r ^ (i * 13)) & 0xFF
            mac_acc = ((mac_acc + cipher_byte + feedback + (i * 31)) ^ (r + prev1 + prev2)) & 0xFF

        return bytes(out_buf), mac_acc

    # ------------------------------------------------------------------
    # chunk and stream helpers

    def encrypt_chunks(
        self,
        chunks: "SymmetricMorph.typing.Iterable[bytes]",
        max_workers: "SymmetricMorph.typing.Optional[int]" = None
    ) -> "SymmetricMorph.typing.List[bytes]":
        return self._map_chunks(self.encrypt, chunks, max_workers)

    def decrypt_chunks(
        self,
        chunks: "SymmetricMorph.typing.Iterable[bytes]",
        max_workers: "SymmetricMorph.typing.Optional[int]" = None
    ) -> "SymmetricMorph.typing.List[bytes]":
        return self._map_chunks(self.decrypt, chunks, max_workers)

    @staticmethod
    def _map_chunks(fn, chunks, max_workers) -> "SymmetricMorph.typing.List[bytes]":
        items = list(chunks)
        if not max_workers or max_workers <= 1 or len(items) <= 1:
            return [fn(item) for item in items]
        workers = min(len(items), max_workers, SymmetricMorph._CPU_COUNT)
        with SymmetricMorph.concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(fn, items))

    def encrypt_stream(
        self,
        source,
        dest,
        chunk_size: "SymmetricMorph.typing.Optional[int]" = None
    ) -> int:
        """Encrypt ``source`` into ``dest`` as length-prefixed records.

        Each block of at most ``chunk_size`` bytes becomes an independent
        record with its own nonce. Returns the number of plaintext bytes read.
        """
        size = SymmetricMorph.STREAM_CHUNK_SIZE if chunk_size is None else int(chunk_size)
        if size <= 0:
            raise ValueError("chunk_size must be positive")
        processed = 0
        while True:
            chunk = source.read(size)
            if not chunk:
                break
            record = self.encrypt(chunk)
            dest.write(SymmetricMorph.struct.pack(">I", len(record)))
            dest.write(record)
            processed += len(chunk)
        return processed

    def decrypt_stream(self, source, dest) -> int:
        prefix_len = SymmetricMorph.STREAM_LEN_PREFIX
        processed = 0
        while True:
            prefix = source.read(prefix_len)
            if not prefix:
                break
            if len(prefix) != prefix_len:
                raise FormatError("Malformed stream (truncated length prefix)")
            length = SymmetricMorph.struct.unpack(">I", prefix)[0]
            if length < SymmetricMorph.HEADER_LEN:
                raise FormatError(f"Malformed stream (record length {length} below minimum)")
            record = source.read(length)
            if len(record) != length:
                raise FormatError("Malformed stream (truncated record)")
            plain = self.decrypt(record)
            dest.write(plain)
            processed += len(plain)
        return processed

    # ------------------------------------------------------------------
    # primitives

    @staticmethod
    def _rotl8(value: int, shift: int) -> int:
        return ((value << shift) | (value >> (8 - shift))) & 0xFF

    @staticmethod
    def _rotr8(value: int, shift: int) -> int:
        return ((value >> shift) | (value << (8 - shift))) & 0xFF

    @staticmethod
    def _derive_key(password, salt: bytes, rounds: int, length: int) -> bytes:
        """Stretch ``password ++ salt`` through ``rounds`` XOR/modulo passes.

        ``password`` is bytes or a sequence of character code units.
        """
        np = SymmetricMorph.np
        if rounds < 0:
            raise ValueError("Iteration count must not be negative")
        if length < 1:
            raise ValueError("Key length must be at least 1")
        if isinstance(password, (bytes, bytearray)):
            units = np.frombuffer(bytes(password), dtype=np.uint8).astype(np.int64)
        else:
            units = np.array(password, dtype=np.int64).reshape(-1)
        data = np.concatenate([units, np.frombuffer(salt, dtype=np.uint8).astype(np.int64)])
        if not len(data):
            raise ValueError("Password and salt must not both be empty")
        offsets = np.arange(len(data), dtype=np.int64) * 7
        state = 0
        for i in range(rounds):
            data = (data ^ (state + offsets + i)) & 0xFF
            state = (state + int(np.bitwise_xor.reduce(data))) & 0xFF
        idx = np.arange(length, dtype=np.int64)
        key = data[idx % len(data)] ^ ((idx * 37 + state) & 0xFF)
        return key.astype(np.uint8).tobytes()

    @staticmethod
    def _generate_mac(mac_acc: int, key: bytes) -> bytes:
        key_len = len(key)
        return bytes(
            (mac_acc ^ key[j % key_len] ^ (j * 19)) & 0xFF
            for j in range(SymmetricMorph.TAG_LEN)
        )

    @staticmethod
    def _constant_time_compare(a: bytes, b: bytes) -> bool:
        if len(a) != len(b):
            return False
        result = 0
        for x, y in zip(a, b):
            result |= x ^ y
        return result == 0

    @staticmethod
    def _wall_clock_ms() -> int:
        return SymmetricMorph.time.time_ns() // 1_000_000

    @staticmethod
    def _generate_nonce() -> bytes:
        # time based, not unique across calls within the same millisecond
        t = SymmetricMorph._wall_clock_ms()
        return bytes([
            t & 0xFF,
            (t >> 8) & 0xFF,
            (t >> 16) & 0xFF,
            (t >> 24) & 0xFF,
            t % 251,
            t % 241,
            t % 239,
            t % 233,
        ])

    @staticmethod
    def _generate_salt(length: int) -> bytes:
        t = SymmetricMorph.time.perf_counter_ns() // 1_000_000
        seed = bytes([t & 0xFF, (t >> 8) & 0xFF, (t >> 16) & 0xFF])
        return SymmetricMorph._Keystream(seed).take(length)

    @staticmethod
    def _password_units(
        password: "SymmetricMorph.typing.Union[str, bytes, bytearray, memoryview]"
    ) -> "SymmetricMorph.typing.Union[bytes, SymmetricMorph.typing.Tuple[int, ...]]":
        """One derivation unit per character.

        Latin-1 text maps to its code points as bytes. Wider characters keep
        their first UTF-16 code unit (the high surrogate outside the BMP),
        which only fits in a byte after the first derivation round.
        """
        if isinstance(password, str):
            try:
                return password.encode("latin-1")
            except UnicodeEncodeError:
                return tuple(
                    0xD800 + ((ord(ch) - 0x10000) >> 10) if ord(ch) > 0xFFFF else ord(ch)
                    for ch in password
                )
        if isinstance(password, (bytes, bytearray, memoryview)):
            return bytes(password)
        raise TypeError(f"Unsupported password type: {type(password)!r}")

    @staticmethod
    def _coerce_bytes(data, label: str) -> bytes:
        if isinstance(data, bytes):
            return data
        if isinstance(data, (bytearray, memoryview)):
            return bytes(data)
        if isinstance(data, (list, tuple)):
            return bytes(data)
        raise TypeError(f"{label} must be bytes-like, got {type(data)!r}")

    # ------------------------------------------------------------------
    # file container

    FILE_MAGIC = b"SMF1"
    FILE_VERSION = 0x01
    FILE_SUFFIX = ".smm"
    # magic + version + salt_len + iterations + key_len
    FILE_HEADER_LEN = len(FILE_MAGIC) + 1 + 1 + 4 + 2

    @staticmethod
    def _normalize_path(path_like: "SymmetricMorph.typing.Union[str, SymmetricMorph.pathlib.Path]") -> "SymmetricMorph.pathlib.Path":
        if isinstance(path_like, SymmetricMorph.pathlib.Path):
            path = path_like
        else:
            path = SymmetricMorph.pathlib.Path(str(path_like))
        path = path.expanduser()
        try:
            return path.resolve(strict=False)
        except OSError:
            return path

    @staticmethod
    def _ensure_existing_file(path: "SymmetricMorph.pathlib.Path") -> None:
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f"Input file not found: {path}")

    @staticmethod
    def _human_readable_size(num_bytes: int) -> str:
        units = ["B", "KiB", "MiB", "GiB"]
        value = float(num_bytes)
        for unit in units:
            if value < 1024.0 or unit == units[-1]:
                return f"{value:.2f} {unit}"
            value /= 1024.0
        return f"{value:.2f} TiB"

    @staticmethod
    def _pack_file_header(salt: bytes, iterations: int, key_length: int) -> bytes:
        if len(salt) > 0xFF:
            raise ValueError("Salt too long for file header")
        if not 0 < key_length <= 0xFFFF:
            raise ValueError("Key length out of range for file header")
        header = bytearray()
        header += SymmetricMorph.FILE_MAGIC
        header += bytes([SymmetricMorph.FILE_VERSION, len(salt)])
        header += SymmetricMorph.struct.pack(">I", iterations)
        header += SymmetricMorph.struct.pack(">H", key_length)
        return bytes(header) + salt

    @staticmethod
    def _read_file_header(handle) -> "SymmetricMorph.typing.Tuple[bytes, int, int]":
        head = handle.read(SymmetricMorph.FILE_HEADER_LEN)
        if len(head) < SymmetricMorph.FILE_HEADER_LEN:
            raise FormatError("Container too short")
        if head[:4] != SymmetricMorph.FILE_MAGIC:
            raise FormatError("Container bad magic")
        version, salt_len = head[4], head[5]
        if version != SymmetricMorph.FILE_VERSION:
            raise FormatError(f"Unsupported container version: 0x{version:02x}")
        iterations = SymmetricMorph.struct.unpack(">I", head[6:10])[0]
        key_length = SymmetricMorph.struct.unpack(">H", head[10:12])[0]
        salt = handle.read(salt_len)
        if len(salt) != salt_len:
            raise FormatError("Container truncated salt")
        return salt, iterations, key_length

    @staticmethod
    def encrypt_file(
        file: "SymmetricMorph.typing.Union[str, SymmetricMorph.pathlib.Path]",
        password: "SymmetricMorph.typing.Union[str, bytes, None]" = None,
        *,
        key: "SymmetricMorph.typing.Optional[bytes]" = None,
        output: "SymmetricMorph.typing.Optional[str]" = None,
        iterations: "SymmetricMorph.typing.Optional[int]" = None,
        key_length: int = DEFAULT_KEY_LEN,
        chunk_size: "SymmetricMorph.typing.Optional[int]" = None,
        silent: bool = False
    ) -> str:
        """Encrypt ``file`` into a ``.smm`` container.

        With a password the salt, iteration count and key length are stored in
        the header so :meth:`decrypt_file` can re-derive the key. With a raw
        ``key`` the header carries an empty salt and zero iterations.
        """
        path = SymmetricMorph._normalize_path(file)
        SymmetricMorph._ensure_existing_file(path)
        if (password is None) == (key is None):
            raise ValueError("Provide exactly one of password or key")
        if key is not None:
            cipher = SymmetricMorph.from_key(key)
            header = SymmetricMorph._pack_file_header(b"", 0, cipher.key_length)
        else:
            rounds = SymmetricMorph.KDF_ITERATIONS if iterations is None else int(iterations)
            if rounds < 1:
                raise ValueError("Iteration count must be at least 1 for password containers")
            cipher, salt = SymmetricMorph.from_password(password, rounds, key_length)
            header = SymmetricMorph._pack_file_header(salt, rounds, key_length)
        out_path = SymmetricMorph._normalize_path(output) if output else path.with_name(path.name + SymmetricMorph.FILE_SUFFIX)
        tmp_path = out_path.with_name(out_path.name + ".part")
        try:
            with open(path, "rb") as src, open(tmp_path, "wb") as dst:
                dst.write(header)
                processed = cipher.encrypt_stream(src, dst, chunk_size)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        tmp_path.replace(out_path)
        if not (silent or SymmetricMorph._SILENT_MODE):
            print(f"{out_path.name}: encrypted {SymmetricMorph._human_readable_size(processed)}")
        return str(out_path)

    @staticmethod
    def decrypt_file(
        file: "SymmetricMorph.typing.Union[str, SymmetricMorph.pathlib.Path]",
        password: "SymmetricMorph.typing.Union[str, bytes, None]" = None,
        *,
        key: "SymmetricMorph.typing.Optional[bytes]" = None,
        output: "SymmetricMorph.typing.Optional[str]" = None,
        silent: bool = False
    ) -> str:
        path = SymmetricMorph._normalize_path(file)
        SymmetricMorph._ensure_existing_file(path)
        if (password is None) == (key is None):
            raise ValueError("Provide exactly one of password or key")
        if output:
            out_path = SymmetricMorph._normalize_path(output)
        elif path.suffix == SymmetricMorph.FILE_SUFFIX:
            out_path = path.with_suffix("")
        else:
            out_path = path.with_name(path.name + ".out")
        tmp_path = out_path.with_name(out_path.name + ".part")
        with open(path, "rb") as src:
            salt, iterations, key_length = SymmetricMorph._read_file_header(src)
            if iterations == 0:
                if key is None:
                    raise ValueError("Container was sealed with a raw key; key required")
                cipher = SymmetricMorph.from_key(key)
            else:
                if password is None:
                    raise ValueError("Container was sealed with a password; password required")
                cipher = SymmetricMorph.from_password_with_salt(password, salt, iterations, key_length)
            try:
                with open(tmp_path, "wb") as dst:
                    processed = cipher.decrypt_stream(src, dst)
            except BaseException:
                tmp_path.unlink(missing_ok=True)
                raise
        tmp_path.replace(out_path)
        if not (silent or SymmetricMorph._SILENT_MODE):
            print(f"{out_path.name}: decrypted {SymmetricMorph._human_readable_size(processed)}")
        return str(out_path)

    @staticmethod
    def save_key(path: "SymmetricMorph.typing.Union[str, SymmetricMorph.pathlib.Path]", key: bytes) -> str:
        key_bytes = SymmetricMorph._coerce_bytes(key, "key")
        if not key_bytes:
            raise ValueError("Key must not be empty")
        out_path = SymmetricMorph._normalize_path(path)
        out_path.write_text(key_bytes.hex() + "\n", encoding="utf-8")
        return str(out_path)

    @staticmethod
    def load_key(path: "SymmetricMorph.typing.Union[str, SymmetricMorph.pathlib.Path]") -> bytes:
        in_path = SymmetricMorph._normalize_path(path)
        SymmetricMorph._ensure_existing_file(in_path)
        text = in_path.read_text(encoding="utf-8").strip()
        try:
            key = bytes.fromhex(text)
        except ValueError as exc:
            raise FormatError(f"Key file is not valid hex: {in_path.name}") from exc
        if not key:
            raise FormatError(f"Key file is empty: {in_path.name}")
        return key
