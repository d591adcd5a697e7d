import io
import os
import site
import subprocess
import sys
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from tempfile import TemporaryDirectory

REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

try:
    import symmetricmorph
    from symmetricmorph.main import FormatError, IntegrityError, SymmetricMorph, cli
except ModuleNotFoundError as exc:  # pragma: no cover - dependency missing
    symmetricmorph = None
    _IMPORT_ERROR = exc
else:
    _IMPORT_ERROR = None


FAST_ITERS = 32


@unittest.skipIf(symmetricmorph is None, f"dependency unavailable: {_IMPORT_ERROR}")
class SymmetricMorphApiTests(unittest.TestCase):
    """Module-level wrappers, text helpers, file containers and key files."""

    def setUp(self) -> None:
        self.tmpdir = TemporaryDirectory()
        self.tmp_path = Path(self.tmpdir.name)

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_module_wrappers(self):
        cipher, salt = symmetricmorph.from_password("pw", iterations=FAST_ITERS)
        again = symmetricmorph.from_password_with_salt("pw", salt, iterations=FAST_ITERS)
        record = cipher.encrypt(b"wrapped")
        self.assertEqual(again.decrypt(record), b"wrapped")
        raw = symmetricmorph.from_key(symmetricmorph.generate_key(16))
        self.assertEqual(raw.key_length, 16)
        self.assertEqual(symmetricmorph.__version__, SymmetricMorph.ENGINE_VERSION)
        setup_src = (REPO_ROOT / "setup.py").read_text(encoding="utf-8")
        self.assertIn("version=read_version()", setup_src)

    def test_text_roundtrip(self):
        cipher = symmetricmorph.from_key(bytes(range(64)))
        token = symmetricmorph.encrypt_text("Hello, SymmetricMorph! é✓", cipher)
        self.assertIsInstance(token, str)
        self.assertEqual(symmetricmorph.decrypt_text(token, cipher), "Hello, SymmetricMorph! é✓")

    def test_text_rejects_bad_token(self):
        cipher = symmetricmorph.from_key(bytes(range(64)))
        with self.assertRaises(ValueError):
            symmetricmorph.decrypt_text("not base64!!", cipher)
        with self.assertRaises(FormatError):
            symmetricmorph.decrypt_text("AAAA", cipher)

    def test_password_file_cycle(self):
        src = self.tmp_path / "note.txt"
        src.write_bytes(b"classified" * 500)
        sealed = symmetricmorph.encrypt_file(str(src), "pw", iterations=FAST_ITERS, chunk_size=777, silent=True)
        self.assertTrue(sealed.endswith("note.txt.smm"))
        blob = Path(sealed).read_bytes()
        self.assertTrue(blob.startswith(SymmetricMorph.FILE_MAGIC))
        src.unlink()
        restored = symmetricmorph.decrypt_file(sealed, "pw", silent=True)
        self.assertEqual(Path(restored), src.resolve())
        self.assertEqual(src.read_bytes(), b"classified" * 500)

    def test_raw_key_file_cycle(self):
        key = bytes(range(100, 164))
        src = self.tmp_path / "data.bin"
        src.write_bytes(b"FWX\x00PQ")
        out = self.tmp_path / "custom.bin"
        sealed = symmetricmorph.encrypt_file(src, key=key, output=str(self.tmp_path / "data.sealed"), silent=True)
        restored = symmetricmorph.decrypt_file(sealed, key=key, output=str(out), silent=True)
        self.assertEqual(Path(restored).read_bytes(), b"FWX\x00PQ")
        with self.assertRaises(ValueError):
            symmetricmorph.decrypt_file(sealed, "pw", silent=True)

    def test_empty_file_cycle(self):
        src = self.tmp_path / "empty.txt"
        src.write_bytes(b"")
        sealed = symmetricmorph.encrypt_file(src, "pw", iterations=FAST_ITERS, silent=True)
        src.unlink()
        symmetricmorph.decrypt_file(sealed, "pw", silent=True)
        self.assertEqual(src.read_bytes(), b"")

    def test_wrong_password_leaves_no_output(self):
        src = self.tmp_path / "secret.txt"
        src.write_bytes(b"top secret")
        sealed = symmetricmorph.encrypt_file(src, "right", iterations=FAST_ITERS, silent=True)
        target = self.tmp_path / "restored.txt"
        with self.assertRaises(IntegrityError):
            symmetricmorph.decrypt_file(sealed, "wrong", output=str(target), silent=True)
        self.assertFalse(target.exists())
        self.assertFalse((self.tmp_path / "restored.txt.part").exists())

    def test_failed_encrypt_leaves_no_output(self):
        src = self.tmp_path / "data.bin"
        src.write_bytes(b"payload" * 10)
        with self.assertRaises(ValueError):
            symmetricmorph.encrypt_file(src, "pw", iterations=FAST_ITERS, chunk_size=0, silent=True)
        self.assertFalse((self.tmp_path / "data.bin.smm").exists())
        self.assertFalse((self.tmp_path / "data.bin.smm.part").exists())
        sealed = symmetricmorph.encrypt_file(src, "pw", iterations=FAST_ITERS, silent=True)
        self.assertTrue(Path(sealed).exists())
        self.assertFalse(Path(sealed + ".part").exists())

    def test_bad_container_is_format_error(self):
        junk = self.tmp_path / "junk.smm"
        junk.write_bytes(b"NOPE" + bytes(20))
        with self.assertRaises(FormatError):
            symmetricmorph.decrypt_file(junk, "pw", silent=True)
        junk.write_bytes(b"SM")
        with self.assertRaises(FormatError):
            symmetricmorph.decrypt_file(junk, "pw", silent=True)

    def test_file_requires_exactly_one_secret(self):
        src = self.tmp_path / "a.txt"
        src.write_bytes(b"a")
        with self.assertRaises(ValueError):
            symmetricmorph.encrypt_file(src, silent=True)
        with self.assertRaises(ValueError):
            symmetricmorph.encrypt_file(src, "pw", key=b"k", silent=True)
        with self.assertRaises(FileNotFoundError):
            symmetricmorph.encrypt_file(self.tmp_path / "missing.txt", "pw", silent=True)

    def test_status_line_respects_silent(self):
        src = self.tmp_path / "loud.txt"
        src.write_bytes(b"hello")
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            symmetricmorph.encrypt_file(src, "pw", iterations=FAST_ITERS)
        self.assertIn("loud.txt.smm: encrypted", buffer.getvalue())
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            symmetricmorph.encrypt_file(src, "pw", iterations=FAST_ITERS, silent=True)
        self.assertEqual(buffer.getvalue(), "")

    def test_key_file_roundtrip(self):
        key = symmetricmorph.generate_key(32)
        path = symmetricmorph.save_key(self.tmp_path / "k.hex", key)
        self.assertEqual(symmetricmorph.load_key(path), key)
        bad = self.tmp_path / "bad.hex"
        bad.write_text("zz\n", encoding="utf-8")
        with self.assertRaises(FormatError):
            symmetricmorph.load_key(bad)


@unittest.skipIf(symmetricmorph is None, f"dependency unavailable: {_IMPORT_ERROR}")
class SymmetricMorphCliTests(unittest.TestCase):
    """CLI smokes, in-process and through ``python -m symmetricmorph``."""

    def setUp(self) -> None:
        self.tmpdir = TemporaryDirectory()
        self.tmp_path = Path(self.tmpdir.name)
        self.user_site = site.getusersitepackages()
        self.repo_root = REPO_ROOT

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def _run_cli(self, *args: str) -> subprocess.CompletedProcess:
        env = os.environ.copy()
        env["PYTHONPATH"] = os.pathsep.join(
            filter(None, [str(self.repo_root), self.user_site, env.get("PYTHONPATH")])
        )
        return subprocess.run(
            [sys.executable, "-m", "symmetricmorph", *args],
            cwd=self.repo_root,
            capture_output=True,
            text=True,
            env=env,
        )

    def test_cli_password_cycle(self):
        src = self.tmp_path / "cli.txt"
        src.write_text("cli-power", encoding="utf-8")

        result = self._run_cli("encrypt", str(src), "-p", "pw", "--iterations", "16")
        self.assertEqual(result.returncode, 0, msg=result.stderr + result.stdout)
        self.assertIn("SUCCESS!", result.stdout)

        sealed = self.tmp_path / "cli.txt.smm"
        self.assertTrue(sealed.exists())
        src.unlink()

        result = self._run_cli("decrypt", str(sealed), "-p", "pw")
        self.assertEqual(result.returncode, 0, msg=result.stderr + result.stdout)
        self.assertEqual(src.read_text(encoding="utf-8"), "cli-power")

    def test_cli_keygen_and_key_file(self):
        key_path = self.tmp_path / "key.hex"
        self.assertEqual(cli(["keygen", "-n", "24", "-o", str(key_path)]), 0)
        self.assertEqual(len(SymmetricMorph.load_key(key_path)), 24)

        src = self.tmp_path / "raw.bin"
        src.write_bytes(bytes(range(256)))
        with redirect_stdout(io.StringIO()):
            self.assertEqual(cli(["encrypt", str(src), "-k", str(key_path), "--silent"]), 0)
            sealed = self.tmp_path / "raw.bin.smm"
            out = self.tmp_path / "raw.out"
            self.assertEqual(cli(["decrypt", str(sealed), "-k", str(key_path), "-o", str(out)]), 0)
        self.assertEqual(out.read_bytes(), bytes(range(256)))

    def test_cli_keygen_stdout(self):
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            self.assertEqual(cli(["keygen", "-n", "8"]), 0)
        self.assertEqual(len(bytes.fromhex(buffer.getvalue().strip())), 8)

    def test_cli_wrong_password_reports_failure(self):
        src = self.tmp_path / "x.txt"
        src.write_text("x", encoding="utf-8")
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            self.assertEqual(cli(["encrypt", str(src), "-p", "right", "--iterations", "8", "--silent"]), 0)
            code = cli(["decrypt", str(self.tmp_path / "x.txt.smm"), "-p", "wrong", "-o", str(self.tmp_path / "y.txt")])
        self.assertEqual(code, 1)
        self.assertIn("FAIL!", buffer.getvalue())
        self.assertIn("MAC verification failed", buffer.getvalue())

    def test_cli_missing_file_reports_failure(self):
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            code = cli(["encrypt", str(self.tmp_path / "nope.txt"), "-p", "pw", "--iterations", "8"])
        self.assertEqual(code, 1)
        self.assertIn("Input file not found", buffer.getvalue())


if __name__ == "__main__":
    unittest.main()
