"""Command line entry point and public re-exports of the engine."""

from .engine import FormatError, IntegrityError, SymmetricMorph, SymmetricMorphError


def _resolve_secret(args) -> "tuple[str | None, bytes | None]":
    if args.key_file:
        return None, SymmetricMorph.load_key(args.key_file)
    password = args.password
    if SymmetricMorph.os.path.isfile(password):
        with open(password, "r", encoding="utf-8") as handle:
            password = handle.read().rstrip("\n")
    if not password:
        raise ValueError("Password required (use -p or -k)")
    return password, None


def cli(argv=None) -> int:
    import argparse

    parser = argparse.ArgumentParser(prog="symmetricmorph", description="SymmetricMorph stream cipher")
    subparsers = parser.add_subparsers(dest="command", required=True)

    keygen = subparsers.add_parser("keygen", help="Generate a raw key and print or store it as hex")
    keygen.add_argument(
        "-n", "--length",
        type=int,
        default=SymmetricMorph.DEFAULT_KEY_LEN,
        help="Key length in bytes"
    )
    keygen.add_argument("-o", "--output", default=None, help="Write the key to this file instead of stdout")

    for name, verb in (("encrypt", "Encrypt"), ("decrypt", "Decrypt")):
        sub = subparsers.add_parser(name, help=f"{verb} one or more files")
        sub.add_argument("paths", nargs='+', help="One or more file paths")
        secret = sub.add_mutually_exclusive_group(required=True)
        secret.add_argument("-p", "--password", default="", help="Password text or path to a password file")
        secret.add_argument("-k", "--key-file", default=None, help="Hex key file produced by keygen")
        sub.add_argument(
            "-o", "--output",
            default=None,
            help="Output path (single input only)"
        )
        sub.add_argument(
            "--silent",
            action="store_true",
            help="Suppress per-file status lines"
        )
        if name == "encrypt":
            sub.add_argument(
                "--iterations",
                type=int,
                default=None,
                help=f"Key derivation rounds (default {SymmetricMorph.KDF_ITERATIONS})"
            )
            sub.add_argument(
                "--chunk-size",
                type=int,
                default=None,
                help=f"Plaintext bytes per record (default {SymmetricMorph.STREAM_CHUNK_SIZE})"
            )

    args = parser.parse_args(argv)

    if args.command == "keygen":
        try:
            key = SymmetricMorph.generate_key(args.length)
        except ValueError as exc:
            parser.error(str(exc))
        if args.output:
            print(SymmetricMorph.save_key(args.output, key))
        else:
            print(key.hex())
        return 0

    if args.output and len(args.paths) > 1:
        parser.error("--output can only be used with a single input path")

    try:
        password, key = _resolve_secret(args)
    except (ValueError, OSError) as exc:
        print(f"Failed to load secret: {exc}")
        return 1

    results = {}
    for raw_path in args.paths:
        try:
            if args.command == "encrypt":
                SymmetricMorph.encrypt_file(
                    raw_path,
                    password,
                    key=key,
                    output=args.output,
                    iterations=args.iterations,
                    chunk_size=args.chunk_size,
                    silent=args.silent
                )
            else:
                SymmetricMorph.decrypt_file(
                    raw_path,
                    password,
                    key=key,
                    output=args.output,
                    silent=args.silent
                )
            results[str(raw_path)] = "SUCCESS!"
        except (ValueError, OSError) as exc:
            results[str(raw_path)] = f"FAIL! {exc}"

    failures = 0
    for path, status in results.items():
        if status != "SUCCESS!":
            failures += 1
            print(f"{path}: {status}")
        elif not args.silent:
            print(f"{path}: {status}")
    return 0 if failures == 0 else 1


def main(argv=None) -> int:
    return cli(argv)


__all__ = [
    "FormatError",
    "IntegrityError",
    "SymmetricMorph",
    "SymmetricMorphError",
    "cli",
    "main",
]


if __name__ == "__main__":
    raise SystemExit(main())
