#!/usr/bin/env python3
"""Quick encrypt/decrypt throughput check - direct timing only"""
import random
import sys
import time


SIZE = 256 * 1024


def bench_python(size: int):
    """Benchmark one encrypt/decrypt cycle"""
    from symmetricmorph import from_password

    cipher, _salt = from_password("PerformanceTestPassword")
    plain = bytes(random.getrandbits(8) for _ in range(size))

    start = time.perf_counter()
    record = cipher.encrypt(plain)
    enc_time = time.perf_counter() - start

    start = time.perf_counter()
    restored = cipher.decrypt(record)
    dec_time = time.perf_counter() - start

    if restored != plain:
        raise RuntimeError("Decrypted data does not match original!")
    return enc_time, dec_time


def main():
    size = int(sys.argv[1]) if len(sys.argv) > 1 else SIZE
    mib = size / (1024 * 1024)
    print(f"Benchmarking encrypt/decrypt of {mib:.2f} MiB...")

    enc_time, dec_time = bench_python(size)
    print(f"  Encrypt: {enc_time:.3f}s ({mib / enc_time:.2f} MiB/s)")
    print(f"  Decrypt: {dec_time:.3f}s ({mib / dec_time:.2f} MiB/s)")

    print("\n✅ Python benchmark complete")


if __name__ == '__main__':
    main()
