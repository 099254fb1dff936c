"""
Test GZIP compression with ratio reporting and rejection of bad streams.
"""
import os

from forensics.compression import (
    CompressionResult, compress, compressed_name, decompress, decompressed_name,
)
from forensics.errors import DecompressionError, ForensicsError
from forensics.signatures import detect_type


def main():
    print("=" * 60)
    print("  GZIP Compression — Test Suite")
    print("=" * 60)
    print()

    test_compress()
    test_ratio()
    test_decompress_invalid()
    test_names()

    print()
    print("=" * 60)
    print("  ALL TESTS PASSED ✅")
    print("=" * 60)


def test_compress():
    print("── Test: compress ──")
    data = b"forensics " * 500
    result = compress(data)
    assert result.original_size == 5000
    assert result.compressed_size == len(result.data)
    assert result.compressed_size < 200
    assert detect_type(result.data) == "GZIP Archive"
    assert result.algorithm == "GZIP"

    # Same input, same stream
    assert compress(data).data == result.data
    assert decompress(result.data) == data

    # Concatenated members inflate back-to-back
    assert decompress(result.data + compress(b"tail").data) == data + b"tail"
    print("  ✅ compress: PASS")


def test_ratio():
    print("── Test: ratio ──")
    result = CompressionResult(data=b"", original_size=200, compressed_size=50)
    assert result.ratio == 75.0
    assert result.to_dict() == {
        "original_size": 200,
        "compressed_size": 50,
        "ratio": "75.00%",
        "algorithm": "GZIP",
    }

    # Random bytes only grow
    noise = compress(os.urandom(4096))
    assert noise.ratio < 0
    assert noise.to_dict()["ratio"].startswith("-")

    empty = compress(b"")
    assert empty.ratio == 0.0
    assert decompress(empty.data) == b""
    print("  ✅ ratio: PASS")


def test_decompress_invalid():
    print("── Test: decompress invalid ──")
    stream = compress(b"evidence " * 100).data
    for bad in (b"definitely not gzip", stream[:-8], stream[:12]):
        try:
            decompress(bad)
        except DecompressionError as e:
            assert isinstance(e, ForensicsError)
            assert str(e).startswith("Decompression failed. Not a valid GZIP file.")
        else:
            raise AssertionError(f"accepted {bad[:12]!r}")
    print("  ✅ decompress invalid: PASS")


def test_names():
    print("── Test: output names ──")
    assert compressed_name("disk.img") == "disk.img.gz"
    assert decompressed_name("disk.img.gz") == "disk.img"
    assert decompressed_name("DISK.IMG.GZ") == "DISK.IMG"
    assert decompressed_name("disk.img") == "disk.img.out"
    assert decompressed_name(".gz") == ".gz.out"
    print("  ✅ output names: PASS")


if __name__ == "__main__":
    main()
