"""
Test the carver against a synthetic host buffer with embedded file signatures.
This proves the carver can actually find and extract files.
Also tests: nearest-footer policy, overlapping spans, saving to disk.
"""
import os
import tempfile
import shutil
from unittest import mock

from forensics.carver import carve, extract, save_carved_files
from forensics.errors import CapacityExceeded, ForensicsError
from forensics.signatures import (
    SIG_GIF, SIG_JPEG, SIG_PDF, SIG_PNG, SIG_ZIP, Signature,
)


def _body(n):
    """Filler that never contains a header or footer byte sequence."""
    return bytes((i % 200) + 1 for i in range(n))


def build_test_image():
    """Create a ~20 KB host buffer with one embedded file of each type.

    Returns (buffer, {type: (offset, length)}).
    """
    buf = bytearray()
    layout = {}

    def embed(kind, header, body_len, footer):
        offset = len(buf)
        buf.extend(header + _body(body_len) + footer)
        layout[kind] = (offset, len(buf) - offset)
        print(f"  {kind:4s} at offset {offset} ({layout[kind][1]} bytes)")

    # Padding (simulates unrelated data before the first file)
    buf.extend(b"\x00" * 1024)
    # ZIP placed first in the buffer, last in the catalog
    embed("ZIP", b"PK\x03\x04", 900, b"PK\x05\x06")
    buf.extend(b"\x00" * 18)                    # end-of-central-directory tail
    buf.extend(b"\xAA" * 512)
    embed("JPEG", b"\xFF\xD8\xFF\xE0\x00\x10JFIF\x00", 4000, b"\xFF\xD9")
    buf.extend(b"\xBB" * 512)
    embed("PNG", b"\x89PNG\r\n\x1A\n", 3000, b"IEND\xAE\x42\x60\x82")
    buf.extend(b"\xCC" * 256)
    embed("PDF", b"%PDF-1.4\n", 2500, b"%%EOF")
    buf.extend(b"\xDD" * 256)
    embed("GIF", b"GIF89a", 1200, b"\x00\x3B")
    buf.extend(b"\x00" * 1024)
    print(f"  Total buffer size: {len(buf)} bytes ({len(buf) / 1024:.1f} KB)")
    return bytes(buf), layout


def main():
    print("=" * 60)
    print("  File Carver — Test Suite")
    print("=" * 60)
    print()

    test_header_footer_pair()
    test_file_carving()
    test_nearest_footer()
    test_overlapping_signatures()
    test_custom_catalog()
    test_memoryview_buffer()
    test_save_carved_files()
    test_capacity_exceeded()

    print()
    print("=" * 60)
    print("  ALL TESTS PASSED ✅")
    print("=" * 60)


def test_header_footer_pair():
    """A header immediately followed by its footer is one file."""
    print("── Test: header + footer ──")
    buf = SIG_PNG.header + SIG_PNG.footer
    result = carve(buf)
    assert result.total_found == 1
    cf = result.files[0]
    assert cf.type == "PNG"
    assert cf.offset == 0
    assert cf.length == 16
    assert cf.extension == "png"
    assert cf.hex_offset == "0x0"
    assert result.types == ("PNG",)

    assert carve(b"").total_found == 0
    assert carve(SIG_PNG.header).total_found == 0      # footer missing
    print("  ✅ header + footer: PASS")


def test_file_carving():
    """Every embedded type is carved with exact offset and length."""
    print("── Test: file carving ──")
    buf, layout = build_test_image()
    result = carve(buf)

    for cf in result.files:
        print(f"    {cf.extension:5s}  {cf.length:>6d} bytes  offset={cf.hex_offset}")

    assert result.total_found == 5
    # Catalog order, not buffer order
    assert [cf.type for cf in result.files] == ["JPEG", "PNG", "GIF", "PDF", "ZIP"]
    assert result.types == ("JPEG", "PNG", "GIF", "PDF", "ZIP")

    for cf in result.files:
        offset, length = layout[cf.type]
        assert cf.offset == offset, cf
        assert cf.length == length, cf
        data = extract(buf, cf)
        assert len(data) == cf.length

    jpeg = result.files[0]
    assert extract(buf, jpeg).startswith(SIG_JPEG.header)
    assert extract(buf, jpeg).endswith(SIG_JPEG.footer)

    d = result.to_dict()
    assert d["total_found"] == 5
    assert d["files"][0]["hex_offset"] == jpeg.hex_offset
    print("  ✅ file carving: PASS")


def test_nearest_footer():
    """Two headers before one footer give a single span from the first."""
    print("── Test: nearest footer ──")
    h, f = SIG_GIF.header, SIG_GIF.footer
    buf = h + b"aa" + h + b"bb" + f + b"cc" + f
    result = carve(buf, [SIG_GIF])
    assert result.total_found == 1
    cf = result.files[0]
    assert cf.offset == 0
    assert cf.end == len(h) + 2 + len(h) + 2 + len(f)

    # Back-to-back files are both found
    buf = (h + b"x" + f) * 3
    result = carve(buf, [SIG_GIF])
    assert [cf.offset for cf in result.files] == [0, 7, 14]
    assert all(cf.length == 7 for cf in result.files)
    print("  ✅ nearest footer: PASS")


def test_overlapping_signatures():
    """Spans from different signatures may overlap and are all kept."""
    print("── Test: overlapping signatures ──")
    jpeg = SIG_JPEG.header + b"xx" + SIG_JPEG.footer
    buf = SIG_PDF.header + b"-1.7 " + jpeg + b" " + SIG_PDF.footer
    result = carve(buf)
    assert result.total_found == 2
    by_type = {cf.type: cf for cf in result.files}
    assert by_type["PDF"].offset == 0
    assert by_type["PDF"].end == len(buf)
    assert by_type["JPEG"].offset == 9
    assert by_type["JPEG"].length == len(jpeg)
    assert by_type["PDF"].offset < by_type["JPEG"].offset < by_type["PDF"].end
    print("  ✅ overlapping signatures: PASS")


def test_custom_catalog():
    """Signatures without a footer are skipped."""
    print("── Test: custom catalog ──")
    no_footer = Signature("BMP", b"BM", extension="bmp")
    assert not no_footer.can_carve
    buf = b"BM" + b"\x00" * 10 + SIG_ZIP.header + b"data" + SIG_ZIP.footer
    result = carve(buf, [no_footer, SIG_ZIP])
    assert result.types == ("ZIP",)
    assert result.files[0].offset == 12
    print("  ✅ custom catalog: PASS")


def test_memoryview_buffer():
    """A memoryview host carves and extracts like the bytes it wraps."""
    print("── Test: memoryview buffer ──")
    png = SIG_PNG.header + SIG_PNG.footer
    result = carve(memoryview(png))
    assert result.types == ("PNG",)
    assert result.files[0].offset == 0
    assert result.files[0].length == 16

    buf, _ = build_test_image()
    view = memoryview(buf)
    assert carve(view) == carve(buf)
    for cf in carve(view).files:
        assert extract(view, cf) == extract(buf, cf)
    print("  ✅ memoryview buffer: PASS")


def test_save_carved_files():
    """Carved files land on disk with their exact bytes."""
    print("── Test: save carved files ──")
    tmpdir = tempfile.mkdtemp(prefix="test_carve_")
    try:
        buf, _ = build_test_image()
        result = carve(buf)
        out = os.path.join(tmpdir, "carved")
        paths = save_carved_files(buf, result, out)
        assert len(paths) == 5
        for i, (path, cf) in enumerate(zip(paths, result.files), start=1):
            assert os.path.basename(path) == f"carved_{i:04d}_{cf.offset:08X}.{cf.extension}"
            with open(path, "rb") as f:
                assert f.read() == extract(buf, cf)

        # A second save never overwrites the first
        again = save_carved_files(buf, result, out)
        assert len(set(paths) | set(again)) == 10
        print("  ✅ save carved files: PASS")
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


def test_capacity_exceeded():
    """Not enough free space: nothing is written."""
    print("── Test: capacity exceeded ──")
    tmpdir = tempfile.mkdtemp(prefix="test_capacity_")
    try:
        buf, _ = build_test_image()
        result = carve(buf)
        with mock.patch("forensics.carver.shutil.disk_usage",
                        return_value=mock.Mock(free=10)):
            try:
                save_carved_files(buf, result, tmpdir)
            except CapacityExceeded as e:
                assert isinstance(e, ForensicsError)
                assert e.available == 10
                assert e.needed == sum(cf.length for cf in result.files)
            else:
                raise AssertionError("CapacityExceeded not raised")
        assert os.listdir(tmpdir) == []
        print("  ✅ capacity exceeded: PASS")
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


if __name__ == "__main__":
    main()
