"""
Test file metadata and EXIF extraction on images built with Pillow.
"""
import io

from PIL import Image
from PIL.PngImagePlugin import PngInfo

from forensics.metadata import (
    analyze_image_without_exif, assess_privacy, dms_to_degrees, dominant_color,
    extract_exif, extract_metadata, guess_source, image_dimensions,
    organize_exif, strip_metadata,
)

TAG_MAKE = 0x010F
TAG_MODEL = 0x0110
TAG_SOFTWARE = 0x0131


def build_jpeg(exif_tags=None, size=(32, 16)):
    """Small in-memory JPEG, optionally with IFD0 EXIF tags."""
    img = Image.new("RGB", size, (200, 30, 30))
    buf = io.BytesIO()
    if exif_tags:
        exif = Image.Exif()
        for tag, value in exif_tags.items():
            exif[tag] = value
        img.save(buf, format="JPEG", exif=exif)
    else:
        img.save(buf, format="JPEG")
    return buf.getvalue()


def build_png(size, color, mode="RGB", text=None):
    """Lossless in-memory PNG of one colour, optionally with tEXt chunks."""
    img = Image.new(mode, size, color)
    info = PngInfo()
    for key, value in (text or {}).items():
        info.add_text(key, value)
    buf = io.BytesIO()
    img.save(buf, format="PNG", pnginfo=info)
    return buf.getvalue()


def main():
    print("=" * 60)
    print("  Metadata / EXIF — Test Suite")
    print("=" * 60)
    print()

    test_metadata_image()
    test_metadata_binary()
    test_exif_present()
    test_exif_missing()
    test_gps()
    test_privacy_minimal()
    test_analysis_without_exif()
    test_source_guess()
    test_strip_metadata()
    test_strip_metadata_errors()

    print()
    print("=" * 60)
    print("  ALL TESTS PASSED ✅")
    print("=" * 60)


def test_metadata_image():
    print("── Test: metadata (image) ──")
    data = build_jpeg(size=(40, 20))
    meta = extract_metadata(data, "evidence.jpeg")
    assert meta["basic"] == {"name": "evidence.jpeg", "size": len(data), "extension": "JPEG"}
    assert meta["forensic"]["detected_type"] == "JPEG Image"
    assert meta["forensic"]["signature"].startswith("FF D8 FF")
    assert meta["image"] == {"width": 40, "height": 20, "aspect_ratio": 2.0,
                             "megapixels": 0.0}
    print("  ✅ metadata (image): PASS")


def test_metadata_binary():
    print("── Test: metadata (binary) ──")
    meta = extract_metadata(b"hello")
    assert meta["forensic"]["signature"] == "68 65 6C 6C 6F"
    assert meta["forensic"]["detected_type"] == "Unknown"
    assert meta["image"] is None
    assert image_dimensions(b"") is None

    meta = extract_metadata(bytes(range(256)) * 4)
    assert meta["forensic"]["entropy"] == 8.0
    assert meta["forensic"]["is_encrypted"]
    assert meta["forensic"]["is_compressed"]
    assert meta["cryptographic"]["randomness"] == "100.0%"

    meta = extract_metadata(b"")
    assert meta["forensic"]["entropy"] == 0.0
    assert meta["forensic"]["signature"] == ""
    print("  ✅ metadata (binary): PASS")


def test_exif_present():
    print("── Test: EXIF present ──")
    data = build_jpeg({TAG_MAKE: "TestCam", TAG_MODEL: "TC-1", TAG_SOFTWARE: "Editor 1.0"})
    exif = extract_exif(data)
    assert exif["available"] is True
    assert exif["stripped"] is False
    assert exif["camera"]["make"] == "TestCam"
    assert exif["camera"]["model"] == "TC-1"
    assert exif["software"]["software"] == "Editor 1.0"
    assert exif["gps"] == {"found": False}
    assert exif["raw"]["Make"] == "TestCam"
    assert exif["image"]["width"] == 32

    analysis = exif["forensic_analysis"]
    risk_types = [r["type"] for r in analysis["privacy_risks"]]
    assert "Device Information" in risk_types
    assert "Image edited with: Editor 1.0" in analysis["suspicious_patterns"]
    assert analysis["recommendations"][-1] == "Strip all EXIF metadata before publishing"
    assert exif["file_analysis"]["dimensions"]["width"] == 32
    print("  ✅ EXIF present: PASS")


def test_exif_missing():
    print("── Test: EXIF missing ──")
    exif = extract_exif(build_jpeg())
    assert exif["available"] is False
    assert exif["stripped"] is True
    assert exif["image"]["height"] == 16

    # Not an image at all: reported, never raised
    exif = extract_exif(b"definitely not an image")
    assert exif["available"] is False
    assert "error" in exif
    assert exif["file_analysis"] == {"error": "Failed to analyze image"}
    print("  ✅ EXIF missing: PASS")


def test_gps():
    print("── Test: GPS ──")
    assert dms_to_degrees([40, 26, 46.302], "N") == 40.446195
    assert dms_to_degrees([40, 26, 46.302], "S") == -40.446195
    assert dms_to_degrees([73, 58, 56.0], "W") == -73.982222
    assert dms_to_degrees(None) is None
    assert dms_to_degrees([1, 2]) is None

    gps = {
        "GPSLatitude": [51, 30, 0.0], "GPSLatitudeRef": "N",
        "GPSLongitude": [0, 7, 30.0], "GPSLongitudeRef": "W",
        "GPSAltitude": 35.0,
    }
    organized = organize_exif({"Make": "TestCam", "FNumber": 2.8}, gps)
    assert organized["gps"]["found"] is True
    assert organized["gps"]["latitude"] == 51.5
    assert organized["gps"]["longitude"] == -0.125
    assert organized["gps"]["altitude"] == 35.0
    assert organized["settings"]["aperture"] == "f/2.8"

    analysis = assess_privacy(organized)
    assert analysis["privacy_risks"][0]["type"] == "Location Data"
    assert analysis["privacy_risks"][0]["level"] == "HIGH"
    assert "Remove GPS data before sharing online" in analysis["recommendations"]
    print("  ✅ GPS: PASS")


def test_privacy_minimal():
    print("── Test: privacy (minimal) ──")
    analysis = assess_privacy(organize_exif({}, {}))
    assert [r["type"] for r in analysis["privacy_risks"]] == ["Minimal Risk"]
    assert analysis["suspicious_patterns"] == []
    print("  ✅ privacy (minimal): PASS")


def test_analysis_without_exif():
    print("── Test: analysis without EXIF ──")
    data = build_png((40, 20), (10, 200, 30))
    exif = extract_exif(data, "Screenshot_2024-01-01.png")
    assert exif["available"] is False
    analysis = exif["file_analysis"]
    assert analysis["dimensions"] == {"width": 40, "height": 20,
                                      "aspect_ratio": 2.0, "megapixels": 0.0}
    assert analysis["color_analysis"] == {
        "average_red": 10, "average_green": 200, "average_blue": 30,
        "dominant_color": "Green-dominant",
    }
    assert analysis["patterns"] == {"has_uniform_border": True, "likely_screenshot": True}
    assert analysis["likely_source"] == ["Screenshot"]

    # One dark pixel in the top row breaks the border; odd sizes are no screenshot
    img = Image.new("RGB", (33, 21), (200, 30, 30))
    img.putpixel((5, 0), (0, 0, 0))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    analysis = analyze_image_without_exif(buf.getvalue(), "photo.png")
    assert analysis["dimensions"]["aspect_ratio"] == 1.571
    assert analysis["color_analysis"]["average_red"] == 200
    assert analysis["color_analysis"]["dominant_color"] == "Red-dominant"
    assert analysis["patterns"] == {"has_uniform_border": False, "likely_screenshot": False}
    assert analysis["likely_source"] == ["Unknown source"]

    assert analyze_image_without_exif(b"nope") == {"error": "Failed to analyze image"}
    print("  ✅ analysis without EXIF: PASS")


def test_source_guess():
    print("── Test: source guess ──")
    assert guess_source(1170, 2532, "IMG_1234.HEIC") == ["iPhone 13/14 Pro", "iPhone Camera"]
    assert guess_source(1080, 1920, "IMG-20240101-WA0001.jpg") == [
        "Instagram Story/TikTok", "WhatsApp (EXIF Stripped)"]
    assert guess_source(1920, 1080, "screenshot.png") == [
        "Desktop Screenshot (1080p)", "Screenshot"]
    assert guess_source(640, 480, "PXL_20240101.jpg") == ["Google Pixel"]
    assert guess_source(10, 10) == ["Unknown source"]

    assert dominant_color(5, 5, 1) == "Red-dominant"
    assert dominant_color(1, 5, 5) == "Green-dominant"
    assert dominant_color(1, 2, 3) == "Blue-dominant"
    print("  ✅ source guess: PASS")


def test_strip_metadata():
    print("── Test: strip metadata ──")
    data = build_jpeg({TAG_MAKE: "TestCam", TAG_SOFTWARE: "Editor 1.0"}, size=(24, 12))
    assert extract_exif(data)["available"] is True

    result = strip_metadata(data, "holiday/photo.jpg")
    assert result["success"] is True
    assert result["name"] == "clean_photo.png"
    assert result["original_size"] == len(data)
    assert result["clean_size"] == len(result["data"])
    assert "GPS" in result["removed"]
    clean = result["data"]
    assert clean.startswith(b"\x89PNG")
    with Image.open(io.BytesIO(clean)) as img:
        assert img.size == (24, 12)
        assert img.mode == "RGB"
        assert len(img.getexif()) == 0
    assert extract_exif(clean)["available"] is False

    # Text chunks go too; transparency survives
    data = build_png((8, 8), (1, 2, 3, 128), mode="RGBA", text={"Author": "Jane"})
    with Image.open(io.BytesIO(data)) as img:
        assert img.info["Author"] == "Jane"
    clean = strip_metadata(data, "a.png")["data"]
    with Image.open(io.BytesIO(clean)) as img:
        assert "Author" not in img.info
        assert img.mode == "RGBA"
        assert img.getpixel((0, 0)) == (1, 2, 3, 128)
    print("  ✅ strip metadata: PASS")


def test_strip_metadata_errors():
    print("── Test: strip metadata errors ──")
    assert strip_metadata(b"hello") == {
        "success": False, "error": "Can only strip metadata from images"}
    broken = b"\xFF\xD8\xFF\xE0" + bytes(20)
    assert strip_metadata(broken) == {"success": False, "error": "Failed to load image"}
    print("  ✅ strip metadata errors: PASS")


if __name__ == "__main__":
    main()
