"""
Metadata Extractor — file-level facts plus EXIF via Pillow.

extract_metadata() summarises a buffer the way the overview panel shows it:
signature bytes, detected type, sample entropy, SHA-256, and (for images)
dimensions.

EXIF tag names come from Pillow's ExifTags tables; this module only groups
the named tags into camera / settings / gps / timestamps / software /
advanced and derives privacy findings from them.

Without EXIF, analyze_image_without_exif() falls back to the pixels:
average colour, a screenshot heuristic and resolution-based source
guesses.  strip_metadata() re-renders an image so none of its metadata
survives.
"""

from __future__ import annotations

import io
import os
import re
import logging
from typing import Optional

from PIL import Image, ExifTags, ImageStat, TiffImagePlugin

from .entropy import shannon_entropy
from .hashing import compute_sha256
from .signatures import detect_type, file_signature

logger = logging.getLogger(__name__)

# Bytes sampled from the start of the file for entropy / type
DEFAULT_SAMPLE_SIZE = 8192

COMPRESSED_THRESHOLD = 7.5
ENCRYPTED_THRESHOLD = 7.9


def extract_metadata(data: bytes, name: str = "",
                     sample_size: int = DEFAULT_SAMPLE_SIZE) -> dict:
    sample = data[:min(max(1, sample_size), len(data))]
    entropy = round(shannon_entropy(sample), 4)
    _, ext = os.path.splitext(name)
    return {
        "basic": {
            "name": name,
            "size": len(data),
            "extension": ext.lstrip(".").upper(),
        },
        "forensic": {
            "signature": file_signature(sample),
            "detected_type": detect_type(sample),
            "entropy": entropy,
            "is_compressed": entropy > COMPRESSED_THRESHOLD,
            "is_encrypted": entropy > ENCRYPTED_THRESHOLD,
        },
        "cryptographic": {
            "sha256": compute_sha256(data),
            "randomness": f"{entropy / 8 * 100:.1f}%",
        },
        "image": image_dimensions(data),
    }


def image_dimensions(data: bytes) -> Optional[dict]:
    """Width/height/aspect/megapixels, or None if Pillow can't open it."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
    except Exception as e:
        logger.debug("Not a decodable image (%d bytes): %s", len(data), e)
        return None
    return {
        "width": width,
        "height": height,
        "aspect_ratio": round(width / height, 2) if height else 0.0,
        "megapixels": round(width * height / 1_000_000, 2),
    }


# ══════════════════════════════════════════════════════════════
#  EXIF
# ══════════════════════════════════════════════════════════════

def _plain(value):
    """EXIF value → JSON-friendly Python value."""
    if isinstance(value, TiffImagePlugin.IFDRational):
        return float(value) if value.denominator else None
    if isinstance(value, bytes):
        return value.rstrip(b"\x00").decode("latin-1")
    if isinstance(value, str):
        return value.rstrip("\x00").strip()
    if isinstance(value, (tuple, list)):
        return [_plain(v) for v in value]
    return value


def read_exif(data: bytes) -> tuple[dict, dict]:
    """(named main+Exif IFD tags, named GPS tags).  Raises on undecodable input."""
    with Image.open(io.BytesIO(data)) as img:
        exif = img.getexif()
        raw = {ExifTags.TAGS.get(k, k): _plain(v) for k, v in exif.items()
               if not isinstance(v, dict)}
        sub = exif.get_ifd(ExifTags.IFD.Exif)
        raw.update({ExifTags.TAGS.get(k, k): _plain(v) for k, v in sub.items()})
        gps_ifd = exif.get_ifd(ExifTags.IFD.GPSInfo)
        gps = {ExifTags.GPSTAGS.get(k, k): _plain(v) for k, v in gps_ifd.items()}
    # IFD pointers are structure, not content
    for pointer in ("ExifOffset", "GPSInfo"):
        raw.pop(pointer, None)
    return raw, gps


def dms_to_degrees(dms, ref: str = "") -> Optional[float]:
    """[deg, min, sec] → signed decimal degrees (S and W are negative)."""
    try:
        deg, minutes, seconds = (float(x) for x in dms)
    except (TypeError, ValueError):
        return None
    value = deg + minutes / 60 + seconds / 3600
    if ref.upper() in ("S", "W"):
        value = -value
    return round(value, 6)


def _gps_group(gps: dict) -> dict:
    lat = dms_to_degrees(gps.get("GPSLatitude"), gps.get("GPSLatitudeRef") or "")
    lon = dms_to_degrees(gps.get("GPSLongitude"), gps.get("GPSLongitudeRef") or "")
    if lat is None or lon is None:
        return {"found": False}
    return {
        "found": True,
        "latitude": lat,
        "longitude": lon,
        "coordinates": f"{lat}, {lon}",
        "altitude": gps.get("GPSAltitude"),
        "maps_url": f"https://www.google.com/maps?q={lat},{lon}",
    }


# (group, output key, EXIF tag name, format)
_GROUPS = [
    ("camera", "make", "Make", "{}"),
    ("camera", "model", "Model", "{}"),
    ("camera", "lens", "LensModel", "{}"),
    ("camera", "serial_number", "BodySerialNumber", "{}"),
    ("settings", "iso", "ISOSpeedRatings", "{}"),
    ("settings", "aperture", "FNumber", "f/{}"),
    ("settings", "shutter_speed", "ExposureTime", "{}s"),
    ("settings", "focal_length", "FocalLength", "{}mm"),
    ("settings", "flash", "Flash", "{}"),
    ("settings", "white_balance", "WhiteBalance", "{}"),
    ("timestamps", "taken", "DateTimeOriginal", "{}"),
    ("timestamps", "created", "DateTimeDigitized", "{}"),
    ("timestamps", "modified", "DateTime", "{}"),
    ("software", "software", "Software", "{}"),
    ("software", "processor", "ProcessingSoftware", "{}"),
    ("advanced", "width", "ExifImageWidth", "{}"),
    ("advanced", "height", "ExifImageHeight", "{}"),
    ("advanced", "orientation", "Orientation", "{}"),
    ("advanced", "color_space", "ColorSpace", "{}"),
    ("advanced", "dpi", "XResolution", "{}"),
]


def organize_exif(raw: dict, gps: dict) -> dict:
    organized = {g: {} for g in ("camera", "settings", "timestamps", "software", "advanced")}
    for group, key, tag, fmt in _GROUPS:
        value = raw.get(tag)
        if value in (None, "", []):
            continue
        organized[group][key] = value if fmt == "{}" else fmt.format(value)
    organized["gps"] = _gps_group(gps)
    return organized


def assess_privacy(organized: dict) -> dict:
    """Privacy risks, suspicious patterns and recommendations for shared images."""
    risks = []
    suspicious = []
    recommendations = []
    camera = organized.get("camera", {})
    gps = organized.get("gps", {})

    if gps.get("found"):
        risks.append({"level": "HIGH", "type": "Location Data",
                      "description": f"GPS coordinates expose exact location: {gps['coordinates']}"})
    if camera.get("make") or camera.get("model"):
        device = " ".join(str(camera[k]) for k in ("make", "model") if camera.get(k))
        risks.append({"level": "MEDIUM", "type": "Device Information",
                      "description": f"Camera/phone model exposed: {device}"})
    if camera.get("serial_number"):
        risks.append({"level": "HIGH", "type": "Serial Number",
                      "description": "Device serial number can uniquely identify the camera/phone"})
    taken = organized.get("timestamps", {}).get("taken")
    if taken:
        risks.append({"level": "LOW", "type": "Timestamp Data",
                      "description": f"Photo taken at: {taken}"})

    software = organized.get("software", {}).get("software")
    if software:
        suspicious.append(f"Image edited with: {software}")

    if gps.get("found"):
        recommendations.append("Remove GPS data before sharing online")
    if camera.get("serial_number"):
        recommendations.append("Remove serial number to prevent device tracking")
    if not risks:
        risks.append({"level": "LOW", "type": "Minimal Risk",
                      "description": "Limited metadata present - relatively safe to share"})
    recommendations.append("Strip all EXIF metadata before publishing")

    return {
        "privacy_risks": risks,
        "suspicious_patterns": suspicious,
        "recommendations": recommendations,
    }


def extract_exif(data: bytes, name: str = "") -> dict:
    """Organised EXIF for an image buffer; never raises on bad input.

    Every result carries `file_analysis`, the pixel-level clues from
    analyze_image_without_exif(), which matter most when EXIF is gone.
    """
    file_analysis = analyze_image_without_exif(data, name)
    try:
        raw, gps = read_exif(data)
    except Exception as e:
        logger.debug("EXIF parse failed (%d bytes): %s", len(data), e)
        return {
            "available": False,
            "stripped": True,
            "reason": "Could not parse EXIF data from this file.",
            "error": str(e),
            "file_analysis": file_analysis,
        }

    if not raw and not gps:
        return {
            "available": False,
            "stripped": True,
            "reason": "No EXIF data found. Likely stripped by social media, "
                      "screenshot, or image editor.",
            "image": image_dimensions(data),
            "file_analysis": file_analysis,
        }

    organized = organize_exif(raw, gps)
    return {
        "available": True,
        "stripped": False,
        "raw": raw,
        **organized,
        "image": image_dimensions(data),
        "forensic_analysis": assess_privacy(organized),
        "file_analysis": file_analysis,
    }


# ══════════════════════════════════════════════════════════════
#  Images without EXIF
# ══════════════════════════════════════════════════════════════

# Pixels of the top row checked for a uniform (status bar) border
BORDER_SAMPLE = 100
BORDER_TOLERANCE = 5

_KNOWN_RESOLUTIONS = {
    # ── iPhone ──
    (1170, 2532): "iPhone 13/14 Pro",
    (1284, 2778): "iPhone 14 Pro Max",
    (1125, 2436): "iPhone X/11 Pro",
    (828, 1792): "iPhone 11",
    (1242, 2688): "iPhone XS Max",
    # ── Android ──
    (1080, 2400): "Common Android (FHD+)",
    (1440, 3200): "High-end Android (QHD+)",
    # ── Desktop ──
    (1920, 1080): "Desktop Screenshot (1080p)",
    (2560, 1440): "Desktop Screenshot (1440p)",
    (3840, 2160): "Desktop Screenshot (4K)",
    # ── Social media ──
    (1080, 1080): "Instagram Square Post",
    (1080, 1920): "Instagram Story/TikTok",
}

_NAME_SOURCES = [
    (re.compile(r"IMG_\d{4}"), "iPhone Camera"),
    (re.compile(r"DSC\d+"), "Digital Camera"),
    (re.compile(r"Screenshot", re.IGNORECASE), "Screenshot"),
    (re.compile(r"PXL_\d+"), "Google Pixel"),
    (re.compile(r"IMG-\d{8}-WA\d+"), "WhatsApp (EXIF Stripped)"),
]


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def dominant_color(red: float, green: float, blue: float) -> str:
    """Strongest channel; ties go to red, then green."""
    strongest = max(red, green, blue)
    if strongest == red:
        return "Red-dominant"
    if strongest == green:
        return "Green-dominant"
    return "Blue-dominant"


def guess_source(width: int, height: int, name: str = "") -> list[str]:
    """Likely origins from the resolution and the file-naming convention."""
    sources = []
    if (width, height) in _KNOWN_RESOLUTIONS:
        sources.append(_KNOWN_RESOLUTIONS[(width, height)])
    for pattern, label in _NAME_SOURCES:
        if pattern.search(name):
            sources.append(label)
    return sources or ["Unknown source"]


def analyze_image_without_exif(data: bytes, name: str = "") -> dict:
    """Pixel-level clues about an image's origin when no EXIF is left.

    Returns dimensions, average colour, a top-border screenshot heuristic
    and resolution / file-name source guesses, or {"error": ...} when the
    buffer does not decode as an image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            rgb = img.convert("RGB")
    except Exception as e:
        logger.debug("Pixel analysis failed (%d bytes): %s", len(data), e)
        return {"error": "Failed to analyze image"}

    width, height = rgb.size
    pixels = width * height
    red, green, blue = (total / pixels for total in ImageStat.Stat(rgb).sum)

    first = rgb.getpixel((0, 0))
    uniform = all(
        all(abs(c - f) <= BORDER_TOLERANCE for c, f in zip(rgb.getpixel((x, 0)), first))
        for x in range(min(width, BORDER_SAMPLE))
    )

    return {
        "dimensions": {
            "width": width,
            "height": height,
            "aspect_ratio": round(width / height, 3),
            "megapixels": round(pixels / 1_000_000, 2),
        },
        "color_analysis": {
            "average_red": _round_half_up(red),
            "average_green": _round_half_up(green),
            "average_blue": _round_half_up(blue),
            "dominant_color": dominant_color(red, green, blue),
        },
        "patterns": {
            "has_uniform_border": uniform,
            "likely_screenshot": uniform and (width % 10 == 0 or height % 10 == 0),
        },
        "likely_source": guess_source(width, height, name),
    }


# ══════════════════════════════════════════════════════════════
#  Metadata stripping
# ══════════════════════════════════════════════════════════════

REMOVED_METADATA = ("EXIF", "GPS", "Camera Info", "Timestamps", "All Metadata")
STRIP_METHOD = "Pixel re-rendering (all metadata removed)"


def strip_metadata(data: bytes, name: str = "") -> dict:
    """Rebuild an image from its pixels alone and encode it as PNG.

    The new image is created from raw pixel bytes, so nothing from the
    source's info block (EXIF, GPS, ICC profile, text chunks) is carried
    over.  Never raises; failures come back as {"success": False, ...}.
    """
    if "Image" not in detect_type(data):
        return {"success": False, "error": "Can only strip metadata from images"}
    try:
        with Image.open(io.BytesIO(data)) as img:
            mode = "RGBA" if img.mode in ("RGBA", "LA", "P", "PA") else "RGB"
            pixels = img.convert(mode)
    except Exception as e:
        logger.debug("Strip failed, image did not load (%d bytes): %s", len(data), e)
        return {"success": False, "error": "Failed to load image"}

    clean = Image.frombytes(mode, pixels.size, pixels.tobytes())
    out = io.BytesIO()
    clean.save(out, format="PNG")
    clean_data = out.getvalue()

    stem, _ = os.path.splitext(os.path.basename(name))
    logger.debug("Stripped %s: %d → %d bytes", name or "<buffer>",
                 len(data), len(clean_data))
    return {
        "success": True,
        "name": f"clean_{stem or 'image'}.png",
        "data": clean_data,
        "original_size": len(data),
        "clean_size": len(clean_data),
        "removed": list(REMOVED_METADATA),
        "method": STRIP_METHOD,
    }
