"""
Forensic Report — plain-data / JSON summary of an analysis run.

Only the data shape lives here; rendering (HTML, PDF) is left to whatever
consumes the JSON.
"""

from __future__ import annotations

import json
import datetime
from typing import Optional

from . import __version__
from .analyzer import AnalysisResult
from .comparator import ComparisonResult
from .reader import FileInfo

GENERATOR = "forensics binary analysis engine"

# Strings copied into the report verbatim
SAMPLE_STRING_COUNT = 50


def _fmt_size(n: int) -> str:
    s = float(n)
    for u in ("B", "KB", "MB", "GB"):
        if s < 1024:
            return f"{s:.1f} {u}"
        s /= 1024
    return f"{s:.1f} TB"


def build_report(result: AnalysisResult,
                 info: Optional[FileInfo] = None,
                 exif: Optional[dict] = None,
                 comparison: Optional[ComparisonResult] = None) -> dict:
    forensic = result.metadata.get("forensic", {})
    patterns = result.patterns
    report = {
        "reportMetadata": {
            "generatedAt": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "generator": GENERATOR,
            "version": __version__,
        },
        "fileInformation": {
            "fileName": info.name if info else result.name,
            "fileSize": result.size,
            "fileSizeFormatted": _fmt_size(result.size),
            "mimeType": info.mime_type if info else None,
            "lastModified": (
                datetime.datetime.fromtimestamp(info.mtime, datetime.timezone.utc).isoformat()
                if info else None
            ),
            "extension": info.extension if info else result.metadata.get("basic", {}).get("extension"),
        },
        "forensicAnalysis": {
            "fileSignature": forensic.get("signature"),
            "detectedType": forensic.get("detected_type"),
            "entropy": forensic.get("entropy"),
            "isCompressed": forensic.get("is_compressed"),
            "isEncrypted": forensic.get("is_encrypted"),
            "randomness": result.metadata.get("cryptographic", {}).get("randomness"),
        },
        "cryptographicHashes": result.hashes.to_dict() if result.hashes else None,
        "knownHashMatches": (
            [m.threat for m in result.threats.matches] if result.threats else []
        ),
        "extractedArtifacts": {
            "totalStrings": len(result.strings),
            "urlsFound": len(patterns.urls) if patterns else 0,
            "emailsFound": len(patterns.emails) if patterns else 0,
            "ipAddressesFound": len(patterns.ip_addresses) if patterns else 0,
            "filePathsFound": len(patterns.paths) if patterns else 0,
            "sampleStrings": [
                {"offset": s.hex_offset, "value": s.value, "length": s.length}
                for s in result.strings[:SAMPLE_STRING_COUNT]
            ],
        },
        "entropyProfile": _entropy_summary(result),
        "carvedFiles": result.carved.to_dict() if result.carved else None,
        "imageMetadata": result.metadata.get("image"),
        "exifData": _exif_summary(exif),
        "comparisonData": comparison.to_dict() if comparison else None,
    }
    return report


def _entropy_summary(result: AnalysisResult) -> Optional[dict]:
    profile = result.entropy
    if profile is None:
        return None
    return {
        "blockSize": profile.block_size,
        "totalBlocks": profile.total_blocks,
        "averageEntropy": round(profile.average, 4),
        "maxEntropy": round(profile.maximum, 4),
        "minEntropy": round(profile.minimum, 4),
        "regions": [
            {
                "type": r.type,
                "start": r.start_offset,
                "end": r.end_offset,
                "startPercent": round(r.start_percent, 2),
                "endPercent": round(r.end_percent, 2),
                "entropy": round(r.entropy, 4),
            }
            for r in profile.regions
        ],
        "insights": list(profile.insights),
    }


def _exif_summary(exif: Optional[dict]) -> Optional[dict]:
    if not exif:
        return None
    return {
        "available": exif.get("available", False),
        "stripped": exif.get("stripped", False),
        "camera": exif.get("camera"),
        "gps": exif.get("gps"),
        "software": exif.get("software"),
        "forensicAnalysis": exif.get("forensic_analysis"),
        "fileAnalysis": exif.get("file_analysis"),
    }


def to_json(report: dict) -> str:
    return json.dumps(report, indent=2, default=str)
