"""
Hashing — cryptographic digests, verification, and duplicate grouping.

All digests come from hashlib.  MD5 is the real MD5; there is no
home-made substitute anywhere in this package.
"""

from __future__ import annotations

import re
import time
import hashlib
import logging
from dataclasses import dataclass, asdict
from typing import Iterable

logger = logging.getLogger(__name__)

HASH_ALGORITHMS = ("md5", "sha1", "sha256", "sha384", "sha512")

# SHA-256 → description of known-bad / notable content
KNOWN_HASHES: dict[str, str] = {
    "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855": "Empty file signature",
}


@dataclass(frozen=True)
class HashSet:
    md5: str
    sha1: str
    sha256: str
    sha384: str
    sha512: str
    processing_ms: float = 0.0
    file_size: int = 0

    def digests(self) -> dict[str, str]:
        return {name: getattr(self, name) for name in HASH_ALGORITHMS}

    def to_dict(self) -> dict:
        return asdict(self)


def compute_md5(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


def compute_sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def calculate_all_hashes(data: bytes) -> HashSet:
    """MD5 and the SHA family over the same buffer."""
    start = time.perf_counter()
    digests = {name: hashlib.new(name, data).hexdigest() for name in HASH_ALGORITHMS}
    elapsed = (time.perf_counter() - start) * 1000
    logger.debug("Hashed %d bytes in %.2f ms", len(data), elapsed)
    return HashSet(processing_ms=round(elapsed, 2), file_size=len(data), **digests)


def _normalise(digest: str) -> str:
    return re.sub(r"\s", "", digest).lower()


def verify_hash(calculated: str, known: str) -> bool:
    """Case- and whitespace-insensitive digest comparison."""
    return _normalise(calculated) == _normalise(known)


@dataclass(frozen=True)
class ThreatMatch:
    algorithm: str
    hash: str
    threat: str
    severity: str = "HIGH"


@dataclass(frozen=True)
class ThreatCheck:
    matches: tuple[ThreatMatch, ...] = ()

    @property
    def is_threat(self) -> bool:
        return bool(self.matches)


def check_known_hashes(hashes: HashSet,
                       database: dict[str, str] = KNOWN_HASHES) -> ThreatCheck:
    matches = [
        ThreatMatch(algorithm=name, hash=digest, threat=database[digest])
        for name, digest in hashes.digests().items()
        if digest in database
    ]
    return ThreatCheck(matches=tuple(matches))


# ══════════════════════════════════════════════════════════════
#  Duplicate finder
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class HashedFile:
    name: str
    size: int
    sha256: str


@dataclass(frozen=True)
class DuplicateReport:
    total_files: int = 0
    groups: tuple[tuple[HashedFile, ...], ...] = ()
    unique: tuple[HashedFile, ...] = ()

    @property
    def duplicate_groups(self) -> int:
        return len(self.groups)

    @property
    def total_duplicates(self) -> int:
        return sum(len(g) - 1 for g in self.groups)

    @property
    def wasted_space(self) -> int:
        return sum(g[0].size * (len(g) - 1) for g in self.groups)

    def to_dict(self) -> dict:
        return {
            "total_files": self.total_files,
            "unique_files": len(self.unique),
            "duplicate_groups": self.duplicate_groups,
            "total_duplicates": self.total_duplicates,
            "wasted_space": self.wasted_space,
            "groups": [[asdict(f) for f in g] for g in self.groups],
        }


def find_duplicates(files: Iterable[tuple[str, bytes]]) -> DuplicateReport:
    """Group (name, data) pairs by SHA-256 content hash."""
    by_hash: dict[str, list[HashedFile]] = {}
    total = 0
    for name, data in files:
        total += 1
        hf = HashedFile(name=name, size=len(data), sha256=compute_sha256(data))
        by_hash.setdefault(hf.sha256, []).append(hf)
    groups = [tuple(g) for g in by_hash.values() if len(g) > 1]
    unique = [g[0] for g in by_hash.values() if len(g) == 1]
    report = DuplicateReport(total_files=total, groups=tuple(groups),
                             unique=tuple(unique))
    logger.debug("Duplicates: %d files, %d groups", total, report.duplicate_groups)
    return report


def find_similar_by_size(files: Iterable[tuple[str, int]]) -> dict[int, list[str]]:
    """Sizes shared by more than one (name, size) entry."""
    groups: dict[int, list[str]] = {}
    for name, size in files:
        groups.setdefault(size, []).append(name)
    return {size: names for size, names in groups.items() if len(names) > 1}


def normalise_name(name: str) -> str:
    """Base name without extension, digits, or separator noise, lowercased."""
    base = re.sub(r"\.[^/.]+$", "", name)
    base = re.sub(r"\d+", "", base)
    base = re.sub(r"[_\-\s]+", " ", base)
    return base.strip().lower()


def find_similar_by_name(names: Iterable[str]) -> dict[str, list[str]]:
    groups: dict[str, list[str]] = {}
    for name in names:
        base = normalise_name(name)
        if base:
            groups.setdefault(base, []).append(name)
    return {base: members for base, members in groups.items() if len(members) > 1}
