"""
Analysis Orchestrator — runs the independent analyses over one buffer.

Hashing, metadata, entropy, strings/patterns and carving share nothing but
the read-only input buffer, so they are submitted to a thread pool together
and their results are combined only after every task has finished.
"""

from __future__ import annotations

import time
import logging
import concurrent.futures
from dataclasses import asdict, dataclass, field
from typing import Callable, Optional

from .carver import CarveResult, carve
from .entropy import DEFAULT_BLOCK_SIZE, EntropyProfile, compute_entropy_profile
from .hashing import HashSet, ThreatCheck, calculate_all_hashes, check_known_hashes
from .metadata import DEFAULT_SAMPLE_SIZE, extract_metadata
from .strings import (
    DEFAULT_MIN_LENGTH,
    ExtractedString,
    PatternReport,
    TextPatterns,
    classify_patterns,
    extract_patterns,
    extract_strings,
)

logger = logging.getLogger(__name__)

# (stage name, stages finished, total stages)
ProgressCallback = Callable[[str, int, int], None]


@dataclass
class AnalysisConfig:
    """Tunables for a full analysis run."""
    block_size: int = DEFAULT_BLOCK_SIZE
    min_string_length: int = DEFAULT_MIN_LENGTH
    sample_size: int = DEFAULT_SAMPLE_SIZE
    max_differences: int = 1000
    max_workers: int = 4
    carve: bool = True


@dataclass(frozen=True)
class AnalysisResult:
    name: str
    size: int
    hashes: Optional[HashSet] = None
    threats: Optional[ThreatCheck] = None
    metadata: dict = field(default_factory=dict)
    entropy: Optional[EntropyProfile] = None
    strings: tuple[ExtractedString, ...] = ()
    patterns: Optional[PatternReport] = None
    text_patterns: Optional[TextPatterns] = None
    carved: Optional[CarveResult] = None
    elapsed: float = 0.0

    @property
    def detected_type(self) -> str:
        return self.metadata.get("forensic", {}).get("detected_type", "Unknown")

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "size": self.size,
            "elapsed": round(self.elapsed, 3),
            "hashes": self.hashes.to_dict() if self.hashes else None,
            "threats": [asdict(m) for m in self.threats.matches] if self.threats else [],
            "metadata": self.metadata,
            "entropy": self.entropy.to_dict() if self.entropy else None,
            "strings": [s.to_dict() for s in self.strings],
            "patterns": self.patterns.to_dict() if self.patterns else None,
            "text_patterns": self.text_patterns.to_dict() if self.text_patterns else None,
            "carved": self.carved.to_dict() if self.carved else None,
        }


def _strings_task(data: bytes, min_length: int):
    strings = extract_strings(data, min_length)
    return strings, classify_patterns(strings), extract_patterns(data)


def _hash_task(data: bytes):
    hashes = calculate_all_hashes(data)
    return hashes, check_known_hashes(hashes)


def analyze_buffer(data: bytes, name: str = "",
                   config: Optional[AnalysisConfig] = None,
                   on_progress: Optional[ProgressCallback] = None) -> AnalysisResult:
    """Run every analysis over `data` and collect the results.

    Args:
        data:        Evidence bytes (never modified).
        name:        Original file name, used for extension reporting.
        config:      AnalysisConfig (defaults if None).
        on_progress: Optional callback(stage, done, total) fired as each
                     analysis finishes.

    Returns:
        AnalysisResult
    """
    config = config or AnalysisConfig()
    start = time.perf_counter()

    tasks = {
        "hashes": (_hash_task, (data,)),
        "metadata": (extract_metadata, (data, name, config.sample_size)),
        "entropy": (compute_entropy_profile, (data, config.block_size)),
        "strings": (_strings_task, (data, config.min_string_length)),
    }
    if config.carve:
        tasks["carving"] = (carve, (data,))

    outputs = {}
    with concurrent.futures.ThreadPoolExecutor(
            max_workers=max(1, config.max_workers)) as executor:
        futures = {
            executor.submit(fn, *args): stage
            for stage, (fn, args) in tasks.items()
        }
        for done, future in enumerate(concurrent.futures.as_completed(futures), start=1):
            stage = futures[future]
            outputs[stage] = future.result()
            logger.debug("Stage %s finished (%d/%d)", stage, done, len(tasks))
            if on_progress:
                on_progress(stage, done, len(tasks))

    hashes, threats = outputs["hashes"]
    strings, patterns, text_patterns = outputs["strings"]
    result = AnalysisResult(
        name=name,
        size=len(data),
        hashes=hashes,
        threats=threats,
        metadata=outputs["metadata"],
        entropy=outputs["entropy"],
        strings=tuple(strings),
        patterns=patterns,
        text_patterns=text_patterns,
        carved=outputs.get("carving"),
        elapsed=time.perf_counter() - start,
    )
    logger.info("Analysed %s (%d bytes) in %.2fs", name or "<buffer>",
                len(data), result.elapsed)
    return result
