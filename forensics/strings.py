"""
String Extractor — printable runs and forensic text patterns.

extract_strings() finds maximal runs of printable ASCII (32..126) that are
at least `min_length` long, including a run that ends exactly at EOF.

classify_patterns() then runs four independent ASCII-only patterns over
each extracted value:

  • url          — http:// or https:// up to the next whitespace
  • email        — local@domain.tld
  • ip_address   — dotted quad, every octet checked numerically (<= 255)
  • path         — Windows drive path (C:\\...)

extract_patterns() is the whole-buffer variant: the buffer is decoded as
UTF-8 with invalid sequences replaced, so corrupt input never stops the scan.
"""

from __future__ import annotations

import re
import logging
from dataclasses import dataclass

from .byteclass import PRINTABLE_MIN, PRINTABLE_MAX

logger = logging.getLogger(__name__)

DEFAULT_MIN_LENGTH = 4

URL_RE = re.compile(r"https?://[^\s]+", re.IGNORECASE | re.ASCII)
EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}", re.ASCII)
IPV4_RE = re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b", re.ASCII)
PATH_RE = re.compile(r"[A-Z]:\\[^\\/:*?\"<>|\r\n]+", re.IGNORECASE | re.ASCII)

# Whole-buffer scan only
TEXT_EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", re.ASCII)
TEXT_URL_RE = re.compile(r"https?://[^\s<>\"{}|\\^`\[\]]+", re.ASCII)
CREDIT_CARD_RE = re.compile(r"\b\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{4}\b", re.ASCII)
PHONE_RE = re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b", re.ASCII)


def _printable_run_re(min_length: int) -> re.Pattern:
    return re.compile(
        rb"[\x%02x-\x%02x]{%d,}" % (PRINTABLE_MIN, PRINTABLE_MAX, min_length)
    )


@dataclass(frozen=True)
class ExtractedString:
    offset: int
    value: str

    @property
    def length(self) -> int:
        return len(self.value)

    @property
    def hex_offset(self) -> str:
        return f"0x{self.offset:X}"

    def to_dict(self) -> dict:
        return {"offset": self.offset, "value": self.value, "length": self.length}


@dataclass(frozen=True)
class PatternMatch:
    source: ExtractedString
    match: str

    @property
    def offset(self) -> int:
        return self.source.offset

    def to_dict(self) -> dict:
        return {"offset": self.offset, "value": self.source.value, "match": self.match}


@dataclass(frozen=True)
class PatternReport:
    urls: tuple[PatternMatch, ...] = ()
    emails: tuple[PatternMatch, ...] = ()
    ip_addresses: tuple[PatternMatch, ...] = ()
    paths: tuple[PatternMatch, ...] = ()

    @property
    def total(self) -> int:
        return len(self.urls) + len(self.emails) + len(self.ip_addresses) + len(self.paths)

    def to_dict(self) -> dict:
        return {
            "urls": [m.to_dict() for m in self.urls],
            "emails": [m.to_dict() for m in self.emails],
            "ip_addresses": [m.to_dict() for m in self.ip_addresses],
            "paths": [m.to_dict() for m in self.paths],
        }


@dataclass(frozen=True)
class TextPatterns:
    emails: tuple[str, ...] = ()
    urls: tuple[str, ...] = ()
    ip_addresses: tuple[str, ...] = ()
    credit_cards: tuple[str, ...] = ()
    phone_numbers: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "emails": list(self.emails),
            "urls": list(self.urls),
            "ip_addresses": list(self.ip_addresses),
            "credit_cards": list(self.credit_cards),
            "phone_numbers": list(self.phone_numbers),
        }


def extract_strings(buffer: bytes,
                    min_length: int = DEFAULT_MIN_LENGTH) -> list[ExtractedString]:
    """Maximal printable-ASCII runs of at least `min_length` bytes."""
    pattern = _printable_run_re(max(1, int(min_length)))
    strings = [
        ExtractedString(offset=m.start(), value=bytes(m.group()).decode("ascii"))
        for m in pattern.finditer(buffer)
    ]
    logger.debug("Extracted %d strings (min length %d)", len(strings), min_length)
    return strings


def is_valid_ipv4(candidate: str) -> bool:
    parts = candidate.split(".")
    return len(parts) == 4 and all(p.isdigit() and int(p) <= 255 for p in parts)


def classify_patterns(strings: list[ExtractedString]) -> PatternReport:
    """URL / email / IPv4 / path matches, each tagged with its source string."""
    urls, emails, ips, paths = [], [], [], []
    for s in strings:
        value = s.value
        urls.extend(PatternMatch(s, m) for m in URL_RE.findall(value))
        emails.extend(PatternMatch(s, m) for m in EMAIL_RE.findall(value))
        ips.extend(PatternMatch(s, m) for m in IPV4_RE.findall(value)
                   if is_valid_ipv4(m))
        paths.extend(PatternMatch(s, m) for m in PATH_RE.findall(value))
    return PatternReport(
        urls=tuple(urls),
        emails=tuple(emails),
        ip_addresses=tuple(ips),
        paths=tuple(paths),
    )


def _unique(items) -> tuple[str, ...]:
    return tuple(dict.fromkeys(items))


def extract_patterns(buffer: bytes) -> TextPatterns:
    """De-duplicated patterns over the whole buffer decoded as UTF-8."""
    text = bytes(buffer).decode("utf-8", errors="replace")
    return TextPatterns(
        emails=_unique(TEXT_EMAIL_RE.findall(text)),
        urls=_unique(TEXT_URL_RE.findall(text)),
        ip_addresses=_unique(ip for ip in IPV4_RE.findall(text) if is_valid_ipv4(ip)),
        credit_cards=_unique(CREDIT_CARD_RE.findall(text)),
        phone_numbers=_unique(PHONE_RE.findall(text)),
    )
