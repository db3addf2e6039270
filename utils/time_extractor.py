"""
Pull departure times out of free-form flight card text and check them
against a requested [start, end] window.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

# bare H:MM / HH:MM token
_BARE_TIME = re.compile(r"\b(\d{1,2}):(\d{2})\b")
# "<label>: H:MM", used when a card shows several times (departure + arrival)
_LABELED_TIME = re.compile(r"(?:kalkış|kalkis|saat|time|departure)\s*:?\s*(\d{1,2}):(\d{2})\b", re.IGNORECASE)

_PRICE = re.compile(r"\d[\d.,]*\s*(?:TL|₺)|₺\s*\d", re.IGNORECASE)
_AIRPORT_CODE = re.compile(r"\b[A-Z]{3}\b")


def _normalize(hour: str, minute: str) -> Optional[str]:
    h, m = int(hour), int(minute)
    if 0 <= h <= 23 and 0 <= m <= 59:
        return f"{h:02d}:{m:02d}"
    return None


def extract_time(text: Optional[str]) -> Optional[str]:
    """
    Return the departure time in ``text`` as ``HH:MM``, or ``None``.

    Patterns are tried in order: the first bare time token, a labeled time
    (``Kalkış: 09:45``), then every bare token until a valid one turns up.
    Out-of-range candidates such as ``99:99`` are rejected, never clamped.
    """
    if not text:
        return None

    first = _BARE_TIME.search(text)
    if first:
        value = _normalize(*first.groups())
        if value:
            return value

    labeled = _LABELED_TIME.search(text)
    if labeled:
        value = _normalize(*labeled.groups())
        if value:
            return value

    for match in _BARE_TIME.finditer(text):
        value = _normalize(*match.groups())
        if value:
            return value
    return None


def to_minutes(value: str) -> int:
    """``"HH:MM"`` -> minutes since midnight; raises ValueError when malformed."""
    match = re.fullmatch(r"\s*(\d{1,2}):(\d{2})\s*", value or "")
    if not match:
        raise ValueError(f"Invalid time format: {value!r}")
    normalized = _normalize(*match.groups())
    if normalized is None:
        raise ValueError(f"Time out of range: {value!r}")
    hours, minutes = normalized.split(":")
    return int(hours) * 60 + int(minutes)


def is_in_range(value: str, start: str, end: str) -> bool:
    """Inclusive on both ends, whole-minute comparison."""
    return to_minutes(start) <= to_minutes(value) <= to_minutes(end)


def looks_like_flight_card(text: Optional[str]) -> bool:
    """Heuristic used to drop banners/ads that match the result-item selectors."""
    if not text or not text.strip():
        return False
    return bool(
        _BARE_TIME.search(text)
        or _PRICE.search(text)
        or "→" in text
        or _AIRPORT_CODE.search(text)
    )


@dataclass
class ValidationReport:
    start: str
    end: str
    valid_times: List[str] = field(default_factory=list)
    invalid_times: List[str] = field(default_factory=list)
    unparseable: List[str] = field(default_factory=list)

    @property
    def valid_count(self) -> int:
        return len(self.valid_times)

    @property
    def invalid_count(self) -> int:
        return len(self.invalid_times)

    @property
    def unparseable_count(self) -> int:
        return len(self.unparseable)

    @property
    def total(self) -> int:
        return self.valid_count + self.invalid_count + self.unparseable_count

    @property
    def valid_ratio(self) -> float:
        return self.valid_count / self.total if self.total else 0.0

    @property
    def all_valid(self) -> bool:
        return self.invalid_count == 0 and self.valid_count > 0

    def meets_threshold(self, threshold: float, sample_size: Optional[int] = None) -> bool:
        # unparseable items count against the ratio
        denominator = sample_size or self.total
        return denominator > 0 and self.valid_count / denominator >= threshold

    def add(self, text: Optional[str]) -> Optional[str]:
        extracted = extract_time(text)
        if extracted is None:
            self.unparseable.append((text or "").strip()[:80])
        elif is_in_range(extracted, self.start, self.end):
            self.valid_times.append(extracted)
        else:
            self.invalid_times.append(extracted)
        return extracted

    def summary(self) -> str:
        return (
            f"{self.valid_count} valid / {self.invalid_count} invalid / "
            f"{self.unparseable_count} unparseable in [{self.start}, {self.end}]"
            + (f" | out of range: {', '.join(self.invalid_times)}" if self.invalid_times else "")
        )


def build_validation_report(texts: Iterable[Optional[str]], start: str, end: str) -> ValidationReport:
    # fail fast on a malformed window rather than classifying everything as invalid
    to_minutes(start)
    to_minutes(end)
    report = ValidationReport(start=start, end=end)
    for text in texts:
        report.add(text)
    return report
