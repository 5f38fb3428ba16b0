"""Announcement classification model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class AnnouncementType(Enum):
    RESULTS = "results"
    NOTIFICATION = "notification"
    UNKNOWN = "unknown"


class Confidence(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class AnnouncementClassification:
    """Outcome of classifying an announcement from its metadata.

    Attributes:
        type: results, notification or unknown.
        score: Relevance score in [0, 100]; high means "carries results".
        confidence: How decisive the rule that fired was.
        reason: Human-readable explanation.
        result_declaration_date: Date results are expected, parsed from
            notification text when present.
    """

    type: AnnouncementType
    score: int
    confidence: Confidence
    reason: str
    result_declaration_date: date | None = None

    @property
    def is_notification(self) -> bool:
        return self.type is AnnouncementType.NOTIFICATION
