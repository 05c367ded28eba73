"""Pieces shared by prediction settlement, bet settlement and voiding."""

from dataclasses import dataclass, field
from typing import List

from ..errors import ValidationError
from ..models import PredictedResult


def validate_final_score(home_score, away_score) -> None:
    """Both scores must be present, integral and non-negative."""
    for name, value in (("home_score", home_score), ("away_score", away_score)):
        if value is None:
            raise ValidationError(f"{name} is required")
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"{name} must be an integer")
        if value < 0:
            raise ValidationError(f"{name} cannot be negative")


def determine_winner(home_score: int, away_score: int) -> PredictedResult:
    if home_score > away_score:
        return PredictedResult.HOME
    if away_score > home_score:
        return PredictedResult.AWAY
    return PredictedResult.DRAW


@dataclass
class BatchResult:
    """Tally of one pass over the rows of a game."""
    processed: int = 0
    won: int = 0
    lost: int = 0
    voided: int = 0
    skipped: int = 0
    failed: int = 0
    failed_ids: List[int] = field(default_factory=list)
    points: int = 0

    def record_failure(self, row_id: int) -> None:
        self.failed += 1
        self.failed_ids.append(row_id)

    def as_dict(self) -> dict:
        return {
            "processed": self.processed,
            "won": self.won,
            "lost": self.lost,
            "voided": self.voided,
            "skipped": self.skipped,
            "failed": self.failed,
            "failed_ids": list(self.failed_ids),
            "points": self.points,
        }
