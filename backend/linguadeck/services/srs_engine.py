"""SM-2 spaced repetition grading policy."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.exceptions import InvalidGrade
from ..models.flashcard import MIN_EASE_FACTOR, HistoryRecord, SchedulingState

PASS_THRESHOLD = 3
FIRST_INTERVAL = 1
SECOND_INTERVAL = 6
LAPSE_INTERVAL = 1


@dataclass(frozen=True)
class QualityLabel:
    quality: int
    label: str
    hint: str

    @property
    def passed(self) -> bool:
        return self.quality >= PASS_THRESHOLD


QUALITY_LABELS: tuple[QualityLabel, ...] = (
    QualityLabel(0, "Blackout", "red"),
    QualityLabel(1, "Wrong", "orange"),
    QualityLabel(2, "Hard", "yellow"),
    QualityLabel(3, "Okay", "lime"),
    QualityLabel(4, "Good", "green"),
    QualityLabel(5, "Easy", "emerald"),
)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def validate_quality(quality: object) -> int:
    # bool is an int subclass; True must not grade as 1
    if isinstance(quality, bool) or not isinstance(quality, int) or not 0 <= quality <= 5:
        raise InvalidGrade(quality)
    return quality


class SRSEngine:
    """SuperMemo SM-2, adapted: lapses are due again after one day."""

    @staticmethod
    def next_ease_factor(ease_factor: float, quality: int) -> float:
        miss = 5 - quality
        return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))

    @staticmethod
    def grade(
        state: SchedulingState, quality: int, now: datetime
    ) -> tuple[SchedulingState, HistoryRecord]:
        """
        Compute the scheduling state that follows one review.

        quality: 0-5
            0 = blackout, no recall
            1 = wrong, partial recall
            2 = wrong, but familiar once seen
            3 = correct with serious difficulty
            4 = correct after some hesitation
            5 = perfect recall

        The ease factor moves on every grade; only a pass (>= 3) grows the
        interval, a fail resets repetitions and schedules the card for
        tomorrow.
        """
        quality = validate_quality(quality)
        ease_factor = SRSEngine.next_ease_factor(state.ease_factor, quality)

        if quality >= PASS_THRESHOLD:
            repetitions = state.repetitions + 1
            if repetitions == 1:
                interval = FIRST_INTERVAL
            elif repetitions == 2:
                interval = SECOND_INTERVAL
            else:
                interval = max(1, round_half_up(state.interval * ease_factor))
        else:
            repetitions = 0
            interval = LAPSE_INTERVAL

        next_state = SchedulingState(
            ease_factor=ease_factor,
            interval=interval,
            repetitions=repetitions,
            next_review=now + timedelta(days=interval),
        )
        record = HistoryRecord(
            quality=quality,
            ease_factor=ease_factor,
            interval=interval,
            reviewed_at=now,
        )
        return next_state, record
