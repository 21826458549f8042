"""Availability survey responses and their deduplication."""

from dataclasses import dataclass
from datetime import date
from itertools import groupby
from typing import Iterable, List

from .shifts import Shift


@dataclass(frozen=True)
class SurveyResponse:
    """An employee reporting availability for a time range on a date"""
    employee: str
    date: date
    start: int
    stop: int
    shift: Shift

    @property
    def duration(self) -> int:
        return self.stop - self.start


def unique_responses(responses: Iterable[SurveyResponse]) -> List[SurveyResponse]:
    """
    One response per employee and date: the one with the longest time range,
    the first seen on ties.  The result is sorted by employee and date.
    """
    ordered = sorted(responses, key=lambda r: (r.employee, r.date))
    result = []
    for _, group in groupby(ordered, key=lambda r: (r.employee, r.date)):
        best = None
        for response in group:
            if best is None or response.duration > best.duration:
                best = response
        result.append(best)
    return result
