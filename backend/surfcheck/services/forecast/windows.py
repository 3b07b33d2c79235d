"""
Group scored hours into windows: maximal contiguous runs with label >= ok.

A poor hour closes the current run, and so does a gap of more than one hour between
consecutive timestamps (filtered subsets from the matcher are not contiguous in time).
"""
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from surfcheck.core.constants import MAX_HIGHLIGHTS
from surfcheck.services.forecast.types import Label, ScoredHour, Window, round_half_up

MAX_STEP = timedelta(hours=1)


@dataclass(frozen=True)
class WindowAnalysis:
    windows: list[Window]  # chronological
    best: Window | None
    chart_series: list[tuple[datetime, int]] = field(repr=False)

    @property
    def ranked(self) -> list[Window]:
        return rank_windows(self.windows)


def _build_window(run: list[ScoredHour]) -> Window:
    avg = round_half_up(sum(h.score for h in run) / len(run))
    counts = Counter(code for h in run for code in h.reasons)
    highlights = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))[:MAX_HIGHLIGHTS]
    return Window(
        start=run[0].timestamp,
        end=run[-1].timestamp,
        avg_score=avg,
        highlights=tuple(highlights),
        hours=tuple(run),
    )


def partition_windows(hours: list[ScoredHour]) -> list[Window]:
    """Chronologically ordered input -> chronologically ordered windows."""
    windows: list[Window] = []
    run: list[ScoredHour] = []
    for h in hours:
        if not h.label.at_least(Label.OK):
            if run:
                windows.append(_build_window(run))
                run = []
            continue
        if run and h.timestamp - run[-1].timestamp > MAX_STEP:
            windows.append(_build_window(run))
            run = []
        run.append(h)
    if run:
        windows.append(_build_window(run))
    return windows


def rank_windows(windows: list[Window]) -> list[Window]:
    """Highest average first; ties by earliest start, then input order."""
    ordered = sorted(enumerate(windows), key=lambda p: (-p[1].avg_score, p[1].start, p[0]))
    return [w for _, w in ordered]


def best_window(windows: list[Window]) -> Window | None:
    ranked = rank_windows(windows)
    return ranked[0] if ranked else None


def analyze(hours: list[ScoredHour]) -> WindowAnalysis:
    windows = partition_windows(hours)
    return WindowAnalysis(
        windows=windows,
        best=best_window(windows),
        chart_series=[(h.timestamp, h.score) for h in hours],
    )


def hours_on(hours: list[ScoredHour], day: date) -> list[ScoredHour]:
    """Hours whose local date (timestamp's own tz) is day."""
    return [h for h in hours if h.timestamp.date() == day]


def best_for_day(hours: list[ScoredHour], day: date) -> Window | None:
    """Best window among the hours of one local date, e.g. tomorrow's summary."""
    return best_window(partition_windows(hours_on(hours, day)))


def current_hour(hours: list[ScoredHour], now: datetime) -> ScoredHour | None:
    """Latest hour at or before now, else the first hour."""
    past = [h for h in hours if h.timestamp <= now]
    if past:
        return past[-1]
    return hours[0] if hours else None
