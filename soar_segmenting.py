#!/usr/bin/env python3
"""
Flight segmentation for the quicksoar glider flight analyzer

Splits a chronological fix sequence into alternating glide and thermal
segments. A trailing time window of bearing changes gives a turn rate; a
glider turning faster than degree_boundary / time_window is circling.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from soar_model import Fix, Flight, Segment, SegmentKind
from soar_utils import bearingChange, pointDistance
from soar_constants import (
    DEFAULT_DEGREE_BOUNDARY,
    DEFAULT_TIME_WINDOW,
    DEFAULT_CONNECT_TIME,
    DEFAULT_THERMAL_BACKSET,
    DEFAULT_TRY_TIME,
    DEFAULT_GROUND_MARGIN,
    DEFAULT_MAX_SPEED,
    TURN_RATE_TOLERANCE,
)

# Configure logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SegmentationSettings:
    """Tuning of the segmentation heuristic"""
    degree_boundary: float = DEFAULT_DEGREE_BOUNDARY
    time_window: int = DEFAULT_TIME_WINDOW
    connect_time: int = DEFAULT_CONNECT_TIME
    thermal_backset: float = DEFAULT_THERMAL_BACKSET
    try_time: int = DEFAULT_TRY_TIME
    ground_margin: int = DEFAULT_GROUND_MARGIN
    max_speed: float = DEFAULT_MAX_SPEED

    @property
    def target_rate(self) -> float:
        """Turn rate in degrees per second at which the glider counts as circling"""
        return self.degree_boundary / self.time_window


def _plausible(prev: Fix, fix: Fix, max_speed: float) -> bool:
    return pointDistance(prev, fix) / (fix.timestamp - prev.timestamp) <= max_speed


def cleanFixes(fixes: Iterable[Fix],
               start_altitude: Optional[int] = None,
               settings: SegmentationSettings = SegmentationSettings()) -> List[Fix]:
    """
    Drop fixes the segmentation must not see.

    Invalid fixes, fixes that do not move forward in time and fixes implying
    an implausible ground speed are removed. The last kept fix is dropped
    instead of the new one when the new fix fits the fix kept before it, or
    when a lone first fix is contradicted by two consistent successors.
    When a start altitude is given, fixes within ground_margin of it (the
    ground roll) are removed as well.
    """
    cleaned: List[Fix] = []
    rejected: List[Fix] = []
    total = 0

    for fix in fixes:
        total += 1
        if not fix.valid:
            continue

        if start_altitude is not None and abs(fix.gps_altitude - start_altitude) <= settings.ground_margin:
            continue

        if cleaned:
            prev = cleaned[-1]
            if fix.timestamp <= prev.timestamp:
                continue
            if not _plausible(prev, fix, settings.max_speed):
                if len(cleaned) > 1 and _plausible(cleaned[-2], fix, settings.max_speed):
                    cleaned.pop()
                elif (len(cleaned) == 1 and rejected and rejected[-1].timestamp < fix.timestamp
                      and _plausible(rejected[-1], fix, settings.max_speed)):
                    cleaned = [rejected[-1]]
                else:
                    rejected.append(fix)
                    continue

        rejected = []
        cleaned.append(fix)

    if total > len(cleaned):
        logger.debug(f"Dropped {total - len(cleaned)} of {total} fixes while cleaning")

    return cleaned


class FlightSegmenter:
    """
    Builds a segmented Flight from raw fixes.

    The work happens in one pass of a glide/turning state machine followed by
    cleanup passes: the backset correction for the window lag, demotion of
    short segments to Try, and folding of neighbouring segments of one kind.
    """

    def __init__(self, settings: SegmentationSettings = SegmentationSettings()):
        """Initialize with segmentation settings"""
        self.settings = settings

    @staticmethod
    def bearing_changes(fixes: List[Fix]) -> List[float]:
        """Bearing change ending at every fix; the first two fixes carry none"""
        changes = [0.0] * min(len(fixes), 2)
        for i in range(2, len(fixes)):
            changes.append(bearingChange(fixes[i - 2], fixes[i - 1], fixes[i]))
        return changes

    @staticmethod
    def _elapsed(fixes: List[Fix]) -> int:
        if not fixes:
            return 0
        return fixes[-1].timestamp - fixes[0].timestamp

    def classify(self, fixes: List[Fix]) -> List[Tuple[SegmentKind, List[Fix]]]:
        """
        Run the glide/turning state machine.

        Returns raw (kind, fixes) runs that cover the input in order.
        """
        settings = self.settings
        target = settings.target_rate

        runs: List[Tuple[SegmentKind, List[Fix]]] = []
        buildup: List[Fix] = []
        is_glide = True

        window = deque()  # (change, delta_time)
        window_change = 0.0
        window_time = 0
        prev_time = fixes[0].timestamp if fixes else 0

        for fix, change in zip(fixes, self.bearing_changes(fixes)):
            delta_time = fix.timestamp - prev_time
            prev_time = fix.timestamp

            window.append((change, delta_time))
            window_change += change
            window_time += delta_time
            while window_time > settings.time_window and len(window) > 1:
                old_change, old_time = window.popleft()
                window_change -= old_change
                window_time -= old_time

            buildup.append(fix)

            turn_rate = window_change / window_time if window_time > 0 else 0.0
            turning = abs(turn_rate) >= target - TURN_RATE_TOLERANCE

            if turning and is_glide:
                # Just started turning
                is_glide = False
                if self._elapsed(buildup) > settings.connect_time:
                    runs.append((SegmentKind.GLIDE, buildup))
                    buildup = []
                elif runs:
                    # Too short for a glide: a straightening inside the last thermal
                    runs[-1][1].extend(buildup)
                    buildup = []
                # else the short start of the flight becomes part of this thermal
            elif not turning and not is_glide:
                # Just stopped turning
                is_glide = True
                if runs and runs[-1][0] is SegmentKind.THERMAL:
                    runs[-1][1].extend(buildup)
                else:
                    runs.append((SegmentKind.THERMAL, buildup))
                buildup = []

        # Whatever is still open at the end of the log is a glide
        if buildup:
            runs.append((SegmentKind.GLIDE, buildup))

        return runs

    def apply_backset(self, runs: List[Tuple[SegmentKind, List[Fix]]]) -> None:
        """
        Move about thermal_backset seconds of fixes from the tail of every run
        to the head of the next one, compensating the lag of the window.
        """
        for i in range(len(runs) - 1):
            kind, run = runs[i]
            if not run:
                continue

            spacing = self._elapsed(run) / (len(run) - 1) if len(run) > 1 else 0
            if spacing <= 0:
                spacing = 1.0

            count = min(len(run), int(round(self.settings.thermal_backset / spacing)))
            if count <= 0:
                continue

            moved = run[len(run) - count:]
            del run[len(run) - count:]
            next_kind, next_run = runs[i + 1]
            runs[i + 1] = (next_kind, moved + next_run)

    def demote_short(self, runs: List[Tuple[SegmentKind, List[Fix]]]) -> List[Tuple[SegmentKind, List[Fix]]]:
        """Retag runs spanning at most try_time seconds as Try and drop empty runs"""
        demoted = []
        for kind, run in runs:
            if not run:
                continue
            if self._elapsed(run) <= self.settings.try_time:
                kind = SegmentKind.TRY
            demoted.append((kind, run))
        return demoted

    @staticmethod
    def combine(runs: List[Tuple[SegmentKind, List[Fix]]]) -> List[Tuple[SegmentKind, List[Fix]]]:
        """
        Fold neighbouring runs of the same effective kind.

        Try counts as glide, so a Try between two thermals survives as a
        glide on its own and keeps the thermals apart.
        """
        combined: List[Tuple[SegmentKind, List[Fix]]] = []
        for kind, run in runs:
            if kind is SegmentKind.TRY:
                kind = SegmentKind.GLIDE
            if combined and combined[-1][0] is kind:
                combined[-1][1].extend(run)
            else:
                combined.append((kind, list(run)))
        return combined

    def make_flight(self, fixes: Iterable[Fix], start_altitude: Optional[int] = None) -> Flight:
        """Clean and segment fixes into a Flight"""
        cleaned = cleanFixes(fixes, start_altitude, self.settings)
        if not cleaned:
            logger.debug("No fixes left to segment")
            return Flight()

        runs = self.classify(cleaned)
        self.apply_backset(runs)
        runs = self.combine(self.demote_short(runs))

        segments = []
        position = 0
        for kind, run in runs:
            segments.append(Segment(kind, position, position + len(run)))
            position += len(run)

        logger.debug(f"Segmented {len(cleaned)} fixes into {len(segments)} segments")
        return Flight(tuple(cleaned), tuple(segments))


def makeFlight(fixes: Iterable[Fix],
               start_altitude: Optional[int] = None,
               settings: SegmentationSettings = SegmentationSettings()) -> Flight:
    """Segment fixes into a Flight"""
    return FlightSegmenter(settings).make_flight(fixes, start_altitude)
