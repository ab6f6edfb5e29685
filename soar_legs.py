#!/usr/bin/env python3
"""
Task leg resolution for the quicksoar glider flight analyzer

Maps a task onto a segmented flight. Every leg becomes a sub-flight, or None
when the glider never got there. Sectors use a simple cylinder model: a fix
is inside when it lies within r1 of the turnpoint.
"""

import logging
from typing import List, Optional, Sequence

from soar_model import (
    Fix,
    Flight,
    LegBoundaries,
    LegResolutionError,
    Task,
    TaskType,
    Turnpoint,
)

# Configure logger
logger = logging.getLogger(__name__)


class LegResolver:
    """
    Resolves the legs of one task for one flight.

    AST legs end where the next sector is first entered. AAT legs end at the
    fix picked inside each assigned area by a greedy one-step lookahead.
    """

    def __init__(self, task: Task):
        """Initialize with the task to resolve"""
        self.task = task

    @staticmethod
    def first_entry(fixes: Sequence[Fix], sector: Turnpoint, after: int) -> Optional[Fix]:
        """First fix strictly after the given time that lies inside the sector"""
        for fix in fixes:
            if fix.timestamp > after and sector.contains(fix):
                return fix
        return None

    @staticmethod
    def closest_approach(fixes: Sequence[Fix], sector: Turnpoint, after: int) -> Optional[Fix]:
        """The fix after the given time that got closest to the sector"""
        best = None
        best_distance = float('inf')
        for fix in fixes:
            if fix.timestamp <= after:
                continue
            distance = sector.distance_to(fix)
            if distance <= best_distance:
                best = fix
                best_distance = distance
        return best

    def entry_times(self, fixes: Sequence[Fix], start_fix: Fix) -> List[Optional[int]]:
        """
        Time of the first entry into each sector after the start, in task order.

        Once a sector is missed every later entry is None as well.
        """
        times: List[Optional[int]] = [start_fix.timestamp]
        current = start_fix.timestamp
        for sector in self.task.points[1:]:
            if current is None:
                times.append(None)
                continue
            entry = self.first_entry(fixes, sector, current)
            current = entry.timestamp if entry else None
            times.append(current)
        return times

    def resolve_ast(self, fixes: Sequence[Fix], start_fix: Fix) -> LegBoundaries:
        """Leg boundaries of an assigned speed task"""
        boundaries = LegBoundaries(times=[start_fix.timestamp], reached=[True])
        current = start_fix.timestamp

        for leg_number, sector in enumerate(self.task.points[1:]):
            entry = self.first_entry(fixes, sector, current)
            if entry:
                boundaries.times.append(entry.timestamp)
                boundaries.reached.append(True)
                current = entry.timestamp
                continue

            # Landout: give partial credit up to the best progress towards the sector
            best = self.closest_approach(fixes, sector, current)
            if best is None:
                logger.debug(f"No fixes after {current}, leg {leg_number} is lost")
            else:
                logger.debug(f"Sector {leg_number + 1} never reached, closing leg {leg_number} at {best.timestamp}")
                boundaries.times.append(best.timestamp + 1)
                boundaries.reached.append(False)
            break

        return boundaries

    def resolve_aat(self, fixes: Sequence[Fix], start_fix: Fix) -> LegBoundaries:
        """Leg boundaries of an assigned area task"""
        points = self.task.points
        entries = self.entry_times(fixes, start_fix)

        triples = [points[i - 1:i + 2] for i in range(1, len(points) - 1)]
        # Candidates of a sector lie before the entry into the next one
        candidates = []
        for sector, upper in zip(points[1:-1], entries[2:]):
            candidates.append([
                fix for fix in fixes
                if fix.timestamp > start_fix.timestamp
                and (upper is None or fix.timestamp < upper)
                and sector.contains(fix)
            ])

        if len(candidates) != len(triples):
            raise LegResolutionError(
                f"Found {len(candidates)} sector candidate lists for {len(triples)} turnpoints")

        boundaries = LegBoundaries(times=[start_fix.timestamp], reached=[True])
        prev_optimal = start_fix

        for (_, sector, next_point), sector_fixes in zip(triples, candidates):
            best = None
            best_score = float('-inf')
            for fix in sector_fixes:
                if fix.timestamp <= prev_optimal.timestamp:
                    continue
                score = next_point.distance_to(fix) + fix.distance_to(prev_optimal)
                # Later fixes win ties
                if score >= best_score:
                    best = fix
                    best_score = score

            if best is None:
                logger.debug(f"No fixes inside {sector.name or 'sector'}, landout")
                return boundaries

            boundaries.times.append(best.timestamp)
            boundaries.reached.append(True)
            prev_optimal = best

        finish = self.first_entry(fixes, points[-1], prev_optimal.timestamp)
        if finish is not None:
            boundaries.times.append(finish.timestamp)
            boundaries.reached.append(True)

        return boundaries

    def resolve_boundaries(self, fixes: Sequence[Fix], start_time: Optional[int]) -> LegBoundaries:
        """Find the leg boundary times; missing trailing entries mean landout"""
        if start_time is None:
            return LegBoundaries()

        after = [fix for fix in fixes if fix.timestamp >= start_time]
        if not after:
            logger.debug(f"No fixes after the start time {start_time}")
            return LegBoundaries()

        if self.task.task_type is TaskType.AAT:
            return self.resolve_aat(after, after[0])
        return self.resolve_ast(after, after[0])

    def resolve(self, flight: Flight, start_time: Optional[int]) -> List[Optional[Flight]]:
        """Split the flight into one optional sub-flight per leg"""
        return self.legs_from_boundaries(flight, self.resolve_boundaries(flight.fixes, start_time))

    def legs_from_boundaries(self, flight: Flight, boundaries: LegBoundaries) -> List[Optional[Flight]]:
        """Turn boundary times into sub-flights; a missing or empty leg ends the task"""
        legs: List[Optional[Flight]] = []
        landed_out = False
        for leg_number in range(self.task.leg_count):
            if landed_out or leg_number + 1 >= len(boundaries.times):
                legs.append(None)
                landed_out = True
                continue

            leg = flight.subflight(boundaries.times[leg_number], boundaries.times[leg_number + 1])
            if leg.is_empty():
                legs.append(None)
                landed_out = True
            else:
                legs.append(leg)

        return legs


def makeLegs(fixes: Sequence[Fix], task: Task, start_time: Optional[int], flight: Flight) -> List[Optional[Flight]]:
    """Resolve task legs for the given fixes and flight"""
    resolver = LegResolver(task)
    return resolver.legs_from_boundaries(flight, resolver.resolve_boundaries(fixes, start_time))
