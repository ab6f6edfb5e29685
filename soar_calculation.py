#!/usr/bin/env python3
"""
Task calculation and flight statistics for the quicksoar glider flight analyzer

A Calculation ties one task to one segmented flight and its legs. It is built
once and only answers read-only queries afterwards. Every statistic returns
None when it cannot be computed: a leg was never flown, a denominator is zero
or the flight has no segments of the required kind.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from soar_legs import LegResolver
from soar_model import (
    CalculationError,
    Fix,
    Flight,
    PilotInfo,
    Segment,
    Task,
    TaskPiece,
    TaskType,
)
from soar_utils import pointDistance, safeDivide
from soar_constants import LOW_ALTITUDE_MARGIN, MPS_TO_KPH

# Configure logger
logger = logging.getLogger(__name__)


def pathLength(fixes: Sequence[Fix]) -> float:
    """Sum of the distances between consecutive fixes"""
    return sum(pointDistance(fixes[i - 1], fixes[i]) for i in range(1, len(fixes)))


class Calculation:
    """Analysis of one flight against one task"""

    def __init__(self,
                 task: Task,
                 flight: Flight,
                 pilot_info: Optional[PilotInfo] = None,
                 start_time: Optional[int] = None,
                 field_elevation: Optional[int] = None,
                 reference_speed: Optional[float] = None,
                 reference_distance: Optional[float] = None):
        """
        Resolve the legs of the flight and fix the scored part of it.

        reference_speed (km/h) and reference_distance (meters) are the official
        results of the flight, usually of an AST task, carried along for
        comparison only.
        """
        if flight.is_empty():
            raise CalculationError("Cannot analyze a flight without fixes")

        self.task = task
        self.pilot_info = pilot_info or PilotInfo()
        self.task_start = start_time
        self.reference_speed = reference_speed
        self.reference_distance = reference_distance

        resolver = LegResolver(task)
        self.boundaries = resolver.resolve_boundaries(flight.fixes, start_time)
        self.legs: List[Optional[Flight]] = resolver.legs_from_boundaries(flight, self.boundaries)

        last_leg = self.legs[-1] if self.legs else None
        if last_leg is not None:
            last_time = last_leg.last_fix().timestamp
        else:
            last_time = flight.last_fix().timestamp
        self.total_flight = flight.subflight(start_time, last_time + 1)

        if field_elevation is None:
            field_elevation = flight.first_fix().pressure_altitude
        self.field_elevation = field_elevation

        flown = sum(1 for leg in self.legs if leg is not None)
        logger.debug(f"Resolved {flown} of {len(self.legs)} legs")

    def get_task(self) -> Task:
        return self.task

    def get_pilot_info(self) -> PilotInfo:
        return self.pilot_info

    def get_reference_speed(self) -> Optional[float]:
        return self.reference_speed

    def get_reference_distance(self) -> Optional[float]:
        return self.reference_distance

    @property
    def finished(self) -> bool:
        """Whether every sector including the finish was reached"""
        reached = self.boundaries.reached
        return len(reached) == self.task.leg_count + 1 and all(reached)

    def _leg(self, leg_number: int) -> Optional[Flight]:
        if leg_number < 0 or leg_number >= len(self.legs):
            return None
        return self.legs[leg_number]

    def _flight(self, task_piece: TaskPiece) -> Optional[Flight]:
        if task_piece.is_entire_task:
            return self.total_flight
        return self._leg(task_piece.leg)

    def _segments(self, task_piece: TaskPiece, thermal: bool) -> List[Tuple[Segment, Tuple[Fix, ...]]]:
        flight = self._flight(task_piece)
        if flight is None:
            return []
        return [(segment, fixes) for segment, fixes in flight.iter_segments()
                if segment.is_thermal == thermal and fixes]

    def _leg_reached(self, leg_number: int) -> bool:
        reached = self.boundaries.reached
        return leg_number + 1 < len(reached) and reached[leg_number + 1]

    def distance(self, task_piece: TaskPiece) -> Optional[float]:
        """Scored distance in meters"""
        if task_piece.is_entire_task:
            if not self.legs or self.legs[0] is None:
                return None
            if self.task.task_type is TaskType.AST and self.finished:
                return self.task.nominal_distance() - self.task.finish.r1
            return sum(self.distance(TaskPiece.of_leg(i)) or 0.0 for i in range(len(self.legs)))

        leg_number = task_piece.leg
        leg = self._leg(leg_number)
        if leg is None:
            return None

        if self.task.task_type is TaskType.AAT:
            return leg.first_fix().distance_to(leg.last_fix())

        distance = self.task.leg_distance(leg_number)
        if not self._leg_reached(leg_number):
            # Partial leg: progress made towards the sector that was never reached
            target = self.task.points[leg_number + 1]
            return max(0.0, distance - target.distance_to(leg.last_fix()))
        if leg_number == self.task.leg_count - 1:
            distance -= self.task.finish.r1
        return distance

    def speed(self, task_piece: TaskPiece) -> Optional[float]:
        """Average task speed in km/h"""
        if task_piece.is_entire_task:
            if not self.finished:
                return None
            if not self.legs or not all(leg is not None and len(leg) > 1 for leg in self.legs):
                return None
            elapsed = self.legs[-1].last_fix().timestamp - self.legs[0].first_fix().timestamp
            if self.task.task_type is TaskType.AAT and self.task.min_time:
                elapsed = max(elapsed, self.task.min_time)
        else:
            leg = self._flight(task_piece)
            if leg is None:
                return None
            elapsed = leg.total_time()

        distance = self.distance(task_piece)
        if distance is None:
            return None
        speed = safeDivide(distance, elapsed)
        return None if speed is None else MPS_TO_KPH * speed

    def glide_ratio(self, task_piece: TaskPiece) -> Optional[float]:
        """Glide distance divided by the altitude lost while gliding"""
        glides = self._segments(task_piece, thermal=False)
        if not glides:
            return None
        distance = sum(pathLength(fixes) for _, fixes in glides)
        alt_loss = sum(fixes[0].gps_altitude - fixes[-1].gps_altitude for _, fixes in glides)
        return safeDivide(distance, alt_loss)

    def excess_distance(self, task_piece: TaskPiece) -> Optional[float]:
        """Extra distance flown compared to the scored distance, in percent"""
        flight = self._flight(task_piece)
        distance = self.distance(task_piece)
        if flight is None or distance is None:
            return None
        flown = sum(pathLength(fixes) for _, fixes in flight.iter_segments())
        ratio = safeDivide(flown, distance)
        return None if ratio is None else 100.0 * ratio - 100.0

    def climb_rate(self, task_piece: TaskPiece) -> Optional[float]:
        """Average climb in thermals, m/s"""
        thermals = self._segments(task_piece, thermal=True)
        alt_gain = sum(fixes[-1].gps_altitude - fixes[0].gps_altitude for _, fixes in thermals)
        climb_time = sum(fixes[-1].timestamp - fixes[0].timestamp for _, fixes in thermals)
        return safeDivide(alt_gain, climb_time)

    def _average_speed_of_segments(self, task_piece: TaskPiece, thermal: bool) -> Optional[float]:
        segments = self._segments(task_piece, thermal)
        distance = sum(pathLength(fixes) for _, fixes in segments)
        seconds = sum(fixes[-1].timestamp - fixes[0].timestamp for _, fixes in segments)
        speed = safeDivide(distance, seconds)
        return None if speed is None else MPS_TO_KPH * speed

    def climb_ground_speed(self, task_piece: TaskPiece) -> Optional[float]:
        """Ground speed while circling, km/h"""
        return self._average_speed_of_segments(task_piece, thermal=True)

    def glide_speed(self, task_piece: TaskPiece) -> Optional[float]:
        """Ground speed while cruising, km/h"""
        return self._average_speed_of_segments(task_piece, thermal=False)

    def climb_percentage(self, task_piece: TaskPiece) -> Optional[float]:
        """Share of fixes spent circling, in percent"""
        flight = self._flight(task_piece)
        if flight is None:
            return None
        return flight.thermal_percentage()

    def glide_distance(self, task_piece: TaskPiece) -> Optional[float]:
        """Average straight-line length of a glide in meters"""
        glides = self._segments(task_piece, thermal=False)
        if not glides:
            return None
        total = sum(fixes[0].distance_to(fixes[-1]) for _, fixes in glides)
        return total / len(glides)

    def thermal_height_loss(self, task_piece: TaskPiece) -> Optional[float]:
        """Altitude lost inside thermals relative to the altitude gained, in percent"""
        thermals = self._segments(task_piece, thermal=True)
        if not thermals:
            return None
        alt_gain = 0
        alt_loss = 0
        for _, fixes in thermals:
            alt_gain += fixes[-1].gps_altitude - fixes[0].gps_altitude
            alt_loss += sum(max(0, fixes[i - 1].gps_altitude - fixes[i].gps_altitude)
                            for i in range(1, len(fixes)))
        ratio = safeDivide(alt_loss, alt_gain)
        return None if ratio is None else 100.0 * ratio

    def percent_below_threshold(self, task_piece: TaskPiece) -> Optional[float]:
        """Share of fixes lower than 500 m above the field, in percent"""
        flight = self._flight(task_piece)
        if flight is None or flight.is_empty():
            return None
        threshold = self.field_elevation + LOW_ALTITUDE_MARGIN
        below = sum(1 for fix in flight.fixes if fix.pressure_altitude < threshold)
        return 100.0 * below / len(flight)

    def thermal_drift(self, task_piece: TaskPiece) -> Optional[float]:
        """Net displacement while circling relative to the scored distance, in percent"""
        thermals = self._segments(task_piece, thermal=True)
        distance = self.distance(task_piece)
        if not thermals or distance is None:
            return None
        drift = sum(fixes[0].distance_to(fixes[-1]) for _, fixes in thermals)
        ratio = safeDivide(drift, distance)
        return None if ratio is None else 100.0 * ratio

    def start_time(self, task_piece: TaskPiece) -> Optional[int]:
        """Seconds since midnight (UTC) of the first scored fix"""
        flight = self._flight(task_piece)
        if flight is None or flight.is_empty():
            return None
        return flight.first_fix().timestamp

    def finish_time(self, task_piece: TaskPiece) -> Optional[int]:
        """Seconds since midnight (UTC) of the last scored fix"""
        flight = self._flight(task_piece)
        if flight is None or flight.is_empty():
            return None
        return flight.last_fix().timestamp

    def start_alt(self, task_piece: TaskPiece) -> Optional[int]:
        """GPS altitude at the start of the piece"""
        flight = self._flight(task_piece)
        if flight is None or flight.is_empty():
            return None
        return flight.first_fix().gps_altitude
