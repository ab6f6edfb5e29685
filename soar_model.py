#!/usr/bin/env python3
"""
Data models and enums for the quicksoar glider flight analyzer

Fixes are immutable and shared by reference: a Flight owns a tuple of Fix
objects, its segments are index ranges into that tuple, and sub-flights hold
slices of the very same Fix objects.
"""

from bisect import bisect_left
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from soar_utils import calculateDistance


class TaskError(ValueError):
    """Raised when a task declaration is missing or malformed"""


class PilotInfoError(ValueError):
    """Raised when pilot information cannot be read from a flight log"""


class CalculationError(ValueError):
    """Raised when a flight cannot be analyzed against a task"""


class LegResolutionError(ValueError):
    """Raised when task legs cannot be resolved consistently"""


@dataclass(frozen=True)
class Fix:
    """One GPS/barometric sample"""
    timestamp: int
    latitude: float
    longitude: float
    gps_altitude: int
    pressure_altitude: int
    valid: bool = True

    def distance_to(self, other) -> float:
        """Distance in meters to another fix or turnpoint"""
        return calculateDistance(self.latitude, self.longitude, other.latitude, other.longitude)


class SegmentKind(Enum):
    GLIDE = "glide"
    THERMAL = "thermal"
    TRY = "try"


@dataclass(frozen=True)
class Segment:
    """A run of fixes of one kind, stored as the index range [start, stop) of its flight"""
    kind: SegmentKind
    start: int
    stop: int

    def __len__(self) -> int:
        return self.stop - self.start

    @property
    def is_thermal(self) -> bool:
        return self.kind is SegmentKind.THERMAL

    @property
    def is_glide(self) -> bool:
        # Try is a glide for every statistic
        return self.kind is not SegmentKind.THERMAL


@dataclass(frozen=True)
class Flight:
    """An ordered fix sequence plus the segments derived from it"""
    fixes: Tuple[Fix, ...] = ()
    segments: Tuple[Segment, ...] = ()

    def __len__(self) -> int:
        return len(self.fixes)

    def is_empty(self) -> bool:
        return not self.fixes

    def fixes_of(self, segment: Segment) -> Tuple[Fix, ...]:
        """Get the fixes belonging to one of this flight's segments"""
        return self.fixes[segment.start:segment.stop]

    def iter_segments(self) -> Iterator[Tuple[Segment, Tuple[Fix, ...]]]:
        """Iterate over (segment, fixes) pairs in time order"""
        for segment in self.segments:
            yield segment, self.fixes_of(segment)

    def first_fix(self) -> Optional[Fix]:
        return self.fixes[0] if self.fixes else None

    def last_fix(self) -> Optional[Fix]:
        return self.fixes[-1] if self.fixes else None

    def total_time(self) -> int:
        """Seconds between the first and last fix"""
        if not self.fixes:
            return 0
        return self.fixes[-1].timestamp - self.fixes[0].timestamp

    def thermal_percentage(self) -> Optional[float]:
        """Percentage of fixes that lie in thermal segments"""
        total = sum(len(segment) for segment in self.segments)
        if total == 0:
            return None
        thermal = sum(len(segment) for segment in self.segments if segment.is_thermal)
        return 100.0 * thermal / total

    def subflight(self, from_time: Optional[int], to_time: Optional[int]) -> 'Flight':
        """
        Slice the flight to the half-open time window [from_time, to_time).

        A None bound leaves that side open. Segments are clipped to the window
        and segments that end up empty are dropped.
        """
        timestamps = [fix.timestamp for fix in self.fixes]
        first = 0 if from_time is None else bisect_left(timestamps, from_time)
        last = len(self.fixes) if to_time is None else bisect_left(timestamps, to_time)
        if last <= first:
            return Flight()

        segments = []
        for segment in self.segments:
            start = max(segment.start, first)
            stop = min(segment.stop, last)
            if stop > start:
                segments.append(Segment(segment.kind, start - first, stop - first))

        return Flight(self.fixes[first:last], tuple(segments))


class TaskComponentKind(Enum):
    START = "start"
    TURNPOINT = "turnpoint"
    FINISH = "finish"


@dataclass(frozen=True)
class Turnpoint:
    """A turnpoint location with its observation zone description"""
    latitude: float
    longitude: float
    name: Optional[str] = None
    r1: int = 0
    a1: int = 0
    r2: int = 0
    a2: int = 0
    aat: bool = False

    def contains(self, fix: Fix) -> bool:
        """Cylinder test: is the fix within the inclusion radius r1"""
        return calculateDistance(self.latitude, self.longitude, fix.latitude, fix.longitude) <= self.r1

    def distance_to(self, other) -> float:
        """Distance in meters to another turnpoint or fix"""
        return calculateDistance(self.latitude, self.longitude, other.latitude, other.longitude)


@dataclass(frozen=True)
class TaskComponent:
    kind: TaskComponentKind
    turnpoint: Turnpoint


class TaskType(Enum):
    AST = "AST"
    AAT = "AAT"


@dataclass(frozen=True)
class Task:
    """
    An ordered start, turnpoints and finish.

    min_time is the assigned minimum task time in seconds and only has a
    meaning for AAT tasks.
    """
    components: Tuple[TaskComponent, ...]
    task_type: TaskType = TaskType.AST
    min_time: Optional[int] = None

    def __post_init__(self):
        components = tuple(self.components)
        object.__setattr__(self, 'components', components)

        if len(components) < 3:
            raise TaskError(f"A task needs a start, a turnpoint and a finish, got {len(components)} points")
        if components[0].kind is not TaskComponentKind.START:
            raise TaskError("The first task point is not a start")
        if components[-1].kind is not TaskComponentKind.FINISH:
            raise TaskError("The last task point is not a finish")
        for component in components[1:-1]:
            if component.kind is not TaskComponentKind.TURNPOINT:
                raise TaskError(f"Unexpected {component.kind.value} between start and finish")

    @property
    def points(self) -> List[Turnpoint]:
        return [component.turnpoint for component in self.components]

    @property
    def leg_count(self) -> int:
        return len(self.components) - 1

    @property
    def finish(self) -> Turnpoint:
        return self.components[-1].turnpoint

    def leg_distance(self, leg_number: int) -> float:
        """Turnpoint to turnpoint distance of a leg in meters"""
        points = self.points
        return points[leg_number].distance_to(points[leg_number + 1])

    def nominal_distance(self) -> float:
        """Turnpoint to turnpoint task distance in meters"""
        return sum(self.leg_distance(i) for i in range(self.leg_count))


@dataclass
class PilotInfo:
    """Pilot metadata used for display only"""
    glider_type: str = ''
    comp_id: str = ''
    utc_offset: int = 0


@dataclass(frozen=True)
class TaskPiece:
    """Selects either the entire task (leg is None) or a single leg"""
    leg: Optional[int] = None

    @classmethod
    def entire(cls) -> 'TaskPiece':
        return cls(None)

    @classmethod
    def of_leg(cls, leg_number: int) -> 'TaskPiece':
        return cls(leg_number)

    @property
    def is_entire_task(self) -> bool:
        return self.leg is None


@dataclass
class LegBoundaries:
    """Raw result of leg resolution: boundary times and which sectors were reached"""
    times: List[Optional[int]] = field(default_factory=list)
    reached: List[bool] = field(default_factory=list)


@dataclass
class FlightLog:
    """Everything read from one flight recorder file"""
    fixes: List[Fix] = field(default_factory=list)
    flight_date: Optional[date] = None
    task: Optional[Task] = None
    pilot_info: Optional[PilotInfo] = None
    task_error: Optional[str] = None

    @property
    def takeoff_fix(self) -> Optional[Fix]:
        """First valid fix of the log"""
        for fix in self.fixes:
            if fix.valid:
                return fix
        return None
