#!/usr/bin/env python3
"""
Utility functions for the quicksoar glider flight analyzer

Geometry helpers work on plain latitude/longitude degrees and use a flat-earth
approximation that is adequate at competition task scale.
"""

import re
import math
from typing import Optional, Union

from soar_constants import (
    EARTH_RADIUS_METERS,
    DEGREES_IN_CIRCLE,
    HALF_CIRCLE,
    SECONDS_PER_MINUTE,
    SECONDS_PER_HOUR,
    SECONDS_PER_DAY,
)


def secondsFromString(timezone: str) -> int:
    """Convert a timezone string to seconds offset"""
    seconds = 0

    timezone = numberOrString(timezone.strip())
    if isinstance(timezone, (float, int)):
        seconds = timezone * SECONDS_PER_HOUR
    elif isinstance(timezone, str):
        indexAfterSign = int(timezone[0] in ['+', '-'])
        zone = timezone[indexAfterSign:].split(':')

        seconds = float(zone.pop())
        seconds += float(zone.pop()) * SECONDS_PER_MINUTE
        if len(zone):
            seconds += float(zone.pop()) * SECONDS_PER_HOUR
        else:
            seconds *= SECONDS_PER_MINUTE

        seconds *= -1 if timezone[0] == '-' else 1

    return int(seconds)


def secondsFromTime(text: str) -> int:
    """Convert HH:MM:SS (or HHMMSS) to seconds since midnight"""
    digits = text.strip().replace(':', '')
    if len(digits) != 6 or not digits.isdigit():
        raise ValueError(f"Invalid time of day: {text!r}")

    hours, minutes, seconds = int(digits[0:2]), int(digits[2:4]), int(digits[4:6])
    if hours > 23 or minutes > 59 or seconds > 59:
        raise ValueError(f"Time of day out of range: {text!r}")

    return hours * SECONDS_PER_HOUR + minutes * SECONDS_PER_MINUTE + seconds


def numberOrString(value: str) -> Union[float, str]:
    """Convert a string to a number if possible, otherwise keep as string"""
    if re.sub('^[+-]', '', re.sub('\\.', '', value)).isnumeric():
        return float(value)
    else:
        return value


def toHMS(seconds: int, offset: int = 0) -> str:
    """Render seconds since midnight (shifted by offset seconds) as HH:MM:SS"""
    seconds = (int(seconds) + int(offset)) % SECONDS_PER_DAY
    hours, rest = divmod(seconds, SECONDS_PER_HOUR)
    minutes, seconds = divmod(rest, SECONDS_PER_MINUTE)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def calculateDistance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Flat-earth distance between two points in meters.

    The longitude delta is projected by the cosine of the mean latitude.
    Not geodesically exact, but good to well under a percent at the scale of
    a few hundred kilometers.
    """
    lat1_rad = math.radians(lat1)
    lon1_rad = math.radians(lon1)
    lat2_rad = math.radians(lat2)
    lon2_rad = math.radians(lon2)

    x = (lon2_rad - lon1_rad) * math.cos((lat1_rad + lat2_rad) / 2)
    y = lat2_rad - lat1_rad

    return math.sqrt(x * x + y * y) * EARTH_RADIUS_METERS


def calculateBearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Bearing between two points in degrees (0-360).

    Arccosine of the normalized latitude delta, mirrored when the longitude
    delta is negative. Returns NaN when the points coincide.
    """
    delta_lat = lat1 - lat2
    delta_lon = lon1 - lon2
    length = math.sqrt(delta_lon * delta_lon + delta_lat * delta_lat)
    if length == 0:
        return math.nan

    # Rounding can push the ratio a hair outside [-1, 1]
    ratio = max(-1.0, min(1.0, delta_lat / length))
    bearing = math.degrees(math.acos(ratio))
    if delta_lon < 0:
        bearing = DEGREES_IN_CIRCLE - bearing

    return bearing % DEGREES_IN_CIRCLE


def wrapTurn(degrees: float) -> float:
    """Normalize a turn to the (-180, 180] range"""
    degrees = degrees % DEGREES_IN_CIRCLE
    if degrees > HALF_CIRCLE:
        degrees -= DEGREES_IN_CIRCLE
    return degrees


def bearingChange(a, b, c) -> float:
    """
    Signed turn in degrees from heading a->b to heading b->c.

    Negative is clockwise, positive counter-clockwise. Points are anything
    with latitude/longitude attributes. Returns 0 if either heading is
    undefined.
    """
    first = calculateBearing(a.latitude, a.longitude, b.latitude, b.longitude)
    second = calculateBearing(b.latitude, b.longitude, c.latitude, c.longitude)
    if math.isnan(first) or math.isnan(second):
        return 0.0

    return wrapTurn(first - second)


def pointDistance(a, b) -> float:
    """Distance in meters between two objects with latitude/longitude"""
    return calculateDistance(a.latitude, a.longitude, b.latitude, b.longitude)


def safeDivide(numerator: float, denominator: float) -> Optional[float]:
    """Divide, returning None for a zero (or NaN) denominator"""
    if not denominator or math.isnan(denominator):
        return None
    return numerator / denominator
