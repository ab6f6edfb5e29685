#!/usr/bin/env python3
"""
Flight summary functions for the quicksoar glider flight analyzer
"""

from soar_model import TaskPiece
from soar_utils import toHMS
from soar_constants import DEFAULT_NA_TEXT, DEFAULT_UNKNOWN_TEXT


def _number(value, fmt: str, unit: str = '') -> str:
    if value is None:
        return DEFAULT_NA_TEXT
    return f"{value:{fmt}}{unit}"


def calculationSummary(calculation, utc_offset: int = 0) -> str:
    """Generate a summary string for an analysed flight"""
    entire = TaskPiece.entire()
    pilot = calculation.get_pilot_info()
    task = calculation.get_task()

    start = calculation.start_time(entire)
    finish = calculation.finish_time(entire)
    start_time = toHMS(start, utc_offset) if start is not None else DEFAULT_NA_TEXT
    finish_time = toHMS(finish, utc_offset) if finish is not None else DEFAULT_NA_TEXT

    distance = calculation.distance(entire)
    distance = None if distance is None else distance / 1000.0
    status = "finished" if calculation.finished else "not finished"

    heading = (f"{pilot.comp_id or DEFAULT_UNKNOWN_TEXT} - {pilot.glider_type or DEFAULT_UNKNOWN_TEXT}"
               f" ({task.task_type.value}, {status})")
    underline = '\n' + ('-' * len(heading))

    return f'''{heading}{underline}
   Start: {start_time}
  Finish: {finish_time}
Distance: {_number(distance, '.1f', ' km')}
   Speed: {_number(calculation.speed(entire), '.1f', ' km/h')}
   Climb: {_number(calculation.climb_rate(entire), '.2f', ' m/s')}
Circling: {_number(calculation.climb_percentage(entire), '.1f', '%')}'''
