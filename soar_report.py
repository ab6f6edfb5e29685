#!/usr/bin/env python3
"""
Report writer module for the quicksoar glider flight analyzer

This module writes the statistics of several pilots into one CSV report:
a block for the entire task followed by a block for every leg, each ranked
by speed and then by distance, with the best and worst values marked.
"""

import csv
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, TextIO

from soar_calculation import Calculation
from soar_model import PilotInfo, TaskPiece
from soar_utils import toHMS
from soar_constants import (
    DEFAULT_UNKNOWN_TEXT,
    REPORT_ENTIRE_TASK_TITLE,
    REPORT_LEG_TITLE,
    REPORT_BEST_MARK,
    REPORT_WORST_MARK,
)

# Configure logger
logger = logging.getLogger(__name__)


class Extreme(Enum):
    """Marks the best or worst value of a column"""
    NONE = ""
    BEST = REPORT_BEST_MARK
    WORST = REPORT_WORST_MARK


class ColumnHeader(Enum):
    """Report columns as (label, unit, colourisable, highest value is best)"""
    RANKING = ("Ranking", None, False, None)
    AIRPLANE = ("Airplane", None, False, None)
    CALLSIGN = ("Callsign", None, False, None)
    DISTANCE = ("Distance flown", "km", False, None)
    START_TIME = ("Start time (Local)", None, False, None)
    FINISH_TIME = ("Finish time (Local)", None, False, None)
    START_ALT = ("Start altitude (MSL)", "m", True, True)
    CLIMB_RATE = ("Average rate of climb", "m/s", True, True)
    CRUISE_SPEED = ("Average cruise speed", "km/h", True, True)
    CRUISE_DISTANCE = ("Average glide distance", "km", True, True)
    GLIDE_RATIO = ("Average glide ratio", None, True, True)
    EXCESS_DISTANCE = ("Excess distance covered", "%", True, False)
    SPEED = ("XC Speed", "km/h", True, True)
    TURNING_PERCENTAGE = ("Circling percentage", "%", True, False)
    THERMAL_ALT_LOSS = ("Thermal altitude loss", "%", True, False)
    OFFICIAL_SPEED = ("Official XC speed", "km/h", False, None)
    OFFICIAL_DISTANCE = ("Official distance", "km", False, None)

    def __init__(self, label: str, unit: Optional[str], colorizable: bool, highest_is_best: Optional[bool]):
        self.label = label
        self.unit = unit
        self.colorizable = colorizable
        self.highest_is_best = highest_is_best

    @property
    def title(self) -> str:
        """Header text including the unit"""
        return f"{self.label} ({self.unit})" if self.unit else self.label


@dataclass
class ReportRow:
    """One analysed flight: its calculation, pilot and the UTC offset for local times"""
    calculation: Calculation
    pilot_info: PilotInfo
    utc_offset: int = 0
    source: str = ""


@dataclass
class DataCell:
    """A report value with its best/worst mark"""
    value: Any = None
    extreme: Extreme = Extreme.NONE

    def render(self) -> str:
        """Format the value for the CSV file"""
        if self.value is None:
            return ""
        if isinstance(self.value, float):
            text = f"{self.value:.2f}"
        else:
            text = str(self.value)
        if self.extreme is not Extreme.NONE:
            text = f"{text} {self.extreme.value}"
        return text


def _kilometers(value: Optional[float]) -> Optional[float]:
    return None if value is None else value / 1000.0


class ReportWriter:
    """
    Handles writing the CSV analysis report.
    Formats every task piece as a titled, ranked block.
    """

    @staticmethod
    def ranked(rows: List[ReportRow], task_piece: TaskPiece) -> List[ReportRow]:
        """Sort rows by speed, then distance; missing values rank last"""
        def key(row: ReportRow):
            speed = row.calculation.speed(task_piece)
            distance = row.calculation.distance(task_piece)
            return (
                speed is None,
                -(speed or 0.0),
                distance is None,
                -(distance or 0.0),
            )
        return sorted(rows, key=key)

    @staticmethod
    def column_values(column: ColumnHeader, rows: List[ReportRow], task_piece: TaskPiece) -> List[Any]:
        """Raw values of one column for already ranked rows"""
        values = []
        for rank, row in enumerate(rows, start=1):
            calc = row.calculation
            if column is ColumnHeader.RANKING:
                value = rank
            elif column is ColumnHeader.AIRPLANE:
                value = row.pilot_info.glider_type or DEFAULT_UNKNOWN_TEXT
            elif column is ColumnHeader.CALLSIGN:
                value = row.pilot_info.comp_id or DEFAULT_UNKNOWN_TEXT
            elif column is ColumnHeader.DISTANCE:
                value = _kilometers(calc.distance(task_piece))
            elif column is ColumnHeader.START_TIME:
                start = calc.start_time(task_piece)
                value = None if start is None else toHMS(start, row.utc_offset)
            elif column is ColumnHeader.FINISH_TIME:
                finish = calc.finish_time(task_piece)
                value = None if finish is None else toHMS(finish, row.utc_offset)
            elif column is ColumnHeader.START_ALT:
                value = calc.start_alt(task_piece)
            elif column is ColumnHeader.CLIMB_RATE:
                value = calc.climb_rate(task_piece)
            elif column is ColumnHeader.CRUISE_SPEED:
                value = calc.glide_speed(task_piece)
            elif column is ColumnHeader.CRUISE_DISTANCE:
                value = _kilometers(calc.glide_distance(task_piece))
            elif column is ColumnHeader.GLIDE_RATIO:
                value = calc.glide_ratio(task_piece)
            elif column is ColumnHeader.EXCESS_DISTANCE:
                value = calc.excess_distance(task_piece)
            elif column is ColumnHeader.SPEED:
                value = calc.speed(task_piece)
            elif column is ColumnHeader.TURNING_PERCENTAGE:
                value = calc.climb_percentage(task_piece)
            elif column is ColumnHeader.OFFICIAL_SPEED:
                value = calc.get_reference_speed() if task_piece.is_entire_task else None
            elif column is ColumnHeader.OFFICIAL_DISTANCE:
                official = calc.get_reference_distance() if task_piece.is_entire_task else None
                value = _kilometers(official)
            else:
                value = calc.thermal_height_loss(task_piece)
            values.append(value)
        return values

    @staticmethod
    def mark_extremes(column: ColumnHeader, values: List[Any]) -> List[DataCell]:
        """Wrap values in cells, marking the highest and lowest numbers"""
        cells = [DataCell(value) for value in values]
        if not column.colorizable:
            return cells

        numbers = [value for value in values if isinstance(value, (int, float))]
        if len(numbers) < 2:
            return cells

        highest = max(numbers)
        lowest = min(numbers)
        if highest == lowest:
            return cells

        high_mark, low_mark = ((Extreme.BEST, Extreme.WORST) if column.highest_is_best
                               else (Extreme.WORST, Extreme.BEST))
        for cell in cells:
            if cell.value is None:
                continue
            if cell.value == highest:
                cell.extreme = high_mark
            elif cell.value == lowest:
                cell.extreme = low_mark
        return cells

    def format_block(self, rows: List[ReportRow], task_piece: TaskPiece) -> List[List[str]]:
        """The CSV rows of one task piece: title, header and one row per pilot"""
        if task_piece.is_entire_task:
            title = REPORT_ENTIRE_TASK_TITLE
        else:
            title = REPORT_LEG_TITLE.format(number=task_piece.leg + 1)

        ranked = self.ranked(rows, task_piece)
        columns = [self.mark_extremes(column, self.column_values(column, ranked, task_piece))
                   for column in ColumnHeader]

        block = [[title], [column.title for column in ColumnHeader]]
        for i in range(len(ranked)):
            block.append([cells[i].render() for cells in columns])
        return block

    def write_file(self, report_file: TextIO, rows: List[ReportRow]) -> None:
        """Write a complete report for the given rows"""
        writer = csv.writer(report_file)
        if not rows:
            logger.warning("No flights to report")
            return

        leg_count = max(row.calculation.get_task().leg_count for row in rows)
        pieces = [TaskPiece.entire()] + [TaskPiece.of_leg(i) for i in range(leg_count)]

        for index, piece in enumerate(pieces):
            if index:
                writer.writerow([])
            writer.writerows(self.format_block(rows, piece))

        logger.debug(f"Wrote {len(pieces)} report blocks for {len(rows)} flights")


# Public function
def writeReport(report_file: TextIO, rows: List[ReportRow]) -> None:
    """Write the CSV analysis report for the analysed flights"""
    writer = ReportWriter()
    writer.write_file(report_file, rows)
