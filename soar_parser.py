#!/usr/bin/env python3
"""
IGC file parser module for the quicksoar glider flight analyzer

This module reads the parts of an IGC flight recorder file the analysis
needs: B records (position fixes), the flight date, the task declared by
SeeYou in L records and the pilot information headers.
"""

import re
import logging
from datetime import date
from typing import TextIO, Dict, List, Optional, Sequence, Tuple

from soar_model import (
    Fix,
    FlightLog,
    PilotInfo,
    PilotInfoError,
    Task,
    TaskComponent,
    TaskComponentKind,
    TaskError,
    TaskType,
    Turnpoint,
)
from soar_utils import secondsFromString, secondsFromTime
from soar_constants import (
    IGC_RECORD_POSITION,
    IGC_RECORD_HEADER,
    IGC_HEADER_DATE,
    IGC_FIX_VALID,
    IGC_MIN_POSITION_LENGTH,
    IGC_TURNPOINT_PREFIX,
    IGC_VENDOR_PREFIX,
    IGC_PILOT_GLIDER_TYPE,
    IGC_PILOT_COMPETITION_ID,
    IGC_PILOT_TIME_ZONE,
    SEEYOU_DESCRIPTION,
    SEEYOU_TASK,
    SEEYOU_STYLE_START,
    SEEYOU_STYLE_TURNPOINT,
    SEEYOU_STYLE_FINISH,
    SECONDS_PER_MINUTE,
    SECONDS_PER_HOUR,
)

# Configure logger
logger = logging.getLogger(__name__)

TURNPOINT_RECORD = re.compile(r'^C(\d{2})(\d{5})([NS])(\d{3})(\d{5})([EW])(.*)$')
TASK_TIME = re.compile(r'TaskTime=(\d{2}:\d{2}:\d{2})')

# Observation zone elements: (pattern, default)
DESCRIPTION_ELEMENTS: Dict[str, Tuple[str, Optional[int]]] = {
    'r1': (r'R1=(\d+)m', 0),
    'a1': (r'A1=(\d+)', 0),
    'r2': (r'R2=(\d+)m', 0),
    'a2': (r'A2=(\d+)', 0),
    'style': (r',Style=(\d+)', None),
    'aat': (r'AAT=(\d+)', None),
}

STYLE_KINDS = {
    SEEYOU_STYLE_START: TaskComponentKind.START,
    SEEYOU_STYLE_TURNPOINT: TaskComponentKind.TURNPOINT,
    SEEYOU_STYLE_FINISH: TaskComponentKind.FINISH,
}


def _lines(contents) -> List[str]:
    if isinstance(contents, str):
        contents = contents.splitlines()
    lines = []
    for line in contents:
        if isinstance(line, bytes):
            line = line.decode('utf-8', errors='ignore')
        line = line.strip()
        if line:
            lines.append(line)
    return lines


class IgcFileDetector:
    """
    Detects whether a file is an IGC flight log.
    IGC files start with an A record followed by H records.
    """

    @staticmethod
    def is_igc(file: TextIO) -> bool:
        """Check the first two records of a file without consuming it"""
        starting_pos = file.tell()
        line = file.readline()
        if isinstance(line, bytes):
            line = line.decode('utf-8', errors='ignore')
        result = False
        if line.startswith('A'):
            line2 = file.readline()
            if isinstance(line2, bytes):
                line2 = line2.decode('utf-8', errors='ignore')
            result = line2.startswith(IGC_RECORD_HEADER)
        file.seek(starting_pos)
        return result


class IgcPositionParser:
    """
    Parses position records (B records) from IGC files.
    Extracts time, coordinates, validity and altitudes.
    """

    @staticmethod
    def parse_time(line: str) -> int:
        """Extract the time of a B record as seconds since midnight"""
        hour = int(line[1:3])
        minute = int(line[3:5])
        second = int(line[5:7])
        if hour > 23 or minute > 59 or second > 59:
            raise ValueError(f"Invalid time in B record: {line[1:7]}")
        return hour * SECONDS_PER_HOUR + minute * SECONDS_PER_MINUTE + second

    @staticmethod
    def parse_latitude(line: str) -> float:
        """Extract latitude from a B record"""
        lat_deg = int(line[7:9])
        lat_min = int(line[9:14]) / 1000
        lat_dir = line[14]
        if lat_dir not in 'NS':
            raise ValueError(f"Invalid latitude hemisphere: {lat_dir}")

        latitude = lat_deg + lat_min / 60.0
        return -latitude if lat_dir == 'S' else latitude

    @staticmethod
    def parse_longitude(line: str) -> float:
        """Extract longitude from a B record"""
        lon_deg = int(line[15:18])
        lon_min = int(line[18:23]) / 1000
        lon_dir = line[23]
        if lon_dir not in 'EW':
            raise ValueError(f"Invalid longitude hemisphere: {lon_dir}")

        longitude = lon_deg + lon_min / 60.0
        return -longitude if lon_dir == 'W' else longitude

    @staticmethod
    def parse_altitude(line: str) -> Tuple[int, int]:
        """
        Extract pressure and GPS altitude from a B record
        Returns tuple of (pressure_altitude, gps_altitude) in meters
        """
        return int(line[25:30]), int(line[30:35])

    def parse_position_record(self, line: str) -> Fix:
        """Parse a complete B record into a Fix"""
        pressure_altitude, gps_altitude = self.parse_altitude(line)
        return Fix(
            timestamp=self.parse_time(line),
            latitude=self.parse_latitude(line),
            longitude=self.parse_longitude(line),
            gps_altitude=gps_altitude,
            pressure_altitude=pressure_altitude,
            valid=line[24] == IGC_FIX_VALID,
        )

    def parse_fixes(self, lines: Sequence[str]) -> List[Fix]:
        """Parse every B record, skipping the ones that are malformed"""
        fixes = []
        skipped = 0
        for line in lines:
            if not line.startswith(IGC_RECORD_POSITION):
                continue
            if len(line) < IGC_MIN_POSITION_LENGTH:
                skipped += 1
                continue
            try:
                fixes.append(self.parse_position_record(line))
            except (ValueError, IndexError):
                skipped += 1

        if skipped:
            logger.debug(f"Skipped {skipped} malformed B records")
        return fixes


class IgcHeaderParser:
    """
    Parses header records: the flight date and the pilot information that
    competition loggers and SeeYou write into H and L records.
    """

    @staticmethod
    def parse_date(lines: Sequence[str]) -> Optional[date]:
        """Read HFDTE, accepting both HFDTE090525 and HFDTEDATE:090525,01"""
        for line in lines:
            if not line.startswith(IGC_RECORD_HEADER) or line[1:5] != IGC_HEADER_DATE:
                continue
            match = re.search(r'(\d{2})(\d{2})(\d{2})', line[5:])
            if not match:
                break
            day, month, year = (int(part) for part in match.groups())
            try:
                return date(2000 + year, month, day)
            except ValueError:
                logger.warning(f"Invalid date in IGC header: {line}")
                break
        return None

    @staticmethod
    def find_value(lines: Sequence[str], prefixes: Sequence[str]) -> Optional[str]:
        """Value of the first line starting with any of the prefixes"""
        for line in lines:
            for prefix in prefixes:
                if line.startswith(prefix) and len(line) > len(prefix):
                    return line[len(prefix):].strip()
        return None

    def parse_pilot_info(self, lines: Sequence[str]) -> PilotInfo:
        """Glider type, competition ID and UTC offset; all three are required"""
        glider_type = self.find_value(lines, IGC_PILOT_GLIDER_TYPE)
        comp_id = self.find_value(lines, IGC_PILOT_COMPETITION_ID)
        time_zone = self.find_value(lines, IGC_PILOT_TIME_ZONE)

        if glider_type is None or comp_id is None or time_zone is None:
            raise PilotInfoError("Glider type, competition ID or time zone missing")

        try:
            utc_offset = secondsFromString(time_zone)
        except (ValueError, IndexError):
            raise PilotInfoError(f"Invalid time zone: {time_zone}")

        return PilotInfo(glider_type=glider_type, comp_id=comp_id, utc_offset=utc_offset)


class TaskParser:
    """
    Parses the task SeeYou declares in L records:
    LCU::C turnpoint locations, LSEEYOU OZ= observation zones and
    the LSEEYOU TSK line carrying the AAT task time.
    """

    @staticmethod
    def get_element(description: str, element: str) -> Optional[int]:
        """Read a single numeric observation zone element"""
        pattern, default = DESCRIPTION_ELEMENTS[element]
        match = re.search(pattern, description)
        return int(match.group(1)) if match else default

    @staticmethod
    def parse_location(record: str) -> Optional[Tuple[float, float, Optional[str]]]:
        """Parse a C record into (latitude, longitude, name)"""
        match = TURNPOINT_RECORD.match(record)
        if not match:
            return None
        lat_deg, lat_min, lat_dir, lon_deg, lon_min, lon_dir, name = match.groups()
        latitude = int(lat_deg) + int(lat_min) / 1000 / 60.0
        longitude = int(lon_deg) + int(lon_min) / 1000 / 60.0
        if lat_dir == 'S':
            latitude = -latitude
        if lon_dir == 'W':
            longitude = -longitude
        return latitude, longitude, name.strip() or None

    def get_locations(self, lines: Sequence[str]) -> List[Tuple[float, float, Optional[str]]]:
        """Turnpoint locations; the nameless null markers around them are skipped"""
        locations = []
        for line in lines:
            if not line.startswith(IGC_TURNPOINT_PREFIX):
                continue
            location = self.parse_location(line[len(IGC_VENDOR_PREFIX):])
            if location is None:
                continue
            latitude, longitude, name = location
            if latitude == 0 and longitude == 0 and name is None:
                continue
            locations.append(location)
        return locations

    @staticmethod
    def get_descriptions(lines: Sequence[str]) -> List[str]:
        return [line for line in lines if line.startswith(SEEYOU_DESCRIPTION)]

    @staticmethod
    def get_task_time(lines: Sequence[str]) -> Optional[int]:
        """AAT minimum time in seconds, if declared"""
        for line in lines:
            if line.startswith(SEEYOU_TASK):
                match = TASK_TIME.search(line)
                if match:
                    return secondsFromTime(match.group(1))
                return None
        return None

    def parse_component(self, description: str, location: Tuple[float, float, Optional[str]]) -> TaskComponent:
        """Build a task component from its description and location"""
        style = self.get_element(description, 'style')
        if style is None:
            raise TaskError(f"Style parameter not found in {description}")
        if style not in STYLE_KINDS:
            raise TaskError(f"Unknown style {style} in {description}")

        latitude, longitude, name = location
        turnpoint = Turnpoint(
            latitude=latitude,
            longitude=longitude,
            name=name,
            r1=self.get_element(description, 'r1'),
            a1=self.get_element(description, 'a1'),
            r2=self.get_element(description, 'r2'),
            a2=self.get_element(description, 'a2'),
            aat=self.get_element(description, 'aat') is not None,
        )
        return TaskComponent(STYLE_KINDS[style], turnpoint)

    def parse_task(self, lines: Sequence[str]) -> Task:
        """Parse the declared task; raises TaskError when it is not usable"""
        locations = self.get_locations(lines)
        descriptions = self.get_descriptions(lines)
        if not locations:
            raise TaskError("No task declared")
        if len(locations) != len(descriptions):
            raise TaskError(
                f"Found {len(locations)} turnpoints but {len(descriptions)} descriptions")

        components = [self.parse_component(description, location)
                      for location, description in zip(locations, descriptions)]

        task_time = self.get_task_time(lines)
        task_type = TaskType.AST
        if len(components) > 1 and components[1].turnpoint.aat and task_time is not None:
            task_type = TaskType.AAT

        return Task(components, task_type, task_time if task_type is TaskType.AAT else None)


class IgcParser:
    """
    Main parser class for IGC files. Orchestrates the parsing process
    using specialized components.
    """

    def __init__(self):
        """Initialize the record parsers"""
        self.file_detector = IgcFileDetector()
        self.header_parser = IgcHeaderParser()
        self.position_parser = IgcPositionParser()
        self.task_parser = TaskParser()

    def parse_contents(self, contents) -> FlightLog:
        """
        Parse IGC contents into a FlightLog.

        A missing or broken task or pilot block is not fatal here: the log
        still carries the fixes and the caller decides what it needs.
        """
        lines = _lines(contents)
        log = FlightLog(
            fixes=self.position_parser.parse_fixes(lines),
            flight_date=self.header_parser.parse_date(lines),
        )

        try:
            log.task = self.task_parser.parse_task(lines)
        except TaskError as e:
            log.task_error = str(e)
            logger.debug(f"No usable task: {e}")

        try:
            log.pilot_info = self.header_parser.parse_pilot_info(lines)
        except PilotInfoError as e:
            logger.debug(f"No pilot info: {e}")

        return log

    def parse_file(self, track_file: TextIO) -> FlightLog:
        """Parse an open IGC file"""
        return self.parse_contents(track_file.readlines())


# Public functions

def isIgcFile(file: TextIO) -> bool:
    """Determine whether an open file is an IGC file"""
    return IgcFileDetector.is_igc(file)


def getFixes(contents) -> List[Fix]:
    """All fixes of the B records in the contents"""
    return IgcPositionParser().parse_fixes(_lines(contents))


def parseTask(contents) -> Task:
    """The task declared in the contents"""
    return TaskParser().parse_task(_lines(contents))


def parsePilotInfo(contents) -> PilotInfo:
    """The pilot information in the contents"""
    return IgcHeaderParser().parse_pilot_info(_lines(contents))


def parseIgcFile(track_file: TextIO) -> FlightLog:
    """
    Parse an IGC file into a FlightLog.
    Main entry point for IGC parsing.
    """
    return IgcParser().parse_file(track_file)
