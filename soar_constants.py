#!/usr/bin/env python3
"""
Constants for the quicksoar glider flight analyzer
"""

# Default configuration values
DEFAULT_TIMEZONE = 0
DEFAULT_OUT_PATH = "."
DEFAULT_REPORT_NAME = "analysis.csv"
DEFAULT_UNKNOWN_TEXT = "UNKNOWN"
DEFAULT_NA_TEXT = "N/A"

# Segmentation defaults (see SegmentationSettings)
DEFAULT_DEGREE_BOUNDARY = 140.0   # turn this many degrees ...
DEFAULT_TIME_WINDOW = 15          # ... within this many seconds
DEFAULT_CONNECT_TIME = 35
DEFAULT_THERMAL_BACKSET = 8
DEFAULT_TRY_TIME = 45
DEFAULT_GROUND_MARGIN = 50
DEFAULT_MAX_SPEED = 100.0         # m/s
TURN_RATE_TOLERANCE = 1e-9

# Statistics
LOW_ALTITUDE_MARGIN = 500
MPS_TO_KPH = 3.6

# IGC file constants
IGC_RECORD_POSITION = "B"
IGC_RECORD_HEADER = "H"
IGC_HEADER_DATE = "FDTE"
IGC_FIX_VALID = "A"
IGC_MIN_POSITION_LENGTH = 35
IGC_VENDOR_PREFIX = "LCU::"
IGC_TURNPOINT_PREFIX = "LCU::C"
IGC_PILOT_GLIDER_TYPE = ("LCU::HPGTYGLIDERTYPE:", "HFGTYGLIDERTYPE:")
IGC_PILOT_COMPETITION_ID = ("LCU::HPCIDCOMPETITIONID:", "HFCIDCOMPETITIONID:")
IGC_PILOT_TIME_ZONE = ("LCU::HPTZNTIMEZONE:", "HFTZNTIMEZONE:")

# SeeYou task declaration
SEEYOU_DESCRIPTION = "LSEEYOU OZ="
SEEYOU_TASK = "LSEEYOU TSK"
SEEYOU_STYLE_TURNPOINT = 1
SEEYOU_STYLE_START = 2
SEEYOU_STYLE_FINISH = 3

# Earth radius in meters (for distance calculations)
EARTH_RADIUS_METERS = 6371000

# Time units
SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400

# Report
REPORT_ENTIRE_TASK_TITLE = "Entire task"
REPORT_LEG_TITLE = "Leg {number}"
REPORT_BEST_MARK = "(best)"
REPORT_WORST_MARK = "(worst)"

# Configuration sections
CONFIG_SECTION_DEFAULTS = "Defaults"
CONFIG_FILE_NAMES = ("quicksoar.conf", "quicksoar.ini")

# Math constants
DEGREES_IN_CIRCLE = 360
HALF_CIRCLE = 180
