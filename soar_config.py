#!/usr/bin/env python3
"""
Configuration handling for the quicksoar glider flight analyzer

This module provides configuration management for quicksoar.
It handles command line arguments, config file loading, and per-pilot settings
keyed by competition ID.
"""

import configparser
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Any

from soar_utils import secondsFromString, secondsFromTime
from soar_constants import (
    DEFAULT_TIMEZONE,
    DEFAULT_OUT_PATH,
    DEFAULT_REPORT_NAME,
    CONFIG_SECTION_DEFAULTS,
    CONFIG_FILE_NAMES,
)

# Configure logger
logger = logging.getLogger(__name__)


@dataclass
class PilotSettings:
    """Settings specific to one competition ID"""
    start_time: Optional[int] = None
    utc_offset: Optional[int] = None
    reference_speed: Optional[float] = None      # km/h
    reference_distance: Optional[float] = None   # meters


class ConfigParser:
    """
    Handles parsing of configuration files.
    Separates the parsing logic from the configuration storage.
    """

    def __init__(self):
        """Initialize the config parser"""
        self.parser = configparser.RawConfigParser()

    def find_config_file(self, cli_path: Optional[str] = None) -> Optional[str]:
        """Find a configuration file to use"""
        if cli_path and os.path.isfile(cli_path):
            logger.info(f"Using configuration file: {cli_path}")
            return cli_path

        # Look in standard locations
        paths = ('.', os.path.dirname(os.path.abspath(__file__)))

        for path in paths:
            for file in CONFIG_FILE_NAMES:
                full_path = os.path.join(path, file)
                if Path(full_path).is_file():
                    logger.info(f"Found configuration file: {full_path}")
                    return full_path

        logger.warning("No configuration file found, using defaults")
        return None

    def load_config_file(self, file_path: Optional[str] = None) -> bool:
        """Load configuration from file"""
        config_file = self.find_config_file(file_path)
        if not config_file:
            return False

        try:
            self.parser.read(config_file)
            return True
        except configparser.Error as e:
            logger.error(f"Error reading config file: {e}")
            return False

    def get_section(self, section_name: str) -> Dict[str, str]:
        """Get a section from the configuration file"""
        if section_name in self.parser:
            return dict(self.parser[section_name])
        return {}

    def get_sections(self) -> List[str]:
        """Get all section names from the configuration file"""
        return self.parser.sections()

    @staticmethod
    def parse_pilot_section(section_name: str, section: Dict[str, str]) -> PilotSettings:
        """Read StartTime, Timezone and the official Speed (km/h) and Distance (km) of a pilot section"""
        settings = PilotSettings()
        try:
            if 'starttime' in section:
                settings.start_time = secondsFromTime(section['starttime'])
            if 'timezone' in section:
                settings.utc_offset = secondsFromString(section['timezone'])
            if 'speed' in section:
                settings.reference_speed = float(section['speed'])
            if 'distance' in section:
                settings.reference_distance = float(section['distance']) * 1000.0
        except (ValueError, IndexError) as e:
            logger.warning(f"Invalid setting in section {section_name}: {e}")
        return settings

    def get_pilot_settings(self) -> Dict[str, PilotSettings]:
        """Extract competition ID specific settings from configuration"""
        pilot_settings = {}

        for section_name in self.parser.sections():
            if section_name == CONFIG_SECTION_DEFAULTS:
                continue
            pilot_settings[section_name] = self.parse_pilot_section(
                section_name, self.get_section(section_name))

        return pilot_settings

    def get_default_settings(self) -> Dict[str, Any]:
        """Get default settings from configuration"""
        return self.get_section(CONFIG_SECTION_DEFAULTS)


class Config:
    """Main configuration class for quicksoar"""

    def __init__(self, cli_args):
        """Initialize with command line arguments"""
        self.parser = ConfigParser()
        self.cli_args = cli_args

        # Initialize defaults
        self.out_path = DEFAULT_OUT_PATH
        self.report_name = DEFAULT_REPORT_NAME
        self.timezone = DEFAULT_TIMEZONE
        self.start_time: Optional[int] = None
        self.cli_timezone = False
        self.config_timezone = False
        self.cli_start_time = False

        # Map of competition ID to settings
        self.pilot_settings: Dict[str, PilotSettings] = {}

        # Load configuration
        self._load_config()

    def _cli(self, name: str) -> Optional[str]:
        return getattr(self.cli_args, name, None)

    def _load_config(self):
        """Load and process configuration"""
        # Load config file
        self.parser.load_config_file(self._cli('config'))

        # Get default settings
        defaults = self.parser.get_default_settings()

        # Apply CLI arguments (override config file)
        if self._cli('timezone'):
            self.timezone = secondsFromString(self._cli('timezone'))
            self.cli_timezone = True
        elif 'timezone' in defaults:
            self.timezone = secondsFromString(defaults['timezone'])
            self.config_timezone = True

        if self._cli('start_time'):
            self.start_time = secondsFromTime(self._cli('start_time'))
            self.cli_start_time = True
        elif 'starttime' in defaults:
            self.start_time = secondsFromTime(defaults['starttime'])

        # Set output path
        if self._cli('output'):
            self.out_path = self._cli('output')
        elif 'outpath' in defaults:
            self.out_path = defaults['outpath']

        if 'reportname' in defaults:
            self.report_name = defaults['reportname']

        # Load per-pilot settings
        self.pilot_settings = self.parser.get_pilot_settings()

    @property
    def report_path(self) -> Path:
        """Where the report file is written"""
        return Path(self.out_path) / self.report_name

    def get_pilot_settings(self, comp_id: Optional[str]) -> PilotSettings:
        """Get settings for a competition ID, defaults if it has none"""
        if comp_id and comp_id in self.pilot_settings:
            return self.pilot_settings[comp_id]
        return PilotSettings()

    def start_time_for(self, comp_id: Optional[str]) -> Optional[int]:
        """Task start time in seconds since midnight (UTC) for a pilot"""
        if self.cli_start_time:
            return self.start_time

        pilot = self.get_pilot_settings(comp_id)
        if pilot.start_time is not None:
            return pilot.start_time
        return self.start_time

    def timezone_for(self, comp_id: Optional[str], declared: Optional[int] = None) -> int:
        """UTC offset in seconds used to show a pilot's local times"""
        if self.cli_timezone:
            return self.timezone

        pilot = self.get_pilot_settings(comp_id)
        if pilot.utc_offset is not None:
            return pilot.utc_offset
        if declared is not None and not self.config_timezone:
            return declared
        return self.timezone
