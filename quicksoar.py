#!/usr/bin/env python3
"""
quicksoar glider flight analyzer

This script analyses IGC flight logs of a gliding competition task: it splits
every flight into glides and thermals, maps the task legs onto it and writes
a CSV report comparing the pilots.

Usage:
    python quicksoar.py [-c config] [-s HH:MM:SS] [-t timezone] [-o outputFolder] [-T task.igc] file.igc [file2.igc ...]
"""

import argparse
import sys
import logging
from pathlib import Path
from typing import List, Optional

from soar_config import Config
from soar_parser import parseIgcFile, isIgcFile
from soar_segmenting import makeFlight
from soar_calculation import Calculation
from soar_report import ReportRow, writeReport
from soar_summary import calculationSummary
from soar_model import PilotInfo, Task, TaskError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger('quicksoar')


def load_task(path: str) -> Task:
    """Read the task declared in an IGC file"""
    with open(path, 'r', encoding='utf-8', errors='ignore') as task_file:
        log = parseIgcFile(task_file)
    if log.task is None:
        raise TaskError(f"No usable task in {path}: {log.task_error}")
    return log.task


def process_file(config: Config, in_path: str, task: Optional[Task] = None) -> Optional[ReportRow]:
    """Analyse one IGC file; returns its report row or None when it cannot be analysed"""
    logger.info(f"Processing {in_path}...")
    try:
        with open(in_path, 'r', encoding='utf-8', errors='ignore') as track_file:
            if not isIgcFile(track_file):
                logger.error(f"{in_path} is not a valid IGC file")
                return None
            log = parseIgcFile(track_file)

        task = task or log.task
        if task is None:
            logger.error(f"No task for {in_path}: {log.task_error}")
            return None

        takeoff = log.takeoff_fix
        if takeoff is None:
            logger.error(f"No valid track data found in {in_path}")
            return None

        pilot_info = log.pilot_info or PilotInfo()
        flight = makeFlight(log.fixes, takeoff.gps_altitude)
        if flight.is_empty():
            logger.error(f"{in_path} never left the ground")
            return None

        pilot_settings = config.get_pilot_settings(pilot_info.comp_id)
        start_time = config.start_time_for(pilot_info.comp_id)
        if start_time is None:
            start_time = takeoff.timestamp
            logger.debug(f"No start time configured, using takeoff at {start_time}")

        calculation = Calculation(task, flight, pilot_info, start_time, takeoff.pressure_altitude,
                                  pilot_settings.reference_speed, pilot_settings.reference_distance)
        utc_offset = config.timezone_for(pilot_info.comp_id, log.pilot_info.utc_offset if log.pilot_info else None)
        logger.info(calculationSummary(calculation, utc_offset))

        return ReportRow(calculation, pilot_info, utc_offset, in_path)
    except (OSError, ValueError) as e:
        logger.error(f"Error processing {in_path}: {e}")
        return None


def process_files(config: Config, in_paths: List[str], task: Optional[Task] = None) -> Optional[Path]:
    """Analyse every file and write the report; returns the report path"""
    rows = []
    for in_path in in_paths:
        row = process_file(config, in_path, task)
        if row is not None:
            rows.append(row)

    if not rows:
        logger.error("No flight could be analysed")
        return None

    out_path = config.report_path
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, 'w', encoding='utf-8', newline='') as report_file:
        writeReport(report_file, rows)

    logger.info(f"Successfully generated: {out_path}")
    return out_path


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description='Analyse glider competition flights from IGC logs',
        epilog='Example: python quicksoar.py -s 12:30:00 -o results flight1.igc flight2.igc'
    )

    parser.add_argument('-c', '--config', default=None, help='Path to config file')
    parser.add_argument('-s', '--start-time', dest='start_time', default=None, help='Task start time (UTC) as HH:MM:SS')
    parser.add_argument('-t', '--timezone', default=None, help='UTC offset for local times. +/-hh:mm[:ss] or +/-<decimal hours>')
    parser.add_argument('-o', '--output', default=None, help='Folder to write the analysis report to')
    parser.add_argument('-T', '--task', default=None, help='IGC file whose declared task is used for every flight')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output')
    parser.add_argument('trackfile', nargs='+', help='Path to one or more IGC files')
    args = parser.parse_args(argv)

    # Set log level based on verbose flag
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = Config(args)
    task = load_task(args.task) if args.task else None

    report = process_files(config, args.trackfile, task)
    logger.info("Processing complete.")
    return 0 if report else 1


def run() -> None:
    """Console entry point mapping failures to exit codes"""
    try:
        sys.exit(main())
    except FileNotFoundError as e:
        logger.critical(f"File not found: {e.filename}")
        sys.exit(3)
    except ValueError as e:
        logger.critical(f"Invalid input: {e}")
        sys.exit(2)
    except Exception as e:
        logger.critical(f"Unexpected error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()
