"""
Pytest configuration and shared fixtures for quicksoar tests
"""
import math
import pytest

from soar_model import (
    Fix,
    Task,
    TaskComponent,
    TaskComponentKind,
    TaskType,
    Turnpoint,
)

# Meters per degree of latitude with the flat-earth model
METERS_PER_DEGREE = 6371000 * math.pi / 180


def north_of(meters, east=0.0):
    """(latitude, longitude) of a point given in meters from the origin"""
    return meters / METERS_PER_DEGREE, east / METERS_PER_DEGREE


@pytest.fixture
def build_track():
    """
    Factory for synthetic tracks near the equator.

    pieces is a list of (seconds, speed m/s, turn deg/s, climb m/s); one fix
    is written every `spacing` seconds. Heading 0 is north, positive turn is
    clockwise.
    """
    def build(pieces, start_time=36000, spacing=1, altitude=1000.0, heading=0.0,
              latitude=0.0, longitude=0.0):
        fixes = [Fix(start_time, latitude, longitude, int(round(altitude)), int(round(altitude)))]
        timestamp = start_time
        for seconds, speed, turn, climb in pieces:
            for _ in range(int(seconds / spacing)):
                timestamp += spacing
                heading += turn * spacing
                latitude += speed * spacing * math.cos(math.radians(heading)) / METERS_PER_DEGREE
                longitude += speed * spacing * math.sin(math.radians(heading)) / METERS_PER_DEGREE
                altitude += climb * spacing
                fixes.append(Fix(timestamp, latitude, longitude,
                                 int(round(altitude)), int(round(altitude))))
        return fixes
    return build


@pytest.fixture
def make_task():
    """Factory for tasks from (north meters, east meters, r1) tuples"""
    def make(points, task_type=TaskType.AST, min_time=None):
        components = []
        for i, (north, east, r1) in enumerate(points):
            if i == 0:
                kind = TaskComponentKind.START
            elif i == len(points) - 1:
                kind = TaskComponentKind.FINISH
            else:
                kind = TaskComponentKind.TURNPOINT
            latitude, longitude = north_of(north, east)
            turnpoint = Turnpoint(latitude, longitude, name=f"TP{i}", r1=r1,
                                  aat=task_type is TaskType.AAT and kind is TaskComponentKind.TURNPOINT)
            components.append(TaskComponent(kind, turnpoint))
        return Task(components, task_type, min_time)
    return make


@pytest.fixture
def sample_igc_content():
    """Sample IGC file content for testing: a short flight with a declared task"""
    return """AXCS001
HFDTE090525
HFPLTPILOT:Juan Gabriel
HFGIDGLIDERID:CC-JUGA
LCU::HPGTYGLIDERTYPE:JS3-15
LCU::HPCIDCOMPETITIONID:JG
LCU::HPTZNTIMEZONE:-3
LCU::C090525120000090525000001000103
LCU::C0000000N00000000E
LCU::C4730000N00830000EStart
LCU::C4740000N00830000ETurn One
LCU::C4730000N00830000EFinish
LCU::C0000000N00000000E
LSEEYOU OZ=-1,Style=2,SpeedStyle=0,R1=1000m,A1=180,Line=1
LSEEYOU OZ=0,Style=1,SpeedStyle=3,R1=500m,A1=180
LSEEYOU OZ=1,Style=3,SpeedStyle=2,R1=500m,A1=180
B1100004730000N00830000EA0050000500
B1100014730010N00830000EA0050100501
B1100024730020N00830000EA0050200502
B1100034730030N00830000EV0050300503
B1100044730040N00830000EA0050400504
B1100054730050N00830000EA0050500505
"""


@pytest.fixture
def sample_aat_lines():
    """Task records of an assigned area task"""
    return [
        "LCU::C4730000N00830000EStart",
        "LCU::C4800000N00900000EArea One",
        "LCU::C4730000N00830000EFinish",
        "LSEEYOU OZ=-1,Style=2,R1=1000m,A1=180",
        "LSEEYOU OZ=0,Style=1,R1=20000m,A1=180,AAT=1",
        "LSEEYOU OZ=1,Style=3,R1=500m,A1=180",
        "LSEEYOU TSK,NoStart=11:00:00,TaskTime=03:00:00,WpDis=False",
    ]


@pytest.fixture
def sample_igc_file(tmp_path, sample_igc_content):
    """Create a temporary IGC file for testing"""
    igc_file = tmp_path / "test_flight.igc"
    igc_file.write_text(sample_igc_content)
    return igc_file


@pytest.fixture
def sample_config_content():
    """Sample configuration file content"""
    return """[Defaults]
Timezone = 1
StartTime = 11:00:00
OutPath = .
ReportName = results.csv

[JG]
StartTime = 11:30:00
Timezone = -03:00
Speed = 95.5
Distance = 300.5

[XY]
StartTime = 12:00:00
"""


@pytest.fixture
def sample_config_file(tmp_path, sample_config_content):
    """Create a temporary config file for testing"""
    config_file = tmp_path / "test_config.conf"
    config_file.write_text(sample_config_content)
    return config_file


@pytest.fixture
def temp_output_dir(tmp_path):
    """Create a temporary output directory"""
    output_dir = tmp_path / "output"
    output_dir.mkdir()
    return output_dir


@pytest.fixture
def mock_cli_args(sample_config_file, temp_output_dir):
    """Mock command-line arguments for testing"""
    class MockArgs:
        def __init__(self):
            self.config = str(sample_config_file)
            self.start_time = None
            self.timezone = None
            self.output = str(temp_output_dir)
            self.task = None
            self.trackfile = []

    return MockArgs()
