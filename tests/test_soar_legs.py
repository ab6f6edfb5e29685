"""
Tests for soar_legs.py task leg resolution
"""
import pytest
from soar_model import Fix, LegResolutionError, TaskType, Turnpoint
from soar_legs import LegResolver, makeLegs
from soar_segmenting import makeFlight

# A single step that reverses the heading
TURN_AROUND = (1, 30, 180, 0)


def north(seconds):
    return (seconds, 30, 0, 0)


@pytest.fixture
def ast_task(make_task):
    """Start at the origin, a turnpoint 9 km north, finish 18 km north"""
    return make_task([(0, 0, 500), (9000, 0, 500), (18000, 0, 500)])


@pytest.fixture
def long_ast_task(make_task):
    """Three legs along a line to the north"""
    return make_task([(0, 0, 500), (6000, 0, 500), (12000, 0, 500), (18000, 0, 500)])


def assert_landout_propagates(legs):
    missing = [i for i, leg in enumerate(legs) if leg is None]
    if missing:
        assert all(leg is None for leg in legs[missing[0]:])


class TestAst:
    """Assigned speed task resolution"""

    def test_complete_task(self, build_track, ast_task):
        fixes = build_track([north(700)])
        flight = makeFlight(fixes)
        start = fixes[0].timestamp

        legs = LegResolver(ast_task).resolve(flight, start)

        assert len(legs) == 2
        assert all(leg is not None for leg in legs)
        # Sector entered at 8520 m, finish at 17520 m
        assert legs[0].first_fix().timestamp == start
        assert legs[0].last_fix().timestamp == start + 283
        assert legs[1].first_fix().timestamp == start + 284
        assert legs[1].last_fix().timestamp == start + 583

    def test_boundaries(self, build_track, ast_task):
        fixes = build_track([north(700)])
        start = fixes[0].timestamp

        boundaries = LegResolver(ast_task).resolve_boundaries(fixes, start)

        assert boundaries.times == [start, start + 284, start + 584]
        assert boundaries.reached == [True, True, True]

    def test_landout_closes_at_closest_approach(self, build_track, ast_task):
        fixes = build_track([north(400)])
        start = fixes[0].timestamp

        boundaries = LegResolver(ast_task).resolve_boundaries(fixes, start)
        legs = LegResolver(ast_task).resolve(makeFlight(fixes), start)

        assert boundaries.reached == [True, True, False]
        assert boundaries.times[-1] == start + 401
        assert legs[1] is not None
        assert legs[1].last_fix().timestamp == start + 400

    def test_landout_propagates(self, build_track, long_ast_task):
        fixes = build_track([north(150)])
        flight = makeFlight(fixes)

        legs = LegResolver(long_ast_task).resolve(flight, fixes[0].timestamp)

        assert legs[0] is not None
        assert legs[1] is None
        assert legs[2] is None
        assert_landout_propagates(legs)

    def test_start_time_later_than_takeoff(self, build_track, ast_task):
        fixes = build_track([north(700)])
        start = fixes[0].timestamp + 100

        legs = LegResolver(ast_task).resolve(makeFlight(fixes), start)

        assert legs[0].first_fix().timestamp == start

    def test_no_start_time(self, build_track, ast_task):
        fixes = build_track([north(700)])
        assert LegResolver(ast_task).resolve(makeFlight(fixes), None) == [None, None]

    def test_start_time_after_flight(self, build_track, ast_task):
        fixes = build_track([north(700)])
        legs = LegResolver(ast_task).resolve(makeFlight(fixes), fixes[-1].timestamp + 1)
        assert legs == [None, None]

    def test_make_legs(self, build_track, ast_task):
        fixes = build_track([north(700)])
        flight = makeFlight(fixes)
        start = fixes[0].timestamp
        assert makeLegs(fixes, ast_task, start, flight) == LegResolver(ast_task).resolve(flight, start)

    def test_legs_share_flight_fixes(self, build_track, ast_task):
        fixes = build_track([north(700)])
        flight = makeFlight(fixes)

        legs = LegResolver(ast_task).resolve(flight, fixes[0].timestamp)

        assert legs[1].fixes[0] is flight.fixes[284]


class TestAat:
    """Assigned area task resolution"""

    @pytest.fixture
    def aat_task(self, make_task):
        """An area 9 km north with a 2 km radius, finish back at the start"""
        return make_task([(0, 0, 500), (9000, 0, 2000), (0, 0, 500)], TaskType.AAT, min_time=3600)

    @pytest.fixture
    def three_sector_task(self, make_task):
        return make_task([(0, 0, 500), (9000, 0, 2000), (9000, 9000, 2000), (0, 0, 500)],
                         TaskType.AAT, min_time=3600)

    def test_out_and_return(self, build_track, aat_task):
        fixes = build_track([north(333), TURN_AROUND, (332, 30, 0, 0)])
        start = fixes[0].timestamp

        boundaries = LegResolver(aat_task).resolve_boundaries(fixes, start)

        # Deepest point in the area, then the first fix within 500 m of the finish
        assert boundaries.times == [start, start + 333, start + 650]
        assert boundaries.reached == [True, True, True]

        legs = LegResolver(aat_task).resolve(makeFlight(fixes), start)
        assert all(leg is not None for leg in legs)

    def test_landout_after_first_area(self, build_track, three_sector_task):
        fixes = build_track([north(333)])
        start = fixes[0].timestamp

        legs = LegResolver(three_sector_task).resolve(makeFlight(fixes), start)

        assert legs[0] is not None
        assert legs[1] is None
        assert legs[2] is None
        # The last fix in the area is the one furthest along the task
        assert legs[0].last_fix().timestamp == start + 332
        assert_landout_propagates(legs)

    def test_area_never_reached(self, build_track, three_sector_task):
        fixes = build_track([north(100)])
        legs = LegResolver(three_sector_task).resolve(makeFlight(fixes), fixes[0].timestamp)
        assert legs == [None, None, None]

    def test_entry_times(self, build_track, three_sector_task):
        fixes = build_track([north(333)])
        times = LegResolver(three_sector_task).entry_times(fixes, fixes[0])
        # The area is entered at 7020 m
        assert times == [fixes[0].timestamp, fixes[0].timestamp + 234, None, None]

    def test_candidate_count_mismatch(self, build_track, three_sector_task):
        class TruncatingResolver(LegResolver):
            def entry_times(self, fixes, start_fix):
                return super().entry_times(fixes, start_fix)[:-1]

        fixes = build_track([north(333)])
        with pytest.raises(LegResolutionError):
            TruncatingResolver(three_sector_task).resolve_aat(fixes, fixes[0])


class TestSectorSearch:
    """Tests for the sector search helpers"""

    def test_first_entry_is_strictly_after(self, build_track):
        fixes = build_track([north(100)])
        sector = Turnpoint(0.0, 0.0, r1=500)
        assert LegResolver.first_entry(fixes, sector, fixes[0].timestamp) is fixes[1]

    def test_first_entry_none(self, build_track):
        fixes = build_track([north(100)])
        sector = Turnpoint(1.0, 0.0, r1=500)
        assert LegResolver.first_entry(fixes, sector, 0) is None

    def test_closest_approach_prefers_later_fix(self):
        sector = Turnpoint(0.0, 0.0, r1=1)
        fixes = [Fix(1, 0.001, 0.0, 0, 0), Fix(2, -0.001, 0.0, 0, 0), Fix(3, 0.002, 0.0, 0, 0)]
        assert LegResolver.closest_approach(fixes, sector, 0) is fixes[1]

    def test_closest_approach_after_time(self):
        sector = Turnpoint(0.0, 0.0, r1=1)
        fixes = [Fix(1, 0.001, 0.0, 0, 0), Fix(2, 0.003, 0.0, 0, 0)]
        assert LegResolver.closest_approach(fixes, sector, 1) is fixes[1]
        assert LegResolver.closest_approach(fixes, sector, 2) is None
