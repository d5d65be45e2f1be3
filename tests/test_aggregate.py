from collections import Counter

from footprint_grid.aggregate import GridCounter, compute_grid_counts, session_cells, summarize
from footprint_grid.geo import METERS_PER_DEGREE, east_scale
from footprint_grid.grid import cell_center
from footprint_grid.models import CellId, Coordinate, Session
from footprint_grid.tiers import Tier, tier_of

# Cells near the prime meridian, where cell outlines are close to lat/lon rectangles.
A = CellId(57_000, 1)
B = CellId(57_000, 2)
C = CellId(57_001, 2)
D = CellId(56_990, -3)


def point_in(cell: CellId, north_m: float = 0.0, east_m: float = 0.0) -> Coordinate:
    """A coordinate offset (in meters, |offset| < 50) from the cell center."""

    c = cell_center(cell)
    return Coordinate(c.latitude + north_m / METERS_PER_DEGREE, c.longitude + east_m / east_scale(c.latitude))


def make_session(sid: str, *cells: CellId, start_ms: int = 0) -> Session:
    return Session(
        id=sid,
        start_ms=start_ms,
        end_ms=start_ms + 60_000,
        coordinates=tuple(point_in(cell) for cell in cells),
    )


def test_session_cells_dedups():
    coords = [point_in(A, 10, 10), point_in(A, -20, 5), point_in(B), point_in(A)]
    assert session_cells(coords) == {A, B}


def test_many_samples_in_one_cell_count_once():
    coords = tuple(point_in(A, north_m=(i % 10) * 3 - 15, east_m=(i % 7) * 4 - 12) for i in range(50))
    session = Session(id="s1", start_ms=0, end_ms=1, coordinates=coords)
    assert compute_grid_counts([session]) == {A: 1}


def test_two_sessions_in_same_cell():
    s1 = Session(id="s1", start_ms=0, end_ms=1, coordinates=(point_in(A), point_in(A, 5, 5), point_in(A, -5, 0)))
    s2 = Session(id="s2", start_ms=2, end_ms=3, coordinates=(point_in(A, 1, 1), point_in(A, 20, -20), point_in(A)))
    counts = compute_grid_counts([s1, s2], [])
    assert counts == {A: 2}
    assert tier_of(counts[A]) is Tier.MEDIUM


def test_active_buffer_counts_as_one_session():
    s1 = make_session("s1", A, B)
    counts = compute_grid_counts([s1], [point_in(B), point_in(B, 3, 3), point_in(C)])
    assert counts == {A: 1, B: 2, C: 1}


def test_empty_inputs():
    assert compute_grid_counts([]) == {}
    assert compute_grid_counts([], []) == {}
    assert compute_grid_counts([Session(id="e", start_ms=0, end_ms=0, coordinates=())]) == {}


def test_counts_add_across_disjoint_session_sets():
    set_a = [make_session("a1", A, B), make_session("a2", B)]
    set_b = [make_session("b1", C, D), make_session("b2", D, D)]
    merged = compute_grid_counts(set_a + set_b)
    assert Counter(merged) == Counter(compute_grid_counts(set_a)) + Counter(compute_grid_counts(set_b))


def test_counts_add_per_session_when_sets_overlap():
    set_a = [make_session("a1", A, A, B)]
    set_b = [make_session("b1", A, C), make_session("b2", A)]
    merged = compute_grid_counts(set_a + set_b)
    assert merged == {A: 3, B: 1, C: 1}
    assert Counter(merged) == Counter(compute_grid_counts(set_a)) + Counter(compute_grid_counts(set_b))


def test_recomputation_is_idempotent_and_pure():
    sessions = [make_session("s1", A, B), make_session("s2", B, C)]
    buffer = [point_in(D)]
    first = compute_grid_counts(sessions, buffer)
    second = compute_grid_counts(sessions, buffer)
    assert first == second
    assert len(sessions) == 2 and len(buffer) == 1


def test_incremental_counter_matches_full_recomputation():
    sessions = [make_session("s1", A, B), make_session("s2", B, C), make_session("s3", A, D, D)]
    counter = GridCounter()
    for i, s in enumerate(sessions, start=1):
        counter.add_session(s)
        assert counter.counts() == compute_grid_counts(sessions[:i])
    buffer = [point_in(C), point_in(A)]
    assert counter.counts(buffer) == compute_grid_counts(sessions, buffer)
    assert len(counter) == 3


def test_incremental_counter_matches_recomputation_with_repeated_id():
    first = make_session("session_1", A)
    second = make_session("session_1", A, B, start_ms=120_000)
    counter = GridCounter()
    counter.add_session(first)
    counter.add_session(second)
    assert counter.counts() == compute_grid_counts([first, second]) == {A: 2, B: 1}
    assert len(counter) == 2


def test_summarize():
    counts = {A: 1, B: 2, C: 5, D: 12}
    summary = summarize(counts)
    assert summary.cells == 4
    assert summary.total_visits == 20
    assert summary.max_count == 12
    assert summary.cells_per_tier == {Tier.LOW: 1, Tier.MEDIUM: 1, Tier.HIGH: 1, Tier.SEVERE: 1}


def test_summarize_empty():
    summary = summarize({})
    assert summary.cells == 0
    assert summary.max_count == 0
    assert all(n == 0 for n in summary.cells_per_tier.values())
