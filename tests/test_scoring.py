import pytest

from regatta_core import (
    EngineError,
    Lane,
    LaneTime,
    PointTable,
    Race,
    RaceStatus,
    ResultStatus,
    apply_results,
    score_race,
)
from regatta_core.errors import ErrorKind


def _times():
    return [
        LaneTime(lane=1, elapsed_text="1:15.00"),
        LaneTime(lane=2, elapsed_text="1:14.00"),
        LaneTime(lane=3, status=ResultStatus.DNS),
    ]


def _race() -> Race:
    return Race(
        race_id="final-a",
        category_id="cat-1",
        journey_index=3,
        lanes=tuple(Lane(lane=n, athlete_id=f"a{n}") for n in (1, 2, 3)),
    )


def test_score_assigns_positions_deltas_and_points() -> None:
    score = score_race(_times())

    winner, second, absent = score.by_lane(2), score.by_lane(1), score.by_lane(3)
    assert (winner.finish_position, winner.points, winner.delta_text) == (1, 20, "")
    assert (second.finish_position, second.points, second.delta_text) == (2, 12, "1.00")
    assert second.delta_ms == 1_000
    assert (absent.finish_position, absent.points) == (None, 0)
    assert absent.time_text == "DNS"
    assert score.winning_ms == 74_000
    assert [lane.lane for lane in score.ranked()] == [2, 1, 3]


def test_ties_are_broken_by_lane_number() -> None:
    score = score_race(
        [
            LaneTime(lane=4, elapsed_text="7:01.50"),
            LaneTime(lane=2, elapsed_text="7:01.5"),
            LaneTime(lane=6, elapsed_text="7:00.00"),
        ]
    )
    assert [(lane.lane, lane.finish_position) for lane in score.ranked()] == [(6, 1), (2, 2), (4, 3)]
    assert score.by_lane(2).delta_text == "1.50"


def test_custom_point_table_falls_back_to_default() -> None:
    table = PointTable.from_pairs([(1, 30), (2, 25)])
    score = score_race(
        [LaneTime(lane=n, elapsed_text=f"7:0{n}.00") for n in range(1, 5)],
        table,
    )
    assert [score.by_lane(n).points for n in range(1, 5)] == [30, 25, 8, 6]


def test_positions_beyond_the_table_score_nothing() -> None:
    table = PointTable()
    assert table.points_for(8) == 1
    assert table.points_for(9) == 0
    assert table.points_for(None) == 0


def test_unreadable_time_is_flagged_without_aborting() -> None:
    score = score_race(
        [
            LaneTime(lane=1, elapsed_text="2:75.10"),
            LaneTime(lane=2, elapsed_text="7:10.00"),
            LaneTime(lane=3, elapsed_text=""),
        ]
    )
    assert [lane.lane for lane in score.flagged] == [1, 3]
    assert score.by_lane(1).error == ErrorKind.INVALID_FORMAT
    assert score.by_lane(1).finish_position is None
    assert score.by_lane(2).finish_position == 1
    assert score.by_lane(2).points == 20


def test_non_finishers_keep_their_time_but_score_nothing() -> None:
    score = score_race([LaneTime(lane=1, elapsed_text="7:10.00", status="dnf"), LaneTime(lane=2, elapsed_text="-")])
    assert score.by_lane(1).status == ResultStatus.DNF
    assert score.by_lane(1).finish_position is None
    assert score.by_lane(1).points == 0
    assert score.by_lane(2).error == ErrorKind.INVALID_FORMAT
    assert not score.has_valid_time


def test_apply_results_completes_the_race() -> None:
    race = apply_results(_race(), score_race(_times()))

    assert race.status == RaceStatus.COMPLETED
    assert race.lane(2).result.finish_position == 1
    assert race.lane(2).result.elapsed_ms == 74_000
    assert race.lane(3).result.status == ResultStatus.DNS
    assert race.lane(1).athlete_id == "a1"


def test_apply_results_needs_a_finisher_to_complete() -> None:
    score = score_race([LaneTime(lane=1, status=ResultStatus.DNS)])
    with pytest.raises(EngineError) as excinfo:
        apply_results(_race(), score)
    assert excinfo.value.kind == ErrorKind.RESULTS_INCOMPLETE

    partial = apply_results(_race(), score, mark_completed=False)
    assert partial.status == RaceStatus.SCHEDULED
    assert partial.lane(1).result.status == ResultStatus.DNS


def test_apply_results_rejects_unknown_lanes() -> None:
    score = score_race([LaneTime(lane=5, elapsed_text="7:00.00")])
    with pytest.raises(EngineError) as excinfo:
        apply_results(_race(), score)
    assert excinfo.value.kind == ErrorKind.LANE_OUT_OF_RANGE


def test_cancelled_race_cannot_be_completed() -> None:
    cancelled = _race().transition(RaceStatus.CANCELLED)
    with pytest.raises(EngineError) as excinfo:
        apply_results(cancelled, score_race(_times()))
    assert excinfo.value.kind == ErrorKind.INVALID_STATUS_TRANSITION


def test_gap_over_a_minute_is_shown_in_seconds() -> None:
    score = score_race([LaneTime(lane=1, elapsed_text="7:00.00"), LaneTime(lane=2, elapsed_text="8:01.00")])
    assert score.by_lane(2).delta_ms == 61_000
    assert score.by_lane(2).delta_text == "61.00"
