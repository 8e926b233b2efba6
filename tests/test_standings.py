from regatta_core import ClubIdentity, Lane, LaneResult, Race, ResultStatus, category_standings, combined_time_ranking

CNMT = ClubIdentity(code="CNMT")
RCB = ClubIdentity(code="RCB")


def _lane(number: int, athlete_id: str, club: ClubIdentity, ms=None, position=None, status=ResultStatus.OK) -> Lane:
    return Lane(
        lane=number,
        athlete_id=athlete_id,
        club=club,
        result=LaneResult(status=status, finish_position=position, elapsed_ms=ms),
    )


def _heats():
    heat_1 = Race(
        race_id="h1",
        category_id="cat-1",
        journey_index=1,
        name="JM 1",
        lanes=(
            _lane(1, "a1", CNMT, 430_000, 2),
            _lane(2, "a2", RCB, 425_000, 1),
            _lane(3, "a3", CNMT, status=ResultStatus.DNF),
        ),
    )
    heat_2 = Race(
        race_id="h2",
        category_id="cat-1",
        journey_index=2,
        name="JM 2",
        lanes=(
            _lane(1, "a1", CNMT, 428_000, 1),
            _lane(2, "a2", RCB, 440_000, 2),
        ),
    )
    return [heat_1, heat_2]


def test_category_standings_rank_by_time() -> None:
    (standing,) = category_standings(_heats())

    assert standing.category_id == "cat-1"
    assert [(row.rank, row.athlete_id, row.elapsed_ms) for row in standing.rows[:4]] == [
        (1, "a2", 425_000),
        (2, "a1", 428_000),
        (3, "a1", 430_000),
        (4, "a2", 440_000),
    ]
    assert standing.rows[-1].status == ResultStatus.DNF
    assert standing.rows[-1].elapsed_ms is None


def test_category_standings_depth() -> None:
    (standing,) = category_standings(_heats(), depth=2)
    assert [row.race_id for row in standing.rows] == ["h1", "h2"]


def test_standings_depth_comes_from_environment(monkeypatch) -> None:
    from regatta_core import config

    monkeypatch.setenv("REGATTA_STANDINGS_DEPTH", "3")
    config.get_settings.cache_clear()
    (standing,) = category_standings(_heats())
    assert len(standing.rows) == 3


def test_combined_time_ranking_sums_per_club() -> None:
    ranking = combined_time_ranking(_heats())

    assert [(item.club.code, item.total_ms, item.combined_position) for item in ranking] == [
        ("CNMT", 858_000, 1),
        ("RCB", 865_000, 2),
    ]
    assert ranking[0].race_count == 2
    assert ranking[0].positions == [2, 1]


def test_zero_depth_keeps_no_rows() -> None:
    (standing,) = category_standings(_heats(), depth=0)
    assert standing.rows == []
