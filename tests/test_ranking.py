import pytest

from regatta_core import (
    Athlete,
    BoatClass,
    Category,
    ClubIdentity,
    Gender,
    GroupBy,
    Lane,
    LaneResult,
    PointMode,
    PointTable,
    Race,
    RaceStatus,
    RankingConfig,
    ResultStatus,
    TieBreaker,
    competition_ranking,
)

CNMT = ClubIdentity(code="CNMT")
RCB = ClubIdentity(code="RCB")

CATEGORIES = [
    Category("jm", abbreviation="JM", gender=Gender.MEN),
    Category("jw", abbreviation="JW", gender=Gender.WOMEN),
    Category("sm", abbreviation="SM", gender=Gender.MEN),
]
BOAT_CLASSES = [BoatClass("1x", "1x"), BoatClass("2x", "2x", crew_size=2)]


def _lane(number, member, club, position=None, ms=None, status=ResultStatus.OK) -> Lane:
    crew = member if isinstance(member, tuple) else ()
    return Lane(
        lane=number,
        athlete_id=None if crew else member,
        crew=crew,
        club=club,
        result=LaneResult(status=status, finish_position=position, elapsed_ms=ms),
    )


def _race(race_id, category_id, boat_class_id, *lanes, journey_index=1, status=RaceStatus.COMPLETED) -> Race:
    return Race(
        race_id=race_id,
        category_id=category_id,
        boat_class_id=boat_class_id,
        journey_index=journey_index,
        status=status,
        lanes=lanes,
    )


@pytest.fixture
def races():
    return [
        _race(
            "r1",
            "jm",
            "1x",
            _lane(1, "a1", CNMT, 1, 420_000),
            _lane(2, "a2", RCB, 2, 425_000),
            _lane(3, "a3", CNMT, status=ResultStatus.DNF),
        ),
        _race(
            "r2",
            "jm",
            "2x",
            _lane(1, ("a4", "a5"), CNMT, 2, 400_000),
            _lane(2, ("a6", "a7"), RCB, 1, 395_000),
        ),
        _race("r3", "jw", "1x", _lane(1, "a8", RCB, 1, 450_000)),
        _race("r4", "jm", "1x", _lane(1, "a9", RCB, 1, 410_000), status=RaceStatus.SCHEDULED),
        _race("r5", "sm", "1x", _lane(1, "a1", CNMT, 1, 410_000), journey_index=2),
    ]


def _by_key(groups):
    return {group.key: group for group in groups}


def _table(group):
    return [(entry.entity_id, entry.total_points, entry.rank) for entry in group.entries]


def test_mixed_mode_scores_skiffs_per_athlete_and_crews_per_club(races) -> None:
    groups = _by_key(competition_ranking(races, CATEGORIES, BOAT_CLASSES))

    assert set(groups) == {"JM_men", "JW_women", "SM_men"}
    assert _table(groups["JM_men"]) == [
        ("rcb", 20, 1),
        ("a1", 20, 1),
        ("cnmt", 12, 3),
        ("a2", 12, 3),
        ("a3", 0, 5),
    ]
    assert {entry.entity_type for entry in groups["JM_men"].entries} == {"athlete", "club"}
    assert _table(groups["JW_women"]) == [("a8", 20, 1)]
    assert groups["JW_women"].gender == "women"


def test_non_finishers_score_nothing_but_are_counted(races) -> None:
    groups = _by_key(competition_ranking(races, CATEGORIES, BOAT_CLASSES))
    (dnf,) = [entry for entry in groups["JM_men"].entries if entry.entity_id == "a3"]

    assert dnf.total_points == 0
    assert dnf.status_counts == {ResultStatus.DNF: 1}
    assert dnf.results[0].position is None


def test_group_by_gender_merges_categories(races) -> None:
    config = RankingConfig(group_by=GroupBy.GENDER)
    groups = _by_key(competition_ranking(races, CATEGORIES, BOAT_CLASSES, config))

    assert set(groups) == {"men", "women"}
    (leader, *_) = groups["men"].entries
    assert (leader.entity_id, leader.total_points, leader.race_count) == ("a1", 40, 2)


def test_group_by_category(races) -> None:
    config = RankingConfig(group_by="category")
    groups = _by_key(competition_ranking(races, CATEGORIES, BOAT_CLASSES, config))
    assert set(groups) == {"JM", "JW", "SM"}


def test_skiff_athlete_mode_scores_first_crew_member(races) -> None:
    config = RankingConfig(point_mode=PointMode.SKIFF_ATHLETE)
    groups = _by_key(competition_ranking(races, CATEGORIES, BOAT_CLASSES, config))
    assert {entry.entity_id for entry in groups["JM_men"].entries} == {"a1", "a2", "a3", "a4", "a6"}


def test_crew_club_mode_sums_per_club_and_shares_rank(races) -> None:
    config = RankingConfig(point_mode=PointMode.CREW_CLUB)
    groups = _by_key(competition_ranking(races, CATEGORIES, BOAT_CLASSES, config))
    assert _table(groups["JM_men"]) == [("cnmt", 32, 1), ("rcb", 32, 1)]


def test_best_time_and_alphabetical_tie_breakers(races) -> None:
    best = RankingConfig(point_mode=PointMode.CREW_CLUB, tie_breakers=(TieBreaker.BEST_TIME,))
    groups = _by_key(competition_ranking(races, CATEGORIES, BOAT_CLASSES, best))
    assert [entry.entity_id for entry in groups["JM_men"].entries] == ["rcb", "cnmt"]

    alphabetical = RankingConfig(point_mode=PointMode.CREW_CLUB, tie_breakers=(TieBreaker.ALPHABETICAL,))
    groups = _by_key(competition_ranking(list(reversed(races)), CATEGORIES, BOAT_CLASSES, alphabetical))
    assert [entry.name for entry in groups["JM_men"].entries] == ["CNMT", "RCB"]


@pytest.mark.parametrize(
    "tie_breakers, leader",
    [
        ((TieBreaker.MORE_FIRST_PLACES,), "x"),
        ((TieBreaker.MORE_SECOND_PLACES,), "y"),
        ((TieBreaker.TOTAL_TIME,), "y"),
    ],
)
def test_place_and_time_tie_breakers(tie_breakers, leader) -> None:
    heats = [
        _race(
            "h1",
            "jm",
            "1x",
            _lane(1, "x", CNMT, 1, 400_000),
            _lane(2, "y", RCB, 2, 401_000),
            _lane(3, "p", RCB, 3, 405_000),
        ),
        _race(
            "h2",
            "jm",
            "1x",
            _lane(1, "z", RCB, 1, 399_000),
            _lane(2, "y", RCB, 2, 402_000),
            _lane(3, "q", RCB, 3, 405_000),
            _lane(4, "r", RCB, 4, 406_000),
            _lane(5, "x", CNMT, 5, 420_000),
        ),
    ]
    config = RankingConfig(tie_breakers=tie_breakers)
    (group,) = competition_ranking(heats, CATEGORIES, BOAT_CLASSES, config)

    first, second = group.entries[:2]
    assert {first.entity_id, second.entity_id} == {"x", "y"}
    assert first.entity_id == leader
    assert (first.total_points, first.rank, second.rank) == (24, 1, 1)


def test_final_only_and_boat_class_filters(races) -> None:
    final = RankingConfig(group_by=GroupBy.GENDER, final_only=True, final_journey_index=2)
    groups = _by_key(competition_ranking(races, CATEGORIES, BOAT_CLASSES, final))
    assert _table(groups["men"]) == [("a1", 20, 1)]

    doubles = RankingConfig(allowed_boat_class_ids=("2x",))
    groups = _by_key(competition_ranking(races, CATEGORIES, BOAT_CLASSES, doubles))
    assert _table(groups["JM_men"]) == [("rcb", 20, 1), ("cnmt", 12, 2)]


def test_point_table_and_scoring_depth(races) -> None:
    config = RankingConfig(point_table=PointTable({1: 50}), max_scoring_position=1)
    groups = _by_key(competition_ranking(races, CATEGORIES, BOAT_CLASSES, config))
    assert _table(groups["JM_men"])[:2] == [("rcb", 50, 1), ("a1", 50, 1)]
    assert {entry.total_points for entry in groups["JM_men"].entries[2:]} == {0}


def test_athlete_names_come_from_the_roster(races) -> None:
    athletes = [Athlete("a8", first_name="Lea", last_name="Costa")]
    groups = _by_key(competition_ranking(races, CATEGORIES, BOAT_CLASSES, athletes=athletes))
    assert groups["JW_women"].entries[0].name == "Lea Costa"
