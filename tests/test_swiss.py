import pytest

from domain.enums import MatchStatus
from domain.models import Match, Participant
from formats.errors import NoValidPairing
from formats.swiss import (
    build_rounds,
    compute_standings,
    generate_next_round,
    parse_chess_result,
    swiss_scores,
)


def _result(m: Match, home: float, away: float) -> Match:
    m.home_score, m.away_score = home, away
    m.status = MatchStatus.FINISHED
    return m


def _pairs(matches):
    return [(m.home_id, m.away_id) for m in matches]


def test_first_round_pairs_by_id():
    first = generate_next_round([3, 1, 4, 2], [], tournament_id=9)

    assert _pairs(first) == [(1, 2), (3, 4)]
    assert all(m.round_no == 1 for m in first)
    assert all(m.tournament_id == 9 for m in first)
    assert all(m.status == MatchStatus.PLANNED and not m.is_played for m in first)
    assert [m.block for m in first] == [0, 1]


def test_odd_field_gives_lowest_ranked_a_bye():
    first = generate_next_round([1, 2, 3, 4, 5], [])

    assert _pairs(first) == [(1, 2), (3, 4), (5, None)]
    bye = first[-1]
    assert bye.is_bye
    assert (bye.home_score, bye.away_score) == (1, 0)
    assert bye.block == 2


def test_bye_goes_to_someone_without_one():
    first = generate_next_round([1, 2, 3], [])
    assert _pairs(first) == [(1, 2), (3, None)]
    _result(first[0], 1, 0)

    second = generate_next_round([1, 2, 3], first)

    # 1 and 3 lead on one point, 2 is last and has not rested yet
    assert second[0].round_no == 2
    assert _pairs(second) == [(1, 3), (2, None)]


def test_score_groups_and_rematch_fallback():
    first = generate_next_round([1, 2, 3, 4, 5], [])
    _result(first[0], 1, 0)
    _result(first[1], 0.5, 0.5)

    second = generate_next_round([1, 2, 3, 4, 5], first)

    # 3 and 4 only have each other left in the pool
    assert _pairs(second) == [(1, 5), (3, 4), (2, None)]


def test_skips_rematch_when_another_opponent_is_free():
    first = generate_next_round([1, 2, 3, 4], [])
    _result(first[0], 0.5, 0.5)
    _result(first[1], 0.5, 0.5)

    second = generate_next_round([1, 2, 3, 4], first)

    assert _pairs(second) == [(1, 3), (2, 4)]


def test_needs_two_participants():
    with pytest.raises(NoValidPairing):
        generate_next_round([1], [])
    with pytest.raises(NoValidPairing):
        generate_next_round([], [])


def test_scores_count_byes_and_ignore_unplayed():
    matches = [
        Match(round_no=1, block=0, home_id=1, away_id=2, home_score=0.5, away_score=0.5, status=MatchStatus.FINISHED),
        Match(round_no=1, block=1, home_id=3, home_score=1, away_score=0, status=MatchStatus.FINISHED),
        Match(round_no=2, block=0, home_id=3, away_id=1),
    ]

    assert swiss_scores([1, 2, 3], matches) == {1: 0.5, 2: 0.5, 3: 1.0}


def test_standings_order_and_positions():
    participants = [Participant(1, "Zofia"), Participant(2, "adam"), Participant(3, "Bartek")]
    matches = [
        Match(round_no=1, block=0, home_id=1, away_id=2, home_score=0, away_score=1, status=MatchStatus.FINISHED),
        Match(round_no=1, block=1, home_id=3, home_score=1, away_score=0, status=MatchStatus.FINISHED),
    ]

    standings = compute_standings(participants, matches)

    assert [(s.position, s.name, s.points) for s in standings] == [
        (1, "adam", 1.0),
        (2, "Bartek", 1.0),
        (3, "Zofia", 0.0),
    ]


def test_rounds_view():
    participants = [Participant(1, "Ann"), Participant(2, "Bob"), Participant(3, "Cid")]
    matches = [
        Match(round_no=2, block=0, home_id=3, away_id=1, match_id=12),
        Match(round_no=1, block=1, home_id=3, home_score=1, away_score=0, status=MatchStatus.FINISHED, match_id=11),
        Match(round_no=1, block=0, home_id=1, away_id=2, home_score=0.5, away_score=0.5, status=MatchStatus.FINISHED, match_id=10),
    ]

    rounds = build_rounds(participants, matches)

    assert [r.round_no for r in rounds] == [1, 2]
    first = rounds[0].pairings
    assert (first[0].white, first[0].black, first[0].result) == ("Ann", "Bob", "0.5-0.5")
    assert (first[1].white, first[1].black, first[1].result) == ("Cid", "BYE", "1-0")
    second = rounds[1].pairings
    assert (second[0].white, second[0].black, second[0].result) == ("Cid", "Ann", None)


@pytest.mark.parametrize(
    "text, expected",
    [("1-0", (1.0, 0.0)), ("0-1", (0.0, 1.0)), (" 0.5 - 0.5 ", (0.5, 0.5)), ("½-½", (0.5, 0.5)), ("1/2-1/2", (0.5, 0.5))],
)
def test_parse_chess_result(text, expected):
    assert parse_chess_result(text) == expected


def test_parse_chess_result_rejects_other_scores():
    with pytest.raises(ValueError):
        parse_chess_result("2-0")
