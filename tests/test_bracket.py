import random

import pytest

from domain.enums import MatchStatus
from formats.bracket import Bracket, bracket_size, generate_bracket, round_count
from formats.errors import BracketStateError, InsufficientParticipants, InvalidParticipants


def _assert_slots_follow_winners(tree: Bracket) -> None:
    for m in tree.matches():
        if m.round_no == 1:
            continue
        home_child = tree.match(m.round_no - 1, 2 * m.block)
        away_child = tree.match(m.round_no - 1, 2 * m.block + 1)
        assert m.home_id == home_child.winner_id, m.code
        assert m.away_id == away_child.winner_id, m.code
        if m.home_id is None or m.away_id is None:
            assert not m.is_played, m.code


def _play_all_home_wins(tree: Bracket) -> None:
    for r in range(1, tree.rounds + 1):
        for m in tree.matches():
            if m.round_no == r and m.home_id is not None and m.away_id is not None:
                tree.record_score(r, m.block, 1, 0)


@pytest.mark.parametrize(
    "entrants, capacity, expected",
    [(2, 16, 2), (3, 8, 4), (4, 4, 4), (5, 8, 8), (8, 8, 8), (9, 16, 16), (5, 6, 8)],
)
def test_bracket_size(entrants, capacity, expected):
    assert bracket_size(entrants, capacity) == expected


def test_bracket_size_rejects_overfull_and_tiny_fields():
    with pytest.raises(InvalidParticipants):
        bracket_size(9, 8)
    with pytest.raises(InsufficientParticipants):
        bracket_size(1, 8)


def test_three_entrants_get_one_bye_that_advances():
    matches = generate_bracket(["A", "B", "C"], 8, tournament_id=7)

    assert len(matches) == 3
    assert round_count(4) == 2
    assert all(m.tournament_id == 7 for m in matches)

    tree = Bracket(matches)
    first = tree.match(1, 0)
    bye = tree.match(1, 1)
    final = tree.match(2, 0)

    assert (first.home_id, first.away_id) == ("A", "B")
    assert first.status == MatchStatus.PLANNED
    assert (bye.home_id, bye.away_id) == ("C", None)
    assert (bye.home_score, bye.away_score) == (1, 0)
    assert bye.status == MatchStatus.FINISHED
    assert (final.home_id, final.away_id) == (None, "C")
    assert not final.is_played


def test_five_entrants_never_produce_an_empty_first_round_match():
    tree = Bracket(generate_bracket([1, 2, 3, 4, 5], 8))

    first_round = [m for m in tree.matches() if m.round_no == 1]
    assert len(first_round) == 4
    assert all(m.home_id is not None or m.away_id is not None for m in first_round)
    assert sum(1 for m in first_round if m.is_bye) == 3
    assert len(tree.matches()) == 7
    _assert_slots_follow_winners(tree)


def test_generate_keeps_every_entrant_once():
    ids = list(range(1, 12))
    tree = Bracket(generate_bracket(ids, 16))

    seen = [pid for m in tree.matches() if m.round_no == 1 for pid in (m.home_id, m.away_id) if pid is not None]
    assert sorted(seen) == ids


def test_generate_rejects_bad_entrants():
    with pytest.raises(InsufficientParticipants):
        generate_bracket(["solo"], 8)
    with pytest.raises(InvalidParticipants):
        generate_bracket(["A", "B", "A"], 8)
    with pytest.raises(InvalidParticipants):
        generate_bracket(["A", None], 8)


def test_recording_scores_moves_winners_up():
    tree = Bracket(generate_bracket(["A", "B", "C", "D"], 4))

    changed = tree.record_score(1, 0, 2, 1)
    assert [m.code for m in changed] == ["R1-01", "R2-01"]
    tree.record_score(1, 1, 0, 3)

    final = tree.match(2, 0)
    assert (final.home_id, final.away_id) == ("A", "D")

    tree.record_score(2, 0, 1, 0)
    assert tree.champion_id == "A"


def test_changing_a_result_clears_everything_it_fed():
    tree = Bracket(generate_bracket([1, 2, 3, 4, 5, 6, 7, 8], 8))
    _play_all_home_wins(tree)
    assert tree.champion_id == 1

    changed = tree.record_score(1, 0, 0, 1)

    semi = tree.match(2, 0)
    final = tree.match(3, 0)
    assert semi.home_id == 2 and not semi.is_played
    assert final.home_id is None and final.away_id == 5
    assert not final.is_played
    assert tree.champion_id is None
    assert {m.code for m in changed} == {"R1-01", "R2-01", "R3-01"}
    _assert_slots_follow_winners(tree)


def test_draw_leaves_the_next_slot_empty():
    tree = Bracket(generate_bracket(["A", "B", "C", "D"], 4))
    tree.record_score(1, 0, 1, 1)

    assert tree.match(1, 0).status == MatchStatus.FINISHED
    assert tree.match(2, 0).home_id is None


def test_scoring_a_match_without_two_sides_is_refused():
    tree = Bracket(generate_bracket(["A", "B", "C"], 4))
    with pytest.raises(BracketStateError):
        tree.record_score(2, 0, 1, 0)


def test_allowed_participants():
    ids = [1, 2, 3, 4, 5, 6, 7, 8]
    tree = Bracket(generate_bracket(ids, 8))

    assert tree.allowed_participants(1, 0, ids) == [1, 2]
    assert tree.allowed_participants(2, 0, ids) == [1, 2, 3, 4]
    assert tree.allowed_participants(3, 0, ids) == []

    _play_all_home_wins(tree)
    assert tree.allowed_participants(3, 0, ids) == [1, 3, 5, 7]


def test_manual_placement_turns_into_bye_and_advances():
    ids = ["A", "B", "C", "D"]
    tree = Bracket(generate_bracket(ids, 4))
    tree.record_score(1, 0, 1, 0)
    assert tree.match(2, 0).home_id == "A"

    tree.set_participants(1, 0, "B", None, ids)

    m = tree.match(1, 0)
    assert (m.home_id, m.away_id) == ("B", None)
    assert m.status == MatchStatus.FINISHED
    assert (m.home_score, m.away_score) == (1, 0)
    assert tree.match(2, 0).home_id == "B"


def test_manual_placement_rejects_participants_from_other_branches():
    ids = ["A", "B", "C", "D"]
    tree = Bracket(generate_bracket(ids, 4))

    with pytest.raises(BracketStateError):
        tree.set_participants(1, 0, "A", "C", ids)
    with pytest.raises(BracketStateError):
        tree.set_participants(1, 0, "A", "A", ids)


def test_clearing_a_higher_round_slot():
    ids = ["A", "B", "C", "D"]
    tree = Bracket(generate_bracket(ids, 4))
    tree.record_score(1, 0, 1, 0)
    tree.record_score(1, 1, 1, 0)
    tree.record_score(2, 0, 2, 0)

    tree.set_participants(2, 0, None, "C", ids)

    final = tree.match(2, 0)
    assert (final.home_id, final.away_id) == (None, "C")
    assert not final.is_played
    assert tree.champion_id is None


def test_reseed_keeps_entrants_and_clears_stale_results():
    ids = [1, 2, 3, 4, 5, 6, 7, 8]
    tree = Bracket(generate_bracket(ids, 8))
    _play_all_home_wins(tree)

    tree.reseed(ids, random.Random(3))

    first_round = [m for m in tree.matches() if m.round_no == 1]
    seen = sorted(pid for m in first_round for pid in (m.home_id, m.away_id))
    assert seen == ids
    _assert_slots_follow_winners(tree)


def test_reseed_with_byes():
    ids = ["A", "B", "C", "D", "E"]
    tree = Bracket(generate_bracket(ids, 8))

    tree.reseed(ids, random.Random(11))

    first_round = [m for m in tree.matches() if m.round_no == 1]
    assert sum(1 for m in first_round if m.is_bye) == 3
    _assert_slots_follow_winners(tree)


def test_reseed_rejects_more_entrants_than_slots():
    tree = Bracket(generate_bracket(["A", "B", "C", "D"], 4))
    with pytest.raises(InvalidParticipants):
        tree.reseed(["A", "B", "C", "D", "E"], random.Random(1))


def test_bracket_copies_its_input():
    matches = generate_bracket(["A", "B"], 2)
    tree = Bracket(matches)
    tree.record_score(1, 0, 3, 0)

    assert matches[0].home_score is None
    assert tree.champion_id == "A"
