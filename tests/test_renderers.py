from datetime import datetime

from domain.models import Match, Participant, SwissPairing, SwissRound, SwissStanding
from formats.bracket import generate_bracket
from formats.round_robin import generate_fixtures
from formats.standings import compute_table
from renderers.bracket_view import BracketView
from renderers.embeds import Embeds
from renderers.league_view import LeagueView, TableOptions
from renderers.paging import MESSAGE_LIMIT, code_block, code_pages
from renderers.swiss_view import SwissView


def _people(*names):
    return [Participant(participant_id=i, name=n) for i, n in enumerate(names, start=1)]


def test_table_is_a_code_block_in_table_order():
    people = _people("Lech", "Legia", "Wisla")
    table = compute_table(people, [Match(home_id=3, away_id=1, home_score=2, away_score=1)])

    out = LeagueView().render_table(table, opts=TableOptions(title="Ekstraklasa"))

    assert out.startswith("```text\n=== Ekstraklasa ===")
    assert out.endswith("```")
    body = out.splitlines()
    first_row = body[4]
    assert "Wisla" in first_row
    assert "2:1" in first_row
    assert "+1" in first_row


def test_fixtures_show_rest_line_for_odd_fields():
    people = _people("A", "B", "C")
    fixtures = generate_fixtures([1, 2, 3], start=datetime(2025, 3, 1, 18, 0))
    for i, m in enumerate(fixtures, start=1):
        m.match_id = i

    out = "\n".join(LeagueView().render_fixtures(people, fixtures))

    assert out.count("Rest: ") == 3
    assert "2025-03-01 18:00" in out
    assert "R1-01" in out


def test_fixtures_round_filter():
    people = _people("A", "B", "C", "D")
    fixtures = generate_fixtures([1, 2, 3, 4])

    out = "\n".join(LeagueView().render_fixtures(people, fixtures, rounds=[2]))

    assert "Round 2:" in out
    assert "Round 1:" not in out
    assert "Round 3:" not in out


def test_empty_fixture_list():
    assert LeagueView().render_fixtures(_people("A", "B"), []) == ["```text\n=== Fixtures ===\n\n(no fixtures yet)\n```"]


def test_bracket_view_labels_byes_and_open_slots():
    people = _people("Ann", "Bob", "Cid")
    matches = generate_bracket([1, 2, 3], 4)

    pages = BracketView().render(matches=matches, participants=people, title="Cup")
    assert len(pages) == 1
    out = pages[0]

    assert "=== Cup ===" in out
    assert "-- SEMI-FINALS --" in out
    assert "-- FINAL --" in out
    assert "BYE" in out
    assert "TBD" in out
    assert out.index("SEMI-FINALS") < out.index("-- FINAL --")


def test_bracket_view_without_matches():
    assert "(no bracket yet)" in BracketView().render(matches=[], participants=[])[0]


def test_swiss_standings_and_rounds():
    view = SwissView()
    standings = [SwissStanding(1, 1, "Ann", 1.5), SwissStanding(2, 2, "Bob", 0.5)]

    table = view.render_standings(standings)
    assert "Ann" in table and "1.5" in table

    rounds = [
        SwissRound(1, [SwissPairing("Ann", "Bob", "0.5-0.5"), SwissPairing("Cid", "BYE", "1-0")]),
        SwissRound(2, [SwissPairing("Cid", "Ann")]),
    ]
    out = "\n".join(view.render_rounds(rounds, only_round=2))
    assert "Round 2:" in out
    assert "Round 1:" not in out
    assert "vs" in out

    assert view.render_rounds([]) == ["```text\n(no rounds yet)\n```"]


def test_match_card_fields():
    m = Match(round_no=2, block=0, home_id=1, away_id=None, scheduled_at=datetime(2025, 5, 1, 20, 0))
    card = Embeds().match_card(title="Score saved", match=m, names={1: "Ann"}, note="1 bracket match updated.")

    fields = {f.name: f.value for f in card.fields}
    assert card.title == "Score saved"
    assert card.description.startswith("`R2-01`")
    assert fields["Home"] == "Ann"
    assert fields["Away"] == "TBD"
    assert fields["Score"] == "-"
    assert fields["Date"] == "2025-05-01 20:00"
    assert card.footer.text == "Tournament organizer"


# -------------------------
# Discord message size
# -------------------------


def _assert_sendable(pages):
    assert pages
    for page in pages:
        assert len(page) <= MESSAGE_LIMIT
        assert page.startswith("```text\n")
        assert page.endswith("\n```")


def test_double_round_robin_for_ten_teams_is_split_into_messages():
    people = _people(*(f"Sporting Club Number {i:02}" for i in range(1, 11)))
    fixtures = generate_fixtures(list(range(1, 11)), cycles=2, start=datetime(2025, 3, 1, 18, 0))

    pages = LeagueView().render_fixtures(people, fixtures)

    _assert_sendable(pages)
    assert len(pages) > 1
    out = "\n".join(pages)
    for m in fixtures:
        assert out.count(f"  {m.code}  ") == 1
    assert "Round 18:" in out


def test_swiss_rounds_for_a_large_field_are_split_into_messages():
    players = [f"Grandmaster Candidate {i:02}" for i in range(1, 25)]
    rounds = [
        SwissRound(r, [SwissPairing(players[2 * b], players[2 * b + 1], "1-0") for b in range(12)])
        for r in range(1, 6)
    ]

    pages = SwissView().render_rounds(rounds)

    _assert_sendable(pages)
    out = "\n".join(pages)
    assert all(f"Round {r}:" in out for r in range(1, 6))
    assert out.count(" vs ") == 60


def test_full_bracket_fits_discord_messages():
    people = _people(*(f"Entrant {i:03}" for i in range(1, 257)))
    matches = generate_bracket([p.participant_id for p in people], 256)

    pages = BracketView().render(matches=matches, participants=people, title="Open")

    _assert_sendable(pages)
    assert "-- FINAL --" in pages[-1]


def test_long_tables_stay_in_one_message():
    people = _people(*(f"A Rather Long Team Name {i:02}" for i in range(1, 41)))
    table = LeagueView().render_table(compute_table(people, []), opts=TableOptions(max_rows=40))
    ranking = SwissView().render_standings(
        [SwissStanding(i, i, p.name, 0.0) for i, p in enumerate(people, start=1)], max_rows=40
    )

    _assert_sendable([table, ranking])
    assert table.endswith("\n...\n```")


def test_code_pages_keep_lines_whole():
    lines = [f"line {i:03} " + "x" * 40 for i in range(200)]

    pages = code_pages(lines, limit=500)

    _assert_sendable(pages)
    assert all(len(p) <= 500 for p in pages)
    body = [ln for p in pages for ln in p.splitlines() if ln.startswith("line ")]
    assert body == lines


def test_code_block_marks_dropped_lines():
    assert code_block(["a", "b"]) == "```text\na\nb\n```"

    cut = code_block(["y" * 30] * 10, limit=100)
    assert len(cut) <= 100
    assert cut.endswith("\n...\n```")
