import math

import pytest
from sqlalchemy import func, select

from app.models import Player, PlayerMatchAssignment, PlayerMatchStat, Team
from app.services import importer
from app.services.validation import ValidationError
from factories import add_match, add_player, add_team


def _players_csv(valid=150, missing_name=2):
    lines = ["name,position,jersey_number,external_id"]
    lines += [f"Player {n},MF,{n % 99},p-{n}" for n in range(valid)]
    lines += [f",GK,1,bad-{n}" for n in range(missing_name)]
    return "\n".join(lines) + "\n"


@pytest.fixture()
def upsert_calls(monkeypatch):
    calls = []

    def fake_upsert(db, table, rows, conflict_keys, skip_duplicates):
        calls.append((table.name, list(rows), list(conflict_keys), skip_duplicates))

    monkeypatch.setattr(importer, "upsert_rows", fake_upsert)
    return calls


def _count(db, model):
    return db.execute(select(func.count()).select_from(model)).scalar()


def test_parse_csv_trims_and_skips_blank_rows():
    """Test that parsing trims cells and drops rows that are entirely blank."""
    records = importer.parse_csv(" name , position \n  Ana , FW \n , \n\nBen,GK\n")
    assert records == [{"name": "Ana", "position": "FW"}, {"name": "Ben", "position": "GK"}]


def test_parse_csv_empty_input():
    assert importer.parse_csv("") == []
    assert importer.parse_csv("name,position\n") == []


def test_parse_csv_skips_comment_lines():
    data = "# teams file\nname,team_type\n# a note\nRed,internal\n"
    assert importer.parse_csv(data, comments=True) == [{"name": "Red", "team_type": "internal"}]


def test_dry_run_never_writes(db, upsert_calls):
    """Players scenario: 150 good rows and 2 without a name."""
    result = importer.import_csv(db, "players", _players_csv(), dry_run=True)

    assert result.records == 150
    assert result.errors == [
        "Record 151: Missing required field 'name'",
        "Record 152: Missing required field 'name'",
    ]
    assert result.message == "Validation completed successfully"
    assert not result.rejected
    assert upsert_calls == []
    assert _count(db, Player) == 0


def test_live_import_writes_in_batches_of_100(db, upsert_calls):
    """Test that a live import writes 150 players as batches of 100 and 50."""
    result = importer.import_csv(db, "players", _players_csv(), dry_run=False)

    assert result.records == 150
    assert len(result.errors) == 2
    assert [len(rows) for _, rows, _, _ in upsert_calls] == [100, 50]
    assert all(table == "players" for table, _, _, _ in upsert_calls)


@pytest.mark.parametrize("count", [1, 99, 100, 101, 250])
def test_batch_count_is_ceiling_of_rows(db, upsert_calls, count):
    importer.import_csv(db, "players", _players_csv(valid=count, missing_name=0), dry_run=False)
    assert len(upsert_calls) == math.ceil(count / 100)


def test_records_are_coerced(db):
    rows, errors = importer.validate_records(
        "players",
        [
            {
                "name": "Ana",
                "position": "gk",
                "team_id": "3",
                "date_of_birth": "1999-04-02",
                "preferred_foot": "Left",
                "is_active": "no",
            }
        ],
    )
    assert errors == []
    row = rows[0]
    assert row["position"] == "Goalkeeper"
    assert row["team_id"] == 3
    assert str(row["birth_date"]) == "1999-04-02"
    assert row["dominant_foot"] == "Left"
    assert row["is_active"] is False
    assert row["jersey_number"] is None


def test_skip_duplicates_keeps_one_row_per_key(db):
    """Test that a repeated external_id keeps the first row when skipping duplicates."""
    data = "name,external_id\nRed,t-1\nRed Again,t-1\nBlack,t-2\n"
    result = importer.import_csv(db, "teams", data, dry_run=False, skip_duplicates=True)

    assert result.records == 2
    teams = db.execute(select(Team).order_by(Team.external_id)).scalars().all()
    assert [(team.external_id, team.name) for team in teams] == [("t-1", "Red"), ("t-2", "Black")]


def test_skip_duplicates_leaves_existing_rows_alone(db):
    importer.import_csv(db, "teams", "name,external_id\nRed,t-1\n", dry_run=False)
    importer.import_csv(db, "teams", "name,external_id\nRenamed,t-1\n", dry_run=False)
    db.expire_all()
    assert db.execute(select(Team.name)).scalars().all() == ["Red"]


def test_without_skip_duplicates_updates_existing_rows(db):
    """Test that conflicts update the stored row when duplicates are not skipped."""
    importer.import_csv(db, "teams", "name,external_id\nRed,t-1\n", dry_run=False)
    importer.import_csv(
        db, "teams", "name,external_id\nRenamed,t-1\n", dry_run=False, skip_duplicates=False
    )
    db.expire_all()
    assert db.execute(select(Team.name)).scalars().all() == ["Renamed"]


def test_teams_without_external_id_dedupe_by_name(db):
    """Test that repeated team names without external_id do not sink the batch."""
    data = "name\nRed\nBlack\nRed\n"

    result = importer.import_csv(db, "teams", data, dry_run=False, skip_duplicates=True)

    assert result.errors == []
    assert result.records == 2
    assert sorted(db.execute(select(Team.name)).scalars().all()) == ["Black", "Red"]

    again = importer.import_csv(db, "teams", data, dry_run=False, skip_duplicates=True)
    assert again.errors == []
    assert _count(db, Team) == 2


def test_teams_without_external_id_update_by_name(db):
    """Test that a name-keyed update keeps the stored external_id."""
    importer.import_csv(db, "teams", "name,external_id,description\nRed,t-1,old\n", dry_run=False)
    result = importer.import_csv(
        db, "teams", "name,description\nRed,new\n", dry_run=False, skip_duplicates=False
    )

    assert result.errors == []
    db.expire_all()
    team = db.execute(select(Team)).scalar_one()
    assert (team.external_id, team.description) == ("t-1", "new")


def test_players_without_external_id_dedupe_by_name_and_team(db):
    """Test that players without external_id collapse on name and team."""
    red = add_team(db, "Red")
    black = add_team(db, "Black")
    data = f"name,team_id\nAna,{red.id}\nAna,{red.id}\nAna,{black.id}\n"

    result = importer.import_csv(db, "players", data, dry_run=False, skip_duplicates=True)

    assert result.errors == []
    assert result.records == 2
    rows = db.execute(select(Player.name, Player.team_id).order_by(Player.team_id)).all()
    assert [tuple(row) for row in rows] == [("Ana", red.id), ("Ana", black.id)]


def test_conflict_groups_split_on_external_id():
    rows = [
        {"name": "Red", "external_id": "t-1"},
        {"name": "Black", "external_id": None},
    ]
    assert importer.conflict_groups("teams", rows) == [
        ([{"name": "Red", "external_id": "t-1"}], ["external_id"]),
        ([{"name": "Black"}], ["name"]),
    ]
    assert importer.conflict_groups("matches", rows) == [(rows, ["external_id"])]


def test_player_stats_import_derives_assignments(db):
    """Test that a stats import also writes the player to team assignments."""
    red = add_team(db, "Red")
    black = add_team(db, "Black")
    ana = add_player(db, "Ana", team_id=red.id)
    ben = add_player(db, "Ben", team_id=red.id)
    match = add_match(db, red, black, 1, 0)
    data = (
        "player_id,match_id,team_id,goals,assists\n"
        f"{ana.id},{match.id},{red.id},1,\n"
        f"{ben.id},{match.id},{black.id},0,1\n"
    )

    result = importer.import_csv(db, "player_stats", data, dry_run=False)

    assert result.errors == []
    assert result.records == 2
    assignments = {
        row.player_id: row.team_id
        for row in db.execute(select(PlayerMatchAssignment)).scalars().all()
    }
    assert assignments == {ana.id: red.id, ben.id: black.id}
    stats = {row.player_id: row for row in db.execute(select(PlayerMatchStat)).scalars().all()}
    assert stats[ana.id].goals == 1 and stats[ana.id].assists == 0
    assert stats[ben.id].assists == 1


def test_derive_assignments_first_occurrence_wins():
    rows = [
        {"player_id": 1, "match_id": 9, "team_id": 4},
        {"player_id": 1, "match_id": 9, "team_id": 5},
        {"player_id": 2, "match_id": 9, "team_id": 5},
    ]
    assert importer.derive_assignments(rows) == [
        {"player_id": 1, "match_id": 9, "team_id": 4},
        {"player_id": 2, "match_id": 9, "team_id": 5},
    ]


def test_all_invalid_records_are_rejected(db, upsert_calls):
    """Test that a file with only invalid records is rejected before any write."""
    result = importer.import_csv(db, "matches", "venue\nPark\nPark\n", dry_run=False)

    assert result.rejected
    assert result.records == 0
    assert result.message == "All records have validation errors"
    assert result.errors == [
        "Record 1: Missing required field 'match_date'",
        "Record 2: Missing required field 'match_date'",
    ]
    assert upsert_calls == []


def test_empty_file_reports_no_records(db):
    result = importer.import_csv(db, "teams", "", dry_run=False)
    assert result.message == "No records found in the CSV file"
    assert result.records == 0 and not result.rejected


def test_unknown_data_type(db):
    with pytest.raises(ValidationError):
        importer.import_csv(db, "referees", "name\nA\n")


def test_batch_failure_is_reported(db, monkeypatch):
    """Test that a failed batch is reported, or raised when failing fast."""
    from sqlalchemy.exc import OperationalError

    def broken(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(importer, "upsert_rows", broken)
    result = importer.import_csv(db, "teams", "name\nRed\n", dry_run=False)
    assert result.records == 0
    assert result.errors == ["Batch import error (1): disk full"]

    with pytest.raises(importer.ImportFailed):
        importer.import_csv(db, "teams", "name\nRed\n", dry_run=False, fail_fast=True)


def test_progress_callback_sees_every_batch(db, upsert_calls):
    seen = []
    importer.import_records(
        db,
        "players",
        importer.parse_csv(_players_csv(valid=230, missing_name=0)),
        dry_run=False,
        progress=lambda number, total, size: seen.append((number, total, size)),
    )
    assert seen == [(1, 3, 100), (2, 3, 100), (3, 3, 30)]


def test_players_by_team_name(db):
    """Test that players are matched to teams by name, ignoring case."""
    red = add_team(db, "Red")
    data = "name,team_name,position\nAna,red,FW\nBen,,GK\nCris,Green,DF\n"

    result = importer.import_players_by_team_name(db, importer.parse_csv(data), dry_run=False)

    assert result.records == 1
    assert result.errors == [
        'Player "Ben" skipped - missing team name',
        'Player "Cris" skipped - team "Green" not found in database',
    ]
    player = db.execute(select(Player)).scalar_one()
    assert (player.name, player.team_id, player.position) == ("Ana", red.id, "Forward")


def test_players_by_team_name_needs_teams(db):
    with pytest.raises(ValidationError) as excinfo:
        importer.import_players_by_team_name(db, [{"name": "Ana", "team_name": "Red"}])
    assert excinfo.value.errors == ["no_teams_in_database"]


def test_teams_simplified(db):
    data = "# colour names map to shirt colours\nname,team_type,color_name\nRed,internal,Red\nVisitors,external,Purple\n"
    result = importer.import_teams_simplified(db, importer.parse_csv(data, comments=True), dry_run=False)

    assert result.records == 2
    colors = dict(db.execute(select(Team.name, Team.primary_shirt_color)).all())
    assert colors == {"Red": "#FF6188", "Visitors": "#808080"}


def test_teams_simplified_rejects_file_with_bad_type(db):
    """Test that one bad team_type rejects the whole simplified file."""
    records = [{"name": "Red", "team_type": "internal"}, {"name": "Odd", "team_type": "league"}]
    result = importer.import_teams_simplified(db, records, dry_run=False)
    assert result.rejected
    assert result.message == "Validation errors found"
    assert result.errors == ['Team "Odd" has invalid team_type "league"']
    assert _count(db, Team) == 0
