import pytest

from app.services import statistics
from factories import build_season


@pytest.fixture()
def season(db):
    return build_season(db)


def _ids(season):
    return {key: obj.id for key, obj in {**season["teams"], **season["players"]}.items()}


def test_internal_team_table(db, season):
    """Test the internal table built from the three friendlies."""
    rows = statistics.team_statistics(db, "internal")

    assert [row["name"] for row in rows] == ["Black", "Red"]
    black, red = rows
    assert (black["matches_played"], black["wins"], black["draws"], black["losses"]) == (3, 1, 1, 1)
    assert (black["goals_for"], black["goals_against"]) == (4, 2)
    assert (red["goals_for"], red["goals_against"]) == (2, 4)


def test_club_table_only_counts_external_games(db, season):
    """Test that the club table only counts external games."""
    rows = statistics.team_statistics(db, "club")
    assert [(row["name"], row["matches_played"], row["wins"]) for row in rows] == [("FCB United", 1, 1)]


def test_all_scope_includes_every_team(db, season):
    rows = {row["name"]: row for row in statistics.team_statistics(db, "all")}
    assert set(rows) == {"Red", "Black", "FCB United", "Rivals"}
    assert rows["Rivals"]["losses"] == 1


def test_unknown_scope(db):
    """Test that an unknown scope is an error."""
    with pytest.raises(ValueError):
        statistics.team_statistics(db, "league")


def test_player_statistics_weights_external_games(db, season):
    """Test that goals in external games count three times when weighted."""
    ids = _ids(season)
    overall = statistics.player_statistics(db, ids["ana"], "all")

    assert overall == {
        "matches_played": 4,
        "goals": 4,
        "assists": 1,
        "own_goals": 0,
        "clean_sheets": 3,
        "weighted_goals": 6,
        "weighted_assists": 1,
    }
    internal = statistics.player_statistics(db, ids["ana"], "internal")
    assert (internal["matches_played"], internal["goals"], internal["clean_sheets"]) == (3, 3, 2)


def test_player_without_matches_gets_zero_row(db, season):
    """Test that a player with no matches still gets a row of zeros."""
    ids = _ids(season)
    row = statistics.player_statistics(db, ids["gio"], "club")
    assert row["matches_played"] == 0 and row["goals"] == 0


def test_top_scorers_by_team(db, season):
    ids = _ids(season)
    assert [(row["player_name"], row["goals"]) for row in statistics.top_scorers(db, "all")] == [
        ("Ana", 4)
    ]
    red_only = statistics.top_scorers(db, "all", team_id=ids["red"])
    assert [(row["player_name"], row["goals"], row["team_id"]) for row in red_only] == [
        ("Ana", 2, ids["red"])
    ]


def test_leaderboards(db, season):
    """Test the scorer, assist and goalkeeper leaderboards."""
    boards = statistics.simplified_leaderboards(db)

    assert [(row["player_name"], row["weighted_goals"]) for row in boards["top_scorers"]] == [
        ("Ana", 6)
    ]
    assert [row["player_name"] for row in boards["top_assists"]] == ["Ana", "Ben"]
    assert boards["top_goalkeepers"] == [
        {
            "player_id": season["players"]["gio"].id,
            "player_name": "Gio",
            "matches_played": 3,
            "clean_sheets": 2,
            "clean_sheet_percentage": 66.7,
        }
    ]


def test_result_for_unplayed_match_is_none(db, season):
    """Test that an unplayed match has no result."""
    unplayed = season["matches"][-1]
    assert statistics.result_for(unplayed, unplayed.home_team_id) is None
    first = season["matches"][0]
    assert statistics.result_for(first, first.home_team_id) == "W"
    assert statistics.result_for(first, first.away_team_id) == "L"


def test_pct_and_avg_handle_zero():
    assert statistics.pct(1, 0) == 0.0
    assert statistics.avg(5, 0) == 0.0
    assert statistics.pct(2, 3) == 66.7
    assert statistics.avg(2, 3) == 0.67


def test_team_statistics_endpoint(client, season):
    """Test the team statistics route for each scope."""
    response = client.get("/analytics/team-statistics", params={"scope": "internal"})
    assert response.status_code == 200
    assert [row["name"] for row in response.json()] == ["Black", "Red"]

    assert client.get("/analytics/team-statistics", params={"scope": "league"}).status_code == 422


def test_player_detail_page(client, season):
    ana_id = season["players"]["ana"].id
    body = client.get(f"/catalog/players/{ana_id}").json()

    assert body["overall"]["goals"] == 4
    assert body["club"]["matches_played"] == 1
    results = {row["match_id"]: (row["team_name"], row["result"]) for row in body["matches"]}
    m1, _, m3, m4, _ = season["matches"]
    assert results[m1.id] == ("Red", "W")
    assert results[m3.id] == ("Black", "W")
    assert results[m4.id] == ("FCB United", "W")


def test_match_detail_groups_players_by_side(client, season):
    """Test that the match detail lists players under their side."""
    m1 = season["matches"][0]
    body = client.get(f"/catalog/matches/{m1.id}").json()

    assert body["match"]["home_team_name"] == "Red"
    assert [row["player_name"] for row in body["home_players"]] == ["Ana", "Ben"]
    assert body["away_players"] == []


def test_home_page(client, season):
    body = client.get("/catalog/home").json()

    assert len(body["recent_matches"]) == 5
    assert body["recent_matches"][0]["home_score"] is None
    assert [row["name"] for row in body["internal_teams"]] == ["Black", "Red"]
    assert body["leaderboards"]["top_scorers"][0]["player_name"] == "Ana"


def test_team_detail(client, season):
    red_id = season["teams"]["red"].id
    body = client.get(f"/catalog/teams/{red_id}").json()

    assert body["statistics"]["matches_played"] == 3
    assert [player["name"] for player in body["players"]] == ["Ana", "Ben"]
    assert body["top_scorers"][0]["goals"] == 2
