import pytest

from app.services import impact
from factories import build_season


@pytest.fixture()
def season(db):
    return build_season(db)


def test_team_performance_with_and_without_player(db, season):
    """Test the with and without split for one player on one team."""
    ana = season["players"]["ana"]
    red = season["teams"]["red"]

    rows = {row["scenario"]: row for row in impact.team_performance_with_player(db, ana.id, red.id)}

    assert rows["With Player"] == {
        "scenario": "With Player",
        "matches_played": 2,
        "wins": 1,
        "draws": 1,
        "losses": 0,
        "win_rate": 50.0,
        "goals_scored_avg": 1.0,
        "goals_conceded_avg": 0.5,
    }
    assert rows["Without Player"]["matches_played"] == 1
    assert rows["Without Player"]["losses"] == 1
    assert rows["Without Player"]["goals_conceded_avg"] == 3.0


def test_player_all_teams_impact(db, season):
    """Test the impact rows for every team a player was assigned to."""
    ana = season["players"]["ana"]

    rows = impact.player_all_teams_impact(db, ana.id)

    assert [row["team_name"] for row in rows] == ["Red", "Black", "FCB United"]
    red, black, club = rows
    assert red["win_rate"] == 50.0
    assert red["team_win_rate_without_player"] == 0.0
    assert red["impact_score"] == 50.0
    assert red["goals_per_game"] == 1.0
    assert red["statistical_significance"] is False
    assert black["impact_score"] == 100.0
    assert black["assists_per_game"] == 1.0
    assert club["team_win_rate_without_player"] == 0.0


def test_player_with_no_assignments_has_no_impact(db, season):
    from factories import add_player

    newcomer = add_player(db, "Newcomer")
    assert impact.player_all_teams_impact(db, newcomer.id) == []


def test_significance_needs_enough_matches_on_both_sides(db):
    """Test that significance needs enough matches with and without the player."""
    from factories import add_match, add_player, add_team, assign

    red = add_team(db, "Red")
    black = add_team(db, "Black")
    ana = add_player(db, "Ana")
    for day in range(1, 4):
        match = add_match(db, red, black, 1, 0, day=day)
        assign(db, match, red, ana)
    for day in range(4, 7):
        add_match(db, red, black, 0, 1, day=day)

    (row,) = impact.player_all_teams_impact(db, ana.id)
    assert row["matches_played"] == 3
    assert row["statistical_significance"] is True
    assert row["impact_score"] == 100.0


def test_player_team_combinations(db, season):
    ana = season["players"]["ana"]

    rows = impact.player_team_combinations(db, ana.id)

    assert [(row["teammate_name"], row["team_name"]) for row in rows] == [
        ("Ben", "Red"),
        ("Gio", "Black"),
    ]
    ben = rows[0]
    assert ben["matches_together"] == 1
    assert ben["win_rate_together"] == 100.0
    assert ben["win_rate_without"] == 0.0
    assert ben["goal_impact"] == 2.0

    only_red = impact.player_team_combinations(db, ana.id, season["teams"]["red"].id)
    assert [row["teammate_name"] for row in only_red] == ["Ben"]


def test_player_combinations_track_teammates_and_opponents(db, season):
    """Test that pair rows count matches together and meetings as opponents."""
    ana, ben, gio = (season["players"][name].id for name in ("ana", "ben", "gio"))

    rows = {
        (row["player1_id"], row["player2_id"]): row
        for row in impact.player_combinations(db, min_matches=1)
    }

    assert set(rows) == {tuple(sorted((ana, ben))), tuple(sorted((ana, gio)))}
    ana_ben = rows[tuple(sorted((ana, ben)))]
    assert (ana_ben["total_matches"], ana_ben["win_matches"], ana_ben["win_rate"]) == (1, 1, 100.0)
    assert ana_ben["win_rate_as_opponents"] == 100.0
    assert rows[tuple(sorted((ana, gio)))]["win_rate_as_opponents"] == 50.0

    assert impact.player_combinations(db, min_matches=2) == []


def test_player_combinations_as_opponents_include_pairs_never_on_one_side(db, season):
    """Test that opponent-qualified pairs include players who never shared a team."""
    ana, ben, gio = (season["players"][name].id for name in ("ana", "ben", "gio"))

    rows = {
        (row["player1_id"], row["player2_id"]): row
        for row in impact.player_combinations(db, min_matches=2, as_opponents=True)
    }

    assert set(rows) == {tuple(sorted((ana, gio))), tuple(sorted((ben, gio)))}
    ben_gio = rows[tuple(sorted((ben, gio)))]
    assert (ben_gio["total_matches"], ben_gio["matches_as_opponents"]) == (0, 2)
    assert ben_gio["win_rate"] == 0.0
    assert ben_gio["win_rate_as_opponents"] == 50.0


def test_rivals_chart_route_uses_opponent_sample(client, season):
    charts = client.get("/analytics/charts/player-combinations", params={"min_matches": 2}).json()

    assert charts["together"]["labels"] == []
    assert sorted(charts["rivals"]["labels"]) == ["Ana vs Gio", "Ben vs Gio"]


def test_player_diagnostic(db, season):
    """Test the diagnostic report for a player with assignments and stats."""
    ana = season["players"]["ana"]

    report = impact.player_diagnostic(db, ana)

    assert len(report["assignments"]) == 4
    assert report["assignments"][0]["team_name"] == "FCB United"
    assert sorted(stat["goals"] for stat in report["stats"]) == [1, 1, 2]
    assert {block["team_name"] for block in report["team_performance"]} == {
        "Red",
        "Black",
        "FCB United",
    }


def test_analytics_routes(client, season):
    ana_id = season["players"]["ana"].id
    red_id = season["teams"]["red"].id

    impact_rows = client.get(f"/analytics/players/{ana_id}/team-impact").json()
    assert impact_rows[0]["team_name"] == "Red"

    performance = client.get(
        f"/analytics/players/{ana_id}/team-performance", params={"team_id": red_id}
    ).json()
    assert [row["scenario"] for row in performance] == ["With Player", "Without Player"]

    diagnostic = client.get(f"/analytics/players/{ana_id}/diagnostic").json()
    assert diagnostic["player"]["team_name"] == "Red"

    charts = client.get(f"/analytics/charts/players/{ana_id}", params={"team_id": red_id}).json()
    assert set(charts) == {"team_impact", "win_impact", "teammates", "team_performance"}

    assert client.get("/analytics/players/9999/team-impact").status_code == 404
