from datetime import datetime

from app.models import Match, Player, PlayerMatchAssignment, PlayerMatchStat, Team


def add_team(db, name, team_type="internal", color="#000000"):
    team = Team(name=name, team_type=team_type, primary_shirt_color=color)
    db.add(team)
    db.commit()
    return team


def add_player(db, name, team_id=None, position="Midfielder"):
    player = Player(name=name, team_id=team_id, position=position)
    db.add(player)
    db.commit()
    return player


def add_match(db, home, away, home_score=None, away_score=None, match_type="internal_friendly", day=1):
    match = Match(
        match_date=datetime(2024, 3, day, 18, 0),
        match_type=match_type,
        venue="Main Field",
        home_team_id=home.id if home is not None else None,
        away_team_id=away.id if away is not None else None,
        home_score=home_score,
        away_score=away_score,
    )
    db.add(match)
    db.commit()
    return match


def assign(db, match, team, *players):
    for player in players:
        db.add(PlayerMatchAssignment(match_id=match.id, player_id=player.id, team_id=team.id))
    db.commit()


def add_stat(db, match, player, goals=0, assists=0, own_goals=0, clean_sheet=False):
    db.add(
        PlayerMatchStat(
            match_id=match.id,
            player_id=player.id,
            goals=goals,
            assists=assists,
            own_goals=own_goals,
            clean_sheet=clean_sheet,
        )
    )
    db.commit()


def build_season(db):
    """Three internal friendlies, one club game and one unplayed fixture.

    Ana plays for Red twice, switches to Black once and plays the club game.
    Ben plays for Red twice. Gio keeps goal for Black in all three friendlies.
    """
    red = add_team(db, "Red")
    black = add_team(db, "Black")
    club = add_team(db, "FCB United", team_type="club")
    rivals = add_team(db, "Rivals", team_type="external")
    ana = add_player(db, "Ana", team_id=red.id, position="Forward")
    ben = add_player(db, "Ben", team_id=red.id)
    gio = add_player(db, "Gio", team_id=black.id, position="Goalkeeper")

    m1 = add_match(db, red, black, 2, 1, day=1)
    assign(db, m1, red, ana, ben)
    assign(db, m1, black, gio)
    add_stat(db, m1, ana, goals=2)
    add_stat(db, m1, ben, assists=1)

    m2 = add_match(db, red, black, 0, 0, day=2)
    assign(db, m2, red, ana)
    assign(db, m2, black, gio)

    m3 = add_match(db, black, red, 3, 0, day=3)
    assign(db, m3, black, ana, gio)
    assign(db, m3, red, ben)
    add_stat(db, m3, ana, goals=1, assists=1)

    m4 = add_match(db, club, rivals, 1, 0, match_type="external_game", day=4)
    assign(db, m4, club, ana)
    add_stat(db, m4, ana, goals=1)

    m5 = add_match(db, red, black, day=5)

    return {
        "teams": {"red": red, "black": black, "club": club, "rivals": rivals},
        "players": {"ana": ana, "ben": ben, "gio": gio},
        "matches": [m1, m2, m3, m4, m5],
    }
