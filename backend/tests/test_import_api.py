from app.services import importer


def test_import_data_dry_run(client, admin_headers):
    """Test that a dry run reports counts and errors without writing."""
    response = client.post(
        "/admin/import-data",
        headers=admin_headers,
        json={"dataType": "teams", "data": "name,team_type\nRed,internal\n,internal\n"},
    )
    assert response.status_code == 200
    assert response.json() == {
        "message": "Validation completed successfully",
        "records": 1,
        "errors": ["Record 2: Missing required field 'name'"],
    }


def test_import_data_live(client, admin_headers):
    response = client.post(
        "/admin/import-data",
        headers=admin_headers,
        json={
            "dataType": "teams",
            "data": "name,team_type\nRed,internal\nBlack,internal\n",
            "dryRun": False,
        },
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Import completed with 2 records imported"

    teams = client.get("/catalog/teams").json()
    assert sorted(team["name"] for team in teams) == ["Black", "Red"]


def test_import_data_missing_fields(client, admin_headers):
    """Test that dataType and data are both required."""
    response = client.post("/admin/import-data", headers=admin_headers, json={"dataType": "teams"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing required fields: dataType and data"


def test_import_data_invalid_type(client, admin_headers):
    response = client.post(
        "/admin/import-data",
        headers=admin_headers,
        json={"dataType": "coaches", "data": "name\nA\n"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid dataType: coaches"


def test_import_data_all_invalid_is_400(client, admin_headers):
    """Test that a file with no valid record is rejected with 400."""
    response = client.post(
        "/admin/import-data",
        headers=admin_headers,
        json={"dataType": "players", "data": "name,position\n,FW\n"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "All records have validation errors"
    assert body["errors"] == ["Record 1: Missing required field 'name'"]


def test_import_data_unexpected_error_is_500(client, admin_headers, monkeypatch):
    """Test that an unexpected failure becomes a 500 with the import error message."""
    def explode(*args, **kwargs):
        raise RuntimeError("parser exploded")

    monkeypatch.setattr(importer, "import_csv", explode)
    response = client.post(
        "/admin/import-data",
        headers=admin_headers,
        json={"dataType": "teams", "data": "name\nRed\n"},
    )
    assert response.status_code == 500
    assert response.json() == {"detail": "parser exploded"}


def test_import_players_by_team_name_without_teams(client, admin_headers):
    response = client.post(
        "/admin/import-players-by-team-name",
        headers=admin_headers,
        json={"data": "name,team_name\nAna,Red\n"},
    )
    assert response.status_code == 400
    assert response.json()["errors"] == ["no_teams_in_database"]


def test_import_teams_simplified_live(client, admin_headers):
    """Test a live simplified teams import over HTTP."""
    response = client.post(
        "/admin/import-teams-simplified",
        headers=admin_headers,
        json={"data": "# internal squads\nname,team_type,color_name\nLight Blue,internal,Light Blue\n", "dryRun": False},
    )
    assert response.status_code == 200
    assert response.json()["records"] == 1

    teams = client.get("/admin/teams", headers=admin_headers).json()
    assert [(team["name"], team["primary_shirt_color"]) for team in teams] == [("Light Blue", "#79DBFB")]
