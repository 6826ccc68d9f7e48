"""
Tests for the JSON API blueprint.
"""

from poolkeeper.models import GradeOverride, PoolType


def setup_graded_game(teams, make_pool, make_entry, make_game, make_result, make_pick, client):
    home, away = teams
    pool = make_pool(PoolType.ATS)
    game = make_game(week=2)
    make_result(game, 20, 17)
    winner = make_pick(make_entry(pool, "Winner"), game, home)
    loser = make_pick(make_entry(pool, "Loser"), game, away)
    response = client.post(f"/api/games/{game.id}/grade")
    assert response.status_code == 200
    return pool, game, winner, loser


class TestGradeEndpoint:
    def test_grade_game(self, client, teams, make_pool, make_entry, make_game, make_result, make_pick):
        home, _ = teams
        game = make_game()
        make_result(game, 31, 17)
        make_pick(make_entry(make_pool(PoolType.POINTS_PLUS)), game, home)

        response = client.post(f"/api/games/{game.id}/grade")

        assert response.status_code == 200
        data = response.get_json()
        assert data["count"] == 1
        assert data["grades"][0]["outcome"] == "WIN"
        assert data["grades"][0]["points"] == 14.0

    def test_missing_result_is_404(self, client, make_game):
        game = make_game()

        response = client.post(f"/api/games/{game.id}/grade")

        assert response.status_code == 404
        assert response.get_json()["kind"] == "not_found"


class TestOverrideEndpoints:
    def test_override_and_history(self, client, teams, make_pool, make_entry, make_game, make_result, make_pick):
        _, _, winner, _ = setup_graded_game(
            teams, make_pool, make_entry, make_game, make_result, make_pick, client
        )

        response = client.post(
            "/api/grades/override",
            json={
                "pick_id": winner.id,
                "outcome": "VOID",
                "points": 0,
                "reason": "weather cancel",
                "overridden_by": "commissioner",
            },
        )

        assert response.status_code == 200
        grade = response.get_json()["grade"]
        assert grade["outcome"] == "VOID"
        assert grade["details"]["is_manual_override"] is True

        history = client.get(f"/api/grades/override?pick_id={winner.id}").get_json()["history"]
        assert len(history) == 1
        assert history[0]["original_outcome"] == "WIN"
        assert history[0]["overridden_by"] == "commissioner"

    def test_missing_fields_listed(self, client, app):
        response = client.post("/api/grades/override", json={"pick_id": 1, "points": 0})

        assert response.status_code == 400
        assert response.get_json()["error"] == "Missing required fields: outcome, reason"

    def test_short_reason_is_400_with_field(self, client, teams, make_pool, make_entry, make_game, make_result, make_pick):
        _, _, winner, _ = setup_graded_game(
            teams, make_pool, make_entry, make_game, make_result, make_pick, client
        )

        response = client.post(
            "/api/grades/override",
            json={"pick_id": winner.id, "outcome": "VOID", "points": 0, "reason": "x"},
        )

        assert response.status_code == 400
        assert response.get_json()["field"] == "reason"
        assert GradeOverride.query.count() == 0

    def test_numeric_reason_is_400_with_field(self, client, teams, make_pool, make_entry, make_game, make_result, make_pick):
        _, game, winner, _ = setup_graded_game(
            teams, make_pool, make_entry, make_game, make_result, make_pick, client
        )

        single = client.post(
            "/api/grades/override",
            json={"pick_id": winner.id, "outcome": "VOID", "points": 0, "reason": 12345678901},
        )
        bulk = client.post(
            "/api/grades/override/bulk",
            json={"game_id": game.id, "outcome": "VOID", "points": 0, "reason": 12345678901},
        )

        for response in (single, bulk):
            assert response.status_code == 400
            assert response.get_json()["field"] == "reason"
        assert GradeOverride.query.count() == 0

    def test_ungraded_pick_is_404(self, client, teams, make_pool, make_entry, make_game, make_pick):
        pick = make_pick(make_entry(make_pool()), make_game(), teams[0])

        response = client.post(
            "/api/grades/override",
            json={"pick_id": pick.id, "outcome": "WIN", "points": 1, "reason": "manual grade entry"},
        )

        assert response.status_code == 404

    def test_history_requires_pick_id(self, client, app):
        response = client.get("/api/grades/override")

        assert response.status_code == 400
        assert "pick_id" in response.get_json()["error"]

    def test_bulk_override(self, client, teams, make_pool, make_entry, make_game, make_result, make_pick):
        _, game, _, _ = setup_graded_game(
            teams, make_pool, make_entry, make_game, make_result, make_pick, client
        )

        response = client.post(
            "/api/grades/override/bulk",
            json={"game_id": game.id, "outcome": "VOID", "points": 0, "reason": "game postponed by league"},
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["count"] == 2
        assert data["message"] == f"Successfully overrode 2 picks for game {game.id}"

    def test_stats(self, client, teams, make_pool, make_entry, make_game, make_result, make_pick):
        _, game, winner, _ = setup_graded_game(
            teams, make_pool, make_entry, make_game, make_result, make_pick, client
        )
        client.post(
            "/api/grades/override",
            json={"pick_id": winner.id, "outcome": "PUSH", "points": 0.5, "reason": "line moved to pick-em"},
        )

        response = client.get(f"/api/grades/override/stats?season={game.season}&week=2")

        assert response.status_code == 200
        data = response.get_json()
        assert data["total_overrides"] == 1
        assert data["overrides_by_outcome"]["PUSH"] == 1

    def test_stats_rejects_non_numeric_week(self, client, app):
        response = client.get("/api/grades/override/stats?season=2024&week=two")

        assert response.status_code == 400


class TestStandingsEndpoints:
    def test_pool_standings(self, client, teams, make_pool, make_entry, make_game, make_result, make_pick):
        pool, _, winner, loser = setup_graded_game(
            teams, make_pool, make_entry, make_game, make_result, make_pick, client
        )

        response = client.get(f"/api/standings?pool_id={pool.id}&season={pool.season}")

        assert response.status_code == 200
        data = response.get_json()
        assert data["week"] is None
        assert [s["entry_id"] for s in data["standings"]] == [winner.entry_id, loser.entry_id]
        assert data["standings"][0]["rank"] == 1
        assert data["standings"][0]["total_points"] == 1.0

    def test_weekly_standings_filter(self, client, teams, make_pool, make_entry, make_game, make_result, make_pick):
        pool, _, _, _ = setup_graded_game(
            teams, make_pool, make_entry, make_game, make_result, make_pick, client
        )

        response = client.get(f"/api/standings?pool_id={pool.id}&season={pool.season}&week=1")

        data = response.get_json()
        assert data["week"] == 1
        assert all(s["total_picks"] == 0 for s in data["standings"])

    def test_unknown_pool_is_404(self, client, app):
        response = client.get("/api/standings?pool_id=999&season=2024")

        assert response.status_code == 404
        assert response.get_json()["error"] == "Pool not found"

    def test_standings_require_season(self, client, app):
        response = client.get("/api/standings?pool_id=1")

        assert response.status_code == 400

    def test_entry_detail(self, client, teams, make_pool, make_entry, make_game, make_result, make_pick):
        pool, _, winner, _ = setup_graded_game(
            teams, make_pool, make_entry, make_game, make_result, make_pick, client
        )

        response = client.get(f"/api/standings/{winner.entry_id}?season={pool.season}")

        assert response.status_code == 200
        data = response.get_json()
        assert data["entry"]["name"] == "Winner"
        assert data["standing"]["wins"] == 1
        assert data["picks"][0]["outcome"] == "WIN"
        assert data["weekly_results"][0]["week"] == 2

    def test_unknown_route_is_json_404(self, client, app):
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.get_json()["kind"] == "not_found"


class TestSurvivorEndpoints:
    def setup_survivor(self, teams, make_pool, make_entry, make_game, make_result, make_pick):
        home, away = teams
        pool = make_pool(PoolType.SURVIVOR)
        game = make_game(week=1)
        make_result(game, 24, 10)
        alive = make_entry(pool, "Alive")
        out = make_entry(pool, "Out")
        make_pick(alive, game, home)
        make_pick(out, game, away)
        return pool, game, alive, out

    def test_stats_and_winners(self, client, teams, make_pool, make_entry, make_game, make_result, make_pick):
        pool, game, alive, _ = self.setup_survivor(
            teams, make_pool, make_entry, make_game, make_result, make_pick
        )
        client.post(f"/api/games/{game.id}/grade")

        stats = client.get(f"/api/survivor/stats?pool_id={pool.id}&season={pool.season}&week=1")
        winners = client.get(f"/api/survivor/winners?pool_id={pool.id}&season={pool.season}")

        assert stats.status_code == 200
        assert stats.get_json()["survivors_remaining"] == 1
        assert stats.get_json()["eliminations_by_team"] == {teams[1].abbreviation: 1}
        assert winners.status_code == 200
        assert [w["entry_id"] for w in winners.get_json()["winners"]] == [alive.id]
        assert winners.get_json()["winners"][0]["point_differential"] == 14

    def test_stats_require_week(self, client, make_pool):
        pool = make_pool(PoolType.SURVIVOR)

        response = client.get(f"/api/survivor/stats?pool_id={pool.id}&season={pool.season}")

        assert response.status_code == 400

    def test_non_survivor_pool_is_400(self, client, make_pool):
        pool = make_pool(PoolType.ATS)

        response = client.get(f"/api/survivor/winners?pool_id={pool.id}&season={pool.season}")

        assert response.status_code == 400
        assert response.get_json()["field"] == "pool_id"
