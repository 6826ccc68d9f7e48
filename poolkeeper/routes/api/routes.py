from flask import jsonify, request

from poolkeeper.routes.api import bp
from poolkeeper.services.grade_override_service import grade_override_service
from poolkeeper.services.grading_service import grading_service
from poolkeeper.services.standings_service import standings_service


def _int_arg(name, required=True):
    """Read an integer query parameter; returns (value, error_response)"""
    raw = request.args.get(name)
    if raw is None or raw == "":
        if required:
            return None, (jsonify({"error": f"{name} parameter is required"}), 400)
        return None, None
    try:
        return int(raw), None
    except ValueError:
        return None, (jsonify({"error": f"{name} must be a valid number"}), 400)


def _missing_fields(data, fields):
    return [name for name in fields if data.get(name) is None or data.get(name) == ""]


@bp.route("/games/<int:game_id>/grade", methods=["POST"])
def grade_game(game_id):
    """Grade every pick on a game from its result"""
    grades = grading_service.grade_game(game_id)
    return jsonify({"grades": [grade.to_dict() for grade in grades], "count": len(grades)})


@bp.route("/grades/override", methods=["POST"])
def override_grade():
    """Manually override one pick's grade"""
    data = request.get_json(silent=True) or {}

    required = ["pick_id", "outcome", "points", "reason"]
    missing = _missing_fields(data, required)
    if missing:
        return (
            jsonify({"error": f"Missing required fields: {', '.join(missing)}"}),
            400,
        )

    grade = grade_override_service.override_grade(
        data["pick_id"],
        data["outcome"],
        data["points"],
        data["reason"],
        data.get("overridden_by"),
    )
    return jsonify({"grade": grade.to_dict()})


@bp.route("/grades/override", methods=["GET"])
def override_history():
    """Get the override history of a pick"""
    pick_id, error = _int_arg("pick_id")
    if error:
        return error

    history = grade_override_service.get_override_history(pick_id)
    return jsonify({"history": [override.to_dict() for override in history]})


@bp.route("/grades/override/bulk", methods=["POST"])
def bulk_override():
    """Override every graded pick of a game"""
    data = request.get_json(silent=True) or {}

    required = ["game_id", "outcome", "points", "reason"]
    missing = _missing_fields(data, required)
    if missing:
        return (
            jsonify({"error": f"Missing required fields: {', '.join(missing)}"}),
            400,
        )

    grades = grade_override_service.bulk_override_game_picks(
        data["game_id"],
        data["outcome"],
        data["points"],
        data["reason"],
        data.get("overridden_by"),
    )
    return jsonify(
        {
            "grades": [grade.to_dict() for grade in grades],
            "count": len(grades),
            "message": f"Successfully overrode {len(grades)} picks for game {data['game_id']}",
        }
    )


@bp.route("/grades/override/stats")
def override_stats():
    """Override statistics for a season or a single week"""
    season, error = _int_arg("season")
    if error:
        return error
    week, error = _int_arg("week", required=False)
    if error:
        return error

    stats = grade_override_service.get_override_stats(season, week)
    return jsonify(stats.to_dict())


@bp.route("/standings")
def pool_standings():
    """Standings for a pool, optionally restricted to one week"""
    pool_id, error = _int_arg("pool_id")
    if error:
        return error
    season, error = _int_arg("season")
    if error:
        return error
    week, error = _int_arg("week", required=False)
    if error:
        return error

    if week is not None:
        standings = standings_service.get_weekly_standings(pool_id, season, week)
    else:
        standings = standings_service.get_pool_standings(pool_id, season)

    return jsonify(
        {
            "pool_id": pool_id,
            "season": season,
            "week": week,
            "standings": [standing.to_dict() for standing in standings],
        }
    )


@bp.route("/standings/<int:entry_id>")
def entry_detail(entry_id):
    """Detailed performance of one entry"""
    season, error = _int_arg("season")
    if error:
        return error

    detail = standings_service.get_entry_detail(entry_id, season)
    return jsonify(detail.to_dict())


@bp.route("/survivor/stats")
def survivor_stats():
    """Week statistics for a survivor pool"""
    pool_id, error = _int_arg("pool_id")
    if error:
        return error
    season, error = _int_arg("season")
    if error:
        return error
    week, error = _int_arg("week")
    if error:
        return error

    stats = standings_service.get_survivor_stats(pool_id, season, week)
    return jsonify(stats.to_dict())


@bp.route("/survivor/winners")
def survivor_winners():
    """Entries still alive in a survivor pool, best first"""
    pool_id, error = _int_arg("pool_id")
    if error:
        return error
    season, error = _int_arg("season")
    if error:
        return error

    survivors = standings_service.get_survivor_winners(pool_id, season)
    return jsonify(
        {
            "pool_id": pool_id,
            "season": season,
            "winners": [survivor.to_dict() for survivor in survivors],
        }
    )
