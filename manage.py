#!/usr/bin/env python3
"""
Pool Keeper Management CLI

Command-line access to grading, grade overrides and standings.
"""

import logging

import click
from flask.cli import with_appcontext

from poolkeeper import create_app, db
from poolkeeper.errors import PoolKeeperError
from poolkeeper.models import Entry, Game, Pick, Pool
from poolkeeper.services.grade_override_service import grade_override_service
from poolkeeper.services.grading_service import grading_service
from poolkeeper.services.standings_service import standings_service

app = create_app()


@click.group()
def cli():
    """Pool Keeper Management CLI"""
    pass


# Grading Commands
@cli.group()
def grade():
    """Grading commands"""
    pass


@grade.command("game")
@click.argument("game_id", type=int)
@with_appcontext
def grade_game(game_id):
    """Grade all picks for a game from its result"""
    try:
        grades = grading_service.grade_game(game_id)
    except PoolKeeperError as e:
        click.echo(f"❌ {e.message}")
        logging.error(f"Grading game {game_id} failed: {e.message}")
        return

    game = db.session.get(Game, game_id)
    click.echo(f"✅ Graded {len(grades)} picks for {game.matchup} (Week {game.week})")
    for g in grades:
        click.echo(f"  Pick {g.pick_id}: {g.outcome.value} {g.points}")


@grade.command("pending")
@click.option("--season", type=int, help="Only grade games in this season")
@with_appcontext
def grade_pending(season):
    """Grade every game with a result and ungraded picks"""
    graded = grading_service.grade_pending_games(season=season)

    if not graded:
        click.echo("No pending games to grade.")
        return

    total = sum(len(grades) for grades in graded.values())
    click.echo(f"✅ Graded {total} picks across {len(graded)} games")


# Override Commands
@cli.group()
def override():
    """Grade override commands"""
    pass


@override.command("pick")
@click.argument("pick_id", type=int)
@click.argument("outcome", type=click.Choice(["WIN", "LOSS", "PUSH", "VOID"], case_sensitive=False))
@click.argument("points", type=str)
@click.argument("reason")
@click.option("--actor", help="Who is making the override")
@with_appcontext
def override_pick(pick_id, outcome, points, reason, actor):
    """Override the grade of a single pick"""
    try:
        grade = grade_override_service.override_grade(
            pick_id, outcome, points, reason, actor
        )
    except PoolKeeperError as e:
        click.echo(f"❌ {e.message}")
        return

    click.echo(f"✅ Pick {pick_id} is now {grade.outcome.value} {grade.points}")


@override.command("game")
@click.argument("game_id", type=int)
@click.argument("outcome", type=click.Choice(["WIN", "LOSS", "PUSH", "VOID"], case_sensitive=False))
@click.argument("points", type=str)
@click.argument("reason")
@click.option("--actor", help="Who is making the override")
@with_appcontext
def override_game(game_id, outcome, points, reason, actor):
    """Override every graded pick of a game"""
    graded_count = (
        Pick.query.filter_by(game_id=game_id).filter(Pick.grade.has()).count()
    )
    if not click.confirm(
        f"Override {graded_count} graded picks for game {game_id} to {outcome.upper()} {points}?"
    ):
        click.echo("Cancelled.")
        return

    try:
        grades = grade_override_service.bulk_override_game_picks(
            game_id, outcome, points, reason, actor
        )
    except PoolKeeperError as e:
        click.echo(f"❌ {e.message} (no picks were changed)")
        return

    click.echo(f"✅ Overrode {len(grades)} picks for game {game_id}")


@override.command("history")
@click.argument("pick_id", type=int)
@with_appcontext
def override_history(pick_id):
    """Show the override history of a pick"""
    history = grade_override_service.get_override_history(pick_id)

    if not history:
        click.echo(f"No overrides recorded for pick {pick_id}.")
        return

    click.echo(f"Override history for pick {pick_id}:")
    for o in history:
        click.echo(
            f"  {o.overridden_at:%Y-%m-%d %H:%M} "
            f"{o.original_outcome.value} {o.original_points} -> "
            f"{o.new_outcome.value} {o.new_points} "
            f"by {o.overridden_by or 'unknown'}: {o.reason}"
        )


@override.command("stats")
@click.argument("season", type=int)
@click.option("--week", type=int, help="Restrict to a single week")
@with_appcontext
def override_stats(season, week):
    """Show override statistics for a season"""
    stats = grade_override_service.get_override_stats(season, week)

    label = f"{season} week {week}" if week else f"{season}"
    click.echo(f"Overrides for {label}:")
    click.echo(f"  Total overrides: {stats.total_overrides}")
    click.echo(f"  Games with overrides: {stats.games_with_overrides}")
    for outcome, count in stats.overrides_by_outcome.items():
        click.echo(f"  {outcome}: {count}")


# Standings Commands
@cli.group()
def standings():
    """Standings commands"""
    pass


@standings.command("pool")
@click.argument("pool_id", type=int)
@click.argument("season", type=int)
@click.option("--week", type=int, help="Weekly standings for this week")
@with_appcontext
def pool_standings(pool_id, season, week):
    """Show ranked standings for a pool"""
    try:
        if week:
            rows = standings_service.get_weekly_standings(pool_id, season, week)
        else:
            rows = standings_service.get_pool_standings(pool_id, season)
    except PoolKeeperError as e:
        click.echo(f"❌ {e.message}")
        return

    pool = db.session.get(Pool, pool_id)
    click.echo(f"{pool.name} ({pool.type.value}) - {season}" + (f" week {week}" if week else ""))

    if not rows:
        click.echo("No entries found.")
        return

    for s in rows:
        line = (
            f"  {s.rank:>3}. {s.entry_name:<25} {s.wins}-{s.losses}-{s.pushes} "
            f"({s.win_percentage:.3f})  pts {s.total_points}"
        )
        if s.is_eliminated:
            line += f"  ❌ out week {s.eliminated_week}"
        click.echo(line)


@standings.command("entry")
@click.argument("entry_id", type=int)
@click.argument("season", type=int)
@with_appcontext
def entry_standing(entry_id, season):
    """Show the week-by-week record of an entry"""
    try:
        detail = standings_service.get_entry_detail(entry_id, season)
    except PoolKeeperError as e:
        click.echo(f"❌ {e.message}")
        return

    s = detail.standing
    click.echo(
        f"{detail.entry['name']}: {s.wins}-{s.losses}-{s.pushes} "
        f"({s.voids} void), {s.total_points} pts"
    )
    for week in detail.weekly_results:
        click.echo(
            f"  Week {week.week:>2}: {week.wins}-{week.losses}-{week.pushes} "
            f"({week.voids} void)  pts {week.total_points}"
        )


@standings.command("survivor")
@click.argument("pool_id", type=int)
@click.argument("season", type=int)
@click.option("--week", type=int, help="Show pick statistics for this week")
@with_appcontext
def survivor(pool_id, season, week):
    """Show who is still alive in a survivor pool"""
    try:
        survivors = standings_service.get_survivor_winners(pool_id, season)
        stats = (
            standings_service.get_survivor_stats(pool_id, season, week) if week else None
        )
    except PoolKeeperError as e:
        click.echo(f"❌ {e.message}")
        return

    if stats:
        click.echo(
            f"Week {week}: {stats.survivors_remaining}/{stats.total_entries} alive "
            f"({stats.survival_rate:.1%}), top pick {stats.top_pick_team or '-'}"
        )
        for team, count in sorted(stats.team_pick_distribution.items()):
            lost = stats.eliminations_by_team.get(team, 0)
            click.echo(f"  {team:<4} picked {count:>3}  eliminated {lost:>3}")

    if not survivors:
        click.echo("No entries left alive.")
        return

    for s in survivors:
        click.echo(f"  {s.rank:>3}. {s.entry_name:<25} diff {s.point_differential:+d}")


# Database Commands
@cli.group()
def db_cmd():
    """Database commands"""
    pass


@db_cmd.command()
@with_appcontext
def init_db():
    """Initialize database tables"""
    try:
        db.create_all()
        click.echo("✅ Database tables created successfully!")
    except Exception as e:
        click.echo(f"❌ Error initializing database: {str(e)}")


@db_cmd.command()
@with_appcontext
def reset():
    """⚠️  DANGER: Drop and recreate all tables (including the override audit log)"""
    if not click.confirm("This will DELETE ALL DATA. Are you sure?"):
        click.echo("Cancelled.")
        return

    try:
        db.drop_all()
        db.create_all()
        click.echo("✅ Database reset successfully!")
    except Exception as e:
        click.echo(f"❌ Error resetting database: {str(e)}")


# Info Commands
@cli.command()
@with_appcontext
def status():
    """Show application status"""
    click.echo("🏈 Pool Keeper Status")
    click.echo("=" * 40)
    click.echo(f"Pools: {Pool.query.count()}")
    click.echo(f"Entries: {Entry.query.count()}")
    click.echo(f"Games: {Game.query.count()}")
    click.echo(f"Picks: {Pick.query.count()}")
    click.echo(f"Graded picks: {Pick.query.filter(Pick.grade.has()).count()}")


if __name__ == "__main__":
    with app.app_context():
        cli()
