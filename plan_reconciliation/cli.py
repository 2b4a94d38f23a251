"""Command-line interface for the plan reconciliation engine."""

import json
import logging
from datetime import timedelta

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.panel import Panel
from rich import box

from .adaptation import Assessment, TrainingPhase, reconcile_week, summarize_adaptations
from .catalog import CachedCatalogLoader, TTLCache
from .config import config
from .dates import DAY_NAMES, day_of_week, to_date
from .db import PlanRepository, get_db
from .scheduling import find_optimal_supplement_days, preview_plan_activation
from .training_load import build_training_context, interpret_tsb

console = Console()

ASSESSMENT_STYLES = {
    Assessment.BENEFICIAL: "green",
    Assessment.ACCEPTABLE: "blue",
    Assessment.MINOR_CONCERN: "yellow",
    Assessment.CONCERNING: "red",
}

STATUS_STYLES = {
    "available": "green",
    "preferred": "bold green",
    "blocked": "red",
}

DATE_FORMAT = click.DateTime(formats=["%Y-%m-%d"])

catalog_loader = CachedCatalogLoader(TTLCache(config.CATALOG_CACHE_TTL_SECONDS))


def _escape(error: Exception) -> str:
    return str(error).replace("[", r"\[").replace("]", r"\]")


def setup_logging(level: str):
    """Route log records through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _repository(ctx) -> PlanRepository:
    db = get_db(ctx.obj["database_url"])
    return PlanRepository(db, user_id=ctx.obj["user_id"])


def _planned_workouts(repo: PlanRepository, plan_id: str, start=None, end=None, catalog_file=None):
    """Planned workouts with missing metrics filled from the catalog."""
    catalog = catalog_loader.load(catalog_file)
    return [catalog.fill_planned_metrics(w) for w in repo.load_planned_workouts(plan_id, start, end)]


@click.group()
@click.option("--database-url", default=None, help="Database URL (defaults to DATABASE_URL)")
@click.option("--user", "user_id", default="default", help="Athlete identifier")
@click.option("--log-level", default=None, help="Log level (defaults to LOG_LEVEL)")
@click.pass_context
def cli(ctx, database_url, user_id, log_level):
    """Training plan reconciliation: availability, redistribution and adaptations."""
    ctx.ensure_object(dict)
    ctx.obj["database_url"] = database_url or config.DATABASE_URL
    ctx.obj["user_id"] = user_id
    setup_logging((log_level or config.get_log_level()).upper())


@cli.command("init-db")
@click.pass_context
def init_db(ctx):
    """Create the database tables."""
    try:
        db = get_db(ctx.obj["database_url"])
        db.create_tables()
        console.print(f"[green]✅ Database initialized: {', '.join(db.table_names())}[/green]")
    except Exception as e:
        console.print(f"[red]❌ Error initializing database: {_escape(e)}[/red]")


@cli.command()
@click.argument("snapshot_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def load(ctx, snapshot_file):
    """Import availability, preferences, plans and activities from JSON."""
    try:
        with open(snapshot_file) as f:
            snapshot = json.load(f)
        counts = _repository(ctx).import_snapshot(snapshot)

        table = Table(title="Imported", box=box.ROUNDED)
        table.add_column("Section", style="blue")
        table.add_column("Records", style="magenta", justify="right")
        for section, count in counts.items():
            table.add_row(section, str(count))
        console.print(table)
        console.print("[green]✅ Snapshot loaded[/green]")
    except Exception as e:
        console.print(f"[red]❌ Error loading snapshot: {_escape(e)}[/red]")


@cli.command()
@click.option("--start", type=DATE_FORMAT, required=True, help="First date (YYYY-MM-DD)")
@click.option("--end", type=DATE_FORMAT, required=True, help="Last date (YYYY-MM-DD)")
@click.pass_context
def availability(ctx, start, end):
    """Show resolved availability for a date range."""
    try:
        resolved = _repository(ctx).load_availability().resolve_range(start, end)

        table = Table(title="Availability", box=box.ROUNDED)
        table.add_column("Date", style="black")
        table.add_column("Day")
        table.add_column("Status")
        table.add_column("Override", justify="center")
        table.add_column("Max", style="blue", justify="right")
        table.add_column("Notes")
        for day in resolved:
            status = day.status.value
            style = STATUS_STYLES.get(status, "white")
            table.add_row(
                day.date.isoformat(),
                DAY_NAMES[day_of_week(day.date)][:3].title(),
                f"[{style}]{status}[/{style}]",
                "✓" if day.is_override else "",
                f"{day.max_duration_minutes}min" if day.max_duration_minutes else "",
                day.notes or "",
            )
        console.print(table)
    except Exception as e:
        console.print(f"[red]❌ Error resolving availability: {_escape(e)}[/red]")


@cli.command()
@click.option("--plan-id", required=True, help="Plan identifier")
@click.option("--apply", "apply_moves", is_flag=True, help="Persist the proposed moves")
@click.option("--from", "from_date", type=DATE_FORMAT, default=None,
              help="Treat the plan as active and only reshuffle from this date (YYYY-MM-DD)")
@click.pass_context
def redistribute(ctx, plan_id, apply_moves, from_date):
    """Move workouts off blocked days."""
    try:
        repo = _repository(ctx)
        workouts = _planned_workouts(repo, plan_id)
        if not workouts:
            console.print(f"[orange1]No planned workouts for plan {plan_id}[/orange1]")
            return

        preview = preview_plan_activation(
            workouts,
            repo.load_availability(),
            repo.load_preferences(),
            today=to_date(from_date) if from_date else None,
        )

        console.print(Panel.fit(
            f"Workouts on blocked days: {preview.blocked_days_affected}\n"
            f"Moves proposed: {len(preview.moves)}\n"
            f"Unresolved: {len(preview.unresolved)}",
            title=f"Plan {plan_id}",
            style="bold blue",
        ))

        if preview.moves or preview.unresolved:
            table = Table(title="Proposed Changes", box=box.ROUNDED)
            table.add_column("Workout", style="blue")
            table.add_column("From", style="red")
            table.add_column("To", style="green")
            table.add_column("Reason")
            for move in preview.moves + preview.unresolved:
                target = "-" if move.is_unresolved else move.new_date.isoformat()
                table.add_row(move.workout_id or "", move.original_date.isoformat(), target, move.reason)
            console.print(table)

        for warning in preview.warnings:
            console.print(f"[yellow]⚠️  {warning}[/yellow]")

        if preview.can_activate:
            console.print("[green]✅ Plan fits your availability[/green]")
        else:
            console.print("[red]❌ Some workouts need manual adjustment[/red]")

        if apply_moves:
            applied = repo.apply_moves(plan_id, preview.moves)
            console.print(f"[green]✅ Applied {applied} moves[/green]")
    except Exception as e:
        console.print(f"[red]❌ Error redistributing plan: {_escape(e)}[/red]")


@cli.command()
@click.argument("workout_id")
@click.option("--plan-id", required=True, help="Plan identifier")
@click.option("--start", type=DATE_FORMAT, required=True, help="First date (YYYY-MM-DD)")
@click.option("--weeks", default=None, type=int, help="Look-ahead in weeks")
@click.option("--limit", default=10, help="Number of suggestions to show")
@click.pass_context
def supplements(ctx, workout_id, plan_id, start, weeks, limit):
    """Suggest days for a supplement session."""
    try:
        repo = _repository(ctx)
        workouts = _planned_workouts(repo, plan_id)
        suggestions = find_optimal_supplement_days(
            workout_id,
            workouts,
            start,
            weeks_ahead=weeks,
            availability=repo.load_availability(),
        )
        if not suggestions:
            console.print(f"[orange1]No suitable days for {workout_id}[/orange1]")
            return

        table = Table(title=f"Suggested days for {workout_id}", box=box.ROUNDED)
        table.add_column("Date", style="black")
        table.add_column("Day")
        table.add_column("Score", style="magenta", justify="right")
        table.add_column("Reason")
        for suggestion in suggestions[:limit]:
            table.add_row(
                suggestion.date.isoformat(),
                DAY_NAMES[day_of_week(suggestion.date)][:3].title(),
                f"{suggestion.score:.0f}",
                suggestion.reason,
            )
        console.print(table)
    except Exception as e:
        console.print(f"[red]❌ Error finding supplement days: {_escape(e)}[/red]")


@cli.command()
@click.option("--plan-id", required=True, help="Plan identifier")
@click.option("--start", type=DATE_FORMAT, required=True, help="First date (YYYY-MM-DD)")
@click.option("--end", type=DATE_FORMAT, required=True, help="Last date (YYYY-MM-DD)")
@click.option("--ftp", type=float, default=None, help="Functional threshold power (watts)")
@click.option("--threshold-pace", type=float, default=None, help="Running threshold pace (sec/km)")
@click.option("--phase", type=click.Choice([p.value for p in TrainingPhase]), default=None, help="Training phase")
@click.option("--catalog", "catalog_file", type=click.Path(exists=True, dir_okay=False), default=None,
              help="JSON workout catalog merged over the built-in one")
@click.option("--save", is_flag=True, help="Store the adaptation records")
@click.pass_context
def reconcile(ctx, plan_id, start, end, ftp, threshold_pace, phase, catalog_file, save):
    """Compare planned workouts with completed activities."""
    try:
        repo = _repository(ctx)
        start_date, end_date = to_date(start), to_date(end)
        tolerance = timedelta(days=config.MATCH_DATE_TOLERANCE_DAYS)

        workouts = _planned_workouts(repo, plan_id, start_date, end_date, catalog_file)
        activities = repo.load_activities(start_date - tolerance, end_date + tolerance)
        history = repo.load_activities(end_date - timedelta(days=89), end_date)

        context = build_training_context(
            history,
            as_of=end_date,
            training_phase=TrainingPhase(phase) if phase else None,
        )
        records = reconcile_week(
            workouts,
            activities,
            ftp=ftp,
            context=context,
            threshold_pace=threshold_pace,
            start=start_date,
            end=end_date,
        )

        table = Table(title=f"Adaptations {start_date.isoformat()} to {end_date.isoformat()}", box=box.ROUNDED)
        table.add_column("Date", style="black")
        table.add_column("Planned", style="blue")
        table.add_column("Actual", style="blue")
        table.add_column("Type", style="yellow")
        table.add_column("Stimulus", style="magenta", justify="right")
        table.add_column("Assessment")
        table.add_column("Explanation")
        for record in records:
            style = ASSESSMENT_STYLES[record.assessment]
            stimulus = f"{record.stimulus_achieved_pct}%" if record.stimulus_achieved_pct is not None else "-"
            table.add_row(
                record.date.isoformat() if record.date else "",
                record.planned_category or "-",
                record.actual_category or "-",
                record.adaptation_type.value,
                stimulus,
                f"[{style}]{record.assessment.value}[/{style}]",
                record.explanation,
            )
        console.print(table)

        summary = summarize_adaptations(records)
        tsb_status = interpret_tsb(context.tsb)
        achieved = f"{summary.stimulus_achieved_pct}%" if summary.stimulus_achieved_pct is not None else "-"
        console.print(Panel.fit(
            f"Planned TSS: {summary.planned_tss:.0f}  Actual TSS: {summary.actual_tss:.0f}  "
            f"Unplanned TSS: {summary.unplanned_tss:.0f}\n"
            f"Stimulus achieved: {achieved}\n"
            f"Form: CTL {context.ctl}  ATL {context.atl}  TSB {context.tsb} ({tsb_status['status']})",
            title="Summary",
            style="bold blue",
        ))

        if save:
            saved = repo.save_adaptations(records)
            console.print(f"[green]✅ Saved {saved} adaptation records[/green]")
    except Exception as e:
        console.print(f"[red]❌ Error reconciling plan: {_escape(e)}[/red]")


@cli.command()
@click.option("--all", "include_superseded", is_flag=True, help="Include superseded records")
@click.pass_context
def adaptations(ctx, include_superseded):
    """List stored adaptation records."""
    try:
        records = _repository(ctx).load_adaptations(include_superseded=include_superseded)
        if not records:
            console.print("[orange1]No adaptation records stored[/orange1]")
            return

        table = Table(title="Stored Adaptations", box=box.ROUNDED)
        table.add_column("Date", style="black")
        table.add_column("Type", style="yellow")
        table.add_column("Assessment")
        table.add_column("Explanation")
        for record in records:
            style = ASSESSMENT_STYLES[record.assessment]
            table.add_row(
                record.date.isoformat() if record.date else "",
                record.adaptation_type.value,
                f"[{style}]{record.assessment.value}[/{style}]",
                record.explanation,
            )
        console.print(table)
    except Exception as e:
        console.print(f"[red]❌ Error listing adaptations: {_escape(e)}[/red]")


def main():
    """Main entry point."""
    try:
        config.validate()
        cli()
    except KeyboardInterrupt:
        console.print("\n[orange1]Operation cancelled by user.[/orange1]")
    except Exception as e:
        console.print(f"[red]❌ Unexpected error: {_escape(e)}[/red]")


if __name__ == "__main__":
    main()
