"""Typer CLI entrypoint for the evaluation pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn, Optional

import typer
from dotenv import load_dotenv
from pydantic import ValidationError

from .catalog import MODEL_CATALOG
from .config import load_settings
from .container import create_container
from .core import ResumeMode, RunSummary
from .errors import ConfigError, EvaluationError
from .logging import configure_logging
from .pipeline import EvaluationPipeline, require_ready
from .schemas.config import AppConfig

app = typer.Typer(help="Interview answer evaluation CLI.")


@app.callback()
def setup(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    env_file: Optional[Path] = typer.Option(None, dir_okay=False, help="Dotenv file to load before reading the environment."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
    json_logs: bool = typer.Option(True, "--json-logs/--console-logs", help="Render logs as JSON or for humans."),
) -> None:
    """Load environment and configuration shared by every command."""
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()
    configure_logging(log_level, json_output=json_logs)
    ctx.obj = {"config_path": config}


@app.command()
def interview(
    ctx: typer.Context,
    interview_id: str = typer.Argument(..., help="Interview to evaluate."),
    model: Optional[str] = typer.Option(None, help="Model id; defaults to the configured model."),
    force_redo: bool = typer.Option(False, "--force-redo", help="Clear stored evaluations and evaluate again."),
) -> None:
    """Evaluate every answer of one interview."""
    mode = ResumeMode.FORCE_REDO if force_redo else ResumeMode.SKIP_EXISTING
    pipeline = _pipeline(ctx)
    summary = _run(lambda: pipeline.run_for_interview(interview_id, model_id=model, mode=mode))
    _report(summary)


@app.command()
def position(
    ctx: typer.Context,
    position_id: str = typer.Argument(..., help="Position whose interviews are evaluated."),
    skip_evaluated: bool = typer.Option(
        True,
        "--skip-evaluated/--no-skip-evaluated",
        help="Skip answers that already have an evaluation.",
    ),
    model: Optional[str] = typer.Option(None, help="Model id; defaults to the configured model."),
) -> None:
    """Evaluate every interview of a position."""
    mode = ResumeMode.SKIP_EXISTING if skip_evaluated else ResumeMode.FORCE_REDO
    pipeline = _pipeline(ctx)
    summary = _run(lambda: pipeline.run_for_position(position_id, model_id=model, mode=mode))
    _report(summary)


@app.command("retry-failed")
def retry_failed(
    ctx: typer.Context,
    position_id: Optional[str] = typer.Option(None, "--position", help="Limit to one position."),
    model: Optional[str] = typer.Option(None, help="Model id; defaults to the configured model."),
    limit: Optional[int] = typer.Option(None, min=1, help="Maximum number of answers to retry."),
) -> None:
    """Evaluate answers that have a transcript but no stored evaluation."""
    pipeline = _pipeline(ctx)
    summary = _run(lambda: pipeline.retry_failed(model_id=model, position_id=position_id, limit=limit))
    _report(summary)


@app.command()
def stats(
    ctx: typer.Context,
    position_id: Optional[str] = typer.Option(None, "--position", help="Limit to one position."),
) -> None:
    """Show evaluation coverage."""
    settings = _settings(ctx)
    if not settings.database_url:
        _fail_config(ConfigError(["database URL is not set (DATABASE_URL)"]))
    store = create_container(settings).result_store()
    store.ensure_schema()
    result = store.evaluation_stats(position_id)

    typer.echo(f"Evaluation stats{f' for position {position_id}' if position_id else ''}:")
    typer.echo(f"  Total answers:     {result.total_answers}")
    typer.echo(f"  Evaluated:         {result.evaluated_answers}")
    typer.echo(f"  Pending:           {result.pending_answers}")
    typer.echo(f"  Models used:       {result.models_used}")
    typer.echo(f"  Prompt versions:   {result.prompt_versions_used}")


@app.command()
def analyze(
    ctx: typer.Context,
    sample_size: int = typer.Option(20, min=1, help="Maximum answers listed per problem."),
    backup_files: int = typer.Option(10, min=1, help="Number of recent backup files to inspect."),
) -> None:
    """Diagnose unevaluated answers, transcript problems and recent backups."""
    settings = _settings(ctx)
    if not settings.database_url:
        _fail_config(ConfigError(["database URL is not set (DATABASE_URL)"]))
    container = create_container(settings)
    container.result_store().ensure_schema()
    try:
        health = container.work_source().transcript_health(sample_size=sample_size)
    except EvaluationError as exc:
        typer.echo(f"Analysis failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    backups = container.backup().summarize_recent(backup_files)

    typer.echo("Transcript statistics:")
    typer.echo(f"  Total answers:     {health.total_answers}")
    typer.echo(f"  NULL transcripts:  {health.null_transcripts}")
    typer.echo(f"  Empty transcripts: {health.empty_transcripts}")

    typer.echo(f"Unevaluated answers: {len(health.unevaluated)}")
    for sample in health.unevaluated:
        typer.echo(
            f"  - {sample.answer_id} (interview {sample.interview_id}, "
            f"{sample.candidate_identifier or 'unknown candidate'}, {sample.transcript_length} chars)"
        )

    typer.echo(f"Short transcripts (< 50 chars): {len(health.short_transcripts)}")
    for sample in health.short_transcripts:
        typer.echo(f"  - {sample.answer_id}: {sample.transcript_length} chars \"{sample.transcript}\"")

    typer.echo(f"Transcripts with control characters: {len(health.control_characters)}")
    for sample in health.control_characters:
        typer.echo(f"  - {sample.answer_id} (interview {sample.interview_id})")

    typer.echo(f"Recent backups in {container.backup().directory}: {backups.files_analyzed} files")
    typer.echo(f"  Successful: {backups.succeeded}")
    typer.echo(f"  Failed:     {backups.failed}")
    for message, count in backups.error_patterns.items():
        typer.echo(f"  - \"{message}\": {count} times")

    typer.echo("Recommendations:")
    if health.unevaluated:
        typer.echo("  - Evaluate pending answers with `hrevaluation retry-failed`")
    if health.short_transcripts:
        typer.echo("  - Very short transcripts may evaluate poorly; consider filtering answers under 50 characters")
    if health.control_characters:
        typer.echo("  - Control characters are cleaned automatically by retry-failed")
    if not (health.unevaluated or health.short_transcripts or health.control_characters):
        typer.echo("  - Nothing to do")


@app.command()
def models() -> None:
    """List known evaluation models."""
    for info in MODEL_CATALOG.values():
        marker = "*" if info.recommended else " "
        typer.echo(f"{marker} {info.model_id:<40} {info.provider:<12} {info.context_window:>9,}")
    typer.echo("* recommended")


def _settings(ctx: typer.Context) -> AppConfig:
    config_path = (ctx.obj or {}).get("config_path")
    try:
        return load_settings(config_path)
    except (ValidationError, ValueError) as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _pipeline(ctx: typer.Context) -> EvaluationPipeline:
    settings = _settings(ctx)
    try:
        require_ready(settings)
    except ConfigError as exc:
        _fail_config(exc)
    return create_container(settings).pipeline()


def _run(call) -> RunSummary:
    try:
        return call()
    except EvaluationError as exc:
        typer.echo(f"Evaluation failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _fail_config(exc: ConfigError) -> NoReturn:
    typer.echo("Configuration error:", err=True)
    for problem in exc.problems:
        typer.echo(f"  - {problem}", err=True)
    raise typer.Exit(code=1)


def _report(summary: RunSummary) -> None:
    stats = summary.stats
    typer.echo(f"Evaluation summary ({summary.scope}, model {summary.model_id}):")
    typer.echo(f"  Total items:       {stats.total_items}")
    typer.echo(f"  Processed:         {stats.processed}")
    typer.echo(f"  Skipped:           {stats.skipped} ({stats.incomplete} incomplete)")
    typer.echo(f"  Errors:            {stats.errors}")
    typer.echo(f"  Rate limit errors: {stats.rate_limit_errors}")
    typer.echo(f"  Other errors:      {stats.other_errors}")
    typer.echo(f"  Requests:          {stats.requests} ({summary.requests_last_minute} in the last minute)")
    typer.echo(f"  Error rate:        {stats.error_rate * 100:.1f}%")
    typer.echo(f"  Final delay:       {summary.final_delay_ms}ms")

    if stats.rate_limit_errors:
        typer.echo("Rate limits were hit during this run. Consider:")
        typer.echo(f"  - raising RATE_LIMIT_DELAY above {summary.final_delay_ms}ms")
        typer.echo("  - switching to a model with a higher quota (see `hrevaluation models`)")

    if summary.failed:
        typer.echo(f"Evaluation run failed: {summary.verdict.reason}", err=True)
        raise typer.Exit(code=summary.exit_code)
    typer.echo("Evaluation run completed.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
