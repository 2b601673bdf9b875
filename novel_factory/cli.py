import json
from pathlib import Path

import click
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import AnalyticsConfig
from .continuity import (
    build_story_state_summary,
    format_story_state_summary,
    get_open_plot_points,
    get_validation_summary,
    validate_plot_thread_resolution,
)
from .evaluation import analyze_hero_journey, analyze_prose_quality, analyze_story_structure
from .exceptions import NovelFactoryError
from .models import Chapter, NovelState
from .patterns import JsonPatternStore, RecurringPatternDetector
from .utils.logger import setup_logger


@click.group()
@click.option('--config', '-c', type=click.Path(), default='config.yaml',
              help='Path to configuration file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx: click.Context, config: str, verbose: bool):
    """Novel Factory - narrative analytics for serialized fiction."""
    ctx.ensure_object(dict)

    config_path = Path(config)
    if config_path.exists():
        try:
            ctx.obj['config'] = AnalyticsConfig.from_yaml(config_path)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            raise click.ClickException(f"Invalid config {config_path}: {e}")
    else:
        ctx.obj['config'] = AnalyticsConfig()

    log_level = "DEBUG" if verbose else ctx.obj['config'].log_level
    logger = setup_logger(log_level, ctx.obj['config'].log_file)
    ctx.obj['logger'] = logger

    logger.debug(f"Novel Factory v{__version__}")
    if config_path.exists():
        logger.info(f"Config loaded from: {config_path}")


def _load_state(ctx: click.Context, path: str) -> NovelState:
    try:
        return NovelState.from_file(path)
    except NovelFactoryError as e:
        ctx.obj['logger'].error(f"Loading novel state failed: {e}")
        raise click.ClickException(str(e))


def _echo_json(model):
    click.echo(model.model_dump_json(indent=2))


def _recommendations(console: Console, recommendations):
    if recommendations:
        console.print("\n[bold]Recommendations[/bold]")
        for rec in recommendations:
            console.print(f"- {rec}")


@cli.command()
@click.argument('state', type=click.Path(exists=True))
@click.option('--json', 'as_json', is_flag=True, help='Print the analysis as JSON')
@click.pass_context
def prose(ctx: click.Context, state: str, as_json: bool):
    """Score prose quality per chapter."""
    config = ctx.obj['config']
    result = analyze_prose_quality(_load_state(ctx, state), config.prose, config.style)
    if as_json:
        _echo_json(result)
        return

    console = Console()
    table = Table(title="Prose quality by chapter")
    for column in ("Chapter", "Variety", "Vocabulary", "Readability", "Show %", "Rhythm", "Cadence"):
        table.add_column(column)
    for quality in result.prose_qualities:
        table.add_row(
            quality.chapter_id,
            f"{quality.sentence_variety_score:.0f}",
            f"{quality.vocabulary_sophistication:.0f}",
            f"{quality.flesch_kincaid_score:.0f}",
            f"{quality.show_tell_balance:.0f}",
            f"{quality.rhythm_score:.0f}",
            quality.cadence_pattern,
        )
    console.print(table)
    console.print(result.summary())
    _recommendations(console, result.recommendations)


@cli.command()
@click.argument('state', type=click.Path(exists=True))
@click.option('--json', 'as_json', is_flag=True, help='Print the analysis as JSON')
@click.pass_context
def structure(ctx: click.Context, state: str, as_json: bool):
    """Analyze three-act structure and story beats."""
    result = analyze_story_structure(_load_state(ctx, state))
    if as_json:
        _echo_json(result)
        return

    console = Console()
    console.print(result.summary())
    _recommendations(console, result.recommendations)


@cli.command()
@click.argument('state', type=click.Path(exists=True))
@click.option('--json', 'as_json', is_flag=True, help='Print the analysis as JSON')
@click.pass_context
def journey(ctx: click.Context, state: str, as_json: bool):
    """Track the protagonist's hero's journey."""
    result = analyze_hero_journey(_load_state(ctx, state))
    if as_json:
        _echo_json(result)
        return

    console = Console()
    table = Table(
        title=f"Hero's journey ({result.completion_percentage:.0f}% complete, "
              f"score {result.overall_journey_score:.0f})"
    )
    for column in ("Stage", "Name", "Chapter", "Quality"):
        table.add_column(column)
    for stage in result.stages:
        table.add_row(
            str(stage.stage_number),
            stage.stage_name,
            str(stage.chapter_number),
            f"{stage.quality_score:.0f}",
        )
    console.print(table)
    _recommendations(console, result.recommendations)


@cli.command()
@click.argument('state', type=click.Path(exists=True))
@click.option('--json', 'as_json', is_flag=True, help='Print the summary as JSON')
@click.pass_context
def threads(ctx: click.Context, state: str, as_json: bool):
    """Summarize character states and active plot threads."""
    config = ctx.obj['config']
    summary = build_story_state_summary(_load_state(ctx, state), config.continuity)
    if as_json:
        _echo_json(summary)
    else:
        click.echo(format_story_state_summary(summary))


@cli.command('open-points')
@click.argument('state', type=click.Path(exists=True))
@click.option('--json', 'as_json', is_flag=True, help='Print the plot points as JSON')
@click.pass_context
def open_points(ctx: click.Context, state: str, as_json: bool):
    """List unresolved storylines by priority."""
    config = ctx.obj['config']
    context = get_open_plot_points(_load_state(ctx, state), config.continuity)
    if as_json:
        _echo_json(context)
    else:
        click.echo(context.formatted_context)


@cli.command()
@click.argument('state', type=click.Path(exists=True))
@click.argument('chapter_file', type=click.Path(exists=True))
@click.option('--number', '-n', type=int, required=True, help='Chapter number')
@click.option('--title', '-t', default='', help='Chapter title')
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON')
@click.pass_context
def validate(ctx: click.Context, state: str, chapter_file: str, number: int, title: str, as_json: bool):
    """Check a new chapter against open threads, promises and characters."""
    config = ctx.obj['config']
    novel = _load_state(ctx, state)
    chapter_path = Path(chapter_file)
    chapter = Chapter(
        id=chapter_path.stem,
        number=number,
        title=title,
        content=chapter_path.read_text(encoding='utf-8'),
    )

    result = validate_plot_thread_resolution(novel, chapter, config.continuity)
    if as_json:
        _echo_json(result)
    else:
        click.echo(get_validation_summary(result))
    if not result.is_valid:
        ctx.exit(1)


@cli.group()
@click.option('--store', '-s', type=click.Path(), help='Override pattern store file')
@click.pass_context
def patterns(ctx: click.Context, store: str):
    """Track recurring editorial issues."""
    config = ctx.obj['config']
    store_path = Path(store) if store else config.patterns.store_path
    if store_path is None:
        raise click.ClickException("No pattern store configured; pass --store or set patterns.store_path")

    try:
        ctx.obj['detector'] = RecurringPatternDetector(
            JsonPatternStore(store_path), config=config.patterns
        )
    except NovelFactoryError as e:
        ctx.obj['logger'].error(f"Opening pattern store failed: {e}")
        raise click.ClickException(str(e))


@patterns.command()
@click.argument('issues_file', type=click.Path(exists=True))
@click.option('--novel-id', required=True, help='Novel the issues belong to')
@click.option('--report-id', help='Editorial report the issues came from')
@click.pass_context
def detect(ctx: click.Context, issues_file: str, novel_id: str, report_id: str):
    """Record editor issues from a JSON file."""
    logger = ctx.obj['logger']
    try:
        with open(issues_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Reading issues failed: {e}")
        raise click.ClickException(str(e))

    issues = data.get('issues', []) if isinstance(data, dict) else data
    result = ctx.obj['detector'].detect_recurring_patterns(issues, novel_id, report_id)
    logger.success(f"Recorded {result.occurrence_count} occurrences")
    for pattern in result.detected_patterns:
        click.echo(f"NEW: {pattern.pattern_description}")
    for pattern in result.updated_patterns:
        click.echo(f"RECURRING: {pattern.pattern_description}")


@patterns.command()
@click.pass_context
def sweep(ctx: click.Context):
    """Resolve patterns that have gone stale."""
    resolved = ctx.obj['detector'].auto_resolve_stale_patterns()
    click.echo(f"Resolved {resolved} stale pattern(s)")


@patterns.command()
@click.option('--json', 'as_json', is_flag=True, help='Print statistics as JSON')
@click.pass_context
def stats(ctx: click.Context, as_json: bool):
    """Show recurring pattern statistics."""
    detector = ctx.obj['detector']
    statistics = detector.get_pattern_statistics()
    if as_json:
        _echo_json(statistics)
        return

    console = Console()
    console.print(
        f"Patterns: {statistics.total_patterns} total, {statistics.active_patterns} active, "
        f"{statistics.resolved_patterns} resolved, "
        f"{statistics.patterns_above_threshold} above threshold"
    )
    table = Table(title="Recurring patterns")
    for column in ("ID", "Description", "Count", "Active"):
        table.add_column(column)
    for pattern in detector.get_all_patterns():
        table.add_row(
            pattern.id,
            pattern.pattern_description,
            f"{pattern.occurrence_count}/{pattern.threshold_count}",
            "yes" if pattern.is_active else "no",
        )
    console.print(table)


@patterns.command()
@click.argument('pattern_id')
@click.option('--reactivate', is_flag=True, help='Reactivate instead of resolving')
@click.pass_context
def resolve(ctx: click.Context, pattern_id: str, reactivate: bool):
    """Resolve (or reactivate) a pattern by id."""
    detector = ctx.obj['detector']
    try:
        if reactivate:
            detector.reactivate_pattern(pattern_id)
        else:
            detector.mark_pattern_resolved(pattern_id)
    except NovelFactoryError as e:
        raise click.ClickException(str(e))
    click.echo(f"Pattern {pattern_id} {'reactivated' if reactivate else 'resolved'}")


def main():
    cli()


if __name__ == '__main__':
    main()
