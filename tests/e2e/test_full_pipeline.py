"""End-to-end tests for the analytics pipeline on a small serialized novel."""

import json
from datetime import datetime, timedelta, timezone

from click.testing import CliRunner

from novel_factory.cli import cli
from novel_factory.continuity import (
    build_story_state_summary,
    format_story_state_summary,
    get_open_plot_points,
    get_validation_summary,
    validate_plot_thread_resolution,
)
from novel_factory.evaluation import analyze_hero_journey, analyze_prose_quality, analyze_story_structure
from novel_factory.models import Chapter, NovelState
from novel_factory.patterns import JsonPatternStore, RecurringPatternDetector


def test_analyzers_cover_every_chapter(sample_state):
    prose = analyze_prose_quality(sample_state)
    assert len(prose.prose_qualities) == 8
    assert 0 <= prose.overall_prose_score <= 100

    structure = analyze_story_structure(sample_state)
    assert structure.total_chapters == 8
    assert 0 <= structure.overall_structure_score <= 100

    journey = analyze_hero_journey(sample_state)
    assert len(journey.stages) + len(journey.missing_stages) == 12


def test_story_state_for_next_chapter(sample_state):
    summary = build_story_state_summary(sample_state)

    thread_types = {t.thread_type for t in summary.active_plot_threads}
    assert {"meeting", "pursuit", "checklist"} <= thread_types
    assert summary.active_plot_threads[0].priority == "high"

    text = format_story_state_summary(summary)
    assert "ACTIVE PLOT THREADS:" in text
    assert "Han Li" in text

    points = get_open_plot_points(sample_state)
    assert any(p.id == "checklist-trials-herb" for p in points.high_priority)
    assert "HIGH PRIORITY:" in points.formatted_context


def test_validation_catches_dropped_threads(sample_state):
    new_chapter = Chapter(id="ch9", number=9, content="Snow drifted down as Han Li set out alone.")
    result = validate_plot_thread_resolution(sample_state, new_chapter)

    assert not result.is_valid
    assert "critical_thread_ignored" in {e.type for e in result.errors}
    warning_types = {w.type for w in result.warnings}
    assert "missing_character" in warning_types
    assert "overdue_promise" in warning_types
    assert "Validation status: FAILED" in get_validation_summary(result)


def test_validate_cli_on_saved_state(tmp_path, sample_state_file):
    chapter = tmp_path / "ch9.txt"
    chapter.write_text("Snow drifted down as Han Li set out alone.", encoding="utf-8")

    result = CliRunner().invoke(
        cli, ['-c', str(tmp_path / "none.yaml"), 'validate', str(sample_state_file), str(chapter), '-n', '9']
    )
    assert result.exit_code == 1
    assert NovelState.from_file(sample_state_file).chapters[6].title == "Arrangements"


def test_recurring_patterns_across_reports(tmp_path, editorial_reports):
    path = tmp_path / "patterns.json"
    now = [datetime(2026, 3, 1, tzinfo=timezone.utc)]
    detector = RecurringPatternDetector(JsonPatternStore(path), clock=lambda: now[0])

    results = []
    for report_number, report in enumerate(editorial_reports):
        results.append(detector.detect_recurring_patterns(report, "azure-sky", f"report-{report_number}"))
        now[0] += timedelta(days=1)

    assert results[1].detected_patterns == []
    [detected] = results[2].detected_patterns
    assert detected.id == "pattern-time_skip-start"
    assert detected.pattern_description == "unexplained time skips at chapter start (6 occurrences)"

    reopened = RecurringPatternDetector(JsonPatternStore(path), clock=lambda: now[0] + timedelta(days=40))
    stats = reopened.get_pattern_statistics()
    assert stats.total_patterns == 2
    assert stats.patterns_above_threshold == 1
    assert reopened.auto_resolve_stale_patterns() == 2
    assert reopened.get_active_patterns() == []

    data = json.loads(path.read_text(encoding="utf-8"))
    assert len(data["occurrences"]) == 9
    assert all(p["resolved_at"] for p in data["patterns"])


def test_patterns_cli_detect(tmp_path, issues_file):
    result = CliRunner().invoke(cli, [
        '-c', str(tmp_path / "none.yaml"),
        'patterns', '--store', str(tmp_path / "store.json"),
        'detect', str(issues_file), '--novel-id', 'azure-sky',
    ])
    assert result.exit_code == 0, result.output
    assert "NEW:" not in result.output
