import json
import logging
from datetime import date
from pathlib import Path

import pytest

from gantt_canvas.settings import DisplaySettings, default_ms_types
from gantt_canvas.storage import ProjectFormatError, load_project, save_project
from gantt_canvas.store import Project


def test_save_and_load_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "plan.json"
    project = Project()
    project.load_sample(date(2024, 6, 1))
    project.update_settings(date_format="YYYY-MM-DD", time_scale={"show_years": False})

    save_project(path, project)
    loaded = load_project(path)

    assert loaded.tasks == project.tasks
    assert loaded.scopes == project.scopes
    assert loaded.ms_types == project.ms_types
    assert loaded.settings == project.settings
    assert loaded.selected_id == "t1"


def test_saved_file_uses_camel_case_keys(tmp_path: Path) -> None:
    path = tmp_path / "plan.json"
    project = Project()
    project.load_sample(date(2024, 6, 1))

    save_project(path, project)
    data = json.loads(path.read_text(encoding="utf-8"))

    assert set(data) == {"tasks", "scopes", "msTypes", "settings"}
    first = data["tasks"][0]
    assert first["barStyle"] == "solid"
    assert first["isMilestone"] is False
    assert data["tasks"][12]["linkedTaskId"] == "t3"
    assert data["settings"]["timeScale"] == {"showYears": True, "showMonths": True, "showWeeks": True}
    assert first["start"] == "2024-04-27"


def test_load_browser_export_with_missing_optional_fields(tmp_path: Path) -> None:
    path = tmp_path / "browser.json"
    path.write_text(
        json.dumps(
            {
                "tasks": [
                    {"id": "a", "name": "Kickoff", "start": "2024-01-01", "end": "2024-01-05"},
                    {"id": "m", "name": "Gate", "start": "2024-01-09", "end": "2024-01-20", "isMilestone": True},
                ],
                "settings": {"showToday": False},
            }
        ),
        encoding="utf-8",
    )

    loaded = load_project(path)

    task, milestone = loaded.tasks
    assert (task.status, task.bar_style, task.segments) == ("not-started", "solid", [])
    assert milestone.end == milestone.start == date(2024, 1, 9)
    assert loaded.ms_types == default_ms_types()
    assert loaded.settings == DisplaySettings(show_today=False)


def test_legacy_list_is_migrated_to_scopes(tmp_path: Path) -> None:
    path = tmp_path / "legacy.json"
    path.write_text(
        json.dumps(
            [
                {"id": "a", "name": "Research", "start": "2024-01-01", "end": "2024-01-05", "phase": "Discovery"},
                {"id": "b", "name": "Build", "start": "2024-01-06", "end": "2024-01-20", "phase": "Delivery"},
                {"id": "c", "name": "Review", "start": "2024-01-08", "end": "2024-01-09", "phase": "Discovery"},
                {"id": "d", "name": "Loose", "start": "2024-01-08", "end": "2024-01-09"},
            ]
        ),
        encoding="utf-8",
    )

    loaded = load_project(path)

    assert [scope.name for scope in loaded.scopes] == ["Discovery", "Delivery"]
    assert [scope.color for scope in loaded.scopes] == ["#388E3C", "#1565C0"]
    discovery = loaded.scopes[0].id
    assert [task.scope for task in loaded.tasks] == [discovery, loaded.scopes[1].id, discovery, ""]


def test_malformed_entries_are_skipped_with_warning(tmp_path: Path, caplog) -> None:
    path = tmp_path / "partial.json"
    path.write_text(
        json.dumps(
            {
                "tasks": [
                    {"id": "a", "name": "No dates"},
                    "garbage",
                    {
                        "id": "b",
                        "name": "Ok",
                        "start": "2024-01-01",
                        "end": "2024-01-03",
                        "segments": [{"id": "s"}],
                        "milestones": [{"type": "IA", "date": "2024-01-02", "pin": "sideways"}],
                    },
                ]
            }
        ),
        encoding="utf-8",
    )

    with caplog.at_level(logging.WARNING, logger="gantt_canvas"):
        loaded = load_project(path)

    (task,) = loaded.tasks
    assert task.id == "b"
    assert task.segments == []
    assert task.milestones[0].pin is None
    assert "Skipping malformed task" in caplog.text


@pytest.mark.parametrize("content", ["not json", "42", '{"tasks": "nope"}'])
def test_unrecognized_documents_raise(tmp_path: Path, content: str) -> None:
    path = tmp_path / "bad.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ProjectFormatError):
        load_project(path)


def test_format_error_is_a_value_error() -> None:
    assert issubclass(ProjectFormatError, ValueError)
