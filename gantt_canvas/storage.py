"""JSON persistence helpers.

Files use the same camelCase document as the browser version of the
tool: ``{"tasks": [...], "scopes": [...], "msTypes": [...], "settings": {...}}``.
A bare list is the older v2 export where tasks carried a free-text
``phase``; those are migrated to scopes on load.
"""
from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from .logger import get_logger
from .models import (
    BAR_SOLID,
    BAR_STYLES,
    PIN_MODES,
    STATUS_NOT_STARTED,
    STATUSES,
    ActivityMilestone,
    MilestoneType,
    Scope,
    Segment,
    Task,
    new_id,
)
from .settings import DEFAULT_SCOPE_PALETTE, DisplaySettings, TimeScale, default_ms_types
from .store import Project

log = get_logger("storage")


class ProjectFormatError(ValueError):
    """Raised when a file is not a recognizable project document."""


def save_project(path: Path | str, project: Project) -> None:
    """Persist the project as pretty-printed JSON."""
    json_path = Path(path)
    json_path.parent.mkdir(parents=True, exist_ok=True)
    with json_path.open("w", encoding="utf-8") as handle:
        json.dump(project_to_dict(project), handle, indent=2, ensure_ascii=False)
    log.info("Saved %d tasks to %s", len(project.tasks), json_path)


def load_project(path: Path | str) -> Project:
    """Load a project file, migrating the legacy list format if needed."""
    json_path = Path(path)
    try:
        with json_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ProjectFormatError(f"Invalid project file {json_path}: {exc}") from exc
    project = project_from_data(data)
    log.info("Loaded %d tasks from %s", len(project.tasks), json_path)
    return project


# --- Serialization ------------------------------------------------------------


def project_to_dict(project: Project) -> Dict[str, Any]:
    return {
        "tasks": [_task_to_dict(task) for task in project.tasks],
        "scopes": [
            {"id": scope.id, "name": scope.name, "color": scope.color, "description": scope.description}
            for scope in project.scopes
        ],
        "msTypes": [{"type": entry.type, "label": entry.label, "color": entry.color} for entry in project.ms_types],
        "settings": _settings_to_dict(project.settings),
    }


def _task_to_dict(task: Task) -> Dict[str, Any]:
    return {
        "id": task.id,
        "name": task.name,
        "start": task.start.isoformat(),
        "end": task.end.isoformat(),
        "scope": task.scope,
        "status": task.status,
        "barStyle": task.bar_style,
        "color": task.color,
        "isMilestone": task.is_milestone,
        "linkedTaskId": task.linked_task_id,
        "comment": task.comment,
        "progress": task.progress,
        "segments": [
            {
                "id": segment.id,
                "name": segment.name,
                "start": segment.start.isoformat(),
                "end": segment.end.isoformat(),
                "barStyle": segment.bar_style,
                "color": segment.color,
                "scope": segment.scope,
                "status": segment.status,
                "comment": segment.comment,
            }
            for segment in task.segments
        ],
        "milestones": [
            {
                "type": milestone.type,
                "date": milestone.date.isoformat(),
                "label": milestone.label,
                "color": milestone.color,
                "done": milestone.done,
                "pin": milestone.pin,
            }
            for milestone in task.milestones
        ],
    }


def _settings_to_dict(settings: DisplaySettings) -> Dict[str, Any]:
    scale = settings.time_scale
    return {
        "dateFormat": settings.date_format,
        "showToday": settings.show_today,
        "showMsDates": settings.show_ms_dates,
        "showLegend": settings.show_legend,
        "msColor": settings.ms_color,
        "timeScale": {
            "showYears": scale.show_years,
            "showMonths": scale.show_months,
            "showWeeks": scale.show_weeks,
        },
        "presetMsColors": list(settings.preset_ms_colors),
    }


# --- Deserialization ----------------------------------------------------------


def project_from_data(data: Any) -> Project:
    """Build a project from a decoded JSON document."""
    if isinstance(data, list):
        return _migrate_v2(data)
    if not isinstance(data, dict) or not isinstance(data.get("tasks", []), list):
        raise ProjectFormatError("Project file must be an object with a 'tasks' list")

    tasks = _parse_tasks(data.get("tasks", []))
    scopes = [scope for scope in (_parse_scope(raw) for raw in data.get("scopes") or []) if scope]
    ms_types: Optional[List[MilestoneType]] = None
    if data.get("msTypes") is not None:
        ms_types = [entry for entry in (_parse_ms_type(raw) for raw in data["msTypes"]) if entry]
    settings_raw = data.get("settings")
    settings = _parse_settings(settings_raw if isinstance(settings_raw, dict) else {})
    return Project(tasks, scopes, ms_types, settings)


def _migrate_v2(rows: List[Any]) -> Project:
    scopes_by_name: Dict[str, Scope] = {}
    for raw in rows:
        if not isinstance(raw, dict):
            continue
        name = raw.get("phase") or raw.get("scope")
        if name and name not in scopes_by_name:
            color = DEFAULT_SCOPE_PALETTE[len(scopes_by_name) % len(DEFAULT_SCOPE_PALETTE)]
            scopes_by_name[name] = Scope(id=new_id("sc"), name=str(name), color=color)

    migrated = []
    for raw in rows:
        if not isinstance(raw, dict):
            continue
        name = raw.get("phase") or raw.get("scope") or ""
        scope = scopes_by_name.get(name)
        migrated.append({**raw, "scope": scope.id if scope else ""})
    log.info("Migrated legacy project: %d tasks, %d scopes", len(migrated), len(scopes_by_name))
    return Project(_parse_tasks(migrated), list(scopes_by_name.values()), default_ms_types(), DisplaySettings())


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def _choice(value: Any, allowed, default):
    return value if value in allowed else default


def _parse_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _parse_tasks(rows: List[Any]) -> List[Task]:
    tasks: List[Task] = []
    for raw in rows:
        task = _parse_task(raw)
        if task is None:
            log.warning("Skipping malformed task entry: %r", raw)
            continue
        tasks.append(task)
    return tasks


def _parse_task(raw: Any) -> Optional[Task]:
    if not isinstance(raw, dict):
        return None
    start = _parse_date(raw.get("start"))
    if start is None:
        return None
    end = _parse_date(raw.get("end")) or start
    is_milestone = bool(raw.get("isMilestone", False))
    task = Task(
        id=str(raw.get("id") or new_id("t")),
        name=str(raw.get("name", "")),
        start=start,
        end=max(start, end),
        scope=str(raw.get("scope") or ""),
        status=_choice(raw.get("status"), STATUSES, STATUS_NOT_STARTED),
        bar_style=_choice(raw.get("barStyle"), BAR_STYLES, BAR_SOLID),
        color=str(raw.get("color") or ""),
        is_milestone=is_milestone,
        linked_task_id=str(raw.get("linkedTaskId") or ""),
        comment=str(raw.get("comment") or ""),
        progress=_parse_int(raw.get("progress")),
    )
    for seg_raw in raw.get("segments") or []:
        segment = _parse_segment(seg_raw)
        if segment is None:
            log.warning("Skipping malformed segment on task %s", task.id)
            continue
        task.segments.append(segment)
    for ms_raw in raw.get("milestones") or []:
        milestone = _parse_activity_milestone(ms_raw)
        if milestone is None:
            log.warning("Skipping malformed activity milestone on task %s", task.id)
            continue
        task.milestones.append(milestone)
    task.sync_milestone_end()
    task.apply_pins()
    return task


def _parse_segment(raw: Any) -> Optional[Segment]:
    if not isinstance(raw, dict):
        return None
    start = _parse_date(raw.get("start"))
    if start is None:
        return None
    segment = Segment(
        id=str(raw.get("id") or new_id("seg")),
        start=start,
        end=_parse_date(raw.get("end")) or start,
        name=str(raw.get("name") or ""),
        bar_style=_choice(raw.get("barStyle"), BAR_STYLES, BAR_SOLID),
        color=str(raw.get("color") or ""),
        scope=str(raw.get("scope") or ""),
        status=_choice(raw.get("status"), STATUSES, STATUS_NOT_STARTED),
        comment=str(raw.get("comment") or ""),
    )
    segment.clamp_range()
    return segment


def _parse_activity_milestone(raw: Any) -> Optional[ActivityMilestone]:
    if not isinstance(raw, dict) or not raw.get("type"):
        return None
    day = _parse_date(raw.get("date"))
    if day is None:
        return None
    return ActivityMilestone(
        type=str(raw["type"]),
        date=day,
        label=str(raw.get("label") or ""),
        color=str(raw.get("color") or ""),
        done=bool(raw.get("done", False)),
        pin=_choice(raw.get("pin") or None, PIN_MODES, None),
    )


def _parse_scope(raw: Any) -> Optional[Scope]:
    if not isinstance(raw, dict) or not raw.get("id"):
        log.warning("Skipping malformed scope entry: %r", raw)
        return None
    return Scope(
        id=str(raw["id"]),
        name=str(raw.get("name", "")),
        color=str(raw.get("color") or DEFAULT_SCOPE_PALETTE[0]),
        description=str(raw.get("description") or ""),
    )


def _parse_ms_type(raw: Any) -> Optional[MilestoneType]:
    if not isinstance(raw, dict) or not raw.get("type"):
        log.warning("Skipping malformed milestone type entry: %r", raw)
        return None
    return MilestoneType(type=str(raw["type"]), label=str(raw.get("label") or raw["type"]), color=str(raw.get("color") or ""))


def _parse_settings(raw: Dict[str, Any]) -> DisplaySettings:
    defaults = DisplaySettings()
    scale_raw = raw.get("timeScale") or {}
    return DisplaySettings(
        date_format=str(raw.get("dateFormat") or defaults.date_format),
        show_today=bool(raw.get("showToday", defaults.show_today)),
        show_ms_dates=bool(raw.get("showMsDates", defaults.show_ms_dates)),
        show_legend=bool(raw.get("showLegend", defaults.show_legend)),
        ms_color=str(raw.get("msColor") or defaults.ms_color),
        time_scale=TimeScale(
            show_years=bool(scale_raw.get("showYears", True)),
            show_months=bool(scale_raw.get("showMonths", True)),
            show_weeks=bool(scale_raw.get("showWeeks", True)),
        ),
        preset_ms_colors=list(raw.get("presetMsColors") or defaults.preset_ms_colors),
    )
