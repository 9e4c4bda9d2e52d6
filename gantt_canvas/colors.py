"""Color normalization and the color resolution rules shared by both renderers."""
from __future__ import annotations

import re
from typing import Iterable, Optional

from .models import ActivityMilestone, MilestoneType, Scope, Segment, Task
from .settings import DisplaySettings


DEFAULT_BAR_COLOR = "#1565C0"
DEFAULT_SCOPE_COLOR = "#607D8B"
DEFAULT_ACTIVITY_MS_COLOR = "#607D8B"
DEFAULT_STANDALONE_MS_COLOR = "#37474F"
COMPLETE_COLOR = "#2E7D32"

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{3})$")


def _parse_hex(value: Optional[str]) -> Optional[str]:
    match = _HEX_RE.match((value or "").strip())
    if not match:
        return None
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return digits.upper()


def normalize_hex(value: Optional[str], default: str = DEFAULT_BAR_COLOR) -> str:
    """Return ``RRGGBB`` (upper case, no ``#``) or the normalized ``default``."""
    return _parse_hex(value) or _parse_hex(default) or DEFAULT_BAR_COLOR.lstrip("#")


def css_hex(value: Optional[str], default: str = DEFAULT_BAR_COLOR) -> str:
    """Same as ``normalize_hex`` but with the leading ``#``."""
    return "#" + normalize_hex(value, default)


def find_scope(scopes: Iterable[Scope], scope_id: str) -> Optional[Scope]:
    if not scope_id:
        return None
    return next((scope for scope in scopes if scope.id == scope_id), None)


def scope_color(scopes: Iterable[Scope], scope_id: str) -> str:
    scope = find_scope(scopes, scope_id)
    return scope.color if scope else DEFAULT_SCOPE_COLOR


def task_color(task: Task, scopes: Iterable[Scope]) -> str:
    """Override color, then scope color, then the default bar color."""
    if task.color:
        return task.color
    if task.scope:
        return scope_color(scopes, task.scope)
    return DEFAULT_BAR_COLOR


def segment_color(segment: Segment, parent_color: str, scopes: Iterable[Scope]) -> str:
    if segment.color:
        return segment.color
    scope = find_scope(scopes, segment.scope)
    if scope is not None:
        return scope.color
    return parent_color


def activity_milestone_color(
    milestone: ActivityMilestone,
    ms_types: Iterable[MilestoneType],
    settings: DisplaySettings,
) -> str:
    if milestone.done:
        return COMPLETE_COLOR
    if milestone.color:
        return milestone.color
    catalog = next((entry for entry in ms_types if entry.type == milestone.type), None)
    if catalog is not None and catalog.color:
        return catalog.color
    return settings.ms_color or DEFAULT_ACTIVITY_MS_COLOR


def standalone_milestone_color(milestone: Task, settings: DisplaySettings) -> str:
    if milestone.is_complete:
        return COMPLETE_COLOR
    return milestone.color or settings.ms_color or DEFAULT_STANDALONE_MS_COLOR
