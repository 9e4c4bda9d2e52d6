"""Data models shared across the Gantt application."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional


STATUS_NOT_STARTED = "not-started"
STATUS_IN_PROGRESS = "in-progress"
STATUS_COMPLETE = "complete"
STATUSES = (STATUS_NOT_STARTED, STATUS_IN_PROGRESS, STATUS_COMPLETE)

BAR_SOLID = "solid"
BAR_HATCHED = "hatched"
BAR_DASHED = "dashed"
BAR_NONE = "none"
BAR_STYLES = (BAR_SOLID, BAR_HATCHED, BAR_DASHED, BAR_NONE)
SEGMENT_BAR_STYLES = (BAR_SOLID, BAR_HATCHED, BAR_DASHED)

PIN_FIXED = "fixed"
PIN_START = "start"
PIN_END = "end"
PIN_MODES = (None, PIN_FIXED, PIN_START, PIN_END)


def new_id(prefix: str = "id") -> str:
    """Return a short unique identifier such as ``t_1a2b3c4d``."""
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


@dataclass
class Scope:
    """Named, colored grouping tag shared by tasks and segments."""

    id: str
    name: str
    color: str
    description: str = ""


@dataclass
class MilestoneType:
    """Catalog entry used to label and color activity milestones."""

    type: str
    label: str
    color: str


@dataclass
class Segment:
    """Secondary bar owned by a task."""

    id: str
    start: date
    end: date
    name: str = ""
    bar_style: str = BAR_SOLID
    color: str = ""
    scope: str = ""
    status: str = STATUS_NOT_STARTED
    comment: str = ""

    def clamp_range(self) -> None:
        if self.end < self.start:
            self.end = self.start


@dataclass
class ActivityMilestone:
    """Point-in-time marker riding on its parent task's lane."""

    type: str
    date: date
    label: str = ""
    color: str = ""
    done: bool = False
    pin: Optional[str] = None

    @property
    def display_label(self) -> str:
        return self.label or self.type

    @property
    def is_draggable(self) -> bool:
        # fixed pins lock the date against dragging; only manual markers move
        return not self.pin


@dataclass
class Task:
    """A task row, or a standalone milestone when ``is_milestone`` is set."""

    id: str
    name: str
    start: date
    end: date
    scope: str = ""
    status: str = STATUS_NOT_STARTED
    bar_style: str = BAR_SOLID
    color: str = ""
    is_milestone: bool = False
    linked_task_id: str = ""
    segments: List[Segment] = field(default_factory=list)
    milestones: List[ActivityMilestone] = field(default_factory=list)
    comment: str = ""
    progress: int = 0

    @property
    def has_bar(self) -> bool:
        return self.bar_style != BAR_NONE

    @property
    def is_complete(self) -> bool:
        return self.status == STATUS_COMPLETE

    def sync_milestone_end(self) -> None:
        """Standalone milestones are single-day entities."""
        if self.is_milestone:
            self.end = self.start

    def apply_pins(self) -> None:
        """Snap pinned activity milestones to the current start/end dates."""
        for milestone in self.milestones:
            if milestone.pin == PIN_START:
                milestone.date = self.start
            elif milestone.pin == PIN_END:
                milestone.date = self.end

    def distance_to(self, day: date) -> int:
        """Whole days between ``day`` and this task's range (0 when inside)."""
        if day < self.start:
            return (self.start - day).days
        if day > self.end:
            return (day - self.end).days
        return 0
