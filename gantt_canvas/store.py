"""In-memory project store: the single owner of tasks, scopes and settings.

Every mutation funnels through ``Project._commit`` which notifies the
subscribed listeners exactly once. Listeners receive a ``preview`` flag;
preview commits come from live drags and only the chart needs to redraw
for them.
"""
from __future__ import annotations

from dataclasses import fields, replace
from datetime import date
from typing import Any, Callable, Iterable, List, Optional

from . import colors
from .logger import get_logger
from .models import (
    BAR_NONE,
    BAR_SOLID,
    PIN_END,
    PIN_START,
    STATUS_COMPLETE,
    STATUS_IN_PROGRESS,
    STATUS_NOT_STARTED,
    ActivityMilestone,
    MilestoneType,
    Scope,
    Segment,
    Task,
    new_id,
)
from .settings import DEFAULT_SCOPE_PALETTE, DisplaySettings, TimeScale, default_ms_types
from .timeline import add_days

log = get_logger("store")

ChangeListener = Callable[[bool], None]

_DEFAULT_TASK_DAYS = 7


def _apply_changes(target: Any, changes: dict) -> None:
    allowed = {item.name for item in fields(target)}
    for key, value in changes.items():
        if key not in allowed:
            log.warning("Ignoring unknown %s field %r", type(target).__name__, key)
            continue
        setattr(target, key, value)


class Project:
    """Ordered task list plus the catalogs the chart reads."""

    def __init__(
        self,
        tasks: Optional[Iterable[Task]] = None,
        scopes: Optional[Iterable[Scope]] = None,
        ms_types: Optional[Iterable[MilestoneType]] = None,
        settings: Optional[DisplaySettings] = None,
    ) -> None:
        self.tasks: List[Task] = list(tasks or [])
        self.scopes: List[Scope] = list(scopes or [])
        self.ms_types: List[MilestoneType] = list(ms_types) if ms_types is not None else default_ms_types()
        self.settings = settings or DisplaySettings()
        self.selected_id: Optional[str] = self.tasks[0].id if self.tasks else None
        self._listeners: List[ChangeListener] = []

    # --- Change notification -------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _commit(self, reason: str, *, preview: bool = False) -> None:
        log.debug("%s%s", reason, " (preview)" if preview else "")
        for listener in list(self._listeners):
            listener(preview)

    # --- Reads -----------------------------------------------------------------

    def get_task(self, task_id: Optional[str]) -> Optional[Task]:
        if not task_id:
            return None
        return next((task for task in self.tasks if task.id == task_id), None)

    def index_of(self, task_id: str) -> int:
        for index, task in enumerate(self.tasks):
            if task.id == task_id:
                return index
        return -1

    def regular_tasks(self) -> List[Task]:
        return [task for task in self.tasks if not task.is_milestone]

    def standalone_milestones(self) -> List[Task]:
        return [task for task in self.tasks if task.is_milestone]

    def linked_milestones(self, task_id: str) -> List[Task]:
        return [task for task in self.tasks if task.is_milestone and task.linked_task_id == task_id]

    def scope_by_id(self, scope_id: str) -> Optional[Scope]:
        return colors.find_scope(self.scopes, scope_id)

    def scope_color(self, scope_id: str) -> str:
        return colors.scope_color(self.scopes, scope_id)

    def task_color(self, task: Task) -> str:
        return colors.task_color(task, self.scopes)

    def ms_type(self, type_key: str) -> Optional[MilestoneType]:
        return next((entry for entry in self.ms_types if entry.type == type_key), None)

    # --- Selection -------------------------------------------------------------

    def select(self, entity_id: Optional[str]) -> None:
        if entity_id == self.selected_id:
            return
        self.selected_id = entity_id
        self._commit(f"select {entity_id}", preview=True)

    # --- Tasks -----------------------------------------------------------------

    def create_task(self, **overrides: Any) -> Task:
        """Build (but do not insert) a task with the usual defaults."""
        today = date.today()
        last_regular = next((task for task in reversed(self.tasks) if not task.is_milestone), None)
        values: dict = {
            "id": new_id("t"),
            "name": "New Task",
            "start": today,
            "end": add_days(today, _DEFAULT_TASK_DAYS),
            "scope": last_regular.scope if last_regular else "",
        }
        values.update(overrides)
        task = Task(**values)
        task.sync_milestone_end()
        return task

    def add_task(self, **overrides: Any) -> Task:
        task = self.create_task(**overrides)
        self.tasks.append(task)
        self.selected_id = task.id
        self._commit(f"add task {task.id}")
        return task

    def add_milestone(self, **overrides: Any) -> Task:
        today = overrides.pop("start", date.today())
        values = {"name": "Milestone", "start": today, "end": today, "is_milestone": True, "scope": ""}
        values.update(overrides)
        return self.add_task(**values)

    def update_task(self, task_id: str, *, preview: bool = False, **changes: Any) -> None:
        task = self.get_task(task_id)
        if task is None:
            log.debug("update_task: unknown task %s", task_id)
            return
        _apply_changes(task, changes)
        if "start" in changes and "end" not in changes:
            task.sync_milestone_end()
        if "start" in changes or "end" in changes:
            task.apply_pins()
        self._commit(f"update task {task_id}", preview=preview)

    def delete_task(self, task_id: str) -> None:
        if self.get_task(task_id) is None:
            return
        self.tasks = [task for task in self.tasks if task.id != task_id]
        for task in self.tasks:
            if task.linked_task_id == task_id:
                task.linked_task_id = ""
        if self.selected_id == task_id:
            self.selected_id = self.tasks[0].id if self.tasks else None
        self._commit(f"delete task {task_id}")

    def move_task(self, task_id: str, direction: str) -> None:
        """Swap a task with its neighbour (``direction`` is ``up`` or ``down``)."""
        index = self.index_of(task_id)
        if index < 0:
            return
        target = index - 1 if direction == "up" else index + 1
        if target < 0 or target >= len(self.tasks):
            return
        self.tasks[index], self.tasks[target] = self.tasks[target], self.tasks[index]
        self._commit(f"move task {task_id} {direction}")

    def reorder_task(self, from_index: int, to_index: int) -> None:
        count = len(self.tasks)
        if from_index == to_index or not (0 <= from_index < count) or not (0 <= to_index < count):
            return
        task = self.tasks.pop(from_index)
        self.tasks.insert(to_index, task)
        self._commit(f"reorder task {task.id} {from_index}->{to_index}")

    # --- Segments --------------------------------------------------------------

    def _segment(self, task_id: str, index: int) -> Optional[Segment]:
        task = self.get_task(task_id)
        if task is None or not 0 <= index < len(task.segments):
            return None
        return task.segments[index]

    def add_segment(self, task_id: str) -> Optional[Segment]:
        task = self.get_task(task_id)
        if task is None or task.is_milestone:
            return None
        last_end = task.segments[-1].end if task.segments else task.end
        segment = Segment(
            id=new_id("seg"),
            start=add_days(last_end, 1),
            end=add_days(last_end, _DEFAULT_TASK_DAYS),
            bar_style=task.bar_style if task.has_bar else BAR_SOLID,
        )
        task.segments.append(segment)
        self._commit(f"add segment {segment.id} to {task_id}")
        return segment

    def update_segment(self, task_id: str, index: int, *, preview: bool = False, **changes: Any) -> None:
        segment = self._segment(task_id, index)
        if segment is None:
            return
        _apply_changes(segment, changes)
        self._commit(f"update segment {task_id}[{index}]", preview=preview)

    def remove_segment(self, task_id: str, index: int) -> None:
        task = self.get_task(task_id)
        if task is None or not 0 <= index < len(task.segments):
            return
        del task.segments[index]
        self._commit(f"remove segment {task_id}[{index}]")

    def move_segment_to_task(self, from_task_id: str, index: int, to_task_id: str) -> None:
        """Transfer segment ownership: removed from the source, appended to the target."""
        source = self.get_task(from_task_id)
        target = self.get_task(to_task_id)
        if source is None or target is None or target.is_milestone or source is target:
            return
        if not 0 <= index < len(source.segments):
            return
        target.segments.append(source.segments.pop(index))
        self._commit(f"move segment {from_task_id}[{index}] -> {to_task_id}")

    def move_bar_to_task(self, from_task_id: str, to_task_id: str) -> Optional[Segment]:
        """Turn a task's primary bar into a segment of another task.

        The source keeps its row and metadata but its bar style becomes
        ``none``.
        """
        source = self.get_task(from_task_id)
        target = self.get_task(to_task_id)
        if source is None or target is None or source is target:
            return None
        if source.is_milestone or target.is_milestone:
            return None
        segment = Segment(
            id=new_id("seg"),
            name=source.name,
            start=source.start,
            end=source.end,
            bar_style=source.bar_style if source.has_bar else BAR_SOLID,
            color=source.color,
            scope=source.scope,
            status=source.status,
            comment=source.comment,
        )
        target.segments.append(segment)
        source.bar_style = BAR_NONE
        self._commit(f"move bar {from_task_id} -> {to_task_id}")
        return segment

    # --- Activity milestones ---------------------------------------------------

    def add_activity_milestone(
        self, task_id: str, type_key: str, day: Optional[date] = None
    ) -> Optional[ActivityMilestone]:
        task = self.get_task(task_id)
        if task is None or task.is_milestone:
            return None
        milestone = ActivityMilestone(type=type_key, date=day or task.end, label=type_key)
        task.milestones.append(milestone)
        self._commit(f"add activity milestone {type_key} to {task_id}")
        return milestone

    def update_activity_milestone(
        self, task_id: str, index: int, *, preview: bool = False, **changes: Any
    ) -> None:
        task = self.get_task(task_id)
        if task is None or not 0 <= index < len(task.milestones):
            return
        milestone = task.milestones[index]
        _apply_changes(milestone, changes)
        if changes.get("pin") == PIN_START:
            milestone.date = task.start
        elif changes.get("pin") == PIN_END:
            milestone.date = task.end
        self._commit(f"update activity milestone {task_id}[{index}]", preview=preview)

    def remove_activity_milestone(self, task_id: str, index: int) -> None:
        task = self.get_task(task_id)
        if task is None or not 0 <= index < len(task.milestones):
            return
        del task.milestones[index]
        self._commit(f"remove activity milestone {task_id}[{index}]")

    # --- Scopes, catalog, settings ---------------------------------------------

    def next_scope_color(self) -> str:
        return DEFAULT_SCOPE_PALETTE[len(self.scopes) % len(DEFAULT_SCOPE_PALETTE)]

    def add_scope(self, name: str = "New Scope", color: str = "", description: str = "") -> Scope:
        scope = Scope(id=new_id("sc"), name=name or "New Scope", color=color or self.next_scope_color(),
                      description=description)
        self.scopes.append(scope)
        self._commit(f"add scope {scope.id}")
        return scope

    def update_scope(self, scope_id: str, **changes: Any) -> None:
        scope = self.scope_by_id(scope_id)
        if scope is None:
            return
        _apply_changes(scope, changes)
        self._commit(f"update scope {scope_id}")

    def delete_scope(self, scope_id: str) -> None:
        """Remove a scope; tasks and segments keep existing without it."""
        self.scopes = [scope for scope in self.scopes if scope.id != scope_id]
        for task in self.tasks:
            if task.scope == scope_id:
                task.scope = ""
            for segment in task.segments:
                if segment.scope == scope_id:
                    segment.scope = ""
        self._commit(f"delete scope {scope_id}")

    def add_ms_type(self, type_key: str, label: str, color: str = "") -> MilestoneType:
        entry = MilestoneType(type=type_key, label=label, color=color or colors.DEFAULT_ACTIVITY_MS_COLOR)
        self.ms_types.append(entry)
        self._commit(f"add milestone type {type_key}")
        return entry

    def update_settings(self, **changes: Any) -> None:
        time_scale = changes.pop("time_scale", None)
        if isinstance(time_scale, dict):
            time_scale = replace(self.settings.time_scale, **time_scale)
        if isinstance(time_scale, TimeScale):
            self.settings.time_scale = time_scale
        _apply_changes(self.settings, changes)
        self._commit("update settings")

    # --- Bulk ------------------------------------------------------------------

    def set_data(
        self,
        tasks: Iterable[Task],
        scopes: Iterable[Scope] = (),
        ms_types: Optional[Iterable[MilestoneType]] = None,
        settings: Optional[DisplaySettings] = None,
    ) -> None:
        self.tasks = list(tasks)
        self.scopes = list(scopes)
        self.ms_types = list(ms_types) if ms_types is not None else default_ms_types()
        self.settings = settings or DisplaySettings()
        self.selected_id = self.tasks[0].id if self.tasks else None
        self._commit(f"set data ({len(self.tasks)} tasks)")

    def load_sample(self, today: Optional[date] = None) -> None:
        """Replace the project with a small M&A-style demo plan."""
        base = add_days(today or date.today(), -35)

        def day(offset: int) -> date:
            return add_days(base, offset)

        def task(task_id: str, name: str, start: int, end: int, scope: str, status: str, **extra: Any) -> Task:
            return Task(id=task_id, name=name, start=day(start), end=day(end), scope=scope, status=status, **extra)

        def pinned(type_key: str, offset: int, pin: str, done: bool = False) -> ActivityMilestone:
            return ActivityMilestone(type=type_key, date=day(offset), label=type_key, done=done, pin=pin)

        def milestone(ms_id: str, name: str, offset: int, linked: str = "", status: str = STATUS_NOT_STARTED) -> Task:
            return Task(id=ms_id, name=name, start=day(offset), end=day(offset), status=status,
                        is_milestone=True, linked_task_id=linked)

        scopes = [
            Scope("sc_mkt", "Marketing", "#388E3C", "Market positioning and outreach"),
            Scope("sc_vdd", "Valuation & DD", "#1565C0", "Valuation, due diligence, analysis"),
            Scope("sc_neg", "Negotiation & Closing", "#880E4F", "Deal negotiation and closing"),
        ]
        tasks = [
            task("t1", "Teaser sent", 0, 6, "sc_mkt", STATUS_COMPLETE, progress=100),
            task("t2", "NDA signed", 14, 20, "sc_mkt", STATUS_COMPLETE, progress=100,
                 milestones=[pinned("FA", 20, PIN_END, done=True)]),
            task("t3", "CIM sent", 14, 27, "sc_mkt", STATUS_COMPLETE, progress=100,
                 milestones=[pinned("IA", 14, PIN_START, done=True)]),
            task("t4", "Calls with Management", 28, 42, "sc_vdd", STATUS_COMPLETE, progress=100,
                 bar_style="hatched",
                 segments=[Segment(id="seg1", start=day(45), end=day(48), bar_style="hatched")]),
            task("t5", "Financial Model & Valuation", 35, 55, "sc_vdd", STATUS_COMPLETE, progress=100,
                 milestones=[pinned("IA", 35, PIN_START, done=True), pinned("FA", 55, PIN_END)]),
            task("t6", "Expression of Interest", 42, 52, "sc_vdd", STATUS_COMPLETE, progress=100),
            task("t7", "Data Room Access", 42, 62, "sc_vdd", STATUS_IN_PROGRESS, progress=60,
                 comment="1 week delay", milestones=[pinned("TL", 62, PIN_END)]),
            task("t8", "Mgmt Meetings", 49, 69, "sc_vdd", STATUS_IN_PROGRESS, progress=50,
                 comment="3 of 6 done", bar_style="hatched"),
            task("t9", "Final Due Diligence", 56, 76, "sc_vdd", STATUS_IN_PROGRESS, progress=20,
                 comment="Delay", bar_style="dashed", milestones=[pinned("FA", 76, PIN_END)]),
            task("t10", "Quality of Earnings", 77, 90, "sc_neg", STATUS_NOT_STARTED),
            task("t11", "Definitive Agreements", 84, 104, "sc_neg", STATUS_NOT_STARTED,
                 milestones=[pinned("TL", 104, PIN_END)]),
            task("t12", "Shareholders' Agreement", 91, 97, "sc_neg", STATUS_NOT_STARTED),
            milestone("ms1", "CIM reviewed", 30, linked="t3", status=STATUS_COMPLETE),
            milestone("ms2", "Non-Binding Offer", 50, linked="t6"),
            milestone("ms3", "Letter of Intent", 70),
            milestone("ms4", "Agreements signed", 98),
        ]
        self.set_data(tasks, scopes, default_ms_types(), DisplaySettings())
