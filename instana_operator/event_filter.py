"""Filtering of watch events to cut chatter from status-only updates."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from instana_operator.agent import InstanaAgent

FIELD_OWNER_NAME = "instana-agent-operator"


@dataclass(frozen=True)
class ManagedFieldsEntry:
    """Record of which manager last touched a set of fields, and when."""

    manager: str
    time: datetime | None = None
    operation: str = ""


@dataclass
class WatchedObject:
    """A dependent object seen by the watch: its generation and managed fields."""

    name: str = ""
    namespace: str = ""
    generation: int = 0
    managed_fields: list[ManagedFieldsEntry] = field(default_factory=list)


def was_modified_by_other(object_new: WatchedObject, object_old: WatchedObject) -> bool:
    """True when a manager other than the operator changed the object after it did."""
    last_by_self = next(
        (
            entry.time
            for entry in object_new.managed_fields
            if entry.manager == FIELD_OWNER_NAME and entry.time is not None
        ),
        None,
    )
    if last_by_self is None:
        return True

    for entry in object_new.managed_fields:
        if entry.manager == FIELD_OWNER_NAME:
            continue
        if entry.time is None:
            if entry not in object_old.managed_fields:
                return True
        elif last_by_self < entry.time:
            return True
    return False


class EventFilter:
    """Decides which create, update and delete events trigger a reconcile."""

    def create(self, obj: object) -> bool:
        return isinstance(obj, InstanaAgent)

    def update(self, object_old: object, object_new: object) -> bool:
        if isinstance(object_old, InstanaAgent):
            return object_old.metadata.generation != object_new.metadata.generation
        return was_modified_by_other(object_new, object_old)

    def delete(self, obj: object, delete_state_unknown: bool) -> bool:
        if isinstance(obj, InstanaAgent):
            return not delete_state_unknown
        return True