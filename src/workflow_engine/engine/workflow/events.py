from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class TriggerEvent:
    """A request to run a trigger now.

    Event sources decide when a trigger fires; the engine only runs it.
    """

    trigger_id: str
    context: dict[str, object] = field(default_factory=dict)
    event_type: str | None = None
    resource_id: str | None = None

    def metadata(self) -> dict[str, object]:
        out: dict[str, object] = {}
        if self.event_type is not None:
            out["event_type"] = self.event_type
        if self.resource_id is not None:
            out["resource_id"] = self.resource_id
        return out
