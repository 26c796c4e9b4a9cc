"""Version state definitions and transition map.

Versions only move forward. Going back to editing means a new draft row,
never regressing an existing one.
"""

from __future__ import annotations

from prohub.errors import StateConflict
from prohub.models.enums import ServiceVersionState

# Transition map: {current_state: {trigger_name: next_state}}
TRANSITIONS: dict[ServiceVersionState, dict[str, ServiceVersionState]] = {
    ServiceVersionState.DRAFT: {
        "submit": ServiceVersionState.SUBMITTED,
        "publish": ServiceVersionState.PUBLISHED,   # shortcut used by the console
    },
    ServiceVersionState.SUBMITTED: {
        "approve": ServiceVersionState.APPROVED,
        "publish": ServiceVersionState.PUBLISHED,
    },
    ServiceVersionState.APPROVED: {
        "publish": ServiceVersionState.PUBLISHED,
    },
    ServiceVersionState.PUBLISHED: {
        "archive": ServiceVersionState.ARCHIVED,    # superseded by a newer publish
    },
    ServiceVersionState.ARCHIVED: {},
}

# Only drafts accept content writes
EDITABLE_STATES: frozenset[ServiceVersionState] = frozenset({ServiceVersionState.DRAFT})

# Versions that have been live at some point — rollback targets
RESTORABLE_STATES: frozenset[ServiceVersionState] = frozenset({
    ServiceVersionState.PUBLISHED,
    ServiceVersionState.ARCHIVED,
})


def next_state(current: ServiceVersionState | str, trigger: str) -> ServiceVersionState:
    """Resolve a trigger from the current state.

    Raises:
        StateConflict: If the trigger is not valid from the current state.
    """
    state = ServiceVersionState(current)
    transitions = TRANSITIONS[state]
    if trigger not in transitions:
        msg = f"Cannot {trigger} a version in state '{state.value}'"
        raise StateConflict(
            msg,
            context={"state": state.value, "trigger": trigger, "valid": sorted(transitions)},
        )
    return transitions[trigger]
