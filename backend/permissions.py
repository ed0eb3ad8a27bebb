"""
Role-derived display color, labels and event permissions.

This is the only module that branches on an actor's account type; views and
dialogs ask it rather than comparing roles themselves. A denial is returned
as data (a reason string) for the UI to show, never raised.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from .config import ColorsConfig, LabelsConfig
from .event_model import AccountType, Actor, Event, TargetRole, ALL_TARGET_ROLES


_DEFAULT_COLORS = ColorsConfig()
_DEFAULT_LABELS = LabelsConfig()

# Display order for labels; color priority is the reverse
ROLE_ORDER = (TargetRole.ANIMATOR, TargetRole.COORDINATOR, TargetRole.DIRECTOR)


@dataclass(frozen=True)
class EventPermissions:
    can_view: bool
    can_edit: bool
    can_delete: bool
    can_add_participants: bool
    denied_reason: Optional[str] = None


def role_color(role: TargetRole, colors: Optional[ColorsConfig] = None) -> str:
    colors = colors or _DEFAULT_COLORS
    return getattr(colors, role.value)


def display_color(target_roles: Iterable[TargetRole], colors: Optional[ColorsConfig] = None) -> str:
    """Color of the highest-priority role present: director, then coordinator, then animator."""
    roles = set(target_roles)
    for role in reversed(ROLE_ORDER):
        if role in roles:
            return role_color(role, colors)
    return role_color(TargetRole.ANIMATOR, colors)


def single_role_label(role: TargetRole, labels: Optional[LabelsConfig] = None) -> str:
    labels = labels or _DEFAULT_LABELS
    return getattr(labels, f"role_{role.value}")


def role_label(target_roles: Iterable[TargetRole], labels: Optional[LabelsConfig] = None) -> str:
    """'All' when every role is targeted, otherwise the role labels in display order."""
    labels = labels or _DEFAULT_LABELS
    roles = set(target_roles)
    if roles >= ALL_TARGET_ROLES:
        return labels.role_all
    return ", ".join(single_role_label(r, labels) for r in ROLE_ORDER if r in roles)


def _actor_role_as_target(actor: Actor) -> Optional[TargetRole]:
    if actor.role == AccountType.ANIMATOR:
        return TargetRole.ANIMATOR
    elif actor.role == AccountType.COORDINATOR:
        return TargetRole.COORDINATOR
    elif actor.role == AccountType.DIRECTOR:
        return TargetRole.DIRECTOR
    return None


def can_view(event: Event, actor: Optional[Actor]) -> bool:
    """Visible to targeted roles, to the creator, and to admins."""
    if actor is None:
        return False
    if actor.role == AccountType.ADMIN:
        return True
    if event.created_by is not None and event.created_by == actor.user_id:
        return True
    return _actor_role_as_target(actor) in event.target_roles


def can_edit(event: Event, actor: Optional[Actor]) -> bool:
    """
    Admins, coordinators and directors may edit any event.

    An animator may only edit an event they created whose targets are
    exactly {animator}.
    """
    if actor is None:
        return False
    if actor.role in (AccountType.ADMIN, AccountType.COORDINATOR, AccountType.DIRECTOR):
        return True
    elif actor.role == AccountType.ANIMATOR:
        return (
            event.created_by == actor.user_id
            and event.target_roles == frozenset({TargetRole.ANIMATOR})
        )
    return False


def can_delete(event: Event, actor: Optional[Actor]) -> bool:
    # No delete-only grant exists
    return can_edit(event, actor)


def get_permission_denied_reason(event: Event, actor: Optional[Actor],
                                 labels: Optional[LabelsConfig] = None) -> Optional[str]:
    """Human-readable reason the actor may not edit the event, or None if they may."""
    if can_edit(event, actor):
        return None

    labels = labels or _DEFAULT_LABELS
    if actor is not None and actor.role == AccountType.ANIMATOR:
        other_roles = [r for r in ROLE_ORDER if r in event.target_roles and r != TargetRole.ANIMATOR]
        if other_roles:
            names = " and ".join(single_role_label(r, labels) for r in other_roles)
            return labels.denied_other_roles.format(names)
        return labels.denied_not_creator

    return labels.denied_generic


def event_permissions(event: Event, actor: Optional[Actor],
                      labels: Optional[LabelsConfig] = None) -> EventPermissions:
    """All permission answers for one event, as consumed by the event dialog."""
    editable = can_edit(event, actor)
    return EventPermissions(
        can_view=can_view(event, actor),
        can_edit=editable,
        can_delete=can_delete(event, actor),
        can_add_participants=editable,
        denied_reason=get_permission_denied_reason(event, actor, labels),
    )
