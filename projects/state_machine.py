# projects/state_machine.py
"""
Project status lifecycle.

draft ──→ pending ──→ published ──→ in_progress ──→ completed
  │          │            │              │
  └──────────┴────────────┴──→ cancelled ←┘
                               └──→ published (re-open)

A cancelled project that already has a freelancer cannot be re-opened.

completed and deleted are terminal. "deleted" is only ever set by the
delete operation's fallback, never through a status change.
"""
import logging
from typing import Tuple

from django.utils.translation import gettext_lazy as _

from core.exceptions import InvalidState, ValidationError

from .models import Project

logger = logging.getLogger('market.projects')


VALID_TRANSITIONS = {
    Project.STATUS_DRAFT: [Project.STATUS_PENDING, Project.STATUS_PUBLISHED, Project.STATUS_CANCELLED],
    Project.STATUS_PENDING: [Project.STATUS_PUBLISHED, Project.STATUS_DRAFT, Project.STATUS_CANCELLED],
    Project.STATUS_PUBLISHED: [Project.STATUS_IN_PROGRESS, Project.STATUS_CANCELLED],
    Project.STATUS_IN_PROGRESS: [Project.STATUS_COMPLETED, Project.STATUS_CANCELLED],
    Project.STATUS_CANCELLED: [Project.STATUS_PUBLISHED],  # explicit re-open
    Project.STATUS_COMPLETED: [],
    Project.STATUS_DELETED: [],
}

# Statuses a client may request directly via PATCH
PATCHABLE_STATUSES = (
    Project.STATUS_DRAFT,
    Project.STATUS_PUBLISHED,
    Project.STATUS_PENDING,
    Project.STATUS_COMPLETED,
    Project.STATUS_CANCELLED,
)


def can_transition(project: Project, new_status: str) -> Tuple[bool, str]:
    """
    Check if a project can transition to a new status.

    Returns (can_transition: bool, reason: str)
    """
    current_status = project.status

    if new_status == current_status:
        return True, "Same status"

    if new_status not in dict(Project.STATUS_CHOICES):
        return False, f"Invalid status: {new_status}"

    allowed = VALID_TRANSITIONS.get(current_status, [])

    if new_status not in allowed:
        return False, f"Cannot transition from '{current_status}' to '{new_status}'"

    if current_status == Project.STATUS_CANCELLED and project.freelancer_id:
        return False, "A project that was already awarded cannot be re-opened"

    return True, ""


def ensure_transition(project: Project, new_status: str, actor=None):
    """Raise ValidationError / InvalidState unless the PATCH transition is allowed."""
    if new_status not in PATCHABLE_STATUSES:
        raise ValidationError({
            'status': [str(_("Status must be one of: %(allowed)s")) % {'allowed': ", ".join(PATCHABLE_STATUSES)}]
        })

    allowed, reason = can_transition(project, new_status)
    if not allowed:
        logger.warning(
            f"Invalid state transition attempted: project={project.id}, "
            f"from={project.status}, to={new_status}, actor={getattr(actor, 'id', 'unknown')}. "
            f"Reason: {reason}"
        )
        raise InvalidState(reason)


def is_terminal_status(status: str) -> bool:
    return not VALID_TRANSITIONS.get(status)


def is_open_for_bids(project: Project) -> bool:
    return project.status == Project.STATUS_PUBLISHED
