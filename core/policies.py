# core/policies.py
"""
Centralized Policy Layer

Every ownership / capability check of the marketplace lives here.
Services call `authorize(actor, action, resource)` before mutating
anything; views never compare ids themselves.
"""
from django.utils.translation import gettext_lazy as _

from .exceptions import Forbidden, Unauthorized


def is_staff(user) -> bool:
    """System-level moderator (Django staff/superuser or role=admin)."""
    if not user or not user.is_authenticated:
        return False
    return user.is_staff or user.is_superuser or getattr(user, "role", None) == "admin"


def _is_project_owner(user, project) -> bool:
    return project is not None and project.client_id == user.id


def _is_bid_owner(user, bid) -> bool:
    return bid is not None and bid.freelancer_id == user.id


def _is_project_participant(user, project) -> bool:
    return project.client_id == user.id or (
        project.freelancer_id is not None and project.freelancer_id == user.id
    )


# ─────────────────────────────────────────────────────────────
# Rules: action -> predicate(actor, resource) -> bool
# ─────────────────────────────────────────────────────────────

RULES = {
    # Projects (resource: Project)
    "project.update": _is_project_owner,
    "project.change_status": _is_project_owner,
    "project.delete": _is_project_owner,
    "project.complete": _is_project_owner,
    "project.view_hidden": lambda u, p: _is_project_owner(u, p) or is_staff(u),

    # Bids (resource: Project for submit, Bid otherwise)
    "bid.submit": lambda u, p: not _is_project_owner(u, p),
    "bid.view": lambda u, b: _is_bid_owner(u, b) or _is_project_owner(u, b.project) or is_staff(u),
    "bid.edit": _is_bid_owner,
    "bid.withdraw": _is_bid_owner,
    "bid.reject": lambda u, b: _is_project_owner(u, b.project),
    "bid.accept": lambda u, b: _is_project_owner(u, b.project),

    # Reviews (resource: Project for create/verify, Review for reply)
    "review.create": _is_project_participant,
    "review.reply": lambda u, r: r.reviewee_id == u.id,
    "review.verify": lambda u, p: _is_project_participant(u, p) or is_staff(u),

    # Chat (resource: iterable of participant ids)
    "chat.participate": lambda u, participants: u.id in participants,

    # Moderation queue
    "moderation.decide": lambda u, _resource: is_staff(u),
}

DENY_MESSAGES = {
    "project.update": _("Only the project owner can edit this project."),
    "project.change_status": _("Only the project owner can change its status."),
    "project.delete": _("Only the project owner can delete this project."),
    "project.complete": _("Only the project owner can complete this project."),
    "bid.submit": _("You cannot bid on your own project."),
    "bid.edit": _("Only the author of the bid can edit it."),
    "bid.withdraw": _("Only the author of the bid can withdraw it."),
    "bid.reject": _("Only the project owner can reject bids."),
    "bid.accept": _("Only the project owner can accept bids."),
    "review.create": _("Only project participants can leave reviews."),
    "review.reply": _("Only the reviewed user can reply to a review."),
    "chat.participate": _("You are not a participant of this conversation."),
}


def can(actor, action: str, resource=None) -> bool:
    """Pure capability check, no side effects."""
    if not actor or not actor.is_authenticated:
        return False
    try:
        rule = RULES[action]
    except KeyError:
        raise ValueError(f"Unknown policy action: {action}")
    return bool(rule(actor, resource))


def authorize(actor, action: str, resource=None):
    """Raise Unauthorized/Forbidden unless `actor` may perform `action` on `resource`."""
    if not actor or not actor.is_authenticated:
        raise Unauthorized()
    if not can(actor, action, resource):
        raise Forbidden(DENY_MESSAGES.get(action))
