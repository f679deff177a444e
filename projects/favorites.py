# projects/favorites.py
"""Favorites: a (user, project) bookmark, toggled on and off idempotently."""
import logging

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from core.exceptions import NotFound
from core.policies import can

from .models import Favorite, Project

logger = logging.getLogger("market.projects")


def toggle_favorite(user, project_id, make_favorite: bool) -> bool:
    """Returns the resulting state (True = favorited)."""
    if not make_favorite:
        deleted, _detail = Favorite.objects.filter(user=user, project_id=project_id).delete()
        if deleted:
            logger.info(f"Favorite removed: user={user.id}, project={project_id}")
        return False

    project = Project.objects.exclude(status=Project.STATUS_DELETED).filter(pk=project_id).first()
    if project is None:
        raise NotFound(_("Project not found."))
    if project.status in Project.HIDDEN_STATUSES and not can(user, "project.view_hidden", project):
        raise NotFound(_("Project not found."))

    try:
        with transaction.atomic():
            _favorite, created = Favorite.objects.get_or_create(user=user, project_id=project_id)
    except IntegrityError:
        # Lost a race with a concurrent toggle-on; the row exists either way
        created = False
    if created:
        logger.info(f"Favorite added: user={user.id}, project={project_id}")
    return True


def check_favorite(user, project_id) -> bool:
    return Favorite.objects.filter(user=user, project_id=project_id).exists()


def list_favorites(user):
    return (
        Favorite.objects.filter(user=user)
        .exclude(project__status=Project.STATUS_DELETED)
        .exclude(Q(project__status__in=Project.HIDDEN_STATUSES) & ~Q(project__client=user))
        .select_related("project", "project__client")
    )
