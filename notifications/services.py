# notifications/services.py
import logging

from django.db import DatabaseError

from .models import Notification

logger = logging.getLogger("market.notifications")


def notify(user, type, title, body="", project=None, bid=None):
    """
    Create an in-app notification.

    Delivery is a side effect: failures are logged and never propagate
    into the operation that triggered them.
    """
    if user is None:
        return None
    try:
        return Notification.objects.create(
            user=user,
            type=type,
            title=str(title)[:255],
            body=str(body),
            project=project,
            bid=bid,
        )
    except DatabaseError as e:
        logger.error(f"Failed to create notification type={type} user={getattr(user, 'id', None)}: {e}")
        return None
