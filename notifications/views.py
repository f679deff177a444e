from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from core.exceptions import ValidationError
from core.responses import success

from .models import Notification
from .serializers import NotificationSerializer


class MyNotificationsView(APIView):
    """
    GET /api/notifications/me/
    GET /api/notifications/me/?unread=true
    POST /api/notifications/me/   {ids: [...]} marks read
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        unread_only = request.query_params.get("unread")
        qs = Notification.objects.filter(user=request.user)

        if unread_only and unread_only.lower() in ("1", "true", "yes"):
            qs = qs.filter(is_read=False)

        serializer = NotificationSerializer(qs[:100], many=True)
        return success(serializer.data)

    def post(self, request):
        """
        Mark notifications as read.

        Body:
        {
          "ids": [1, 2, 3]   # or omit/empty to mark all as read
        }
        """
        ids = request.data.get("ids")
        if ids is not None and not isinstance(ids, list):
            raise ValidationError({"ids": ["Must be a list of notification ids."]})

        qs = Notification.objects.filter(user=request.user, is_read=False)
        if ids:
            qs = qs.filter(id__in=ids)

        updated = qs.update(is_read=True)
        return success({"marked_read": updated})
