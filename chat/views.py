from django.utils.translation import gettext_lazy as _
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from core.exceptions import ValidationError
from core.responses import created, success
from core.serializers import parse_input
from core.supabase_client import get_storage

from .serializers import MessageInputSerializer, MessageSerializer, ReactionInputSerializer
from .services import ChatService, direct_room


def get_chat_service():
    return ChatService(storage=get_storage())


class RoomMessagesMixin:
    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    throttle_scope = "chat-post"

    def get_room(self, request, **kwargs):
        raise NotImplementedError

    def get_throttles(self):
        # Only posting is throttled
        if self.request.method != "POST":
            return []
        return super().get_throttles()

    def get(self, request, **kwargs):
        messages = get_chat_service().list_messages(request.user, self.get_room(request, **kwargs))
        return success(MessageSerializer(messages, many=True).data)

    def post(self, request, **kwargs):
        data = parse_input(MessageInputSerializer, request.data)
        message = get_chat_service().post_message(
            request.user,
            self.get_room(request, **kwargs),
            type=data["type"],
            content=data.get("content", ""),
            file=request.FILES.get("file"),
            attachment_url=data.get("attachment_url", ""),
        )
        return created(MessageSerializer(message).data)


class BidMessagesView(RoomMessagesMixin, APIView):
    """
    GET  /api/bids/<bid_id>/messages/   oldest first
    POST /api/bids/<bid_id>/messages/   {type, content?, attachmentUrl?} + optional file
    """

    def get_room(self, request, bid_id):
        return f"bid-{bid_id}"


class DirectMessagesView(RoomMessagesMixin, APIView):
    """GET|POST /api/chat/direct/<user_id>/"""

    def get_room(self, request, user_id):
        if int(user_id) == request.user.id:
            raise ValidationError({"user_id": [str(_("You cannot message yourself."))]})
        return direct_room(request.user.id, user_id)


class RoomReadView(APIView):
    """POST /api/chat/rooms/<room>/read/ marks messages addressed to the caller"""
    permission_classes = [IsAuthenticated]

    def post(self, request, room):
        updated = get_chat_service().mark_read(request.user, room)
        return success({"marked_read": updated})


class MessageReactionView(APIView):
    """POST /api/chat/messages/<id>/reactions/ {emoji}"""
    permission_classes = [IsAuthenticated]

    def post(self, request, message_id):
        data = parse_input(ReactionInputSerializer, request.data)
        message = get_chat_service().react(request.user, message_id, data["emoji"])
        return success(MessageSerializer(message).data)
