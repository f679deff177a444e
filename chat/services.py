# chat/services.py
"""Messaging relay: per-bid and direct threads, read flags, emoji reactions."""
import logging
import re
from dataclasses import dataclass
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils.translation import gettext, gettext_lazy as _

from bids.models import Bid
from core import sanitizers
from core.conf import market_setting
from core.exceptions import NotFound, ValidationError
from core.policies import authorize
from core.supabase_client import StorageError, build_object_name, get_storage
from notifications.models import Notification
from notifications.services import notify

from .models import Message

logger = logging.getLogger("market.chat")

User = get_user_model()

ROOM_PATTERN = re.compile(r"^(?:bid-(?P<bid>\d+)|dm-(?P<a>\d+)-(?P<b>\d+))$")
MAX_MESSAGE_LENGTH = 4000
MAX_EMOJI_LENGTH = 16


def bid_room(bid) -> str:
    return f"bid-{bid.pk}"


def direct_room(user_a_id, user_b_id) -> str:
    low, high = sorted((int(user_a_id), int(user_b_id)))
    return f"dm-{low}-{high}"


@dataclass
class Room:
    key: str
    participants: frozenset
    bid: Optional[Bid] = None

    def other(self, user_id):
        others = [p for p in self.participants if p != user_id]
        return others[0] if others else None


class ChatService:
    def __init__(self, storage=None):
        self._storage = storage

    @property
    def storage(self):
        if self._storage is None:
            self._storage = get_storage()
        return self._storage

    def resolve_room(self, key: str) -> Room:
        match = ROOM_PATTERN.match(key or "")
        if not match:
            raise NotFound(_("Conversation not found."))

        if match.group("bid"):
            bid = Bid.objects.select_related("project").filter(pk=match.group("bid")).first()
            if bid is None:
                raise NotFound(_("Conversation not found."))
            return Room(key, frozenset({bid.freelancer_id, bid.project.client_id}), bid=bid)

        a, b = int(match.group("a")), int(match.group("b"))
        if a >= b or User.objects.filter(pk__in=(a, b)).count() != 2:
            raise NotFound(_("Conversation not found."))
        return Room(key, frozenset({a, b}))

    def post_message(self, sender, room_key, type=Message.TYPE_TEXT, content="", file=None, attachment_url="") -> Message:
        room = self.resolve_room(room_key)
        authorize(sender, "chat.participate", room.participants)

        errors = {}
        content = sanitizers.sanitize_text(content, max_length=MAX_MESSAGE_LENGTH)
        attachment_url = sanitizers.sanitize_text(attachment_url, max_length=1024)
        if type not in dict(Message.TYPE_CHOICES):
            errors["type"] = [str(_("Unknown message type."))]
        elif type == Message.TYPE_TEXT and not content:
            errors["content"] = [str(_("Message text is required."))]
        elif type != Message.TYPE_TEXT and not (file or attachment_url):
            errors["file"] = [str(_("An attachment is required for this message type."))]
        if file is not None and file.size and file.size > market_setting("MAX_UPLOAD_BYTES"):
            errors["file"] = [str(_("The attachment is too large."))]
        if errors:
            raise ValidationError(errors)

        if file is not None:
            path = build_object_name(f"chat/{room.key}", file.name)
            try:
                attachment_url = self.storage.upload(path, file.read(), getattr(file, "content_type", None))
            except StorageError as e:
                logger.warning(f"Chat attachment upload failed: room={room.key}, file={file.name}: {e}")
                raise e.as_api_error()

        receiver_id = room.other(sender.id)
        message = Message.objects.create(
            room=room.key,
            bid=room.bid,
            sender=sender,
            receiver_id=receiver_id,
            type=type,
            content=content,
            attachment_url=attachment_url,
        )

        if receiver_id:
            transaction.on_commit(lambda: notify(
                User.objects.filter(pk=receiver_id).first(),
                Notification.TYPE_MESSAGE_RECEIVED,
                gettext("New message from %(name)s") % {"name": sender.username},
                content[:200],
                project=room.bid.project if room.bid else None,
                bid=room.bid,
            ))

        logger.info(f"Message posted: room={room.key}, message={message.id}, sender={sender.id}, type={type}")
        return message

    def list_messages(self, actor, room_key, limit=200):
        room = self.resolve_room(room_key)
        authorize(actor, "chat.participate", room.participants)
        qs = Message.objects.filter(room=room.key).select_related("sender").order_by("created_at", "id")
        return list(qs[:limit])

    def mark_read(self, actor, room_key) -> int:
        room = self.resolve_room(room_key)
        authorize(actor, "chat.participate", room.participants)
        return Message.objects.filter(room=room.key, receiver=actor, is_read=False).update(is_read=True)

    def react(self, actor, message_id, emoji) -> Message:
        emoji = sanitizers.sanitize_text(emoji)
        if not emoji or len(emoji) > MAX_EMOJI_LENGTH:
            raise ValidationError({"emoji": [str(_("A single emoji is required."))]})

        with transaction.atomic():
            message = Message.objects.select_for_update().filter(pk=message_id).first()
            if message is None:
                raise NotFound(_("Message not found."))
            room = self.resolve_room(message.room)
            authorize(actor, "chat.participate", room.participants)

            # Additive set semantics: re-adding is a no-op, nothing is ever removed
            reactions = dict(message.reactions or {})
            users = list(reactions.get(emoji, []))
            if actor.id not in users:
                users.append(actor.id)
                reactions[emoji] = users
                message.reactions = reactions
                message.save(update_fields=["reactions"])

        return message

    def open_bid_thread(self, bid, client) -> Optional[Message]:
        """Greeting from the client after acceptance; skipped if the thread already has messages."""
        room = bid_room(bid)
        if Message.objects.filter(room=room).exists():
            return None
        return Message.objects.create(
            room=room,
            bid=bid,
            sender=client,
            receiver_id=bid.freelancer_id,
            type=Message.TYPE_TEXT,
            content=gettext("Hello! I accepted your bid. Let's discuss the details."),
        )
