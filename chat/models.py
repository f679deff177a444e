from django.conf import settings
from django.db import models


class Message(models.Model):
    """
    Append-only chat log. `room` is the thread key:
    "bid-<bid id>" for bid negotiations, "dm-<low id>-<high id>" for direct chats.
    """
    TYPE_TEXT = "text"
    TYPE_IMAGE = "image"
    TYPE_FILE = "file"
    TYPE_VOICE = "voice"

    TYPE_CHOICES = [
        (TYPE_TEXT, "Text"),
        (TYPE_IMAGE, "Image"),
        (TYPE_FILE, "File"),
        (TYPE_VOICE, "Voice"),
    ]

    room = models.CharField(max_length=64, db_index=True)
    bid = models.ForeignKey(
        "bids.Bid",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="messages"
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages"
    )
    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="received_messages"
    )

    type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=TYPE_TEXT)
    content = models.TextField(blank=True, default="")
    attachment_url = models.CharField(max_length=1024, blank=True, default="")
    # {emoji: [user ids]}
    reactions = models.JSONField(default=dict, blank=True)

    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["room", "created_at"], name="msg_room_created_idx"),
            models.Index(fields=["receiver", "is_read"], name="msg_receiver_read_idx"),
        ]

    def __str__(self):
        return f"{self.room} #{self.pk} ({self.type})"
