# notifications/models.py
from django.conf import settings
from django.db import models


class Notification(models.Model):
    TYPE_BID_RECEIVED = "bid_received"
    TYPE_BID_ACCEPTED = "bid_accepted"
    TYPE_BID_REJECTED = "bid_rejected"
    TYPE_PROJECT_COMPLETED = "project_completed"
    TYPE_REVIEW_RECEIVED = "review_received"
    TYPE_MESSAGE_RECEIVED = "message_received"
    TYPE_SYSTEM = "system"

    TYPE_CHOICES = [
        (TYPE_BID_RECEIVED, "Bid Received"),
        (TYPE_BID_ACCEPTED, "Bid Accepted"),
        (TYPE_BID_REJECTED, "Bid Rejected"),
        (TYPE_PROJECT_COMPLETED, "Project Completed"),
        (TYPE_REVIEW_RECEIVED, "Review Received"),
        (TYPE_MESSAGE_RECEIVED, "Message Received"),
        (TYPE_SYSTEM, "System"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    type = models.CharField(max_length=64, choices=TYPE_CHOICES)
    title = models.CharField(max_length=255)
    body = models.TextField(blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    # Optional links
    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="notifications",
    )
    bid = models.ForeignKey(
        "bids.Bid",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="notifications",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "is_read"], name="notif_user_read_idx"),
            models.Index(fields=["type"], name="notif_type_idx"),
        ]

    def __str__(self):
        return f"{self.user} - {self.type} - {self.title}"
