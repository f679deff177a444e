from django.conf import settings
from django.db import models
from django.db.models import Q


class Bid(models.Model):
    """
    A freelancer's proposal against a project.
    pending -> accepted | rejected | withdrawn; terminal once it leaves pending.
    """
    STATUS_PENDING = "pending"
    STATUS_ACCEPTED = "accepted"
    STATUS_REJECTED = "rejected"
    STATUS_WITHDRAWN = "withdrawn"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_ACCEPTED, "Accepted"),
        (STATUS_REJECTED, "Rejected"),
        (STATUS_WITHDRAWN, "Withdrawn"),
    ]

    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.CASCADE,
        related_name="bids"
    )
    freelancer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bids"
    )

    proposal = models.TextField()
    price = models.DecimalField(max_digits=12, decimal_places=2)
    delivery_days = models.PositiveIntegerField()
    # [{title, description, days, price}]
    milestones = models.JSONField(default=list, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    moderation_score = models.PositiveSmallIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    accepted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["project", "freelancer"],
                condition=~Q(status="withdrawn"),
                name="unique_active_bid_per_freelancer",
            ),
            models.UniqueConstraint(
                fields=["project"],
                condition=Q(status="accepted"),
                name="unique_accepted_bid_per_project",
            ),
        ]

    def __str__(self):
        return f"Bid {self.pk} on {self.project_id} by {self.freelancer_id} ({self.status})"

    @property
    def is_pending(self):
        return self.status == self.STATUS_PENDING
