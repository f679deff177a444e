from django.conf import settings
from django.db import models


class Project(models.Model):
    """
    A client-posted unit of work open for bids (an "order").
    Only the client mutates it; freelancer is set when a bid is accepted.
    """
    STATUS_DRAFT = "draft"
    STATUS_PENDING = "pending"  # held for moderation review
    STATUS_PUBLISHED = "published"  # open for bids
    STATUS_IN_PROGRESS = "in_progress"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"
    STATUS_DELETED = "deleted"  # soft-delete marker

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_PENDING, "Pending review"),
        (STATUS_PUBLISHED, "Published"),
        (STATUS_IN_PROGRESS, "In progress"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_DELETED, "Deleted"),
    ]

    # Visible only to the owner and staff
    HIDDEN_STATUSES = (STATUS_DRAFT, STATUS_PENDING)

    BUDGET_FIXED = "fixed"
    BUDGET_HOURLY = "hourly"
    BUDGET_PRICE_REQUEST = "price_request"

    BUDGET_TYPE_CHOICES = [
        (BUDGET_FIXED, "Fixed price"),
        (BUDGET_HOURLY, "Hourly"),
        (BUDGET_PRICE_REQUEST, "Price on request"),
    ]

    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="client_projects"
    )
    freelancer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_projects"
    )

    title = models.CharField(max_length=255)
    description = models.TextField()
    detailed_description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=100)
    subcategory = models.CharField(max_length=100, blank=True, default="")
    skills = models.JSONField(default=list, blank=True)

    budget_type = models.CharField(max_length=20, choices=BUDGET_TYPE_CHOICES, default=BUDGET_FIXED)
    budget_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, default="RUB")
    final_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PUBLISHED, db_index=True)

    is_remote = models.BooleanField(default=False)
    city = models.CharField(max_length=120, blank=True, default="")
    country = models.CharField(max_length=120, blank=True, default="")
    address = models.CharField(max_length=255, blank=True, default="")

    deadline = models.DateField(null=True, blank=True)
    estimated_duration = models.CharField(max_length=100, blank=True, default="")

    images = models.JSONField(default=list, blank=True)
    attachments = models.JSONField(default=list, blank=True)

    is_urgent = models.BooleanField(default=False)
    is_featured = models.BooleanField(default=False)

    proposals_count = models.PositiveIntegerField(default=0)
    views_count = models.PositiveIntegerField(default=0)

    moderation_score = models.PositiveSmallIntegerField(default=0)
    moderation_verdict = models.CharField(max_length=20, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    published_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "-created_at"], name="project_status_created_idx"),
            models.Index(fields=["category", "status"], name="project_category_status_idx"),
        ]

    def __str__(self):
        return f"{self.title} ({self.status})"

    @property
    def storage_prefix(self):
        return f"projects/{self.pk}"


class Favorite(models.Model):
    """A user's bookmark on a project."""
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="favorites"
    )
    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name="favorited_by"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["user", "project"], name="unique_favorite_per_user"),
        ]

    def __str__(self):
        return f"{self.user_id} ♥ {self.project_id}"
