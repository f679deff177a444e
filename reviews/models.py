from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

STARS = [MinValueValidator(1), MaxValueValidator(5)]


class Review(models.Model):
    """
    Feedback left by one participant of a completed project about the other.
    The author writes rating/comment; the reviewee may add a single reply.
    """
    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.CASCADE,
        related_name="reviews"
    )
    reviewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reviews_written"
    )
    reviewee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reviews_received"
    )

    rating = models.PositiveSmallIntegerField(validators=STARS)
    comment = models.TextField(blank=True, default="")

    # Optional criteria scores
    quality = models.PositiveSmallIntegerField(null=True, blank=True, validators=STARS)
    deadline = models.PositiveSmallIntegerField(null=True, blank=True, validators=STARS)
    communication = models.PositiveSmallIntegerField(null=True, blank=True, validators=STARS)
    price = models.PositiveSmallIntegerField(null=True, blank=True, validators=STARS)

    reply = models.TextField(blank=True, default="")
    replied_at = models.DateTimeField(null=True, blank=True)

    # Only verified reviews count towards ratings
    is_verified = models.BooleanField(default=False)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+"
    )
    verified_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    CRITERIA = ("quality", "deadline", "communication", "price")

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["project", "reviewer"], name="unique_review_per_project_reviewer"),
        ]
        indexes = [
            models.Index(fields=["reviewee", "is_verified"], name="review_reviewee_verified_idx"),
        ]

    def __str__(self):
        return f"{self.reviewer_id} → {self.reviewee_id}: {self.rating}★"
