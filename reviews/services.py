# reviews/services.py
import logging
from decimal import ROUND_HALF_UP, Decimal

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Avg, Count
from django.utils import timezone
from django.utils.translation import gettext, gettext_lazy as _

from core import sanitizers
from core.exceptions import Conflict, InvalidState, NotFound, ValidationError
from core.policies import authorize
from moderation.services import ModerationService
from notifications.models import Notification
from notifications.services import notify
from projects.models import Project

from .models import Review

logger = logging.getLogger("market.reviews")

User = get_user_model()


def recompute_rating(user_id):
    """Refresh the cached User.rating / reviews_count from verified reviews."""
    stats = Review.objects.filter(reviewee_id=user_id, is_verified=True).aggregate(
        avg=Avg("rating"), total=Count("id")
    )
    avg = Decimal(str(stats["avg"] or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    User.objects.filter(pk=user_id).update(rating=avg, reviews_count=stats["total"])
    return avg, stats["total"]


def rating_summary(user_id) -> dict:
    qs = Review.objects.filter(reviewee_id=user_id, is_verified=True)
    aggregates = qs.aggregate(
        average=Avg("rating"),
        total=Count("id"),
        **{name: Avg(name) for name in Review.CRITERIA},
    )

    distribution = {str(star): 0 for star in range(1, 6)}
    for row in qs.values("rating").annotate(n=Count("id")):
        distribution[str(row["rating"])] = row["n"]

    def rounded(value):
        return round(float(value), 2) if value is not None else None

    return {
        "user_id": int(user_id),
        "average": rounded(aggregates["average"]) or 0,
        "total": aggregates["total"],
        "distribution": distribution,
        "criteria": {name: rounded(aggregates[name]) for name in Review.CRITERIA},
    }


class ReviewService:
    def __init__(self, moderation=None):
        self.moderation = moderation or ModerationService()

    def _clean(self, rating, comment, criteria):
        errors = {}
        cleaned = {}
        try:
            cleaned["rating"] = sanitizers.validate_rating(rating)
        except sanitizers.InvalidValue as e:
            errors["rating"] = [str(e)]

        for name in Review.CRITERIA:
            value = (criteria or {}).get(name)
            if value in (None, ""):
                continue
            try:
                cleaned[name] = sanitizers.validate_rating(value)
            except sanitizers.InvalidValue as e:
                errors[name] = [str(e)]

        cleaned["comment"] = sanitizers.sanitize_text(comment, max_length=3000)

        if errors:
            raise ValidationError(errors)
        return cleaned

    def create_review(self, actor, project_id, rating, comment="", criteria=None) -> Review:
        project = (
            Project.objects.select_related("client", "freelancer")
            .exclude(status=Project.STATUS_DELETED)
            .filter(pk=project_id)
            .first()
        )
        if project is None:
            raise NotFound(_("Project not found."))

        authorize(actor, "review.create", project)

        if project.status != Project.STATUS_COMPLETED or project.freelancer_id is None:
            raise InvalidState(_("Reviews can only be left for completed projects."))

        cleaned = self._clean(rating, comment, criteria)
        if cleaned["comment"]:
            self.moderation.ensure_publishable({"comment": (cleaned["comment"], True)})

        reviewee = project.freelancer if actor.id == project.client_id else project.client

        try:
            with transaction.atomic():
                review = Review.objects.create(
                    project=project,
                    reviewer=actor,
                    reviewee=reviewee,
                    # Reviews of completed projects are verified on creation
                    is_verified=True,
                    verified_at=timezone.now(),
                    **cleaned,
                )
                recompute_rating(reviewee.pk)
        except IntegrityError:
            raise Conflict(_("You have already reviewed this project."))

        transaction.on_commit(lambda: notify(
            reviewee,
            Notification.TYPE_REVIEW_RECEIVED,
            gettext("You received a new review"),
            gettext("%(name)s rated you %(rating)d/5 for “%(title)s”.") % {
                "name": actor.username, "rating": review.rating, "title": project.title,
            },
            project=project,
        ))

        logger.info(f"Review created: review={review.id}, project={project.id}, reviewee={reviewee.id}")
        return review

    def reply(self, actor, review_id, text) -> Review:
        with transaction.atomic():
            review = Review.objects.select_for_update().filter(pk=review_id).first()
            if review is None:
                raise NotFound(_("Review not found."))

            authorize(actor, "review.reply", review)

            if review.reply:
                raise InvalidState(_("This review already has a reply."))

            text = sanitizers.sanitize_text(text, max_length=3000)
            if not text:
                raise ValidationError({"reply": [str(_("Reply text is required."))]})
            self.moderation.ensure_publishable({"reply": (text, True)})

            review.reply = text
            review.replied_at = timezone.now()
            review.save(update_fields=["reply", "replied_at"])

        return review

    def verify(self, actor, review_id) -> Review:
        with transaction.atomic():
            review = Review.objects.select_for_update().select_related("project").filter(pk=review_id).first()
            if review is None:
                raise NotFound(_("Review not found."))

            authorize(actor, "review.verify", review.project)

            if review.project.status != Project.STATUS_COMPLETED:
                raise InvalidState(_("Only reviews of completed projects can be verified."))

            if not review.is_verified:
                review.is_verified = True
                review.verified_by = actor
                review.verified_at = timezone.now()
                review.save(update_fields=["is_verified", "verified_by", "verified_at"])
                recompute_rating(review.reviewee_id)
                logger.info(f"Review verified: review={review.id}, actor={actor.id}")

        return review

    def list_for_user(self, user_id):
        return (
            Review.objects.filter(reviewee_id=user_id, is_verified=True)
            .select_related("reviewer", "project")
            .order_by("-created_at")
        )
