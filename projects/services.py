# projects/services.py
"""
Project Entity Manager.

All writes to projects go through ProjectService. Ownership is checked
with core.policies.authorize before anything is mutated; file storage is
injected so tests can swap it for a fake.
"""
import logging
from dataclasses import dataclass, field
from typing import List

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.db.models import F, Q
from django.utils import timezone
from django.utils.translation import gettext, gettext_lazy as _

from core import sanitizers
from core.conf import market_setting
from core.exceptions import InvalidState, NotFound, ValidationError
from core.policies import authorize, can
from core.supabase_client import StorageError, build_object_name, get_storage
from moderation import engine
from moderation.services import ModerationService, ModerationUnavailable
from notifications.models import Notification
from notifications.services import notify

from . import state_machine
from .models import Project

logger = logging.getLogger("market.projects")

User = get_user_model()

TEXT_FIELDS = (
    # field, strict moderation
    ("title", False),
    ("description", True),
    ("detailed_description", True),
)


@dataclass
class DeletionResult:
    project_id: int
    hard_deleted: bool
    removed_files: List[str] = field(default_factory=list)
    remaining_files: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            "project_id": self.project_id,
            "hard_deleted": self.hard_deleted,
            "removed_files": self.removed_files,
            "remaining_files": self.remaining_files,
        }


class ProjectService:
    def __init__(self, storage=None, moderation=None):
        self.storage = storage or get_storage()
        self.moderation = moderation or ModerationService()

    # ─────────────────────────────────────────────────────────────
    # Validation
    # ─────────────────────────────────────────────────────────────

    def clean(self, data: dict, partial: bool = False, current: Project = None) -> dict:
        """
        Normalise and validate a project payload.

        Every violation is collected; a single ValidationError lists them all.
        With partial=True only the supplied keys are checked, but cross-field
        rules (city unless remote) still consider the current values.
        """
        errors = {}
        cleaned = {}

        def add(name, message):
            errors.setdefault(name, []).append(str(message))

        def supplied(name):
            return not partial or name in data

        if supplied("title"):
            title = sanitizers.sanitize_title(data.get("title"))
            if not title:
                add("title", _("Title is required."))
            cleaned["title"] = title

        if supplied("description"):
            description = sanitizers.sanitize_description(data.get("description"))
            min_length = market_setting("MIN_DESCRIPTION_LENGTH")
            if not description:
                add("description", _("Description is required."))
            elif len(description) < min_length:
                add("description", _("Description must be at least %(n)d characters.") % {"n": min_length})
            cleaned["description"] = description

        if "detailed_description" in data:
            cleaned["detailed_description"] = sanitizers.sanitize_description(data.get("detailed_description"))

        if supplied("category"):
            category = sanitizers.sanitize_title(data.get("category"))[:100]
            if not category:
                add("category", _("Category is required."))
            cleaned["category"] = category

        if "subcategory" in data:
            cleaned["subcategory"] = sanitizers.sanitize_title(data.get("subcategory"))[:100]

        if "skills" in data:
            skills = data.get("skills")
            if skills is None:
                skills = []
            if not isinstance(skills, (list, tuple)):
                add("skills", _("Skills must be a list of strings."))
            else:
                cleaned["skills"] = sanitizers.sanitize_tags(skills)

        if supplied("budget_type") and data.get("budget_type") is not None:
            budget_type = data.get("budget_type") or Project.BUDGET_FIXED
            if budget_type not in dict(Project.BUDGET_TYPE_CHOICES):
                add("budget_type", _("Unknown budget type."))
            cleaned["budget_type"] = budget_type

        if "budget_amount" in data:
            amount = data.get("budget_amount")
            if amount in (None, ""):
                cleaned["budget_amount"] = None
            else:
                try:
                    cleaned["budget_amount"] = sanitizers.validate_amount(amount)
                except sanitizers.InvalidValue as e:
                    add("budget_amount", e)

        if "currency" in data and data.get("currency"):
            cleaned["currency"] = sanitizers.sanitize_text(data.get("currency"), max_length=3).upper()

        for flag in ("is_remote", "is_urgent"):
            if flag in data and data.get(flag) is not None:
                cleaned[flag] = bool(data.get(flag))

        for name, limit in (("city", 120), ("country", 120), ("address", 255), ("estimated_duration", 100)):
            if name in data:
                cleaned[name] = sanitizers.sanitize_title(data.get(name))[:limit]

        if "deadline" in data:
            deadline = data.get("deadline")
            if deadline and deadline < timezone.localdate() and (current is None or deadline != current.deadline):
                add("deadline", _("Deadline cannot be in the past."))
            cleaned["deadline"] = deadline or None

        # City is required unless the work is remote
        is_remote = cleaned.get("is_remote", current.is_remote if current else False)
        city = cleaned.get("city", current.city if current else "")
        if not is_remote and not city and (supplied("city") or "is_remote" in cleaned):
            add("city", _("City is required unless the project is remote."))

        if errors:
            raise ValidationError(errors)

        return cleaned

    def _validate_files(self, files):
        errors = []
        max_files = market_setting("MAX_UPLOAD_FILES")
        max_bytes = market_setting("MAX_UPLOAD_BYTES")
        if len(files) > max_files:
            errors.append(str(_("At most %(n)d files per request.") % {"n": max_files}))
        for f in files:
            if f.size and f.size > max_bytes:
                errors.append(str(_("%(name)s is larger than %(mb)d MB.") % {
                    "name": f.name, "mb": max_bytes // (1024 * 1024)
                }))
        if errors:
            raise ValidationError({"files": errors})

    # ─────────────────────────────────────────────────────────────
    # Moderation gate
    # ─────────────────────────────────────────────────────────────

    def _moderation_fields(self, values: dict) -> dict:
        return {name: (values.get(name) or "", strict) for name, strict in TEXT_FIELDS}

    def _assess(self, values: dict, publishing: bool) -> dict:
        """
        Publishing: blocking (severe -> ValidationError, engine down -> UpstreamFailure).
        Drafts: advisory, the verdict is only recorded.
        """
        fields = self._moderation_fields(values)
        if publishing:
            return self.moderation.ensure_publishable(fields)

        worst = {"score": 0, "verdict": engine.VERDICT_SAFE}
        for text, strict in fields.values():
            if not text:
                continue
            try:
                result = self.moderation.check(text, strict=strict)
            except ModerationUnavailable:
                return {"score": 0, "verdict": "unverified"}
            if result.score > worst["score"]:
                worst = {"score": result.score, "verdict": result.verdict}
        return worst

    @staticmethod
    def _project_text(project: Project) -> dict:
        return {name: getattr(project, name) for name, _strict in TEXT_FIELDS}

    # ─────────────────────────────────────────────────────────────
    # Files
    # ─────────────────────────────────────────────────────────────

    def _upload_files(self, project: Project, files):
        """Upload to projects/<id>/; failures are reported, never raised."""
        urls, failed = [], []
        for f in files:
            path = build_object_name(project.storage_prefix, f.name)
            try:
                urls.append(self.storage.upload(path, f.read(), getattr(f, "content_type", None)))
            except StorageError as e:
                logger.warning(f"Upload failed for project={project.id} file={f.name}: {e}")
                failed.append({"name": f.name, "error": e.as_api_error().default_code})
        return urls, failed

    # ─────────────────────────────────────────────────────────────
    # Operations
    # ─────────────────────────────────────────────────────────────

    def create_project(self, actor, data: dict, files=()):
        """Returns (project, failed_uploads)."""
        files = list(files or [])
        status = data.get("status") or Project.STATUS_PUBLISHED
        errors = {}
        if status not in (Project.STATUS_DRAFT, Project.STATUS_PUBLISHED):
            errors["status"] = [str(_("A new project can only be a draft or published."))]

        try:
            cleaned = self.clean(data)
        except ValidationError as e:
            errors.update(e.errors)
        if errors:
            raise ValidationError(errors)
        self._validate_files(files)

        publishing = status == Project.STATUS_PUBLISHED
        verdict = self._assess(cleaned, publishing=publishing)
        if publishing and verdict["verdict"] == engine.VERDICT_NEEDS_REVIEW:
            status = Project.STATUS_PENDING

        cleaned.setdefault("currency", market_setting("DEFAULT_CURRENCY"))
        if not cleaned.get("country"):
            cleaned["country"] = market_setting("DEFAULT_COUNTRY")

        project = Project.objects.create(
            client=actor,
            status=status,
            published_at=timezone.now() if status == Project.STATUS_PUBLISHED else None,
            moderation_score=verdict["score"],
            moderation_verdict=verdict["verdict"],
            **cleaned,
        )
        logger.info(f"Project created: project={project.id}, client={actor.id}, status={status}")

        failed = []
        if files:
            urls, failed = self._upload_files(project, files)
            if urls:
                project.images = list(project.images) + urls
                project.save(update_fields=["images", "updated_at"])

        return project, failed

    def get_project(self, project_id, actor=None, count_view=True) -> Project:
        project = (
            Project.objects.select_related("client", "freelancer")
            .exclude(status=Project.STATUS_DELETED)
            .filter(pk=project_id)
            .first()
        )
        if project is None:
            raise NotFound(_("Project not found."))

        hidden = project.status in Project.HIDDEN_STATUSES
        if hidden and not can(actor, "project.view_hidden", project):
            raise NotFound(_("Project not found."))

        if count_view:
            Project.objects.filter(pk=project.pk).update(views_count=F("views_count") + 1)
            project.refresh_from_db(fields=["views_count"])

        return project

    def _get_for_update(self, project_id) -> Project:
        project = (
            Project.objects.select_for_update()
            .exclude(status=Project.STATUS_DELETED)
            .filter(pk=project_id)
            .first()
        )
        if project is None:
            raise NotFound(_("Project not found."))
        return project

    def update_project(self, project_id, actor, data: dict, files=(), existing_images=None):
        """
        Merge the supplied fields. New uploads are appended to `existing_images`
        when given, otherwise to the project's current images.
        Returns (project, failed_uploads).
        """
        files = list(files or [])

        with transaction.atomic():
            project = self._get_for_update(project_id)
            authorize(actor, "project.update", project)

            if project.status == Project.STATUS_COMPLETED:
                raise InvalidState(_("A completed project can no longer be edited."))

            cleaned = self.clean(data, partial=True, current=project)
            self._validate_files(files)

            if existing_images is not None:
                if not isinstance(existing_images, list) or not all(isinstance(u, str) for u in existing_images):
                    raise ValidationError({"existing_images": [str(_("Must be a list of URLs."))]})
                images = list(existing_images)
            else:
                images = list(project.images)

            text_changed = any(
                name in cleaned and cleaned[name] != getattr(project, name) for name, _strict in TEXT_FIELDS
            )
            if text_changed:
                merged = self._project_text(project)
                merged.update({k: v for k, v in cleaned.items() if k in merged})
                # Anything past draft is visible to others
                publishing = project.status != Project.STATUS_DRAFT
                verdict = self._assess(merged, publishing=publishing)
                cleaned["moderation_score"] = verdict["score"]
                cleaned["moderation_verdict"] = verdict["verdict"]
                if project.status == Project.STATUS_PUBLISHED and verdict["verdict"] == engine.VERDICT_NEEDS_REVIEW:
                    cleaned["status"] = Project.STATUS_PENDING

            for name, value in cleaned.items():
                setattr(project, name, value)
            project.images = images
            project.save()

        failed = []
        if files:
            urls, failed = self._upload_files(project, files)
            if urls:
                project.images = images + urls
                project.save(update_fields=["images", "updated_at"])

        logger.info(f"Project updated: project={project.id}, fields={sorted(cleaned)}, uploads={len(files)}")
        return project, failed

    def patch_status(self, project_id, actor, new_status) -> Project:
        if new_status == Project.STATUS_COMPLETED:
            return self.complete_project(project_id, actor)

        with transaction.atomic():
            project = self._get_for_update(project_id)
            authorize(actor, "project.change_status", project)
            state_machine.ensure_transition(project, new_status, actor)

            if new_status == project.status:
                return project

            update_fields = ["status", "updated_at"]
            if new_status in (Project.STATUS_PUBLISHED, Project.STATUS_PENDING):
                verdict = self._assess(self._project_text(project), publishing=True)
                project.moderation_score = verdict["score"]
                project.moderation_verdict = verdict["verdict"]
                update_fields += ["moderation_score", "moderation_verdict"]
                if new_status == Project.STATUS_PUBLISHED and verdict["verdict"] == engine.VERDICT_NEEDS_REVIEW:
                    new_status = Project.STATUS_PENDING

            old_status = project.status
            project.status = new_status
            if new_status == Project.STATUS_PUBLISHED and not project.published_at:
                project.published_at = timezone.now()
                update_fields.append("published_at")
            project.save(update_fields=update_fields)

        logger.info(
            f"Project state transition: project={project.id}, "
            f"from={old_status}, to={project.status}, actor={actor.id}"
        )
        return project

    def delete_project(self, project_id, actor) -> DeletionResult:
        """
        Two phases: remove every stored file under projects/<id>/, then the row.
        If the row cannot be deleted it is marked status=deleted instead.
        """
        project = Project.objects.exclude(status=Project.STATUS_DELETED).filter(pk=project_id).first()
        if project is None:
            raise NotFound(_("Project not found."))
        authorize(actor, "project.delete", project)
        if state_machine.is_terminal_status(project.status):
            raise InvalidState(_("A completed project cannot be deleted."))

        result = DeletionResult(project_id=project.pk, hard_deleted=False)

        # Phase 1: files
        prefix = project.storage_prefix + "/"
        try:
            paths = [p for p in self.storage.list(project.storage_prefix) if p.startswith(prefix)]
        except StorageError as e:
            logger.warning(f"Could not list files of project={project.pk}: {e}")
            paths = []
        if paths:
            try:
                result.removed_files = self.storage.remove(paths)
            except StorageError as e:
                logger.warning(f"Could not remove files of project={project.pk}: {e}")
                result.removed_files = []
            result.remaining_files = [p for p in paths if p not in result.removed_files]

        # Phase 2: row
        try:
            with transaction.atomic():
                project.delete()
            result.hard_deleted = True
        except DatabaseError as e:
            logger.error(f"Hard delete failed for project={project_id}, marking as deleted: {e}")
            Project.objects.filter(pk=project_id).update(
                status=Project.STATUS_DELETED,
                deleted_at=timezone.now(),
                updated_at=timezone.now(),
            )

        logger.info(
            f"Project deleted: project={project_id}, hard={result.hard_deleted}, "
            f"removed={len(result.removed_files)}, remaining={len(result.remaining_files)}"
        )
        return result

    def complete_project(self, project_id, actor, rating=None, comment="", final_amount=None) -> Project:
        from bids.models import Bid
        from reviews.services import ReviewService

        with transaction.atomic():
            project = self._get_for_update(project_id)
            authorize(actor, "project.complete", project)
            if project.status != Project.STATUS_IN_PROGRESS:
                raise InvalidState(_("Only a project in progress can be completed."))

            if final_amount not in (None, ""):
                try:
                    final_amount = sanitizers.validate_amount(final_amount)
                except sanitizers.InvalidValue as e:
                    raise ValidationError({"final_amount": [str(e)]})
            else:
                accepted = Bid.objects.filter(project=project, status=Bid.STATUS_ACCEPTED).first()
                final_amount = accepted.price if accepted else project.budget_amount

            project.status = Project.STATUS_COMPLETED
            project.completed_at = timezone.now()
            project.final_amount = final_amount
            project.save(update_fields=["status", "completed_at", "final_amount", "updated_at"])

            if project.freelancer_id:
                User.objects.filter(pk=project.freelancer_id).update(
                    completed_projects=F("completed_projects") + 1
                )
                if rating is not None:
                    ReviewService().create_review(actor, project.pk, rating=rating, comment=comment or "")

            freelancer = project.freelancer
            transaction.on_commit(lambda: notify(
                freelancer,
                Notification.TYPE_PROJECT_COMPLETED,
                gettext("Project completed"),
                gettext("The client marked “%(title)s” as completed.") % {"title": project.title},
                project=project,
            ))

        logger.info(f"Project completed: project={project.id}, freelancer={project.freelancer_id}")
        return project

    # ─────────────────────────────────────────────────────────────
    # Listing
    # ─────────────────────────────────────────────────────────────

    def list_projects(self, filters: dict):
        qs = Project.objects.select_related("client").filter(status=Project.STATUS_PUBLISHED)

        if filters.get("category"):
            qs = qs.filter(category=filters["category"])
        if filters.get("subcategory"):
            qs = qs.filter(subcategory=filters["subcategory"])
        if filters.get("remote"):
            qs = qs.filter(is_remote=True)
        elif filters.get("city"):
            qs = qs.filter(Q(city__iexact=filters["city"]) | Q(is_remote=True))
        if filters.get("q"):
            q = filters["q"]
            qs = qs.filter(Q(title__icontains=q) | Q(description__icontains=q))

        qs = qs.order_by("-is_featured", "-published_at", "-id")
        offset = filters.get("offset") or 0
        limit = filters.get("limit") or 20
        return qs.count(), list(qs[offset:offset + limit])

    def list_mine(self, actor, status=None):
        qs = Project.objects.filter(client=actor).exclude(status=Project.STATUS_DELETED)
        if status:
            qs = qs.filter(status=status)
        return qs.order_by("-created_at")
