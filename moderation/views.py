import logging

from django.db import transaction
from django.utils import timezone
from django.utils.translation import gettext, gettext_lazy as _
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView

from core.exceptions import InvalidState, NotFound, UpstreamFailure
from core.policies import authorize
from core.responses import success
from core.serializers import parse_input
from notifications.models import Notification
from notifications.services import notify
from projects.models import Project
from projects.serializers import ProjectSerializer

from .serializers import DecisionSerializer, ModerationCheckSerializer
from .services import ModerationUnavailable, get_moderation_service

logger = logging.getLogger("market.moderation")


class ModerationCheckView(APIView):
    """
    POST /api/moderation/check/
    {text, options: {strict, mask, returnStats}}
    """
    permission_classes = [AllowAny]
    throttle_scope = "moderation-check"

    def post(self, request):
        data = parse_input(ModerationCheckSerializer, request.data)
        options = data.get("options") or {}

        try:
            result = get_moderation_service().check_cached(
                data["text"],
                strict=options.get("strict", False),
                mask=options.get("mask", False),
                return_stats=options.get("return_stats", False),
            )
        except ModerationUnavailable:
            raise UpstreamFailure(_("Content moderation is unavailable, the text could not be verified."))

        return success(result)


class ModerationQueueView(APIView):
    """GET /api/moderation/queue/  pending projects, oldest first (staff)"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        authorize(request.user, "moderation.decide")
        qs = Project.objects.filter(status=Project.STATUS_PENDING).select_related("client").order_by("created_at")
        return success(ProjectSerializer(qs, many=True, context={"request": request}).data)


class ModerationDecisionView(APIView):
    """
    POST /api/moderation/projects/<id>/approve/   pending -> published
    POST /api/moderation/projects/<id>/reject/    pending -> draft
    """
    permission_classes = [IsAuthenticated]
    decision = None

    def post(self, request, project_id):
        authorize(request.user, "moderation.decide")
        data = parse_input(DecisionSerializer, request.data)

        with transaction.atomic():
            project = Project.objects.select_for_update().filter(pk=project_id).first()
            if project is None:
                raise NotFound(_("Project not found."))
            if project.status != Project.STATUS_PENDING:
                raise InvalidState(_("Only projects awaiting moderation can be decided."))

            if self.decision == "approve":
                project.status = Project.STATUS_PUBLISHED
                if not project.published_at:
                    project.published_at = timezone.now()
                title = gettext("Your project was published")
            else:
                project.status = Project.STATUS_DRAFT
                title = gettext("Your project was returned to drafts")
            project.save(update_fields=["status", "published_at", "updated_at"])

            client = project.client
            body = data["reason"] or project.title
            transaction.on_commit(lambda: notify(client, Notification.TYPE_SYSTEM, title, body, project=project))

        logger.info(
            f"Moderation decision: project={project.id}, decision={self.decision}, actor={request.user.id}"
        )
        return success(ProjectSerializer(project, context={"request": request}).data)
