from django.urls import path

from .views import ModerationCheckView, ModerationDecisionView, ModerationQueueView

urlpatterns = [
    path("check/", ModerationCheckView.as_view(), name="moderation-check"),
    path("queue/", ModerationQueueView.as_view(), name="moderation-queue"),
    path(
        "projects/<int:project_id>/approve/",
        ModerationDecisionView.as_view(decision="approve"),
        name="moderation-approve",
    ),
    path(
        "projects/<int:project_id>/reject/",
        ModerationDecisionView.as_view(decision="reject"),
        name="moderation-reject",
    ),
]
