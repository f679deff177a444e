from django.utils.translation import gettext_lazy as _
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated, IsAuthenticatedOrReadOnly
from rest_framework.views import APIView

from core.responses import created, success
from core.serializers import parse_input
from core.supabase_client import get_storage

from . import favorites
from .models import Project
from .serializers import (
    CompleteInputSerializer,
    FavoriteInputSerializer,
    FavoriteSerializer,
    ProjectCardSerializer,
    ProjectInputSerializer,
    ProjectSerializer,
    StatusInputSerializer,
)
from .services import ProjectService


def get_project_service():
    return ProjectService(storage=get_storage())


def _int_param(request, name, default, maximum=None):
    try:
        value = int(request.query_params.get(name, default))
    except (TypeError, ValueError):
        value = default
    value = max(value, 0)
    if maximum is not None:
        value = min(value, maximum)
    return value


class ProjectListCreateView(APIView):
    """
    GET  /api/projects/?category=&subcategory=&city=&remote=&q=&limit=&offset=
    POST /api/projects/   (JSON or multipart with files[])
    """
    permission_classes = [IsAuthenticatedOrReadOnly]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def get(self, request):
        params = request.query_params
        filters = {
            "category": params.get("category"),
            "subcategory": params.get("subcategory"),
            "city": params.get("city"),
            "remote": params.get("remote", "").lower() in ("1", "true", "yes"),
            "q": params.get("q", "").strip(),
            "limit": _int_param(request, "limit", 20, maximum=100) or 20,
            "offset": _int_param(request, "offset", 0),
        }
        total, projects = get_project_service().list_projects(filters)
        return success({
            "count": total,
            "limit": filters["limit"],
            "offset": filters["offset"],
            "results": ProjectCardSerializer(projects, many=True).data,
        })

    def post(self, request):
        data = parse_input(ProjectInputSerializer, request.data)
        data.pop("existing_images", None)
        files = request.FILES.getlist("files")

        project, failed = get_project_service().create_project(request.user, data, files)
        payload = ProjectSerializer(project, context={"request": request}).data
        payload["failed_uploads"] = failed
        message = _("Project submitted for moderation") if project.status == Project.STATUS_PENDING else _("Project created")
        return created(payload, message=message)


class MyProjectsView(APIView):
    """GET /api/projects/mine/?status="""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = get_project_service().list_mine(request.user, request.query_params.get("status"))
        return success(ProjectCardSerializer(qs, many=True).data)


class ProjectDetailView(APIView):
    """
    GET    /api/projects/<id>/   fetch, counts one view
    PUT    /api/projects/<id>/   update (owner only, multipart)
    PATCH  /api/projects/<id>/   {status}
    DELETE /api/projects/<id>/   delete files + row (soft-delete fallback)
    """
    permission_classes = [IsAuthenticatedOrReadOnly]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def get(self, request, project_id):
        project = get_project_service().get_project(project_id, request.user)
        return success(ProjectSerializer(project, context={"request": request}).data)

    def put(self, request, project_id):
        data = parse_input(ProjectInputSerializer, request.data, partial=True)
        existing_images = data.pop("existing_images", None)
        data.pop("status", None)
        files = request.FILES.getlist("files")

        project, failed = get_project_service().update_project(
            project_id, request.user, data, files, existing_images=existing_images
        )
        payload = ProjectSerializer(project, context={"request": request}).data
        payload["failed_uploads"] = failed
        return success(payload, message=_("Project updated"))

    def patch(self, request, project_id):
        data = parse_input(StatusInputSerializer, request.data)
        project = get_project_service().patch_status(project_id, request.user, data["status"])
        return success(ProjectSerializer(project, context={"request": request}).data)

    def delete(self, request, project_id):
        result = get_project_service().delete_project(project_id, request.user)
        message = _("Project deleted") if result.hard_deleted else _("Project marked as deleted")
        return success(result.to_dict(), message=message)


class ProjectCompleteView(APIView):
    """POST /api/projects/<id>/complete/ {rating?, comment?, finalAmount?}"""
    permission_classes = [IsAuthenticated]

    def post(self, request, project_id):
        data = parse_input(CompleteInputSerializer, request.data)
        project = get_project_service().complete_project(
            project_id,
            request.user,
            rating=data.get("rating"),
            comment=data.get("comment", ""),
            final_amount=data.get("final_amount"),
        )
        return success(ProjectSerializer(project, context={"request": request}).data, message=_("Project completed"))


# ─────────────────────────────────────────────────────────────
# Favorites
# ─────────────────────────────────────────────────────────────

class FavoriteListCreateView(APIView):
    """
    GET  /api/projects/favorites/
    POST /api/projects/favorites/ {projectId}
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return success(FavoriteSerializer(favorites.list_favorites(request.user), many=True).data)

    def post(self, request):
        data = parse_input(FavoriteInputSerializer, request.data)
        favorites.toggle_favorite(request.user, data["project_id"], True)
        return success({"project_id": data["project_id"], "is_favorite": True})


class FavoriteDeleteView(APIView):
    """DELETE /api/projects/favorites/<project_id>/"""
    permission_classes = [IsAuthenticated]

    def delete(self, request, project_id):
        favorites.toggle_favorite(request.user, project_id, False)
        return success({"project_id": project_id, "is_favorite": False})


class FavoriteCheckView(APIView):
    """GET /api/projects/favorites/<project_id>/check/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, project_id):
        return success({"project_id": project_id, "is_favorite": favorites.check_favorite(request.user, project_id)})
