# users/views.py

from django.contrib.auth import get_user_model
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from core.exceptions import NotFound, ValidationError
from core.responses import success
from .serializers import PublicUserSerializer, UpdateProfileSerializer, UserSerializer

User = get_user_model()


class MeView(APIView):
    """
    GET   /api/auth/me/  -> current user
    PATCH /api/auth/me/  -> update own profile
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return success(UserSerializer(request.user).data)

    def patch(self, request):
        serializer = UpdateProfileSerializer(request.user, data=request.data, partial=True)
        if not serializer.is_valid():
            raise ValidationError(serializer.errors)
        serializer.save()
        return success(UserSerializer(request.user).data)


class PublicProfileView(APIView):
    """GET /api/auth/users/<id>/ -> public profile card"""
    permission_classes = [IsAuthenticated]

    def get(self, request, user_id):
        user = User.objects.filter(id=user_id, is_active=True).first()
        if user is None:
            raise NotFound()
        return success(PublicUserSerializer(user).data)
