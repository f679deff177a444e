# users/urls.py

from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .views import MeView, PublicProfileView

urlpatterns = [
    path('me/', MeView.as_view(), name='auth-me'),
    path('users/<int:user_id>/', PublicProfileView.as_view(), name='user-public-profile'),
    path('jwt/login/', TokenObtainPairView.as_view(), name='jwt-login'),
    path('jwt/refresh/', TokenRefreshView.as_view(), name='jwt-refresh'),
]
