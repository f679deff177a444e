from django.urls import path

from bids.views import ProjectBidsView

from .views import (
    FavoriteCheckView,
    FavoriteDeleteView,
    FavoriteListCreateView,
    MyProjectsView,
    ProjectCompleteView,
    ProjectDetailView,
    ProjectListCreateView,
)

urlpatterns = [
    path("", ProjectListCreateView.as_view(), name="project-list"),
    path("mine/", MyProjectsView.as_view(), name="project-mine"),
    path("favorites/", FavoriteListCreateView.as_view(), name="favorite-list"),
    path("favorites/<int:project_id>/", FavoriteDeleteView.as_view(), name="favorite-delete"),
    path("favorites/<int:project_id>/check/", FavoriteCheckView.as_view(), name="favorite-check"),
    path("<int:project_id>/", ProjectDetailView.as_view(), name="project-detail"),
    path("<int:project_id>/complete/", ProjectCompleteView.as_view(), name="project-complete"),
    path("<int:project_id>/bids/", ProjectBidsView.as_view(), name="project-bids"),
]
