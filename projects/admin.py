from django.contrib import admin

from .models import Favorite, Project


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "client", "status", "category", "budget_amount", "proposals_count", "views_count", "created_at")
    list_filter = ("status", "category", "is_remote", "is_featured", "moderation_verdict")
    search_fields = ("title", "description", "client__username")
    raw_id_fields = ("client", "freelancer")
    readonly_fields = ("proposals_count", "views_count", "moderation_score", "moderation_verdict")


@admin.register(Favorite)
class FavoriteAdmin(admin.ModelAdmin):
    list_display = ("user", "project", "created_at")
    raw_id_fields = ("user", "project")
