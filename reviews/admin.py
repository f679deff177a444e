from django.contrib import admin

from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("project", "reviewer", "reviewee", "rating", "is_verified", "created_at")
    list_filter = ("rating", "is_verified")
    search_fields = ("comment", "reviewer__username", "reviewee__username")
    raw_id_fields = ("project", "reviewer", "reviewee", "verified_by")
