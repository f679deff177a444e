from django.contrib import admin

from .models import Bid


@admin.register(Bid)
class BidAdmin(admin.ModelAdmin):
    list_display = ("id", "project", "freelancer", "price", "delivery_days", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("project__title", "freelancer__username", "proposal")
    raw_id_fields = ("project", "freelancer")
