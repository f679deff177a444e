from django.contrib import admin

from .models import Message


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ("room", "sender", "receiver", "type", "is_read", "created_at")
    list_filter = ("type", "is_read")
    search_fields = ("room", "content", "sender__username")
