from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import User

@admin.register(User)
class CustomUserAdmin(UserAdmin):
    list_display = ('username', 'email', 'role', 'first_name', 'last_name', 'is_staff', 'rating', 'completed_projects')
    list_filter = ('role', 'is_staff', 'is_superuser', 'is_active')
    search_fields = ('username', 'email', 'first_name', 'last_name', 'supabase_uid')
    readonly_fields = ('rating', 'reviews_count', 'completed_projects')
    fieldsets = UserAdmin.fieldsets + (
        ('Marketplace', {'fields': ('role', 'phone', 'bio', 'avatar_url', 'city', 'supabase_uid',
                                    'rating', 'reviews_count', 'completed_projects')}),
    )
    add_fieldsets = UserAdmin.add_fieldsets + (
        ('Marketplace', {'fields': ('role', 'phone', 'bio', 'avatar_url')}),
    )
