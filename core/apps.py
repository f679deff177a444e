from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core"

    storage = None

    def ready(self):
        from .supabase_client import build_storage

        # One storage backend per process, built at startup
        self.storage = build_storage()
