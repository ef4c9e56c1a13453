"""Django app configuration for storyblog."""
from django.apps import AppConfig


class StoryBlogConfig(AppConfig):
    """Configuration for the storyblog app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "storyblog"
    verbose_name = "Story Blog"

    def ready(self):
        """Report degraded features once the app registry is loaded."""
        from .conf import check_configuration
        check_configuration()
