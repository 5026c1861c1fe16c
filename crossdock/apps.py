"""Django app configuration for Crossdock."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class CrossdockConfig(AppConfig):
    """Configuration for Crossdock app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "crossdock"
    verbose_name = _("Crossdocking")
