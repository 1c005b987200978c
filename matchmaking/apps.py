# matchmaking/apps.py

from django.apps import AppConfig


class MatchmakingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'matchmaking'
    verbose_name = 'Matchs'

    def ready(self):
        from . import signals  # noqa: F401
