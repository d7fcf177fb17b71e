from django.apps import AppConfig


class ReturnsConfig(AppConfig):
    name = 'apps.returns'
    verbose_name = 'Returns'

    def ready(self):
        from . import signals  # noqa: F401
