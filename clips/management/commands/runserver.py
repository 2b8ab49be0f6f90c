from django.conf import settings
from django.core.management.commands.runserver import Command as RunserverCommand

from clips.service.cache import reconcile_serving_cache


class Command(RunserverCommand):
    """runserver listening on TRIMCAST_PORT (env PORT) unless told otherwise"""

    default_port = settings.TRIMCAST_PORT

    def inner_run(self, *args, **options):
        # Runs in the serving child when the autoreloader is on
        reconcile_serving_cache()
        super().inner_run(*args, **options)
