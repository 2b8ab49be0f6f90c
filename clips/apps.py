import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class ClipsConfig(AppConfig):
    name = 'clips'

    def ready(self):
        """Register system checks and report configuration problems"""
        from clips import checks  # noqa: F401
        from clips.service.config import validate_config

        validation = validate_config()
        for error in validation.errors:
            logger.error('Configuration error: %s', error)
        for warning in validation.warnings:
            logger.warning('Configuration warning: %s', warning)
