"""
System checks for trimcast settings.

Reported by `manage.py check` and before `runserver` starts serving, so a
missing storage credential shows up before the first request fails.
"""

from django.core.checks import Error, Warning, register

from clips.service.config import validate_config


@register('trimcast')
def check_trimcast_settings(app_configs, **kwargs):
    validation = validate_config()
    messages = [
        Error(error, hint='Set the environment variable and restart.', id='trimcast.E001')
        for error in validation.errors
    ]
    messages.extend(Warning(warning, id='trimcast.W001') for warning in validation.warnings)
    return messages
