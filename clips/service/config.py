"""
Configuration adapter for trim settings.

Centralizes access to Django settings and environment variables,
ensuring consistent configuration across the CLI and the web app.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

from django.conf import settings


@dataclass
class StorageConfig:
    """Connection details for the storage zone and its pull zone"""

    host: str
    zone: str
    access_key: str
    cdn_host: str


@dataclass
class ConfigValidation:
    """Result of checking the settings before serving requests"""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self):
        return not self.errors


def get_api_key():
    """Get the shared secret expected in the Authorization header"""
    return settings.TRIMCAST_API_KEY


def get_storage_config():
    """Get storage zone and CDN settings"""
    return StorageConfig(
        host=settings.TRIMCAST_STORAGE_HOST,
        zone=settings.TRIMCAST_STORAGE_ZONE,
        access_key=settings.TRIMCAST_STORAGE_ACCESS_KEY,
        cdn_host=settings.TRIMCAST_CDN_HOST,
    )


def get_signing_secret():
    """Get the pull zone token secret, or None when signing is disabled"""
    return settings.TRIMCAST_SIGNING_SECRET or None


def get_signing_window():
    """Get how long signed URLs stay valid"""
    hours = settings.TRIMCAST_SIGNING_EXPIRY_HOURS
    if hours is None:
        hours = 3
    return timedelta(hours=hours)


def get_max_duration() -> Optional[int]:
    """Get the clip length cap in seconds, or None when uncapped"""
    limit = settings.TRIMCAST_MAX_DURATION
    if not limit or limit <= 0:
        return None
    return int(limit)


def get_ffmpeg_binary():
    """Get the ffmpeg executable to run"""
    return settings.TRIMCAST_FFMPEG_BINARY or 'ffmpeg'


def get_cache_dir():
    """Get the cache root directory"""
    return Path(settings.TRIMCAST_CACHE_DIR)


def get_cache_ttl():
    """Get the cache time-to-live in seconds"""
    return settings.TRIMCAST_CACHE_TTL


def get_cache_reconcile():
    """Whether serving processes pick up entries already on disk"""
    return settings.TRIMCAST_CACHE_RECONCILE


def get_download_timeout():
    return settings.TRIMCAST_DOWNLOAD_TIMEOUT


def get_trim_timeout():
    return settings.TRIMCAST_TRIM_TIMEOUT


def get_upload_timeout():
    return settings.TRIMCAST_UPLOAD_TIMEOUT


def get_ytdlp_options(base_opts):
    """
    Apply proxy and cookie settings to a yt-dlp options dict.

    Args:
        base_opts: Base yt-dlp options dict to update

    Returns:
        dict: Updated yt-dlp options dict
    """
    # Needed for cloud VMs where YouTube blocks requests
    if settings.TRIMCAST_YTDLP_PROXY:
        base_opts['proxy'] = settings.TRIMCAST_YTDLP_PROXY

    # Used to reach age-restricted videos
    cookie = settings.TRIMCAST_YTDLP_COOKIE
    if isinstance(cookie, str) and cookie:
        headers = dict(base_opts.get('http_headers', {}))
        headers['Cookie'] = cookie
        base_opts['http_headers'] = headers

    return base_opts


def validate_config():
    """
    Check that the settings needed to serve /trim are present.

    Returns:
        ConfigValidation: errors block trimming, warnings do not
    """
    result = ConfigValidation()
    storage = get_storage_config()

    required = [
        ('TRIMCAST_STORAGE_HOST', 'BUNNY_HOSTNAME', storage.host),
        ('TRIMCAST_STORAGE_ZONE', 'BUNNY_STORAGENAME', storage.zone),
        ('TRIMCAST_STORAGE_ACCESS_KEY', 'BUNNY_AUTH', storage.access_key),
        ('TRIMCAST_CDN_HOST', 'BUNNY_CDN_ENDPOINT', storage.cdn_host),
    ]
    for setting_name, env_name, value in required:
        if not value:
            result.errors.append(f'{setting_name} is not set (environment variable {env_name})')

    if not get_api_key():
        result.errors.append('TRIMCAST_API_KEY is not set (environment variable SERVER_AUTH)')

    ttl = get_cache_ttl()
    if ttl is None or ttl <= 0:
        result.errors.append(f'TRIMCAST_CACHE_TTL must be a positive number of seconds, got {ttl!r}')

    if get_signing_window() <= timedelta(0):
        result.errors.append('TRIMCAST_SIGNING_EXPIRY_HOURS must be positive')

    if not get_signing_secret():
        result.warnings.append('BUNNY_CDN_TOKEN_AUTH is not set, clip URLs will not be signed')

    return result
