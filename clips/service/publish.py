"""
Upload service for trimmed clips.

Stores clips in a BunnyCDN storage zone under a fresh namespace and builds
the public pull zone URL for them.
"""

import time
from dataclasses import dataclass
from typing import Optional

import requests
from nanoid import generate

from clips.service.config import get_storage_config, get_upload_timeout
from clips.service.constants import (
    NAMESPACE_ALPHABET,
    NAMESPACE_SIZE,
    OUTPUT_EXTENSION,
    UPLOAD_SUCCESS_STATUS,
)
from clips.service.exceptions import UploadError


@dataclass
class UploadResult:
    """Information about an uploaded clip"""

    key: str
    url: str
    status_code: int
    file_size: int


def generate_namespace():
    """Generate a NanoID with A-Z a-z 0-9 alphabet"""
    return generate(NAMESPACE_ALPHABET, size=NAMESPACE_SIZE)


def build_object_key(ext=OUTPUT_EXTENSION, now_ms=None):
    """
    Build a storage key of the form <namespace>/<millisecond timestamp>.<ext>.

    Args:
        ext: File extension without the dot
        now_ms: Optional timestamp in milliseconds (defaults to now)
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f'{generate_namespace()}/{now_ms}.{ext}'


def storage_url(key, storage=None):
    """Storage API URL for a key"""
    storage = storage or get_storage_config()
    return f'https://{storage.host}/{storage.zone}/{key}'


def public_url(key, storage=None):
    """Pull zone URL for a key"""
    storage = storage or get_storage_config()
    return f'https://{storage.cdn_host}/{key}'


def upload_buffer(data, key: Optional[str] = None, timeout=None, logger=None):
    """
    Upload a clip to the storage zone in a single PUT request.

    Args:
        data: Clip bytes
        key: Optional storage key (a fresh one is generated by default)
        timeout: Optional request timeout in seconds (defaults to settings)
        logger: Optional callable(str) for logging

    Returns:
        UploadResult

    Raises:
        UploadError: If the request fails or the status is not 201 Created
    """

    def log(message):
        if logger:
            logger(message)

    if not data:
        raise UploadError('refusing to upload an empty clip.')

    storage = get_storage_config()
    key = key or build_object_key()
    timeout = timeout if timeout is not None else get_upload_timeout()

    log(f'Uploading {len(data)} bytes to {storage.zone}/{key}')

    try:
        response = requests.put(
            storage_url(key, storage),
            data=data,
            headers={
                'AccessKey': storage.access_key,
                'Content-Type': 'application/octet-stream',
                'Accept': 'application/json',
            },
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise UploadError(f'upload to the storage failed: {e}') from e

    if response.status_code != UPLOAD_SUCCESS_STATUS:
        raise UploadError(
            f'something went wrong [{response.status_code}] while uploading trimmed file to the storage.',
            status_code=response.status_code,
        )

    log(f'Upload complete: {key}')

    return UploadResult(
        key=key,
        url=public_url(key, storage),
        status_code=response.status_code,
        file_size=len(data),
    )
