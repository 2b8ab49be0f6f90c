"""
Download service for source renditions.

Streams a resolved rendition URL to disk. Bytes go to a .part file first and
are renamed onto the final path only after the whole body arrived, so a crash
mid-download never leaves a file that looks like a complete cache entry.
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests

from clips.service.constants import PARTIAL_SUFFIX
from clips.service.exceptions import UpstreamFetchError

CHUNK_SIZE = 1024 * 1024


@dataclass
class DownloadedFileInfo:
    """Information about a downloaded file"""

    path: Path
    file_size: int
    extension: str
    mime_type: Optional[str] = None


def partial_prefix(out_path):
    """Filename prefix of in-flight downloads for out_path"""
    return f'{Path(out_path).name}.'


def download_source(url, out_path, headers=None, timeout=30, chunk_size=CHUNK_SIZE, logger=None):
    """
    Download a rendition directly via HTTP.

    Each call writes to its own temporary file next to out_path, so
    processes sharing a cache root never write into the same file.

    Args:
        url: Resolved rendition URL
        out_path: Final file path (Path object or str)
        headers: Optional request headers (yt-dlp http_headers for the format)
        timeout: Connect/read timeout in seconds
        chunk_size: Bytes per streamed chunk
        logger: Optional callable(str) for logging

    Returns:
        DownloadedFileInfo

    Raises:
        UpstreamFetchError: If the request fails or the body is empty
    """

    def log(message):
        if logger:
            logger(message)

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=out_path.parent, prefix=partial_prefix(out_path), suffix=PARTIAL_SUFFIX)
    tmp_path = Path(tmp_name)

    log(f'Downloading source to: {out_path}')

    try:
        with os.fdopen(fd, 'wb') as f:
            try:
                response = requests.get(url, headers=headers or {}, stream=True, timeout=timeout)
                try:
                    response.raise_for_status()
                    mime_type = response.headers.get('content-type', 'application/octet-stream')

                    for chunk in response.iter_content(chunk_size=chunk_size):
                        if chunk:
                            f.write(chunk)
                finally:
                    response.close()
            except requests.RequestException as e:
                raise UpstreamFetchError(f'unable to download the source video: {e}') from e

        file_size = tmp_path.stat().st_size
        if file_size == 0:
            raise UpstreamFetchError('source video download was empty.')

        os.replace(tmp_path, out_path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise

    log(f'Downloaded {file_size} bytes')

    return DownloadedFileInfo(
        path=out_path,
        file_size=file_size,
        extension=out_path.suffix,
        mime_type=mime_type,
    )
