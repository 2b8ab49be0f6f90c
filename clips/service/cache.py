"""
Local cache of downloaded source videos.

Each source id owns one directory under the cache root:

    <cache root>/<source id>/<source id>.<ext>

Entries expire after a TTL with no access. Every access resets the entry's
eviction timer instead of stacking a new one, and first-time downloads for
the same source id are serialized so concurrent requests share one download.
"""

import logging
import os
import re
import shutil
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from clips.service.config import get_cache_dir, get_cache_reconcile, get_cache_ttl, get_download_timeout
from clips.service.constants import DEFAULT_SOURCE_EXTENSION, PARTIAL_SUFFIX
from clips.service.download import download_source

logger = logging.getLogger(__name__)

DEFAULT_TTL = 60 * 60

SOURCE_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')


@dataclass
class CacheEntry:
    """One locally materialized source file"""

    source_id: str
    directory_path: Path
    file_path: Path
    cache_hit: bool = False


class ContentCache:
    """
    Maps source ids to local files and schedules their deletion.

    The timer map and the per-source lock map are guarded by self._lock.
    Lock order is always per-source lock first, then self._lock.
    """

    def __init__(self, root, ttl=DEFAULT_TTL, downloader=download_source, download_timeout=30):
        self.root = Path(root)
        self.ttl = ttl
        self._downloader = downloader
        self._download_timeout = download_timeout
        self._lock = threading.Lock()
        self._timers = {}
        self._source_locks = {}

    def entry_for(self, source_id, ext=DEFAULT_SOURCE_EXTENSION):
        """Deterministic paths for a source id"""
        if not source_id or not SOURCE_ID_PATTERN.match(source_id):
            raise ValueError(f'Invalid source id: {source_id!r}')

        directory = self.root / source_id
        return CacheEntry(
            source_id=source_id,
            directory_path=directory,
            file_path=directory / f'{source_id}.{ext or DEFAULT_SOURCE_EXTENSION}',
        )

    def has_entry(self, source_id):
        """Check if a directory exists for a source id"""
        return (self.root / source_id).is_dir()

    def cached_file(self, source_id):
        """The complete file cached for a source id, whatever its extension"""
        directory = self.root / source_id
        if not directory.is_dir():
            return None
        for path in sorted(directory.glob(f'{source_id}.*')):
            if not path.name.endswith(PARTIAL_SUFFIX) and path.is_file():
                return path
        return None

    @contextmanager
    def _source_lock(self, source_id):
        # [lock, holders]; dropped when the last holder leaves
        with self._lock:
            holder = self._source_locks.get(source_id)
            if holder is None:
                holder = [threading.Lock(), 0]
                self._source_locks[source_id] = holder
            holder[1] += 1

        try:
            with holder[0]:
                yield
        finally:
            with self._lock:
                holder[1] -= 1
                if holder[1] == 0:
                    del self._source_locks[source_id]

    def ensure_local(self, source_id, source_url, ext=DEFAULT_SOURCE_EXTENSION, headers=None, log=None):
        """
        Return the local file for a source, downloading it if absent.

        Args:
            source_id: Platform-assigned content id
            source_url: Resolved rendition URL to download from on a miss
            ext: File extension of the rendition
            headers: Optional request headers for the download
            log: Optional callable(str) for request-level logging

        Returns:
            CacheEntry with cache_hit set when no download happened

        Raises:
            UpstreamFetchError: If the download fails; nothing is left registered
        """
        entry = self.entry_for(source_id, ext)

        with self._source_lock(source_id):
            existing = self.cached_file(source_id)
            if existing is not None:
                entry.file_path = existing
                logger.info('Cache hit for %s', source_id)
                if log:
                    log(f'Using cached source: {entry.file_path}')
                # mtime records the last access for cleanup_cache
                os.utime(entry.file_path)
                self.register_for_deletion(source_id)
                entry.cache_hit = True
                return entry

            logger.info('Cache miss for %s, downloading', source_id)
            entry.directory_path.mkdir(parents=True, exist_ok=True)

            try:
                self._downloader(
                    source_url,
                    entry.file_path,
                    headers=headers,
                    timeout=self._download_timeout,
                    logger=log,
                )
            except Exception:
                self._remove_if_empty(entry.directory_path)
                raise

            self.register_for_deletion(source_id)
            return entry

    def register_for_deletion(self, source_id, ttl=None):
        """
        Schedule eviction of a source after ttl seconds.

        Any timer already scheduled for the source is cancelled first, so
        calling this repeatedly keeps exactly one pending eviction.
        """
        if ttl is None:
            ttl = self.ttl

        timer = threading.Timer(ttl, self._expire, args=[source_id])
        timer.daemon = True

        with self._lock:
            previous = self._timers.get(source_id)
            if previous is not None:
                previous.cancel()
            self._timers[source_id] = timer
            timer.start()

        logger.debug('Eviction of %s scheduled in %ss', source_id, ttl)

    def pending_evictions(self):
        """Source ids with a scheduled eviction"""
        with self._lock:
            return sorted(self._timers)

    def reconcile_on_startup(self, stale_after=None):
        """
        Register every entry already on disk for eviction.

        Entries are not re-validated against their source. Other processes
        may share the cache root, so only .part files untouched for
        stale_after seconds (default: the TTL) count as interrupted
        downloads and are removed.

        Returns:
            list: Source ids that were registered
        """
        if not self.root.is_dir():
            return []
        if stale_after is None:
            stale_after = self.ttl

        now = time.time()
        registered = []
        for directory in sorted(self.root.iterdir()):
            if not directory.is_dir() or not SOURCE_ID_PATTERN.match(directory.name):
                continue

            for partial in directory.glob(f'*{PARTIAL_SUFFIX}'):
                try:
                    age = now - partial.stat().st_mtime
                except FileNotFoundError:
                    continue
                if age > stale_after:
                    logger.warning('Removing interrupted download %s', partial)
                    partial.unlink(missing_ok=True)

            self.register_for_deletion(directory.name)
            registered.append(directory.name)

        logger.info('Reconciled %d cache entries under %s', len(registered), self.root)
        return registered

    def evict(self, source_id):
        """
        Delete a source's directory and cancel its timer.

        Eviction is background maintenance: filesystem errors are logged,
        not raised.
        """
        with self._source_lock(source_id):
            with self._lock:
                timer = self._timers.pop(source_id, None)
            if timer is not None:
                timer.cancel()
            self._delete_directory(source_id)

    def _expire(self, source_id):
        current = threading.current_thread()
        with self._source_lock(source_id):
            with self._lock:
                # A reset between firing and acquiring the lock wins
                if self._timers.get(source_id) is not current:
                    return
                del self._timers[source_id]
            self._delete_directory(source_id)

    def _delete_directory(self, source_id):
        directory = self.root / source_id
        try:
            shutil.rmtree(directory)
            logger.info('Evicted cached source %s', source_id)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error('Error deleting cache directory %s: %s', directory, e)

    def _remove_if_empty(self, directory):
        try:
            if directory.is_dir() and not any(directory.iterdir()):
                directory.rmdir()
        except OSError as e:
            logger.warning('Could not remove empty cache directory %s: %s', directory, e)

    def shutdown(self):
        """Cancel every pending eviction"""
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()


_cache = None
_cache_lock = threading.Lock()


def get_cache():
    """Get the process-wide cache built from settings"""
    global _cache
    with _cache_lock:
        if _cache is None:
            _cache = ContentCache(
                get_cache_dir(),
                ttl=get_cache_ttl(),
                download_timeout=get_download_timeout(),
            )
        return _cache


def reset_cache():
    """Drop the process-wide cache, cancelling its timers"""
    global _cache
    with _cache_lock:
        if _cache is not None:
            _cache.shutdown()
        _cache = None


def reconcile_serving_cache():
    """
    Re-register entries left on disk by a previous server process.

    Called by the serving entry points (WSGI and runserver), not by every
    process that loads Django. Returns the registered source ids.
    """
    if not get_cache_reconcile():
        return []
    return get_cache().reconcile_on_startup()
