"""
Management command to clean up expired cache entries.

Eviction timers live inside the server process. When several processes share
one cache root, or a process died before its timers fired, entries can
outlive their TTL; this finds them by modification time and removes them.
"""

import shutil
import time

from django.core.management.base import BaseCommand

from clips.service.cache import SOURCE_ID_PATTERN
from clips.service.config import get_cache_dir, get_cache_ttl
from clips.service.constants import PARTIAL_SUFFIX


class Command(BaseCommand):
    help = 'Remove cached source videos older than the cache TTL'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without actually deleting',
        )
        parser.add_argument(
            '--max-age',
            type=int,
            default=None,
            help='Maximum age in minutes before an entry is removed (default: cache TTL)',
        )

    def handle(self, *args, **options):
        """Find and clean up expired cache entries"""
        dry_run = options['dry_run']
        max_age_minutes = options['max_age']
        if max_age_minutes is None:
            max_age_seconds = get_cache_ttl()
        else:
            max_age_seconds = max_age_minutes * 60

        cache_dir = get_cache_dir()
        if not cache_dir.exists():
            self.stdout.write(self.style.SUCCESS(f'Cache directory {cache_dir} does not exist'))
            return

        entries = [d for d in cache_dir.iterdir() if d.is_dir() and SOURCE_ID_PATTERN.match(d.name)]
        if not entries:
            self.stdout.write(self.style.SUCCESS('No cache entries found'))
            return

        now = time.time()
        expired = []
        for entry in entries:
            # Newest mtime among the directory and its files
            mtimes = [entry.stat().st_mtime] + [f.stat().st_mtime for f in entry.iterdir() if f.is_file()]
            age = now - max(mtimes)
            if age > max_age_seconds:
                size = sum(f.stat().st_size for f in entry.rglob('*') if f.is_file())
                partial = any(f.name.endswith(PARTIAL_SUFFIX) for f in entry.iterdir())
                expired.append({'path': entry, 'age': age, 'size': size, 'partial': partial})

        if not expired:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Found {len(entries)} cache entr{"ies" if len(entries) != 1 else "y"}, '
                    f'but none are older than {max_age_seconds // 60} minutes'
                )
            )
            return

        self.stdout.write(f'\nFound {len(expired)} expired cache entr{"ies" if len(expired) != 1 else "y"}:')
        self.stdout.write('=' * 80)

        total_size = 0
        for info in expired:
            total_size += info['size']
            note = ' (interrupted download)' if info['partial'] else ''
            self.stdout.write(
                f"{info['path'].name:20} | Age: {int(info['age'] // 60):6d} min | "
                f"Size: {info['size'] / (1024 * 1024):6.1f} MB{note}"
            )

        self.stdout.write('=' * 80)
        self.stdout.write(f'Total size: {total_size / (1024 * 1024):.1f} MB\n')

        if dry_run:
            self.stdout.write(
                self.style.WARNING(
                    f'DRY RUN: Would delete {len(expired)} entr{"ies" if len(expired) != 1 else "y"}'
                )
            )
            return

        deleted_count = 0
        for info in expired:
            try:
                shutil.rmtree(info['path'])
                self.stdout.write(self.style.SUCCESS(f"✓ Deleted: {info['path'].name}"))
                deleted_count += 1
            except OSError as e:
                self.stdout.write(self.style.ERROR(f"✗ Failed to delete {info['path'].name}: {e}"))

        self.stdout.write(
            self.style.SUCCESS(
                f'\n✓ Deleted {deleted_count} of {len(expired)} cache entr{"ies" if deleted_count != 1 else "y"}'
            )
        )
