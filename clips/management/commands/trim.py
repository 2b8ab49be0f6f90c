"""
Django management command for trimming a video from the command line.

Runs the same pipeline as the /trim endpoint: fetch metadata, cache the
source, trim, upload and optionally sign. Prints the final clip URL.
"""

import json

from django.core.management.base import BaseCommand, CommandError

from clips.service.config import validate_config
from clips.service.exceptions import TrimcastError
from clips.service.pipeline import trim_and_publish


class Command(BaseCommand):
    help = 'Trim a range out of a YouTube video and upload the clip'

    def add_arguments(self, parser):
        parser.add_argument('url', type=str, help='YouTube video URL')
        parser.add_argument('--start', type=float, default=0, help='Start second (default: 0)')
        parser.add_argument('--end', type=float, required=True, help='End second')
        parser.add_argument('--verbose', action='store_true', help='Enable verbose output')
        parser.add_argument('--json', action='store_true', help='Output result as JSON')

    def handle(self, *args, **options):
        verbose = options['verbose']
        output_json = options['json']

        validation = validate_config()
        if not validation.is_valid:
            raise CommandError('Configuration invalid:\n  ' + '\n  '.join(validation.errors))

        def logger(message):
            if verbose:
                self.stdout.write(message)

        try:
            result = trim_and_publish(
                options['url'],
                (options['start'], options['end']),
                logger=logger,
            )
        except TrimcastError as e:
            if output_json:
                self.stdout.write(json.dumps({'success': False, 'error': str(e)}, indent=2))
                return
            raise CommandError(f'Trim failed: {e}')

        if output_json:
            output = {
                'success': True,
                'url': result.url,
                'signed': result.signed,
                'key': result.key,
                'source_id': result.source_id,
                'start': result.time_range.start,
                'end': result.time_range.end,
                'file_size': result.file_size,
                'cache_hit': result.cache_hit,
            }
            self.stdout.write(json.dumps(output, indent=2))
            return

        self.stdout.write(self.style.SUCCESS('✓ Trim complete'))
        self.stdout.write(f'  URL: {result.url}')
        self.stdout.write(f'  Source: {result.source_id} ({"cached" if result.cache_hit else "downloaded"})')
        self.stdout.write(f'  Range: {result.time_range.start}-{result.time_range.end}s')
        self.stdout.write(f'  Size: {result.file_size:,} bytes')
        self.stdout.write(f'  Signed: {"Yes" if result.signed else "No"}')
