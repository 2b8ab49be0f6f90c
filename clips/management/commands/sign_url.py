from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError

from clips.service.config import get_signing_secret, get_signing_window
from clips.service.signing import sign_url


class Command(BaseCommand):
    help = 'Sign a pull zone URL with the configured token secret'

    def add_arguments(self, parser):
        parser.add_argument('url', type=str, help='Public CDN URL')
        parser.add_argument(
            '--hours',
            type=float,
            default=None,
            help='Validity window in hours (default: TRIMCAST_SIGNING_EXPIRY_HOURS)',
        )

    def handle(self, *args, **options):
        secret = get_signing_secret()
        if not secret:
            raise CommandError('BUNNY_CDN_TOKEN_AUTH is not set, nothing to sign with')

        window = get_signing_window()
        if options['hours'] is not None:
            if options['hours'] <= 0:
                raise CommandError('--hours must be positive')
            window = timedelta(hours=options['hours'])

        self.stdout.write(sign_url(options['url'], secret, window=window))
