"""
Management command to release pallet locks left behind by abandoned sessions.

Locks never expire on their own; this is the supervisor's explicit unlock.

Usage:
    python manage.py release_pallet_locks --user supervisor
    python manage.py release_pallet_locks --user supervisor --older-than 30
    python manage.py release_pallet_locks --dry-run
"""

from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from crossdock.conf import crossdock_settings
from crossdock.services.locks import PalletLocks


class Command(BaseCommand):
    """Release stale pallet locks command."""

    help = 'Libera pallets tomados hace más de N minutos'

    def add_arguments(self, parser):
        parser.add_argument(
            '--user',
            default=None,
            help='Usuario (username) al que se atribuye la liberación; obligatorio salvo con --dry-run'
        )
        parser.add_argument(
            '--older-than',
            type=int,
            default=None,
            help='Antigüedad mínima del bloqueo en minutos'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Muestra lo que sería liberado sin ejecutar'
        )

    def handle(self, *args, **options):
        minutes = options['older_than']
        if minutes is None:
            minutes = crossdock_settings.STALE_LOCK_MINUTES
        older_than = timedelta(minutes=minutes)

        if options['dry_run']:
            codes = list(PalletLocks.stale(older_than).values_list('code', flat=True))
            for code in codes:
                self.stdout.write(f'  {code}')
            self.stdout.write(f'{len(codes)} pallet(s) sería(n) liberado(s)')
            return

        if not options['user']:
            raise CommandError('--user es obligatorio para liberar pallets')

        User = get_user_model()
        try:
            user = User.objects.get(**{User.USERNAME_FIELD: options['user']})
        except User.DoesNotExist:
            raise CommandError(f"Usuario '{options['user']}' no existe") from None

        count = PalletLocks.release_stale(older_than, user)
        self.stdout.write(
            self.style.SUCCESS(f'{count} pallet(s) liberado(s)')
        )
