"""
Tests for the release_pallet_locks command and the admin unlock action.
"""

from datetime import timedelta
from io import StringIO

import pytest
from django.contrib.admin.sites import AdminSite
from django.contrib.messages.storage.fallback import FallbackStorage
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import RequestFactory
from django.utils import timezone

from crossdock.admin import ContainerAdmin, PalletAdmin
from crossdock.models import AuditEvent, AuditEventType, Container, Pallet
from crossdock.services.locks import PalletLocks


pytestmark = pytest.mark.django_db


def _age(pallet, hours):
    Pallet.objects.filter(pk=pallet.pk).update(locked_at=timezone.now() - timedelta(hours=hours))


class TestReleasePalletLocksCommand:
    """Tests for `manage.py release_pallet_locks`."""

    def test_releases_old_locks(self, pallet, user, supervisor):
        PalletLocks.acquire('P1', user)
        _age(pallet, 2)
        out = StringIO()

        call_command('release_pallet_locks', '--user', 'supervisor', stdout=out)

        pallet.refresh_from_db()
        assert pallet.locked_by is None
        assert '1 pallet(s) liberado(s)' in out.getvalue()
        event = AuditEvent.objects.get(event_type=AuditEventType.UNLOCK)
        assert event.user == supervisor

    def test_default_age_from_settings(self, pallet, user, supervisor):
        """STALE_LOCK_MINUTES is 60 in the test settings."""
        PalletLocks.acquire('P1', user)
        Pallet.objects.filter(pk=pallet.pk).update(
            locked_at=timezone.now() - timedelta(minutes=30),
        )
        out = StringIO()

        call_command('release_pallet_locks', '--user', 'supervisor', stdout=out)

        pallet.refresh_from_db()
        assert pallet.locked_by == user
        assert '0 pallet(s) liberado(s)' in out.getvalue()

    def test_older_than_option(self, pallet, user, supervisor):
        PalletLocks.acquire('P1', user)
        Pallet.objects.filter(pk=pallet.pk).update(
            locked_at=timezone.now() - timedelta(minutes=30),
        )

        call_command('release_pallet_locks', '--user', 'supervisor', '--older-than', '10', stdout=StringIO())

        pallet.refresh_from_db()
        assert pallet.locked_by is None

    def test_dry_run(self, pallet, user, supervisor):
        PalletLocks.acquire('P1', user)
        _age(pallet, 2)
        out = StringIO()

        call_command('release_pallet_locks', '--dry-run', stdout=out)

        pallet.refresh_from_db()
        assert pallet.locked_by == user
        assert 'P1' in out.getvalue()
        assert 'sería(n) liberado(s)' in out.getvalue()

    def test_unknown_user(self, pallet, user):
        PalletLocks.acquire('P1', user)
        _age(pallet, 2)

        with pytest.raises(CommandError):
            call_command('release_pallet_locks', '--user', 'nadie', stdout=StringIO())

    def test_release_requires_user(self, pallet, user):
        PalletLocks.acquire('P1', user)
        _age(pallet, 2)

        with pytest.raises(CommandError):
            call_command('release_pallet_locks', stdout=StringIO())

        pallet.refresh_from_db()
        assert pallet.locked_by == user


class TestPalletAdmin:
    """Tests for the read-only admin."""

    @pytest.fixture
    def request_for(self):
        def build(user):
            request = RequestFactory().post('/admin/crossdock/pallet/')
            request.user = user
            request.session = {}
            request._messages = FallbackStorage(request)
            return request
        return build

    def test_force_unlock_action(self, pallet, user, supervisor, request_for):
        PalletLocks.acquire('P1', user)
        admin = PalletAdmin(Pallet, AdminSite())

        admin.force_unlock(request_for(supervisor), Pallet.objects.all())

        pallet.refresh_from_db()
        assert pallet.locked_by is None
        event = AuditEvent.objects.get(event_type=AuditEventType.UNLOCK)
        assert event.note == 'Liberación forzada'

    def test_read_only(self, supervisor, request_for):
        admin = PalletAdmin(Pallet, AdminSite())
        request = request_for(supervisor)

        assert not admin.has_add_permission(request)
        assert not admin.has_change_permission(request)
        assert not admin.has_delete_permission(request)

    def test_container_line_count(self, manifest):
        container = Container.objects.create(code='22O00000001', manifest=manifest, destination='S1')
        admin = ContainerAdmin(Container, AdminSite())

        assert admin.line_count_display(container) == 0
