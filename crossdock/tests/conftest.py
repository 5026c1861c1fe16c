"""
Pytest fixtures for Crossdock tests.

Base scenario: pallet P1 carries 100 units of A1 (barcode 7790001),
demanded 40 by store S1 and 60 by store S2.
"""

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from crossdock.models import DemandLine, InventoryLine, Manifest, ManifestStatus, Pallet


User = get_user_model()


@pytest.fixture
def user(db):
    """Operator."""
    return User.objects.create_user(username='operador', password='testpass123')


@pytest.fixture
def other_user(db):
    """A second operator competing for the same pallet."""
    return User.objects.create_user(username='operador2', password='testpass123')


@pytest.fixture
def supervisor(db):
    return User.objects.create_superuser(username='supervisor', password='testpass123')


@pytest.fixture
def manifest(db, user):
    return Manifest.objects.create(
        file_name='carga_lunes.xlsx',
        status=ManifestStatus.IN_PROGRESS,
        total_lines=2,
        created_by=user,
    )


@pytest.fixture
def pallet(db):
    """Pallet P1 with 100 units of A1."""
    pallet = Pallet.objects.create(code='P1', location='DOCK-01')
    InventoryLine.objects.create(
        pallet=pallet,
        sku='A1',
        qty_initial=Decimal('100'),
        qty_available=Decimal('100'),
    )
    return pallet


@pytest.fixture
def line_s1(manifest, pallet):
    return DemandLine.objects.create(
        manifest=manifest,
        pallet_code=pallet.code,
        sku='A1',
        barcode='7790001',
        description='Arroz 1kg',
        destination='S1',
        truck='T1',
        qty_to_send=Decimal('40'),
    )


@pytest.fixture
def line_s2(manifest, pallet):
    return DemandLine.objects.create(
        manifest=manifest,
        pallet_code=pallet.code,
        sku='A1',
        barcode='7790001',
        description='Arroz 1kg',
        destination='S2',
        truck='T2',
        qty_to_send=Decimal('60'),
    )


@pytest.fixture
def demand(line_s1, line_s2):
    """Both demand lines of A1."""
    return [line_s1, line_s2]


@pytest.fixture
def locked_pallet(pallet, demand, user):
    """P1 taken by user, with its demand loaded."""
    Pallet.objects.filter(pk=pallet.pk).update(locked_by=user)
    pallet.refresh_from_db()
    return pallet


@pytest.fixture
def second_sku(manifest, pallet):
    """B1 on the same pallet: 10 units, all for S1."""
    InventoryLine.objects.create(
        pallet=pallet,
        sku='B1',
        qty_initial=Decimal('10'),
        qty_available=Decimal('10'),
    )
    manifest.total_lines = 3
    manifest.save(update_fields=['total_lines'])
    return DemandLine.objects.create(
        manifest=manifest,
        pallet_code=pallet.code,
        sku='B1',
        destination='S1',
        qty_to_send=Decimal('10'),
    )