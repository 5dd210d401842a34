"""Pytest configuration and shared fixtures."""

import uuid
from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from bookings import models
from tests.fakes import Engine, build_engine


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def engine() -> Engine:
    return build_engine()


@pytest.fixture
def studio() -> models.Studio:
    return models.Studio.objects.create(name="Core Pilates", timezone="UTC")


@pytest.fixture
def make_class(studio):
    def _make(max_capacity=1, starts_in=timedelta(days=2), status="scheduled"):
        starts_at = timezone.now() + starts_in
        return models.ClassInstance.objects.create(
            studio=studio,
            name="Reformer Flow",
            date=starts_at.date(),
            start_time=starts_at.time().replace(microsecond=0),
            max_capacity=max_capacity,
            status=status,
        )

    return _make


@pytest.fixture
def make_member(studio):
    """Create a member holding a class pack and return (member_id, pack)."""

    def _make(remaining=5):
        member_id = uuid.uuid4()
        pack = models.ClassPack.objects.create(
            user_id=member_id, studio=studio, total_classes=remaining, remaining_classes=remaining
        )
        return member_id, pack

    return _make
