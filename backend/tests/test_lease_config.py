"""Тесты конфигурации аренды и политики продления."""
from datetime import timedelta

import pytest

from sshlease.exceptions import LeaseStateError, ValidationError
from sshlease.models.secret import LeaseOptions
from sshlease.services.lease_config import get_lease_config, lease_extend, write_lease_config

from conftest import NOW

HOUR = timedelta(hours=1)


def options(**kwargs) -> LeaseOptions:
    return LeaseOptions(ttl=timedelta(minutes=10), issue_time=NOW, **kwargs)


class TestLeaseExtend:
    def test_requested_capped_at_max(self):
        result = lease_extend(options(), 3 * HOUR, HOUR, 2 * HOUR, NOW)
        assert result.ttl == 2 * HOUR
        assert result.expire_time <= NOW + 2 * HOUR

    def test_default_used_when_not_requested(self):
        result = lease_extend(options(), None, HOUR, 2 * HOUR, NOW)
        assert result.ttl == HOUR

    def test_never_past_issue_time_plus_max(self):
        now = NOW + timedelta(minutes=90)
        result = lease_extend(options(), 3 * HOUR, HOUR, 2 * HOUR, now)
        assert result.ttl == timedelta(minutes=30)
        assert result.expire_time == NOW + 2 * HOUR

    def test_refused_after_max(self):
        with pytest.raises(LeaseStateError):
            lease_extend(options(), HOUR, HOUR, 2 * HOUR, NOW + 3 * HOUR)

    def test_refused_at_deadline(self):
        with pytest.raises(LeaseStateError):
            lease_extend(options(), HOUR, HOUR, 2 * HOUR, NOW + 2 * HOUR)

    def test_no_maximum_never_refused(self):
        result = lease_extend(options(), HOUR, HOUR, timedelta(0), NOW + 300 * HOUR)
        assert result.ttl == HOUR

    def test_no_maximum(self):
        result = lease_extend(options(), 30 * HOUR, HOUR, timedelta(0), NOW)
        assert result.ttl == 30 * HOUR

    def test_renewal_time_recorded(self):
        now = NOW + timedelta(minutes=5)
        result = lease_extend(options(), HOUR, HOUR, timedelta(0), now)
        assert result.last_renewal_time == now
        assert result.issue_time == NOW
        assert result.expire_time == now + HOUR


class TestLeaseConfigStorage:
    async def test_absent(self, storage):
        assert await get_lease_config(storage) is None

    async def test_write_and_read(self, storage):
        await write_lease_config(storage, HOUR, 2 * HOUR)
        config = await get_lease_config(storage)
        assert config.lease == HOUR
        assert config.lease_max == 2 * HOUR

    async def test_max_below_lease_rejected(self, storage):
        with pytest.raises(ValidationError):
            await write_lease_config(storage, 2 * HOUR, HOUR)
        assert await get_lease_config(storage) is None

    async def test_negative_rejected(self, storage):
        with pytest.raises(ValidationError):
            await write_lease_config(storage, -HOUR, timedelta(0))
