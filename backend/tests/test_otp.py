"""Тесты одноразовых идентификаторов."""
import re

import pytest

from sshlease.exceptions import IntegrityError
from sshlease.services.otp import SALT_KEY, Salt


class TestSalt:
    async def test_created_on_first_use_and_reused(self, storage):
        first = await Salt.load(storage)
        stored = await storage.get(SALT_KEY)
        assert re.fullmatch(r"[0-9a-f]{64}", stored["salt"])

        second = await Salt.load(storage)
        assert first.salt_id("value") == second.salt_id("value")

    async def test_different_salts_give_different_ids(self, storage):
        a = Salt("00" * 32)
        b = Salt("11" * 32)
        assert a.salt_id("same") != b.salt_id("same")

    async def test_corrupt_salt_rejected(self, storage):
        await storage.put(SALT_KEY, {"salt": "not-hex"})
        with pytest.raises(IntegrityError):
            await Salt.load(storage)


class TestGenerateOTP:
    async def test_filename_safe(self, storage):
        salt = await Salt.load(storage)
        otp, salted = salt.generate_otp()
        assert otp != salted
        assert re.fullmatch(r"[0-9a-f]{64}", salted)

    async def test_no_collisions(self, storage):
        salt = await Salt.load(storage)
        ids = {salt.generate_otp()[1] for _ in range(10_000)}
        assert len(ids) == 10_000
