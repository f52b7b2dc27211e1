# sshlease/services/dynamic_key.py
"""
Жизненный цикл динамических SSH-ключей: выдача, продление, отзыв.

Выдача и отзыв симметричны: на целевой хост загружаются публичный ключ
и скрипт под свежим одноразовым именем, затем скрипт запускается
с install=True или install=False. Скрипт хранится в секрете дословно,
поэтому удаление выполняется тем же скриптом, что и установка.

Все сетевые вызовы paramiko блокирующие и выполняются в thread executor.
"""
import asyncio
import logging
from datetime import timedelta

from sshlease.config import (
    SECRET_DEFAULT_DURATION,
    SECRET_DEFAULT_GRACE_PERIOD,
    RENEW_FALLBACK_LEASE,
)
from sshlease.exceptions import (
    HostKeyNotFoundError,
    KeyCleanupPendingError,
    RemoteError,
    SSHLeaseError,
    StorageError,
)
from sshlease.models.lease import LeaseConfig, LeaseEntry
from sshlease.models.secret import DynamicKeyInternalData, DynamicKeyRequest, LeaseOptions, Secret
from sshlease.services import host_keys
from sshlease.services.install_script import DEFAULT_INSTALL_SCRIPT
from sshlease.services.lease_config import get_lease_config, lease_extend
from sshlease.services.otp import Salt
from sshlease.services.secret_type import OperationContext, SecretType
from sshlease.services.ssh import RemoteInstaller
from sshlease.services import keypair

logger = logging.getLogger(__name__)

SECRET_DYNAMIC_KEY_TYPE = "secret_dynamic_key_type"


class DynamicKeySecret(SecretType):
    """Тип секрета «динамический ключ»"""

    secret_type = SECRET_DYNAMIC_KEY_TYPE
    default_duration = timedelta(seconds=SECRET_DEFAULT_DURATION)
    default_grace_period = timedelta(seconds=SECRET_DEFAULT_GRACE_PERIOD)

    def __init__(self, installer: RemoteInstaller | None = None):
        self.installer = installer or RemoteInstaller()

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def _resolve_host_key(self, ctx: OperationContext, name: str) -> str:
        try:
            host_key = await host_keys.get_key(ctx.storage, name)
        except StorageError as e:
            raise StorageError(f"Ошибка чтения ключа '{name}': {e}") from e
        if host_key is None:
            raise HostKeyNotFoundError(name)
        return host_key.key

    async def _transfer(self, ctx: OperationContext, data: DynamicKeyInternalData,
                        admin_key: str, install: bool) -> None:
        """Загрузить ключ и скрипт под новым именем и запустить скрипт"""
        salt = await Salt.load(ctx.storage)
        _, public_key_filename = salt.generate_otp()
        script_filename = f"{public_key_filename}.sh"
        target = f"{data.admin_user}@{data.ip}:{data.port}"

        try:
            await self._run(self.installer.upload, data.admin_user, data.ip, data.port,
                            admin_key, public_key_filename, data.dynamic_public_key)
        except RemoteError as e:
            raise e.wrap(f"Ошибка загрузки публичного ключа на {target}") from e

        try:
            await self._run(self.installer.upload, data.admin_user, data.ip, data.port,
                            admin_key, script_filename, data.install_script)
        except RemoteError as e:
            raise e.wrap(f"Ошибка загрузки скрипта на {target}") from e

        try:
            await self._run(self.installer.install_public_key, data.admin_user, public_key_filename,
                            data.username, data.ip, data.port, admin_key, install)
        except RemoteError as e:
            action = "установки" if install else "удаления"
            raise e.wrap(f"Ошибка {action} ключа пользователя {data.username} на {target}",
                         operation="execute") from e

    async def issue(self, ctx: OperationContext, request: DynamicKeyRequest) -> Secret:
        """Сгенерировать ключ, установить его на хост и вернуть секрет"""
        admin_key = await self._resolve_host_key(ctx, request.host_key_name)

        private_key, public_key, fingerprint = await self._run(
            keypair.generate_key_pair, request.key_type.value, request.key_bits
        )

        data = DynamicKeyInternalData(
            admin_user=request.admin_user,
            username=request.username,
            ip=str(request.ip),
            port=request.port,
            host_key_name=request.host_key_name,
            dynamic_public_key=public_key,
            install_script=request.install_script or DEFAULT_INSTALL_SCRIPT,
        )
        secret = Secret(
            secret_type=self.secret_type,
            data={
                "key": private_key,
                "key_type": "dynamic",
                "username": data.username,
                "ip": data.ip,
                "port": data.port,
            },
            internal_data=data.encode(),
            lease=LeaseOptions(
                ttl=self.default_duration,
                grace_period=self.default_grace_period,
                issue_time=ctx.now,
            ),
        )

        try:
            await self._transfer(ctx, data, admin_key, install=True)
        except RemoteError as e:
            # Ошибка до запуска скрипта: ключ точно не установлен
            if e.operation != "execute":
                raise
            await self._rollback(ctx, data, admin_key, secret, e)
            raise

        logger.info(f"Выдан динамический ключ {fingerprint} для {data.username}@{data.ip}:{data.port}")
        return secret

    async def _rollback(self, ctx: OperationContext, data: DynamicKeyInternalData, admin_key: str,
                        secret: Secret, error: RemoteError) -> None:
        """Удалить ключ после ошибки на шаге запуска скрипта установки.

        Скрипт мог успеть добавить ключ, поэтому выполняется тот же
        конвейер, что и при отзыве. Если удаление тоже не удалось,
        KeyCleanupPendingError несёт секрет для регистрации на отзыв.
        """
        logger.warning(f"Установка ключа для {data.username}@{data.ip} не подтверждена, удаление: {error}")
        try:
            await self._transfer(ctx, data, admin_key, install=False)
        except SSHLeaseError as cleanup_error:
            raise KeyCleanupPendingError(
                f"{error}; удаление ключа не выполнено: {cleanup_error}",
                secret=secret, host=data.ip, port=data.port, operation="execute",
            ) from cleanup_error
        logger.info(f"Ключ пользователя {data.username} удалён с {data.ip}:{data.port} после ошибки установки")

    async def renew(self, ctx: OperationContext, secret: Secret,
                    increment: timedelta | None) -> LeaseOptions:
        config = await get_lease_config(ctx.storage)
        if config is None:
            config = LeaseConfig(lease=timedelta(seconds=RENEW_FALLBACK_LEASE))
        return lease_extend(secret.lease, increment, config.lease, config.lease_max, ctx.now)

    async def revoke(self, ctx: OperationContext, secret: Secret) -> None:
        data = DynamicKeyInternalData.decode(secret.internal_data)
        admin_key = await self._resolve_host_key(ctx, data.host_key_name)
        await self._transfer(ctx, data, admin_key, install=False)
        logger.info(f"Динамический ключ пользователя {data.username} удалён с {data.ip}:{data.port}")


async def issue_lease(manager, request: DynamicKeyRequest) -> LeaseEntry:
    """Выдать динамический ключ и зарегистрировать аренду.

    Если аренду зарегистрировать не удалось, ключ сразу отзывается:
    ключ без аренды никто бы не удалил. Если запуск скрипта установки
    завершился ошибкой и ключ не удалось сразу удалить, аренда
    регистрируется в состоянии revoking.
    """
    secret_type: DynamicKeySecret = manager.secret_types[SECRET_DYNAMIC_KEY_TYPE]
    ctx = manager.context()
    try:
        secret = await secret_type.issue(ctx, request)
    except KeyCleanupPendingError as e:
        # Ключ мог остаться на хосте: удаление повторит цикл отзыва
        try:
            entry = await manager.register(e.secret, pending_error=str(e))
        except SSHLeaseError as register_error:
            logger.error(
                f"Ключ {request.username}@{request.ip} мог остаться установлен без аренды: {register_error}"
            )
        else:
            logger.error(f"Ключ {request.username}@{request.ip} поставлен на отзыв (аренда {entry.lease_id}): {e}")
        raise
    try:
        return await manager.register(secret)
    except SSHLeaseError as e:
        logger.error(f"Не удалось зарегистрировать аренду для {request.username}@{request.ip}: {e}")
        try:
            await secret_type.revoke(ctx, secret)
        except SSHLeaseError as revoke_error:
            logger.error(
                f"Ключ {request.username}@{request.ip} остался установлен без аренды: {revoke_error}"
            )
        raise
