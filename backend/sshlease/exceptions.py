"""
Исключения sshlease.

Каждое исключение несёт признак retryable: менеджер аренд повторяет
отзыв только для retryable-ошибок, остальные требуют вмешательства.
"""


class SSHLeaseError(Exception):
    """Базовое исключение сервиса"""
    retryable = False


class ValidationError(SSHLeaseError):
    """Некорректный пользовательский ввод (пустой или нечитаемый ключ, недопустимое имя).

    Состояние хранилища при этом не меняется.
    """


class IntegrityError(SSHLeaseError):
    """Внутренние данные секрета отсутствуют или имеют неверный тип.

    Означает повреждение данных или несовместимую версию записи.
    Значения по умолчанию никогда не подставляются.
    """


class HostKeyNotFoundError(SSHLeaseError):
    """Административный ключ хоста не зарегистрирован"""

    def __init__(self, key_name: str):
        self.key_name = key_name
        super().__init__(f"Ключ '{key_name}' не найден")


class LeaseNotFoundError(SSHLeaseError):
    """Аренда не найдена"""

    def __init__(self, lease_id: str):
        self.lease_id = lease_id
        super().__init__(f"Аренда '{lease_id}' не найдена")


class LeaseStateError(SSHLeaseError):
    """Операция недопустима в текущем состоянии аренды"""


class StorageError(SSHLeaseError):
    """Сбой хранилища (временный)"""
    retryable = True


class RemoteError(SSHLeaseError):
    """Ошибка при работе с удалённым хостом.

    Args:
        message: Описание ошибки
        host: Адрес целевого хоста
        port: SSH-порт
        operation: Шаг протокола ("connect", "upload", "execute", ...)
    """
    retryable = True

    def __init__(self, message: str, *, host: str | None = None, port: int | None = None,
                 operation: str | None = None):
        self.host = host
        self.port = port
        self.operation = operation
        super().__init__(message)

    def wrap(self, context: str, operation: str | None = None) -> "RemoteError":
        """Вернуть ошибку того же типа с добавленным контекстом (и, если задан, шагом)"""
        return type(self)(f"{context}: {self}", host=self.host, port=self.port,
                          operation=operation or self.operation)


class TransportError(RemoteError):
    """Не удалось подключиться или аутентифицироваться (включая таймаут)"""


class RemoteIOError(RemoteError):
    """Не удалось записать файл на целевом хосте"""


class RemoteExecutionError(RemoteError):
    """Удалённая команда завершилась с ненулевым кодом"""

    def __init__(self, message: str, *, exit_status: int | None = None, stderr: str = "", **kwargs):
        self.exit_status = exit_status
        self.stderr = stderr
        super().__init__(message, **kwargs)

    def wrap(self, context: str, operation: str | None = None) -> "RemoteExecutionError":
        return RemoteExecutionError(
            f"{context}: {self}",
            exit_status=self.exit_status,
            stderr=self.stderr,
            host=self.host,
            port=self.port,
            operation=operation or self.operation,
        )


class KeyCleanupPendingError(RemoteError):
    """Запуск скрипта установки завершился ошибкой, и удалить ключ сразу не удалось.

    Ключ мог остаться в authorized_keys. secret — выданный секрет,
    его нужно зарегистрировать на отзыв.
    """

    def __init__(self, message: str, *, secret, **kwargs):
        self.secret = secret
        super().__init__(message, **kwargs)

    def wrap(self, context: str, operation: str | None = None) -> "KeyCleanupPendingError":
        return KeyCleanupPendingError(
            f"{context}: {self}",
            secret=self.secret,
            host=self.host,
            port=self.port,
            operation=operation or self.operation,
        )
