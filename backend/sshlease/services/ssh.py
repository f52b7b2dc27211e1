# sshlease/services/ssh.py
"""
Протокол установки динамических ключей на целевой хост.

На хост под административной учётной записью загружаются два файла:
публичный ключ (<id>) и скрипт (<id>.sh). Затем скрипт запускается и
добавляет ключ в authorized_keys пользователя или удаляет его оттуда.
Командная строка содержит только имена файлов, без ключевого материала.
"""
import io
import re
import socket
import logging
import paramiko
from sshlease.config import SSH_CONNECT_TIMEOUT, SSH_COMMAND_TIMEOUT, AUTHORIZED_KEYS_PATH
from sshlease.exceptions import TransportError, RemoteIOError, RemoteExecutionError, ValidationError
from sshlease.models.secret import USERNAME_PATTERN
from sshlease.services import keypair

logger = logging.getLogger(__name__)

_FILENAME_RE = re.compile(r"^[0-9A-Za-z_.-]+$")


def _check_filename(filename: str) -> None:
    if not _FILENAME_RE.fullmatch(filename or "") or filename.startswith("."):
        raise ValidationError(f"Недопустимое имя удалённого файла: '{filename}'")


def get_ssh_client(user: str, host: str, port: int, private_key: str,
                   timeout: int = SSH_CONNECT_TIMEOUT) -> paramiko.SSHClient:
    """Создает SSH-клиент, аутентифицированный административным ключом"""
    try:
        pkey = keypair.load_private_key(private_key)
    except paramiko.SSHException as e:
        raise TransportError(
            f"Не удалось загрузить административный ключ: {e}",
            host=host, port=port, operation="connect",
        ) from e

    ssh = paramiko.SSHClient()
    ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())

    logger.debug(f"SSH подключение к {user}@{host}:{port}")
    try:
        ssh.connect(
            hostname=host,
            port=port,
            username=user,
            pkey=pkey,
            timeout=timeout,
            banner_timeout=timeout,
            auth_timeout=timeout,
            allow_agent=False,
            look_for_keys=False,
        )
    except paramiko.AuthenticationException as e:
        ssh.close()
        raise TransportError(
            f"SSH ошибка аутентификации для {user}@{host}:{port}",
            host=host, port=port, operation="connect",
        ) from e
    except (paramiko.SSHException, socket.timeout, OSError) as e:
        ssh.close()
        raise TransportError(
            f"SSH ошибка подключения к {host}:{port}: {e}",
            host=host, port=port, operation="connect",
        ) from e
    return ssh


class RemoteInstaller:
    """Загрузка файлов и запуск скрипта установки через paramiko.

    Методы блокирующие: из asyncio-кода их вызывают через executor.
    """

    def __init__(self, connect_timeout: int = SSH_CONNECT_TIMEOUT,
                 command_timeout: int = SSH_COMMAND_TIMEOUT,
                 authorized_keys_path: str = AUTHORIZED_KEYS_PATH):
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout
        self.authorized_keys_path = authorized_keys_path

    def upload(self, admin_user: str, host: str, port: int, admin_key: str,
               remote_filename: str, payload: str) -> None:
        """Загрузить payload в файл remote_filename (относительно домашнего каталога admin_user)"""
        _check_filename(remote_filename)
        ssh = get_ssh_client(admin_user, host, port, admin_key, self.connect_timeout)
        try:
            try:
                sftp = ssh.open_sftp()
            except (paramiko.SSHException, OSError) as e:
                raise TransportError(
                    f"Не удалось открыть SFTP-сессию на {host}:{port}: {e}",
                    host=host, port=port, operation="upload",
                ) from e

            try:
                sftp.putfo(io.BytesIO(payload.encode()), remote_filename)
            except (paramiko.SSHException, OSError) as e:
                raise RemoteIOError(
                    f"Ошибка записи {remote_filename} на {host}:{port}: {e}",
                    host=host, port=port, operation="upload",
                ) from e
            finally:
                sftp.close()
        finally:
            ssh.close()
        logger.debug(f"Файл {remote_filename} загружен на {host}:{port}")

    def build_command(self, public_key_filename: str, username: str, install: bool) -> str:
        """Команда запуска скрипта <public_key_filename>.sh"""
        _check_filename(public_key_filename)
        if not re.fullmatch(USERNAME_PATTERN, username or ""):
            raise ValidationError(f"Недопустимое имя пользователя: '{username}'")

        script = f"{public_key_filename}.sh"
        option = "install" if install else "uninstall"
        authorized_keys = self.authorized_keys_path.format(username=username)
        return f"chmod +x {script}; ./{script} {option} {public_key_filename} {authorized_keys} {username}"

    def install_public_key(self, admin_user: str, public_key_filename: str, username: str,
                           host: str, port: int, admin_key: str, install: bool) -> None:
        """Запустить ранее загруженный скрипт: install=True добавляет ключ, False — удаляет"""
        command = self.build_command(public_key_filename, username, install)
        action = "установка" if install else "удаление"

        ssh = get_ssh_client(admin_user, host, port, admin_key, self.connect_timeout)
        try:
            try:
                _stdin, stdout, stderr = ssh.exec_command(command, timeout=self.command_timeout)
                # recv_exit_status() ждёт без таймаута, таймаут канала на него не действует
                if not stdout.channel.status_event.wait(self.command_timeout):
                    raise TransportError(
                        f"Скрипт на {host}:{port} не завершился за {self.command_timeout} с",
                        host=host, port=port, operation="execute",
                    )
                exit_status = stdout.channel.recv_exit_status()
                error_output = stderr.read().decode(errors="replace").strip()
            except (paramiko.SSHException, socket.timeout, OSError) as e:
                raise TransportError(
                    f"SSH ошибка при выполнении скрипта на {host}:{port}: {e}",
                    host=host, port=port, operation="execute",
                ) from e
        finally:
            ssh.close()

        if exit_status != 0:
            raise RemoteExecutionError(
                f"Скрипт завершился с кодом {exit_status} на {host}:{port}: {error_output}",
                exit_status=exit_status, stderr=error_output,
                host=host, port=port, operation="execute",
            )
        logger.info(f"{action.capitalize()} ключа для {username} на {host}:{port} выполнена")
