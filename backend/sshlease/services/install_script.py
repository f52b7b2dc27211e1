"""Скрипт установки/удаления ключа по умолчанию."""

# Аргументы: $1 install|uninstall, $2 файл публичного ключа,
# $3 файл authorized_keys, $4 пользователь.
# Скрипт удаляет за собой оба загруженных файла.
DEFAULT_INSTALL_SCRIPT = r"""#!/bin/bash
if [ "$1" != "install" ] && [ "$1" != "uninstall" ]; then
  exit 1
fi

AUTH_KEYS="$3"
SSH_DIR=$(dirname "$AUTH_KEYS")

mkdir -p "$SSH_DIR" || exit 1
touch "$AUTH_KEYS" || exit 1

# Удаление ключа выполняется и при установке, чтобы не было дубликатов
grep -vFxf "$2" "$AUTH_KEYS" > "$2.tmp"
cat "$2.tmp" > "$AUTH_KEYS" || exit 1
rm -f "$2.tmp"

if [ "$1" = "install" ]; then
  printf '%s\n' "$(cat "$2")" >> "$AUTH_KEYS" || exit 1
  chown "$4" "$SSH_DIR" "$AUTH_KEYS" 2>/dev/null
  chmod 700 "$SSH_DIR"
  chmod 600 "$AUTH_KEYS"
fi

rm -f "$2" "$0"
exit 0
"""
