from __future__ import annotations

"""
secret_store.py — локальное хранилище паролей админки (vault), НЕ коммитится в репозиторий.

Идея:
- пароль не передаётся в командной строке и не лежит в истории shell;
- в ENV хранится только путь к secrets-файлу (1 переменная);
- CLI выбирает запись по ref (имя списка/установки).

ENV:
- MAILMAN_ADMIN_SECRETS_PATH=/abs/or/relative/secrets.json
  (relative путь считается относительно текущей папки запуска)

Формат secrets.json (пример):
{
  "team": {"type": "mailman_admin", "url": "https://lists.example.org/mailman/admin/team",
           "password": "..."},
  "selfsigned": {"type": "mailman_admin", "url": "https://10.0.0.5/mailman/admin/ops",
                 "password_env": "OPS_ADMINPW", "verify_ssl": false}
}
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional


SECRET_TYPE = "mailman_admin"


def _load_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


@dataclass(frozen=True)
class AdminCredentials:
    """Всё, что нужно для AdminClient(url, password, verify_ssl)."""
    ref: str
    url: str
    password: str
    verify_ssl: bool = True

    def __repr__(self) -> str:
        return f"AdminCredentials(ref={self.ref!r}, url={self.url!r}, verify_ssl={self.verify_ssl})"


class AdminSecrets:
    """
    AdminSecrets читает secrets.json и даёт доступ по ref.
    """

    ENV_KEY = "MAILMAN_ADMIN_SECRETS_PATH"

    def __init__(self, secrets_path: str) -> None:
        self.secrets_path = str(secrets_path)
        raw = _load_json(self.secrets_path)
        if not isinstance(raw, dict):
            raise ValueError("secrets.json must be an object: {ref: {...}}")
        self._secrets: dict[str, dict[str, Any]] = {}
        for k, v in raw.items():
            if isinstance(k, str) and isinstance(v, dict):
                self._secrets[k] = v
        if not self._secrets:
            raise ValueError("secrets.json has no valid entries")

    @classmethod
    def from_env(cls) -> Optional["AdminSecrets"]:
        """Если ENV не задан — вернёт None."""
        p = os.getenv(cls.ENV_KEY, "").strip()
        if not p:
            return None
        # относительный путь — относительно CWD
        path = Path(p).expanduser()
        return cls(str(path if path.is_absolute() else path.resolve()))

    def refs(self) -> list[str]:
        return sorted(self._secrets)

    def get(self, ref: str) -> dict[str, Any]:
        if ref not in self._secrets:
            raise KeyError(f"Secret ref not found: {ref}")
        return self._secrets[ref]

    def credentials(self, ref: str) -> AdminCredentials:
        sec = self.get(ref)
        typ = str(sec.get("type") or SECRET_TYPE).strip().lower()
        if typ != SECRET_TYPE:
            raise ValueError(f"Unsupported secret type: {typ}")

        url = sec.get("url")
        if not isinstance(url, str) or not url.strip():
            raise ValueError(f"secret '{ref}' requires 'url'")

        password = sec.get("password")
        env_name = sec.get("password_env")
        if not isinstance(password, str) and isinstance(env_name, str) and env_name:
            password = os.getenv(env_name)
            if password is None:
                raise ValueError(f"secret '{ref}': env var {env_name} is not set")
        if not isinstance(password, str):
            raise ValueError(f"secret '{ref}' requires 'password' or 'password_env'")

        return AdminCredentials(
            ref=ref,
            url=url.strip(),
            password=password,
            verify_ssl=bool(sec.get("verify_ssl", True)),
        )


def upsert_secret(
    path: str,
    ref: str,
    *,
    url: str,
    password: Optional[str] = None,
    password_env: Optional[str] = None,
    verify_ssl: bool = True,
) -> dict[str, Any]:
    """Добавить/обновить запись; остальные записи файла не трогаем."""
    obj: Any = {}
    if os.path.exists(path):
        obj = _load_json(path)
    if not isinstance(obj, dict):
        raise ValueError(f"secrets file is not a JSON object: {path}")

    entry: dict[str, Any] = {"type": SECRET_TYPE, "url": url}
    if password is not None:
        entry["password"] = password
    elif password_env:
        entry["password_env"] = password_env
    else:
        raise ValueError("either password or password_env is required")
    if not verify_ssl:
        entry["verify_ssl"] = False

    obj[ref] = entry
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2)
    return entry
