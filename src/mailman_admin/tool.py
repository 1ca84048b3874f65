from __future__ import annotations

"""
tool.py — CLI поверх AdminClient (консольный скрипт `mailman-admin`).

Команды:
- members      : список участников (со всех страниц букв)
- add          : подписать адреса (аргументы и/или --file)
- remove       : отписать адреса
- change       : сменить адрес участника
- secrets-set  : добавить/обновить запись в secrets.json

Откуда берутся url/пароль (по приоритету):
1) --url + --password-env
2) --ref в secrets.json (--secrets или ENV MAILMAN_ADMIN_SECRETS_PATH)

Вывод — JSON в stdout, ошибки — строка в stderr и ненулевой код выхода.
"""

import argparse
import json
import os
import sys
from typing import Any, Optional

from .client import AdminClient
from .http_session import TransportError
from .layout import PageLayout, load_layout
from .secret_store import AdminCredentials, AdminSecrets, upsert_secret


class CliError(Exception):
    def __init__(self, message: str, exit_code: int = 2) -> None:
        super().__init__(message)
        self.exit_code = exit_code


# ----------------------------
# Утилиты
# ----------------------------

def _pretty(obj: Any, pretty: bool) -> str:
    return json.dumps(obj, ensure_ascii=False, indent=(2 if pretty else None))


def read_address_file(path: str) -> list[str]:
    """Один адрес на строку; пустые строки и # комментарии пропускаем."""
    out: list[str] = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            s = line.strip()
            if not s or s.startswith("#"):
                continue
            out.append(s)
    return out


def _collect_addresses(args: argparse.Namespace) -> list[str]:
    addrs = [str(a).strip() for a in (args.addresses or []) if str(a).strip()]
    if getattr(args, "file", None):
        addrs.extend(read_address_file(args.file))
    if not addrs:
        raise CliError("no addresses given (positional or --file)")
    return addrs


def _get_secrets(args: argparse.Namespace) -> Optional[AdminSecrets]:
    if getattr(args, "secrets", None):
        return AdminSecrets(args.secrets)
    return AdminSecrets.from_env()


def _resolve_credentials(args: argparse.Namespace) -> AdminCredentials:
    if args.url:
        env_name = args.password_env
        if not env_name:
            raise CliError("--url requires --password-env (the password is never taken from argv)")
        password = os.getenv(env_name)
        if password is None:
            raise CliError(f"env var {env_name} is not set")
        return AdminCredentials(ref="cli", url=args.url, password=password, verify_ssl=not args.insecure)

    if not args.ref:
        raise CliError("either --url/--password-env or --ref is required")
    try:
        store = _get_secrets(args)
    except (OSError, ValueError) as e:
        raise CliError(f"cannot read secrets: {e}")
    if store is None:
        raise CliError(
            f"--ref given but no secrets file: pass --secrets or set {AdminSecrets.ENV_KEY}"
        )
    try:
        creds = store.credentials(args.ref)
    except (KeyError, ValueError) as e:
        raise CliError(str(e).strip("'"))
    if args.insecure:
        creds = AdminCredentials(ref=creds.ref, url=creds.url, password=creds.password, verify_ssl=False)
    return creds


def _build_client(args: argparse.Namespace) -> AdminClient:
    creds = _resolve_credentials(args)
    layout = PageLayout()
    if args.layout:
        try:
            layout = load_layout(args.layout)
        except (OSError, ValueError) as e:
            raise CliError(f"cannot read layout: {e}")
    return AdminClient(
        creds.url,
        creds.password,
        creds.verify_ssl,
        layout=layout,
        timeout=args.timeout,
        diag_http=args.diag_http,
    )


# ----------------------------
# Команды
# ----------------------------

def cmd_members(args: argparse.Namespace) -> int:
    client = _build_client(args)
    members = client.list_members()
    print(_pretty({"members": members, "count": len(members)}, args.pretty))
    return 0


def cmd_add(args: argparse.Namespace) -> int:
    addrs = _collect_addresses(args)
    client = _build_client(args)
    added = client.add_members(addrs)
    ok = set(added)
    print(_pretty({
        "requested": addrs,
        "added": added,
        "failed": [a for a in addrs if a not in ok],
    }, args.pretty))
    return 0


def cmd_remove(args: argparse.Namespace) -> int:
    addrs = _collect_addresses(args)
    client = _build_client(args)
    removed = client.remove_members(addrs)
    ok = set(removed)
    print(_pretty({
        "requested": addrs,
        "removed": removed,
        "failed": [a for a in addrs if a not in ok],
    }, args.pretty))
    return 0


def cmd_change(args: argparse.Namespace) -> int:
    client = _build_client(args)
    changed = client.change_member(args.old, args.new)
    print(_pretty({"from": args.old, "to": args.new, "changed": changed}, args.pretty))
    return 0 if changed else 1


def cmd_secrets_set(args: argparse.Namespace) -> int:
    # опции подкоманды живут в ss_*, глобальные флаги читаются отдельно
    path = args.ss_secrets or args.secrets or os.getenv(AdminSecrets.ENV_KEY, "").strip()
    if not path:
        raise CliError(f"--secrets is required for secrets-set (or set {AdminSecrets.ENV_KEY})")
    password_env = args.ss_password_env or args.password_env
    if args.ss_password is None and not password_env:
        raise CliError("secrets-set requires --password or --password-env")
    insecure = bool(args.ss_insecure or args.insecure)
    try:
        upsert_secret(
            path,
            args.ss_ref,
            url=args.ss_url,
            password=args.ss_password,
            password_env=password_env,
            verify_ssl=not insecure,
        )
    except (OSError, ValueError) as e:
        raise CliError(f"cannot write secrets: {e}")
    print(_pretty({"secrets": path, "ref": args.ss_ref, "saved": True}, args.pretty))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mailman-admin")
    p.add_argument("--pretty", action="store_true", help="pretty JSON output")
    p.add_argument("--secrets", default=None, help="path to secrets.json (overrides ENV MAILMAN_ADMIN_SECRETS_PATH)")
    p.add_argument("--ref", default=None, help="entry name in secrets.json")
    p.add_argument("--url", default=None, help="admin URL of the list, e.g. https://host/mailman/admin/team")
    p.add_argument("--password-env", default=None, help="env var holding the admin password (with --url)")
    p.add_argument("--insecure", action="store_true", help="do not verify TLS certificates (self-signed)")
    p.add_argument("--layout", default=None, help="JSON file with page layout overrides")
    p.add_argument("--timeout", type=float, default=None, help="per-request timeout, seconds")
    p.add_argument("--diag-http", action="store_true", help="print short HTTP diagnostics to stderr")

    sub = p.add_subparsers(dest="cmd", required=True)

    m = sub.add_parser("members", help="list all member addresses")
    m.set_defaults(fn=cmd_members)

    a = sub.add_parser("add", help="subscribe addresses (no welcome/owner notifications)")
    a.add_argument("addresses", nargs="*")
    a.add_argument("--file", default=None, help="file with one address per line")
    a.set_defaults(fn=cmd_add)

    r = sub.add_parser("remove", help="unsubscribe addresses (no ack/owner notifications)")
    r.add_argument("addresses", nargs="*")
    r.add_argument("--file", default=None, help="file with one address per line")
    r.set_defaults(fn=cmd_remove)

    c = sub.add_parser("change", help="change a member's address")
    c.add_argument("old")
    c.add_argument("new")
    c.set_defaults(fn=cmd_change)

    ss = sub.add_parser("secrets-set", help="upsert an admin entry into secrets.json (local)")
    ss.add_argument("--secrets", dest="ss_secrets", default=None, help="path to secrets.json")
    ss.add_argument("--ref", dest="ss_ref", required=True)
    ss.add_argument("--url", dest="ss_url", required=True)
    ss.add_argument("--password", dest="ss_password", default=None)
    ss.add_argument("--password-env", dest="ss_password_env", default=None)
    ss.add_argument("--insecure", dest="ss_insecure", action="store_true")
    ss.set_defaults(fn=cmd_secrets_set)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)

    try:
        return int(args.fn(args) or 0)
    except CliError as e:
        print(str(e), file=sys.stderr)
        return int(e.exit_code)
    except TransportError as e:
        print(f"transport error: {e}", file=sys.stderr)
        return 3


if __name__ == "__main__":
    raise SystemExit(main())
