from __future__ import annotations

"""
client.py — AdminClient: управление участниками списка Mailman через HTML-админку.

Поток:
  __init__ -> authenticate() (POST adminpw, cookies остаются в сессии)
  list_members()   : GET members (+ GET каждой страницы буквы)
  add_members()    : токен -> POST members/add    -> разбор страницы результата
  remove_members() : токен -> POST members/remove -> разбор страницы результата
  change_member()  : токен -> POST members/change -> проверка <h3>

Токен CSRF берётся заново перед КАЖДОЙ мутацией: сервис может менять его на
каждый просмотр страницы, старый токен даёт пустой результат без явной ошибки.

Неверный пароль не детектируется: дальнейшие вызовы просто вернут пустоту.
Один экземпляр — один вызывающий; параллельные вызовы гоняются за токеном.
"""

from typing import Iterable, Optional

import requests

from .http_session import AdminSession
from .layout import PageLayout
from .parsers import (
    ResultPageParser,
    RosterPageParser,
    confirms_address_change,
    extract_change_heading,
    extract_csrf_token,
)


class TokenFetcher:
    """CSRF-токен из страницы ростера. Не кэширует."""

    def __init__(self, http: AdminSession, layout: PageLayout) -> None:
        self.http = http
        self.layout = layout

    def fetch(self, page: str) -> str:
        # page: для какой операции токен; источник у всех один, имя
        # уходит только в диагностику запроса (op=token:<page>)
        resp = self.http.get(self.layout.members_path, op=f"token:{page}")
        return extract_csrf_token(resp.text, self.layout)


class AdminClient:
    def __init__(
        self,
        url: str,
        password: str,
        verify_ssl: bool = True,
        *,
        layout: Optional[PageLayout] = None,
        timeout: Optional[float] = None,
        diag_http: bool = False,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.layout = layout or PageLayout()
        self.http = AdminSession(
            url,
            verify_ssl=verify_ssl,
            timeout=timeout,
            diag_http=diag_http,
            session=session,
        )
        self._password = str(password)
        self._tokens = TokenFetcher(self.http, self.layout)
        self._roster = RosterPageParser(self.layout)
        self._results = ResultPageParser(self.layout)
        self.authenticate()

    def __repr__(self) -> str:
        return f"AdminClient(url={self.http.base_url!r})"

    def authenticate(self) -> None:
        self.http.post("", {"adminpw": self._password})

    def list_members(self) -> list[str]:
        first = self.http.get(self.layout.members_path)
        links = self._roster.letter_links(first.text)
        if not links:
            return self._roster.parse_single_page(first.text)

        urls = [self.http.resolve_link(first.url, href) for href in links]
        members: list[str] = []
        for url in urls:
            page = self.http.get(url)
            members.extend(self._roster.parse_letter_page(page.text))
        return members

    def add_members(self, members: Iterable[str]) -> list[str]:
        token = self._tokens.fetch("add")
        resp = self.http.post(self.layout.add_path, {
            "csrf_token": token,
            "subscribe_or_invite": "0",
            "send_welcome_msg_to_this_batch": "0",
            "send_notifications_to_list_owner": "0",
            "subscribees": "\n".join(members),
            "setmemberopts_btn": self.layout.submit_label,
        })
        return self._results.parse(resp.text)

    def remove_members(self, members: Iterable[str]) -> list[str]:
        token = self._tokens.fetch("remove")
        resp = self.http.post(self.layout.remove_path, {
            "csrf_token": token,
            "send_unsub_ack_to_this_batch": "0",
            "send_unsub_notifications_to_list_owner": "0",
            "unsubscribees": "\n".join(members),
            "setmemberopts_btn": self.layout.submit_label,
        })
        return self._results.parse(resp.text)

    def change_member(self, member_from: str, member_to: str) -> bool:
        """True, если заголовок подтверждения упоминает оба адреса (эвристика)."""
        token = self._tokens.fetch("change")
        resp = self.http.post(self.layout.change_path, {
            "csrf_token": token,
            "change_from": member_from,
            "change_to": member_to,
            "setmemberopts_btn": self.layout.submit_label,
        })
        heading = extract_change_heading(resp.text, self.layout)
        return confirms_address_change(heading, member_from, member_to)
