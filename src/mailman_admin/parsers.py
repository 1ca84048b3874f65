from __future__ import annotations

"""
parsers.py — чтение HTML-страниц админки. Модуль НЕ делает HTTP.

Любое расхождение с ожидаемой разметкой (нет таблицы/строки/ячейки/заголовка)
даёт пустой результат, а не исключение: сервис не отличает "нет данных" от
"шаблон поменялся", и мы тоже.
"""

from typing import Optional

from .html_tree import HtmlDocument
from .layout import PageLayout


def has_warning_marker(text: str, marker: str = "--") -> bool:
    """
    Пункт результата с маркером считается неуспешным.

    Mailman пишет предупреждение через " -- " после адреса
    ("b@x.com -- Already a member"). Ложное срабатывание: адрес или сообщение,
    легитимно содержащее "--" (например "a--b@x.com"), будет отброшено.
    Ложный пропуск: локаль, где предупреждение оформлено без маркера.
    """
    if not marker:
        return False
    return marker in (text or "")


def confirms_address_change(heading: str, old: str, new: str) -> bool:
    """
    Заголовок подтверждения должен упоминать оба адреса (подстроки, не равенство).

    Ложное срабатывание: сообщение об ошибке, которое тоже цитирует оба адреса.
    Ложный пропуск: пустой адрес никогда не считается найденным.
    """
    h = heading or ""
    if not old or not new:
        return False
    return old in h and new in h


class RosterPageParser:
    """Адреса участников из страницы ростера (без состояния)."""

    def __init__(self, layout: Optional[PageLayout] = None) -> None:
        self.layout = layout or PageLayout()

    def _rows(self, doc: HtmlDocument) -> list[int]:
        table = doc.nth("table", self.layout.members_table_index)
        if table is None:
            return []
        return doc.by_tag("tr", within=table)

    def letter_links(self, html: str) -> list[str]:
        """href из строки навигации по буквам; пустой список = ростер на одной странице."""
        doc = HtmlDocument(html)
        rows = self._rows(doc)
        idx = self.layout.letter_row_index
        if idx < 0 or idx >= len(rows):
            return []
        out: list[str] = []
        for a in doc.by_tag("a", within=rows[idx]):
            href = (doc.attr(a, "href") or "").strip()
            if href:
                out.append(href)
        return out

    def parse(self, html: str, *, first_row: int) -> list[str]:
        doc = HtmlDocument(html)
        rows = self._rows(doc)
        cell = self.layout.address_cell_index
        out: list[str] = []
        for tr in rows[max(0, first_row):]:
            tds = doc.by_tag("td", within=tr)
            if cell >= len(tds):
                continue
            out.append(doc.text(tds[cell]))
        return out

    def parse_single_page(self, html: str) -> list[str]:
        return self.parse(html, first_row=self.layout.single_page_first_row)

    def parse_letter_page(self, html: str) -> list[str]:
        return self.parse(html, first_row=self.layout.letter_page_first_row)


class ResultPageParser:
    """Успешные записи со страницы результата add/remove."""

    def __init__(self, layout: Optional[PageLayout] = None) -> None:
        self.layout = layout or PageLayout()

    def parse(self, body: str) -> list[str]:
        doc = HtmlDocument(body)
        lay = self.layout

        # нет <h5>: нет ни одной успешной записи
        if doc.nth(lay.result_heading_tag, 0) is None:
            return []

        ul = doc.nth(lay.result_list_tag, 0)
        if ul is None:
            return []

        out: list[str] = []
        for li in doc.by_tag(lay.result_item_tag, within=ul):
            txt = doc.text(li)
            if has_warning_marker(txt, lay.warning_marker):
                continue
            out.append(txt)
        return out


def extract_csrf_token(html: str, layout: Optional[PageLayout] = None) -> str:
    """value первого <input> первой <form>; "" если разметка не совпала."""
    lay = layout or PageLayout()
    doc = HtmlDocument(html)
    form = doc.nth("form", lay.token_form_index)
    if form is None:
        return ""
    inp = doc.nth("input", lay.token_input_index, within=form)
    if inp is None:
        return ""
    return doc.attr(inp, lay.token_attr) or ""


def extract_change_heading(html: str, layout: Optional[PageLayout] = None) -> str:
    lay = layout or PageLayout()
    doc = HtmlDocument(html)
    h = doc.nth(lay.change_heading_tag, 0)
    return doc.text(h) if h is not None else ""
