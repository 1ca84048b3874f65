from __future__ import annotations

"""
html_tree.py — минимальное DOM-дерево поверх html.parser для страниц админки Mailman.

Зачем своё дерево:
- страницы админки — старый HTML 3.2/4 из htmlformat: теги в ВЕРХНЕМ регистре,
  незакрытые <li>/<p>, <input> без слеша;
- нам нужны ровно две операции: "все элементы с тегом X внутри узла" и "текст узла".

Поведение как у getElementsByTagName: потомки в порядке документа (pre-order),
включая вложенные таблицы.
"""

from dataclasses import dataclass, field
from html.parser import HTMLParser
import re
from typing import Optional, Sequence


_WS_RE = re.compile(r"\s+")
_TEXT_TAG = "#text"

# элементы без содержимого никогда не становятся родителями
_VOID_TAGS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})

# неявное закрытие: открываемый тег -> какие открытые теги он закрывает,
# и до какой "границы" (контейнера) искать их в стеке
_IMPLIED_END: dict[str, tuple[frozenset[str], frozenset[str]]] = {
    "li": (frozenset({"li"}), frozenset({"ul", "ol"})),
    "tr": (frozenset({"tr"}), frozenset({"table", "tbody", "thead", "tfoot"})),
    "td": (frozenset({"td", "th"}), frozenset({"tr", "table"})),
    "th": (frozenset({"td", "th"}), frozenset({"tr", "table"})),
    "option": (frozenset({"option"}), frozenset({"select", "datalist"})),
    "p": (frozenset({"p"}), frozenset({"div", "td", "th", "li", "form", "body"})),
}


@dataclass
class HtmlNode:
    tag: str
    attrs: dict[str, str]
    parent: Optional[int]
    children: list[int] = field(default_factory=list)
    text_parts: list[str] = field(default_factory=list)


class _HtmlTreeBuilder(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.nodes: list[HtmlNode] = [HtmlNode(tag="__root__", attrs={}, parent=None)]
        self.stack: list[int] = [0]

    def _close_implied(self, tag: str) -> None:
        rule = _IMPLIED_END.get(tag)
        if rule is None:
            return
        closes, boundary = rule
        for i in range(len(self.stack) - 1, 0, -1):
            t = self.nodes[self.stack[i]].tag
            if t in boundary:
                return
            if t in closes:
                del self.stack[i:]
                return

    def _push_node(self, tag: str, attrs: Sequence[tuple[str, Optional[str]]], *, self_close: bool) -> None:
        t = str(tag or "").strip().lower()
        self._close_implied(t)

        parent = self.stack[-1] if self.stack else 0
        clean_attrs: dict[str, str] = {}
        for k, v in attrs:
            if not k:
                continue
            clean_attrs[str(k).strip().lower()] = "" if v is None else str(v)

        idx = len(self.nodes)
        self.nodes.append(HtmlNode(tag=t, attrs=clean_attrs, parent=parent))
        self.nodes[parent].children.append(idx)
        if not self_close and t not in _VOID_TAGS:
            self.stack.append(idx)

    def handle_starttag(self, tag: str, attrs: Sequence[tuple[str, Optional[str]]]) -> None:
        self._push_node(tag, attrs, self_close=False)

    def handle_startendtag(self, tag: str, attrs: Sequence[tuple[str, Optional[str]]]) -> None:
        self._push_node(tag, attrs, self_close=True)

    def handle_endtag(self, tag: str) -> None:
        if len(self.stack) <= 1:
            return
        t = str(tag or "").strip().lower()
        for i in range(len(self.stack) - 1, 0, -1):
            if self.nodes[self.stack[i]].tag == t:
                del self.stack[i:]
                return

    def handle_data(self, data: str) -> None:
        if not data or not self.stack:
            return
        # текст хранится отдельным узлом, чтобы text() сохранял порядок документа
        parent = self.stack[-1]
        idx = len(self.nodes)
        self.nodes.append(HtmlNode(tag=_TEXT_TAG, attrs={}, parent=parent, text_parts=[data]))
        self.nodes[parent].children.append(idx)


class HtmlDocument:
    """Разобранная страница: доступ к узлам по тегу, тексту и атрибутам."""

    ROOT = 0

    def __init__(self, html: str) -> None:
        p = _HtmlTreeBuilder()
        p.feed(html if isinstance(html, str) else "")
        p.close()
        self.nodes: list[HtmlNode] = p.nodes

    def _iter_descendants(self, start_id: int) -> list[int]:
        out: list[int] = []
        stack = list(reversed(self.nodes[start_id].children))
        while stack:
            idx = stack.pop()
            out.append(idx)
            if self.nodes[idx].children:
                stack.extend(reversed(self.nodes[idx].children))
        return out

    def by_tag(self, tag: str, *, within: Optional[int] = None) -> list[int]:
        t = str(tag or "").strip().lower()
        start = self.ROOT if within is None else within
        return [i for i in self._iter_descendants(start) if self.nodes[i].tag == t]

    def nth(self, tag: str, index: int, *, within: Optional[int] = None) -> Optional[int]:
        """N-й элемент с тегом (как getElementsByTagName(tag)[index]); None если его нет."""
        if index < 0:
            return None
        found = self.by_tag(tag, within=within)
        return found[index] if index < len(found) else None

    def text(self, node_id: int) -> str:
        parts: list[str] = []
        stack = [node_id]
        while stack:
            cur = stack.pop()
            node = self.nodes[cur]
            parts.extend(node.text_parts)
            if node.children:
                stack.extend(reversed(node.children))
        # как textContent: куски текста склеиваются без разделителя
        return _WS_RE.sub(" ", "".join(parts)).strip()

    def attr(self, node_id: int, name: str) -> Optional[str]:
        return self.nodes[node_id].attrs.get(str(name or "").strip().lower())
