from __future__ import annotations

"""
layout.py — "техкарта" админки Mailman: все магические индексы и имена в одном месте.

Админка не имеет API, поэтому клиент опирается на эмпирическую структуру шаблонов:
- таблица участников — 5-я <table> на странице (индекс 4);
- строка 1 этой таблицы — навигация по буквам (если есть <a>, ростер разбит на страницы);
- данные начинаются со строки 2 (одна страница) или 3 (страница буквы: +1 строка сводки);
- адрес — текст второй ячейки <td>;
- CSRF-токен — value первого <input> в первой <form>;
- страница результата add/remove: <h5> + первый <ul> со списком <li>;
- подтверждение смены адреса: первый <h3>.

Если шаблоны поменяются — правим JSON с переопределениями, а не код.

Формат JSON (любое подмножество полей):
{
  "members_table_index": 4,
  "submit_label": "Submit Your Changes"
}
"""

from dataclasses import asdict, dataclass, fields
import json
from typing import Any


DEFAULT_SUBMIT_LABEL = "Änderungen speichern"


@dataclass(frozen=True)
class PageLayout:
    # пути относительно base URL
    members_path: str = "members"
    add_path: str = "members/add"
    remove_path: str = "members/remove"
    change_path: str = "members/change"

    # ростер
    members_table_index: int = 4
    letter_row_index: int = 1
    single_page_first_row: int = 2
    letter_page_first_row: int = 3
    address_cell_index: int = 1

    # CSRF
    token_form_index: int = 0
    token_input_index: int = 0
    token_attr: str = "value"

    # результат add/remove
    result_heading_tag: str = "h5"
    result_list_tag: str = "ul"
    result_item_tag: str = "li"
    warning_marker: str = "--"

    # подтверждение change
    change_heading_tag: str = "h3"

    # подпись кнопки зависит от локали списка
    submit_label: str = DEFAULT_SUBMIT_LABEL

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "PageLayout":
        """Неизвестные ключи игнорируются, значения неверного типа -> дефолт."""
        if not isinstance(d, dict):
            return cls()
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in d:
                continue
            val = d[f.name]
            default = getattr(cls, f.name)
            if isinstance(default, int):
                # bool: подкласс int, но индексом быть не может
                if isinstance(val, bool):
                    continue
                try:
                    kwargs[f.name] = int(val)
                except (TypeError, ValueError):
                    continue
            elif isinstance(val, str):
                kwargs[f.name] = val
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def load_layout(path: str) -> PageLayout:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"layout file must be a JSON object: {path}")
    return PageLayout.from_dict(raw)
