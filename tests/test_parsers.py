from __future__ import annotations

from mailman_admin.layout import PageLayout
from mailman_admin.parsers import (
    ResultPageParser,
    RosterPageParser,
    confirms_address_change,
    extract_change_heading,
    extract_csrf_token,
    has_warning_marker,
)


FILLER = "<table><tr><td>x</td></tr></table>" * 4


def _roster(rows: list[str], *, letters: list[str] | None = None, summary_row: bool = False) -> str:
    nav = " ".join(f'<a href="{h}">{h[-1].upper()}</a>' for h in (letters or []))
    head = "<tr><td colspan=2><b>2 members total</b></td></tr>"
    nav_row = f"<tr><td colspan=2>{nav or 'unsub member address'}</td></tr>"
    extra = "<tr><td>unsub</td><td>member address</td></tr>" if summary_row else ""
    data = "".join(f'<tr><td><input type="checkbox" name="unsub"></td><td><a href="/o/{a}">{a}</a><br><input name="{a}_realname"></td></tr>' for a in rows)
    return f"<html><body>{FILLER}<table border=2>{head}{nav_row}{extra}{data}</table></body></html>"


def test_single_page_roster_returns_rows_in_order():
    html = _roster(["a@x.com", "b@x.com", "c@x.com"])
    p = RosterPageParser()
    assert p.letter_links(html) == []
    assert p.parse_single_page(html) == ["a@x.com", "b@x.com", "c@x.com"]


def test_roster_without_data_rows_is_empty():
    p = RosterPageParser()
    assert p.parse_single_page(_roster([])) == []
    assert p.parse_letter_page(_roster([], letters=["?letter=a"], summary_row=True)) == []


def test_letter_page_skips_extra_header_row():
    html = _roster(["d@x.com", "e@x.com"], letters=["?letter=d", "?letter=e"], summary_row=True)
    p = RosterPageParser()
    assert p.letter_links(html) == ["?letter=d", "?letter=e"]
    assert p.parse_letter_page(html) == ["d@x.com", "e@x.com"]


def test_roster_missing_table_or_short_rows():
    p = RosterPageParser()
    assert p.parse_single_page("<html><body><table><tr><td>1</td></tr></table></body></html>") == []

    # строка с одной ячейкой пропускается, а не роняет разбор
    html = f"<html>{FILLER}<table><tr><td>h</td></tr><tr><td>n</td></tr><tr><td>only</td></tr><tr><td>u</td><td>z@x.com</td></tr></table></html>"
    assert p.parse_single_page(html) == ["z@x.com"]


def test_roster_tolerates_uppercase_unclosed_markup():
    html = (
        FILLER
        + "<TABLE><TR><TD>head<TR><TD>nav<TR><TD><INPUT type=checkbox><TD>a@x.com<BR>"
        + "<TR><TD><INPUT type=checkbox><TD>b@x.com</TABLE>"
    )
    assert RosterPageParser().parse_single_page(html) == ["a@x.com", "b@x.com"]


def test_roster_uses_layout_table_index():
    html = "<table><tr><td>h</td></tr><tr><td>n</td></tr><tr><td>u</td><td>q@x.com</td></tr></table>"
    p = RosterPageParser(PageLayout(members_table_index=0))
    assert p.parse_single_page(html) == ["q@x.com"]


def test_result_page_without_h5_is_empty():
    html = "<html><body><h3>Error</h3><ul><li>a@x.com</li></ul></body></html>"
    assert ResultPageParser().parse(html) == []


def test_result_page_drops_entries_with_warning_marker():
    html = """
    <html><body>
    <h5>Erfolgreich eingetragen:</h5>
    <ul>
    <li>a@x.com
    <li>b@x.com -- warning: already subscribed
    </ul>
    <ul><li>c@x.com</li></ul>
    </body></html>
    """
    assert ResultPageParser().parse(html) == ["a@x.com"]


def test_result_page_keeps_response_order():
    html = "<h5>Successfully Unsubscribed:</h5><ul><li>z@x.com</li><li>a@x.com</li></ul>"
    assert ResultPageParser().parse(html) == ["z@x.com", "a@x.com"]


def test_result_page_h5_without_list():
    assert ResultPageParser().parse("<h5>Successfully subscribed:</h5><p>nothing</p>") == []


def test_csrf_token_is_first_input_of_first_form():
    html = """
    <form method="post" action="/admin/team/members">
      <input type="hidden" name="csrf_token" value="T-123">
      <input type="text" name="findmember" value="">
    </form>
    <form><input name="other" value="NO"></form>
    """
    assert extract_csrf_token(html) == "T-123"


def test_csrf_token_missing_form_is_empty():
    assert extract_csrf_token("<html><body><input value='x'></body></html>") == ""
    assert extract_csrf_token("<form></form>") == ""


def test_change_heading_and_confirmation():
    html = "<h3>old@x.com wurde erfolgreich zu <em>new@x.com</em> geändert.</h3><h3>other</h3>"
    heading = extract_change_heading(html)
    assert confirms_address_change(heading, "old@x.com", "new@x.com") is True
    assert confirms_address_change(heading, "old@x.com", "else@x.com") is False
    assert confirms_address_change(extract_change_heading("<p>no heading</p>"), "a", "b") is False


def test_address_at_start_of_heading_counts_as_present():
    # адрес в самом начале заголовка тоже считается найденным
    assert confirms_address_change("a@x.com -> b@x.com", "a@x.com", "b@x.com") is True
    assert confirms_address_change("a@x.com -> b@x.com", "", "b@x.com") is False


def test_warning_marker_predicate():
    assert has_warning_marker("b@x.com -- Already a member") is True
    assert has_warning_marker("a@x.com") is False
    assert has_warning_marker("a@x.com", "") is False
    assert has_warning_marker("a@x.com !! bad", "!!") is True


def test_result_page_address_split_by_inline_markup():
    html = "<h5>Successfully subscribed:</h5><ul><li>a<b>b</b>@x.com<li>c@<i>x</i>.com</ul>"
    assert ResultPageParser().parse(html) == ["ab@x.com", "c@x.com"]


def test_letter_links_skip_anchors_without_href():
    nav = '<a name="top"></a> <a href="">-</a> <a href="?letter=a">A</a> <a href=" ?letter=b ">B</a>'
    html = f"<html><body>{FILLER}<table><tr><td>h</td></tr><tr><td>{nav}</td></tr></table></body></html>"
    assert RosterPageParser().letter_links(html) == ["?letter=a", "?letter=b"]


def test_nav_row_with_only_bare_anchors_is_single_page():
    html = _roster(["a@x.com"]).replace("unsub member address", '<a name="top">top</a><a href="">x</a>')
    p = RosterPageParser()
    assert p.letter_links(html) == []
    assert p.parse_single_page(html) == ["a@x.com"]
