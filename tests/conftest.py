"""Shared fixtures for bookmark import tests."""

from __future__ import annotations

import pytest

HEADER = """<!DOCTYPE NETSCAPE-Bookmark-file-1>
<!-- This is an automatically generated file.
     It will be read and overwritten.
     DO NOT EDIT! -->
<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">
<TITLE>Bookmarks</TITLE>
<H1>Bookmarks</H1>
"""

SAMPLE_EXPORT = HEADER + """<DL><p>
    <DT><H3 ADD_DATE="1700000000" LAST_MODIFIED="1700000001" PERSONAL_TOOLBAR_FOLDER="true">Bookmarks bar</H3>
    <DL><p>
        <DT><A HREF="http://a.com" ADD_DATE="1700000002"></A>
        <DT><H3 ADD_DATE="1700000003" LAST_MODIFIED="1700000004">Work</H3>
        <DL><p>
            <DT><A HREF="https://jira.example.com/" ADD_DATE="1700000005">Jira</A>
            <DT><A HREF="https://wiki.example.com/" ADD_DATE="1700000006">Wiki</A>
        </DL><p>
    </DL><p>
    <DT><H3 ADD_DATE="1700000007">Other bookmarks</H3>
    <DL><p>
        <DT><A HREF="https://elsewhere.example.org/">Elsewhere</A>
    </DL><p>
</DL><p>
"""


def wrap_toolbar(body: str, name: str = "Bookmarks bar") -> str:
    """Build a full export whose bookmarks bar holds `body`."""
    return HEADER + (
        "<DL><p>\n"
        f'    <DT><H3 PERSONAL_TOOLBAR_FOLDER="true">{name}</H3>\n'
        "    <DL><p>\n"
        f"{body}\n"
        "    </DL><p>\n"
        "</DL><p>\n"
    )


@pytest.fixture
def sample_export_html(tmp_path):
    path = tmp_path / "bookmarks.html"
    path.write_text(SAMPLE_EXPORT, encoding="utf-8")
    return path


@pytest.fixture
def write_export(tmp_path):
    def _write(text: str, name: str = "export.html"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    home = tmp_path / "app-home"
    monkeypatch.setenv("BOOKMARK_IMPORT_HOME", str(home))
    return home


@pytest.fixture
def toolbar_export(write_export):
    """Write an export whose bookmarks bar holds the given markup."""
    def _make(body: str, name: str = "Bookmarks bar"):
        return write_export(wrap_toolbar(body, name))

    return _make
