#!/usr/bin/env python3
"""
Extract the bookmarks-bar hierarchy from a Netscape bookmark export
(Chrome/Firefox/Edge "bookmarks.html") as a flat list of named groups.

  groups = load_bookmark_groups("~/Downloads/bookmarks.html")
  for g in groups:
      print(g.name, len(g.items))

Every top-level folder under the toolbar becomes one group holding all links
found anywhere beneath it; links sitting directly on the toolbar are gathered
into a leading group named after the toolbar itself.
"""

from __future__ import annotations
import logging
import threading
import urllib.parse as urlparse
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag, NavigableString
from bs4 import FeatureNotFound

log = logging.getLogger(__name__)

TOOLBAR_ATTR = "personal_toolbar_folder"
TOOLBAR_TOKEN = "true"
UNTITLED = "Untitled"

# schemes whose URLs always carry a host, even when written as "http:host"
SPECIAL_SCHEMES = ("http", "https", "ftp", "ws", "wss")


class ReadError(Exception):
    """The bookmark file could not be read or decoded as text."""


@dataclass(frozen=True)
class BookmarkItem:
    title: str
    url: str


@dataclass(frozen=True)
class BookmarkGroup:
    name: str
    items: Tuple[BookmarkItem, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))


def groups_to_dicts(groups: Sequence[BookmarkGroup]) -> List[Dict]:
    return [
        {"name": g.name, "items": [{"title": b.title, "url": b.url} for b in g.items]}
        for g in groups
    ]


# ---------- Document loader ----------

def read_bookmark_file(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        raise ReadError(f"Bookmark file not found: {path}")
    except UnicodeDecodeError as e:
        raise ReadError(f"Bookmark file is not valid UTF-8: {path} ({e.reason})")
    except OSError as e:
        raise ReadError(f"Could not read bookmark file {path}: {e.strerror or e}")


def make_soup(data: str) -> BeautifulSoup:
    # Prefer lxml for robustness, but fall back to built-in html.parser
    try:
        return BeautifulSoup(data, "lxml")
    except FeatureNotFound:
        log.debug("lxml not available, using html.parser")
        return BeautifulSoup(data, "html.parser")


def parse_document(text: str) -> BeautifulSoup:
    """Tag-soup parse; never raises on unbalanced or unclosed markup."""
    return make_soup(text)


# ---------- Tree adapter ----------
#
# The same export yields different implied trees depending on the builder:
#   lxml        closes <DT> when <DL> opens, so a folder's <DL> follows its <DT>
#   html5-style nests the folder's <DL> inside its <DT>
#   html.parser never closes <DT>, so later entries nest inside earlier ones
# and <DL><p> leaves stray <p> wrappers around entries.  The helpers below
# answer the same questions for all of these shapes.

def parent_element(tag: Tag) -> Optional[Tag]:
    parent = tag.parent
    if parent is None or isinstance(parent, BeautifulSoup):
        return None
    return parent


def iter_entries(container: Tag) -> Iterator[Tag]:
    """Yield the <dt> entries that belong directly to a <dl> container."""
    # html.parser nests each unclosed <dt> in the previous one, so a long
    # folder turns into a deep chain; walk it with a stack
    stack = [iter(container.children)]
    while stack:
        child = next(stack[-1], None)
        if child is None:
            stack.pop()
            continue
        if not isinstance(child, Tag):
            continue
        if child.name == "dt":
            yield child
            stack.append(iter(child.children))
        elif child.name == "p":
            stack.append(iter(child.children))


def entry_heading(entry: Tag) -> Optional[Tag]:
    return entry.find("h3", recursive=False)


def entry_link(entry: Tag) -> Optional[Tag]:
    return entry.find("a", recursive=False)


def _is_empty_p(tag: Tag) -> bool:
    return tag.name == "p" and tag.find(True) is None and not tag.get_text().strip()


def _next_element_sibling(node: Tag) -> Optional[Tag]:
    for sib in node.next_siblings:
        if isinstance(sib, NavigableString) or _is_empty_p(sib):
            continue
        return sib
    return None


def folder_list(entry: Tag) -> Optional[Tag]:
    """Return the <dl> holding a folder entry's contents, or None."""
    dl = entry.find("dl", recursive=False)
    if dl is not None:
        return dl
    node = entry
    while node is not None:
        sib = _next_element_sibling(node)
        if sib is not None:
            return sib if sib.name == "dl" else None
        # entry was the last thing inside a wrapper; keep looking after it
        parent = parent_element(node)
        if parent is None or parent.name not in ("p", "dt"):
            return None
        node = parent
    return None


# ---------- Link helpers ----------

def link_title(text: str, href: str) -> str:
    """Trimmed anchor text, else the href's host, else "Untitled"."""
    title = (text or "").strip()
    if title:
        return title
    return url_host(href.strip()) or UNTITLED


def url_host(href: str) -> Optional[str]:
    """Host of an absolute URL as a browser would report it: lowercase,
    punycode for IDNs, brackets around IPv6.  None if there isn't one."""
    try:
        u = urlparse.urlsplit(href)
        if u.scheme in SPECIAL_SCHEMES and not u.netloc:
            rest = href[len(u.scheme) + 1:].lstrip("/\\")
            u = urlparse.urlsplit(f"{u.scheme}://{rest}")
        host = u.hostname
    except ValueError:
        return None
    if not u.scheme or not host:
        return None
    if ":" in host:
        return f"[{host}]"
    try:
        return host.encode("idna").decode("ascii")
    except UnicodeError:
        return None


def _href_of(a: Tag) -> Optional[str]:
    href = a.get("href")
    if not isinstance(href, str) or not href.strip():
        return None
    return href


def make_item(a: Tag) -> Optional[BookmarkItem]:
    href = _href_of(a)
    if href is None:
        return None
    return BookmarkItem(title=link_title(a.get_text(), href), url=href)


# ---------- Hierarchy extraction ----------

@dataclass
class _Stats:
    links: int = 0
    skipped: int = 0


def collect_links(container: Tag, out: List[BookmarkItem], stats: Optional[_Stats] = None) -> List[BookmarkItem]:
    """Depth-first walk of a folder's <dl>, appending every link found at any
    depth to `out` in document order.  Sub-folder boundaries are discarded."""
    stats = stats or _Stats()
    # explicit stack of entry iterators so arbitrarily deep exports don't
    # run into the interpreter's recursion limit
    stack: List[Iterator[Tag]] = [iter_entries(container)]
    while stack:
        entry = next(stack[-1], None)
        if entry is None:
            stack.pop()
            continue
        if entry_heading(entry) is not None:
            sub = folder_list(entry)
            if sub is not None:
                stack.append(iter_entries(sub))
            continue
        a = entry_link(entry)
        item = make_item(a) if a is not None else None
        if item is None:
            stats.skipped += 1
            log.debug("Skipping entry with no folder heading or usable link")
            continue
        out.append(item)
        stats.links += 1
    return out


def find_toolbar_root(doc: BeautifulSoup) -> Optional[Tag]:
    return doc.find("h3", attrs={TOOLBAR_ATTR: TOOLBAR_TOKEN})


def extract_groups(doc: BeautifulSoup) -> List[BookmarkGroup]:
    root = find_toolbar_root(doc)
    if root is None:
        log.info("No bookmarks-bar folder found")
        return []
    root_name = root.get_text().strip()
    log.debug("Found bookmarks-bar root: %r", root_name)

    root_entry = parent_element(root)
    content = folder_list(root_entry) if root_entry is not None else None
    if content is None:
        log.info("Bookmarks-bar folder %r has no contents", root_name)
        return []

    stats = _Stats()
    groups: List[BookmarkGroup] = []
    top_level: List[BookmarkItem] = []

    for entry in iter_entries(content):
        h = entry_heading(entry)
        if h is not None:
            name = h.get_text().strip()
            items: List[BookmarkItem] = []
            sub = folder_list(entry)
            if sub is not None:
                collect_links(sub, items, stats)
            if items:
                groups.append(BookmarkGroup(name=name, items=items))
            else:
                log.debug("Dropping empty folder %r", name)
            continue

        a = entry_link(entry)
        item = make_item(a) if a is not None else None
        if item is None:
            stats.skipped += 1
            log.debug("Skipping toolbar entry with no folder heading or usable link")
            continue
        top_level.append(item)
        stats.links += 1

    if top_level:
        groups.insert(0, BookmarkGroup(name=root_name, items=top_level))

    log.info("Extracted %d group(s), %d link(s); skipped %d entr%s",
             len(groups), stats.links, stats.skipped, "y" if stats.skipped == 1 else "ies")
    return groups


# ---------- Entry points ----------

def load_bookmark_groups(path: str) -> List[BookmarkGroup]:
    """Read, parse and extract in one synchronous call.

    Raises ReadError only for I/O or decoding problems; structural oddities
    in the markup just produce fewer (or no) groups.
    """
    text = read_bookmark_file(path)
    doc = parse_document(text)
    return extract_groups(doc)


def load_in_background(path: str,
                       on_done: Callable[[List[BookmarkGroup]], None],
                       on_error: Callable[[str], None]) -> threading.Thread:
    """Run load_bookmark_groups on a daemon thread.

    The soup never leaves the worker; callbacks receive only the finished
    group list or the ReadError message, and are invoked on the worker thread.
    """
    def work():
        try:
            groups = load_bookmark_groups(path)
        except ReadError as e:
            log.error("%s", e)
            on_error(str(e))
            return
        on_done(groups)

    t = threading.Thread(target=work, name="bookmark-loader", daemon=True)
    t.start()
    return t
