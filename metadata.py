#!/usr/bin/env python3
from __future__ import annotations
import logging, urllib.parse as urlparse
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx
from bs4 import BeautifulSoup

from bookmarks import make_soup
from icons import IconStore, extension_from_content_type, extension_from_url
from utils import HEADERS, host_of

log = logging.getLogger(__name__)

PAGE_TIMEOUT = 5.0

# Tried in order; first one with a usable href wins
FAVICON_RELS = ("icon", "apple-touch-icon", "shortcut icon")

# InvalidURL is not an HTTPError subclass; malformed bookmark hrefs raise it
REQUEST_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


class MetadataError(Exception):
    pass


@dataclass
class WebsiteMetadata:
    title: Optional[str]
    local_icon_path: Optional[str]


def _is_absolute(url: str) -> bool:
    try:
        u = urlparse.urlsplit(url)
    except ValueError:
        return False
    return bool(u.scheme and u.netloc)


def _rel_of(link) -> str:
    # bs4 splits rel into a list of tokens
    v = link.get("rel") or []
    if isinstance(v, str):
        v = v.split()
    return " ".join(v).lower()


def find_favicon_url(doc: BeautifulSoup, base_url: str) -> Optional[str]:
    if not _is_absolute(base_url):
        return None
    links = doc.find_all("link")
    for rel in FAVICON_RELS:
        link = next((l for l in links if _rel_of(l) == rel), None)
        if link is None:
            continue
        href = (link.get("href") or "").strip()
        if href:
            return urlparse.urljoin(base_url, href)
    return urlparse.urljoin(base_url, "/favicon.ico")


def parse_metadata_from_body(body: str, base_url: str) -> Tuple[Optional[str], Optional[str]]:
    """Return (title, favicon_url) for an HTML page fetched from base_url."""
    doc = make_soup(body)
    title = None
    t = doc.find("title")
    if t is not None:
        title = t.get_text().strip()
        if not title:
            title = host_of(base_url) or None
            log.warning("Title is empty, falling back to host: %s", title)
        else:
            log.info("Found title: %s", title)
    return title, find_favicon_url(doc, base_url)


def _make_client() -> httpx.Client:
    return httpx.Client(timeout=PAGE_TIMEOUT, follow_redirects=True, headers=HEADERS)


def download_favicon(client: httpx.Client, url: str, store: IconStore) -> str:
    try:
        r = client.get(url)
    except REQUEST_ERRORS as e:
        raise MetadataError(f"Favicon request failed for {url}: {e}")
    if not r.is_success:
        raise MetadataError(f"Favicon request failed with status {r.status_code}")
    ext = extension_from_content_type(r.headers.get("content-type")) or extension_from_url(url)
    try:
        return store.store(r.content, ext)
    except OSError as e:
        raise MetadataError(f"Could not save favicon: {e.strerror or e}")


def fetch_website_metadata(url: str,
                           client: Optional[httpx.Client] = None,
                           store: Optional[IconStore] = None) -> WebsiteMetadata:
    log.info("Fetching metadata for URL: %s", url)
    if store is None:
        try:
            store = IconStore()
        except OSError as e:
            raise MetadataError(f"Icon directory unavailable: {e.strerror or e}")
    own_client = client is None
    c = client or _make_client()
    try:
        try:
            r = c.get(url)
        except REQUEST_ERRORS as e:
            raise MetadataError(f"Request failed for {url}: {e}")
        if not r.is_success:
            raise MetadataError(f"Request failed with status: {r.status_code}")

        title, fav_url = parse_metadata_from_body(r.text, str(r.url))
        if not fav_url:
            log.info("No favicon URL found for %s", url)
            raise MetadataError(f"No favicon URL found for {url}")

        log.info("Found favicon URL: %s", fav_url)
        try:
            name = download_favicon(c, fav_url, store)
        except MetadataError as e:
            log.error("Failed to download favicon from %s: %s", fav_url, e)
            raise MetadataError(f"Failed to download favicon from {fav_url}: {e}")
        return WebsiteMetadata(title=title, local_icon_path=name)
    finally:
        if own_client:
            c.close()
