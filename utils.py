#!/usr/bin/env python3
from __future__ import annotations
import os, hashlib, urllib.parse as urlparse

# Shared HTTP headers for network ops
HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Connection": "keep-alive",
}

# App home (icons live under it); override with BOOKMARK_IMPORT_HOME
_DEF_HOME = os.path.join(os.path.expanduser("~"), ".bookmark_import")

def app_home_dir() -> str:
    home = os.environ.get("BOOKMARK_IMPORT_HOME") or _DEF_HOME
    os.makedirs(home, exist_ok=True)
    return home


def icon_cache_dir() -> str:
    d = os.path.join(app_home_dir(), "icons")
    os.makedirs(d, exist_ok=True)
    return d


def content_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()[:16]


def host_of(url: str) -> str:
    try:
        return urlparse.urlsplit(url).hostname or ""
    except ValueError:
        return ""
