#!/usr/bin/env python3
"""
Content-addressed icon storage.

Icons are saved as <first 16 hex chars of sha256(bytes)>.<ext> inside the app's
icon directory, so the same image always maps to the same file name and is
written at most once.
"""
from __future__ import annotations
import io, os, logging, tempfile, urllib.parse as urlparse
from typing import Optional

from PIL import Image, UnidentifiedImageError

from utils import icon_cache_dir, content_hash

log = logging.getLogger(__name__)

DEFAULT_EXT = "png"

# Pillow format name -> file extension
_PIL_FORMATS = {
    "PNG": "png",
    "ICO": "ico",
    "JPEG": "jpg",
    "GIF": "gif",
    "WEBP": "webp",
    "BMP": "bmp",
}

_CONTENT_TYPES = (
    ("image/png", "png"),
    ("image/x-icon", "ico"),
    ("image/vnd.microsoft.icon", "ico"),
    ("image/svg+xml", "svg"),
    ("image/jpeg", "jpg"),
    ("image/gif", "gif"),
    ("image/webp", "webp"),
)

_URL_SUFFIXES = (
    (".png", "png"),
    (".ico", "ico"),
    (".svg", "svg"),
    (".jpg", "jpg"),
    (".jpeg", "jpg"),
    (".gif", "gif"),
    (".webp", "webp"),
)


class IconError(Exception):
    pass


def extension_from_content_type(ct: Optional[str]) -> Optional[str]:
    ct = (ct or "").lower()
    for needle, ext in _CONTENT_TYPES:
        if needle in ct:
            return ext
    return None


def extension_from_url(url: str) -> Optional[str]:
    try:
        path = urlparse.urlsplit(url).path.lower()
    except ValueError:
        return None
    for suffix, ext in _URL_SUFFIXES:
        if path.endswith(suffix):
            return ext
    return None


def sniff_extension(data: bytes) -> Optional[str]:
    """Guess an extension from the bytes themselves (raster via Pillow, SVG by text)."""
    try:
        with Image.open(io.BytesIO(data)) as im:
            ext = _PIL_FORMATS.get(im.format or "")
            if ext:
                return ext
    except (UnidentifiedImageError, OSError, ValueError):
        pass
    head = data[:512].lstrip().lower()
    if head.startswith(b"<svg") or (head.startswith(b"<?xml") and b"<svg" in head):
        return "svg"
    return None


class IconStore:
    def __init__(self, directory: Optional[str] = None):
        self.directory = directory or icon_cache_dir()
        os.makedirs(self.directory, exist_ok=True)

    def path_for(self, name: str) -> str:
        return os.path.join(self.directory, name)

    def store(self, data: bytes, extension: Optional[str] = None) -> str:
        ext = (extension or sniff_extension(data) or DEFAULT_EXT).lower().lstrip(".")
        name = f"{content_hash(data)}.{ext}"
        path = self.path_for(name)
        if os.path.exists(path):
            log.info("Icon already exists, skipping write: %s", name)
            return name
        # write beside the target and rename, so a hash-named file is always complete
        fd, tmp = tempfile.mkstemp(prefix=".icon-", suffix=".part", dir=self.directory)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp, path)
        except BaseException:
            try:
                os.remove(tmp)
            except OSError:
                pass
            raise
        log.info("Saved new icon: %s", name)
        return name

    def save_uploaded(self, path: str) -> str:
        log.info("Storing uploaded icon %s", path)
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise IconError(f"Could not read icon file {path}: {e.strerror or e}")
        ext = os.path.splitext(path)[1].lstrip(".").lower() or DEFAULT_EXT
        return self.store(data, ext)

    def clear(self):
        for f in os.listdir(self.directory):
            try:
                os.remove(os.path.join(self.directory, f))
            except OSError as e:
                log.warning("Could not remove %s: %s", f, e)
