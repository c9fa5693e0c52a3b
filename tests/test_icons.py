"""Tests for the content-addressed icon store."""

from __future__ import annotations

import hashlib
import io
import os

import pytest
from PIL import Image

from icons import (
    IconError,
    IconStore,
    extension_from_content_type,
    extension_from_url,
    sniff_extension,
)


def _image_bytes(fmt: str, size=(16, 16)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buf, format=fmt)
    return buf.getvalue()


SVG = b'<?xml version="1.0"?>\n<svg xmlns="http://www.w3.org/2000/svg" width="16" height="16"></svg>'


def test_store_uses_content_hash_and_sniffed_extension(tmp_path):
    store = IconStore(str(tmp_path))
    data = _image_bytes("PNG")
    name = store.store(data)
    assert name == hashlib.sha256(data).hexdigest()[:16] + ".png"
    with open(store.path_for(name), "rb") as f:
        assert f.read() == data


def test_store_is_stable_and_writes_once(tmp_path):
    store = IconStore(str(tmp_path))
    data = _image_bytes("GIF")
    first = store.store(data)
    mtime = os.stat(store.path_for(first)).st_mtime_ns
    second = store.store(data)
    assert first == second
    assert first.endswith(".gif")
    assert os.stat(store.path_for(second)).st_mtime_ns == mtime
    assert os.listdir(str(tmp_path)) == [first]


def test_explicit_extension_wins(tmp_path):
    store = IconStore(str(tmp_path))
    assert store.store(_image_bytes("PNG"), ".ICO").endswith(".ico")


@pytest.mark.parametrize("data, expected", [
    (_image_bytes("PNG"), "png"),
    (_image_bytes("JPEG"), "jpg"),
    (_image_bytes("ICO"), "ico"),
    (SVG, "svg"),
    (b"<svg xmlns='http://www.w3.org/2000/svg'/>", "svg"),
    (b"definitely not an image", None),
])
def test_sniff_extension(data, expected):
    assert sniff_extension(data) == expected


def test_unknown_bytes_default_to_png(tmp_path):
    assert IconStore(str(tmp_path)).store(b"\x00\x01\x02").endswith(".png")


@pytest.mark.parametrize("ct, expected", [
    ("image/png", "png"),
    ("image/x-icon", "ico"),
    ("image/vnd.microsoft.icon", "ico"),
    ("image/svg+xml; charset=utf-8", "svg"),
    ("IMAGE/JPEG", "jpg"),
    ("text/html", None),
    (None, None),
])
def test_extension_from_content_type(ct, expected):
    assert extension_from_content_type(ct) == expected


@pytest.mark.parametrize("url, expected", [
    ("https://example.com/favicon.ico", "ico"),
    ("https://example.com/static/Logo.PNG?v=3", "png"),
    ("https://example.com/img/a.jpeg", "jpg"),
    ("https://example.com/icon", None),
])
def test_extension_from_url(url, expected):
    assert extension_from_url(url) == expected


def test_save_uploaded_keeps_lowercased_extension(tmp_path):
    src = tmp_path / "Upload.ICO"
    data = _image_bytes("PNG")
    src.write_bytes(data)
    store = IconStore(str(tmp_path / "icons"))
    assert store.save_uploaded(str(src)) == hashlib.sha256(data).hexdigest()[:16] + ".ico"


def test_save_uploaded_without_extension_defaults_to_png(tmp_path):
    src = tmp_path / "upload"
    src.write_bytes(b"whatever")
    assert IconStore(str(tmp_path / "icons")).save_uploaded(str(src)).endswith(".png")


def test_save_uploaded_missing_file(tmp_path):
    with pytest.raises(IconError):
        IconStore(str(tmp_path / "icons")).save_uploaded(str(tmp_path / "missing.png"))


def test_default_directory_follows_app_home(isolated_home):
    store = IconStore()
    assert store.directory == os.path.join(str(isolated_home), "icons")
    assert os.path.isdir(store.directory)


def test_clear(tmp_path):
    store = IconStore(str(tmp_path))
    store.store(_image_bytes("PNG"))
    store.store(SVG)
    store.clear()
    assert os.listdir(str(tmp_path)) == []


def test_interrupted_write_leaves_no_hash_named_file(tmp_path, monkeypatch):
    store = IconStore(str(tmp_path))
    data = _image_bytes("PNG")

    def failing_replace(src, dst):
        raise OSError(28, "No space left on device")

    with monkeypatch.context() as m:
        m.setattr(os, "replace", failing_replace)
        with pytest.raises(OSError):
            store.store(data)
    assert os.listdir(str(tmp_path)) == []

    name = store.store(data)
    with open(store.path_for(name), "rb") as f:
        assert f.read() == data
    assert os.listdir(str(tmp_path)) == [name]
