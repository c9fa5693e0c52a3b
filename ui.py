#!/usr/bin/env python3
from __future__ import annotations
import os, threading, json
from typing import List, Optional

from PySide6.QtCore import Qt, QSize, Signal, QObject
from PySide6.QtGui import QPixmap
from PySide6.QtWidgets import (
    QWidget, QMainWindow, QHBoxLayout, QVBoxLayout, QSplitter,
    QTreeWidget, QTreeWidgetItem, QLabel, QLineEdit, QPushButton,
    QProgressBar, QMessageBox, QFileDialog
)

from bookmarks import BookmarkGroup, load_in_background, groups_to_dicts
from icons import IconStore
from metadata import MetadataError, fetch_website_metadata
from utils import host_of


# ---- Qt signal bridge ----
class Signals(QObject):
    groups_loaded = Signal(list)           # List[BookmarkGroup]
    load_failed = Signal(str)
    # Include a sequence id so we can ignore stale icons completing late
    icon_ready = Signal(int, str, str)     # seq, title, icon path
    icon_failed = Signal(int, str)


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Bookmark Import")
        self.resize(1000, 650)

        self.sig = Signals()
        self.sig.groups_loaded.connect(self.on_groups_loaded)
        self.sig.load_failed.connect(self.on_load_failed)
        self.sig.icon_ready.connect(self.on_icon_ready)
        self.sig.icon_failed.connect(self.on_icon_failed)

        self.icons = IconStore()

        # --- Top controls ---
        top = QWidget(); top_layout = QHBoxLayout(top)
        self.file_edit = QLineEdit(); self.file_edit.setPlaceholderText("Select bookmarks HTML…")
        self.file_edit.returnPressed.connect(self.on_scan)
        browse_btn = QPushButton("Browse…"); browse_btn.clicked.connect(self.on_browse)
        scan_btn = QPushButton("Scan"); scan_btn.clicked.connect(self.on_scan)
        top_layout.addWidget(self.file_edit, 4)
        top_layout.addWidget(browse_btn)
        top_layout.addWidget(scan_btn)

        # Progress + status
        self.progress = QProgressBar(); self.progress.setMaximum(100)
        self.status = QLabel("Ready")
        statw = QWidget(); statl = QHBoxLayout(statw)
        statl.addWidget(self.progress, 3); statl.addWidget(self.status, 1)

        # Split main area: groups tree | site details
        split = QSplitter(Qt.Horizontal)
        self.tree = QTreeWidget(); self.tree.setHeaderLabels(["Title", "URL"])
        self.tree.itemSelectionChanged.connect(self.on_select)
        right = QWidget(); right_layout = QVBoxLayout(right)
        self.icon_label = QLabel("(Click a bookmark to fetch its icon)")
        self.icon_label.setAlignment(Qt.AlignCenter)
        self.icon_label.setMinimumSize(QSize(200, 200))
        self.site_title = QLabel(""); self.site_title.setWordWrap(True)
        right_layout.addWidget(self.icon_label, 1)
        right_layout.addWidget(self.site_title)
        split.addWidget(self.tree); split.addWidget(right)
        split.setStretchFactor(0, 2); split.setStretchFactor(1, 1)

        # Bottom bar
        bottom = QWidget(); bottom_l = QHBoxLayout(bottom)
        bottom_l.addStretch(1)
        save_json_btn = QPushButton("Save JSON…"); save_json_btn.clicked.connect(self.on_save_json)
        clear_btn = QPushButton("Clear icon cache"); clear_btn.clicked.connect(self.on_clear_cache)
        for b in (save_json_btn, clear_btn):
            bottom_l.addWidget(b)

        central = QWidget(); lay = QVBoxLayout(central)
        lay.addWidget(top)
        lay.addWidget(statw)
        lay.addWidget(split, 1)
        lay.addWidget(bottom)
        self.setCentralWidget(central)

        # State
        self.groups: List[BookmarkGroup] = []
        self._scan_thread: Optional[threading.Thread] = None
        self._icon_thread: Optional[threading.Thread] = None
        self._icon_seq: int = 0                         # cancels stale icon fetches

    # ---- UI actions ----
    def on_browse(self):
        path, _ = QFileDialog.getOpenFileName(self, "Select bookmarks HTML", "", "HTML files (*.html *.htm);;All files (*)")
        if not path:
            return
        self.file_edit.setText(path)
        self.on_scan()

    def on_scan(self):
        if self._scan_thread and self._scan_thread.is_alive():
            self.status.setText("Scan in progress…"); return
        path = self.file_edit.text().strip()
        if not path:
            return
        self._icon_seq += 1
        self.tree.clear()
        self.icon_label.setPixmap(QPixmap()); self.icon_label.setText("(Click a bookmark to fetch its icon)")
        self.site_title.setText("")
        self.status.setText("Parsing…"); self.progress.setValue(0)
        # callbacks run on the worker; hop back to the GUI thread via signals
        self._scan_thread = load_in_background(path, self.sig.groups_loaded.emit, self.sig.load_failed.emit)

    def on_groups_loaded(self, groups: list):
        self.groups = groups
        self.tree.blockSignals(True)
        self.tree.clear()
        total = 0
        for g in groups:
            top = QTreeWidgetItem([f"{g.name} ({len(g.items)})", ""])
            for b in g.items:
                it = QTreeWidgetItem([b.title, b.url]); it.setData(0, Qt.UserRole, b.url)
                top.addChild(it)
            total += len(g.items)
            self.tree.addTopLevelItem(top)
        self.tree.expandAll()
        self.tree.blockSignals(False)
        self.progress.setValue(100)
        if not groups:
            self.status.setText("No bookmarks-bar links found.")
        else:
            self.status.setText(f"{len(groups)} group(s), {total} link(s)")

    def on_load_failed(self, msg: str):
        self.progress.setValue(0)
        self.status.setText("Error")
        QMessageBox.critical(self, "Read error", msg)

    def on_select(self):
        sel = self.tree.currentItem()
        if not sel:
            return
        url = sel.data(0, Qt.UserRole)
        if not url:
            return
        if self._icon_thread and self._icon_thread.is_alive():
            self.status.setText("Icon fetch in progress…"); return
        self.status.setText(f"Fetching {host_of(url) or url}…")
        self._icon_seq += 1
        seq = self._icon_seq
        self._icon_thread = threading.Thread(target=self._worker_icon, args=(seq, url), daemon=True)
        self._icon_thread.start()

    def _worker_icon(self, seq: int, url: str):
        try:
            meta = fetch_website_metadata(url, store=self.icons)
            path = self.icons.path_for(meta.local_icon_path) if meta.local_icon_path else ""
            self.sig.icon_ready.emit(seq, meta.title or "", path)
        except MetadataError as e:
            self.sig.icon_failed.emit(seq, str(e))

    def on_icon_ready(self, seq: int, title: str, path: str):
        # Ignore stale icons
        if seq != self._icon_seq:
            return
        pm = QPixmap(path) if path and os.path.exists(path) else QPixmap()
        if pm.isNull():
            self.icon_label.setPixmap(QPixmap()); self.icon_label.setText("(Icon format not displayable)")
        else:
            self.icon_label.setPixmap(pm.scaled(128, 128, Qt.KeepAspectRatio, Qt.SmoothTransformation))
            self.icon_label.setText("")
        self.site_title.setText(title)
        self.status.setText("")

    def on_icon_failed(self, seq: int, msg: str):
        if seq != self._icon_seq:
            return
        self.icon_label.setPixmap(QPixmap()); self.icon_label.setText("(Icon unavailable)")
        self.site_title.setText("")
        self.status.setText(msg)

    def on_save_json(self):
        if not self.groups:
            QMessageBox.information(self, "Save", "Nothing to save — no bookmarks loaded.")
            return
        path, _ = QFileDialog.getSaveFileName(self, "Save JSON", "bookmarks.json", "JSON files (*.json)")
        if not path:
            return
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(groups_to_dicts(self.groups), f, ensure_ascii=False, indent=2)
            QMessageBox.information(self, "Save", f"Saved JSON to: {path}")
        except OSError as e:
            QMessageBox.critical(self, "Save error", str(e))

    def on_clear_cache(self):
        self.icons.clear(); QMessageBox.information(self, "Cache", "Icon cache cleared.")
