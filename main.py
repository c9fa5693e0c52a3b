#!/usr/bin/env python3
from __future__ import annotations
import sys, json, logging, argparse
from typing import List

from bookmarks import ReadError, load_bookmark_groups, groups_to_dicts


def _setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def run_cli(argv: List[str]) -> int:
    p = argparse.ArgumentParser(description="Bookmark Import CLI (no GUI)")
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--html", metavar="FILE", help="Path to bookmarks HTML export (Netscape format)")
    src.add_argument("--metadata", metavar="URL", help="Fetch page title and favicon for URL")
    src.add_argument("--icon", metavar="FILE", help="Store an icon file in the icon cache")
    p.add_argument("--json", action="store_true", help="Print groups as JSON instead of text")
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose (debug) logging")

    args = p.parse_args(argv)
    _setup_logging(args.verbose)

    if args.metadata:
        from metadata import MetadataError, fetch_website_metadata
        try:
            meta = fetch_website_metadata(args.metadata)
        except MetadataError as e:
            print(str(e), file=sys.stderr)
            return 1
        print(json.dumps({"title": meta.title, "local_icon_path": meta.local_icon_path}, ensure_ascii=False))
        return 0

    if args.icon:
        from icons import IconError, IconStore
        try:
            name = IconStore().save_uploaded(args.icon)
        except IconError as e:
            print(str(e), file=sys.stderr)
            return 2
        print(name)
        return 0

    try:
        groups = load_bookmark_groups(args.html)
    except ReadError as e:
        print(str(e), file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(groups_to_dicts(groups), ensure_ascii=False, indent=2))
        return 0

    if not groups:
        print("No bookmarks-bar links found.")
        return 0
    for g in groups:
        print(f"{g.name} ({len(g.items)})")
        for b in g.items:
            print(f"  {b.title}   —   {b.url}")
    return 0


def run_gui() -> int:
    # Lazy imports so CLI can run without PySide6
    try:
        from PySide6.QtWidgets import QApplication
        from ui import MainWindow
    except ImportError:
        print("PySide6 is not available; run CLI mode instead (see --help).", file=sys.stderr)
        return 3
    _setup_logging(False)
    app = QApplication(sys.argv)
    w = MainWindow()
    w.show()
    return app.exec()


def main():
    # Force CLI if --cli is present
    if "--cli" in sys.argv[1:]:
        argv = [a for a in sys.argv[1:] if a != "--cli"]
        sys.exit(run_cli(argv))

    # Otherwise: if any known CLI flags are present, run CLI; else run GUI
    cli_flags = {"--html", "--metadata", "--icon", "--json", "-h", "--help"}
    if any(f in sys.argv[1:] for f in cli_flags):
        sys.exit(run_cli(sys.argv[1:]))

    sys.exit(run_gui())


if __name__ == "__main__":
    main()
