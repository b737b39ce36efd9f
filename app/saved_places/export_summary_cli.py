from __future__ import annotations

"""CLI helper for inspecting or clearing the stored place export."""

import argparse
import json
from typing import Sequence

from . import storage
from .export_excel import export_places_to_excel


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Show the places stored by the last export run.",
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Remove the stored export.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the stored export as JSON.",
    )
    parser.add_argument(
        "--excel",
        metavar="PATH",
        nargs="?",
        const="",
        default=None,
        help="Write the stored export to an Excel workbook.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the export summary CLI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.clear:
        removed = storage.clear_export()
        print("Cleared stored places." if removed else "No stored places to clear.")
        return 0

    stored = storage.load_export()
    if stored is None or not stored.places:
        print("No places exported yet.")
        print("Export places from a Google Maps saved list first.")
        return 1

    if args.json:
        print(json.dumps(stored.to_dict(), ensure_ascii=False, indent=2))
        return 0

    located = sum(1 for place in stored.places if place.has_coordinates)
    print(f"{len(stored.places)} place(s) ready for import")
    print(f"  From list: {stored.list_name!r}")
    print(f"  Exported: {stored.exported_at or 'Unknown'}")
    print(f"  With coordinates: {located}")
    print(f"  Search links only: {len(stored.places) - located}")

    if args.excel is not None:
        path = export_places_to_excel(args.excel or None, stored=stored)
        print(f"\nWorkbook: {path}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
