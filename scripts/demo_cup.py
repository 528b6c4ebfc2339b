"""Pour a few ingredients into a cup and print what the renderer would play.

Examples
--------
Use the packaged catalog::

    python scripts/demo_cup.py --add 1 --add 2 --remove 0

Pour inline ingredients without a catalog::

    python scripts/demo_cup.py --inline X:25:#4B2E1E --inline Y:50:#F5F0E6
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Iterable

from dreamcup.animation import CueRecorder
from dreamcup.catalog import load_catalog
from dreamcup.ingredients import IngredientDescriptor
from dreamcup.session import BuilderSession


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dreamcup layer demo")
    parser.add_argument("--catalog", default=None, help="Ingredient catalog YAML file.")
    parser.add_argument(
        "--add",
        action="append",
        default=[],
        help="Catalog ingredient id to add (repeatable).",
    )
    parser.add_argument(
        "--inline",
        action="append",
        default=[],
        help="Inline ingredient as id:fillWeight:color (repeatable).",
    )
    parser.add_argument(
        "--remove",
        action="append",
        type=int,
        default=[],
        help="Selection position to remove after adding (repeatable).",
    )
    return parser.parse_args(argv)


def parse_inline(value: str) -> IngredientDescriptor:
    ingredient_id, fill_weight, color = value.split(":", 2)
    return IngredientDescriptor(id=ingredient_id, name=ingredient_id, fill_weight=float(fill_weight), color=color)


def render(session: BuilderSession) -> str:
    rows = []
    for index, slot in enumerate(session.store.snapshot()):
        label = f"{slot.source_ingredient_id} {slot.color}" if slot is not None else "."
        rows.append(f"{index:>3} | {label}")
    return "\n".join(rows)


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)

    session = BuilderSession()
    recorder = CueRecorder(session.store, session.planner)

    if args.add:
        catalog = load_catalog(args.catalog)
        for ingredient_id in args.add:
            session.add_ingredient(catalog.get(ingredient_id))
    for value in args.inline:
        session.add_ingredient(parse_inline(value))
    for position in args.remove:
        session.remove_selection(position)

    print(render(session))
    print(json.dumps([batch.to_dict() for batch in recorder.batches], indent=2))
    recorder.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
