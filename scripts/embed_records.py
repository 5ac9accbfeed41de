#!/usr/bin/env python
"""Re-generate embeddings for every record of a searchable model.

Example::

    python scripts/embed_records.py myapp.models:Recipe --batch-size 500
"""
from __future__ import annotations

import argparse
import logging
from importlib import import_module
from pathlib import Path
import sys

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from recordsearch.dependencies import get_session_factory, get_settings
from recordsearch.hooks import SearchableMixin
from recordsearch.logging import setup_logging

LOGGER = logging.getLogger("recordsearch.scripts.embed_records")


def load_model(path: str) -> type[SearchableMixin]:
    """Import ``module:ClassName`` and check it is a searchable model."""

    module_name, _, class_name = path.partition(":")
    if not class_name:
        raise ValueError(f"Expected MODULE:MODEL, got '{path}'")
    model = getattr(import_module(module_name), class_name)
    if not isinstance(model, type) or not issubclass(model, SearchableMixin):
        raise ValueError(f"{path} is not a SearchableMixin model")
    return model


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("model", help="searchable model as MODULE:MODEL")
    parser.add_argument("--batch-size", type=int, default=None)
    parser.add_argument("--on-error", choices=["raise", "collect"], default=None)
    args = parser.parse_args(argv)

    setup_logging(get_settings())
    try:
        model = load_model(args.model)
    except (ImportError, AttributeError, ValueError) as exc:
        parser.error(str(exc))
    if model.__search_binding__ is None:
        model.vectorsearch()

    session_factory = get_session_factory()
    with session_factory() as session:
        report = model.embed_all(session, batch_size=args.batch_size, on_error=args.on_error)

    print(f"Indexed {report.indexed} {model.__name__} records, {len(report.failed)} failed.")
    for record_id, exc in report.failed:
        print(f"  {record_id}: {exc}")
    return 0 if report.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
