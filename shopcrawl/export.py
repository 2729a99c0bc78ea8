"""File export of a finished item collection."""
from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Iterable, Union

import yaml

from .models import Product

LOGGER = logging.getLogger(__name__)

FIELDNAMES = ["name", "price", "description", "category", "image_path"]


def save_json(items: Iterable[Product], path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    records = [item.to_dict() for item in items]
    path.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")
    LOGGER.info("Saved %d items to %s", len(records), path)
    return path


def save_csv(items: Iterable[Product], path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=FIELDNAMES)
        writer.writeheader()
        for item in items:
            writer.writerow(item.to_dict())
            count += 1
    LOGGER.info("Saved %d items to %s", count, path)
    return path


def save_yaml(items: Iterable[Product], path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    records = [item.to_dict() for item in items]
    path.write_text(yaml.safe_dump(records, allow_unicode=True, sort_keys=False), encoding="utf-8")
    LOGGER.info("Saved %d items to %s", len(records), path)
    return path


def save(items: Iterable[Product], path: Union[str, Path]) -> Path:
    """Pick the format from the file suffix (.json, .csv, .yaml or .yml)."""
    suffix = Path(path).suffix.lower()
    if suffix == ".json":
        return save_json(items, path)
    if suffix == ".csv":
        return save_csv(items, path)
    if suffix in (".yaml", ".yml"):
        return save_yaml(items, path)
    raise ValueError(f"Unsupported export format: {suffix or '<none>'}")
