# catalog/database.py
"""
Persistence collaborators for the product store. A repository exposes two
calls, `load_all()` at startup and `save_all(products)` after each mutation,
so the store's mutation logic never depends on the file format.

Two file-backed implementations:
    JsonFileRepository     - products.json, a JSON array of product dicts
    TabularFileRepository  - products.csv / products.xlsx via pandas, one row
                             per product with nested fields as JSON text

Usage:
    from catalog.database import repository_for
    repo = repository_for(Path("data/products.json"))
    products = repo.load_all()
    repo.save_all(products)
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Sequence

import pandas as pd
from filelock import FileLock

from catalog.core.errors import PersistenceError
from catalog.models.product import Product

logger = logging.getLogger(__name__)

# column order for tabular files
COLUMNS = [
    "id", "name", "price", "category", "mainCategory", "subCategory", "nestedCategory",
    "description", "usage", "image", "specifications", "tags", "inStock", "createdAt", "updatedAt",
]


class FileRepository:
    """Shared path + lock handling; subclasses implement _read/_write_nolock."""

    def __init__(self, path):
        self.path = Path(path)

    def _lock(self) -> FileLock:
        return FileLock(str(self.path) + ".lock")

    def _rows_to_products(self, rows: Sequence[dict]) -> List[Product]:
        products = []
        for row in rows:
            try:
                products.append(Product.from_dict(row))
            except ValueError as e:
                logger.warning("Skipping unreadable product row in %s: %s", self.path, e)
        return products

    def load_all(self) -> List[Product]:
        if not self.path.exists():
            return []
        try:
            with self._lock():
                rows = self._read()
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Could not read {self.path}: {e}") from e
        return self._rows_to_products(rows)

    def save_all(self, products: Sequence[Product]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self._lock():
                self._write_nolock([p.to_dict() for p in products])
        except (OSError, ValueError, TypeError) as e:
            raise PersistenceError(f"Could not write {self.path}: {e}") from e

    def _read(self) -> List[dict]:
        raise NotImplementedError

    def _write_nolock(self, rows: List[dict]) -> None:
        raise NotImplementedError


class JsonFileRepository(FileRepository):
    def _read(self) -> List[dict]:
        with open(self.path, "r", encoding="utf-8") as f:
            text = f.read()
        if not text.strip():
            return []
        data = json.loads(text)
        if not isinstance(data, list):
            raise ValueError("expected a JSON array of products")
        return [row for row in data if isinstance(row, dict)]

    def _write_nolock(self, rows: List[dict]) -> None:
        # write to a sibling temp file then swap it in, so readers never see half a file
        fd, tmp = tempfile.mkstemp(prefix=self.path.name, suffix=".tmp", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(rows, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise


class TabularFileRepository(FileRepository):
    def _read(self) -> List[dict]:
        suffix = self.path.suffix.lower()
        if suffix in (".xls", ".xlsx"):
            df = pd.read_excel(self.path, dtype=str).fillna("")
        else:
            try:
                df = pd.read_csv(self.path, dtype=str).fillna("")
            except pd.errors.EmptyDataError:
                return []
        if df.empty:
            return []
        return df.to_dict(orient="records")

    def _write_nolock(self, rows: List[dict]) -> None:
        flat = []
        for row in rows:
            row = dict(row)
            row["specifications"] = json.dumps(row.get("specifications") or {}, ensure_ascii=False)
            row["tags"] = json.dumps(row.get("tags") or [], ensure_ascii=False)
            flat.append(row)
        df = pd.DataFrame(flat, columns=COLUMNS)
        if self.path.suffix.lower() in (".xls", ".xlsx"):
            df.to_excel(self.path, index=False)
        else:
            df.to_csv(self.path, index=False)


def repository_for(path) -> FileRepository:
    """Pick a repository from the file suffix (.json, .csv, .xlsx)."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        return JsonFileRepository(path)
    if suffix in (".csv", ".xls", ".xlsx"):
        return TabularFileRepository(path)
    raise ValueError(f"Unsupported products file type: {path.name}")
