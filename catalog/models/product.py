# catalog/models/product.py
from __future__ import annotations
import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List

from catalog.utils.normalize import default_specifications, normalize_tags


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC with milliseconds, e.g. 2026-01-02T03:04:05.678Z (sorts lexically)."""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


@dataclass
class Product:
    """
    Catalog product. Attributes are snake_case; `to_dict`/`from_dict` use the
    camelCase keys clients and the products file see.
    """
    id: str
    name: str
    price: float = 0.0
    category: str = ""
    main_category: str = ""
    sub_category: str = ""
    nested_category: str = ""
    description: str = ""
    usage: str = ""
    image: str = ""
    specifications: Dict[str, str] = field(default_factory=default_specifications)
    tags: List[str] = field(default_factory=list)
    in_stock: bool = True
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Product":
        """
        Rebuild a product from a stored row. Rows read from CSV come back as
        strings only, so specifications/tags may be JSON text and numbers text.
        """
        if d is None:
            raise ValueError("Cannot construct Product from None")
        id_val = d.get("id")
        if not id_val:
            raise ValueError("Stored product has no id")

        try:
            price = float(d.get("price")) if d.get("price") not in (None, "") else 0.0
        except (TypeError, ValueError):
            price = 0.0

        specs_raw = d.get("specifications") or {}
        if isinstance(specs_raw, str):
            try:
                specs_raw = json.loads(specs_raw)
            except ValueError:
                specs_raw = {}
        specifications = default_specifications()
        if isinstance(specs_raw, dict):
            specifications.update({str(k): "" if v is None else str(v) for k, v in specs_raw.items()})

        tags_raw = d.get("tags") or []
        if isinstance(tags_raw, str):
            try:
                tags_raw = json.loads(tags_raw)
            except ValueError:
                pass  # plain comma separated text
        tags = normalize_tags(tags_raw)

        # an empty cell means the same as a missing column
        in_stock = d.get("inStock")
        if isinstance(in_stock, str):
            in_stock = in_stock.strip().lower() or None
            if in_stock is not None:
                in_stock = in_stock not in ("0", "false", "no")
        if in_stock is None:
            in_stock = True

        def text(key: str) -> str:
            v = d.get(key)
            return "" if v is None else str(v)

        return cls(
            id=str(id_val),
            name=text("name"),
            price=price,
            category=text("category"),
            main_category=text("mainCategory"),
            sub_category=text("subCategory"),
            nested_category=text("nestedCategory"),
            description=text("description"),
            usage=text("usage"),
            image=text("image"),
            specifications=specifications,
            tags=tags,
            in_stock=bool(in_stock),
            created_at=text("createdAt"),
            updated_at=text("updatedAt"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": float(self.price),
            "category": self.category,
            "mainCategory": self.main_category,
            "subCategory": self.sub_category,
            "nestedCategory": self.nested_category,
            "description": self.description,
            "usage": self.usage,
            "image": self.image,
            "specifications": dict(self.specifications),
            "tags": list(self.tags),
            "inStock": self.in_stock,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def copy(self, **changes) -> "Product":
        """Detached copy; nested containers are copied so the original is never shared."""
        out = replace(self, **changes)
        if "specifications" not in changes:
            out.specifications = dict(self.specifications)
        if "tags" not in changes:
            out.tags = list(self.tags)
        return out
