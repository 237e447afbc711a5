# catalog/api/schemas/product.py
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ProductInput(BaseModel):
    """
    Fields accepted by create and update. Everything is optional here; the
    store decides what is required (only `name`, on create) and how missing
    values default. Form posts send every value as text, so numeric and
    boolean fields also accept strings.
    """
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    name: Optional[str] = None
    # bools are rejected by the store, so no coercion here
    price: Any = None
    category: Optional[str] = None
    mainCategory: Optional[str] = None
    subCategory: Optional[str] = None
    nestedCategory: Optional[str] = None
    description: Optional[str] = None
    usage: Optional[str] = None
    inStock: Optional[Union[bool, str]] = None
    tags: Optional[Union[List[str], str]] = None
    # external image URL, used when no file is attached
    image: Optional[str] = None

    # either a structured map (or its JSON text); anything malformed is ignored ...
    specifications: Any = None
    # ... or the individual fields
    composition: Optional[str] = None
    gsm: Optional[str] = None
    width: Optional[str] = None
    count: Optional[str] = Field(None, description="thread count")
    construction: Optional[str] = None
    weave: Optional[str] = None
    finish: Optional[str] = None

    def spec_fields(self) -> Dict[str, Any]:
        return {
            "category": self.category or self.mainCategory,
            "subCategory": self.subCategory,
            "composition": self.composition,
            "gsm": self.gsm,
            "width": self.width,
            "count": self.count,
            "construction": self.construction,
            "weave": self.weave,
            "finish": self.finish,
        }


@dataclass
class ImageUpload:
    filename: str
    content_type: Optional[str]
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)
