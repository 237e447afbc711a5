# catalog/services/product_store.py
"""
Authoritative product collection.

The store owns the ordered product list, the image files its products
reference and (optionally) the products file. Every mutation runs under one
lock: read current state, compute the new record, touch image files, persist,
then commit the in-memory change. Persistence is best effort: a failed write
is logged and reported by `health()`, the in-memory change stands.

Records handed back to callers are copies with `image` passed through the
resolver; stored records always keep the raw reference.
"""
import logging
import random
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from catalog.api.schemas.product import ImageUpload, ProductInput
from catalog.core.errors import NotFound, PersistenceError, ValidationError
from catalog.core.resolver import is_absolute_url
from catalog.database import FileRepository
from catalog.models.product import Product, utc_timestamp
from catalog.utils.images import ImageStorage
from catalog.utils.normalize import (
    build_specifications,
    clean_text,
    normalize_tags,
    parse_bool,
    parse_price,
)

logger = logging.getLogger(__name__)


class ProductStore:
    def __init__(
        self,
        images: ImageStorage,
        resolver: Callable[[Optional[str]], str],
        repository: Optional[FileRepository] = None,
    ):
        self.images = images
        self.resolver = resolver
        self.repository = repository
        self._products: Dict[str, Product] = {}
        self._lock = threading.RLock()
        self._started = time.time()
        self._started_at = utc_timestamp()
        self.last_persistence_error: Optional[str] = None

    # --- helpers ---

    def _resolved(self, product: Product) -> Dict[str, Any]:
        out = product.to_dict()
        out["image"] = self.resolver(product.image)
        return out

    def _new_id(self) -> str:
        while True:
            pid = f"prod-{int(time.time() * 1000)}{random.randint(0, 999)}"
            if pid not in self._products:
                return pid

    def _require(self, product_id: str) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise NotFound(product_id)
        return product

    def _persist(self, products: List[Product]) -> None:
        if self.repository is None:
            return
        try:
            self.repository.save_all(products)
            self.last_persistence_error = None
        except PersistenceError as e:
            self.last_persistence_error = e.message
            logger.error("Could not persist products, keeping in-memory state: %s", e.message)

    @staticmethod
    def _external_image(value: Optional[str]) -> Optional[str]:
        url = clean_text(value)
        if url is None:
            return None
        if not is_absolute_url(url):
            raise ValidationError("image must be an absolute URL when no file is uploaded")
        return url

    def _discard_upload(self, reference: Optional[str]) -> None:
        if reference:
            logger.warning("Removing image %s saved for a failed request", reference)
            self.images.delete(reference)

    def _release_image(self, reference: str, owner_id: str) -> None:
        """Delete a local image file unless another product still points at it."""
        if not self.images.is_local(reference):
            return
        for pid, other in self._products.items():
            if pid != owner_id and other.image == reference:
                logger.info("Keeping image %s, still used by %s", reference, pid)
                return
        self.images.delete(reference)

    # --- lifecycle ---

    def load(self) -> int:
        """Replace the collection with what the repository holds. Returns the product count."""
        if self.repository is None:
            return len(self._products)
        with self._lock:
            loaded: Dict[str, Product] = {}
            for product in self.repository.load_all():
                if product.id in loaded:
                    logger.warning("Duplicate product id %s in %s, keeping the first", product.id, self.repository.path)
                    continue
                loaded[product.id] = product
            self._products = loaded
            return len(self._products)

    # --- reads ---

    def list(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [self._resolved(p) for p in self._products.values()]

    def get(self, product_id: str) -> Dict[str, Any]:
        with self._lock:
            return self._resolved(self._require(product_id))

    def count(self) -> int:
        return len(self._products)

    def health(self) -> Dict[str, Any]:
        if self.repository is None:
            persistence = "disabled"
        else:
            persistence = self.last_persistence_error or "ok"
        return {
            "productsCount": self.count(),
            "uptimeSeconds": round(time.time() - self._started, 3),
            "startedAt": self._started_at,
            "persistence": persistence,
        }

    # --- mutations ---

    def create(self, fields: ProductInput, upload: Optional[ImageUpload] = None) -> Dict[str, Any]:
        name = clean_text(fields.name)
        if not name:
            raise ValidationError("Product name is required")
        price = parse_price(fields.price, default=0.0)
        in_stock = parse_bool(fields.inStock, default=True)
        external = self._external_image(fields.image)
        if upload is not None:
            self.images.check(upload.size, upload.content_type)

        category = clean_text(fields.category) or clean_text(fields.mainCategory) or ""
        main_category = clean_text(fields.mainCategory) or category

        with self._lock:
            new_ref = None
            if upload is not None:
                new_ref = self.images.save(upload.data, upload.filename, upload.content_type)
            try:
                now = utc_timestamp()
                product = Product(
                    id=self._new_id(),
                    name=name,
                    price=price,
                    category=category,
                    main_category=main_category,
                    sub_category=clean_text(fields.subCategory) or "",
                    nested_category=clean_text(fields.nestedCategory) or "",
                    description=clean_text(fields.description) or "",
                    usage=clean_text(fields.usage) or "",
                    image=new_ref or external or "",
                    specifications=build_specifications(fields.spec_fields(), fields.specifications),
                    tags=normalize_tags(fields.tags),
                    in_stock=in_stock,
                    created_at=now,
                    updated_at=now,
                )
                self._persist(list(self._products.values()) + [product])
                self._products[product.id] = product
            except Exception:
                self._discard_upload(new_ref)
                raise
            logger.info("Product created: %s (total %d)", product.id, len(self._products))
            return self._resolved(product)

    def update(self, product_id: str, fields: ProductInput, upload: Optional[ImageUpload] = None) -> Dict[str, Any]:
        with self._lock:
            existing = self._require(product_id)

            price = parse_price(fields.price, default=existing.price)
            in_stock = parse_bool(fields.inStock, default=existing.in_stock)
            external = self._external_image(fields.image)
            if upload is not None:
                self.images.check(upload.size, upload.content_type)

            # category and mainCategory are aliases: either one moves both
            category = clean_text(fields.category) or clean_text(fields.mainCategory)
            main_category = clean_text(fields.mainCategory) or category

            new_ref = None
            if upload is not None:
                new_ref = self.images.save(upload.data, upload.filename, upload.content_type)
            try:
                image = new_ref or external or existing.image
                updated_at = max(utc_timestamp(), existing.updated_at)
                product = existing.copy(
                    name=clean_text(fields.name) or existing.name,
                    price=price,
                    category=category or existing.category,
                    main_category=main_category or existing.main_category,
                    sub_category=clean_text(fields.subCategory) or existing.sub_category,
                    nested_category=clean_text(fields.nestedCategory) or existing.nested_category,
                    description=clean_text(fields.description) or existing.description,
                    usage=clean_text(fields.usage) or existing.usage,
                    image=image,
                    specifications=build_specifications(fields.spec_fields(), fields.specifications, existing.specifications),
                    tags=normalize_tags(fields.tags) if fields.tags not in (None, "") else list(existing.tags),
                    in_stock=in_stock,
                    updated_at=updated_at,
                )
                products = [product if p.id == product_id else p for p in self._products.values()]
                self._persist(products)
                self._products[product_id] = product
            except Exception:
                # nothing may point at the file we just wrote
                self._discard_upload(new_ref)
                raise
            if image != existing.image:
                self._release_image(existing.image, existing.id)
            logger.info("Product updated: %s", product_id)
            return self._resolved(product)

    def delete(self, product_id: str) -> str:
        with self._lock:
            product = self._require(product_id)
            self._persist([p for p in self._products.values() if p.id != product_id])
            del self._products[product_id]
            self._release_image(product.image, product.id)
            logger.info("Product deleted: %s (total %d)", product_id, len(self._products))
            return product_id
