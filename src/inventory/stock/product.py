"""Product aggregate (CQRS) with its embedded variants.

The product row is the unit of mutual exclusion. A write to any part of the
aggregate (product stock, any variant, settings, cached status) re-saves the
root under its ``_version`` guard, so two writers never both commit against
the same read.
"""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, DateTime, Dict, HasMany, Identifier, Integer, String

from inventory.domain import inventory
from inventory.exceptions import NotFoundError
from inventory.stock.records import DEFAULT_LOW_STOCK_THRESHOLD
from inventory.stock.status import InventoryStatus

VARIANT_SETTINGS = ("track_inventory", "low_stock_threshold", "backorder_enabled", "backorder_limit")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@inventory.entity(part_of="Product", limit=-1)
class Variant:
    """A sellable variant of a product.

    Inventory settings left unset (None) are inherited from the product.
    """

    variant_id = Identifier(required=True)
    sku = String(max_length=100)
    name = String(max_length=255)
    stock = Integer(min_value=0, default=0)
    track_inventory = Boolean()
    low_stock_threshold = Integer(min_value=0)
    backorder_enabled = Boolean()
    backorder_limit = Integer(min_value=0)
    inventory_status = String(max_length=20, choices=InventoryStatus)
    attributes = Dict()
    position = Integer(default=0)

    @classmethod
    def from_payload(cls, product_id, data, position=0):
        """Build a variant from an API-style dict keyed by ``id``.

        Keys that are not variant fields are kept in ``attributes``.
        """
        data = dict(data)
        variant_id = data.pop("id", None) or data.pop("variant_id")
        known = ("sku", "name", "stock", *VARIANT_SETTINGS)
        values = {key: data.pop(key) for key in known if key in data}
        attributes = {**(data.pop("attributes", None) or {}), **data}
        values["stock"] = values.get("stock") or 0
        return cls(
            id=f"{product_id}:{variant_id}",
            variant_id=variant_id,
            attributes=attributes,
            position=position,
            **values,
        )


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@inventory.aggregate
class Product:
    """Stock-relevant view of a catalogue product."""

    name = String(max_length=255, default="")
    stock = Integer(min_value=0, default=0)
    track_inventory = Boolean(default=True)
    low_stock_threshold = Integer(min_value=0, default=DEFAULT_LOW_STOCK_THRESHOLD)
    backorder_enabled = Boolean(default=False)
    backorder_limit = Integer(min_value=0)
    inventory_status = String(max_length=20, choices=InventoryStatus)
    variants = HasMany(Variant)
    warehouse_location = String(max_length=255)
    restock_date = String(max_length=32)
    created_at = DateTime()
    updated_at = DateTime()

    @property
    def version(self) -> int:
        return self._version

    def variant_list(self) -> list[Variant]:
        return sorted(self.variants, key=lambda variant: variant.position)

    def find_variant(self, variant_id: str) -> Variant:
        for variant in self.variants:
            if variant.variant_id == variant_id:
                return variant
        raise NotFoundError(self.id, variant_id)

    def update_variant(self, variant_id: str, **changes) -> Variant:
        variant = self.find_variant(variant_id)
        for name, value in changes.items():
            setattr(variant, name, value)
        return variant

    def set_stock(self, variant_id: str | None, new_stock: int) -> None:
        if variant_id is None:
            self.stock = new_stock
        else:
            self.update_variant(variant_id, stock=new_stock)

    def touch(self) -> None:
        self.updated_at = datetime.now(UTC)


@inventory.repository(part_of=Product)
class ProductRepository:
    def get_product(self, product_id: str) -> Product:
        """Load a product with its variants, or raise ``NotFoundError``."""
        try:
            return self.get(product_id)
        except ObjectNotFoundError as exc:
            raise NotFoundError(product_id) from exc

    def find_tracked_by_status(self, statuses, order_by, limit: int) -> list[Product]:
        if limit < 1:
            return []
        return (
            self._dao.query.filter(
                track_inventory=True,
                inventory_status__in=[InventoryStatus(status).value for status in statuses],
            )
            .order_by(order_by)
            .limit(limit)
            .all()
            .items
        )
