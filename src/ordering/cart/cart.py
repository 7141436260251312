"""Shopping Cart aggregate (CQRS): one live cart per user, kept consistent with catalogue stock.

The cart is a standard CQRS aggregate (not event sourced) keyed by user.
It holds (product, quantity) lines only; prices are resolved from the
catalogue whenever the cart is displayed or checked out.

Stock rules differ by operation on purpose:
- add_item and update_item_quantity are explicit user actions and fail
  outright when stock is short
- sync is best-effort reconciliation of an offline cart: it drops or caps
  lines instead of failing
"""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer

from ordering.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartItemsPruned,
    CartOpened,
    CartQuantityUpdated,
    CartSynced,
)
from ordering.catalog.port import ProductInfo
from ordering.domain import ordering
from ordering.exceptions import CartItemNotFound, InsufficientStock, ProductUnavailable


@ordering.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@ordering.aggregate
class ShoppingCart:
    user_id = Identifier(required=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id):
        now = datetime.now(UTC)
        cart = cls(user_id=user_id, created_at=now, updated_at=now)
        cart.raise_(CartOpened(cart_id=str(cart.id), user_id=str(user_id)))
        return cart

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------
    @property
    def lines(self):
        """Items in the order they were first added."""
        return sorted(self.items, key=lambda i: i.added_at or self.created_at)

    def line_for(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def get_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise CartItemNotFound(item_id)
        return item

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product: ProductInfo, quantity):
        """Add a product to the cart, merging into its existing line if present."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if not product.is_active:
            raise ProductUnavailable(product.product_id)

        existing = self.line_for(product.product_id)
        in_cart = existing.quantity if existing else 0
        if in_cart + quantity > product.stock_quantity:
            raise InsufficientStock(
                product.product_id,
                requested=quantity,
                available=product.stock_quantity,
                in_cart=in_cart,
            )

        now = datetime.now(UTC)

        if existing:
            existing.quantity += quantity
            item = existing
        else:
            item = CartItem(product_id=product.product_id, quantity=quantity, added_at=now)
            self.add_items(item)

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(product.product_id),
                quantity=quantity,
                line_quantity=item.quantity,
            )
        )
        return item

    def update_item_quantity(self, item_id, new_quantity, product: ProductInfo):
        """Set a line's quantity. Checks stock but not whether the product is still active."""
        item = self.get_item(item_id)
        if new_quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if new_quantity > product.stock_quantity:
            raise InsufficientStock(item.product_id, requested=new_quantity, available=product.stock_quantity)

        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, item_id):
        item = self.get_item(item_id)

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                item_id=str(item_id),
                product_id=str(item.product_id),
            )
        )

    def clear(self):
        """Remove every line. Clearing an empty cart is a no-op."""
        removed = self._remove_all()
        if not removed:
            return

        self.updated_at = datetime.now(UTC)
        self.raise_(CartCleared(cart_id=str(self.id), items_removed=removed))

    def _remove_all(self):
        existing = list(self.items)
        for item in existing:
            self.remove_items(item)
        return len(existing)

    # -------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------
    def prune(self, missing_product_ids):
        """Drop lines for products that no longer exist in the catalogue."""
        missing = {str(pid) for pid in missing_product_ids}
        doomed = [i for i in self.items if str(i.product_id) in missing]
        if not doomed:
            return

        for item in doomed:
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemsPruned(
                cart_id=str(self.id),
                product_ids=json.dumps(sorted(missing)),
            )
        )

    def sync(self, requested):
        """Replace the cart's contents with a client-side item list.

        Args:
            requested: List of (product_id, quantity, ProductInfo or None)
                tuples, in the client's order.

        Missing and inactive products are skipped. Quantities are capped at
        current stock (repeated products are summed first) and lines that
        end up empty are not kept.
        """
        self._remove_all()
        now = datetime.now(UTC)

        kept = {}
        dropped = []
        for product_id, quantity, product in requested:
            if product is None or not product.is_active or quantity < 1:
                dropped.append(str(product_id))
                continue

            line = kept.get(str(product_id))
            wanted = quantity + (line.quantity if line else 0)
            capped = min(wanted, product.stock_quantity)
            if capped <= 0:
                dropped.append(str(product_id))
                continue

            if line:
                line.quantity = capped
            else:
                line = CartItem(product_id=product_id, quantity=capped, added_at=now)
                kept[str(product_id)] = line
                self.add_items(line)

        self.updated_at = now

        self.raise_(
            CartSynced(
                cart_id=str(self.id),
                requested_count=len(requested),
                kept_count=len(kept),
                dropped_product_ids=json.dumps(dropped),
            )
        )
        return dropped
