"""Loading a user's cart: create it if absent, then reconcile against the catalogue.

Every cart operation starts here, so a cart is never handed out with
lines for products that have since been deleted. Inactive products are
left in place; checkout refuses them.
"""

import structlog
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.catalog import get_catalog

logger = structlog.get_logger(__name__)


def reconciled_cart(user_id) -> ShoppingCart:
    """Return the user's cart, creating an empty one and pruning orphaned lines.

    The caller is responsible for persisting the returned cart, which also
    persists any creation or pruning done here.
    """
    cart = current_domain.repository_for(ShoppingCart).find_by_user(user_id)
    if cart is None:
        cart = ShoppingCart.create(user_id=user_id)
        logger.info("Cart opened", user_id=str(user_id), cart_id=str(cart.id))
        return cart

    catalog = get_catalog()
    missing = [str(item.product_id) for item in cart.items if catalog.find(str(item.product_id)) is None]
    if missing:
        cart.prune(missing)
        logger.info("Pruned cart lines for deleted products", cart_id=str(cart.id), product_ids=missing)

    return cart
