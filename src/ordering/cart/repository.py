"""Repository for the ShoppingCart aggregate, keyed by user."""

from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering


@ordering.repository(part_of=ShoppingCart)
class ShoppingCartRepository:
    def find_by_user(self, user_id) -> ShoppingCart | None:
        """Return the user's cart, or None if they have never had one."""
        return self._dao.query.filter(user_id=str(user_id)).all().first
