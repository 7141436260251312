"""Repository for the Order aggregate, with the lookups the storefront and admin need."""

from protean.exceptions import ObjectNotFoundError

from ordering.domain import ordering
from ordering.exceptions import OrderNotFound
from ordering.order.order import DeliveryStatus, Order


@ordering.repository(part_of=Order)
class OrderRepository:
    def load(self, order_id) -> Order:
        """Like get(), but raises OrderNotFound."""
        try:
            return self.get(str(order_id))
        except ObjectNotFoundError:
            raise OrderNotFound(order_id) from None

    def find_by_number(self, order_number) -> Order | None:
        return self._dao.query.filter(order_number=order_number).all().first

    def get_by_number(self, order_number) -> Order:
        order = self.find_by_number(order_number)
        if order is None:
            raise OrderNotFound(order_number)
        return order

    def find_for_user(self, user_id) -> list[Order]:
        """The user's orders, newest first."""
        return self._dao.query.filter(user_id=str(user_id)).order_by("-created_at").all().items

    def find_by_delivery_status(self, status) -> list[Order]:
        status = DeliveryStatus(status).value
        return self._dao.query.filter(delivery_status=status).order_by("-created_at").all().items

    def track(self, order_number, email=None, phone=None) -> Order:
        """Public order lookup: the order number plus a matching recipient email or phone.

        Either contact detail is enough. When neither matches, the order is
        reported exactly like an unknown order number, so the lookup cannot
        be used to discover order numbers.
        """
        order = self.find_by_number(order_number)
        if order is None or not order.matches_contact(email=email, phone=phone):
            raise OrderNotFound(order_number)
        return order
