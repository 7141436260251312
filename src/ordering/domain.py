"""Ordering bounded context: Shopping Cart, Checkout and Order lifecycle.

Keeps a stock-aware cart per user, converts a cart (or a guest item list)
into a priced Order at checkout, and tracks each order through independent
delivery and payment lifecycles with an append-only status history.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
