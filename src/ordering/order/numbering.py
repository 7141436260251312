"""Human-readable order numbers: ``{COUNTRY}{YY}{MM}-{seq:07d}``, e.g. ``RW2610-0000001``.

Each (country, month) pair has its own OrderNumberSequence counter. The
counter is loaded, bumped and saved inside the caller's Unit of Work, so
a checkout that fails does not consume a number.
"""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering

SEQUENCE_DIGITS = 7


@ordering.aggregate
class OrderNumberSequence:
    prefix = String(identifier=True, required=True, max_length=10)  # e.g. RW2610
    last_value = Integer(default=0)

    def next_number(self) -> str:
        self.last_value = (self.last_value or 0) + 1
        return f"{self.prefix}-{self.last_value:0{SEQUENCE_DIGITS}d}"


def sequence_prefix(country, at=None) -> str:
    if not country or len(country) != 2 or not country.isalpha():
        raise ValidationError({"country": ["Country must be a two-letter ISO code"]})
    at = at or datetime.now(UTC)
    return f"{country.upper()}{at:%y%m}"


def next_order_number(country, at=None) -> str:
    """Allocate the next order number for ``country`` in the current month."""
    prefix = sequence_prefix(country, at)
    repo = current_domain.repository_for(OrderNumberSequence)
    try:
        sequence = repo.get(prefix)
    except ObjectNotFoundError:
        sequence = OrderNumberSequence(prefix=prefix, last_value=0)

    number = sequence.next_number()
    repo.add(sequence)
    return number
