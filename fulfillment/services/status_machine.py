"""Order status transition rules.

Any move between two different non-terminal statuses is allowed, backwards
moves included. Two rules are enforced:

* ``delivered`` and ``cancelled`` are terminal;
* ``cancelled`` can only be reached from ``pending`` or ``processing``.
"""

from fulfillment.errors import InvalidStatusTransition
from fulfillment.models.order import OrderStatus

PENDING = OrderStatus.PENDING
PROCESSING = OrderStatus.PROCESSING
SHIPPED = OrderStatus.SHIPPED
DELIVERED = OrderStatus.DELIVERED
CANCELLED = OrderStatus.CANCELLED

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    PENDING: frozenset({PROCESSING, SHIPPED, DELIVERED, CANCELLED}),
    PROCESSING: frozenset({PENDING, SHIPPED, DELIVERED, CANCELLED}),
    SHIPPED: frozenset({PENDING, PROCESSING, DELIVERED}),
    DELIVERED: frozenset(),
    CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)

# Transitions into these statuses notify the customer
NOTIFY_STATUSES = frozenset({SHIPPED, DELIVERED})


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """Whether an order may move from ``current`` to ``target``."""
    return target in ALLOWED_TRANSITIONS[current]


def check_transition(current: OrderStatus, target: OrderStatus) -> None:
    """Raise InvalidStatusTransition unless the move is allowed."""
    if not can_transition(current, target):
        raise InvalidStatusTransition(current.value, target.value)


def allowed_sources(target: OrderStatus) -> frozenset[OrderStatus]:
    """Statuses from which ``target`` can be reached."""
    return frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if target in targets)


def is_terminal(status: OrderStatus) -> bool:
    """Whether no further transitions are accepted."""
    return status in TERMINAL_STATUSES


def should_notify(target: OrderStatus) -> bool:
    """Whether entering ``target`` sends the customer a status update."""
    return target in NOTIFY_STATUSES
