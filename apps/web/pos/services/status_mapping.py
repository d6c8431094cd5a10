"""
Clover order state -> local OrderStatus.

Both ingestion paths (webhooks and polling) go through this one table.
"""

from apps.web.orders.models import OrderStatus

CLOVER_STATE_MAP: dict[str, OrderStatus] = {
    "OPEN": OrderStatus.RECEIVED,
    "IN_PROGRESS": OrderStatus.IN_PROGRESS,
    "READY": OrderStatus.READY,
    "COMPLETED": OrderStatus.DELIVERED,
    "VOIDED": OrderStatus.CANCELLED,
}


def map_external_state(label: str | None) -> OrderStatus | None:
    """
    Map a Clover order state label to a local status.

    Matching ignores case and surrounding whitespace. Returns None for
    labels with no local meaning; callers treat that as "ignore".
    """
    if not label:
        return None
    return CLOVER_STATE_MAP.get(label.strip().upper())
