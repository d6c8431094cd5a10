"""
Order signals.

`order_status_changed` fires after a status change has been committed.
Receivers get `order`, `previous_status`, `status` and `source` kwargs;
live dashboards and notification senders hook in here.
"""

from django.dispatch import Signal

order_status_changed = Signal()
