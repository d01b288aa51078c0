"""
Order domain events and their consumer.

Services emit events only after their transaction has committed. The
dispatcher turns each event into an email; delivery failures are logged
and never reach the caller.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional, Protocol, Tuple, Union

from fastapi import BackgroundTasks

from floresya.services.order_emails import OrderEmailService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderLine:
    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal


@dataclass(frozen=True)
class OrderPlaced:
    order_id: int
    order_number: str
    recipient: Optional[str]
    total_amount: Decimal
    currency: str
    lines: Tuple[OrderLine, ...] = ()
    shipping_address: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class OrderStatusChanged:
    order_id: int
    order_number: str
    recipient: Optional[str]
    old_status: Optional[str]
    new_status: str
    notes: Optional[str] = None


OrderEvent = Union[OrderPlaced, OrderStatusChanged]


class EventSink(Protocol):
    def emit(self, event: OrderEvent) -> None:
        ...


class NotificationDispatcher:
    """Consumes order events. Never raises."""

    def __init__(self, emails: OrderEmailService):
        self.emails = emails

    async def dispatch(self, event: OrderEvent) -> bool:
        if not event.recipient:
            logger.warning(
                f"No recipient for {type(event).__name__} on order {event.order_number}, skipping email"
            )
            return False

        try:
            if isinstance(event, OrderPlaced):
                await self.emails.send_order_confirmation(event)
            elif isinstance(event, OrderStatusChanged):
                await self.emails.send_status_update(event)
            else:
                logger.warning(f"Unhandled event type {type(event).__name__}")
                return False
        except Exception as e:
            logger.error(
                f"Failed to deliver {type(event).__name__} email for order "
                f"{event.order_number} to {event.recipient}: {e}"
            )
            return False
        return True


class BackgroundTaskSink:
    """Runs the dispatcher after the response is sent."""

    def __init__(self, background_tasks: BackgroundTasks, dispatcher: NotificationDispatcher):
        self.background_tasks = background_tasks
        self.dispatcher = dispatcher

    def emit(self, event: OrderEvent) -> None:
        self.background_tasks.add_task(self.dispatcher.dispatch, event)
