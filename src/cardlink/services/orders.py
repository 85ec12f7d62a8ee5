"""Card orders with a frozen copy of the profile design."""

import random
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from ..core.enums import DesignMode, OrderStatus, PaymentMethod
from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..db.models import Order
from ..repositories.interfaces import RepositoryContainer
from ..utils.logging_config import get_logger

logger = get_logger("orders")

DEFAULT_SHIPPING_COUNTRY = "Jordan"
# Design fields copied from the profile unless the caller overrides them
SNAPSHOT_FIELDS = {
    "color": "card_color",
    "template": "card_template",
    "design_mode": "design_mode",
    "ai_background": "ai_background",
    "custom_design_url": "custom_design_url",
}


def generate_order_number(now_ms: Optional[int] = None) -> str:
    """Human-readable order number: ``ORD-<epoch ms>-<0..999>``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"ORD-{now_ms}-{random.randint(0, 999)}"


def _required(section: Dict[str, Any], key: str, label: str) -> str:
    value = section.get(key)
    if value is None or not str(value).strip():
        raise ValidationError(f"{label} is required", field=key)
    return str(value).strip()


class OrderService:
    """Places orders against owned profiles and handles admin status updates."""

    def __init__(self, repos: RepositoryContainer):
        self.repos = repos

    async def create_order(
        self,
        user_id: UUID,
        profile_id: int,
        customer: Dict[str, Any],
        shipping: Dict[str, Any],
        design: Optional[Dict[str, Any]] = None,
        payment_method=None,
        total_amount=None,
    ) -> Order:
        """
        Place an order for one of the caller's profiles.

        The card type always follows the profile type; other design fields
        are copied from the profile at this moment unless overridden.

        Raises:
            NotFoundError: The profile does not exist or belongs to someone else
            ValidationError: Customer or shipping details are incomplete
        """
        profile = await self.repos.profile.get_owned(profile_id, user_id)
        if profile is None:
            raise NotFoundError("Profile not found or does not belong to you")

        design = design or {}
        snapshot = {}
        for source_field, order_field in SNAPSHOT_FIELDS.items():
            override = design.get(source_field)
            if isinstance(override, DesignMode):
                override = override.value
            snapshot[order_field] = override or getattr(profile, source_field)

        amount = Decimal(str(total_amount)) if total_amount is not None else Decimal("0")
        if amount < 0:
            raise ValidationError("Total amount cannot be negative", field="totalAmount")

        values = dict(
            user_id=user_id,
            profile_id=profile.id,
            customer_first_name=_required(customer, "first_name", "Customer first name"),
            customer_last_name=_required(customer, "last_name", "Customer last name"),
            customer_email=_required(customer, "email", "Customer email"),
            customer_phone=_required(customer, "phone", "Customer phone"),
            shipping_address=_required(shipping, "address", "Shipping address"),
            shipping_city=_required(shipping, "city", "Shipping city"),
            shipping_country=(shipping.get("country") or DEFAULT_SHIPPING_COUNTRY).strip(),
            shipping_notes=shipping.get("notes"),
            card_type=profile.profile_type,
            payment_method=PaymentMethod(payment_method or PaymentMethod.CASH_ON_DELIVERY).value,
            total_amount=amount,
            status=OrderStatus.PENDING.value,
            **snapshot,
        )

        for attempt in range(2):
            order = Order(order_number=generate_order_number(), **values)
            await self.repos.order.save(order)
            try:
                await self.repos.commit()
            except IntegrityError:
                await self.repos.rollback()
                if attempt == 0:
                    logger.warning(f"Order number {order.order_number} collided, retrying")
                    continue
                raise ConflictError("Could not allocate a unique order number")

            await self.repos.order.refresh(order)
            logger.info(
                f"Order {order.order_number} placed by user {user_id} for profile {profile.id} "
                f"({order.card_type}, {order.total_amount})"
            )
            return order

        raise ConflictError("Could not allocate a unique order number")

    async def list_for_user(self, user_id: UUID) -> List[Order]:
        return await self.repos.order.list_by_user(user_id)

    async def get_for_user(self, order_id: int, user_id: UUID) -> Order:
        order = await self.repos.order.get_owned(order_id, user_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    async def list_all(
        self, status: Optional[str] = None, limit: int = 50, offset: int = 0
    ) -> Tuple[List[Order], int]:
        if status is not None:
            status = OrderStatus(status).value
        return await self.repos.order.list_all(status, limit, offset)

    async def update_status(self, order_id: int, status, admin_notes: Any = ...) -> Order:
        """
        Set an order's status.

        Any transition is accepted. Moving to shipped or delivered stamps the
        matching timestamp. ``admin_notes`` is only written when passed.
        """
        order = await self.repos.order.get_by_id(order_id)
        if order is None:
            raise NotFoundError("Order not found")

        new_status = OrderStatus(status).value
        previous = order.status
        now = datetime.now(timezone.utc)

        order.status = new_status
        if new_status == OrderStatus.SHIPPED.value:
            order.shipped_at = now
        elif new_status == OrderStatus.DELIVERED.value:
            order.delivered_at = now
        if admin_notes is not ...:
            order.admin_notes = admin_notes

        await self.repos.commit()
        await self.repos.order.refresh(order)
        logger.info(f"Order {order.order_number} status {previous} -> {new_status}")
        return order

    async def delete(self, order_id: int) -> None:
        order = await self.repos.order.get_by_id(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        await self.repos.order.delete(order)
        await self.repos.commit()
        logger.warning(f"Order {order.order_number} deleted by an administrator")

    async def statistics(self) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        return {
            "orders_by_status": await self.repos.order.count_by_status(),
            "total_revenue": await self.repos.order.delivered_revenue(),
            "orders_this_month": await self.repos.order.count(since=month_start),
            "recent_orders": await self.repos.order.list_recent(10),
        }
