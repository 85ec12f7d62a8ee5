"""Card order API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..auth.dependencies import get_current_user, require_admin
from ..core.enums import OrderStatus
from ..db.models import User
from ..services.dependencies import get_order_service
from ..services.orders import OrderService
from .responses import success
from .schemas import (
    AdminOrderResponse,
    OrderCreate,
    OrderPage,
    OrderResponse,
    OrderStatistics,
    OrderStatusUpdate,
    StatusCount,
)

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """
    Order a physical card for one of the caller's profiles.

    The card design is copied from the profile now; later profile edits do
    not change the order.
    """
    design = order_data.card_design.model_dump(exclude_none=True) if order_data.card_design else {}
    order = await service.create_order(
        user.id,
        order_data.profile_id,
        customer=order_data.customer_info.model_dump(),
        shipping=order_data.shipping_info.model_dump(),
        design=design,
        payment_method=order_data.payment_method,
        total_amount=order_data.total_amount,
    )
    return success(OrderResponse.model_validate(order), message="Order created successfully")


@router.get("/my-orders")
async def my_orders(
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    orders = await service.list_for_user(user.id)
    return success([OrderResponse.model_validate(order) for order in orders])


@router.get("/admin/all")
async def list_all_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    orders, total = await service.list_all(status_filter, limit, offset)
    return success(
        OrderPage(
            orders=[AdminOrderResponse.model_validate(order) for order in orders],
            total=total,
            limit=limit,
            offset=offset,
        )
    )


@router.get("/admin/statistics")
async def order_statistics(
    admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    """Counts by status, delivered revenue, this month's volume and the latest orders."""
    stats = await service.statistics()
    return success(
        OrderStatistics(
            orders_by_status=[StatusCount(status=key, count=count) for key, count in stats["orders_by_status"]],
            total_revenue=stats["total_revenue"],
            orders_this_month=stats["orders_this_month"],
            recent_orders=[AdminOrderResponse.model_validate(order) for order in stats["recent_orders"]],
        )
    )


@router.patch("/admin/{order_id}/status")
async def update_order_status(
    order_id: int,
    update: OrderStatusUpdate,
    admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    """Set any status; shipped and delivered stamp their timestamps."""
    if "admin_notes" in update.model_fields_set:
        order = await service.update_status(order_id, update.status, update.admin_notes)
    else:
        order = await service.update_status(order_id, update.status)
    return success(AdminOrderResponse.model_validate(order), message="Order status updated successfully")


@router.delete("/admin/{order_id}")
async def delete_order(
    order_id: int,
    admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    await service.delete(order_id)
    return success(message="Order deleted successfully")


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    order = await service.get_for_user(order_id, user.id)
    return success(OrderResponse.model_validate(order))
