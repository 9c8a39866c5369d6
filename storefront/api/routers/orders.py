# storefront/api/routers/orders.py
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from storefront.api.deps import get_order_service, get_principal, to_http
from storefront.domain.errors import ShopError
from storefront.domain.schemas import OrderCreate, OrderOut, OrderPage, OrderStatusUpdate
from storefront.services.identity_service import Principal
from storefront.services.order_service import OrderFilters, OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/", response_model=OrderOut, status_code=201)
def place_order(
    payload: OrderCreate,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    """
    Tworzy zamowienie z koszyka zalogowanego usera i czysci koszyk.
    Kwoty liczy serwer, klient ich nie przesyla.
    """
    try:
        return svc.place_order(
            user_id=principal.user_id,
            shipping_address=payload.shipping_address,
            billing_address=payload.billing_address,
            payment_method=payload.payment_method,
            payment_status=payload.payment_status,
        )
    except ShopError as e:
        raise to_http(e)


@router.get("/mine", response_model=List[OrderOut])
def list_my_orders(
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_my_orders(principal.user_id)


@router.get("/", response_model=OrderPage)
def list_all_orders(
    status: Optional[str] = Query(None),
    payment_status: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    """
    Lista wszystkich zamowien dla admina, z filtrami i paginacja.
    """
    filters = OrderFilters(
        status=status,
        payment_status=payment_status,
        search=search,
        date_from=date_from,
        date_to=date_to,
    )
    try:
        return svc.list_all_orders(principal.role, filters, page=page, limit=limit)
    except ShopError as e:
        raise to_http(e)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    try:
        return svc.get_order(principal.user_id, principal.role, order_id)
    except ShopError as e:
        raise to_http(e)


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    try:
        return svc.update_order_status(
            actor_user_id=principal.user_id,
            actor_role=principal.role,
            order_id=order_id,
            order_status=payload.order_status,
            payment_status=payload.payment_status,
            tracking_number=payload.tracking_number,
            notes=payload.notes,
        )
    except ShopError as e:
        raise to_http(e)


@router.post("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    try:
        return svc.cancel_order(principal.user_id, principal.role, order_id)
    except ShopError as e:
        raise to_http(e)
