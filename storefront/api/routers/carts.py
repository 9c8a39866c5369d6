#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends

from storefront.api.deps import get_cart_service, get_principal, to_http
from storefront.domain.errors import ShopError
from storefront.domain.schemas import CartOut, ItemIn
from storefront.services.cart_service import CartService
from storefront.services.identity_service import Principal

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("/", response_model=CartOut)
def get_cart(
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    return svc.get_cart(principal.user_id)


@router.post("/items", response_model=CartOut)
def set_item(
    payload: ItemIn,
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.set_item(
            user_id=principal.user_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
        )
    except ShopError as e:
        raise to_http(e)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: int,
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.remove_item(principal.user_id, product_id)
    except ShopError as e:
        raise to_http(e)


@router.delete("/", response_model=CartOut)
def clear_cart(
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.clear(principal.user_id)
    except ShopError as e:
        raise to_http(e)
