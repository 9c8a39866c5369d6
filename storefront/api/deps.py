# storefront/api/deps.py
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import ShopError, Unauthenticated
from storefront.services.cart_service import CartService
from storefront.services.identity_service import IdentityService, Principal
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.services.product_client import ProductClient

_bearer = HTTPBearer(auto_error=False)


def to_http(e: ShopError) -> HTTPException:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(e, Unauthenticated) else None
    return HTTPException(status_code=e.status_code, detail=str(e), headers=headers)


def get_identity_service() -> IdentityService:
    return IdentityService()


def get_product_client() -> ProductClient:
    return ProductClient()


def get_lock_service() -> LockService:
    return LockService()


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    identity: IdentityService = Depends(get_identity_service),
) -> Principal:
    try:
        return identity.decode(credentials.credentials if credentials else None)
    except Unauthenticated as e:
        raise to_http(e)


def get_cart_service(
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
) -> CartService:
    return CartService(db=db, product_client=product_client)


def get_order_service(
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
    lock_service: LockService = Depends(get_lock_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> OrderService:
    return OrderService(
        db=db,
        product_client=product_client,
        lock_service=lock_service,
        notification_service=notification_service,
    )
