from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_identity_service, get_principal, to_http
from storefront.data.database import get_db
from storefront.domain.errors import ShopError
from storefront.domain.schemas import LoginIn, TokenOut, UserCreate, UserRead
from storefront.services.identity_service import IdentityService, Principal
from storefront.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


def get_service(db: Session, identity: IdentityService):
    return UserService(db, identity)


@router.post("/", response_model=UserRead, status_code=201)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    identity: IdentityService = Depends(get_identity_service),
):
    service = get_service(db, identity)
    try:
        return service.create_user(payload)
    except ShopError as e:
        raise to_http(e)


@router.post("/login", response_model=TokenOut)
def login(
    payload: LoginIn,
    db: Session = Depends(get_db),
    identity: IdentityService = Depends(get_identity_service),
):
    service = get_service(db, identity)
    try:
        return TokenOut(access_token=service.authenticate(payload.email, payload.password))
    except ShopError as e:
        raise to_http(e)


@router.get("/me", response_model=UserRead)
def get_me(
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
    identity: IdentityService = Depends(get_identity_service),
):
    service = get_service(db, identity)
    try:
        return service.get_user(principal, principal.user_id)
    except ShopError as e:
        raise to_http(e)


@router.get("/{user_id}", response_model=UserRead)
def get_user(
    user_id: int,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
    identity: IdentityService = Depends(get_identity_service),
):
    service = get_service(db, identity)
    try:
        return service.get_user(principal, user_id)
    except ShopError as e:
        raise to_http(e)
