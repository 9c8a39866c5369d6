# storefront/services/order_service.py
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError
from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.errors import (
    CatalogUnavailable,
    EmptyCart,
    Forbidden,
    InvalidAddress,
    InvalidStateTransition,
    InvalidStatusValue,
    LockUnavailable,
    NotFound,
    StorageConflict,
)
from storefront.domain.order_status import (
    OrderStatus,
    PaymentStatus,
    can_transition,
    is_admin,
)
from storefront.domain.pricing import PricingPolicy, compute_totals, to_money
from storefront.domain.schemas import Address
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.lock_service import LockService
from storefront.services.notification_service import (
    NotificationService,
    ORDER_PLACED,
    ORDER_STATUS_CHANGED,
    ORDER_CANCELLED,
)
from storefront.services.product_client import ProductClient
from storefront.utils.settings import (
    CHECKOUT_LOCK_TTL_SECONDS,
    DELIVERY_DAYS,
    SHIPPED_DELIVERY_DAYS,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

MAX_PAGE_LIMIT = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    #sqlite zwraca naiwne daty, zapisujemy zawsze UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _coerce(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidStatusValue(f"Nieznany status: {value}")


@dataclass
class OrderFilters:
    status: Optional[str] = None
    payment_status: Optional[str] = None
    search: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien.

    Checkout: koszyk -> wycena po aktualnych cenach z katalogu -> zamowienie,
    zamowienie i wyczyszczenie koszyka w jednej transakcji.
    Dalej tylko zmiany statusu wg. maszyny stanow z domain.order_status.
    """

    def __init__(
        self,
        db: Session,
        product_client: ProductClient,
        lock_service: LockService,
        notification_service: NotificationService | None = None,
        policy: PricingPolicy | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.product_client = product_client
        self.lock_service = lock_service
        self.notification_service = notification_service or NotificationService()
        self.policy = policy or PricingPolicy.from_settings()
        self.clock = clock or _utcnow

    # =====================================================
    # COMMANDS
    # =====================================================
    def place_order(
        self,
        user_id: int,
        shipping_address: Dict[str, Any],
        billing_address: Dict[str, Any],
        payment_method: str = "card",
        payment_status: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Use Case: Tworzenie zamowienia z koszyka.

        1. Blokada checkoutu usera w redis (podwojny submit)
        2. Walidacja koszyka i adresow
        3. Wycena po aktualnych cenach, cena zapisana w pozycji zamowienia
        4. Insert zamowienia + czyszczenie koszyka, commit albo rollback calosci
        5. Powiadomienie (async)
        """
        token = uuid.uuid4().hex
        try:
            acquired = self.lock_service.acquire_checkout_lock(user_id, token, CHECKOUT_LOCK_TTL_SECONDS)
        except RedisError as e:
            logger.error(f"Redis niedostepny przy checkoucie usera {user_id}: {e}")
            raise LockUnavailable("Nie mozna teraz zlozyc zamowienia, sprobuj ponownie") from e
        if not acquired:
            logger.warning(f"Checkout usera {user_id} juz trwa, odrzucam drugi")
            raise StorageConflict("Zamowienie jest juz skladane w innej sesji")

        try:
            return self._place_order(
                user_id, shipping_address, billing_address, payment_method, payment_status
            )
        finally:
            try:
                self.lock_service.release_checkout_lock(user_id, token)
            except RedisError as e:
                # lock i tak wygasnie po ttl
                logger.warning(f"Nie udalo sie zwolnic locka checkoutu usera {user_id}: {e}")

    def _place_order(self, user_id, shipping_address, billing_address, payment_method, payment_status):
        cart = self.cart_repo.get_cart_by_user(user_id)
        items = self.cart_repo.get_cart_items(cart.id) if cart else []
        if not items:
            raise EmptyCart("Nie mozna zlozyc zamowienia z pustego koszyka")

        shipping = self._validate_address(shipping_address, "shipping")
        billing = self._validate_address(billing_address, "billing")
        initial_payment = _coerce(PaymentStatus, payment_status or PaymentStatus.PENDING)

        cart_id = cart.id
        cart_version = cart.version

        #aktualne ceny z katalogu, zamrozone w pozycjach zamowienia
        products = {}
        lines = []
        for item in items:
            pdata = self.product_client.get_product(item.product_id)
            products[item.product_id] = pdata
            lines.append((item.product_id, item.quantity, to_money(pdata["price"])))

        totals = compute_totals(((price, qty) for _, qty, price in lines), self.policy)
        now = self.clock()

        order = OrderModel(
            user_id=user_id,
            cart_id=cart_id,
            cart_version=cart_version,
            subtotal=totals.subtotal,
            shipping_cost=totals.shipping_cost,
            tax=totals.tax,
            total_amount=totals.total_amount,
            shipping_address=shipping.model_dump(),
            billing_address=billing.model_dump(),
            customer_name=shipping.full_name,
            customer_email=shipping.email,
            payment_method=payment_method or "card",
            payment_status=initial_payment.value,
            order_status=OrderStatus.PROCESSING.value,
            estimated_delivery=now + timedelta(days=DELIVERY_DAYS),
            created_at=now,
            updated_at=now,
            items=[
                OrderItemModel(product_id=pid, quantity=qty, unit_price=price)
                for pid, qty, price in lines
            ],
        )

        try:
            self.repo.add_order(order)
            self.cart_repo.clear_items(cart_id)

            # Optimistic locking, koszyk nie mogl sie zmienic od odczytu
            rowcount = self.cart_repo.update_cart_version(
                cart_id=cart_id,
                old_version=cart_version,
                new_data={"version": cart_version + 1, "updated_at": now},
            )
            if rowcount == 0:
                self.repo.rollback()
                logger.warning(f"Koszyk {cart_id} zmieniony w trakcie checkoutu usera {user_id}")
                raise StorageConflict(
                    "Konflikt wspolbieznosci - koszyk zostal zmodyfikowany w trakcie skladania zamowienia"
                )

            self.repo.commit()
        except IntegrityError as e:
            # to samo (cart_id, cart_version) juz zamienione w zamowienie
            self.repo.rollback()
            logger.warning(f"Zduplikowany checkout koszyka {cart_id} v{cart_version}")
            raise StorageConflict("Zamowienie z tego koszyka juz istnieje") from e
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Blad zapisu zamowienia usera {user_id}: {e}")
            raise

        order_id = order.id
        logger.info(
            f"Order {order_id} created from cart {cart_id} v{cart_version}, "
            f"total {totals.total_amount}"
        )

        self._notify(user_id, order_id, ORDER_PLACED)

        return self._order_to_dict(self.repo.get_order(order_id), products)

    def update_order_status(
        self,
        actor_user_id: int,
        actor_role: str,
        order_id: int,
        order_status: Optional[str] = None,
        payment_status: Optional[str] = None,
        tracking_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Use Case: Zmiana statusu przez admina.
        Tylko w przod: Processing -> Shipped/Cancelled, Shipped -> Delivered.
        Platnosc, numer przesylki i notatki mozna poprawiac zawsze.
        """
        if not is_admin(actor_role):
            raise Forbidden("Tylko admin moze zmieniac status zamowienia")

        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound("Zamowienie nie istnieje")

        current = OrderStatus(order.order_status)
        now = self.clock()
        data = {}
        new_status = None

        if order_status is not None:
            target = _coerce(OrderStatus, order_status)
            if target != current:
                if not can_transition(current, target):
                    raise InvalidStateTransition(
                        f"Niedozwolona zmiana statusu {current.value} -> {target.value}"
                    )
                data["order_status"] = target.value
                new_status = target
                if target == OrderStatus.SHIPPED:
                    data["estimated_delivery"] = now + timedelta(days=SHIPPED_DELIVERY_DAYS)

        if payment_status is not None:
            data["payment_status"] = _coerce(PaymentStatus, payment_status).value
        if tracking_number is not None:
            data["tracking_number"] = tracking_number
        if notes is not None:
            data["notes"] = notes

        if not data:
            return self._order_to_dict(order)

        data["updated_at"] = now
        rowcount = self.repo.update_order_if_status(order_id, current.value, data)
        if rowcount == 0:
            self.repo.rollback()
            raise StorageConflict("Zamowienie zostalo zmienione przez inna operacje")
        self.repo.commit()

        logger.info(f"Admin {actor_user_id} zaktualizowal zamowienie {order_id}: {sorted(data)}")

        if new_status is not None:
            self._notify(order.user_id, order_id, ORDER_STATUS_CHANGED, new_status.value)

        return self._order_to_dict(self.repo.get_order(order_id))

    def cancel_order(self, actor_user_id: int, actor_role: str, order_id: int) -> Dict[str, Any]:
        """
        Use Case: Anulowanie przez wlasciciela lub admina, tylko w Processing.
        Stany magazynowe nie sa ruszane.
        """
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound("Zamowienie nie istnieje")

        if order.user_id != actor_user_id and not is_admin(actor_role):
            raise Forbidden("Brak dostepu do zamowienia")

        if order.order_status != OrderStatus.PROCESSING.value:
            raise InvalidStateTransition(
                "Zamowienia nie mozna anulowac, jest juz w realizacji"
            )

        rowcount = self.repo.update_order_if_status(
            order_id,
            OrderStatus.PROCESSING.value,
            {"order_status": OrderStatus.CANCELLED.value, "updated_at": self.clock()},
        )
        if rowcount == 0:
            self.repo.rollback()
            raise StorageConflict("Zamowienie zostalo zmienione przez inna operacje")
        self.repo.commit()

        owner_id = order.user_id
        logger.info(f"Zamowienie {order_id} anulowane przez {actor_user_id}")
        self._notify(owner_id, order_id, ORDER_CANCELLED)

        return self._order_to_dict(self.repo.get_order(order_id))

    # =====================================================
    # QUERY
    # =====================================================
    def get_order(self, actor_user_id: int, actor_role: str, order_id: int) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)

        if not order:
            raise NotFound("Zamowienie nie istnieje")

        if order.user_id != actor_user_id and not is_admin(actor_role):
            raise Forbidden("Brak dostepu do zamowienia")

        return self._order_to_dict(order)

    def list_my_orders(self, user_id: int) -> List[Dict[str, Any]]:
        cache = {}
        return [self._order_to_dict(o, cache) for o in self.repo.list_by_user(user_id)]

    def list_all_orders(
        self,
        actor_role: str,
        filters: OrderFilters | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        if not is_admin(actor_role):
            raise Forbidden("Tylko admin widzi wszystkie zamowienia")

        filters = filters or OrderFilters()
        page = max(1, int(page))
        limit = min(max(1, int(limit)), MAX_PAGE_LIMIT)

        #"all" z frontu znaczy brak filtra
        status = filters.status if filters.status and filters.status != "all" else None
        payment_status = (
            filters.payment_status
            if filters.payment_status and filters.payment_status != "all"
            else None
        )

        rows, total = self.repo.list_filtered(
            status=status,
            payment_status=payment_status,
            search=(filters.search or "").strip() or None,
            date_from=_as_utc(filters.date_from),
            date_to=_as_utc(filters.date_to),
            offset=(page - 1) * limit,
            limit=limit,
        )

        cache = {}
        return {
            "orders": [self._order_to_dict(o, cache) for o in rows],
            "pagination": {
                "current_page": page,
                "total_pages": math.ceil(total / limit),
                "total_orders": total,
                "has_next": page * limit < total,
                "has_prev": page > 1,
            },
        }

    # =====================================================
    # helpers
    # =====================================================
    def _notify(self, user_id: int, order_id: int, event: str, status: str | None = None):
        # zamowienie jest juz zapisane, brak brokera nie moze zwrocic bledu klientowi
        try:
            self.notification_service.send_order_notification(user_id, order_id, event, status)
        except Exception as e:
            logger.warning(f"Nie wyslano powiadomienia {event} dla zamowienia {order_id}: {e}")

    @staticmethod
    def _validate_address(raw: Dict[str, Any] | None, kind: str) -> Address:
        if not raw:
            raise InvalidAddress(f"Brak adresu ({kind})")
        try:
            return Address.model_validate(raw)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise InvalidAddress(f"Niepoprawny adres ({kind}): {fields}") from e

    def _lookup_products(self, product_ids: Iterable[int], cache: Dict[int, Any]) -> Dict[int, Any]:
        # join po stronie odczytu, brak produktu nie psuje odczytu zamowienia
        for pid in product_ids:
            if pid in cache:
                continue
            try:
                cache[pid] = self.product_client.get_product(pid)
            except (NotFound, CatalogUnavailable) as e:
                logger.warning(f"Brak danych produktu {pid} do rozwiniecia zamowienia: {e}")
                cache[pid] = None
        return cache

    def _order_to_dict(self, order: OrderModel, cache: Dict[int, Any] | None = None) -> Dict[str, Any]:
        cache = cache if cache is not None else {}
        products = self._lookup_products({i.product_id for i in order.items}, cache)

        def summary(pid):
            pdata = products.get(pid)
            if not pdata:
                return None
            return {
                "name": pdata.get("name"),
                "category": pdata.get("category"),
                "image": pdata.get("image"),
            }

        return {
            "id": order.id,
            "user_id": order.user_id,
            "items": [
                {
                    "product_id": i.product_id,
                    "quantity": i.quantity,
                    "unit_price": to_money(i.unit_price),
                    "product": summary(i.product_id),
                }
                for i in order.items
            ],
            "subtotal": to_money(order.subtotal),
            "shipping_cost": to_money(order.shipping_cost),
            "tax": to_money(order.tax),
            "total_amount": to_money(order.total_amount),
            "shipping_address": order.shipping_address,
            "billing_address": order.billing_address,
            "payment_method": order.payment_method,
            "payment_status": order.payment_status,
            "order_status": order.order_status,
            "tracking_number": order.tracking_number,
            "notes": order.notes,
            "estimated_delivery": _as_utc(order.estimated_delivery),
            "created_at": _as_utc(order.created_at),
            "updated_at": _as_utc(order.updated_at),
        }
