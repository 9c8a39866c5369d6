from typing import Dict, Any
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import InvalidQuantity, StorageConflict
from storefront.repos.cart_repo import CartRepo
from storefront.services.product_client import ProductClient
from storefront.utils.logging import get_logger
from storefront.utils.settings import MAX_QUANTITY

logger = get_logger(__name__)


def cart_to_dict(user_id: int, cart: CartModel | None, items) -> Dict[str, Any]:
    if cart is None:
        return {"cart_id": None, "user_id": user_id, "version": 0, "items": []}
    return {
        "cart_id": cart.id,
        "user_id": cart.user_id,
        "version": cart.version,
        "items": [
            {"product_id": i.product_id, "quantity": i.quantity}
            for i in items
        ],
    }


class CartService:
    """
    Koszyk to tylko zbior (produkt, ilosc), bez cen i bez stanow magazynowych.
    Ceny liczy wylacznie OrderService przy checkoucie.
    commands (set, remove, clear) modyfikuja stan
    query (get) tylko odczyt
    """

    def __init__(self, db: Session, product_client: ProductClient):
        self.repo = CartRepo(db)
        self.product_client = product_client

    #query - odczyt, bez zapisu pustego koszyka
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            return cart_to_dict(user_id, None, [])
        return cart_to_dict(user_id, cart, self.repo.get_cart_items(cart.id))

    #commands
    def set_item(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        # bool to tez int, odrzucamy
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantity("Ilosc musi byc dodatnia liczba calkowita")
        if quantity > MAX_QUANTITY:
            raise InvalidQuantity(f"Ilosc nie moze przekraczac {MAX_QUANTITY}")

        #produkt musi istniec w katalogu, NotFound jesli nie
        self.product_client.get_product(product_id)

        try:
            cart = self._get_or_create_cart(user_id)

            existing_item = self.repo.get_cart_item(cart.id, product_id)
            if existing_item:
                logger.info(
                    f"Produkt {product_id} juz jest w koszyku {cart.id}, ustawiam ilosc "
                    f"z {existing_item.quantity} na {quantity}"
                )
                existing_item.quantity = quantity
                self.repo.add_cart_item(existing_item)
            else:
                logger.info(f"Dodaje nowy produkt {product_id} do koszyka {cart.id}")
                self.repo.add_cart_item(
                    CartItemModel(
                        cart_id=cart.id,
                        product_id=product_id,
                        quantity=quantity,
                    )
                )

            self.repo.bump_version(cart.id)
            self.repo.commit()
        except IntegrityError as e:
            # rownolegle dodanie tego samego produktu albo utworzenie koszyka
            self.repo.rollback()
            logger.warning(f"Konflikt zapisu koszyka usera {user_id}: {e.orig}")
            raise StorageConflict(
                "Konflikt wspolbieznosci - koszyk zostal zmodyfikowany przez inna operacje"
            ) from e

        return self.get_cart(user_id)

    def remove_item(self, user_id: int, product_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)

        #brak koszyka albo produktu to no-op
        if not cart:
            return self.get_cart(user_id)

        removed = self.repo.delete_cart_item(cart.id, product_id)
        if removed:
            self.repo.bump_version(cart.id)
            self.repo.commit()
            logger.info(f"Produkt {product_id} usuniety z koszyka {cart.id}")
        else:
            self.repo.rollback()

        return self.get_cart(user_id)

    def clear(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            return self.get_cart(user_id)

        self.repo.clear_items(cart.id)
        self.repo.bump_version(cart.id)
        self.repo.commit()
        logger.info(f"Koszyk {cart.id} wyczyszczony")

        return self.get_cart(user_id)

    def _get_or_create_cart(self, user_id: int) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            return cart
        created = self.repo.create_cart(CartModel(user_id=user_id, version=0))
        logger.info(f"Utworzono nowy koszyk {created.id} dla uzytkownika {user_id}")
        return created
