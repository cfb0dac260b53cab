# storefront/services/cart_service.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.colors import default_color, normalize_color
from storefront.domain.errors import ProductNotFoundError, StorefrontError
from storefront.domain.schemas import CartLineItem
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.repos.user_repo import UserRepo
from storefront.services.cart_reconciler import SYNC_FAILED_WARNING
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Koszyk zalogowanego klienta trzymany w backendzie (jeden na klienta).
    commands (add, update, remove, clear, sync) modyfikuja stan i podbijaja version
    query (get) tylko odczyt
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.users = UserRepo(db)
        self.orders = OrderRepo(db)

    #query - odczyt
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)

        if not cart:
            return {
                "cart_id": None,
                "user_id": user_id,
                "version": 0,
                "items": [],
                "total": Decimal("0.00"),
            }

        items = self.repo.get_cart_items(cart.id)
        total = sum((i.price * i.quantity for i in items), Decimal("0.00"))

        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "version": cart.version,
            "items": [self._line(i) for i in items],
            "total": total,
        }

    def get_cart_lines(self, user_id: int) -> List[CartLineItem]:
        return [CartLineItem(**line) for line in self.get_cart(user_id)["items"]]

    #commands
    def add_item(
        self,
        user_id: int,
        product_id: int,
        quantity: int,
        color: Any = None,
    ) -> Dict[str, Any]:

        product = self._require_product(product_id, quantity)
        cart = self._get_or_create_cart(user_id)

        self._stage_item(cart, product, quantity, color)
        self._bump_version(cart)
        return self.get_cart(user_id)

    def update_item_quantity(
        self,
        user_id: int,
        product_id: int,
        quantity: int,
        color_name: str | None = None,
    ) -> Dict[str, Any]:

        if quantity <= 0:
            raise ValueError("Ilosc musi byc wieksza niz 0")

        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise ValueError("Koszyk nie istnieje")

        items = [
            i for i in self.repo.get_cart_items(cart.id)
            if i.product_id == product_id
            and (color_name is None or i.color_name.lower() == color_name.lower())
        ]
        if not items:
            raise ValueError("Produktu nie ma w koszyku")
        if len(items) > 1:
            raise ValueError("Produkt jest w koszyku w kilku kolorach - podaj kolor")

        items[0].quantity = quantity
        self.repo.add_cart_item(items[0])

        self._bump_version(cart)
        return self.get_cart(user_id)

    def remove_item(self, user_id: int, product_id: int, color_name: str | None = None) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise ValueError("Koszyk nie istnieje")

        logger.info(f"Removing product {product_id} from cart {cart.id}")
        removed = self.repo.delete_cart_items(cart.id, product_id, color_name)
        if removed == 0:
            self.repo.rollback()
            raise ValueError("Produktu nie ma w koszyku")

        self._bump_version(cart)
        return self.get_cart(user_id)

    def clear_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            return self.get_cart(user_id)

        self.repo.clear_items(cart.id)
        self._bump_version(cart)

        logger.info(f"Cart {cart.id} cleared")
        return self.get_cart(user_id)

    def sync_items(
        self,
        user_id: int,
        items: List[Dict[str, Any]],
        requested_at: datetime | None = None,
    ) -> int:
        """
        Wypycha pozycje z koszyka lokalnego, ale tylko gdy koszyk w backendzie jest nadal pusty.
        Gdy od zlecenia synchronizacji klient zlozyl juz zamowienie, nic nie robi -
        inaczej zamowione pozycje wrocilyby do wyczyszczonego koszyka. Warunek jest
        sprawdzany ponownie przed zatwierdzeniem kazdej pozycji.
        Pojedyncze bledy pomija (loguje), zwraca liczbe wypchnietych pozycji.
        """
        if self._ordered_since(user_id, requested_at):
            logger.info(f"User {user_id} placed an order after sync was requested, skipping sync")
            return 0

        current = self.get_cart(user_id)
        if current["items"]:
            logger.info(f"Backend cart of user {user_id} is not empty anymore, skipping sync")
            return 0

        cart = self._get_or_create_cart(user_id)

        pushed = 0
        for item in items:
            product_id = item.get("product_id")
            try:
                product = self._require_product(product_id, item.get("quantity", 0))
                self._stage_item(cart, product, item["quantity"], item.get("color"))

                # zamowienie moglo wejsc w trakcie - pozycja jeszcze niezatwierdzona
                if self._ordered_since(user_id, requested_at):
                    self.repo.rollback()
                    logger.info(f"User {user_id} placed an order during sync, stopping after {pushed} items")
                    return pushed

                self._bump_version(cart)
                pushed += 1
            except (StorefrontError, ValueError, RuntimeError, SQLAlchemyError) as e:
                self.repo.rollback()
                logger.warning(
                    f"{SYNC_FAILED_WARNING}: user={user_id} product={product_id} skipped: {e}"
                )
        return pushed

    # ---------------------------------------------------------

    def _require_product(self, product_id: int, quantity: int):
        if quantity <= 0:
            raise ValueError("Ilosc musi byc wieksza niz 0")

        product = self.products.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def _stage_item(self, cart: CartModel, product, quantity: int, color: Any = None):
        """Dodaje albo scala pozycje w sesji, bez commita - zatwierdza _bump_version."""
        selected = self._resolve_color(product, normalize_color(color))
        existing_item = self.repo.get_cart_item(cart.id, product.id, selected["name"])

        if existing_item:
            logger.info(
                f"Product {product.id} ({selected['name']}) already in cart {cart.id}, "
                f"quantity {existing_item.quantity} -> {existing_item.quantity + quantity}"
            )
            existing_item.quantity += quantity
            existing_item.price = product.price  # update ceny
            self.repo.add_cart_item(existing_item)
        else:
            logger.info(f"Adding product {product.id} ({selected['name']}) to cart {cart.id}")
            self.repo.add_cart_item(
                CartItemModel(
                    cart_id=cart.id,
                    product_id=product.id,
                    name=product.name,
                    quantity=quantity,
                    price=product.price,
                    color_name=selected["name"],
                    color_code=selected["code"],
                )
            )

    def _ordered_since(self, user_id: int, requested_at: datetime | None) -> bool:
        return requested_at is not None and self.orders.has_orders_since(user_id, requested_at)

    def _get_or_create_cart(self, user_id: int) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            return cart

        if not self.users.exists(user_id):
            raise ValueError("Uzytkownik nie istnieje")

        created = self.repo.create_cart(CartModel(user_id=user_id, version=1))
        logger.info(f"Created cart {created.id} for user {user_id}")
        return created

    def _bump_version(self, cart: CartModel):
        # Optimistic locking warunek na wersje
        # np w bazie update set version 2 where id 1 and version 1
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data={
                "version": cart.version + 1,
                "updated_at": datetime.now(timezone.utc),
            },
        )

        if rowcount == 0:
            self.repo.rollback()
            raise RuntimeError(
                "Konflikt wspolbieznosci - koszyk zostal zmodyfikowany przez inna operacje"
            )

        self.repo.commit()

    @staticmethod
    def _resolve_color(product, color: Dict[str, str]) -> Dict[str, str]:
        #nieznany kolor -> pierwszy wariant produktu, a bez wariantow -> Default
        if not product.color_variants:
            return default_color()
        variant = product.find_variant(color["name"], color["code"]) or product.color_variants[0]
        return {"name": variant.name, "code": variant.code}

    @staticmethod
    def _line(item: CartItemModel) -> Dict[str, Any]:
        return {
            "product_id": item.product_id,
            "name": item.name,
            "price": item.price,
            "quantity": item.quantity,
            "color": {"name": item.color_name, "code": item.color_code},
        }
