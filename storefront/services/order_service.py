# storefront/services/order_service.py
from collections import defaultdict, namedtuple
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderItemModel, OrderModel
from storefront.domain.errors import (
    EmptyOrderError,
    InsufficientStockError,
    InvalidOrderStatusError,
    NegativeStockError,
    OrderAmountMismatchError,
    OrderNotFoundError,
    PartialStockUpdateError,
    ProductNotFoundError,
)
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.repos.stock_adjustment_repo import StockAdjustmentRepo
from storefront.repos.user_repo import UserRepo
from storefront.services.cart_service import CartService
from storefront.services.compensation_service import CompensationService
from storefront.services.inventory_service import InventoryService
from storefront.services.notification_service import NotificationService
from storefront.utils.logging import get_logger
from storefront.utils.settings import ORDER_TOTAL_TOLERANCE

logger = get_logger(__name__)

STATUS_FLOW = ("pending", "processing", "shipped", "delivered")

# pozycja do zwrotu na magazyn, ilosc wg dziennika zmian stanu
StockLine = namedtuple("StockLine", "product_id quantity variant_name")


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien.
    Skladanie zamowienia: walidacja stanu -> zapis zamowienia -> zdjecie z magazynu,
    zawsze w tej kolejnosci. Czesciowy blad jest jawny, nigdy po cichu polykany.
    """

    def __init__(
        self,
        db: Session,
        notification_service: NotificationService | None = None,
        inventory: InventoryService | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.products = ProductRepo(db)
        self.ledger = StockAdjustmentRepo(db)
        self.users = UserRepo(db)
        self.inventory = inventory or InventoryService(db)
        self.compensator = CompensationService(self.inventory)
        self.carts = CartService(db)
        self.notification_service = notification_service or NotificationService()

    def place_order(
        self,
        user_id: int,
        items: Sequence[Any],
        shipping_address: Any,
        total_amount: Decimal,
        payment_method: str = "cod",
        payment_confirmed: bool = False,
    ) -> Dict[str, Any]:
        """
        Use Case: Zlozenie zamowienia.

        1. Walidacja wszystkich pozycji (wszystko albo nic, bez zadnej zmiany w bazie)
        2. Zapis zamowienia ze snapshotem pozycji
        3. Zdjecie z magazynu pozycja po pozycji, przy bledzie kompensacja 1..k-1
        """
        if not items:
            raise EmptyOrderError()

        if not self.users.exists(user_id):
            raise ValueError("Uzytkownik nie istnieje")

        lines = self._validate(items, Decimal(str(total_amount)))

        address = shipping_address.model_dump() if hasattr(shipping_address, "model_dump") else dict(shipping_address)
        order = OrderModel(
            user_id=user_id,
            status="processing" if payment_confirmed else "pending",
            stock_state="pending",
            payment_method=payment_method,
            payment_status="completed" if payment_confirmed else "pending",
            total_amount=Decimal(str(total_amount)),
            shipping_address=address,
            items=[OrderItemModel(**line) for line in lines],
        )
        created = self.repo.create_order(order)

        logger.info(
            f"Order {created.id} created for user {user_id} "
            f"({len(lines)} items, total {created.total_amount}, {payment_method})"
        )

        return self._apply_stock(created)

    def get_order(self, order_id: int, user_id: int) -> Dict[str, Any]:
        """
        Use Case: Pobranie zamowienia (Query).
        """
        order = self.repo.get_order(order_id)

        if not order:
            raise OrderNotFoundError(order_id)

        if order.user_id != user_id:
            raise PermissionError("Brak dostepu do zamowienia")

        return self._serialize(order)

    def list_orders(self, user_id: int) -> List[Dict[str, Any]]:
        return [self._serialize(o) for o in self.repo.list_orders_for_user(user_id)]

    def list_all_orders(self, status: str | None = None) -> List[Dict[str, Any]]:
        return [self._serialize(o) for o in self.repo.list_orders(status)]

    def update_status(
        self,
        order_id: int,
        status: str,
        reason: str | None = None,
        force: bool = False,
    ) -> Dict[str, Any]:
        """
        Use Case: Zmiana statusu przez admina.
        Tylko do przodu: pending -> processing -> shipped -> delivered.
        Anulowanie idzie przez cancel_order (zwrot towaru).
        """
        if status == "cancelled":
            return self.cancel_order(order_id, cancelled_by="admin", reason=reason, force=force)["order"]

        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFoundError(order_id)

        if order.status in ("cancelled", "delivered"):
            raise InvalidOrderStatusError(
                f"Zamowienie w statusie {order.status} nie moze zmienic statusu"
            )

        if STATUS_FLOW.index(status) <= STATUS_FLOW.index(order.status):
            raise InvalidOrderStatusError(
                f"Niedozwolona zmiana statusu {order.status} -> {status}"
            )

        if order.stock_state == "needs_reconciliation" and status in ("shipped", "delivered"):
            raise InvalidOrderStatusError(
                "Stan magazynu dla zamowienia wymaga recznego uzgodnienia przed wysylka"
            )

        previous = order.status
        order.status = status
        now = datetime.now(timezone.utc)
        if status == "shipped" and order.shipped_at is None:
            order.shipped_at = now
        if status == "delivered":
            order.delivered_at = now
            if order.shipped_at is None:
                order.shipped_at = now

        self.repo.save(order)
        logger.info(f"Order {order_id} status {previous} -> {status}")
        return self._serialize(order)

    def cancel_order(
        self,
        order_id: int,
        cancelled_by: str = "customer",
        user_id: int | None = None,
        reason: str | None = None,
        force: bool = False,
    ) -> Dict[str, Any]:
        """
        Use Case: Anulowanie zamowienia (klient albo admin) + zwrot towaru na magazyn.
        Bledy zwrotu nie blokuja przejscia na cancelled.
        """
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFoundError(order_id)

        if cancelled_by == "customer":
            if order.user_id != user_id:
                raise PermissionError("Mozesz anulowac tylko wlasne zamowienia")
            if order.status == "shipped":
                raise InvalidOrderStatusError(
                    "Zamowienie zostalo juz wyslane i nie moze byc anulowane - skontaktuj sie z obsluga"
                )
            if order.status in ("delivered", "cancelled"):
                raise InvalidOrderStatusError(f"Zamowienie w statusie {order.status} nie moze byc anulowane")
        else:
            if order.status in ("delivered", "cancelled"):
                raise InvalidOrderStatusError(f"Zamowienie w statusie {order.status} nie moze byc anulowane")
            if order.status == "shipped" and not force:
                raise InvalidOrderStatusError(
                    "Anulowanie wyslanego zamowienia wymaga force_cancel"
                )

        previous = order.status
        order.status = "cancelled"
        order.cancelled_by = cancelled_by
        order.cancellation_reason = reason or f"Cancelled by {cancelled_by}"
        order.cancelled_at = datetime.now(timezone.utc)
        self.repo.save(order)

        logger.info(f"Order {order_id} cancelled by {cancelled_by} (was {previous}), restoring stock")

        lines, skipped = self._outstanding_lines(order)
        restorations = self.compensator.restore(lines, order.id, reason="cancellation") + skipped
        restored = all(r["status"] in ("restored", "skipped") for r in restorations)
        order.stock_state = "restored" if restored else "restore_failed"
        self.repo.save(order)

        if not restored:
            logger.error(f"Order {order_id} cancelled but stock restore failed for some items: {restorations}")

        self._notify(order, "cancelled")

        return {"order": self._serialize(order), "restorations": restorations}

    # ---------------------------------------------------------

    def _validate(self, items: Sequence[Any], total_amount: Decimal) -> List[Dict[str, Any]]:
        products = {}
        lines = []

        for item in items:
            product = products.get(item.product_id) or self.products.get_product(item.product_id)
            if product is None:
                raise ProductNotFoundError(item.product_id)
            products[item.product_id] = product

            variant = product.find_variant(item.color.name, item.color.code)
            lines.append(
                {
                    "product_id": product.id,
                    "name": product.name,
                    "price": product.price,
                    "quantity": item.quantity,
                    "color_name": variant.name if variant else item.color.name,
                    "color_code": variant.code if variant else item.color.code,
                    "variant_name": variant.name if variant else None,
                }
            )

        #ta sama pozycja moze byc kilka razy (rozne kolory) - sumujemy per produkt i per wariant
        requested = defaultdict(int)
        requested_variant = defaultdict(int)
        for line in lines:
            requested[line["product_id"]] += line["quantity"]
            if line["variant_name"]:
                requested_variant[(line["product_id"], line["variant_name"])] += line["quantity"]

        for product_id, quantity in requested.items():
            available = products[product_id].stock
            if quantity > available:
                logger.info(
                    f"Insufficient stock for product {product_id}: requested {quantity}, available {available}"
                )
                raise InsufficientStockError(product_id, available=available, requested=quantity)

        for (product_id, variant_name), quantity in requested_variant.items():
            variant = products[product_id].find_variant(variant_name)
            available = variant.stock if variant.is_available else 0
            if quantity > available:
                logger.info(
                    f"Insufficient stock for product {product_id} ({variant_name}): "
                    f"requested {quantity}, available {available}"
                )
                raise InsufficientStockError(
                    product_id, available=available, requested=quantity, color_name=variant_name
                )

        expected = sum((line["price"] * line["quantity"] for line in lines), Decimal("0.00"))
        if abs(expected - total_amount) > ORDER_TOTAL_TOLERANCE:
            logger.warning(f"Order amount mismatch: expected {expected}, received {total_amount}")
            raise OrderAmountMismatchError(expected, total_amount)

        return lines

    def _apply_stock(self, order: OrderModel) -> Dict[str, Any]:
        items = list(order.items)
        applied = []
        outcomes = []

        for index, item in enumerate(items):
            try:
                res = self.inventory.adjust(
                    product_id=item.product_id,
                    delta=-item.quantity,
                    color_name=item.variant_name,
                    order_id=order.id,
                    reason="order",
                )
            except (ProductNotFoundError, NegativeStockError, SQLAlchemyError) as e:
                logger.error(
                    f"Stock decrement failed for order {order.id}: product={item.product_id} "
                    f"delta=-{item.quantity} color={item.variant_name}: {e}"
                )
                outcomes.append(
                    {
                        "product_id": item.product_id,
                        "quantity": item.quantity,
                        "color_name": item.variant_name,
                        "status": "failed",
                        "error": type(e).__name__,
                    }
                )
                for rest in items[index + 1:]:
                    outcomes.append(
                        {
                            "product_id": rest.product_id,
                            "quantity": rest.quantity,
                            "color_name": rest.variant_name,
                            "status": "skipped",
                        }
                    )
                raise self._resolve_partial_failure(order, applied, item, e, outcomes) from e

            applied.append(item)
            outcomes.append(
                {
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "color_name": res["color_name"],
                    "status": "applied",
                    "old_stock": res["old_stock"],
                    "new_stock": res["new_stock"],
                }
            )

        order.stock_state = "applied"
        self.repo.save(order)

        self._notify(order, "placed")
        self._clear_backend_cart(order.user_id)

        return {"order": self._serialize(order), "adjustments": outcomes}

    def _resolve_partial_failure(
        self,
        order: OrderModel,
        applied: List[OrderItemModel],
        failed_item: OrderItemModel,
        error: Exception,
        outcomes: List[Dict[str, Any]],
    ) -> Exception:
        """Kompensacja 1..k-1, oznaczenie zamowienia i blad do zwrocenia klientowi."""
        restorations = self.compensator.restore(applied, order.id, reason="compensation")
        outcomes.extend(restorations)
        fully_restored = all(r["status"] == "restored" for r in restorations)

        if isinstance(error, NegativeStockError) and fully_restored:
            # przegrany wyscig o ostatnie sztuki - nic nie zostalo do recznego uzgadniania
            order.status = "cancelled"
            order.stock_state = "rolled_back"
            order.cancelled_by = "system"
            order.cancellation_reason = "Insufficient stock"
            order.cancelled_at = datetime.now(timezone.utc)
            self.repo.save(order)

            logger.warning(
                f"Order {order.id} rolled back: product {failed_item.product_id} sold out "
                f"during placement (available {error.available}, requested {failed_item.quantity})"
            )
            return InsufficientStockError(
                failed_item.product_id,
                available=error.available,
                requested=failed_item.quantity,
                color_name=error.color_name,
            )

        order.stock_state = "needs_reconciliation"
        self.repo.save(order)

        succeeded = [i.product_id for i in applied]
        logger.error(
            f"Order {order.id} flagged for manual reconciliation: "
            f"succeeded={succeeded} failed={[failed_item.product_id]} restored={fully_restored}"
        )
        return PartialStockUpdateError(
            order.id,
            succeeded=succeeded,
            failed=[failed_item.product_id],
            order=self._serialize(order),
            adjustments=outcomes,
        )

    def _outstanding_lines(self, order: OrderModel):
        """
        Ile z kazdej pozycji jest nadal zdjete z magazynu wg dziennika.
        Po kompensacji czesciowego bledu czesc pozycji ma juz 0 - tych nie oddajemy drugi raz.
        """
        taken = {
            product_id: -net
            for product_id, net in self.ledger.net_deltas_for_order(order.id).items()
            if net < 0
        }
        lines = []
        skipped = []
        for item in order.items:
            quantity = min(item.quantity, taken.get(item.product_id, 0))
            if quantity > 0:
                taken[item.product_id] -= quantity
                lines.append(StockLine(item.product_id, quantity, item.variant_name))
            if quantity < item.quantity:
                skipped.append(
                    {
                        "product_id": item.product_id,
                        "quantity": item.quantity - quantity,
                        "color_name": item.variant_name,
                        "status": "skipped",
                    }
                )
        return lines, skipped

    def _notify(self, order: OrderModel, event: str):
        try:
            self.notification_service.send_order_notification(order.user_id, order.id, event)
        except Exception as e:
            logger.warning(f"Failed to send {event} notification for order {order.id}: {e}")

    def _clear_backend_cart(self, user_id: int):
        try:
            self.carts.clear_cart(user_id)
        except (SQLAlchemyError, RuntimeError) as e:
            self.db.rollback()
            logger.warning(f"Failed to clear backend cart of user {user_id} after order: {e}")

    @staticmethod
    def _serialize(order: OrderModel) -> Dict[str, Any]:
        return {
            "id": order.id,
            "user_id": order.user_id,
            "status": order.status,
            "stock_state": order.stock_state,
            "payment_method": order.payment_method,
            "payment_status": order.payment_status,
            "total_amount": order.total_amount,
            "shipping_address": order.shipping_address,
            "items": [
                {
                    "product_id": i.product_id,
                    "name": i.name,
                    "price": i.price,
                    "quantity": i.quantity,
                    "color": {"name": i.color_name, "code": i.color_code},
                }
                for i in order.items
            ],
            "cancelled_by": order.cancelled_by,
            "cancellation_reason": order.cancellation_reason,
            "created_at": order.created_at,
            "shipped_at": order.shipped_at,
            "delivered_at": order.delivered_at,
        }
