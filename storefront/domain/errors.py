# storefront/domain/errors.py
"""
Bledy domenowe skladania zamowienia i magazynu.
Serwisy je rzucaja, routery tlumacza na odpowiedzi HTTP.
"""


class StorefrontError(Exception):
    """Baza dla bledow domenowych sklepu."""


class EmptyOrderError(StorefrontError):
    def __init__(self, message: str = "Koszyk jest pusty - nie mozna zlozyc zamowienia"):
        super().__init__(message)


class InsufficientStockError(StorefrontError):
    def __init__(self, product_id: int, available: int, requested: int, color_name: str | None = None):
        self.product_id = product_id
        self.available = available
        self.requested = requested
        self.color_name = color_name
        label = f"{product_id} ({color_name})" if color_name else f"{product_id}"
        super().__init__(
            f"Niewystarczajacy stan produktu {label}: dostepne {available}, zamowione {requested}"
        )


class ProductNotFoundError(StorefrontError):
    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Produkt {product_id} nie istnieje")


class NegativeStockError(StorefrontError):
    def __init__(self, product_id: int, available: int, delta: int, color_name: str | None = None):
        self.product_id = product_id
        self.available = available
        self.delta = delta
        self.color_name = color_name
        super().__init__(
            f"Zmiana {delta} dla produktu {product_id} zeszlaby ponizej zera (stan {available})"
        )


class PartialStockUpdateError(StorefrontError):
    """
    Zamowienie zapisane, ale nie wszystkie pozycje zeszly z magazynu.
    Zamowienie zostaje oflagowane (needs_reconciliation) do recznego sprawdzenia.
    """

    def __init__(
        self,
        order_id: int,
        succeeded: list,
        failed: list,
        order: dict | None = None,
        adjustments: list | None = None,
    ):
        self.order_id = order_id
        self.succeeded = succeeded
        self.failed = failed
        self.order = order
        self.adjustments = adjustments or []
        super().__init__(
            f"Czesciowa aktualizacja stanu dla zamowienia {order_id}: "
            f"ok={succeeded}, blad={failed}"
        )


class OrderNotFoundError(StorefrontError):
    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Zamowienie {order_id} nie istnieje")


class InvalidOrderStatusError(StorefrontError):
    pass


class OrderAmountMismatchError(StorefrontError):
    def __init__(self, expected, received):
        self.expected = expected
        self.received = received
        super().__init__(f"Kwota zamowienia sie nie zgadza: oczekiwano {expected}, otrzymano {received}")


class DuplicateCheckoutError(StorefrontError):
    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"Zamowienie uzytkownika {user_id} jest juz w trakcie skladania")
