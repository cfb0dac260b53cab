# storefront/client/local_cart.py
"""
Koszyk po stronie klienta, odpowiednik local storage przegladarki.

Jeden plik JSON, klucze jak w sklepie: "guestCart" dla goscia i
"userCart:<id>" dla zalogowanego klienta. Format pliku to szczegol
implementacji - na zewnatrz wychodzi tylko przez checkout.
"""
import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List

from storefront.domain.colors import normalize_color
from storefront.utils.logging import get_logger
from storefront.utils.settings import LOCAL_CART_PATH

logger = get_logger(__name__)

GUEST_KEY = "guestCart"


class LocalCartStore:
    def __init__(self, path: str | Path | None = None, user_id: int | None = None):
        self.path = Path(path or LOCAL_CART_PATH)
        self.user_id = user_id

    @property
    def key(self) -> str:
        return f"userCart:{self.user_id}" if self.user_id is not None else GUEST_KEY

    def items(self) -> List[Dict[str, Any]]:
        return list(self._load().get(self.key, []))

    def add(
        self,
        product_id: int,
        name: str,
        price: Decimal | float | str,
        quantity: int = 1,
        color: Any = None,
    ) -> List[Dict[str, Any]]:
        if quantity < 1:
            raise ValueError("Ilosc musi byc wieksza niz 0")

        color = normalize_color(color)
        items = self.items()
        existing = self._find(items, product_id, color["name"])
        if existing is not None:
            existing["quantity"] += quantity
            existing["price"] = str(price)
        else:
            items.append(
                {
                    "product_id": product_id,
                    "name": name,
                    "price": str(price),
                    "quantity": quantity,
                    "color": color,
                }
            )
        self._save(items)
        return items

    def update_quantity(self, product_id: int, quantity: int, color_name: str | None = None) -> List[Dict[str, Any]]:
        if quantity < 1:
            return self.remove(product_id, color_name)
        items = self.items()
        existing = self._find(items, product_id, color_name)
        if existing is None:
            raise KeyError(f"Produktu {product_id} nie ma w koszyku")
        existing["quantity"] = quantity
        self._save(items)
        return items

    def remove(self, product_id: int, color_name: str | None = None) -> List[Dict[str, Any]]:
        items = [
            i for i in self.items()
            if not (
                i["product_id"] == product_id
                and (color_name is None or i["color"]["name"].lower() == color_name.lower())
            )
        ]
        self._save(items)
        return items

    def clear(self):
        self._save([])

    def total(self) -> Decimal:
        return sum((Decimal(i["price"]) * i["quantity"] for i in self.items()), Decimal("0.00"))

    @staticmethod
    def _find(items, product_id, color_name):
        for item in items:
            if item["product_id"] != product_id:
                continue
            if color_name is None or item["color"]["name"].lower() == color_name.lower():
                return item
        return None

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            # uszkodzony plik traktujemy jak pusty local storage
            logger.warning(f"Local cart file {self.path} is corrupted, starting with an empty cart")
            return {}

    def _save(self, items: List[Dict[str, Any]]):
        data = self._load()
        data[self.key] = items
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
