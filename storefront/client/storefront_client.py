# storefront/client/storefront_client.py
from decimal import Decimal
from typing import Any, Dict

import requests

from storefront.client.local_cart import LocalCartStore
from storefront.utils.retry import http_retry
from storefront.utils.settings import STOREFRONT_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutFailed(Exception):
    def __init__(self, status_code: int, detail: Any):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Checkout failed ({status_code}): {detail}")


class StorefrontClient:
    def __init__(self, base_url: str | None = None, timeout: int = 5):
        self.base_url = (base_url or STOREFRONT_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def fetch_product(self, product_id: int) -> dict:
        url = f"{self.base_url}/products/{product_id}"
        logger.info(f"StorefrontClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    @http_retry()
    def fetch_cart(self, user_id: int) -> dict:
        url = f"{self.base_url}/carts/me"
        logger.info(f"StorefrontClient GET {url} user={user_id}")

        resp = requests.get(url, params={"user_id": user_id}, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    # POST bez retry - ponowienie moze zlozyc zamowienie drugi raz
    def checkout(
        self,
        store: LocalCartStore,
        user_id: int,
        shipping_address: Dict[str, str],
        payment_method: str = "cod",
        payment_confirmed: bool = False,
    ) -> dict:
        items = store.items()
        if items:
            total = sum((Decimal(i["price"]) * i["quantity"] for i in items), Decimal("0.00"))
        else:
            #pusty koszyk lokalny - serwer wezmie koszyk z backendu, kwota tez stamtad
            total = Decimal(str(self.fetch_cart(user_id)["total"]))

        payload = {
            "user_id": user_id,
            "local_cart": items,
            "shipping_address": shipping_address,
            "payment_method": payment_method,
            "total_amount": str(total),
            "payment_confirmed": payment_confirmed,
        }
        url = f"{self.base_url}/checkout"
        logger.info(f"StorefrontClient POST {url} user={user_id} items={len(items)}")

        resp = requests.post(url, json=payload, timeout=self.timeout)

        if resp.status_code in (201, 202):
            # zamowienie zapisane (202 = potwierdzimy pozniej) - koszyk lokalny do wyczyszczenia
            store.clear()
            return resp.json()

        try:
            body = resp.json()
        except ValueError:
            body = resp.text
        # FastAPI zwraca {"detail": ...}, proxy przed serwisem moze zwrocic cokolwiek
        detail = body.get("detail", body) if isinstance(body, dict) else body
        raise CheckoutFailed(resp.status_code, detail)
