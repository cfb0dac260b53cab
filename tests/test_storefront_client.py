"""Tests for the HTTP client used by the storefront frontend."""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import requests

from storefront.client.local_cart import LocalCartStore
from storefront.client.storefront_client import CheckoutFailed, StorefrontClient

ADDRESS = {"street": "1 Park St", "city": "Kolkata", "state": "West Bengal", "pincode": "700016"}


def _response(status_code, body):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = body
    resp.text = str(body)
    return resp


@pytest.fixture
def store(tmp_path):
    store = LocalCartStore(tmp_path / "cart.json", user_id=1)
    store.add(1, "Tote", "100.00", quantity=2, color="Black")
    store.add(2, "Wallet", "19.99")
    return store


def test_checkout_sends_local_cart_and_clears_it(store):
    client = StorefrontClient(base_url="http://shop.test/")

    with patch("storefront.client.storefront_client.requests.post") as post:
        post.return_value = _response(201, {"order": {"id": 10}})
        result = client.checkout(store, 1, ADDRESS)

    assert result == {"order": {"id": 10}}
    url = post.call_args.args[0]
    payload = post.call_args.kwargs["json"]
    assert url == "http://shop.test/checkout"
    assert payload["total_amount"] == "219.99"
    assert [i["product_id"] for i in payload["local_cart"]] == [1, 2]
    assert store.items() == []


def test_accepted_checkout_also_clears_cart(store):
    with patch("storefront.client.storefront_client.requests.post") as post:
        post.return_value = _response(202, {"message": "later"})
        StorefrontClient(base_url="http://shop.test").checkout(store, 1, ADDRESS)

    assert store.items() == []


def test_failed_checkout_keeps_cart_and_is_not_retried(store):
    detail = {"message": "Niewystarczajacy stan", "available": 1, "requested": 2}

    with patch("storefront.client.storefront_client.requests.post") as post:
        post.return_value = _response(409, {"detail": detail})
        with pytest.raises(CheckoutFailed) as exc:
            StorefrontClient(base_url="http://shop.test").checkout(store, 1, ADDRESS)

    assert exc.value.status_code == 409
    assert exc.value.detail == detail
    assert post.call_count == 1
    assert len(store.items()) == 2


@pytest.mark.parametrize("body", [["upstream", "error"], "Bad Gateway", None])
def test_failed_checkout_with_non_object_body(store, body):
    with patch("storefront.client.storefront_client.requests.post") as post:
        post.return_value = _response(502, body)
        with pytest.raises(CheckoutFailed) as exc:
            StorefrontClient(base_url="http://shop.test").checkout(store, 1, ADDRESS)

    assert exc.value.status_code == 502
    assert exc.value.detail == body
    assert len(store.items()) == 2


def test_failed_checkout_with_html_body(store):
    resp = _response(504, None)
    resp.json.side_effect = ValueError("Expecting value")
    resp.text = "<html>Gateway Timeout</html>"

    with patch("storefront.client.storefront_client.requests.post", return_value=resp):
        with pytest.raises(CheckoutFailed) as exc:
            StorefrontClient(base_url="http://shop.test").checkout(store, 1, ADDRESS)

    assert exc.value.detail == "<html>Gateway Timeout</html>"


def test_empty_local_cart_uses_backend_total(tmp_path):
    store = LocalCartStore(tmp_path / "cart.json", user_id=1)
    client = StorefrontClient(base_url="http://shop.test")

    with patch("storefront.client.storefront_client.requests.get") as get, patch(
        "storefront.client.storefront_client.requests.post"
    ) as post:
        get.return_value = _response(200, {"items": [], "total": "45.50"})
        post.return_value = _response(201, {})
        client.checkout(store, 1, ADDRESS)

    assert get.call_args.kwargs["params"] == {"user_id": 1}
    assert Decimal(post.call_args.kwargs["json"]["total_amount"]) == Decimal("45.50")
    assert post.call_args.kwargs["json"]["local_cart"] == []


def test_fetch_product_retries_connection_errors():
    client = StorefrontClient(base_url="http://shop.test")

    with patch("storefront.client.storefront_client.requests.get") as get:
        get.side_effect = [requests.ConnectionError("reset"), _response(200, {"id": 1})]
        assert client.fetch_product(1) == {"id": 1}

    assert get.call_count == 2
