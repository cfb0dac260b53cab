"""Tests for Celery tasks run in-process."""

import logging
from datetime import datetime, timezone
from unittest.mock import patch

from sqlalchemy.exc import IntegrityError

from storefront.repos.cart_repo import CartRepo
from storefront.services.cart_reconciler import SYNC_FAILED_WARNING
from storefront.services.cart_service import CartService
from storefront.services.cart_sync_service import CartSyncService, sync_backend_cart_task
from storefront.services.notification_service import NotificationService, send_order_notification_task
from storefront.tasks.inventory_audit import audit_stock_task


def test_audit_reports_discrepancies(make_product, caplog):
    make_product(name="Ok", stock=2, variants=[("Black", "#000000", 2)])
    drifted = make_product(name="Drifted", stock=5, variants=[("Black", "#000000", 1)])

    with caplog.at_level(logging.WARNING):
        result = audit_stock_task()

    assert result == {"discrepancies": 1}
    assert f"product {drifted.id}" in caplog.text


def test_sync_task_fills_backend_cart(db, make_user, make_product):
    make_user(1)
    product = make_product()

    result = sync_backend_cart_task(
        1,
        [{"product_id": product.id, "quantity": 2, "color": None}],
        datetime.now(timezone.utc).isoformat(),
    )

    assert result == {"user_id": 1, "pushed": 1}
    assert CartService(db).get_cart(1)["items"][0]["quantity"] == 2


def test_schedule_sync_is_fire_and_forget():
    with patch.object(sync_backend_cart_task, "delay") as delay:
        CartSyncService.schedule_sync(1, [{"product_id": 1, "quantity": 1}])

    user_id, items, requested_at = delay.call_args.args
    assert user_id == 1
    assert items == [{"product_id": 1, "quantity": 1}]
    assert datetime.fromisoformat(requested_at).tzinfo is not None


def test_notification_task():
    with patch.object(send_order_notification_task, "delay") as delay:
        NotificationService.send_order_notification(1, 10, "cancelled")
    delay.assert_called_once_with(1, 10, "cancelled")

    assert send_order_notification_task(1, 10, "placed")["status"] == "sent"


def test_sync_task_logs_named_warning_for_skipped_items(db, make_user, make_product, caplog):
    make_user(1)
    product = make_product()

    with caplog.at_level(logging.WARNING, logger="storefront"):
        result = sync_backend_cart_task(
            1,
            [{"product_id": 9999, "quantity": 1}, {"product_id": product.id, "quantity": 1}],
            None,
        )

    assert result == {"user_id": 1, "pushed": 1}
    assert f"{SYNC_FAILED_WARNING}: user=1 product=9999" in caplog.text
    assert [i["product_id"] for i in CartService(db).get_cart(1)["items"]] == [product.id]


def test_sync_task_continues_after_database_error_on_one_item(db, make_user, make_product, caplog, monkeypatch):
    make_user(1)
    bag = make_product(name="Bag")
    belt = make_product(name="Belt")
    original = CartRepo.add_cart_item
    calls = []

    def failing_once(self, item):
        calls.append(item.product_id)
        if len(calls) == 1:
            raise IntegrityError("INSERT INTO cart_items", {}, Exception("UNIQUE constraint failed"))
        return original(self, item)

    monkeypatch.setattr(CartRepo, "add_cart_item", failing_once)

    with caplog.at_level(logging.WARNING, logger="storefront"):
        result = sync_backend_cart_task(
            1,
            [{"product_id": bag.id, "quantity": 1}, {"product_id": belt.id, "quantity": 1}],
            None,
        )

    assert result["pushed"] == 1
    assert f"{SYNC_FAILED_WARNING}: user=1 product={bag.id}" in caplog.text
    assert [i["product_id"] for i in CartService(db).get_cart(1)["items"]] == [belt.id]


def test_sync_task_failure_logs_named_warning(make_product, caplog):
    product = make_product()

    with caplog.at_level(logging.WARNING, logger="storefront"):
        result = sync_backend_cart_task(7, [{"product_id": product.id, "quantity": 1}], None)

    assert result == {"user_id": 7, "pushed": 0}
    assert f"{SYNC_FAILED_WARNING}: user=7 items=1" in caplog.text
