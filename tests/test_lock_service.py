"""Tests for the checkout lock (redis client mocked)."""

from unittest.mock import MagicMock

from storefront.services.lock_service import LockService


def _service():
    svc = LockService(url="redis://localhost:6379/0")
    svc.redis = MagicMock()
    return svc


def test_acquire_sets_key_only_if_absent():
    svc = _service()
    svc.redis.set.return_value = True

    token = svc.acquire_checkout_lock(7, ttl=30)

    assert token
    svc.redis.set.assert_called_once_with(name="checkout:7:lock", value=token, nx=True, ex=30)


def test_acquire_returns_none_when_held():
    svc = _service()
    svc.redis.set.return_value = None

    assert svc.acquire_checkout_lock(7, ttl=30) is None


def test_release_only_with_owner_token():
    svc = _service()
    svc.redis.eval.return_value = 0

    assert svc.release_checkout_lock(7, "not-mine") is False
    args = svc.redis.eval.call_args.args
    assert args[1:] == (1, "checkout:7:lock", "not-mine")
