from unittest.mock import MagicMock

import pytest
import redis

from app.services.lock_service import LockService


@pytest.fixture
def client():
    return MagicMock(spec=redis.Redis)


def test_acquire_sets_key_with_nx_and_ttl(client):
    client.set.return_value = True
    locks = LockService(client=client)

    token = locks.acquire_checkout_lock(7, ttl=30)

    assert token
    client.set.assert_called_once_with(name="checkout:7:lock", value=token, nx=True, ex=30)


def test_acquire_returns_none_when_taken(client):
    client.set.return_value = None
    assert LockService(client=client).acquire_checkout_lock(7, ttl=30) is None


def test_release_compares_token(client):
    client.eval.return_value = 1
    locks = LockService(client=client)

    assert locks.release_checkout_lock(7, "abc") is True
    script, numkeys, key, token = client.eval.call_args.args
    assert (numkeys, key, token) == (1, "checkout:7:lock", "abc")
    assert "GET" in script and "DEL" in script


def test_release_of_foreign_token(client):
    client.eval.return_value = 0
    assert LockService(client=client).release_checkout_lock(7, "not-mine") is False


def test_transient_redis_error_is_retried(client):
    client.set.side_effect = [redis.ConnectionError("down"), True]

    assert LockService(client=client).acquire_checkout_lock(1, ttl=5)
    assert client.set.call_count == 2
