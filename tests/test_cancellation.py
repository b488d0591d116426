import pytest

from iconsync.cancellation import CancellationToken, Cancelled, ensure_token


def test_token():
    token = CancellationToken()
    assert not token.cancelled
    token.raise_if_cancelled()
    token.cancel()
    assert token.cancelled
    with pytest.raises(Cancelled):
        token.raise_if_cancelled()


def test_ensure_token():
    token = CancellationToken()
    assert ensure_token(token) is token
    assert isinstance(ensure_token(None), CancellationToken)
