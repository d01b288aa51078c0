from datetime import timedelta
from decimal import Decimal

from jose import jwt

from floresya.core.config import settings
from floresya.core.security import (
    create_user_token,
    decode_token,
    hash_password,
    token_user_id,
    verify_password,
)
from floresya.core.utils import pagination, to_money


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("flores123")
        assert hashed != "flores123"
        assert verify_password("flores123", hashed)
        assert not verify_password("flores124", hashed)


class TestTokens:
    def test_claims(self):
        payload = decode_token(create_user_token(42, "admin"))

        assert payload["sub"] == "42"
        assert payload["role"] == "admin"
        assert payload["type"] == "access"
        assert payload["jti"]

    def test_token_user_id(self):
        assert token_user_id(create_user_token(7, "user")) == 7

    def test_expired_token_is_rejected(self):
        token = create_user_token(1, "user", expires_delta=timedelta(seconds=-1))
        assert decode_token(token) is None
        assert token_user_id(token) is None

    def test_garbage_is_rejected(self):
        assert decode_token("not-a-jwt") is None
        assert token_user_id("not-a-jwt") is None

    def test_other_token_types_carry_no_user(self):
        token = jwt.encode({"sub": "7", "type": "refresh"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
        assert token_user_id(token) is None

    def test_non_numeric_subject_carries_no_user(self):
        token = jwt.encode({"sub": "admin", "type": "access"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
        assert token_user_id(token) is None

    def test_foreign_signature_is_rejected(self):
        token = jwt.encode({"sub": "7", "type": "access"}, "some-other-key", algorithm=settings.ALGORITHM)
        assert token_user_id(token) is None


class TestMoneyHelpers:
    def test_to_money_rounds_half_up(self):
        assert to_money("10.005") == Decimal("10.01")
        assert to_money(19.99) == Decimal("19.99")
        assert to_money(3) == Decimal("3.00")

    def test_pagination(self):
        assert pagination(2, 20, 41) == {"page": 2, "limit": 20, "total": 41, "pages": 3}
        assert pagination(1, 20, 0)["pages"] == 0
