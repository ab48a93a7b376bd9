"""Settings validation tests."""

import pytest
from pydantic import ValidationError

from messagely.config import Settings


def test_default_secret_allowed_in_development():
    s = Settings(environment="development", jwt_secret="change-me-in-production")
    assert s.jwt_secret == "change-me-in-production"


def test_default_secret_rejected_in_production():
    with pytest.raises(ValidationError, match="MESSAGELY_JWT_SECRET"):
        Settings(environment="production", jwt_secret="change-me-in-production")


def test_custom_secret_accepted_in_production():
    s = Settings(environment="production", jwt_secret="a-real-secret-value-0123456789")
    assert s.environment == "production"


@pytest.mark.parametrize("rounds", [3, 32])
def test_bcrypt_rounds_out_of_range(rounds):
    with pytest.raises(ValidationError, match="MESSAGELY_BCRYPT_ROUNDS"):
        Settings(bcrypt_rounds=rounds)


@pytest.mark.parametrize("rounds", [4, 12, 31])
def test_bcrypt_rounds_in_range(rounds):
    assert Settings(bcrypt_rounds=rounds).bcrypt_rounds == rounds
