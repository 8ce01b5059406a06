from datetime import timedelta

import pytest

from resume_matcher.auth import AuthService
from resume_matcher.errors import AuthError, ConflictError, NotFoundError, ValidationError
from resume_matcher.security import create_access_token, decode_access_token, hash_password, verify_password


@pytest.fixture
def auth(store, settings):
    return AuthService(store, settings)


async def signup_ada(auth, email="ada@example.com", password="analytical-engine"):
    return await auth.signup("Ada", "Lovelace", email, 5550100, password)


async def test_signup_then_login_returns_token_for_same_email(auth, settings):
    token, profile = await signup_ada(auth)
    assert profile == {"firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com"}
    assert decode_access_token(token, settings) == "ada@example.com"

    login_token, login_profile = await auth.login("ada@example.com", "analytical-engine")
    assert decode_access_token(login_token, settings) == "ada@example.com"
    assert login_profile == profile


async def test_password_is_stored_hashed(auth, store):
    await signup_ada(auth)
    user = await store.get_by_email("ada@example.com")
    assert user.password != "analytical-engine"
    assert verify_password("analytical-engine", user.password)
    assert user.phone_num == "5550100"


@pytest.mark.parametrize("missing", ["first", "last", "email", "phone", "password"])
async def test_signup_requires_every_field(auth, missing):
    fields = {"first": "Ada", "last": "Lovelace", "email": "ada@example.com",
              "phone": "5550100", "password": "secret"}
    fields[missing] = "" if missing != "phone" else None
    with pytest.raises(ValidationError):
        await auth.signup(fields["first"], fields["last"], fields["email"],
                          fields["phone"], fields["password"])


async def test_duplicate_email_conflicts_and_creates_nothing(auth, store):
    await signup_ada(auth)
    with pytest.raises(ConflictError):
        await signup_ada(auth, password="another-password")
    assert len(store) == 1


async def test_overlong_password_rejected(auth):
    with pytest.raises(ValidationError):
        await signup_ada(auth, password="x" * 73)


async def test_login_unknown_email(auth):
    with pytest.raises(NotFoundError):
        await auth.login("nobody@example.com", "whatever")


async def test_login_wrong_password(auth):
    await signup_ada(auth)
    with pytest.raises(AuthError):
        await auth.login("ada@example.com", "wrong")


async def test_authenticate_resolves_user(auth):
    token, _ = await signup_ada(auth)
    user = await auth.authenticate(token)
    assert user.email == "ada@example.com"


async def test_authenticate_rejects_missing_and_garbage_tokens(auth):
    with pytest.raises(AuthError):
        await auth.authenticate(None)
    with pytest.raises(AuthError):
        await auth.authenticate("not-a-jwt")


async def test_authenticate_rejects_expired_token(auth, settings):
    await signup_ada(auth)
    expired = create_access_token("ada@example.com", settings, expires_delta=timedelta(seconds=-10))
    with pytest.raises(AuthError):
        await auth.authenticate(expired)


async def test_authenticate_rejects_token_signed_with_other_secret(auth, settings):
    await signup_ada(auth)
    forged = create_access_token("ada@example.com", settings.__class__(jwt_secret="other-secret"))
    with pytest.raises(AuthError):
        await auth.authenticate(forged)


async def test_authenticate_rejects_token_for_unknown_user(auth, settings):
    token = create_access_token("ghost@example.com", settings)
    with pytest.raises(AuthError):
        await auth.authenticate(token)


def test_verify_password_handles_corrupt_hash():
    assert not verify_password("secret", "not-a-bcrypt-hash")
    assert verify_password("secret", hash_password("secret", rounds=4))
