"""Unit tests for authcore.services.credentials: register, login, profile against a fake store."""

import asyncio
import unittest
from unittest.mock import AsyncMock

from authcore.core.errors import (
    DuplicateIdentity,
    DuplicateKeyError,
    InvalidCredentials,
    MissingFields,
    NotFound,
    StoreUnavailable,
    ValidationFailed,
)
from authcore.core.security import PasswordHasher, TokenCodec
from authcore.models import Account
from authcore.schemas.auth import LoginRequest, RegisterRequest
from authcore.services.credentials import CredentialManager

SECRET = "test-signing-secret-0123456789abcdef"


class InMemoryAccountStore:
    """Stand-in for AccountStore with the same unique-email contract."""

    def __init__(self) -> None:
        self.accounts: dict[str, Account] = {}
        self.email_lookups = 0

    async def create(self, account: Account) -> Account:
        if any(a.email == account.email for a in self.accounts.values()):
            raise DuplicateKeyError(account.email)
        self.accounts[account.id] = account
        return account

    async def find_by_email(self, email: str) -> Account | None:
        self.email_lookups += 1
        return next((a for a in self.accounts.values() if a.email == email), None)

    async def find_by_id(self, account_id: str) -> Account | None:
        return self.accounts.get(account_id)


class RacingAccountStore(InMemoryAccountStore):
    """Pre-check never sees the competing insert; the constraint still fires."""

    async def find_by_email(self, email: str) -> Account | None:
        self.email_lookups += 1
        return None


def _register(email: str = "a@x.com", password: str = "Abcdefg1", name: str = "Ann") -> RegisterRequest:
    return RegisterRequest(email=email, password=password, name=name)


class _ManagerTestCase(unittest.TestCase):
    store_class = InMemoryAccountStore

    def setUp(self) -> None:
        self.store = self.store_class()
        self.hasher = PasswordHasher(rounds=4, workers=2)
        self.codec = TokenCodec(SECRET)
        self.manager = CredentialManager(self.store, self.hasher, self.codec)

    def tearDown(self) -> None:
        self.hasher.shutdown()


class TestRegister(_ManagerTestCase):
    """register(): validate, pre-check, hash, persist, issue."""

    def test_register_returns_token_for_new_account(self) -> None:
        result = asyncio.run(self.manager.register(_register()))
        account = result.account
        self.assertEqual(account.email, "a@x.com")
        self.assertEqual(account.name, "Ann")
        self.assertEqual(account.role, "user")
        self.assertIsNotNone(account.created_at)
        self.assertIn(account.id, self.store.accounts)
        claims = self.codec.verify(result.token)
        self.assertEqual(claims.subject_id, account.id)
        self.assertEqual(claims.role, "user")

    def test_password_stored_only_as_hash(self) -> None:
        result = asyncio.run(self.manager.register(_register()))
        stored = self.store.accounts[result.account.id]
        self.assertNotEqual(stored.password_hash, "Abcdefg1")
        self.assertNotIn("Abcdefg1", stored.password_hash)
        self.assertTrue(stored.password_hash.startswith("$2"))

    def test_email_normalized_before_storage(self) -> None:
        result = asyncio.run(self.manager.register(_register(email="  Ann@X.COM ")))
        self.assertEqual(result.account.email, "ann@x.com")

    def test_duplicate_email_rejected_regardless_of_other_fields(self) -> None:
        asyncio.run(self.manager.register(_register()))
        with self.assertRaises(DuplicateIdentity) as ctx:
            asyncio.run(self.manager.register(_register(password="Zyxwvut9", name="Other")))
        self.assertEqual(ctx.exception.field, "email")
        self.assertEqual(len(self.store.accounts), 1)

    def test_duplicate_detected_case_insensitively(self) -> None:
        asyncio.run(self.manager.register(_register(email="a@x.com")))
        with self.assertRaises(DuplicateIdentity):
            asyncio.run(self.manager.register(_register(email="A@X.com")))

    def test_invalid_payload_reports_every_field(self) -> None:
        with self.assertRaises(ValidationFailed) as ctx:
            asyncio.run(self.manager.register(_register(email="bad", password="weak", name="A")))
        self.assertEqual(set(ctx.exception.details), {"email", "password", "name"})
        self.assertEqual(self.store.email_lookups, 0)

    def test_all_fields_missing(self) -> None:
        with self.assertRaises(MissingFields) as ctx:
            asyncio.run(self.manager.register(RegisterRequest()))
        self.assertEqual(
            ctx.exception.details,
            {
                "email": "Email is required",
                "password": "Password is required",
                "name": "Name is required",
            },
        )

    def test_unknown_role_rejected(self) -> None:
        with self.assertRaises(ValueError):
            asyncio.run(self.manager.create_account("a@x.com", "Abcdefg1", "Ann", role="root"))

    def test_create_account_with_admin_role(self) -> None:
        account = asyncio.run(
            self.manager.create_account("root@x.com", "Abcdefg1", "Root", role="admin")
        )
        self.assertEqual(account.role, "admin")

    def test_store_unavailable_propagates(self) -> None:
        self.store.find_by_email = AsyncMock(side_effect=StoreUnavailable())
        with self.assertRaises(StoreUnavailable):
            asyncio.run(self.manager.register(_register()))


class TestRegisterRace(_ManagerTestCase):
    """A duplicate-key failure at insert time becomes DuplicateIdentity."""

    store_class = RacingAccountStore

    def test_late_duplicate_key_is_remapped(self) -> None:
        asyncio.run(self.manager.register(_register()))
        with self.assertRaises(DuplicateIdentity) as ctx:
            asyncio.run(self.manager.register(_register(name="Second")))
        self.assertEqual(ctx.exception.field, "email")
        self.assertEqual(len(self.store.accounts), 1)

    def test_concurrent_registrations_one_wins(self) -> None:
        async def race() -> list[object]:
            return await asyncio.gather(
                self.manager.register(_register(name="First")),
                self.manager.register(_register(name="Second")),
                return_exceptions=True,
            )

        outcomes = asyncio.run(race())
        errors = [o for o in outcomes if isinstance(o, Exception)]
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], DuplicateIdentity)
        self.assertEqual(len(self.store.accounts), 1)


class TestLogin(_ManagerTestCase):
    """login(): generic failures, no lookup on invalid input."""

    def setUp(self) -> None:
        super().setUp()
        self.registered = asyncio.run(self.manager.register(_register()))
        self.store.email_lookups = 0

    def test_login_succeeds_with_same_subject(self) -> None:
        result = asyncio.run(self.manager.login(LoginRequest(email="a@x.com", password="Abcdefg1")))
        self.assertEqual(
            self.codec.verify(result.token).subject_id,
            self.codec.verify(self.registered.token).subject_id,
        )
        self.assertEqual(result.account.id, self.registered.account.id)

    def test_login_email_case_insensitive(self) -> None:
        result = asyncio.run(self.manager.login(LoginRequest(email=" A@X.COM ", password="Abcdefg1")))
        self.assertEqual(result.account.id, self.registered.account.id)

    def test_unknown_email_and_wrong_password_are_indistinguishable(self) -> None:
        with self.assertRaises(InvalidCredentials) as unknown:
            asyncio.run(self.manager.login(LoginRequest(email="b@x.com", password="Abcdefg1")))
        with self.assertRaises(InvalidCredentials) as wrong:
            asyncio.run(self.manager.login(LoginRequest(email="a@x.com", password="Wrongpass1")))
        self.assertEqual(type(unknown.exception), type(wrong.exception))
        self.assertEqual(unknown.exception.message, wrong.exception.message)
        self.assertEqual(unknown.exception.status_code, wrong.exception.status_code)
        self.assertIsNone(unknown.exception.details)
        self.assertIsNone(wrong.exception.details)

    def test_short_password_fails_validation_without_lookup(self) -> None:
        with self.assertRaises(ValidationFailed) as ctx:
            asyncio.run(self.manager.login(LoginRequest(email="a@x.com", password="short")))
        self.assertIn("password", ctx.exception.details)
        self.assertEqual(self.store.email_lookups, 0)

    def test_missing_fields(self) -> None:
        with self.assertRaises(MissingFields) as ctx:
            asyncio.run(self.manager.login(LoginRequest(email="a@x.com")))
        self.assertEqual(ctx.exception.details, {"password": "Password is required"})
        self.assertEqual(self.store.email_lookups, 0)

    def test_weak_password_not_rechecked_at_login(self) -> None:
        with self.assertRaises(InvalidCredentials):
            asyncio.run(self.manager.login(LoginRequest(email="a@x.com", password="alllowercase")))
        self.assertEqual(self.store.email_lookups, 1)


class TestProfile(_ManagerTestCase):
    def test_profile_returns_account(self) -> None:
        result = asyncio.run(self.manager.register(_register()))
        account = asyncio.run(self.manager.profile(result.account.id))
        self.assertEqual(account.email, "a@x.com")

    def test_profile_missing_account(self) -> None:
        with self.assertRaises(NotFound):
            asyncio.run(self.manager.profile("no-such-id"))


if __name__ == "__main__":
    unittest.main()
