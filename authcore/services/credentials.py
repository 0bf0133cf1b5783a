"""Registration, login and profile lookup: the credential manager."""

import logging
from dataclasses import dataclass

from authcore.core.errors import (
    DuplicateIdentity,
    DuplicateKeyError,
    InvalidCredentials,
    MissingFields,
    NotFound,
    ValidationFailed,
)
from authcore.core.security import PasswordHasher, TokenCodec
from authcore.models import Account
from authcore.models.account import DEFAULT_ROLE, ROLES, new_account_id, utcnow
from authcore.schemas.auth import LoginRequest, RegisterRequest
from authcore.services.accounts import AccountStore
from authcore.services.validation import ValidationResult, validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    """Successful registration or login: the issued token and the account."""

    token: str
    account: Account


def _raise_for(result: ValidationResult) -> None:
    if result.ok:
        return
    if result.only_missing:
        raise MissingFields(details=dict(result.field_errors))
    raise ValidationFailed(details=dict(result.field_errors))


class CredentialManager:
    """
    Orchestrates validation, the account store, hashing and token issuance.

    Business failures are raised as ServiceError subclasses; anything else
    propagates to the request boundary.
    """

    def __init__(
        self,
        store: AccountStore,
        hasher: PasswordHasher,
        tokens: TokenCodec,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens

    async def register(self, body: RegisterRequest) -> AuthResult:
        """Create an account with role 'user' and return a token for it."""
        account = await self.create_account(
            body.email, body.password, body.name, role=DEFAULT_ROLE
        )
        token = self.tokens.issue(account.id, account.role)
        logger.info("Registered account id=%s", account.id)
        return AuthResult(token=token, account=account)

    async def create_account(
        self,
        email: str | None,
        password: str | None,
        name: str | None,
        role: str = DEFAULT_ROLE,
    ) -> Account:
        """
        Validate, check uniqueness, hash and persist a new account.

        find_by_email is only a pre-check. A concurrent registration can pass
        it too; the store's unique constraint then rejects the later insert,
        which is reported as DuplicateIdentity like the pre-check hit.
        """
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role!r}")
        result = validate(
            {"email": email, "password": password, "name": name}, "registration"
        )
        _raise_for(result)
        values = result.values

        if await self.store.find_by_email(values["email"]) is not None:
            raise DuplicateIdentity()

        password_hash = await self.hasher.hash(values["password"])
        account = Account(
            id=new_account_id(),
            email=values["email"],
            password_hash=password_hash,
            name=values["name"],
            role=role,
            created_at=utcnow(),
        )
        try:
            return await self.store.create(account)
        except DuplicateKeyError:
            logger.info("Concurrent registration lost the race on unique email")
            raise DuplicateIdentity() from None

    async def login(self, body: LoginRequest) -> AuthResult:
        """
        Verify email and password and return a fresh token.
        Unknown email and wrong password raise the same InvalidCredentials.
        """
        result = validate(body.model_dump(), "login")
        _raise_for(result)
        email = result.values["email"]
        password = result.values["password"]

        account = await self.store.find_by_email(email)
        if account is None:
            # Same bcrypt cost as a real check, so timing does not reveal the miss.
            await self.hasher.verify_dummy(password)
            raise InvalidCredentials()
        if not await self.hasher.verify(password, account.password_hash):
            raise InvalidCredentials()

        token = self.tokens.issue(account.id, account.role)
        logger.info("Login succeeded for account id=%s", account.id)
        return AuthResult(token=token, account=account)

    async def profile(self, subject_id: str) -> Account:
        """Load the account a token was issued for; NotFound if it is gone."""
        account = await self.store.find_by_id(subject_id)
        if account is None:
            raise NotFound()
        return account
