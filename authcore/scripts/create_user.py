"""
Provision an account (e.g. the first admin). Run from project root:
  python -m authcore.scripts.create_user EMAIL PASSWORD NAME [role]
Example:
  python -m authcore.scripts.create_user admin@example.com 'S3curePassw0rd' Admin admin
"""
import argparse
import asyncio
import sys

from sqlalchemy.exc import SQLAlchemyError

from authcore.core.config import get_settings
from authcore.core.database import StoreConnection
from authcore.core.errors import ServiceError
from authcore.core.security import PasswordHasher, TokenCodec
from authcore.models.account import ROLES
from authcore.services.accounts import AccountStore
from authcore.services.credentials import CredentialManager


async def create_user(email: str, password: str, name: str, role: str) -> int:
    settings = get_settings()
    connection = StoreConnection.from_settings(settings)
    hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS, workers=1)
    manager = CredentialManager(
        AccountStore(connection), hasher, TokenCodec.from_settings(settings)
    )
    try:
        try:
            await connection.connect_once()
        except (SQLAlchemyError, OSError) as e:
            print(f"Account store unavailable: {e}", file=sys.stderr)
            return 1
        try:
            account = await manager.create_account(email, password, name, role=role)
        except ServiceError as e:
            print(e.message, file=sys.stderr)
            for field, message in (e.details or {}).items():
                print(f"  {field}: {message}", file=sys.stderr)
            return 1
        print(f"Created account '{account.email}' (id {account.id}) with role '{account.role}'.")
        return 0
    finally:
        await connection.close()
        hasher.shutdown()


def main() -> int:
    parser = argparse.ArgumentParser(description="Create an account (bypasses the HTTP API).")
    parser.add_argument("email", help="Email address (unique)")
    parser.add_argument("password", help="At least 8 chars with a digit and an uppercase letter")
    parser.add_argument("name", help="Display name (2+ chars)")
    parser.add_argument("role", nargs="?", default="user", choices=list(ROLES))
    args = parser.parse_args()
    return asyncio.run(create_user(args.email, args.password, args.name, args.role))


if __name__ == "__main__":
    sys.exit(main())
