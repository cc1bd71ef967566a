from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from sqlalchemy import select  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from warmwelcome.config import settings  # noqa: E402
from warmwelcome.db import SessionLocal  # noqa: E402
from warmwelcome.encryption import TokenCipher, is_encrypted  # noqa: E402
from warmwelcome.models import ShopifyStore  # noqa: E402


@dataclass
class BackfillStats:
    total: int = 0
    encrypted: int = 0
    already_encrypted: int = 0
    errors: list[str] = field(default_factory=list)


def encrypt_existing_tokens(session: Session, cipher: TokenCipher, *, dry_run: bool = False) -> BackfillStats:
    """Encrypt plaintext store tokens in place; already-encrypted rows are skipped."""
    stats = BackfillStats()
    stores = session.scalars(select(ShopifyStore)).all()
    stats.total = len(stores)
    for store in stores:
        if is_encrypted(store.access_token):
            print(f"✓ {store.shop_domain} - already encrypted")
            stats.already_encrypted += 1
            continue
        try:
            store.access_token = cipher.encrypt(store.access_token)
        except (ValueError, RuntimeError) as exc:
            print(f"✗ {store.shop_domain} - error: {exc}")
            stats.errors.append(store.shop_domain)
            continue
        print(f"✓ {store.shop_domain} - encrypted")
        stats.encrypted += 1

    if dry_run:
        session.rollback()
    else:
        session.commit()
    return stats


def main(dry_run: bool) -> int:
    session = SessionLocal()
    try:
        stats = encrypt_existing_tokens(session, TokenCipher(settings.ENCRYPTION_KEY), dry_run=dry_run)
    finally:
        session.close()
    print("\n--- Migration Summary ---")
    print(f"Total stores: {stats.total}")
    print(f"Newly encrypted: {stats.encrypted}")
    print(f"Already encrypted: {stats.already_encrypted}")
    print(f"Errors: {len(stats.errors)}")
    return 1 if stats.errors else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Encrypt Shopify access tokens that are still stored in plaintext.")
    parser.add_argument("--dry-run", action="store_true", help="Report what would change without committing.")
    args = parser.parse_args()
    sys.exit(main(dry_run=args.dry_run))
