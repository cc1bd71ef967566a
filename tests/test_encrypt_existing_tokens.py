from __future__ import annotations

import importlib.util
import sys
from pathlib import Path

import pytest
from sqlalchemy import select

from warmwelcome.encryption import TokenCipher, is_encrypted
from warmwelcome.models import ShopifyStore

SCRIPT_PATH = Path(__file__).resolve().parents[1] / "scripts" / "encrypt_existing_tokens.py"
CIPHER = TokenCipher("backfill-tests-encryption-key-0123456789")


def _load_script():
    spec = importlib.util.spec_from_file_location("encrypt_existing_tokens", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module


@pytest.fixture()
def stores(db_session, user):
    rows = [
        ShopifyStore(shop_domain="plain.myshopify.com", user_id=user.id, access_token="shpat_plain"),
        ShopifyStore(shop_domain="done.myshopify.com", user_id=user.id, access_token=CIPHER.encrypt("shpat_done")),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


def _tokens(db_session) -> dict[str, str]:
    db_session.expire_all()
    return {store.shop_domain: store.access_token for store in db_session.scalars(select(ShopifyStore))}


def test_backfill_encrypts_plaintext_tokens_once(db_session, stores):
    script = _load_script()

    stats = script.encrypt_existing_tokens(db_session, CIPHER)

    assert (stats.total, stats.encrypted, stats.already_encrypted, stats.errors) == (2, 1, 1, [])
    tokens = _tokens(db_session)
    assert is_encrypted(tokens["plain.myshopify.com"])
    assert CIPHER.decrypt(tokens["plain.myshopify.com"]) == "shpat_plain"
    assert CIPHER.decrypt(tokens["done.myshopify.com"]) == "shpat_done"

    rerun = script.encrypt_existing_tokens(db_session, CIPHER)
    assert (rerun.encrypted, rerun.already_encrypted) == (0, 2)
    assert _tokens(db_session) == tokens


def test_backfill_dry_run_leaves_rows_untouched(db_session, stores):
    stats = _load_script().encrypt_existing_tokens(db_session, CIPHER, dry_run=True)

    assert stats.encrypted == 1
    assert _tokens(db_session)["plain.myshopify.com"] == "shpat_plain"
