import os
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_warmwelcome.db")
os.environ.setdefault("JWT_SECRET", "test_jwt_secret_value_1234")
os.environ.setdefault("ENCRYPTION_KEY", "test_encryption_key_that_is_long_enough_123")
os.environ.setdefault("SHOPIFY_API_KEY", "test_key")
os.environ.setdefault("SHOPIFY_API_SECRET", "test_secret")
os.environ.setdefault("SHOPIFY_REDIRECT_URI", "https://api.example.com/api/shopify/callback")
os.environ.setdefault("SHOPIFY_SCOPES", "read_customers, read_orders")
os.environ.setdefault("SHOPIFY_STATE_SECRET", "test_state_secret")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")
os.environ.setdefault("FRONTEND_URL", "")
os.environ.setdefault("SMTP_HOST", "")

import pytest  # noqa: E402
from sqlalchemy import delete  # noqa: E402

from warmwelcome.db import SessionLocal, init_db  # noqa: E402
from warmwelcome.models import BrandVoice, Campaign, Email, EmailBlueprint, ShopifyStore, User  # noqa: E402

_TABLES_IN_DELETE_ORDER = (Email, Campaign, EmailBlueprint, BrandVoice, ShopifyStore, User)


def _clear(session) -> None:
    for model in _TABLES_IN_DELETE_ORDER:
        session.execute(delete(model))
    session.commit()


@pytest.fixture()
def db_session():
    init_db()
    session = SessionLocal()
    _clear(session)
    try:
        yield session
    finally:
        session.rollback()
        _clear(session)
        session.close()


@pytest.fixture()
def user(db_session) -> User:
    account = User(email="merchant@example.com", first_name="Morgan", last_name="Diaz")
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account
