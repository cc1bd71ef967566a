from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from warmwelcome.models import BrandVoice, Campaign, Email, ShopifyStore, User


class Repository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def save(self, obj):
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj


class UsersRepository(Repository):
    def get(self, user_id: str) -> User | None:
        return self.session.get(User, user_id)


class StoresRepository(Repository):
    def get_by_shop_domain(self, shop_domain: str) -> ShopifyStore | None:
        return self.session.scalars(select(ShopifyStore).where(ShopifyStore.shop_domain == shop_domain)).first()

    def list_for_user(self, user_id: str) -> list[ShopifyStore]:
        stmt = (
            select(ShopifyStore)
            .where(ShopifyStore.user_id == user_id)
            .order_by(ShopifyStore.created_at.desc())
        )
        return list(self.session.scalars(stmt).all())

    def get_for_user(self, *, store_id: str, user_id: str, active_only: bool = False) -> ShopifyStore | None:
        stmt = select(ShopifyStore).where(ShopifyStore.id == store_id, ShopifyStore.user_id == user_id)
        if active_only:
            stmt = stmt.where(ShopifyStore.is_active.is_(True))
        return self.session.scalars(stmt).first()

    def upsert_credential(
        self,
        *,
        shop_domain: str,
        user_id: str,
        encrypted_access_token: str,
        scope: str,
    ) -> ShopifyStore:
        store = self.get_by_shop_domain(shop_domain)
        if store is None:
            store = ShopifyStore(shop_domain=shop_domain)
        store.user_id = user_id
        store.access_token = encrypted_access_token
        store.scope = scope
        store.is_active = True
        return self.save(store)

    def set_active(self, store: ShopifyStore, *, is_active: bool) -> ShopifyStore:
        store.is_active = is_active
        return self.save(store)


class CampaignsRepository(Repository):
    def get_for_user(self, *, campaign_id: str, user_id: str) -> Campaign | None:
        stmt = select(Campaign).where(Campaign.id == campaign_id, Campaign.user_id == user_id)
        return self.session.scalars(stmt).first()


class BrandVoicesRepository(Repository):
    def get_for_user(self, user_id: str) -> BrandVoice | None:
        return self.session.scalars(select(BrandVoice).where(BrandVoice.user_id == user_id)).first()


class EmailsRepository(Repository):
    def create(self, email: Email) -> Email:
        return self.save(email)
