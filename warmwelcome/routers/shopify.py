from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from warmwelcome.auth import get_app_context, get_current_user
from warmwelcome.context import AppContext
from warmwelcome.db import get_session
from warmwelcome.errors import NotFoundError
from warmwelcome.models import ShopifyStore, User
from warmwelcome.repositories import StoresRepository
from warmwelcome.schemas import (
    InstallRequest,
    InstallResponse,
    OAuthConnectedResponse,
    StoreSummary,
    StoreToggleResponse,
    success_response,
)

router = APIRouter(prefix="/api/shopify", tags=["shopify"])
logger = logging.getLogger("shopify.routes")

_STORE_NOT_FOUND = "Store not found or access denied."


def _serialize_store(store: ShopifyStore) -> dict:
    return StoreSummary(
        id=store.id,
        shopDomain=store.shop_domain,
        scope=store.scope,
        isActive=store.is_active,
        createdAt=store.created_at,
        updatedAt=store.updated_at,
    ).model_dump(mode="json")


@router.post("/install")
def start_install(
    payload: InstallRequest,
    user: User = Depends(get_current_user),
    context: AppContext = Depends(get_app_context),
):
    install_url = context.oauth.build_install_url(shop=payload.shop, user_id=user.id)
    return success_response(
        InstallResponse(installUrl=install_url).model_dump(),
        "Redirect to Shopify to approve access.",
    )


@router.get("/callback")
async def oauth_callback(
    request: Request,
    session: Session = Depends(get_session),
    context: AppContext = Depends(get_app_context),
):
    connection = await context.oauth.complete_callback(
        query_items=list(request.query_params.multi_items()),
        stores=StoresRepository(session),
    )
    if connection.redirect_url:
        return RedirectResponse(url=connection.redirect_url, status_code=302)
    return success_response(
        OAuthConnectedResponse(shop=connection.shop, scope=connection.scope).model_dump(),
        "Shopify store connected successfully.",
    )


@router.get("/stores")
def list_stores(user: User = Depends(get_current_user), session: Session = Depends(get_session)):
    stores = StoresRepository(session).list_for_user(user.id)
    return success_response([_serialize_store(store) for store in stores])


@router.get("/stores/{store_id}/customers")
async def fetch_customers(
    store_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    context: AppContext = Depends(get_app_context),
):
    store = StoresRepository(session).get_for_user(store_id=store_id, user_id=user.id, active_only=True)
    if store is None:
        raise NotFoundError(message=f"No active store {store_id} for user {user.id}", public_message=_STORE_NOT_FOUND)

    access_token = context.cipher.decrypt(store.access_token)
    customers = await context.shopify_api.list_customers(
        shop_domain=store.shop_domain,
        access_token=access_token,
        limit=context.settings.SHOPIFY_CUSTOMER_FETCH_LIMIT,
    )
    logger.debug("Fetched Shopify customers", extra={"store_id": store.id, "count": len(customers)})
    return success_response(customers, "Customers fetched successfully.")


def _toggle_store(*, store_id: str, user: User, session: Session, is_active: bool) -> ShopifyStore:
    stores = StoresRepository(session)
    store = stores.get_for_user(store_id=store_id, user_id=user.id)
    if store is None:
        raise NotFoundError(message=f"No store {store_id} for user {user.id}", public_message=_STORE_NOT_FOUND)
    return stores.set_active(store, is_active=is_active)


@router.post("/stores/{store_id}/disconnect")
def disconnect_store(store_id: str, user: User = Depends(get_current_user), session: Session = Depends(get_session)):
    store = _toggle_store(store_id=store_id, user=user, session=session, is_active=False)
    logger.info("Shopify store disconnected", extra={"store_id": store.id, "shop_domain": store.shop_domain})
    return success_response(StoreToggleResponse(id=store.id).model_dump(), "Store disconnected successfully.")


@router.post("/stores/{store_id}/reconnect")
def reconnect_store(store_id: str, user: User = Depends(get_current_user), session: Session = Depends(get_session)):
    store = _toggle_store(store_id=store_id, user=user, session=session, is_active=True)
    logger.info("Shopify store reconnected", extra={"store_id": store.id, "shop_domain": store.shop_domain})
    return success_response(StoreToggleResponse(id=store.id).model_dump(), "Store reconnected successfully.")
