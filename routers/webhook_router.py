"""
Webhook Router - payment processor callback that provisions accounts
"""

import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from backend.identity.base import IdentityProvider
from backend.identity.providers import get_identity_provider
from backend.webhook.errors import WebhookError
from database import get_db
from services.webhook_service import WebhookService

logger = logging.getLogger(__name__)

webhook_router = APIRouter(prefix="/api", tags=["webhook"])


@webhook_router.post("/webhook")
async def payment_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    identities: IdentityProvider = Depends(get_identity_provider),
):
    """
    Register or renew a customer after checkout.

    Accepts JSON, form-encoded or query-string-only deliveries. The shared
    secret may arrive in the query string, the body or the x-webhook-secret
    header. Redeliveries update the existing account.

    Returns:
        200 {success, user_id, message}; 400 missing/invalid fields;
        401 bad secret; 500 configuration or provisioning failure
    """
    try:
        result = await WebhookService(db, identities).handle(request)
    except WebhookError as e:
        logger.warning(f"Webhook rejected ({e.status_code}): {e.detail}")
        return JSONResponse(status_code=e.status_code, content=e.to_body())
    return JSONResponse(status_code=200, content=result)
