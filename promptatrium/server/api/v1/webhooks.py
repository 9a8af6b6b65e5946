"""
Payment Provider Webhook Endpoints.

PayPal retries deliveries that are not answered with a 2xx, so processing
errors are reported in the body of a 200 response instead.
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from promptatrium.core.logging_config import get_logger
from promptatrium.server.services.deps import SessionDep
from promptatrium.server.services.paypal_webhook import PayPalWebhookHandler

logger = get_logger(__name__)

router = APIRouter()


@router.post("/webhooks/paypal", summary="PayPal Webhook")
async def paypal_webhook(request: Request, session: SessionDep):
    try:
        event = await request.json()
    except ValueError:
        event = None

    if not isinstance(event, dict) or not event.get("event_type"):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": "Invalid webhook data"})

    logger.info(f"PayPal webhook received: {event['event_type']}")
    try:
        await PayPalWebhookHandler(session).handle(event)
    except Exception as e:
        logger.error(f"PayPal webhook {event['event_type']} failed: {e}", exc_info=True)
        await session.rollback()
        return {"received": True, "error": str(e)}
    return {"received": True}
