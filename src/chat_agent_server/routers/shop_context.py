"""Endpoint receiving context from the embedding Shopify admin app."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from chat_agent_server.models.shop_context import (
    ShopContextRequest,
    ShopContextResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["shop-context"])


@router.post("/shop-context", response_model=ShopContextResponse)
async def receive_shop_context(request: Request):
    """Store the latest shop context for use in the system prompt.

    Returns 400 with {"error": "Invalid shop context"} if the body is not a
    valid JSON object.
    """
    try:
        body = await request.json()
        context = ShopContextRequest.model_validate(body)
    except ValueError as e:
        logger.error(f"Failed to process shop context: {e}")
        return JSONResponse(status_code=400, content={"error": "Invalid shop context"})

    logger.info(
        f"Received shop context: shop={context.shop} user={context.user} "
        f"timestamp={context.timestamp}"
    )
    request.app.state.shop_context = context.model_dump()

    return ShopContextResponse(context={"shop": context.shop, "user": context.user})
