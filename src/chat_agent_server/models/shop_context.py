"""Pydantic models for the shop context endpoint."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ShopContextRequest(BaseModel):
    """Context pushed by the embedding Shopify admin app."""

    shop: str | None = None
    shop_data: Any = Field(default=None, alias="shopData")
    user: str | None = None
    timestamp: str | None = None

    model_config = ConfigDict(populate_by_name=True)


class ShopContextResponse(BaseModel):
    """Acknowledgement of a received shop context."""

    success: bool = True
    message: str = "Shop context received"
    context: dict[str, str | None] = Field(default_factory=dict)
