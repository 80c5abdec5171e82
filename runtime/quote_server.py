"""FastAPI server answering discount quotes for the till."""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from tillrules.application.quotes import QuoteRequest, quote_to_dict, run_quote
from tillrules.domain.campaign import CatalogProduct, DiscountSet
from tillrules.runtime.engine_cache import EngineCache
from tillrules.runtime.logging import get_logger

logger = get_logger(__name__)


class CartLine(BaseModel):
    line_id: str
    product_id: str
    price: Decimal
    quantity: Decimal
    batch_id: str | None = None
    product_name: str | None = None
    custom_discount_value: Decimal | None = None
    custom_discount_type: str = "percentage"
    custom_apply_fixed_once: bool = False


class CatalogEntry(BaseModel):
    id: str
    name: str


class QuoteBody(BaseModel):
    campaign_id: str
    items: list[CartLine] = Field(default_factory=list)
    catalog: list[CatalogEntry] = Field(default_factory=list)
    on: datetime.date | None = None


def create_app(campaigns: Mapping[str, DiscountSet], cache: EngineCache | None = None) -> FastAPI:
    """Build the quote app over a fixed set of campaigns.

    The engine cache belongs to the app instance (``app.state.engine_cache``)
    so each host controls its lifetime.
    """
    app = FastAPI(title="Discount Quotes")
    app.state.campaigns = dict(campaigns)
    app.state.engine_cache = cache if cache is not None else EngineCache()

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok"}

    @app.get("/campaigns")
    async def list_campaigns(request: Request) -> list[dict[str, Any]]:
        return [
            {
                "id": campaign.id,
                "name": campaign.name,
                "is_active": campaign.is_active,
                "is_default": campaign.is_default,
                "is_one_time_per_transaction": campaign.is_one_time_per_transaction,
            }
            for campaign in request.app.state.campaigns.values()
        ]

    @app.post("/quote")
    def quote(body: QuoteBody, request: Request) -> dict[str, Any]:
        campaign = request.app.state.campaigns.get(body.campaign_id)
        if campaign is None:
            raise HTTPException(status_code=404, detail=f"Unknown campaign: {body.campaign_id}")

        outcome = run_quote(
            QuoteRequest(
                campaign=campaign,
                items=[line.model_dump() for line in body.items],
                catalog=tuple(CatalogProduct(id=entry.id, name=entry.name) for entry in body.catalog),
                on=body.on,
            ),
            cache=request.app.state.engine_cache,
        )
        if outcome.status == "error":
            logger.info("Rejected quote for %s: %s", body.campaign_id, outcome.error)
            raise HTTPException(status_code=422, detail=outcome.error)
        assert outcome.result is not None
        return quote_to_dict(outcome.result)

    return app


if __name__ == "__main__":
    import uvicorn

    from tillrules.runtime.campaign_loader import load_campaigns_dir

    uvicorn.run(create_app(load_campaigns_dir()), host="127.0.0.1", port=8000)
