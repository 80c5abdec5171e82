"""Caller-owned cache of discount engines.

Building an engine validates every rule in a campaign, so hosts serving many
quotes keep engines around. The cache is an ordinary object the host creates
and owns; nothing here is module-global.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence

from tillrules.domain.campaign import CatalogProduct, DiscountSet
from tillrules.engine import DiscountEngine, DiscountTracer
from tillrules.runtime.logging import get_logger

logger = get_logger(__name__)


class EngineCache:
    """Maps campaign id -> engine, rebuilding when the campaign changes."""

    def __init__(self, tracer: DiscountTracer | None = None) -> None:
        self._tracer = tracer
        self._engines: dict[str, DiscountEngine] = {}
        self._lock = threading.Lock()

    def get(self, campaign: DiscountSet, catalog: Sequence[CatalogProduct] | None = None) -> DiscountEngine:
        """Return the engine for ``campaign``, building it if missing or stale.

        An engine is stale when the cached campaign no longer equals the one
        passed in (the campaign was edited and reloaded). A non-empty catalog
        always builds a fresh, uncached engine since display names may differ
        between callers.
        """
        if catalog:
            return DiscountEngine(campaign, catalog=catalog, tracer=self._tracer)

        with self._lock:
            engine = self._engines.get(campaign.id)
            if engine is not None and engine.campaign == campaign:
                return engine
            if engine is not None:
                logger.info("Campaign %s changed; rebuilding engine", campaign.id)
            engine = DiscountEngine(campaign, tracer=self._tracer)
            self._engines[campaign.id] = engine
            return engine

    def invalidate(self, campaign_id: str) -> bool:
        with self._lock:
            return self._engines.pop(campaign_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._engines.clear()

    def __contains__(self, campaign_id: object) -> bool:
        return campaign_id in self._engines

    def __len__(self) -> int:
        return len(self._engines)
