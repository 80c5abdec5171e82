"""Runtime loaders for campaign and cart TOML files."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from tillrules.domain.campaign import CatalogProduct, DiscountSet, build_discount_set, table_entries
from tillrules.domain.context import DiscountContext
from tillrules.runtime.logging import get_logger
from tillrules.runtime.paths import get_paths

logger = get_logger(__name__)


@dataclass(frozen=True)
class CartFile:
    """A cart read from disk, with the catalog entries it ships."""

    context: DiscountContext
    catalog: tuple[CatalogProduct, ...] = ()


def _load_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_campaign(path: str | Path) -> DiscountSet:
    """Load one campaign from a TOML file.

    Raises:
        FileNotFoundError: The file does not exist.
        ValueError: The file is not valid TOML or lacks required structure.
    """
    path = Path(path)
    campaign = build_discount_set(_load_toml(path))
    logger.debug("Loaded campaign %s (%s) from %s", campaign.id, campaign.name, path)
    return campaign


def load_campaigns_dir(directory: str | Path | None = None) -> dict[str, DiscountSet]:
    """Load every ``*.toml`` campaign in a directory, keyed by campaign id.

    Args:
        directory: Directory to scan. If None, uses the project campaigns dir.
    """
    directory = Path(directory) if directory is not None else get_paths().campaigns
    if not directory.is_dir():
        logger.warning("Campaign directory not found: %s", directory)
        return {}

    campaigns: dict[str, DiscountSet] = {}
    for path in sorted(directory.glob("*.toml")):
        campaign = load_campaign(path)
        if campaign.id in campaigns:
            raise ValueError(f"Duplicate campaign id {campaign.id!r} in {path}")
        campaigns[campaign.id] = campaign
    logger.info("Loaded %d campaigns from %s", len(campaigns), directory)
    return campaigns


def load_cart(path: str | Path) -> CartFile:
    """Load a cart (``[[items]]``) and optional ``[[catalog]]`` entries from TOML."""
    data = _load_toml(Path(path))
    owner = f"Cart {path}"
    items = table_entries(data, "items", owner)

    catalog: list[CatalogProduct] = []
    for entry in table_entries(data, "catalog", owner):
        product_id = str(entry.get("id", "")).strip()
        name = str(entry.get("name", "")).strip()
        if product_id and name:
            catalog.append(CatalogProduct(id=product_id, name=name))

    return CartFile(context=DiscountContext.from_rows(items), catalog=tuple(catalog))
