from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from app.core.config import Settings
from app.services.style_models import PriceRange

# Characters JavaScript's encodeURIComponent leaves alone.
_URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass(frozen=True, slots=True)
class RetailerTemplate:
    retailer_id: str
    display_name: str
    search_url: str
    keyword_param: str
    price_param: str
    price_style: str = "plain"
    price_prefix: str = ""

    def price_filter(self, price_range: PriceRange) -> str:
        if self.price_style == "cents":
            band = f"{_cents(price_range.min)}-{_cents(price_range.max)}"
        else:
            band = f"{_amount(price_range.min)}-{_amount(price_range.max)}"
        return quote(f"{self.price_prefix}{band}", safe=_URI_COMPONENT_SAFE)

    def search_link(self, search_term: str, price_range: PriceRange) -> str:
        keyword = quote(search_term, safe=_URI_COMPONENT_SAFE)
        return f"{self.search_url}?{self.keyword_param}={keyword}&{self.price_param}={self.price_filter(price_range)}"


DEFAULT_RETAILERS: tuple[RetailerTemplate, ...] = (
    RetailerTemplate(
        retailer_id="amazon",
        display_name="Amazon",
        search_url="https://www.amazon.com/s",
        keyword_param="k",
        price_param="rh",
        price_style="cents",
        price_prefix="p_36:",
    ),
    RetailerTemplate(
        retailer_id="nordstrom",
        display_name="Nordstrom",
        search_url="https://www.nordstrom.com/sr",
        keyword_param="keyword",
        price_param="price",
    ),
    RetailerTemplate(
        retailer_id="asos",
        display_name="ASOS",
        search_url="https://www.asos.com/us/search/",
        keyword_param="q",
        price_param="price",
    ),
)


class StoreLinkBuilder:
    def __init__(self, retailers: tuple[RetailerTemplate, ...] | list[RetailerTemplate] = DEFAULT_RETAILERS) -> None:
        self.retailers = tuple(retailers)

    @property
    def store_names(self) -> list[str]:
        return [r.display_name for r in self.retailers]

    def build_links(self, search_term: str, price_range: PriceRange) -> dict[str, str]:
        return {r.retailer_id: r.search_link(search_term, price_range) for r in self.retailers}


def build_store_link_builder(cfg: Settings) -> StoreLinkBuilder:
    known = {r.retailer_id: r for r in DEFAULT_RETAILERS}
    selected: list[RetailerTemplate] = []
    for rid in cfg.retailer_ids:
        if rid not in known:
            raise ValueError(f"Unknown retailer in ENABLED_RETAILERS: {rid}")
        selected.append(known[rid])
    return StoreLinkBuilder(selected or DEFAULT_RETAILERS)


def _cents(value: float) -> int:
    return int(round(value * 100))


def _amount(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"
