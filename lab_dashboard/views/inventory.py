"""Stok görünümü - ürün bazında toplam stok ve düşük stok sayacı."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from lab_dashboard.data import queries
from lab_dashboard.data.rest_client import RestClient, env_number
from lab_dashboard.metrics.aggregation import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    low_stock_count,
    product_stock_total,
)
from lab_dashboard.models.lab import Product, ProductStock
from lab_dashboard.views.base_view import BaseView

logger = logging.getLogger(__name__)


@dataclass
class InventoryOverview:
    total_products: int = 0
    low_stock: int = 0
    products: list[ProductStock] = field(default_factory=list)


def summarize_product(product: Product, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> ProductStock:
    total = product_stock_total(product)
    return ProductStock(
        product_id=product.id,
        name=product.name,
        category=product.category,
        brand=product.brand,
        variant_count=len(product.variants),
        total_stock=total,
        is_low=total < threshold,
    )


class InventoryView(BaseView):
    """Malzeme ve stok ekranı."""

    def __init__(
        self,
        client: Optional[RestClient] = None,
        threshold: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(view_name="InventoryView", client=client, **kwargs)
        if threshold is None:
            threshold = env_number("LAB_DASHBOARD_LOW_STOCK_THRESHOLD", DEFAULT_LOW_STOCK_THRESHOLD, int)
        if threshold < 0:
            raise ValueError("Stok eşiği negatif olamaz")
        self.threshold = threshold

    def load(self) -> InventoryOverview:
        client = self.client
        results = self.gather({"products": lambda: queries.inventory_products(client)})

        products = [Product.from_row(row) for row in results["products"]]
        low = low_stock_count(products, self.threshold)
        if low:
            logger.warning("%d üründe düşük stok tespit edildi (eşik=%d)", low, self.threshold)

        return InventoryOverview(
            total_products=len(products),
            low_stock=low,
            products=[summarize_product(p, self.threshold) for p in products],
        )
