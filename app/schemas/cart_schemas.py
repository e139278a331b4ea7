from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.api_base import ShopApiModel


class CartSummary(ShopApiModel):
    """Server-computed snapshot of the cart; gross ``total`` includes VAT."""

    item_count: int = 0
    total: Decimal
    net_amount: Decimal
    vat_amount: Decimal
    currency: str = "GBP"


class CartLine(ShopApiModel):
    id: str
    quantity: int
    item_total: Decimal
    bicycle: Optional[dict] = None
    part: Optional[dict] = None

    @property
    def product(self) -> dict:
        return self.bicycle or self.part or {}

    @property
    def name(self) -> str:
        return self.product.get("name", "")


class CartView(ShopApiModel):
    id: Optional[str] = None
    items: List[CartLine] = []
    summary: CartSummary


class CartUpdateRequest(BaseModel):
    quantity: int = Field(ge=1)
