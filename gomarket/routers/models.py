"""
Cart API Pydantic Models
"""
from typing import List

from pydantic import BaseModel, Field


class AddToCartRequest(BaseModel):
    id: str = Field(min_length=1)
    title: str
    image_url: str
    price: float = Field(allow_inf_nan=False)


class LineItemOut(BaseModel):
    id: str
    title: str
    image_url: str
    price: float
    quantity: int


class CartResponse(BaseModel):
    products: List[LineItemOut]
    total_items: int
