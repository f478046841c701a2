from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator


class VariantOptionIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)     # Color , Size ...
    value: str = Field(..., min_length=1, max_length=50)

    model_config = {"str_strip_whitespace": True}


class DiscountWindowMixin(BaseModel):

    @model_validator(mode="after")
    def check_discount_window(self):
        if self.discount_start and self.discount_end and self.discount_end < self.discount_start:
            raise ValueError("discount_end must not be before discount_start")
        return self


class VariantCreateIn(DiscountWindowMixin):
    sku: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    stock_quantity: int = Field(0, ge=0)
    is_active: bool = True
    discount_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    discount_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    discount_start: Optional[datetime] = None
    discount_end: Optional[datetime] = None
    options: List[VariantOptionIn] = Field(default_factory=list)


class ProductCreateIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    base_price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    sku: Optional[str] = Field(None, max_length=100)
    min_stock: int = Field(10, ge=0)
    supplier: Optional[str] = Field(None, max_length=200)
    is_active: bool = True
    featured: bool = False
    category_names: Optional[List[str]] = None
    image_urls: Optional[List[str]] = None
    variants: List[VariantCreateIn] = Field(..., min_length=1)


class ProductUpdateIn(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    base_price: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    sku: Optional[str] = Field(None, max_length=100)
    min_stock: Optional[int] = Field(None, ge=0)
    supplier: Optional[str] = Field(None, max_length=200)
    is_active: Optional[bool] = None
    featured: Optional[bool] = None
    category_names: Optional[List[str]] = None
    image_urls: Optional[List[str]] = None

    model_config = {"extra": "forbid"}   # for any extra input fields in model raise 422 at pydantic level


class VariantUpdateIn(DiscountWindowMixin):
    price: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    stock_quantity: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    discount_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    discount_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    discount_start: Optional[datetime] = None
    discount_end: Optional[datetime] = None
    options: Optional[List[VariantOptionIn]] = None

    model_config = {"extra": "forbid"}


class VariantStockIn(BaseModel):
    product_variant_id: int
    stock_quantity: int = Field(..., ge=0)
