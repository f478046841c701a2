from typing import Optional
from pydantic import AliasChoices, BaseModel, Field
from storefront.orders.constants import DEFAULT_PAYMENT_METHOD
from storefront.schema.full_schema import OrderStatus


class CreateOrderIn(BaseModel):
    payment_method: Optional[str] = Field(DEFAULT_PAYMENT_METHOD, max_length=32)
    phone: Optional[str] = Field(None, max_length=32)
    shipping_address: Optional[str] = Field(
        None, max_length=2000, validation_alias=AliasChoices("shipping_address", "location"))


class UpdateOrderStatusIn(BaseModel):
    status: OrderStatus   # anything outside the enum is a 422
