from dataclasses import dataclass
from typing import Optional, Union
from pydantic import BaseModel, Field, model_validator


@dataclass(frozen=True)
class RegisteredOwner:
    user_id: int


@dataclass(frozen=True)
class GuestOwner:
    session_token: str


CartOwner = Union[RegisteredOwner, GuestOwner]


class AddToCartIn(BaseModel):
    product_variant_id: Optional[int] = Field(None, gt=0)
    product_id: Optional[int] = Field(None, gt=0)
    quantity: int = Field(1, gt=0, le=1000)

    @model_validator(mode="after")
    def check_target(self):
        if self.product_variant_id is None and self.product_id is None:
            raise ValueError("either product_variant_id or product_id is required")
        return self


class UpdateCartItemIn(BaseModel):
    # zero or negative removes the line
    quantity: int = Field(..., le=1000)
