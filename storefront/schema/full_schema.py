import enum
from decimal import Decimal
from datetime import datetime
from typing import List, Optional
from uuid import UUID
from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, Numeric, Text, UniqueConstraint, Uuid
from sqlmodel import Column, SQLModel, Field, Relationship, String
from uuid6 import uuid7
from storefront.common.utils import now

MONEY = Numeric(12, 2)


class UserRoleName(str, enum.Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class Users(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: UUID = Field(
        default_factory=uuid7,
        sa_column=Column(Uuid(), unique=True, index=True, nullable=False)
    )
    email: str = Field(sa_column=Column(String(320), nullable=False, unique=True))
    name: Optional[str] = Field(default=None, sa_column=Column(String(128), nullable=True))
    role: str = Field(default=UserRoleName.CUSTOMER.value, sa_column=Column(String(32), nullable=False, default=UserRoleName.CUSTOMER.value))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))
    deleted_at: Optional[datetime] = Field(default=None,
        sa_column=Column(DateTime(timezone=True)))


# ---------------------------------------------------------------------------------------------------------

class ProductCategoryLink(SQLModel, table=True):

    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(sa_column=Column(ForeignKey("product.id", ondelete="CASCADE"), index=True, nullable=False))
    category_id: int = Field(sa_column=Column(ForeignKey("category.id", ondelete="CASCADE"), index=True, nullable=False))

    __table_args__ = (
        UniqueConstraint("product_id", "category_id", name="uq_product_category"),
    )


class Category(SQLModel, table=True):

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String(200), unique=True, nullable=False))
    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    updated_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now, onupdate=now))

    products: List["Product"] = Relationship(back_populates="categories", link_model=ProductCategoryLink)


# aggregate stock of a product is SUM(productvariant.stock_quantity) , it is never stored on the product row
class Product(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String(255), nullable=False))
    description: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))
    base_price: Decimal = Field(sa_column=Column(MONEY, nullable=False))
    sku: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    min_stock: int = Field(default=10, sa_column=Column(Integer, nullable=False, default=10))
    supplier: Optional[str] = Field(default=None, sa_column=Column(String(200), nullable=True))
    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))
    featured: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

    variants: List["ProductVariant"] = Relationship(back_populates="product", sa_relationship_kwargs={"cascade": "all, delete-orphan"})
    images: List["ProductImage"] = Relationship(back_populates="product", sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "ProductImage.display_order"})
    categories: List["Category"] = Relationship(back_populates="products", link_model=ProductCategoryLink)


class ProductImage(SQLModel, table=True):

    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(sa_column=Column(ForeignKey("product.id", ondelete="CASCADE"), nullable=False, index=True))
    image_url: str = Field(sa_column=Column(String(1024), nullable=False))
    is_primary: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    display_order: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))

    product: "Product" = Relationship(back_populates="images")


# option dimensions such as Color or Size , shared by every product
class OptionType(SQLModel, table=True):

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String(50), unique=True, nullable=False))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))


class VariantOption(SQLModel, table=True):

    id: Optional[int] = Field(default=None, primary_key=True)
    option_type_id: int = Field(sa_column=Column(ForeignKey("optiontype.id", ondelete="CASCADE"), nullable=False, index=True))
    value: str = Field(sa_column=Column(String(50), nullable=False))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))

    option_type: "OptionType" = Relationship()

    __table_args__ = (
        UniqueConstraint("option_type_id", "value", name="uq_option_type_value"),
    )


class ProductVariantOptionLink(SQLModel, table=True):

    id: Optional[int] = Field(default=None, primary_key=True)
    product_variant_id: int = Field(sa_column=Column(ForeignKey("productvariant.id", ondelete="CASCADE"), index=True, nullable=False))
    option_id: int = Field(sa_column=Column(ForeignKey("variantoption.id", ondelete="CASCADE"), index=True, nullable=False))

    __table_args__ = (
        UniqueConstraint("product_variant_id", "option_id", name="uq_variant_option"),
    )


# the purchasable unit , carries its own price , stock and optional time bounded discount
class ProductVariant(SQLModel, table=True):

    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(sa_column=Column(ForeignKey("product.id", ondelete="CASCADE"), nullable=False, index=True))
    sku: str = Field(sa_column=Column(String(100), nullable=False, unique=True))
    price: Decimal = Field(sa_column=Column(MONEY, nullable=False))
    stock_quantity: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))
    discount_price: Optional[Decimal] = Field(default=None, sa_column=Column(MONEY, nullable=True))
    discount_percentage: Optional[Decimal] = Field(default=None, sa_column=Column(Numeric(5, 2), nullable=True))
    discount_start: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    discount_end: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))

    product: "Product" = Relationship(back_populates="variants")
    options: List["VariantOption"] = Relationship(link_model=ProductVariantOptionLink, sa_relationship_kwargs={"order_by": "VariantOption.id"})

    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_variant_stock_non_negative"),
    )

#-----------------------------------------------------------------------------------------------------------

# a cart belongs to a registered user or to an anonymous session token , never both and never neither
class Cart(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(
        default=None,
        sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True, unique=True),
    )
    session_token: Optional[str] = Field(
        default=None,
        sa_column=Column(String(128), nullable=True, index=True, unique=True),
    )
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    updated_at: datetime = Field(default_factory=now,sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

    items: List["CartItem"] = Relationship(back_populates="cart", sa_relationship_kwargs={"cascade": "all, delete-orphan"})

    __table_args__ = (
        CheckConstraint("(user_id IS NULL) <> (session_token IS NULL)", name="ck_cart_single_owner"),
    )


class CartItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    cart_id: int = Field(sa_column=Column(ForeignKey("cart.id", ondelete="CASCADE"), nullable=False, index=True))
    product_variant_id: int = Field(sa_column=Column(ForeignKey("productvariant.id", ondelete="CASCADE"), nullable=False))
    quantity: int = Field(default=1, sa_column=Column(Integer, nullable=False, default=1))
    price: Decimal = Field(sa_column=Column(MONEY, nullable=False))  # snapshot taken when the line was added
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))

    cart: "Cart" = Relationship(back_populates="items")
    variant: "ProductVariant" = Relationship()

    __table_args__ = (
        UniqueConstraint("cart_id", "product_variant_id", name="uq_cart_variant"),
        CheckConstraint("quantity > 0", name="ck_cart_item_quantity_positive"),
    )

# --------------------------------------------------------------------------------------------

class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# User --> Orders (1:many) , money fields are computed once at creation and never recomputed
class Orders(SQLModel, table=True):

    id: Optional[int] = Field(default=None, primary_key=True)
    order_number: str = Field(sa_column=Column(String(32), unique=True, index=True, nullable=False))
    user_id: Optional[int] = Field(default=None, sa_column=Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True))
    status: str = Field(default=OrderStatus.PENDING.value, sa_column=Column(String(32), nullable=False, index=True))
    payment_method: str = Field(default="cash", sa_column=Column(String(32), nullable=False))
    phone: str = Field(default="", sa_column=Column(String(32), nullable=False))
    shipping_address: str = Field(default="", sa_column=Column(Text(), nullable=False))
    subtotal: Decimal = Field(sa_column=Column(MONEY, nullable=False))
    shipping_cost: Decimal = Field(sa_column=Column(MONEY, nullable=False))
    tax: Decimal = Field(sa_column=Column(MONEY, nullable=False))
    total_amount: Decimal = Field(sa_column=Column(MONEY, nullable=False))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    updated_at: datetime = Field(default_factory=now,sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

    items: List["OrderItem"] = Relationship(back_populates="order", sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "OrderItem.id"})


# frozen copy of what was bought , product edits later on never reach it
class OrderItem(SQLModel, table=True):

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(sa_column=Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True))
    product_variant_id: Optional[int] = Field(default=None, sa_column=Column(Integer, ForeignKey("productvariant.id", ondelete="SET NULL"), nullable=True))
    product_name: str = Field(sa_column=Column(String(255), nullable=False))
    product_image: Optional[str] = Field(default=None, sa_column=Column(String(1024), nullable=True))
    unit_price: Decimal = Field(sa_column=Column(MONEY, nullable=False))
    quantity: int = Field(sa_column=Column(Integer, nullable=False))
    total_price: Decimal = Field(sa_column=Column(MONEY, nullable=False))

    order: "Orders" = Relationship(back_populates="items")
