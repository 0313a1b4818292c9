from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
from enum import Enum

if TYPE_CHECKING:
    from .wishlist import WishlistItem
    from .order import Order
    from .vendor_application import VendorApplication


class UserRole(str, Enum):
    CUSTOMER = "CUSTOMER"
    VENDOR = "VENDOR"
    ADMIN = "ADMIN"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    name: Optional[str] = None
    phone: Optional[str] = None
    password_hash: str

    role: UserRole = Field(default=UserRole.CUSTOMER)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    wishlist_items: List["WishlistItem"] = Relationship(back_populates="user")
    orders: List["Order"] = Relationship(back_populates="user")
    vendor_application: Optional["VendorApplication"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"uselist": False}
    )
