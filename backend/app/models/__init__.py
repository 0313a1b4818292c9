from .user import User, UserRole
from .category import Category
from .product import Product, ProductImage
from .supplier import Supplier, SupplierStatus
from .coupon import Coupon, CouponUsage, CouponProductLink, CouponCategoryLink, DiscountType
from .blog import BlogPost, BlogCategory, BlogPostCategoryLink
from .event import Event, EventContentType
from .vendor_application import VendorApplication, VendorApplicationStatus
from .wishlist import WishlistItem
from .order import Order, OrderItem, OrderStatus
from .review import Review, ReviewStatus
from .audit_log import AuditLog
from .site_settings import SiteSettings

__all__ = [
    "User", "UserRole",
    "Category",
    "Product", "ProductImage",
    "Supplier", "SupplierStatus",
    "Coupon", "CouponUsage", "CouponProductLink", "CouponCategoryLink", "DiscountType",
    "BlogPost", "BlogCategory", "BlogPostCategoryLink",
    "Event", "EventContentType",
    "VendorApplication", "VendorApplicationStatus",
    "WishlistItem",
    "Order", "OrderItem", "OrderStatus",
    "Review", "ReviewStatus",
    "AuditLog",
    "SiteSettings",
]
