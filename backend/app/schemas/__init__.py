from .category import CategoryResponse, AdminCategoryResponse
from .product import ProductResponse, ProductListResponse, ProductDetailResponse
from .coupon import CouponResponse, CouponDetailResponse
from .order import OrderResponse, OrderListResponse

__all__ = [
    "CategoryResponse", "AdminCategoryResponse",
    "ProductResponse", "ProductListResponse", "ProductDetailResponse",
    "CouponResponse", "CouponDetailResponse",
    "OrderResponse", "OrderListResponse",
]
