# storefront/domain/enums.py
import enum


class CartStatus(str, enum.Enum):
    active = "active"
    ordered = "ordered"
    expired = "expired"


class OrderStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"
    refunded = "refunded"


class StockAvailability(str, enum.Enum):
    in_stock = "in_stock"
    out_stock = "out_stock"


class ProductSort(str, enum.Enum):
    price_asc = "price_asc"
    price_desc = "price_desc"
    name_asc = "name_asc"
    name_desc = "name_desc"
    newest = "newest"
    discount_desc = "discount_desc"
