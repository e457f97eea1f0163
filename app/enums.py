import enum


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    CREATED = "CREATED"
    VERIFICATION_PENDING = "VERIFICATION_PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"


class CouponType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class ReviewStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class FlashDealType(str, enum.Enum):
    DISCOUNT = "discount"
    SHIPPING = "shipping"
    NEW_ARRIVAL = "new_arrival"
    CUSTOM = "custom"


class ButtonVariant(str, enum.Enum):
    DEFAULT = "default"
    OUTLINE = "outline"


class DashboardPeriod(str, enum.Enum):
    SEVEN_DAYS = "7d"
    THIRTY_DAYS = "30d"
    NINETY_DAYS = "90d"
    ONE_YEAR = "1y"
    ALL = "all"


class RevenueGrouping(str, enum.Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class ProductSortField(str, enum.Enum):
    CREATED_AT = "created_at"
    PRICE = "price"
    NAME = "name"
    RATING = "rating"
    SALES_COUNT = "sales_count"


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"
