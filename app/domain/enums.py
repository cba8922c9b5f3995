# app/domain/enums.py
from enum import Enum


class UserRole(str, Enum):
    CONSUMER = "CONSUMER"
    PRODUCER = "PRODUCER"
    ADMIN = "ADMIN"


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PAID = "PAID"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


TERMINAL_ORDER_STATUSES = frozenset(
    {OrderStatus.DELIVERED.value, OrderStatus.CANCELLED.value, OrderStatus.REFUNDED.value}
)


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
