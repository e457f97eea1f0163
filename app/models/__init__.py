from .address import Address
from .banner import Banner
from .cart import Cart
from .cart_item import CartItem
from .category import Category
from .coupon import Coupon
from .flash_deal import FlashDeal
from .order import Order
from .order_item import OrderItem
from .payment_event import PaymentEvent
from .product import Product
from .review import Review
from .user import User
from .wishlist_item import WishlistItem


__all__ = [
    "Address",
    "Banner",
    "Cart",
    "CartItem",
    "Category",
    "Coupon",
    "FlashDeal",
    "Order",
    "OrderItem",
    "PaymentEvent",
    "Product",
    "Review",
    "User",
    "WishlistItem",
]
