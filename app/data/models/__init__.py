#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from app.data.models.user import UserModel
from app.data.models.refresh_token import RefreshTokenModel
from app.data.models.product import ProductModel
from app.data.models.discount import DiscountModel
from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.data.models.address import AddressModel
from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel

__all__ = [
    "UserModel",
    "RefreshTokenModel",
    "ProductModel",
    "DiscountModel",
    "CartModel",
    "CartItemModel",
    "AddressModel",
    "OrderModel",
    "OrderItemModel",
]
