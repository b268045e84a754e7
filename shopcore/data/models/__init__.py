#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from shopcore.data.models.customer import CustomerModel
from shopcore.data.models.product import ProductModel, VariantModel
from shopcore.data.models.cart_line import CartLineModel
from shopcore.data.models.order import OrderModel, OrderItemModel
from shopcore.data.models.payment import PaymentModel
from shopcore.data.models.inventory import InventoryTransactionModel

__all__ = [
    "CustomerModel",
    "ProductModel",
    "VariantModel",
    "CartLineModel",
    "OrderModel",
    "OrderItemModel",
    "PaymentModel",
    "InventoryTransactionModel",
]
