from paygate.models.product import Product
from paygate.models.purchase import Purchase

__all__ = ["Product", "Purchase"]
