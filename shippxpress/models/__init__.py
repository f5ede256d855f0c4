from shippxpress.models.client import Client
from shippxpress.models.customer import Customer
from shippxpress.models.zone import Zone
from shippxpress.models.driver import Driver
from shippxpress.models.route_batch import RouteBatch
from shippxpress.models.order import Order, OrderStatusHistory, OrderSequence
from shippxpress.models.activity_log import ActivityLog

__all__ = [
    "Client", "Customer", "Zone", "Driver", "RouteBatch",
    "Order", "OrderStatusHistory", "OrderSequence", "ActivityLog",
]
