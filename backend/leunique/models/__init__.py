from .base import Column, Entity
from .auth import User
from .catalog import Product
from .customers import Client, Chat
from .sales import Order, OrderItem, OrderStatus, ORDER_TRANSITIONS, compute_tax, order_total
from .public import ContactMessage, NewsletterSubscription

__all__ = [
    'Column', 'Entity',
    'User',
    'Product',
    'Client', 'Chat',
    'Order', 'OrderItem', 'OrderStatus', 'ORDER_TRANSITIONS', 'compute_tax', 'order_total',
    'ContactMessage', 'NewsletterSubscription',
]
