from .enums import UserRole, ShiftType, TableStatus, OrderStatus, PaymentMethod
from .auth import User, SessionToken
from .shifts import BarSession
from .floor import BarTable
from .catalog import Category, Product
from .customers import CreditClient
from .orders import Order, OrderItem
from .payments import Payment
from .timekeeping import Absence

__all__ = [
    'UserRole', 'ShiftType', 'TableStatus', 'OrderStatus', 'PaymentMethod',
    'User', 'SessionToken',
    'BarSession',
    'BarTable',
    'Category', 'Product',
    'CreditClient',
    'Order', 'OrderItem',
    'Payment',
    'Absence',
]
