# Limit orders
from .models import LimitOrder, OrderStatus
from .store import OrderStore
from .monitor import OrderMonitor, CycleReport

__all__ = ["LimitOrder", "OrderStatus", "OrderStore", "OrderMonitor", "CycleReport"]
