from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"
    verbose_name = "Orders"

    def ready(self) -> None:
        """Wire the order event handlers into the in-process bus."""
        from modules.orders import handlers
        from modules.orders.events import (
            OrderCancelled,
            OrderCreated,
            OrderStatusChanged,
        )
        from shared.infrastructure.bus import event_bus

        for event_class, handler in (
            (OrderCreated, handlers.order_created_handler),
            (OrderStatusChanged, handlers.order_status_changed_handler),
            (OrderCancelled, handlers.order_cancelled_handler),
        ):
            event_bus.subscribe(event_class, handler)
