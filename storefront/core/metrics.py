from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "path", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "HTTP request latency", ["method", "path"]
)
ORDERS_CREATED = Counter(
    "storefront_orders_created_total", "Orders created", ["source", "shipping_tier"]
)
ORDER_TRANSITIONS = Counter(
    "storefront_order_transitions_total", "Order status transitions", ["from_status", "to_status"]
)
