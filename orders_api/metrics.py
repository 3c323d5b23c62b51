from prometheus_client import CollectorRegistry, Counter, Histogram

CREATE_OUTCOMES = ("accepted", "invalid_input", "publish_failed")


class ApiMetrics:
    """Collectors for the orders API, bound to one registry per process."""

    def __init__(self, registry: CollectorRegistry = None):
        self.registry = registry if registry is not None else CollectorRegistry()

        self.http_requests = Counter(
            "orders_http_requests_total",
            "Total HTTP requests received by orders-api",
            ["handler", "method", "code"],
            registry=self.registry,
        )
        self.http_duration = Histogram(
            "orders_http_request_duration_seconds",
            "Duration of HTTP requests for orders-api",
            ["handler", "method"],
            registry=self.registry,
        )
        self.create_outcomes = Counter(
            "orders_create_total",
            "Order creation requests by outcome",
            ["outcome"],
            registry=self.registry,
        )
        self.published = Counter(
            "orders_published_total",
            "Total number of orders published to RabbitMQ",
            registry=self.registry,
        )
        self.publish_failures = Counter(
            "orders_publish_failures_total",
            "Total number of failures publishing orders to RabbitMQ",
            registry=self.registry,
        )
        for outcome in CREATE_OUTCOMES:
            self.create_outcomes.labels(outcome=outcome)

    def count_create(self, outcome: str):
        self.create_outcomes.labels(outcome=outcome).inc()
        if outcome == "accepted":
            self.published.inc()
        elif outcome == "publish_failed":
            self.publish_failures.inc()
