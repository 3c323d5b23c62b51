from prometheus_client import CollectorRegistry, Counter

from orders_common.messages import Outcome


class WorkerMetrics:

    def __init__(self, registry: CollectorRegistry = None):
        self.registry = registry if registry is not None else CollectorRegistry()

        self.messages = Counter(
            "orders_worker_messages_total",
            "Total messages processed by the worker",
            ["status"],  # ok | decode_error | db_error
            registry=self.registry,
        )
        self.db_errors = Counter(
            "orders_worker_db_errors_total",
            "Total DB errors in worker",
            registry=self.registry,
        )
        for outcome in Outcome:
            self.messages.labels(status=outcome.value)

    def count(self, outcome: Outcome):
        self.messages.labels(status=outcome.value).inc()
        if outcome is Outcome.DB_ERROR:
            self.db_errors.inc()
