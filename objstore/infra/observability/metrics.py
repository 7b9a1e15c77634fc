from prometheus_client import Counter, Histogram

# Low-cardinality labels only: bucket names and object keys never become labels.
OPERATIONS = Counter(
    "storage_operations_total",
    "Total object storage operations",
    ["provider", "operation", "outcome"],
)

LATENCY = Histogram(
    "storage_operation_duration_seconds",
    "Object storage operation latency in seconds",
    ["provider", "operation"],
)
