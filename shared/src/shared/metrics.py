"""Prometheus metrics shared by all workers."""
import structlog
from prometheus_client import Counter, Gauge, Histogram, start_http_server

MESSAGES_TOTAL = Counter(
    "pipeline_messages_total",
    "Messages handled by a worker",
    ["queue", "outcome"],
)
MESSAGE_SECONDS = Histogram(
    "pipeline_message_seconds",
    "Time spent handling one message",
    ["queue"],
)
QUEUE_DEPTH = Gauge(
    "pipeline_queue_depth",
    "Last observed queue length",
    ["queue"],
)
FILES_SCANNED = Counter(
    "pipeline_files_scanned_total",
    "Files visited by the change detector",
    ["status"],
)
EMBEDDINGS_STORED = Counter(
    "pipeline_embeddings_stored_total",
    "Vectors written to both stores",
    ["collection"],
)


def start_metrics_server(port: int) -> None:
    if port <= 0:
        return
    start_http_server(port)
    structlog.get_logger().info("metrics_server_started", port=port)
