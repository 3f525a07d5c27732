from prometheus_client import Counter, Gauge

webhook_counter = Counter(
    "buildbridge_num_webhook", "Total number of webhooks", labelnames=["event"]
)

trigger_counter = Counter(
    "buildbridge_num_trigger", "Number of build triggers received from comments"
)

build_counter = Counter(
    "buildbridge_num_build",
    "Number of completed builds seen by the engine",
    labelnames=["result"],
)

comment_counter = Counter(
    "buildbridge_num_comment", "Number of result comments posted to pull requests"
)

error_counter = Counter(
    "buildbridge_errors", "Total number of errors", labelnames=["context"]
)

eviction_counter = Counter(
    "buildbridge_cache_evictions",
    "Number of correlation records evicted from the cache",
    labelnames=["state"],
)

cache_size = Gauge("buildbridge_cache_size", "Number of tracked correlation records")
