"""
Prometheus metrics for the development event tracker.
"""
from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry
import psutil
import os


class Metrics:
    """
    Centralized metrics for the tracker service.
    """

    def __init__(self, service_name: str = "devtracker", version: str = "0.1.0", registry=None):
        self.service_name = service_name
        self.version = version
        self.registry = registry or CollectorRegistry()

        # HTTP Metrics
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["service", "method", "path", "status"],
            registry=self.registry,
        )

        self.http_request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["service", "method", "path"],
            registry=self.registry,
        )

        self.http_requests_active = Gauge(
            "http_requests_active",
            "Number of active HTTP requests",
            ["service"],
            registry=self.registry,
        )
        self.http_requests_active.labels(service=service_name).set(0)

        # Application Info
        self.app_info = Info(
            "app",
            "Application information",
            registry=self.registry,
        )
        self.app_info.info({"service": service_name, "version": version})

        self.app_up = Gauge(
            "app_up",
            "Application up status (1=up, 0=down)",
            ["service", "version"],
            registry=self.registry,
        )
        self.app_up.labels(service=service_name, version=version).set(1)

        # Business Metrics - event store
        self.events_ingested_total = Counter(
            "devtracker_events_ingested_total",
            "Total events appended to the store",
            ["source", "event_type"],
            registry=self.registry,
        )

        self.event_size_bytes = Histogram(
            "devtracker_event_size_bytes",
            "Ingested request body size in bytes",
            ["source"],
            registry=self.registry,
        )

        self.queries_total = Counter(
            "devtracker_queries_total",
            "Total event queries",
            ["filtered"],
            registry=self.registry,
        )

        self.query_results = Histogram(
            "devtracker_query_results",
            "Number of events returned per query",
            buckets=(0, 1, 5, 10, 50, 100, 500, 1000, 5000),
            registry=self.registry,
        )

        self.store_resets_total = Counter(
            "devtracker_store_resets_total",
            "Total destructive store initializations",
            registry=self.registry,
        )

        self.store_errors_total = Counter(
            "devtracker_store_errors_total",
            "Store operation failures by error kind",
            ["operation", "kind"],
            registry=self.registry,
        )

        # System Metrics
        self._setup_process_metrics()

    def _setup_process_metrics(self):
        """Set up process-level metrics using psutil."""
        self.process_cpu_seconds = Counter(
            "process_cpu_seconds_total",
            "Total CPU time consumed by process",
            ["service"],
            registry=self.registry,
        )

        self.process_memory_bytes = Gauge(
            "process_resident_memory_bytes",
            "Resident memory size in bytes",
            ["service"],
            registry=self.registry,
        )

        self.process_open_fds = Gauge(
            "process_open_fds",
            "Number of open file descriptors",
            ["service"],
            registry=self.registry,
        )

        self._last_cpu_total = 0.0
        self.update_system_metrics()

    def update_system_metrics(self):
        """Update system metrics from psutil."""
        try:
            process = psutil.Process(os.getpid())

            cpu_times = process.cpu_times()
            cpu_total = cpu_times.user + cpu_times.system
            # Counter can't be set; add only the delta since the last sample
            cpu_diff = cpu_total - self._last_cpu_total
            if cpu_diff > 0:
                self.process_cpu_seconds.labels(service=self.service_name).inc(cpu_diff)
            self._last_cpu_total = cpu_total

            memory_info = process.memory_info()
            self.process_memory_bytes.labels(service=self.service_name).set(memory_info.rss)

            try:
                num_fds = process.num_fds()
                self.process_open_fds.labels(service=self.service_name).set(num_fds)
            except AttributeError:
                # num_fds() not available on all platforms
                pass

        except psutil.Error:
            # Process sampling is best effort
            pass

    def record_event_ingested(self, source: str, event_type: str, size_bytes: int):
        """Record an event appended to the store."""
        self.events_ingested_total.labels(source=source, event_type=event_type).inc()
        self.event_size_bytes.labels(source=source).observe(size_bytes)

    def record_query(self, filtered: bool, result_count: int):
        self.queries_total.labels(filtered=str(filtered).lower()).inc()
        self.query_results.observe(result_count)

    def record_store_error(self, operation: str, kind: str):
        self.store_errors_total.labels(operation=operation, kind=kind).inc()
