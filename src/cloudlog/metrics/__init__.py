from .metrics import MetricsCollector, WriterMetrics

__all__ = ["MetricsCollector", "WriterMetrics"]
