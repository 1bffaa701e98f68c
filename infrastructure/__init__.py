"""Infrastructure layer — operational concerns for the analyzer service.

Modules:
    metrics     Prometheus metrics registry.
"""
