"""
streamrecord - schema-driven telemetry records

Normalizes heterogeneous runtime events (HTTP/gRPC requests, service
logs, lifecycle events, action invocations, domain events) into one
flat, namespaced record shape for columnar storage or JSON log lines.
"""

__version__ = "0.1.0"
