"""Service schemas, payloads, call contexts, middleware dispatch and tracing metrics for a microservice broker."""

__version__ = "0.1.0"

__all__ = ["core", "dispatch", "convert", "payload", "context", "metrics"]