"""
Observability: request correlation, redacting log formatter, domain events, health checks.
"""
from .events import log_domain_event

__all__ = ['log_domain_event']
