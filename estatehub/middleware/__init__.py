"""
Middleware package for the EstateHub API.
"""

from .performance import PerformanceMonitoringMiddleware, RequestMetrics, request_metrics

__all__ = [
    "PerformanceMonitoringMiddleware",
    "RequestMetrics",
    "request_metrics"
]
