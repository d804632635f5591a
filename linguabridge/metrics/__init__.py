"""Centralized metrics module for Prometheus instrumentation.

Usage:
    from linguabridge.metrics.translation_metrics import route_decisions_total
"""

from linguabridge.metrics import translation_metrics

__all__ = ["translation_metrics"]
