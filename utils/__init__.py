"""
Utilities package for the Talkscriber client.

Contains shared utilities for logging, metrics and configuration.
"""

from .logging_config import setup_logging, get_logger, auto_configure
from .metrics import MetricsCollector, TimerContext, log_performance, get_metrics_collector
from .config import get_config, set_config, is_development, is_production, is_testing

__all__ = [
    'setup_logging',
    'get_logger',
    'auto_configure',
    'MetricsCollector',
    'TimerContext',
    'log_performance',
    'get_metrics_collector',
    'get_config',
    'set_config',
    'is_development',
    'is_production',
    'is_testing'
]
