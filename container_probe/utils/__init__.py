"""工具模块"""

from .exceptions import (ProbeMonitorError, ConfigError, CheckerError, NotificationError,
                         SchedulerError, ServerError)
from .log_manager import LogManager, LogLevel, get_logger, configure_logging, log_manager

__all__ = [
    'ProbeMonitorError', 'ConfigError', 'CheckerError', 'NotificationError',
    'SchedulerError', 'ServerError', 'LogManager', 'LogLevel', 'get_logger', 'configure_logging',
    'log_manager'
]
