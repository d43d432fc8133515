"""探针检查器模块"""

from .base import BaseProbeChecker
from .factory import ProbeCheckerFactory, probe_checker_factory, register_checker
from .command_checker import CommandProbeChecker
from .http_checker import HTTPProbeChecker
from .tcp_checker import TCPProbeChecker

__all__ = ['BaseProbeChecker', 'ProbeCheckerFactory', 'probe_checker_factory',
           'register_checker', 'CommandProbeChecker', 'HTTPProbeChecker',
           'TCPProbeChecker']
