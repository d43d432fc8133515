"""探针检查器基类"""

import time
from abc import ABC, abstractmethod
from typing import Dict, Any, Mapping, Optional

from ..models.probe import CheckOutcome
from ..utils.log_manager import get_logger


class BaseProbeChecker(ABC):
    """探针检查器抽象基类

    每次 check 只发起一次尝试，成功、失败或超时都以 CheckOutcome 返回，
    检查层面的错误不向调用方抛出。
    """

    check_type = 'base'

    def __init__(self, probe_name: str, config: Mapping[str, Any], timeout: float = 10):
        """
        初始化检查器

        Args:
            probe_name: 探针名称
            config: 检查配置（探针配置中的 check 段）
            timeout: 单次检查超时时间（秒）
        """
        self.probe_name = probe_name
        self.config = config
        self.timeout = timeout
        self.logger = get_logger(f'checker.{self.check_type}.{probe_name}')

    @abstractmethod
    async def check(self) -> CheckOutcome:
        """
        执行一次检查

        Returns:
            CheckOutcome: 检查结果
        """

    @abstractmethod
    def validate_config(self) -> bool:
        """
        验证配置参数是否有效

        Returns:
            bool: 配置是否有效
        """

    def _outcome(self, started: float, success: bool, error_message: Optional[str] = None,
                 timed_out: bool = False,
                 metadata: Optional[Dict[str, Any]] = None) -> CheckOutcome:
        """根据开始时间构建检查结果"""
        return CheckOutcome(
            probe_name=self.probe_name,
            check_type=self.check_type,
            success=success,
            response_time=time.monotonic() - started,
            error_message=error_message,
            timed_out=timed_out,
            metadata=metadata or {}
        )
