"""通知器基类"""

from abc import ABC, abstractmethod
from typing import Dict, Any

from ..models.probe import StateChange


class BaseNotifier(ABC):
    """状态变化通知器抽象基类"""

    def __init__(self, name: str, config: Dict[str, Any]):
        """
        初始化通知器

        Args:
            name: 通知器名称
            config: 通知器配置参数
        """
        self.name = name
        self.config = config
        self.notifier_type = self.__class__.__name__.replace('Notifier', '').lower()

    @abstractmethod
    async def send(self, state_change: StateChange) -> bool:
        """
        发送状态变化通知

        Returns:
            bool: 发送是否成功
        """

    @abstractmethod
    def validate_config(self) -> bool:
        """验证配置参数是否有效"""

    def get_timeout(self) -> float:
        return self.config.get('timeout', 10)
