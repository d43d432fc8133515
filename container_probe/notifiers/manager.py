"""通知管理器"""

import asyncio
from typing import Dict, List, Any

from .base import BaseNotifier
from .http_notifier import HTTPNotifier
from ..models.probe import StateChange
from ..utils.exceptions import NotificationConfigError
from ..utils.log_manager import get_logger

NOTIFIER_TYPES = {
    'http': HTTPNotifier,
}


class NotificationManager:
    """通知管理器，把状态变化并发推送到所有通知器

    通知失败只记录日志，不影响探针本身。
    """

    def __init__(self, notification_configs: List[Dict[str, Any]]):
        """
        初始化通知管理器

        Args:
            notification_configs: 通知配置列表

        Raises:
            NotificationConfigError: 通知配置无效
        """
        self.notifiers: List[BaseNotifier] = []
        self.logger = get_logger('notification_manager')
        self.sent_count = 0
        self.failed_count = 0

        for notification_config in notification_configs:
            notifier_type = notification_config.get('type')
            notifier_class = NOTIFIER_TYPES.get(notifier_type)
            if notifier_class is None:
                raise NotificationConfigError(f"不支持的通知类型: {notifier_type}",
                                              notifier_name=notification_config.get('name'))
            self.add_notifier(notifier_class(notification_config['name'], notification_config))

    def add_notifier(self, notifier: BaseNotifier):
        if not isinstance(notifier, BaseNotifier):
            raise NotificationConfigError(f"通知器必须继承自BaseNotifier: {type(notifier)}")
        self.notifiers.append(notifier)
        self.logger.info(f"已添加通知器: {notifier.name} ({notifier.notifier_type})")

    async def notify(self, state_change: StateChange):
        """
        推送状态变化通知

        Args:
            state_change: 状态变化事件
        """
        if not self.notifiers:
            return

        results = await asyncio.gather(
            *(notifier.send(state_change) for notifier in self.notifiers),
            return_exceptions=True
        )

        for notifier, result in zip(self.notifiers, results):
            if result is True:
                self.sent_count += 1
            else:
                self.failed_count += 1
                self.logger.error(f"通知器 {notifier.name} 发送失败: {result}")

    def get_stats(self) -> Dict[str, Any]:
        return {
            'notifiers': [notifier.name for notifier in self.notifiers],
            'sent_count': self.sent_count,
            'failed_count': self.failed_count,
        }
