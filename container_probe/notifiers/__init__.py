"""状态变化通知模块"""

from .base import BaseNotifier
from .http_notifier import HTTPNotifier
from .manager import NotificationManager

__all__ = ['BaseNotifier', 'HTTPNotifier', 'NotificationManager']
