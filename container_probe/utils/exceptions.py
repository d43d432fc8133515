"""自定义异常类和错误代码

检查本身的失败（超时、连接被拒绝、非0退出码）不是异常，而是失败的
CheckOutcome；这里的异常只用于配置、组装和外围组件的错误。
"""

import traceback
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(Enum):
    """错误代码枚举"""
    # 通用错误 (1000-1999)
    UNKNOWN_ERROR = 1000

    # 配置错误 (2000-2999)
    CONFIG_FILE_NOT_FOUND = 2000
    CONFIG_PARSE_ERROR = 2001
    CONFIG_VALIDATION_ERROR = 2002

    # 检查器错误 (3000-3999)
    CHECKER_INITIALIZATION_ERROR = 3000

    # 通知错误 (4000-4999)
    NOTIFICATION_CONFIG_ERROR = 4000
    NOTIFICATION_SEND_ERROR = 4001
    NOTIFICATION_TEMPLATE_ERROR = 4002

    # 调度错误 (5000-5999)
    SCHEDULER_ERROR = 5000

    # 探针端点错误 (6000-6999)
    SERVER_ERROR = 6000


class ProbeMonitorError(Exception):
    """探针系统基础异常类

    子类通过 default_code / default_recoverable 声明默认值，
    额外的关键字参数（如 probe_name）为非空时并入 details。
    """

    default_code = ErrorCode.UNKNOWN_ERROR
    default_recoverable = True

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: Optional[bool] = None,
        **context: Any
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = dict(details or {})
        self.details.update({key: value for key, value in context.items() if value is not None})
        self.cause = cause
        self.recoverable = self.default_recoverable if recoverable is None else recoverable
        self.timestamp = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            'error_code': self.error_code.value,
            'error_name': self.error_code.name,
            'message': self.message,
            'details': self.details,
            'recoverable': self.recoverable,
            'timestamp': self.timestamp.isoformat(),
            'cause': str(self.cause) if self.cause else None,
            'traceback': ''.join(traceback.format_exception(
                type(self.cause), self.cause, self.cause.__traceback__)) if self.cause else None
        }

    def format_error(self) -> str:
        """格式化错误信息，用于命令行输出"""
        parts = [f"[{self.error_code.name}] {self.message}"]
        if self.details:
            parts.append("(详情: " + ", ".join(f"{k}={v}" for k, v in self.details.items()) + ")")
        if self.cause:
            parts.append(f"(原因: {self.cause})")
        return " ".join(parts)


class ConfigError(ProbeMonitorError):
    """配置相关异常，启动阶段不可恢复"""

    default_code = ErrorCode.CONFIG_VALIDATION_ERROR
    default_recoverable = False

    def __init__(self, message: str, error_code: Optional[ErrorCode] = None,
                 config_path: Optional[str] = None, **kwargs):
        super().__init__(message, error_code, config_path=config_path, **kwargs)


class CheckerError(ProbeMonitorError):
    """检查器注册或创建失败"""

    default_code = ErrorCode.CHECKER_INITIALIZATION_ERROR

    def __init__(self, message: str, error_code: Optional[ErrorCode] = None,
                 probe_name: Optional[str] = None, check_type: Optional[str] = None, **kwargs):
        super().__init__(message, error_code, probe_name=probe_name, check_type=check_type,
                         **kwargs)


class NotificationError(ProbeMonitorError):
    """通知相关异常"""

    default_code = ErrorCode.NOTIFICATION_SEND_ERROR

    def __init__(self, message: str, error_code: Optional[ErrorCode] = None,
                 notifier_name: Optional[str] = None, **kwargs):
        super().__init__(message, error_code, notifier_name=notifier_name, **kwargs)


class NotificationConfigError(NotificationError):
    """通知配置异常"""

    default_code = ErrorCode.NOTIFICATION_CONFIG_ERROR
    default_recoverable = False

    def __init__(self, message: str, notifier_name: Optional[str] = None, **kwargs):
        super().__init__(message, notifier_name=notifier_name, **kwargs)


class NotificationSendError(NotificationError):
    """通知发送异常，下一次状态变化时会再次尝试"""

    def __init__(self, message: str, notifier_name: Optional[str] = None, **kwargs):
        super().__init__(message, notifier_name=notifier_name, **kwargs)


class SchedulerError(ProbeMonitorError):
    """调度器相关异常"""

    default_code = ErrorCode.SCHEDULER_ERROR

    def __init__(self, message: str, error_code: Optional[ErrorCode] = None,
                 probe_name: Optional[str] = None, **kwargs):
        super().__init__(message, error_code, probe_name=probe_name, **kwargs)


class ServerError(ProbeMonitorError):
    """探针端点启动或运行失败"""

    default_code = ErrorCode.SERVER_ERROR
    default_recoverable = False

    def __init__(self, message: str, host: Optional[str] = None,
                 port: Optional[int] = None, **kwargs):
        super().__init__(message, host=host, port=port, **kwargs)
