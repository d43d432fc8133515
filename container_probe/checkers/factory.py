"""检查器工厂"""

from typing import Dict, Type

from .base import BaseProbeChecker
from ..models.probe import ProbeConfig
from ..utils.exceptions import CheckerError


class ProbeCheckerFactory:
    """检查器工厂类，按检查类型创建检查器"""

    def __init__(self):
        self._checkers: Dict[str, Type[BaseProbeChecker]] = {}

    def register_checker(self, check_type: str, checker_class: Type[BaseProbeChecker]):
        """
        注册检查器类

        Args:
            check_type: 检查类型名称
            checker_class: 检查器类

        Raises:
            CheckerError: 注册失败
        """
        if not issubclass(checker_class, BaseProbeChecker):
            raise CheckerError(f"检查器类 {checker_class.__name__} 必须继承自 BaseProbeChecker")

        if check_type in self._checkers:
            raise CheckerError(f"检查类型 '{check_type}' 已经注册了检查器")

        self._checkers[check_type] = checker_class

    def unregister_checker(self, check_type: str):
        """取消注册检查器类"""
        self._checkers.pop(check_type, None)

    def create_checker(self, probe_config: ProbeConfig) -> BaseProbeChecker:
        """
        为探针创建检查器实例

        Args:
            probe_config: 探针配置

        Returns:
            BaseProbeChecker: 检查器实例

        Raises:
            CheckerError: 创建失败
        """
        check_type = probe_config.check.get('type')
        if not check_type:
            raise CheckerError(f"探针 '{probe_config.name}' 缺少检查类型配置",
                               probe_name=probe_config.name)

        if check_type not in self._checkers:
            raise CheckerError(f"不支持的检查类型: '{check_type}'",
                               probe_name=probe_config.name, check_type=check_type)

        checker = self._checkers[check_type](probe_config.name, probe_config.check,
                                             probe_config.timeout)
        if not checker.validate_config():
            raise CheckerError(f"探针 '{probe_config.name}' 的检查配置验证失败",
                               probe_name=probe_config.name, check_type=check_type)
        return checker

    def get_supported_types(self) -> list:
        """获取支持的检查类型列表"""
        return list(self._checkers.keys())

    def is_type_supported(self, check_type: str) -> bool:
        return check_type in self._checkers


# 全局工厂实例
probe_checker_factory = ProbeCheckerFactory()


def register_checker(check_type: str):
    """
    装饰器：注册检查器类

    Args:
        check_type: 检查类型名称
    """
    def decorator(checker_class: Type[BaseProbeChecker]):
        probe_checker_factory.register_checker(check_type, checker_class)
        return checker_class

    return decorator
