"""配置验证工具"""

from typing import Dict, Any

from .exceptions import ConfigError

SUPPORTED_CHECK_TYPES = ['http', 'command', 'tcp']
SUPPORTED_KINDS = ['liveness', 'readiness']
SUPPORTED_OVERLAP_POLICIES = ['skip', 'queue']
SUPPORTED_NOTIFIER_TYPES = ['http']
VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """配置验证器"""

    @staticmethod
    def validate_timing(owner: str, config: Dict[str, Any]) -> None:
        """
        验证时间参数（interval、timeout、start_period、retries）

        Args:
            owner: 配置所属对象描述，用于错误信息
            config: 包含时间参数的配置

        Raises:
            ConfigError: 配置验证失败
        """
        for key in ('interval', 'timeout'):
            value = config.get(key)
            if value is not None and (not _is_number(value) or value <= 0):
                raise ConfigError(f"{owner} 的 {key} 必须是正数")

        for key in ('start_period', 'startPeriod', 'initial_delay', 'initialDelay'):
            value = config.get(key)
            if value is not None and (not _is_number(value) or value < 0):
                raise ConfigError(f"{owner} 的 {key} 必须是非负数")

        retries = config.get('retries')
        if retries is not None:
            if isinstance(retries, bool) or not isinstance(retries, int) or retries < 1:
                raise ConfigError(f"{owner} 的 retries 必须是正整数")

    @staticmethod
    def validate_probe_config(probe_name: str, config: Dict[str, Any]) -> None:
        """
        验证探针配置

        Args:
            probe_name: 探针名称
            config: 探针配置

        Raises:
            ConfigError: 配置验证失败
        """
        if not isinstance(config, dict):
            raise ConfigError(f"探针 '{probe_name}' 的配置必须是字典类型")

        kind = config.get('kind', 'readiness')
        if kind not in SUPPORTED_KINDS:
            raise ConfigError(
                f"探针 '{probe_name}' 的类型 '{kind}' 不受支持。支持的类型: {SUPPORTED_KINDS}")

        ConfigValidator.validate_timing(f"探针 '{probe_name}'", config)

        policy = config.get('overlap_policy')
        if policy is not None and policy not in SUPPORTED_OVERLAP_POLICIES:
            raise ConfigError(
                f"探针 '{probe_name}' 的 overlap_policy 必须是以下值之一: "
                f"{SUPPORTED_OVERLAP_POLICIES}")

        check = config.get('check')
        if not isinstance(check, dict):
            raise ConfigError(f"探针 '{probe_name}' 缺少必需的配置项: check")

        check_type = check.get('type')
        if check_type not in SUPPORTED_CHECK_TYPES:
            raise ConfigError(
                f"探针 '{probe_name}' 的检查类型 '{check_type}' 不受支持。"
                f"支持的类型: {SUPPORTED_CHECK_TYPES}")

    @staticmethod
    def validate_notification_config(notification_config: Dict[str, Any]) -> None:
        """
        验证通知配置

        Raises:
            ConfigError: 配置验证失败
        """
        if not isinstance(notification_config, dict):
            raise ConfigError("通知配置必须是字典类型")

        for field in ('name', 'type', 'url'):
            if field not in notification_config:
                raise ConfigError(f"通知配置缺少必需的配置项: {field}")

        if notification_config['type'] not in SUPPORTED_NOTIFIER_TYPES:
            raise ConfigError(
                f"通知类型 '{notification_config['type']}' 不受支持。"
                f"支持的类型: {SUPPORTED_NOTIFIER_TYPES}")

    @staticmethod
    def validate_global_config(global_config: Dict[str, Any]) -> None:
        """
        验证全局配置

        Raises:
            ConfigError: 配置验证失败
        """
        if not isinstance(global_config, dict):
            raise ConfigError("全局配置必须是字典类型")

        log_level = global_config.get('log_level')
        if log_level is not None and log_level not in VALID_LOG_LEVELS:
            raise ConfigError(f"log_level 必须是以下值之一: {VALID_LOG_LEVELS}")

        defaults = global_config.get('defaults')
        if defaults is not None:
            if not isinstance(defaults, dict):
                raise ConfigError("defaults 配置必须是字典类型")
            ConfigValidator.validate_timing("全局默认值", defaults)

        server = global_config.get('server')
        if server is not None:
            if not isinstance(server, dict):
                raise ConfigError("server 配置必须是字典类型")
            port = server.get('port')
            if port is not None and (isinstance(port, bool) or not isinstance(port, int)
                                     or not 0 < port < 65536):
                raise ConfigError("server.port 必须是 1-65535 之间的整数")
