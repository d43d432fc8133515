"""配置管理器"""

import os
from typing import Dict, Any, List, Optional

import yaml

from ..models.probe import ProbeConfig
from ..utils.config_validator import ConfigValidator
from ..utils.exceptions import ConfigError, ErrorCode
from ..utils.log_manager import get_logger

DEFAULT_SERVER_HOST = '0.0.0.0'
DEFAULT_SERVER_PORT = 8081


class ConfigManager:
    """配置管理器，负责YAML配置文件的加载、解析和验证

    配置只在进程启动时读取一次，探针配置创建后不再变化。
    """

    def __init__(self, config_path: str):
        """
        初始化配置管理器

        Args:
            config_path: 配置文件路径
        """
        self.config_path = config_path
        self.config: Dict[str, Any] = {}
        self.logger = get_logger('config_manager')

    def load_config(self) -> Dict[str, Any]:
        """
        加载YAML配置文件

        Returns:
            Dict[str, Any]: 配置字典

        Raises:
            ConfigError: 配置加载或验证失败
        """
        self.logger.info(f"开始加载配置文件: {self.config_path}")

        if not os.path.exists(self.config_path):
            self.logger.error(f"配置文件不存在: {self.config_path}")
            raise ConfigError(f"配置文件不存在: {self.config_path}",
                              ErrorCode.CONFIG_FILE_NOT_FOUND,
                              config_path=self.config_path)

        try:
            with open(self.config_path, 'r', encoding='utf-8') as file:
                config = yaml.safe_load(file)
        except yaml.YAMLError as e:
            self.logger.error(f"YAML格式错误: {e}")
            raise ConfigError(f"YAML格式错误: {e}", ErrorCode.CONFIG_PARSE_ERROR,
                              config_path=self.config_path, cause=e)
        except PermissionError as e:
            self.logger.error(f"没有权限读取配置文件: {self.config_path}")
            raise ConfigError(f"没有权限读取配置文件: {self.config_path}",
                              config_path=self.config_path, cause=e)

        if config is None:
            self.logger.error("配置文件为空")
            raise ConfigError("配置文件为空", config_path=self.config_path)

        self._validate_config(config)

        probes_count = len(config.get('probes', {}))
        notifications_count = len(config.get('notifications', []))
        self.logger.info(
            f"配置验证成功，包含 {probes_count} 个探针和 {notifications_count} 个通知配置")

        self.config = config
        return self.config

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """
        验证配置文件内容

        Raises:
            ConfigError: 配置验证失败
        """
        if not isinstance(config, dict):
            raise ConfigError("配置文件根节点必须是字典类型")

        if 'global' in config:
            ConfigValidator.validate_global_config(config['global'])

        probes = config.get('probes')
        if not isinstance(probes, dict) or not probes:
            raise ConfigError("probes 配置必须是非空的字典类型")

        for probe_name, probe_config in probes.items():
            ConfigValidator.validate_probe_config(probe_name, probe_config)

        if 'notifications' in config:
            if not isinstance(config['notifications'], list):
                raise ConfigError("notifications 配置必须是列表类型")

            for notification_config in config['notifications']:
                ConfigValidator.validate_notification_config(notification_config)

    def get_global_config(self) -> Dict[str, Any]:
        """获取全局配置"""
        return self.config.get('global') or {}

    def get_probes_config(self) -> Dict[str, Any]:
        """获取原始探针配置段"""
        return self.config.get('probes', {})

    def get_notifications_config(self) -> List[Dict[str, Any]]:
        """获取通知配置列表"""
        return self.config.get('notifications', [])

    def get_server_config(self) -> Dict[str, Any]:
        """
        获取探针端点配置

        Returns:
            Dict[str, Any]: 包含 enabled、host、port 的字典
        """
        server = self.get_global_config().get('server') or {}
        return {
            'enabled': server.get('enabled', True),
            'host': server.get('host', DEFAULT_SERVER_HOST),
            'port': server.get('port', DEFAULT_SERVER_PORT),
        }

    def get_probe_configs(self) -> List[ProbeConfig]:
        """
        构建所有探针的不可变配置

        Returns:
            List[ProbeConfig]: 探针配置列表

        Raises:
            ConfigError: 探针配置无法构建
        """
        defaults = self.get_global_config().get('defaults') or {}
        probe_configs = []
        for probe_name, probe_data in self.get_probes_config().items():
            try:
                probe_configs.append(ProbeConfig.from_dict(probe_name, probe_data, defaults))
            except ValueError as e:
                raise ConfigError(f"探针 '{probe_name}' 配置无效: {e}", cause=e)
        return probe_configs

    def get_probe_config(self, probe_name: str) -> Optional[ProbeConfig]:
        """获取指定探针的配置，不存在时返回None"""
        for probe_config in self.get_probe_configs():
            if probe_config.name == probe_name:
                return probe_config
        return None
