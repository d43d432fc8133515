"""
日志管理器模块

所有记录器都挂在 container_probe 命名空间下，处理器只安装在命名空间
根记录器上：控制台输出和可选的轮转日志文件。子记录器把记录交给
根记录器处理，因此多个模块写同一个日志文件时只有一个文件处理器。
"""

import logging
import logging.handlers
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any, List

ROOT_LOGGER_NAME = 'container_probe'

CONSOLE_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class LogLevel(Enum):
    """日志级别枚举"""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    @classmethod
    def parse(cls, value: Any) -> 'LogLevel':
        """从字符串解析日志级别，大小写不敏感

        Raises:
            ValueError: 日志级别无效
        """
        if isinstance(value, cls):
            return value
        name = str(value).upper()
        if name not in cls.__members__:
            raise ValueError(f"无效的日志级别: {name}")
        return cls[name]


class LogManager:
    """
    日志管理器类（单例）

    重新配置时替换命名空间根记录器上的处理器，已创建的子记录器无需更新。
    """

    _instance: Optional['LogManager'] = None
    _initialized: bool = False

    def __new__(cls) -> 'LogManager':
        """单例模式实现"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._root = logging.getLogger(ROOT_LOGGER_NAME)
        self._root.propagate = False
        self._names: List[str] = []

        self._log_level = LogLevel.INFO
        self._log_file: Optional[str] = None
        self._max_file_size = 10 * 1024 * 1024  # 10MB
        self._backup_count = 5
        self._enable_console = True

        self._install_handlers()
        self._initialized = True

    @property
    def root_logger(self) -> logging.Logger:
        return self._root

    def configure(self, config: Dict[str, Any]) -> None:
        """
        配置日志管理器

        Args:
            config: 日志配置字典，可选键：
                - log_level: 日志级别 (DEBUG, INFO, WARNING, ERROR, CRITICAL)
                - log_file: 日志文件路径，为空表示不写文件
                - max_file_size: 单个日志文件最大字节数
                - backup_count: 轮转保留的文件数量
                - enable_console: 是否输出到控制台

        Raises:
            ValueError: 日志级别无效
        """
        if 'log_level' in config:
            self._log_level = LogLevel.parse(config['log_level'])
        if 'log_file' in config:
            self._log_file = config['log_file'] or None
        self._max_file_size = config.get('max_file_size', self._max_file_size)
        self._backup_count = config.get('backup_count', self._backup_count)
        self._enable_console = config.get('enable_console', self._enable_console)

        self._install_handlers()

    def get_logger(self, name: str) -> logging.Logger:
        """
        获取指定名称的日志记录器

        Args:
            name: 记录器名称（自动加上 container_probe 前缀）

        Returns:
            命名空间下的子记录器
        """
        if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + '.'):
            full_name = name
        else:
            full_name = f'{ROOT_LOGGER_NAME}.{name}'
        if full_name not in self._names:
            self._names.append(full_name)
        return logging.getLogger(full_name)

    def _install_handlers(self) -> None:
        """按当前配置重建命名空间根记录器的处理器"""
        self._close_handlers()
        self._root.setLevel(self._log_level.value)

        if self._enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
            self._root.addHandler(console_handler)

        if self._log_file:
            Path(self._log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                self._log_file,
                maxBytes=self._max_file_size,
                backupCount=self._backup_count,
                encoding='utf-8'
            )
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
            self._root.addHandler(file_handler)

    def _close_handlers(self) -> None:
        for handler in list(self._root.handlers):
            self._root.removeHandler(handler)
            handler.close()

    def set_level(self, level: LogLevel) -> None:
        """设置全局日志级别"""
        self._log_level = level
        self._root.setLevel(level.value)

    def get_log_stats(self) -> Dict[str, Any]:
        """获取日志配置信息"""
        stats = {
            'loggers_count': len(self._names),
            'log_level': self._log_level.name,
            'console_logging_enabled': self._enable_console,
            'file_logging_enabled': self._log_file is not None,
            'log_file': self._log_file,
        }
        if self._log_file and os.path.exists(self._log_file):
            stats['current_log_size'] = os.path.getsize(self._log_file)
        return stats

    def cleanup(self) -> None:
        """刷新并关闭所有处理器"""
        self._close_handlers()


# 全局日志管理器实例
log_manager = LogManager()


def get_logger(name: str) -> logging.Logger:
    """获取日志记录器的便捷函数"""
    return log_manager.get_logger(name)


def configure_logging(config: Dict[str, Any]) -> None:
    """配置日志系统的便捷函数"""
    log_manager.configure(config)
