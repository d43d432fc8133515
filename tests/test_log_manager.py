"""
日志管理器测试模块
"""

import logging
import logging.handlers

import pytest

from container_probe.utils.log_manager import (ROOT_LOGGER_NAME, LogLevel, LogManager, get_logger,
                                               log_manager)


class TestLogManager:
    """日志管理器测试类"""

    def setup_method(self):
        # 重置单例实例
        LogManager._instance = None
        LogManager._initialized = False

    def teardown_method(self):
        LogManager._instance = log_manager
        LogManager._initialized = True
        log_manager.configure({'log_level': 'INFO', 'log_file': None, 'enable_console': True})

    def test_singleton_pattern(self):
        assert LogManager() is LogManager()

    def test_default_configuration(self):
        manager = LogManager()

        assert manager._log_level == LogLevel.INFO
        assert manager._log_file is None
        assert manager._backup_count == 5
        assert [type(h) for h in manager.root_logger.handlers] == [logging.StreamHandler]

    def test_configure_log_level(self):
        manager = LogManager()

        manager.configure({'log_level': 'debug'})
        assert manager._log_level == LogLevel.DEBUG
        assert manager.root_logger.level == logging.DEBUG

        with pytest.raises(ValueError, match="无效的日志级别"):
            manager.configure({'log_level': 'VERBOSE'})

    def test_logger_namespace(self):
        manager = LogManager()
        logger = manager.get_logger('probe_runner')

        assert logger.name == 'container_probe.probe_runner'
        assert logger.parent is manager.root_logger
        assert manager.get_logger('container_probe.probe_runner') is logger
        assert manager.root_logger.name == ROOT_LOGGER_NAME
        assert manager.root_logger.propagate is False

    def test_single_file_handler_for_all_loggers(self, tmp_path):
        """测试多个模块写同一日志文件时只有一个文件处理器"""
        manager = LogManager()
        runner_logger = manager.get_logger('probe_runner')
        state_logger = manager.get_logger('state.app-readiness')
        log_file = tmp_path / 'logs' / 'probe.log'

        manager.configure({'log_level': 'WARNING', 'log_file': str(log_file),
                           'enable_console': False})

        handlers = manager.root_logger.handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.handlers.RotatingFileHandler)

        runner_logger.warning("检查失败")
        state_logger.warning("状态变化: healthy -> unhealthy")
        runner_logger.info("不应写入")
        handlers[0].flush()

        content = log_file.read_text(encoding='utf-8')
        assert "检查失败" in content
        assert "状态变化: healthy -> unhealthy" in content
        assert "不应写入" not in content

        stats = manager.get_log_stats()
        assert stats['file_logging_enabled'] is True
        assert stats['loggers_count'] == 2
        assert stats['current_log_size'] > 0

    def test_set_level(self):
        manager = LogManager()
        logger = manager.get_logger('test_set_level')

        manager.set_level(LogLevel.ERROR)

        assert logger.getEffectiveLevel() == logging.ERROR

    def test_cleanup(self):
        manager = LogManager()

        manager.cleanup()

        assert manager.root_logger.handlers == []


def test_get_logger_uses_global_manager():
    logger = get_logger('test_global')

    assert logger is log_manager.get_logger('test_global')
    assert logger.name == 'container_probe.test_global'
