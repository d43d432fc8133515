#!/usr/bin/env python3
"""
容器探针主应用程序入口

加载探针配置，启动存活/就绪探针和探针HTTP端点，
处理信号并优雅关闭。--check-once 模式按退出码约定
（0 健康，1 不健康）报告结果，可直接用作 HEALTHCHECK 命令。
"""

import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import Optional, Dict, Any

from container_probe import __version__
from container_probe.models.probe import ProbeKind
from container_probe.notifiers.manager import NotificationManager
from container_probe.services.config_manager import ConfigManager
from container_probe.services.probe_runner import ProbeRunner
from container_probe.services.probe_server import ProbeServer
from container_probe.utils.exceptions import ProbeMonitorError, ConfigError
from container_probe.utils.log_manager import log_manager, get_logger

EXIT_HEALTHY = 0
EXIT_UNHEALTHY = 1


class ProbeApp:
    """容器探针主应用程序类"""

    def __init__(self, config_path: str, log_overrides: Optional[Dict[str, Any]] = None):
        """初始化应用程序

        Args:
            config_path: 配置文件路径
            log_overrides: 命令行对日志配置的覆盖
        """
        self.config_path = config_path
        self.log_overrides = log_overrides or {}
        self.logger: Optional[logging.Logger] = None
        self.is_running = False
        self.shutdown_event = asyncio.Event()

        self.config_manager: Optional[ConfigManager] = None
        self.probe_runner: Optional[ProbeRunner] = None
        self.probe_server: Optional[ProbeServer] = None
        self.notification_manager: Optional[NotificationManager] = None

        self.background_tasks = set()

    def initialize(self):
        """初始化应用程序组件

        Raises:
            ProbeMonitorError: 配置或组件初始化失败
        """
        self.config_manager = ConfigManager(self.config_path)
        self.config_manager.load_config()

        self._configure_logging(self.config_manager.get_global_config())
        self.logger = get_logger('main')
        self.logger.info("开始初始化容器探针")

        self.probe_runner = ProbeRunner()
        self.probe_runner.configure_probes(self.config_manager.get_probe_configs())

        self.notification_manager = NotificationManager(
            self.config_manager.get_notifications_config())
        self.probe_runner.set_state_change_callback(self.notification_manager.notify)

        server_config = self.config_manager.get_server_config()
        if server_config['enabled']:
            self.probe_server = ProbeServer(self.probe_runner, server_config['host'],
                                            server_config['port'])

        self.logger.info("应用程序组件初始化完成")

    def _configure_logging(self, global_config: Dict[str, Any]):
        """配置日志系统，命令行参数优先于配置文件"""
        log_config = {'log_level': global_config.get('log_level', 'INFO')}
        if global_config.get('log_file'):
            log_config['log_file'] = global_config['log_file']
            log_config['max_file_size'] = global_config.get('max_log_size',
                                                            10 * 1024 * 1024)
            log_config['backup_count'] = global_config.get('log_backup_count', 5)
        log_config.update(self.log_overrides)
        log_manager.configure(log_config)

    async def start(self):
        """启动探针和端点，直到收到关闭信号"""
        if self.is_running:
            self.logger.warning("应用程序已经在运行")
            return

        try:
            self.is_running = True
            self.logger.info("启动容器探针")

            if self.probe_server:
                await self.probe_server.start()

            runner_task = asyncio.create_task(self.probe_runner.start())
            self.background_tasks.add(runner_task)
            runner_task.add_done_callback(self.background_tasks.discard)

            self.logger.info("容器探针启动完成")
            await self.shutdown_event.wait()

        finally:
            await self.stop()

    async def stop(self):
        """停止应用程序"""
        if not self.is_running:
            return

        self.logger.info("正在停止容器探针...")
        self.is_running = False

        if self.probe_runner:
            await self.probe_runner.stop()

        for task in self.background_tasks:
            if not task.done():
                task.cancel()
        if self.background_tasks:
            await asyncio.gather(*self.background_tasks, return_exceptions=True)
        self.background_tasks.clear()

        if self.probe_server:
            await self.probe_server.stop()

        self.logger.info("容器探针已停止")

    def shutdown(self):
        """触发应用程序关闭"""
        if self.logger:
            self.logger.info("收到关闭信号")
        self.shutdown_event.set()

    def get_status(self) -> Dict[str, Any]:
        """获取应用程序状态"""
        status = {
            'is_running': self.is_running,
            'config_path': self.config_path,
        }
        if self.probe_runner:
            status['runner_stats'] = self.probe_runner.get_runner_stats()
            status['probes'] = self.probe_runner.get_status()
        if self.notification_manager:
            status['notification_stats'] = self.notification_manager.get_stats()
        return status


def create_argument_parser() -> argparse.ArgumentParser:
    """创建命令行参数解析器"""
    parser = argparse.ArgumentParser(
        prog='container-probe',
        description='容器探针 - 周期性执行存活/就绪检查并向编排器报告状态',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例用法:
  %(prog)s probe.yaml                              # 启动探针和探针端点
  %(prog)s --validate probe.yaml                   # 验证配置文件格式
  %(prog)s --check-once probe.yaml                 # 执行一次所有检查，按退出码报告
  %(prog)s --check-once --kind readiness probe.yaml

支持的检查类型:
  - http     HTTP状态码检查
  - command  命令退出码检查
  - tcp      TCP连接检查
        """
    )

    parser.add_argument('config_file', nargs='?', help='YAML配置文件路径')
    parser.add_argument('--version', '-v', action='version',
                        version=f'%(prog)s {__version__}')
    parser.add_argument('--validate', action='store_true', help='验证配置文件格式并退出')
    parser.add_argument('--check-once', action='store_true',
                        help='执行一次检查后退出，全部成功退出码为0，否则为1')
    parser.add_argument('--kind', choices=[kind.value for kind in ProbeKind],
                        help='与 --check-once 一起使用，只检查指定类型的探针')
    parser.add_argument('--log-level',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='设置日志级别（覆盖配置文件设置）')
    parser.add_argument('--log-file', help='日志文件路径（覆盖配置文件设置）')

    return parser


def validate_config_file(config_path: str) -> bool:
    """验证配置文件

    Returns:
        验证是否成功
    """
    print(f"正在验证配置文件: {config_path}")
    try:
        config_manager = ConfigManager(config_path)
        config_manager.load_config()
        probe_configs = config_manager.get_probe_configs()
    except ConfigError as e:
        print(f"❌ 配置文件验证失败: {e}")
        return False

    print("✅ 配置文件验证成功!")
    print(f"   - 探针数量: {len(probe_configs)}")
    for probe_config in probe_configs:
        print(f"     * {probe_config.name} ({probe_config.kind.value}, "
              f"{probe_config.check_type}, 间隔={probe_config.interval}s, "
              f"超时={probe_config.timeout}s, 宽限期={probe_config.start_period}s, "
              f"重试={probe_config.retries})")

    notifications = config_manager.get_notifications_config()
    print(f"   - 通知配置数量: {len(notifications)}")
    return True


async def check_once(config_path: str, kind: Optional[str] = None,
                     log_overrides: Optional[Dict[str, Any]] = None) -> bool:
    """执行一次检查

    Args:
        config_path: 配置文件路径
        kind: 只检查指定类型的探针
        log_overrides: 日志配置覆盖

    Returns:
        所有检查是否成功
    """
    app = ProbeApp(config_path, log_overrides)
    app.initialize()

    outcomes = await app.probe_runner.check_all_now(ProbeKind(kind) if kind else None)
    if not outcomes:
        print("没有匹配的探针")
        return True

    all_healthy = True
    for probe_name, outcome in outcomes.items():
        if outcome.success:
            print(f"   ✅ {probe_name}: 健康 (响应时间: {outcome.response_time:.3f}s)")
        else:
            print(f"   ❌ {probe_name}: 不健康 - {outcome.error_message}")
            all_healthy = False
    return all_healthy


async def run(config_path: str, log_overrides: Dict[str, Any]):
    """运行探针直到收到 SIGINT/SIGTERM"""
    app = ProbeApp(config_path, log_overrides)
    app.initialize()

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, app.shutdown)
        except NotImplementedError:
            # Windows 事件循环不支持
            signal.signal(signum, lambda *_: app.shutdown())

    print(f"容器探针 v{__version__} 已启动")
    print(f"配置文件: {config_path}")
    await app.start()


async def main(argv=None) -> int:
    """主函数，返回进程退出码"""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.config_file:
        parser.print_help()
        return EXIT_UNHEALTHY

    config_path = args.config_file
    if not os.path.exists(config_path):
        print(f"配置文件不存在: {config_path}", file=sys.stderr)
        return EXIT_UNHEALTHY

    log_overrides = {}
    if args.log_level:
        log_overrides['log_level'] = args.log_level
    if args.log_file:
        log_overrides['log_file'] = args.log_file

    try:
        if args.validate:
            return EXIT_HEALTHY if validate_config_file(config_path) else EXIT_UNHEALTHY

        if args.check_once:
            healthy = await check_once(config_path, args.kind, log_overrides)
            return EXIT_HEALTHY if healthy else EXIT_UNHEALTHY

        await run(config_path, log_overrides)
        return EXIT_HEALTHY

    except ConfigError as e:
        print(f"配置错误: {e}", file=sys.stderr)
        return EXIT_UNHEALTHY
    except ProbeMonitorError as e:
        print(f"容器探针错误: {e.format_error()}", file=sys.stderr)
        return EXIT_UNHEALTHY
    finally:
        log_manager.cleanup()


if __name__ == "__main__":
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())

    sys.exit(asyncio.run(main()))
