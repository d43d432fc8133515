"""主应用程序集成测试"""

import asyncio
import sys
from unittest.mock import AsyncMock

import pytest
import yaml

from main import ProbeApp
from container_probe.models.probe import ProbeState
from container_probe.utils.exceptions import ConfigError


@pytest.fixture
def config_file(tmp_path):
    """创建临时配置文件"""
    config_data = {
        'global': {
            'log_level': 'WARNING',
            'defaults': {'interval': 0.05, 'timeout': 5, 'start_period': 0, 'retries': 1},
            'server': {'enabled': False},
        },
        'probes': {
            'app-liveness': {
                'kind': 'liveness',
                'initial_delay': 0,
                'check': {'type': 'command',
                          'command': [sys.executable, '-c', 'pass']},
            },
        },
        'notifications': [
            {'name': 'ops-webhook', 'type': 'http', 'url': 'http://localhost:9/webhook'},
        ],
    }
    path = tmp_path / 'probe.yaml'
    path.write_text(yaml.safe_dump(config_data), encoding='utf-8')
    return str(path)


class TestProbeApp:
    """容器探针应用程序测试类"""

    def test_initialize(self, config_file):
        app = ProbeApp(config_file)
        app.initialize()

        assert list(app.probe_runner.state_machines) == ['app-liveness']
        assert len(app.notification_manager.notifiers) == 1
        assert app.probe_runner.on_state_change == app.notification_manager.notify
        assert app.probe_server is None

    def test_initialize_server_enabled(self, tmp_path):
        path = tmp_path / 'probe.yaml'
        path.write_text(yaml.safe_dump({
            'global': {'server': {'host': '127.0.0.1', 'port': 18081}},
            'probes': {'db': {'check': {'type': 'tcp', 'host': 'localhost', 'port': 5432}}},
        }), encoding='utf-8')

        app = ProbeApp(str(path))
        app.initialize()

        assert app.probe_server is not None
        assert app.probe_server.port == 18081

    def test_initialize_missing_config(self, tmp_path):
        app = ProbeApp(str(tmp_path / 'missing.yaml'))

        with pytest.raises(ConfigError):
            app.initialize()

    @pytest.mark.asyncio
    async def test_start_and_shutdown(self, config_file):
        """测试启动后收到关闭信号优雅停止"""
        app = ProbeApp(config_file)
        app.initialize()
        app.notification_manager.notify = AsyncMock()
        app.probe_runner.set_state_change_callback(app.notification_manager.notify)

        task = asyncio.create_task(app.start())
        await asyncio.sleep(0.5)
        assert app.is_running

        app.shutdown()
        await asyncio.wait_for(task, timeout=5)

        assert app.is_running is False
        assert app.probe_runner.get_state('app-liveness') is ProbeState.TERMINATED
        new_states = [call.args[0].new_state for call in app.notification_manager.notify.await_args_list]
        assert ProbeState.HEALTHY in new_states
        assert new_states[-1] is ProbeState.TERMINATED

    def test_get_status(self, config_file):
        app = ProbeApp(config_file)
        app.initialize()

        status = app.get_status()

        assert status['is_running'] is False
        assert status['runner_stats']['total_probes'] == 1
        assert status['probes']['app-liveness']['state'] == 'starting'
        assert status['notification_stats']['sent_count'] == 0
