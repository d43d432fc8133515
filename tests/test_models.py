"""测试数据模型"""

from dataclasses import FrozenInstanceError
from datetime import datetime

import pytest

from container_probe.models.probe import (CheckOutcome, OverlapPolicy, ProbeConfig, ProbeKind,
                                          ProbeState, StateChange)


class TestProbeConfig:
    """测试ProbeConfig数据模型"""

    def test_defaults_match_healthcheck(self):
        """测试默认值与镜像HEALTHCHECK一致"""
        config = ProbeConfig(name="app", check={'type': 'http', 'url': 'http://localhost/'})

        assert config.interval == 30
        assert config.timeout == 10
        assert config.start_period == 40
        assert config.retries == 3
        assert config.kind is ProbeKind.READINESS
        assert config.overlap_policy is OverlapPolicy.SKIP
        assert config.first_check_delay == 30

    def test_config_is_immutable(self):
        """测试配置不可修改"""
        config = ProbeConfig(name="app", check={'type': 'tcp'})

        with pytest.raises(FrozenInstanceError):
            config.interval = 5

        with pytest.raises(TypeError):
            config.check['type'] = 'http'

    def test_check_mapping_is_copied(self):
        """测试检查配置与原字典解耦"""
        check = {'type': 'http', 'url': 'http://localhost/'}
        config = ProbeConfig(name="app", check=check)
        check['url'] = 'http://other/'

        assert config.check['url'] == 'http://localhost/'

    @pytest.mark.parametrize("kwargs", [
        {'interval': 0},
        {'timeout': -1},
        {'start_period': -5},
        {'retries': 0},
        {'retries': 1.5},
        {'initial_delay': -1},
    ])
    def test_invalid_values(self, kwargs):
        """测试无效配置值"""
        with pytest.raises(ValueError):
            ProbeConfig(name="app", **kwargs)

    def test_from_dict_with_defaults(self):
        """测试从配置字典创建并应用全局默认值"""
        data = {
            'kind': 'liveness',
            'timeout': 5,
            'check': {'type': 'http', 'url': 'http://localhost:8080/health'}
        }
        config = ProbeConfig.from_dict("app-liveness", data, {'interval': 15, 'retries': 5})

        assert config.name == "app-liveness"
        assert config.kind is ProbeKind.LIVENESS
        assert config.interval == 15
        assert config.timeout == 5
        assert config.start_period == 40
        assert config.retries == 5
        assert config.check_type == 'http'

    def test_from_dict_camel_case_aliases(self):
        """测试startPeriod等驼峰命名别名"""
        data = {'startPeriod': 60, 'initialDelay': 0, 'overlap_policy': 'queue',
                'check': {'type': 'tcp', 'host': 'db', 'port': 5432}}
        config = ProbeConfig.from_dict("db", data)

        assert config.start_period == 60
        assert config.first_check_delay == 0
        assert config.overlap_policy is OverlapPolicy.QUEUE

    def test_to_dict(self):
        config = ProbeConfig(name="app", kind="liveness", check={'type': 'command'})
        data = config.to_dict()

        assert data['kind'] == 'liveness'
        assert data['check_type'] == 'command'
        assert data['overlap_policy'] == 'skip'


class TestProbeState:
    """测试ProbeState"""

    def test_only_healthy_accepts_traffic(self):
        assert ProbeState.HEALTHY.accepts_traffic is True
        assert ProbeState.STARTING.accepts_traffic is False
        assert ProbeState.UNHEALTHY.accepts_traffic is False
        assert ProbeState.TERMINATED.accepts_traffic is False


class TestCheckOutcome:
    """测试CheckOutcome数据模型"""

    def test_create_outcome(self):
        outcome = CheckOutcome(probe_name="app", check_type="http", success=False,
                               response_time=10.0, error_message="HTTP请求超时",
                               timed_out=True)

        assert outcome.success is False
        assert outcome.timed_out is True
        assert isinstance(outcome.timestamp, datetime)
        assert outcome.metadata == {}


class TestStateChange:
    """测试StateChange数据模型"""

    def test_to_dict(self):
        change = StateChange(probe_name="app", kind=ProbeKind.READINESS,
                             old_state=ProbeState.HEALTHY, new_state=ProbeState.UNHEALTHY,
                             consecutive_failures=3, error_message="连接被拒绝")
        data = change.to_dict()

        assert data['old_state'] == 'healthy'
        assert data['new_state'] == 'unhealthy'
        assert data['kind'] == 'readiness'
        assert data['consecutive_failures'] == 3
        assert isinstance(data['timestamp'], str)
