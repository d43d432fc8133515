"""测试检查器工厂"""

import pytest

from container_probe.checkers import (CommandProbeChecker, HTTPProbeChecker, TCPProbeChecker,
                                      probe_checker_factory)
from container_probe.checkers.base import BaseProbeChecker
from container_probe.checkers.factory import ProbeCheckerFactory
from container_probe.models.probe import CheckOutcome, ProbeConfig
from container_probe.utils.exceptions import CheckerError


class DummyChecker(BaseProbeChecker):
    check_type = 'dummy'

    async def check(self) -> CheckOutcome:
        return CheckOutcome(self.probe_name, self.check_type, True, 0.0)

    def validate_config(self) -> bool:
        return self.config.get('valid', True)


class TestProbeCheckerFactory:
    """测试ProbeCheckerFactory类"""

    def setup_method(self):
        self.factory = ProbeCheckerFactory()

    def test_builtin_types_registered(self):
        """测试内置检查类型已注册"""
        assert set(probe_checker_factory.get_supported_types()) >= {'http', 'command', 'tcp'}

    def test_create_builtin_checkers(self):
        cases = [
            ({'type': 'http', 'url': 'http://localhost:8080/health'}, HTTPProbeChecker),
            ({'type': 'command', 'command': ['true']}, CommandProbeChecker),
            ({'type': 'tcp', 'host': 'localhost', 'port': 5432}, TCPProbeChecker),
        ]
        for check, expected_class in cases:
            config = ProbeConfig(name='app', timeout=3, check=check)
            checker = probe_checker_factory.create_checker(config)
            assert isinstance(checker, expected_class)
            assert checker.timeout == 3
            assert checker.probe_name == 'app'

    def test_register_and_create(self):
        self.factory.register_checker('dummy', DummyChecker)
        checker = self.factory.create_checker(ProbeConfig(name='app', check={'type': 'dummy'}))

        assert isinstance(checker, DummyChecker)
        assert self.factory.is_type_supported('dummy')

    def test_register_duplicate(self):
        self.factory.register_checker('dummy', DummyChecker)
        with pytest.raises(CheckerError, match="已经注册"):
            self.factory.register_checker('dummy', DummyChecker)

    def test_register_invalid_class(self):
        with pytest.raises(CheckerError, match="BaseProbeChecker"):
            self.factory.register_checker('bad', dict)

    def test_unregister(self):
        self.factory.register_checker('dummy', DummyChecker)
        self.factory.unregister_checker('dummy')
        assert not self.factory.is_type_supported('dummy')

    def test_create_unsupported_type(self):
        with pytest.raises(CheckerError, match="不支持的检查类型") as exc_info:
            self.factory.create_checker(ProbeConfig(name='app', check={'type': 'redis'}))
        assert exc_info.value.details['check_type'] == 'redis'

    def test_create_missing_type(self):
        with pytest.raises(CheckerError, match="缺少检查类型"):
            self.factory.create_checker(ProbeConfig(name='app', check={}))

    def test_create_invalid_config(self):
        self.factory.register_checker('dummy', DummyChecker)
        with pytest.raises(CheckerError, match="验证失败"):
            self.factory.create_checker(
                ProbeConfig(name='app', check={'type': 'dummy', 'valid': False}))
