"""测试HTTP探针检查器"""

import asyncio
import socket

import pytest
from aiohttp import web

from container_probe.checkers.http_checker import HTTPProbeChecker


def unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(('127.0.0.1', 0))
        return sock.getsockname()[1]


class HealthApp:
    """可控的被探测服务"""

    def __init__(self):
        self.status = 200
        self.delay = 0.0
        self.requests = 0

    async def handle(self, request):
        self.requests += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return web.json_response({'status': 'UP'}, status=self.status)

    async def start(self):
        app = web.Application()
        app.router.add_get('/actuator/health/readiness', self.handle)
        self.runner = web.AppRunner(app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, '127.0.0.1', 0)
        await site.start()
        host, port = self.runner.addresses[0][:2]
        return f'http://{host}:{port}/actuator/health/readiness'

    async def stop(self):
        await self.runner.cleanup()


class TestHTTPProbeCheckerConfig:
    """测试HTTPProbeChecker配置验证"""

    def test_validate_config_valid(self):
        checker = HTTPProbeChecker('app', {'url': 'http://localhost:8080/health',
                                           'expected_status': [200, 204]})
        assert checker.validate_config() is True

    @pytest.mark.parametrize("config", [
        {},
        {'url': 'localhost:8080/health'},
        {'url': 'ftp://example.com'},
        {'url': 'http://localhost/health', 'method': 'POST'},
        {'url': 'http://localhost/health', 'expected_status': 999},
        {'url': 'http://localhost/health', 'expected_status': [200, 'ok']},
    ])
    def test_validate_config_invalid(self, config):
        checker = HTTPProbeChecker('app', config)
        assert checker.validate_config() is False

    def test_default_status_is_any_2xx(self):
        checker = HTTPProbeChecker('app', {'url': 'http://localhost/health'})
        assert checker._is_status_expected(200) is True
        assert checker._is_status_expected(204) is True
        assert checker._is_status_expected(301) is False
        assert checker._is_status_expected(503) is False

    def test_explicit_status(self):
        checker = HTTPProbeChecker('app', {'url': 'http://localhost/health',
                                           'expected_status': 204})
        assert checker._is_status_expected(204) is True
        assert checker._is_status_expected(200) is False


class TestHTTPProbeCheckerCheck:
    """测试HTTPProbeChecker检查"""

    @pytest.mark.asyncio
    async def test_healthy_endpoint(self):
        service = HealthApp()
        url = await service.start()
        try:
            checker = HTTPProbeChecker('app', {'url': url}, timeout=2)
            outcome = await checker.check()
        finally:
            await service.stop()

        assert outcome.success is True
        assert outcome.check_type == 'http'
        assert outcome.metadata['status_code'] == 200
        assert outcome.error_message is None

    @pytest.mark.asyncio
    async def test_unhealthy_status(self):
        service = HealthApp()
        service.status = 503
        url = await service.start()
        try:
            outcome = await HTTPProbeChecker('app', {'url': url}, timeout=2).check()
        finally:
            await service.stop()

        assert outcome.success is False
        assert "503" in outcome.error_message

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self):
        service = HealthApp()
        service.delay = 1.0
        url = await service.start()
        try:
            outcome = await HTTPProbeChecker('app', {'url': url}, timeout=0.2).check()
        finally:
            await service.stop()

        assert outcome.success is False
        assert outcome.timed_out is True
        assert outcome.response_time < 1.0

    @pytest.mark.asyncio
    async def test_connection_refused_counts_as_failure(self):
        url = f'http://127.0.0.1:{unused_port()}/actuator/health/readiness'
        outcome = await HTTPProbeChecker('app', {'url': url}, timeout=2).check()

        assert outcome.success is False
        assert outcome.timed_out is False
        assert "HTTP客户端错误" in outcome.error_message

    @pytest.mark.asyncio
    async def test_repeated_checks_are_idempotent(self):
        service = HealthApp()
        url = await service.start()
        try:
            checker = HTTPProbeChecker('app', {'url': url}, timeout=2)
            outcomes = [await checker.check() for _ in range(3)]
        finally:
            await service.stop()

        assert [o.success for o in outcomes] == [True, True, True]
        assert service.requests == 3
