"""探针HTTP端点

向编排器暴露探针判定结果，只有状态码是约定的一部分：
- GET /health/live   所有存活探针健康时返回200，否则503
- GET /health/ready  所有就绪探针健康时返回200，否则503
- GET /health        两者都健康时返回200，否则503
- GET /status        所有探针的状态快照
处理函数只读取状态，可以并发、重复调用。
"""

from typing import Optional

from aiohttp import web

from ..models.probe import ProbeKind
from ..utils.exceptions import ServerError
from ..utils.log_manager import get_logger
from .probe_runner import ProbeRunner

HTTP_OK = 200
HTTP_UNAVAILABLE = 503


class ProbeServer:
    """探针HTTP服务"""

    def __init__(self, runner: ProbeRunner, host: str = '0.0.0.0', port: int = 8081):
        self.runner = runner
        self.host = host
        self.port = port
        self.app = web.Application()
        self._app_runner: Optional[web.AppRunner] = None
        self.logger = get_logger('probe_server')
        self._setup_routes()

    def _setup_routes(self):
        self.app.router.add_get('/health', self.handle_health)
        self.app.router.add_get('/health/live', self.handle_liveness)
        self.app.router.add_get('/health/ready', self.handle_readiness)
        self.app.router.add_get('/status', self.handle_status)

    def _verdict_response(self, healthy: bool, **payload) -> web.Response:
        payload['status'] = 'UP' if healthy else 'DOWN'
        return web.json_response(payload, status=HTTP_OK if healthy else HTTP_UNAVAILABLE)

    def _probes_of_kind(self, kind: ProbeKind) -> dict:
        return {
            name: state_machine.state.value
            for name, state_machine in self.runner.state_machines.items()
            if state_machine.config.kind is kind
        }

    async def handle_liveness(self, request: web.Request) -> web.Response:
        return self._verdict_response(self.runner.verdict(ProbeKind.LIVENESS),
                                      probes=self._probes_of_kind(ProbeKind.LIVENESS))

    async def handle_readiness(self, request: web.Request) -> web.Response:
        return self._verdict_response(self.runner.verdict(ProbeKind.READINESS),
                                      probes=self._probes_of_kind(ProbeKind.READINESS))

    async def handle_health(self, request: web.Request) -> web.Response:
        liveness = self.runner.verdict(ProbeKind.LIVENESS)
        readiness = self.runner.verdict(ProbeKind.READINESS)
        return self._verdict_response(liveness and readiness,
                                      liveness='UP' if liveness else 'DOWN',
                                      readiness='UP' if readiness else 'DOWN')

    async def handle_status(self, request: web.Request) -> web.Response:
        return web.json_response({
            'runner': self.runner.get_runner_stats(),
            'probes': self.runner.get_status(),
        })

    async def start(self):
        """启动HTTP服务

        Raises:
            ServerError: 端口绑定失败
        """
        self._app_runner = web.AppRunner(self.app, access_log=None)
        await self._app_runner.setup()
        site = web.TCPSite(self._app_runner, self.host, self.port)
        try:
            await site.start()
        except OSError as e:
            await self._app_runner.cleanup()
            self._app_runner = None
            raise ServerError(f"探针端点启动失败 {self.host}:{self.port}: {e}",
                              host=self.host, port=self.port, cause=e)

        self.logger.info(f"探针端点已启动: http://{self.host}:{self.port}")

    async def stop(self):
        """停止HTTP服务"""
        if self._app_runner:
            await self._app_runner.cleanup()
            self._app_runner = None
            self.logger.info("探针端点已停止")
