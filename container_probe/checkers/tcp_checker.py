"""TCP探针检查器"""

import asyncio
import time

from .base import BaseProbeChecker
from .factory import register_checker
from ..models.probe import CheckOutcome


@register_checker('tcp')
class TCPProbeChecker(BaseProbeChecker):
    """TCP探针检查器

    能在超时时间内建立TCP连接即视为成功，常用于数据库等依赖的可达性检查。
    """

    check_type = 'tcp'

    def validate_config(self) -> bool:
        host = self.config.get('host')
        port = self.config.get('port')
        if not isinstance(host, str) or not host:
            return False
        return isinstance(port, int) and not isinstance(port, bool) and 0 < port < 65536

    async def check(self) -> CheckOutcome:
        started = time.monotonic()
        host = self.config['host']
        port = self.config['port']

        try:
            _, writer = await asyncio.wait_for(asyncio.open_connection(host, port),
                                               timeout=self.timeout)
        except asyncio.TimeoutError:
            self.logger.warning(f"TCP连接超时 ({self.timeout}s): {host}:{port}")
            return self._outcome(started, False, error_message="TCP连接超时", timed_out=True)
        except OSError as e:
            self.logger.warning(f"TCP连接失败: {host}:{port}: {e}")
            return self._outcome(started, False, error_message=f"TCP连接失败: {e}")

        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            self.logger.debug(f"关闭TCP连接时出错: {e}")

        return self._outcome(started, True, metadata={'host': host, 'port': port})
