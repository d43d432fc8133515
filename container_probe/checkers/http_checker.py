"""HTTP探针检查器"""

import asyncio
import time
from urllib.parse import urlparse

import aiohttp

from .base import BaseProbeChecker
from .factory import register_checker
from ..models.probe import CheckOutcome

SUPPORTED_METHODS = ['GET', 'HEAD']


@register_checker('http')
class HTTPProbeChecker(BaseProbeChecker):
    """HTTP探针检查器

    对目标地址发起一次请求，仅以状态码判定结果，不校验响应体。
    默认任意 2xx 状态码视为成功。
    """

    check_type = 'http'

    def validate_config(self) -> bool:
        url = self.config.get('url')
        if not isinstance(url, str):
            return False

        parsed = urlparse(url)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            return False

        if self.config.get('method', 'GET').upper() not in SUPPORTED_METHODS:
            return False

        expected_status = self.config.get('expected_status')
        if expected_status is None:
            return True
        if isinstance(expected_status, int):
            expected_status = [expected_status]
        if not isinstance(expected_status, list):
            return False
        return all(isinstance(status, int) and 100 <= status <= 599
                   for status in expected_status)

    def _is_status_expected(self, status_code: int) -> bool:
        """
        检查状态码是否符合期望

        Args:
            status_code: HTTP状态码

        Returns:
            bool: 是否符合期望
        """
        expected_status = self.config.get('expected_status')
        if expected_status is None:
            return 200 <= status_code < 300
        if isinstance(expected_status, list):
            return status_code in expected_status
        return status_code == expected_status

    async def check(self) -> CheckOutcome:
        """
        执行一次HTTP检查

        Returns:
            CheckOutcome: 检查结果
        """
        started = time.monotonic()
        url = self.config['url']
        method = self.config.get('method', 'GET').upper()
        headers = dict(self.config.get('headers', {}))
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(method, url, headers=headers,
                                           allow_redirects=False) as response:
                    metadata = {'status_code': response.status}
                    if self._is_status_expected(response.status):
                        return self._outcome(started, True, metadata=metadata)
                    return self._outcome(
                        started, False,
                        error_message=f"HTTP状态码不符合期望: {response.status}",
                        metadata=metadata)

        except asyncio.TimeoutError:
            self.logger.warning(f"HTTP检查超时 ({self.timeout}s): {url}")
            return self._outcome(started, False, error_message="HTTP请求超时",
                                 timed_out=True)
        except aiohttp.ClientError as e:
            self.logger.warning(f"HTTP检查连接失败: {url}: {e}")
            return self._outcome(started, False, error_message=f"HTTP客户端错误: {e}")
        except Exception as e:
            self.logger.error(f"HTTP检查异常: {url}: {e}", exc_info=True)
            return self._outcome(started, False, error_message=f"HTTP检查异常: {e}")
