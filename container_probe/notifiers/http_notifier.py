"""HTTP通知器实现"""

import asyncio
import json
from typing import Dict, Any
from urllib.parse import urlparse

import aiohttp

from .base import BaseNotifier
from ..models.probe import StateChange
from ..utils.exceptions import (ErrorCode, NotificationConfigError, NotificationError,
                                NotificationSendError)
from ..utils.log_manager import get_logger

VALID_METHODS = ['POST', 'PUT', 'PATCH']


class HTTPNotifier(BaseNotifier):
    """HTTP通知器，通过webhook推送探针状态变化"""

    def __init__(self, name: str, config: Dict[str, Any]):
        """
        初始化HTTP通知器

        Args:
            name: 通知器名称
            config: 通知器配置

        Raises:
            NotificationConfigError: 配置无效
        """
        super().__init__(name, config)
        self.logger = get_logger(f'notifier.http.{self.name}')

        self.max_retries = config.get('max_retries', 3)
        self.retry_delay = config.get('retry_delay', 1.0)
        self.retry_backoff = config.get('retry_backoff', 2.0)

        self.url = config.get('url', '')
        self.method = config.get('method', 'POST').upper()
        self.headers = config.get('headers', {})
        self.template = config.get('template', '')

        if not self.validate_config():
            raise NotificationConfigError(f"HTTP通知器配置无效: {name}", notifier_name=name)

    def validate_config(self) -> bool:
        parsed_url = urlparse(self.url)
        if parsed_url.scheme not in ('http', 'https') or not parsed_url.netloc:
            self.logger.error(f"HTTP通知器 {self.name} URL格式无效: {self.url}")
            return False

        if self.method not in VALID_METHODS:
            self.logger.error(
                f"HTTP通知器 {self.name} 不支持的HTTP方法: {self.method}, "
                f"支持的方法: {VALID_METHODS}")
            return False

        if self.max_retries < 0 or self.retry_delay < 0:
            self.logger.error(f"HTTP通知器 {self.name} 重试配置不能为负数")
            return False

        if self.template and not self.template.strip():
            self.logger.error(f"HTTP通知器 {self.name} 模板不能为空")
            return False

        return True

    async def send(self, state_change: StateChange) -> bool:
        """
        发送状态变化通知，失败时按指数退避重试

        Returns:
            bool: 发送是否成功

        Raises:
            NotificationSendError: 所有重试均失败
            NotificationError: 模板渲染结果不是合法JSON
        """
        self.logger.info(
            f"发送状态变化通知: 探针={state_change.probe_name}, "
            f"{state_change.old_state.value} -> {state_change.new_state.value}")

        payload = self._prepare_payload(state_change)
        last_error = None

        for attempt in range(self.max_retries + 1):
            try:
                if await self._send_request(payload):
                    if attempt > 0:
                        self.logger.info(f"HTTP通知器 {self.name} 重试第 {attempt} 次后发送成功")
                    return True
                last_error = "服务端返回非2xx状态码"
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = str(e) or type(e).__name__
                self.logger.warning(
                    f"HTTP通知器 {self.name} 发送失败 "
                    f"(尝试 {attempt + 1}/{self.max_retries + 1}): {last_error}")

            if attempt < self.max_retries:
                delay = self.retry_delay * (self.retry_backoff ** attempt)
                self.logger.debug(f"等待 {delay:.2f} 秒后重试")
                await asyncio.sleep(delay)

        self.logger.error(f"HTTP通知器 {self.name} 所有重试均失败，放弃发送")
        raise NotificationSendError(f"HTTP通知发送失败: {last_error}", notifier_name=self.name)

    async def _send_request(self, payload: Dict[str, Any]) -> bool:
        timeout = aiohttp.ClientTimeout(total=self.get_timeout())
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.request(self.method, self.url, headers=self.headers,
                                       **payload) as response:
                if 200 <= response.status < 300:
                    return True
                body = await response.text()
                self.logger.warning(
                    f"HTTP通知器 {self.name} 收到错误响应 "
                    f"(状态码: {response.status}, 响应: {body[:200]})")
                return False

    def _prepare_payload(self, state_change: StateChange) -> Dict[str, Any]:
        """准备请求参数：有模板时渲染模板，否则发送默认JSON"""
        if not self.template:
            return {'json': state_change.to_dict()}

        rendered = self._render_template(self.template, state_change)
        try:
            return {'json': json.loads(rendered)}
        except json.JSONDecodeError:
            return {'data': rendered}

    def _render_template(self, template_str: str, state_change: StateChange) -> str:
        """
        使用 {{variable}} 语法渲染模板，JSON模板中的值会被转义

        Raises:
            NotificationSendError: 渲染后的JSON无效
        """
        is_json_template = template_str.strip().startswith('{')
        rendered = template_str

        for key, value in state_change.to_dict().items():
            safe_value = '' if value is None else str(value)
            if is_json_template:
                # json.dumps 转义后去掉两侧引号
                safe_value = json.dumps(safe_value, ensure_ascii=False)[1:-1]
            rendered = rendered.replace(f'{{{{{key}}}}}', safe_value)

        if is_json_template:
            try:
                json.loads(rendered)
            except json.JSONDecodeError as e:
                raise NotificationError(f"渲染后的JSON格式无效: {e}",
                                        ErrorCode.NOTIFICATION_TEMPLATE_ERROR,
                                        notifier_name=self.name, cause=e, recoverable=False)
        return rendered
