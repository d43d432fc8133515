"""命令探针检查器"""

import asyncio
import time
from typing import List, Union

from .base import BaseProbeChecker
from .factory import register_checker
from ..models.probe import CheckOutcome

OUTPUT_LIMIT = 512


@register_checker('command')
class CommandProbeChecker(BaseProbeChecker):
    """命令探针检查器

    执行一条命令，退出码为0视为成功，与容器 HEALTHCHECK CMD 的约定一致。
    command 为列表时直接执行，为字符串时通过 shell 执行。
    """

    check_type = 'command'

    def validate_config(self) -> bool:
        command = self.config.get('command')
        if isinstance(command, str):
            return bool(command.strip())
        if isinstance(command, list):
            return bool(command) and all(isinstance(arg, str) for arg in command)
        return False

    async def _spawn(self, command: Union[str, List[str]]) -> asyncio.subprocess.Process:
        if isinstance(command, str):
            return await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT)
        return await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT)

    async def check(self) -> CheckOutcome:
        started = time.monotonic()
        command = self.config['command']

        try:
            process = await self._spawn(command)
        except (FileNotFoundError, PermissionError) as e:
            self.logger.warning(f"命令无法执行: {command}: {e}")
            return self._outcome(started, False, error_message=f"命令无法执行: {e}")

        try:
            output, _ = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            if process.returncode is None:
                process.kill()
            await process.wait()
            self.logger.warning(f"命令执行超时 ({self.timeout}s): {command}")
            return self._outcome(started, False, error_message="命令执行超时",
                                 timed_out=True)

        text = (output or b'').decode('utf-8', errors='replace').strip()[:OUTPUT_LIMIT]
        metadata = {'exit_code': process.returncode, 'output': text}
        if process.returncode == 0:
            return self._outcome(started, True, metadata=metadata)

        return self._outcome(started, False,
                             error_message=f"命令退出码非0: {process.returncode}",
                             metadata=metadata)
