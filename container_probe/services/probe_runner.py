"""探针调度模块

每个探针由独立的异步任务按固定周期触发检查，检查结果交给该探针
自己的状态机。探针之间不共享任何可变状态。
"""

import asyncio
import time
from typing import Awaitable, Callable, Dict, Any, List, Optional, Set

from ..checkers import probe_checker_factory
from ..checkers.base import BaseProbeChecker
from ..models.probe import (CheckOutcome, OverlapPolicy, ProbeConfig, ProbeKind, ProbeState,
                            StateChange)
from ..utils.exceptions import SchedulerError
from ..utils.log_manager import get_logger
from .state_machine import ProbeStateMachine

StateChangeCallback = Callable[[StateChange], Awaitable[None]]

DEFAULT_SHUTDOWN_NOTIFY_TIMEOUT = 5.0


class ProbeRunner:
    """探针调度器

    - 每个周期对每个探针只发起一次检查，单次检查受 timeout 约束
    - 上一次检查仍未结束时，按 overlap_policy 跳过本周期（skip），
      或最多排队一次检查（queue）
    - 检查错误只记录日志，不会停止调度
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic,
                 shutdown_notify_timeout: float = DEFAULT_SHUTDOWN_NOTIFY_TIMEOUT):
        """初始化探针调度器

        Args:
            clock: 单调时钟函数，返回秒数
            shutdown_notify_timeout: 停止时等待状态变化通知的最长秒数
        """
        self._clock = clock
        self.shutdown_notify_timeout = shutdown_notify_timeout
        self.probe_configs: Dict[str, ProbeConfig] = {}
        self.checkers: Dict[str, BaseProbeChecker] = {}
        self.state_machines: Dict[str, ProbeStateMachine] = {}
        self.is_running = False
        self.running_tasks: Set[asyncio.Task] = set()
        self._notify_tasks: Set[asyncio.Task] = set()
        self.skipped_cycles: Dict[str, int] = {}
        self._loop_tasks: Dict[str, asyncio.Task] = {}
        self._in_flight: Dict[str, asyncio.Task] = {}
        self._queued: Dict[str, bool] = {}
        self.on_state_change: Optional[StateChangeCallback] = None
        self.logger = get_logger('probe_runner')

    def configure_probes(self, probe_configs: List[ProbeConfig],
                         started_at: Optional[float] = None):
        """配置探针

        Args:
            probe_configs: 探针配置列表
            started_at: 容器启动时刻（单调时钟秒数），默认为当前时刻

        Raises:
            SchedulerError: 调度器运行中或探针名称重复
            CheckerError: 检查器创建失败
        """
        if self.is_running:
            raise SchedulerError("探针调度器运行中，不能重新配置探针")

        if started_at is None:
            started_at = self._clock()

        self.probe_configs.clear()
        self.checkers.clear()
        self.state_machines.clear()
        self.skipped_cycles.clear()

        for probe_config in probe_configs:
            if probe_config.name in self.probe_configs:
                raise SchedulerError(f"探针名称重复: {probe_config.name}",
                                     probe_name=probe_config.name)

            self.checkers[probe_config.name] = probe_checker_factory.create_checker(probe_config)
            self.state_machines[probe_config.name] = ProbeStateMachine(probe_config, started_at)
            self.probe_configs[probe_config.name] = probe_config
            self.skipped_cycles[probe_config.name] = 0

            self.logger.info(
                f"配置探针 {probe_config.name}: 类型={probe_config.kind.value}, "
                f"检查={probe_config.check_type}, 间隔={probe_config.interval}s, "
                f"超时={probe_config.timeout}s, 宽限期={probe_config.start_period}s, "
                f"重试={probe_config.retries}")

    def set_state_change_callback(self, callback: StateChangeCallback):
        """设置状态变化回调函数"""
        self.on_state_change = callback

    async def start(self):
        """启动所有探针任务，直到被停止或取消"""
        if self.is_running:
            self.logger.warning("探针调度器已经在运行")
            return

        self.is_running = True
        self.logger.info(f"启动探针调度器，探针数量: {len(self.probe_configs)}")

        for probe_name in self.probe_configs:
            self._loop_tasks[probe_name] = asyncio.create_task(self._probe_loop(probe_name))

        try:
            await asyncio.gather(*self._loop_tasks.values())
        except asyncio.CancelledError:
            self.logger.info("探针调度器被取消")
        finally:
            await self.stop()

    async def stop(self):
        """停止调度并将所有状态机标记为终止"""
        if not self.is_running:
            return

        self.is_running = False
        self.logger.info("正在停止探针调度器...")

        tasks = list(self._loop_tasks.values()) + list(self.running_tasks)
        for task in tasks:
            if not task.done():
                task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._loop_tasks.clear()
        self._in_flight.clear()
        self._queued.clear()
        self.running_tasks.clear()

        for state_machine in self.state_machines.values():
            state_change = state_machine.terminate()
            if state_change:
                self._dispatch(state_change)
        await self._drain_notifications()

        self.logger.info("探针调度器已停止")

    async def _probe_loop(self, probe_name: str):
        """单个探针的周期循环"""
        probe_config = self.probe_configs[probe_name]
        next_run = self._clock() + probe_config.first_check_delay

        while self.is_running:
            delay = next_run - self._clock()
            if delay > 0:
                await asyncio.sleep(delay)

            try:
                self._trigger(probe_name)
            except Exception as e:
                self.logger.error(f"探针 {probe_name} 调度异常: {e}", exc_info=True)

            next_run += probe_config.interval

    def _trigger(self, probe_name: str):
        """触发一次检查，处理与上一次检查重叠的情况"""
        in_flight = self._in_flight.get(probe_name)
        if in_flight is not None and not in_flight.done():
            policy = self.probe_configs[probe_name].overlap_policy
            if policy is OverlapPolicy.QUEUE and not self._queued.get(probe_name):
                self._queued[probe_name] = True
                self.logger.debug(f"探针 {probe_name} 上一次检查未完成，本次检查排队")
                return

            self.skipped_cycles[probe_name] += 1
            self.logger.warning(f"探针 {probe_name} 上一次检查未完成，跳过本周期")
            return

        task = asyncio.create_task(self._run_checks(probe_name))
        self._in_flight[probe_name] = task
        self.running_tasks.add(task)
        task.add_done_callback(self.running_tasks.discard)

    async def _run_checks(self, probe_name: str):
        """执行一次检查，以及执行期间排队的那一次"""
        await self._execute_check(probe_name)
        while self.is_running and self._queued.get(probe_name):
            self._queued[probe_name] = False
            await self._execute_check(probe_name)

    async def _execute_check(self, probe_name: str) -> CheckOutcome:
        """执行检查并更新状态机

        Returns:
            CheckOutcome: 检查结果（超时和异常都转换为失败结果）
        """
        probe_config = self.probe_configs[probe_name]
        checker = self.checkers[probe_name]
        started = time.monotonic()
        # 宽限期按检查发起时刻判断
        issued_at = self._clock()

        self.logger.debug(f"开始检查探针: {probe_name}")
        try:
            outcome = await asyncio.wait_for(checker.check(), timeout=probe_config.timeout)
        except asyncio.TimeoutError:
            self.logger.warning(f"探针 {probe_name} 检查超时 ({probe_config.timeout}s)")
            outcome = CheckOutcome(
                probe_name=probe_name,
                check_type=probe_config.check_type,
                success=False,
                response_time=time.monotonic() - started,
                error_message="检查超时",
                timed_out=True
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.error(f"探针 {probe_name} 检查异常: {e}", exc_info=True)
            outcome = CheckOutcome(
                probe_name=probe_name,
                check_type=probe_config.check_type,
                success=False,
                response_time=time.monotonic() - started,
                error_message=f"检查异常: {e}"
            )

        status = "成功" if outcome.success else "失败"
        self.logger.info(
            f"探针 {probe_name} 检查{status}, 响应时间: {outcome.response_time:.3f}s")

        state_change = self.state_machines[probe_name].record(outcome, issued_at)
        if state_change:
            self._dispatch(state_change)

        return outcome

    def _dispatch(self, state_change: StateChange):
        """在独立任务中执行状态变化回调，不阻塞检查"""
        if not self.on_state_change:
            return
        task = asyncio.create_task(self._notify(state_change))
        self._notify_tasks.add(task)
        task.add_done_callback(self._notify_tasks.discard)

    async def _drain_notifications(self):
        """并发等待未完成的通知，超过 shutdown_notify_timeout 的取消"""
        pending = list(self._notify_tasks)
        if not pending:
            return
        _, not_done = await asyncio.wait(pending, timeout=self.shutdown_notify_timeout)
        for task in not_done:
            task.cancel()
        if not_done:
            self.logger.warning(f"停止时 {len(not_done)} 个状态变化通知未在 "
                                f"{self.shutdown_notify_timeout}s 内完成，已取消")
            await asyncio.gather(*not_done, return_exceptions=True)

    async def _notify(self, state_change: StateChange):
        if not self.on_state_change:
            return
        try:
            await self.on_state_change(state_change)
        except Exception as e:
            self.logger.error(f"状态变化回调执行失败: {e}", exc_info=True)

    async def check_now(self, probe_name: str) -> CheckOutcome:
        """立即检查指定探针

        Raises:
            SchedulerError: 探针不存在
        """
        if probe_name not in self.probe_configs:
            raise SchedulerError(f"探针 {probe_name} 不存在", probe_name=probe_name)

        self.logger.info(f"立即检查探针: {probe_name}")
        return await self._execute_check(probe_name)

    async def check_all_now(self, kind: Optional[ProbeKind] = None) -> Dict[str, CheckOutcome]:
        """立即检查所有探针

        Args:
            kind: 只检查指定类型的探针，None 表示全部

        Returns:
            探针名称到检查结果的字典
        """
        probe_names = [name for name, probe_config in self.probe_configs.items()
                       if kind is None or probe_config.kind is kind]
        outcomes = await asyncio.gather(*(self.check_now(name) for name in probe_names))
        return dict(zip(probe_names, outcomes))

    def get_state(self, probe_name: str) -> Optional[ProbeState]:
        state_machine = self.state_machines.get(probe_name)
        return state_machine.state if state_machine else None

    def verdict(self, kind: ProbeKind) -> bool:
        """判断指定类型的探针是否全部健康，没有该类型探针时视为健康"""
        return all(state_machine.accepts_traffic
                   for state_machine in self.state_machines.values()
                   if state_machine.config.kind is kind)

    def get_status(self) -> Dict[str, Any]:
        """获取所有探针的状态快照"""
        status = {}
        for probe_name, state_machine in self.state_machines.items():
            snapshot = state_machine.snapshot()
            in_flight = self._in_flight.get(probe_name)
            snapshot['check_in_flight'] = in_flight is not None and not in_flight.done()
            snapshot['skipped_cycles'] = self.skipped_cycles.get(probe_name, 0)
            status[probe_name] = snapshot
        return status

    def get_runner_stats(self) -> Dict[str, Any]:
        """获取调度器统计信息"""
        return {
            'is_running': self.is_running,
            'total_probes': len(self.probe_configs),
            'running_tasks_count': len(self.running_tasks),
            'configured_probes': list(self.probe_configs.keys()),
            'liveness': self.verdict(ProbeKind.LIVENESS),
            'readiness': self.verdict(ProbeKind.READINESS),
        }
