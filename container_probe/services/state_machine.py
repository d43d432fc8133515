"""探针状态机模块

每个探针拥有一个独立的状态机实例：
STARTING -> HEALTHY <-> UNHEALTHY -> TERMINATED

- 启动宽限期（start_period）内的失败不计入连续失败次数
- 宽限期结束后连续失败达到 retries 次进入 UNHEALTHY
- 任意一次成功都会清零失败计数并进入 HEALTHY
"""

from collections import deque
from datetime import datetime
from typing import Deque, Dict, Any, List, Optional

from ..models.probe import CheckOutcome, ProbeConfig, ProbeResult, ProbeState, StateChange
from ..utils.log_manager import get_logger

DEFAULT_HISTORY_SIZE = 50
DEFAULT_CHANGES_SIZE = 100


class ProbeStateMachine:
    """探针状态机

    状态只由 record/terminate 修改，时间由调用方以单调时钟秒数传入。
    """

    def __init__(self, config: ProbeConfig, started_at: float,
                 history_size: int = DEFAULT_HISTORY_SIZE,
                 changes_size: int = DEFAULT_CHANGES_SIZE):
        """初始化状态机

        Args:
            config: 探针配置
            started_at: 容器（进程）启动时刻，单调时钟秒数
            history_size: 保留的检查结果数量
            changes_size: 保留的状态变化事件数量
        """
        self.config = config
        self.started_at = started_at
        self.state = ProbeState.STARTING
        self.result = ProbeResult.UNKNOWN
        self.consecutive_failures = 0
        self.total_checks = 0
        self.total_failures = 0
        self.ignored_failures = 0
        self.last_outcome: Optional[CheckOutcome] = None
        self.history: Deque[CheckOutcome] = deque(maxlen=history_size)
        self.state_changes: Deque[StateChange] = deque(maxlen=changes_size)
        self.logger = get_logger(f'state.{config.name}')

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def accepts_traffic(self) -> bool:
        return self.state.accepts_traffic

    def in_grace_period(self, now: float) -> bool:
        """判断当前是否仍处于启动宽限期"""
        return now - self.started_at < self.config.start_period

    def record(self, outcome: CheckOutcome, now: float) -> Optional[StateChange]:
        """记录一次检查结果

        Args:
            outcome: 检查结果
            now: 检查发起时刻，单调时钟秒数；宽限期按此时刻判断

        Returns:
            如果状态发生变化，返回StateChange事件，否则返回None
        """
        if self.state is ProbeState.TERMINATED:
            self.logger.debug(f"探针 {self.name} 已终止，忽略检查结果")
            return None

        self.total_checks += 1
        self.last_outcome = outcome
        self.history.append(outcome)

        if outcome.success:
            self.consecutive_failures = 0
            self.result = ProbeResult.HEALTHY
            return self._transition(ProbeState.HEALTHY, outcome)

        self.total_failures += 1

        if self.state is ProbeState.STARTING and self.in_grace_period(now):
            # 宽限期内的失败不计入阈值
            self.ignored_failures += 1
            self.logger.debug(
                f"探针 {self.name} 宽限期内检查失败，不计入阈值: {outcome.error_message}")
            return None

        self.consecutive_failures += 1
        self.logger.warning(
            f"探针 {self.name} 检查失败 ({self.consecutive_failures}/{self.config.retries}): "
            f"{outcome.error_message}")

        if self.consecutive_failures >= self.config.retries:
            self.result = ProbeResult.UNHEALTHY
            return self._transition(ProbeState.UNHEALTHY, outcome)

        return None

    def terminate(self) -> Optional[StateChange]:
        """将状态机标记为终止，之后的检查结果全部忽略"""
        if self.state is ProbeState.TERMINATED:
            return None
        return self._transition(ProbeState.TERMINATED, None)

    def _transition(self, new_state: ProbeState,
                    outcome: Optional[CheckOutcome]) -> Optional[StateChange]:
        old_state = self.state
        if old_state is new_state:
            return None

        self.state = new_state
        state_change = StateChange(
            probe_name=self.name,
            kind=self.config.kind,
            old_state=old_state,
            new_state=new_state,
            consecutive_failures=self.consecutive_failures,
            timestamp=outcome.timestamp if outcome else datetime.now(),
            error_message=outcome.error_message if outcome else None
        )
        self.state_changes.append(state_change)

        message = f"探针 {self.name} 状态变化: {old_state.value} -> {new_state.value}"
        if new_state is ProbeState.UNHEALTHY:
            self.logger.warning(message)
        else:
            self.logger.info(message)

        return state_change

    def get_state_changes(self, since: Optional[datetime] = None) -> List[StateChange]:
        """获取状态变化事件

        Args:
            since: 获取此时间之后的状态变化，如果为None则获取所有
        """
        if since is None:
            return list(self.state_changes)
        return [change for change in self.state_changes if change.timestamp >= since]

    def get_history(self, limit: Optional[int] = None) -> List[CheckOutcome]:
        """获取最近的检查结果，按时间倒序"""
        history = list(reversed(self.history))
        if limit:
            history = history[:limit]
        return history

    def snapshot(self) -> Dict[str, Any]:
        """生成状态快照，供探针端点输出"""
        last = self.last_outcome
        return {
            'name': self.name,
            'kind': self.config.kind.value,
            'state': self.state.value,
            'result': self.result.value,
            'accepts_traffic': self.accepts_traffic,
            'consecutive_failures': self.consecutive_failures,
            'total_checks': self.total_checks,
            'total_failures': self.total_failures,
            'ignored_failures': self.ignored_failures,
            'last_check_time': last.timestamp.isoformat() if last else None,
            'last_response_time': last.response_time if last else None,
            'last_error': last.error_message if last and not last.success else None,
            'config': self.config.to_dict(),
        }
