"""探针相关的数据模型"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Dict, Any, Optional, Mapping

# 与部署镜像中 HEALTHCHECK 指令一致的默认值（秒）
DEFAULT_INTERVAL = 30
DEFAULT_TIMEOUT = 10
DEFAULT_START_PERIOD = 40
DEFAULT_RETRIES = 3


class ProbeResult(Enum):
    """单次判定结果"""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


class ProbeState(Enum):
    """编排器可见的探针生命周期状态"""
    STARTING = "starting"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    TERMINATED = "terminated"

    @property
    def accepts_traffic(self) -> bool:
        """只有 HEALTHY 状态允许接收路由流量"""
        return self is ProbeState.HEALTHY


class ProbeKind(Enum):
    """探针类型"""
    LIVENESS = "liveness"
    READINESS = "readiness"


class OverlapPolicy(Enum):
    """上一次检查尚未结束时的处理策略"""
    SKIP = "skip"
    QUEUE = "queue"


@dataclass(frozen=True)
class ProbeConfig:
    """探针配置，容器启动时创建，之后不可修改"""
    name: str
    kind: ProbeKind = ProbeKind.READINESS
    interval: float = DEFAULT_INTERVAL
    timeout: float = DEFAULT_TIMEOUT
    start_period: float = DEFAULT_START_PERIOD
    retries: int = DEFAULT_RETRIES
    check: Mapping[str, Any] = field(default_factory=dict)
    overlap_policy: OverlapPolicy = OverlapPolicy.SKIP
    initial_delay: Optional[float] = None

    def __post_init__(self):
        if not isinstance(self.kind, ProbeKind):
            object.__setattr__(self, 'kind', ProbeKind(self.kind))
        if not isinstance(self.overlap_policy, OverlapPolicy):
            object.__setattr__(self, 'overlap_policy', OverlapPolicy(self.overlap_policy))
        # 冻结检查配置，避免通过字典引用修改
        object.__setattr__(self, 'check', MappingProxyType(dict(self.check)))

        if self.interval <= 0:
            raise ValueError(f"探针 {self.name} 的 interval 必须大于0")
        if self.timeout <= 0:
            raise ValueError(f"探针 {self.name} 的 timeout 必须大于0")
        if self.start_period < 0:
            raise ValueError(f"探针 {self.name} 的 start_period 不能为负数")
        if not isinstance(self.retries, int) or self.retries < 1:
            raise ValueError(f"探针 {self.name} 的 retries 必须是正整数")
        if self.initial_delay is not None and self.initial_delay < 0:
            raise ValueError(f"探针 {self.name} 的 initial_delay 不能为负数")

    @property
    def check_type(self) -> str:
        return self.check.get('type', 'unknown')

    @property
    def first_check_delay(self) -> float:
        """首次检查前的等待时间，默认等于检查间隔"""
        return self.interval if self.initial_delay is None else self.initial_delay

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any],
                  defaults: Optional[Dict[str, Any]] = None) -> 'ProbeConfig':
        """
        从配置字典创建探针配置

        Args:
            name: 探针名称
            data: 探针配置段
            defaults: 全局默认值

        Returns:
            ProbeConfig: 探针配置
        """
        defaults = defaults or {}

        def pick(key: str, fallback: Any, alias: Optional[str] = None) -> Any:
            if key in data:
                return data[key]
            if alias and alias in data:
                return data[alias]
            if key in defaults:
                return defaults[key]
            if alias and alias in defaults:
                return defaults[alias]
            return fallback

        return cls(
            name=name,
            kind=ProbeKind(data.get('kind', ProbeKind.READINESS.value)),
            interval=pick('interval', DEFAULT_INTERVAL),
            timeout=pick('timeout', DEFAULT_TIMEOUT),
            start_period=pick('start_period', DEFAULT_START_PERIOD, alias='startPeriod'),
            retries=pick('retries', DEFAULT_RETRIES),
            check=data.get('check', {}),
            overlap_policy=OverlapPolicy(pick('overlap_policy', OverlapPolicy.SKIP.value)),
            initial_delay=pick('initial_delay', None, alias='initialDelay'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'kind': self.kind.value,
            'interval': self.interval,
            'timeout': self.timeout,
            'start_period': self.start_period,
            'retries': self.retries,
            'check_type': self.check_type,
            'overlap_policy': self.overlap_policy.value,
        }


@dataclass
class CheckOutcome:
    """单次检查结果数据模型"""
    probe_name: str
    check_type: str
    success: bool
    response_time: float
    error_message: Optional[str] = None
    timed_out: bool = False
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class StateChange:
    """探针状态变化事件模型"""
    probe_name: str
    kind: ProbeKind
    old_state: ProbeState
    new_state: ProbeState
    consecutive_failures: int = 0
    timestamp: datetime = field(default_factory=datetime.now)
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'probe_name': self.probe_name,
            'kind': self.kind.value,
            'old_state': self.old_state.value,
            'new_state': self.new_state.value,
            'consecutive_failures': self.consecutive_failures,
            'timestamp': self.timestamp.isoformat(),
            'error_message': self.error_message,
        }
