"""数据模型模块"""

from .probe import (CheckOutcome, OverlapPolicy, ProbeConfig, ProbeKind, ProbeResult,
                    ProbeState, StateChange)

__all__ = ['CheckOutcome', 'OverlapPolicy', 'ProbeConfig', 'ProbeKind', 'ProbeResult',
           'ProbeState', 'StateChange']
