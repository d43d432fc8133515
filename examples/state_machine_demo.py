#!/usr/bin/env python3
"""
探针状态机演示

用显式时间驱动一个就绪探针，重现典型的生命周期：
启动宽限期 -> 健康 -> 连续失败 -> 不健康 -> 恢复。
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from container_probe.models.probe import CheckOutcome, ProbeConfig, ProbeKind
from container_probe.services.state_machine import ProbeStateMachine


def outcome(success: bool) -> CheckOutcome:
    return CheckOutcome(
        probe_name='app-readiness',
        check_type='http',
        success=success,
        response_time=0.01,
        error_message=None if success else '连接被拒绝'
    )


def demo_lifecycle():
    """演示 start_period=40, interval=30, retries=3 的生命周期"""
    config = ProbeConfig(name='app-readiness', kind=ProbeKind.READINESS,
                         interval=30, timeout=10, start_period=40, retries=3,
                         check={'type': 'http', 'url': 'http://localhost:8080/health'})
    machine = ProbeStateMachine(config, started_at=0.0)

    timeline = [(30, True), (60, True), (210, False), (240, False), (270, False), (300, True)]

    print("🚀 探针状态机演示")
    print("=" * 50)
    for t, success in timeline:
        change = machine.record(outcome(success), now=t)
        mark = '✅' if success else '❌'
        line = f"t={t:>3}s {mark} state={machine.state.value:<10} failures={machine.consecutive_failures}"
        if change:
            line += f"  ({change.old_state.value} -> {change.new_state.value})"
        print(line)


if __name__ == '__main__':
    demo_lifecycle()
