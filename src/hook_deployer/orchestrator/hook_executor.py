"""Runs the phases of a single hook."""

from __future__ import annotations

import logging
from typing import Iterable

from ..hook import Hook, Phase
from ..operation import Operation
from ..transport import Transports
from .models import HookResult, PhaseResult

logger = logging.getLogger(__name__)


class HookExecutor:
    """
    Hook 执行器

    main 按顺序执行，遇到第一个失败即停止；
    main 失败时执行全部 rollback；
    run_ensure 为 True 时无论成败都执行全部 ensure。
    rollback/ensure 中的失败只记录，不会再触发新的回滚。
    """

    def __init__(self, transports: Transports) -> None:
        self.transports = transports

    def execute(self, hook: Hook, index: int = 0) -> HookResult:
        main = self._run_main(hook.main)
        result = HookResult(index=index, hook=hook, main=main)

        if not main.ok:
            failure = main.failures[0]
            logger.warning(f"   ✗ Main phase failed: {failure.rendered.strip()}")
            if hook.rollback:
                logger.info(f"   ↩️ Rolling back ({len(hook.rollback)} operations)")
            result.rollback = self._run_best_effort(Phase.ROLLBACK, hook.rollback)

        if hook.run_ensure:
            if hook.ensure:
                logger.info(f"   🧹 Running ensure ({len(hook.ensure)} operations)")
            result.ensure = self._run_best_effort(Phase.ENSURE, hook.ensure)

        return result

    def _run_main(self, operations: Iterable[Operation]) -> PhaseResult:
        phase = PhaseResult(phase=Phase.MAIN)
        for operation in operations:
            op_result = operation.run(self.transports)
            op_result.phase = Phase.MAIN
            phase.results.append(op_result)
            if not op_result.ok:
                break
        return phase

    def _run_best_effort(self, phase_name: Phase, operations: Iterable[Operation]) -> PhaseResult:
        phase = PhaseResult(phase=phase_name)
        for operation in operations:
            op_result = operation.run(self.transports)
            op_result.phase = phase_name
            phase.results.append(op_result)
            if not op_result.ok:
                # 只记录，继续执行后续操作
                logger.warning(
                    f"   ⚠️ {phase_name.value} operation failed (continuing):\n{op_result.describe()}"
                )
        return phase
