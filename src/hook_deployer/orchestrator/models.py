"""Data models for pipeline execution results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..errors import DeploymentFailedError
from ..hook import Hook, Phase
from ..operation import OperationResult


class HookStatus(Enum):
    """Hook 的最终状态"""
    SUCCESS = "success"
    FAILED = "failed"
    IGNORED = "ignored"   # main 失败但 ignore_failure=True


@dataclass
class PhaseResult:
    """Results of the operations attempted in one phase, in run order."""
    phase: Phase
    results: List[OperationResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(result.ok for result in self.results)

    @property
    def failures(self) -> List[OperationResult]:
        return [result for result in self.results if not result.ok]

    @property
    def attempted(self) -> int:
        return len(self.results)


@dataclass
class HookResult:
    """Outcome of one hook across all of its phases."""
    index: int
    hook: Hook
    main: PhaseResult
    rollback: Optional[PhaseResult] = None
    ensure: Optional[PhaseResult] = None

    @property
    def name(self) -> str:
        return self.hook.name or f"hook-{self.index + 1}"

    @property
    def main_ok(self) -> bool:
        return self.main.ok

    @property
    def ignored(self) -> bool:
        return not self.main_ok and self.hook.ignore_failure

    @property
    def success(self) -> bool:
        """Outcome reported to the pipeline; ignored failures count as success."""
        return self.main_ok or self.hook.ignore_failure

    @property
    def status(self) -> HookStatus:
        if self.main_ok:
            return HookStatus.SUCCESS
        return HookStatus.IGNORED if self.ignored else HookStatus.FAILED

    @property
    def failure(self) -> Optional[OperationResult]:
        """The main-phase operation that failed, if any."""
        failures = self.main.failures
        return failures[0] if failures else None

    def phases(self) -> List[PhaseResult]:
        return [phase for phase in (self.main, self.rollback, self.ensure) if phase is not None]


@dataclass
class PipelineResult:
    """Outcome of running every hook of a deployment."""
    deployment_name: str
    hook_results: List[HookResult] = field(default_factory=list)
    total_hooks: int = 0
    aborted: bool = False

    @property
    def success(self) -> bool:
        return not self.aborted and all(result.success for result in self.hook_results)

    @property
    def failed_hook(self) -> Optional[HookResult]:
        for result in self.hook_results:
            if not result.success:
                return result
        return None

    @property
    def first_failure(self) -> Optional[OperationResult]:
        failed = self.failed_hook
        return failed.failure if failed else None

    @property
    def skipped_hooks(self) -> int:
        return self.total_hooks - len(self.hook_results)

    def raise_for_failure(self) -> None:
        if not self.success:
            raise DeploymentFailedError(self)
