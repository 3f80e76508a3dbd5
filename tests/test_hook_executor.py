import tempfile
import unittest
from pathlib import Path

from fakes import StubTransports

from hook_deployer.destination import Destination
from hook_deployer.hook import Hook, HookBuilder, Phase
from hook_deployer.local import LocalSession
from hook_deployer.orchestrator import HookExecutor, HookStatus
from hook_deployer.transport import Transports

DEST = Destination.local()


def make_hook(main=(), rollback=(), ensure=(), **flags) -> Hook:
    builder = HookBuilder(**flags)
    for cmd in main:
        builder.main(cmd, DEST)
    for cmd in rollback:
        builder.rollback(cmd, DEST)
    for cmd in ensure:
        builder.ensure(cmd, DEST)
    return builder.build()


class HookExecutorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.transports = StubTransports()
        self.executor = HookExecutor(self.transports)  # type: ignore[arg-type]

    def test_successful_main_skips_rollback_and_runs_ensure(self) -> None:
        hook = make_hook(main=["build"], rollback=["undo"], ensure=["cleanup"])
        result = self.executor.execute(hook)

        self.assertEqual(self.transports.commands, ["build", "cleanup"])
        self.assertTrue(result.success)
        self.assertEqual(result.status, HookStatus.SUCCESS)
        self.assertIsNone(result.rollback)
        self.assertEqual(result.ensure.attempted, 1)

    def test_main_stops_at_first_failure(self) -> None:
        hook = make_hook(main=["step-1", "fail-step-2", "step-3"])
        result = self.executor.execute(hook)

        self.assertEqual(self.transports.commands, ["step-1", "fail-step-2"])
        self.assertFalse(result.success)
        self.assertEqual(result.failure.rendered.strip(), "fail-step-2")

    def test_every_rollback_step_runs_even_when_one_fails(self) -> None:
        hook = make_hook(main=["fail-main"], rollback=["fail-undo-1", "undo-2", "undo-3"])
        result = self.executor.execute(hook)

        self.assertEqual(
            self.transports.commands,
            ["fail-main", "fail-undo-1", "undo-2", "undo-3"],
        )
        self.assertEqual(result.rollback.attempted, 3)
        self.assertEqual(len(result.rollback.failures), 1)
        # 回滚失败不会覆盖 main 的失败原因
        self.assertEqual(result.failure.rendered.strip(), "fail-main")

    def test_ensure_runs_after_failure_and_is_best_effort(self) -> None:
        hook = make_hook(main=["fail-main"], rollback=["undo"], ensure=["fail-clean-1", "clean-2"])
        result = self.executor.execute(hook)

        self.assertEqual(
            self.transports.commands,
            ["fail-main", "undo", "fail-clean-1", "clean-2"],
        )
        self.assertEqual(result.ensure.attempted, 2)
        self.assertFalse(result.ensure.ok)

    def test_run_ensure_false_skips_ensure(self) -> None:
        hook = make_hook(main=["build"], ensure=["cleanup"], run_ensure=False)
        result = self.executor.execute(hook)

        self.assertEqual(self.transports.commands, ["build"])
        self.assertIsNone(result.ensure)

    def test_ensure_failure_does_not_fail_hook(self) -> None:
        hook = make_hook(main=["build"], ensure=["fail-cleanup"])
        result = self.executor.execute(hook)
        self.assertTrue(result.success)

    def test_ignore_failure_reports_success_but_keeps_detail(self) -> None:
        hook = make_hook(main=["fail-main"], rollback=["undo"], ignore_failure=True)
        result = self.executor.execute(hook)

        self.assertTrue(result.success)
        self.assertFalse(result.main_ok)
        self.assertTrue(result.ignored)
        self.assertEqual(result.status, HookStatus.IGNORED)
        self.assertEqual(result.failure.rendered.strip(), "fail-main")
        # ignore_failure 不影响回滚
        self.assertEqual(self.transports.commands, ["fail-main", "undo"])

    def test_empty_hook_succeeds(self) -> None:
        result = self.executor.execute(Hook())
        self.assertTrue(result.success)
        self.assertEqual(self.transports.commands, [])

    def test_phase_results_are_labelled(self) -> None:
        hook = make_hook(main=["fail-main"], rollback=["undo"], ensure=["clean"])
        result = self.executor.execute(hook)
        self.assertEqual(
            [phase.phase for phase in result.phases()],
            [Phase.MAIN, Phase.ROLLBACK, Phase.ENSURE],
        )


class LocalShellHookTests(unittest.TestCase):
    def test_undecodable_main_output_still_runs_ensure(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            dest = Destination.local(tmp)
            hook = (
                HookBuilder()
                .main("printf '\\377\\376'", dest)
                .ensure("touch ensured", dest)
                .build()
            )
            executor = HookExecutor(Transports(local=LocalSession(stream_output=False)))

            result = executor.execute(hook)

            self.assertTrue(result.success)
            self.assertTrue((Path(tmp) / "ensured").exists())
            self.assertEqual(result.main.results[0].phase, Phase.MAIN)
            self.assertEqual(result.ensure.results[0].phase, Phase.ENSURE)


if __name__ == "__main__":
    unittest.main()
