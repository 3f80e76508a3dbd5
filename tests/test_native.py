import os
import tempfile
import unittest

from hook_deployer.deployment import Deployment
from hook_deployer.destination import Destination
from hook_deployer.errors import HookConstructionError
from hook_deployer.local import LocalSession
from hook_deployer.native import (
    DistilleryBuilder,
    DistilleryInit,
    DistilleryPublisher,
    GitFetcher,
    get_producer,
    uniq_merge,
)
from hook_deployer.operation import Operation
from hook_deployer.transport import Transports


def local_deployment(**overrides) -> Deployment:
    values = dict(
        name="name",
        vsn="0.1.1",
        env="prod",
        build_at=Destination.local("."),
        publish_to=Destination.local("."),
    )
    values.update(overrides)
    return Deployment(**values)


class UniqMergeTests(unittest.TestCase):
    def test_caller_values_win(self) -> None:
        merged = uniq_merge({"run_ensure": False}, {"run_ensure": True, "ignore_failure": False})
        self.assertEqual(merged, {"run_ensure": False, "ignore_failure": False})

    def test_none_keeps_defaults(self) -> None:
        self.assertEqual(uniq_merge(None, {"a": 1}), {"a": 1})


class DistilleryInitTests(unittest.TestCase):
    def test_get_hooks_defaults(self) -> None:
        dest = Destination.local(".")
        hooks = DistilleryInit().get_hooks(local_deployment(), {})

        self.assertEqual(len(hooks), 1)
        hook = hooks[0]
        envs = (("MIX_ENV", "prod"),)
        self.assertEqual(
            list(hook.main),
            [
                Operation(destination=dest, cmd="mix deps.get \n mix compile", cmd_envs=envs),
                Operation(destination=dest, cmd="mix release.init --name name ", cmd_envs=envs),
            ],
        )
        self.assertEqual(
            list(hook.ensure),
            [
                Operation(destination=dest, cmd="rm -rf ./rel"),
                Operation(destination=dest, cmd="rm -rf _build/prod"),
            ],
        )
        self.assertEqual(hook.rollback, ())
        self.assertTrue(hook.run_ensure)
        self.assertFalse(hook.ignore_failure)

    def test_template_and_extra_env(self) -> None:
        hooks = DistilleryInit().get_hooks(
            local_deployment(),
            {"template": "rel/tpl.eex", "cmd_env": [("FOO", "bar")], "ignore_failure": True},
        )
        hook = hooks[0]
        self.assertEqual(hook.main[1].cmd, "mix release.init --name name --template rel/tpl.eex")
        self.assertEqual(hook.main[1].cmd_envs, (("MIX_ENV", "prod"), ("FOO", "bar")))
        self.assertTrue(hook.ignore_failure)

    def test_runs_on_build_destination(self) -> None:
        build_at = Destination.remote("builder", "ci-1", "/build")
        hook = DistilleryInit().get_hooks(local_deployment(build_at=build_at))[0]
        self.assertTrue(all(op.destination == build_at for op in hook.main + hook.ensure))


class DistilleryBuilderTests(unittest.TestCase):
    def test_release_commands(self) -> None:
        hook = DistilleryBuilder().get_hooks(local_deployment(env="staging"), {"release_env": "staging"})[0]
        self.assertEqual(hook.main[1].render(), "MIX_ENV=staging mix release --env=staging")
        self.assertEqual(hook.ensure, ())


class DistilleryPublisherTests(unittest.TestCase):
    def test_local_to_local_copies_with_cp(self) -> None:
        deployment = local_deployment(publish_to=Destination.local("/tmp/releases"))
        hook = DistilleryPublisher().get_hooks(deployment)[0]

        copy = hook.main[0]
        self.assertEqual(copy.destination, deployment.build_at)
        self.assertIn("cp _build/prod/rel/name/releases/0.1.1/name.tar.gz", copy.cmd)
        self.assertIn(os.path.abspath("/tmp/releases"), copy.cmd)
        self.assertEqual(hook.main[1].cmd, "tar xzf name.tar.gz")
        self.assertEqual(hook.ensure[0].cmd, "rm -f name.tar.gz")

    def test_remote_publish_uses_scp(self) -> None:
        publish_to = Destination.remote("deploy", "web-1", "/srv/name")
        hook = DistilleryPublisher().get_hooks(local_deployment(publish_to=publish_to))[0]

        self.assertTrue(hook.main[0].cmd.startswith("scp _build/prod/rel/name/releases/0.1.1/name.tar.gz"))
        self.assertTrue(hook.main[0].cmd.endswith("deploy@web-1:/srv/name"))
        self.assertEqual(hook.main[1].destination, publish_to)

    def test_remote_build_pulls_to_local_publish(self) -> None:
        build_at = Destination.remote("builder", "ci-1", "/build")
        hook = DistilleryPublisher().get_hooks(local_deployment(build_at=build_at))[0]
        self.assertEqual(hook.main[0].destination, Destination.local("."))
        self.assertEqual(
            hook.main[0].cmd,
            "scp builder@ci-1:/build/_build/prod/rel/name/releases/0.1.1/name.tar.gz .",
        )


class GitFetcherTests(unittest.TestCase):
    def test_requires_source(self) -> None:
        with self.assertRaises(HookConstructionError):
            GitFetcher().get_hooks(local_deployment())

    def test_uses_deployment_source_and_branch(self) -> None:
        deployment = local_deployment(source="https://example.com/app.git")
        hook = GitFetcher().get_hooks(deployment, {"branch": "release"})[0]

        self.assertEqual(
            hook.main[0].cmd,
            "[ -d .git ] || git clone https://example.com/app.git .",
        )
        self.assertIn("git checkout release", hook.main[1].cmd)
        self.assertEqual(hook.main[0].destination, deployment.build_at)

    def test_default_branch_is_master(self) -> None:
        hook = GitFetcher().get_hooks(local_deployment(), {"src": "git@example.com:app.git"})[0]
        self.assertIn("git checkout master", hook.main[1].cmd)

    def test_clone_step_runs_with_cmd_env(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            os.mkdir(os.path.join(tmp, ".git"))
            deployment = local_deployment(build_at=Destination.local(tmp))
            hook = GitFetcher().get_hooks(
                deployment,
                {"src": "/nonexistent.git", "cmd_env": [("GIT_TERMINAL_PROMPT", "0")]},
            )[0]
            self.assertEqual(
                hook.main[0].render(),
                "GIT_TERMINAL_PROMPT=0 [ -d .git ] || git clone /nonexistent.git .",
            )

            transports = Transports(local=LocalSession(stream_output=False))
            result = hook.main[0].run(transports)

            self.assertTrue(result.ok, result.describe())
            self.assertEqual(result.output, "")


class RegistryTests(unittest.TestCase):
    def test_lookup_by_name(self) -> None:
        self.assertIsInstance(get_producer("git"), GitFetcher)
        with self.assertRaises(KeyError):
            get_producer("rsync")

    def test_distillery_resolves_by_kind(self) -> None:
        self.assertIsInstance(get_producer("distillery", "build"), DistilleryBuilder)
        self.assertIsInstance(get_producer("distillery", "publish"), DistilleryPublisher)
        with self.assertRaises(KeyError):
            get_producer("distillery", "fetch")
        with self.assertRaises(KeyError):
            get_producer("distillery")


if __name__ == "__main__":
    unittest.main()
