"""Distillery release hooks: init, build and publish an Elixir release."""

from __future__ import annotations

import os
import shlex
from typing import Any, Dict, List, Mapping, Optional

from ..deployment import Deployment
from ..destination import Destination, resolve
from ..hook import Hook
from ..operation import Operation
from .base import DEFAULT_OPTS, NativeHook

SETUP_CMD = "mix deps.get \n mix compile"


def _mix_env(deployment: Deployment, opts: Mapping[str, Any]) -> list:
    return [("MIX_ENV", deployment.env)] + list(opts.get("cmd_env", []))


class DistilleryInit(NativeHook):
    """Runs ``mix release.init`` on the build destination.

    Cleans up ``rel/`` and ``_build/prod`` afterwards. Has no rollback.

    Options:

    * ``template``: path passed as ``--template``.
    * ``cmd_env``: extra environment pairs, after ``MIX_ENV``.
    """

    def get_hooks(self, deployment: Deployment, opts: Optional[Mapping[str, Any]] = None) -> List[Hook]:
        opts = self.merge_opts(opts)
        destination = resolve("build", deployment)
        cmd_env = _mix_env(deployment, opts)

        switches = [self._name_cmd(deployment.name), self._template_cmd(opts.get("template"))]
        hook = (
            self.builder(opts)
            .main(SETUP_CMD, destination, cmd_env=cmd_env)
            .main(self._rel_init(switches), destination, cmd_env=cmd_env)
            .ensure("rm -rf ./rel", destination)
            .ensure("rm -rf _build/prod", destination)
            .build()
        )
        return [hook]

    @staticmethod
    def _rel_init(switches: List[str]) -> str:
        cmd = "mix release.init"
        for switch in switches:
            cmd = cmd + " " + switch
        return cmd

    @staticmethod
    def _name_cmd(name: Optional[str]) -> str:
        return f"--name {name}" if name else ""

    @staticmethod
    def _template_cmd(path: Optional[str]) -> str:
        return f"--template {path}" if path else ""


class DistilleryBuilder(NativeHook):
    """Compiles and builds a release on the build destination.

    Options:

    * ``release_env``: value for ``mix release --env``, defaults to ``"prod"``.
    * ``cmd_env``: extra environment pairs, after ``MIX_ENV``.
    """

    default_opts: Dict[str, Any] = {**DEFAULT_OPTS, "release_env": "prod"}

    def get_hooks(self, deployment: Deployment, opts: Optional[Mapping[str, Any]] = None) -> List[Hook]:
        opts = self.merge_opts(opts)
        destination = resolve("build", deployment)
        cmd_env = _mix_env(deployment, opts)

        hook = (
            self.builder(opts)
            .main(SETUP_CMD, destination, cmd_env=cmd_env)
            .main(f"mix release --env={opts['release_env']}", destination, cmd_env=cmd_env)
            .build()
        )
        return [hook]


class DistilleryPublisher(NativeHook):
    """Copies the release tarball to ``publish_to`` and unpacks it there.

    The copied tarball is removed in the ensure phase.
    """

    def get_hooks(self, deployment: Deployment, opts: Optional[Mapping[str, Any]] = None) -> List[Hook]:
        opts = self.merge_opts(opts)
        publish_to = resolve("publish", deployment)
        cmd_env = opts.get("cmd_env", [])
        archive = f"{deployment.name}.tar.gz"

        hook = (
            self.builder(opts)
            .main(self._copy_rel(deployment, cmd_env))
            .main(f"tar xzf {archive}", publish_to, cmd_env=cmd_env)
            .ensure(f"rm -f {archive}", publish_to)
            .build()
        )
        return [hook]

    def _copy_rel(self, deployment: Deployment, cmd_env) -> Operation:
        build_at, publish_to = deployment.build_at, deployment.publish_to
        tarball = self.tarball_path(deployment)

        if build_at.is_local and publish_to.is_local:
            target = os.path.abspath(os.path.expanduser(publish_to.path))
            cmd = f"mkdir -p {shlex.quote(target)} \n cp {tarball} {shlex.quote(target)}"
            return Operation(destination=build_at, cmd=cmd, cmd_envs=cmd_env)
        if publish_to.is_local:
            # 构建机在远程：从发布目录拉取
            source = f"{_scp_target(build_at)}/{tarball}"
            return Operation(destination=publish_to, cmd=f"scp {source} .", cmd_envs=cmd_env)
        return Operation(
            destination=build_at,
            cmd=f"scp {tarball} {_scp_target(publish_to)}",
            cmd_envs=cmd_env,
        )

    @staticmethod
    def tarball_path(deployment: Deployment) -> str:
        name = deployment.name
        return f"_build/{deployment.env}/rel/{name}/releases/{deployment.vsn}/{name}.tar.gz"


def _scp_target(destination: Destination) -> str:
    return f"{destination.username}@{destination.host}:{destination.path}"
