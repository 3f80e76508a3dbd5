"""Fetches a deployment's source with git on the build destination."""

from __future__ import annotations

import shlex
from typing import Any, Dict, List, Mapping, Optional

from ..deployment import Deployment
from ..destination import resolve
from ..errors import HookConstructionError
from ..hook import Hook
from .base import DEFAULT_OPTS, NativeHook


class GitFetcher(NativeHook):
    """Clones the repository into ``build_at`` on first use, then syncs it.

    Options:

    * ``src``: repository URL, defaults to ``deployment.source``.
    * ``branch``: branch to check out, defaults to ``"master"``.
    * ``cmd_env``: extra environment pairs for the git commands.
    """

    default_opts: Dict[str, Any] = {**DEFAULT_OPTS, "branch": "master"}

    def get_hooks(self, deployment: Deployment, opts: Optional[Mapping[str, Any]] = None) -> List[Hook]:
        opts = self.merge_opts(opts)
        src = opts.get("src") or deployment.source
        if not src:
            raise HookConstructionError("GitFetcher needs a 'src' option or a deployment source")

        destination = resolve("fetch", deployment)
        cmd_env = opts.get("cmd_env", [])
        branch = shlex.quote(str(opts["branch"]))

        hook = (
            self.builder(opts)
            .main(f"[ -d .git ] || git clone {shlex.quote(src)} .", destination, cmd_env=cmd_env)
            .main(
                f"git fetch \n git reset --hard \n git clean -fd \n git checkout {branch} \n git pull",
                destination,
                cmd_env=cmd_env,
            )
            .build()
        )
        return [hook]
