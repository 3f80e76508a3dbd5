"""Base class for the hook producers that ship with hook-deployer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from ..deployment import Deployment
from ..hook import Hook, HookBuilder

DEFAULT_OPTS: Dict[str, Any] = {"run_ensure": True, "ignore_failure": False}


def uniq_merge(preferred: Optional[Mapping[str, Any]], defaults: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge two option maps keeping one value per key; ``preferred`` wins ties."""
    merged = dict(defaults)
    merged.update(preferred or {})
    return merged


class NativeHook(ABC):
    """Produces the hooks for one step of a deployment.

    Subclasses implement :meth:`get_hooks`; calling the instance does the
    same, so a native hook can be used anywhere a producer function can.
    """

    default_opts: Dict[str, Any] = DEFAULT_OPTS

    @abstractmethod
    def get_hooks(self, deployment: Deployment, opts: Optional[Mapping[str, Any]] = None) -> List[Hook]:
        ...

    def __call__(self, deployment: Deployment, opts: Optional[Mapping[str, Any]] = None) -> List[Hook]:
        return self.get_hooks(deployment, opts)

    def merge_opts(self, opts: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        return uniq_merge(opts, self.default_opts)

    def builder(self, opts: Mapping[str, Any]) -> HookBuilder:
        return HookBuilder(
            run_ensure=bool(opts.get("run_ensure", True)),
            ignore_failure=bool(opts.get("ignore_failure", False)),
            name=opts.get("name") or type(self).__name__,
        )
