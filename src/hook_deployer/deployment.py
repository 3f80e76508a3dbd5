"""Deployment metadata and its ordered list of hooks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .destination import Destination
from .hook import Hook


@dataclass
class Deployment:
    """One deployment run.

    ``hooks`` only grows through :meth:`add_hook`; the order hooks are added
    in is the order they execute in.
    """

    name: str
    vsn: str
    env: str = "prod"
    source: Optional[str] = None
    build_at: Destination = field(default_factory=Destination.local)
    publish_to: Destination = field(default_factory=Destination.local)
    hooks: List[Hook] = field(default_factory=list)

    def add_hook(self, hook: Hook) -> "Deployment":
        if not isinstance(hook, Hook):
            raise TypeError(f"Expected a Hook, got {hook!r}")
        self.hooks.append(hook)
        return self

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "vsn": self.vsn,
            "env": self.env,
            "source": self.source,
            "build_at": str(self.build_at),
            "publish_to": str(self.publish_to),
            "hooks": len(self.hooks),
        }
