"""Hook producers that ship with hook-deployer, selectable by name."""

from typing import Dict, Optional, Type

from .base import NativeHook, uniq_merge
from .distillery import DistilleryBuilder, DistilleryInit, DistilleryPublisher
from .git import GitFetcher

NATIVE_PRODUCERS: Dict[str, Type[NativeHook]] = {
    "git": GitFetcher,
    "distillery_init": DistilleryInit,
    "distillery_build": DistilleryBuilder,
    "distillery_publish": DistilleryPublisher,
}

# 同一个名字按 hook 类型选择不同实现
PRODUCERS_BY_KIND: Dict[str, Dict[str, Type[NativeHook]]] = {
    "distillery": {"build": DistilleryBuilder, "publish": DistilleryPublisher},
}


def get_producer(name: str, kind: Optional[str] = None) -> NativeHook:
    """Instantiate the native producer registered under ``name``.

    Names in ``PRODUCERS_BY_KIND`` also need the hook ``kind`` they are
    used for.
    """
    if name in PRODUCERS_BY_KIND:
        by_kind = PRODUCERS_BY_KIND[name]
        if kind not in by_kind:
            raise KeyError(
                f"Native producer {name!r} only handles {', '.join(sorted(by_kind))} hooks, not {kind!r}"
            )
        return by_kind[kind]()
    try:
        return NATIVE_PRODUCERS[name]()
    except KeyError:
        available = sorted([*NATIVE_PRODUCERS, *PRODUCERS_BY_KIND])
        raise KeyError(f"Unknown native producer {name!r}; available: {', '.join(available)}") from None


__all__ = [
    "NATIVE_PRODUCERS",
    "PRODUCERS_BY_KIND",
    "NativeHook",
    "GitFetcher",
    "DistilleryInit",
    "DistilleryBuilder",
    "DistilleryPublisher",
    "get_producer",
    "uniq_merge",
]
