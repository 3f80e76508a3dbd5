"""Helpers to initialize a deployment, add hooks to it and execute it.

Hooks are built eagerly: every error in a kind, producer or option set is
raised by :func:`add_hook` before anything runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from .config import AppConfig
from .deployment import Deployment
from .destination import Destination, resolve
from .errors import HookConstructionError
from .hook import Hook, HookBuilder, HookKind, Phase, commands_to_operations
from .native import DistilleryBuilder, DistilleryPublisher, GitFetcher, NativeHook, get_producer
from .operation import Operation, normalize_envs
from .orchestrator import PipelineExecutor, PipelineResult
from .transport import Transports

logger = logging.getLogger(__name__)

Producer = Callable[[Deployment, Dict[str, Any]], Any]

NATIVE_KINDS = (HookKind.FETCH, HookKind.BUILD, HookKind.PUBLISH)
DEPLOYMENT_KEYS = ("name", "vsn", "env", "source", "build_at", "publish_to")


@dataclass
class Producers:
    """Default producer for each native hook kind."""

    fetch: Producer = field(default_factory=GitFetcher)
    build: Producer = field(default_factory=DistilleryBuilder)
    publish: Producer = field(default_factory=DistilleryPublisher)

    @classmethod
    def from_names(cls, names: Optional[Mapping[str, str]]) -> "Producers":
        """Build from a ``{"fetch": "git", ...}`` mapping of registry names."""
        producers = cls()
        for kind_name, producer_name in (names or {}).items():
            kind = _coerce_kind(kind_name)
            if kind not in NATIVE_KINDS:
                raise HookConstructionError(f"No default producer can be set for {kind.value!r} hooks")
            setattr(producers, kind.value, _named_producer(producer_name, kind))
        return producers

    def for_kind(self, kind: HookKind) -> Producer:
        if kind not in NATIVE_KINDS:
            raise HookConstructionError(f"{kind.value!r} hooks have no default producer")
        return getattr(self, kind.value)


def init_deployment(opts: Mapping[str, Any]) -> Deployment:
    """Create a Deployment from a configuration map."""
    if not isinstance(opts, Mapping):
        raise HookConstructionError("Deployment configuration must be a mapping")
    unknown = sorted(set(opts) - set(DEPLOYMENT_KEYS))
    if unknown:
        raise HookConstructionError(f"Unknown deployment keys: {', '.join(unknown)}")
    missing = [key for key in ("name", "vsn") if not opts.get(key)]
    if missing:
        raise HookConstructionError(f"Missing deployment keys: {', '.join(missing)}")

    values = dict(opts)
    for key in ("build_at", "publish_to"):
        if key in values:
            values[key] = coerce_destination(values[key])
    values["vsn"] = str(values["vsn"])
    return Deployment(**values)


def add_hook(
    deployment: Deployment,
    kind: Union[HookKind, str],
    producer: Union[str, Producer, type] = "default",
    options: Optional[Mapping[str, Any]] = None,
    *,
    producers: Optional[Producers] = None,
) -> Deployment:
    """Build hooks with ``producer`` and append them to ``deployment``.

    ``producer`` is ``"default"`` (the kind's entry in ``producers``), a
    native producer name such as ``"git"``, or any callable taking
    ``(deployment, options)``. Its output may be a Hook, an Operation, a
    command string, a ``{"main": ..., "rollback": ..., "ensure": ...}``
    mapping, or a list of those.
    """
    kind = _coerce_kind(kind)
    options = _validate_options(options)
    producer = _resolve_producer(kind, producer, producers or Producers())

    try:
        produced = producer(deployment, dict(options))
    except HookConstructionError:
        raise
    except (ValueError, TypeError, KeyError) as exc:
        raise HookConstructionError(f"Could not build {kind.value} hook: {exc}") from exc

    hooks = _wrap(produced, kind, deployment, options)
    for hook in hooks:
        deployment.add_hook(hook)
    logger.debug("Added %d %s hook(s) to %s", len(hooks), kind.value, deployment.name)
    return deployment


def add_command_hook(
    deployment: Deployment,
    destination: Union[Destination, str, Mapping[str, Any]],
    commands: Union[str, Operation, Iterable[Union[str, Operation]]],
    **options: Any,
) -> Deployment:
    """Append a hook running literal shell commands on ``destination``.

    ``rollback`` and ``ensure`` keyword arguments take commands the same way
    ``commands`` does.
    """
    options = dict(options)
    options["destination"] = destination
    options = _validate_options(options)
    hook = _hook_from_phases(
        {"main": commands, "rollback": options.get("rollback"), "ensure": options.get("ensure")},
        options["destination"],
        options,
    )
    return deployment.add_hook(hook)


def exec_deployment(
    deployment: Deployment,
    *,
    transports: Optional[Transports] = None,
    config: Optional[AppConfig] = None,
) -> PipelineResult:
    """Run every hook of ``deployment`` in order."""
    return PipelineExecutor(transports=transports, config=config).run(deployment)


def load_pipeline(payload: Mapping[str, Any], producers: Optional[Producers] = None) -> Deployment:
    """Build a deployment and its hooks from a pipeline document.

    The document has a ``deployment`` map and a ``hooks`` list. Native hook
    entries name a ``kind``, an optional ``producer`` and ``options``;
    custom entries give a ``destination`` and ``commands`` directly.
    """
    if not isinstance(payload, Mapping):
        raise HookConstructionError("Pipeline document must be a mapping")
    deployment = init_deployment(payload.get("deployment") or {})
    producers = producers or Producers()

    for position, entry in enumerate(payload.get("hooks") or [], 1):
        if not isinstance(entry, Mapping):
            raise HookConstructionError(f"Hook #{position} must be a mapping")
        entry = dict(entry)
        kind = _coerce_kind(entry.pop("kind", HookKind.CUSTOM.value))
        if kind is HookKind.CUSTOM and "commands" in entry:
            if "destination" not in entry:
                raise HookConstructionError(f"Hook #{position} needs a destination")
            add_command_hook(deployment, entry.pop("destination"), entry.pop("commands"), **entry)
        else:
            options = dict(entry.pop("options", None) or {})
            producer = entry.pop("producer", "default")
            options.update(entry)
            add_hook(deployment, kind, producer, options, producers=producers)
    return deployment


def coerce_destination(value: Any) -> Destination:
    if isinstance(value, Destination):
        return value
    if isinstance(value, str):
        try:
            return Destination.parse(value)
        except ValueError as exc:
            raise HookConstructionError(str(exc)) from exc
    if isinstance(value, Mapping):
        unknown = set(value) - {"user", "host", "path"}
        if unknown:
            raise HookConstructionError(f"Unknown destination keys: {', '.join(sorted(unknown))}")
        host = value.get("host")
        if host in (None, "local"):
            return Destination.local(value.get("path", "."))
        try:
            return Destination.remote(value.get("user"), host, value.get("path", "."))
        except ValueError as exc:
            raise HookConstructionError(str(exc)) from exc
    raise HookConstructionError(f"Cannot build a destination from {value!r}")


def _coerce_kind(kind: Union[HookKind, str]) -> HookKind:
    try:
        return HookKind(kind)
    except ValueError:
        valid = ", ".join(k.value for k in HookKind)
        raise HookConstructionError(f"Unknown hook kind {kind!r}; expected one of: {valid}") from None


def _named_producer(name: str, kind: HookKind) -> NativeHook:
    try:
        return get_producer(name, kind.value)
    except KeyError as exc:
        raise HookConstructionError(exc.args[0]) from None


def _resolve_producer(kind: HookKind, producer: Any, producers: Producers) -> Producer:
    if isinstance(producer, str):
        if producer == "default":
            return producers.for_kind(kind)
        return _named_producer(producer, kind)
    if isinstance(producer, type) and issubclass(producer, NativeHook):
        return producer()
    if callable(producer):
        return producer
    raise HookConstructionError(f"Producer for {kind.value} hook is not callable: {producer!r}")


def _validate_options(options: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    if options is None:
        return {}
    if not isinstance(options, Mapping):
        raise HookConstructionError(f"Hook options must be a mapping, got {options!r}")
    options = dict(options)
    for flag in ("run_ensure", "ignore_failure"):
        if flag in options and not isinstance(options[flag], bool):
            raise HookConstructionError(f"Option {flag!r} must be a boolean")
    try:
        options["cmd_env"] = list(normalize_envs(options.get("cmd_env")))
    except (ValueError, TypeError) as exc:
        raise HookConstructionError(f"Invalid cmd_env option: {exc}") from exc
    if options.get("destination") is not None:
        options["destination"] = coerce_destination(options["destination"])
    return options


def _wrap(produced: Any, kind: HookKind, deployment: Deployment, options: Mapping[str, Any]) -> List[Hook]:
    items = produced if isinstance(produced, (list, tuple)) else [produced]
    if not items:
        raise HookConstructionError(f"Producer for {kind.value} hook returned no commands")

    hooks: List[Hook] = []
    loose: List[Union[str, Operation]] = []
    for item in items:
        if isinstance(item, Hook):
            hooks.append(item)
        elif isinstance(item, Mapping):
            hooks.append(_hook_from_phases(item, _destination_for(kind, deployment, options), options))
        elif isinstance(item, (str, Operation)):
            loose.append(item)
        else:
            raise HookConstructionError(f"Producer for {kind.value} hook returned {item!r}")

    # 零散的命令合并成一个 Hook 的 main
    if loose:
        destination = _destination_for(kind, deployment, options)
        hooks.append(_hook_from_phases({"main": loose}, destination, options))
    return hooks


def _destination_for(kind: HookKind, deployment: Deployment, options: Mapping[str, Any]) -> Destination:
    if options.get("destination") is not None:
        return options["destination"]
    if kind is HookKind.CUSTOM:
        raise HookConstructionError("Custom hooks returning commands need a 'destination' option")
    return resolve(kind.value, deployment)


def _hook_from_phases(phases: Mapping[str, Any], destination: Destination, options: Mapping[str, Any]) -> Hook:
    unknown = set(phases) - {phase.value for phase in Phase}
    if unknown:
        raise HookConstructionError(f"Unknown hook phases: {', '.join(sorted(unknown))}")
    builder = HookBuilder(
        run_ensure=options.get("run_ensure", True),
        ignore_failure=options.get("ignore_failure", False),
        name=options.get("name"),
    )
    for phase in Phase:
        commands = phases.get(phase.value)
        if not commands:
            continue
        try:
            operations = commands_to_operations(commands, destination, options.get("cmd_env"))
        except (TypeError, ValueError) as exc:
            raise HookConstructionError(str(exc)) from exc
        builder.extend(phase, operations)
    hook = builder.build()
    if not hook.main:
        raise HookConstructionError("A hook needs at least one main command")
    return hook
