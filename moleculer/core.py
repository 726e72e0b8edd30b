"""Core configuration and schema types shared across the broker."""

from __future__ import annotations

import random
import socket
import string
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

MiddlewareHandler = Callable[[Any, Callable[..., None]], None]
Middlewares = dict[str, MiddlewareHandler]

_RANDOM_ALPHABET = string.ascii_letters + string.digits


def _random_string(length: int) -> str:
    return "".join(random.choices(_RANDOM_ALPHABET, k=length))


@dataclass
class RetryPolicy:
    """How failed calls are retried."""

    enabled: bool = False
    retries: int = 0
    delay: int = 0
    max_delay: int = 0
    factor: int = 0
    check: Optional[Callable[[BaseException], bool]] = None


@dataclass
class Action:
    """An action exposed by a service."""

    name: str = ""
    handler: Optional[Callable[[Any, Any], Any]] = None
    schema: Any = None
    settings: dict[str, Any] = field(default_factory=dict)
    description: str = ""


@dataclass
class Event:
    """An event listener of a service."""

    name: str = ""
    group: str = ""
    handler: Optional[Callable[[Any, Any], None]] = None


@dataclass
class Mixin:
    """Reusable parts merged into a service schema."""

    name: str = ""
    dependencies: list[str] = field(default_factory=list)
    settings: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    hooks: dict[str, Any] = field(default_factory=dict)
    actions: list[Action] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)
    created: Optional[Callable[..., None]] = None
    started: Optional[Callable[..., None]] = None
    stopped: Optional[Callable[..., None]] = None


@dataclass
class ServiceSchema:
    """Declarative description of a service."""

    name: str = ""
    version: str = ""
    dependencies: list[str] = field(default_factory=list)
    settings: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    hooks: dict[str, Any] = field(default_factory=dict)
    mixins: list[Mixin] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)
    created: Optional[Callable[..., None]] = None
    started: Optional[Callable[..., None]] = None
    stopped: Optional[Callable[..., None]] = None


@dataclass
class Options:
    """Per-call options."""

    meta: Any = None
    node_id: str = ""


@dataclass
class Config:
    """Broker configuration. Durations are in seconds.

    A bare ``Config()`` holds empty values; use :func:`default_config`
    for the broker defaults. Lifecycle hooks left as ``None`` are skipped.
    """

    log_level: str = ""
    log_format: str = ""
    discover_node_id: Optional[Callable[[], str]] = None
    transporter: str = ""
    transporter_factory: Optional[Callable[[], Any]] = None
    strategy_factory: Optional[Callable[[], Any]] = None
    heartbeat_frequency: float = 0.0
    heartbeat_timeout: float = 0.0
    offline_check_frequency: float = 0.0
    offline_timeout: float = 0.0
    neighbours_check_timeout: float = 0.0
    wait_for_dependencies_timeout: float = 0.0
    middlewares: Optional[list[Middlewares]] = None
    namespace: str = ""
    request_timeout: float = 0.0
    mcall_timeout: float = 0.0
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    max_call_level: int = 0
    metrics: bool = False
    metrics_rate: float = 0.0
    disable_internal_services: bool = False
    disable_internal_middlewares: bool = False
    dont_wait_for_neighbours: bool = False
    wait_for_neighbours_interval: float = 0.0
    created: Optional[Callable[[], None]] = None
    started: Optional[Callable[[], None]] = None
    stopped: Optional[Callable[[], None]] = None
    services: Optional[dict[str, Any]] = None


@dataclass
class BrokerDelegates:
    """Callbacks through which contexts and services reach the broker."""

    instance_id: Optional[Callable[[], str]] = None
    local_node: Optional[Callable[[], Any]] = None
    logger: Optional[Callable[[str, str], Any]] = None
    bus: Optional[Callable[[], Any]] = None
    is_started: Optional[Callable[[], bool]] = None
    config: Config = field(default_factory=Config)
    mult_action_delegate: Optional[Callable[[dict], Any]] = None
    action_delegate: Optional[Callable[..., Any]] = None
    emit_event: Optional[Callable[[Any], None]] = None
    broadcast_event: Optional[Callable[[Any], None]] = None
    handle_remote_event: Optional[Callable[[Any], None]] = None
    service_for_action: Optional[Callable[[str], Optional[list[ServiceSchema]]]] = None
    broker_context: Optional[Callable[[], Any]] = None
    middleware_handler: Optional[Callable[[str, Any], Any]] = None
    publish: Optional[Callable[..., None]] = None
    wait_for: Optional[Callable[..., None]] = None


def discover_node_id() -> str:
    """Return a node id made of the host name and a random suffix."""
    try:
        hostname = socket.gethostname()
    except OSError:
        hostname = "node-" + _random_string(2)
    return f"{hostname}-{_random_string(5)}"


def default_config() -> Config:
    """Return a fresh configuration holding the broker defaults."""
    return Config(
        log_level="INFO",
        log_format="TEXT",
        discover_node_id=discover_node_id,
        transporter="MEMORY",
        heartbeat_frequency=5.0,
        heartbeat_timeout=15.0,
        offline_check_frequency=20.0,
        offline_timeout=600.0,
        dont_wait_for_neighbours=True,
        neighbours_check_timeout=2.0,
        wait_for_dependencies_timeout=2.0,
        metrics=False,
        metrics_rate=1.0,
        disable_internal_services=False,
        disable_internal_middlewares=False,
        max_call_level=100,
        retry_policy=RetryPolicy(enabled=False),
        request_timeout=3.0,
        mcall_timeout=5.0,
        wait_for_neighbours_interval=0.2,
    )