"""Service Registry — name → handle and name → cached status, plus the execution path.

Invariants:
    - _handles and _statuses always have identical key sets (both mutated under one lock)
    - The lock is never held across an await: IO happens outside, transitions inside
    - execute_tool is the only mutating execution path; it refuses offline services
      without calling the handle
    - Request counters are paired: acquired before the call, released on every exit path
    - A transition for a name that was unregistered or re-registered mid-flight is dropped
    - Health probes fan out with settle-all semantics — one failing probe never
      prevents the others in the same tick

Design Decisions:
    - threading.Lock over asyncio.Lock: critical sections are short and sync, and
      registration from bootstrap code is sync (ADR: no await inside the lock)
    - Status transitions delegated to core/status_policy.py (ADR: single seam for the
      fail-fast policy)
    - Registry instance injected everywhere (app.state), never a module-level singleton
"""

import asyncio
import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from mcp_gateway.core import status_policy
from mcp_gateway.core.domain_types import ServiceDescriptor, ServiceStatus
from mcp_gateway.core.errors import (
    ProbeFailure, ServiceNotFoundError, ServiceOfflineError,
)
from mcp_gateway.core.format_envelope import elapsed_ms
from mcp_gateway.core.handle_protocols import ServiceHandle
from mcp_gateway.core.registry_stats import compute_registry_stats
from mcp_gateway.services.health_probe import (
    DEFAULT_PROBE_INTERVAL_SECONDS, HealthProbeLoop,
)


logger = logging.getLogger(__name__)

Transition = Callable[[ServiceStatus], ServiceStatus]


class ServiceRegistry:
    """Thread-safe registry of live service handles and their cached status."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handles: dict[str, ServiceHandle] = {}
        self._statuses: dict[str, ServiceStatus] = {}
        self._probe_loop: HealthProbeLoop | None = None

    # ─── Registration ───────────────────────────────────────────

    def register(self, name: str, handle: ServiceHandle) -> None:
        """Insert or overwrite. Overwriting is a warning, never an error."""
        initial = handle.current_status()
        with self._lock:
            replaced = name in self._handles
            self._handles[name] = handle
            self._statuses[name] = initial
        if replaced:
            logger.warning(
                f"Service '{name}' already registered, replacing it",
                extra={"service_name": name},
            )
        logger.info(
            f"Registered service: {name} (version {handle.descriptor.version})",
            extra={"service_name": name},
        )

    def unregister(self, name: str) -> None:
        with self._lock:
            removed = self._handles.pop(name, None)
            self._statuses.pop(name, None)
        if removed is not None:
            logger.info(
                f"Unregistered service: {name}", extra={"service_name": name},
            )

    # ─── Reads ──────────────────────────────────────────────────

    def get(self, name: str) -> ServiceHandle:
        with self._lock:
            handle = self._handles.get(name)
            available = list(self._handles)
        if handle is None:
            raise ServiceNotFoundError(name, available)
        return handle

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._handles

    def list_names(self) -> list[str]:
        with self._lock:
            return list(self._handles)

    def list_available(self) -> list[str]:
        with self._lock:
            return [n for n, s in self._statuses.items() if s.online]

    def status_of(self, name: str) -> ServiceStatus | None:
        """Cached status, never re-probed synchronously."""
        with self._lock:
            return self._statuses.get(name)

    def describe(self, name: str) -> ServiceDescriptor:
        return self.get(name).descriptor

    def all_statuses(self) -> list[dict]:
        with self._lock:
            items = [
                (n, h.descriptor, self._statuses[n])
                for n, h in self._handles.items()
            ]
        return [
            {
                "name": name,
                "status": status.to_dict(),
                "operations": list(descriptor.operations),
            }
            for name, descriptor, status in items
        ]

    def stats(self) -> dict:
        with self._lock:
            descriptors = {n: h.descriptor for n, h in self._handles.items()}
            statuses = dict(self._statuses)
        return compute_registry_stats(descriptors, statuses)

    # ─── Execution ──────────────────────────────────────────────

    async def execute_tool(
        self, name: str, operation: str, params: dict[str, Any],
    ) -> Any:
        """Run one operation, updating counters and cached status around it."""
        handle = self.get(name)
        status = self.status_of(name)
        if status is None or not status.online:
            raise ServiceOfflineError(name, status.error if status else None)

        started = time.perf_counter()
        with self._track_request(name, handle):
            try:
                result = await handle.execute(operation, params)
            except Exception as e:
                message = str(e) or type(e).__name__
                self._transition(
                    name, handle,
                    lambda s: status_policy.record_failure(s, message),
                )
                logger.warning(
                    f"Execution failed, marking '{name}' offline: {message}",
                    extra={"service_name": name, "operation_name": operation},
                )
                raise
        duration = elapsed_ms(started, time.perf_counter())
        self._transition(
            name, handle,
            lambda s: status_policy.record_success(s, duration),
        )
        return result

    @contextmanager
    def _track_request(self, name: str, handle: ServiceHandle) -> Iterator[None]:
        self._transition(name, handle, status_policy.begin_request)
        try:
            yield
        finally:
            self._transition(name, handle, status_policy.end_request)

    def _transition(
        self, name: str, handle: ServiceHandle, transition: Transition,
    ) -> bool:
        """Apply a status transition if `name` still maps to `handle`."""
        with self._lock:
            if self._handles.get(name) is not handle:
                return False
            self._statuses[name] = transition(self._statuses[name])
            return True

    # ─── Health probing ─────────────────────────────────────────

    async def probe_all(self) -> dict[str, bool]:
        """One probe tick across every registered service. Settle-all."""
        with self._lock:
            targets = list(self._handles.items())
        results = await asyncio.gather(
            *(self._probe_one(name, handle) for name, handle in targets),
            return_exceptions=True,
        )
        outcomes: dict[str, bool] = {}
        for (name, _), result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.error(
                    f"Probe bookkeeping failed for '{name}': {result}",
                    extra={"service_name": name},
                )
                outcomes[name] = False
            else:
                outcomes[name] = result
        logger.debug(f"Health check tick complete: {self.stats()}")
        return outcomes

    async def _probe_one(self, name: str, handle: ServiceHandle) -> bool:
        was_online = self._was_online(name)
        try:
            healthy = bool(await handle.probe_health())
            transition: Transition = (
                lambda s: status_policy.record_probe(s, healthy)
            )
        except Exception as e:
            failure = ProbeFailure(name, str(e) or type(e).__name__)
            logger.error(failure.message, extra={"service_name": name})
            healthy = False
            transition = (
                lambda s: status_policy.record_probe_error(s, failure.reason)
            )
        if self._transition(name, handle, transition):
            self._log_probe_change(name, was_online, healthy)
        return healthy

    def _was_online(self, name: str) -> bool | None:
        status = self.status_of(name)
        return status.online if status else None

    @staticmethod
    def _log_probe_change(name: str, was_online: bool | None, healthy: bool) -> None:
        if was_online is None or was_online == healthy:
            return
        if healthy:
            logger.info(f"Service '{name}' back online", extra={"service_name": name})
        else:
            logger.warning(f"Service '{name}' went offline", extra={"service_name": name})

    async def start_health_check(
        self, interval_seconds: float = DEFAULT_PROBE_INTERVAL_SECONDS,
    ) -> None:
        if self._probe_loop is not None and self._probe_loop.is_running:
            return
        self._probe_loop = HealthProbeLoop(self.probe_all, interval_seconds)
        await self._probe_loop.start()

    async def stop_health_check(self) -> None:
        if self._probe_loop is not None:
            await self._probe_loop.stop()
            self._probe_loop = None

    @property
    def health_check_running(self) -> bool:
        return self._probe_loop is not None and self._probe_loop.is_running
