from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable


LOGGER = logging.getLogger(__name__)

HookCallback = Callable[[dict[str, Any]], object | Awaitable[object]]

RUN_EVENTS = frozenset({"before_run", "after_run"})
NODE_EVENTS = frozenset({"before_node", "after_node", "on_error"})
DEFAULT_HOOK_EVENTS = RUN_EVENTS | NODE_EVENTS


@dataclass(slots=True)
class _Subscription:
    callback: HookCallback
    node_types: frozenset[str] | None = None

    def accepts(self, payload: dict[str, Any]) -> bool:
        if self.node_types is None:
            return True
        return payload.get("node_type") in self.node_types


@dataclass(slots=True)
class HookInvocation:
    event: str
    callback_name: str
    node_id: str | None
    result: object | None
    error: str | None = None


class WorkflowHookRegistry:
    """Lifecycle callbacks for workflow runs, used by tracing and debugging views.

    A callback that raises is logged and recorded on its ``HookInvocation``;
    the remaining callbacks for the event still run.

    Node events can be scoped to node types, e.g. ``node_types={"callApi"}`` to
    observe only network steps. Run events ignore the scope.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[_Subscription]] = {event: [] for event in DEFAULT_HOOK_EVENTS}

    def register(
        self,
        event: str,
        callback: HookCallback,
        *,
        node_types: Iterable[str] | None = None,
    ) -> None:
        if event not in DEFAULT_HOOK_EVENTS:
            raise ValueError(
                f"Unknown hook event '{event}'. Use one of: {', '.join(sorted(DEFAULT_HOOK_EVENTS))}."
            )
        scope = frozenset(node_types) if node_types is not None and event in NODE_EVENTS else None
        self._subscriptions[event].append(_Subscription(callback=callback, node_types=scope))

    def on(self, event: str, *, node_types: Iterable[str] | None = None) -> Callable[[HookCallback], HookCallback]:
        def _decorator(callback: HookCallback) -> HookCallback:
            self.register(event, callback, node_types=node_types)
            return callback

        return _decorator

    def unregister(self, event: str, callback: HookCallback) -> None:
        subscriptions = self._subscriptions.get(event, [])
        self._subscriptions[event] = [item for item in subscriptions if item.callback is not callback]

    def clear(self, event: str | None = None) -> None:
        for name in [event] if event is not None else list(self._subscriptions):
            if name in self._subscriptions:
                self._subscriptions[name] = []

    def callbacks_for(self, event: str) -> list[HookCallback]:
        return [item.callback for item in self._subscriptions.get(event, [])]

    async def emit(self, event: str, payload: dict[str, Any]) -> list[HookInvocation]:
        invocations: list[HookInvocation] = []
        for subscription in list(self._subscriptions.get(event, [])):
            if not subscription.accepts(payload):
                continue
            callback = subscription.callback
            callback_name = getattr(callback, "__name__", type(callback).__name__)
            outcome: object | None = None
            error: str | None = None
            try:
                outcome = callback(payload)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
            except Exception as exc:  # noqa: BLE001
                LOGGER.warning("Hook callback '%s' for '%s' failed.", callback_name, event, exc_info=True)
                outcome = None
                error = f"{type(exc).__name__}: {exc}"
            invocations.append(
                HookInvocation(
                    event=event,
                    callback_name=callback_name,
                    node_id=payload.get("node_id"),
                    result=outcome,
                    error=error,
                )
            )
        return invocations
