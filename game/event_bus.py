from typing import Any, Callable, Dict, List

# Outbound message routing. Simulation code emits, the gateway subscribes.
BROADCAST = "broadcast"                # (message)
BROADCAST_EXCEPT = "broadcast_except"  # (excluded_pid, message)
SEND_TO = "send_to"                    # (pid, message)


class EventBus:
    """Simple synchronous pub/sub; callbacks run in subscription order."""
    def __init__(self) -> None:
        self._subs: Dict[str, List[Callable[..., None]]] = {}

    def subscribe(self, event: str, cb: Callable[..., None]) -> None:
        self._subs.setdefault(event, []).append(cb)

    def unsubscribe(self, event: str, cb: Callable[..., None]) -> None:
        subs = self._subs.get(event, [])
        if cb in subs:
            subs.remove(cb)

    def emit(self, event: str, *args: Any, **kwargs: Any) -> None:
        for cb in list(self._subs.get(event, [])):
            cb(*args, **kwargs)

    def broadcast(self, message: Dict[str, Any]) -> None:
        self.emit(BROADCAST, message)

    def broadcast_except(self, pid: str, message: Dict[str, Any]) -> None:
        self.emit(BROADCAST_EXCEPT, pid, message)

    def send_to(self, pid: str, message: Dict[str, Any]) -> None:
        self.emit(SEND_TO, pid, message)
