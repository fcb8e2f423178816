"""
In-process counters for observability. Process-local; for multi-worker use external metrics (e.g. Prometheus).
"""
import threading

_lock = threading.Lock()
_counters: dict[str, int] = {
    # Files streamed by GET /resources/{id}/download
    "downloads_total": 0,
    # Upload files removed because the record commit failed afterwards
    "compensating_deletes_total": 0,
}


def increment(name: str) -> int:
    """Increment a named counter; return new value. Thread-safe."""
    with _lock:
        _counters[name] = _counters.get(name, 0) + 1
        return _counters[name]


def snapshot() -> dict[str, int]:
    with _lock:
        return dict(_counters)
