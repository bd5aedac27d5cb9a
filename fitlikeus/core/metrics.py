"""In-process counters and gauges, exported in Prometheus text format at /metrics."""

from __future__ import annotations

import re
import threading
from typing import Dict, Iterable, List, Optional, Tuple

LabelValues = Tuple[str, ...]


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


class _Metric:
    kind = "untyped"

    def __init__(self, name: str, label_names: Optional[Iterable[str]] = None, help_text: str = ""):
        self.name = name
        self.help_text = help_text
        self.label_names = tuple(label_names or ())
        self._series: Dict[LabelValues, float] = {}
        self._lock = threading.Lock()

    def _key(self, labels: Optional[Dict[str, str]]) -> LabelValues:
        labels = labels or {}
        return tuple(str(labels.get(name, "")) for name in self.label_names)

    def inc(self, labels: Optional[Dict[str, str]] = None, amount: float = 1.0) -> None:
        key = self._key(labels)
        with self._lock:
            self._series[key] = self._series.get(key, 0.0) + amount

    def get(self, labels: Optional[Dict[str, str]] = None) -> float:
        with self._lock:
            return self._series.get(self._key(labels), 0.0)

    def reset(self) -> None:
        with self._lock:
            self._series.clear()

    def render(self) -> List[str]:
        lines = []
        if self.help_text:
            lines.append(f"# HELP {self.name} {self.help_text}")
        lines.append(f"# TYPE {self.name} {self.kind}")
        with self._lock:
            series = sorted(self._series.items())
        for values, amount in series:
            label_str = ",".join(f'{n}="{_escape(v)}"' for n, v in zip(self.label_names, values))
            suffix = "{" + label_str + "}" if label_str else ""
            lines.append(f"{self.name}{suffix} {float(amount)}")
        return lines


class Counter(_Metric):
    kind = "counter"


class Gauge(_Metric):
    kind = "gauge"

    def set(self, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        key = self._key(labels)
        with self._lock:
            self._series[key] = float(value)

    def dec(self, labels: Optional[Dict[str, str]] = None, amount: float = 1.0) -> None:
        self.inc(labels, -amount)


class MetricsRegistry:
    """Named metrics, registered once and shared across the process."""

    def __init__(self):
        self._metrics: Dict[str, _Metric] = {}
        self._lock = threading.Lock()

    def _register(self, cls, name: str, label_names, help_text: str):
        with self._lock:
            metric = self._metrics.get(name)
            if metric is None:
                metric = self._metrics[name] = cls(name, label_names, help_text)
            elif not isinstance(metric, cls):
                raise ValueError(f"metric {name} already registered as {metric.kind}")
            return metric

    def counter(self, name: str, label_names: Optional[Iterable[str]] = None, help_text: str = "") -> Counter:
        return self._register(Counter, name, label_names, help_text)

    def gauge(self, name: str, label_names: Optional[Iterable[str]] = None, help_text: str = "") -> Gauge:
        return self._register(Gauge, name, label_names, help_text)

    def value(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        metric = self._metrics.get(name)
        return metric.get(labels) if metric is not None else 0.0

    def export_prometheus(self) -> str:
        lines: List[str] = []
        for metric in list(self._metrics.values()):
            lines.extend(metric.render())
        return "\n".join(lines) + "\n"

    def reset(self) -> None:
        for metric in list(self._metrics.values()):
            metric.reset()


METRICS = MetricsRegistry()

http_requests_total = METRICS.counter("http_requests_total", ["method", "path", "status"], "HTTP requests served")
auth_events_total = METRICS.counter("auth_events_total", ["event"], "Sign-up, sign-in, sign-out and reset events")
workouts_logged_total = METRICS.counter("workouts_logged_total", ["exercise"], "Workouts logged")
moods_recorded_total = METRICS.counter("moods_recorded_total", ["synced"], "Post-workout mood writes")
streak_updates_total = METRICS.counter("streak_updates_total", ["outcome"], "Habit streak completions")
ws_connections_total = METRICS.counter("ws_connections_total", help_text="Workout feed sockets opened")
ws_active_connections = METRICS.gauge("ws_active_connections", help_text="Workout feed sockets open now")

# Path segments that look like ids (numbers, uuids, hex document ids)
_ID_SEGMENT = re.compile(r"^(\d+|[0-9a-fA-F-]{8,})$")


def normalize_path(path: str) -> str:
    """Collapse id-like segments to `:id` to keep label cardinality bounded."""
    segments = [":id" if _ID_SEGMENT.match(s) else s for s in path.split("/") if s]
    return "/" + "/".join(segments)
