"""
Prometheus metrics.

Every response is counted by method, route rule and status, and its handling
time goes into a histogram. Responses with status 400 and above are counted
again as errors. Store-level gauges (todos, users, uptime) are refreshed when
/metrics is scraped.

Each app gets its own CollectorRegistry so several apps can live in one process.
"""

from __future__ import annotations

import time

from flask import Flask, g, request
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest
from sqlalchemy.orm import Session

from app.htmxspa.modules.todos.service import compute_stats
from app.htmxspa.modules.users.service import count_users

UNMATCHED_ROUTE = "<unmatched>"

_LABELS = ("method", "path", "status")


class RequestMetrics:
    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.requests = Counter(
            "http_requests_total", "HTTP responses sent.", _LABELS, registry=self.registry
        )
        self.errors = Counter(
            "http_requests_errors_total", "HTTP responses with status 400 or above.", _LABELS, registry=self.registry
        )
        self.duration = Histogram(
            "http_request_duration_seconds", "Time spent handling a request.", _LABELS, registry=self.registry
        )
        self.uptime = Gauge("app_uptime_seconds", "Seconds since the app was created.", registry=self.registry)
        self.todos = Gauge("app_todos", "Todos in the store.", registry=self.registry)
        self.todos_completed = Gauge("app_todos_completed", "Completed todos in the store.", registry=self.registry)
        self.users = Gauge("app_users", "Users in the store.", registry=self.registry)

    def observe(self, method: str, path: str, status: int, seconds: float) -> None:
        labels = (method, path, str(status))
        self.requests.labels(*labels).inc()
        if status >= 400:
            self.errors.labels(*labels).inc()
        self.duration.labels(*labels).observe(seconds)

    def refresh(self, s: Session, uptime: float) -> None:
        stats = compute_stats(s)
        self.todos.set(stats.total)
        self.todos_completed.set(stats.completed)
        self.users.set(count_users(s))
        self.uptime.set(uptime)

    def exposition(self) -> bytes:
        return generate_latest(self.registry)


def init_metrics(app: Flask) -> RequestMetrics:
    """
    Attach request timing to `app`. Call before any other before_request hook
    so rejected requests are timed too.
    """
    metrics = RequestMetrics()
    app.extensions["metrics"] = metrics

    @app.before_request
    def _start_request_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def _record_request(resp):
        started = g.pop("request_started", None)
        elapsed = time.perf_counter() - started if started is not None else 0.0
        rule = request.url_rule.rule if request.url_rule is not None else UNMATCHED_ROUTE
        metrics.observe(request.method, rule, resp.status_code, elapsed)
        return resp

    return metrics
