"""
Metrics collection for the ledger posting API.
"""
from typing import Dict, Any
from collections import defaultdict
from datetime import datetime, timezone


def _fresh() -> Dict[str, Any]:
    return {
        "requests": defaultdict(int),
        "errors": defaultdict(int),
        "postings": defaultdict(int),
        "response_times": [],
        "start_time": datetime.now(timezone.utc).isoformat(),
    }


# In-memory metrics store
_metrics: Dict[str, Any] = _fresh()


def record_request(method: str, path: str, status_code: int, duration_ms: float):
    """Record HTTP request metrics."""
    _metrics["requests"][f"{method} {path}"] += 1
    _metrics["requests"][f"status_{status_code}"] += 1

    # Keep last 1000 response times
    _metrics["response_times"].append(duration_ms)
    if len(_metrics["response_times"]) > 1000:
        _metrics["response_times"] = _metrics["response_times"][-1000:]


def record_error(error_code: str, path: str = ""):
    """Record error metrics."""
    _metrics["errors"][error_code] += 1
    if path:
        _metrics["errors"][f"{error_code}:{path}"] += 1


def record_posting(operation: str, outcome: str):
    """Record a posting engine operation (e.g. post_invoice:success)."""
    _metrics["postings"][f"{operation}:{outcome}"] += 1


def get_metrics() -> Dict[str, Any]:
    """Get current metrics."""
    response_times = _metrics["response_times"]
    avg_response_time = sum(response_times) / len(response_times) if response_times else 0
    p95_response_time = sorted(response_times)[int(len(response_times) * 0.95)] if len(response_times) >= 20 else 0

    uptime_seconds = (datetime.now(timezone.utc) - datetime.fromisoformat(_metrics["start_time"])).total_seconds()

    return {
        "uptime_seconds": int(uptime_seconds),
        "requests": {
            "total": sum(v for k, v in _metrics["requests"].items() if not k.startswith("status_")),
            "by_endpoint": {k: v for k, v in _metrics["requests"].items() if not k.startswith("status_")},
            "by_status": {k: v for k, v in _metrics["requests"].items() if k.startswith("status_")},
        },
        "errors": {
            "total": sum(v for k, v in _metrics["errors"].items() if ":" not in k),
            "by_code": dict(_metrics["errors"]),
        },
        "postings": dict(_metrics["postings"]),
        "performance": {
            "avg_response_time_ms": round(avg_response_time, 2),
            "p95_response_time_ms": round(p95_response_time, 2),
        },
    }


def reset_metrics():
    """Reset all metrics (for testing)."""
    global _metrics
    _metrics = _fresh()
