import json
import logging
import os
import threading
from typing import Dict, List, Optional

from docbrief.config import STORAGE_DIR


logger = logging.getLogger(__name__)

# Percentiles are computed over the most recent samples only
MAX_LATENCY_SAMPLES = 1000


class MetricsTracker:
    """
    Request counters and a rolling latency window, persisted as JSON.

    Counters are kept overall and per endpoint path; percentiles use the
    last MAX_LATENCY_SAMPLES successful requests.
    """

    def __init__(self, path: str = os.path.join(STORAGE_DIR, "metrics.json")):

        self._lock = threading.Lock()
        self._path = path
        self._metrics = self._empty()

        self._load()

    @staticmethod
    def _empty() -> Dict:

        return {
            "total_requests": 0,
            "successful_requests": 0,
            "failed_requests": 0,
            "total_latency": 0.0,
            "avg_latency": 0.0,
            "endpoints": {},
            "latencies": [],
        }

    def use_path(self, path: str):
        """Point the tracker at another file and reload from it."""

        with self._lock:
            self._path = path
            self._metrics = self._empty()

        self._load()

    # ============================================================
    # PERSISTENCE
    # ============================================================

    def _load(self):

        if not os.path.exists(self._path):
            return

        try:

            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)

            if not isinstance(data, dict):
                raise ValueError("metrics root must be an object")

        except (OSError, ValueError) as e:

            logger.warning(
                "Metrics file unreadable, starting fresh",
                extra={"path": self._path, "error": str(e)},
            )
            return

        metrics = self._empty()
        metrics.update(data)

        with self._lock:
            self._metrics = metrics

    def _save(self):

        directory = os.path.dirname(self._path)

        if directory:
            os.makedirs(directory, exist_ok=True)

        try:

            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(self._metrics, f, indent=2)

        except OSError as e:

            logger.warning(
                "Metrics file not written",
                extra={"path": self._path, "error": str(e)},
            )

    # ============================================================
    # RECORDING
    # ============================================================

    def _endpoint(self, path: Optional[str]) -> Optional[Dict]:

        if not path:
            return None

        return self._metrics["endpoints"].setdefault(
            path, {"requests": 0, "failures": 0}
        )

    def record_success(self, latency: float, path: Optional[str] = None):

        with self._lock:

            m = self._metrics

            m["total_requests"] += 1
            m["successful_requests"] += 1
            m["total_latency"] += latency
            m["avg_latency"] = m["total_latency"] / m["successful_requests"]

            m["latencies"].append(latency)
            del m["latencies"][:-MAX_LATENCY_SAMPLES]

            endpoint = self._endpoint(path)
            if endpoint is not None:
                endpoint["requests"] += 1

            self._save()

    def record_failure(self, path: Optional[str] = None):

        with self._lock:

            self._metrics["total_requests"] += 1
            self._metrics["failed_requests"] += 1

            endpoint = self._endpoint(path)
            if endpoint is not None:
                endpoint["requests"] += 1
                endpoint["failures"] += 1

            self._save()

    # ============================================================
    # READING
    # ============================================================

    def get_metrics(self) -> Dict:

        with self._lock:
            metrics = json.loads(json.dumps(self._metrics))

        metrics["p50_latency"] = self.get_latency_percentile(50)
        metrics["p95_latency"] = self.get_latency_percentile(95)

        return metrics

    def get_latency_percentile(self, percentile: float) -> float:

        with self._lock:
            latencies: List[float] = sorted(self._metrics["latencies"])

        if not latencies:
            return 0.0

        index = min(int(len(latencies) * percentile / 100), len(latencies) - 1)

        return latencies[index]


metrics_tracker = MetricsTracker()
