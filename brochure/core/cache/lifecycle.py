# brochure/core/cache/lifecycle.py
"""
Install / activate steps of the cache worker.

install   pre-cache critical pages (HTML bucket) and assets (static bucket),
          all prefixed by the base path derived from the worker scope.
          Individual failures are logged and skipped; install never fails.
activate  drop every cache that is not one of the current versioned names,
          trim the current buckets to budget, claim open clients.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from brochure.schemas.models import (
    ActivationReport,
    BucketName,
    CacheRequest,
    PrecacheReport,
)

from .budget import enforce_budget
from .errors import CacheWorkerError

if TYPE_CHECKING:
    from .worker import CacheWorker

logger = logging.getLogger(__name__)

_HTML_ACCEPT = {"Accept": "text/html,application/xhtml+xml"}


def _precache(worker: CacheWorker, name: BucketName, paths: tuple[str, ...], report: PrecacheReport) -> None:
    bucket = worker.bucket(name)
    for path in paths:
        url = worker.config.absolute(path)
        request = CacheRequest(url=url, headers=_HTML_ACCEPT if name == "html" else {})
        try:
            response = worker.fetch(request)
            if not response.ok:
                raise CacheWorkerError(f"HTTP {response.status}")
            bucket.put(request, response.stamped(worker.clock()))
        except CacheWorkerError as e:
            logger.warning("Pre-cache failed for %s: %s", url, e)
            report.failed.append(url)
            continue
        report.cached.append(url)
    enforce_budget(bucket, worker.config.budgets.for_bucket(name))


def install(worker: CacheWorker) -> PrecacheReport:
    report = PrecacheReport()
    _precache(worker, "html", worker.config.critical_pages, report)
    _precache(worker, "static", worker.config.critical_assets, report)
    worker.state.installed = True
    logger.info("Installed %s: %d pre-cached, %d failed", worker.config.version, len(report.cached), len(report.failed))
    return report


def activate(worker: CacheWorker) -> ActivationReport:
    report = ActivationReport()
    current = worker.config.cache_names

    for name in worker.storage.keys():
        if name not in current.values():
            worker.storage.delete(name)
            report.deleted_caches.append(name)

    for bucket_name, cache_name in current.items():
        evicted = enforce_budget(worker.bucket(bucket_name), worker.config.budgets.for_bucket(bucket_name))
        if evicted:
            report.evicted[cache_name] = evicted

    worker.state.activated = True
    worker.state.clients_claimed = True
    if report.deleted_caches:
        logger.info("Activated %s; removed old caches: %s", worker.config.version, ", ".join(report.deleted_caches))
    return report


__all__ = ["install", "activate"]
