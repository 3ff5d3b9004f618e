# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-07
# Description: TestRunner
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from catalog.CallCatalog import CallCatalog
from embedding.CallEmbedder import CallEmbedder
from utility.logging_utils import get_class_logger
from vectorstore.CallVectorStore import CallVectorStore


class TestRunner:
    """
    Orchestrates the dependency checks and reports a consolidated result.

    Checks included:
      - vector_store  (Chroma heartbeat + collection count)
      - catalog       (call catalog readable)
      - embedding     (one real embedding call; optional, it costs tokens)
    """

    __test__ = False  # not a pytest class

    def __init__(
        self,
        *,
        store: CallVectorStore,
        catalog: CallCatalog,
        embedder: CallEmbedder,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.catalog = catalog
        self.embedder = embedder
        self.logger = logger or get_class_logger(self.__class__)

    # -------------------------------------------------------------------------
    def run_all(self, run_embedding: bool = False) -> Dict[str, bool]:
        """
        Run all configured checks.

        :param run_embedding: If True, also calls the embedding provider.
        :return: Dict mapping check names to True/False.
        """
        self.logger.info("Starting health checks (run_embedding=%s)", run_embedding)

        results: Dict[str, bool] = {}
        self._run(results, "vector_store", self.store.test_connection)
        self._run(results, "catalog", self._check_catalog)
        if run_embedding:
            self._run(results, "embedding", self.embedder.healthcheck)

        self._log_summary(results)
        return results

    # -------------------------------------------------------------------------
    def _check_catalog(self) -> bool:
        self.catalog.list_call_ids("__healthcheck__")
        return True

    def _run(self, results: Dict[str, bool], name: str, check: Callable[[], bool]) -> None:
        try:
            ok = bool(check())
        except Exception as e:
            self.logger.exception("%s check raised an exception: %s", name, e)
            ok = False
        results[name] = ok
        if ok:
            self.logger.info("%s: PASS", name)
        else:
            self.logger.error("%s: FAIL", name)

    def _log_summary(self, results: Dict[str, bool]) -> None:
        total = len(results)
        passed = sum(1 for v in results.values() if v)
        self.logger.info("Health summary: %d total, %d passed, %d failed", total, passed, total - passed)
