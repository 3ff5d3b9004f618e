# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Description: AppContainer.py
# -----------------------------------------------------------------------------
from typing import Optional

from catalog.CallCatalog import CallCatalog
from config.Config import Config
from embedding.CallEmbedder import CallEmbedder
from embedding.QueryEmbeddingCache import QueryEmbeddingCache
from health.TestRunner import TestRunner
from ledger.SearchQueryLog import SearchQueryLog
from ledger.UsageLedger import UsageLedger
from normalizer.ContentNormalizer import ContentNormalizer
from search.HybridRanker import HybridRanker
from search.SimilaritySearchEngine import SimilaritySearchEngine
from services.BatchEmbeddingService import BatchEmbeddingService
from services.CoverageService import CoverageService
from services.EmbeddingService import EmbeddingService
from services.HealthService import HealthService
from services.SearchService import SearchService
from utility.logging_utils import get_logger
from vectorstore.ChromaCallVectorStore import ChromaCallVectorStore

logger = get_logger(__name__)


class AppContainer:
    """
    Owns heavy object instantiation and application wiring.
    Singleton instances are provided via FastAPI dependencies.
    """

    def __init__(self, cfg: Optional[Config] = None) -> None:
        # Configuration
        self.cfg = cfg or Config.from_env()
        logger.info("Building AppContainer: %s", self.cfg.summary())
        missing = self.cfg.missing()
        if missing:
            logger.warning("Missing configuration (requests needing it will fail): %s", missing)

        # Core infrastructure
        self.embedder = CallEmbedder(cfg=self.cfg)
        self.store = ChromaCallVectorStore.from_config(self.cfg)
        self.catalog = CallCatalog(self.cfg.calls_db_path)
        self.ledger = UsageLedger(self.cfg.calls_db_path)
        self.query_log = SearchQueryLog(self.cfg.calls_db_path)
        self.normalizer = ContentNormalizer()

        # Embedding pipeline
        self.embedding_service = EmbeddingService(
            embedder=self.embedder,
            store=self.store,
            ledger=self.ledger,
            normalizer=self.normalizer,
            catalog=self.catalog,
        )
        self.batch_service = BatchEmbeddingService(embedding_service=self.embedding_service)

        # Search
        self.search_engine = SimilaritySearchEngine(store=self.store, catalog=self.catalog)
        self.search_service = SearchService(
            embedder=self.embedder,
            engine=self.search_engine,
            catalog=self.catalog,
            store=self.store,
            ranker=HybridRanker(),
            normalizer=self.normalizer,
            query_cache=QueryEmbeddingCache(),
            query_log=self.query_log,
        )

        self.coverage_service = CoverageService(
            catalog=self.catalog,
            store=self.store,
            ledger=self.ledger,
            query_log=self.query_log,
        )

        # Health
        self.test_runner = TestRunner(store=self.store, catalog=self.catalog, embedder=self.embedder)
        self.health_service = HealthService(test_runner=self.test_runner)
