# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-24
# Description: HybridRanker
# -----------------------------------------------------------------------------
from dataclasses import dataclass, replace
from typing import Any, List, Sequence

import settings
from catalog.types import KeywordMatchResult
from search.similarity import sort_results
from search.types import SearchResult
from utility.logging_utils import get_class_logger


@dataclass
class HybridRanker:
    """
    Boosts vector results that also matched the keyword search.

    Keyword matching only ever raises a score (capped at 1.0); it never adds
    or removes results. A failed keyword search leaves the vector results as-is.
    """
    boost_factor: float = settings.SEARCH_DEFAULTS["keyword_boost"]
    logger: Any = None

    def __post_init__(self) -> None:
        self.logger = self.logger or get_class_logger(self.__class__)
        if self.boost_factor < 1.0:
            raise ValueError(f"boost_factor must be >= 1.0, got {self.boost_factor}")

    def boost(
        self,
        results: Sequence[SearchResult],
        keyword_matches: KeywordMatchResult,
    ) -> List[SearchResult]:
        if not keyword_matches.ok:
            self.logger.warning(
                "Keyword search unavailable, returning vector results only: %s",
                keyword_matches.error,
            )
            return list(results)

        boosted: List[SearchResult] = []
        n_boosted = 0
        for r in results:
            if r.call_id in keyword_matches.call_ids:
                boosted.append(replace(r, similarity=min(r.similarity * self.boost_factor, 1.0)))
                n_boosted += 1
            else:
                boosted.append(r)

        self.logger.debug("Boosted %d/%d results with keyword matches", n_boosted, len(boosted))
        return sort_results(boosted)
