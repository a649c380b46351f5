"""
Sanctions Screener
Threshold-and-rank fuzzy search of a watchlist snapshot

Features:
- Jaro-Winkler name matching with weighted first/middle/last parts
- Date of birth, address and identifier corroboration
- Category filter (Individual, Entity, Vessel, Aircraft)
- Parallel scoring of large candidate sets
- Screening summaries with a first-class PASSED (cleared) outcome

The engine holds no state between calls: results are a pure function of
(query, candidates, threshold). Persistence and list refresh belong to the
record store.
"""

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Iterable, List, Mapping, Optional, Any, Union, Protocol, runtime_checkable

from audit_logger import AuditLogger, get_audit_logger
from config_manager import ConfigManager, get_config
from models import (
    CandidateRecord, InvalidRecordError, MatchResult, Query, ScreeningSummary,
    CATEGORY_ALL
)
from scorer import MatchScorer
from text_utils import sanitize_for_logging

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 85

# Raised by rows whose shape or field types cannot be scored
MALFORMED_RECORD_ERRORS = (InvalidRecordError, TypeError, AttributeError)


@runtime_checkable
class RecordStore(Protocol):
    """Read access to the current watchlist snapshot"""

    def fetch_all(self) -> Iterable[CandidateRecord]:
        ...


class InMemoryRecordStore:
    """Record store over a snapshot already held in memory

    Rows may be CandidateRecord instances or record-store mappings; rows
    that cannot be converted are logged and skipped.
    """

    def __init__(self, records: Iterable[Union[CandidateRecord, Mapping[str, Any]]] = ()):
        self._records: List[CandidateRecord] = []
        skipped = 0
        for row in records:
            try:
                self._records.append(_as_record(row))
            except MALFORMED_RECORD_ERRORS as e:
                skipped += 1
                _skip_malformed(row, e)
        if skipped:
            logger.warning(f"Skipped {skipped} malformed records")
        logger.debug(f"Record store loaded with {len(self._records)} records")

    def fetch_all(self) -> List[CandidateRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)


def _as_record(row: Union[CandidateRecord, Mapping[str, Any]]) -> CandidateRecord:
    if isinstance(row, CandidateRecord):
        return row
    return CandidateRecord.from_dict(row)


def _skip_malformed(row: Any, error: Exception) -> None:
    uid = row.get('uid') if isinstance(row, Mapping) else getattr(row, 'uid', None)
    logger.warning("Skipping malformed record %s: %s",
                   sanitize_for_logging(str(uid)), sanitize_for_logging(str(error)))


def _category_matches(query: Query, record: CandidateRecord) -> bool:
    category = (query.category or '').strip().lower()
    if not category or category == CATEGORY_ALL:
        return True
    return (record.category or '').strip().lower() == category


class SanctionsSearchEngine:
    """Scores every candidate, keeps those at or above the threshold, ranks them"""

    def __init__(self, config: Optional[ConfigManager] = None,
                 scorer: Optional[MatchScorer] = None,
                 audit_logger: Optional[AuditLogger] = None):
        """Initialize search engine

        Args:
            config: Configuration manager instance
            scorer: Match scorer (built from config when omitted)
            audit_logger: Audit logger for screen(); the global one is used
                when omitted and auditing is enabled in config
        """
        self.config = config or get_config()
        self.scorer = scorer or MatchScorer.from_config(self.config)
        self.audit_logger = audit_logger
        if self.audit_logger is None and self.config.audit.enabled:
            self.audit_logger = get_audit_logger(self.config.audit.log_dir)

    def _score_batch(self, query: Query, candidates: List[CandidateRecord],
                     threshold: float) -> List[MatchResult]:
        """Score candidates in order, keeping those at or above threshold

        A candidate whose fields cannot be scored is logged and skipped.
        """
        matches = []
        for record in candidates:
            try:
                result = self.scorer.score(query, record)
            except MALFORMED_RECORD_ERRORS as e:
                _skip_malformed(record, e)
                continue
            if result.score >= threshold:
                matches.append(result)
        return matches

    def _use_parallel(self, candidate_count: int) -> bool:
        perf = self.config.performance
        return (
            perf.concurrent_searches
            and perf.max_threads > 1
            and candidate_count >= perf.parallel_min_candidates
        )

    def _score_parallel(self, query: Query, candidates: List[CandidateRecord],
                        threshold: float) -> List[MatchResult]:
        """Score fixed-size chunks on worker threads, merged in chunk order

        Scoring is pure Python and holds the GIL, so on CPython this does not
        speed up a scan. It keeps the chunked, order-preserving structure that
        a process pool or a GIL-free interpreter can use without changing
        results.
        """
        perf = self.config.performance
        batches = [
            candidates[start:start + perf.batch_size]
            for start in range(0, len(candidates), perf.batch_size)
        ]
        logger.debug(f"Scoring {len(candidates)} candidates in {len(batches)} batches "
                     f"on {perf.max_threads} threads")

        matches = []
        with ThreadPoolExecutor(max_workers=perf.max_threads) as executor:
            futures = [
                executor.submit(self._score_batch, query, batch, threshold)
                for batch in batches
            ]
            for future in futures:
                matches.extend(future.result())
        return matches

    def search(self, query: Query, candidates: Iterable[CandidateRecord],
               threshold: Optional[float] = None) -> List[MatchResult]:
        """Search candidate records for matches

        Args:
            query: Screening query
            candidates: Watchlist records to search
            threshold: Minimum overall score (defaults to matching.threshold)

        Returns:
            Matching results, score descending; equal scores keep input order

        Malformed candidates are logged and skipped; they never abort the
        scan of the others.

        Raises:
            TypeError: If candidates is not iterable
        """
        if threshold is None:
            threshold = self.config.matching.threshold

        pool = []
        for row in candidates:
            try:
                record = _as_record(row)
                if not _category_matches(query, record):
                    continue
            except MALFORMED_RECORD_ERRORS as e:
                _skip_malformed(row, e)
                continue
            pool.append(record)

        if self._use_parallel(len(pool)):
            matches = self._score_parallel(query, pool, threshold)
        else:
            matches = self._score_batch(query, pool, threshold)

        # list.sort is stable, including with reverse=True
        matches.sort(key=lambda m: m.score, reverse=True)

        logger.info("Searched %d candidates for '%s' (threshold %s): %d matches",
                    len(pool), sanitize_for_logging(query.name.full_name()),
                    threshold, len(matches))
        return matches

    def screen(self, query: Query, store: RecordStore,
               threshold: Optional[float] = None) -> ScreeningSummary:
        """Screen a query against the record store's current snapshot

        Args:
            query: Screening query
            store: Record store supplying the candidates
            threshold: Minimum overall score (defaults to matching.threshold)

        Returns:
            ScreeningSummary; result is PASSED when nothing matched
        """
        if threshold is None:
            threshold = self.config.matching.threshold

        candidates = list(store.fetch_all())
        matches = self.search(query, candidates, threshold)

        summary = ScreeningSummary(
            screening_id=str(uuid.uuid4()),
            screened_at=datetime.now(timezone.utc).isoformat(),
            query=query,
            threshold=threshold,
            candidate_count=len(candidates),
            matches=matches,
            algorithm_version=self.config.algorithm.version
        )

        if self.audit_logger is not None:
            self.audit_logger.log_screening(summary)

        return summary


def search_sdn(query: Query, candidates: Iterable[CandidateRecord],
               threshold: float = DEFAULT_THRESHOLD) -> List[MatchResult]:
    """Search watchlist entries for matches using the global configuration"""
    return SanctionsSearchEngine(get_config()).search(query, candidates, threshold)
