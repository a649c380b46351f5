"""
Screening Audit Logging Module

Writes one structured JSON line per screening to screening_audit.log:
- query name (sanitized), category and threshold
- candidate count and outcome (POTENTIAL_MATCH / PASSED)
- match count and top score

SECURITY: User-supplied values are sanitized before logging.
"""

import logging
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field as dataclass_field

from models import ScreeningSummary
from text_utils import sanitize_for_logging

AUDIT_LOG_FILE = "screening_audit.log"


@dataclass
class ScreeningEvent:
    """Structured screening event for logging"""
    screening_id: str
    result: str  # POTENTIAL_MATCH or PASSED
    query_name: str = ""
    category: str = ""
    threshold: int = 0
    candidate_count: int = 0
    match_count: int = 0
    top_score: int = 0
    algorithm_version: str = ""
    matched_uids: List[str] = dataclass_field(default_factory=list)
    timestamp: str = dataclass_field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            'timestamp': self.timestamp,
            'screening_id': self.screening_id,
            'result': self.result,
            'query_name': self.query_name,
            'category': self.category,
            'threshold': self.threshold,
            'candidate_count': self.candidate_count,
            'match_count': self.match_count,
            'top_score': self.top_score,
            'algorithm_version': self.algorithm_version,
            'matched_uids': self.matched_uids
        }

    def to_json(self) -> str:
        """Convert to JSON string"""
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_summary(cls, summary: ScreeningSummary, max_input_length: int = 100) -> 'ScreeningEvent':
        query_name = sanitize_for_logging(summary.query.name.full_name())
        if len(query_name) > max_input_length:
            query_name = query_name[:max_input_length] + "...(truncated)"
        return cls(
            screening_id=summary.screening_id,
            result=summary.result,
            query_name=query_name,
            category=sanitize_for_logging(summary.query.category or "all"),
            threshold=summary.threshold,
            candidate_count=summary.candidate_count,
            match_count=summary.match_count,
            top_score=summary.top_score,
            algorithm_version=summary.algorithm_version,
            matched_uids=[sanitize_for_logging(m.record.uid) for m in summary.matches],
            timestamp=summary.screened_at
        )


class AuditLogger:
    """Handles screening audit logging with structured output

    Events go to a dedicated 'screening.audit' logger so they never mix
    with the application log.
    """

    def __init__(
        self,
        log_dir: str = "logs",
        enable_console: bool = False,
        enable_file: bool = True
    ):
        """Initialize audit logger

        Args:
            log_dir: Directory for log files
            enable_console: Also output to console
            enable_file: Write to screening_audit.log file
        """
        self.log_dir = Path(log_dir)

        self.logger = logging.getLogger('screening.audit')
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        formatter = logging.Formatter('%(asctime)s - AUDIT - %(message)s')

        if enable_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.log_dir / AUDIT_LOG_FILE, encoding='utf-8')
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

        if enable_console:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

    def log_screening(self, summary: ScreeningSummary) -> ScreeningEvent:
        """Record the outcome of one screening

        Returns:
            The event that was written
        """
        event = ScreeningEvent.from_summary(summary)
        self.logger.info(event.to_json())
        return event

    def close(self) -> None:
        """Flush and detach handlers"""
        for handler in list(self.logger.handlers):
            handler.flush()
            self.logger.removeHandler(handler)
            handler.close()


# Global audit logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger(log_dir: str = "logs", enable_console: bool = False) -> AuditLogger:
    """Get or create the global audit logger instance"""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger(log_dir=log_dir, enable_console=enable_console)
    return _audit_logger


def reset_audit_logger() -> None:
    """Reset the global audit logger (for testing)"""
    global _audit_logger
    if _audit_logger is not None:
        _audit_logger.close()
    _audit_logger = None
