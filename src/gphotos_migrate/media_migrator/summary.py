"""Run summary: totals and failures per kind."""

import logging
from collections import Counter
from typing import Any, Dict

from .errors import FailureKind
from .models import Failure, MigrationResult

logger = logging.getLogger(__name__)


class MigrationSummary:
    """Accumulates results of one run."""

    def __init__(self):
        self.processed = 0
        self.migrated = 0
        self.failed = 0
        self.warnings = 0
        self.failures_by_kind: Counter = Counter()
        self.warnings_by_kind: Counter = Counter()

    def add(self, result: MigrationResult) -> None:
        self.processed += 1
        if isinstance(result, Failure):
            self.failed += 1
            self.failures_by_kind[result.kind] += 1
            return

        self.migrated += 1
        for warning in result.warnings:
            self.warnings += 1
            self.warnings_by_kind[warning.kind] += 1

    def to_dict(self) -> Dict[str, Any]:
        """
        Summary as plain data.

        Returns:
            Dict with totals; per-kind counts list every FailureKind, zero included
        """
        return {
            'processed': self.processed,
            'migrated': self.migrated,
            'failed': self.failed,
            'warnings': self.warnings,
            'failures_by_kind': {kind.value: self.failures_by_kind[kind] for kind in FailureKind},
            'warnings_by_kind': {
                kind.value: count for kind, count in self.warnings_by_kind.items()
            },
        }

    def log_summary(self) -> None:
        summary = self.to_dict()
        logger.info(
            f"Migration summary: {{'processed': {self.processed}, 'migrated': {self.migrated}, "
            f"'failed': {self.failed}, 'warnings': {self.warnings}}}"
        )
        if self.failed:
            logger.info(f"Failures by kind: {summary['failures_by_kind']}")
        if self.warnings:
            logger.info(f"Warnings by kind: {summary['warnings_by_kind']}")
