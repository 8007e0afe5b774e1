"""SQLite log of regeneration decisions.

Each row is one verdict for one file at one content hash, kept for audit
and for answering "why was this page (not) regenerated?" later.
"""

from __future__ import annotations

import hashlib
import json
import logging
import sqlite3
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .decision import DecisionResult

logger = logging.getLogger(__name__)


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class DecisionRecord:
    id: int
    file_path: str
    content_hash: str
    should_regenerate: bool
    confidence: float
    reason_code: str
    severity: str
    relevance_score: int
    reasoning: List[str]
    affected_sections: List[str]
    created_at: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "file_path": self.file_path,
            "content_hash": self.content_hash,
            "should_regenerate": self.should_regenerate,
            "confidence": self.confidence,
            "reason_code": self.reason_code,
            "severity": self.severity,
            "relevance_score": self.relevance_score,
            "reasoning": self.reasoning,
            "affected_sections": self.affected_sections,
            "created_at": self.created_at,
        }


class DecisionStore:
    """Append-only SQLite table of :class:`DecisionResult` rows."""

    def __init__(self, db_path: Union[str, Path]) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "DecisionStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def _init_schema(self) -> None:
        cur = self.conn.cursor()
        cur.execute("""
            CREATE TABLE IF NOT EXISTS decisions (
                id                INTEGER PRIMARY KEY AUTOINCREMENT,
                file_path         TEXT NOT NULL,
                content_hash      TEXT NOT NULL,
                should_regenerate INTEGER NOT NULL,
                confidence        REAL NOT NULL,
                reason_code       TEXT NOT NULL,
                severity          TEXT NOT NULL,
                relevance_score   INTEGER NOT NULL,
                reasoning         TEXT NOT NULL,
                affected_sections TEXT NOT NULL,
                created_at        REAL NOT NULL
            )
        """)
        cur.execute("CREATE INDEX IF NOT EXISTS idx_decisions_file ON decisions(file_path)")
        self.conn.commit()

    # ------------------------------------------------------------------
    # Writes / reads
    # ------------------------------------------------------------------

    def record(self, file_path: str, content_hash: str, result: DecisionResult) -> int:
        """Persist one decision and return its row id."""
        try:
            cur = self.conn.execute(
                """
                INSERT INTO decisions (
                    file_path, content_hash, should_regenerate, confidence, reason_code,
                    severity, relevance_score, reasoning, affected_sections, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    file_path,
                    content_hash,
                    int(result.should_regenerate),
                    result.confidence,
                    result.reason_code.value,
                    result.severity.value,
                    result.relevance_score,
                    json.dumps(result.reasoning),
                    json.dumps(result.affected_sections),
                    time.time(),
                ),
            )
            self.conn.commit()
        except sqlite3.Error as exc:
            logger.warning("Failed to record decision for %s: %s", file_path, exc)
            raise
        return int(cur.lastrowid)

    def recent(self, limit: int = 20, file_path: Optional[str] = None) -> List[DecisionRecord]:
        """Most recent decisions first, optionally for one file."""
        if file_path is None:
            rows = self.conn.execute(
                "SELECT * FROM decisions ORDER BY id DESC LIMIT ?", (limit,)
            ).fetchall()
        else:
            rows = self.conn.execute(
                "SELECT * FROM decisions WHERE file_path = ? ORDER BY id DESC LIMIT ?",
                (file_path, limit),
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def last_for(self, file_path: str) -> Optional[DecisionRecord]:
        records = self.recent(limit=1, file_path=file_path)
        return records[0] if records else None

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> DecisionRecord:
        return DecisionRecord(
            id=row["id"],
            file_path=row["file_path"],
            content_hash=row["content_hash"],
            should_regenerate=bool(row["should_regenerate"]),
            confidence=row["confidence"],
            reason_code=row["reason_code"],
            severity=row["severity"],
            relevance_score=row["relevance_score"],
            reasoning=json.loads(row["reasoning"]),
            affected_sections=json.loads(row["affected_sections"]),
            created_at=row["created_at"],
        )
