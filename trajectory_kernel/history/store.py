"""
Run History Store — append-only record of what each run looked like.

Every run appends its metric snapshots here, in month order, plus a final summary.

Behavioral Contract:
- Append-only. No snapshot is ever modified or deleted.
- Each entry is hashed and chained to the previous entry of the same run,
  so a run's trajectory is tamper-evident on its own.
- Hashes cover only simulation data, never wall-clock time, so the same
  seed produces the same chain.
- Queryable by run id; runs are listed in the order they were first written.
"""

import hashlib
import json
import logging
import sqlite3
from typing import List, Optional

from trajectory_kernel.models.run import HistoryEntry, MetricSnapshot, RunSummary

logger = logging.getLogger("trajectory_kernel.history")


def _entry_signature(entry: HistoryEntry) -> str:
    entry_dict = entry.model_dump(mode="json")
    entry_dict["signature"] = ""
    entry_bytes = json.dumps(entry_dict, sort_keys=True, default=str).encode()
    return hashlib.sha256(entry_bytes).hexdigest()


class RunHistoryStore:
    """
    Snapshot history keyed by run id.
    SQLite; ":memory:" by default.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS snapshots (
                run_id TEXT NOT NULL,
                sequence INTEGER NOT NULL,
                month INTEGER NOT NULL,
                signature TEXT NOT NULL,
                prior_record_hash TEXT,
                entry_json TEXT NOT NULL,
                created_at TEXT NOT NULL DEFAULT (datetime('now')),
                PRIMARY KEY (run_id, sequence)
            )
        """)
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS summaries (
                run_id TEXT PRIMARY KEY,
                final_outcome TEXT NOT NULL,
                summary_json TEXT NOT NULL
            )
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_snapshots_month ON snapshots(run_id, month)
        """)
        self._conn.commit()

    def append(self, run_id: str, snapshot: MetricSnapshot) -> HistoryEntry:
        """Append a snapshot to a run, chaining it to that run's latest entry."""
        latest = self._conn.execute(
            "SELECT sequence, signature FROM snapshots WHERE run_id = ? "
            "ORDER BY sequence DESC LIMIT 1",
            (run_id,),
        ).fetchone()

        entry = HistoryEntry(
            run_id=run_id,
            sequence=latest["sequence"] + 1 if latest else 0,
            snapshot=snapshot,
            prior_record_hash=latest["signature"] if latest else None,
        )
        entry.signature = _entry_signature(entry)

        self._conn.execute(
            """
            INSERT INTO snapshots (
                run_id, sequence, month, signature, prior_record_hash, entry_json
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                entry.run_id,
                entry.sequence,
                snapshot.month,
                entry.signature,
                entry.prior_record_hash,
                entry.model_dump_json(),
            ),
        )
        self._conn.commit()
        return entry

    def record_summary(self, run_id: str, summary: RunSummary) -> None:
        """Store (or replace) the final summary of a run."""
        self._conn.execute(
            "INSERT OR REPLACE INTO summaries (run_id, final_outcome, summary_json) "
            "VALUES (?, ?, ?)",
            (run_id, summary.final_outcome, summary.model_dump_json()),
        )
        self._conn.commit()

    def get_run(self, run_id: str) -> List[HistoryEntry]:
        rows = self._conn.execute(
            "SELECT entry_json FROM snapshots WHERE run_id = ? ORDER BY sequence",
            (run_id,),
        ).fetchall()
        return [HistoryEntry.model_validate_json(r["entry_json"]) for r in rows]

    def get_snapshots(self, run_id: str) -> List[MetricSnapshot]:
        return [entry.snapshot for entry in self.get_run(run_id)]

    def get_summary(self, run_id: str) -> Optional[RunSummary]:
        row = self._conn.execute(
            "SELECT summary_json FROM summaries WHERE run_id = ?", (run_id,)
        ).fetchone()
        return RunSummary.model_validate_json(row["summary_json"]) if row else None

    def list_runs(self) -> List[str]:
        rows = self._conn.execute(
            "SELECT run_id, MIN(rowid) AS first FROM snapshots GROUP BY run_id ORDER BY first"
        ).fetchall()
        return [r["run_id"] for r in rows]

    def verify_chain_integrity(self, run_id: Optional[str] = None) -> bool:
        """Verify no entry has been tampered with. Checks every run when run_id is None."""
        run_ids = [run_id] if run_id is not None else self.list_runs()
        for rid in run_ids:
            rows = self._conn.execute(
                "SELECT entry_json, signature FROM snapshots WHERE run_id = ? ORDER BY sequence",
                (rid,),
            ).fetchall()
            prior_sig = None
            for row in rows:
                entry = HistoryEntry.model_validate_json(row["entry_json"])
                if entry.signature != row["signature"]:
                    logger.warning("Run %s entry %d: stored signature mismatch", rid, entry.sequence)
                    return False
                if _entry_signature(entry) != entry.signature:
                    logger.warning("Run %s entry %d: content hash mismatch", rid, entry.sequence)
                    return False
                if entry.prior_record_hash != prior_sig:
                    logger.warning("Run %s entry %d: broken chain link", rid, entry.sequence)
                    return False
                prior_sig = entry.signature
        return True

    def count(self, run_id: Optional[str] = None) -> int:
        if run_id is None:
            row = self._conn.execute("SELECT COUNT(*) as cnt FROM snapshots").fetchone()
        else:
            row = self._conn.execute(
                "SELECT COUNT(*) as cnt FROM snapshots WHERE run_id = ?", (run_id,)
            ).fetchone()
        return row["cnt"]

    def close(self) -> None:
        self._conn.close()
