from __future__ import annotations

import json
import os
import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from typing import Any

from workify.schemas.feedback import FeedbackInsight, FeedbackRecommendation, FeedbackRecord, FeedbackScores
from workify.schemas.jobs import Job, JobStatus, Tailor, TailorStatus
from workify.schemas.profile import Intent, ProfileResponse

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS profiles (
        user_id TEXT PRIMARY KEY,
        resume_text TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS intents (
        user_id TEXT PRIMARY KEY,
        roles_json TEXT NOT NULL,
        dream_companies_json TEXT NOT NULL,
        locations_json TEXT NOT NULL,
        work_type TEXT,
        updated_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS jobs (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        company TEXT NOT NULL,
        description TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending',
        fit_score INTEGER,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_jobs_user_id ON jobs (user_id);",
    """
    CREATE TABLE IF NOT EXISTS tailors (
        id TEXT PRIMARY KEY,
        job_id TEXT NOT NULL REFERENCES jobs (id) ON DELETE CASCADE,
        user_id TEXT NOT NULL,
        tailored_resume TEXT,
        cover_letter TEXT,
        portfolio TEXT,
        fit_score INTEGER NOT NULL,
        token_usage INTEGER NOT NULL DEFAULT 0,
        status TEXT NOT NULL DEFAULT 'pending_review',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_tailors_user_id ON tailors (user_id);",
    """
    CREATE TABLE IF NOT EXISTS feedback (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        job_id TEXT NOT NULL REFERENCES jobs (id) ON DELETE CASCADE,
        tailor_id TEXT NOT NULL REFERENCES tailors (id) ON DELETE CASCADE,
        selection_probability INTEGER NOT NULL CHECK (selection_probability BETWEEN 0 AND 100),
        semantic_similarity_score INTEGER NOT NULL CHECK (semantic_similarity_score BETWEEN 0 AND 100),
        skill_coverage_score INTEGER NOT NULL CHECK (skill_coverage_score BETWEEN 0 AND 100),
        experience_alignment_score INTEGER NOT NULL CHECK (experience_alignment_score BETWEEN 0 AND 100),
        strengths_json TEXT NOT NULL,
        gaps_json TEXT NOT NULL,
        recommendations_json TEXT NOT NULL,
        model_version TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    """,
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_feedback_tailor_id ON feedback (tailor_id);",
    "CREATE INDEX IF NOT EXISTS idx_feedback_user_id ON feedback (user_id);",
    "CREATE INDEX IF NOT EXISTS idx_feedback_probability ON feedback (selection_probability);",
    "CREATE INDEX IF NOT EXISTS idx_feedback_created_at ON feedback (created_at);",
    """
    CREATE TABLE IF NOT EXISTS applications (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        job_id TEXT NOT NULL REFERENCES jobs (id) ON DELETE CASCADE,
        tailor_id TEXT NOT NULL REFERENCES tailors (id) ON DELETE CASCADE,
        status TEXT NOT NULL,
        company TEXT,
        position TEXT,
        created_at TEXT NOT NULL
    );
    """,
)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


class Store:
    """SQLite persistence for profiles, jobs, tailors, feedback and applications.

    One shared connection, every statement serialized through a lock.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    def _get_connection(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is not None:
                return self._conn

            directory = os.path.dirname(self.db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            conn = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                timeout=5,
                isolation_level=None,
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA busy_timeout=5000;")
            conn.execute("PRAGMA foreign_keys=ON;")
            for statement in _SCHEMA:
                conn.execute(statement)
            self._conn = conn
            return conn

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        conn = self._get_connection()
        with self._lock:
            return conn.execute(sql, params)

    def _fetchone(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Row | None:
        conn = self._get_connection()
        with self._lock:
            return conn.execute(sql, params).fetchone()

    def _fetchall(self, sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        conn = self._get_connection()
        with self._lock:
            return conn.execute(sql, params).fetchall()

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    # profiles / intents

    def upsert_profile(self, user_id: str, resume_text: str) -> ProfileResponse:
        self._execute(
            """
            INSERT INTO profiles (user_id, resume_text, updated_at) VALUES (?, ?, ?)
            ON CONFLICT (user_id) DO UPDATE SET
                resume_text = excluded.resume_text,
                updated_at = excluded.updated_at
            """,
            (user_id, resume_text, _utc_now()),
        )
        return ProfileResponse(user_id=user_id, resume_text=resume_text)

    def get_profile(self, user_id: str) -> ProfileResponse | None:
        row = self._fetchone("SELECT user_id, resume_text FROM profiles WHERE user_id = ?", (user_id,))
        if not row:
            return None
        return ProfileResponse(user_id=row["user_id"], resume_text=row["resume_text"])

    def upsert_intent(self, user_id: str, intent: Intent) -> Intent:
        self._execute(
            """
            INSERT INTO intents (
                user_id, roles_json, dream_companies_json, locations_json, work_type, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT (user_id) DO UPDATE SET
                roles_json = excluded.roles_json,
                dream_companies_json = excluded.dream_companies_json,
                locations_json = excluded.locations_json,
                work_type = excluded.work_type,
                updated_at = excluded.updated_at
            """,
            (
                user_id,
                json.dumps(intent.roles, ensure_ascii=False),
                json.dumps(intent.dream_companies, ensure_ascii=False),
                json.dumps(intent.locations, ensure_ascii=False),
                intent.work_type,
                _utc_now(),
            ),
        )
        return intent

    def get_intent(self, user_id: str) -> Intent | None:
        row = self._fetchone("SELECT * FROM intents WHERE user_id = ?", (user_id,))
        if not row:
            return None
        return Intent(
            roles=json.loads(row["roles_json"]),
            dream_companies=json.loads(row["dream_companies_json"]),
            locations=json.loads(row["locations_json"]),
            work_type=row["work_type"],
        )

    # jobs

    def create_job(self, *, user_id: str, title: str, company: str, description: str) -> Job:
        job_id = _new_id()
        now = _utc_now()
        self._execute(
            """
            INSERT INTO jobs (id, user_id, title, company, description, status, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, 'pending', ?, ?)
            """,
            (job_id, user_id, title, company, description, now, now),
        )
        job = self.get_job(job_id)
        assert job is not None
        return job

    def get_job(self, job_id: str, user_id: str | None = None) -> Job | None:
        if user_id is None:
            row = self._fetchone("SELECT * FROM jobs WHERE id = ?", (job_id,))
        else:
            row = self._fetchone("SELECT * FROM jobs WHERE id = ? AND user_id = ?", (job_id, user_id))
        return Job(**dict(row)) if row else None

    def finalize_job(self, job_id: str, *, fit_score: int, status: JobStatus) -> None:
        self._execute(
            "UPDATE jobs SET fit_score = ?, status = ?, updated_at = ? WHERE id = ?",
            (fit_score, status, _utc_now(), job_id),
        )

    # tailors

    def create_tailor(
        self,
        *,
        job_id: str,
        user_id: str,
        tailored_resume: str,
        cover_letter: str,
        portfolio: str,
        fit_score: int,
        token_usage: int,
    ) -> Tailor:
        tailor_id = _new_id()
        now = _utc_now()
        self._execute(
            """
            INSERT INTO tailors (
                id, job_id, user_id, tailored_resume, cover_letter, portfolio,
                fit_score, token_usage, status, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, 'pending_review', ?, ?)
            """,
            (tailor_id, job_id, user_id, tailored_resume, cover_letter, portfolio, fit_score, token_usage, now, now),
        )
        tailor = self.get_tailor(tailor_id)
        assert tailor is not None
        return tailor

    def get_tailor(self, tailor_id: str, user_id: str | None = None) -> Tailor | None:
        if user_id is None:
            row = self._fetchone("SELECT * FROM tailors WHERE id = ?", (tailor_id,))
        else:
            row = self._fetchone("SELECT * FROM tailors WHERE id = ? AND user_id = ?", (tailor_id, user_id))
        if not row:
            return None
        data = dict(row)
        for column in ("tailored_resume", "cover_letter", "portfolio"):
            data[column] = data[column] or ""
        return Tailor(**data)

    def count_tailors_for_job(self, job_id: str) -> int:
        row = self._fetchone("SELECT COUNT(1) AS total FROM tailors WHERE job_id = ?", (job_id,))
        return int(row["total"]) if row else 0

    def set_tailor_status(self, tailor_id: str, status: TailorStatus) -> None:
        self._execute(
            "UPDATE tailors SET status = ?, updated_at = ? WHERE id = ?",
            (status, _utc_now(), tailor_id),
        )

    # feedback

    def feedback_exists(self, tailor_id: str) -> bool:
        row = self._fetchone("SELECT id FROM feedback WHERE tailor_id = ?", (tailor_id,))
        return row is not None

    def insert_feedback(
        self,
        *,
        user_id: str,
        job_id: str,
        tailor_id: str,
        scores: FeedbackScores,
        model_version: str,
    ) -> FeedbackRecord | None:
        """Insert once per tailor. Returns None when a row already exists."""
        cursor = self._execute(
            """
            INSERT OR IGNORE INTO feedback (
                id, user_id, job_id, tailor_id,
                selection_probability, semantic_similarity_score,
                skill_coverage_score, experience_alignment_score,
                strengths_json, gaps_json, recommendations_json,
                model_version, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                _new_id(),
                user_id,
                job_id,
                tailor_id,
                scores.selection_probability,
                scores.semantic_similarity_score,
                scores.skill_coverage_score,
                scores.experience_alignment_score,
                json.dumps([item.model_dump() for item in scores.strengths], ensure_ascii=False),
                json.dumps([item.model_dump() for item in scores.gaps], ensure_ascii=False),
                json.dumps([item.model_dump() for item in scores.recommendations], ensure_ascii=False),
                model_version,
                _utc_now(),
            ),
        )
        if not cursor.rowcount:
            return None
        return self.get_feedback_for_tailor(tailor_id)

    def get_feedback_for_tailor(self, tailor_id: str, user_id: str | None = None) -> FeedbackRecord | None:
        if user_id is None:
            row = self._fetchone("SELECT * FROM feedback WHERE tailor_id = ?", (tailor_id,))
        else:
            row = self._fetchone(
                "SELECT * FROM feedback WHERE tailor_id = ? AND user_id = ?",
                (tailor_id, user_id),
            )
        return _row_to_feedback(row) if row else None

    def list_feedback(
        self,
        *,
        user_id: str | None = None,
        min_score: int | None = None,
        max_score: int | None = None,
        since: str | None = None,
        skip: int = 0,
        limit: int | None = 50,
    ) -> tuple[list[FeedbackRecord], int]:
        clauses: list[str] = []
        params: list[Any] = []
        if user_id:
            clauses.append("user_id = ?")
            params.append(user_id)
        if min_score is not None:
            clauses.append("selection_probability >= ?")
            params.append(min_score)
        if max_score is not None:
            clauses.append("selection_probability <= ?")
            params.append(max_score)
        if since:
            clauses.append("created_at >= ?")
            params.append(since)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        total_row = self._fetchone(f"SELECT COUNT(1) AS total FROM feedback {where}", tuple(params))
        total = int(total_row["total"]) if total_row else 0

        sql = f"SELECT * FROM feedback {where} ORDER BY created_at DESC, rowid DESC"
        page_params = list(params)
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            page_params.extend([limit, skip])
        rows = self._fetchall(sql, tuple(page_params))
        return [_row_to_feedback(row) for row in rows], total

    # applications

    def create_application(
        self,
        *,
        user_id: str,
        job_id: str,
        tailor_id: str,
        status: str,
        company: str | None,
        position: str | None,
    ) -> str:
        application_id = _new_id()
        self._execute(
            """
            INSERT INTO applications (id, user_id, job_id, tailor_id, status, company, position, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (application_id, user_id, job_id, tailor_id, status, company, position, _utc_now()),
        )
        return application_id

    def count_applications(self, tailor_id: str) -> int:
        row = self._fetchone("SELECT COUNT(1) AS total FROM applications WHERE tailor_id = ?", (tailor_id,))
        return int(row["total"]) if row else 0


def _row_to_feedback(row: sqlite3.Row) -> FeedbackRecord:
    return FeedbackRecord(
        id=row["id"],
        user_id=row["user_id"],
        job_id=row["job_id"],
        tailor_id=row["tailor_id"],
        selection_probability=row["selection_probability"],
        semantic_similarity_score=row["semantic_similarity_score"],
        skill_coverage_score=row["skill_coverage_score"],
        experience_alignment_score=row["experience_alignment_score"],
        strengths=[FeedbackInsight(**item) for item in json.loads(row["strengths_json"] or "[]")],
        gaps=[FeedbackInsight(**item) for item in json.loads(row["gaps_json"] or "[]")],
        recommendations=[
            FeedbackRecommendation(**item) for item in json.loads(row["recommendations_json"] or "[]")
        ],
        model_version=row["model_version"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )
