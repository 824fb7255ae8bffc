"""SQLite database initialization and CRUD operations."""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Optional

from config.exceptions import DatabaseError
from models.run import WorkflowRun
from models.schemas import AgentConfig

logger = logging.getLogger(__name__)

# SQL for creating all tables
_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS agent_prompts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    step_id TEXT NOT NULL,
    system_prompt TEXT NOT NULL,
    user_prompt_template TEXT NOT NULL,
    model_name TEXT NOT NULL,
    sections TEXT DEFAULT '{}',
    is_active BOOLEAN DEFAULT TRUE,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS workflow_runs (
    run_id TEXT PRIMARY KEY,
    whitepaper_id TEXT DEFAULT '',
    current_step TEXT DEFAULT '',
    needs_human_input BOOLEAN DEFAULT FALSE,
    is_complete BOOLEAN DEFAULT FALSE,
    state_json TEXT NOT NULL,
    error TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

_INDEX_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_agent_prompts_step ON agent_prompts(step_id, is_active)",
    "CREATE INDEX IF NOT EXISTS idx_workflow_runs_updated ON workflow_runs(updated_at)",
]


class Database:
    """SQLite store for step prompt configuration and suspended workflow runs."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise DatabaseError(f"Cannot open database: {e}", {"path": str(self.db_path)}) from e
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    def _init_db(self):
        with self._get_conn() as conn:
            conn.executescript(_CREATE_TABLES_SQL)
            for sql in _INDEX_SQL:
                conn.execute(sql)

    # ---- Agent prompt configuration ----

    def upsert_agent_prompt(self, config: AgentConfig) -> int:
        """Store a configuration as the single active row for its step."""
        with self._get_conn() as conn:
            conn.execute(
                "UPDATE agent_prompts SET is_active = FALSE, updated_at = CURRENT_TIMESTAMP "
                "WHERE step_id = ? AND is_active",
                (config.step_id,),
            )
            cursor = conn.execute(
                "INSERT INTO agent_prompts (step_id, system_prompt, user_prompt_template, "
                "model_name, sections, is_active) VALUES (?, ?, ?, ?, ?, TRUE)",
                (config.step_id, config.system_prompt, config.user_prompt_template,
                 config.model_name, json.dumps(config.sections, ensure_ascii=False)),
            )
            logger.debug("Stored prompt configuration for step %s", config.step_id)
            return cursor.lastrowid

    def get_agent_prompt(self, step_id: str) -> Optional[AgentConfig]:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT * FROM agent_prompts WHERE step_id = ? AND is_active "
                "ORDER BY id DESC LIMIT 1",
                (step_id,),
            ).fetchone()
            if not row:
                return None
            return self._row_to_agent_config(row)

    def list_agent_prompts(self) -> list[AgentConfig]:
        with self._get_conn() as conn:
            rows = conn.execute(
                "SELECT * FROM agent_prompts WHERE is_active ORDER BY step_id"
            ).fetchall()
            return [self._row_to_agent_config(r) for r in rows]

    def _row_to_agent_config(self, row) -> AgentConfig:
        return AgentConfig(
            step_id=row["step_id"],
            system_prompt=row["system_prompt"],
            user_prompt_template=row["user_prompt_template"],
            model_name=row["model_name"],
            sections=json.loads(row["sections"] or "{}"),
        )

    # ---- Workflow runs ----

    def save_run(self, run: WorkflowRun):
        """Insert or replace a stored run, keeping its original creation time."""
        with self._get_conn() as conn:
            conn.execute(
                "INSERT INTO workflow_runs (run_id, whitepaper_id, current_step, "
                "needs_human_input, is_complete, state_json, error) "
                "VALUES (?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(run_id) DO UPDATE SET "
                "whitepaper_id=excluded.whitepaper_id, current_step=excluded.current_step, "
                "needs_human_input=excluded.needs_human_input, is_complete=excluded.is_complete, "
                "state_json=excluded.state_json, error=excluded.error, "
                "updated_at=CURRENT_TIMESTAMP",
                (run.run_id, run.whitepaper_id, run.current_step,
                 run.needs_human_input, run.is_complete, run.state_json, run.error),
            )

    def get_run(self, run_id: str) -> Optional[WorkflowRun]:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT * FROM workflow_runs WHERE run_id = ?", (run_id,)
            ).fetchone()
            if not row:
                return None
            return self._row_to_run(row)

    def list_runs(self, limit: int = 20) -> list[WorkflowRun]:
        with self._get_conn() as conn:
            rows = conn.execute(
                "SELECT * FROM workflow_runs ORDER BY updated_at DESC, run_id LIMIT ?",
                (limit,),
            ).fetchall()
            return [self._row_to_run(r) for r in rows]

    def _row_to_run(self, row) -> WorkflowRun:
        return WorkflowRun(
            run_id=row["run_id"],
            whitepaper_id=row["whitepaper_id"] or "",
            current_step=row["current_step"] or "",
            needs_human_input=bool(row["needs_human_input"]),
            is_complete=bool(row["is_complete"]),
            state_json=row["state_json"],
            error=row["error"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
