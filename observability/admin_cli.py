"""Lightweight CLI helpers for inspecting stored interview sessions."""
from __future__ import annotations

import argparse
import json
import sqlite3
from typing import Optional

from config.settings import settings


def tail_sessions(limit: int = 20, db_path: Optional[str] = None) -> None:
    conn = sqlite3.connect(db_path or settings.DB_PATH)
    try:
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT updated_at, id, owner_id, status
            FROM interview_sessions
            ORDER BY updated_at DESC
            LIMIT ?
            """,
            (limit,),
        )
        for updated_at, session_id, owner_id, status in cursor.fetchall():
            print(f"[{updated_at}] {session_id} owner={owner_id} status={status}")
    finally:
        conn.close()


def show_raw_analysis(session_id: str, db_path: Optional[str] = None) -> None:
    conn = sqlite3.connect(db_path or settings.DB_PATH)
    try:
        row = conn.execute(
            "SELECT document FROM interview_sessions WHERE id = ?",
            (session_id,),
        ).fetchone()
    finally:
        conn.close()
    if row is None:
        print(f"session {session_id} not found")
        return
    document = json.loads(row[0])
    print(f"analysis_at={document.get('analysis_at')}")
    print(document.get("analysis_raw") or "(no analysis yet)")


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-sessions", type=int, help="Show the most recently updated sessions")
    parser.add_argument("--raw-analysis", metavar="SESSION_ID", help="Print the raw model output behind an analysis")
    parser.add_argument("--db", default=None, help="SQLite path (defaults to DB_PATH)")
    args = parser.parse_args()

    if args.tail_sessions:
        tail_sessions(args.tail_sessions, args.db)
    if args.raw_analysis:
        show_raw_analysis(args.raw_analysis, args.db)


if __name__ == "__main__":
    main()
