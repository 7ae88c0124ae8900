from __future__ import annotations

import sqlite3
from typing import Optional

from domain.errors import PersistenceError
from domain.models import Participant, PokerTable, TableStatus, Tournament
from domain.repositories import TournamentRepository


class SqliteTournamentRepository(TournamentRepository):
    """
    SQLite-backed implementation of `TournamentRepository`.

    Owns the `tournaments`, `poker_tables` and `participants` tables and
    maps rows to the `Tournament` snapshot. It is self-initialising: the
    tables are created if needed.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._ensure_tables()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_tables(self) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tournaments (
                    id TEXT PRIMARY KEY,
                    seats_per_table INTEGER NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS poker_tables (
                    id TEXT PRIMARY KEY,
                    tournament_id TEXT NOT NULL REFERENCES tournaments (id),
                    table_number INTEGER NOT NULL,
                    max_seats INTEGER NOT NULL,
                    status TEXT NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS participants (
                    id TEXT PRIMARY KEY,
                    tournament_id TEXT NOT NULL REFERENCES tournaments (id),
                    name TEXT NOT NULL,
                    eliminated INTEGER NOT NULL DEFAULT 0,
                    locked INTEGER NOT NULL DEFAULT 0,
                    table_id TEXT,
                    seat_number INTEGER,
                    current_stack INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            conn.commit()

    @staticmethod
    def _table_to_domain(row: sqlite3.Row) -> PokerTable:
        return PokerTable(
            id=str(row[0]),
            table_number=int(row[1]),
            max_seats=int(row[2]),
            status=TableStatus(row[3]),
        )

    @staticmethod
    def _participant_to_domain(row: sqlite3.Row) -> Participant:
        return Participant(
            id=str(row[0]),
            name=row[1],
            eliminated=bool(row[2]),
            locked=bool(row[3]),
            table_id=row[4],
            seat_number=row[5],
            current_stack=int(row[6]),
        )

    def load_tournament(self, tournament_id: str) -> Optional[Tournament]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT id, seats_per_table FROM tournaments WHERE id = ?",
                (tournament_id,),
            )
            row = cur.fetchone()
            if not row:
                return None

            cur.execute(
                """
                SELECT id, table_number, max_seats, status
                FROM poker_tables
                WHERE tournament_id = ?
                ORDER BY rowid
                """,
                (tournament_id,),
            )
            tables = tuple(self._table_to_domain(r) for r in cur.fetchall())

            cur.execute(
                """
                SELECT id, name, eliminated, locked, table_id, seat_number, current_stack
                FROM participants
                WHERE tournament_id = ?
                ORDER BY rowid
                """,
                (tournament_id,),
            )
            participants = tuple(self._participant_to_domain(r) for r in cur.fetchall())

            return Tournament(
                id=str(row[0]),
                seats_per_table=int(row[1]),
                tables=tables,
                participants=participants,
            )

    def save_tournament_state(self, tournament: Tournament) -> None:
        """Upsert the tournament, its tables and participants in one transaction."""

        conn = self._get_connection()
        try:
            with conn:
                cur = conn.cursor()
                cur.execute(
                    """
                    INSERT INTO tournaments (id, seats_per_table)
                    VALUES (?, ?)
                    ON CONFLICT (id) DO UPDATE SET seats_per_table = excluded.seats_per_table
                    """,
                    (tournament.id, tournament.seats_per_table),
                )
                cur.executemany(
                    """
                    INSERT INTO poker_tables (id, tournament_id, table_number, max_seats, status)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT (id) DO UPDATE SET
                        table_number = excluded.table_number,
                        max_seats = excluded.max_seats,
                        status = excluded.status
                    """,
                    [
                        (t.id, tournament.id, t.table_number, t.max_seats, t.status.value)
                        for t in tournament.tables
                    ],
                )
                cur.executemany(
                    """
                    INSERT INTO participants (
                        id, tournament_id, name, eliminated, locked,
                        table_id, seat_number, current_stack
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT (id) DO UPDATE SET
                        name = excluded.name,
                        eliminated = excluded.eliminated,
                        locked = excluded.locked,
                        table_id = excluded.table_id,
                        seat_number = excluded.seat_number,
                        current_stack = excluded.current_stack
                    """,
                    [
                        (
                            p.id,
                            tournament.id,
                            p.name,
                            int(p.eliminated),
                            int(p.locked),
                            p.table_id,
                            p.seat_number,
                            p.current_stack,
                        )
                        for p in tournament.participants
                    ],
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not save tournament {tournament.id}: {exc}") from exc
        finally:
            conn.close()

    def find_tournament_id_for_participant(self, participant_id: str) -> Optional[str]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT tournament_id FROM participants WHERE id = ?",
                (participant_id,),
            )
            row = cur.fetchone()
            if not row:
                return None
            return str(row[0])
