from __future__ import annotations

from typing import Optional

import psycopg2

from domain.errors import PersistenceError
from domain.models import Participant, PokerTable, TableStatus, Tournament
from domain.repositories import TournamentRepository


class PostgresTournamentRepository(TournamentRepository):
    """
    Postgres-backed implementation of `TournamentRepository`.

    Same schema as the SQLite repository, with an `entry_seq` column on
    `participants` to keep registration order stable across loads.
    `save_tournament_state` runs in a single transaction with the
    tournament row locked `FOR UPDATE`, so concurrent writers from other
    processes queue behind each other.
    """

    def __init__(self, db_params: dict) -> None:
        self._db_params = db_params
        self._ensure_tables()

    def _get_connection(self):
        return psycopg2.connect(**self._db_params)

    def _ensure_tables(self) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
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
                        status TEXT NOT NULL,
                        created_seq BIGSERIAL
                    )
                    """
                )
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS participants (
                        id TEXT PRIMARY KEY,
                        tournament_id TEXT NOT NULL REFERENCES tournaments (id),
                        name TEXT NOT NULL,
                        eliminated BOOLEAN NOT NULL DEFAULT FALSE,
                        locked BOOLEAN NOT NULL DEFAULT FALSE,
                        table_id TEXT,
                        seat_number INTEGER,
                        current_stack INTEGER NOT NULL DEFAULT 0,
                        entry_seq BIGSERIAL
                    )
                    """
                )
                conn.commit()

    @staticmethod
    def _table_to_domain(row: tuple) -> PokerTable:
        return PokerTable(
            id=str(row[0]),
            table_number=int(row[1]),
            max_seats=int(row[2]),
            status=TableStatus(row[3]),
        )

    @staticmethod
    def _participant_to_domain(row: tuple) -> Participant:
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
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT id, seats_per_table FROM tournaments WHERE id = %s",
                    (tournament_id,),
                )
                row = cur.fetchone()
                if not row:
                    return None

                cur.execute(
                    """
                    SELECT id, table_number, max_seats, status
                    FROM poker_tables
                    WHERE tournament_id = %s
                    ORDER BY created_seq
                    """,
                    (tournament_id,),
                )
                tables = tuple(self._table_to_domain(r) for r in cur.fetchall())

                cur.execute(
                    """
                    SELECT id, name, eliminated, locked, table_id, seat_number, current_stack
                    FROM participants
                    WHERE tournament_id = %s
                    ORDER BY entry_seq
                    """,
                    (tournament_id,),
                )
                participants = tuple(
                    self._participant_to_domain(r) for r in cur.fetchall()
                )

                return Tournament(
                    id=str(row[0]),
                    seats_per_table=int(row[1]),
                    tables=tables,
                    participants=participants,
                )

    def save_tournament_state(self, tournament: Tournament) -> None:
        conn = None
        try:
            conn = self._get_connection()
            with conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO tournaments (id, seats_per_table)
                        VALUES (%s, %s)
                        ON CONFLICT (id) DO UPDATE SET seats_per_table = EXCLUDED.seats_per_table
                        """,
                        (tournament.id, tournament.seats_per_table),
                    )
                    cur.execute(
                        "SELECT id FROM tournaments WHERE id = %s FOR UPDATE",
                        (tournament.id,),
                    )
                    cur.executemany(
                        """
                        INSERT INTO poker_tables (id, tournament_id, table_number, max_seats, status)
                        VALUES (%s, %s, %s, %s, %s)
                        ON CONFLICT (id) DO UPDATE SET
                            table_number = EXCLUDED.table_number,
                            max_seats = EXCLUDED.max_seats,
                            status = EXCLUDED.status
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
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                        ON CONFLICT (id) DO UPDATE SET
                            name = EXCLUDED.name,
                            eliminated = EXCLUDED.eliminated,
                            locked = EXCLUDED.locked,
                            table_id = EXCLUDED.table_id,
                            seat_number = EXCLUDED.seat_number,
                            current_stack = EXCLUDED.current_stack
                        """,
                        [
                            (
                                p.id,
                                tournament.id,
                                p.name,
                                p.eliminated,
                                p.locked,
                                p.table_id,
                                p.seat_number,
                                p.current_stack,
                            )
                            for p in tournament.participants
                        ],
                    )
        except psycopg2.Error as exc:
            raise PersistenceError(f"Could not save tournament {tournament.id}: {exc}") from exc
        finally:
            if conn is not None:
                conn.close()

    def find_tournament_id_for_participant(self, participant_id: str) -> Optional[str]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT tournament_id FROM participants WHERE id = %s",
                    (participant_id,),
                )
                row = cur.fetchone()
                if not row:
                    return None
                return str(row[0])
