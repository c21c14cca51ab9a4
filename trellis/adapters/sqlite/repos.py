import sqlite3
from datetime import datetime
from typing import Any
from uuid import UUID

from trellis.domain.entities import (
    Board,
    BoardList,
    Invitation,
    InvitationStatus,
    Member,
    User,
)
from trellis.domain.errors import (
    ConflictError,
    DuplicateMemberError,
    DuplicatePendingInvitationError,
    DuplicateTitleError,
    DuplicateTokenError,
)

DEFAULT_BUSY_TIMEOUT = 5.0


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def connect(db_path: str, busy_timeout: float = DEFAULT_BUSY_TIMEOUT) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path, timeout=busy_timeout)
    conn.row_factory = dict_factory
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


# Constraint name (as reported by sqlite) -> domain conflict
_UNIQUE_VIOLATIONS: dict[str, type[ConflictError]] = {
    "invitations.token": DuplicateTokenError,
    "invitations.board_id, invitations.member_email": DuplicatePendingInvitationError,
    "members.board_id, members.user_id": DuplicateMemberError,
    "boards.title": DuplicateTitleError,
}


def conflict_from_integrity_error(e: sqlite3.IntegrityError) -> ConflictError | None:
    """Map a uniqueness violation onto its ConflictError; None for other integrity errors."""
    message = str(e)
    prefix = "UNIQUE constraint failed: "
    if not message.startswith(prefix):
        return None
    error_cls = _UNIQUE_VIOLATIONS.get(message[len(prefix):])
    if error_cls is None:
        return ConflictError(message)
    return error_cls()


def _parse_dt(s: str) -> datetime:
    return datetime.fromisoformat(s)


class SQLiteUserRepo:
    def __init__(self, db_path: str, busy_timeout: float = DEFAULT_BUSY_TIMEOUT):
        self.db_path = db_path
        self.busy_timeout = busy_timeout

    def _get_conn(self) -> sqlite3.Connection:
        return connect(self.db_path, self.busy_timeout)

    def save(self, user: User) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO users (
                    id, email, display_name, password_hash, status, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    email=excluded.email,
                    display_name=excluded.display_name,
                    password_hash=excluded.password_hash,
                    status=excluded.status,
                    updated_at=excluded.updated_at
            """,
                (
                    str(user.id),
                    user.email,
                    user.display_name,
                    user.password_hash,
                    user.status,
                    user.created_at.isoformat(),
                    user.updated_at.isoformat(),
                ),
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            if "users.email" in str(e):
                raise ConflictError("Email already registered") from e
            raise
        finally:
            conn.close()

    def get_by_email(self, email: str) -> User | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ? COLLATE NOCASE", (email,)
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def get_by_id(self, user_id: UUID) -> User | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (str(user_id),)).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> User:
        return User(
            id=UUID(row["id"]),
            email=row["email"],
            display_name=row["display_name"],
            password_hash=row["password_hash"],
            status=row["status"],
            created_at=_parse_dt(row["created_at"]),
            updated_at=_parse_dt(row["updated_at"]),
        )


class SQLiteBoardRepo:
    def __init__(self, db_path: str, busy_timeout: float = DEFAULT_BUSY_TIMEOUT):
        self.db_path = db_path
        self.busy_timeout = busy_timeout

    def _get_conn(self) -> sqlite3.Connection:
        return connect(self.db_path, self.busy_timeout)

    def save(self, board: Board) -> Board:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO boards (
                    id, owner_user_id, title, description, background_color,
                    lifecycle, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title=excluded.title,
                    description=excluded.description,
                    background_color=excluded.background_color,
                    lifecycle=excluded.lifecycle,
                    updated_at=excluded.updated_at
            """,
                (
                    str(board.id),
                    str(board.owner_user_id),
                    board.title,
                    board.description,
                    board.background_color,
                    board.lifecycle,
                    board.created_at.isoformat(),
                    board.updated_at.isoformat(),
                ),
            )
            conn.commit()
            return board
        except sqlite3.IntegrityError as e:
            conn.rollback()
            conflict = conflict_from_integrity_error(e)
            if conflict is None:
                raise
            raise conflict from e
        finally:
            conn.close()

    def get_by_id(self, board_id: UUID) -> Board | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM boards WHERE id = ?", (str(board_id),)).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def get_active_by_title(self, title: str) -> Board | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM boards WHERE title = ? AND lifecycle = 'active'", (title,)
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def list_active(self) -> list[Board]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM boards WHERE lifecycle = 'active' "
                "ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> Board:
        return Board(
            id=UUID(row["id"]),
            owner_user_id=UUID(row["owner_user_id"]),
            title=row["title"],
            description=row["description"],
            background_color=row["background_color"],
            lifecycle=row["lifecycle"],
            created_at=_parse_dt(row["created_at"]),
            updated_at=_parse_dt(row["updated_at"]),
        )


def _insert_member(conn: sqlite3.Connection, member: Member) -> None:
    conn.execute(
        """
        INSERT INTO members (
            id, board_id, user_id, role, invitation_id, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?)
    """,
        (
            str(member.id),
            str(member.board_id),
            str(member.user_id),
            member.role,
            str(member.invitation_id) if member.invitation_id else None,
            member.created_at.isoformat(),
            member.updated_at.isoformat(),
        ),
    )


def _map_member(row: dict[str, Any]) -> Member:
    return Member(
        id=UUID(row["id"]),
        board_id=UUID(row["board_id"]),
        user_id=UUID(row["user_id"]),
        role=row["role"],
        invitation_id=UUID(row["invitation_id"]) if row["invitation_id"] else None,
        created_at=_parse_dt(row["created_at"]),
        updated_at=_parse_dt(row["updated_at"]),
    )


class SQLiteMemberRepo:
    def __init__(self, db_path: str, busy_timeout: float = DEFAULT_BUSY_TIMEOUT):
        self.db_path = db_path
        self.busy_timeout = busy_timeout

    def _get_conn(self) -> sqlite3.Connection:
        return connect(self.db_path, self.busy_timeout)

    def add(self, member: Member) -> Member:
        conn = self._get_conn()
        try:
            _insert_member(conn, member)
            conn.commit()
            return member
        except sqlite3.IntegrityError as e:
            conn.rollback()
            conflict = conflict_from_integrity_error(e)
            if conflict is None:
                raise
            raise conflict from e
        finally:
            conn.close()

    def get_by_board_and_user(self, board_id: UUID, user_id: UUID) -> Member | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM members WHERE board_id = ? AND user_id = ?",
                (str(board_id), str(user_id)),
            ).fetchone()
            return _map_member(row) if row else None
        finally:
            conn.close()

    def list_by_board(self, board_id: UUID) -> list[Member]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM members WHERE board_id = ? ORDER BY created_at ASC, rowid ASC",
                (str(board_id),),
            ).fetchall()
            return [_map_member(r) for r in rows]
        finally:
            conn.close()


class SQLiteInvitationRepo:
    def __init__(self, db_path: str, busy_timeout: float = DEFAULT_BUSY_TIMEOUT):
        self.db_path = db_path
        self.busy_timeout = busy_timeout

    def _get_conn(self) -> sqlite3.Connection:
        return connect(self.db_path, self.busy_timeout)

    def add(self, invitation: Invitation) -> Invitation:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO invitations (
                    id, board_id, member_email, status, token, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    str(invitation.id),
                    str(invitation.board_id),
                    invitation.member_email,
                    invitation.status,
                    invitation.token,
                    invitation.created_at.isoformat(),
                    invitation.updated_at.isoformat(),
                ),
            )
            conn.commit()
            return invitation
        except sqlite3.IntegrityError as e:
            conn.rollback()
            conflict = conflict_from_integrity_error(e)
            if conflict is None:
                raise
            raise conflict from e
        finally:
            conn.close()

    def get_by_token(self, token: str) -> Invitation | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM invitations WHERE token = ?", (token,)).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def list_by_board_and_email(self, board_id: UUID, email: str) -> list[Invitation]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM invitations WHERE board_id = ? AND member_email = ? "
                "ORDER BY created_at DESC, rowid DESC",
                (str(board_id), email),
            ).fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            conn.close()

    def save_status(
        self,
        invitation_id: UUID,
        expected: InvitationStatus,
        new: InvitationStatus,
        now: datetime,
    ) -> bool:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                "UPDATE invitations SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
                (new, now.isoformat(), str(invitation_id), expected),
            )
            conn.commit()
            return cursor.rowcount == 1
        finally:
            conn.close()

    def accept(self, invitation_id: UUID, member: Member, now: datetime) -> bool:
        conn = self._get_conn()
        # Explicit transaction: take the write lock before reading the status
        conn.isolation_level = None
        try:
            conn.execute("BEGIN IMMEDIATE")
            cursor = conn.execute(
                "UPDATE invitations SET status = 'accepted', updated_at = ? "
                "WHERE id = ? AND status = 'pending'",
                (now.isoformat(), str(invitation_id)),
            )
            if cursor.rowcount != 1:
                conn.execute("ROLLBACK")
                return False
            _insert_member(conn, member)
            conn.execute("COMMIT")
            return True
        except sqlite3.IntegrityError as e:
            conn.execute("ROLLBACK")
            conflict = conflict_from_integrity_error(e)
            if conflict is None:
                raise
            raise conflict from e
        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> Invitation:
        return Invitation(
            id=UUID(row["id"]),
            board_id=UUID(row["board_id"]),
            member_email=row["member_email"],
            status=row["status"],
            token=row["token"],
            created_at=_parse_dt(row["created_at"]),
            updated_at=_parse_dt(row["updated_at"]),
        )


class SQLiteListRepo:
    def __init__(self, db_path: str, busy_timeout: float = DEFAULT_BUSY_TIMEOUT):
        self.db_path = db_path
        self.busy_timeout = busy_timeout

    def _get_conn(self) -> sqlite3.Connection:
        return connect(self.db_path, self.busy_timeout)

    def save(self, board_list: BoardList) -> BoardList:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO lists (
                    id, board_id, owner_user_id, title, position,
                    lifecycle, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title=excluded.title,
                    position=excluded.position,
                    lifecycle=excluded.lifecycle,
                    updated_at=excluded.updated_at
            """,
                (
                    str(board_list.id),
                    str(board_list.board_id),
                    str(board_list.owner_user_id),
                    board_list.title,
                    board_list.position,
                    board_list.lifecycle,
                    board_list.created_at.isoformat(),
                    board_list.updated_at.isoformat(),
                ),
            )
            conn.commit()
            return board_list
        finally:
            conn.close()

    def get_by_id(self, list_id: UUID) -> BoardList | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM lists WHERE id = ?", (str(list_id),)).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def list_active_by_board(self, board_id: UUID) -> list[BoardList]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM lists WHERE board_id = ? AND lifecycle = 'active' "
                "ORDER BY position ASC",
                (str(board_id),),
            ).fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            conn.close()

    def next_position(self, board_id: UUID) -> int:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT MAX(position) AS max_pos FROM lists WHERE board_id = ?",
                (str(board_id),),
            ).fetchone()
            return 0 if row["max_pos"] is None else row["max_pos"] + 1
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> BoardList:
        return BoardList(
            id=UUID(row["id"]),
            board_id=UUID(row["board_id"]),
            owner_user_id=UUID(row["owner_user_id"]),
            title=row["title"],
            position=row["position"],
            lifecycle=row["lifecycle"],
            created_at=_parse_dt(row["created_at"]),
            updated_at=_parse_dt(row["updated_at"]),
        )
