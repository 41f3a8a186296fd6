"""
SQLite-backed project catalog.

Holds the live project table (with indicators and frecency state) and the
scan log. Every multi-statement write runs inside one ``BEGIN IMMEDIATE``
transaction so readers never see a project with a half-written indicator set
and concurrent access recording cannot lose updates.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .frecency import bumped_score, decayed_score, utc_now
from .models import (
    CatalogStoreError,
    FrecencyState,
    Indicator,
    IndicatorKind,
    Project,
    ProjectType,
    ScanError,
    ScanErrorKind,
    ScanResult,
    ScanStatistics,
    ScanSummary,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

SCHEMA = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

-- Live catalog, one row per project root
CREATE TABLE IF NOT EXISTS projects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    path TEXT NOT NULL UNIQUE,
    project_type TEXT NOT NULL,
    last_scanned TEXT NOT NULL,
    frecency_score REAL NOT NULL DEFAULT 0.0,
    last_accessed REAL,
    access_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS project_indicators (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id INTEGER NOT NULL,
    indicator_type TEXT NOT NULL,
    indicator_value TEXT NOT NULL,
    FOREIGN KEY (project_id) REFERENCES projects (id) ON DELETE CASCADE
);

-- Scan log, never rewritten once stored
CREATE TABLE IF NOT EXISTS scan_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    scanned_at REAL NOT NULL,
    root_path TEXT NOT NULL,
    dirs_scanned INTEGER NOT NULL,
    duration_ms INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS scan_errors (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    scan_result_id INTEGER NOT NULL,
    error_path TEXT NOT NULL,
    error_type TEXT NOT NULL,
    error_message TEXT NOT NULL,
    FOREIGN KEY (scan_result_id) REFERENCES scan_results (id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS excluded_dirs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    scan_result_id INTEGER NOT NULL,
    dir_path TEXT NOT NULL,
    FOREIGN KEY (scan_result_id) REFERENCES scan_results (id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS scan_projects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    scan_result_id INTEGER NOT NULL,
    project_id INTEGER NOT NULL,
    FOREIGN KEY (scan_result_id) REFERENCES scan_results (id) ON DELETE CASCADE,
    FOREIGN KEY (project_id) REFERENCES projects (id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_projects_type ON projects (project_type);
CREATE INDEX IF NOT EXISTS idx_projects_frecency ON projects (frecency_score DESC);
CREATE INDEX IF NOT EXISTS idx_indicators_project ON project_indicators (project_id);
CREATE INDEX IF NOT EXISTS idx_scan_results_root ON scan_results (root_path, scanned_at);
CREATE INDEX IF NOT EXISTS idx_scan_errors_scan ON scan_errors (scan_result_id);
CREATE INDEX IF NOT EXISTS idx_excluded_dirs_scan ON excluded_dirs (scan_result_id);
CREATE INDEX IF NOT EXISTS idx_scan_projects_scan ON scan_projects (scan_result_id);
CREATE INDEX IF NOT EXISTS idx_scan_projects_project ON scan_projects (project_id);
"""

_PROJECT_COLUMNS = "id, path, project_type, last_scanned, frecency_score, last_accessed, access_count"

# Keep IN (...) lists well below SQLite's variable limit
_ID_CHUNK = 500


def _parse_timestamp(value) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise CatalogStoreError(f"Corrupt timestamp in catalog: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _from_epoch(value: Optional[float]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _escape_like(pattern: str) -> str:
    return pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _path_key(path: Union[str, Path]) -> str:
    return str(Path(path))


class CatalogStore:
    """
    SQLite storage for projects, frecency state and scan history.

    Pass ``":memory:"`` for a throwaway in-memory catalog.
    """

    def __init__(self, db_path: Union[Path, str]):
        self._db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._initialized = False

    @property
    def db_path(self) -> Union[Path, str]:
        return self._db_path

    @property
    def _in_memory(self) -> bool:
        return str(self._db_path) == ":memory:"

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._conn is None:
            if not self._in_memory:
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            # Autocommit; transactions are opened explicitly
            self._conn = sqlite3.connect(str(self._db_path), isolation_level=None)
            self._conn.row_factory = sqlite3.Row
            # SQLite's own lower() and LIKE only fold ASCII
            self._conn.create_function("py_lower", 1, str.lower, deterministic=True)
            self._conn.execute("PRAGMA foreign_keys=ON;")
            if not self._in_memory:
                self._conn.execute("PRAGMA journal_mode=WAL;")
                self._conn.execute("PRAGMA busy_timeout=5000;")
        return self._conn

    def initialize(self) -> None:
        """Create the schema if needed."""
        if self._initialized:
            return
        conn = self._get_connection()
        try:
            conn.executescript(SCHEMA)
            conn.execute(
                "INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,)
            )
            self._initialized = True
            logger.info(f"Initialized catalog store: {self._db_path}")
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to initialize schema: {e}") from e

    def _ensure(self) -> sqlite3.Connection:
        self.initialize()
        return self._get_connection()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._ensure()
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            self._initialized = False

    def schema_version(self) -> int:
        try:
            row = self._ensure().execute("SELECT MAX(version) FROM schema_version").fetchone()
            return row[0] or 0
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to read schema version: {e}") from e

    # ─────────────────────────────────────────────────────────────────
    # Row mapping
    # ─────────────────────────────────────────────────────────────────

    def _load_indicators(self, conn: sqlite3.Connection, ids: Sequence[int]) -> Dict[int, List[Indicator]]:
        found: Dict[int, List[Indicator]] = {project_id: [] for project_id in ids}
        for start in range(0, len(ids), _ID_CHUNK):
            chunk = list(ids[start:start + _ID_CHUNK])
            placeholders = ",".join("?" * len(chunk))
            rows = conn.execute(
                f"SELECT project_id, indicator_type, indicator_value FROM project_indicators "
                f"WHERE project_id IN ({placeholders}) ORDER BY id",
                chunk,
            ).fetchall()
            for row in rows:
                try:
                    kind = IndicatorKind(row["indicator_type"])
                except ValueError as e:
                    raise CatalogStoreError(
                        f"Unknown indicator type in catalog: {row['indicator_type']!r}"
                    ) from e
                found[row["project_id"]].append(Indicator(kind, row["indicator_value"]))
        return found

    def _rows_to_projects(self, conn: sqlite3.Connection, rows: Sequence[sqlite3.Row]) -> List[Project]:
        indicators = self._load_indicators(conn, [row["id"] for row in rows])
        projects = []
        for row in rows:
            try:
                project_type = ProjectType(row["project_type"])
            except ValueError as e:
                raise CatalogStoreError(
                    f"Unknown project type in catalog: {row['project_type']!r}"
                ) from e
            projects.append(Project(
                path=Path(row["path"]),
                project_type=project_type,
                indicators=indicators[row["id"]],
                last_scanned=_parse_timestamp(row["last_scanned"]),
            ))
        return projects

    @staticmethod
    def _row_to_state(row: sqlite3.Row) -> FrecencyState:
        return FrecencyState(
            score=row["frecency_score"],
            last_accessed=_from_epoch(row["last_accessed"]),
            access_count=row["access_count"],
        )

    def _select_projects(self, where: str = "", params: Sequence = (), order: str = "path", limit: Optional[int] = None) -> List[Project]:
        conn = self._ensure()
        sql = f"SELECT {_PROJECT_COLUMNS} FROM projects {where} ORDER BY {order}"
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        rows = conn.execute(sql, tuple(params)).fetchall()
        return self._rows_to_projects(conn, rows)

    # ─────────────────────────────────────────────────────────────────
    # Projects
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _upsert_project(conn: sqlite3.Connection, project: Project) -> int:
        last_scanned = project.last_scanned or utc_now()
        # Frecency columns are not touched on conflict
        conn.execute(
            """
            INSERT INTO projects (path, project_type, last_scanned)
            VALUES (?, ?, ?)
            ON CONFLICT(path) DO UPDATE SET
                project_type = excluded.project_type,
                last_scanned = excluded.last_scanned,
                updated_at = CURRENT_TIMESTAMP
            """,
            (_path_key(project.path), project.project_type.value, last_scanned.isoformat()),
        )
        project_id = conn.execute(
            "SELECT id FROM projects WHERE path = ?", (_path_key(project.path),)
        ).fetchone()[0]
        conn.execute("DELETE FROM project_indicators WHERE project_id = ?", (project_id,))
        conn.executemany(
            "INSERT INTO project_indicators (project_id, indicator_type, indicator_value) VALUES (?, ?, ?)",
            [(project_id, indicator.kind.value, indicator.name) for indicator in project.indicators],
        )
        return project_id

    def upsert_project(self, project: Project) -> int:
        """Insert or replace a project and its indicators atomically."""
        try:
            with self._transaction() as conn:
                return self._upsert_project(conn, project)
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to upsert project {project.path}: {e}") from e

    def get_project(self, path: Union[str, Path]) -> Optional[Project]:
        try:
            projects = self._select_projects("WHERE path = ?", (_path_key(path),))
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to get project: {e}") from e
        return projects[0] if projects else None

    def get_all_projects(self) -> List[Project]:
        try:
            return self._select_projects()
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to get projects: {e}") from e

    def get_projects_by_type(self, project_type: ProjectType) -> List[Project]:
        try:
            return self._select_projects("WHERE project_type = ?", (project_type.value,))
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to get projects by type: {e}") from e

    def get_projects_by_indicator(self, indicator: Indicator) -> List[Project]:
        try:
            return self._select_projects(
                "WHERE id IN (SELECT project_id FROM project_indicators "
                "WHERE indicator_type = ? AND indicator_value = ?)",
                (indicator.kind.value, indicator.name),
            )
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to get projects by indicator: {e}") from e

    def search_by_path_substring(self, pattern: str, limit: Optional[int] = None) -> List[Project]:
        """Projects whose path contains ``pattern``, shortest paths first."""
        try:
            return self._select_projects(
                "WHERE py_lower(path) LIKE ? ESCAPE '\\'",
                (f"%{_escape_like(pattern.lower())}%",),
                order="LENGTH(path), path",
                limit=limit,
            )
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to search projects: {e}") from e

    def delete_project(self, path: Union[str, Path]) -> bool:
        try:
            cursor = self._ensure().execute("DELETE FROM projects WHERE path = ?", (_path_key(path),))
            return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to delete project: {e}") from e

    def project_counts_by_type(self) -> Dict[ProjectType, int]:
        try:
            rows = self._ensure().execute(
                "SELECT project_type, COUNT(*) AS total FROM projects GROUP BY project_type"
            ).fetchall()
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to count projects: {e}") from e
        counts = {}
        for row in rows:
            try:
                counts[ProjectType(row["project_type"])] = row["total"]
            except ValueError as e:
                raise CatalogStoreError(f"Unknown project type in catalog: {row['project_type']!r}") from e
        return counts

    # ─────────────────────────────────────────────────────────────────
    # Frecency
    # ─────────────────────────────────────────────────────────────────

    def record_access(self, path: Union[str, Path], now: Optional[datetime] = None) -> bool:
        """Apply one access to a project's score. Returns False for unknown paths."""
        now = now or utc_now()
        try:
            with self._transaction() as conn:
                row = conn.execute(
                    "SELECT id, frecency_score, last_accessed, access_count FROM projects WHERE path = ?",
                    (_path_key(path),),
                ).fetchone()
                if row is None:
                    return False
                score = bumped_score(row["frecency_score"], _from_epoch(row["last_accessed"]), now)
                conn.execute(
                    "UPDATE projects SET frecency_score = ?, last_accessed = ?, access_count = ? WHERE id = ?",
                    (score, now.timestamp(), row["access_count"] + 1, row["id"]),
                )
                return True
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to record access: {e}") from e

    def get_frecency_state(self, path: Union[str, Path]) -> Optional[FrecencyState]:
        try:
            row = self._ensure().execute(
                "SELECT frecency_score, last_accessed, access_count FROM projects WHERE path = ?",
                (_path_key(path),),
            ).fetchone()
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to read frecency state: {e}") from e
        return self._row_to_state(row) if row is not None else None

    def current_score(self, path: Union[str, Path], now: Optional[datetime] = None) -> Optional[float]:
        """Decayed score at ``now``; nothing is written."""
        state = self.get_frecency_state(path)
        if state is None:
            return None
        return decayed_score(state.score, state.last_accessed, now)

    def get_frecent_candidates(self) -> List[Tuple[Project, FrecencyState]]:
        """All projects with a positive stored score, with their state."""
        try:
            conn = self._ensure()
            rows = conn.execute(
                f"SELECT {_PROJECT_COLUMNS} FROM projects WHERE frecency_score > 0 "
                f"ORDER BY frecency_score DESC, path"
            ).fetchall()
            projects = self._rows_to_projects(conn, rows)
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to get frecent projects: {e}") from e
        return [(project, self._row_to_state(row)) for project, row in zip(projects, rows)]

    # ─────────────────────────────────────────────────────────────────
    # Scan log
    # ─────────────────────────────────────────────────────────────────

    def store_scan_result(self, result: ScanResult, scanned_at: Optional[datetime] = None) -> int:
        """Record a scan and upsert all of its projects in one transaction."""
        scanned_at = scanned_at or utc_now()
        try:
            with self._transaction() as conn:
                cursor = conn.execute(
                    "INSERT INTO scan_results (scanned_at, root_path, dirs_scanned, duration_ms) VALUES (?, ?, ?, ?)",
                    (scanned_at.timestamp(), _path_key(result.root_path), result.dirs_scanned, result.duration_ms),
                )
                scan_id = cursor.lastrowid
                conn.executemany(
                    "INSERT INTO scan_errors (scan_result_id, error_path, error_type, error_message) VALUES (?, ?, ?, ?)",
                    [(scan_id, str(error.path), error.kind.value, error.message) for error in result.errors],
                )
                conn.executemany(
                    "INSERT INTO excluded_dirs (scan_result_id, dir_path) VALUES (?, ?)",
                    [(scan_id, str(path)) for path in result.excluded_dirs],
                )
                for project in result.projects:
                    project_id = self._upsert_project(conn, project)
                    conn.execute(
                        "INSERT INTO scan_projects (scan_result_id, project_id) VALUES (?, ?)",
                        (scan_id, project_id),
                    )
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to store scan result for {result.root_path}: {e}") from e
        logger.debug(f"Stored scan {scan_id} for {result.root_path}")
        return scan_id

    def has_been_scanned_recently(self, path: Union[str, Path], cutoff: datetime) -> bool:
        """True if ``path`` was scanned as a root after ``cutoff``."""
        try:
            row = self._ensure().execute(
                "SELECT COUNT(*) FROM scan_results WHERE root_path = ? AND scanned_at > ?",
                (_path_key(path), cutoff.timestamp()),
            ).fetchone()
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to check scan history: {e}") from e
        return row[0] > 0

    def recent_scans(self, limit: int = 10) -> List[ScanSummary]:
        try:
            rows = self._ensure().execute(
                """
                SELECT s.id, s.scanned_at, s.root_path, s.dirs_scanned, s.duration_ms,
                    (SELECT COUNT(*) FROM scan_errors e WHERE e.scan_result_id = s.id) AS error_count,
                    (SELECT COUNT(*) FROM excluded_dirs x WHERE x.scan_result_id = s.id) AS excluded_count,
                    (SELECT COUNT(*) FROM scan_projects p WHERE p.scan_result_id = s.id) AS project_count
                FROM scan_results s
                ORDER BY s.scanned_at DESC, s.id DESC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to get recent scans: {e}") from e
        return [
            ScanSummary(
                id=row["id"],
                scanned_at=_from_epoch(row["scanned_at"]),
                root_path=Path(row["root_path"]),
                dirs_scanned=row["dirs_scanned"],
                duration_ms=row["duration_ms"],
                error_count=row["error_count"],
                excluded_count=row["excluded_count"],
                project_count=row["project_count"],
            )
            for row in rows
        ]

    def get_scan_result(self, scan_id: int) -> Optional[ScanResult]:
        """Rebuild a logged scan, with its projects as they are stored now."""
        try:
            conn = self._ensure()
            row = conn.execute("SELECT * FROM scan_results WHERE id = ?", (scan_id,)).fetchone()
            if row is None:
                return None
            errors = []
            for error_row in conn.execute(
                "SELECT error_path, error_type, error_message FROM scan_errors WHERE scan_result_id = ? ORDER BY id",
                (scan_id,),
            ).fetchall():
                try:
                    kind = ScanErrorKind(error_row["error_type"])
                except ValueError as e:
                    raise CatalogStoreError(f"Unknown scan error type: {error_row['error_type']!r}") from e
                errors.append(ScanError(Path(error_row["error_path"]), kind, error_row["error_message"]))
            excluded = [
                Path(x["dir_path"])
                for x in conn.execute(
                    "SELECT dir_path FROM excluded_dirs WHERE scan_result_id = ? ORDER BY id", (scan_id,)
                ).fetchall()
            ]
            projects = self._select_projects(
                "WHERE id IN (SELECT project_id FROM scan_projects WHERE scan_result_id = ?)",
                (scan_id,),
            )
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to get scan result: {e}") from e
        return ScanResult(
            root_path=Path(row["root_path"]),
            projects=projects,
            excluded_dirs=excluded,
            errors=errors,
            dirs_scanned=row["dirs_scanned"],
            duration_ms=row["duration_ms"],
        )

    def scan_statistics(self) -> ScanStatistics:
        try:
            conn = self._ensure()
            scans = conn.execute(
                "SELECT COUNT(*), COALESCE(SUM(dirs_scanned), 0), MAX(scanned_at) FROM scan_results"
            ).fetchone()
            total_projects = conn.execute("SELECT COUNT(*) FROM projects").fetchone()[0]
            total_errors = conn.execute("SELECT COUNT(*) FROM scan_errors").fetchone()[0]
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to get statistics: {e}") from e
        return ScanStatistics(
            total_scans=scans[0],
            total_projects=total_projects,
            total_dirs_scanned=scans[1],
            total_errors=total_errors,
            last_scan_at=_from_epoch(scans[2]),
        )

    def delete_scans_before(self, cutoff: datetime) -> int:
        try:
            cursor = self._ensure().execute(
                "DELETE FROM scan_results WHERE scanned_at < ?", (cutoff.timestamp(),)
            )
            return cursor.rowcount
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to delete old scans: {e}") from e

    def cleanup_orphaned_projects(self, cutoff: datetime) -> int:
        """Delete projects not seen by any scan since ``cutoff``."""
        try:
            cursor = self._ensure().execute(
                """
                DELETE FROM projects
                WHERE id NOT IN (
                    SELECT DISTINCT sp.project_id
                    FROM scan_projects sp
                    JOIN scan_results sr ON sp.scan_result_id = sr.id
                    WHERE sr.scanned_at >= ?
                )
                """,
                (cutoff.timestamp(),),
            )
            return cursor.rowcount
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to clean up orphaned projects: {e}") from e

    # ─────────────────────────────────────────────────────────────────
    # Maintenance
    # ─────────────────────────────────────────────────────────────────

    def backup_to_sql(self, path: Union[str, Path]) -> None:
        """Write the whole catalog as an SQL script."""
        try:
            lines = list(self._ensure().iterdump())
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to dump catalog: {e}") from e
        try:
            Path(path).write_text("\n".join(lines) + "\n", encoding="utf-8")
        except OSError as e:
            raise CatalogStoreError(f"Cannot write backup {path}: {e}") from e
        logger.info(f"Backed up catalog to {path}")

    def restore_from_sql(self, path: Union[str, Path]) -> None:
        """Replace the catalog with the contents of an SQL backup."""
        try:
            script = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise CatalogStoreError(f"Cannot read backup {path}: {e}") from e

        # Dry run against a scratch database before touching real data
        scratch = sqlite3.connect(":memory:")
        try:
            scratch.executescript(script)
            tables = {
                row[0] for row in scratch.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            }
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Invalid catalog backup {path}: {e}") from e
        finally:
            scratch.close()
        if "projects" not in tables:
            raise CatalogStoreError(f"Invalid catalog backup {path}: no projects table")

        conn = self._ensure()
        try:
            conn.execute("PRAGMA foreign_keys=OFF;")
            existing = [
                row[0] for row in conn.execute(
                    "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%'"
                )
            ]
            for table in existing:
                conn.execute(f'DROP TABLE IF EXISTS "{table}"')
            conn.executescript(script)
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to restore catalog from {path}: {e}") from e
        finally:
            conn.execute("PRAGMA foreign_keys=ON;")
        # Fill in anything an older backup lacks
        self._initialized = False
        self.initialize()
        logger.info(f"Restored catalog from {path}")

    def clear_all(self) -> None:
        try:
            with self._transaction() as conn:
                for table in ("scan_errors", "excluded_dirs", "scan_projects",
                              "project_indicators", "projects", "scan_results"):
                    conn.execute(f"DELETE FROM {table}")
        except sqlite3.Error as e:
            raise CatalogStoreError(f"Failed to clear catalog: {e}") from e
