"""SQLite-backed host store with WPML- and Polylang-style language APIs."""

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Iterable, Optional

from merged_comments.adapters.host_adapter import HostAdapter
from merged_comments.core.exceptions import CommentQueryError, DatabaseError, PostNotFoundError
from merged_comments.core.hooks import HookRegistry
from merged_comments.core.types import CommentDTO, PostDTO

logger = logging.getLogger("merged_comments")

_STATUS_FILTERS = {
    "approve": "c.approved = 1",
    "hold": "c.approved = 0",
}


class SqliteHost(HostAdapter):
    """Host store for posts, comments, translations and options on SQLite.

    One connection guarded by an RLock. Post lookups go through an
    in-memory post cache that prime_post_caches() fills in one query.
    """

    def __init__(self, db_path: Path, hooks: Optional[HookRegistry] = None,
                 theme_features: Iterable[str] = ("widgets",)):
        """Open (and create if needed) the site database.

        Args:
            db_path: Path to the SQLite file; parent directories are created.
            hooks: Registry whose "comments_clauses" filter may rewrite comment queries.
            theme_features: Features the active theme declares support for.
        """
        self._lock = threading.RLock()
        self._hooks = hooks
        self._theme_features = set(theme_features)
        self._post_cache: dict[int, PostDTO] = {}

        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._init_schema()
            logger.info(f"SqliteHost initialized with db_path: {db_path}")
        except (OSError, sqlite3.Error) as e:
            raise DatabaseError(f"Failed to initialize database: {e}")

    def _init_schema(self) -> None:
        with self._lock:
            self._conn.executescript("""
                CREATE TABLE IF NOT EXISTS posts (
                    id          INTEGER PRIMARY KEY,
                    post_type   TEXT NOT NULL DEFAULT 'post',
                    title       TEXT NOT NULL DEFAULT '',
                    permalink   TEXT NOT NULL DEFAULT '',
                    status      TEXT NOT NULL DEFAULT 'publish'
                );

                CREATE TABLE IF NOT EXISTS comments (
                    id          INTEGER PRIMARY KEY,
                    post_id     INTEGER NOT NULL,
                    author      TEXT DEFAULT '',
                    author_url  TEXT DEFAULT '',
                    content     TEXT DEFAULT '',
                    approved    INTEGER NOT NULL DEFAULT 1,
                    date        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now')),
                    FOREIGN KEY (post_id) REFERENCES posts(id)
                );

                CREATE TABLE IF NOT EXISTS post_translations (
                    post_id        INTEGER PRIMARY KEY,
                    group_id       INTEGER NOT NULL,
                    language_code  TEXT NOT NULL,
                    FOREIGN KEY (post_id) REFERENCES posts(id)
                );

                CREATE TABLE IF NOT EXISTS options (
                    name   TEXT PRIMARY KEY,
                    value  TEXT
                );

                CREATE TABLE IF NOT EXISTS active_widgets (
                    id_base  TEXT PRIMARY KEY
                );
            """)
            self._conn.commit()
            logger.debug("Host schema initialized")

    # --- writes ---

    def save_post(self, post: PostDTO) -> None:
        """Insert or replace a post (and its language when set)."""
        try:
            with self._lock:
                self._conn.execute(
                    """
                    INSERT OR REPLACE INTO posts (id, post_type, title, permalink, status)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (post.post_id, post.post_type, post.title, post.permalink, post.status),
                )
                if post.language:
                    self._conn.execute(
                        """
                        INSERT INTO post_translations (post_id, group_id, language_code)
                        VALUES (?, ?, ?)
                        ON CONFLICT(post_id) DO UPDATE SET language_code = excluded.language_code
                        """,
                        (post.post_id, post.post_id, post.language),
                    )
                self._conn.commit()
                self._post_cache.pop(post.post_id, None)
                logger.debug(f"Saved post: {post.post_id}")
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to save post {post.post_id}: {e}")

    def save_comment(self, comment: CommentDTO) -> None:
        try:
            with self._lock:
                self._conn.execute(
                    """
                    INSERT OR REPLACE INTO comments
                        (id, post_id, author, author_url, content, approved, date)
                    VALUES (?, ?, ?, ?, ?, ?, COALESCE(?, strftime('%Y-%m-%dT%H:%M:%S', 'now')))
                    """,
                    (
                        comment.comment_id,
                        comment.post_id,
                        comment.author,
                        comment.author_url,
                        comment.content,
                        1 if comment.approved else 0,
                        comment.date or None,
                    ),
                )
                self._conn.commit()
                logger.debug(f"Saved comment {comment.comment_id} on post {comment.post_id}")
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to save comment {comment.comment_id}: {e}")

    def set_translation(self, post_id: int, group_id: int, language_code: str) -> None:
        """Put post_id into translation group group_id with the given language."""
        try:
            with self._lock:
                self._conn.execute(
                    """
                    INSERT INTO post_translations (post_id, group_id, language_code)
                    VALUES (?, ?, ?)
                    ON CONFLICT(post_id) DO UPDATE SET
                        group_id = excluded.group_id,
                        language_code = excluded.language_code
                    """,
                    (post_id, group_id, language_code),
                )
                self._conn.commit()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to save translation of post {post_id}: {e}")

    def set_option(self, name: str, value: Any) -> None:
        try:
            with self._lock:
                self._conn.execute(
                    "INSERT OR REPLACE INTO options (name, value) VALUES (?, ?)",
                    (name, None if value is None else str(value)),
                )
                self._conn.commit()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to save option {name}: {e}")

    def activate_widget(self, id_base: str) -> None:
        try:
            with self._lock:
                self._conn.execute(
                    "INSERT OR IGNORE INTO active_widgets (id_base) VALUES (?)", (id_base,)
                )
                self._conn.commit()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to activate widget {id_base}: {e}")

    # --- HostAdapter ---

    def get_comments(self, args: dict) -> list[CommentDTO]:
        clauses = {"join": "", "where": [], "params": []}

        status = args.get("status", "all")
        if status in _STATUS_FILTERS:
            clauses["where"].append(_STATUS_FILTERS[status])
        if args.get("post_status"):
            clauses["where"].append("p.status = ?")
            clauses["params"].append(args["post_status"])
        if args.get("post_id"):
            clauses["where"].append("c.post_id = ?")
            clauses["params"].append(args["post_id"])
        if args.get("post_type"):
            clauses["where"].append("p.post_type = ?")
            clauses["params"].append(args["post_type"])

        if self._hooks is not None:
            clauses = self._hooks.apply_filters("comments_clauses", clauses)

        sql = "SELECT c.* FROM comments c JOIN posts p ON p.id = c.post_id"
        if clauses["join"]:
            sql += f" {clauses['join']}"
        if clauses["where"]:
            sql += " WHERE " + " AND ".join(clauses["where"])
        sql += " ORDER BY c.date DESC, c.id DESC"
        params = list(clauses["params"])
        if args.get("number"):
            sql += " LIMIT ?"
            params.append(int(args["number"]))

        try:
            with self._lock:
                rows = self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise CommentQueryError(f"Failed to query comments: {e}")

        logger.debug(f"Comment query returned {len(rows)} row(s)")
        return [self._row_to_comment(row) for row in rows]

    def prime_post_caches(self, post_ids: Iterable[int], update_term_cache: bool = False) -> None:
        # Terms are not stored here, so update_term_cache has nothing to load.
        missing = [pid for pid in post_ids if pid not in self._post_cache]
        if not missing:
            return

        placeholders = ", ".join("?" for _ in missing)
        try:
            with self._lock:
                rows = self._conn.execute(
                    f"""
                    SELECT p.*, t.language_code FROM posts p
                    LEFT JOIN post_translations t ON t.post_id = p.id
                    WHERE p.id IN ({placeholders})
                    """,
                    missing,
                ).fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to prime post cache: {e}")

        for row in rows:
            post = self._row_to_post(row)
            self._post_cache[post.post_id] = post
        logger.debug(f"Primed post cache with {len(rows)} of {len(missing)} post(s)")

    def get_post(self, post_id: int) -> PostDTO:
        """Fetch one post, from the post cache when primed.

        Raises:
            PostNotFoundError: No such post
        """
        cached = self._post_cache.get(post_id)
        if cached is not None:
            return cached

        try:
            with self._lock:
                row = self._conn.execute(
                    """
                    SELECT p.*, t.language_code FROM posts p
                    LEFT JOIN post_translations t ON t.post_id = p.id
                    WHERE p.id = ?
                    """,
                    (post_id,),
                ).fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to load post {post_id}: {e}")

        if row is None:
            raise PostNotFoundError(f"Post not found: {post_id}")
        post = self._row_to_post(row)
        self._post_cache[post_id] = post
        return post

    def is_page(self, post_id: int) -> bool:
        try:
            return self.get_post(post_id).post_type == "page"
        except PostNotFoundError:
            return False

    def get_permalink(self, post_id: int) -> str:
        try:
            return self.get_post(post_id).permalink
        except PostNotFoundError:
            return ""

    def get_the_title(self, post_id: int) -> str:
        try:
            return self.get_post(post_id).title
        except PostNotFoundError:
            return ""

    def get_option(self, name: str, default: Any = None) -> Any:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT value FROM options WHERE name = ?", (name,)
                ).fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to read option {name}: {e}")
        return row["value"] if row is not None else default

    def current_theme_supports(self, feature: str) -> bool:
        return feature in self._theme_features

    def is_active_widget(self, id_base: str) -> bool:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT 1 FROM active_widgets WHERE id_base = ?", (id_base,)
                ).fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to check widget {id_base}: {e}")
        return row is not None

    def close(self) -> None:
        """Close the database connection."""
        try:
            with self._lock:
                if hasattr(self, '_conn') and self._conn:
                    self._conn.close()
                    logger.info("Host database connection closed")
        except sqlite3.Error as e:
            logger.error(f"Error closing host database connection: {e}")

    # --- language lookups shared by the plugin APIs below ---

    def translation_in(self, post_id: int, language_code: str) -> Optional[int]:
        """Id of post_id's translation in language_code, or None."""
        try:
            with self._lock:
                row = self._conn.execute(
                    """
                    SELECT other.post_id FROM post_translations AS own
                    JOIN post_translations AS other ON other.group_id = own.group_id
                    JOIN posts p ON p.id = other.post_id
                    JOIN posts origin ON origin.id = own.post_id
                    WHERE own.post_id = ? AND other.language_code = ?
                      AND p.post_type = origin.post_type
                    """,
                    (post_id, language_code),
                ).fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to look up translation of post {post_id}: {e}")
        return row["post_id"] if row is not None else None

    def language_of(self, post_id: int, post_type: Optional[str] = None) -> Optional[str]:
        sql = """
            SELECT t.language_code FROM post_translations t
            JOIN posts p ON p.id = t.post_id
            WHERE t.post_id = ?
        """
        params: list = [post_id]
        if post_type:
            sql += " AND p.post_type = ?"
            params.append(post_type)
        try:
            with self._lock:
                row = self._conn.execute(sql, params).fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to look up language of post {post_id}: {e}")
        return row["language_code"] if row is not None else None

    @staticmethod
    def _row_to_comment(row: sqlite3.Row) -> CommentDTO:
        return CommentDTO(
            comment_id=row["id"],
            post_id=row["post_id"],
            author=row["author"] or "",
            author_url=row["author_url"] or "",
            content=row["content"] or "",
            approved=bool(row["approved"]),
            date=row["date"] or "",
        )

    @staticmethod
    def _row_to_post(row: sqlite3.Row) -> PostDTO:
        return PostDTO(
            post_id=row["id"],
            post_type=row["post_type"],
            title=row["title"],
            permalink=row["permalink"],
            status=row["status"],
            language=row["language_code"] or "",
        )


class _SqliteLanguageApi:
    """Shared state of the plugin-style APIs: the host and the visitor's language."""

    def __init__(self, host: SqliteHost, current_language: str):
        self._host = host
        self.current_language = current_language

    def comments_clauses(self, clauses: dict) -> dict:
        """Restrict a comment query to posts in the current language."""
        return {
            "join": (clauses["join"] + " JOIN post_translations lang ON lang.post_id = c.post_id").strip(),
            "where": clauses["where"] + ["lang.language_code = ?"],
            "params": clauses["params"] + [self.current_language],
        }


class SqliteSitepress(_SqliteLanguageApi):
    """WPML-style API over the host's translation table."""

    def get_object_id(self, element_id: int, element_type: str = "post",
                      return_original_if_missing: bool = False) -> Optional[int]:
        translated = self._host.translation_in(element_id, self.current_language)
        if translated is not None:
            return translated
        return element_id if return_original_if_missing else None

    def get_language_for_element(self, element_id: int, element_type: str) -> Optional[str]:
        post_type = element_type[len("post_"):] if element_type.startswith("post_") else element_type
        return self._host.language_of(element_id, post_type)


class SqlitePolylang(_SqliteLanguageApi):
    """Polylang-style API over the host's translation table."""

    def get_post_language(self, post_id: int) -> Optional[str]:
        return self._host.language_of(post_id)

    def get_post(self, post_id: int) -> Optional[int]:
        return self._host.translation_in(post_id, self.current_language)
