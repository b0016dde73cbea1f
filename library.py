import sqlite3
from typing import Any, Dict, List, Optional

from bson import ObjectId

from book import Book
from database import get_db_connection, initialize_database

# Maps the fields the store accepts to their SQLite columns.
_COLUMNS = {
    "title": "title",
    "author": "author",
    "isbn": "isbn",
    "genre": "genre",
    "available_copies": "available_copies",
    "image": "image",
}


class DuplicateTitleError(ValueError):
    """Raised when a write would give two records the same title."""


class Library:
    """Manages the collection of books and data persistence."""

    def __init__(self, db_file: Optional[str] = None) -> None:
        self.db_file = db_file
        initialize_database(db_file)  # Ensure DB and tables exist, and migrate if needed

    # ------------------------- Core operations ------------------------- #
    def add_book(self, book: Book) -> Book:
        """Insert a book under a freshly assigned identifier."""
        book.id = str(ObjectId())
        conn = self._connect()
        try:
            conn.execute(
                "INSERT INTO books (id, title, author, isbn, genre, available_copies, image) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (book.id, book.title, book.author, book.isbn, book.genre, book.available_copies, book.image)
            )
            conn.commit()
            return book
        except sqlite3.IntegrityError as e:
            raise self._translate_integrity_error(e, book.title) from e
        finally:
            conn.close()

    def list_books(self) -> List[Book]:
        conn = self._connect()
        try:
            rows = conn.execute("SELECT * FROM books ORDER BY title").fetchall()
            return [Book.from_row(row) for row in rows]
        finally:
            conn.close()

    def find_by_id(self, book_id: str) -> Optional[Book]:
        conn = self._connect()
        try:
            row = conn.execute("SELECT * FROM books WHERE id = ?", (book_id,)).fetchone()
            return Book.from_row(row) if row else None
        finally:
            conn.close()

    def find_one(self, **fields: Any) -> Optional[Book]:
        """Return the first book whose columns equal all given values."""
        if not fields:
            raise ValueError("Provide at least one field to match.")
        where = " AND ".join(f"{self._column(name)} = ?" for name in fields)
        conn = self._connect()
        try:
            row = conn.execute(f"SELECT * FROM books WHERE {where} LIMIT 1", tuple(fields.values())).fetchone()
            return Book.from_row(row) if row else None
        finally:
            conn.close()

    def find_by_id_and_update(self, book_id: str, fields: Dict[str, Any]) -> Optional[Book]:
        """Apply the given fields and return the updated book, or None if no row was updated."""
        if not fields:
            raise ValueError("Nothing to update.")
        assignments = ", ".join(f"{self._column(name)} = ?" for name in fields)
        conn = self._connect()
        try:
            cursor = conn.execute(
                f"UPDATE books SET {assignments} WHERE id = ?",
                (*fields.values(), book_id)
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
            row = conn.execute("SELECT * FROM books WHERE id = ?", (book_id,)).fetchone()
            return Book.from_row(row) if row else None
        except sqlite3.IntegrityError as e:
            raise self._translate_integrity_error(e, fields.get("title")) from e
        finally:
            conn.close()

    # ------------------------- Utilities ------------------------- #
    @staticmethod
    def is_valid_id(raw: Optional[str]) -> bool:
        """Format check only: a 24 character hex identifier."""
        return isinstance(raw, str) and len(raw) == 24 and ObjectId.is_valid(raw)

    @staticmethod
    def _column(name: str) -> str:
        try:
            return _COLUMNS[name]
        except KeyError:
            raise ValueError(f"Unknown book field: {name}") from None

    @staticmethod
    def _translate_integrity_error(error: sqlite3.IntegrityError, title: Optional[str]) -> Exception:
        if "books.title" in str(error):
            return DuplicateTitleError(f"Book with title {title!r} already exists.")
        return ValueError(str(error))

    def _connect(self) -> sqlite3.Connection:
        return get_db_connection(self.db_file)

    def close(self) -> None:
        """Connections are opened per operation, so there is nothing to release."""
        return None
