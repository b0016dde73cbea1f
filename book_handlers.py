import base64
import logging
from typing import Optional

from book import Book
from library import DuplicateTitleError, Library
from utils.validators import (
    DUPLICATE_TITLE,
    MAX_IMAGE_SIZE,
    BookValidator,
)

BOOK_NOT_FOUND = "Book not found"
INVALID_ID_FORMAT = "Invalid book ID format"
UPDATE_FAILED = "Failed to update the book."
UPDATE_ERROR = "An error occurred while updating the book."
FETCH_ERROR = "Server error"


class BookRequestError(Exception):
    """A rejected request: the HTTP status code and the user-facing message."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class BookHandlers:
    """Update and fetch operations on a single book record.

    The store and the audit logger are supplied by the caller.
    """

    def __init__(self, library: Library, logger: Optional[logging.Logger] = None,
                 max_image_size: int = MAX_IMAGE_SIZE) -> None:
        self.library = library
        self.logger = logger or logging.getLogger(__name__)
        self.max_image_size = max_image_size

    def update_book(self, book_id: str, title: str, author: str, isbn: str, genre: str,
                    available_copies: int, image: Optional[bytes] = None) -> Book:
        """Validate and apply a full-field update, returning the updated book.

        Raises BookRequestError for every rejection. The image is replaced only
        when new bytes are supplied; otherwise the stored image is kept.
        """
        self.logger.info(f"Received request to update book with ID: {book_id}")

        error = BookValidator.validate_fields(title, author, available_copies, isbn)
        if error:
            self.logger.error(f"Validation failed for book {book_id}: {error}")
            raise BookRequestError(400, error)

        try:
            existing = self.library.find_by_id(book_id)
            if not existing:
                self.logger.error(f"Book with ID: {book_id} not found")
                raise BookRequestError(404, BOOK_NOT_FOUND)

            # Only check for title uniqueness if the title has changed
            if existing.title != title and self.library.find_one(title=title):
                self.logger.error(f'Validation failed: Title "{title}" already exists')
                raise BookRequestError(400, DUPLICATE_TITLE)

            fields = {
                "title": title,
                "author": author,
                "isbn": isbn,
                "genre": genre,
                "available_copies": available_copies,
            }
            if image is not None:
                error = BookValidator.validate_image_size(len(image), self.max_image_size)
                if error:
                    self.logger.error(f"Validation failed: uploaded image for book {book_id} is {len(image)} bytes")
                    raise BookRequestError(400, error)
                fields["image"] = base64.b64encode(image).decode("ascii")

            updated = self.library.find_by_id_and_update(book_id, fields)
        except BookRequestError:
            raise
        except DuplicateTitleError:
            # Another writer took the title between the check and the write
            self.logger.error(f'Update of book {book_id} rejected by the store: title "{title}" already exists')
            raise BookRequestError(400, DUPLICATE_TITLE)
        except Exception as e:
            self.logger.error(f"Error updating book with ID: {book_id}: {e}", exc_info=True)
            raise BookRequestError(500, UPDATE_ERROR) from e

        if not updated:
            self.logger.error(f"Failed to update book with ID: {book_id}")
            raise BookRequestError(500, UPDATE_FAILED)

        self.logger.info(f"Book with ID: {book_id} updated successfully")
        return updated

    def fetch_book(self, raw_id: str) -> Book:
        book_id = raw_id.strip()
        self.logger.info(f"Received request to fetch book with ID: {book_id}")

        if not Library.is_valid_id(book_id):
            self.logger.error(f"Invalid book ID format: {book_id}")
            raise BookRequestError(400, INVALID_ID_FORMAT)

        try:
            book = self.library.find_by_id(book_id)
        except Exception as e:
            self.logger.error(f"Error fetching book with ID: {book_id}: {e}", exc_info=True)
            raise BookRequestError(500, FETCH_ERROR) from e

        if not book:
            self.logger.error(f"Book with ID: {book_id} not found")
            raise BookRequestError(404, BOOK_NOT_FOUND)

        self.logger.info(f"Book with ID: {book_id} fetched successfully")
        return book
