from typing import Iterable, Optional

TITLE_MAX_LENGTH = 100
AUTHOR_MAX_LENGTH = 150
MAX_IMAGE_SIZE = 16 * 1024 * 1024

TITLE_TOO_LONG = "Title must be 100 characters or fewer."
AUTHOR_TOO_LONG = "Author name must be 150 characters or fewer."
# The wording is kept as-is; zero copies is accepted.
NEGATIVE_COPIES = "Available copies should be more that 0"
INVALID_ISBN = "Invalid ISBN. Please enter a valid ISBN-10 or ISBN-13."
DUPLICATE_TITLE = "Title already exists."
IMAGE_TOO_LARGE = "Image size should not exceed 16MB."

_DIGITS = "0123456789"


class ISBNValidator:
    """ISBN-10 and ISBN-13 checksum validation.

    Only hyphens are stripped before checking. Any other separator, a
    lowercase 'x' or a length other than 10 or 13 makes the candidate invalid.
    """

    @staticmethod
    def normalize_isbn(raw: Optional[str]) -> str:
        if raw is None:
            return ""
        return raw.replace("-", "")

    @staticmethod
    def is_valid_isbn(isbn: Optional[str]) -> bool:
        s = ISBNValidator.normalize_isbn(isbn)
        if len(s) == 10:
            return ISBNValidator._is_valid_isbn10(s)
        if len(s) == 13:
            return ISBNValidator._is_valid_isbn13(s)
        return False

    @staticmethod
    def _is_valid_isbn10(s: str) -> bool:
        total = 0
        for weight, ch in enumerate(s[:9], 1):
            if ch not in _DIGITS:
                return False
            total += weight * int(ch)
        check = s[9]
        if check == "X":
            total += 10 * 10
        elif check in _DIGITS:
            total += 10 * int(check)
        else:
            return False
        return total % 11 == 0

    @staticmethod
    def _is_valid_isbn13(s: str) -> bool:
        total = 0
        for i, ch in enumerate(s):
            if ch not in _DIGITS:
                return False
            total += int(ch) if i % 2 == 0 else 3 * int(ch)
        return total % 10 == 0


class BookValidator:
    """Field rules shared by the update handler and the edit form."""

    @staticmethod
    def validate_fields(title: str, author: str, available_copies: Optional[int] = None,
                        isbn: Optional[str] = None) -> Optional[str]:
        """Return the first failing rule's message, or None when all pass.

        Order: title length, author length, copies range, ISBN. The copies and
        ISBN checks are skipped when their value is not given.
        """
        if len(title) > TITLE_MAX_LENGTH:
            return TITLE_TOO_LONG
        if len(author) > AUTHOR_MAX_LENGTH:
            return AUTHOR_TOO_LONG
        if available_copies is not None and available_copies < 0:
            return NEGATIVE_COPIES
        if isbn is not None and not ISBNValidator.is_valid_isbn(isbn):
            return INVALID_ISBN
        return None

    @staticmethod
    def validate_image_size(size: int, limit: int = MAX_IMAGE_SIZE) -> Optional[str]:
        if size > limit:
            return IMAGE_TOO_LARGE
        return None

    @staticmethod
    def is_title_unique(title: str, book_id: str, books: Iterable[dict]) -> bool:
        # Records are wire dicts as returned by GET /books
        return all(b.get("title") != title or b.get("_id") == book_id for b in books)
