import base64
import sqlite3
from unittest.mock import MagicMock

import pytest

from book import Book
from book_handlers import BookHandlers, BookRequestError
from library import DuplicateTitleError, Library
from utils.validators import MAX_IMAGE_SIZE

BOOK_ID = "671c94d0607a452e0bc99e54"
VALID = dict(title="Valid Title", author="Valid Author", isbn="9783161484100", genre="Fiction", available_copies=10)


def stored(**overrides):
    fields = dict(VALID, title="Old Title", image="b2xk", id=BOOK_ID)
    fields.update(overrides)
    return Book(**fields)


@pytest.fixture
def store():
    store = MagicMock(spec=Library)
    store.find_by_id.return_value = stored()
    store.find_one.return_value = None
    store.find_by_id_and_update.side_effect = lambda book_id, fields: Book(**{**stored().__dict__, **fields})
    return store


@pytest.fixture
def audit():
    return MagicMock()


@pytest.fixture
def handlers(store, audit):
    return BookHandlers(store, logger=audit)


def update(handlers, **overrides):
    fields = dict(VALID)
    fields.update(overrides)
    return handlers.update_book(BOOK_ID, **fields)


def assert_rejected(excinfo, status_code, message):
    assert excinfo.value.status_code == status_code
    assert excinfo.value.message == message


# ------------------------- update_book ------------------------- #
def test_update_success(handlers, store, audit):
    book = update(handlers)

    assert book.title == "Valid Title"
    assert book.available_copies == 10
    store.find_by_id_and_update.assert_called_once_with(BOOK_ID, {
        "title": "Valid Title",
        "author": "Valid Author",
        "isbn": "9783161484100",
        "genre": "Fiction",
        "available_copies": 10,
    })
    audit.info.assert_any_call(f"Book with ID: {BOOK_ID} updated successfully")
    audit.error.assert_not_called()


def test_update_without_image_keeps_stored_image(handlers, store):
    book = update(handlers)
    assert "image" not in store.find_by_id_and_update.call_args[0][1]
    assert book.image == "b2xk"


def test_update_with_image_stores_base64(handlers, store):
    book = update(handlers, image=b"\xff\xd8\xff jpeg bytes")
    expected = base64.b64encode(b"\xff\xd8\xff jpeg bytes").decode("ascii")
    assert store.find_by_id_and_update.call_args[0][1]["image"] == expected
    assert book.image == expected


def test_image_at_the_limit_is_accepted(handlers, store):
    update(handlers, image=bytes(MAX_IMAGE_SIZE))
    store.find_by_id_and_update.assert_called_once()


def test_image_over_the_limit_is_rejected(handlers, store, audit):
    with pytest.raises(BookRequestError) as excinfo:
        update(handlers, image=bytes(MAX_IMAGE_SIZE + 1))
    assert_rejected(excinfo, 400, "Image size should not exceed 16MB.")
    store.find_by_id_and_update.assert_not_called()
    audit.error.assert_called_once()


def test_custom_image_limit(store, audit):
    handlers = BookHandlers(store, logger=audit, max_image_size=4)
    with pytest.raises(BookRequestError) as excinfo:
        update(handlers, image=b"12345")
    assert_rejected(excinfo, 400, "Image size should not exceed 16MB.")


@pytest.mark.parametrize("overrides, message", [
    ({"title": "t" * 101}, "Title must be 100 characters or fewer."),
    ({"author": "a" * 151}, "Author name must be 150 characters or fewer."),
    ({"available_copies": -1}, "Available copies should be more that 0"),
    ({"isbn": "1234567890"}, "Invalid ISBN. Please enter a valid ISBN-10 or ISBN-13."),
])
def test_field_validation_happens_before_any_lookup(handlers, store, audit, overrides, message):
    with pytest.raises(BookRequestError) as excinfo:
        update(handlers, **overrides)
    assert_rejected(excinfo, 400, message)
    store.find_by_id.assert_not_called()
    audit.error.assert_called_once()


def test_title_checked_before_author(handlers):
    with pytest.raises(BookRequestError) as excinfo:
        update(handlers, title="t" * 101, author="a" * 151)
    assert excinfo.value.message == "Title must be 100 characters or fewer."


def test_zero_copies_is_accepted(handlers):
    assert update(handlers, available_copies=0).available_copies == 0


def test_update_missing_book(handlers, store):
    store.find_by_id.return_value = None
    with pytest.raises(BookRequestError) as excinfo:
        update(handlers)
    assert_rejected(excinfo, 404, "Book not found")
    store.find_by_id_and_update.assert_not_called()


def test_duplicate_title(handlers, store):
    store.find_one.return_value = stored(title="Valid Title", id="aaaaaaaaaaaaaaaaaaaaaaaa")
    with pytest.raises(BookRequestError) as excinfo:
        update(handlers)
    assert_rejected(excinfo, 400, "Title already exists.")
    store.find_one.assert_called_once_with(title="Valid Title")
    store.find_by_id_and_update.assert_not_called()


def test_unchanged_title_skips_uniqueness_check(handlers, store):
    store.find_by_id.return_value = stored(title="Valid Title")
    # Even if the lookup would match, it is never consulted for an unchanged title
    store.find_one.return_value = stored(title="Valid Title")

    update(handlers)

    store.find_one.assert_not_called()
    store.find_by_id_and_update.assert_called_once()


def test_duplicate_title_checked_before_image_size(handlers, store):
    store.find_one.return_value = stored(title="Valid Title")
    with pytest.raises(BookRequestError) as excinfo:
        update(handlers, image=bytes(MAX_IMAGE_SIZE + 1))
    assert excinfo.value.message == "Title already exists."


def test_store_level_title_collision(handlers, store):
    store.find_by_id_and_update.side_effect = DuplicateTitleError("taken")
    with pytest.raises(BookRequestError) as excinfo:
        update(handlers)
    assert_rejected(excinfo, 400, "Title already exists.")


def test_update_returning_nothing(handlers, store, audit):
    store.find_by_id_and_update.side_effect = None
    store.find_by_id_and_update.return_value = None
    with pytest.raises(BookRequestError) as excinfo:
        update(handlers)
    assert_rejected(excinfo, 500, "Failed to update the book.")
    audit.error.assert_called_once_with(f"Failed to update book with ID: {BOOK_ID}")


@pytest.mark.parametrize("method", ["find_by_id", "find_one", "find_by_id_and_update"])
def test_store_exceptions_become_generic_failure(handlers, store, audit, method):
    getattr(store, method).side_effect = sqlite3.OperationalError("database is locked")
    with pytest.raises(BookRequestError) as excinfo:
        update(handlers)
    assert_rejected(excinfo, 500, "An error occurred while updating the book.")
    logged = audit.error.call_args[0][0]
    assert BOOK_ID in logged
    assert "database is locked" in logged


def test_default_logger_is_used_when_none_injected(store, caplog):
    handlers = BookHandlers(store)
    store.find_by_id.return_value = None
    with caplog.at_level("INFO", logger="book_handlers"):
        with pytest.raises(BookRequestError):
            update(handlers)
    assert f"Book with ID: {BOOK_ID} not found" in caplog.text


# ------------------------- fetch_book ------------------------- #
def test_fetch_book(handlers, store):
    book = handlers.fetch_book(f"  {BOOK_ID} ")
    assert book.id == BOOK_ID
    store.find_by_id.assert_called_once_with(BOOK_ID)


def test_fetch_malformed_id_never_reaches_store(handlers, store, audit):
    with pytest.raises(BookRequestError) as excinfo:
        handlers.fetch_book("invalid-id")
    assert_rejected(excinfo, 400, "Invalid book ID format")
    store.find_by_id.assert_not_called()
    audit.error.assert_called_once_with("Invalid book ID format: invalid-id")


def test_fetch_missing_book(handlers, store):
    store.find_by_id.return_value = None
    with pytest.raises(BookRequestError) as excinfo:
        handlers.fetch_book(BOOK_ID)
    assert_rejected(excinfo, 404, "Book not found")


def test_fetch_store_failure(handlers, store, audit):
    store.find_by_id.side_effect = RuntimeError("connection reset")
    with pytest.raises(BookRequestError) as excinfo:
        handlers.fetch_book(BOOK_ID)
    assert_rejected(excinfo, 500, "Server error")
    assert "connection reset" in audit.error.call_args[0][0]
