import base64
import logging
import os
from typing import Callable, Optional

import httpx

from utils.validators import (
    IMAGE_TOO_LARGE,
    MAX_IMAGE_SIZE,
    BookValidator,
)

logger = logging.getLogger(__name__)

FETCH_FAILED = "Failed to fetch book details for editing."
FETCH_ERROR = "An error occurred while fetching the book details."
IMAGE_TOO_LARGE_HINT = f"{IMAGE_TOO_LARGE} Please select a smaller file."
TITLE_TAKEN = "Title already exists. Please choose a different title."
CONFIRM_UPDATE = "Are you sure you want to update the book details?"
UPDATE_SUCCESS = "Book updated successfully!"
UPDATE_FAILED = "Failed to update book. Please try again later."
UPDATE_ERROR = "An error occurred while updating the book. Please check the console for details."


class EditBookForm:
    """Interactive edit form for a single book.

    Runs the same rules as the server before anything is sent, so the user
    sees a rejection without a round trip. ``alert`` shows a message,
    ``confirm`` asks a yes/no question and ``on_success`` refreshes whatever
    list the form was opened from.
    """

    def __init__(self, client: httpx.Client, alert: Optional[Callable[[str], None]] = None,
                 confirm: Optional[Callable[[str], bool]] = None,
                 on_success: Optional[Callable[[], None]] = None) -> None:
        self.client = client
        self.alert = alert or print
        self.confirm = confirm or (lambda question: False)
        self.on_success = on_success
        self._reset()

    def _reset(self) -> None:
        self.is_open = False
        self.book_id: Optional[str] = None
        self.title = ""
        self.author = ""
        self.isbn = ""
        self.genre = ""
        self.available_copies = 0
        self.current_image: Optional[str] = None
        self.image_path: Optional[str] = None
        self.preview: Optional[str] = None

    # ------------------------- Form lifecycle ------------------------- #
    def load(self, book_id: str) -> bool:
        """Fetch the record and fill the form with it."""
        try:
            response = self.client.get(f"/books/{book_id}")
        except httpx.HTTPError as e:
            logger.error(f"Error fetching book for editing: {e}")
            self.alert(FETCH_ERROR)
            return False

        if not response.is_success:
            self.alert(FETCH_FAILED)
            return False

        book = response.json()
        self.book_id = book["_id"]
        self.title = book["title"]
        self.author = book["author"]
        self.isbn = book["isbn"]
        self.genre = book.get("genre") or ""
        self.available_copies = book.get("availableCopies", 0)
        self.current_image = book.get("image")
        self.image_path = None
        self.preview = f"data:image/jpeg;base64,{self.current_image}" if self.current_image else None
        self.is_open = True
        return True

    def select_image(self, path: str) -> bool:
        """Pick a new cover image; oversized files are rejected before any request."""
        if os.path.getsize(path) > MAX_IMAGE_SIZE:
            self.alert(IMAGE_TOO_LARGE_HINT)
            self.image_path = None
            return False

        with open(path, "rb") as f:
            self.preview = "data:image/jpeg;base64," + base64.b64encode(f.read()).decode("ascii")
        self.image_path = path
        return True

    def close(self) -> None:
        self._reset()

    # ------------------------- Submission ------------------------- #
    def submit(self) -> bool:
        """Validate, confirm and send the update. Returns True when the server accepted it."""
        title = self.title.strip()
        author = self.author.strip()

        error = BookValidator.validate_fields(title, author, isbn=self.isbn)
        if error:
            self.alert(error)
            return False

        try:
            response = self.client.get("/books")
            response.raise_for_status()
            if not BookValidator.is_title_unique(title, self.book_id, response.json()):
                self.alert(TITLE_TAKEN)
                return False

            if not self.confirm(CONFIRM_UPDATE):
                return False

            response = self._send(title, author)
        except httpx.HTTPError as e:
            logger.error(f"Error updating book {self.book_id}: {e}")
            self.alert(UPDATE_ERROR)
            return False

        if not response.is_success:
            self.alert(UPDATE_FAILED)
            return False

        self.alert(UPDATE_SUCCESS)
        self.close()
        if self.on_success:
            self.on_success()
        return True

    def _send(self, title: str, author: str) -> httpx.Response:
        data = {
            "title": title,
            "author": author,
            "isbn": self.isbn,
            "genre": self.genre,
            "availableCopies": str(self.available_copies),
        }
        if not self.image_path:
            return self.client.put(f"/updateBook/{self.book_id}", data=data)
        with open(self.image_path, "rb") as f:
            files = {"image": (os.path.basename(self.image_path), f, "image/jpeg")}
            return self.client.put(f"/updateBook/{self.book_id}", data=data, files=files)
