from __future__ import annotations


class Book:
    """Kütüphanedeki tek bir kitap kaydını temsil eder."""

    def __init__(self, title: str, author: str, isbn: str, genre: str = "", available_copies: int = 0,
                 image: str | None = None, id: str | None = None) -> None:
        self.id = id
        self.title = title
        self.author = author
        self.isbn = isbn
        self.genre = genre
        self.available_copies = available_copies
        # Kaynak baytların base64 metni
        self.image = image

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ISBN: {self.isbn})"

    def to_dict(self) -> dict:
        """Kaydı tel formatında (API JSON) döndür."""
        return {
            "_id": self.id,
            "title": self.title,
            "author": self.author,
            "isbn": self.isbn,
            "genre": self.genre,
            "availableCopies": self.available_copies,
            "image": self.image,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        return Book(
            id=data.get("_id"),
            title=data["title"],
            author=data["author"],
            isbn=data["isbn"],
            genre=data.get("genre") or "",
            available_copies=data.get("availableCopies", 0),
            image=data.get("image"),
        )

    @staticmethod
    def from_row(row) -> "Book":
        # SQLite sütunları snake_case adlandırılır
        return Book(
            id=row["id"],
            title=row["title"],
            author=row["author"],
            isbn=row["isbn"],
            genre=row["genre"] or "",
            available_copies=row["available_copies"],
            image=row["image"],
        )
