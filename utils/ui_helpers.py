import os
import json
from typing import Any, Dict, List
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape

# Environment variable to control CLI output mode
# İzin verilen değerler: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "BOOKTRACK_CLI_OUTPUT"

_console = Console()

def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode

def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()

def _summary(book: Dict[str, Any]) -> Dict[str, Any]:
    # Resim verisi terminalde gösterilmez
    return {
        "_id": book.get("_id"),
        "title": book.get("title", ""),
        "author": book.get("author", ""),
        "isbn": book.get("isbn", ""),
        "genre": book.get("genre", ""),
        "availableCopies": book.get("availableCopies", 0),
    }

def print_list_result(books: List[Dict[str, Any]]) -> None:
    """Kitap listesini mevcut çıktı moduna göre yazdır.
    - plain: 'ID - Title by Author (N copies)' satırları, veya 'No books in library.'
    - json: JSON dizisi (resim hariç)
    - rich: Rich tablosu
    """
    mode = get_output_mode()

    if not books:
        print("No books in library.")
        return

    if mode == "json":
        print(json.dumps([_summary(b) for b in books], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="📚 Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="dim", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("ISBN", style="magenta", no_wrap=True)
        table.add_column("Genre", style="white")
        table.add_column("Copies", justify="right")
        for b in map(_summary, books):
            table.add_row(b["_id"] or "", b["title"], b["author"], b["isbn"], b["genre"], str(b["availableCopies"]))
        _console.print(table)
    else:
        for b in map(_summary, books):
            print(f"{b['_id']} - {b['title']} by {b['author']} ({b['availableCopies']} copies)")

def print_book_result(book: Dict[str, Any]) -> None:
    """Tek bir kitabın ayrıntılarını yazdır."""
    mode = get_output_mode()
    b = _summary(book)

    if mode == "json":
        print(json.dumps(b, ensure_ascii=False))
    elif mode == "rich":
        content = "\n".join([
            f"[bold]Title:[/] {escape(b['title'])}",
            f"[bold]Author:[/] {escape(b['author'])}",
            f"[bold]ISBN:[/] {b['isbn']}",
            f"[bold]Genre:[/] {escape(b['genre'])}",
            f"[bold]Available Copies:[/] {b['availableCopies']}",
            f"[bold]Image:[/] {'yes' if book.get('image') else 'no'}",
        ])
        _console.print(Panel.fit(content, title=f"📖 {b['_id']}", border_style="blue"))
    else:
        print(f"Title: {b['title']}")
        print(f"Author: {b['author']}")
        print(f"ISBN: {b['isbn']}")
        print(f"Genre: {b['genre']}")
        print(f"Available Copies: {b['availableCopies']}")
