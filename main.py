import logging
import subprocess
import sys
from pathlib import Path
from typing import Optional

import httpx
import typer
from rich.prompt import Confirm

from config import settings
from edit_form import EditBookForm
from utils.ui_helpers import set_output_mode, print_list_result, print_book_result

APP_NAME = "BookTrack CLI"

logger = logging.getLogger(__name__)

# --- Typer CLI Uygulaması ---
app = typer.Typer(help=APP_NAME)

def get_client() -> httpx.Client:
    """API'ye bağlı bir HTTP istemcisi oluştur (testler bunu değiştirir)."""
    return httpx.Client(base_url=settings.api_base_url, timeout=settings.http_timeout)

@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Çıktı formatı: plain | json | rich (varsayılan: plain)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Ayrıntılı günlük kaydı"),
):
    """CLI için genel seçenekler (ör. çıktı modu)."""
    logging.basicConfig(level=logging.DEBUG if verbose else settings.log_level)
    if output:
        set_output_mode(output)

@app.command("list")
def cli_list():
    """Tüm kitapları listele."""
    with get_client() as client:
        try:
            response = client.get("/books")
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Kitap listesi alınamadı: {e}")
            print(f"Could not fetch books: {e}")
            raise typer.Exit(code=1)
        print_list_result(response.json())

@app.command("show")
def cli_show(book_id: str = typer.Argument(..., help="Kitap kimliği")):
    """Kimliğine göre bir kitabın ayrıntılarını göster."""
    with get_client() as client:
        try:
            response = client.get(f"/books/{book_id}")
        except httpx.HTTPError as e:
            logger.error(f"Kitap {book_id} alınamadı: {e}")
            print(f"Could not fetch book: {e}")
            raise typer.Exit(code=1)
        if not response.is_success:
            print(response.text)
            raise typer.Exit(code=1)
        print_book_result(response.json())

@app.command("edit")
def cli_edit(
    book_id: str = typer.Argument(..., help="Düzenlenecek kitabın kimliği"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Yeni başlık"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="Yeni yazar"),
    isbn: Optional[str] = typer.Option(None, "--isbn", help="Yeni ISBN-10 veya ISBN-13"),
    genre: Optional[str] = typer.Option(None, "--genre", "-g", help="Yeni tür"),
    copies: Optional[int] = typer.Option(None, "--copies", "-c", help="Mevcut kopya sayısı"),
    image: Optional[Path] = typer.Option(None, "--image", "-i", exists=True, dir_okay=False,
                                         help="Yeni kapak resmi (en fazla 16MB)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Onay sormadan gönder"),
):
    """Bir kitabı düzenle: mevcut değerler yüklenir, verilen alanlar değiştirilir."""
    with get_client() as client:
        def refresh():
            response = client.get("/books")
            if response.is_success:
                print_list_result(response.json())

        form = EditBookForm(
            client,
            alert=print,
            confirm=(lambda question: True) if yes else Confirm.ask,
            on_success=refresh,
        )
        if not form.load(book_id):
            raise typer.Exit(code=1)

        # Verilmeyen alanlar mevcut değerlerini korur
        if title is not None:
            form.title = title
        if author is not None:
            form.author = author
        if isbn is not None:
            form.isbn = isbn
        if genre is not None:
            form.genre = genre
        if copies is not None:
            form.available_copies = copies
        if image is not None and not form.select_image(str(image)):
            raise typer.Exit(code=1)

        if not form.submit():
            raise typer.Exit(code=1)

@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host", help="Dinlenecek adres"),
    port: Optional[int] = typer.Option(None, "--port", help="Dinlenecek port"),
    reload: bool = typer.Option(False, "--reload", help="Kod değişikliklerinde yeniden yükle"),
):
    """Uvicorn kullanarak API'yi başlat."""
    host = host or settings.api_host
    port = port or int(settings.api_port)
    print(f"Starting {settings.app_name} API on http://{host}:{port}/")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:app",
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        args.append("--reload")
    subprocess.run(args)


if __name__ == "__main__":
    app()
