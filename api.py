import logging
from contextlib import asynccontextmanager
from datetime import datetime
from functools import lru_cache
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from book_handlers import BookHandlers, BookRequestError
from config import settings
from database import get_db_connection
from library import Library

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)
# Güncelleme ve getirme sonuçlarının denetim kaydı
audit_logger = logging.getLogger("booktrack.audit")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.app_name} app running at: http://{settings.api_host}:{settings.api_port}")
    yield


app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Güvenlik Başlıkları Ara Katmanı ---
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    return response

# --- Form Doğrulama Hataları ---
# Güncelleme formundaki eksik veya biçimsiz alanlar da {"error": ...} şeklinde 400 döner
FORM_FIELD_LABELS = {
    "title": "Title",
    "author": "Author name",
    "availableCopies": "Available copies",
    "isbn": "ISBN",
}

def form_error_message(error: dict) -> str:
    field = error["loc"][-1]
    label = FORM_FIELD_LABELS.get(field, str(field))
    if error["type"] == "missing":
        return f"{label} is required."
    if error["type"] == "int_parsing":
        return f"{label} must be a whole number."
    return f"Invalid value for {label}."

@app.exception_handler(RequestValidationError)
async def update_form_validation_handler(request: Request, exc: RequestValidationError):
    if not request.url.path.startswith("/updateBook/"):
        return await request_validation_exception_handler(request, exc)
    message = form_error_message(exc.errors()[0])
    audit_logger.error(f"Update request rejected for {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"error": message})

# --- Bağımlılıklar ---
@lru_cache(maxsize=1)
def get_library() -> Library:
    """Uygulama genelindeki kitap deposu (testler dependency_overrides ile değiştirir)."""
    return Library(settings.data_file)

def get_handlers(library: Library = Depends(get_library)) -> BookHandlers:
    return BookHandlers(library, logger=audit_logger, max_image_size=settings.max_upload_size)

# --- Modeller ---
class BookModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None, alias="_id")
    title: str
    author: str
    isbn: str
    genre: str = ""
    available_copies: int = Field(default=0, alias="availableCopies")
    image: Optional[str] = None

class UpdateBookResponse(BaseModel):
    message: str
    book: BookModel

# --- Sağlık Kontrolü ---
@app.get("/health")
def health(library: Library = Depends(get_library)):
    """Hızlı bir veritabanı bağlantı denemesi yapan hafif sağlık uç noktası."""
    db_ok = True
    try:
        conn = get_db_connection(library.db_file)
        try:
            conn.execute("SELECT 1")
        finally:
            conn.close()
    except Exception:
        logger.exception("Sağlık kontrolü veritabanına ulaşamadı")
        db_ok = False
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "db": db_ok,
    }

# --- Kitaplar ---
@app.get("/books", response_model=List[BookModel])
def get_books(library: Library = Depends(get_library)):
    """Tüm kitapların listesini başlığa göre sıralı al."""
    return [BookModel(**b.to_dict()) for b in library.list_books()]

@app.get("/books/{book_id}", response_model=BookModel)
def get_book(book_id: str, handlers: BookHandlers = Depends(get_handlers)):
    """Kimliğine göre tek bir kitap al; hatalar düz metin olarak döner."""
    try:
        book = handlers.fetch_book(book_id)
    except BookRequestError as e:
        return PlainTextResponse(e.message, status_code=e.status_code)
    return BookModel(**book.to_dict())

@app.put("/updateBook/{book_id}", response_model=UpdateBookResponse)
def update_book(
    book_id: str,
    title: str = Form(...),
    author: str = Form(...),
    available_copies: int = Form(..., alias="availableCopies"),
    isbn: str = Form(...),
    genre: str = Form(""),
    image: Optional[UploadFile] = File(None),
    handlers: BookHandlers = Depends(get_handlers),
):
    """Bir kitabın tüm alanlarını güncelle; isteğe bağlı olarak kapak resmini değiştir."""
    image_bytes = None
    if image is not None and image.filename:
        image_bytes = image.file.read()
    try:
        book = handlers.update_book(
            book_id,
            title=title,
            author=author,
            isbn=isbn,
            genre=genre,
            available_copies=available_copies,
            image=image_bytes,
        )
    except BookRequestError as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.message})
    return UpdateBookResponse(message="Book updated successfully!", book=BookModel(**book.to_dict()))
