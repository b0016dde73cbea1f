import sqlite3
from typing import Optional

from config import settings

# Varsayılan veritabanı dosyası (LIBRARY_DB_FILE ile geçersiz kılınabilir).
DATABASE_FILE = settings.data_file


def get_db_connection(db_file: Optional[str] = None) -> sqlite3.Connection:
    """SQLite veritabanına yeni bir bağlantı kurar.

    Bağlantılar işlem başına açılır ve kapatılır; istekler arasında paylaşılan
    bir durum tutulmaz.
    """
    conn = sqlite3.connect(db_file or DATABASE_FILE, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA temp_store=MEMORY;")
    return conn


def create_tables(db_file: Optional[str] = None) -> None:
    """Veritabanında mevcut değilse gerekli tabloları oluşturur."""
    conn = get_db_connection(db_file)
    try:
        cursor = conn.cursor()
        # Başlık benzersizliği ve negatif olmayan kopya sayısı depolama katmanında zorlanır,
        # böylece eşzamanlı iki güncelleme aynı başlığı yazamaz.
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS books (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL UNIQUE,
                author TEXT NOT NULL,
                isbn TEXT NOT NULL,
                genre TEXT,
                available_copies INTEGER NOT NULL DEFAULT 0 CHECK(available_copies >= 0),
                image TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Resim sütunu olmadan oluşturulmuş eski veritabanları için geçiş
        cursor.execute("PRAGMA table_info(books)")
        columns = [column[1] for column in cursor.fetchall()]
        if 'image' not in columns:
            cursor.execute("ALTER TABLE books ADD COLUMN image TEXT")  # base64 metni

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_books_author ON books(author)")
        conn.commit()
    finally:
        conn.close()


def initialize_database(db_file: Optional[str] = None) -> None:
    """Veritabanını başlatır ve gerekirse tabloları oluşturur."""
    create_tables(db_file)
