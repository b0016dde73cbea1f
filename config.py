import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Settings:
    # API Ayarları
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "5500"))
    # CLI istemcisinin konuştuğu adres
    api_base_url: str = os.getenv("API_BASE_URL", f"http://{api_host}:{api_port}")
    http_timeout: float = float(os.getenv("HTTP_TIMEOUT", "10"))

    # Veritabanı Ayarları
    data_file: str = os.getenv("LIBRARY_DB_FILE", "booktrack.db")

    # Günlük Ayarları
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Uygulama Ayarları
    app_name: str = os.getenv("APP_NAME", "BookTrack")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")

    # Yükleme Ayarları
    max_upload_size: int = int(os.getenv("MAX_UPLOAD_SIZE", str(16 * 1024 * 1024)))  # 16MB


settings = Settings()
