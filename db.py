from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base
from core.config import settings

# URL береться з налаштувань (.env або змінні оточення)
DATABASE_URL = settings.database_url

if not DATABASE_URL:
    raise ValueError("DATABASE_URL не знайдено в .env файлі")


def build_engine(url: str, echo: bool = False):
    """Postgres отримує пул з'єднань та SSL, SQLite - лише check_same_thread"""
    if url.startswith("sqlite"):
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        echo=echo,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=3600,
        connect_args={
            "sslmode": "require",
            "connect_timeout": 10
        }
    )


# Створюємо двигун (engine)
engine = build_engine(DATABASE_URL, echo=settings.debug)

# Створюємо базовий клас для моделей
Base = declarative_base()

# Фабрика сесій
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def get_db():
    """
    Dependency для FastAPI: отримаємо сесію та закриємо її після запиту.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def test_connection():
    try:
        with engine.connect() as connection:
            result = connection.execute(text("SELECT 1"))
            print("✅ Успішне підключення!", result.scalar())
    except Exception as e:
        print("❌ Помилка підключення:")
        print(e)

if __name__ == "__main__":
    test_connection()
