import os

# Keep the import-time create_all away from a file on disk
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.pop("TELEGRAM_BOT_TOKEN", None)
os.environ.setdefault("ADMIN_PASSWORD", "admin123")
