import os

# Set a dummy DATABASE_URL before any imports so nothing reaches for PostgreSQL
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
