# backend/create_tables.py
import sys
import os

sys.path.append(os.getcwd())

from weeclass.core.config import get_settings
from weeclass.db.base import Base, make_engine

from weeclass import models  # noqa: F401  (registers tables on Base.metadata)

settings = get_settings()

if settings.demo_mode:
    print("DATABASE_URL is not set; nothing to create (demo mode).")
    sys.exit(1)

print("Creating counseling tables...")
try:
    Base.metadata.create_all(bind=make_engine(settings.DATABASE_URL))
    print("✅ Success!")
except Exception as e:
    print(f"❌ Error: {e}")
    sys.exit(1)
