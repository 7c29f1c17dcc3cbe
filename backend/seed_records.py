# backend/seed_records.py
# Loads the demo submissions and default settings into a real database.

import os, sys
sys.path.append(os.getcwd())

from weeclass.core.config import get_settings
from weeclass.core.constants import CONFIG_KEYS
from weeclass.db.client import BackendClient
from weeclass.db.sample_data import demo_records


def main():
    settings = get_settings()
    if settings.demo_mode:
        print("DATABASE_URL is not set; demo mode already serves sample data.")
        return

    print("🌱 Seeding Data...")

    with BackendClient(settings) as client:
        store = client.store

        for collection, docs in demo_records().items():
            existing = store.list(collection, limit=1)
            if existing:
                print(f"ℹ️ {collection} already has records, skipping")
                continue
            for doc in docs:
                record_id = store.create(collection, doc)
                print(f"✅ Created {collection}/{record_id}")

        if store.get_config(CONFIG_KEYS["TEACHER_AUTH"]) is None:
            store.set_config(CONFIG_KEYS["TEACHER_AUTH"], {"password": settings.TEACHER_ACCESS_DEFAULT})
            print("✅ Teacher access code set to the default")

        if store.get_config(CONFIG_KEYS["NOTIFICATIONS"]) is None:
            store.set_config(CONFIG_KEYS["NOTIFICATIONS"], {"webhook_url": "", "is_enabled": False})
            print("✅ Notifications disabled until a webhook is configured")

    print("✨ Seeding Complete!")


if __name__ == "__main__":
    main()
