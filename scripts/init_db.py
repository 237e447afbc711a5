"""Creates the data directory, an empty products file and the uploads folder."""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from catalog.config import get_settings  # noqa: E402
from catalog.database import repository_for  # noqa: E402


def main():
    settings = get_settings()
    os.makedirs(settings.UPLOADS_DIR, exist_ok=True)
    print(f"Uploads directory: {settings.UPLOADS_DIR}")

    path = settings.products_path
    if not path.exists():
        repository_for(path).save_all([])
        print(f"Created {path}")
    else:
        print(f"{path} already exists")


if __name__ == "__main__":
    main()
