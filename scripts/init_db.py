from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from sqlalchemy.engine import make_url

from src.project_hub.project_hub import create_app
from src.project_hub.project_hub.database.bootstrap import init_schema, list_tables
from src.project_hub.project_hub.database.orm import db


def main() -> None:
    app = create_app({"AUTO_INIT_DB": False, "AUTO_SEED_DB": False})
    init_schema(app, db)
    tables = list_tables(app, db)
    target = make_url(app.config["SQLALCHEMY_DATABASE_URI"]).render_as_string(hide_password=True)
    print(f"OK: Created tables -> {target} (tables={len(tables)})")


if __name__ == "__main__":
    main()
