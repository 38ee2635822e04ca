#!/usr/bin/env python3
"""
taxonomy.py - import or export the skill taxonomy CSV without the API server.

The CSV has the columns Category, Skill, Subskill, Description. The database
is the one configured in .env (defaults to ~/.skill_matrix/skill_matrix.db).

Usage:
    python taxonomy.py import <file.csv>
    python taxonomy.py export <file.csv>
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

# Ensure the src/ directory is on the path so skillmatrix imports resolve
# when running this script directly from the repo root.
_SRC = os.path.join(os.path.dirname(__file__), "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)

USAGE = "Usage: python taxonomy.py import|export <file.csv>"


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 2 or args[0] not in ("import", "export"):
        print(USAGE)
        return 1
    command, filename = args

    # Deferred so the sys.path change above takes effect first.
    from skillmatrix.config import settings
    from skillmatrix.database import Base, SessionLocal, engine
    from skillmatrix.exceptions import SkillMatrixError
    from skillmatrix.logging_config import setup_logging
    from skillmatrix.services.import_export import TaxonomyImportExportService
    import skillmatrix.models  # noqa: F401

    setup_logging()
    Path(settings.data_root).mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=engine)

    path = Path(filename).expanduser()
    db = SessionLocal()
    try:
        service = TaxonomyImportExportService(db)
        if command == "export":
            content = service.export_csv()
            path.write_text(content, encoding="utf-8", newline="")
            db.commit()
            print(f"Exported taxonomy to {path}")
            return 0

        if not path.exists():
            print(f"File not found: {path}")
            return 1
        result = service.import_csv(path.read_text(encoding="utf-8-sig"))
        db.commit()
    except SkillMatrixError as exc:
        db.rollback()
        print(f"Error: {exc.message}")
        return 1
    finally:
        db.close()

    print(f"Imported {result.success} rows ({result.errors} failed)")
    print(
        f"Created {result.created.categories} categories, "
        f"{result.created.skills} skills, {result.created.subskills} subskills"
    )
    return 0 if result.errors == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
