from __future__ import annotations

import os
from pathlib import Path

from services.checkout.app.config import parse_bool
from services.checkout.app.db.database import get_engine
from services.checkout.app.db.models import Base


def init_db() -> None:
    if not parse_bool(os.getenv("SAMEDAY_DB_AUTO_CREATE", "true")):
        return

    engine = get_engine()
    if engine.url.drivername.startswith("sqlite") and engine.url.database:
        Path(engine.url.database).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=engine)
