"""Seed complaint records bundled with the service.

The seed list backs the conversational status lookup and is merged into
the admin dashboard ahead of the stored collection.  It is read once
from the bundled ``seed_complaints.json`` and cached for the process.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import orjson
import structlog

from src.models.complaint import Complaint, ComplaintList

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

_DATA_DIR: Path = Path(__file__).resolve().parent
_SEED_COMPLAINTS_PATH: Path = _DATA_DIR / "seed_complaints.json"


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_seed_complaints(path: Path | None = None) -> list[Complaint]:
    """Load seed complaints from a JSON file.

    Parameters
    ----------
    path:
        Path to the JSON file.  Defaults to the bundled
        ``seed_complaints.json``.

    Raises
    ------
    FileNotFoundError
        If the JSON file does not exist.
    pydantic.ValidationError
        If a record does not match the complaint schema.
    """
    target = path or _SEED_COMPLAINTS_PATH
    complaints = ComplaintList.validate_python(orjson.loads(target.read_bytes()))
    logger.info("seed.complaints_loaded", path=str(target), count=len(complaints))
    return complaints


@lru_cache(maxsize=1)
def seed_complaints() -> tuple[Complaint, ...]:
    """Return the bundled seed records (loaded once per process)."""
    return tuple(load_seed_complaints())
