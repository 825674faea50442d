"""
Resume checkpoint persisted next to the input file.

The tracker file holds a single identifier: the last record committed to
the sink. Writes go through a temporary file and an atomic rename so a
reader never sees a truncated identifier.
"""

import os
import tempfile
from pathlib import Path

from location_seed.core.errors import CheckpointIOError
from location_seed.observability.logger import get_logger

logger = get_logger(__name__)

TRACKER_SUFFIX = "_last_id_tracker.csv"
FALLBACK_TRACKER_SUFFIX = "_tracker.csv"


def tracker_path_for(csv_path: str | Path) -> Path:
    """
    Derive the tracker path for an input file.

    ``data/places.csv`` maps to ``data/places_last_id_tracker.csv``; a
    name without an extension gets ``_tracker.csv`` appended.
    """
    path = Path(csv_path)
    if path.suffix:
        return path.with_name(path.stem + TRACKER_SUFFIX)
    return path.with_name(path.name + FALLBACK_TRACKER_SUFFIX)


class CheckpointStore:
    """
    Single-value store for the last committed record identifier.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> str | None:
        """
        Read the last committed identifier.

        Returns:
            The identifier, or None when no checkpoint exists yet

        Raises:
            CheckpointIOError: If the file exists but cannot be read
        """
        try:
            data = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise CheckpointIOError(
                f"Error retrieving last processed ID: {e}",
                path=str(self.path),
            ) from e

        last_id = data.strip()
        return last_id or None

    def save(self, identifier: str) -> None:
        """
        Replace the stored identifier.

        Raises:
            CheckpointIOError: If the tracker file cannot be written
        """
        directory = self.path.parent
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=directory,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(identifier)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise CheckpointIOError(
                f"Error writing tracker file: {e}",
                path=str(self.path),
            ) from e

        logger.debug(f"Checkpoint saved: {identifier}", extra={"tracker_file": str(self.path)})

    def clear(self) -> bool:
        """
        Delete the tracker file so the next run starts from the beginning.

        Returns:
            True if a checkpoint was removed
        """
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CheckpointIOError(
                f"Error removing tracker file: {e}",
                path=str(self.path),
            ) from e
        return True
