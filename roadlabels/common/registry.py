"""Local camera registry backed by the label application's SQLite database."""

from __future__ import annotations

import re
import sqlite3
from contextlib import closing
from pathlib import Path

from roadlabels.common.errors import ConfigError, ResolutionError
from roadlabels.common.models import Camera

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _checked_identifier(value: str, what: str) -> str:
    if not _IDENTIFIER.match(value):
        raise ConfigError(f"Invalid SQL identifier for registry {what}: {value!r}")
    return value


class SqliteCameraRegistry:
    """Read-only view of the cameras table. Exposes only ``list_cameras``."""

    def __init__(
        self,
        db_path: Path,
        *,
        table: str = "cameras",
        id_column: str = "id",
        foreign_id_column: str = "foreign_id",
    ) -> None:
        self.db_path = Path(db_path)
        self.table = _checked_identifier(table, "table")
        self.id_column = _checked_identifier(id_column, "id_column")
        self.foreign_id_column = _checked_identifier(foreign_id_column, "foreign_id_column")

    @classmethod
    def from_config(cls, registry_config: dict, *, base_dir: Path | None = None) -> "SqliteCameraRegistry":
        db_path = Path(registry_config["db_path"])
        if base_dir is not None and not db_path.is_absolute():
            db_path = base_dir / db_path
        return cls(
            db_path,
            table=registry_config.get("table", "cameras"),
            id_column=registry_config.get("id_column", "id"),
            foreign_id_column=registry_config.get("foreign_id_column", "foreign_id"),
        )

    def list_cameras(self) -> list[Camera]:
        if not self.db_path.exists():
            raise ResolutionError(f"Camera registry not found: {self.db_path}")
        query = (
            f"SELECT {self.id_column}, {self.foreign_id_column} FROM {self.table} "
            f"ORDER BY {self.id_column}"
        )
        try:
            # Read-only URI so a wrong path never creates an empty database.
            with closing(sqlite3.connect(self.db_path.resolve().as_uri() + "?mode=ro", uri=True)) as conn:
                rows = conn.execute(query).fetchall()
        except sqlite3.Error as exc:
            raise ResolutionError(f"Camera registry query failed for {self.db_path}: {exc}") from exc

        return [
            Camera(id=int(cam_id), foreign_id=str(foreign_id))
            for cam_id, foreign_id in rows
            if foreign_id not in (None, "")
        ]
