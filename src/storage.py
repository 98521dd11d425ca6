"""
Per-user persistence for survey projects and settings.

Documents are stored as JSON under a per-user namespace:

    <root>/users/<user>/settings.json
    <root>/users/<user>/projects/<project id>.json

The store is handed to the UI and CLI explicitly; nothing in the rig_lib
core reads or writes storage on its own.
"""

import json
import logging
import os
import re
import tempfile
from typing import Any

from src.rig_lib import RigProject, RigSettings, default_settings, utc_now_iso

logger = logging.getLogger(__name__)

_SAFE_SEGMENT = re.compile(r"[a-zA-Z0-9_.@-]+")


def _segment(value: str) -> str:
    """
    Checks that a user or project id can be used as a single path segment.

    Ids are used verbatim, never rewritten, so two different ids can never
    share a file.

    Raises:
        ValueError: If the id is blank or dot-only, or has a character
            outside letters, digits and "_.@-".
    """
    if not _SAFE_SEGMENT.fullmatch(value) or not value.strip("."):
        raise ValueError(f"Invalid identifier: {value!r}")
    return value


class ProjectStore:
    """
    JSON-file repository for one user's projects and settings.

    Writes go to a temporary file in the target directory and are moved
    into place, so a crash never leaves a half-written document. Concurrent
    writers are not coordinated: the last save wins.
    """

    def __init__(self, root: str, user: str = "anonymous"):
        self.root = root
        self.user = _segment(user)
        self.user_dir = os.path.join(root, "users", self.user)
        self.projects_dir = os.path.join(self.user_dir, "projects")

    # --- Internal ---

    def _project_path(self, project_id: str) -> str:
        return os.path.join(self.projects_dir, f"{_segment(project_id)}.json")

    def _settings_path(self) -> str:
        return os.path.join(self.user_dir, "settings.json")

    def _write_json(self, path: str, data: Any) -> None:
        directory = os.path.dirname(path)
        os.makedirs(directory, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=directory, suffix=".tmp", delete=False
        ) as tmp:
            tmp_path = tmp.name
            try:
                json.dump(data, tmp, indent=2, ensure_ascii=False)
            except Exception:
                tmp.close()
                os.unlink(tmp_path)
                raise
        os.replace(tmp_path, path)

    def _read_json(self, path: str) -> Any | None:
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    # --- Settings ---

    def load_settings(self) -> RigSettings:
        """
        Returns the user's settings, falling back to the defaults.

        Stored documents are merged over the defaults so a settings file
        written before a new list existed still yields a complete record.
        """
        settings = default_settings()
        stored = self._read_json(self._settings_path())
        if isinstance(stored, dict):
            for key in settings:
                if key in stored:
                    settings[key] = stored[key]  # type: ignore[literal-required]
        return settings

    def save_settings(self, settings: RigSettings) -> None:
        self._write_json(self._settings_path(), settings)
        logger.info(f"Saved settings for user '{self.user}'")

    # --- Projects ---

    def list_projects(self) -> list[RigProject]:
        """All of the user's projects, most recently updated first."""
        if not os.path.isdir(self.projects_dir):
            return []

        projects: list[RigProject] = []
        for filename in os.listdir(self.projects_dir):
            if not filename.endswith(".json"):
                continue
            path = os.path.join(self.projects_dir, filename)
            try:
                data = self._read_json(path)
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Skipping unreadable project file {path}: {e}")
                continue
            if isinstance(data, dict):
                projects.append(data)  # type: ignore[arg-type]

        projects.sort(key=lambda p: p.get("updated_at", ""), reverse=True)
        return projects

    def get_project(self, project_id: str) -> RigProject | None:
        return self._read_json(self._project_path(project_id))

    def save_project(self, project: RigProject) -> RigProject:
        """Stamps `updated_at` and writes the full project document."""
        project["updated_at"] = utc_now_iso()
        self._write_json(self._project_path(project["id"]), project)
        logger.debug(f"Saved project {project['id']} for user '{self.user}'")
        return project

    def delete_project(self, project_id: str) -> bool:
        path = self._project_path(project_id)
        if not os.path.exists(path):
            return False
        os.remove(path)
        logger.info(f"Deleted project {project_id} for user '{self.user}'")
        return True
