from __future__ import annotations

import json
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Protocol

from loguru import logger
from pydantic import ValidationError

from column_toolbox.core.paths import projects_path

from .models import SavedProject, SaveProjectRequest


class ProjectRepository(Protocol):
    """Storage for saved calculations, injected into the backend."""

    def save(self, record: SaveProjectRequest) -> str:
        ...

    def list(self) -> List[SavedProject]:
        ...

    def get(self, project_id: str) -> SavedProject:
        ...

    def delete(self, project_id: str) -> None:
        ...

    def recent(self, limit: int = 5) -> List[SavedProject]:
        ...

    def search(self, term: str) -> List[SavedProject]:
        ...

    def clear(self) -> None:
        ...


class JsonProjectRepository:
    """ProjectRepository persisted as a single JSON list on disk.

    Records are kept in save order. Writes go through a temp file and a rename
    so a crash mid-write leaves the previous file intact.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else projects_path()
        self._lock = threading.Lock()

    def _read(self) -> List[SavedProject]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning(f"Saved projects file {self.path} is not valid JSON; starting empty: {e}")
            return []
        out: List[SavedProject] = []
        for item in raw if isinstance(raw, list) else []:
            try:
                out.append(SavedProject.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed saved project: {e}")
        return out

    def _write(self, projects: List[SavedProject]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        payload = [p.model_dump(mode="json") for p in projects]
        tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def save(self, record: SaveProjectRequest) -> str:
        project = SavedProject(
            id=uuid.uuid4().hex,
            name=record.name,
            type=record.type,
            date=datetime.now(),
            inputs=record.inputs,
            results=record.results,
        )
        with self._lock:
            projects = self._read()
            projects.append(project)
            self._write(projects)
        logger.info(f"Saved project {project.id} ({project.type}: {project.name})")
        return project.id

    def list(self) -> List[SavedProject]:
        with self._lock:
            return self._read()

    def get(self, project_id: str) -> SavedProject:
        for p in self.list():
            if p.id == project_id:
                return p
        raise KeyError(project_id)

    def delete(self, project_id: str) -> None:
        with self._lock:
            projects = self._read()
            kept = [p for p in projects if p.id != project_id]
            if len(kept) == len(projects):
                raise KeyError(project_id)
            self._write(kept)
        logger.info(f"Deleted project {project_id}")

    def recent(self, limit: int = 5) -> List[SavedProject]:
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        return sorted(self.list(), key=lambda p: p.date, reverse=True)[:limit]

    def search(self, term: str) -> List[SavedProject]:
        """Projects whose name contains term, ignoring case, in save order."""
        needle = term.casefold()
        return [p for p in self.list() if needle in p.name.casefold()]

    def clear(self) -> None:
        with self._lock:
            self._write([])
        logger.info("Cleared all saved projects")
