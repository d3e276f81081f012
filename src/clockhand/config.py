"""Loading of the Harvest credentials and per-project clockhand.json files."""

from __future__ import annotations

import glob
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from pydantic import BaseModel, ValidationError

from .errors import ConfigInvalid
from .paths import PROJECT_CONFIG_FILENAME, get_access_token_path

logger = logging.getLogger(__name__)

ACCESS_TOKEN_HELP = """didn't find the credentials config file at {path}

1. visit https://id.getharvest.com/developers
2. Create new personal access token
3. write {{"token": "123...", "account_id": 456}} into this file: {path}"""

PROJECT_CONFIG_HELP = """didn't find the project config file at {path}

1. Create a file at this path with the following contents:
   {{"harvest_project_id": 12345, "name": "My Project"}}"""


class AccessToken(BaseModel):
    """Harvest personal access token."""

    token: str
    account_id: int


class ProjectConfig(BaseModel):
    """Contents of a project's clockhand.json."""

    harvest_project_id: int
    name: str
    harvest_task_id: Optional[int] = None


@dataclass(frozen=True)
class ProjectWatch:
    """A watched project directory and the Harvest project it bills to."""

    root: Path
    project_id: Optional[int]
    name: str
    config_path: Optional[Path] = None
    task_id: Optional[int] = None


def load_access_token(path: Optional[Path] = None) -> AccessToken:
    path = Path(path) if path else get_access_token_path()
    try:
        contents = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigInvalid(ACCESS_TOKEN_HELP.format(path=path), path=path) from e

    try:
        return AccessToken.model_validate_json(contents)
    except ValidationError as e:
        raise ConfigInvalid(f"bad format for {path}: {e}", path=path) from e


def project_root_for(config_path: Path) -> Path:
    """The directory a clockhand.json describes.

    A config kept in ``<project>/.config/`` describes ``<project>``.
    """
    config_dir = Path(config_path).resolve().parent
    if config_dir.name == ".config":
        return config_dir.parent
    return config_dir


def read_project_config(path: Path) -> ProjectWatch:
    path = Path(path).expanduser()
    try:
        contents = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigInvalid(PROJECT_CONFIG_HELP.format(path=path), path=path) from e

    try:
        data = ProjectConfig.model_validate_json(contents)
    except ValidationError as e:
        raise ConfigInvalid(f"bad format for {path}: {e}", path=path) from e

    return ProjectWatch(
        root=project_root_for(path),
        project_id=data.harvest_project_id,
        name=data.name,
        config_path=path,
        task_id=data.harvest_task_id,
    )


def _config_file_in(directory: Path) -> Path:
    for candidate in (
        directory / PROJECT_CONFIG_FILENAME,
        directory / ".config" / PROJECT_CONFIG_FILENAME,
    ):
        if candidate.is_file():
            return candidate
    return directory / PROJECT_CONFIG_FILENAME


def expand_config_paths(pattern: str) -> list[Path]:
    """Expand ``~`` and globs in one watch argument.

    Raises ConfigInvalid when a glob matches nothing.
    """
    expanded = str(Path(pattern).expanduser())
    if glob.has_magic(expanded):
        matches = sorted(glob.glob(expanded))
        if not matches:
            raise ConfigInvalid(f"no config files match {pattern}", path=pattern)
        paths = [Path(m) for m in matches]
    else:
        paths = [Path(expanded)]

    return [_config_file_in(p) if p.is_dir() else p for p in paths]


def load_watch_list(patterns: Iterable[str]) -> tuple[list[ProjectWatch], list[ConfigInvalid]]:
    """Build the projects to watch from config paths.

    Every match is kept, in argument order, even when two arguments resolve
    to the same file. A broken entry is returned as an error and does not
    stop the others from loading.
    """
    projects: list[ProjectWatch] = []
    errors: list[ConfigInvalid] = []

    for pattern in patterns:
        try:
            config_paths = expand_config_paths(pattern)
        except ConfigInvalid as e:
            errors.append(e)
            continue

        for config_path in config_paths:
            try:
                projects.append(read_project_config(config_path))
            except ConfigInvalid as e:
                logger.debug("Skipping %s: %s", config_path, e)
                errors.append(e)

    return projects, errors
