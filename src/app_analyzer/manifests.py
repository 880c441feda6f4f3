"""Dependency manifest parsing.

Manifests are parsed opportunistically. A file that fails to parse
contributes no dependencies or commands and never raises.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from .schema import InputFile

logger = logging.getLogger(__name__)

PACKAGE_JSON = "package.json"
REQUIREMENTS_TXT = "requirements.txt"
PROCFILE = "procfile"

NPM_DEPENDENCY_KEYS = ("dependencies", "devDependencies", "peerDependencies")

REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


@dataclass
class ManifestIndex:
    """Dependencies and commands collected from every manifest in an input."""
    dependencies: set[str] = field(default_factory=set)
    commands: list[str] = field(default_factory=list)
    manifests: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.manifests)

    @property
    def command_text(self) -> str:
        return " ".join(self.commands).lower()


def _basename(name: str) -> str:
    return PurePosixPath(name.replace("\\", "/")).name.lower()


def parse_package_json(content: str) -> tuple[set[str], list[str]]:
    """Parse an npm manifest into dependency names and script commands.

    Raises:
        ValueError: If the content is not a JSON object.
    """
    data = json.loads(content)
    if not isinstance(data, dict):
        raise ValueError("package.json must contain a JSON object")

    dependencies = set()
    for key in NPM_DEPENDENCY_KEYS:
        section = data.get(key)
        if isinstance(section, dict):
            dependencies.update(str(name).lower() for name in section)

    commands = []
    scripts = data.get("scripts")
    if isinstance(scripts, dict):
        commands = [str(cmd) for cmd in scripts.values() if isinstance(cmd, str)]

    return dependencies, commands


def parse_requirements(content: str) -> set[str]:
    """Extract package names from a pip requirements file."""
    names = set()
    for line in content.splitlines():
        line = line.split("#", 1)[0].strip()
        if not line or line.startswith("-"):
            continue
        match = REQUIREMENT_NAME.match(line)
        if match:
            names.add(match.group(1).lower())
    return names


def parse_procfile(content: str) -> list[str]:
    """Extract process commands from a Procfile."""
    commands = []
    for line in content.splitlines():
        if ":" not in line:
            continue
        _, command = line.split(":", 1)
        if command.strip():
            commands.append(command.strip())
    return commands


def index_manifests(files: list[InputFile]) -> ManifestIndex:
    """Collect dependencies and commands from all recognized manifests."""
    index = ManifestIndex()

    for f in files:
        base = _basename(f.name)
        if base == PACKAGE_JSON:
            try:
                deps, commands = parse_package_json(f.content)
            except ValueError as e:
                # json.JSONDecodeError is a ValueError subclass
                logger.debug("Ignoring unparsable manifest %s: %s", f.name, e)
                index.failed.append(f.name)
                continue
            index.dependencies.update(deps)
            index.commands.extend(commands)
            index.manifests.append(f.name)
        elif base == REQUIREMENTS_TXT:
            index.dependencies.update(parse_requirements(f.content))
            index.manifests.append(f.name)
        elif base == PROCFILE:
            index.commands.extend(parse_procfile(f.content))
            index.manifests.append(f.name)

    return index
