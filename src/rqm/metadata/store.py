"""Persistent IDs and change tracking for requirements.

A store is a directory holding ``config.yml`` (the ID prefix and the next
sequence number) and a ``.metadata/`` folder with one JSON record per
requirement, named by the kebab-case form of its summary.

The store assumes a single writer: nothing guards the sequence counter or
the record files against concurrent processes.
"""

import base64
import hashlib
import json
import logging
import unicodedata
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from rqm.core.errors import MetadataError
from rqm.core.files import atomic_write_text
from rqm.core.models import Requirement, RequirementConfig

logger = logging.getLogger("rqm")

CONFIG_FILE = "config.yml"
METADATA_DIR = ".metadata"
DEFAULT_PREFIX = "REQ"
RECORD_FIELDS = ("uuid", "generated_id", "summary_hash", "created_at", "updated_at", "summary")


def kebab_case(text: str) -> str:
    """Lowercase text and join its alphanumeric runs with single hyphens.

    The mapping is lossy: summaries differing only in punctuation or
    spacing share a key, and therefore share one metadata record.

    Examples:
        >>> kebab_case("Hello World")
        'hello-world'
        >>> kebab_case("Multiple   Spaces")
        'multiple-spaces'
    """
    mapped = "".join(c if c.isalnum() else "-" for c in text.lower())
    return "-".join(part for part in mapped.split("-") if part)


def hash_summary(summary: str) -> str:
    """Return a URL-safe base64 SHA-256 of the NFC-normalized summary."""
    normalized = unicodedata.normalize("NFC", summary)
    digest = hashlib.sha256(normalized.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RequirementMetadata:
    """Persisted identity of a requirement.

    Attributes:
        uuid (uuid.UUID): Stable identifier that survives summary edits.
        generated_id (str): Sequential short ID such as ``"REQ-007"``.
        summary_hash (str): Hash of ``summary`` for change detection.
        created_at (datetime): When the record was first created.
        updated_at (datetime): When the summary last changed.
        summary (str): Summary text as last seen.
    """

    uuid: uuid.UUID
    generated_id: str
    summary_hash: str
    created_at: datetime
    updated_at: datetime
    summary: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "uuid": str(self.uuid),
            "generated_id": self.generated_id,
            "summary_hash": self.summary_hash,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "summary": self.summary,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RequirementMetadata":
        """Build a record from its persisted form.

        Raises:
            KeyError: If a field is missing.
            ValueError: If a UUID or timestamp cannot be parsed.
        """
        for key in RECORD_FIELDS:
            if key not in data:
                raise KeyError(key)
        return cls(
            uuid=uuid.UUID(str(data["uuid"])),
            generated_id=str(data["generated_id"]),
            summary_hash=str(data["summary_hash"]),
            created_at=datetime.fromisoformat(str(data["created_at"])),
            updated_at=datetime.fromisoformat(str(data["updated_at"])),
            summary=str(data["summary"]),
        )


@dataclass
class ProjectConfig:
    """ID prefix and the next sequence number to hand out."""

    project_prefix: str = DEFAULT_PREFIX
    next_id: int = 1

    def allocate_id(self) -> str:
        """Format the next generated ID and advance the counter."""
        generated = f"{self.project_prefix}-{self.next_id:03d}"
        self.next_id += 1
        return generated


def load_project_config(path: Path) -> ProjectConfig:
    """Load a ProjectConfig from YAML.

    Raises:
        OSError: If the file cannot be read.
        MetadataError: If the content is malformed.
    """
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise MetadataError(path, f"invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise MetadataError(path, "expected a mapping")
    try:
        prefix = data["project_prefix"]
        next_id = data["next_id"]
    except KeyError as e:
        raise MetadataError(path, f"missing field {e}") from e
    if not isinstance(next_id, int) or isinstance(next_id, bool) or next_id < 1:
        raise MetadataError(path, f"next_id must be a positive integer, got {next_id!r}")

    return ProjectConfig(project_prefix=str(prefix), next_id=next_id)


def save_project_config(config: ProjectConfig, path: Path) -> None:
    """Write a ProjectConfig as YAML."""
    data = {"project_prefix": config.project_prefix, "next_id": config.next_id}
    atomic_write_text(path, yaml.safe_dump(data, default_flow_style=False, sort_keys=False))


class MetadataStore:
    """Handle on an opened metadata directory.

    Use :meth:`init` to create a store or :meth:`open` to load one.
    ``project_config`` is the in-memory sequence counter; it is written
    back by :meth:`save_config`, which runs every time an ID is allocated.
    """

    def __init__(self, root: Path, project_config: ProjectConfig) -> None:
        self.root = Path(root)
        self.project_config = project_config
        self._cache: dict[str, RequirementMetadata] = {}

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILE

    @property
    def metadata_dir(self) -> Path:
        return self.root / METADATA_DIR

    @classmethod
    def init(cls, root: Path, prefix: str) -> "MetadataStore":
        """Create a store directory with a fresh ProjectConfig.

        An existing ``config.yml`` is overwritten; existing records are
        left in place.

        Raises:
            OSError: If the directory or config file cannot be created.
        """
        root = Path(root)
        root.mkdir(parents=True, exist_ok=True)
        save_project_config(ProjectConfig(project_prefix=prefix, next_id=1), root / CONFIG_FILE)
        logger.info("Initialized metadata store at %s with prefix %s", root, prefix)
        return cls.open(root)

    @classmethod
    def open(cls, root: Path) -> "MetadataStore":
        """Open a store, defaulting to prefix ``REQ`` if it has no config.

        Raises:
            MetadataError: If ``config.yml`` exists but is malformed.
        """
        root = Path(root)
        config_path = root / CONFIG_FILE
        if config_path.exists():
            project_config = load_project_config(config_path)
        else:
            project_config = ProjectConfig()
        return cls(root, project_config)

    def save_config(self) -> None:
        """Persist the current ProjectConfig."""
        save_project_config(self.project_config, self.config_path)

    def record_path(self, summary: str) -> Path:
        """Return the record file path for a summary."""
        return self.metadata_dir / f"{kebab_case(summary)}.json"

    def _read_record(self, path: Path) -> RequirementMetadata:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise MetadataError(path, f"invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MetadataError(path, "expected a JSON object")
        try:
            return RequirementMetadata.from_dict(data)
        except KeyError as e:
            raise MetadataError(path, f"missing field {e}") from e
        except ValueError as e:
            raise MetadataError(path, str(e)) from e

    def _write_record(self, path: Path, meta: RequirementMetadata) -> None:
        atomic_write_text(path, json.dumps(meta.to_dict(), indent=2) + "\n")

    def get_or_create_metadata(self, requirement: Requirement) -> RequirementMetadata:
        """Return the metadata for a requirement, creating it on first sight.

        Looks in the in-memory cache, then on disk, then allocates a new
        generated ID. A record loaded from disk whose summary hash no
        longer matches is refreshed and written back; its ``uuid`` and
        ``generated_id`` never change. A failed creation leaves no record
        on disk and does not advance the sequence counter.

        Raises:
            OSError: If a file cannot be read or written.
            MetadataError: If a persisted record is malformed.
        """
        key = kebab_case(requirement.summary)

        cached = self._cache.get(key)
        if cached is not None:
            return cached

        path = self.metadata_dir / f"{key}.json"
        current_hash = hash_summary(requirement.summary)

        if path.exists():
            meta = self._read_record(path)
            if meta.summary_hash != current_hash:
                meta.summary = requirement.summary
                meta.summary_hash = current_hash
                meta.updated_at = _now()
                self._write_record(path, meta)
                logger.info("Summary changed for %s: %s", meta.generated_id, requirement.summary)
        else:
            now = _now()
            next_id = self.project_config.next_id
            meta = RequirementMetadata(
                uuid=uuid.uuid4(),
                generated_id=self.project_config.allocate_id(),
                summary_hash=current_hash,
                created_at=now,
                updated_at=now,
                summary=requirement.summary,
            )
            try:
                self._write_record(path, meta)
                try:
                    self.save_config()
                except BaseException:
                    path.unlink(missing_ok=True)
                    raise
            except BaseException:
                self.project_config.next_id = next_id
                raise
            logger.info("Assigned %s to '%s'", meta.generated_id, requirement.summary)

        self._cache[key] = meta
        return meta

    def get_generated_id(self, requirement: Requirement) -> str:
        """Return the generated ID for a requirement, creating it if needed."""
        return self.get_or_create_metadata(requirement).generated_id

    def assign_ids(self, config: RequirementConfig) -> dict[str, RequirementMetadata]:
        """Get or create metadata for every inline requirement of a document.

        Returns:
            Mapping of summary to metadata, in document order.
        """
        return {req.summary: self.get_or_create_metadata(req) for req in config.all_requirements()}
