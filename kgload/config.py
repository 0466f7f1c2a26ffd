"""Configuration loading: the graph schema document and runtime settings.

**Graph schema document** (JSON)::

    {
      "nodes": [
        {"name": "Person", "pathToData": "data/person",
         "attributes": ["id", "name"], "primaryAttributes": ["id"],
         "identityAttribute": "id"}
      ],
      "edges": [
        {"name": "Knows", "pathToData": "data/knows",
         "attributes": ["id", "friendId", "since"], "primaryAttributes": ["id", "friendId"],
         "sourceNode": "Person", "destinationNode": "Person"}
      ]
    }

The PascalCase keys of older configuration files (``Nodes``, ``PathToData``,
``NodeIdAttribute``...) are accepted as well. Relative ``pathToData`` values
are resolved against the directory holding the schema document.

**Runtime settings** (TOML) are looked up in order:
  1. Path passed explicitly (the ``--config`` option)
  2. Path in the KGLOAD_CONFIG env var (if set)
  3. kgload.toml in the current working directory

Values are read from the ``[kgload]`` table. ``KGLOAD_<KEY>`` environment
variables override individual keys. If no file is found, built-in defaults
are used.
"""

from __future__ import annotations

import json
import os
import tomllib
from pathlib import Path
from typing import Any, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from kgload.records import RecordProfile
from kgload.schema import EdgeType, GraphSchema, NodeType

DEFAULT_MAX_TASKS = 4
DEFAULT_ERROR_LOG = "kgload-errors.log"
ENV_PREFIX = "KGLOAD_"


class ConfigError(ValueError):
    """Configuration is missing, unreadable or invalid. Fatal for the run."""


def _alias(*names: str) -> Any:
    return Field(validation_alias=AliasChoices(*names))


class _NodeEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = _alias("name", "Name")
    path_to_data: str = _alias("pathToData", "PathToData", "path_to_data")
    attributes: list[str] = _alias("attributes", "Attributes")
    primary_attributes: list[str] = _alias("primaryAttributes", "PrimaryAttributes", "primary_attributes")
    identity_attribute: str = _alias("identityAttribute", "NodeIdAttribute", "identity_attribute")


class _EdgeEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = _alias("name", "Name")
    path_to_data: str = _alias("pathToData", "PathToData", "path_to_data")
    attributes: list[str] = _alias("attributes", "Attributes")
    primary_attributes: list[str] = _alias("primaryAttributes", "PrimaryAttributes", "primary_attributes")
    source_node: str = _alias("sourceNode", "SourceNode", "source_node")
    destination_node: str = _alias("destinationNode", "DestinationNode", "destination_node")
    label: str | None = Field(default=None, validation_alias=AliasChoices("label", "Label"))


class _GraphDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    nodes: list[_NodeEntry] = Field(default_factory=list, validation_alias=AliasChoices("nodes", "Nodes"))
    edges: list[_EdgeEntry] = Field(default_factory=list, validation_alias=AliasChoices("edges", "Edges"))


def _resolve(base_dir: Path, path: str) -> Path:
    candidate = Path(path).expanduser()
    return candidate if candidate.is_absolute() else base_dir / candidate


def parse_graph_schema(data: Mapping[str, Any], base_dir: Path | None = None) -> GraphSchema:
    """Build a GraphSchema from an already-decoded schema document.

    Raises:
        ConfigError: If the document does not describe a valid schema.
    """
    base_dir = base_dir or Path.cwd()
    try:
        document = _GraphDocument.model_validate(data)
        nodes = [
            NodeType(
                name=entry.name,
                data_directory=_resolve(base_dir, entry.path_to_data),
                attributes=entry.attributes,
                primary_attributes=entry.primary_attributes,
                identity_attribute=entry.identity_attribute,
            )
            for entry in document.nodes
        ]
        edges = [
            EdgeType(
                name=entry.name,
                data_directory=_resolve(base_dir, entry.path_to_data),
                attributes=entry.attributes,
                primary_attributes=entry.primary_attributes,
                source_type_name=entry.source_node,
                destination_type_name=entry.destination_node,
                label=entry.label,
            )
            for entry in document.edges
        ]
        return GraphSchema.from_types(nodes, edges)
    except (ValidationError, ValueError) as e:
        raise ConfigError(f"invalid graph schema: {e}") from e


def load_graph_schema(path: Path) -> GraphSchema:
    """Read and validate a JSON graph schema document.

    Raises:
        ConfigError: If the file cannot be read, is not JSON, or is not a valid schema.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8-sig"))
    except OSError as e:
        raise ConfigError(f"cannot read graph schema {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"graph schema {path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"graph schema {path} must be a JSON object")
    return parse_graph_schema(data, base_dir=path.resolve().parent)


class UploaderSettings(BaseModel):
    """Runtime settings of one upload run.

    Attributes:
        uri: Graph store URI, e.g. ``neo4j://localhost:7687``.
        username: Store user.
        password: Store password.
        database: Store database; None for the server default.
        max_tasks: Maximum number of entity types uploaded at once.
        graph_config_file: Path of the JSON graph schema document.
        error_log_path: File the per-record failures are written to at the end of the run.
        field_separator: Field separator of the data files.
        text_qualifier: Optional quote character of the data files.
        encoding: Encoding of the data files.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    uri: str = "neo4j://localhost:7687"
    username: str | None = None
    password: str | None = None
    database: str | None = None
    max_tasks: int = Field(DEFAULT_MAX_TASKS, ge=1)
    graph_config_file: Path | None = None
    error_log_path: Path = Path(DEFAULT_ERROR_LOG)
    field_separator: str = Field("\t", min_length=1, max_length=1)
    text_qualifier: str | None = Field(None, min_length=1, max_length=1)
    encoding: str = "utf-8"

    def record_profile(self) -> RecordProfile:
        return RecordProfile(
            field_separator=self.field_separator,
            text_qualifier=self.text_qualifier,
            encoding=self.encoding,
        )


def _default_config_paths(explicit: Path | None, environ: Mapping[str, str]) -> list[Path]:
    """Return paths to check for kgload.toml (first existing wins)."""
    paths: list[Path] = []
    if explicit is not None:
        paths.append(Path(explicit))
    if environ.get("KGLOAD_CONFIG"):
        paths.append(Path(environ["KGLOAD_CONFIG"]))
    paths.append(Path.cwd() / "kgload.toml")
    return paths


def _env_overrides(environ: Mapping[str, str]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for field_name in UploaderSettings.model_fields:
        value = environ.get(ENV_PREFIX + field_name.upper())
        if value is not None:
            overrides[field_name] = value
    return overrides


def load_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> UploaderSettings:
    """Load UploaderSettings from TOML, environment and explicit overrides.

    Later sources win: file, then environment, then `overrides` (None values
    in `overrides` are ignored).

    Raises:
        ConfigError: If an explicitly given file is missing, a file is not
            valid TOML, or the merged values are invalid.
    """
    environ = os.environ if environ is None else environ
    if config_path is not None and not Path(config_path).is_file():
        raise ConfigError(f"settings file not found: {config_path}")

    values: dict[str, Any] = {}
    for path in _default_config_paths(config_path, environ):
        if path.is_file():
            try:
                with open(path, "rb") as f:
                    data = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                raise ConfigError(f"cannot read settings file {path}: {e}") from e
            table = data.get("kgload", data)
            if not isinstance(table, dict):
                raise ConfigError(f"{path}: [kgload] must be a table")
            values.update(table)
            break

    values.update(_env_overrides(environ))
    if overrides:
        values.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return UploaderSettings.model_validate(values)
    except ValidationError as e:
        raise ConfigError(f"invalid settings: {e}") from e
