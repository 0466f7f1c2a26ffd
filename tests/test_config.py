"""Tests for loading the graph schema document and runtime settings."""

import json
from pathlib import Path

import pytest

from kgload.config import ConfigError, load_graph_schema, load_settings, parse_graph_schema
from kgload.records import COMMA_DOUBLE_QUOTE

SCHEMA_DOCUMENT = {
    "nodes": [
        {
            "name": "Person",
            "pathToData": "data/person",
            "attributes": ["id", "name"],
            "primaryAttributes": ["id"],
            "identityAttribute": "id",
        }
    ],
    "edges": [
        {
            "name": "Knows",
            "pathToData": "data/knows",
            "attributes": ["id", "friendId"],
            "primaryAttributes": ["id", "friendId"],
            "sourceNode": "Person",
            "destinationNode": "Person",
        }
    ],
}

LEGACY_DOCUMENT = {
    "Nodes": [
        {
            "Name": "Person",
            "PathToData": "/srv/person",
            "Attributes": ["id", "name"],
            "PrimaryAttributes": ["id"],
            "NodeIdAttribute": "id",
        }
    ],
    "Edges": [
        {
            "Name": "Knows",
            "PathToData": "/srv/knows",
            "Attributes": ["id", "since"],
            "PrimaryAttributes": ["id"],
            "SourceNode": "Person",
            "DestinationNode": "Person",
        }
    ],
}


def write_json(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestGraphSchemaDocument:
    def test_loads_nodes_and_edges(self, tmp_path: Path) -> None:
        schema = load_graph_schema(write_json(tmp_path / "graph.json", SCHEMA_DOCUMENT))

        person = schema.nodes["Person"]
        assert person.attributes == ("id", "name")
        assert person.primary_attributes == frozenset({"id"})
        assert person.identity_attribute == "id"
        knows = schema.edges["Knows"]
        assert knows.source_type_name == "Person"
        assert knows.destination_type_name == "Person"

    def test_relative_paths_resolve_against_document(self, tmp_path: Path) -> None:
        schema = load_graph_schema(write_json(tmp_path / "graph.json", SCHEMA_DOCUMENT))
        assert schema.nodes["Person"].data_directory == tmp_path.resolve() / "data" / "person"

    def test_legacy_keys_accepted(self) -> None:
        schema = parse_graph_schema(LEGACY_DOCUMENT)
        assert schema.nodes["Person"].data_directory == Path("/srv/person")
        assert schema.edges["Knows"].primary_attributes == frozenset({"id"})

    def test_missing_key_is_config_error(self) -> None:
        document = {"nodes": [{"name": "Person", "pathToData": "p", "attributes": ["id"], "primaryAttributes": ["id"]}]}
        with pytest.raises(ConfigError, match="invalid graph schema"):
            parse_graph_schema(document)

    def test_unknown_endpoint_is_config_error(self) -> None:
        document = json.loads(json.dumps(SCHEMA_DOCUMENT))
        document["edges"][0]["destinationNode"] = "Company"
        with pytest.raises(ConfigError, match="Company"):
            parse_graph_schema(document)

    def test_duplicate_names_are_config_error(self) -> None:
        document = json.loads(json.dumps(SCHEMA_DOCUMENT))
        document["nodes"].append(document["nodes"][0])
        with pytest.raises(ConfigError, match="duplicate"):
            parse_graph_schema(document)

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "graph.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="not valid JSON"):
            load_graph_schema(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="cannot read"):
            load_graph_schema(tmp_path / "absent.json")


class TestSettings:
    def test_defaults_without_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)

        settings = load_settings(environ={})

        assert settings.max_tasks == 4
        assert settings.error_log_path == Path("kgload-errors.log")
        assert settings.field_separator == "\t"

    def test_file_env_and_overrides_layer(self, tmp_path: Path) -> None:
        config = tmp_path / "kgload.toml"
        config.write_text(
            '[kgload]\nuri = "neo4j://db:7687"\nmax_tasks = 2\nusername = "neo4j"\n',
            encoding="utf-8",
        )

        settings = load_settings(
            config_path=config,
            environ={"KGLOAD_MAX_TASKS": "6", "KGLOAD_PASSWORD": "secret"},
            overrides={"username": "admin", "database": None},
        )

        assert settings.uri == "neo4j://db:7687"
        assert settings.max_tasks == 6
        assert settings.password == "secret"
        assert settings.username == "admin"
        assert settings.database is None

    def test_config_env_var_locates_file(self, tmp_path: Path) -> None:
        config = tmp_path / "custom.toml"
        config.write_text('[kgload]\ngraph_config_file = "graph.json"\n', encoding="utf-8")

        settings = load_settings(environ={"KGLOAD_CONFIG": str(config)})

        assert settings.graph_config_file == Path("graph.json")

    def test_explicit_missing_file_is_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_settings(config_path=tmp_path / "nope.toml", environ={})

    def test_invalid_toml_is_error(self, tmp_path: Path) -> None:
        config = tmp_path / "kgload.toml"
        config.write_text("[kgload\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="cannot read settings"):
            load_settings(config_path=config, environ={})

    def test_invalid_value_is_error(self) -> None:
        with pytest.raises(ConfigError, match="invalid settings"):
            load_settings(environ={}, overrides={"max_tasks": 0})

    def test_record_profile_from_settings(self) -> None:
        settings = load_settings(environ={}, overrides={"field_separator": ",", "text_qualifier": '"'})
        assert settings.record_profile() == COMMA_DOUBLE_QUOTE
