"""CLI command tests for EntityForge."""

import json
import sys
import types

import pytest
from typer.testing import CliRunner

from entityforge import AdminOptionsBuilder, EntityForge, InMemoryDataSource
from entityforge.cli.main import app
from sample_models import Address, Shop, make_addresses

runner = CliRunner()


def make_forge() -> EntityForge:
    """Host application factory used through --app."""
    options = AdminOptionsBuilder().add_entities(Address).configure_entity(
        Shop, lambda e: e.set_is_hidden(True)
    )
    return EntityForge(InMemoryDataSource(make_addresses()), options)


@pytest.fixture
def host_app(monkeypatch) -> str:
    """Install an importable host module and return its --app path."""
    module = types.ModuleType("entityforge_test_host")
    module.make_forge = make_forge
    module.forge = make_forge()
    module.not_a_forge = lambda: "nothing"
    monkeypatch.setitem(sys.modules, "entityforge_test_host", module)
    monkeypatch.delenv("ENTITYFORGE_APP", raising=False)
    monkeypatch.delenv("ENTITYFORGE_PAGE_SIZE", raising=False)
    return "entityforge_test_host:make_forge"


class TestVersionCommand:
    """Test the version command."""

    def test_version_output(self) -> None:
        """Test that version command shows version info."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "EntityForge v" in result.stdout


class TestAppLoading:
    """Locating the host application."""

    def test_missing_app(self, host_app: str) -> None:
        result = runner.invoke(app, ["--json", "entities", "list"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["error"] == "ConfigurationError"
        assert "ENTITYFORGE_APP" in data["message"]

    def test_app_from_environment(self, host_app: str, monkeypatch) -> None:
        monkeypatch.setenv("ENTITYFORGE_APP", host_app)
        result = runner.invoke(app, ["--json", "entities", "list"])
        assert result.exit_code == 0, f"Failed with: {result.stdout}"

    def test_app_instance(self, host_app: str) -> None:
        result = runner.invoke(app, ["--app", "entityforge_test_host:forge", "entities", "list"])
        assert result.exit_code == 0
        assert "Address" in result.stdout

    @pytest.mark.parametrize(
        "path",
        [
            "entityforge_test_host",
            "entityforge_test_host:missing",
            "entityforge_test_host:not_a_forge",
        ],
    )
    def test_invalid_app(self, host_app: str, path: str) -> None:
        result = runner.invoke(app, ["--json", "--app", path, "entities", "list"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error"] == "ConfigurationError"


class TestEntityCommands:
    """Test entity metadata commands."""

    def test_list_json(self, host_app: str) -> None:
        result = runner.invoke(app, ["--app", host_app, "--json", "entities", "list"])
        assert result.exit_code == 0, f"Failed with: {result.stdout}"
        data = json.loads(result.stdout)
        assert [row["Id"] for row in data] == ["Address"]
        assert data[0]["Plural"] == "Addresses"
        assert data[0]["Searchable"] == 2

    def test_list_all(self, host_app: str) -> None:
        result = runner.invoke(app, ["--app", host_app, "--json", "entities", "list", "--all"])
        assert [row["Id"] for row in json.loads(result.stdout)] == ["Address", "Shop"]

    def test_describe_json(self, host_app: str) -> None:
        args = ["--app", host_app, "--json", "entities", "describe", "Address"]
        result = runner.invoke(app, args)
        assert result.exit_code == 0, f"Failed with: {result.stdout}"
        data = json.loads(result.stdout)
        assert data["id"] == "Address"
        assert [p["name"] for p in data["properties"]] == [
            "id",
            "street",
            "city",
            "latitude",
            "longitude",
        ]
        assert data["properties"][1]["search_type"] == "contains_case_insensitive"

    def test_describe_rich(self, host_app: str) -> None:
        result = runner.invoke(app, ["--app", host_app, "entities", "describe", "Shop"])
        assert result.exit_code == 0
        assert "products" in result.stdout

    def test_describe_unknown(self, host_app: str) -> None:
        result = runner.invoke(app, ["--app", host_app, "--json", "entities", "describe", "Nope"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["error"] == "EntityNotFoundError"
        assert data["context"]["available_entities"] == ["Address", "Shop"]


class TestDataCommands:
    """Test search and get commands."""

    def test_search_json(self, host_app: str) -> None:
        result = runner.invoke(app, ["--app", host_app, "--json", "search", "Address", "ain"])
        assert result.exit_code == 0, f"Failed with: {result.stdout}"
        data = json.loads(result.stdout)
        assert data["total_count"] == 3
        assert data["page_count"] == 1
        assert data["items"][0]["street"] == "Main St."
        assert "longitude" not in data["items"][0]

    def test_search_paging_and_fields(self, host_app: str) -> None:
        result = runner.invoke(
            app,
            ["--app", host_app, "--json", "search", "Address", "-p", "2", "-n", "2", "-f", "id"],
        )
        data = json.loads(result.stdout)
        assert data["items"] == [{"id": 3}, {"id": 4}]
        assert data["total_count"] == 6

    def test_search_quoted(self, host_app: str) -> None:
        result = runner.invoke(app, ["--app", host_app, "--json", "search", "Address", '"central"'])
        assert [item["id"] for item in json.loads(result.stdout)["items"]] == [5]

    def test_page_size_from_environment(self, host_app: str, monkeypatch) -> None:
        monkeypatch.setenv("ENTITYFORGE_PAGE_SIZE", "4")
        result = runner.invoke(app, ["--app", host_app, "--json", "search", "Address"])
        data = json.loads(result.stdout)
        assert data["page_size"] == 4
        assert len(data["items"]) == 4

    def test_search_rich(self, host_app: str) -> None:
        result = runner.invoke(app, ["--app", host_app, "search", "Address", "Second"])
        assert result.exit_code == 0
        assert "Second Square St." in result.stdout

    def test_search_no_results(self, host_app: str) -> None:
        result = runner.invoke(app, ["--app", host_app, "search", "Address", "zzz"])
        assert result.exit_code == 0
        assert "No records found" in result.stdout

    def test_search_invalid_page(self, host_app: str) -> None:
        result = runner.invoke(app, ["--app", host_app, "--json", "search", "Address", "-p", "0"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error"] == "QueryError"

    def test_get_json(self, host_app: str) -> None:
        result = runner.invoke(app, ["--app", host_app, "--json", "get", "Address", "5"])
        assert result.exit_code == 0, f"Failed with: {result.stdout}"
        assert json.loads(result.stdout)[0]["street"] == "Central"

    def test_get_missing(self, host_app: str) -> None:
        result = runner.invoke(app, ["--app", host_app, "--json", "get", "Address", "99"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error"] == "RecordNotFoundError"

    def test_verbose(self, host_app: str) -> None:
        result = runner.invoke(app, ["--app", host_app, "-v", "search", "Address", "main"])
        assert result.exit_code == 0
