"""Fixtures shared by the whole suite.

Everything here is picked up by pytest automatically: the bundled API
documents under ``fixtures/``, a ready-made parse result, a throwaway
XDG home for the config file and document library, output managers, and
a Typer ``CliRunner``.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Iterator

import pytest
from typer.testing import CliRunner

from specview.models import ParseResult, SpecDocument, SpecFormat
from specview.output import OutputFormat, OutputManager, reset_output, set_output
from specview.parser.resolver import DefaultResolver
from specview.pipeline import ParsePipeline

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _fixture_text(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture(autouse=True)
def reset_output_state() -> Iterator[None]:
    """Forget the process-wide OutputManager once a test is done.

    A manager built while ``CliRunner`` had swapped ``sys.stdout`` keeps
    pointing at the closed capture stream otherwise.
    """
    yield
    reset_output()


# --- bundled documents ------------------------------------------------------


@pytest.fixture
def petstore_30_raw() -> dict[str, Any]:
    """OpenAPI 3.0 petstore with ``$ref`` components, as a dict."""
    return json.loads(_fixture_text("petstore_3.0.json"))


@pytest.fixture
def petstore_yaml_text() -> str:
    """OpenAPI 3.1 YAML source whose ``Category`` schema refers to itself."""
    return _fixture_text("petstore.yaml")


@pytest.fixture
def swagger_20_raw() -> dict[str, Any]:
    return json.loads(_fixture_text("swagger_2.0.json"))


@pytest.fixture
def petstore_document() -> SpecDocument:
    """Library record wrapping the petstore 3.0 source text."""
    return SpecDocument(
        id="petstore",
        name="Petstore API",
        content=_fixture_text("petstore_3.0.json"),
        format=SpecFormat.JSON,
    )


@pytest.fixture
def petstore_result(petstore_30_raw: dict[str, Any]) -> ParseResult:
    """Pipeline output for the petstore; structural checks only."""
    pipeline = ParsePipeline(DefaultResolver(validate_schema=False))
    return asyncio.run(pipeline.run(petstore_30_raw))


# --- filesystem -------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point config and library storage at *tmp_path* and ``cd`` into it.

    ``XDG_CONFIG_HOME`` becomes ``tmp_path/config`` and ``XDG_DATA_HOME``
    becomes ``tmp_path/data`` on every platform.  The timeout override
    variable is cleared so the user's shell cannot leak into a test.
    """
    monkeypatch.setattr("specview.config._is_xdg_platform", lambda: True)
    for var, sub in (("XDG_CONFIG_HOME", "config"), ("XDG_DATA_HOME", "data")):
        monkeypatch.setenv(var, str(tmp_path / sub))
    monkeypatch.delenv("SPECVIEW_RESOLVE_TIMEOUT", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def petstore_file(isolated_config: Path, petstore_30_raw: dict[str, Any]) -> Path:
    path = isolated_config / "petstore.json"
    path.write_text(json.dumps(petstore_30_raw), encoding="utf-8")
    return path


# --- output -----------------------------------------------------------------


def _installed(manager: OutputManager) -> Iterator[OutputManager]:
    set_output(manager)
    yield manager
    reset_output()


@pytest.fixture
def quiet_output() -> Iterator[OutputManager]:
    """Plain, quiet manager for tests that only care about side effects."""
    yield from _installed(OutputManager(format=OutputFormat.PLAIN, quiet=True))


@pytest.fixture
def json_output() -> Iterator[OutputManager]:
    yield from _installed(OutputManager(format=OutputFormat.JSON))


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()
