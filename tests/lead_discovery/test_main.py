"""Tests for the command-line entry point."""

import json
import logging
from unittest.mock import MagicMock

import pytest

from lead_discovery import main as cli
from lead_discovery.config import config
from lead_discovery.search.fanout import LeadSearchEngine
from lead_discovery.tools.context import ToolContext

BACKEND_KEYS = (
    "OPENAI_API_KEY",
    "GOOGLE_MAPS_API_KEY",
    "YELP_API_KEY",
    "PERPLEXITY_API_KEY",
    "HUNTER_API_KEY",
    "APOLLO_API_KEY",
    "FIRECRAWL_API_KEY",
    "GOOGLE_CUSTOM_SEARCH_API_KEY",
    "GOOGLE_CUSTOM_SEARCH_ENGINE_ID",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Start every test with no backend configured and restore logging after."""
    for key in BACKEND_KEYS:
        monkeypatch.setattr(config, key, "")
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "lead-discovery" in capsys.readouterr().out


@pytest.mark.unit
def test_check_env_reports_missing(capsys):
    exit_code = cli.main(["--check-env"])

    out = capsys.readouterr().out
    assert exit_code == 1
    assert "Backend Status" in out
    assert "Missing required backends: google_maps, openai" in out


@pytest.mark.unit
def test_check_env_ok(monkeypatch, capsys):
    monkeypatch.setattr(config, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(config, "GOOGLE_MAPS_API_KEY", "maps-key")

    assert cli.main(["--check-env"]) == 0
    assert "Missing" not in capsys.readouterr().out


@pytest.mark.unit
def test_invalid_request(capsys):
    assert cli.main(["search", "   "]) == 2
    assert "Invalid request" in capsys.readouterr().out


@pytest.mark.unit
def test_search_requires_maps_key(capsys):
    assert cli.main(["search", "plumbers"]) == 1
    assert "GOOGLE_MAPS_API_KEY" in capsys.readouterr().out


@pytest.mark.unit
def test_orchestrate_requires_openai_key(capsys):
    assert cli.main(["orchestrate", "plumbers in Santa Fe"]) == 1
    assert "OPENAI_API_KEY" in capsys.readouterr().out


@pytest.mark.unit
def test_search_writes_output(monkeypatch, tmp_path, places_backend, make_place):
    backend = places_backend(
        default=[
            make_place("a", "Alpha Plumbing", rating=4.9),
            make_place("b", "Bravo Pipes", rating=3.1, review_count=4),
        ]
    )
    monkeypatch.setattr(config, "GOOGLE_MAPS_API_KEY", "maps-key")
    monkeypatch.setattr(
        ToolContext,
        "from_config",
        classmethod(
            lambda cls, cfg, reasoning_client=None: cls(search_engine=LeadSearchEngine(backend))
        ),
    )
    output = tmp_path / "leads.json"

    exit_code = cli.main(
        ["search", "plumbers", "-l", "Santa Fe, NM", "--no-website", "-o", str(output)]
    )

    assert exit_code == 0
    data = json.loads(output.read_text())
    assert data["search_query"] == "plumbers in Santa Fe, NM"
    assert [lead["name"] for lead in data["leads"]] == ["Alpha Plumbing", "Bravo Pipes"]
    assert backend.calls[0] == ("plumbers in Santa Fe, NM", 20)


@pytest.mark.unit
def test_search_closes_backend_sessions(monkeypatch, places_backend, make_place):
    backend = places_backend(default=[make_place("a", "Alpha Plumbing")])
    backend.close = MagicMock()
    yelp = MagicMock()
    monkeypatch.setattr(config, "GOOGLE_MAPS_API_KEY", "maps-key")
    monkeypatch.setattr(
        ToolContext,
        "from_config",
        classmethod(
            lambda cls, cfg, reasoning_client=None: cls(
                search_engine=LeadSearchEngine(backend), yelp=yelp
            )
        ),
    )

    assert cli.main(["search", "plumbers"]) == 0
    backend.close.assert_called_once()
    yelp.close.assert_called_once()
