"""Tests for the command line interface."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from typer.testing import CliRunner

from helpers import make_enrichment, make_item
from newsbot.adapters.storage import SQLiteItemStore
from newsbot.cli import app

runner = CliRunner()


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "newsbot.yaml"
    path.write_text(
        f"paths:\n  database: {tmp_path / 'cli.db'}\n  output_dir: {tmp_path / 'digests'}\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def enriched_item_id(tmp_path: Path, config_path: Path) -> int:
    with SQLiteItemStore(tmp_path / "cli.db") as store:
        published = datetime.now(timezone.utc) - timedelta(hours=1)
        store.insert_item_if_absent(
            make_item("https://a.com/1", title="Ranked post", published_at=published)
        )
        item_id = store.latest_items(1)[0].id
        store.upsert_enrichment(make_enrichment(item_id, relevance=9))
    return item_id


def test_unsupported_window(config_path: Path) -> None:
    result = runner.invoke(app, ["--config", str(config_path), "report", "bogus"])

    assert result.exit_code == 2
    assert "unsupported time window" in result.output


def test_report_saves_digest(tmp_path: Path, config_path: Path, enriched_item_id: int) -> None:
    output = tmp_path / "digest.md"

    result = runner.invoke(
        app, ["--config", str(config_path), "report", "24h", "--no-trends", "--output", str(output)]
    )

    assert result.exit_code == 0, result.output
    assert "Ranked post" in result.output
    digest = output.read_text(encoding="utf-8")
    assert "[Ranked post](https://a.com/1)" in digest


def test_show_item(config_path: Path, enriched_item_id: int) -> None:
    result = runner.invoke(app, ["--config", str(config_path), "show", str(enriched_item_id)])

    assert result.exit_code == 0, result.output
    assert "Ranked post" in result.output
    assert "Score: 19" in result.output


def test_show_missing_item(config_path: Path) -> None:
    result = runner.invoke(app, ["--config", str(config_path), "show", "42"])

    assert result.exit_code == 1
    assert "No enriched item" in result.output


def test_harvest_without_sources(config_path: Path) -> None:
    result = runner.invoke(app, ["--config", str(config_path), "harvest"])

    assert result.exit_code == 1
    assert "fetch-sources" in result.output


def test_latest_lists_items_with_ids(config_path: Path, enriched_item_id: int) -> None:
    result = runner.invoke(app, ["--config", str(config_path), "latest", "--limit", "5"])

    assert result.exit_code == 0, result.output
    assert f"{enriched_item_id:>6}" in result.output
    assert "[example.com] Ranked post" in result.output


def test_latest_with_empty_store(config_path: Path) -> None:
    result = runner.invoke(app, ["--config", str(config_path), "latest"])

    assert result.exit_code == 0, result.output
    assert "No items harvested yet" in result.output
