"""
Tests for the command line entrypoint (ptcg_data/main.py).
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import respx

from ptcg_data.main import build_parser, run_migration


def _last_json_line(out: str) -> dict:
    return json.loads(out.strip().splitlines()[-1])


def test_migrate_json_flag() -> None:
    args = build_parser().parse_args(["migrate", "--json", "--data-dir", "data"])
    assert args.command == "migrate"
    assert args.json is True
    assert args.data_dir == "data"


@pytest.mark.asyncio
async def test_run_migration_prints_json_report(tmp_path: Path, dataset_dir, capsys) -> None:
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    with respx.mock(assert_all_called=False) as mock, patch(
        "asyncio.sleep", new_callable=AsyncMock
    ):
        mock.route().mock(side_effect=httpx.ConnectError("offline"))
        code = await run_migration(str(dataset_dir), url, json_report=True)

    assert code == 0
    report = _last_json_line(capsys.readouterr().out)
    assert report["ok"] is True
    assert report["counts"]["cards"] == 5
    statuses = {s["name"]: s["status"] for s in report["steps"]}
    assert statuses["cards"] == "ok"
    assert statuses["decks"] == "skipped"
    assert statuses["species"] == "failed"


@pytest.mark.asyncio
async def test_run_migration_abort_exit_code(tmp_path: Path, dataset_dir, capsys) -> None:
    (dataset_dir / "cards" / "en" / "base1.json").write_text("{not json")
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"

    code = await run_migration(str(dataset_dir), url, json_report=True)

    assert code == 1
    report = _last_json_line(capsys.readouterr().out)
    assert report["ok"] is False
    assert report["counts"] is None
    assert [s["name"] for s in report["steps"]][-1] == "cards"
