#!/usr/bin/env python3
"""
Tests for the command-line entry point
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from content_extraction.models import CompiledDocument
from tools.cli import main
from utils.errors import EmptyInputError


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep the CLI from replacing the root handlers during tests"""
    monkeypatch.setattr("tools.cli.setup_logging", lambda level=None: None)


def make_service(document=None, error=None) -> MagicMock:
    service = MagicMock()
    service.compile = AsyncMock(return_value=document, side_effect=error)
    service.email = AsyncMock(return_value=document, side_effect=error)
    return service


def make_document(skipped=()) -> CompiledDocument:
    return CompiledDocument(filename="Clippings-2024-05-01.pdf", content=b"%PDF-1.4", skipped=list(skipped), page_count=2)


def test_compile_writes_file(tmp_path, capsys):
    output = tmp_path / "out.pdf"
    service = make_service(make_document(skipped=["https://b.test"]))

    code = main(["compile", "https://a.test", "https://b.test", "-o", str(output), "--no-quiz"], service=service)

    assert code == 0
    assert output.read_bytes() == b"%PDF-1.4"
    service.compile.assert_awaited_once_with(["https://a.test", "https://b.test"], include_quiz=False)
    printed = capsys.readouterr().out
    assert "2 pages" in printed
    assert "Skipped: https://b.test" in printed


def test_email(capsys):
    service = make_service(make_document())

    code = main(["email", "https://a.test", "--to", "reader@example.com"], service=service)

    assert code == 0
    service.email.assert_awaited_once_with(["https://a.test"], email="reader@example.com", include_quiz=True)
    assert "Sent Clippings-2024-05-01.pdf" in capsys.readouterr().out


def test_failure_exit_code(capsys):
    service = make_service(error=EmptyInputError("Could not fetch any articles.", skipped=["https://a.test"]))

    code = main(["compile", "https://a.test"], service=service)

    assert code == 1
    printed = capsys.readouterr().out
    assert "Error: Could not fetch any articles." in printed
    assert "Skipped: https://a.test" in printed
