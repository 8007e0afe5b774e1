"""Pytest configuration and fixtures for docdrift tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from docdrift.decision import DecisionCascade
from docdrift.models import DocMetadata, DocumentedElement


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def isolated_config(temp_dir: Path, monkeypatch) -> Path:
    """Point config file and decision log at a temporary home."""
    home = temp_dir / "home"
    monkeypatch.setattr("docdrift.config.BASE_DIR", home)
    monkeypatch.setattr("docdrift.config.CONFIG_FILE", home / "config.toml")
    monkeypatch.setattr("docdrift.config.DB_FILE", home / "decisions.db")
    return home


@pytest.fixture
def cascade() -> DecisionCascade:
    return DecisionCascade()


@pytest.fixture
def sample_php() -> str:
    """A small Laravel-style service class."""
    return '''<?php

namespace App\\Services;

use App\\Models\\Invoice;
use Illuminate\\Support\\Facades\\{Log, DB as Database};

interface Billable
{
    public function charge(int $amount): bool;
}

final class InvoiceService extends BaseService implements Billable, \\Countable
{
    public const CURRENCY = 'EUR';
    private const RETRIES = 3;

    public ?string $label = null;
    protected static int $created = 0;

    public function __construct(private Invoice $invoice, public readonly int $owner = 0)
    {
    }

    public function charge(int $amount): bool
    {
        return $this->send($amount);
    }

    public static function make(string ...$lines): static
    {
        return new static(new Invoice());
    }

    public function count(): int
    {
        return 1;
    }

    private function send(int $amount): bool
    {
        // transport is stubbed in tests
        return $amount > 0;
    }
}

trait Auditable
{
    protected array $audit = [];

    public function audit(string $event): void
    {
        $this->audit[] = $event;
    }
}

function format_money(float $amount, string &$out = ''): string
{
    return number_format($amount, 2);
}

const DEFAULT_LOCALE = 'cs';
'''


@pytest.fixture
def simple_doc() -> DocMetadata:
    """Documentation that mentions the Foo class and its bar method."""
    return DocMetadata(
        path="docs/code/Foo.md",
        content="# Foo\n\nclass Foo provides `bar()`.\n\n## Usage\n\nCall method `bar`.\n",
        sections={"Foo": ["class Foo provides `bar()`."], "Usage": ["Call method `bar`."]},
        documented_elements=(
            DocumentedElement(type="class", name="Foo"),
            DocumentedElement(type="function", name="bar"),
        ),
    )


def _private_body(lines: int) -> str:
    body = "\n".join(f"        $total += {i};" for i in range(lines))
    return (
        "<?php\n"
        "class Foo\n"
        "{\n"
        "    public function bar(): int\n"
        "    {\n"
        "        return $this->helper();\n"
        "    }\n\n"
        "    private function helper(): int\n"
        "    {\n"
        "        $total = 0;\n"
        f"{body}\n"
        "        return $total;\n"
        "    }\n"
        "}\n"
    )


@pytest.fixture
def private_body():
    """Factory: PHP class whose private helper has the given number of statements."""
    return _private_body
