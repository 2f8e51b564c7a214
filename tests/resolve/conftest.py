"""Shared fixtures for resolve tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from declscope.config.models import ResolverConfig
from declscope.resolve import SourceDocument, SyntaxTreeCache, TreeSitterSyntaxTree

SDK_PROJECT = """\
<Project Sdk="Microsoft.NET.Sdk">
  <PropertyGroup>
    <TargetFramework>net8.0</TargetFramework>
  </PropertyGroup>
</Project>
"""

ORDER_SERVICE = """\
namespace Shop.Orders;

public class OrderService
{
    public void PlaceOrder(int id)
    {
        Save(id);
    }

    private int total;
}
"""

ParseFn = Callable[..., TreeSitterSyntaxTree]


def make_document(
    text: str, path: str = "/src/Sample.cs", version: int = 1, language: str = "csharp"
) -> SourceDocument:
    return SourceDocument(path=Path(path), text=text, version=version, language=language)


@pytest.fixture
def parse() -> ParseFn:
    """Parse text through a fresh cache, optionally with kind overrides."""

    def _parse(
        text: str,
        *,
        language: str = "csharp",
        resolver_config: ResolverConfig | None = None,
    ) -> TreeSitterSyntaxTree:
        cache = SyntaxTreeCache(resolver_config=resolver_config)
        return cache.get_tree(make_document(text, language=language))

    return _parse


def write_sln(path: Path, projects: list[tuple[str, str]]) -> Path:
    """Write a classic .sln listing (name, relative project path) entries."""
    lines = [
        "",
        "Microsoft Visual Studio Solution File, Format Version 12.00",
        "# Visual Studio Version 17",
    ]
    for i, (name, rel) in enumerate(projects):
        guid = f"{{00000000-0000-0000-0000-{i:012d}}}"
        lines.append(
            f'Project("{{FAE04EC0-301F-11D3-BF4B-00C04F79EFBC}}") = "{name}", "{rel}", "{guid}"'
        )
        lines.append("EndProject")
    lines.append("Global")
    lines.append("EndGlobal")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\r\n".join(lines) + "\r\n", encoding="utf-8-sig")
    return path


def write_file(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def shop_solution(tmp_path: Path) -> Path:
    """Solution with one SDK project holding OrderService.cs."""
    root = tmp_path / "shop"
    write_file(root / "Orders" / "Orders.csproj", SDK_PROJECT)
    write_file(root / "Orders" / "OrderService.cs", ORDER_SERVICE)
    return write_sln(root / "Shop.sln", [("Orders", r"Orders\Orders.csproj")])
