"""Tests for DeclarationResolver and ResolutionSession."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from declscope.config.models import DeclScopeConfig, ResolverConfig
from declscope.core.errors import ErrorCode
from declscope.core.logging import get_request_id
from declscope.resolve import (
    DeclarationResolver,
    ResolutionRequest,
    ResolutionSession,
    WorkspaceResolver,
)
from tests.resolve.conftest import ORDER_SERVICE, make_document, write_file, write_sln
from tests.resolve.test_workspace import CountingLoader


def _request(solution: Path, needle: str, selection: str, **kwargs: object) -> ResolutionRequest:
    path = solution.parent / "Orders" / "OrderService.cs"
    text = kwargs.get("document_text") or ORDER_SERVICE
    assert isinstance(text, str)
    return ResolutionRequest(
        solution_path=solution,
        document_path=path,
        caret_offset=text.index(needle),
        selection_text=selection,
        **kwargs,  # type: ignore[arg-type]
    )


class TestResolve:
    """End-to-end resolution outcomes."""

    @pytest.mark.asyncio
    async def test_success_builds_descriptor(self, shop_solution: Path) -> None:
        resolver = DeclarationResolver()

        outcome = await resolver.resolve(_request(shop_solution, "Save", "PlaceOrder"))

        assert outcome.ok
        assert outcome.error is None
        assert outcome.diagnostics == ()
        assert outcome.descriptor is not None
        assert outcome.descriptor.to_args() == [
            str(shop_solution),
            "Shop.Orders",
            "OrderService",
            "PlaceOrder",
        ]
        data = outcome.to_dict()
        assert data["ok"] is True
        assert data["args"] == outcome.descriptor.to_args()
        assert data["qualified_name"]["namespace_path"] == ["Shop", "Orders"]
        await resolver.close()

    @pytest.mark.asyncio
    async def test_repeated_resolution_is_stable(self, shop_solution: Path) -> None:
        resolver = DeclarationResolver()
        request = _request(shop_solution, "Save", "PlaceOrder")

        first = await resolver.resolve(request)
        second = await resolver.resolve(request)

        assert first == second
        assert resolver.trees.stats.parses == 1
        assert resolver.workspace.load_count == 1
        await resolver.close()

    @pytest.mark.asyncio
    async def test_repeated_buffer_after_disk_read_is_not_reparsed(
        self, shop_solution: Path
    ) -> None:
        resolver = DeclarationResolver()
        await resolver.resolve(_request(shop_solution, "Save", "PlaceOrder"))
        draft = ORDER_SERVICE.replace("Save(id);", "Save(id); Audit();")

        outcomes = [
            await resolver.resolve(
                _request(
                    shop_solution,
                    "Audit",
                    "PlaceOrder",
                    document_text=draft,
                    document_version=2,
                )
            )
            for _ in range(3)
        ]

        assert all(outcome.ok for outcome in outcomes)
        assert resolver.trees.stats.parses == 2
        assert resolver.trees.stats.hits == 2
        await resolver.close()

    @pytest.mark.asyncio
    async def test_not_in_method_fails_with_message(self, shop_solution: Path) -> None:
        resolver = DeclarationResolver()

        outcome = await resolver.resolve(_request(shop_solution, "total", "total"))

        assert not outcome.ok
        assert outcome.descriptor is None
        assert outcome.qualified_name is None
        assert outcome.error == "The caret is not inside a method declaration."
        await resolver.close()

    @pytest.mark.asyncio
    async def test_empty_selection_fails(self, shop_solution: Path) -> None:
        resolver = DeclarationResolver()

        outcome = await resolver.resolve(_request(shop_solution, "Save", "  "))

        assert outcome.error == "Select a method name before running the command."
        await resolver.close()

    @pytest.mark.asyncio
    async def test_out_of_range_offset_fails(self, shop_solution: Path) -> None:
        resolver = DeclarationResolver()
        request = ResolutionRequest(
            solution_path=shop_solution,
            document_path=shop_solution.parent / "Orders" / "OrderService.cs",
            caret_offset=10_000,
            selection_text="PlaceOrder",
        )

        outcome = await resolver.resolve(request)

        assert not outcome.ok
        assert "outside the document" in (outcome.error or "")
        await resolver.close()

    @pytest.mark.asyncio
    async def test_missing_solution_fails(self, tmp_path: Path) -> None:
        resolver = DeclarationResolver()
        request = ResolutionRequest(
            solution_path=tmp_path / "Missing.sln",
            document_path=tmp_path / "A.cs",
            caret_offset=0,
            selection_text="M",
        )

        outcome = await resolver.resolve(request)

        assert outcome.error is not None and "Solution not found" in outcome.error
        await resolver.close()

    @pytest.mark.asyncio
    async def test_selection_mismatch_is_a_diagnostic(self, shop_solution: Path) -> None:
        resolver = DeclarationResolver()

        outcome = await resolver.resolve(_request(shop_solution, "Save", "Save"))

        assert outcome.ok
        assert outcome.descriptor is not None
        assert outcome.descriptor.method_name == "Save"
        assert outcome.qualified_name is not None
        assert outcome.qualified_name.resolved_method_name == "PlaceOrder"
        assert [d.code for d in outcome.diagnostics] == [ErrorCode.SELECTION_MISMATCH]
        await resolver.close()

    @pytest.mark.asyncio
    async def test_editor_buffer_overrides_disk(self, shop_solution: Path) -> None:
        resolver = DeclarationResolver()
        draft = ORDER_SERVICE.replace("PlaceOrder", "SubmitOrder")

        outcome = await resolver.resolve(
            _request(
                shop_solution,
                "Save",
                "SubmitOrder",
                document_text=draft,
                document_version=99,
            )
        )

        assert outcome.ok
        assert outcome.qualified_name is not None
        assert outcome.qualified_name.resolved_method_name == "SubmitOrder"
        await resolver.close()

    @pytest.mark.asyncio
    async def test_broken_enclosing_scope_fails(self, shop_solution: Path) -> None:
        resolver = DeclarationResolver()
        broken = "namespace N { class C { void M() { Run( } }"

        outcome = await resolver.resolve(
            _request(shop_solution, "Run", "M", document_text=broken, document_version=7)
        )

        assert not outcome.ok
        assert outcome.qualified_name is None
        assert outcome.error is not None
        assert outcome.error.startswith("Syntax errors around method 'M'")
        await resolver.close()

    @pytest.mark.asyncio
    async def test_class_only_config_rejects_struct(self, tmp_path: Path) -> None:
        text = "namespace N\n{\n    struct Point\n    {\n        void Move() { Step(); }\n    }\n}"
        write_file(tmp_path / "Geo" / "Geo.csproj", '<Project Sdk="Microsoft.NET.Sdk" />')
        source = write_file(tmp_path / "Geo" / "Point.cs", text)
        sln = write_sln(tmp_path / "Geo.sln", [("Geo", r"Geo\Geo.csproj")])
        request = ResolutionRequest(
            solution_path=sln,
            document_path=source,
            caret_offset=text.index("Step"),
            selection_text="Move",
        )

        default = DeclarationResolver()
        strict = DeclarationResolver(
            DeclScopeConfig(resolver=ResolverConfig(type_kinds=["class_declaration"]))
        )

        assert (await default.resolve(request)).ok
        outcome = await strict.resolve(request)
        assert outcome.error == "Method 'Move' is not declared inside a class."
        await default.close()
        await strict.close()

    @pytest.mark.asyncio
    async def test_ambiguity_diagnostic_propagates(self, tmp_path: Path) -> None:
        write_file(
            tmp_path / "App" / "App.csproj",
            '<Project Sdk="Microsoft.NET.Sdk">\n  <ItemGroup>\n'
            '    <Compile Include="..\\Shared\\Util.cs" />\n  </ItemGroup>\n</Project>\n',
        )
        write_file(tmp_path / "Shared" / "Shared.csproj", '<Project Sdk="Microsoft.NET.Sdk" />')
        text = "class Util { void Log() { Write(); } }"
        util = write_file(tmp_path / "Shared" / "Util.cs", text)
        sln = write_sln(
            tmp_path / "App.sln",
            [("App", r"App\App.csproj"), ("Shared", r"Shared\Shared.csproj")],
        )
        resolver = DeclarationResolver()

        outcome = await resolver.resolve(
            ResolutionRequest(
                solution_path=sln,
                document_path=util,
                caret_offset=text.index("Write"),
                selection_text="Log",
            )
        )

        assert outcome.ok
        assert [d.code for d in outcome.diagnostics] == [ErrorCode.AMBIGUOUS_DOCUMENT_MATCH]
        await resolver.close()

    @pytest.mark.asyncio
    async def test_request_id_cleared_after_resolution(self, shop_solution: Path) -> None:
        resolver = DeclarationResolver()
        await resolver.resolve(_request(shop_solution, "Save", "PlaceOrder"))
        assert get_request_id() is None
        await resolver.close()

    def test_qualify_in_memory_document(self) -> None:
        resolver = DeclarationResolver()
        name = resolver.qualify(make_document(ORDER_SERVICE), ORDER_SERVICE.index("Save"), "Save")

        assert name.type_name == "OrderService"
        assert name.method_matches is False


class TestRequestValidation:
    """Request snapshots."""

    def test_buffer_text_requires_version(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            ResolutionRequest(
                solution_path=tmp_path / "A.sln",
                document_path=tmp_path / "A.cs",
                caret_offset=0,
                selection_text="M",
                document_text="class A { }",
            )


class TestResolutionSession:
    """Supersede semantics."""

    @pytest.mark.asyncio
    async def test_new_submission_cancels_previous(self, shop_solution: Path) -> None:
        loader = CountingLoader(delay=0.2)
        resolver = DeclarationResolver(workspace=WorkspaceResolver(loader=loader))
        session = ResolutionSession(resolver)

        first = session.submit(_request(shop_solution, "Save", "PlaceOrder"))
        await asyncio.sleep(0.05)
        second = session.submit(_request(shop_solution, "Save", "PlaceOrder"))

        outcome = await second
        with pytest.raises(asyncio.CancelledError):
            await first

        assert outcome.ok
        assert session.current is second
        assert loader.calls == 1
        await session.aclose()
        await resolver.close()

    @pytest.mark.asyncio
    async def test_snapshot_is_taken_synchronously(self, shop_solution: Path) -> None:
        resolver = DeclarationResolver()
        session = ResolutionSession(resolver)
        editor = {"selection": "PlaceOrder"}
        calls: list[str] = []

        def snapshot() -> ResolutionRequest:
            calls.append(editor["selection"])
            return _request(shop_solution, "Save", editor["selection"])

        task = session.submit(snapshot)
        # Editor state moves on after the command fired
        editor["selection"] = "Other"

        outcome = await task

        assert calls == ["PlaceOrder"]
        assert outcome.descriptor is not None
        assert outcome.descriptor.method_name == "PlaceOrder"
        await session.aclose()
        await resolver.close()

    @pytest.mark.asyncio
    async def test_aclose_cancels_running(self, shop_solution: Path) -> None:
        loader = CountingLoader(delay=0.2)
        resolver = DeclarationResolver(workspace=WorkspaceResolver(loader=loader))
        session = ResolutionSession(resolver)
        task = session.submit(_request(shop_solution, "Save", "PlaceOrder"))
        await asyncio.sleep(0.05)

        await session.aclose()

        assert task.cancelled()
        assert session.current is None
        await resolver.close()
