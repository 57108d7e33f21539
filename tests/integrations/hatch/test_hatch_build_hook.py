from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from tests.helpers import write_files

pytest.importorskip("hatchling")

from wiregen.integrations.hatch import WiregenBuildHook, hatch_register_build_hook  # noqa: E402


def _hook(root: Path, config: dict[str, Any]) -> WiregenBuildHook:
    return WiregenBuildHook(str(root), config, None, None, str(root / "dist"), "wheel")


def test_build_hook_writes_generated_modules_into_source_root(tmp_path: Path) -> None:
    write_files(
        tmp_path,
        {
            "src/shop/__init__.py": "",
            "src/shop/cart.py": """
                from inject_markers import inject_scoped


                @inject_scoped
                class Cart:
                    pass
            """,
        },
    )

    _hook(tmp_path, {"assembly-name": "shop"}).initialize("standard", {})

    generated = (tmp_path / "src" / "generated_services_extension.py").read_text(encoding="utf-8")
    assert (tmp_path / "src" / "inject_markers.py").is_file()
    assert "def discover_in_shop(services: ServiceRegistry) -> None:" in generated
    assert "services.add_scoped(shop.cart.Cart)" in generated


def test_build_hook_resolves_contracts_from_references(tmp_path: Path) -> None:
    write_files(
        tmp_path,
        {
            "shared/ports/__init__.py": """
                from typing import Protocol


                class Clock(Protocol):
                    pass


                class _Hidden(Protocol):
                    pass
            """,
            "lib/clock.py": """
                from inject_markers import inject_transient
                from ports import Clock, _Hidden


                @inject_transient
                class SystemClock(Clock, _Hidden):
                    pass
            """,
        },
    )

    _hook(
        tmp_path,
        {"source-root": "lib", "assembly-name": "Lib", "references": {"Shared": "shared"}},
    ).initialize("standard", {})

    generated = (tmp_path / "lib" / "generated_services_extension.py").read_text(encoding="utf-8")
    assert "services.add_transient(ports.Clock, clock.SystemClock)" in generated
    assert "_Hidden" not in generated


def test_build_hook_without_markers_writes_only_marker_definitions(tmp_path: Path) -> None:
    write_files(tmp_path, {"src/app.py": "x = 1\n"})

    _hook(tmp_path, {"assembly-name": "app"}).initialize("standard", {})

    assert sorted(path.name for path in (tmp_path / "src").iterdir()) == ["app.py", "inject_markers.py"]


def test_hook_is_registered_with_hatch() -> None:
    assert hatch_register_build_hook() is WiregenBuildHook
    assert WiregenBuildHook.PLUGIN_NAME == "wiregen"
