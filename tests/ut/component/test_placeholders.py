"""占位符与路径解析测试"""

from __future__ import annotations

import re

import pytest

from uiget.core.component.models import ComponentManifest, ComponentRef, FileEntry
from uiget.core.component.placeholders import (
    PLACEHOLDERS,
    PathResolver,
    alias_to_directory,
    resolve_placeholders,
    resolve_target_path,
    rewrite_path_aliases,
    role_for,
    strip_js_extensions,
)
from uiget.core.exceptions import UnresolvedAliasError, ValidationError
from uiget.core.tsconfig import TypeScriptPathMap

SVELTE_ALIASES = {
    "components": "$lib/components",
    "utils": "$lib/utils",
    "ui": "$lib/components/ui",
    "hooks": "$lib/hooks",
    "lib": "$lib",
}


class TestResolvePlaceholders:
    @pytest.mark.parametrize("token", list(PLACEHOLDERS))
    def test_every_token_substituted(self, token: str, aliases: dict[str, str]) -> None:
        out = resolve_placeholders(f'import x from "{token}/x";', aliases)
        assert not re.search(r"\$[A-Z_]+\$", out)
        assert aliases[PLACEHOLDERS[token]] in out

    def test_utils_alias(self) -> None:
        out = resolve_placeholders('import { cn } from "$UTILS$";', {"utils": "@/lib/utils"})
        assert out == 'import { cn } from "@/lib/utils";'

    def test_unconfigured_alias_raises(self) -> None:
        with pytest.raises(UnresolvedAliasError) as exc:
            resolve_placeholders("$HOOKS$/use-x", {"utils": "@/utils"})
        assert exc.value.role == "hooks"
        assert exc.value.token == "$HOOKS$"

    def test_unreferenced_alias_not_required(self) -> None:
        assert resolve_placeholders("plain text", {}) == "plain text"


class TestStripJs:
    def test_import_export_dynamic(self) -> None:
        src = (
            'import { a } from "./a.js";\n'
            "export * from './b.js';\n"
            'const c = await import("./c.js");\n'
            'import "./side-effect.js";\n'
        )
        out = strip_js_extensions(src)
        assert ".js" not in out
        assert 'from "./a"' in out
        assert "from './b'" in out
        assert 'import("./c")' in out

    def test_placeholder_form(self) -> None:
        assert strip_js_extensions('from "$UTILS$.js"') == 'from "$UTILS$"'

    def test_placeholder_subpath(self) -> None:
        assert strip_js_extensions("import { x } from '$LIB$/x/y.js'") == "import { x } from '$LIB$/x/y'"

    def test_package_specifiers_untouched(self) -> None:
        src = (
            'import hljs from "highlight.js";\n'
            'import "chart.js";\n'
            'export { Chart } from "chart.js";\n'
            'const m = await import("marked.js");\n'
        )
        assert strip_js_extensions(src) == src

    def test_typescript_keeps_package_name(self) -> None:
        resolver = PathResolver({"utils": "$lib/utils"}, typescript=True)
        src = 'import hljs from "highlight.js";\nimport { cn } from "$UTILS$.js";\nimport a from "../a.js";'
        assert resolver.resolve_content(src) == (
            'import hljs from "highlight.js";\nimport { cn } from "$lib/utils";\nimport a from "../a";'
        )

    def test_json_import_untouched(self) -> None:
        src = 'import data from "./data.json";'
        assert strip_js_extensions(src) == src

    def test_typescript_rewrite_end_to_end(self) -> None:
        resolver = PathResolver({"utils": "@/utils"}, typescript=True)
        out = resolver.resolve_content('import { cn } from "$UTILS$.js"')
        assert out == 'import { cn } from "@/utils"'

    def test_non_typescript_keeps_js(self) -> None:
        resolver = PathResolver({"utils": "@/utils"}, typescript=False)
        assert resolver.resolve_content('import { cn } from "$UTILS$.js"') == 'import { cn } from "@/utils.js"'


class TestRewritePathAliases:
    def test_project_path_to_alias(self) -> None:
        ts = TypeScriptPathMap({"$lib": ["src/lib"], "@": ["src"]})
        out = rewrite_path_aliases('import { cn } from "src/lib/utils";', ts)
        assert out == 'import { cn } from "$lib/utils";'

    def test_longest_prefix_wins(self) -> None:
        ts = TypeScriptPathMap({"@": ["src"], "$ui": ["src/lib/components/ui"]})
        out = rewrite_path_aliases('import B from "src/lib/components/ui/button";', ts)
        assert out == 'import B from "$ui/button";'

    def test_relative_and_packages_untouched(self) -> None:
        ts = TypeScriptPathMap({"$lib": ["src/lib"]})
        src = 'import a from "./src/lib/x";\nimport b from "svelte";'
        assert rewrite_path_aliases(src, ts) == src


class TestResolveTargetPath:
    def test_ui_prefix_deduplicated(self) -> None:
        entry = FileEntry("ui/button/button.svelte", "", "registry:ui")
        assert resolve_target_path(entry, SVELTE_ALIASES) == "src/lib/components/ui/button/button.svelte"

    def test_hook_goes_to_hooks(self) -> None:
        entry = FileEntry("use-mobile.svelte.ts", "", "registry:hook")
        assert resolve_target_path(entry, SVELTE_ALIASES) == "src/lib/hooks/use-mobile.svelte.ts"

    def test_unknown_type_falls_back_to_components(self) -> None:
        entry = FileEntry("blocks/login.svelte", "", "registry:page")
        assert resolve_target_path(entry, SVELTE_ALIASES) == "src/lib/components/blocks/login.svelte"

    def test_file_type_missing_uses_component_type(self) -> None:
        entry = FileEntry("utils.ts", "", "")
        assert resolve_target_path(entry, SVELTE_ALIASES, component_type="registry:lib") == "src/lib/utils.ts"

    def test_unconfigured_role_falls_back(self) -> None:
        entry = FileEntry("use-x.ts", "", "registry:hook")
        out = resolve_target_path(entry, {"components": "src/components"})
        assert out == "src/components/use-x.ts"

    def test_style_substitution(self) -> None:
        entry = FileEntry("{style}/card.svelte", "", "registry:component")
        out = resolve_target_path(entry, {"components": "src/components"}, style="new-york")
        assert out == "src/components/new-york/card.svelte"

    def test_placeholder_target(self) -> None:
        entry = FileEntry("$UTILS$.ts", "", "registry:file")
        assert resolve_target_path(entry, SVELTE_ALIASES) == "src/lib/utils.ts"

    def test_tsconfig_mapping_preferred(self) -> None:
        ts = TypeScriptPathMap({"@": ["app"]})
        entry = FileEntry("ui/card.tsx", "", "registry:ui")
        out = resolve_target_path(entry, {"ui": "@/components/ui"}, ts_paths=ts)
        assert out == "app/components/ui/card.tsx"

    @pytest.mark.parametrize("target", ["../../etc/passwd", "../outside.ts"])
    def test_escape_rejected(self, target: str) -> None:
        with pytest.raises(ValidationError, match="越出项目目录"):
            resolve_target_path(FileEntry(target, "", ""), {"components": "."})

    def test_no_alias_at_all(self) -> None:
        with pytest.raises(UnresolvedAliasError):
            resolve_target_path(FileEntry("x.ts", "", "registry:ui"), {})


class TestHelpers:
    @pytest.mark.parametrize("tag,role", [
        ("registry:ui", "ui"), ("registry:hook", "hooks"), ("registry:lib", "lib"),
        ("registry:util", "utils"), ("registry:block", "components"), ("", "components"),
    ])
    def test_role_for(self, tag: str, role: str) -> None:
        assert role_for(tag) == role

    def test_lib_default(self) -> None:
        assert alias_to_directory("$lib/components", {}) == "src/lib/components"
        assert alias_to_directory("$lib/components", {"lib": "app/lib"}) == "app/lib/components"

    def test_resolve_manifest(self, tmp_path) -> None:
        m = ComponentManifest(
            name="badge", type="registry:ui", registry_id="default",
            files=(FileEntry("ui/badge/badge.svelte", 'import { cn } from "$UTILS$.js";', "registry:ui"),),
        )
        resolver = PathResolver(SVELTE_ALIASES, typescript=True, project_root=tmp_path)
        (resolved,) = resolver.resolve_manifest(m)
        assert resolved.relative_path == "src/lib/components/ui/badge/badge.svelte"
        assert resolved.path == tmp_path / "src/lib/components/ui/badge/badge.svelte"
        assert resolved.content == 'import { cn } from "$lib/utils";'
        assert resolved.component == ComponentRef("default", "badge")
