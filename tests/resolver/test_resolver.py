"""Tests for ESM/CJS module resolution."""

from esmready.config.schema import CheckerConfig
from esmready.models import ModuleKind, Resolution, ResolveFailure, ResolveFailureKind
from esmready.parsers.package_json import PackageJsonCache
from esmready.resolver.resolver import ModuleResolver, ResolveMode


def _resolver(**config) -> ModuleResolver:
    return ModuleResolver(PackageJsonCache(), CheckerConfig(**config))


def test_esm_relative_requires_full_path(project):
    pkg = project.add_package(
        "x", {"index.js": 'import "./util";', "util.js": ""}, {"type": "module"}
    )
    resolver = _resolver()

    outcome = resolver.resolve("./util", pkg / "index.js", ResolveMode.ESM)

    assert isinstance(outcome, ResolveFailure)
    assert outcome.kind is ResolveFailureKind.MISSING_FILE_EXTENSION
    assert outcome.inferred == pkg / "util.js"
    assert outcome.from_path == pkg / "index.js"


def test_esm_exact_path_resolves(project):
    pkg = project.add_package("x", {"index.js": "", "util.js": ""}, {"type": "module"})
    outcome = _resolver().resolve("./util.js", pkg / "index.js", ResolveMode.ESM)
    assert isinstance(outcome, Resolution)
    assert outcome.file.path == pkg / "util.js"
    assert outcome.file.kind is ModuleKind.ESM


def test_cjs_relative_infers_extensions_and_directories(project):
    pkg = project.add_package(
        "x",
        {
            "index.js": "",
            "util.js": "",
            "data.json": "{}",
            "lib/index.js": "",
            "custom/package.json": '{"main": "entry"}',
            "custom/entry.js": "",
        },
    )
    resolver = _resolver()
    origin = pkg / "index.js"

    assert resolver.resolve("./util", origin, ResolveMode.CJS).file.path == pkg / "util.js"
    assert resolver.resolve("./data", origin, ResolveMode.CJS).file.kind is ModuleKind.JSON
    assert resolver.resolve("./lib", origin, ResolveMode.CJS).file.path == pkg / "lib" / "index.js"
    assert (
        resolver.resolve("./custom", origin, ResolveMode.CJS).file.path
        == pkg / "custom" / "entry.js"
    )


def test_dot_specifiers_only_resolve_directories(project):
    pkg = project.add_package(
        "x",
        {"index.js": "", "lib/a.js": "", "lib/a/index.js": "", "lib/a/x.js": "", "lib.js": ""},
    )
    resolver = _resolver()
    origin = pkg / "lib" / "a" / "x.js"
    index = pkg / "lib" / "a" / "index.js"

    assert resolver.resolve(".", origin, ResolveMode.CJS).file.path == index
    assert resolver.resolve("../a/", origin, ResolveMode.CJS).file.path == index
    assert resolver.resolve("../..", origin, ResolveMode.CJS).file.path == pkg / "index.js"
    outcome = resolver.resolve("..", origin, ResolveMode.CJS)
    assert outcome.kind is ResolveFailureKind.FILE_NOT_FOUND


def test_directory_import_from_esm_is_missing_extension(project):
    pkg = project.add_package("x", {"index.js": "", "lib/index.js": ""}, {"type": "module"})
    outcome = _resolver().resolve("./lib", pkg / "index.js", ResolveMode.ESM)
    assert outcome.kind is ResolveFailureKind.MISSING_FILE_EXTENSION
    assert outcome.inferred == pkg / "lib" / "index.js"


def test_missing_relative_file(project):
    pkg = project.add_package("x", {"index.js": ""})
    for mode in ResolveMode:
        outcome = _resolver().resolve("./nope", pkg / "index.js", mode)
        assert outcome.kind is ResolveFailureKind.FILE_NOT_FOUND
        assert outcome.specifier == "./nope"


def test_bare_specifier_uses_main(project):
    dep = project.add_package("dep", {"lib/main.js": ""}, {"main": "lib/main"})
    project.write("src/a.js")
    outcome = _resolver().resolve("dep", project.root / "src" / "a.js", ResolveMode.ESM)
    assert outcome.file.path == dep / "lib" / "main.js"
    assert outcome.package.name == "dep"
    assert outcome.file.kind is ModuleKind.CJS


def test_bare_specifier_defaults_to_index(project):
    dep = project.add_package("dep", {"index.js": ""})
    outcome = _resolver().resolve("dep", project.root / "a.js", ResolveMode.CJS)
    assert outcome.file.path == dep / "index.js"


def test_use_module_field(project):
    dep = project.add_package(
        "dep", {"cjs.js": "", "esm.mjs": ""}, {"main": "cjs.js", "module": "esm.mjs"}
    )
    origin = project.root / "a.js"
    assert _resolver().resolve("dep", origin, ResolveMode.ESM).file.path == dep / "cjs.js"
    assert (
        _resolver(use_module_field=True).resolve("dep", origin, ResolveMode.ESM).file.path
        == dep / "esm.mjs"
    )


def test_nearest_node_modules_wins(project):
    project.add_package("dep", {"index.js": ""}, {"version": "1.0.0"})
    outer = project.add_package("outer", {"index.js": 'require("dep")'})
    nested = project.add_package("dep", {"index.js": ""}, {"version": "2.0.0"}, base=outer)

    outcome = _resolver().resolve("dep", outer / "index.js", ResolveMode.CJS)

    assert outcome.package.version == "2.0.0"
    assert outcome.file.path == nested / "index.js"


def test_exports_conditions_follow_mode(project):
    dep = project.add_package(
        "dep",
        {"index.mjs": "", "index.cjs": ""},
        {"exports": {"import": "./index.mjs", "require": "./index.cjs"}},
    )
    resolver = _resolver()
    origin = project.root / "a.js"

    esm = resolver.resolve("dep", origin, ResolveMode.ESM)
    cjs = resolver.resolve("dep", origin, ResolveMode.CJS)

    assert (esm.file.path, esm.file.kind) == (dep / "index.mjs", ModuleKind.ESM)
    assert (cjs.file.path, cjs.file.kind) == (dep / "index.cjs", ModuleKind.CJS)


def test_unexported_subpath(project):
    project.add_package(
        "dep", {"index.js": "", "internal.js": ""}, {"exports": {".": "./index.js"}}
    )
    outcome = _resolver().resolve("dep/internal.js", project.root / "a.js", ResolveMode.CJS)
    assert outcome.kind is ResolveFailureKind.PACKAGE_PATH_NOT_EXPORTED


def test_export_target_must_exist(project):
    project.add_package("dep", {}, {"exports": "./dist/index.js"})
    outcome = _resolver().resolve("dep", project.root / "a.js", ResolveMode.ESM)
    assert outcome.kind is ResolveFailureKind.FILE_NOT_FOUND


def test_subpath_without_exports_is_lenient_in_both_modes(project):
    dep = project.add_package("dep", {"lib/x.js": ""})
    for mode in ResolveMode:
        outcome = _resolver().resolve("dep/lib/x", project.root / "a.js", mode)
        assert outcome.file.path == dep / "lib" / "x.js"


def test_package_not_installed(project):
    outcome = _resolver().resolve("ghost", project.root / "a.js", ResolveMode.ESM)
    assert outcome.kind is ResolveFailureKind.PACKAGE_NOT_FOUND
    assert "ghost" in outcome.message


def test_optional_peer_not_installed(project):
    pkg = project.add_package(
        "ui",
        {"index.js": ""},
        {
            "peerDependencies": {"vue": "*", "react": "*"},
            "peerDependenciesMeta": {"vue": {"optional": True}},
        },
    )
    resolver = _resolver()
    assert (
        resolver.resolve("vue", pkg / "index.js", ResolveMode.ESM).kind
        is ResolveFailureKind.OPTIONAL_PEER_NOT_INSTALLED
    )
    assert (
        resolver.resolve("react", pkg / "index.js", ResolveMode.ESM).kind
        is ResolveFailureKind.PACKAGE_NOT_FOUND
    )


def test_builtins(project):
    resolver = _resolver(extra_builtins=["electron"])
    origin = project.root / "a.js"
    for specifier in ("fs", "node:fs/promises", "electron"):
        outcome = resolver.resolve(specifier, origin, ResolveMode.ESM)
        assert isinstance(outcome, Resolution)
        assert outcome.builtin
        assert outcome.file is None


def test_trailing_slash_reaches_userland_package(project):
    dep = project.add_package("string_decoder", {"index.js": ""})
    outcome = _resolver().resolve("string_decoder/", project.root / "a.js", ResolveMode.CJS)
    assert not outcome.builtin
    assert outcome.file.path == dep / "index.js"


def test_self_reference_through_exports(project):
    pkg = project.add_package(
        "self",
        {"index.js": "", "util.js": ""},
        {"type": "module", "exports": {"./util": "./util.js", ".": "./index.js"}},
    )
    outcome = _resolver().resolve("self/util", pkg / "index.js", ResolveMode.ESM)
    assert outcome.file.path == pkg / "util.js"
    assert outcome.package.root == pkg


def test_invalid_dependency_manifest(project):
    project.write("node_modules/broken/package.json", "{")
    outcome = _resolver().resolve("broken", project.root / "a.js", ResolveMode.CJS)
    assert outcome.kind is ResolveFailureKind.INVALID_MANIFEST


def test_module_kind_from_extension_and_nearest_manifest(project):
    project.write_manifest("pkg", {"type": "module"})
    project.write_manifest("pkg/cjs", {"type": "commonjs"})
    resolver = _resolver()
    root = project.root

    assert resolver.module_kind(root / "pkg" / "a.js") is ModuleKind.ESM
    assert resolver.module_kind(root / "pkg" / "cjs" / "a.js") is ModuleKind.CJS
    assert resolver.module_kind(root / "pkg" / "a.cjs") is ModuleKind.CJS
    assert resolver.module_kind(root / "pkg" / "cjs" / "a.mjs") is ModuleKind.ESM
    assert resolver.module_kind(root / "pkg" / "a.node") is ModuleKind.ADDON
    assert resolver.module_kind(root / "loose.js") is ModuleKind.CJS


def test_entry_points_from_exports_and_main(project):
    with_exports = project.add_package(
        "a",
        {"index.mjs": "", "index.cjs": "", "extra.js": ""},
        {
            "exports": {
                ".": {"import": "./index.mjs", "require": "./index.cjs"},
                "./extra": "./extra.js",
            }
        },
    )
    with_main = project.add_package("b", {"main.js": ""}, {"main": "main.js"})
    empty = project.add_package("c", {"README.md": ""})
    cache = PackageJsonCache()
    resolver = ModuleResolver(cache)

    files, failures = resolver.entry_points(cache.load(with_exports))
    assert [f.path for f in files] == [with_exports / "index.mjs", with_exports / "extra.js"]
    assert failures == []

    files, _ = resolver.entry_points(cache.load(with_main))
    assert [f.path for f in files] == [with_main / "main.js"]

    files, failures = resolver.entry_points(cache.load(empty))
    assert files == []
    assert [f.kind for f in failures] == [ResolveFailureKind.NO_ENTRY_POINT]


def test_require_only_exports_fall_back_to_cjs_conditions(project):
    pkg = project.add_package("r", {"index.cjs": ""}, {"exports": {"require": "./index.cjs"}})
    cache = PackageJsonCache()
    files, failures = ModuleResolver(cache).entry_points(cache.load(pkg))
    assert [f.path for f in files] == [pkg / "index.cjs"]
    assert failures == []
