from __future__ import annotations

import json
import re
import shutil
import subprocess
from pathlib import Path

import pytest

from amdcompact import (
    BindingCollisionError,
    BundleParseError,
    ConvertMode,
    ConvertOptions,
    EntryResolutionError,
    InvalidOptionsError,
    UnknownModeError,
    analyze,
    convert,
)
from amdcompact.orchestrator import normalize_options
from amdcompact.synthesis.emission import bundle_hash

_DEFINE_HEAD_RE = re.compile(r'^define\("([^"]*)", \[ (.*?) \], function', re.MULTILINE)

TWO_MODULES = "\n".join(
    [
        'define("a", [], function () {A();});',
        'define("b", ["a"], function () {require("a");});',
    ]
)

SINGLE_ROOT = "\n".join(
    [
        'define("lib", ["e"], function (require, exports, module) {',
        'module.exports = function (e) { return e.wrap(); };',
        "});",
        'define("r", ["e", "lib"], function (require, exports, module) {',
        'module.exports = require("lib")(require("e"));',
        "});",
    ]
)

TWO_ROOTS = "\n".join(
    [
        'define("shared", [], function (require, exports, module) {',
        'module.exports = "s";',
        "});",
        'define("p", ["shared", "e"], function (require, exports, module) {',
        'exports.name = "p:" + require("shared") + require("e").tag;',
        "});",
        'define("q", ["shared", "e"], function (require, exports, module) {',
        'exports.name = "q:" + require("shared") + require("e").tag;',
        "});",
    ]
)


def _module_code(*pairs: tuple[str, str]) -> str:
    return "\n".join(
        "\n".join(
            [
                f"var {binding} = function () {{",
                "var exports = {}, module = { exports: exports };",
                body,
                "return module.exports;",
                "}();",
            ]
        )
        for binding, body in pairs
    )


def test_convert_standalone_is_the_default() -> None:
    expected = "(function () {\n" + _module_code(("$a", "A();"), ("$b", "$a;")) + "\n}());"
    assert convert(TWO_MODULES) == expected
    assert convert(TWO_MODULES, "standalone") == expected
    assert convert(TWO_MODULES, {"mode": "standalone"}) == expected
    assert convert(TWO_MODULES, ConvertOptions()) == expected


def test_convert_standalone_of_empty_bundle() -> None:
    assert convert("") == "(function () {\n\n}());"


def test_convert_compact_single_entry() -> None:
    output = convert(SINGLE_ROOT, "compact")
    heads = _DEFINE_HEAD_RE.findall(output)
    assert heads == [("r", '"e"')]
    assert 'var $e = require("e");' in output
    assert output.rstrip().endswith("module.exports = $r;\n});")
    assert "$lib($e)" in output
    assert 'require("lib")' not in output


def test_convert_compact_multi_entry() -> None:
    output = convert(TWO_ROOTS, {"mode": "compact"})
    heads = _DEFINE_HEAD_RE.findall(output)
    assert len(heads) == 3
    bundle_id, deps = heads[0]
    assert re.fullmatch(r"[0-9a-f]{40}", bundle_id)
    assert deps == '"e"'
    assert heads[1:] == [("p", f'"{bundle_id}"'), ("q", f'"{bundle_id}"')]
    assert "exports.$p = $p;\nexports.$q = $q;" in output
    assert f'module.exports = require("{bundle_id}").$p;' in output
    assert f'module.exports = require("{bundle_id}").$q;' in output


def test_multi_entry_bundle_id_is_hash_of_module_code() -> None:
    output = convert(TWO_ROOTS, "compact")
    shared_body = output.split("\n", 2)[2]
    code = shared_body.split("\nexports.$p = $p;")[0]
    assert _DEFINE_HEAD_RE.findall(output)[0][0] == bundle_hash(code)
    assert convert(TWO_ROOTS, "compact") == output


def test_explicit_entries_select_shape_and_order() -> None:
    single = convert(TWO_ROOTS, {"mode": "compact", "entries": ["q"]})
    assert [head[0] for head in _DEFINE_HEAD_RE.findall(single)] == ["q"]
    assert single.rstrip().endswith("module.exports = $q;\n});")

    multi = convert(TWO_ROOTS, ConvertOptions(mode="compact", entries=("q", "p")))
    assert [head[0] for head in _DEFINE_HEAD_RE.findall(multi)][1:] == ["q", "p"]


@pytest.mark.parametrize(
    ("options", "message"),
    [
        ({"mode": "compact", "entries": []}, "empty"),
        ({"mode": "compact", "entries": ["shared"]}, "not root modules"),
        ({"mode": "compact", "entries": ["missing"]}, "not root modules"),
        ({"mode": "compact", "entries": ["p", "p"]}, "duplicates"),
    ],
)
def test_convert_rejects_bad_entries(options: dict[str, object], message: str) -> None:
    with pytest.raises(EntryResolutionError, match=message):
        convert(TWO_ROOTS, options)


def test_convert_compact_without_roots_is_rejected() -> None:
    cyclic = 'define("a", ["b"], function () {});\ndefine("b", ["a"], function () {});'
    with pytest.raises(EntryResolutionError, match="no root modules"):
        convert(cyclic, "compact")
    assert convert(cyclic).startswith("(function () {")


@pytest.mark.parametrize("mode", ["bundle", "", "COMPACT"])
def test_convert_rejects_unknown_mode(mode: str) -> None:
    with pytest.raises(UnknownModeError):
        convert(TWO_MODULES, mode)


@pytest.mark.parametrize("options", [5, ["compact"], {"entries": "p"}, {"mode": 3}])
def test_convert_rejects_invalid_options(options: object) -> None:
    with pytest.raises(InvalidOptionsError):
        convert(TWO_MODULES, options)  # type: ignore[arg-type]


def test_normalize_options_shapes() -> None:
    assert normalize_options(None) == ConvertOptions()
    assert normalize_options("compact") == ConvertOptions(mode=ConvertMode.COMPACT)
    assert normalize_options({"mode": None}).mode is ConvertMode.STANDALONE
    options = normalize_options({"mode": "compact", "entries": ["a"]})
    assert options.entries == ("a",)
    with pytest.raises(UnknownModeError):
        ConvertOptions(mode="other")  # type: ignore[arg-type]


def test_convert_options_rejects_string_entries() -> None:
    with pytest.raises(InvalidOptionsError):
        ConvertOptions(mode="compact", entries="app")  # type: ignore[arg-type]
    assert ConvertOptions(mode="compact", entries=["app"]).entries == ("app",)


def test_convert_rejects_colliding_bindings() -> None:
    text = 'define("a-b", [], function () {});\ndefine("x", ["a.b"], function () {});'
    with pytest.raises(BindingCollisionError):
        convert(text)


def test_convert_propagates_parse_errors() -> None:
    with pytest.raises(BundleParseError):
        convert('define("a", [], function () {', "compact")


def test_analyze_returns_records_and_classification() -> None:
    graph = analyze(TWO_ROOTS)
    assert [record.id for record in graph.records] == ["shared", "p", "q"]
    assert graph.classification.roots == ("p", "q")
    assert graph.classification.internals == ("shared",)
    assert graph.classification.externals == ("e",)


def _run_node(tmp_path: Path, script: str) -> list[str]:
    node = shutil.which("node")
    if node is None:
        pytest.skip("node is not available")
    path = tmp_path / "run.js"
    path.write_text(script, encoding="utf-8")
    completed = subprocess.run([node, str(path)], capture_output=True, text=True, check=True)
    return json.loads(completed.stdout)


def test_standalone_output_runs_every_module(tmp_path: Path) -> None:
    bundle = "\n".join(
        [
            'define("a", [], function (require, exports, module) {',
            'trace.push("a");',
            "});",
            'define("b", ["x"], function (require, exports, module) {',
            'var name = "x";',
            'trace.push("b:" + require(name).name);',
            "});",
        ]
    )
    prelude = "var trace = [];\nvar require = function (id) { return { name: id }; };\n"
    script = prelude + convert(bundle) + "\nconsole.log(JSON.stringify(trace));\n"
    assert _run_node(tmp_path, script) == ["a", "b:x"]


def test_compact_output_resolves_through_amd_loader(tmp_path: Path) -> None:
    loader = "\n".join(
        [
            "var registry = {}, cache = {};",
            'registry.e = function (require, exports, module) { module.exports = { tag: "!" }; };',
            "function define(id, deps, factory) { registry[id] = factory; }",
            "function require(id) {",
            "  if (!(id in cache)) {",
            "    var module = { exports: {} };",
            "    cache[id] = module;",
            "    registry[id](require, module.exports, module);",
            "  }",
            "  return cache[id].exports;",
            "}",
        ]
    )
    script = (
        loader
        + "\n"
        + convert(TWO_ROOTS, "compact")
        + '\nconsole.log(JSON.stringify([require("p").name, require("q").name]));\n'
    )
    assert _run_node(tmp_path, script) == ["p:s!", "q:s!"]


def test_never_marker_raises_with_env() -> None:
    from amdcompact.exceptions import NeverThrown
    from amdcompact.invariants import never

    with pytest.raises(NeverThrown) as excinfo:
        never("unhandled conversion mode", mode="other")
    assert str(excinfo.value) == "unhandled conversion mode"
    assert excinfo.value.env == {"mode": "other"}
