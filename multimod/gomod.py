"""Module manifest (go.mod) handling.

Provides functions for reading a manifest's module path and requirements,
and for rewriting the version of required modules in place. Only the
directives multimod needs are understood; everything else in the file is
preserved byte for byte.
"""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel

MANIFEST_FILENAME = "go.mod"

# "v" + MAJOR.MINOR.PATCH with optional prerelease and build suffixes.
SEMVER_LITERAL = r"v\d+\.\d+\.\d+(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?"

_MODULE_RE = re.compile(r"^\s*module\s+(\S+)")
_REQUIRE_LINE_RE = re.compile(r"^(\S+)\s+(\S+)$")


class ModRequirement(BaseModel):
    """One entry of a manifest's require section."""

    path: str
    version: str


def _strip_comment(line: str) -> str:
    return line.split("//", 1)[0].strip()


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"`":
        return value[1:-1]
    return value


def parse_module_path(text: str) -> str | None:
    """Return the path from the manifest's module directive, if any.

    Examples:
        'module example.com/repo\\n' → "example.com/repo"
        'module "example.com/repo"' → "example.com/repo"
    """
    for line in text.splitlines():
        match = _MODULE_RE.match(_strip_comment(line))
        if match:
            return _unquote(match.group(1))
    return None


def parse_requirements(text: str) -> list[ModRequirement]:
    """Collect every requirement from single-line and block require directives.

    Trailing comments such as "// indirect" are ignored.

    Examples:
        "require example.com/a v1.0.0" → [ModRequirement(example.com/a, v1.0.0)]
        "require (\\n\\texample.com/a v1.0.0\\n)" → same
    """
    requirements: list[ModRequirement] = []
    in_block = False
    for raw in text.splitlines():
        line = _strip_comment(raw)
        if not line:
            continue
        if in_block:
            if line == ")":
                in_block = False
                continue
            entry = line
        elif line.startswith("require"):
            rest = line[len("require") :].strip()
            if rest == "(":
                in_block = True
                continue
            entry = rest
        else:
            continue
        match = _REQUIRE_LINE_RE.match(entry)
        if match:
            requirements.append(
                ModRequirement(path=_unquote(match.group(1)), version=match.group(2))
            )
    return requirements


def version_requirement_regex(mod_path: str) -> re.Pattern[str]:
    """Compile a regex matching "<mod_path> v<semver>" as a whole token pair.

    The module path may be quoted ("..." or `...`). It must not be the tail
    of a longer path, and the version literal must not continue into further
    characters, so "example.com/a v1.0.0" never matches inside
    "example.com/a/b v1.0.0" or "other.example.com/a v1.0.0".

    Everything before the version is captured as the "prefix" group.
    """
    return re.compile(
        r"(?<![\w./-])(?P<prefix>(?P<quote>[\"`]?)"
        + re.escape(mod_path)
        + r"(?P=quote)[ \t]+)"
        + SEMVER_LITERAL
        + r"(?![\w.+-])"
    )


def rewrite_requirements(text: str, mod_paths: list[str], new_version: str) -> str:
    """Replace the version of every requirement on mod_paths with new_version.

    The module path and its spacing are kept as written. Re-running on
    already rewritten text returns it unchanged.
    """
    for mod_path in mod_paths:
        text = version_requirement_regex(mod_path).sub(
            lambda m: m.group("prefix") + new_version, text
        )
    return text


def read_module_path(manifest: Path) -> str | None:
    return parse_module_path(manifest.read_text())


def read_requirements(manifest: Path) -> list[ModRequirement]:
    return parse_requirements(manifest.read_text())


def rewrite_manifest(manifest: Path, mod_paths: list[str], new_version: str) -> bool:
    """Rewrite required versions in a manifest file.

    The file is only written when something changed.

    Returns:
        True if the file was modified.
    """
    original = manifest.read_text()
    updated = rewrite_requirements(original, mod_paths, new_version)
    if updated == original:
        return False
    manifest.write_text(updated)
    return True
