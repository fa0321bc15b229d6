"""Report log_event calls without a template and templates nothing emits.

Usage: python scripts/event_template_audit.py [--json-output]
Exit status is 1 when a referenced (domain, action) has no template.
"""

from __future__ import annotations

import argparse
import ast
import json
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
PACKAGE_ROOT = ROOT / "mechbot"
TEMPLATES_JSON = PACKAGE_ROOT / "logs" / "event_templates.json"


def iter_python_files(root: Path) -> Iterable[Path]:
    yield from (p for p in root.rglob("*.py") if not p.name.startswith("."))


def _literals(expr: ast.AST) -> set[str]:
    if isinstance(expr, ast.Constant) and isinstance(expr.value, str):
        return {expr.value}
    if isinstance(expr, ast.IfExp):
        return _literals(expr.body) | _literals(expr.orelse)
    return set()


def references_in(source: str, filename: str = "<string>") -> set[tuple[str, str]]:
    """(domain, action) pairs passed as literals to any ``*.log_event`` call."""
    refs: set[tuple[str, str]] = set()
    try:
        tree = ast.parse(source, filename=filename)
    except SyntaxError:
        return refs
    for node in ast.walk(tree):
        if not (
            isinstance(node, ast.Call)
            and isinstance(node.func, ast.Attribute)
            and node.func.attr == "log_event"
        ):
            continue
        args = list(node.args[:2])
        kw = {k.arg: k.value for k in node.keywords if k.arg in ("domain", "action")}
        domain_expr = kw.get("domain", args[0] if args else None)
        action_expr = kw.get("action", args[1] if len(args) > 1 else None)
        if domain_expr is None or action_expr is None:
            continue
        for domain in _literals(domain_expr):
            for action in _literals(action_expr):
                refs.add((domain, action))
    return refs


def code_references(root: Path = PACKAGE_ROOT) -> set[tuple[str, str]]:
    refs: set[tuple[str, str]] = set()
    for path in iter_python_files(root):
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            continue
        refs |= references_in(source, str(path))
    return refs


def json_templates(path: Path = TEMPLATES_JSON) -> set[tuple[str, str]]:
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError:
        return set()
    return {
        (domain, action)
        for domain, actions in raw.items()
        if isinstance(actions, dict)
        for action in actions
    }


@dataclass(slots=True)
class AuditResult:
    missing: set[tuple[str, str]]
    unused: set[tuple[str, str]]


def audit(root: Path = PACKAGE_ROOT, templates: Path = TEMPLATES_JSON) -> AuditResult:
    refs = code_references(root)
    known = json_templates(templates)
    return AuditResult(missing=refs - known, unused=known - refs)


def _print_section(title: str, pairs: set[tuple[str, str]]) -> None:
    if not pairs:
        print(f"No {title.lower()}.")
        return
    print(f"{title} ({len(pairs)}):")
    for domain, action in sorted(pairs):
        print(f"  - {domain}:{action}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Audit event templates vs code usages")
    parser.add_argument("--json-output", action="store_true", help="Emit JSON result")
    args = parser.parse_args(argv)
    result = audit()
    if args.json_output:
        print(
            json.dumps(
                {"missing": sorted(result.missing), "unused": sorted(result.unused)},
                indent=2,
            )
        )
    else:
        _print_section("Missing templates", result.missing)
        _print_section("Unused templates", result.unused)
    return 1 if result.missing else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
