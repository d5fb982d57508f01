"""
Command-line interface for interlinear projects.
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from interlinear_editor import __version__
from interlinear_editor.config import EditorSettings, load_settings
from interlinear_editor.editor import ProjectEditor
from interlinear_editor.exceptions import (
    ConfigError,
    InterlinearEditorError,
    MalformedProjectError,
)
from interlinear_editor.models import TokenizationMode, ValidationResult


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the interlinear CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        args.settings = load_settings(args.config)
        return args.func(args)
    except ConfigError as e:
        print(f"\n  [CONFIG ERROR] {e}")
        if e.line:
            print(f"                Line: {e.line}")
        return 1
    except MalformedProjectError as e:
        print(f"\n  [ERROR] {e}")
        _print_validation_results(e.results)
        return 1
    except (InterlinearEditorError, OSError) as e:
        print(f"\n  [ERROR] {e}")
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="interlinear",
        description="Tools for interlinear annotation projects",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML settings file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug output",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # import command
    import_parser = subparsers.add_parser(
        "import",
        help="Create a project from a plain text file",
    )
    import_parser.add_argument("text", type=Path, help="UTF-8 text file, one segment per line")
    import_parser.add_argument("-o", "--output", type=Path, required=True, help="Project file to write")
    import_parser.add_argument("--name", default="", help="Project name")
    import_parser.add_argument(
        "--mode",
        choices=[m.value for m in TokenizationMode],
        help="Tokenization mode (default: from settings)",
    )
    import_parser.add_argument(
        "--script",
        help="Tokenization expression for --mode script, e.g. \"line.split('-')\"",
    )
    import_parser.set_defaults(func=cmd_import)

    # upgrade command
    upgrade_parser = subparsers.add_parser(
        "upgrade",
        help="Migrate a project file to the current format",
    )
    upgrade_parser.add_argument("project", type=Path, help="Project file")
    upgrade_parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Destination (default: rewrite in place)",
    )
    upgrade_parser.set_defaults(func=cmd_upgrade)

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Check a project file for errors and warnings",
    )
    validate_parser.add_argument("project", type=Path, help="Project file")
    validate_parser.add_argument(
        "--errors-only",
        action="store_true",
        help="Hide warnings",
    )
    validate_parser.set_defaults(func=cmd_validate)

    # export command
    export_parser = subparsers.add_parser(
        "export",
        help="Export a project as Typst markup",
    )
    export_parser.add_argument("project", type=Path, help="Project file")
    export_parser.add_argument("-o", "--output", type=Path, required=True, help="Typst file to write")
    export_parser.set_defaults(func=cmd_export)

    # similar command
    similar_parser = subparsers.add_parser(
        "similar",
        help="Find similar segments or words",
    )
    similar_parser.add_argument("project", type=Path, help="Project file")
    target = similar_parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--segment", type=int, help="Segment position (0-based)")
    target.add_argument("--text", help="Free text query")
    target.add_argument("--word", help="Word to compare against token texts")
    similar_parser.add_argument("-k", type=int, help="Number of results")
    similar_parser.set_defaults(func=cmd_similar)

    return parser


def cmd_import(args: argparse.Namespace) -> int:
    """Handle import command."""
    settings: EditorSettings = args.settings
    text = args.text.read_text(encoding="utf-8")
    editor = ProjectEditor.from_text(
        text, name=args.name, mode=args.mode, script=args.script, settings=settings
    )
    editor.save_file(args.output)
    project = editor.project
    print(f"\nImported {args.text}")
    print(f"  Segments: {len(project.segments)}")
    print(f"  Words:    {len(project.vocabulary.original)}")
    print(f"  Written:  {args.output}")
    return 0


def cmd_upgrade(args: argparse.Namespace) -> int:
    """Handle upgrade command."""
    editor = ProjectEditor.from_file(args.project, settings=args.settings)
    destination = args.output or args.project
    editor.save_file(destination)
    print(f"\nUpgraded {args.project} -> {destination}")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    print(f"\nValidating {args.project}...")
    editor = ProjectEditor.from_file(args.project, settings=args.settings)
    results = editor.validate()
    if args.errors_only:
        results = [r for r in results if r.severity == "ERROR"]

    _print_validation_results(results)
    errors = sum(1 for r in results if r.severity == "ERROR")
    warnings = len(results) - errors
    if errors:
        print(f"\nFound {errors} error(s), {warnings} warning(s)")
        return 1
    print(f"\nValidation passed ({warnings} warning(s))")
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Handle export command."""
    editor = ProjectEditor.from_file(args.project, settings=args.settings)
    editor.export_typeset_file(args.output)
    print(f"\nExported {args.project} -> {args.output}")
    return 0


def cmd_similar(args: argparse.Namespace) -> int:
    """Handle similar command."""
    editor = ProjectEditor.from_file(args.project, settings=args.settings)

    if args.word is not None:
        words = editor.similar_words(args.word, args.k)
        print(f"\nWords similar to {args.word!r}:")
        for w in words:
            print(f"  {w.word:<20} distance={w.distance} common={w.common_length}")
        if not words:
            print("  (none)")
        return 0

    target = args.segment if args.segment is not None else args.text
    hits = editor.similarity_query(target, args.k)
    print("\nSimilar segments:")
    for hit in hits:
        text = " ".join(editor.segment_texts(hit.segment))
        print(f"  #{hit.segment:<5} {hit.score:.3f}  {text}")
    if not hits:
        print("  (none)")
    return 0


def _print_validation_results(results: list[ValidationResult]) -> None:
    """Print validation errors and warnings."""
    for r in results:
        label = "[ERROR]" if r.severity == "ERROR" else "[WARN] "
        print(f"  {label} {r.rule_id} {r.location}: {r.message}")
