"""CLI entrypoints for docpilot commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import load_config
from .logging import configure_logging
from .pipeline import DocumentationPipeline, PipelineResult


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_selection_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )
    parser.add_argument("-b", "--base", help="Base commit or branch (defaults to HEAD~1).")
    parser.add_argument("--head", help="Head commit or branch (defaults to HEAD).")
    selector = parser.add_mutually_exclusive_group()
    selector.add_argument(
        "-s",
        "--staged",
        action="store_true",
        help="Analyze staged changes only.",
    )
    selector.add_argument(
        "--worktree",
        action="store_true",
        help="Analyze uncommitted working tree changes against HEAD.",
    )
    parser.add_argument("-c", "--config", help="Path to a docpilot.yml configuration file.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docpilot",
        description="Route code changes to the documentation they affect and update it.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze code changes and identify documentation targets.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_selection_options(analyze_parser)
    analyze_parser.add_argument(
        "-o",
        "--output",
        choices=("json", "text"),
        default="json",
        help="Output format (default: json).",
    )

    generate_parser = subparsers.add_parser(
        "generate",
        help="Write documentation patches for the analyzed changes.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_selection_options(generate_parser)
    generate_parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Preview documentation changes without writing them.",
    )

    pr_parser = subparsers.add_parser(
        "pr",
        help="Generate documentation patches and open a pull request.",
    )
    _add_verbose_option(pr_parser, suppress_default=True)
    _add_selection_options(pr_parser)
    pr_parser.add_argument("--target-branch", help="Branch the pull request should merge into.")
    pr_parser.add_argument("--draft", action="store_true", help="Always open a draft pull request.")
    pr_parser.add_argument("--title", help="Override the pull request title.")
    pr_parser.add_argument(
        "--no-push",
        action="store_true",
        help="Commit on the documentation branch without pushing it.",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for docpilot commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    if args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
        return

    try:
        if args.config:
            config = load_config(Path(args.config))
        else:
            config = load_config(start=Path(args.path))
        pipeline = DocumentationPipeline(args.path, config)
        analysis = pipeline.analyze(
            args.base, args.head, staged=args.staged, worktree=args.worktree
        )
    except FileNotFoundError as exc:
        parser.exit(1, f"{exc}\n")
    except RuntimeError as exc:
        parser.exit(
            1,
            f"docpilot {args.command} failed: {exc}\nRun with --verbose for more details.\n",
        )

    mapping = analysis.mapping
    if mapping is None:  # pragma: no cover - analyze always maps
        parser.exit(1, "Analysis produced no mapping\n")

    if args.command == "analyze":
        if args.output == "json":
            print(analysis.to_json())
        else:
            print(_format_analysis(analysis))
        return

    generated = pipeline.generate(mapping, dry_run=bool(getattr(args, "dry_run", False)))
    if args.command == "generate":
        print(_format_generation(generated))
        if not generated.success:
            parser.exit(1, f"Generation failed: {_failure_reason(generated)}\n")
        return

    if args.command == "pr":
        if not generated.success or generated.applied is None:
            parser.exit(1, f"Generation failed: {_failure_reason(generated)}\n")
        published = pipeline.publish(
            mapping,
            generated.applied,
            base_branch=args.target_branch,
            push=not args.no_push,
            draft=args.draft,
            title=args.title,
        )
        if not published.success:
            parser.exit(1, f"{published.error}\n")
        print("Pull request created")
        return

    parser.exit(1, "Unknown command\n")  # pragma: no cover - argparse enforces choices


def _format_analysis(result: PipelineResult) -> str:
    lines = ["", "=== DocPilot Analysis ===", ""]
    if result.diff is not None:
        lines.append(f"Files changed: {result.diff.total_files_changed}")
        lines.append(f"Lines added: +{result.diff.total_lines_added}")
        lines.append(f"Lines deleted: -{result.diff.total_lines_deleted}")
        lines.append("")
    mapping = result.mapping
    if mapping is not None:
        lines.append(f"Change type: {mapping.overall_change_type.value}")
        lines.append(
            f"Overall confidence: {mapping.overall_confidence.value} "
            f"({mapping.average_confidence:.0%})"
        )
        lines.append("")
        lines.append("Documentation targets:")
        if not mapping.targets:
            lines.append("  (none)")
        for target in mapping.targets:
            lines.append(f"  - {target.file_path}")
            lines.append(f"    Section: {target.section or '(entire file)'}")
            lines.append(
                f"    Confidence: {target.confidence.value} ({target.confidence_score:.0%})"
            )
            lines.append(f"    Sources: {', '.join(target.source_files)}")
            lines.append("")
    return "\n".join(lines)


def _format_generation(result: PipelineResult) -> str:
    mode = "Dry Run" if result.dry_run else "Applied"
    lines = ["=== Generation Complete ===", f"Mode: {mode}"]
    applied = result.applied
    if applied is None:
        lines.append("Files generated: 0")
        return "\n".join(lines)
    lines.append(f"Files generated: {sum(1 for item in applied.results if item.success)}")
    for item in applied.results:
        status = "ok" if item.success else f"failed: {item.error}"
        lines.append(f"  - {item.file_path} [{item.operation.value}] {status}")
        if result.dry_run and item.preview_content is not None:
            lines.append("")
            lines.append(item.preview_content.rstrip())
            lines.append("")
    return "\n".join(lines)


def _failure_reason(result: PipelineResult) -> str:
    if result.error:
        return result.error
    if result.applied is not None and result.applied.failed_patches:
        return f"{len(result.applied.failed_patches)} patch(es) failed"
    return "unknown error"


if __name__ == "__main__":
    main(sys.argv[1:])
