#!/usr/bin/env python3
"""
Media Relocation Tool - CLI Entry Point
=======================================

Usage:
    python -m relocate_media scatter Photos Large --min-size 5MB --ext .jpg,.png
    python -m relocate_media gather Large Photos
    python -m relocate_media --root /data interactive
"""

import argparse
import sys
from pathlib import Path

from tqdm import tqdm

from .config import RelocationConfig, build_engine
from .errors import AccessDenied, InvalidSizeError
from .executor import MoveOutcome
from .utils import (
    console, human_size, parse_size, print_error, print_header, print_outcome_table,
    print_success, print_warning, save_json
)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_DENIED = 2
EXIT_ABORTED = 130


def print_message(level: str, message: str) -> None:
    """Engine progress callback; safe to call while a progress bar is drawn."""
    tqdm.write(f"[{level}] {message}")


def load_config(args) -> RelocationConfig:
    """Environment settings with command-line flags applied on top."""
    config = RelocationConfig.from_env()
    return config.with_overrides(
        root=args.root,
        case_sensitive=args.case_sensitive,
        dry_run=getattr(args, "dry_run", False) or None,
        overwrite=getattr(args, "overwrite", False) or None,
        show_progress=False if args.no_progress else None,
    )


def report_outcome(outcome: MoveOutcome, report_out: Path | None = None) -> int:
    """Print the outcome summary, optionally save it, and pick an exit code."""
    if outcome.source_missing:
        print_warning("Source directory does not exist. Nothing was moved.")
        return EXIT_FAILED

    if outcome.aborted:
        print_error(outcome.aborted)
        return EXIT_FAILED

    print_outcome_table(outcome)

    if report_out:
        save_json(outcome.to_report(), report_out)

    if outcome.dry_run:
        console.print("\n[NOTE] This was a DRY-RUN. No files were actually moved.")

    if outcome.files_failed:
        print_error(f"{outcome.files_failed} file(s) could not be moved")
        for err in outcome.errors[:5]:
            console.print(f"  - {err['src']}: {err['error']}")
        if len(outcome.errors) > 5:
            console.print(f"  ... and {len(outcome.errors) - 5} more")
        return EXIT_FAILED

    print_success(f"{outcome.operation.capitalize()} complete: {outcome.files_moved} file(s) moved")
    return EXIT_OK


# =============================================================================
# Subcommands
# =============================================================================

def cmd_scatter(args) -> int:
    """Scatter command - flatten matching files into the target directory."""
    config = load_config(args)
    min_size = parse_size(args.min_size)
    max_size = parse_size(args.max_size)

    bounds = []
    if min_size is not None:
        bounds.append(f">= {human_size(min_size)}")
    if max_size is not None:
        bounds.append(f"<= {human_size(max_size)}")

    print_header(
        "Scatter",
        f"Root: {config.root}\nSource: {args.source}\nTarget: {args.target}\n"
        f"Extensions: {args.ext or 'any'}\nSize: {' and '.join(bounds) or 'any'}"
    )

    engine = build_engine(config, on_message=print_message)
    outcome = engine.scatter(args.source, args.target, args.ext, min_size, max_size)
    return report_outcome(outcome, args.report_out)


def cmd_gather(args) -> int:
    """Gather command - move scattered files back into their folders."""
    config = load_config(args)

    print_header("Gather", f"Root: {config.root}\nFrom: {args.flat}\nInto: {args.original}")

    engine = build_engine(config, on_message=print_message)
    outcome = engine.gather(args.flat, args.original)
    return report_outcome(outcome, args.report_out)


def _ask(prompt: str) -> str:
    return input(prompt).strip()


def cmd_interactive(args) -> int:
    """Interactive command - menu loop prompting for each action."""
    config = load_config(args)
    engine = build_engine(config, on_message=print_message)

    print_header("Media Relocation Tool", f"Root: {config.root}")

    while True:
        console.print("\nSelect an action to perform:")
        console.print("1. Move files larger than \\[x] MB to a target folder.")
        console.print("2. Move files from the target folder back to their original folders.")
        console.print("Type 'exit' to close the application.")

        try:
            choice = _ask("Enter your choice (1, 2, or 'exit'): ").lower()

            if choice == "exit":
                console.print("Exiting application...")
                return EXIT_OK

            if choice == "1":
                size_text = _ask("Enter the minimum file size (MB): ")
                try:
                    min_size = parse_size(f"{size_text}MB") if size_text else None
                except InvalidSizeError:
                    print_warning(f"Invalid size {size_text!r}, moving files of any size")
                    min_size = None
                extensions = _ask(
                    "Enter the file extensions you want to move, for example, "
                    "[.jpeg, .jpg, .png] (leave empty to move all files): "
                )
                source = _ask("Enter the source directory name: ")
                target = _ask("Enter the target directory name: ")
                outcome = engine.scatter(source, target, extensions, min_size)
            elif choice == "2":
                flat = _ask("Enter the target directory name: ")
                original = _ask("Enter the original directory name: ")
                outcome = engine.gather(flat, original)
            else:
                console.print("Invalid choice.")
                continue

            report_outcome(outcome)

        except AccessDenied as e:
            print_error(str(e))
        except EOFError:
            console.print("\nExiting application...")
            return EXIT_OK


# =============================================================================
# Main
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="relocate-media",
        description="Media Relocation Tool - Flatten files out of subfolders and put them back",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--root", type=Path,
                        help="Directory no operation may leave (default: $RELOCATE_ROOT or cwd)")
    case_group = parser.add_mutually_exclusive_group()
    case_group.add_argument("--case-sensitive", dest="case_sensitive", action="store_const", const=True,
                            help="Compare paths case-sensitively against the root")
    case_group.add_argument("--case-insensitive", dest="case_sensitive", action="store_const", const=False,
                            help="Compare paths case-insensitively against the root")
    parser.add_argument("--no-progress", action="store_true",
                        help="Hide the progress bar")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- SCATTER command ---
    scatter_parser = subparsers.add_parser("scatter", help="Move files from subfolders into one folder")
    scatter_parser.add_argument("source", type=Path, help="Directory whose subfolders hold the files")
    scatter_parser.add_argument("target", type=Path, help="Flat target directory (created if missing)")
    scatter_parser.add_argument("--ext", type=str, metavar="EXTS",
                                help="Only move these extensions (comma-separated)")
    scatter_parser.add_argument("--min-size", type=str, metavar="SIZE",
                                help="Only move files of at least SIZE (e.g. 5MB)")
    scatter_parser.add_argument("--max-size", type=str, metavar="SIZE",
                                help="Only move files of at most SIZE")
    scatter_parser.set_defaults(func=cmd_scatter)

    # --- GATHER command ---
    gather_parser = subparsers.add_parser("gather", help="Move scattered files back into their folders")
    gather_parser.add_argument("flat", type=Path, help="Directory holding the prefixed files")
    gather_parser.add_argument("original", type=Path, help="Directory to recreate the folders in")
    gather_parser.set_defaults(func=cmd_gather)

    for sub in (scatter_parser, gather_parser):
        sub.add_argument("--dry-run", action="store_true",
                         help="Simulate changes without modifying files")
        sub.add_argument("--overwrite", action="store_true",
                         help="Replace existing files at the destination")
        sub.add_argument("--report-out", type=Path,
                         help="Write a JSON report to this file")

    # --- INTERACTIVE command ---
    interactive_parser = subparsers.add_parser("interactive", help="Prompt for actions in a loop")
    interactive_parser.set_defaults(func=cmd_interactive)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    try:
        return args.func(args)
    except AccessDenied as e:
        print_error(str(e))
        return EXIT_DENIED
    except (InvalidSizeError, ValueError) as e:
        print_error(str(e))
        return EXIT_FAILED
    except KeyboardInterrupt:
        print("\n[ABORT] Operation cancelled by user")
        return EXIT_ABORTED


if __name__ == "__main__":
    sys.exit(main())
