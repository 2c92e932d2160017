"""
Label Check Engine CLI

Classifies a food label for gluten / lactose and prints the JSON result.

Usage:
    python -m src.cli analyze --text "Harina de trigo, azúcar, sal"
    python -m src.cli analyze --text-file label.txt --pretty
    python -m src.cli analyze --image label.jpg
    echo "Leche, sin gluten" | python -m src.cli analyze --stdin --local-only
    python -m src.cli config-status
"""

import sys
import os
import argparse
import json
import mimetypes
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from orchestrator.hybrid_dispatcher import HybridDispatcher
from orchestrator.jsonl_logger import JSONLLogger


def _read_text_input(args) -> str:
    if args.text is not None:
        return args.text
    if args.text_file:
        return Path(args.text_file).read_text(encoding="utf-8")
    if args.stdin:
        return sys.stdin.read()
    return ""


def build_dispatcher(args) -> HybridDispatcher:
    log_dir = args.log_dir or os.getenv("LABELCHECK_LOG_DIR")
    jsonl_logger = JSONLLogger(Path(log_dir)) if log_dir else None
    return HybridDispatcher(
        jsonl_logger=jsonl_logger,
        config_path=args.config,
        use_llm=not args.local_only
    )


def cmd_analyze(args):
    """Classify one label and print the result as JSON."""
    try:
        text = _read_text_input(args)
    except (OSError, UnicodeDecodeError) as e:
        print(f"ERROR: Could not read text file: {e}", file=sys.stderr)
        sys.exit(1)

    image = None
    image_mime_type = "image/jpeg"
    if args.image:
        image_path = Path(args.image)
        if not image_path.exists():
            print(f"ERROR: Image not found: {image_path}", file=sys.stderr)
            sys.exit(1)
        image = image_path.read_bytes()
        image_mime_type = mimetypes.guess_type(image_path.name)[0] or "image/jpeg"

    dispatcher = build_dispatcher(args)
    outcome = dispatcher.resolve_detailed(text=text or None, image=image, image_mime_type=image_mime_type)

    output = outcome.to_dict()
    if args.show_source:
        output["source"] = outcome.source

    print(json.dumps(output, ensure_ascii=False, indent=2 if args.pretty else None))


def cmd_config_status(args):
    """Show whether an LLM provider is configured."""
    dispatcher = HybridDispatcher(config_path=args.config)

    print("LLM Provider Status:")
    if dispatcher.llm_client is None:
        print("  Config: not loaded")
        print("  Mode: heuristic only")
        return

    stats = dispatcher.llm_client.get_stats()
    print(f"  Config: {dispatcher.llm_client.config_path}")
    print(f"  Provider: {stats['provider']}")
    print(f"  Model: {stats['model']}")
    print(f"  Credential env: {stats['auth_env']}")
    print(f"  LLM disabled: {stats['llm_disabled']}")
    print(f"  Mode: {'hybrid (LLM + heuristic fallback)' if stats['configured'] else 'heuristic only'}")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Label Check Engine CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to llm_providers.yaml (default: config/llm_providers.yaml)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Classify a food label")
    source = analyze_parser.add_mutually_exclusive_group()
    source.add_argument("--text", type=str, help="Label text")
    source.add_argument("--text-file", type=str, help="File containing label text")
    source.add_argument("--stdin", action="store_true", help="Read label text from stdin")
    analyze_parser.add_argument("--image", type=str, help="Photo of the label (sent to the LLM provider)")
    analyze_parser.add_argument("--local-only", action="store_true", help="Never call the LLM provider")
    analyze_parser.add_argument("--log-dir", type=str, help="Directory for JSONL audit logs (default: $LABELCHECK_LOG_DIR)")
    analyze_parser.add_argument("--show-source", action="store_true", help="Include HEURISTIC/LLM/FALLBACK in output")
    analyze_parser.add_argument("--pretty", action="store_true", help="Indent JSON output")
    analyze_parser.set_defaults(func=cmd_analyze)

    # config-status command
    status_parser = subparsers.add_parser("config-status", help="Show LLM provider configuration")
    status_parser.set_defaults(func=cmd_config_status)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
