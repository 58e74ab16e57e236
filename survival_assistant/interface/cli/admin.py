"""CLI for operational checks.

Why: Capability status, document health and effective rate limits are
     deployment questions, not use-case concerns.
"""

import argparse
import sys

from dotenv import load_dotenv

from survival_assistant.application.services.capability_registry import CapabilityRegistry
from survival_assistant.config.composition import (
    build_clock,
    build_document_store,
    build_rate_limit_policy,
)
from survival_assistant.config.settings import AppSettings
from survival_assistant.domain.errors import ValidationError


def cmd_capabilities(settings: AppSettings) -> int:
    registry = CapabilityRegistry.from_settings(settings)
    for status in registry.statuses():
        mark = "✓" if status.configured else "✗"
        print(f"{mark} {status.name.value}")
    return 0


def cmd_contexts(settings: AppSettings) -> int:
    """Load every catalogue document and report its sections."""
    store = build_document_store(settings, build_clock())
    store.load_all()
    missing = 0
    print(f"Context directory: {settings.context_dir}")
    for info in store.catalogue():
        doc = store.loaded(info.id)
        if doc is None or doc.is_empty:
            missing += 1
            print(f"✗ {info.name}: missing or empty")
        else:
            print(f"✓ {info.name}: {len(doc.sections)} sections")
    return 1 if missing else 0


def cmd_rate_limits(settings: AppSettings) -> int:
    try:
        policy = build_rate_limit_policy(settings)
    except ValidationError as ex:
        print(f"✗ Error: {ex}")
        return 1
    for resource, rule in sorted(policy.rules.items()):
        print(f"{resource}: {rule.max_requests}/{int(rule.window.total_seconds())}s")
    default = policy.default
    print(f"default: {default.max_requests}/{int(default.window.total_seconds())}s")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point with subcommands.

    Subcommands:
    - capabilities: which optional services are configured
    - contexts: document catalogue health
    - rate-limits: effective per-resource limits

    Returns:
        Exit code (0=success, 1=failure)
    """
    parser = argparse.ArgumentParser(
        prog="survival-assistant-admin",
        description="Admin CLI for the Survival Assistant",
    )
    subparsers = parser.add_subparsers(dest="command", help="Admin commands")
    subparsers.add_parser("capabilities", help="Show configured capabilities")
    subparsers.add_parser("contexts", help="Check the context documents")
    subparsers.add_parser("rate-limits", help="Show effective rate limits")

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    load_dotenv()
    settings = AppSettings()

    if args.command == "capabilities":
        return cmd_capabilities(settings)
    elif args.command == "contexts":
        return cmd_contexts(settings)
    elif args.command == "rate-limits":
        return cmd_rate_limits(settings)
    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
