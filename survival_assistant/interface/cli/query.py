"""CLI query handler for the Survival Assistant.

Thin interface layer: parse args, delegate to the AnswerQuery use case,
format the envelope.
"""

import argparse
import sys

from dotenv import load_dotenv

from survival_assistant.application.dto.answer_dto import AnswerRequest
from survival_assistant.config.compose import build_container
from survival_assistant.config.logging_config import configure_logging
from survival_assistant.config.settings import AppSettings
from survival_assistant.domain.models import Coordinates, Persona


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="survival-assistant",
        description="Ask the Bangalore survival assistant a question",
    )
    parser.add_argument("--question", required=True)
    parser.add_argument(
        "--persona",
        default=Persona.NEWBIE.value,
        choices=[p.value for p in Persona],
        help="Tone of the answer (default: newbie)",
    )
    parser.add_argument("--no-context", action="store_true", help="Do not consult documents")
    parser.add_argument(
        "--context",
        action="append",
        default=None,
        metavar="ID",
        help="Active document id, repeatable (default: every loaded document)",
    )
    parser.add_argument("--lat", type=float, help="Latitude for food recommendations")
    parser.add_argument("--lng", type=float, help="Longitude for food recommendations")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    if (args.lat is None) != (args.lng is None):
        print("\n[ERROR] ValidationError: --lat and --lng must be given together")
        return 2

    load_dotenv()
    settings = AppSettings()
    configure_logging(settings.log_level)
    container = build_container(settings)

    if args.context is not None:
        active = tuple(args.context)
    else:
        active = tuple(d.id for d in container.get_list_documents().execute() if d.is_loaded)

    req = AnswerRequest(
        query=args.question,
        persona=args.persona,
        context_enabled=not args.no_context,
        active_document_ids=active,
        location=Coordinates(args.lat, args.lng) if args.lat is not None else None,
        identifier="cli",
    )
    result = container.get_answer_use_case().execute(req)

    if result.ok and result.value is not None:
        env = result.value
        print("\n" + "=" * 80)
        print("ANSWER" + (" (AI-assisted)" if env.generative_powered else " (rule-based)") + ":")
        print("=" * 80)
        print(env.text)
        print("\n" + "=" * 80)
        print("SOURCES:")
        print("=" * 80)
        if env.used_document_ids:
            for i, doc_id in enumerate(env.used_document_ids, 1):
                print(f"[{i}] {doc_id}.md")
        else:
            print("(none)")
        if env.recommendations:
            print("\n" + "=" * 80)
            print("RECOMMENDATIONS:")
            print("=" * 80)
            for r in env.recommendations:
                distance = f" ({r.distance_meters}m)" if r.distance_meters is not None else ""
                print(f"• {r.name}{distance}: {r.reasoning}")
        return 0

    err = result.error
    print(f"\n[ERROR] {type(err).__name__}: {err}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
