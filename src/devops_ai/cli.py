from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from typing import Any

from devops_ai.backends import get_backend, list_backends
from devops_ai.catalog import DEFAULT_CATALOG
from devops_ai.config import TutorConfig, load_config
from devops_ai.core.errors import TutorError
from devops_ai.runtime import ConversationManager, ProgressManager
from devops_ai.store import STORE_KINDS, KeyValueStore, open_store


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _resolve_config(args: argparse.Namespace) -> TutorConfig:
    config = load_config()
    overrides: dict[str, Any] = {}
    if getattr(args, "store", None):
        overrides["store"] = args.store
    if getattr(args, "backend", None):
        overrides["backend"] = args.backend
    if getattr(args, "model", None):
        overrides["model"] = args.model
    return replace(config, **overrides) if overrides else config


def _build_store(config: TutorConfig) -> KeyValueStore:
    return open_store(config.store, config.store_root)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _serve_command(args: argparse.Namespace) -> int:
    try:
        import uvicorn
    except ImportError as exc:
        raise SystemExit("uvicorn is required to run the service") from exc
    uvicorn.run("devops_ai.api.app:create_app", host=args.host, port=args.port, factory=True)
    return 0


def _topics_command(args: argparse.Namespace) -> int:
    if args.topic:
        _print_json(DEFAULT_CATALOG.get_topic(args.topic).to_dict())
        return 0
    _print_json([topic.to_dict() for topic in DEFAULT_CATALOG.list_topics()])
    return 0


def _progress_command(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    manager = ProgressManager(_build_store(config), DEFAULT_CATALOG)
    if args.reset:
        progress = manager.reset_progress(args.topic)
    elif args.complete is not None:
        progress = manager.record_completed_step(args.topic, args.complete)
    else:
        progress = manager.get_progress(args.topic)
    _print_json(progress.to_dict())
    return 0


def _chat_command(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    backend = get_backend(config.backend, **config.backend_kwargs())
    manager = ConversationManager(
        _build_store(config), backend, DEFAULT_CATALOG, max_messages=config.history_limit
    )
    reply = manager.post_message(args.topic, args.text)
    print(reply)
    return 0


def _history_command(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    store = _build_store(config)
    manager = ConversationManager(store, catalog=DEFAULT_CATALOG)
    history = manager.get_conversation(args.topic)
    if args.json:
        _print_json(history.to_dict())
        return 0
    for message in history.messages:
        print(f"[{message.role}] {message.content}")
    return 0


def _reset_command(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    store = _build_store(config)
    ProgressManager(store, DEFAULT_CATALOG).reset_progress(args.topic)
    ConversationManager(store, catalog=DEFAULT_CATALOG).reset_conversation(args.topic)
    print(f"Progress and conversation reset for topic {args.topic}.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="devops-ai")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8787)
    serve_parser.set_defaults(func=_serve_command)

    topics_parser = subparsers.add_parser("topics", help="Print the topic catalog")
    topics_parser.add_argument("--topic")
    topics_parser.set_defaults(func=_topics_command)

    progress_parser = subparsers.add_parser("progress", help="Show or update topic progress")
    progress_parser.add_argument("--topic", required=True)
    progress_parser.add_argument("--store", choices=STORE_KINDS)
    mode = progress_parser.add_mutually_exclusive_group()
    mode.add_argument("--complete", type=int)
    mode.add_argument("--reset", action="store_true")
    progress_parser.set_defaults(func=_progress_command)

    chat_parser = subparsers.add_parser("chat", help="Send one chat message for a topic")
    chat_parser.add_argument("--topic", required=True)
    chat_parser.add_argument("--text", required=True)
    chat_parser.add_argument("--store", choices=STORE_KINDS)
    chat_parser.add_argument("--backend", choices=list_backends())
    chat_parser.add_argument("--model")
    chat_parser.set_defaults(func=_chat_command)

    history_parser = subparsers.add_parser("history", help="Print the stored conversation")
    history_parser.add_argument("--topic", required=True)
    history_parser.add_argument("--store", choices=STORE_KINDS)
    history_parser.add_argument("--json", action="store_true")
    history_parser.set_defaults(func=_history_command)

    reset_parser = subparsers.add_parser("reset", help="Reset progress and conversation")
    reset_parser.add_argument("--topic", required=True)
    reset_parser.add_argument("--store", choices=STORE_KINDS)
    reset_parser.set_defaults(func=_reset_command)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(load_config().log_level)
    try:
        return args.func(args)
    except TutorError as exc:
        print(f"error: {exc.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
