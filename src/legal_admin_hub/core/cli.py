from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import os
import sys
from pathlib import Path

from legal_admin_hub.observability import configure_logging, get_logger

from .config import AppConfig, load_config
from .errors import HubError
from .types import Message


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="legal-admin-hub", description="Legal Admin Hub assistant")
    p.add_argument("--config", default="configs/app.yaml", help="YAML config path")
    p.add_argument("--log-level", default=None, help="log level (overrides config)")
    p.add_argument("--log-format", choices=["json", "text"], default=None, help="log format (overrides config)")
    p.add_argument("--fake", action="store_true", help="use the scripted completion service (offline)")

    sub = p.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the HTTP server")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    chat = sub.add_parser("chat", help="chat with the assistant")
    chat.add_argument("--text", default=None, help="one-shot message; omit for an interactive session")
    chat.add_argument("--url", default=None, help="server base URL (default: from config)")
    chat.add_argument("--local", action="store_true", help="run the dispatch loop in-process")

    sub.add_parser("tools", help="print tool definitions")
    return p


def _load(args: argparse.Namespace) -> AppConfig:
    # Offline stub: allow running without a real key.
    if args.fake and not os.getenv("OPENAI_API_KEY"):
        os.environ["OPENAI_API_KEY"] = "k_fake"

    if args.fake and not Path(args.config).exists():
        cfg = AppConfig()
    else:
        cfg = load_config(args.config)

    if args.fake:
        cfg = dataclasses.replace(cfg, llm=dataclasses.replace(cfg.llm, backend="scripted"))
    return cfg


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        cfg = _load(args)
    except HubError as e:
        print(f"config error: {e}", file=sys.stderr)
        return 2

    configure_logging(level=args.log_level or cfg.logging.level, fmt=args.log_format or cfg.logging.format)
    log = get_logger("legal_admin_hub.cli")

    if args.command == "serve":
        import uvicorn

        from legal_admin_hub.transport import create_app

        host = args.host or cfg.server.host
        port = args.port or cfg.server.port
        log.info("serve", host=host, port=port, backend=cfg.llm.backend, model=cfg.llm.model)
        uvicorn.run(create_app(cfg), host=host, port=port, log_config=None)
        return 0

    if args.command == "tools":
        from legal_admin_hub.tools import build_default_registry

        registry = build_default_registry(cfg.tools)
        specs = [d.openai_spec() for d in registry.list_definitions()]
        print(json.dumps(specs, indent=2, ensure_ascii=False))
        return 0

    if args.local:
        return _chat_local(cfg, args.text)
    return _chat_remote(args.url or f"http://{cfg.server.host}:{cfg.server.port}", args.text)


def _prompts(one_shot: str | None):
    if one_shot is not None:
        yield one_shot
        return
    while True:
        try:
            line = input("you> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return
        if line in {"/quit", "/exit"}:
            return
        if line:
            yield line


def _chat_remote(url: str, text: str | None) -> int:
    from legal_admin_hub.client import ChatClient

    status = 0
    with ChatClient(url) as client:
        for prompt in _prompts(text):
            try:
                for frame in client.stream(prompt):
                    _render(frame.kind, frame.value)
            except HubError as e:
                print(f"\n[error] {e}", file=sys.stderr)
                status = 1
            print()
    return status


def _chat_local(cfg: AppConfig, text: str | None) -> int:
    from legal_admin_hub.orchestrator import build_dispatch_loop
    from legal_admin_hub.transport.data_stream import decode_line, encode_event

    loop = build_dispatch_loop(cfg)
    history: list[Message] = []

    async def turn(prompt: str) -> tuple[str, bool]:
        history.append(Message(role="user", content=prompt))
        final, failed = "", False
        async for event in loop.run(list(history)):
            for line in encode_event(event):
                frame = decode_line(line)
                _render(frame.kind, frame.value)
                if frame.kind == "text":
                    final += str(frame.value)
                elif frame.kind == "error":
                    failed = True
        return final, failed

    async def session() -> int:
        status = 0
        # One event loop for the whole session; the model client is bound to it.
        for prompt in _prompts(text):
            final, failed = await turn(prompt)
            if failed:
                status = 1
            else:
                history.append(Message(role="assistant", content=final))
            print()
        return status

    return asyncio.run(session())


def _render(kind: str, value: object) -> None:
    if kind == "text":
        print(value, end="", flush=True)
    elif kind == "tool_call" and isinstance(value, dict):
        print(f"\n[tool] {value.get('toolName')}({json.dumps(value.get('args'), ensure_ascii=False)})", flush=True)
    elif kind == "tool_result" and isinstance(value, dict):
        print(f"[tool] {value.get('toolName')} -> {value.get('state')}", flush=True)
    elif kind == "error":
        print(f"\n[error] {value}", file=sys.stderr, flush=True)


if __name__ == "__main__":
    raise SystemExit(main())
