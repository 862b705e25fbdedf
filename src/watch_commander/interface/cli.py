"""
Command-line interface for Watch Commander.

Main entry point and command loop.
Supports OpenAI-compatible servers and Ollama as generation backends.
"""

import argparse
import asyncio
import logging
from pathlib import Path

from rich.markup import escape

from ..config import Config, load_config
from ..gateway import GenerationGateway
from ..llm import create_llm_client
from ..session import CampaignSession
from ..state.store import FileKeyValueStore
from .commands import create_commands
from .renderer import THEME, console, render_dashboard, show_banner, show_error

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Watch Commander - SWAT squad management")
    parser.add_argument(
        "--save-dir",
        default="saves",
        help="Directory for the campaign save and config (default: saves)",
    )
    parser.add_argument(
        "--backend",
        choices=["openai", "ollama", "auto"],
        help="Generation backend (default: from config)",
    )
    parser.add_argument("--url", help="Backend base URL")
    parser.add_argument("--model", help="Model name")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser


def resolve_config(args: argparse.Namespace) -> Config:
    """Saved config with command-line flags layered on top."""
    config = load_config(args.save_dir)
    if args.backend:
        config["backend"] = args.backend
    if args.url:
        config["base_url"] = args.url
    if args.model:
        config["model"] = args.model
    return config


def create_session(config: Config, save_dir: Path | str) -> CampaignSession | None:
    """Wire the LLM client, gateway and store into a session."""
    backend, client = create_llm_client(
        backend=config.get("backend", "openai"),
        base_url=config.get("base_url"),
        model=config.get("model", "llama3.1"),
        timeout=config.get("timeout", 60.0),
    )
    if client is None:
        show_error(f"No generation backend available ({backend}).")
        return None

    gateway = GenerationGateway(
        client,
        timeout=config.get("timeout", 60.0),
        temperature=config.get("temperature", 0.8),
        max_tokens=config.get("max_tokens", 2048),
    )
    logger.info("Using %s backend with model %s", backend, client.model_name)
    return CampaignSession(
        gateway,
        FileKeyValueStore(save_dir),
        day_transition_delay=config.get("day_transition_delay", 3.0),
    )


async def run(session: CampaignSession) -> None:
    """Read commands until /quit or end of input."""
    commands = create_commands()

    if session.state.has_commander:
        render_dashboard(session.state)
    else:
        console.print(f"[{THEME['dim']}]No active campaign. /new <commander> | <squad> to take command.[/{THEME['dim']}]")
    console.print(f"[{THEME['dim']}]Type /help for commands.[/{THEME['dim']}]\n")

    while True:
        try:
            # Read in a worker thread so background captures keep landing
            user_input = (await asyncio.to_thread(console.input, "> ")).strip()
        except (KeyboardInterrupt, EOFError):
            break
        if not user_input:
            continue

        parts = user_input.split()
        cmd = parts[0].lower()
        if not cmd.startswith("/"):
            cmd = f"/{cmd}"
        handler = commands.get(cmd)
        if handler is None:
            console.print(f"[{THEME['warning']}]Unknown command: {escape(cmd)}[/{THEME['warning']}]")
            continue
        if not session.state.has_commander and cmd not in ("/new", "/import", "/help", "/quit"):
            console.print(f"[{THEME['warning']}]Take command first (/new or /import)[/{THEME['warning']}]")
            continue

        await handler(session, parts[1:])

        if session.error:
            show_error(session.error)
            session.clear_error()

    await session.drain()


def main() -> None:
    """Main entry point."""
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format='%(asctime)s [%(levelname)s] %(message)s',
    )

    show_banner()
    config = resolve_config(args)
    session = create_session(config, args.save_dir)
    if session is None:
        raise SystemExit(1)

    asyncio.run(run(session))


if __name__ == "__main__":
    main()
