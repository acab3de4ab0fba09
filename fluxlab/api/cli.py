"""
Interactive CLI adapter for FluxLab.

Architectural role:
- Provides a terminal chat interface over the core engine.
- Delegates command processing to `fluxlab.core.engine.process_message`.
- Delivers generated images by writing them to the configured output directory.

Request lifecycle (per user turn):
1. Read a single line from stdin.
2. Handle local control commands (`exit`/`quit`, `help`).
3. Forward everything else to `process_message`.
4. Save the attached image and print its path, or print the reply text.

Error handling strategy:
- Engine failures arrive as reply text and are printed verbatim.
- EOF and keyboard interrupts terminate the loop without traceback output.

Side effects:
- Creates the output directory on first saved image.
- Logging level follows the `LOG_LEVEL` environment variable.
"""

from dotenv import load_dotenv

load_dotenv()

import asyncio
import logging
import os
import sys
from pathlib import Path

from fluxlab.core.commands import USAGE
from fluxlab.core.engine import CommandReply, process_message
from fluxlab.image.provider_config import FluxConfig


# =========================================================
# UTF-8 SAFE STDOUT
# =========================================================

if hasattr(sys.stdout, "reconfigure"):
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="ignore")
    except Exception:
        pass


def save_reply(reply: CommandReply, output_dir: str) -> Path:
    """Write the reply attachment into `output_dir` and return its path.

    An existing file with the same name gets a numeric suffix instead of being
    overwritten.
    """
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)

    target = directory / reply.filename
    counter = 1
    while target.exists():
        target = directory / f"{Path(reply.filename).stem}_{counter}{Path(reply.filename).suffix}"
        counter += 1

    target.write_bytes(reply.content)
    return target


# =========================================================
# MAIN APPLICATION LOOP
# =========================================================

def main():
    """
    Run the interactive terminal session.

    Interaction with core:
    - Calls `process_message(question)` for non-control user inputs.
    """
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = FluxConfig()

    print("FluxLab started. (Type 'help' for commands, 'exit' to quit)\n")
    print(f"Images are saved to: {os.path.abspath(config.output_dir)}")
    print("-" * 60)

    while True:

        try:
            question = input("Command: ").strip()

        except EOFError:
            print()
            break

        except KeyboardInterrupt:
            print("\nInterrupted.")
            break

        if not question:
            continue

        if question.lower() in ("exit", "quit"):
            print("Shutting down.")
            break

        if question.lower() == "help":
            print(USAGE)
            continue

        print("\nGenerating...\n")

        try:
            reply = asyncio.run(process_message(question))
        except KeyboardInterrupt:
            print("\nCancelled.")
            continue

        if reply.has_image:
            path = save_reply(reply, config.output_dir)
            print(f"Saved {path}")
            print(f"Source: {reply.image_url}")
        elif reply.text:
            print(reply.text)

        print("\n" + "-" * 60 + "\n")


if __name__ == "__main__":
    main()
