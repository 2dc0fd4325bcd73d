"""
Terminal front end for the editor API.

    style-editor review report.txt [--out DIR]
    style-editor chat
"""
import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from app.client.consumer import ChatTranscript, StreamState
from app.client.editor import ChatSession, EditorClient, ReviewSession
from app.client.suggestions import visible_while_streaming
from app.services.prompts import STARTER_QUESTIONS


class _TypingPrinter:
    """Prints only the part of a growing text that has not been shown yet."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self.shown = ""

    def __call__(self, text: str) -> None:
        if self.shown.startswith(text):
            # Nothing new; the final text may only be a trimmed version
            return
        if text.startswith(self.shown):
            self.stream.write(text[len(self.shown):])
        else:
            # Text was replaced (e.g. by an error message); start a fresh line
            self.stream.write("\n" + text)
        self.stream.flush()
        self.shown = text

    def reset(self) -> None:
        self.shown = ""


async def run_review(path: Path, out_dir: Path, base_url: Optional[str] = None) -> int:
    printer = _TypingPrinter()
    async with EditorClient(base_url) as client:
        session = ReviewSession(client, on_update=printer)
        try:
            await session.review_file(path)
        except (OSError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    print()

    if session.state != StreamState.COMPLETED:
        return 1
    saved = session.save(out_dir)
    print(f"\nReport saved to {saved}")
    return 0


async def run_chat(base_url: Optional[str] = None, input_fn=input) -> int:
    printer = _TypingPrinter()

    def on_update(transcript: ChatTranscript) -> None:
        if transcript.is_streaming:
            printer(visible_while_streaming(transcript.messages[-1].content))

    async with EditorClient(base_url) as client:
        session = ChatSession(client, on_update=on_update)
        print("Ask about OSBM style guidelines (empty line to quit). Try asking:")
        for i, prompt in enumerate(STARTER_QUESTIONS, 1):
            print(f"  {i}. {prompt}")

        offered = list(STARTER_QUESTIONS)
        while True:
            try:
                question = input_fn("\n> ").strip()
            except EOFError:
                break
            if not question:
                break
            # A bare number picks one of the offered questions
            if question.isdigit() and 1 <= int(question) <= len(offered):
                question = offered[int(question) - 1]
                print(question)

            printer.reset()
            answer = await session.ask(question)
            if answer is not None and not session.error:
                # Release anything held back while the marker was still undecided
                printer(answer.display_text)
            print()
            if answer is None:
                continue
            if session.error:
                print(session.messages[-1].content, file=sys.stderr)
                continue
            if answer.suggestions:
                print("\nFollow-up questions:")
                for i, suggestion in enumerate(answer.suggestions, 1):
                    print(f"  {i}. {suggestion}")
            offered = answer.suggestions
    return 0


def main(argv=None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="OSBM style guide editor")
    parser.add_argument("--api-url", default=None, help="Editor API base URL (default: $EDITOR_API_URL)")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    review_parser = sub.add_parser("review", help="Review a document against the style guide")
    review_parser.add_argument("path", type=Path)
    review_parser.add_argument("--out", type=Path, default=Path.cwd(), help="Where to save <name>_review.md")

    sub.add_parser("chat", help="Ask style-guide questions")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    if args.command == "review":
        return asyncio.run(run_review(args.path, args.out, args.api_url))
    return asyncio.run(run_chat(args.api_url))


if __name__ == "__main__":
    sys.exit(main())
