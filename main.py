"""
docqa - Command Line Entry Point

Loads the configuration, sets up logging and runs one of the subcommands:

    docqa ingest <file-or-url> [--crawl]
    docqa ask "<question>" [--top-k N] [--stream]
    docqa chat [--top-k N] [--stream] [--history N]
    docqa collections
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from docqa.core.errors import AcquisitionError, DocQAError, NotFoundError, ServiceError
from docqa.core.settings import DEFAULT_SETTINGS_PATH, SettingsError, load_settings
from docqa.observability.logger import get_logger
from docqa.rag import RagPipeline
from docqa.retrieval.models import ChatSession

DEFAULT_HISTORY_TURNS = 10
NO_CONTEXT = "No relevant context found in the index."


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docqa",
        description="Ask questions about your documents and web pages.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_SETTINGS_PATH,
        help=f"Path to settings YAML (default: {DEFAULT_SETTINGS_PATH})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Index a file or URL")
    ingest.add_argument("source", help="Path to a .txt/.md/.pdf file or an http(s) URL")
    ingest.add_argument(
        "--crawl",
        action="store_true",
        help="For URLs, follow links and index the whole site",
    )

    ask = subparsers.add_parser("ask", help="Ask a question against the index")
    ask.add_argument("question", help="Question to answer")
    ask.add_argument("--top-k", type=int, default=None, help="Chunks to retrieve")
    ask.add_argument(
        "--stream",
        action="store_true",
        default=None,
        help="Print the answer as it is generated (default: llm.streaming)",
    )

    chat = subparsers.add_parser("chat", help="Ask follow-up questions read from stdin")
    chat.add_argument("--top-k", type=int, default=None, help="Chunks to retrieve")
    chat.add_argument(
        "--stream",
        action="store_true",
        default=None,
        help="Print answers as they are generated (default: llm.streaming)",
    )
    chat.add_argument(
        "--history",
        type=int,
        default=DEFAULT_HISTORY_TURNS,
        help=f"Earlier turns sent with each question (default: {DEFAULT_HISTORY_TURNS})",
    )

    subparsers.add_parser("collections", help="List collections in the vector store")
    return parser


def _ingest(rag: RagPipeline, args: argparse.Namespace) -> int:
    result = rag.ingest(args.source, crawl=args.crawl)
    print(
        f"Ingested {len(result.documents)} document(s), {result.chunk_count} chunk(s) "
        f"from {result.source}"
    )
    if result.location:
        print(f"Index saved to {result.location}")
    return 0


def _ask(rag: RagPipeline, args: argparse.Namespace) -> int:
    streaming = rag.settings.llm.streaming if args.stream is None else args.stream

    if streaming:
        streamed = rag.stream(args.question, top_k=args.top_k)
        if not streamed.grounded:
            print(NO_CONTEXT)
            return 2
        for fragment in streamed.fragments:
            print(fragment, end="", flush=True)
        print()
        sources = streamed.sources
    else:
        answer = rag.answer(args.question, top_k=args.top_k)
        if not answer.grounded:
            print(NO_CONTEXT)
            return 2
        print(answer.text)
        sources = answer.sources

    print("\nSources:")
    for item in sources:
        source = item.chunk.metadata.get("source", item.chunk.id)
        print(f"  [{item.score:.3f}] {source}")
    return 0


def _chat(rag: RagPipeline, args: argparse.Namespace) -> int:
    streaming = rag.settings.llm.streaming if args.stream is None else args.stream
    session = ChatSession(max_turns=args.history)

    print("Ask a question (empty line or Ctrl-D to quit).")
    for line in sys.stdin:
        question = line.strip()
        if not question:
            break
        if streaming:
            streamed = rag.stream(question, top_k=args.top_k, session=session)
            if not streamed.grounded:
                print(NO_CONTEXT)
                continue
            for fragment in streamed.fragments:
                print(fragment, end="", flush=True)
            print()
        else:
            answer = rag.answer(question, top_k=args.top_k, session=session)
            print(answer.text if answer.grounded else NO_CONTEXT)
    return 0


def _collections(rag: RagPipeline) -> int:
    store = rag.vector_store
    list_collections = getattr(store, "list_collections", None)
    if list_collections is None:
        provider = rag.settings.vector_store.provider
        print(f"Vector store provider '{provider}' does not support collections.")
        return 1
    for name in list_collections():
        print(name)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the docqa CLI.

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.config)
    except SettingsError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    logger = get_logger(log_level=settings.observability.log_level)
    logger.info("Settings loaded successfully.")

    try:
        rag = RagPipeline.from_settings(settings)
        if args.command == "ingest":
            return _ingest(rag, args)
        if args.command == "ask":
            return _ask(rag, args)
        if args.command == "chat":
            return _chat(rag, args)
        return _collections(rag)
    except AcquisitionError as exc:
        print(f"Could not read source: {exc}", file=sys.stderr)
        return 3
    except NotFoundError as exc:
        print(f"{exc}. Run 'docqa ingest' first.", file=sys.stderr)
        return 4
    except ServiceError as exc:
        print(f"Service error during {exc.stage}: {exc}", file=sys.stderr)
        return 5
    except (DocQAError, ValueError, RuntimeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
