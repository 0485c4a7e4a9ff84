# =============================================================================
# src/cli/ingest.py — Operator CLI for agent knowledge bases
# =============================================================================
#
# Supported subcommands:
#
#   text      — Train an agent on a plain-text file
#   faq       — Train an agent on an FAQ file (entries separated by blank lines)
#   file      — Train an agent on any supported file (MIME type sniffed)
#   query     — Retrieve the most relevant chunks for a question
#   list      — List an agent's training documents
#   delete    — Delete one training document
#   purge     — Delete an agent's entire knowledge base
#   reconcile — Remove orphaned vectors (split vector store only)
#
# Provider selection follows src/main.py (EMBEDDING_PROVIDER,
# MEDIA_PROCESSOR_PRIORITY, VECTOR_DB_TYPE).
#
# Usage examples:
#   python -m src.cli text --agent a1 --file notes.txt --title "Opening hours"
#   python -m src.cli file --agent a1 --file manual.pdf --title "Manual"
#   python -m src.cli query --agent a1 "When do you open on Sundays?"
#   python -m src.cli purge --agent a1 --yes
# =============================================================================

"""Operator CLI for training agents and inspecting their knowledge bases."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from src.config.settings import Settings
from src.main import build_rag_components, close_rag_components
from src.models.rag import DocumentType, RAGQuery
from src.utils.errors import KnowledgeBaseError
from src.utils.logging import configure_logging

# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_text(args: argparse.Namespace, components: dict[str, Any], document_type: DocumentType) -> int:
    content = Path(args.file).read_text(encoding="utf-8")
    document = await components["rag_service"].process_document(
        args.agent,
        args.title or Path(args.file).stem,
        document_type,
        content,
        args.source_url,
    )
    print(f"Ingested {document_type.value} document {document.id}")
    print(f"  Chunks created: {len(document.chunks)}")
    return 0


async def _handle_file(args: argparse.Namespace, components: dict[str, Any]) -> int:
    path = Path(args.file)
    document = await components["training_service"].process_file(
        args.agent,
        args.title or path.stem,
        path.read_bytes(),
        mime_type=args.mime_type,
        source_url=args.source_url,
    )
    print(f"Ingested {document.document_type.value} document {document.id} ({document.mime_type})")
    print(f"  Chunks created: {len(document.chunks)}")
    return 0


async def _handle_query(args: argparse.Namespace, components: dict[str, Any]) -> int:
    response = await components["rag_service"].query(
        RAGQuery(
            query=args.question,
            agent_id=args.agent,
            top_k=args.top_k,
            threshold=args.threshold,
        )
    )
    if not response.chunks:
        print("No relevant chunks found.")
        return 0
    for rank, chunk in enumerate(response.chunks, start=1):
        title = chunk.metadata.get("title", "")
        print(f"{rank:>2}. [{chunk.score:.3f}] {title}")
        print(f"    {chunk.content[:200]}")
    return 0


async def _handle_list(args: argparse.Namespace, components: dict[str, Any]) -> int:
    documents = await components["rag_service"].get_agent_documents(args.agent)
    if not documents:
        print(f"Agent {args.agent} has no training documents.")
        return 0
    print(f"{'ID':<38} {'TYPE':<6} {'CHUNKS':>6}  {'PROCESSED':<9}  TITLE")
    for doc in documents:
        processed = "yes" if doc.is_processed else "no"
        print(f"{doc.id:<38} {doc.document_type.value:<6} {len(doc.chunks):>6}  {processed:<9}  {doc.title}")
    return 0


async def _handle_delete(args: argparse.Namespace, components: dict[str, Any]) -> int:
    await components["rag_service"].delete_document(args.agent, args.document)
    print(f"Deleted document {args.document}")
    return 0


async def _handle_purge(args: argparse.Namespace, components: dict[str, Any]) -> int:
    if not args.yes:
        confirm = input(f"  Delete the entire knowledge base of agent {args.agent}? [y/N] ").strip().lower()
        if confirm not in ("y", "yes"):
            print("  Aborted.")
            return 0
    removed = await components["rag_service"].delete_agent_documents(args.agent)
    print(f"Deleted {removed} documents.")
    return 0


async def _handle_reconcile(args: argparse.Namespace, components: dict[str, Any]) -> int:
    removed = await components["rag_service"].reconcile(args.agent)
    print(f"Removed {removed} orphaned vectors.")
    return 0


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    components = build_rag_components(app_settings)
    try:
        if args.command == "text":
            return await _handle_text(args, components, DocumentType.TEXT)
        if args.command == "faq":
            return await _handle_text(args, components, DocumentType.FAQ)
        if args.command == "file":
            return await _handle_file(args, components)
        if args.command == "query":
            return await _handle_query(args, components)
        if args.command == "list":
            return await _handle_list(args, components)
        if args.command == "delete":
            return await _handle_delete(args, components)
        if args.command == "purge":
            return await _handle_purge(args, components)
        if args.command == "reconcile":
            return await _handle_reconcile(args, components)
        return 1
    finally:
        await close_rag_components(components)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the knowledge-base CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli",
        description="Train agents and inspect their knowledge bases.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Knowledge-base commands")

    def _with_agent(sub: argparse.ArgumentParser) -> argparse.ArgumentParser:
        sub.add_argument("--agent", required=True, help="Agent id")
        return sub

    # -- text / faq --
    for name, help_text in (
        ("text", "Ingest a plain-text file"),
        ("faq", "Ingest an FAQ file (entries separated by blank lines)"),
    ):
        sub = _with_agent(subparsers.add_parser(name, help=help_text))
        sub.add_argument("--file", required=True, help="Path to the UTF-8 text file")
        sub.add_argument("--title", help="Document title (default: file name)")
        sub.add_argument("--source-url", dest="source_url", help="Where the content came from")

    # -- file --
    file_parser = _with_agent(subparsers.add_parser("file", help="Ingest any supported file"))
    file_parser.add_argument("--file", required=True, help="Path to the file")
    file_parser.add_argument("--title", help="Document title (default: file name)")
    file_parser.add_argument("--mime-type", dest="mime_type", help="Override MIME detection")
    file_parser.add_argument("--source-url", dest="source_url", help="Where the file came from")

    # -- query --
    query_parser = _with_agent(subparsers.add_parser("query", help="Retrieve relevant chunks"))
    query_parser.add_argument("question", help="Natural-language question")
    query_parser.add_argument("--top-k", dest="top_k", type=int, default=0, help="Max results (default 5)")
    query_parser.add_argument(
        "--threshold", type=float, default=0.0, help="Minimum similarity (default 0.7)"
    )

    # -- list --
    _with_agent(subparsers.add_parser("list", help="List training documents"))

    # -- delete --
    delete_parser = _with_agent(subparsers.add_parser("delete", help="Delete one training document"))
    delete_parser.add_argument("--document", required=True, help="Document id")

    # -- purge --
    purge_parser = _with_agent(subparsers.add_parser("purge", help="Delete an agent's knowledge base"))
    purge_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")

    # -- reconcile --
    _with_agent(subparsers.add_parser("reconcile", help="Remove orphaned vectors"))

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse arguments, configure logging, dispatch."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    configure_logging(
        log_level=app_settings.log_level,
        json_output=(app_settings.app_env == "production"),
    )

    try:
        exit_code = asyncio.run(_run(args, app_settings))
    except KnowledgeBaseError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
