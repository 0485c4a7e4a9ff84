# =============================================================================
# src/cli/__init__.py — CLI Module Overview
# =============================================================================
#
# Command-line tools for operators who need to train or inspect an agent's
# knowledge base outside the chat-serving application.
#
# Architecture Notes:
#   - argparse for argument parsing (not Click/Typer).
#   - Services are built through src/main.py so the CLI uses the same
#     embedding model and vector store as the deployed service (vectors of
#     different models cannot be compared).
#   - Each invocation is a one-shot asyncio.run(); the shared HTTP client is
#     closed before exit.
# =============================================================================

"""CLI tools for agent knowledge bases.

- ``python -m src.cli`` — ingest text/FAQ/files, query, list, delete,
  purge and reconcile an agent's knowledge base.
"""
