"""Command-line interface for asking questions and managing collections."""

import argparse
import asyncio

from src.utils.logging import get_logger

from .config import get_config
from .embedding_service import EmbeddingService
from .errors import VideoQAError
from .pipeline import VideoQAPipeline
from .vector_index import VectorIndexService

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="YouTube transcript chatbot - ask questions and manage collections",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Ask about a video (starts a new session)
  python -m src.video_qa.cli ask https://youtu.be/rWKwQ1I4xzc "What is the video about?"

  # Follow-up question in the same session
  python -m src.video_qa.cli ask https://youtu.be/rWKwQ1I4xzc "Who is speaking?" --session-id <id>

  # List stored collections, optionally for one session
  python -m src.video_qa.cli list --session-id <id>

  # Delete a collection
  python -m src.video_qa.cli delete yt_rWKwQ1I4xzc_<id>
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ask = subparsers.add_parser("ask", help="Ask a question about a video")
    ask.add_argument("video_url", help="YouTube video URL")
    ask.add_argument("question", help="Question to answer from the transcript")
    ask.add_argument("--session-id", help="Reuse the collection of an earlier session")

    listing = subparsers.add_parser("list", help="List stored collections")
    listing.add_argument("--session-id", help="Only show collections of this session")

    delete = subparsers.add_parser("delete", help="Delete a stored collection")
    delete.add_argument("collection", help="Collection name, e.g. yt_<video>_<session>")

    return parser


async def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        Process exit code: 0 on success, 1 on a service error.
    """
    args = build_parser().parse_args(argv)

    config = get_config()
    config.require_secrets()

    logger.info("cli_started", command=args.command)

    try:
        if args.command == "ask":
            pipeline = VideoQAPipeline(config)
            response = await pipeline.answer_question(
                args.video_url, args.question, args.session_id
            )
            print("\n" + "=" * 60)
            print(response.answer)
            print("=" * 60)
            print(f"Session ID: {response.session_id}")
            if response.is_new_session:
                print("(new session - pass --session-id to ask follow-ups)")
            print()

        else:
            index = VectorIndexService(config, EmbeddingService(config))

            if args.command == "list":
                collections = await index.list_collections(args.session_id)
                if not collections:
                    print("No collections found")
                for info in collections:
                    print(
                        f"{info.name}  chunks={info.chunk_count}  "
                        f"size={info.chunk_size}/{info.chunk_overlap}  "
                        f"created={info.created_at}"
                    )

            elif args.command == "delete":
                await index.delete_collection(args.collection)
                print(f"Deleted {args.collection}")

    except VideoQAError as e:
        logger.error("cli_failed", command=args.command, error_type=type(e).__name__)
        print(f"\n❌ {e.message}")
        if e.details:
            print(f"   {e.details}")
        return 1

    logger.info("cli_completed", command=args.command)
    return 0


def run() -> None:
    """Console script entry point."""
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    run()
