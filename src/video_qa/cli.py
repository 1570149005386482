from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from video_qa.app import ROOT_DIR, Services, build_services, serve
from video_qa.domain.errors import VideoQAError
from video_qa.domain.models import BytesReference, Question, UrlReference


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="video-qa", description="Ask questions about a video transcript")
    parser.add_argument("--root-dir", default=str(ROOT_DIR), help="directory holding config/ and prompts/")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("serve", help="start the HTTP server")

    url_cmd = sub.add_parser("ingest-url", help="fetch auto-generated subtitles for a video URL")
    url_cmd.add_argument("url")

    file_cmd = sub.add_parser("ingest-file", help="transcribe a local video file")
    file_cmd.add_argument("path")

    ask_cmd = sub.add_parser("ask", help="ask a question, optionally ingesting a URL first")
    ask_cmd.add_argument("question")
    ask_cmd.add_argument(
        "--timestamp",
        type=int,
        default=None,
        help="position in the video, in seconds (default: current Unix time, as /ask does)",
    )
    ask_cmd.add_argument("--url", default="", help="video URL to ingest before asking")

    return parser


def _print(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


async def _ingest_url(services: Services, url: str) -> int:
    result = await services.ingestion.ingest(UrlReference(url))
    _print({"success": True, "transcript": result.transcript})
    return 0


async def _ingest_file(services: Services, path: Path) -> int:
    if not path.is_file():
        raise FileNotFoundError(f"Video not found: {path}")
    ref = BytesReference(path.read_bytes(), suffix=path.suffix or ".mp4")
    result = await services.ingestion.ingest(ref)
    _print({"success": True, "transcript": result.transcript, "timestamp": result.timestamp})
    return 0


async def _ask(services: Services, question: str, timestamp: int | None, url: str) -> int:
    if url:
        await services.ingestion.ingest(UrlReference(url))
    answer = await services.answerer.ask(Question.asked(question, timestamp))
    _print({"answer": answer.text})
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    services = build_services(Path(args.root_dir))

    if args.command == "serve":
        serve(services)
        return 0

    try:
        if args.command == "ingest-url":
            return asyncio.run(_ingest_url(services, args.url))
        if args.command == "ingest-file":
            return asyncio.run(_ingest_file(services, Path(args.path)))
        if args.command == "ask":
            return asyncio.run(_ask(services, args.question, args.timestamp, args.url))
    except (VideoQAError, FileNotFoundError) as exc:
        summary = getattr(exc, "summary", "Request failed")
        _print({"error": summary, "details": str(exc)})
        return 1

    return 2


if __name__ == "__main__":
    sys.exit(main())
