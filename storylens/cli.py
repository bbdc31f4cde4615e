"""
Command-line interface for StoryLens: run the API server or talk to one.
"""

import argparse
import sys
from pathlib import Path

import httpx

from storylens.client.http import StoryLensAPIError, StoryLensClient
from storylens.client.poller import PollTimeout, processing_step
from storylens.config import settings


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="storylens",
        description="StoryLens: turn photos into short stories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m storylens serve --port 5000
  python -m storylens generate beach.jpg --wait
  python -m storylens get 3
  python -m storylens download 3 -o story.txt
        """,
    )
    parser.add_argument(
        "--url",
        default=f"http://localhost:{settings.port}",
        help="Base URL of a running StoryLens server",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=settings.port)

    generate = sub.add_parser("generate", help="Upload an image and start a story")
    generate.add_argument("image", type=Path)
    generate.add_argument("--wait", action="store_true", help="Poll until the story is finished")
    generate.add_argument("--interval", type=float, default=2.0, help="Seconds between polls")
    generate.add_argument("--timeout", type=float, default=None, help="Give up after this many seconds")

    get = sub.add_parser("get", help="Show a story")
    get.add_argument("id", type=int)

    sub.add_parser("list", help="List stories, newest first")

    download = sub.add_parser("download", help="Save a story as text")
    download.add_argument("id", type=int)
    download.add_argument("-o", "--output", type=Path, default=None)

    return parser.parse_args(argv)


def print_story(story: dict) -> None:
    print(f"#{story['id']} [{story['processingStatus']}] {story['title']}")
    print(f"  image: {story['imageUrl']}")
    if story.get("audioUrl"):
        print(f"  audio: {story['audioUrl']}")
    print()
    print(story["content"])


def serve(host: str, port: int) -> int:
    import uvicorn

    uvicorn.run("storylens.main:create_app", factory=True, host=host, port=port)
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)

    if args.command == "serve":
        return serve(args.host, args.port)

    with StoryLensClient(args.url) as client:
        try:
            if args.command == "generate":
                if not args.image.is_file():
                    print(f"ERROR: Image file '{args.image}' does not exist!")
                    return 1
                story = client.generate(str(args.image))
                print(f"Story {story['id']} accepted, status: {story['processingStatus']}")
                if args.wait:
                    def report(record: dict) -> None:
                        status = record["processingStatus"]
                        print(f"  step {processing_step(status)}/3: {status}")

                    story = client.wait_for_story(
                        story["id"],
                        interval=args.interval,
                        timeout=args.timeout,
                        on_update=report,
                    )
                    print()
                    print_story(story)
                    return 0 if story["processingStatus"] == "completed" else 1

            elif args.command == "get":
                print_story(client.get_story(args.id))

            elif args.command == "list":
                for story in client.list_stories():
                    print(f"#{story['id']} [{story['processingStatus']}] {story['title']}  {story['createdAt']}")

            elif args.command == "download":
                text = client.download(args.id)
                if args.output:
                    args.output.write_text(text, encoding="utf-8")
                    print(f"Saved to {args.output}")
                else:
                    print(text)

        except (StoryLensAPIError, PollTimeout) as exc:
            print(f"ERROR: {exc}")
            return 1
        except httpx.HTTPError as exc:
            print(f"ERROR: Could not reach StoryLens at {args.url}: {exc}")
            return 1

    return 0
