"""
barkpush - send pushes to Bark-compatible gateways from the command line

Usage:
    barkpush send https://api.day.app/KEY/ "Hello" --title "Greeting"
    barkpush send https://api.day.app/KEY/ "Secret" --key 0123456789abcdef
    barkpush send https://api.day.app/KEY1/ "Batch" --device https://bark.example.com/KEY2/
    barkpush ping https://api.day.app/KEY/
    barkpush keygen --algorithm AES128
    barkpush serve --port 8000

Exit codes:
    0  push delivered (code 200)
    1  gateway answered with a non-200 code
    2  configuration, network or protocol error
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from barkpush.exceptions import BarkPushError
from barkpush.logging_config import configure_json_logging
from barkpush.models.push import (
    Authorization,
    EncryptionAlgorithm,
    EncryptionConfig,
    PushLevel,
    PushRequest,
)
from barkpush.services.bark_client import BarkClient
from barkpush.services.crypto import decrypt_aes_cbc, generate_iv, generate_key
from barkpush.services.device_grouping import (
    device_from_api_url,
    format_api_url,
    validate_api_url,
)
from barkpush.services.push_dispatcher import PushDispatcher
from barkpush.utils.error_handling import format_exception_for_response

EXIT_OK = 0
EXIT_PUSH_FAILED = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="barkpush",
        description="Send pushes to Bark-compatible gateways",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--verbose", action="store_true", help="Show debug logs")
    parser.add_argument("--timeout", type=int, default=10, help="Request timeout in seconds")
    subparsers = parser.add_subparsers(dest="command", required=True)

    send = subparsers.add_parser("send", help="Send a push")
    send.add_argument("api_url", help="Device URL, e.g. https://api.day.app/<device_key>/")
    send.add_argument("message", help="Notification body")
    send.add_argument("--title")
    send.add_argument("--subtitle")
    send.add_argument("--sound")
    send.add_argument("--url", help="URL opened when the notification is tapped")
    send.add_argument("--icon")
    send.add_argument("--image")
    send.add_argument("--group")
    send.add_argument("--badge", type=int)
    send.add_argument("--level", choices=[level.value for level in PushLevel])
    send.add_argument("--volume", type=int, choices=range(0, 11), metavar="0-10")
    send.add_argument("--call", choices=["0", "1"])
    send.add_argument("--auto-copy", choices=["0", "1"])
    send.add_argument("--copy", help="Text copied instead of the message")
    send.add_argument("--archive", choices=["0", "1"])
    send.add_argument("--action", choices=["none"])
    send.add_argument("--id", help="Push id (generated when omitted)")
    send.add_argument("--user", help="Basic auth user")
    send.add_argument("--password", help="Basic auth password")
    send.add_argument(
        "--device",
        action="append",
        default=[],
        help="Additional device URL (repeatable, implies --v2)",
    )
    send.add_argument("--v2", action="store_true", help="Use the JSON API v2")
    send.add_argument("--key", help="Encryption key (16, 24 or 32 characters)")
    send.add_argument("--json", action="store_true", help="Output results as JSON")

    ping = subparsers.add_parser("ping", help="Check that a device's gateway is reachable")
    ping.add_argument("api_url")

    keygen = subparsers.add_parser("keygen", help="Generate an encryption key and IV")
    keygen.add_argument(
        "--algorithm",
        choices=[algorithm.value for algorithm in EncryptionAlgorithm],
        default=EncryptionAlgorithm.AES256.value,
    )

    decrypt = subparsers.add_parser("decrypt", help="Decrypt a captured ciphertext")
    decrypt.add_argument("ciphertext")
    decrypt.add_argument("--key", required=True)
    decrypt.add_argument("--iv", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser


def build_request(args: argparse.Namespace) -> PushRequest:
    """Turn parsed ``send`` arguments into a push request."""
    authorization = None
    if args.user is not None:
        authorization = Authorization.basic(args.user, args.password or "")

    api_url = format_api_url(args.api_url)
    devices = []
    if args.device:
        devices = [
            device_from_api_url(url, authorization=authorization)
            for url in [api_url, *args.device]
        ]

    return PushRequest(
        message=args.message,
        title=args.title,
        subtitle=args.subtitle,
        sound=args.sound,
        url=args.url,
        icon=args.icon,
        image=args.image,
        group=args.group,
        badge=args.badge,
        level=args.level,
        volume=args.volume,
        call=args.call,
        auto_copy=args.auto_copy,
        copy_text=args.copy,
        is_archive=args.archive,
        action=args.action,
        id=args.id,
        api_url=api_url,
        authorization=authorization,
        devices=devices,
    )


async def run_send(args: argparse.Namespace) -> int:
    if not validate_api_url(args.api_url):
        print(f"Error: Invalid device URL: {args.api_url}", file=sys.stderr)
        return EXIT_ERROR

    encryption_config = EncryptionConfig(key=args.key) if args.key else None
    api_version = "v2" if args.v2 or args.device else "v1"
    dispatcher = PushDispatcher(
        BarkClient(timeout_seconds=args.timeout),
        encryption_config=encryption_config,
        api_version=api_version,
    )

    try:
        result = await dispatcher.dispatch(build_request(args))
    except BarkPushError as e:
        if args.json:
            print(json.dumps(format_exception_for_response(e), indent=2))
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    if args.json:
        print(
            json.dumps(
                {
                    "success": result.success,
                    "id": result.id,
                    "encrypted": result.encrypted,
                    "response": result.response.model_dump(),
                    "parameters": [p.model_dump() for p in result.parameters],
                },
                indent=2,
                ensure_ascii=False,
            )
        )
    elif result.success:
        print(f"✓ Sent (id: {result.id})")
    else:
        print(f"✗ [{result.response.code}] {result.response.message}", file=sys.stderr)

    return EXIT_OK if result.success else EXIT_PUSH_FAILED


async def run_ping(args: argparse.Namespace) -> int:
    try:
        result = await BarkClient(timeout_seconds=args.timeout).ping(args.api_url)
    except BarkPushError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    print(f"[{result.code}] {result.message} - {result.latency_ms}ms")
    return EXIT_OK if 200 <= result.code < 300 else EXIT_PUSH_FAILED


def run_keygen(args: argparse.Namespace) -> int:
    print(f"key: {generate_key(args.algorithm)}")
    print(f"iv:  {generate_iv()}")
    return EXIT_OK


def run_decrypt(args: argparse.Namespace) -> int:
    try:
        print(decrypt_aes_cbc(args.ciphertext, args.key, args.iv))
    except BarkPushError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    return EXIT_OK


def run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("barkpush.main:app", host=args.host, port=args.port)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command != "serve":
        configure_json_logging(
            log_level="DEBUG" if args.verbose else "WARNING",
            use_json=False,
        )

    if args.command == "send":
        return asyncio.run(run_send(args))
    if args.command == "ping":
        return asyncio.run(run_ping(args))
    if args.command == "keygen":
        return run_keygen(args)
    if args.command == "decrypt":
        return run_decrypt(args)
    return run_serve(args)


if __name__ == "__main__":
    sys.exit(main())
