"""CLI command for sending a signed Blockradar webhook to a running server.

Signs a JSON payload file with BLOCKRADAR_WEBHOOK_SECRET exactly as Blockradar
does and POSTs it, so event handling can be exercised locally without the
provider.

Usage:
    python -m nedapay.cli replay PAYLOAD_FILE [OPTIONS]

Examples:
    # Replay a confirmed deposit against a local server
    python -m nedapay.cli replay fixtures/deposit_confirmed.json

    # Target another deployment and sign with an explicit secret
    python -m nedapay.cli replay payload.json --url https://staging.example/webhooks/blockradar \\
        --secret "$STAGING_SECRET"

    # Only print the signature header
    python -m nedapay.cli replay payload.json --print-signature
"""

from argparse import ArgumentParser, Namespace
from pathlib import Path

import httpx
import structlog

from nedapay.core.config import BLOCKRADAR_SIGNATURE_HEADER, Settings, configure_logging
from nedapay.services.blockradar.signature import compute_signature, signature_fingerprint

logger = structlog.get_logger()

DEFAULT_URL = "http://localhost:8000/webhooks/blockradar"


def add_arguments(parser: ArgumentParser) -> None:
    parser.add_argument("payload", type=Path, help="Path to the JSON body to send")
    parser.add_argument(
        "--url",
        default=DEFAULT_URL,
        help=f"Webhook endpoint (default: {DEFAULT_URL})",
    )
    parser.add_argument(
        "--secret",
        help="Signing secret (default: BLOCKRADAR_WEBHOOK_SECRET from settings)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Request timeout in seconds (default: 10)",
    )
    parser.add_argument(
        "--print-signature",
        action="store_true",
        help="Print the signature header and exit without sending",
    )


def run(args: Namespace, settings: Settings) -> int:
    """Sign and send the payload.

    Returns:
        Exit code: 0 (2xx response), 1 (error or non-2xx response)
    """
    configure_logging(settings)

    secret = args.secret or settings.blockradar_webhook_secret
    if not secret:
        logger.error(
            "replay.error",
            message="No signing secret. Pass --secret or set BLOCKRADAR_WEBHOOK_SECRET.",
        )
        return 1

    try:
        # Sent byte-for-byte; reformatting the JSON would change the signature
        raw_body = args.payload.read_bytes()
    except OSError as e:
        logger.error("replay.error", message=f"Cannot read payload: {e}")
        return 1

    signature = compute_signature(raw_body, secret)

    if args.print_signature:
        print(f"{BLOCKRADAR_SIGNATURE_HEADER}: {signature}")
        return 0

    logger.info(
        "replay.sending",
        url=args.url,
        body_length=len(raw_body),
        signature_prefix=signature_fingerprint(signature),
    )

    try:
        response = httpx.post(
            args.url,
            content=raw_body,
            headers={
                "Content-Type": "application/json",
                BLOCKRADAR_SIGNATURE_HEADER: signature,
            },
            timeout=args.timeout,
        )
    except httpx.HTTPError as e:
        logger.error("replay.request_failed", error=str(e), error_type=type(e).__name__)
        return 1

    logger.info("replay.response", status_code=response.status_code, body=response.text[:500])
    return 0 if response.is_success else 1
