#!/usr/bin/env python3
"""
Wallet Identity Import Script
=============================

Store an X.509 identity (certificate + private key) in the bridge's
filesystem wallet so the service can connect as that identity.

Usage:
    python scripts/import_identity.py \\
        --msp-id Org1MSP \\
        --cert organizations/.../User1@org1.example.com/msp/signcerts/cert.pem \\
        --key organizations/.../User1@org1.example.com/msp/keystore/priv_sk

    python scripts/import_identity.py --msp-dir .../User1@org1.example.com/msp --msp-id Org1MSP
    python scripts/import_identity.py --list

Version: 0.1.0
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shared.config import settings
from shared.fabric import Identity, WalletError, Wallets, X509Credentials
from shared.logging import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False, service_name="import-identity")
logger = get_logger(__name__)


def _single_file(directory: Path) -> Path:
    """Return the only regular file in an MSP subdirectory."""
    files = sorted(p for p in directory.iterdir() if p.is_file())
    if len(files) != 1:
        raise ValueError(f"Expected exactly one file in {directory}, found {len(files)}")
    return files[0]


def resolve_credential_paths(args: argparse.Namespace) -> tuple[Path, Path]:
    """Work out certificate and key paths from the command line."""
    if args.msp_dir:
        msp_dir = Path(args.msp_dir)
        return _single_file(msp_dir / "signcerts"), _single_file(msp_dir / "keystore")
    if not args.cert or not args.key:
        raise ValueError("Either --msp-dir or both --cert and --key are required")
    return Path(args.cert), Path(args.key)


async def main(args: argparse.Namespace) -> int:
    """Main import function."""
    wallet_dir = Path(args.wallet) if args.wallet else settings.fabric.wallet_dir
    try:
        wallet = await Wallets.new_file_system_wallet(wallet_dir)
    except WalletError as e:
        logger.error("identity_import_failed", error=str(e))
        return 1

    if args.list:
        for label in await wallet.list():
            print(label)
        return 0

    try:
        cert_path, key_path = resolve_credential_paths(args)
        identity = Identity(
            credentials=X509Credentials(
                certificate=cert_path.read_text(encoding="utf-8"),
                private_key=key_path.read_text(encoding="utf-8"),
            ),
            msp_id=args.msp_id,
        )
    except (OSError, ValueError) as e:
        logger.error("identity_import_failed", error=str(e))
        return 1

    if not args.force:
        try:
            existing = await wallet.get(args.label)
        except WalletError as e:
            logger.error("identity_import_failed", error=str(e), hint="use --force to overwrite")
            return 1
        if existing is not None:
            logger.error(
                "identity_already_exists",
                label=args.label,
                wallet=str(wallet_dir),
                hint="use --force to overwrite",
            )
            return 1

    try:
        await wallet.put(args.label, identity)
    except (OSError, WalletError) as e:
        logger.error("identity_import_failed", error=str(e))
        return 1

    logger.info(
        "identity_imported",
        label=args.label,
        msp_id=args.msp_id,
        wallet=str(wallet_dir),
    )
    return 0


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Import an X.509 identity into the bridge wallet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--wallet",
        help=f"Wallet directory (default: {settings.fabric.wallet_path})",
    )
    parser.add_argument(
        "--label",
        default=settings.fabric.identity,
        help=f"Identity label (default: {settings.fabric.identity})",
    )
    parser.add_argument("--msp-id", default="Org1MSP", help="MSP ID (default: Org1MSP)")
    parser.add_argument("--msp-dir", help="MSP directory containing signcerts/ and keystore/")
    parser.add_argument("--cert", help="PEM certificate file")
    parser.add_argument("--key", help="PEM private key file")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing identity with the same label",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List identities in the wallet and exit",
    )

    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    exit_code = asyncio.run(main(args))
    sys.exit(exit_code)
