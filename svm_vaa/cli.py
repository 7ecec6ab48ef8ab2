"""
svm-vaa command line.

Commands:
    submit    Submit a signed VAA to a resolver-enabled program
    account   Dump an account (base58 address or pda:PROGRAM:seed:...)
    pda       Derive a program address

Human-readable progress goes to stderr; machine-readable results
(signatures, hex data, addresses) go to stdout so they can be piped.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Mapping, Sequence, TextIO

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from svm_vaa.broadcast import broadcast_vaa
from svm_vaa.config import DEFAULT_RPC_URL, SubmitConfig
from svm_vaa.errors import SubmitError
from svm_vaa.vaa import parse_signed_vaa

logger = logging.getLogger("svm_vaa.cli")

PDA_PREFIX = "pda:"


def setup_logging(level: str = "INFO") -> None:
    """Configure logging on stderr."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


# =========================================================================
# Input parsing
# =========================================================================


def parse_pubkey(value: str, what: str = "address") -> Pubkey:
    try:
        return Pubkey.from_string(value)
    except ValueError as e:
        raise ValueError(f"invalid {what}: {value}") from e


def decode_hex(text: str, source: str = "argument") -> bytes:
    """Decode hex text, tolerating surrounding whitespace and a 0x prefix."""
    text = text.strip()
    if text[:2] in ("0x", "0X"):
        text = text[2:]
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        raise ValueError(f"decoding hex from {source}: {e}") from e


def parse_seed(seed: str) -> bytes:
    """A seed is 0x-prefixed hex, otherwise its UTF-8 bytes."""
    if seed.startswith("0x"):
        return decode_hex(seed, f"seed {seed}")
    return seed.encode("utf-8")


def derive_pda(program: str, seeds: Sequence[str]) -> tuple[Pubkey, int]:
    program_id = parse_pubkey(program, "program id")
    return Pubkey.find_program_address([parse_seed(s) for s in seeds], program_id)


def resolve_address(value: str, err: TextIO) -> Pubkey:
    """Base58 address, or ``pda:PROGRAM:seed1:seed2`` derived on the spot."""
    if not value.startswith(PDA_PREFIX):
        return parse_pubkey(value)
    program, *seeds = value[len(PDA_PREFIX):].split(":")
    if not program:
        raise ValueError("pda address needs a program id: pda:PROGRAM:seed1:seed2")
    address, bump = derive_pda(program, seeds)
    print(f"pda: {address} (bump {bump})", file=err)
    return address


def read_vaa_input(value: str | None, stdin: TextIO) -> bytes:
    """VAA bytes from a hex argument, ``@file`` (hex text) or piped stdin."""
    if value is not None and value.startswith("@"):
        path = Path(value[1:])
        return decode_hex(path.read_text(), str(path))
    if value is not None and value != "-":
        return decode_hex(value)
    if stdin.isatty():
        raise ValueError("no VAA provided; pass as argument, @file, or pipe to stdin")
    return decode_hex(stdin.read(), "stdin")


def load_keypair(path: str) -> Keypair:
    """Read a Solana CLI keypair file (JSON array of 64 bytes)."""
    try:
        raw = json.loads(Path(path).read_text())
    except json.JSONDecodeError as e:
        raise ValueError(f"keypair file {path} is not valid JSON: {e}") from e
    if not isinstance(raw, list) or len(raw) != 64:
        raise ValueError(f"keypair file {path} must hold a JSON array of 64 bytes")
    if not all(isinstance(b, int) and not isinstance(b, bool) and 0 <= b <= 255 for b in raw):
        raise ValueError(f"keypair file {path} must hold integers from 0 to 255")
    return Keypair.from_bytes(bytes(raw))


# =========================================================================
# Commands
# =========================================================================


def _config(args: argparse.Namespace, environ: Mapping[str, str]) -> SubmitConfig:
    core_bridge = parse_pubkey(args.core_bridge, "core bridge") if args.core_bridge else None
    return SubmitConfig.from_env(environ, rpc_url=args.rpc_url, core_bridge=core_bridge)


def cmd_submit(
    args: argparse.Namespace,
    environ: Mapping[str, str],
    out: TextIO,
    err: TextIO,
    stdin: TextIO,
) -> int:
    """Submit a VAA and print each confirmed signature."""
    config = _config(args, environ)
    core_bridge = config.resolved_core_bridge()
    if core_bridge is None:
        raise ValueError("cannot auto-detect core bridge for this RPC URL; use --core-bridge")

    program = args.program_id or environ.get("PROGRAM_ID")
    if not program:
        raise ValueError("--program-id is required (or set PROGRAM_ID)")
    program_id = parse_pubkey(program, "program id")

    payer_path = args.payer or environ.get("PAYER_KEYPAIR")
    if not payer_path:
        raise ValueError("--payer is required (or set PAYER_KEYPAIR)")
    payer = load_keypair(payer_path)

    vaa = parse_signed_vaa(read_vaa_input(args.vaa, stdin))

    print(f"Submitting VAA to {program_id}...", file=err)
    print(f"  Payer:              {payer.pubkey()}", file=err)
    print(f"  Core Bridge:        {core_bridge}", file=err)
    print(f"  Guardian set index: {vaa.guardian_set_index}", file=err)
    print(f"  Signatures:         {len(vaa.signatures)}", file=err)
    print(f"  RPC:                {config.rpc_url}", file=err)

    with config.build_connection() as connection:
        signatures = broadcast_vaa(
            connection,
            program_id,
            payer,
            vaa,
            core_bridge=core_bridge,
            verify_vaa_shim=config.verify_vaa_shim,
            max_iterations=config.max_resolver_iterations,
        )

    print(f"Done: {len(signatures)} transaction(s)", file=err)
    for signature in signatures:
        print(signature, file=out)
    return 0


def cmd_account(
    args: argparse.Namespace,
    environ: Mapping[str, str],
    out: TextIO,
    err: TextIO,
    stdin: TextIO,
) -> int:
    """Print account metadata on stderr and its data as hex on stdout."""
    config = _config(args, environ)
    address = resolve_address(args.address, err)

    with config.build_connection() as connection:
        account = connection.get_account(address)
    if account is None:
        raise ValueError(f"account not found: {address}")

    print(f"address:  {address}", file=err)
    print(f"owner:    {account.owner}", file=err)
    print(f"lamports: {account.lamports}", file=err)
    print(f"data len: {len(account.data)}", file=err)
    print(bytes(account.data).hex(), file=out)
    return 0


def cmd_pda(
    args: argparse.Namespace,
    environ: Mapping[str, str],
    out: TextIO,
    err: TextIO,
    stdin: TextIO,
) -> int:
    address, bump = derive_pda(args.program, args.seeds)
    print(address, file=out)
    print(f"bump: {bump}", file=err)
    return 0


COMMANDS = {
    "submit": cmd_submit,
    "account": cmd_account,
    "pda": cmd_pda,
}


# =========================================================================
# Entry point
# =========================================================================


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="svm-vaa",
        description="Submit Wormhole VAAs to Solana programs",
    )

    parser.add_argument(
        "--rpc-url",
        help=f"Solana RPC endpoint (env SOLANA_RPC_URL, default {DEFAULT_RPC_URL})",
    )
    parser.add_argument(
        "--core-bridge",
        help="Core bridge program id (env CORE_BRIDGE_PROGRAM_ID, default detected from the RPC URL)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    submit_parser = subparsers.add_parser("submit", help="Submit a signed VAA")
    submit_parser.add_argument("--program-id", help="Receiving program (env PROGRAM_ID)")
    submit_parser.add_argument("--payer", help="Payer keypair JSON file (env PAYER_KEYPAIR)")
    submit_parser.add_argument(
        "vaa",
        nargs="?",
        help="Signed VAA as hex, @file with hex text, or omitted to read stdin",
    )

    account_parser = subparsers.add_parser("account", help="Dump an account")
    account_parser.add_argument("address", help="Base58 address or pda:PROGRAM:seed1:seed2")

    pda_parser = subparsers.add_parser("pda", help="Derive a program address")
    pda_parser.add_argument("program", help="Program id")
    pda_parser.add_argument("seeds", nargs="+", help="UTF-8 text or 0x-prefixed hex")

    return parser


def main(
    argv: Sequence[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
    stdin: TextIO | None = None,
) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.log_level)
    env = os.environ if environ is None else environ
    out = stdout or sys.stdout
    err = stderr or sys.stderr

    try:
        return COMMANDS[args.command](args, env, out, err, stdin or sys.stdin)
    except (SubmitError, ValueError, OSError) as e:
        logger.debug("%s failed", args.command, exc_info=True)
        print(f"error: {e}", file=err)
        return 1


if __name__ == "__main__":
    sys.exit(main())
