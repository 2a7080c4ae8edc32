"""
timelockwatch CLI: inspect the governance history of a timelock.

Usage examples:
    python -m timelockwatch.cli.main history
    python -m timelockwatch.cli.main history --kind queue --signature setPool
    python -m timelockwatch.cli.main decode 0x6a761202...
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict

from timelockwatch.base.config import get_config, setup_logging
from timelockwatch.decoder.abi import decode, decode_arguments, decode_nested
from timelockwatch.decoder.registry import MULTISIG_DIALECT, TIMELOCK_DIALECT, default_registry
from timelockwatch.errors import DecodeError, TimelockWatchError
from timelockwatch.monitor import TimelockMonitor
from timelockwatch.reporting.formatting import build_rows, filter_rows

logger = logging.getLogger(__name__)


def cmd_history(args) -> int:
    config = get_config()
    monitor = TimelockMonitor(config)
    report = asyncio.run(monitor.run())

    rows = build_rows(
        report,
        names=config.chain.address_names,
        explorer_url=config.chain.explorer_url,
        raw_data=args.raw_data,
        raw_target=args.raw_target,
    )
    rows = filter_rows(rows, signature=args.signature, kind=args.kind)

    if args.json:
        print(json.dumps([asdict(r) for r in rows], indent=2))
    else:
        for row in rows:
            print(
                f"{row.status or '-':<12} {row.kind:<20} {row.age:<16} {row.timelock} -> {row.target}\n"
                f"    {row.signature} {row.data}\n"
                f"    value={row.value} eta={row.eta}\n"
                f"    {row.url}"
            )
        print(
            f"\n{len(rows)} row(s) shown, {report.fetched} fetched, "
            f"{len(report.errors)} undecodable, {report.filtered} filtered"
        )

    for error in report.errors:
        print(f"! {error.record_hash}: {error.message}", file=sys.stderr)
    return 0


def cmd_decode(args) -> int:
    registry = default_registry()
    multisig = registry.dialect(MULTISIG_DIALECT)
    payload = bytes.fromhex(args.payload[2:] if args.payload.startswith("0x") else args.payload)

    outer = decode(payload, multisig)
    print(outer.describe())
    if outer.function_name != multisig.forwarding.function:
        return 0

    inner = decode_nested(outer, multisig.forwarding.payload_param, registry.dialect(TIMELOCK_DIALECT))
    print(f"  -> {inner.describe()}")
    signature = inner.get("signature")
    data = inner.get("data")
    if signature is not None and data is not None and signature.value:
        try:
            print(f"     {signature.value} [{', '.join(decode_arguments(signature.value, data.value))}]")
        except DecodeError as e:
            print(f"     data undecodable: {e.message}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Timelock governance history")
    sub = parser.add_subparsers(dest="command", required=True)

    history = sub.add_parser("history", help="Fetch and correlate the executor's timelock calls")
    history.add_argument("--signature", default="", help="Filter by function signature substring")
    history.add_argument("--kind", default="", help="Filter by operation kind substring")
    history.add_argument("--raw-data", action="store_true", help="Show raw call data instead of decoded arguments")
    history.add_argument("--raw-target", action="store_true", help="Show target addresses instead of names")
    history.add_argument("--json", action="store_true", help="Emit rows as JSON")
    history.set_defaults(func=cmd_history)

    dec = sub.add_parser("decode", help="Decode a single multisig payload")
    dec.add_argument("payload", help="Hex encoded call data")
    dec.set_defaults(func=cmd_decode)

    args = parser.parse_args(argv)
    setup_logging()

    try:
        return args.func(args)
    except ValueError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 2
    except TimelockWatchError as e:
        logger.error(f"[CLI] {e}")
        print(json.dumps(e.to_dict()), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
