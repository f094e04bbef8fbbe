"""
certverify Command-Line Interface

Thin wrapper used by proof builds and CI: every command exits 0 on
success and 1 on an invalid verdict or any input error, and prints a
single human-readable verdict line per certificate.
"""

import argparse
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from . import __version__
from .core.canonical_json import canonical_bytes
from .core.errors import CertVerifyError
from .core.verdict import utc_now
from .generator import GeneratorConfig, InstanceGenerator
from .replay import replay_generation
from .store import DirectoryStore, load_certificate, load_instance
from .verifier import CertificateVerifier, verify_certificate


def resolve_created_at(explicit: Optional[str]) -> str:
    """--created-at, else SOURCE_DATE_EPOCH, else the current UTC time."""
    if explicit:
        return explicit
    epoch = os.environ.get("SOURCE_DATE_EPOCH")
    if epoch:
        try:
            return datetime.fromtimestamp(int(epoch), tz=timezone.utc).isoformat()
        except (ValueError, OverflowError, OSError):
            logging.getLogger(__name__).warning(
                "Ignoring unusable SOURCE_DATE_EPOCH=%r", epoch
            )
    return utc_now()


def cmd_generate(args) -> int:
    """Generate instances into a directory store."""
    config = GeneratorConfig(
        count=args.count,
        size=args.size,
        seed=args.seed,
        edge_probability=args.edge_probability,
        created_at=resolve_created_at(args.created_at)
    )
    generator = InstanceGenerator(config)
    store = DirectoryStore(args.out)
    manifest = generator.generate(store)

    print("=" * 60)
    print("certverify generate")
    print("=" * 60)
    print(f"Instances: {config.count} x {config.kind} on {config.size} vertices")
    print(f"Seed: {config.seed}")
    print(f"Edge probability: {config.edge_probability}")
    print(f"Created at: {config.created_at}")
    print(f"Store: {store.root}")
    print(f"Chain hash: {manifest.chain_hash}")
    return 0


def cmd_verify(args) -> int:
    """Verify one certificate against an instance file or a store."""
    certificate = load_certificate(args.certificate)
    target = Path(args.instance)
    if target.is_dir():
        result = CertificateVerifier(DirectoryStore(target)).verify(certificate)
    else:
        result = verify_certificate(load_instance(target), certificate)
    print(result.verdict_line())
    return 0 if result.passed else 1


def cmd_verify_batch(args) -> int:
    """Verify many certificates against one store."""
    certificates = [load_certificate(p) for p in args.certificates]
    verifier = CertificateVerifier(DirectoryStore(args.store))
    items = verifier.verify_many(certificates, workers=args.workers)

    for path, item in zip(args.certificates, items):
        if item.error is not None:
            print(f"ERROR {item.error.kind} {path}: {item.error}")
        else:
            print(item.result.verdict_line())

    passed = sum(1 for i in items if i.passed)
    print(f"\nTotal: {passed}/{len(items)} valid")

    if args.report:
        report = {
            "store": str(args.store),
            "items": [i.to_canonical() for i in items],
            "passed": passed,
            "total": len(items),
            "chain": verifier.chain.to_canonical(),
            "chain_hash": verifier.chain.final_hash
        }
        Path(args.report).write_bytes(canonical_bytes(report))
        print(f"Report saved to: {args.report}")

    return 0 if passed == len(items) else 1


def cmd_replay(args) -> int:
    """Regenerate a store from its manifest and compare byte for byte."""
    report = replay_generation(DirectoryStore(args.store))
    status = "PASS" if report.passed else "FAIL"
    print(f"Replay: [{status}] {report.checked} instances checked")
    print(f"Chain integrity: {'PASS' if report.chain_intact else 'FAIL'}")
    print(f"Chain hash: {'PASS' if report.chain_hash_matches else 'FAIL'}")
    for m in report.mismatches[:5]:
        print(f"  - {m['id']}: {m['message']}")
    if len(report.mismatches) > 5:
        print(f"  ... and {len(report.mismatches) - 5} more")
    return 0 if report.passed else 1


def cmd_version(args) -> int:
    """Print version information."""
    print(f"certverify {__version__}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='certverify',
        description='Reproducible instance generation and certificate verification'
    )
    parser.add_argument('--verbose', '-v', action='count', default=0,
                        help='Increase log verbosity (-v info, -vv debug)')
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    gen_parser = subparsers.add_parser('generate', help='Generate instances')
    gen_parser.add_argument('--count', '-c', type=int, required=True,
                            help='Number of instances')
    gen_parser.add_argument('--size', '-n', type=int, required=True,
                            help='Vertices per graph')
    gen_parser.add_argument('--seed', '-s', type=int, default=42,
                            help='Random seed (default: 42)')
    gen_parser.add_argument('--edge-probability', '-p', type=float, default=0.5,
                            help='Edge probability (default: 0.5)')
    gen_parser.add_argument('--created-at', type=str,
                            help='Provenance timestamp (default: SOURCE_DATE_EPOCH or now)')
    gen_parser.add_argument('--out', '-o', type=str, required=True,
                            help='Store directory')
    gen_parser.set_defaults(func=cmd_generate)

    ver_parser = subparsers.add_parser('verify', help='Verify one certificate')
    ver_parser.add_argument('instance', help='Instance JSON file or store directory')
    ver_parser.add_argument('certificate', help='Certificate JSON file')
    ver_parser.set_defaults(func=cmd_verify)

    batch_parser = subparsers.add_parser('verify-batch', help='Verify many certificates')
    batch_parser.add_argument('store', help='Store directory')
    batch_parser.add_argument('certificates', nargs='+', help='Certificate JSON files')
    batch_parser.add_argument('--workers', '-w', type=int, default=None,
                              help='Worker threads (default: executor default)')
    batch_parser.add_argument('--report', '-r', type=str,
                              help='Write a JSON report with the receipt chain')
    batch_parser.set_defaults(func=cmd_verify_batch)

    replay_parser = subparsers.add_parser('replay', help='Check a store reproduces exactly')
    replay_parser.add_argument('store', help='Store directory')
    replay_parser.set_defaults(func=cmd_replay)

    version_parser = subparsers.add_parser('version', help='Print version')
    version_parser.set_defaults(func=cmd_version)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except CertVerifyError as e:
        print(f"ERROR {e.kind}: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"ERROR io: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
