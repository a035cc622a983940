"""Gateway Command Line Interface.

Provides operator tools for:
- Sandbox key generation
- Offline signing of a parameter file
- Signature verification
- Simulated calls against a local registry

Usage:
    python -m huifu_gateway.cli generate-key --output-dir ./keys
    python -m huifu_gateway.cli sign --key-file merchant.pem --params params.json
    python -m huifu_gateway.cli verify --public-key-file pub.pem --params params.json --signature X
    python -m huifu_gateway.cli simulate --key-file merchant.pem --sys-id X --product-id Y \
        --endpoint /v2/merchant/busi/config --params params.json
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Callable

from huifu_gateway.errors import GatewayError
from huifu_gateway.gateway.clients.base import CredentialBundle
from huifu_gateway.gateway.clients.simulated import SimulatedClient
from huifu_gateway.gateway.signer import (
    Signer,
    generate_test_key_pair,
    load_public_key,
    verify_signature,
)


def load_params(path: str) -> dict[str, Any]:
    """Load a JSON object of request parameters ("-" reads stdin)."""
    text = sys.stdin.read() if path == "-" else Path(path).read_text(encoding="utf-8")
    params = json.loads(text)
    if not isinstance(params, dict):
        raise ValueError("params must be a JSON object")
    return params


class GatewayCli:
    """Gateway Command Line Interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m huifu_gateway.cli",
            description="Huifu gateway operator tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # generate-key command
        generate = subparsers.add_parser(
            "generate-key",
            help="Generate an RSA key pair for sandbox use",
        )
        generate.add_argument(
            "--bits",
            type=int,
            default=2048,
            help="Key size in bits (default: 2048)",
        )
        generate.add_argument(
            "--output-dir",
            type=str,
            help="Write private.pem/public.pem here instead of stdout",
        )

        # sign command
        sign = subparsers.add_parser(
            "sign",
            help="Sign a JSON parameter file",
        )
        sign.add_argument("--key-file", type=str, required=True, help="Private key file")
        sign.add_argument(
            "--params",
            type=str,
            required=True,
            help="JSON parameter file ('-' for stdin)",
        )

        # verify command
        verify = subparsers.add_parser(
            "verify",
            help="Verify a signature over a JSON parameter file",
        )
        verify.add_argument(
            "--public-key-file", type=str, required=True, help="Public key file"
        )
        verify.add_argument("--params", type=str, required=True, help="JSON parameter file")
        verify.add_argument("--signature", type=str, required=True, help="Base64 signature")

        # simulate command
        simulate = subparsers.add_parser(
            "simulate",
            help="Sign and run a call against the simulated backend",
        )
        simulate.add_argument("--key-file", type=str, required=True, help="Private key file")
        simulate.add_argument("--sys-id", type=str, required=True, help="System id")
        simulate.add_argument("--product-id", type=str, required=True, help="Product id")
        simulate.add_argument("--endpoint", type=str, required=True, help="Endpoint path")
        simulate.add_argument(
            "--params",
            type=str,
            help="JSON parameter file ('-' for stdin)",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "generate-key": self._cmd_generate_key,
            "sign": self._cmd_sign,
            "verify": self._cmd_verify,
            "simulate": self._cmd_simulate,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return handler(parsed)
        except (GatewayError, OSError, ValueError) as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

    def _cmd_generate_key(self, args: argparse.Namespace) -> int:
        """Generate a sandbox key pair."""
        pair = generate_test_key_pair(bits=args.bits)

        if not args.output_dir:
            print(pair.private_key, end="")
            print(pair.public_key, end="")
            return 0

        out = Path(args.output_dir)
        out.mkdir(parents=True, exist_ok=True)
        private_path = out / "private.pem"
        private_path.write_text(pair.private_key, encoding="ascii")
        private_path.chmod(0o600)
        (out / "public.pem").write_text(pair.public_key, encoding="ascii")
        print(f"Wrote {private_path} and {out / 'public.pem'}")
        return 0

    def _cmd_sign(self, args: argparse.Namespace) -> int:
        """Print the signature of a parameter file."""
        signer = Signer.from_pem(Path(args.key_file).read_text(encoding="utf-8"))
        print(signer.sign(load_params(args.params)))
        return 0

    def _cmd_verify(self, args: argparse.Namespace) -> int:
        """Verify a signature. Exit status 0 = valid."""
        public_key = load_public_key(Path(args.public_key_file).read_text(encoding="utf-8"))
        if verify_signature(load_params(args.params), args.signature, public_key):
            print("Signature: VALID")
            return 0
        print("Signature: INVALID")
        return 2

    def _cmd_simulate(self, args: argparse.Namespace) -> int:
        """Run one call on a simulated client and print the result."""
        bundle = CredentialBundle(
            tenant_id=args.sys_id,
            product_id=args.product_id,
            private_key=Path(args.key_file).read_text(encoding="utf-8"),
        )
        client = SimulatedClient(bundle)
        params = load_params(args.params) if args.params else {}
        try:
            result = client.call(args.endpoint, params)
        finally:
            client.close()
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return 0 if result.succeeded else 1


def main() -> int:
    """CLI entry point."""
    cli = GatewayCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
