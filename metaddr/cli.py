#!/usr/bin/env python3
"""
metaddr CLI

Command-line access to the metadata address codec: encode, decode, derive
and inspect addresses, compute scan prefixes, and check ownership link
documents.

Usage:
    metaddr [--format json|yaml|text] <command> [subcommand] [options]

Commands:
    encode      Build an address from uuids and/or a name
    decode      Show the components of an address (bech32, hex or uuid)
    derive      Compute a related address (parent or child)
    prefix      Key prefix for iterating an address's children
    denom       Denom for an address
    from-denom  Address for a denom
    from-hash   Address from a type code and base64 hash
    links       Ownership link document checks

Copyright (c) 2024 Momentum. All rights reserved.
"""

from __future__ import annotations

import argparse
import json
import string
import sys
import uuid
from typing import Any, List, Optional

from metaddr import __version__
from metaddr.address import (
    AddressType,
    MetadataAddress,
    convert_hash_to_address,
    encode,
    from_bech32,
    from_denom,
    from_hex,
    scope_address,
)
from metaddr.config import ConfigError, get_config_manager
from metaddr.errors import InvalidInputError, MetadataAddressError
from metaddr.observability import Layer, configure_logging, get_logger
from metaddr.serde import DocumentValidationError, dump_yaml, load_links_file

_log = get_logger("cli", Layer.CLI)

_TYPE_CHOICES = {
    "scope": AddressType.SCOPE,
    "session": AddressType.SESSION,
    "record": AddressType.RECORD,
    "scopespec": AddressType.SCOPE_SPECIFICATION,
    "contractspec": AddressType.CONTRACT_SPECIFICATION,
    "recspec": AddressType.RECORD_SPECIFICATION,
}


class CLIError(Exception):
    """CLI error with exit code."""
    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


def format_output(data: Any, fmt: str = "json") -> str:
    """Format data for output."""
    if fmt == "json":
        return json.dumps(data, indent=2, default=str)
    elif fmt == "yaml":
        return dump_yaml(data).rstrip("\n")
    return _format_text(data)


def _format_text(data: Any) -> str:
    if isinstance(data, dict):
        return "\n".join(f"{k}: {_format_text(v)}" for k, v in data.items())
    if isinstance(data, list):
        return "\n".join(_format_text(v) for v in data)
    return str(data)


def parse_address(text: str) -> MetadataAddress:
    """Read an address given as bech32, hex, or a bare uuid (taken as a scope)."""
    s = (text or "").strip()
    if not s:
        raise InvalidInputError("no address provided")
    try:
        scope_uuid = uuid.UUID(s)
    except ValueError:
        pass
    else:
        return scope_address(scope_uuid)
    if all(c in string.hexdigits for c in s):
        return from_hex(s)
    return from_bech32(s)


class MetaddrCLI:
    """Main CLI application."""

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="metaddr",
            description="Metadata address codec",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self.parser.add_argument(
            "--version", "-V",
            action="version",
            version=f"metaddr {__version__}",
        )
        self.parser.add_argument(
            "--format", "-f",
            choices=["json", "yaml", "text"],
            default=None,
            help="Output format (default: cli.output_format, json)",
        )
        self.parser.add_argument(
            "--config", "-c",
            help="Configuration file to load",
        )
        self.parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress error messages",
        )

        self.subparsers = self.parser.add_subparsers(dest="command", help="Commands")
        self._register_commands()

    def _register_commands(self) -> None:
        """Register all commands."""
        self._register_address_commands()
        self._register_links_commands()

    def _register_address_commands(self) -> None:
        encode_cmd = self.subparsers.add_parser("encode", help="Build an address")
        encode_cmd.add_argument("type", choices=sorted(_TYPE_CHOICES), help="Address type")
        encode_cmd.add_argument("uuid", help="Primary uuid")
        encode_cmd.add_argument("--secondary", "-s", help="Session uuid (session addresses)")
        encode_cmd.add_argument("--name", "-n", help="Name (record and recspec addresses)")

        decode_cmd = self.subparsers.add_parser("decode", help="Show address components")
        decode_cmd.add_argument("address", help="Bech32, hex, or scope uuid")

        derive = self.subparsers.add_parser("derive", help="Compute a related address")
        derive.add_argument("address", help="Source address")
        derive.add_argument(
            "--as", dest="target", required=True,
            choices=["scope", "session", "record", "contractspec", "recspec"],
            help="Type of address to derive",
        )
        derive.add_argument("--uuid", "-u", help="Session uuid (for --as session)")
        derive.add_argument("--name", "-n", help="Name (for --as record/recspec)")

        prefix = self.subparsers.add_parser("prefix", help="Key prefix for child iteration")
        prefix.add_argument("address", nargs="?", default="", help="Parent address")
        prefix.add_argument(
            "--children", required=True,
            choices=["sessions", "records", "recspecs"],
            help="Child type to iterate",
        )
        prefix.add_argument(
            "--all", action="store_true",
            help="Prefix for every child of that type (ignores address)",
        )

        denom = self.subparsers.add_parser("denom", help="Denom for an address")
        denom.add_argument("address", help="Address")

        from_denom_cmd = self.subparsers.add_parser("from-denom", help="Address for a denom")
        from_denom_cmd.add_argument("denom", help="Denom string")

        from_hash = self.subparsers.add_parser("from-hash", help="Address from type code and hash")
        from_hash.add_argument("type_code", help="Type code byte (e.g. 0x00 or 0)")
        from_hash.add_argument("hash", help="Base64 encoded hash")

    def _register_links_commands(self) -> None:
        links = self.subparsers.add_parser("links", help="Ownership link documents")
        links_sub = links.add_subparsers(dest="subcommand")

        validate = links_sub.add_parser("validate", help="Validate links as scope ownership")
        validate.add_argument("file", help="YAML or JSON links document")

        accounts = links_sub.add_parser("accounts", help="Distinct accounts")
        accounts.add_argument("file", help="YAML or JSON links document")

        uuids = links_sub.add_parser("uuids", help="Primary uuid of each entry")
        uuids.add_argument("file", help="YAML or JSON links document")

        for_account = links_sub.add_parser("for-account", help="Addresses linked to an account")
        for_account.add_argument("file", help="YAML or JSON links document")
        for_account.add_argument("account", help="Bech32 account address")

    def run(self, args: Optional[List[str]] = None) -> int:
        """Run the CLI."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 0

        try:
            mgr = get_config_manager()
            mgr.load_defaults()
            if parsed.config:
                mgr.load_from_file(parsed.config)
            configure_logging(
                mgr.get("observability.log_level"),
                mgr.get("observability.log_format"),
            )
            fmt = parsed.format or mgr.get("cli.output_format")
            result = self._dispatch(parsed)

            if result is not None:
                print(format_output(result, fmt))

            return 0

        except CLIError as e:
            if not parsed.quiet:
                print(f"Error: {e}", file=sys.stderr)
            return e.exit_code

        except (MetadataAddressError, ConfigError, DocumentValidationError) as e:
            _log.error(
                "Command failed",
                error_code=getattr(e, "error_code", type(e).__name__),
                command=parsed.command,
                reason=str(e),
            )
            if not parsed.quiet:
                print(f"Error: {e}", file=sys.stderr)
            return 1

    def _dispatch(self, args: argparse.Namespace) -> Any:
        """Dispatch command to handler."""
        cmd = args.command.replace("-", "_")
        subcmd = getattr(args, "subcommand", None)
        if args.command == "links" and not subcmd:
            raise CLIError("links requires a subcommand", exit_code=2)

        handler_name = f"_handle_{cmd}_{subcmd.replace('-', '_')}" if subcmd else f"_handle_{cmd}"
        handler = getattr(self, handler_name, None)

        if handler is None:
            raise CLIError(f"Unknown command: {args.command} {subcmd or ''}", exit_code=2)

        return handler(args)

    # Address handlers
    def _handle_encode(self, args: argparse.Namespace) -> Any:
        addr = encode(
            _TYPE_CHOICES[args.type],
            args.uuid,
            secondary=args.secondary,
            name=args.name,
        )
        return {"address": str(addr), "hex": addr.to_hex()}

    def _handle_decode(self, args: argparse.Namespace) -> Any:
        return parse_address(args.address).get_details().to_dict()

    def _handle_derive(self, args: argparse.Namespace) -> Any:
        addr = parse_address(args.address)
        if args.target == "scope":
            derived = addr.as_scope_address()
        elif args.target == "session":
            if not args.uuid:
                raise CLIError("--uuid is required for --as session", exit_code=2)
            derived = addr.as_session_address(args.uuid)
        elif args.target == "record":
            derived = addr.as_record_address(args.name or "")
        elif args.target == "contractspec":
            derived = addr.as_contract_spec_address()
        else:
            derived = addr.as_record_spec_address(args.name or "")
        return {"source": str(addr), "address": str(derived), "hex": derived.to_hex()}

    def _handle_prefix(self, args: argparse.Namespace) -> Any:
        addr = MetadataAddress() if args.all or not args.address else parse_address(args.address)
        if args.children == "sessions":
            prefix = addr.scope_session_iterator_prefix()
        elif args.children == "records":
            prefix = addr.scope_record_iterator_prefix()
        else:
            prefix = addr.contract_spec_record_spec_iterator_prefix()
        return {"children": args.children, "prefix_hex": prefix.hex()}

    def _handle_denom(self, args: argparse.Namespace) -> Any:
        return {"denom": parse_address(args.address).denom()}

    def _handle_from_denom(self, args: argparse.Namespace) -> Any:
        addr = from_denom(args.denom)
        return {"address": str(addr), "hex": addr.to_hex()}

    def _handle_from_hash(self, args: argparse.Namespace) -> Any:
        try:
            code = int(args.type_code, 0)
        except ValueError as e:
            raise CLIError(f"invalid type code {args.type_code!r}", exit_code=2) from e
        addr = convert_hash_to_address(code, args.hash)
        return {"address": str(addr), "hex": addr.to_hex()}

    # Links handlers
    def _handle_links_validate(self, args: argparse.Namespace) -> Any:
        links = load_links_file(args.file)
        links.validate_for_scopes()
        return {"valid": True, "entries": len(links)}

    def _handle_links_accounts(self, args: argparse.Namespace) -> Any:
        links = load_links_file(args.file)
        return {"accounts": [str(a) for a in links.get_acc_addrs()]}

    def _handle_links_uuids(self, args: argparse.Namespace) -> Any:
        links = load_links_file(args.file)
        return {"uuids": links.get_primary_uuids()}

    def _handle_links_for_account(self, args: argparse.Namespace) -> Any:
        links = load_links_file(args.file)
        addrs = links.get_md_addrs_for_acc_addr(args.account)
        return {"account": args.account, "addresses": [str(a) for a in addrs]}


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    cli = MetaddrCLI()
    return cli.run(argv)


if __name__ == "__main__":
    sys.exit(main())
