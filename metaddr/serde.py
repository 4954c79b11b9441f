"""JSON and YAML boundaries for addresses and ownership links.

Addresses serialize as their bech32 text; the empty address is ``""``.
Link documents are lists of ``{"account": ..., "address": ...}`` mappings
(``null`` entries allowed) and are shape-checked with the bundled JSON
Schema before any address is decoded.
"""

from __future__ import annotations

import json
import pathlib
from typing import Any, Dict, List, Optional

import yaml

from metaddr.address import MetadataAddress, from_bech32
from metaddr.core import load_document
from metaddr.links import AccMDLink, AccMDLinks, AccountAddress
from metaddr.observability import Layer, get_logger
from metaddr.schema import ACC_MD_LINKS_SCHEMA, validate_against_schema

_log = get_logger("serde", Layer.SERDE)


class DocumentValidationError(ValueError):
    """A document does not have the expected shape."""

    def __init__(self, source: str, errors: List[str]):
        self.source = source
        self.errors = errors
        super().__init__(f"{source}: " + "; ".join(errors))


class AddressDumper(yaml.SafeDumper):
    """SafeDumper that writes address types as plain strings."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


def _represent_as_str(dumper: yaml.SafeDumper, data: Any) -> yaml.Node:
    return dumper.represent_str(str(data))


AddressDumper.add_representer(MetadataAddress, _represent_as_str)
AddressDumper.add_representer(AccountAddress, _represent_as_str)


def dump_yaml(obj: Any) -> str:
    """YAML dump that accepts addresses anywhere in ``obj``."""
    return yaml.dump(obj, Dumper=AddressDumper, default_flow_style=False, sort_keys=False)


# -- single addresses ---------------------------------------------------------

def _address_from_text(s: Any) -> MetadataAddress:
    if not isinstance(s, str):
        raise DocumentValidationError("address", [f"expected a string, got {type(s).__name__}"])
    if s == "":
        return MetadataAddress()
    return from_bech32(s)


def address_to_json(addr: MetadataAddress) -> str:
    return json.dumps(str(addr))


def address_from_json(data: str) -> MetadataAddress:
    """Parse a JSON string value into an address (``""`` is the empty address)."""
    return _address_from_text(json.loads(data))


def address_to_yaml(addr: MetadataAddress) -> str:
    return dump_yaml(addr)


def address_from_yaml(data: str) -> MetadataAddress:
    """Parse a YAML scalar into an address. An empty document is the empty address."""
    value = yaml.safe_load(data)
    return _address_from_text("" if value is None else value)


# -- link documents -----------------------------------------------------------

def links_to_document(links: AccMDLinks) -> List[Optional[Dict[str, str]]]:
    doc: List[Optional[Dict[str, str]]] = []
    for link in links:
        if link is None:
            doc.append(None)
        else:
            doc.append({"account": str(link.acc_addr), "address": str(link.md_addr)})
    return doc


def links_from_document(doc: Any, source: str = "document") -> AccMDLinks:
    """Build links from a parsed document.

    Raises:
        DocumentValidationError: the document does not match the link schema.
        MetadataAddressError: an account or address string does not decode.
    """
    errors = validate_against_schema(doc, ACC_MD_LINKS_SCHEMA)
    if errors:
        raise DocumentValidationError(source, errors)

    links = AccMDLinks()
    for entry in doc:
        if entry is None:
            links.append(None)
            continue
        account = entry["account"]
        acc = AccountAddress.from_bech32(account) if account else AccountAddress()
        links.append(AccMDLink(acc_addr=acc, md_addr=_address_from_text(entry["address"])))
    return links


def load_links_file(path: pathlib.Path) -> AccMDLinks:
    """Load links from a YAML or JSON file."""
    p = pathlib.Path(path)
    try:
        doc = load_document(p)
    except OSError as e:
        raise DocumentValidationError(str(p), [f"cannot read document: {e}"]) from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise DocumentValidationError(str(p), [f"unparseable document: {e}"]) from e
    links = links_from_document(doc, source=str(p))
    _log.info("Loaded ownership links", operation="load_links", path=str(p), entries=len(links))
    return links
