"""
Typed action payloads for the mutable ledger entities.

Each payload class mirrors the JSON document carried by one action name. Only actions
that mutate domains, tokens, groups, fungibles or metadata have a payload type here;
every other action is stored in the ``actions`` table and nothing more.

Metadata attachment has no explicit owner tag on the wire. The owner is derived from
the action's domain and key against fixed sentinel names and is modelled as a
MetaOwner value, resolved once when the action is translated.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


# Sentinel names used by metadata actions
FUNGIBLE_DOMAIN = ".fungible"
GROUP_DOMAIN = ".group"
DOMAIN_META_KEY = ".meta"

# Owner of a destroyed token
NULL_ADDRESS = "EVT00000000000000000000000000000000000000000000000000"


def parse_symbol_id(sym: str) -> int:
    """
    Extract the numeric id from a fungible symbol.

    Args:
        sym: Symbol in the form "<precision>,S#<id>", e.g. "5,S#1"

    Returns:
        Symbol id
    """
    _, sep, sym_id = sym.partition("#")
    if not sep or not sym_id.isdigit():
        raise ValueError(f"Invalid fungible symbol: {sym!r}")
    return int(sym_id)


@dataclass
class NewDomain:
    name: str
    creator: str
    issue: dict[str, Any]
    transfer: dict[str, Any]
    manage: dict[str, Any]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'NewDomain':
        return cls(data["name"], data["creator"], data["issue"], data["transfer"], data["manage"])


@dataclass
class UpdateDomain:
    """Permissions left as None keep their stored value"""
    name: str
    issue: Optional[dict[str, Any]] = None
    transfer: Optional[dict[str, Any]] = None
    manage: Optional[dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'UpdateDomain':
        return cls(data["name"], data.get("issue"), data.get("transfer"), data.get("manage"))


@dataclass
class IssueToken:
    domain: str
    names: list[str]
    owner: list[str]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'IssueToken':
        return cls(data["domain"], list(data["names"]), list(data["owner"]))


@dataclass
class Transfer:
    domain: str
    name: str
    to: list[str]
    memo: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Transfer':
        return cls(data["domain"], data["name"], list(data["to"]), data.get("memo", ""))


@dataclass
class DestroyToken:
    domain: str
    name: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'DestroyToken':
        return cls(data["domain"], data["name"])


@dataclass
class NewGroup:
    """``group`` is the full group definition: name, key and root node"""
    name: str
    group: dict[str, Any]

    @property
    def key(self) -> str:
        return self.group["key"]

    @property
    def root(self) -> dict[str, Any]:
        return self.group["root"]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'NewGroup':
        return cls(data["name"], data["group"])


@dataclass
class UpdateGroup(NewGroup):
    pass


@dataclass
class NewFungible:
    name: str
    sym_name: str
    sym: str
    creator: str
    issue: dict[str, Any]
    manage: dict[str, Any]
    total_supply: str = ""

    @property
    def sym_id(self) -> int:
        return parse_symbol_id(self.sym)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'NewFungible':
        return cls(
            name=data["name"],
            sym_name=data["sym_name"],
            sym=data["sym"],
            creator=data["creator"],
            issue=data["issue"],
            manage=data["manage"],
            total_supply=data.get("total_supply", "")
        )


@dataclass
class UpdateFungible:
    """Permissions left as None keep their stored value"""
    sym_id: int
    issue: Optional[dict[str, Any]] = None
    manage: Optional[dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'UpdateFungible':
        return cls(int(data["sym_id"]), data.get("issue"), data.get("manage"))


@dataclass
class AddMeta:
    key: str
    value: str
    creator: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'AddMeta':
        return cls(data["key"], data["value"], str(data["creator"]))


Payload = Union[NewDomain, UpdateDomain, IssueToken, Transfer, DestroyToken,
                NewGroup, UpdateGroup, NewFungible, UpdateFungible, AddMeta]

PAYLOAD_TYPES: dict[str, type] = {
    "newdomain": NewDomain,
    "updatedomain": UpdateDomain,
    "issuetoken": IssueToken,
    "transfer": Transfer,
    "destroytoken": DestroyToken,
    "newgroup": NewGroup,
    "updategroup": UpdateGroup,
    "newfungible": NewFungible,
    "updfungible": UpdateFungible,
    "addmeta": AddMeta,
}


def parse_payload(name: str, data: dict[str, Any]) -> Optional[Payload]:
    """
    Parse the JSON payload of an action into its typed form.

    Args:
        name: Action name
        data: Action payload document

    Returns:
        Typed payload, or None when the action does not mutate an entity table
    """
    payload_type = PAYLOAD_TYPES.get(name)
    if payload_type is None:
        return None
    return payload_type.from_dict(data)


class MetaOwnerKind(Enum):
    """Entity kinds that can own metadata records"""
    DOMAIN = "domain"
    TOKEN = "token"
    GROUP = "group"
    FUNGIBLE = "fungible"


@dataclass(frozen=True)
class MetaOwner:
    """
    Owner of an attached metadata record.

    ``key`` is the natural key of the owner row: domain name, "domain:name" token id,
    group name or numeric fungible symbol id.
    """
    kind: MetaOwnerKind
    key: Union[str, int] = field(default="")


def resolve_meta_owner(domain: str, key: str) -> MetaOwner:
    """
    Resolve which entity an addmeta action attaches to.

    The checks run in a fixed order: fungible domain, group domain, domain-self key,
    and anything else is a token.

    Args:
        domain: Domain the action is addressed to
        key: Key the action is addressed to

    Returns:
        MetaOwner naming the owner table and its row key
    """
    if domain == FUNGIBLE_DOMAIN:
        if not key.isdigit():
            raise ValueError(f"Invalid fungible symbol id in metadata action: {key!r}")
        return MetaOwner(MetaOwnerKind.FUNGIBLE, int(key))
    if domain == GROUP_DOMAIN:
        return MetaOwner(MetaOwnerKind.GROUP, key)
    if key == DOMAIN_META_KEY:
        return MetaOwner(MetaOwnerKind.DOMAIN, domain)
    return MetaOwner(MetaOwnerKind.TOKEN, f"{domain}:{key}")
