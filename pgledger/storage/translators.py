"""
Entity mutation translators.

Each translator turns one typed action payload into statement-log lines against
the domains, tokens, groups, fungibles and metas tables. translate_action() picks the
translator by action name; actions without one leave the log untouched.
"""

import logging
from typing import Callable, Dict

from pgledger.core.actions import (
    AddMeta, DestroyToken, IssueToken, NewDomain, NewFungible, NewGroup, Transfer,
    UpdateDomain, UpdateFungible, UpdateGroup, parse_payload, resolve_meta_owner
)
from pgledger.core.models import Action
from pgledger.storage.encoding import format_array
from pgledger.storage.statements import META_PLANS
from pgledger.storage.trx_context import TrxContext

logger = logging.getLogger(__name__)


def add_domain(tctx: TrxContext, action: Action, nd: NewDomain) -> None:
    tctx.add("nd_plan", nd.name, nd.creator, nd.issue, nd.transfer, nd.manage)


def upd_domain(tctx: TrxContext, action: Action, ud: UpdateDomain) -> None:
    tctx.add("ud_plan", ud.issue, ud.transfer, ud.manage, ud.name)


def add_tokens(tctx: TrxContext, action: Action, it: IssueToken) -> None:
    """One token row per issued name, all sharing the same owner array."""
    owners = format_array(it.owner)
    for name in it.names:
        tctx.add("it_plan", f"{it.domain}:{name}", it.domain, name, owners)


def upd_token(tctx: TrxContext, action: Action, tf: Transfer) -> None:
    tctx.add("tf_plan", format_array(tf.to), f"{tf.domain}:{tf.name}")


def del_token(tctx: TrxContext, action: Action, dt: DestroyToken) -> None:
    tctx.add("dt_plan", f"{dt.domain}:{dt.name}")


def add_group(tctx: TrxContext, action: Action, ng: NewGroup) -> None:
    tctx.add("ng_plan", ng.name, ng.key, ng.root)


def upd_group(tctx: TrxContext, action: Action, ug: UpdateGroup) -> None:
    tctx.add("ug_plan", ug.root, ug.name)


def add_fungible(tctx: TrxContext, action: Action, nf: NewFungible) -> None:
    tctx.add("nf_plan", nf.name, nf.sym_name, nf.sym, nf.sym_id, nf.creator, nf.issue, nf.manage)


def upd_fungible(tctx: TrxContext, action: Action, uf: UpdateFungible) -> None:
    tctx.add("uf_plan", uf.issue, uf.manage, uf.sym_id)


def add_meta(tctx: TrxContext, action: Action, am: AddMeta) -> None:
    """
    Insert a metadata record and attach its id to the owning entity.

    The owner comes from the action's domain and key, not from the payload.
    """
    owner = resolve_meta_owner(action.domain, action.key)
    tctx.add(META_PLANS[owner.kind], am.key, am.value, am.creator, owner.key)


TRANSLATORS: Dict[str, Callable] = {
    "newdomain": add_domain,
    "updatedomain": upd_domain,
    "issuetoken": add_tokens,
    "transfer": upd_token,
    "destroytoken": del_token,
    "newgroup": add_group,
    "updategroup": upd_group,
    "newfungible": add_fungible,
    "updfungible": upd_fungible,
    "addmeta": add_meta,
}


def translate_action(tctx: TrxContext, action: Action) -> int:
    """
    Append the statements for one action to a statement log.

    Args:
        tctx: Statement log of the current block
        action: Ledger action

    Returns:
        Number of statement lines appended
    """
    translator = TRANSLATORS.get(action.name)
    if translator is None:
        return 0

    before = tctx.count
    translator(tctx, action, parse_payload(action.name, action.data))
    return tctx.count - before
