"""
Prepared statements used by the write pipeline and its bookkeeping reads.

The map is registered on the session once the tables exist; afterwards statements
are invoked by name, either bound directly (reads) or as EXECUTE lines of a
statement log (writes).
"""

from pgledger.core.actions import NULL_ADDRESS, MetaOwnerKind

# Metadata insert chained to the owner update: the new id flows through RETURNING
_ATTACH_META = (
    "WITH m AS (INSERT INTO metas VALUES (DEFAULT, $1, $2, $3, now()) RETURNING id) "
    "UPDATE {table} SET metas = array_append(metas, (SELECT id FROM m)) WHERE {column} = $4"
)

PREPARED_STATEMENTS = {
    # stats
    "as_plan": "INSERT INTO stats VALUES ($1, $2, now(), now())",
    "us_plan": "UPDATE stats SET value = $1, updated_at = now() WHERE key = $2",
    "rs_plan": "SELECT value FROM stats WHERE key = $1",

    # blocks
    "glb_plan": "SELECT block_id FROM blocks ORDER BY block_num DESC LIMIT 1",
    "eb_plan": "SELECT block_id FROM blocks WHERE block_id = $1",
    "sbi_plan": (
        "WITH b AS (UPDATE blocks SET pending = false WHERE block_id = $1) "
        "UPDATE transactions SET pending = false WHERE block_id = $1"
    ),

    # domains
    "nd_plan": "INSERT INTO domains VALUES ($1, $2, $3, $4, $5, '{}', now())",
    "ud_plan": (
        "UPDATE domains SET (issue, transfer, manage) = "
        "(COALESCE($1, issue), COALESCE($2, transfer), COALESCE($3, manage)) WHERE name = $4"
    ),

    # tokens
    "it_plan": "INSERT INTO tokens VALUES ($1, $2, $3, $4, '{}', now())",
    "tf_plan": "UPDATE tokens SET owner = $1 WHERE id = $2",
    "dt_plan": f"UPDATE tokens SET owner = '{{\"{NULL_ADDRESS}\"}}' WHERE id = $1",

    # groups
    "ng_plan": "INSERT INTO groups VALUES ($1, $2, $3, '{}', now())",
    "ug_plan": "UPDATE groups SET def = $1 WHERE name = $2",

    # fungibles
    "nf_plan": "INSERT INTO fungibles VALUES ($1, $2, $3, $4, $5, $6, $7, '{}', now())",
    "uf_plan": (
        "UPDATE fungibles SET (issue, manage) = "
        "(COALESCE($1, issue), COALESCE($2, manage)) WHERE sym_id = $3"
    ),

    # metas
    "amd_plan": _ATTACH_META.format(table="domains", column="name"),
    "amt_plan": _ATTACH_META.format(table="tokens", column="id"),
    "amg_plan": _ATTACH_META.format(table="groups", column="name"),
    "amf_plan": _ATTACH_META.format(table="fungibles", column="sym_id"),
}

# Attach statement per metadata owner kind
META_PLANS = {
    MetaOwnerKind.DOMAIN: "amd_plan",
    MetaOwnerKind.TOKEN: "amt_plan",
    MetaOwnerKind.GROUP: "amg_plan",
    MetaOwnerKind.FUNGIBLE: "amf_plan",
}
