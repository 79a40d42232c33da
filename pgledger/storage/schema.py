"""
Table and sequence definitions of the ledger database.

Every statement uses "if not exists" semantics so that creating the schema is
idempotent. Column order matters: the blocks, transactions and actions tables are
filled by COPY with positional rows, and the entity tables by positional INSERTs.
"""

STATS_TABLE = """
CREATE TABLE IF NOT EXISTS public.stats
(
    key         character varying(21)    NOT NULL,
    value       character varying(64)    NOT NULL,
    created_at  timestamp with time zone NOT NULL DEFAULT now(),
    updated_at  timestamp with time zone NOT NULL DEFAULT now(),
    CONSTRAINT  stats_pkey PRIMARY KEY (key)
);
"""

BLOCKS_TABLE = """
CREATE TABLE IF NOT EXISTS public.blocks
(
    block_id        character(64)            NOT NULL,
    block_num       integer                  NOT NULL,
    prev_block_id   character(64)            NOT NULL,
    timestamp       timestamp with time zone NOT NULL,
    trx_merkle_root character(64)            NOT NULL,
    trx_count       integer                  NOT NULL,
    producer        character varying(21)    NOT NULL,
    pending         boolean                  NOT NULL DEFAULT true,
    created_at      timestamp with time zone NOT NULL DEFAULT now()
);
CREATE UNIQUE INDEX IF NOT EXISTS blocks_block_id_index
    ON public.blocks USING btree (block_id);
CREATE INDEX IF NOT EXISTS blocks_block_num_index
    ON public.blocks USING btree (block_num);
"""

TRANSACTIONS_TABLE = """
CREATE TABLE IF NOT EXISTS public.transactions
(
    trx_id        character(64)            NOT NULL,
    seq_num       integer                  NOT NULL,
    block_id      character(64)            NOT NULL,
    block_num     integer                  NOT NULL,
    action_count  integer                  NOT NULL,
    timestamp     timestamp with time zone NOT NULL,
    expiration    timestamp with time zone NOT NULL,
    max_charge    integer                  NOT NULL,
    payer         character(53)            NOT NULL,
    pending       boolean                  NOT NULL DEFAULT true,
    type          character varying(7)     NOT NULL,
    status        character varying(9)     NOT NULL,
    signatures    character(120)[]         NOT NULL,
    keys          character(53)[]          NOT NULL,
    elapsed       integer                  NOT NULL,
    charge        integer                  NOT NULL,
    suspend_name  character varying(21),
    created_at    timestamp with time zone NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS transactions_block_num_index
    ON public.transactions USING btree (block_num);
CREATE INDEX IF NOT EXISTS transactions_block_id_index
    ON public.transactions USING btree (block_id);
"""

METAS_TABLE = """
CREATE SEQUENCE IF NOT EXISTS metas_id_seq;
CREATE TABLE IF NOT EXISTS public.metas
(
    id         integer                   NOT NULL  DEFAULT nextval('metas_id_seq'),
    key        character varying(21)     NOT NULL,
    value      text                      NOT NULL,
    creator    character varying(57)     NOT NULL,
    created_at timestamp with time zone  NOT NULL  DEFAULT now(),
    CONSTRAINT metas_pkey PRIMARY KEY (id)
);
"""

ACTIONS_TABLE = """
CREATE TABLE IF NOT EXISTS public.actions
(
    block_id   character(64)            NOT NULL,
    block_num  integer                  NOT NULL,
    trx_id     character varying(64)    NOT NULL,
    seq_num    integer                  NOT NULL,
    name       character varying(13)    NOT NULL,
    domain     character varying(21)    NOT NULL,
    key        character varying(21)    NOT NULL,
    data       jsonb                    NOT NULL,
    created_at timestamp with time zone NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS actions_trx_id_index
    ON public.actions USING btree (trx_id);
"""

DOMAINS_TABLE = """
CREATE TABLE IF NOT EXISTS public.domains
(
    name       character varying(21)       NOT NULL,
    creator    character(53)               NOT NULL,
    issue      jsonb                       NOT NULL,
    transfer   jsonb                       NOT NULL,
    manage     jsonb                       NOT NULL,
    metas      integer[]                   NOT NULL,
    created_at timestamp with time zone    NOT NULL  DEFAULT now(),
    CONSTRAINT domains_pkey PRIMARY KEY (name)
);
CREATE INDEX IF NOT EXISTS domains_creator_index
    ON public.domains USING btree (creator);
"""

TOKENS_TABLE = """
CREATE TABLE IF NOT EXISTS public.tokens
(
    id         character varying(42)       NOT NULL,
    domain     character varying(21)       NOT NULL,
    name       character varying(21)       NOT NULL,
    owner      character(53)[]             NOT NULL,
    metas      integer[]                   NOT NULL,
    created_at timestamp with time zone    NOT NULL  DEFAULT now(),
    CONSTRAINT tokens_pkey PRIMARY KEY (id)
);
CREATE INDEX IF NOT EXISTS tokens_owner_index
    ON public.tokens USING btree (owner);
"""

GROUPS_TABLE = """
CREATE TABLE IF NOT EXISTS public.groups
(
    name       character varying(21)       NOT NULL,
    key        character(53)               NOT NULL,
    def        jsonb                       NOT NULL,
    metas      integer[]                   NOT NULL,
    created_at timestamp with time zone    NOT NULL  DEFAULT now(),
    CONSTRAINT groups_pkey PRIMARY KEY (name)
);
CREATE INDEX IF NOT EXISTS groups_key_index
    ON public.groups USING btree (key);
"""

FUNGIBLES_TABLE = """
CREATE TABLE IF NOT EXISTS public.fungibles
(
    name       character varying(21)       NOT NULL,
    sym_name   character varying(21)       NOT NULL,
    sym        character varying(21)       NOT NULL,
    sym_id     bigint                      NOT NULL,
    creator    character(53)               NOT NULL,
    issue      jsonb                       NOT NULL,
    manage     jsonb                       NOT NULL,
    metas      integer[]                   NOT NULL,
    created_at timestamp with time zone    NOT NULL  DEFAULT now(),
    CONSTRAINT fungibles_pkey PRIMARY KEY (sym_id)
);
CREATE INDEX IF NOT EXISTS fungibles_creator_index
    ON public.fungibles USING btree (creator);
"""

# Creation order; metas comes before any table that references its ids
TABLE_DEFINITIONS = [
    ("stats", STATS_TABLE),
    ("blocks", BLOCKS_TABLE),
    ("transactions", TRANSACTIONS_TABLE),
    ("metas", METAS_TABLE),
    ("actions", ACTIONS_TABLE),
    ("domains", DOMAINS_TABLE),
    ("tokens", TOKENS_TABLE),
    ("groups", GROUPS_TABLE),
    ("fungibles", FUNGIBLES_TABLE),
]

TABLES = [name for name, _ in TABLE_DEFINITIONS]

SEQUENCES = ["metas_id_seq"]
