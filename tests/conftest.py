"""
Pytest configuration for pgledger.

Ensures the project root is on sys.path and provides an in-memory stand-in for the
PostgreSQL session. FakeAdapter records every round trip and interprets the text the
pipeline sends (COPY rows and EXECUTE lines), so the write protocol can be checked
without a live server.
"""

import copy
import os
import re
import sys
from contextlib import contextmanager
from types import SimpleNamespace

import pytest

# Compute project root (parent of this tests directory)
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from pgledger.core.actions import NULL_ADDRESS
from pgledger.core.models import Action, Block, Transaction
from pgledger.exceptions import DatabaseConnectionError, ExecutionError
from pgledger.storage.pipeline import BlockPipeline
from pgledger.storage.postgres_store import PostgresStore


# === Text parsers (server side of the wire formats) ===

_COPY_UNESCAPES = {"\\": "\\", "t": "\t", "n": "\n", "r": "\r", "b": "\b", "f": "\f", "v": "\v"}


def unescape_copy_field(field):
    """Decode one COPY text field; \\N is NULL."""
    if field == "\\N":
        return None
    out = []
    i = 0
    while i < len(field):
        ch = field[i]
        if ch == "\\" and i + 1 < len(field):
            out.append(_COPY_UNESCAPES.get(field[i + 1], field[i + 1]))
            i += 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def parse_copy_rows(data):
    """Split COPY text into rows of decoded fields."""
    assert data.endswith("\n"), "every COPY row ends with a newline"
    return [[unescape_copy_field(f) for f in line.split("\t")] for line in data[:-1].split("\n")]


def parse_array(text):
    """Decode a text array literal such as {"a","b"}."""
    assert text[0] == "{" and text[-1] == "}", text
    body = text[1:-1]
    items = []
    i = 0
    while i < len(body):
        if body[i] == '"':
            i += 1
            buf = []
            while body[i] != '"':
                if body[i] == "\\":
                    i += 1
                buf.append(body[i])
                i += 1
            items.append("".join(buf))
            i += 1
        else:
            j = body.find(",", i)
            j = len(body) if j == -1 else j
            items.append(body[i:j])
            i = j
        if i < len(body):
            assert body[i] == ",", body
            i += 1
    return items


def _read_literal(text, i):
    """Read one SQL literal starting at text[i]; return (value, next index)."""
    if text.startswith("NULL", i):
        return None, i + 4
    if text.startswith("true", i):
        return True, i + 4
    if text.startswith("false", i):
        return False, i + 5

    escape = False
    if text[i] == "E" and text[i + 1] == "'":
        escape = True
        i += 1
    if text[i] == "'":
        i += 1
        buf = []
        while True:
            ch = text[i]
            if escape and ch == "\\":
                nxt = text[i + 1]
                buf.append({"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f"}.get(nxt, nxt))
                i += 2
            elif ch == "'":
                if i + 1 < len(text) and text[i + 1] == "'":
                    buf.append("'")
                    i += 2
                else:
                    return "".join(buf), i + 1
            else:
                buf.append(ch)
                i += 1

    j = i
    if text[j] == "-":
        j += 1
    while j < len(text) and text[j].isdigit():
        j += 1
    assert j > i, f"unexpected literal at {text[i:i + 20]!r}"
    return int(text[i:j]), j


def parse_statement_log(text):
    """Parse a statement log into [(statement name, [args...]), ...]."""
    statements = []
    i = 0
    while True:
        while i < len(text) and text[i].isspace():
            i += 1
        if i >= len(text):
            return statements
        assert text.startswith("EXECUTE ", i), text[i:i + 40]
        i += len("EXECUTE ")
        j = i
        while text[j].isalnum() or text[j] == "_":
            j += 1
        name, i = text[i:j], j
        args = []
        if text[i] == "(":
            i += 1
            while True:
                value, i = _read_literal(text, i)
                args.append(value)
                if text[i] == ",":
                    i += 1
                    continue
                assert text[i] == ")", text[i:i + 20]
                i += 1
                break
        assert text[i] == ";", text[i:i + 20]
        statements.append((name, args))
        i += 1


# === In-memory session ===

class FakeAdapter:
    """
    Stand-in for PostgresAdapter.

    Interprets stats, blocks, transactions and entity statements, keeps a log of
    round trips and can be told to fail specific COPY tables or statements.
    """

    def __init__(self, connection_string="postgresql://fake/pgledger"):
        self.connection_string = connection_string
        self.connected = False
        self.prepared = {}
        self.round_trips = []
        self.fail_copy = set()
        self.fail_plans = set()
        self.connect_error = None
        self._in_transaction = False
        # Tables created by DDL so far; statements over missing tables cannot be prepared
        self.tables = set()
        self.state = {
            "stats": {},
            "blocks": [],
            "transactions": [],
            "actions": [],
            "domains": {},
            "tokens": {},
            "groups": {},
            "fungibles": {},
            "metas": [],
        }

    # lifecycle

    @property
    def is_connected(self):
        return self.connected

    def connect(self):
        if self.connect_error:
            raise DatabaseConnectionError("Connect failed", detail=self.connect_error)
        self.connected = True

    def close(self):
        self.connected = False
        self.prepared.clear()

    # primitives

    def execute(self, sql, params=None, error_type=ExecutionError, message="Execute statement failed"):
        self.round_trips.append(("execute", sql))
        if sql.lstrip().startswith("EXECUTE "):
            for name, args in parse_statement_log(sql):
                self._apply(name, args, sql, message)
        elif "CREATE TABLE" in sql:
            self.tables.update(re.findall(r"CREATE TABLE IF NOT EXISTS public\.(\w+)", sql))
        elif sql.startswith("DROP TABLE IF EXISTS"):
            table = sql.split()[-1].rstrip(";")
            self.tables.discard(table)
            if table in self.state:
                self.state[table] = {} if isinstance(self.state[table], dict) else []

    def query(self, sql, params=None, message="Query failed"):
        self.round_trips.append(("query", sql))
        if "pg_database" in sql:
            return [(params[0] == "pgledger",)]
        if "to_regclass" in sql:
            return [(params[0].split(".")[-1] in self.tables,)]
        table = sql.split("FROM ")[1].split()[0]
        return [(1,)] if self.state[table] else []

    def prepare(self, name, sql):
        if name in self.prepared:
            return False
        self.round_trips.append(("prepare", name))
        missing = [t for t in self.state if t not in self.tables and re.search(rf"\b{t}\b", sql)]
        if missing:
            raise ExecutionError(f"Prepare sql {name} failed", statement=f"PREPARE {name} AS {sql}",
                                 detail=f'relation "{missing[0]}" does not exist')
        self.prepared[name] = sql
        return True

    def prepare_all(self, statements):
        for name, sql in statements.items():
            self.prepare(name, sql)

    def deallocate_all(self):
        self.prepared.clear()

    def execute_prepared(self, name, params=(), message=None):
        assert name in self.prepared, f"{name} executed before being prepared"
        self.round_trips.append(("execute_prepared", name))
        if name == "rs_plan":
            value = self.state["stats"].get(params[0])
            return [] if value is None else [(value,)]
        if name == "glb_plan":
            if not self.state["blocks"]:
                return []
            latest = max(self.state["blocks"], key=lambda r: int(r[1]))
            return [(latest[0].ljust(64),)]
        if name == "eb_plan":
            return [(r[0],) for r in self.state["blocks"] if r[0] == params[0]]
        raise AssertionError(f"unexpected prepared read {name}")

    def copy_from(self, table, data):
        self.round_trips.append(("copy", table))
        if table in self.fail_copy:
            raise ExecutionError(f"Execute COPY into {table} failed", statement=f"COPY {table} FROM STDIN;",
                                 detail="simulated constraint violation")
        self.state[table].extend(parse_copy_rows(data))

    @contextmanager
    def transaction(self):
        if self._in_transaction:
            yield
            return
        snapshot = copy.deepcopy(self.state)
        self._in_transaction = True
        self.round_trips.append(("execute", "BEGIN;"))
        try:
            yield
        except BaseException:
            self.state = snapshot
            self.round_trips.append(("execute", "ROLLBACK;"))
            raise
        finally:
            self._in_transaction = False
        self.round_trips.append(("execute", "COMMIT;"))

    # helpers for tests

    def count(self, kind):
        return sum(1 for k, _ in self.round_trips if k == kind)

    def _apply(self, name, args, sql, message):
        assert name in self.prepared, f"{name} executed before being prepared"
        if name in self.fail_plans:
            raise ExecutionError(message, statement=sql, detail=f"simulated failure in {name}")
        s = self.state
        if name == "as_plan":
            key, value = args
            if key in s["stats"]:
                raise ExecutionError(message, statement=sql, detail="duplicate key value violates stats_pkey")
            s["stats"][key] = value
        elif name == "us_plan":
            value, key = args
            if key in s["stats"]:
                s["stats"][key] = value
        elif name == "sbi_plan":
            # (table, block_id column, pending column)
            for table, id_col, pending_col in (("blocks", 0, 7), ("transactions", 2, 9)):
                for row in s[table]:
                    if row[id_col] == args[0]:
                        row[pending_col] = "f"
        elif name == "nd_plan":
            s["domains"][args[0]] = {"creator": args[1], "issue": args[2], "transfer": args[3],
                                     "manage": args[4], "metas": []}
        elif name == "ud_plan":
            row = s["domains"].get(args[3])
            if row:
                for field, value in zip(("issue", "transfer", "manage"), args[:3]):
                    if value is not None:
                        row[field] = value
        elif name == "it_plan":
            if args[0] in s["tokens"]:
                raise ExecutionError(message, statement=sql, detail="duplicate key value violates tokens_pkey")
            s["tokens"][args[0]] = {"domain": args[1], "name": args[2], "owner": parse_array(args[3]), "metas": []}
        elif name == "tf_plan":
            if args[1] in s["tokens"]:
                s["tokens"][args[1]]["owner"] = parse_array(args[0])
        elif name == "dt_plan":
            if args[0] in s["tokens"]:
                s["tokens"][args[0]]["owner"] = [NULL_ADDRESS]
        elif name == "ng_plan":
            s["groups"][args[0]] = {"key": args[1], "def": args[2], "metas": []}
        elif name == "ug_plan":
            if args[1] in s["groups"]:
                s["groups"][args[1]]["def"] = args[0]
        elif name == "nf_plan":
            s["fungibles"][args[3]] = {"name": args[0], "sym_name": args[1], "sym": args[2],
                                       "creator": args[4], "issue": args[5], "manage": args[6], "metas": []}
        elif name == "uf_plan":
            row = s["fungibles"].get(args[2])
            if row:
                if args[0] is not None:
                    row["issue"] = args[0]
                if args[1] is not None:
                    row["manage"] = args[1]
        elif name in ("amd_plan", "amt_plan", "amg_plan", "amf_plan"):
            meta_id = len(s["metas"]) + 1
            s["metas"].append({"id": meta_id, "key": args[0], "value": args[1], "creator": args[2]})
            table = {"amd_plan": "domains", "amt_plan": "tokens", "amg_plan": "groups", "amf_plan": "fungibles"}[name]
            owner = s[table].get(args[3])
            if owner is not None:
                owner["metas"].append(meta_id)
        else:
            raise AssertionError(f"unexpected statement {name}")


# === Ledger builders ===

def make_block(num, transactions=None, prev=None, irreversible=False):
    """Build a block whose id is derived from its number."""
    return Block(
        block_id=f"{num:064x}",
        block_num=num,
        prev_block_id=prev if prev is not None else f"{num - 1:064x}",
        timestamp="2018-06-01T12:00:00.500",
        trx_merkle_root="ab" * 32,
        producer="evtprod",
        transactions=transactions or [],
        irreversible=irreversible
    )


def make_trx(trx_id, actions=None, **kwargs):
    defaults = {
        "expiration": "2018-06-01T12:05:00",
        "max_charge": 10000,
        "payer": "EVT6Qz3wuRjyN6gaU3P3XRxpz5Uxx9tkBVkq3iNtqrTvY9fjBvGpe",
        "signatures": ["SIG_K1_sig1"],
        "keys": ["EVT6Qz3wuRjyN6gaU3P3XRxpz5Uxx9tkBVkq3iNtqrTvY9fjBvGpe"],
        "elapsed": 120,
        "charge": 35,
    }
    defaults.update(kwargs)
    return Transaction(trx_id=trx_id, actions=actions or [], **defaults)


PERMISSION = {"name": "issue", "threshold": 1, "authorizers": [{"ref": "[A] EVT6Qz3wuRjyN6ga", "weight": 1}]}


@pytest.fixture
def fake_adapter():
    adapter = FakeAdapter()
    adapter.connect()
    return adapter


@pytest.fixture
def store(fake_adapter):
    s = PostgresStore(fake_adapter)
    s.prepare_tables()
    s.prepare_statements()
    return s


@pytest.fixture
def pipeline(fake_adapter):
    p = BlockPipeline(PostgresStore(fake_adapter), atomic_block_commit=False)
    p.open()
    return p


@pytest.fixture
def ledger():
    """Builders for ledger records"""
    return SimpleNamespace(block=make_block, trx=make_trx, action=Action, permission=PERMISSION)


@pytest.fixture
def wire():
    """Parsers for the COPY and statement-log text formats"""
    return SimpleNamespace(
        copy_rows=parse_copy_rows,
        copy_field=unescape_copy_field,
        array=parse_array,
        statements=parse_statement_log,
    )
