"""
pgledger CLI Tool

This module provides a command-line interface for operating the ledger database.
It can provision the database, inspect the sync checkpoint, replay blocks from a
JSON-lines file and mark blocks irreversible.

Each line of a replay file is one block in its JSON form (see Block.from_dict).
"""

import json
import sys
from urllib.parse import urlparse

import click

from pgledger import __version__
from pgledger.adapters.database.postgres_adapter import PostgresAdapter
from pgledger.config.settings import settings
from pgledger.core.models import Block
from pgledger.core.utils import setup_logging
from pgledger.exceptions import StoreError
from pgledger.storage.pipeline import BlockPipeline
from pgledger.storage.postgres_store import VERSION_KEY, PostgresStore
from pgledger.storage.sync import SyncState


def _fail(message: str) -> None:
    click.echo(message, err=True)
    sys.exit(1)


def read_blocks(stream):
    """Yield blocks from a JSON-lines stream, skipping blank lines"""
    for line_no, line in enumerate(stream, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            yield Block.from_dict(json.loads(line))
        except (ValueError, KeyError, TypeError) as e:
            raise click.ClickException(f"Invalid block on line {line_no}: {e}")


@click.group()
@click.version_option(__version__, prog_name="pgledger")
@click.option('--database-url', default=settings.DATABASE_URL, show_default=True, help='Ledger database URL')
@click.option('--log-level', default=settings.LOG_LEVEL, help='Logging level')
@click.pass_context
def pgledger(ctx, database_url, log_level):
    """pgledger - project a ledger into PostgreSQL"""
    setup_logging(log_level, settings.LOG_FORMAT)
    ctx.ensure_object(dict)
    ctx.obj['database_url'] = database_url


def database_name(database_url: str) -> str:
    """Name of the database a URL points at, settings.DATABASE_NAME when it names none"""
    parsed = urlparse(database_url)
    if parsed.scheme not in ("postgresql", "postgres"):
        return settings.DATABASE_NAME
    return parsed.path.lstrip('/') or settings.DATABASE_NAME


@pgledger.command()
@click.option('--wipe', is_flag=True, help='Drop all tables and sequences first')
@click.option('--create-db/--no-create-db', default=False, help='Create the database if it does not exist')
@click.option('--maintenance-url', default=settings.MAINTENANCE_DATABASE_URL,
              help='Database to connect to while creating the ledger database')
@click.pass_context
def init(ctx, wipe, create_db, maintenance_url):
    """Create tables and seed the stats map"""
    try:
        if create_db:
            db_name = database_name(ctx.obj['database_url'])
            admin = PostgresAdapter(maintenance_url)
            admin.connect()
            try:
                store = PostgresStore(admin)
                if not store.exists_db(db_name):
                    store.create_db(db_name)
                    click.echo(f"Created database {db_name}")
            finally:
                admin.close()

        pipeline = BlockPipeline.from_url(ctx.obj['database_url'])
        pipeline.open(wipe=wipe)
        pipeline.close()
        click.echo("Database initialized")
    except StoreError as e:
        _fail(f"Error initializing database: {e}")


@pgledger.command()
@click.confirmation_option(prompt='Drop every ledger table?')
@click.pass_context
def drop(ctx):
    """Drop all tables and sequences"""
    adapter = PostgresAdapter(ctx.obj['database_url'])
    try:
        adapter.connect()
        store = PostgresStore(adapter)
        store.drop_all_tables()
        store.drop_all_sequences()
        click.echo("All tables dropped")
    except StoreError as e:
        _fail(f"Error dropping tables: {e}")
    finally:
        adapter.close()


@pgledger.command()
@click.pass_context
def check(ctx):
    """Show the schema version and sync state"""
    pipeline = BlockPipeline.from_url(ctx.obj['database_url'])
    try:
        pipeline.adapter.connect()
        store = pipeline.store
        if not store.table_exists("stats"):
            click.echo("Version: N/A")
            click.echo(f"Sync state: {SyncState.UNINITIALIZED.value}")
            _fail("Check failed: ledger tables do not exist, run 'pgledger init' first")
        click.echo(f"Version: {store.read_stat(VERSION_KEY) or 'N/A'}")
        click.echo(f"Sync state: {pipeline.checkpoint.state().value}")
        store.check_version()
        pipeline.checkpoint.verify()
        click.echo(f"Last sync block: {pipeline.last_sync_block_id or 'N/A'}")
    except StoreError as e:
        _fail(f"Check failed: {e}")
    finally:
        pipeline.close()


@pgledger.command()
@click.argument('blocks_file', type=click.File('r'))
@click.option('--atomic/--no-atomic', default=settings.ATOMIC_BLOCK_COMMIT,
              help='Commit rows and statements of a block in one transaction')
@click.pass_context
def replay(ctx, blocks_file, atomic):
    """Apply blocks from a JSON-lines file"""
    pipeline = BlockPipeline.from_url(ctx.obj['database_url'], atomic_block_commit=atomic)
    try:
        pipeline.open()
        count = pipeline.apply_blocks(read_blocks(blocks_file))
        click.echo(f"Applied {count} blocks, last sync block: {pipeline.last_sync_block_id or 'N/A'}")
    except StoreError as e:
        _fail(f"Replay stopped: {e}")
    finally:
        pipeline.close()


@pgledger.command()
@click.argument('block_id')
@click.pass_context
def irreversible(ctx, block_id):
    """Mark a block and its transactions as final"""
    pipeline = BlockPipeline.from_url(ctx.obj['database_url'])
    try:
        pipeline.open()
        if not pipeline.store.exists_block(block_id):
            _fail(f"Block not found: {block_id}")
        pipeline.mark_irreversible(block_id)
        click.echo(f"Block {block_id} marked irreversible")
    except StoreError as e:
        _fail(f"Error marking block: {e}")
    finally:
        pipeline.close()
