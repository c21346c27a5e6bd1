# safespend/cli.py
import logging
import os

import anyio
import click
from dotenv import load_dotenv

from safespend.config import DEFAULT_CONFIG, load_config, save_config
from safespend.errors import LedgerError, PartialFailureError, StoreError
from safespend.session import LedgerSession
from safespend.utils import month_label, parse_month

logger = logging.getLogger(__name__)


def _run_session(ctx, month, action):
    """Open a session on ``month``, run ``action`` on it and close it."""
    config = ctx.obj['config']

    async def _go():
        cursor = parse_month(month) if month else None
        async with LedgerSession.from_config(config, cursor=cursor) as session:
            return await action(session)

    try:
        return anyio.run(_go)
    except PartialFailureError as exc:
        raise click.ClickException(
            f"{exc} Already removed: {', '.join(map(str, exc.deleted_ids))}."
        ) from exc
    except StoreError as exc:
        raise click.ClickException(f"Could not save/load transactions: {exc}") from exc
    except LedgerError as exc:
        raise click.ClickException(str(exc)) from exc


def _money(ctx, amount):
    return f"{ctx.obj['config'].get('currency_symbol', '')}{amount:,.2f}"


month_option = click.option(
    '--month', 'month',
    default=None,
    metavar='YYYY-MM',
    help='Month to work on (default: the current month).'
)


@click.group()
@click.option(
    '--config', 'config_path',
    default='config.yaml',
    type=click.Path(dir_okay=False),
    help='Path to config.yaml (defaults are used when it does not exist)'
)
@click.option(
    '--db', 'db_path',
    default=None,
    type=click.Path(dir_okay=False),
    help='SQLite database file (overrides config)'
)
@click.option(
    '--env-file', 'env_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Optional .env file, e.g. with SAFESPEND_DB_PATH'
)
@click.option(
    '--log-level', 'log_level',
    default=None,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
    help='Logging verbosity (default: $SAFESPEND_LOG_LEVEL or WARNING)'
)
@click.pass_context
def main(ctx, config_path, db_path, env_file, log_level):
    """
    Track monthly income and expenses and see how much is safe to spend.
    Income is the month's budget: set it before adding expenses.
    """
    if env_file:
        load_dotenv(env_file)
    logging.basicConfig(
        level=(log_level or os.getenv('SAFESPEND_LOG_LEVEL', 'WARNING')).upper()
    )

    try:
        cfg = load_config(config_path)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    if db_path:
        cfg['db_path'] = db_path
    logger.debug("Using database %s", cfg['db_path'])
    ctx.obj = {'config': cfg, 'config_path': config_path}


@main.command()
@month_option
@click.pass_context
def summary(ctx, month):
    """Show income, expenses and what is safe to spend."""
    async def action(session):
        return session.cursor, session.summary()

    cursor, data = _run_session(ctx, month, action)
    click.echo(month_label(cursor))
    click.echo(f"  Income:        {_money(ctx, data['income'])}")
    click.echo(f"  Expenses:      {_money(ctx, data['expense'])}")
    click.echo(
        f"  Safe to spend: {ctx.obj['config'].get('currency_symbol', '')}"
        f"{data['safe_to_spend_display']} ({data['progress'] * 100:.0f}% left)"
    )
    click.echo(f"  Days left:     {data['days_left']}")
    if data['budget'] == 0:
        click.echo("No income set for this month yet.", err=True)


@main.command('list')
@month_option
@click.option(
    '--category', 'categories',
    multiple=True,
    help='Only show these categories (repeatable)'
)
@click.pass_context
def list_transactions(ctx, month, categories):
    """List the month's transactions, newest first."""
    async def action(session):
        return session.recent_transactions(categories)

    txs = _run_session(ctx, month, action)
    if not txs:
        click.echo("No transactions.")
        return
    for tx in txs:
        sign = '+' if tx.is_income else '-'
        click.echo(
            f"{tx.id:>5}  {tx.date:%Y-%m-%d %H:%M}  {tx.category:<14} "
            f"{tx.title:<24} {sign}{_money(ctx, tx.amount)}"
        )


@main.command()
@month_option
@click.pass_context
def breakdown(ctx, month):
    """Show expenses per category with their share of the month."""
    async def action(session):
        return session.category_breakdown()

    rows = _run_session(ctx, month, action)
    if not rows:
        click.echo("No expenses.")
        return
    for row in rows:
        click.echo(
            f"{row['category']:<14} {_money(ctx, row['total']):>14} {row['percent']:5.1f}%"
        )


@main.command('add-expense')
@month_option
@click.argument('title')
@click.argument('amount')
@click.argument('category')
@click.pass_context
def add_expense(ctx, month, title, amount, category):
    """Record an expense. The month needs an income first."""
    async def action(session):
        await session.add_expense(title, amount, category)
        return session.safe_to_spend()

    remaining = _run_session(ctx, month, action)
    click.echo(f"Saved. Safe to spend: {_money(ctx, remaining.remaining)}")


@main.command('set-income')
@month_option
@click.argument('amount')
@click.pass_context
def set_income(ctx, month, amount):
    """Set the monthly income, replacing any income already recorded."""
    async def action(session):
        await session.set_monthly_income(amount)
        return session.cursor, session.total_income()

    cursor, income = _run_session(ctx, month, action)
    click.echo(f"Monthly income for {month_label(cursor)} set to {_money(ctx, income)}.")


@main.command()
@click.argument('tx_id', type=int)
@click.pass_context
def delete(ctx, tx_id):
    """Delete a transaction by id."""
    async def action(session):
        return await session.delete_transaction(tx_id)

    if _run_session(ctx, None, action):
        click.echo(f"Deleted transaction {tx_id}.")
    else:
        click.echo(f"No transaction with id {tx_id}.", err=True)


@main.command()
@click.pass_context
def categories(ctx):
    """List the configured expense categories."""
    for name in ctx.obj['config'].get('categories', []):
        click.echo(name)


@main.command()
@click.option('--force', is_flag=True, default=False, help='Overwrite an existing file')
@click.pass_context
def init(ctx, force):
    """Write a default config.yaml."""
    path = ctx.obj['config_path']
    if os.path.exists(path) and not force:
        raise click.ClickException(f"{path} already exists (use --force to overwrite)")
    save_config(DEFAULT_CONFIG, path)
    click.echo(f"Wrote {path}.")
