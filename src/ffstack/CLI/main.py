"""
Command Line Interface for ffstack.
"""
import click

from ..config import get_settings
from ..exceptions import FFStackError, PersistenceError, VolumeClearError
from ..MANAGERS.stack_manager import StackManager
from ..MANAGERS.stack_store import StackStore
from ..MODELS.network_config import (
    DEFAULT_FIREFLY_BASE_PORT,
    DEFAULT_SERVICES_BASE_PORT,
    InitOptions,
)
from ..MODELS.providers import BlockchainProvider, DatabaseSelection, TokensProvider
from ..MODELS.stack import ResetOutcome
from ..UTILS.logging_config import setup_logging
from ..VALIDATION.validators import validate_count, validate_name


def _confirm(prompt: str) -> bool:
    click.echo(
        "WARNING: This will completely remove all transactions and data from your "
        "FireFly stack. Are you sure you want to do that?"
    )
    return click.confirm(prompt, default=False)


def _prompt_until_valid(text: str, validate):
    """Prompts repeatedly until ``validate`` accepts the answer."""
    while True:
        value = click.prompt(text, default="", show_default=False)
        try:
            return validate(value)
        except FFStackError as e:
            click.echo(f"Error: {e}")


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, verbose):
    """
    ffstack - local FireFly development stacks.

    Generates multi-member FireFly networks as docker-compose stacks.
    """
    ctx.ensure_object(dict)
    settings = get_settings()
    setup_logging("DEBUG" if verbose else settings.log_level, settings.log_dir)
    ctx.obj['manager'] = StackManager(StackStore(settings.stacks_dir), confirm=_confirm)


@cli.command()
@click.argument('stack_name', required=False)
@click.argument('member_count', required=False)
@click.option('--firefly-base-port', '-p', default=DEFAULT_FIREFLY_BASE_PORT, show_default=True,
              help='Mapped port base of FireFly core API (1 added for each member)')
@click.option('--services-base-port', '-s', default=DEFAULT_SERVICES_BASE_PORT, show_default=True,
              help='Mapped port base of services (100 added for each member)')
@click.option('--database', '-d', default=DatabaseSelection.SQLITE3.value, show_default=True,
              help=f'Database type to use. Options are: {DatabaseSelection.options()}')
@click.option('--blockchain-provider', default=BlockchainProvider.GETH.value, show_default=True,
              help=f'Blockchain provider to use. Options are: {BlockchainProvider.options()}')
@click.option('--tokens-provider', default=TokensProvider.ERC1155.value, show_default=True,
              help=f'Tokens provider to use. Options are: {TokensProvider.options()}')
@click.option('--external', '-e', default=0, show_default=True,
              help='Manage a number of FireFly core processes outside of the docker-compose stack')
@click.pass_context
def init(ctx, stack_name, member_count, firefly_base_port, services_base_port,
         database, blockchain_provider, tokens_provider, external):
    """Create a new FireFly local dev stack."""
    manager: StackManager = ctx.obj['manager']
    options = InitOptions(
        firefly_base_port=firefly_base_port,
        services_base_port=services_base_port,
        database=database,
        blockchain_provider=blockchain_provider,
        tokens_provider=tokens_provider,
        external_processes=external,
    )

    click.echo("initializing new FireFly stack...")
    if stack_name is None:
        stack_name = _prompt_until_valid(
            "stack name", lambda value: validate_name(value, manager.check_exists)
        )
    if member_count is None:
        member_count = _prompt_until_valid(
            "number of members", lambda value: validate_count(value, external)
        )

    try:
        manager.init_stack(stack_name, member_count, options)
    except FFStackError as e:
        raise click.ClickException(str(e))

    compose_path = manager.store.compose_path(stack_name)
    click.echo(f"Stack '{stack_name}' created!")
    click.echo(f"Your docker compose file for this stack can be found at: {compose_path}")


@cli.command()
@click.argument('stack_name')
@click.option('--force', '-f', is_flag=True, help='Reset the stack without prompting for confirmation')
@click.pass_context
def reset(ctx, stack_name, force):
    """
    Clear all data in a stack.

    Clears all data in a stack but leaves the stack itself. The stack must be
    stopped to run this command.
    """
    manager: StackManager = ctx.obj['manager']
    try:
        outcome = manager.reset_stack(stack_name, force=force)
    except VolumeClearError as e:
        for volume, reason in e.failures.items():
            click.echo(f"  {volume}: {reason}", err=True)
        raise click.ClickException(str(e))
    except FFStackError as e:
        raise click.ClickException(str(e))

    if outcome == ResetOutcome.DECLINED:
        click.echo("canceled")
    else:
        click.echo(f"FireFly stack '{stack_name}' has been reset")


@cli.command(name='ls')
@click.pass_context
def list_stacks(ctx):
    """List stacks"""
    manager: StackManager = ctx.obj['manager']
    names = manager.list_stacks()
    if not names:
        click.echo("No stacks found.")
        return
    click.echo(f"{'STACK':20} {'MEMBERS':8} {'STATE':12}")
    click.echo("-" * 42)
    for name in names:
        try:
            record = manager.load_stack(name)
        except PersistenceError:
            click.echo(f"{name:20} {'-':<8} {'unreadable':12}")
            continue
        click.echo(f"{name:20} {record.config.member_count:<8} {record.state.value:12}")


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
