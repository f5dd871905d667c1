import json
import sys

import click

from promptspace.errors import SyncError
from promptspace.services import prompt_service


def init_repo_commands(app):
    """Register repository-related Flask CLI commands on the given app."""

    @app.cli.command('sync-repo')
    def sync_repo():
        """Clone the prompt repository, or reset it to the remote branch tip."""
        ps = app.extensions['promptspace']
        try:
            ps.synchronizer.ensure_up_to_date()
        except SyncError as e:
            click.echo(f'Sync failed: {e}', err=True)
            sys.exit(1)
        click.echo(f'Working copy at {ps.synchronizer.local_path} is up to date.')

    @app.cli.command('list-prompts')
    @click.option('--no-refresh', is_flag=True, default=False, help='Scan the working copy without syncing first')
    def list_prompts(no_refresh):
        """Print every stored prompt's metadata as JSON."""
        ps = app.extensions['promptspace']
        result = prompt_service.list_prompts(ps.store, ps.synchronizer, refresh_first=not no_refresh)
        if not no_refresh and not result.refreshed:
            click.echo('Warning: refresh failed, listing may be stale.', err=True)
        click.echo(json.dumps(result.prompts, ensure_ascii=False, indent=2))
