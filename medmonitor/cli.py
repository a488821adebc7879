"""
Flask CLI commands: `flask init-inventory` and `flask run-trigger`
"""
import click

from medmonitor.services import inventory_store
from medmonitor.services.trigger_engine import run_trigger_check


def register_commands(app):
    @app.cli.command('init-inventory')
    @click.option('--count', default=0, show_default=True, help='Initial doses per compartment')
    def init_inventory(count):
        """Create the inventory counters that do not exist yet"""
        created = inventory_store.seed_counters(initial=count)
        if created:
            click.echo(f'✓ Created counters: {", ".join(created)}')
        else:
            click.echo('ℹ️  All inventory counters already exist')

    @app.cli.command('run-trigger')
    def run_trigger():
        """Run one trigger check (for cron-style schedulers)"""
        result = run_trigger_check()
        click.echo(result.message)
        for automation in result.automations:
            click.echo(f"  fired {automation['id']}: {automation['medicine']}")
        for item in result.skipped:
            click.echo(f"  skipped {item['id']}: {item['error']}")
