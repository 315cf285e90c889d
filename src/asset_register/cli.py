import logging
from datetime import date

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

app = typer.Typer(help="asset-register CLI")
console = Console()


def _money(value) -> str:
    return f"{float(value):,.2f}"


@app.callback()
def main():
    """Fixed-asset register with dual-basis (IFRS and tax) depreciation."""
    from asset_register.config.settings import get_settings

    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("init-db")
def init_db():
    """Initialize the database (create all tables)."""
    from asset_register.models.database import get_engine
    from asset_register.models.database import init_db as _init_db

    engine = get_engine()
    _init_db(engine)
    console.print("[green]Database initialized.[/green]")


@app.command("seed-data")
def seed_data():
    """Load the default categories, head office branch and sample assets."""
    import subprocess
    import sys

    subprocess.run([sys.executable, "scripts/seed_data.py"], check=True)


@app.command("import-assets")
def import_assets(
    path: str = typer.Argument(..., help="CSV or Excel file to import"),
):
    """Import assets from a spreadsheet."""
    from asset_register.config.settings import get_settings
    from asset_register.exceptions import AssetRegisterError
    from asset_register.ingestion.repository import AssetRepository
    from asset_register.ingestion.spreadsheet_loader import import_assets as _import
    from asset_register.models.database import get_engine, get_session

    try:
        with get_session(get_engine()) as session:
            repo = AssetRepository(session, user_id=get_settings().default_user)
            assets = _import(path, repo)
    except AssetRegisterError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Imported {len(assets)} assets.[/green]")


@app.command()
def template(
    output: str = typer.Option(
        "asset_import_template.csv", "--output", "-o", help="Template file path"
    ),
):
    """Write the spreadsheet import template."""
    from asset_register.ingestion.spreadsheet_loader import template_frame

    template_frame().to_csv(output, index=False)
    console.print(f"[green]Template written to {output}[/green]")


@app.command()
def report(
    start: str = typer.Option(..., "--start", "-s", help="Period start (YYYY-MM-DD)"),
    end: str = typer.Option(..., "--end", "-e", help="Period end (YYYY-MM-DD)"),
    view: str = typer.Option("ifrs", "--view", "-v", help="ifrs or tax"),
    branch: str = typer.Option(None, "--branch", "-b", help="Branch ID filter"),
    output: str = typer.Option(None, "--output", "-o", help="Export to CSV/XLSX"),
):
    """Print the asset movement schedule for a period."""
    from asset_register.config.settings import get_settings
    from asset_register.financial.valuation import TaxYearPolicy
    from asset_register.ingestion.repository import AssetRepository
    from asset_register.models.database import get_engine, get_session
    from asset_register.reporting.movement_schedule import (
        ScheduleView,
        build_schedule,
        export_schedule,
    )

    try:
        start_date = date.fromisoformat(start)
        end_date = date.fromisoformat(end)
        schedule_view = ScheduleView(view)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)
    if end_date < start_date:
        console.print("[red]End date precedes start date.[/red]")
        raise typer.Exit(1)

    policy = TaxYearPolicy.from_settings(get_settings())
    with get_session(get_engine()) as session:
        repo = AssetRepository(session)
        schedule = build_schedule(
            repo.list_assets(branch_id=branch),
            repo.list_categories(),
            start_date,
            end_date,
            schedule_view,
            branch,
            policy,
        )

    if not schedule.groups:
        console.print("[yellow]No assets on the register for this period.[/yellow]")
        raise typer.Exit(0)

    ifrs = schedule_view == ScheduleView.IFRS
    title = "Asset Movement Schedule (IAS 16)" if ifrs else "Tax Allowance Schedule"
    table = Table(title=f"{title}: {start_date} to {end_date}")
    table.add_column("Asset", style="cyan")
    table.add_column("Category")
    table.add_column("Opening Cost", justify="right")
    table.add_column("Additions", justify="right")
    table.add_column("Disposals", justify="right")
    table.add_column("Closing Cost", justify="right")
    table.add_column("Charge", justify="right", style="green")
    table.add_column("NBV" if ifrs else "Tax Value", justify="right", style="bold")

    for group in schedule.groups:
        for row in group.rows:
            c = row.calculation
            table.add_row(
                row.asset_number,
                row.category_name,
                _money(c.opening_cost),
                _money(c.additions),
                _money(c.disposals),
                _money(c.closing_cost),
                _money(c.periodic_depr if ifrs else c.tax_deduction_for_period),
                _money(c.nbv if ifrs else c.tax_value),
            )
    t = schedule.total
    table.add_row(
        "[bold]Total[/bold]",
        "",
        _money(t.opening_cost),
        _money(t.additions),
        _money(t.disposals),
        _money(t.closing_cost),
        _money(t.periodic_depr if ifrs else t.tax_deduction_for_period),
        _money(t.nbv if ifrs else t.tax_value),
    )
    console.print(table)

    if t.profit_on_disposal is not None:
        console.print(f"  Profit on disposal: {_money(t.profit_on_disposal)}")
        console.print(f"  Recoupment: {_money(t.recoupment)}")

    if output:
        path = export_schedule(schedule, output)
        console.print(f"[green]Schedule exported to {path}[/green]")


@app.command()
def journals(
    month: str = typer.Option(..., "--month", "-m", help="Month (YYYY-MM)"),
    branch: str = typer.Option(None, "--branch", "-b", help="Branch ID filter"),
    entry_type: str = typer.Option(
        None, "--type", "-t", help="Depreciation or Addition"
    ),
):
    """Print consolidated GL journals for a month."""
    from asset_register.config.settings import get_settings
    from asset_register.financial.valuation import TaxYearPolicy
    from asset_register.ingestion.repository import AssetRepository
    from asset_register.models.database import get_engine, get_session
    from asset_register.reporting.journals import (
        build_journals,
        parse_month,
        trial_balance,
    )

    settings = get_settings()
    try:
        year, month_num = parse_month(month)
        with get_session(get_engine()) as session:
            repo = AssetRepository(session)
            entries = build_journals(
                repo.list_assets(branch_id=branch),
                repo.list_categories(),
                year,
                month_num,
                branch_id=branch,
                entry_type=entry_type,
                accounts_payable_code=settings.accounts_payable_code,
                policy=TaxYearPolicy.from_settings(settings),
            )
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    if not entries:
        console.print("[yellow]No activity found for this month.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Consolidated GL Journals: {month}")
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Account", style="cyan")
    table.add_column("Description")
    table.add_column("Debit", justify="right", style="green")
    table.add_column("Credit", justify="right", style="red")
    for e in entries:
        table.add_row(
            e.entry_date.isoformat(),
            e.entry_type,
            f"{e.account_code} {e.account_name}",
            e.description,
            _money(e.debit) if e.debit else "",
            _money(e.credit) if e.credit else "",
        )
    debit, credit = trial_balance(entries)
    table.add_row(
        "", "", "", "[bold]Trial Balance Totals[/bold]", _money(debit), _money(credit)
    )
    console.print(table)


@app.command()
def audit(
    asset_number: str = typer.Option(None, "--asset", "-a", help="Asset number"),
    limit: int = typer.Option(50, "--limit", "-n", help="Maximum entries"),
):
    """Show the audit trail, newest first."""
    from asset_register.exceptions import AssetNotFoundError
    from asset_register.ingestion.repository import AssetRepository
    from asset_register.models.database import get_engine, get_session

    with get_session(get_engine()) as session:
        repo = AssetRepository(session)
        asset_id = None
        if asset_number:
            try:
                asset_id = repo.get_asset_by_number(asset_number).id
            except AssetNotFoundError as e:
                console.print(f"[red]{escape(str(e))}[/red]")
                raise typer.Exit(1)
        entries = repo.audit_entries(asset_id, limit)

    table = Table(title="Audit Trail")
    table.add_column("Timestamp")
    table.add_column("User")
    table.add_column("Asset", style="cyan")
    table.add_column("Action", style="bold")
    table.add_column("Changes")
    for entry in entries:
        changes = ", ".join(
            f"{c.field}: {c.old_value} -> {c.new_value}" for c in entry.changes[:3]
        )
        if len(entry.changes) > 3:
            changes += f" (+{len(entry.changes) - 3} more)"
        table.add_row(
            entry.timestamp.isoformat(timespec="seconds"),
            entry.user_id,
            entry.asset_id,
            entry.action,
            changes,
        )
    console.print(table)


@app.command()
def serve(host: str = "0.0.0.0", port: int = 8000):
    """Start the FastAPI server."""
    import uvicorn

    uvicorn.run("asset_register.api.main:app", host=host, port=port, reload=True)


@app.command()
def dashboard(port: int = typer.Option(8501, "--port", "-p", help="Streamlit port")):
    """Start the Streamlit dashboard."""
    import subprocess
    import sys
    from pathlib import Path

    dashboard_path = Path(__file__).parent / "dashboard" / "app.py"
    subprocess.run(
        [
            sys.executable,
            "-m",
            "streamlit",
            "run",
            str(dashboard_path),
            f"--server.port={port}",
            "--server.headless=true",
        ],
        check=True,
    )


if __name__ == "__main__":
    app()
