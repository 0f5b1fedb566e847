"""
Command Line Interface entry point using Typer.
"""
from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel

from .audit import AuditEvent, AuditLogger, get_audit_log
from .codec import split_container
from .config import PASSWORD_ENV
from .crypto import TAG_LEN, compute_sha256
from .errors import TyrBackupError
from .manager import BackupManager
from .store import FileConfigStore
from .ui import (
    confirm,
    console,
    render_banner,
    render_error,
    render_progress,
    render_status,
    render_table,
)
from .utils import generate_backup_filename, human_size, mask_secret

__version__ = "1.0.0"

app = typer.Typer(
    help=(
        "[bold cyan]TYR BACKUP[/]\n\n"
        "Export and import the complete Tyr configuration as a single "
        "password-protected, tamper-evident file."
    ),
    no_args_is_help=True,
    rich_markup_mode="rich"
)

def _manager() -> BackupManager:
    return BackupManager(AuditLogger())

@app.command(name="export")
def export_cmd(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Backup file to write (default: ./tyr_backup_<millis>.tyrbackup)"),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True, envvar=PASSWORD_ENV),
    no_database: bool = typer.Option(False, "--no-database", help="Leave the mail database out of the backup"),
):
    """
    Encrypt the current configuration into a backup file.
    """
    render_banner()
    target = output or Path.cwd() / generate_backup_filename()
    manager = _manager()
    try:
        with render_progress("Deriving key and encrypting configuration..."):
            container = manager.backup_store(FileConfigStore(), password, include_database=not no_database)
        manager.write_container(target, container)
    except TyrBackupError as e:
        render_error(str(e))
        raise typer.Exit(1)

    render_status("success", f"Backup written to {target} ({human_size(len(container))}).")

@app.command(name="import")
def import_cmd(
    backup: Path = typer.Argument(..., help="Backup file to restore"),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True, envvar=PASSWORD_ENV),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """
    Restore the configuration from a backup file, replacing current values.
    """
    render_banner()
    manager = _manager()
    try:
        container = manager.read_container(backup)
        if not yes and not confirm("Restoring overwrites the current configuration. Continue?"):
            raise typer.Exit(0)
        with render_progress("Deriving key and decrypting backup..."):
            snapshot = manager.restore_into_store(FileConfigStore(), container, password)
    except TyrBackupError as e:
        render_error(str(e))
        raise typer.Exit(1)

    render_status("success", f"Configuration restored from {backup}.")
    if snapshot.includes_database:
        render_status("info", f"Mail database restored ({human_size(len(snapshot.embedded_blob or b''))}).")

@app.command(name="verify")
def verify_cmd(
    backup: Path = typer.Argument(..., help="Backup file to check"),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True, envvar=PASSWORD_ENV),
):
    """Check a backup password without restoring anything."""
    manager = _manager()
    try:
        container = manager.read_container(backup)
        with render_progress("Verifying backup password..."):
            snapshot = manager.check_backup(container, password)
    except TyrBackupError as e:
        render_error(str(e))
        raise typer.Exit(1)

    render_status("verify", "Password is correct and the backup is intact.", "green")
    render_status("info", f"Format version {snapshot.schema_version}, created at {snapshot.created_at} (epoch ms).")

@app.command(name="inspect")
def inspect_cmd(backup: Path = typer.Argument(..., help="Backup file to inspect")):
    """Show the container layout of a backup file without decrypting it."""
    try:
        container = BackupManager.read_container(backup)
        salt, nonce, ciphertext = split_container(container)
    except TyrBackupError as e:
        render_error(str(e))
        raise typer.Exit(1)

    rows = [
        ["File size", human_size(len(container))],
        ["SHA-256", compute_sha256(container)],
        ["Salt", salt.hex()],
        ["Nonce", nonce.hex()],
        ["Encrypted payload", human_size(len(ciphertext) - TAG_LEN)],
    ]
    render_table(f"Backup {backup.name}", ["Field", "Value"], rows)

@app.command(name="show")
def show_cmd():
    """Show the configuration that would be backed up."""
    try:
        snapshot = FileConfigStore().get_snapshot_fields(include_database=True)
    except TyrBackupError as e:
        render_error(str(e))
        raise typer.Exit(1)

    rows = [
        ["Password", mask_secret(snapshot.auth_secret) if snapshot.auth_secret else "[dim]not set[/]"],
        ["Custom peers", "\n".join(snapshot.custom_peers) or "[dim]none[/]"],
        ["Use default peers", str(snapshot.use_default_peers)],
        ["Auto start", str(snapshot.auto_start_enabled)],
        ["Mail address", snapshot.identity_address or "[dim]not set[/]"],
        ["Public key", snapshot.identity_public_key or "[dim]not set[/]"],
        ["Onboarding completed", str(snapshot.onboarding_completed)],
        ["Database", human_size(len(snapshot.embedded_blob)) if snapshot.embedded_blob is not None else "[dim]none[/]"],
    ]
    render_table("Current Configuration", ["Setting", "Value"], rows)

@app.command(name="audit")
def show_audit(
    last_n: int = typer.Option(50, "--last", "-n", help="Number of recent events to show"),
    event: Optional[AuditEvent] = typer.Option(None, "--event", "-e", help="Only show events of this kind"),
):
    """Show recent audit logs."""
    events = get_audit_log(last_n, event=event)
    if not events:
        render_status("info", "No audit events found.")
        return

    rows = []
    for e in events:
        rows.append([e.get("timestamp", ""), e.get("event", ""), str(e.get("details", {}))])

    render_table("Audit Log", ["Timestamp", "Event", "Details"], rows)

@app.command(name="doctor")
def run_doctor():
    """Run the diagnostic suite."""
    from .doctor import run_diagnostics
    with render_progress("Running diagnostic checks..."):
        results = run_diagnostics()

    rows = []
    for r in results:
        status_text = "[bold green]PASS[/]" if r.status == "pass" else "[bold yellow]WARN[/]" if r.status == "warn" else "[bold red]FAIL[/]"
        rows.append([status_text, r.name, r.detail])

    render_table("Tyr Doctor Diagnostics", ["Status", "Check", "Details"], rows)

@app.command(name="version")
def version_cmd():
    """Display version information."""
    console.print(Panel(f"[bold cyan]TYR BACKUP[/] v{__version__}", border_style="cyan", expand=False))

if __name__ == "__main__":
    app()
