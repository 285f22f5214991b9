from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from sharing.registry import CodeRegistry
from storage.s3_client import S3Client
from ui.retrieve import retrieve_flow
from ui.share import manage_flow
from ui.upload import upload_flow

console = Console()

MENU_OPTIONS = {
    "1": ("Share", "Upload a file and get a share code"),
    "2": ("Retrieve", "Redeem a share code and download the file"),
    "3": ("Manage", "Change a code's expiration or revoke it"),
    "4": ("Exit", "Quit pyShare"),
}


def show_main_menu(client: S3Client, registry: CodeRegistry) -> None:
    while True:
        _render_menu(client.bucket)
        choice = Prompt.ask("Select an option", choices=list(MENU_OPTIONS.keys()))

        if choice == "1":
            upload_flow(client, registry)
        elif choice == "2":
            retrieve_flow(client, registry)
        elif choice == "3":
            manage_flow(registry)
        elif choice == "4":
            console.print("\n[cyan]Goodbye![/cyan]\n")
            break


def _render_menu(bucket: str) -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan bold", width=4)
    table.add_column("Option", style="white")
    table.add_column("Description", style="dim")

    for key, (name, desc) in MENU_OPTIONS.items():
        table.add_row(f"[{key}]", name, desc)

    panel = Panel(
        table,
        title=f"[bold cyan]pyShare[/bold cyan]  [dim]bucket: {bucket}[/dim]",
        border_style="cyan",
        padding=(1, 2),
    )
    console.print(panel)
