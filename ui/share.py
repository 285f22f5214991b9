from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt

from sharing.errors import NotFound, ShareError
from sharing.record import ShareRecord
from sharing.registry import CodeRegistry
from ui.prompts import prompt_code, prompt_expiration

console = Console()


def manage_flow(registry: CodeRegistry) -> None:
    console.print()
    action = Prompt.ask(
        "Manage a share code",
        choices=["extend", "revoke"],
        default="extend",
    )
    console.print()

    if action == "extend":
        _extend_share_code(registry)
    else:
        _revoke_share_code(registry)


def show_share_code(record: ShareRecord, duration_label: str) -> None:
    console.print(
        Panel(
            f"[bold cyan]{record.code}[/bold cyan]",
            title="[bold]Share Code[/bold]",
            subtitle=f"[dim]{record.filename}  ·  expires in {duration_label}[/dim]",
            border_style="green",
            padding=(1, 4),
        )
    )
    console.print(
        f"[dim]Give this code to the recipient. "
        f"It stops working at {format_instant(record)}.[/dim]\n"
    )


def format_instant(record: ShareRecord) -> str:
    return record.expires_at.astimezone().strftime("%Y-%m-%d %H:%M %Z")


def _extend_share_code(registry: CodeRegistry) -> None:
    code = prompt_code("Enter code to update")
    duration = prompt_expiration()

    try:
        record = registry.update_expiration(code, duration)
    except NotFound:
        console.print("[yellow]Code not found or already expired.[/yellow]\n")
        return
    except ShareError as e:
        console.print(f"[red]Failed to update expiration:[/red] {e}\n")
        return

    console.print(
        f"[green]Code [cyan]{record.code}[/cyan] updated.[/green]"
        f" [cyan]{record.filename}[/cyan] now expires {format_instant(record)}.\n"
    )


def _revoke_share_code(registry: CodeRegistry) -> None:
    code = prompt_code("Enter code to revoke")

    try:
        registry.revoke(code)
    except NotFound:
        console.print("[yellow]Code not found or already expired.[/yellow]\n")
        return
    except ShareError as e:
        console.print(f"[red]Failed to revoke code:[/red] {e}\n")
        return

    console.print(f"[green]Code [cyan]{code}[/cyan] revoked.[/green] It can no longer be redeemed.\n")
