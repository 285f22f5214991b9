from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.prompt import Prompt
from rich.table import Table

from sharing.errors import Expired, NotFound, ShareError
from sharing.record import ShareRecord
from sharing.registry import CodeRegistry
from storage.s3_client import S3Client
from ui.prompts import prompt_code
from ui.share import format_instant

console = Console()


def retrieve_flow(client: S3Client, registry: CodeRegistry) -> None:
    """Redeem a share code, show where the file lives and offer to download it."""
    code = prompt_code()

    try:
        record = registry.lookup(code)
    except Expired:
        console.print("[red]This file has expired and is no longer available.[/red]\n")
        return
    except NotFound:
        console.print("[red]Invalid share code.[/red] No file was shared with it.\n")
        return
    except ShareError as e:
        console.print(f"[red]Error resolving code:[/red] {e}\n")
        return

    console.print("[green]Code valid![/green]")
    _render_record(record)

    key = client.key_from_url(record.file_url)
    if key is None:
        console.print("[dim]The file is hosted elsewhere; open the link above to download it.[/dim]\n")
        return

    if Prompt.ask("Download it now?", choices=["y", "n"], default="y") == "y":
        download_shared_file(client, key, record.filename)
    else:
        console.print()


def download_shared_file(client: S3Client, key: str, filename: str) -> None:
    dest_str = Prompt.ask("Save to directory", default=str(Path.cwd()))
    local_path = Path(dest_str).expanduser().resolve() / Path(filename).name

    console.print()
    try:
        size = client.object_size(key)
        with Progress(
            TextColumn("[cyan]{task.description}[/cyan]"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
        ) as progress:
            task = progress.add_task(local_path.name, total=size)
            client.download_file(
                key,
                local_path,
                callback=lambda n: progress.update(task, advance=n),
            )
        console.print(f"[green]Saved to[/green] {local_path}\n")
    except ClientError as e:
        console.print(f"[red]Download failed:[/red] {e.response['Error']['Message']}\n")
    except (BotoCoreError, OSError) as e:
        console.print(f"[red]Download failed:[/red] {e}\n")


def _render_record(record: ShareRecord) -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="cyan", width=8)
    table.add_column("Value")

    table.add_row("File", f"[bold]{record.filename}[/bold]")
    table.add_row("Link", record.file_url)
    table.add_row("Expires", format_instant(record))

    console.print(
        Panel(
            table,
            title=f"[bold cyan]Shared file[/bold cyan]  [dim]{record.code}[/dim]",
            border_style="cyan",
            padding=(1, 2),
        )
    )
