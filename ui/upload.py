from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.prompt import Prompt

from sharing.errors import ShareError
from sharing.expiration import describe_duration
from sharing.registry import CodeRegistry
from storage.s3_client import S3Client
from ui.prompts import prompt_expiration
from ui.share import show_share_code

console = Console()


def upload_flow(client: S3Client, registry: CodeRegistry) -> None:
    """Upload one local file to S3 and mint a share code for it."""
    path_str = Prompt.ask("[cyan]Local file path[/cyan]").strip()
    local_path = Path(path_str).expanduser().resolve()

    if not local_path.exists():
        console.print(f"[red]File not found:[/red] {local_path}\n")
        return

    if not local_path.is_file():
        console.print("[red]That path points to a directory, not a file.[/red]")
        console.print("[dim]Zip the folder first and share the archive.[/dim]\n")
        return

    duration = prompt_expiration()
    s3_key = client.object_key_for(local_path.name)
    file_size = local_path.stat().st_size

    console.print(
        f"\nUploading [cyan]{local_path.name}[/cyan]"
        f" → [cyan]s3://{client.bucket}/{s3_key}[/cyan]\n"
    )

    try:
        with Progress(
            TextColumn("[cyan]{task.description}[/cyan]"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
        ) as progress:
            task = progress.add_task(local_path.name, total=file_size)
            client.upload_file(
                local_path,
                s3_key,
                callback=lambda n: progress.update(task, advance=n),
            )
    except ClientError as e:
        console.print(f"[red]Upload failed:[/red] {e.response['Error']['Message']}\n")
        return
    except (BotoCoreError, OSError) as e:
        console.print(f"[red]Upload failed:[/red] {e}\n")
        return

    console.print("[green]Upload complete.[/green]\n")

    try:
        record = registry.create(local_path.name, client.public_url(s3_key), duration)
    except ShareError as e:
        console.print(f"[red]Failed to generate code:[/red] {e}\n")
        return

    show_share_code(record, describe_duration(duration))
