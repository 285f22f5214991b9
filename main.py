import sys

from botocore.exceptions import BotoCoreError, ClientError
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt

from config import load_config, run_setup_wizard, save_config, validate_config
from log_setup import setup_logging
from sharing.factory import make_record_store
from sharing.registry import CodeRegistry
from storage.s3_client import S3Client
from ui.menu import show_main_menu

console = Console()


def main() -> None:
    setup_logging(rich=True)
    console.print(
        Panel.fit(
            "[bold cyan]pyShare[/bold cyan]\n[dim]Share files with a five-character code[/dim]",
            border_style="cyan",
            padding=(1, 4),
        )
    )

    # Load config, running the setup wizard on first launch or if it is invalid
    config = load_config()
    if config is None:
        console.print(
            "[yellow]No configuration found. Running first-time setup...[/yellow]\n"
        )
        config = run_setup_wizard()
        save_config(config)
        console.print("\n[green]Configuration saved to ~/.pyshare/config.json[/green]\n")
    elif not validate_config(config):
        console.print(
            "[yellow]Saved configuration is incomplete or corrupted. Re-running setup...[/yellow]\n"
        )
        config = run_setup_wizard()
        save_config(config)
        console.print("\n[green]Configuration updated.[/green]\n")

    # Verify AWS connection
    console.print("[dim]Connecting to AWS...[/dim]")
    client = S3Client(config)

    if not client.verify_connection():
        console.print(
            "[red]Failed to connect to AWS. Please check your credentials.[/red]"
        )
        reconfigure = Prompt.ask("Reconfigure credentials?", choices=["y", "n"], default="y")
        if reconfigure == "y":
            config = run_setup_wizard()
            save_config(config)
            client = S3Client(config)
            if not client.verify_connection():
                console.print("[red]Still unable to connect. Exiting.[/red]")
                sys.exit(1)
        else:
            sys.exit(1)

    # Ensure the bucket and the code store exist (creates them if not)
    store = make_record_store(config, client)
    try:
        client.ensure_bucket_exists()
        store.ensure_ready()
    except (BotoCoreError, ClientError) as e:
        console.print(f"[red]Could not prepare AWS resources:[/red] {e}")
        sys.exit(1)
    console.print(
        f"[green]Connected.[/green] Bucket: [cyan]{config['bucket_name']}[/cyan]"
        f"  Codes: [cyan]{config.get('record_backend', 'dynamodb')}[/cyan]\n"
    )

    # Hand off to main menu
    show_main_menu(client, CodeRegistry(store))


if __name__ == "__main__":
    main()
