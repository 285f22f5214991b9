from rich.console import Console
from rich.prompt import Prompt

from sharing.codes import CODE_LENGTH, is_valid_code, normalize_code
from sharing.expiration import DEFAULT_SELECTOR, SELECTORS, describe_duration

console = Console()


def prompt_code(label: str = "Enter share code") -> str:
    code = normalize_code(Prompt.ask(f"[cyan]{label}[/cyan]"))
    while not is_valid_code(code):
        console.print(f"[red]Please enter a {CODE_LENGTH}-character code (letters and digits).[/red]")
        code = normalize_code(Prompt.ask(f"[cyan]{label}[/cyan]"))
    return code


def prompt_expiration() -> str:
    hint = ", ".join(f"{s} = {describe_duration(s)}" for s in SELECTORS)
    return Prompt.ask(
        f"Expire after [dim]({hint})[/dim]",
        choices=SELECTORS,
        default=DEFAULT_SELECTOR,
    )
