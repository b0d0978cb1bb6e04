"""Console output helpers built on rich."""

from rich.console import Console


class Output:
    """Styled messages for CLI commands.

    Errors go to stderr so command output stays pipeable.
    """

    def __init__(self) -> None:
        self.console = Console()
        self.err_console = Console(stderr=True)

    def info(self, msg: str) -> None:
        self.console.print(msg)

    def success(self, msg: str) -> None:
        self.console.print(f"[green]✓[/green] {msg}")

    def dim(self, msg: str) -> None:
        self.console.print(f"[dim]{msg}[/dim]")

    def warning(self, msg: str) -> None:
        self.err_console.print(f"[yellow]Warning:[/yellow] {msg}")

    def error(self, msg: str) -> None:
        self.err_console.print(f"[bold red]Error:[/bold red] {msg}")

    def hint(self, msg: str) -> None:
        self.err_console.print(f"[dim]Hint:[/dim] {msg}")


out = Output()
