"""Inkwell CLI for working with the GitHub App directly."""

from __future__ import annotations

import asyncio
import base64
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from inkwell import __version__
from inkwell.core.config import get_settings
from inkwell.github import CommitRequest, GitHubError, GitHubPublisher

app = typer.Typer(
    name="inkwell",
    help="Publish files to GitHub repositories through the Inkwell GitHub App",
    no_args_is_help=True,
)
console = Console()


def _fail(error: GitHubError) -> typer.Exit:
    console.print(f"[red]Error ({error.kind.value}):[/red] {error.message}")
    return typer.Exit(code=1)


async def _list_branches(owner: str, repo: str, installation_id: int) -> list[str]:
    publisher = GitHubPublisher.from_settings(get_settings())
    try:
        return await publisher.list_branches(owner, repo, installation_id)
    finally:
        await publisher.close()


async def _commit(request: CommitRequest) -> str | None:
    publisher = GitHubPublisher.from_settings(get_settings())
    try:
        result = await publisher.commit_file(request)
    finally:
        await publisher.close()
    return result.commit_sha


@app.command()
def branches(
    owner: str = typer.Argument(..., help="Repository owner"),
    repo: str = typer.Argument(..., help="Repository name"),
    installation_id: int = typer.Option(..., "--installation-id", "-i", help="App installation ID"),
) -> None:
    """List the branches of a repository."""
    try:
        names = asyncio.run(_list_branches(owner, repo, installation_id))
    except GitHubError as e:
        raise _fail(e) from e

    if not names:
        console.print(f"[yellow]{owner}/{repo} has no branches.[/yellow]")
        return

    table = Table(title=f"{owner}/{repo}")
    table.add_column("Branch")
    for name in names:
        table.add_row(name)
    console.print(table)


@app.command()
def commit(
    owner: str = typer.Argument(..., help="Repository owner"),
    repo: str = typer.Argument(..., help="Repository name"),
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Local file"),
    path: str = typer.Option(..., "--path", "-p", help="Destination path in the repository"),
    installation_id: int = typer.Option(..., "--installation-id", "-i", help="App installation ID"),
    message: str = typer.Option(..., "--message", "-m", help="Commit message"),
    branch: str = typer.Option("main", "--branch", "-b", help="Target branch"),
    binary: bool = typer.Option(False, "--binary", help="Send the file as raw bytes (images)"),
) -> None:
    """Create or update one file in a repository."""
    data = file.read_bytes()
    if binary:
        content = base64.b64encode(data).decode("ascii")
    else:
        try:
            content = data.decode("utf-8")
        except UnicodeDecodeError as e:
            console.print(f"[red]Error:[/red] {file} is not UTF-8 text. Use --binary for images.")
            raise typer.Exit(code=1) from e

    request = CommitRequest(
        owner=owner,
        repo=repo,
        installation_id=installation_id,
        path=path,
        content=content,
        commit_message=message,
        branch=branch,
        is_base64=binary,
    )

    try:
        commit_sha = asyncio.run(_commit(request))
    except GitHubError as e:
        raise _fail(e) from e

    console.print(f"[green]Committed[/green] {path} to {owner}/{repo}@{branch} ({commit_sha or 'no sha'})")


@app.command()
def version() -> None:
    """Show the CLI version."""
    console.print(f"inkwell version {__version__}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


__all__ = ["app", "main"]
