"""
CLI interface for ytgrab.
Resolves one or more URLs, prints their download menus and optionally
downloads a chosen option. URLs are handled one after another.
"""

import os
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt, Confirm, IntPrompt
from rich.table import Table

from ytgrab import __version__, __app_name__
from ytgrab.clients import resolve_with_fallback
from ytgrab.errors import YtGrabError, describe_failure
from ytgrab.formats import build_video_info
from ytgrab.log import setup_logging
from ytgrab.relay import open_download
from ytgrab.urls import extract_video_id
from config import settings as config


console = Console()


def print_banner():
    """Print the ytgrab welcome banner."""
    banner = f"""
[bold cyan]{__app_name__}[/bold cyan] v{__version__}
[dim]Inspect and download YouTube streams[/dim]
    """.strip()
    console.print(Panel(banner, border_style="cyan"))


def format_table(info: dict) -> Table:
    """Render a video-info response as a rich table."""
    table = Table(title=info["title"], caption=(
        f"{info['channel']} · {info['views']} views · {info['duration']} · "
        f"client {info['debug']['usedClient']} · "
        f"{info['debug']['totalFormatsFound']} raw formats"
    ))
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Quality")
    table.add_column("Format")
    table.add_column("Size", justify="right")
    table.add_column("itag", style="dim")

    for i, option in enumerate(info["formats"], start=1):
        table.add_row(str(i), option["quality"], option["format"], option["fileSize"], str(option["itag"]))
    return table


def download_option(info: dict, option: dict, output_dir: str, settings: dict) -> str:
    """Stream one menu option into output_dir and return the file path."""
    os.makedirs(output_dir, exist_ok=True)
    prepared = open_download(
        info["videoId"],
        option["itag"],
        title=info["title"],
        fmt=option["format"],
        client=info["debug"]["usedClient"],
        settings=settings,
    )
    path = os.path.join(output_dir, prepared["filename"])

    written = 0
    with open(path, "wb") as f:
        for chunk in prepared["chunks"]:
            f.write(chunk)
            written += len(chunk)
    console.print(f"[green]✅ Saved[/green] {path} ([dim]{written / (1024 * 1024):.1f} MB[/dim])")
    return path


def process_url(url: str, settings: dict, interactive: bool = True) -> bool:
    """Show the menu for one URL and optionally download. Returns True on success."""
    video_id = extract_video_id(url)
    if not video_id:
        console.print(f"[red]Invalid YouTube URL:[/red] {url}")
        return False

    console.print(f"[yellow]🔎 Resolving {video_id}...[/yellow]")
    try:
        resolved = resolve_with_fallback(video_id, settings=settings)
    except YtGrabError as e:
        hint = describe_failure(str(e), config.get_cookies() is not None)
        console.print(f"[red]Failed to fetch video information:[/red] {hint}")
        return False

    info = build_video_info(resolved, video_id)
    if not resolved["has_high_quality"]:
        console.print("[yellow]⚠️  Only low quality formats were returned.[/yellow]")
    console.print(format_table(info))

    if not interactive or not info["formats"]:
        return True
    if not Confirm.ask("Download one of these?", default=False):
        return True

    choice = IntPrompt.ask("Option #", default=1)
    if not 1 <= choice <= len(info["formats"]):
        console.print("[red]No such option.[/red]")
        return False

    try:
        download_option(info, info["formats"][choice - 1], settings["download_dir"], settings)
    except YtGrabError as e:
        console.print(f"[red]Download failed:[/red] {e}")
        return False
    return True


def main(urls: list[str] = None):
    """Main CLI flow."""
    settings = config.load_settings()
    setup_logging(settings["log_level"])
    print_banner()
    console.print()

    if not urls:
        answer = Prompt.ask("[bold]Enter one or more YouTube URLs (space separated)[/bold]")
        urls = answer.split()

    if not urls:
        console.print("[red]No input provided. Exiting.[/red]")
        return

    ok = 0
    for i, url in enumerate(urls, start=1):
        console.print()
        console.rule(f"[{i}/{len(urls)}] {url}")
        if process_url(url, settings):
            ok += 1

    console.print()
    console.print(f"[bold green]🎉 Done![/bold green] {ok}/{len(urls)} succeeded")
