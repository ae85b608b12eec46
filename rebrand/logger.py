from functools import lru_cache

from rich.console import Console


@lru_cache(maxsize=1)
def get_console() -> Console:
    """Get or create the shared Console instance used by every stage"""
    # File/line columns are noise for a build-pipeline log
    return Console(log_path=False)


def log_stage(title: str) -> None:
    """Print a rule separating pipeline stages"""
    get_console().rule(f"[bold magenta]{title}[/]")
