from rich.text import Text

__version__ = "0.1.0"

APP_DESCRIPTION = "Turn one iOS build into signed, brand-specific IPAs and dSYMs"

_BANNER = r"""
          _                         _
 _ __ ___| |__  _ __ __ _ _ __   __| |
| '__/ _ \ '_ \| '__/ _` | '_ \ / _` |
| | |  __/ |_) | | | (_| | | | | (_| |
|_|  \___|_.__/|_|  \__,_|_| |_|\__,_|
"""


def get_banner_text() -> Text:
    return Text(_BANNER.strip("\n"), style="bold cyan")
