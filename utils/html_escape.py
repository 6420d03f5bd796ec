"""
HTML escaping for toasts delivered through Telegram HTML mode.

Item names, add-on names and delivery notes come from catalog staff and
customers, so they are escaped before being embedded in a message.
"""

import html
from typing import Optional


def safe_html(text: Optional[str]) -> str:
    """
    Escapes HTML special characters.

    Examples:
        >>> safe_html("Fish & Chips <large>")
        "Fish &amp; Chips &lt;large&gt;"

        >>> safe_html(None)
        ""
    """
    if text is None:
        return ""
    return html.escape(str(text), quote=True)
