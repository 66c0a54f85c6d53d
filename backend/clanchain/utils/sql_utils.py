"""
Helpers for building SQL filters from user input
"""

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """
    Escape LIKE wildcards so `value` matches literally; pair with escape=LIKE_ESCAPE

    Example:
        >>> escape_like("50%_off")
        '50\\\\%\\\\_off'
    """
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
