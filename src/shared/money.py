"""
Money formatting helpers.

All amounts are stored in thousands of dollars.
"""


def format_money(amount: int) -> str:
    """
    Format an amount in thousands for display.

    Examples:
        format_money(80000) -> "$80.0M"
        format_money(795)   -> "$795K"
    """
    if abs(amount) >= 1000:
        return f"${amount / 1000:.1f}M"
    return f"${int(amount)}K"
