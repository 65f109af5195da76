from decimal import ROUND_HALF_UP, Decimal
from typing import List, Literal, Optional, Sequence

_CENT = Decimal("0.01")

_ALIGN_RULES = {
    "l": ":---",
    "c": ":---:",
    "r": "---:",
}


def money(amount: Decimal) -> str:
    """Render a Decimal amount as dollars, e.g. `$1,234.50`."""
    return f"${amount.quantize(_CENT, rounding=ROUND_HALF_UP):,}"


def generate_markdown_table(
    headers: Optional[Sequence[object]],
    rows: List[Sequence[object]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: column headers, or None to promote the first row.
        rows: table body; cells are converted with str().
        aligns: per-column 'l' / 'c' / 'r', centered when omitted.

    Returns:
        str: the table, or "" when there is nothing to show.
    """
    if not rows and not headers:
        return ""
    if not headers:
        headers, rows = rows[0], rows[1:]

    head = [str(h) for h in headers]
    body = [[str(cell) for cell in row] for row in rows]

    if aligns is None:
        aligns = ["c"] * len(head)
    elif len(aligns) != len(head):
        raise ValueError("Length of aligns must match number of headers.")

    def line(cells: Sequence[str]) -> str:
        return "| " + " | ".join(cells) + " |"

    return "\n".join(
        [line(head), line([_ALIGN_RULES[a] for a in aligns]), *map(line, body)]
    )


def key_value_table(pairs: Sequence[Sequence[object]]) -> str:
    """Two column Attribute / Value table, left aligned."""
    return generate_markdown_table(["Attribute", "Value"], list(pairs), ["l", "l"])
