from dataclasses import dataclass
from math import ceil
from typing import List, Literal, Optional

from utils.config import FREE_SHIPPING_THRESHOLD, SHIPPING_FEE, TAX_RATE


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of strings.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    # no headers: first row becomes the header
    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = list(map(str, headers))
    rows = [list(map(str, row)) for row in rows]

    num_cols = len(headers)
    if aligns is None:
        aligns = ["c"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


def format_price(amount: float) -> str:
    return f"${amount:,.2f}"


def total_pages(total: int, page_size: int) -> int:
    """Number of pages needed for `total` items, never less than 1."""
    if page_size < 1:
        return 1
    return max(ceil(total / page_size), 1)


def page_window(page: int, page_count: int, max_buttons: int = 5) -> List[int]:
    """
    Page numbers to offer around `page`, at most `max_buttons` of them,
    kept inside 1..page_count.
    """
    start = max(1, page - max_buttons // 2)
    end = start + max_buttons - 1
    if end > page_count:
        end = page_count
        start = max(1, end - max_buttons + 1)
    return list(range(start, end + 1))


@dataclass(frozen=True)
class CartSummary:
    subtotal: float
    shipping: float
    tax: float
    total: float
    free_shipping_remaining: float


def summarize_cart(subtotal: float) -> CartSummary:
    """Flat-rate shipping (waived above the threshold) and a flat tax rate."""
    shipping = 0.0 if subtotal > FREE_SHIPPING_THRESHOLD else SHIPPING_FEE
    tax = subtotal * TAX_RATE
    return CartSummary(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        total=subtotal + shipping + tax,
        free_shipping_remaining=max(FREE_SHIPPING_THRESHOLD - subtotal, 0.0),
    )
