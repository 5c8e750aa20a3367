import base64
import math
import mimetypes
import os.path
from typing import List, Literal, Optional


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

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [str(h) for h in headers]
    rows = [[_escape_cell(c) for c in row] for row in rows]

    if aligns is None:
        aligns = ["c"] * len(headers)
    elif len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {"l": ":---", "c": ":---:", "r": "---:"}

    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(align_map[a] for a in aligns) + " |",
    ]
    lines += ["| " + " | ".join(row) + " |" for row in rows]
    return "\n".join(lines)


def _escape_cell(value) -> str:
    # pipes and newlines would break the row
    return str(value).replace("|", "\\|").replace("\n", " ")


def format_money(amount: float) -> str:
    return f"${amount:,.2f}"


def parse_price(text: str) -> float:
    """
    Parse a price typed by an admin.
    Raises ValueError unless it is a finite number >= 0.
    """
    try:
        value = float((text or "").strip().lstrip("$"))
    except ValueError:
        raise ValueError(f"'{text}' is not a valid price.") from None
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"'{text}' is not a valid price.")
    return round(value, 2)


def parse_stock(text: str) -> int:
    """Parse a stock count; raises ValueError unless it is a whole number >= 0."""
    try:
        value = int((text or "").strip())
    except ValueError:
        raise ValueError(f"'{text}' is not a valid stock count.") from None
    if value < 0:
        raise ValueError(f"'{text}' is not a valid stock count.")
    return value


def encode_image(source: str) -> str:
    """
    Turn an image reference into something storable as text.
    URLs and data URLs pass through; a path to a local file is read and
    returned as a base64 data URL. Blank input returns "".
    """
    source = (source or "").strip()
    if not source or source.startswith(("http://", "https://", "data:")):
        return source

    path = os.path.expanduser(source)
    if not os.path.isfile(path):
        raise ValueError(f"Image file not found: {source}")

    mime, _ = mimetypes.guess_type(path)
    if not mime or not mime.startswith("image/"):
        raise ValueError(f"Not an image file: {source}")

    with open(path, "rb") as f:
        payload = base64.b64encode(f.read()).decode("ascii")
    return f"data:{mime};base64,{payload}"


def describe_image(image: str) -> str:
    """Short form of a stored image for tables; data URLs are not printable."""
    if image.startswith("data:"):
        mime = image[5:].split(";", 1)[0] or "image"
        return f"<embedded {mime}>"
    return image
