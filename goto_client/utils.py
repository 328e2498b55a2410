"""
Utility functions for the Goto client.
"""

import logging
import sys
from decimal import Decimal
from typing import Any, Dict


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )

    # Reduce noise from third-party libraries unless debugging
    if level.upper() != "DEBUG":
        for name in ("urllib3", "requests"):
            logging.getLogger(name).setLevel(logging.WARNING)


def mask_secret(value: str, visible: int = 4) -> str:
    """Mask all but the last few characters of a secret."""
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]


def truncate_text(text: str, max_length: int = 100) -> str:
    """Truncate text with ellipsis if too long."""
    if len(text) <= max_length:
        return text
    return text[:max_length-3] + "..."


def format_price(price: Decimal) -> str:
    return f"{price:.2f}"


def to_jsonable(value: Any) -> Any:
    """Convert dataclass field values (UUID, Decimal, datetime) for JSON output."""
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def product_summary(fields: Dict[str, Any]) -> str:
    """One-line description of a product for CLI output."""
    name = truncate_text(str(fields.get("name", "")), 60)
    line = f"{fields.get('id')}  {name}  [{fields.get('sku')}]  {format_price(fields['price'])}"
    if "similarity" in fields:
        line += f"  (similarity {fields['similarity']:.3f})"
    if fields.get("deleted_at") is not None:
        line += "  (inactive)"
    return line
