"""Runtime loader for vendor category hint rules."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from busybee.domain.ledger import ExpenseCategory
from busybee.runtime.logging import get_logger
from busybee.runtime.paths import get_paths

logger = get_logger(__name__)


@lru_cache(maxsize=4)
def load_vendor_rules(config_path: str | None = None) -> tuple[tuple[tuple[str, ...], ExpenseCategory], ...]:
    """
    Load vendor keyword rules from TOML.

    Args:
        config_path: Optional TOML path override. If None, uses the bundled rules.

    Returns:
        Tuple of (uppercase keywords, category) pairs preserving file order.
        Rules with no keywords or an unknown category are skipped.
    """
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    path = Path(config_path) if config_path is not None else get_paths().default_vendor_rules
    if not path.exists():
        logger.warning("Vendor rules file not found: %s", path)
        return tuple()

    with open(path, "rb") as f:
        config = tomllib.load(f)

    rules: list[tuple[tuple[str, ...], ExpenseCategory]] = []
    for rule in config.get("rules", []):
        keywords = tuple(str(kw).strip().upper() for kw in rule.get("keywords", []) if str(kw).strip())
        try:
            category = ExpenseCategory.parse(str(rule.get("category", "")))
        except ValueError:
            logger.warning("Skipping vendor rule with unknown category: %r", rule.get("category"))
            continue
        if keywords:
            rules.append((keywords, category))

    logger.debug("Loaded %d vendor rules from %s", len(rules), path)
    return tuple(rules)
