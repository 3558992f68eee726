"""KEY=VALUE configuration parser.

Format rules:
- one declaration per ``\\n``-separated line;
- empty lines and lines starting with ``#`` are ignored (no inline comments);
- the first ``=`` splits key and value, both stripped of whitespace;
- lines without ``=`` are skipped silently;
- a later duplicate key overwrites an earlier one.

No quoting, escaping or multi-line values.
"""
import logging

logger = logging.getLogger("sealed_env.parser")


def parse_config(text: str) -> dict[str, str]:
    """Parse configuration text into an ordered mapping.

    Args:
        text: Decrypted configuration text.

    Returns:
        Mapping of key to value, in first-seen key order.
    """
    config: dict[str, str] = {}
    skipped = 0
    for line in text.split("\n"):
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            skipped += 1
            continue
        key = key.strip()
        if not key:
            skipped += 1
            continue
        config[key] = value.strip()
    if skipped:
        logger.debug("Skipped %d line(s) without a usable KEY=VALUE pair", skipped)
    return config
