import re

MENTION_PATTERN = re.compile(r"(?<![\w@])@([A-Za-z0-9][A-Za-z0-9._-]*)")


def extract_mentions(text: str | None) -> set[str]:
    """Return the usernames mentioned as ``@username`` in text."""
    if not text:
        return set()
    return {m.rstrip(".") for m in MENTION_PATTERN.findall(text)}


def strip_mentions(text: str, usernames: set[str]) -> str:
    """Remove the ``@username`` tokens of the given users from text."""
    if not usernames:
        return text

    def _replace(match: re.Match[str]) -> str:
        return "" if match.group(1).rstrip(".") in usernames else match.group(0)

    return MENTION_PATTERN.sub(_replace, text)


def new_mentions(previous: str | None, current: str | None) -> set[str]:
    """
    Users mentioned in ``current`` that were not already mentioned in ``previous``.

    Users notified for the previous body are stripped before extraction so that
    editing an article does not notify them again.
    """
    already_notified = extract_mentions(previous)
    return extract_mentions(strip_mentions(current or "", already_notified))
