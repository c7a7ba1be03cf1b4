"""Template variables for reminder and response text."""

from __future__ import annotations

import random
import re

_PICK_PATTERN = re.compile(r"\$\(pick\s+(.+?)\)")


def render_message(
    template: str,
    *,
    mention_role: str | None = None,
    rng: random.Random | None = None,
) -> str:
    """Substitute supported variables in a message template.

    Supported: $(mention), $(pick a,b,c)
    """
    rng = rng or random.Random()
    text = template.replace("$(mention)", f"<@&{mention_role}>" if mention_role else "")

    def _pick_replace(m: re.Match) -> str:
        items = [i.strip() for i in m.group(1).split(",") if i.strip()]
        return rng.choice(items) if items else ""

    return _PICK_PATTERN.sub(_pick_replace, text)
