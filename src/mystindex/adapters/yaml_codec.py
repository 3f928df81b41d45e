import io
from typing import Any

import yaml

from ..exceptions import OptionsError


def load_mapping(text: str) -> dict[str, Any]:
    """
    Decode a YAML block that must describe a mapping.

    An empty (or all-comment) block decodes to ``{}``. Anything that is not
    valid YAML, or decodes to a scalar/sequence, raises ``OptionsError``.
    """
    try:
        data = yaml.safe_load(io.StringIO(text))
    except yaml.YAMLError as exc:
        raise OptionsError(str(exc)) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise OptionsError(
            f"Options must be a dictionary, got {type(data).__name__}"
        )
    return data


def strip_option_markers(text: str) -> str:
    """``:key: value`` lines -> ``key: value`` (leading indent and one ``:`` dropped)."""
    return "\n".join(line.lstrip()[1:] for line in text.split("\n"))
