import re

_MODEL_PREFIX = re.compile(r"^(model\s*=\s*)", re.IGNORECASE)


def normalize_model_id(model_string: str) -> str:
    """
    Sanitizes a configured model string to be SDK-compatible.

    Examples:
    - 'model="gemini-2.5-flash"' -> 'gemini-2.5-flash'
    - '"gemini-2.5-flash"' -> 'gemini-2.5-flash'
    - 'models/gemini-2.5-flash' -> 'gemini-2.5-flash'
    """
    if not model_string:
        return model_string

    s = _MODEL_PREFIX.sub("", model_string.strip())
    s = s.strip().strip('"\'')

    # Model listings return resource names; generate_content wants the bare id
    if s.startswith("models/"):
        s = s[len("models/"):]

    return s.strip()
