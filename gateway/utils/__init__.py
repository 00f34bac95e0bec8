from typing import Optional


def mask_token(text: str, token: Optional[str]) -> str:
    """Replace every occurrence of ``token`` in ``text`` with a short masked form."""
    return text.replace(token, f"{token[:4]}****") if token else text
