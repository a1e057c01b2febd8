"""
Coarse feature extraction from a captured frame.

Produces a deterministic vector from the payload so that the same frame
always maps to the same point in feature space.
"""
import base64
from typing import List, Union

HASH_WINDOW = 100
FEATURE_STRIDE = 17


def _rolling_hash(text: str) -> int:
    """32-bit signed rolling hash over the first characters of text."""
    value = 0
    for char in text[:HASH_WINDOW]:
        value = ((value << 5) - value + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


def extract_image_features(payload: Union[bytes, str], length: int = 5) -> List[float]:
    """
    Derive a feature vector from image bytes or text.

    Args:
        payload: Raw image bytes (hashed via their base64 form) or text
        length: Number of features to produce

    Returns:
        List of floats in [0, 1)
    """
    if isinstance(payload, (bytes, bytearray)):
        text = base64.b64encode(bytes(payload)[:HASH_WINDOW]).decode("ascii")
    else:
        text = payload or ""

    seed = _rolling_hash(text)
    return [((seed + i * FEATURE_STRIDE) % 100) / 100 for i in range(length)]
