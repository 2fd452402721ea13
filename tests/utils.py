"""Helpers shared by the test modules."""

import cv2
import numpy as np


def encode_png(value, height=8, width=8) -> bytes:
    """PNG bytes of a solid color image. `value` is a gray level or a BGR triple."""
    img = np.zeros((height, width, 3), dtype=np.uint8)
    img[:, :] = value
    ok, buf = cv2.imencode(".png", img)
    assert ok
    return buf.tobytes()
