"""
Facial recognition strategies.

A strategy turns raw image bytes into an embedding and decides whether
two embeddings belong to the same face. Neither shipped strategy is real
biometrics: `mock` returns random bytes and `opencv` computes a
deterministic pixel-sum "hash" of the decoded image.
"""

import logging
import os
import struct
from abc import ABC, abstractmethod
from typing import Optional

import cv2
import numpy as np

from config import MOCK_COMPARE_BYTES, MOCK_EMBEDDING_SIZE, MOCK_SIM_THRESHOLD

logger = logging.getLogger(__name__)


class FacialRecognitionStrategy(ABC):
    """
    Contract for an embedding extractor and its matching rule.

    Implementations are shared across concurrent requests and must be
    stateless.
    """

    name = ""

    @abstractmethod
    def extract_embedding(self, image_data: bytes) -> Optional[bytes]:
        """
        Return the embedding of the face in `image_data`, or None if the
        image is empty, cannot be decoded or holds no face.
        """

    @abstractmethod
    def is_match(self, embedding1: Optional[bytes], embedding2: Optional[bytes]) -> bool:
        """Deterministic and symmetric comparison of two embeddings."""


class MockFacialRecognitionStrategy(FacialRecognitionStrategy):
    """
    Random embeddings, for smoke-testing the pipeline.

    Every extraction is random, so the same image almost never matches
    itself.
    """

    name = "mock"

    def extract_embedding(self, image_data: bytes) -> Optional[bytes]:
        if not image_data:
            return None
        return os.urandom(MOCK_EMBEDDING_SIZE)

    def similarity(self, embedding1: bytes, embedding2: bytes) -> float:
        n = min(MOCK_COMPARE_BYTES, len(embedding1))
        matching = sum(1 for i in range(n) if embedding1[i] == embedding2[i])
        return matching / float(MOCK_COMPARE_BYTES)

    def is_match(self, embedding1: Optional[bytes], embedding2: Optional[bytes]) -> bool:
        if embedding1 is None or embedding2 is None or len(embedding1) != len(embedding2):
            return False
        return self.similarity(embedding1, embedding2) >= MOCK_SIM_THRESHOLD


class OpenCVFacialRecognitionStrategy(FacialRecognitionStrategy):
    """
    Deterministic embedding computed from the decoded image.

    The decoded image is a numpy array, freed by reference counting as
    soon as extraction returns, whichever way it exits.

    The embedding is 16 bytes: the sum of the first channel byte of every
    pixel (each byte read as signed 8-bit), then rows * cols * channels,
    both as signed 64-bit big-endian integers. Two embeddings match only
    when they are byte-for-byte equal, so uploading the same image always
    gives the same result.
    """

    name = "opencv"

    EMBEDDING_FORMAT = ">qq"

    def extract_embedding(self, image_data: bytes) -> Optional[bytes]:
        if not image_data:
            return None

        try:
            buffer = np.frombuffer(image_data, dtype=np.uint8)
            img = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
            if img is None or img.size == 0:
                logger.debug("OpenCV: failed to decode image data (%d bytes)", len(image_data))
                return None

            first_channel = img[:, :, 0].astype(np.int8)
            pixel_sum = int(first_channel.sum(dtype=np.int64))
            rows, cols = img.shape[:2]
            channels = img.shape[2] if img.ndim == 3 else 1

            return struct.pack(self.EMBEDDING_FORMAT, pixel_sum, rows * cols * channels)
        except Exception as e:
            logger.debug("OpenCV: error during embedding extraction: %s", e)
            return None

    def is_match(self, embedding1: Optional[bytes], embedding2: Optional[bytes]) -> bool:
        if embedding1 is None or embedding2 is None or len(embedding1) != len(embedding2):
            return False
        return bytes(embedding1) == bytes(embedding2)


STRATEGIES = {
    MockFacialRecognitionStrategy.name: MockFacialRecognitionStrategy,
    OpenCVFacialRecognitionStrategy.name: OpenCVFacialRecognitionStrategy,
}


def get_strategy(name: Optional[str] = None) -> FacialRecognitionStrategy:
    """
    Instantiate the strategy configured under facial.recognition.strategy.
    A missing or blank name selects `mock`.
    """
    key = (name or "").strip().lower() or MockFacialRecognitionStrategy.name
    try:
        strategy_cls = STRATEGIES[key]
    except KeyError:
        raise ValueError(
            f"Unknown facial recognition strategy {name!r}, "
            f"expected one of: {', '.join(sorted(STRATEGIES))}"
        ) from None
    return strategy_cls()
