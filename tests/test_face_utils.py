"""Tests for the mock and opencv recognition strategies."""

import struct

import cv2
import pytest

from config import MOCK_EMBEDDING_SIZE
from face_utils import (
    MockFacialRecognitionStrategy,
    OpenCVFacialRecognitionStrategy,
    get_strategy,
)
from tests.utils import encode_png


class TestMockStrategy:
    def setup_method(self):
        self.strategy = MockFacialRecognitionStrategy()

    def test_empty_image_has_no_embedding(self):
        assert self.strategy.extract_embedding(b"") is None
        assert self.strategy.extract_embedding(None) is None

    def test_any_non_empty_input_gives_random_bytes(self):
        first = self.strategy.extract_embedding(b"not even an image")
        second = self.strategy.extract_embedding(b"not even an image")
        assert len(first) == MOCK_EMBEDDING_SIZE
        assert len(second) == MOCK_EMBEDDING_SIZE
        # 128 random bytes colliding would be astronomically unlikely
        assert first != second

    def test_missing_or_mismatched_embeddings_never_match(self):
        emb = bytes(MOCK_EMBEDDING_SIZE)
        assert self.strategy.is_match(None, emb) is False
        assert self.strategy.is_match(emb, None) is False
        assert self.strategy.is_match(emb, emb[:-1]) is False

    def test_threshold_over_first_ten_bytes(self):
        base = bytes(range(20))
        eight_equal = bytes([255, 255]) + base[2:]
        seven_equal = bytes([255, 255, 255]) + base[3:]
        assert self.strategy.is_match(base, eight_equal) is True
        assert self.strategy.is_match(base, seven_equal) is False

    def test_bytes_after_the_tenth_are_ignored(self):
        a = bytes(10) + bytes([1] * 10)
        b = bytes(10) + bytes([2] * 10)
        assert self.strategy.similarity(a, b) == 1.0
        assert self.strategy.is_match(a, b) is True

    def test_short_embeddings_still_divide_by_ten(self):
        a = bytes(5)
        assert self.strategy.similarity(a, a) == 0.5
        assert self.strategy.is_match(a, a) is False

    def test_symmetric(self):
        a = bytes(range(10))
        b = bytes([0, 1, 2, 3, 4, 5, 6, 7, 99, 99])
        assert self.strategy.is_match(a, b) == self.strategy.is_match(b, a)


class TestOpenCVStrategy:
    def setup_method(self):
        self.strategy = OpenCVFacialRecognitionStrategy()

    def test_embedding_layout(self):
        embedding = self.strategy.extract_embedding(encode_png(10, height=4, width=5))
        assert len(embedding) == 16
        assert embedding == struct.pack(">qq", 10 * 20, 20 * 3)

    def test_only_first_channel_is_summed(self):
        embedding = self.strategy.extract_embedding(encode_png((1, 2, 3), height=3, width=3))
        assert struct.unpack(">qq", embedding) == (9, 27)

    def test_channel_bytes_are_read_as_signed(self):
        embedding = self.strategy.extract_embedding(encode_png(200, height=2, width=3))
        assert struct.unpack(">qq", embedding) == (6 * (200 - 256), 18)

    def test_empty_or_undecodable_input_has_no_embedding(self):
        assert self.strategy.extract_embedding(b"") is None
        assert self.strategy.extract_embedding(b"definitely not an image") is None

    def test_decoder_errors_surface_as_no_embedding(self, monkeypatch):
        def broken_imdecode(buf, flags):
            raise cv2.error("imdecode failed")

        monkeypatch.setattr(cv2, "imdecode", broken_imdecode)
        assert self.strategy.extract_embedding(encode_png(10)) is None

    def test_same_image_gives_same_embedding(self):
        data = encode_png(42)
        assert self.strategy.extract_embedding(data) == self.strategy.extract_embedding(data)

    def test_match_is_reflexive_and_symmetric(self):
        a = self.strategy.extract_embedding(encode_png(10))
        b = self.strategy.extract_embedding(encode_png(20))
        assert self.strategy.is_match(a, a) is True
        assert self.strategy.is_match(a, b) is False
        assert self.strategy.is_match(a, b) == self.strategy.is_match(b, a)

    def test_missing_or_mismatched_embeddings_never_match(self):
        a = self.strategy.extract_embedding(encode_png(10))
        assert self.strategy.is_match(a, None) is False
        assert self.strategy.is_match(None, None) is False
        assert self.strategy.is_match(a, a[:8]) is False


class TestGetStrategy:
    @pytest.mark.parametrize("name", [None, "", "   ", "mock", "MOCK"])
    def test_defaults_to_mock(self, name):
        assert isinstance(get_strategy(name), MockFacialRecognitionStrategy)

    def test_opencv(self):
        assert isinstance(get_strategy(" OpenCV "), OpenCVFacialRecognitionStrategy)

    def test_unknown_name_fails_at_startup(self):
        with pytest.raises(ValueError, match="Unknown facial recognition strategy"):
            get_strategy("dlib")
