"""
Unit tests for content type validation.

Testing philosophy:
- Test behavior, not implementation
- Use descriptive names that explain what we're testing
"""

import pytest

from src.core.media.content_types import classify, parse_media_type
from src.core.media.errors import MissingContentTypeError, UnsupportedMediaTypeError
from src.core.media.models import AssetClass


class TestParseMediaType:
    """Tests for extracting the base type from a header value."""

    def test_plain_type_is_returned_lowercased(self):
        assert parse_media_type("Image/PNG") == "image/png"

    def test_parameters_are_ignored(self):
        assert parse_media_type("image/jpeg; charset=binary; q=0.9") == "image/jpeg"

    @pytest.mark.parametrize("value", [None, "", "   ", "; charset=utf-8"])
    def test_empty_values_are_missing(self, value):
        with pytest.raises(MissingContentTypeError):
            parse_media_type(value)

    @pytest.mark.parametrize("value", ["png", "image/", "/png", "image/png/extra", "image png"])
    def test_malformed_values_are_rejected(self, value):
        with pytest.raises(UnsupportedMediaTypeError):
            parse_media_type(value)


class TestClassify:
    """Tests for mapping declared types to asset policies."""

    @pytest.mark.parametrize(
        "content_type, suffix",
        [
            ("image/png", "png"),
            ("image/jpeg", "jpg"),
            ("image/jpg", "jpg"),
        ],
    )
    def test_accepted_images_get_the_right_suffix(self, content_type, suffix):
        policy = classify(content_type)

        assert policy.asset_class is AssetClass.IMAGE
        assert policy.suffix == suffix
        assert policy.inline_allowed

    def test_mp4_is_the_only_video_type(self):
        policy = classify("video/mp4")

        assert policy.asset_class is AssetClass.VIDEO
        assert policy.suffix == "mp4"
        assert not policy.inline_allowed

    @pytest.mark.parametrize(
        "content_type",
        ["image/gif", "image/webp", "video/quicktime", "video/webm", "application/octet-stream", "text/plain"],
    )
    def test_other_types_are_unsupported(self, content_type):
        with pytest.raises(UnsupportedMediaTypeError):
            classify(content_type)

    def test_missing_type_is_its_own_error(self):
        with pytest.raises(MissingContentTypeError):
            classify("")

    def test_header_with_parameters_is_classified_by_base_type(self):
        policy = classify("image/png; name=thumb.png")
        assert policy.media_type == "image/png"

    def test_video_rejected_where_image_expected(self):
        """An MP4 sent to the thumbnail endpoint is not a thumbnail."""
        with pytest.raises(UnsupportedMediaTypeError, match="image"):
            classify("video/mp4", expected=AssetClass.IMAGE)

    def test_image_rejected_where_video_expected(self):
        with pytest.raises(UnsupportedMediaTypeError, match="MP4"):
            classify("image/png", expected=AssetClass.VIDEO)
