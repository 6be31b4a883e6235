import pytest
from pydantic import ValidationError

from image_proxy.config import ProxyConfig
from image_proxy.services import options_parser
from image_proxy.services.options_parser import (
    ImageProxyOptions,
    OptionsParseError,
    format_options,
    parse_options,
)

CONFIG = ProxyConfig(allowed_domains=(), max_width=4000, max_height=3000)


class TestParseOptions:
    def test_original_shorthand(self):
        """'_' 表示原图透传"""
        options = parse_options("_", CONFIG)
        assert options.original is True
        assert options.width is None
        assert options.height is None

    def test_defaults(self):
        options = parse_options("w_400", CONFIG)
        assert options.width == 400
        assert options.format == "auto"
        assert options.quality == 85
        assert options.original is False

    def test_width_and_format(self):
        options = parse_options("w_400,f_webp", CONFIG)
        assert options == ImageProxyOptions(width=400, format="webp")

    def test_size_sets_both(self):
        options = parse_options("s_800x600", CONFIG)
        assert (options.width, options.height) == (800, 600)

    def test_size_out_of_range_drops_both(self):
        """s_ 任一边越界时整体丢弃"""
        options = parse_options("s_800x9999", CONFIG)
        assert options.width is None
        assert options.height is None

    def test_malformed_size_dropped(self):
        options = parse_options("s_800,s_x600,s_800*600", CONFIG)
        assert options.width is None
        assert options.height is None

    def test_width_over_max_dropped(self):
        """超过 MAX_WIDTH 的宽度被静默丢弃，不报错"""
        options = parse_options("w_99999", CONFIG)
        assert options.width is None

    def test_height_uses_its_own_max(self):
        assert parse_options("h_3500", CONFIG).height is None
        assert parse_options("h_3000", CONFIG).height == 3000

    @pytest.mark.parametrize("token", ["w_0", "w_-5", "w_abc", "w_12px", "w_", "w_1.5", "w_1_000"])
    def test_invalid_width_dropped(self, token):
        assert parse_options(token, CONFIG).width is None

    @pytest.mark.parametrize("token", ["q_0", "q_101", "q_high"])
    def test_invalid_quality_falls_back_to_default(self, token):
        assert parse_options(token, CONFIG).quality == 85

    def test_quality(self):
        assert parse_options("q_1", CONFIG).quality == 1
        assert parse_options("q_100", CONFIG).quality == 100

    @pytest.mark.parametrize("fmt", ["webp", "jpeg", "png", "auto"])
    def test_formats(self, fmt):
        assert parse_options(f"f_{fmt}", CONFIG).format == fmt

    @pytest.mark.parametrize("token", ["f_gif", "f_WEBP", "f_"])
    def test_unknown_format_dropped(self, token):
        assert parse_options(token, CONFIG).format == "auto"

    def test_unknown_keys_ignored(self):
        options = parse_options("x_1,blur_5,w_10,,_", CONFIG)
        assert options.width == 10
        assert options.original is False

    def test_last_token_wins(self):
        assert parse_options("w_100,w_200", CONFIG).width == 200
        options = parse_options("w_100,s_200x300", CONFIG)
        assert (options.width, options.height) == (200, 300)
        options = parse_options("s_200x300,w_100", CONFIG)
        assert (options.width, options.height) == (100, 300)

    def test_bad_token_does_not_clobber_earlier_value(self):
        assert parse_options("w_100,w_abc", CONFIG).width == 100

    def test_tokens_are_trimmed(self):
        assert parse_options(" w_100 , h_50 ", CONFIG).height == 50

    def test_schema_failure_is_parse_error(self, monkeypatch):
        """候选值未通过整体 schema 校验时报错"""
        monkeypatch.setattr(options_parser, "tokenize", lambda *args: {"width": 0})
        with pytest.raises(OptionsParseError):
            parse_options("w_0", CONFIG)

    def test_parse_error_is_value_error(self, monkeypatch):
        monkeypatch.setattr(options_parser, "tokenize", lambda *args: {"format": "gif"})
        with pytest.raises(ValueError):
            parse_options("f_gif", CONFIG)


class TestImageProxyOptions:
    def test_schema_enforces_max(self):
        with pytest.raises(ValidationError):
            ImageProxyOptions.model_validate({"width": 5000}, context={"max_width": 4000})

    def test_schema_without_context_only_checks_sign(self):
        assert ImageProxyOptions.model_validate({"width": 5000}).width == 5000
        with pytest.raises(ValidationError):
            ImageProxyOptions.model_validate({"height": -1})

    def test_quality_range(self):
        with pytest.raises(ValidationError):
            ImageProxyOptions(quality=0)

    def test_immutable(self):
        options = ImageProxyOptions(width=10)
        with pytest.raises(ValidationError):
            options.width = 20


class TestFormatOptions:
    @pytest.mark.parametrize(
        "operations",
        ["w_400,f_webp", "_", "s_800x600,q_70", "h_120,f_png", "w_10,h_20,f_jpeg,q_1", ""],
    )
    def test_round_trip(self, operations):
        options = parse_options(operations, CONFIG)
        assert parse_options(format_options(options), CONFIG) == options

    def test_original(self):
        assert format_options(ImageProxyOptions(original=True)) == "_"

    def test_tokens(self):
        assert format_options(ImageProxyOptions(width=400, format="webp")) == "w_400,f_webp,q_85"


class TestAsciiDigits:
    @pytest.mark.parametrize("token", ["w_４００", "h_٤٠٠", "q_８０", "s_４００x３００"])
    def test_non_ascii_digits_dropped(self, token):
        """只接受 ASCII 数字"""
        options = parse_options(token, CONFIG)
        assert options.width is None
        assert options.height is None
        assert options.quality == 85
