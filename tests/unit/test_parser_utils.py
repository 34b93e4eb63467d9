"""Unit tests for node extraction helpers and merge algorithms."""

import math

import pytest
from lxml import etree

from vast_resolver.models import (
    Ad,
    AdExtension,
    CreativeCompanion,
    CreativeLinear,
    CreativeNonLinear,
    Icon,
)
from vast_resolver.parser_utils import (
    child_by_name,
    concat_ad_level,
    concat_creative_level,
    find_creative_overrides,
    merge_tracking_events,
    merge_wrapper_ad_data,
    parse_bool,
    parse_duration,
    parse_extensions,
    parse_int,
    parse_node_text,
    parse_position,
    parse_pricing,
    parse_tracking_events,
    resolve_vast_ad_tag_uri,
)


def xml(text: str) -> etree._Element:
    return etree.fromstring(text)


class TestParseDuration:
    """Test duration parsing and its -1 sentinel."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("00:00:30", 30),
            ("00:01:30.123", 90.123),
            ("01:00:00", 3600),
            ("0:0:5", 5),
            ("00:00:00", 0),
            ("15", 15),
            ("12.5", 12.5),
            (30, 30),
            (2.5, 2.5),
            (0, 0),
        ],
    )
    def test_valid_durations(self, value, expected):
        """Test clock strings and plain seconds."""
        assert parse_duration(value) == pytest.approx(expected)

    def test_whole_seconds_are_int(self):
        """Test whole values come back as int."""
        assert isinstance(parse_duration("00:00:30"), int)

    @pytest.mark.parametrize(
        "value",
        [
            None,
            "",
            "   ",
            "-1",
            -5,
            "test",
            "00:test:01",
            "00:00:01.test",
            "00:00:test",
            "1:2",
            "00:61:00",
            "00:00:61",
            "nan",
            "inf",
            float("nan"),
            float("inf"),
            True,
            [],
            {},
        ],
    )
    def test_invalid_durations_are_minus_one(self, value):
        """Test malformed input maps to -1 and never NaN."""
        result = parse_duration(value)

        assert not (isinstance(result, float) and math.isnan(result))
        assert result == -1


class TestScalarParsing:
    """Test int, bool and position helpers."""

    def test_parse_int(self):
        """Test integers, floats and defaults."""
        assert parse_int("512") == 512
        assert parse_int(" 20 ") == 20
        assert parse_int("12.7") == 12
        assert parse_int("abc") == 0
        assert parse_int(None, 7) == 7

    def test_parse_bool(self):
        """Test boolean attributes with defaults."""
        assert parse_bool("true") is True
        assert parse_bool("FALSE") is False
        assert parse_bool("1") is True
        assert parse_bool(None) is None
        assert parse_bool("maybe", True) is True

    def test_parse_position(self):
        """Test keyword and pixel positions."""
        assert parse_position("left") == "left"
        assert parse_position("bottom") == "bottom"
        assert parse_position("25") == 25
        assert parse_position(None) == 0


class TestNodeExtraction:
    """Test reading values out of XML nodes."""

    def test_parse_node_text_strips_cdata(self):
        """Test CDATA text is trimmed."""
        node = xml("<Impression><![CDATA[  http://example.com/imp  ]]></Impression>")

        assert parse_node_text(node) == "http://example.com/imp"
        assert parse_node_text(None) is None

    def test_child_by_name_skips_comments(self):
        """Test comments are not returned as children."""
        node = xml("<Ad><!-- note --><InLine/></Ad>")

        assert child_by_name(node, "InLine") is not None
        assert child_by_name(node, "Wrapper") is None

    def test_parse_pricing(self):
        """Test pricing attributes and value."""
        node = xml('<InLine><Pricing model="CPM" currency="USD"> 1.09 </Pricing></InLine>')
        pricing = parse_pricing(node)

        assert pricing.value == "1.09"
        assert pricing.model == "CPM"
        assert pricing.currency == "USD"
        assert parse_pricing(xml("<InLine/>")) is None

    def test_parse_extensions(self):
        """Test extension attributes and nested children."""
        node = xml(
            "<Wrapper><Extensions>"
            '<Extension type="Pricing"><Price model="CPM"><![CDATA[ 0 ]]></Price></Extension>'
            '<Extension type="Empty"/>'
            "</Extensions></Wrapper>"
        )
        extensions = parse_extensions(node)

        assert len(extensions) == 2
        assert extensions[0].attributes == {"type": "Pricing"}
        child = extensions[0].children[0]
        assert child.name == "Price"
        assert child.value == "0"
        assert child.attributes == {"model": "CPM"}
        assert extensions[1].children == []

    def test_parse_tracking_events_with_progress(self):
        """Test progress events are keyed by offset."""
        node = xml(
            "<Linear><TrackingEvents>"
            '<Tracking event="start">http://x/start1</Tracking>'
            '<Tracking event="start">http://x/start2</Tracking>'
            '<Tracking event="progress" offset="00:00:30">http://x/p30</Tracking>'
            '<Tracking event="progress" offset="60%">http://x/p60</Tracking>'
            '<Tracking event="progress">http://x/no-offset</Tracking>'
            '<Tracking event="complete"></Tracking>'
            "</TrackingEvents></Linear>"
        )
        events = parse_tracking_events(node)

        assert events == {
            "start": ["http://x/start1", "http://x/start2"],
            "progress-30": ["http://x/p30"],
            "progress-60%": ["http://x/p60"],
        }

    def test_resolve_vast_ad_tag_uri(self):
        """Test relative redirects resolve against the declaring URL."""
        base = "http://ads.example.com/vast/wrapper.xml"

        assert resolve_vast_ad_tag_uri("next.xml", base) == "http://ads.example.com/vast/next.xml"
        assert resolve_vast_ad_tag_uri("//cdn.example.com/v", base) == "http://cdn.example.com/v"
        assert resolve_vast_ad_tag_uri("https://other/v", base) == "https://other/v"
        assert resolve_vast_ad_tag_uri("//cdn.example.com/v", None) == "http://cdn.example.com/v"


class TestMergeAlgorithms:
    """Test ad-level and creative-level concatenation order."""

    def test_ad_level_is_own_then_nested(self):
        """Test wrapper values come first at ad level."""
        assert concat_ad_level(["own"], ["nested1", "nested2"]) == ["own", "nested1", "nested2"]

    def test_creative_level_is_nested_then_own(self):
        """Test nested values come first at creative level."""
        assert concat_creative_level(["nested"], ["own"]) == ["nested", "own"]

    def test_merge_tracking_events_union(self):
        """Test keys are unioned and values never deduplicated."""
        merged = merge_tracking_events(
            {"start": ["inline"], "complete": ["inline-c"]},
            {"start": ["wrapper", "inline"], "pause": ["wrapper-p"]},
        )

        assert merged == {
            "start": ["inline", "wrapper", "inline"],
            "complete": ["inline-c"],
            "pause": ["wrapper-p"],
        }

    def test_merge_wrapper_ad_data(self):
        """Test a wrapper level folded into an inline ad."""
        inline_linear = CreativeLinear(
            id="c1",
            tracking_events={"start": ["inline-start"]},
            video_click_tracking_url_templates=["inline-click"],
            icons=[Icon(program="inline")],
        )
        unwrapped = Ad(
            error_url_templates=["inline-error"],
            impression_url_templates=["inline-imp"],
            extensions=[AdExtension(attributes={"type": "inline"})],
            creatives=[inline_linear, CreativeCompanion(id="comp")],
        )
        wrapper = Ad(
            error_url_templates=["wrapper-error"],
            impression_url_templates=["wrapper-imp"],
            extensions=[AdExtension(attributes={"type": "wrapper"})],
            creatives=[
                CreativeLinear(
                    id="c1",
                    tracking_events={"start": ["wrapper-start"], "pause": ["wrapper-pause"]},
                    video_click_through_url_template="wrapper-through",
                    video_click_tracking_url_templates=["wrapper-click"],
                    video_custom_click_url_templates=["wrapper-custom"],
                    icons=[Icon(program="wrapper")],
                )
            ],
        )

        merge_wrapper_ad_data(unwrapped, wrapper)

        assert unwrapped.error_url_templates == ["wrapper-error", "inline-error"]
        assert unwrapped.impression_url_templates == ["wrapper-imp", "inline-imp"]
        assert [e.attributes["type"] for e in unwrapped.extensions] == ["wrapper", "inline"]
        assert inline_linear.tracking_events == {
            "start": ["inline-start", "wrapper-start"],
            "pause": ["wrapper-pause"],
        }
        assert inline_linear.video_click_tracking_url_templates == ["inline-click", "wrapper-click"]
        assert inline_linear.video_custom_click_url_templates == ["wrapper-custom"]
        assert [icon.program for icon in inline_linear.icons] == ["inline", "wrapper"]
        assert inline_linear.video_click_through_url_template == "wrapper-through"

    def test_inline_click_through_is_kept(self):
        """Test a wrapper click-through only fills a missing one."""
        linear = CreativeLinear(video_click_through_url_template="inline-through")
        wrapper = Ad(creatives=[CreativeLinear(video_click_through_url_template="wrapper-through")])

        merge_wrapper_ad_data(Ad(creatives=[linear]), wrapper)

        assert linear.video_click_through_url_template == "inline-through"

    def test_wrapper_without_override_adds_nothing(self):
        """Test creatives stay untouched when the wrapper has no override."""
        linear = CreativeLinear(tracking_events={"start": ["inline"]})

        merge_wrapper_ad_data(Ad(creatives=[linear]), Ad())

        assert linear.tracking_events == {"start": ["inline"]}
        assert linear.video_click_tracking_url_templates == []


class TestFindCreativeOverrides:
    """Test matching wrapper overrides to nested creatives."""

    def test_match_by_id(self):
        """Test the override with the same id wins."""
        creative = CreativeLinear(id="b")
        overrides = [CreativeLinear(id="a"), CreativeLinear(id="b")]

        assert find_creative_overrides(creative, overrides) == [overrides[1]]

    def test_match_by_ad_id(self):
        """Test adId identifies an override too."""
        creative = CreativeLinear(ad_id="x")
        overrides = [CreativeLinear(ad_id="y"), CreativeLinear(ad_id="x")]

        assert find_creative_overrides(creative, overrides) == [overrides[1]]

    def test_type_only_fallback(self):
        """Test every same-type override applies without an id match."""
        creative = CreativeLinear(id="z")
        overrides = [CreativeLinear(id="a"), CreativeNonLinear(), CreativeLinear()]

        assert find_creative_overrides(creative, overrides) == [overrides[0], overrides[2]]

    def test_other_types_ignored(self):
        """Test overrides never cross creative types."""
        assert find_creative_overrides(CreativeNonLinear(), [CreativeLinear()]) == []

    def test_companions_take_no_overrides(self):
        """Test companion creatives are never overridden."""
        assert find_creative_overrides(CreativeCompanion(), [CreativeCompanion()]) == []
