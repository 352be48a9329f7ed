from dataclasses import replace
from datetime import date

import pytest

from a2block.core.errors import EmptyFeedError, FeedParseError
from a2block.core.extract import DomainSpec, ExtractContext, extract_records
from a2block.core.feed_parsers import find_items, parse_document, read_item
from a2block.pipelines.feed_pipeline import parse_feed_text
from a2block.sources.alerts import NO_ALERTS_TITLE
from a2block.sources.social import resolve_author

import samples
from fakes import source


class TestWeather:
    def test_day_blocks_become_forecast(self):
        days = parse_feed_text(samples.WEATHER_RSS, source("weather", mime="text/xml"))
        assert [d.date for d in days] == ["10/16/2026", "10/17/2026"]
        assert days[0].emoji.startswith("☀")
        assert (days[0].high, days[0].low, days[0].condition) == ("68", "45", "Sunny")
        assert days[1].condition == "Light Rain"

    def test_block_without_emoji_is_dropped(self):
        days = parse_feed_text(samples.WEATHER_RSS, source("weather", mime="text/xml"))
        assert "10/18/2026" not in [d.date for d in days]


class TestAlerts:
    def test_first_item_only(self):
        alerts = parse_feed_text(samples.ALERTS_RSS, source("alerts"))
        assert len(alerts) == 1
        assert alerts[0].has_alert
        assert alerts[0].title.endswith("Winter Storm Warning for Washtenaw County")

    def test_no_alerts_marker(self):
        alerts = parse_feed_text(samples.ALERTS_NONE_RSS, source("alerts"))
        assert not alerts[0].has_alert

    def test_empty_feed_yields_default_record(self):
        alerts = parse_feed_text(samples.ALERTS_EMPTY_RSS, source("alerts"))
        assert len(alerts) == 1
        assert alerts[0].title == NO_ALERTS_TITLE
        assert not alerts[0].has_alert


class TestEvents:
    FEED = samples.events_rss(
        ("🎸 Rock Night", "Friday, October 18, 2030 at 7:30 PM", "https://img.test/1.jpg"),
        ("🎻 Quartet", "Saturday, October 12, 2030 at 8:00 PM", "https://img.test/2.jpg"),
        ("🎭 No Picture", "Saturday, October 12, 2030 at 8:00 PM", ""),
        ("Mystery show", "Date TBA", "https://img.test/3.jpg"),
    )

    def test_fields(self):
        events = parse_feed_text(self.FEED, source("events"))
        rock = next(e for e in events if e.title == "🎸 Rock Night")
        assert rock.date == "Friday, October 18, 2030"
        assert rock.time == "7:30 PM"
        assert (rock.venue, rock.location, rock.address) == ("The Ark", "Ann Arbor, MI", "316 S Main St")
        assert (rock.category, rock.genre, rock.price_range) == ("Music", "Rock", "$20 - $45")
        assert rock.emoji == "🎸"
        assert rock.event_name == "Rock Night"
        assert rock.image_url == "https://img.test/1.jpg"
        assert rock.sort_date == date(2030, 10, 18)

    def test_events_without_image_are_not_admitted(self):
        events = parse_feed_text(self.FEED, source("events"))
        assert "🎭 No Picture" not in [e.title for e in events]
        assert len(events) == 3

    def test_sorted_by_date_undated_last(self):
        events = parse_feed_text(self.FEED, source("events"))
        assert [e.title for e in events] == ["🎻 Quartet", "🎸 Rock Night", "Mystery show"]
        assert events[-1].time == "Time TBA"
        assert events[-1].date == ""

    def test_defaults_emoji(self):
        events = parse_feed_text(self.FEED, source("events"))
        assert events[-1].emoji == "🎪"


class TestHousing:
    def test_title_fields(self):
        props = parse_feed_text(samples.HOUSING_RSS, source("housing"))
        p = props[0]
        assert p.status == "NEW"
        assert p.price == "$299,900"
        assert p.bedrooms == "4"
        assert p.bathrooms == "2"
        assert p.address == "123 Main St, Ann Arbor, MI 48103"
        assert p.emoji == "🏠"

    def test_detail_paragraphs(self):
        p = parse_feed_text(samples.HOUSING_RSS, source("housing"))[0]
        assert p.square_footage == "1,850 sq ft"
        assert p.price_per_sqft == "$162"
        assert p.property_type == "Single Family"
        assert p.year_built == ""
        assert p.neighborhood == "Water Hill"
        assert p.description == "Charming bungalow a short walk from downtown."
        assert p.coordinates is None

    def test_summary_posts_excluded(self):
        props = parse_feed_text(samples.HOUSING_RSS, source("housing"))
        assert len(props) == 2
        assert all("Summary" not in p.title for p in props)

    def test_status_and_emoji_from_bare_title(self):
        p = parse_feed_text(samples.HOUSING_RSS, source("housing"))[1]
        assert p.status == "PRICE_REDUCED"
        assert p.emoji == "🏠"
        assert p.square_footage == ""


class TestSocial:
    def test_atom_entries(self):
        posts = parse_feed_text(samples.REDDIT_ATOM, source("social", tags=["annarbor"]))
        assert len(posts) == 3
        text, image, link = posts
        assert text.id == "t3_abc123"
        assert text.author == "structured_user"
        assert text.post_type == "text"
        assert text.self_text.startswith("Looking for recommendations")
        assert text.subreddit == "annarbor"
        assert image.post_type == "image"
        assert image.image_url == "https://preview.redd.it/diag.jpg"
        assert link.post_type == "link"
        assert link.domain == "www.mlive.com"
        assert link.permalink == "https://reddit.com/r/annarbor"

    def test_rss_author_from_markup(self):
        posts = parse_feed_text(samples.REDDIT_RSS, source("social", tags=["annarbor"]))
        first = posts[0]
        assert first.author == "someuser"
        assert first.id == "item-0"
        assert first.self_text == "Main street is closed between Liberty and William for the festival."

    def test_missing_title_falls_back(self):
        posts = parse_feed_text(samples.REDDIT_RSS, source("social", tags=["annarbor"]))
        assert posts[1].title == "Post 2"

    def test_empty_feed_is_an_error(self):
        with pytest.raises(EmptyFeedError):
            parse_feed_text(samples.REDDIT_EMPTY_RSS, source("social"))

    def test_short_body_is_an_error(self):
        with pytest.raises(FeedParseError):
            parse_feed_text("<rss/>", source("social"))

    def test_span_author_when_markup_has_no_pattern(self):
        node = find_items(parse_document(samples.REDDIT_RSS)).nodes[0]
        raw = replace(read_item(node, is_atom=False), markup="<item/>")
        assert resolve_author(raw) == "someuser"
        assert resolve_author(replace(raw, content="<p>no byline</p>")) == "Unknown"

    def test_url_path_is_not_an_author(self):
        node = find_items(parse_document(samples.REDDIT_RSS)).nodes[0]
        raw = replace(
            read_item(node, is_atom=False),
            markup="<item><link>https://a2.test/menu/board</link></item>",
            content="<p>no byline</p>",
        )
        assert resolve_author(raw) == "Unknown"

    def test_at_most_fifty_posts(self):
        posts = parse_feed_text(samples.reddit_rss_with(60), source("social"))
        assert len(posts) == 50
        assert posts[7].author == "user7"


class TestForSale:
    def test_priced_listing(self):
        items = parse_feed_text(samples.FORSALE_RSS, source("forsale"))
        table = items[0]
        assert table.title == "Oak dining table"
        assert table.price == "$150"
        assert table.location == "Ypsilanti"
        assert table.category == "furniture"
        assert table.emoji == "🪑"
        assert not table.is_free
        assert table.id.startswith("forsale-0-")
        assert table.description.endswith("...")
        assert len(table.description) == 153

    def test_free_listing(self):
        boxes = parse_feed_text(samples.FORSALE_RSS, source("forsale"))[1]
        assert boxes.price == "Free"
        assert boxes.is_free
        assert boxes.category == "general"
        assert boxes.location == "Ann Arbor"

    def test_bare_listing_defaults(self):
        bike = parse_feed_text(samples.FORSALE_RSS, source("forsale"))[2]
        assert bike.price == "Price not listed"
        assert bike.location == ""
        assert bike.description == ""

    def test_html_page_rejected(self):
        with pytest.raises(FeedParseError):
            parse_feed_text(samples.HTML_ERROR_PAGE, source("forsale"))


class TestArticles:
    def test_news_fallback_and_author(self):
        first = parse_feed_text(samples.NEWS_ATOM, source("news"))[0]
        assert first.title == "Council approves budget & road plan"
        assert first.url == "https://www.mlive.com/news/ann-arbor/2026/10/budget.html"
        assert first.content == "Click to read the full article on MLive.com"
        assert first.author == "jane.doe"
        assert first.image_url == "https://www.mlive.com/img/budget.jpg"
        assert first.published == "2026-10-16T08:00:00Z"
        assert first.updated == "2026-10-16T09:00:00Z"
        assert first.source == "MLive"

    def test_news_defaults(self):
        second = parse_feed_text(samples.NEWS_ATOM, source("news"))[1]
        assert second.author == "MLive"
        assert second.url == "https://www.mlive.com/news/ann-arbor/2026/10/library.html"
        assert second.content.startswith("The long-awaited park")

    def test_politics(self):
        post, note = parse_feed_text(samples.POLITICS_RSS, source("politics"))
        assert post.author == "Damn Arbor Staff"
        assert post.image_url == "https://blogger.googleusercontent.com/thumb.jpg"
        assert post.categories == ["elections", "ward 5", "council", "a", "b"]
        assert post.content.startswith("The Ward 5 council race has drawn three candidates")
        assert note.content == "Click to read the full post on Damn Arbor."
        assert note.author == "Damn Arbor"

    def test_education_footer_stripped_then_fallback(self):
        regents, football = parse_feed_text(samples.EDUCATION_RSS, source("education"))
        assert regents.content == "Click to read the full article on The Michigan Daily."
        assert regents.image_url == "https://www.michigandaily.com/wp-content/photo.jpg"
        assert regents.author == "Alex Kim"
        assert football.author == "The Michigan Daily"
        assert "appeared first" not in football.content


class TestBatchIsolation:
    def _spec(self, **kw):
        def build(raw, index, ctx):
            if raw.title == "boom":
                raise ValueError("bad item")
            return raw.title

        return DomainSpec(domain="test", build=build, **kw)

    def test_bad_item_is_skipped(self):
        root = parse_document(
            "<rss><channel><item><title>a</title></item><item><title>boom</title></item>"
            "<item><title>c</title></item></channel></rss>"
        )
        assert extract_records(root, self._spec()) == ["a", "c"]

    def test_all_items_failing_is_empty(self):
        root = parse_document("<rss><channel><item><title>boom</title></item></channel></rss>")
        assert extract_records(root, self._spec()) == []

    def test_synthesized_ids_share_fetch_time(self):
        ctx = ExtractContext(domain="test", fetched_ms=1234)
        assert ctx.synth_id(3) == "3-1234"
        assert ctx.synth_id(0, prefix="forsale-") == "forsale-0-1234"
