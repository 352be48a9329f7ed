from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

from a2block.core.errors import FeedFetchError
from a2block.main import main
from a2block.pipelines.feed_pipeline import parse_feed_text
from a2block.reporting.render_md import bullets, format_time_ago, render_domain_section

import samples
from fakes import source

NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)


class TestFormatTimeAgo:
    def test_days(self):
        assert format_time_ago("Mon, 12 Oct 2026 12:00:00 GMT", now=NOW) == "4d ago"

    def test_hours(self):
        assert format_time_ago("2026-10-16T09:30:00Z", now=NOW) == "2h ago"

    def test_minutes(self):
        assert format_time_ago("2026-10-16T11:45:00+00:00", now=NOW) == "15m ago"

    def test_unknown(self):
        assert format_time_ago("", now=NOW) == "Unknown time"
        assert format_time_ago("soon", now=NOW) == "Unknown time"

    def test_naive_timestamp_is_utc(self):
        assert format_time_ago("2026-10-16T10:00:00", now=NOW) == "2h ago"


class TestRenderSection:
    def test_empty_list(self):
        assert bullets([]) == "_No data_\n"

    def test_error_section(self):
        out = render_domain_section("news", FeedFetchError("HTTP 500"))
        assert out == "**Error:** HTTP 500\n"

    def test_housing_lines(self):
        props = parse_feed_text(samples.HOUSING_RSS, source("housing"))
        out = render_domain_section("housing", props)
        assert "- 🏠 [123 Main St, Ann Arbor, MI 48103](https://realestate.example.com/123-main) $299,900 4BR/2BA [NEW]" in out

    def test_article_lines_are_capped(self):
        items = parse_feed_text(samples.EDUCATION_RSS, source("education"))
        out = render_domain_section("education", items, top=1)
        assert out == "- [Regents meet](https://www.michigandaily.com/news/regents-meet/) by Alex Kim\n"


class TestCli:
    def test_digest_writes_report(self, tmp_path, capsys):
        results = {
            "alerts": parse_feed_text(samples.ALERTS_RSS, source("alerts")),
            "news": FeedFetchError("HTTP 500"),
        }
        sources = [source("alerts"), source("news")]
        with patch("a2block.main.load_sources", return_value=sources), \
                patch("a2block.main.fetch_all", new=AsyncMock(return_value=results)):
            code = main(["digest", "--date", "2026-10-16", "--out", str(tmp_path)])

        assert code == 0
        report = (tmp_path / "digest_2026-10-16.md").read_text(encoding="utf-8")
        assert report.startswith("# A2Block Digest - 2026-10-16")
        assert "## Alerts" in report
        assert "**Error:** HTTP 500" in report
        out = capsys.readouterr().out
        assert "[DIGEST] feeds=2 failed=1" in out
        assert "[OK]" in out

    def test_fetch_error_exit_code(self, capsys):
        with patch("a2block.main.run_pipeline", new=AsyncMock(side_effect=FeedFetchError("HTTP 503"))):
            code = main(["fetch", "news"])
        assert code == 1
        assert "[ERROR] news: HTTP 503" in capsys.readouterr().out

    def test_fetch_prints_page(self, capsys):
        records = parse_feed_text(samples.REDDIT_ATOM, source("social"))
        with patch("a2block.main.run_pipeline", new=AsyncMock(return_value=records)):
            code = main(["fetch", "social"])
        assert code == 0
        out = capsys.readouterr().out.splitlines()
        assert out[-1] == "[OK] social page=0 items=3 total=3 has_more=False"
        assert '"author": "structured_user"' in out[0]
