"""Tests for image download, bounded concurrency and link rewriting."""

import asyncio

import pytest
import requests

from url2md.images import download_images, guess_extension, rewrite_image_links, run_pooled

from .conftest import PNG_BYTES, FakeHttp, FakeResponse


class TestGuessExtension:
    @pytest.mark.parametrize(
        "content_type, expected",
        [
            ("image/png", ".png"),
            ("image/gif", ".gif"),
            ("image/webp", ".webp"),
            ("image/svg+xml", ".svg"),
        ],
    )
    def test_content_type_wins(self, content_type, expected):
        assert guess_extension("https://x.com/photo.jpg", content_type) == expected

    def test_url_path_extension(self):
        assert guess_extension("https://x.com/a/photo.webp?w=300", "application/octet-stream") == ".webp"
        assert guess_extension("https://x.com/a/photo.JPEG", None) == ".jpeg"

    def test_defaults_to_jpg(self):
        assert guess_extension("https://x.com/image?id=3", "image/jpeg") == ".jpg"
        assert guess_extension("https://x.com/file.bin", "") == ".jpg"


class TestRunPooled:
    @pytest.mark.asyncio
    async def test_preserves_input_order(self):
        async def job(value, delay):
            await asyncio.sleep(delay)
            return value

        tasks = [
            (lambda v=v, d=d: job(v, d))
            for v, d in [("a", 0.03), ("b", 0.0), ("c", 0.02), ("d", 0.01)]
        ]
        assert await run_pooled(tasks, 2) == ["a", "b", "c", "d"]

    @pytest.mark.asyncio
    async def test_respects_limit(self):
        in_flight = 0
        peak = 0

        async def job():
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1

        await run_pooled([job for _ in range(12)], 5)
        assert peak == 5

    @pytest.mark.asyncio
    async def test_empty(self):
        assert await run_pooled([], 5) == []


class TestRewriteImageLinks:
    def test_pattern_sensitive_characters(self):
        remote = "https://x.com/a(1).jpg?w=2"
        markdown = f"![one]({remote})\n\ntext https://x.com/a1.jpg?w=2\n\n![again]({remote})"
        rewritten = rewrite_image_links(markdown, {remote: "./s-images/s-01.jpg"})
        assert rewritten == (
            "![one](./s-images/s-01.jpg)\n\ntext https://x.com/a1.jpg?w=2\n\n![again](./s-images/s-01.jpg)"
        )

    def test_prefix_urls(self):
        markdown = "![](https://x.com/a.jpg) ![](https://x.com/a.jpg?w=2)"
        rewritten = rewrite_image_links(
            markdown,
            {"https://x.com/a.jpg": "./one.jpg", "https://x.com/a.jpg?w=2": "./two.jpg"},
        )
        assert rewritten == "![](./one.jpg) ![](./two.jpg)"


class TestDownloadImages:
    @pytest.mark.asyncio
    async def test_no_images_is_noop(self, config, tmp_path):
        result = await download_images("# T", [], "T", tmp_path, config, http=FakeHttp())
        assert (result.markdown, result.downloaded, result.failed) == ("# T", 0, 0)
        assert not (tmp_path / "T-images").exists()

    @pytest.mark.asyncio
    async def test_downloads_and_rewrites(self, config, tmp_path):
        ok = "https://x.com/a(1).jpg?w=2"
        png = "https://x.com/pic"
        small = "https://x.com/tiny.gif"
        missing = "https://x.com/404.jpg"
        broken = "https://x.com/down.jpg"
        http = FakeHttp(
            {
                ok: FakeResponse(content=b"j" * 500, headers={"Content-Type": "image/jpeg"}),
                png: FakeResponse(content=PNG_BYTES, headers={"Content-Type": "image/png"}),
                small: FakeResponse(content=b"g" * 99, headers={"Content-Type": "image/gif"}),
                missing: FakeResponse(status_code=404, content=b"x" * 500),
            }
        )
        urls = [ok, png, small, missing, broken, "not a url"]
        markdown = "\n\n".join(f"![]({url})" for url in urls)

        result = await download_images(markdown, urls, "Post", tmp_path, config, http=http)

        assert result.downloaded == 2
        assert result.failed == 4
        assert result.downloaded + result.failed == len(urls)
        assert (tmp_path / "Post-images" / "Post-01.jpg").read_bytes() == b"j" * 500
        assert (tmp_path / "Post-images" / "Post-02.png").read_bytes() == PNG_BYTES
        assert "![](./Post-images/Post-01.jpg)" in result.markdown
        assert "![](./Post-images/Post-02.png)" in result.markdown
        for failed_url in (small, missing, broken):
            assert f"![]({failed_url})" in result.markdown
        assert sorted(p.name for p in (tmp_path / "Post-images").iterdir()) == [
            "Post-01.jpg",
            "Post-02.png",
        ]

    @pytest.mark.asyncio
    async def test_duplicates_counted_once(self, config, tmp_path):
        url = "https://x.com/a.png"
        http = FakeHttp({url: FakeResponse(content=PNG_BYTES, headers={"Content-Type": "image/png"})})
        result = await download_images(f"![]({url}) ![]({url})", [url, url], "D", tmp_path, config, http=http)
        assert (result.downloaded, result.failed) == (1, 0)
        assert result.markdown == "![](./D-images/D-01.png) ![](./D-images/D-01.png)"
        assert len(http.calls) == 1

    @pytest.mark.asyncio
    async def test_headers(self, config, tmp_path):
        cdn = "https://mmbiz.qpic.cn/mmbiz_png/abc/640?wx_fmt=png"
        other = "https://example.com/b.png"
        http = FakeHttp(
            {
                cdn: FakeResponse(content=PNG_BYTES, headers={"Content-Type": "image/png"}),
                other: FakeResponse(content=PNG_BYTES, headers={"Content-Type": "image/png"}),
            }
        )
        await download_images("", [cdn, other], "H", tmp_path, config, http=http)
        headers = {call["url"]: call["headers"] for call in http.calls}
        assert headers[cdn]["Referer"] == "https://mp.weixin.qq.com/"
        assert headers[other]["Referer"] == ""
        assert headers[other]["User-Agent"] == config.user_agent

    @pytest.mark.asyncio
    async def test_all_fail(self, config, tmp_path):
        urls = [f"https://x.com/{i}.jpg" for i in range(7)]
        markdown = " ".join(urls)
        result = await download_images(markdown, urls, "F", tmp_path, config, http=FakeHttp())
        assert (result.downloaded, result.failed) == (0, 7)
        assert result.markdown == markdown

    @pytest.mark.asyncio
    async def test_unparsable_host_counts_as_failed(self, config, tmp_path):
        bad = "http://" + "a" * 70 + ".invalid/x.jpg"
        result = await download_images(
            f"![]({bad})", [bad], "L", tmp_path, config, http=requests.Session()
        )
        assert (result.downloaded, result.failed) == (0, 1)
        assert result.markdown == f"![]({bad})"
