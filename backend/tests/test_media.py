from compendium.services.normalization.media import (
    MediaResult,
    MediaUrls,
    get_best_media_url,
    get_media_display_type,
    guess_mime_type_from_url,
    is_interactive_platform,
)

ALL = MediaUrls(
    generator_url="https://gen.example/g.html",
    animation_url="https://cdn.example/a.mp4",
    image_url="https://cdn.example/i.png",
    thumbnail_url="https://cdn.example/t.png",
)


def test_video_mime_prefers_animation_regardless_of_context():
    for context in ("fullscreen", "thumbnail"):
        result = get_best_media_url(ALL, context, "video/mp4")
        assert result == MediaResult("https://cdn.example/a.mp4", "animation")


def test_video_mime_falls_back_to_image_then_thumbnail_then_generator():
    urls = MediaUrls(generator_url="g", image_url="i", thumbnail_url="t")
    assert get_best_media_url(urls, "fullscreen", "video/mp4") == MediaResult("i", "image")
    urls = MediaUrls(generator_url="g", thumbnail_url="t")
    assert get_best_media_url(urls, "fullscreen", "video/mp4") == MediaResult("t", "image")
    urls = MediaUrls(generator_url="g")
    assert get_best_media_url(urls, "thumbnail", "video/mp4") == MediaResult("g", "generator")


def test_gif_mime_prefers_animation():
    result = get_best_media_url(ALL, "thumbnail", "image/gif")
    assert result == MediaResult("https://cdn.example/a.mp4", "animation")


def test_fullscreen_prefers_generator():
    result = get_best_media_url(ALL, "fullscreen", "text/html")
    assert result == MediaResult("https://gen.example/g.html", "generator")

    urls = MediaUrls(animation_url="a", image_url="i")
    assert get_best_media_url(urls) == MediaResult("a", "animation")


def test_thumbnail_context_prefers_static_images():
    result = get_best_media_url(ALL, "thumbnail", "text/html")
    assert result == MediaResult("https://cdn.example/t.png", "image")

    urls = MediaUrls(image_url="i", animation_url="a.mp4")
    assert get_best_media_url(urls, "thumbnail") == MediaResult("i", "image")


def test_thumbnail_accepts_animation_only_when_it_looks_static():
    urls = MediaUrls(animation_url="https://x/anim.GIF", generator_url="g")
    assert get_best_media_url(urls, "thumbnail") == MediaResult("https://x/anim.GIF", "animation")

    urls = MediaUrls(animation_url="https://x/anim.mp4", generator_url="g")
    assert get_best_media_url(urls, "thumbnail") == MediaResult("g", "generator")

    urls = MediaUrls(animation_url="https://x/anim.mp4")
    assert get_best_media_url(urls, "thumbnail") is None


def test_no_urls_yields_none():
    assert get_best_media_url(MediaUrls()) is None
    assert get_best_media_url(MediaUrls(), "thumbnail", "image/png") is None


def test_display_type_from_kind_and_mime():
    assert get_media_display_type(None) is None
    assert get_media_display_type(MediaResult("x.png", "generator"), "image/png") == "iframe"
    assert get_media_display_type(MediaResult("x", "animation"), "video/webm") == "video"
    assert get_media_display_type(MediaResult("x.gif", "animation"), "image/gif") == "image"
    assert get_media_display_type(MediaResult("x", "image"), "application/pdf") == "iframe"
    assert get_media_display_type(MediaResult("x", "image"), "text/html") == "iframe"
    assert get_media_display_type(MediaResult("x.mp4", "image"), "image/png") == "image"


def test_display_type_from_url_without_mime():
    assert get_media_display_type(MediaResult("https://x/v.MOV", "animation")) == "video"
    assert get_media_display_type(MediaResult("https://x/a.gif", "animation")) == "video"
    assert get_media_display_type(MediaResult("https://fxhash.xyz/gentk/1", "image")) == "iframe"
    assert get_media_display_type(MediaResult("https://x/index.htm", "animation")) == "iframe"
    assert get_media_display_type(MediaResult("ipfs://Qm123", "image")) == "image"


def test_guess_mime_type_from_url():
    assert guess_mime_type_from_url("https://x/a.PNG") == "image/png"
    assert guess_mime_type_from_url("https://x/v.mp4?width=300#t=2") == "video/mp4"
    assert guess_mime_type_from_url("https://x/index.html") == "text/html"
    assert guess_mime_type_from_url("ipfs://QmHash") is None
    assert guess_mime_type_from_url("https://x/a.unknownext") is None
    assert guess_mime_type_from_url(None) is None


def test_interactive_platform_detection():
    assert is_interactive_platform("https://generator.artblocks.io/123")
    assert is_interactive_platform("https://gateway.fxhash.xyz/ipfs/Qm")
    assert not is_interactive_platform("https://ipfs.io/ipfs/Qm")
    assert not is_interactive_platform(None)
