import pytest

from chat_relay.core.typewriter import CURSOR_MARKUP, RevealStep, TypewriterRenderer, tokenize


def test_plain_text_reveals_one_character_per_tick():
    renderer = TypewriterRenderer("abc")

    assert renderer.state == "revealing(0)"
    assert renderer.tick() == "a" + CURSOR_MARKUP
    assert renderer.tick() == "ab" + CURSOR_MARKUP
    assert renderer.tick() == "abc" + CURSOR_MARKUP
    assert not renderer.done
    assert renderer.tick() == "abc"
    assert renderer.done
    assert renderer.state == "done"


def test_frames_end_with_final_markup_without_cursor():
    frames = list(TypewriterRenderer("hi").frames())

    assert len(frames) == 3
    assert frames[-1] == "hi"
    assert all(CURSOR_MARKUP in frame for frame in frames[:-1])


def test_tags_are_never_split_and_always_closed():
    renderer = TypewriterRenderer("<strong>ab</strong> c")

    assert renderer.tick() == "<strong>a" + CURSOR_MARKUP + "</strong>"
    assert renderer.tick() == "<strong>ab</strong>" + CURSOR_MARKUP
    assert renderer.tick() == "<strong>ab</strong> " + CURSOR_MARKUP


def test_next_item_opening_tag_waits_for_its_text():
    renderer = TypewriterRenderer("<ul><li>x</li><li>y</li></ul>")

    assert renderer.tick() == "<ul><li>x</li>" + CURSOR_MARKUP + "</ul>"


def test_void_tags_and_entities():
    markup = "a<br>&amp;b"
    tokens = tokenize(markup)

    assert [t for t, visible in tokens if visible] == ["a", "&amp;", "b"]
    renderer = TypewriterRenderer(markup)
    renderer.tick()
    assert renderer.tick() == "a<br>&amp;" + CURSOR_MARKUP


def test_empty_markup_finishes_on_first_tick():
    renderer = TypewriterRenderer("")

    assert renderer.tick() == ""
    assert renderer.done


def test_tick_after_done_keeps_final_markup():
    renderer = TypewriterRenderer("x")
    list(renderer.frames())

    assert renderer.tick() == "x"


def test_steps_carry_only_new_markup_and_open_tag_closers():
    renderer = TypewriterRenderer("<strong>ab</strong> c")

    assert renderer.step() == RevealStep("<strong>a", "</strong>", False)
    assert renderer.step() == RevealStep("b</strong>", "", False)
    assert renderer.step() == RevealStep(" ", "", False)
    assert renderer.step() == RevealStep("c", "", False)
    assert renderer.step() == RevealStep("", "", True)
    assert renderer.done


def test_joined_deltas_rebuild_the_markup():
    markup = "Docs:<br><ul><li><em>one</em></li><li>two &amp; three</li></ul>"
    renderer = TypewriterRenderer(markup)

    deltas = []
    while not renderer.done:
        deltas.append(renderer.step().delta)

    assert "".join(deltas) == markup


@pytest.mark.asyncio
async def test_stream_steps_match_sync_frames():
    expected = list(TypewriterRenderer("<em>ok</em>").frames())

    renderer = TypewriterRenderer("<em>ok</em>", interval_ms=0)
    revealed = ""
    rebuilt = []
    async for step in renderer.stream_steps():
        if step.done:
            rebuilt.append(renderer.markup)
            break
        revealed += step.delta
        rebuilt.append(revealed + CURSOR_MARKUP + step.closing)

    assert rebuilt == expected
