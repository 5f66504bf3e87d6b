"""Tests for the streaming renderer, element tree and templates."""

from collections.abc import AsyncIterator

import pytest
from markupsafe import Markup

from streamrelay.core.errors import RenderFailure
from streamrelay.rendering import StreamingRenderer, TemplateRenderable, h


async def chunks_of(producer: AsyncIterator[bytes]) -> list[bytes]:
    return [chunk async for chunk in producer]


@pytest.mark.unit
class TestElements:
    async def test_heading_streams_as_three_chunks(self) -> None:
        chunks = [part async for part in h("h1", "Hello, Streaming SSR").stream()]
        assert chunks == ["<h1>", "Hello, Streaming SSR", "</h1>"]

    async def test_text_children_are_escaped(self) -> None:
        chunks = [part async for part in h("p", "<script>&</script>").stream()]
        assert chunks[1] == "&lt;script&gt;&amp;&lt;/script&gt;"

    async def test_markup_children_pass_through(self) -> None:
        chunks = [part async for part in h("p", Markup("<b>bold</b>")).stream()]
        assert chunks == ["<p>", "<b>bold</b>", "</p>"]

    async def test_nested_elements_stream_in_document_order(self) -> None:
        page = h("div", h("h1", "Title"), None, False, h("p", "Body"))
        html = "".join([part async for part in page.stream()])
        assert html == "<div><h1>Title</h1><p>Body</p></div>"

    def test_attributes(self) -> None:
        element = h("input", type="checkbox", checked=True, disabled=False, class_="x")
        assert element.open_tag() == '<input type="checkbox" checked class="x">'

    def test_attribute_values_are_escaped(self) -> None:
        element = h("a", "x", href='/?a=1&b="2"')
        assert element.open_tag() == '<a href="/?a=1&amp;b=&#34;2&#34;">'

    def test_data_attributes(self) -> None:
        assert h("div", data_role="main").open_tag() == '<div data-role="main">'

    async def test_void_elements_have_no_closing_tag(self) -> None:
        chunks = [part async for part in h("br").stream()]
        assert chunks == ["<br>"]

    def test_void_elements_reject_children(self) -> None:
        with pytest.raises(ValueError, match="void element"):
            h("br", "text")

    @pytest.mark.parametrize("tag", ["", "1h", "h1 onclick", "<h1>"])
    def test_invalid_tag_names_rejected(self, tag: str) -> None:
        with pytest.raises(ValueError, match="Invalid tag name"):
            h(tag)


@pytest.mark.unit
class TestStreamingRenderer:
    async def test_renders_element_chunk_by_chunk(self) -> None:
        producer = StreamingRenderer().render(h("h1", "Hello, Streaming SSR"))
        assert await chunks_of(producer) == [b"<h1>", b"Hello, Streaming SSR", b"</h1>"]

    async def test_renders_plain_text(self) -> None:
        assert await chunks_of(StreamingRenderer().render("<p>hi</p>")) == [b"<p>hi</p>"]

    async def test_renders_iterables(self) -> None:
        producer = StreamingRenderer().render(["a", b"b", ""])
        assert await chunks_of(producer) == [b"a", b"b"]

    async def test_renders_async_iterables(self) -> None:
        async def parts() -> AsyncIterator[str]:
            yield "x"
            yield "y"

        assert await chunks_of(StreamingRenderer().render(parts())) == [b"x", b"y"]

    def test_unsupported_content_fails_before_streaming(self) -> None:
        with pytest.raises(RenderFailure) as exc_info:
            StreamingRenderer().render(42)  # type: ignore[arg-type]

        assert exc_info.value.details == {"content_type": "int"}
        assert exc_info.value.status_code == 500

    async def test_nothing_is_rendered_until_pulled(self) -> None:
        produced = []

        async def parts() -> AsyncIterator[str]:
            produced.append("first")
            yield "first"

        producer = StreamingRenderer().render(parts())
        assert produced == []
        assert await producer.__anext__() == b"first"
        assert produced == ["first"]

    async def test_fault_while_producing_becomes_render_failure(self) -> None:
        async def parts() -> AsyncIterator[str]:
            yield "<h1>"
            raise KeyError("missing")

        producer = StreamingRenderer().render(parts())
        assert await producer.__anext__() == b"<h1>"

        with pytest.raises(RenderFailure) as exc_info:
            await producer.__anext__()

        assert isinstance(exc_info.value.__cause__, KeyError)
        assert exc_info.value.details == {"chunks": 1}

    async def test_render_failure_is_not_wrapped_twice(self) -> None:
        async def parts() -> AsyncIterator[str]:
            raise RenderFailure("already a render failure")
            yield ""

        with pytest.raises(RenderFailure, match="already a render failure"):
            await chunks_of(StreamingRenderer().render(parts()))

    async def test_bad_chunk_type_becomes_render_failure(self) -> None:
        with pytest.raises(RenderFailure):
            await chunks_of(StreamingRenderer().render([1, 2]))

    async def test_closing_producer_closes_source(self) -> None:
        finalized = []

        async def parts() -> AsyncIterator[str]:
            try:
                yield "a"
                yield "b"
            finally:
                finalized.append(True)

        producer = StreamingRenderer().render(parts())
        await producer.__anext__()
        await producer.aclose()  # type: ignore[attr-defined]

        assert finalized == [True]


@pytest.mark.unit
class TestTemplates:
    async def test_template_from_string(self) -> None:
        page = TemplateRenderable.from_string("<h1>{{ heading }}</h1>", heading="Hi")
        html = b"".join(await chunks_of(StreamingRenderer().render(page)))
        assert html == b"<h1>Hi</h1>"

    async def test_template_context_is_escaped(self) -> None:
        page = TemplateRenderable.from_string("<p>{{ text }}</p>", text="<b>")
        html = b"".join(await chunks_of(StreamingRenderer().render(page)))
        assert html == b"<p>&lt;b&gt;</p>"

    async def test_template_from_file(self, tmp_path) -> None:
        (tmp_path / "index.html").write_text("<main>{{ heading }}</main>")
        page = TemplateRenderable.from_file(tmp_path, "index.html", heading="Files")
        html = b"".join(await chunks_of(StreamingRenderer().render(page)))
        assert html == b"<main>Files</main>"

    def test_sync_environment_rejected(self) -> None:
        from jinja2 import Environment

        with pytest.raises(ValueError, match="enable_async"):
            TemplateRenderable(Environment().from_string("x"))

    async def test_template_error_becomes_render_failure(self) -> None:
        page = TemplateRenderable.from_string("{{ 1 // 0 }}")
        with pytest.raises(RenderFailure):
            await chunks_of(StreamingRenderer().render(page))
