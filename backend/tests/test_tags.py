"""
Tests for the Tag Processor and Include Resolver.

Requires Python 3.11+.
"""

from pathlib import Path

import pytest

from tags.errors import (
    CircularIncludeError,
    IncludeNotFoundError,
    MalformedTagError,
    UnknownTagError,
)
from tags.models import ErrorKind, TagKind
from tags.processor import TagProcessor, scan
from tags.resolver import IncludeResolver


class TestTagProcessor:
    """Test cases for TagProcessor.expand."""

    @pytest.fixture
    def processor(self) -> TagProcessor:
        """Create a processor instance."""
        return TagProcessor()

    def test_text_without_directives_is_unchanged(self, processor: TagProcessor, site: Path):
        """Test that plain text passes through untouched."""
        text = "<html>\n<!-- ordinary comment -->\n<p>Body</p>\n</html>"
        result = processor.expand(site / "plain.dnaweb", text)

        assert result.text == text
        assert result.output_paths == ()
        assert result.is_partial is False

    def test_include_and_output(self, processor: TagProcessor, site: Path):
        """Test the header include example end to end."""
        path = site / "home.dnaweb"
        result = processor.expand(path, path.read_text())

        assert result.text == "<h1>Hi</h1>Hello"
        assert result.output_paths == (site / "index.html",)
        assert result.is_partial is False

    def test_partial_as_first_tag(self, processor: TagProcessor, site: Path):
        """Test that a leading partial tag marks the file partial."""
        result = processor.expand(site / "nav.dnaweb", "<!--@ partial --><nav></nav>")

        assert result.is_partial is True
        assert result.text == "<nav></nav>"

    def test_partial_not_first_is_ignored(self, processor: TagProcessor, site: Path):
        """Test that a partial tag after another tag does not mark the file."""
        text = "<!--@ output a.html -->A<!--@ partial -->B"
        result = processor.expand(site / "page.dnaweb", text)

        assert result.is_partial is False
        assert result.text == "AB"

    def test_partial_from_include_is_ignored(self, processor: TagProcessor, write_file):
        """Test that a partial tag arriving through an include does not mark the parent."""
        write_file("fragment.html", "<!--@ partial --><footer></footer>")
        page = write_file("page.dnaweb", "<!--@ include fragment.html -->Body")

        result = processor.expand(page, page.read_text())

        assert result.is_partial is False
        assert result.text == "<footer></footer>Body"

    def test_nested_includes_are_expanded(self, processor: TagProcessor, write_file):
        """Test that tags spliced in by an include are expanded in the same pass."""
        write_file("nav.html", "<nav/>")
        write_file("layout.html", "<header><!--@ include nav.html --></header>")
        page = write_file("page.dnaweb", "<!--@ include layout.html --><main/>")

        result = processor.expand(page, page.read_text())

        assert result.text == "<header><nav/></header><main/>"

    def test_direct_circular_include(self, processor: TagProcessor, write_file):
        """Test A includes B includes A."""
        a = write_file("a.dnaweb", "A<!--@ include b.html -->")
        write_file("b.html", "B<!--@ include a.dnaweb -->")

        with pytest.raises(CircularIncludeError) as exc_info:
            processor.expand(a, a.read_text())

        assert exc_info.value.kind is ErrorKind.CIRCULAR_INCLUDE

    def test_self_include_is_circular(self, processor: TagProcessor, write_file):
        """Test a file that includes itself."""
        page = write_file("self.dnaweb", "<!--@ include self.dnaweb -->")

        with pytest.raises(CircularIncludeError):
            processor.expand(page, page.read_text())

    def test_same_include_twice_is_circular(self, processor: TagProcessor, write_file):
        """Test that repeating an include, even side by side, is rejected."""
        page = write_file(
            "page.dnaweb",
            "<!--@ include header.html --><hr/><!--@ include header.html -->",
        )

        with pytest.raises(CircularIncludeError):
            processor.expand(page, page.read_text())

    def test_include_chain_ignores_case_and_whitespace(self, processor: TagProcessor, write_file):
        """Test that include paths are compared case-insensitively."""
        page = write_file(
            "page.dnaweb",
            "<!--@ include header.html --><!--@ include   HEADER.HTML -->",
        )

        with pytest.raises(CircularIncludeError):
            processor.expand(page, page.read_text())

    def test_missing_include(self, processor: TagProcessor, write_file):
        """Test that a missing include aborts the expansion."""
        page = write_file("page.dnaweb", "<!--@ output out.html --><!--@ include missing.txt -->")

        with pytest.raises(IncludeNotFoundError) as exc_info:
            processor.expand(page, page.read_text())

        assert "missing.txt" in str(exc_info.value)
        assert exc_info.value.kind is ErrorKind.INCLUDE_NOT_FOUND

    def test_multiple_outputs_keep_declaration_order(self, processor: TagProcessor, site: Path):
        """Test that output tags accumulate in order."""
        text = "<!--@ output a.html --><!--@ output b.html -->Body"
        result = processor.expand(site / "page.dnaweb", text)

        assert result.output_paths == (site / "a.html", site / "b.html")
        assert result.text == "Body"

    def test_output_paths_are_normalised(self, processor: TagProcessor, site: Path):
        """Test that relative output paths are resolved against the source directory."""
        text = "<!--@ output ../public/./index.html -->"
        result = processor.expand(site / "pages" / "home.dnaweb", text)

        assert result.output_paths == (site / "public" / "index.html",)

    def test_unknown_tag(self, processor: TagProcessor, site: Path):
        """Test that an unrecognised directive fails."""
        with pytest.raises(UnknownTagError) as exc_info:
            processor.expand(site / "page.dnaweb", "<!--@ frobnicate x -->")

        assert exc_info.value.tag == "<!--@ frobnicate x -->"

    @pytest.mark.parametrize("text", ["<!--@ include -->", "<!--@ output   -->"])
    def test_missing_argument_is_malformed(self, processor: TagProcessor, site: Path, text: str):
        """Test that include and output require an argument."""
        with pytest.raises(MalformedTagError):
            processor.expand(site / "page.dnaweb", text)

    def test_directive_names_are_case_insensitive(self, processor: TagProcessor, site: Path):
        """Test upper-case directive names."""
        result = processor.expand(site / "page.dnaweb", "<!--@ INCLUDE header.html --><!--@ Partial -->")

        assert result.text == "<h1>Hi</h1>"

    def test_compact_and_spaced_markers(self, processor: TagProcessor, site: Path):
        """Test tags without inner spaces and with a space before the at sign."""
        result = processor.expand(
            site / "page.dnaweb",
            "<!--@include header.html--><!-- @ output x.html -->",
        )

        assert result.text == "<h1>Hi</h1>"
        assert result.output_paths == (site / "x.html",)

    def test_tags_do_not_span_lines(self, processor: TagProcessor, site: Path):
        """Test that an argument on the next line is not a tag."""
        text = "<!--@ include\nheader.html -->"
        result = processor.expand(site / "page.dnaweb", text)

        assert result.text == text

    @pytest.mark.parametrize(
        "text",
        ["<!--@ include header.html\n-->", "<!--@\ninclude header.html -->", "<!--\n@ include header.html -->"],
    )
    def test_markers_do_not_span_lines(self, processor: TagProcessor, site: Path, text: str):
        """Test that a line break anywhere inside the comment prevents a match."""
        result = processor.expand(site / "page.dnaweb", text)

        assert result.text == text

    def test_unresolvable_include_name(self, processor: TagProcessor, site: Path):
        """Test that an include the OS cannot look up is not found."""
        with pytest.raises(IncludeNotFoundError):
            processor.expand(site / "page.dnaweb", "<!--@ include " + "x" * 300 + ".html -->")

    def test_argument_stops_at_first_closing_marker(self, processor: TagProcessor, site: Path):
        """Test that the argument never contains the closing marker."""
        result = processor.expand(site / "page.dnaweb", "<!--@ output a.html --> tail -->")

        assert result.output_paths == (site / "a.html",)
        assert result.text == " tail -->"

    def test_surrounding_text_is_preserved(self, processor: TagProcessor, site: Path):
        """Test that expansion only touches tag spans."""
        text = "line one\n  <!--@ include header.html -->\nline three\n"
        result = processor.expand(site / "page.dnaweb", text)

        assert result.text == "line one\n  <h1>Hi</h1>\nline three\n"

    def test_resolved_includes(self, processor: TagProcessor, write_file, site: Path):
        """Test collecting include targets without expansion."""
        write_file("nav.html", "<!--@ include deep.html -->")
        page = write_file(
            "page.dnaweb",
            "<!--@ partial --><!--@ output o.html --><!--@ include header.html -->"
            "<!--@ include nav.html --><!--@ include gone.html --><!--@ weird -->",
        )

        targets = processor.resolved_includes(page, page.read_text())

        assert targets == {site / "header.html", site / "nav.html"}


class TestScan:
    """Test cases for scanning tags without expansion."""

    def test_scan_lists_tags_in_order(self):
        """Test that scan reports every tag with its span."""
        text = "<!--@ partial -->x<!--@ include a.html -->"
        tags = list(scan(text))

        assert [t.kind for t in tags] == [TagKind.PARTIAL, TagKind.INCLUDE]
        assert tags[1].argument == "a.html"
        assert text[tags[1].start : tags[1].end] == tags[1].raw

    def test_scan_reports_unknown_names(self):
        """Test that unknown names are returned with no kind."""
        tags = list(scan("<!--@ mystery thing -->"))

        assert len(tags) == 1
        assert tags[0].kind is None
        assert tags[0].name == "mystery"


class TestIncludeResolver:
    """Test cases for IncludeResolver."""

    @pytest.fixture
    def resolver(self) -> IncludeResolver:
        """Create a resolver instance."""
        return IncludeResolver()

    def test_resolve_reads_content(self, resolver: IncludeResolver, site: Path):
        """Test resolving an include next to the source file."""
        resolved = resolver.resolve(site / "home.dnaweb", "header.html")

        assert resolved is not None
        assert resolved.path == site / "header.html"
        assert resolved.content == "<h1>Hi</h1>"

    def test_resolve_without_content(self, resolver: IncludeResolver, site: Path):
        """Test an existence-only lookup."""
        resolved = resolver.resolve(site / "home.dnaweb", "header.html", want_content=False)

        assert resolved is not None
        assert resolved.path == site / "header.html"
        assert resolved.content == ""

    def test_resolve_relative_subdirectory(self, resolver: IncludeResolver, write_file, site: Path):
        """Test includes in a parent directory."""
        page = write_file("blog/post.dnaweb", "")

        resolved = resolver.resolve(page, "../header.html")

        assert resolved is not None
        assert resolved.path == site / "header.html"

    def test_missing_file_returns_none(self, resolver: IncludeResolver, site: Path):
        """Test that a missing include is reported, not raised."""
        assert resolver.resolve(site / "home.dnaweb", "missing.txt") is None

    def test_directory_is_not_an_include(self, resolver: IncludeResolver, site: Path):
        """Test that a directory never resolves."""
        (site / "partials").mkdir()

        assert resolver.resolve(site / "home.dnaweb", "partials") is None

    def test_name_too_long_returns_none(self, resolver: IncludeResolver, site: Path):
        """Test that an over-long file name is missing rather than an error."""
        assert resolver.resolve(site / "home.dnaweb", "x" * 300 + ".html") is None
