"""Tests for the text importers."""

import pytest

from school_library_mcp.importers import (
    ParseFailure,
    SamplingTextImporter,
    TabularTextImporter,
    build_importer,
    check_import_text,
    extract_json_array,
)


class TestCheckImportText:
    def test_strips_whitespace(self):
        assert check_import_text("  Dune\tFrank Herbert \n") == "Dune\tFrank Herbert"

    @pytest.mark.parametrize("text", ["", "   \n\t ", None])
    def test_empty_text(self, text):
        with pytest.raises(ParseFailure, match="empty"):
            check_import_text(text)

    def test_too_long(self):
        with pytest.raises(ParseFailure, match="limit is 10"):
            check_import_text("x" * 11, max_chars=10)


class TestTabularBooks:
    @pytest.fixture
    def importer(self):
        return TabularTextImporter()

    async def test_tab_separated_with_header(self, importer):
        text = "Title\tAuthor\nDune\tFrank Herbert\nEmma\tJane Austen\n"

        books = await importer.parse_books(text)

        assert [(b.title, b.author) for b in books] == [
            ("Dune", "Frank Herbert"),
            ("Emma", "Jane Austen"),
        ]
        assert all(b.cover_image == "" for b in books)

    @pytest.mark.parametrize(
        "line",
        [
            "Dune;Frank Herbert",
            "Dune - Frank Herbert",
            "Dune, Frank Herbert",
            "Dune by Frank Herbert",
        ],
    )
    async def test_line_formats(self, importer, line):
        (book,) = await importer.parse_books(line)
        assert (book.title, book.author) == ("Dune", "Frank Herbert")

    async def test_title_containing_by(self, importer):
        (book,) = await importer.parse_books("Stand by Me by Stephen King")
        assert (book.title, book.author) == ("Stand by Me", "Stephen King")

    async def test_cover_column(self, importer):
        (book,) = await importer.parse_books("Dune\tFrank Herbert\thttps://picsum.photos/7")
        assert book.cover_image == "https://picsum.photos/7"

    async def test_non_url_third_column_ignored(self, importer):
        (book,) = await importer.parse_books("Dune\tFrank Herbert\t1965")
        assert book.cover_image == ""

    async def test_blank_lines_skipped(self, importer):
        books = await importer.parse_books("Dune\tFrank Herbert\n\n\nEmma\tJane Austen")
        assert len(books) == 2

    async def test_unreadable_line(self, importer):
        with pytest.raises(ParseFailure, match="Line 2"):
            await importer.parse_books("Dune\tFrank Herbert\nJust a title")

    async def test_header_only(self, importer):
        with pytest.raises(ParseFailure, match="No books found"):
            await importer.parse_books("Title\tAuthor")


class TestTabularStudents:
    @pytest.fixture
    def importer(self):
        return TabularTextImporter()

    async def test_one_name_per_line(self, importer):
        students = await importer.parse_students("Eve\nFrank\n")
        assert [s.name for s in students] == ["Eve", "Frank"]

    async def test_header_and_id_column(self, importer):
        students = await importer.parse_students("ID\tName\n7\tEve\n8\tFrank Li")
        assert [s.name for s in students] == ["Eve", "Frank Li"]

    async def test_row_without_name(self, importer):
        with pytest.raises(ParseFailure, match="Line 2"):
            await importer.parse_students("Eve\n42")

    async def test_empty(self, importer):
        with pytest.raises(ParseFailure):
            await importer.parse_students("  ")


class TestExtractJsonArray:
    def test_plain_array(self):
        assert extract_json_array('[{"name": "Eve"}]') == [{"name": "Eve"}]

    def test_fenced_array(self):
        response = '```json\n[{"title": "Dune", "author": "Frank Herbert"}]\n```'
        assert extract_json_array(response) == [{"title": "Dune", "author": "Frank Herbert"}]

    def test_invalid_json(self):
        with pytest.raises(ParseFailure, match="valid JSON"):
            extract_json_array("Here are your books!")

    def test_not_an_array(self):
        with pytest.raises(ParseFailure, match="not an array"):
            extract_json_array('{"title": "Dune"}')


class TestSamplingImporter:
    async def test_books_from_model(self, sampling_context_factory):
        context = sampling_context_factory(
            response_text=(
                '[{"title": "Dune", "author": "Frank Herbert",'
                ' "coverImage": "https://picsum.photos/seed/dune/300/400"}]'
            )
        )
        importer = SamplingTextImporter(context)

        (book,) = await importer.parse_books("Dune, Frank Herbert")

        assert book.title == "Dune"
        assert book.cover_image == "https://picsum.photos/seed/dune/300/400"
        create_message = context.request_context.session.create_message
        messages = create_message.call_args.args[0]
        assert "Dune, Frank Herbert" in messages[0].content.text
        assert "JSON array" in create_message.call_args.kwargs["system_prompt"]

    async def test_students_from_model(self, sampling_context_factory):
        context = sampling_context_factory(response_text='[{"name": "Eve"}, {"name": "Frank"}]')

        students = await SamplingTextImporter(context).parse_students("Eve and Frank")

        assert [s.name for s in students] == ["Eve", "Frank"]

    async def test_falls_back_without_sampling(self, sampling_context_factory):
        context = sampling_context_factory(sampling=False)

        books = await SamplingTextImporter(context).parse_books("Dune\tFrank Herbert")

        assert books[0].author == "Frank Herbert"
        context.request_context.session.create_message.assert_not_called()

    async def test_model_returns_bad_shape(self, sampling_context_factory):
        context = sampling_context_factory(response_text='[{"title": "Dune"}]')

        with pytest.raises(ParseFailure, match="Unexpected book data"):
            await SamplingTextImporter(context).parse_books("Dune")

    async def test_model_returns_empty_array(self, sampling_context_factory):
        context = sampling_context_factory(response_text="[]")

        with pytest.raises(ParseFailure, match="No students found"):
            await SamplingTextImporter(context).parse_students("nobody")

    async def test_empty_text_never_reaches_model(self, sampling_context_factory):
        context = sampling_context_factory()
        with pytest.raises(ParseFailure, match="empty"):
            await SamplingTextImporter(context).parse_books("   ")


class TestBuildImporter:
    def test_sampling_enabled(self, sampling_context_factory):
        importer = build_importer(sampling_context_factory(), enable_sampling=True)
        assert isinstance(importer, SamplingTextImporter)
        assert isinstance(importer.fallback, TabularTextImporter)

    def test_sampling_disabled(self, sampling_context_factory):
        importer = build_importer(sampling_context_factory(), enable_sampling=False)
        assert isinstance(importer, TabularTextImporter)

    def test_no_context(self):
        assert isinstance(build_importer(None), TabularTextImporter)

    def test_max_chars_passed_through(self):
        assert build_importer(None, max_chars=50).max_chars == 50
