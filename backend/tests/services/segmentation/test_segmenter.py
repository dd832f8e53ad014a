from docreel.models import ChunkStatus
from docreel.services.segmentation import segment
from docreel.services.segmentation.segmenter import extract_title, is_heading, segment_by_paragraphs


class TestIsHeading:
    def test_capitalised_line_without_period(self):
        assert is_heading("Chapter One")

    def test_sentence_is_not_heading(self):
        assert not is_heading("Hello there. This is great.")

    def test_numbered_heading(self):
        assert is_heading("1. introduction to the topic.")

    def test_all_caps_heading(self):
        assert is_heading("OVERVIEW")

    def test_long_line_is_not_heading(self):
        assert not is_heading("A" * 100)


class TestExtractTitle:
    def test_short_first_sentence(self):
        assert extract_title("Short sentence. Another one.") == "Short sentence"

    def test_long_first_sentence_uses_prefix(self):
        text = "x" * 80 + ". tail"
        assert extract_title(text) == "x" * 50 + "..."


class TestSegment:
    def test_heading_based_split(self):
        text = "Intro\nHello there. This is great.\n\nChapter One\nMore content here."
        chunks = segment(text)

        assert [c.title for c in chunks] == ["Intro", "Chapter One"]
        assert chunks[0].content == "Hello there. This is great."
        assert chunks[1].content == "More content here."
        assert [c.order for c in chunks] == [0, 1]
        assert all(c.status == ChunkStatus.PENDING for c in chunks)

    def test_content_before_first_heading_is_titled_from_text(self):
        chunks = segment("just some words here.\nChapter Two\nbody text.")
        assert chunks[0].title == "just some words here"
        assert chunks[1].title == "Chapter Two"

    def test_consecutive_headings_keep_last(self):
        chunks = segment("Part One\nPart Two\nthe body.")
        assert len(chunks) == 1
        assert chunks[0].title == "Part Two"

    def test_empty_text_gives_no_chunks(self):
        assert segment("") == []
        assert segment("   \n\n  ") == []

    def test_any_text_gives_at_least_one_chunk(self):
        chunks = segment("lowercase words only, no period")
        assert len(chunks) == 1
        assert chunks[0].order == 0

    def test_ids_are_unique(self):
        chunks = segment("One\nfirst body.\nTwo\nsecond body.\nThree\nthird body.")
        assert len({c.id for c in chunks}) == len(chunks) == 3


class TestParagraphFallback:
    def test_paragraphs_are_packed_under_limit(self):
        paragraph = "word " * 120  # ~600 chars
        chunks = segment_by_paragraphs(f"{paragraph}\n\n{paragraph}\n\n{paragraph}")

        assert len(chunks) == 3
        assert all(len(c.content) <= 1000 for c in chunks)

    def test_small_paragraphs_share_a_chunk(self):
        chunks = segment_by_paragraphs("first paragraph.\n\nsecond paragraph.")
        assert len(chunks) == 1
        assert chunks[0].content == "first paragraph.\n\nsecond paragraph."
