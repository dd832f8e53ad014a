from docreel.services.parsing import (
    iter_json_objects,
    parse_json_response,
    repair_json_text,
    unwrap_code_fence,
)


class TestUnwrapCodeFence:
    def test_fenced_block_with_prose(self):
        text = 'Here you go:\n```json\n{"a": 1}\n```\nAnything else?'
        assert unwrap_code_fence(text) == '{"a": 1}'

    def test_plain_text_stripped(self):
        assert unwrap_code_fence('  {"a": 1}  ') == '{"a": 1}'


class TestIterJsonObjects:
    def test_object_inside_prose(self):
        text = 'Sure! {"title": "x", "n": {"deep": true}} hope that helps'
        assert list(iter_json_objects(text)) == [{"title": "x", "n": {"deep": True}}]

    def test_braces_inside_strings(self):
        assert next(iter_json_objects('{"text": "a } brace"} trailing')) == {"text": "a } brace"}

    def test_skips_leading_array(self):
        assert list(iter_json_objects('[{"inner": 1}] then {"outer": 2}')) == [{"outer": 2}]

    def test_nothing_decodes(self):
        assert list(iter_json_objects("no json {here")) == []


class TestRepairJsonText:
    def test_lone_backslashes_escaped(self):
        assert repair_json_text(r"C:\Users\Name") == r"C:\\Users\\Name"

    def test_valid_escapes_preserved(self):
        fixed = repair_json_text(r'{"a": "line\nbreak \u1234 \"q\""}')
        assert fixed == r'{"a": "line\nbreak \u1234 \"q\""}'

    def test_trailing_commas_dropped(self):
        assert repair_json_text('{"a": [1, 2,], }') == '{"a": [1, 2]}'


class TestParseJsonResponse:
    def test_fenced_object(self):
        text = '```json\n{"title": "Intro", "script_chunks": ["a"]}\n```'
        assert parse_json_response(text) == {"title": "Intro", "script_chunks": ["a"]}

    def test_invalid_escape_recovered(self):
        parsed = parse_json_response(r'{"path": "C:\data\docs"}')
        assert parsed == {"path": "C:\\data\\docs"}

    def test_garbage_returns_none(self):
        assert parse_json_response("the model refused") is None
        assert parse_json_response("{not json}") is None
        assert parse_json_response("") is None
        assert parse_json_response(None) is None
