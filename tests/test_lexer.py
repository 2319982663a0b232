import pytest
from pydantic import ValidationError

from apidoc.errors import ApidocError, ErrorKind
from apidoc.parser.lexer import Block, lex, lex_text, new_tag


class TestLex:
    def test_splits_tags_in_order(self):
        tags = lex_text("@api GET /users list users\n@apiGroup users\n@apiResponse 200 object json")
        assert [t.name for t in tags] == ["api", "apiGroup", "apiResponse"]
        assert tags[0].body == "GET /users list users"

    def test_multiline_body_keeps_indentation(self):
        tags = lex_text('@apiExample json sample\n{\n    "id": 1\n}\n@apiHeader ETag optional')
        assert len(tags) == 2
        assert tags[0].body == 'json sample\n{\n    "id": 1\n}'
        assert tags[1].name == "apiHeader"

    def test_text_before_first_tag_ignored(self):
        tags = lex_text("some prose\n@apiGroup users")
        assert len(tags) == 1
        assert tags[0].body == "users"

    def test_unknown_tag_is_lexed(self):
        tags = lex_text("@apiUnknown xxx")
        assert tags[0].name == "apiUnknown"
        assert tags[0].body == "xxx"

    def test_trailing_whitespace_trimmed(self):
        tags = lex_text("@apiResponse 200 array.object * \n\n")
        assert tags[0].body == "200 array.object *"

    def test_tag_like_line_always_starts_new_tag(self):
        tags = lex_text("@apiExample json sample\n{\n@apiParam x\n}")
        assert len(tags) == 2
        assert tags[0].body == "json sample\n{"
        assert tags[1].body == "x\n}"

    def test_email_inside_body_is_text(self):
        tags = lex_text("@apiDescription contact\nsupport@example.com")
        assert len(tags) == 1
        assert tags[0].body == "contact\nsupport@example.com"

    def test_empty_block(self):
        assert lex_text("") == []


class TestLocations:
    def test_line_and_column(self):
        block = Block(text="intro\n  @apiGroup users\n@apiDescription d", file="a.go", line=10, column=3)
        tags = lex(block)
        assert (tags[0].file, tags[0].line, tags[0].column) == ("a.go", 11, 2)
        assert (tags[1].line, tags[1].column) == (12, 0)

    def test_first_line_uses_block_column(self):
        tags = lex(Block(text="@apiGroup users", line=5, column=4))
        assert (tags[0].line, tags[0].column) == (5, 4)


class TestMalformed:
    def test_malformed_header_raises(self):
        with pytest.raises(ApidocError) as exc:
            lex(Block(text="ok\n@apiParam: id int", file="a.go", line=1))
        assert exc.value.kind == ErrorKind.LEX_ERROR
        assert exc.value.file == "a.go"
        assert exc.value.line == 2


class TestTag:
    def test_new_tag(self):
        tag = new_tag("@apiGroup users")
        assert tag.name == "apiGroup"
        assert tag.body == "users"

    def test_new_tag_without_header(self):
        tag = new_tag("application/json")
        assert tag.name == ""
        assert tag.body == "application/json"

    def test_tags_are_immutable(self):
        tag = new_tag("@apiGroup users")
        with pytest.raises(ValidationError):
            tag.name = "apiParam"
