import json
from pathlib import Path

import pytest
import yaml

from apidoc.builder import build, render
from apidoc.errors import ApidocError, ErrorKind
from apidoc.openapi.exporter import export, export_content, export_responses, export_schema
from apidoc.openapi.reader import load_openapi, read_openapi, read_schema
from apidoc.parser.base import API, Doc, Example, Header, Param, Response, Type, TypeKind
from apidoc.parser.lexer import Block
from apidoc.parser.types import parse_type
from apidoc.scanner import Languages, find_files, scan_file

FIXTURES = Path(__file__).parent / "fixtures"

SHARED_STATUS = """@api GET /a read a
@apiResponse 200 object application/json first
@apiHeader ETag optional first tag
@apiParam id int required id
@apiExample application/json ok
{"id": 1}
@apiResponse 200 array.string application/json second
@apiHeader ETag required second tag
@apiExample application/json ok
["x"]"""


@pytest.fixture
def document():
    languages = Languages.default()
    blocks = []
    for path in find_files(FIXTURES / "project" / "src", [".go"]):
        blocks.extend(scan_file(path, languages))
    return build(blocks)


class TestExportFixture:
    def test_top_level(self, document):
        data = document.to_dict()
        assert data["openapi"] == "3.0.1"
        assert data["info"] == {
            "title": "User Directory",
            "description": "Users and their profiles.",
            "version": "1.2.0",
            "license": {"name": "MIT", "url": "https://opensource.org/licenses/MIT"},
        }
        assert data["servers"] == [{"url": "https://api.example.com", "description": "production"}]
        assert data["tags"] == [{"name": "users", "description": "user management"}]
        assert set(data["paths"]) == {"/users", "/users/{id}"}
        assert set(data["paths"]["/users"]) == {"get", "post"}

    def test_list_operation(self, document):
        op = document.to_dict()["paths"]["/users"]["get"]
        assert op["tags"] == ["users"]
        assert op["summary"] == "list users"
        assert op["parameters"] == [
            {"name": "page", "in": "query", "description": "page number", "schema": {"type": "number"}}
        ]
        schema = op["responses"]["200"]["content"]["application/json"]["schema"]
        assert schema["type"] == "array"
        assert schema["description"] == "user list"
        assert schema["items"]["required"] == ["id", "name"]
        assert schema["items"]["properties"]["id"] == {"type": "number", "description": "user id"}

    def test_shared_response_referenced(self, document):
        data = document.to_dict()
        assert data["components"]["responses"]["500"]["description"] == "server error"
        for item in data["paths"].values():
            for op in item.values():
                assert op["responses"]["500"] == {"$ref": "#/components/responses/500"}

    def test_get_operation(self, document):
        op = document.to_dict()["paths"]["/users/{id}"]["get"]
        assert op["parameters"] == [
            {"name": "id", "in": "path", "description": "user id", "required": True, "schema": {"type": "number"}},
            {
                "name": "Authorization",
                "in": "header",
                "description": "bearer token",
                "required": True,
                "schema": {"type": "string"},
            },
        ]
        ok = op["responses"]["200"]
        assert ok["description"] == "the user"
        assert ok["headers"] == {"ETag": {"description": "entity tag", "schema": {"type": "string"}}}
        media = ok["content"]["application/json"]
        assert media["schema"]["required"] == ["id", "name"]
        assert media["examples"]["a user"]["value"] == '{\n    "id": 1,\n    "name": "name"\n}'
        assert op["responses"]["404"] == {"description": "no such user"}

    def test_request_body(self, document):
        op = document.to_dict()["paths"]["/users"]["post"]
        body = op["requestBody"]
        assert body["description"] == "new user"
        assert body["required"] is True
        schema = body["content"]["application/json"]["schema"]
        assert schema["required"] == ["name"]
        assert schema["properties"]["profile"]["properties"]["bio"] == {"type": "string", "description": "biography"}
        created = op["responses"]["201"]
        assert created["headers"]["Location"]["required"] is True
        assert "content" not in created

    def test_render_formats(self, document):
        assert json.loads(render(document, "json")) == document.to_dict()
        assert yaml.safe_load(render(document, "yaml")) == document.to_dict()


class TestRoundTrip:
    def test_read_back(self, document):
        data = document.to_dict()
        doc = read_openapi(data)
        assert doc.title == "User Directory"
        assert [r.status for r in doc.responses] == [500]
        assert [(a.method, a.path) for a in doc.apis] == [("GET", "/users"), ("POST", "/users"), ("GET", "/users/{id}")]
        get_one = doc.apis[2]
        assert [r.status for r in get_one.responses] == [200, 404]
        assert get_one.responses[1].type.kind == TypeKind.NONE

        expected = {k: v for k, v in data.items() if k != "openapi"}
        assert export(doc).to_dict() == expected

    def test_load_file(self, document, tmp_path):
        path = tmp_path / "openapi.yaml"
        path.write_text(render(document, "yaml"), encoding="utf-8")
        doc = load_openapi(path)
        assert len(doc.apis) == 3
        assert doc.license.name == "MIT"

    def test_shared_status_keeps_every_response(self):
        data = build([Block(text="@apidoc t"), Block(text=SHARED_STATUS, file="a.go")]).to_dict()
        resp = data["paths"]["/a"]["get"]["responses"]["200"]
        assert resp["description"] == "first"
        assert list(resp["headers"]) == ["ETag", "ETag-1"]
        media = resp["content"]["application/json"]
        assert [s["type"] for s in media["schema"]["oneOf"]] == ["object", "array"]
        assert {k: v["value"] for k, v in media["examples"].items()} == {"ok": '{"id": 1}', "ok-1": '["x"]'}

        api = read_openapi(data).apis[0]
        assert [r.status for r in api.responses] == [200, 200]
        first, second = api.responses
        assert (first.type.kind, first.type.description) == (TypeKind.OBJECT, "first")
        assert list(first.type.properties) == ["id"]
        assert (second.type.kind, second.type.description) == (TypeKind.ARRAY, "second")
        assert second.type.items.kind == TypeKind.STRING
        assert second.mimetype == "application/json"
        assert [e.value for e in first.examples] == ['{"id": 1}', '["x"]']
        assert len(first.headers) == 2

    def test_generated_description_not_read_back(self):
        data = build([Block(text="@apidoc t"), Block(text="@api GET /a\n@apiResponse 200 string text/plain")]).to_dict()
        assert data["paths"]["/a"]["get"]["responses"]["200"]["description"] == "OK"
        resp = read_openapi(data).apis[0].responses[0]
        assert resp.type.kind == TypeKind.STRING
        assert resp.type.description == ""

    def test_schema_description_read_back(self):
        typ = read_schema({"type": "object", "description": "user", "properties": {"id": {"type": "number", "description": "id"}}})
        assert typ.description == "user"
        assert typ.properties["id"].description == "id"
        assert typ.properties["id"].type.description == ""

    @pytest.mark.parametrize(
        "schema, kind",
        [
            ({}, TypeKind.ANY),
            ({"nullable": True}, TypeKind.NONE),
            ({"type": "integer"}, TypeKind.NUMBER),
            ({"type": "boolean"}, TypeKind.BOOL),
        ],
    )
    def test_read_schema(self, schema, kind):
        assert read_schema(schema).kind == kind


class TestExportSchema:
    def test_any_is_empty_schema(self):
        assert export_schema(parse_type("*")).model_dump(by_alias=True, exclude_defaults=True) == {}

    def test_none_is_nullable(self):
        assert export_schema(parse_type("none")).nullable is True

    def test_array_items(self):
        schema = export_schema(parse_type("array.array.string"))
        assert schema.items.items.type == "string"

    def test_required_from_optional_flag(self):
        typ = parse_type("object")
        typ.properties["a"] = Param(name="a", type=parse_type("string"))
        typ.properties["b"] = Param(name="b", type=parse_type("string"), optional=True)
        assert export_schema(typ).required == ["a"]


class TestExportContent:
    def test_example_names(self):
        resp = Response(
            status=200,
            mimetype="application/json",
            type=parse_type("object"),
            examples=[
                Example(mimetype="application/json", summary="one", value="1"),
                Example(mimetype="application/json", summary="one", value="2"),
                Example(mimetype="application/xml", value="<a/>"),
            ],
        )
        content = export_content(resp)
        assert list(content["application/json"].examples) == ["one", "one-1"]
        assert list(content["application/xml"].examples) == ["application/xml"]

    def test_example_names_never_collide(self):
        resp = Response(
            status=200,
            mimetype="json",
            type=parse_type("string"),
            examples=[
                Example(mimetype="json", summary="a-2", value="1"),
                Example(mimetype="json", summary="a", value="2"),
                Example(mimetype="json", summary="a", value="3"),
            ],
        )
        examples = export_content(resp)["json"].examples
        assert {k: v.value for k, v in examples.items()} == {"a-2": "1", "a": "2", "a-3": "3"}

    def test_same_status_shares_equal_headers(self):
        responses = [
            Response(status=200, mimetype="json", type=parse_type("string"), headers=[Header(name="ETag")]),
            Response(status=200, mimetype="json", type=parse_type("number"), headers=[Header(name="ETag")]),
            Response(status=200, mimetype="xml", type=parse_type("string")),
        ]
        merged = export_responses(responses)["200"]
        assert list(merged.headers) == ["ETag"]
        assert [s.type for s in merged.content["json"].schema_.one_of] == ["string", "number"]
        assert merged.content["xml"].schema_.type == "string"

    def test_star_mimetype(self):
        resp = Response(status=200, mimetype="*", type=parse_type("string"))
        assert list(export_content(resp)) == ["*/*"]

    def test_none_body_has_no_content(self):
        assert export_content(Response(status=204, mimetype="*", type=Type(kind=TypeKind.NONE))) == {}


class TestExportErrors:
    def test_duplicate_method(self):
        doc = Doc(
            title="t",
            version="1.0.0",
            apis=[
                API(method="GET", path="/a", file="a.go", line=1),
                API(method="GET", path="/a", file="b.go", line=9),
            ],
        )
        with pytest.raises(ApidocError) as exc:
            export(doc)
        assert exc.value.kind == ErrorKind.DUPLICATE_REFERENCE
        assert exc.value.field == "paths[/a].get"
        assert (exc.value.file, exc.value.line) == ("b.go", 9)

    def test_conflicting_shared_responses(self):
        doc = Doc(
            title="t",
            responses=[
                Response(status=500, mimetype="json", type=parse_type("string", "a")),
                Response(status=500, mimetype="json", type=parse_type("string", "b")),
            ],
            apis=[API(method="GET", path="/a")],
        )
        with pytest.raises(ApidocError) as exc:
            export(doc)
        assert exc.value.field == "components.responses[500]"

    def test_identical_shared_responses_merge(self):
        resp = Response(status=500, mimetype="json", type=parse_type("string", "a"))
        doc = Doc(title="t", responses=[resp, resp.model_copy()], apis=[API(method="GET", path="/a")])
        assert list(export(doc).components.responses) == ["500"]

    def test_undeclared_group_becomes_tag(self):
        doc = Doc(title="t", apis=[API(method="GET", path="/a", group="misc")])
        assert [t.name for t in export(doc).tags] == ["misc"]
