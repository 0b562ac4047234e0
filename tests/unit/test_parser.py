"""Tests for the Via parser and the AST it builds."""

from pathlib import Path

import pytest

from via.core import ast
from via.core.dsl_parser_impl import parse_via
from via.core.errors import ParseError
from via.core.parser import parse_file, parse_files
from via.core.types import ActionStatus, AssociationKind

FILE = Path("app/post.via")

POST = """
resource Post {
  model {
    field title: String
    field body?: Text
    field views: Integer default: 0
    field secret: String serialize: false; field rating: Float? default: null
    belongs_to author
    belongs_to editor?: User
    belongs_to subject: polymorphic [Post, Image]
    has_many comments
  }

  controller {
    params {
      editable { title, body? }
      publish { title }
    }
    respond_with [html, json]
    actions auto_crud except [destroy]
    action show overridden
    action update ejected "handlers/posts.py:update_post"
    action publish
  }
}
"""


@pytest.fixture
def post() -> ast.ResourceDecl:
    source = parse_via(POST, FILE)
    assert len(source.resources) == 1
    return source.resources[0]


class TestModelBlock:
    def test_fields_keep_declaration_order(self, post: ast.ResourceDecl):
        model = post.models[0]
        assert [f.name for f in model.declared_fields] == [
            "title",
            "body",
            "views",
            "secret",
            "rating",
        ]

    def test_optional_markers(self, post: ast.ResourceDecl):
        fields = {f.name: f for f in post.models[0].declared_fields}
        assert not fields["title"].optional
        assert fields["body"].optional
        assert fields["rating"].type_optional

    def test_attributes(self, post: ast.ResourceDecl):
        fields = {f.name: f for f in post.models[0].declared_fields}
        assert fields["views"].has_default and fields["views"].default == 0
        assert fields["secret"].serialize is False
        assert fields["title"].serialize is None
        assert fields["rating"].has_default and fields["rating"].default is None

    def test_associations(self, post: ast.ResourceDecl):
        assocs = {a.name: a for a in post.models[0].associations}

        assert assocs["author"].association == AssociationKind.BELONGS_TO
        assert assocs["author"].target is None
        assert assocs["editor"].target == "User"
        assert assocs["editor"].optional
        assert assocs["subject"].association == AssociationKind.POLYMORPHIC
        assert assocs["subject"].candidates == ["Post", "Image"]
        assert assocs["comments"].association == AssociationKind.HAS_MANY

    def test_source_position_is_recorded(self, post: ast.ResourceDecl):
        title = post.models[0].declared_fields[0]
        assert (title.line, title.column) == (4, 5)
        assert post.file == FILE


class TestControllerBlock:
    def test_params_profiles(self, post: ast.ResourceDecl):
        params = [i for i in post.controllers[0].items if isinstance(i, ast.ParamsBlock)][0]
        editable, publish = params.profiles

        assert editable.name == "editable"
        assert [(e.name, e.optional) for e in editable.entries] == [
            ("title", False),
            ("body", True),
        ]
        assert publish.name == "publish"

    def test_respond_with_and_actions(self, post: ast.ResourceDecl):
        items = post.controllers[0].items
        respond = next(i for i in items if isinstance(i, ast.RespondWithDecl))
        actions = next(i for i in items if isinstance(i, ast.ActionsDecl))

        assert respond.formats == ["html", "json"]
        assert actions.auto_crud
        assert actions.excluded == ["destroy"]

    def test_action_lines(self, post: ast.ResourceDecl):
        lines = {i.name: i for i in post.controllers[0].items if isinstance(i, ast.ActionDecl)}

        assert lines["show"].status == ActionStatus.OVERRIDDEN
        assert lines["update"].status == ActionStatus.EJECTED
        assert lines["update"].reference == ast.ExternalRef(
            path="handlers/posts.py", symbol="update_post"
        )
        assert lines["publish"].status == ActionStatus.DEFAULT
        assert lines["publish"].reference is None

    def test_single_format_without_brackets(self):
        text = "resource Post { model {} controller { respond_with json } }"
        controller = parse_via(text, FILE).resources[0].controllers[0]
        assert controller.items[0].formats == ["json"]

    def test_explicit_action_list(self):
        text = "resource Post { model {} controller { actions [index, show] } }"
        actions = parse_via(text, FILE).resources[0].controllers[0].items[0]
        assert not actions.auto_crud
        assert actions.names == ["index", "show"]

    def test_ejected_blocks(self):
        text = """
        resource Post {
          model ejected "app/models/post.py" { field title: String }
          controller ejected "app/controllers/posts.py:router" { }
        }
        """
        resource = parse_via(text, FILE).resources[0]
        assert resource.models[0].ejected == ast.ExternalRef(path="app/models/post.py")
        assert str(resource.controllers[0].ejected) == "app/controllers/posts.py:router"


class TestSyntaxErrors:
    def test_expected_vs_found(self):
        with pytest.raises(ParseError) as exc_info:
            parse_via("resource Post { model { field title String } }", FILE)

        err = exc_info.value
        assert "Expected ':' after field name 'title', found 'String'" in str(err)
        assert (err.context.line, err.context.column) == (1, 37)

    def test_unknown_member_in_model(self):
        with pytest.raises(ParseError, match="Expected 'field', 'belongs_to', 'has_many'"):
            parse_via("resource Post { model { column title: String } }", FILE)

    def test_resource_name_must_be_capitalized(self):
        with pytest.raises(ParseError, match="must start with an uppercase letter"):
            parse_via("resource post { model {} }", FILE)

    def test_top_level_must_be_resource(self):
        with pytest.raises(ParseError, match="Expected 'resource', found 'model'"):
            parse_via("model { }", FILE)

    def test_empty_ejection_reference(self):
        with pytest.raises(ParseError, match="must not be empty"):
            parse_via('resource Post { model ejected "" { } }', FILE)

    def test_bad_serialize_value(self):
        with pytest.raises(ParseError, match="Expected 'true' or 'false'"):
            parse_via("resource Post { model { field a: String serialize: maybe } }", FILE)


class TestParseFiles:
    def test_errors_are_collected_across_files(self, tmp_path: Path):
        app = tmp_path / "app"
        app.mkdir()
        (app / "a.via").write_text("resource A { model { field x: String } }")
        (app / "b.via").write_text("resource B { model { field x String } }")
        (app / "c.via").write_text("resource C { model {")
        (app / "d.via").write_text("resource D { model { } }")

        files = sorted(app.glob("*.via"))
        parsed, errors = parse_files(files, root=tmp_path)

        assert [s.resources[0].name for s in parsed] == ["A", "D"]
        assert len(errors) == 2
        assert [e.file for e in errors] == [Path("app/b.via"), Path("app/c.via")]

    def test_paths_are_recorded_relative_to_root(self, tmp_path: Path):
        (tmp_path / "app").mkdir()
        path = tmp_path / "app" / "post.via"
        path.write_text("resource Post { model { } }")

        parsed, errors = parse_files([path], root=tmp_path)

        assert errors == []
        assert parsed[0].resources[0].file == Path("app/post.via")

    def test_unreadable_file(self, tmp_path: Path):
        with pytest.raises(ParseError, match="Failed to read Via file"):
            parse_file(tmp_path / "missing.via")

    def test_invalid_utf8_is_a_positioned_diagnostic(self, tmp_path: Path):
        (tmp_path / "app").mkdir()
        bad = tmp_path / "app" / "bad.via"
        bad.write_bytes(b"resource Post { model { } }\n// \xff\n")
        good = tmp_path / "app" / "good.via"
        good.write_text("resource Good { model { } }")

        parsed, errors = parse_files([bad, good], root=tmp_path)

        assert [s.resources[0].name for s in parsed] == ["Good"]
        assert len(errors) == 1
        error = errors[0]
        assert isinstance(error, ParseError)
        assert error.file == Path("app/bad.via")
        assert (error.context.line, error.context.column) == (2, 4)
        assert "not valid UTF-8" in error.message
