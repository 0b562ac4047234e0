"""Tests for type, nullability, association, and params resolution."""

from pathlib import Path, PurePosixPath

import pytest

from via.core.dsl_parser_impl import parse_via
from via.core.errors import ConsistencyError, ResolutionError
from via.core.naming import association_target_candidates, pluralize, singularize
from via.core.resolver import ResolvedResource, resolve_batch
from via.core.types import ActionStatus, AssociationKind, ScalarKind

AUTHOR = "resource Author { model { field name: String } }"
IMAGE = "resource Image { model { field url: String } }"


def resolve(*texts: str) -> tuple[list[ResolvedResource], list]:
    sources = [parse_via(text, Path(f"app/r{i}.via")) for i, text in enumerate(texts)]
    return resolve_batch(sources)


def resolve_one(text: str, *others: str) -> ResolvedResource:
    resolved, errors = resolve(text, *others)
    assert errors == []
    return resolved[0]


def resolve_errors(text: str, *others: str) -> list:
    _, errors = resolve(text, *others)
    assert errors
    return errors


class TestFields:
    def test_type_aliases_resolve_to_canonical_kinds(self):
        post = resolve_one(
            """
            resource Post {
              model {
                field title: String
                field views: int
                field score: f64
                field flagged: Bool
                field published_at: Timestamp
                field token: UUID
              }
            }
            """
        )
        assert [(f.name, f.kind) for f in post.fields] == [
            ("title", ScalarKind.STRING),
            ("views", ScalarKind.INTEGER),
            ("score", ScalarKind.FLOAT),
            ("flagged", ScalarKind.BOOLEAN),
            ("published_at", ScalarKind.DATETIME),
            ("token", ScalarKind.UUID),
        ]

    def test_nullability_comes_only_from_the_marker(self):
        post = resolve_one(
            """
            resource Post {
              model {
                field title: String
                field body?: Text
                field summary: Text?
                field views: Integer default: 0
              }
            }
            """
        )
        nullable = {f.name: f.nullable for f in post.fields}
        assert nullable == {"title": False, "body": True, "summary": True, "views": False}

    def test_serialize_flag(self):
        post = resolve_one(
            "resource Post { model { field a: String field b: String serialize: false } }"
        )
        assert [f.serialize for f in post.fields] == [True, False]

    def test_unknown_type_names_field_and_resource(self):
        errors = resolve_errors("resource Post { model { field title: Strang } }")

        assert len(errors) == 1
        assert isinstance(errors[0], ResolutionError)
        assert "Unknown type 'Strang' for field 'title' of resource 'Post'" in str(errors[0])
        assert errors[0].context.resource == "Post"

    def test_every_bad_field_is_reported(self):
        errors = resolve_errors(
            "resource Post { model { field a: Nope field b: Nada field c: String } }"
        )
        assert len(errors) == 2

    def test_default_must_fit_the_type(self):
        errors = resolve_errors('resource Post { model { field views: Integer default: "x" } }')
        assert "is not a valid integer value" in str(errors[0])

    def test_null_default_requires_nullable(self):
        errors = resolve_errors("resource Post { model { field title: String default: null } }")
        assert "not a valid string value" in str(errors[0])

    def test_duplicate_field(self):
        errors = resolve_errors(
            "resource Post { model { field title: String field title: Text } }"
        )
        assert isinstance(errors[0], ConsistencyError)
        assert "Duplicate member 'title'" in str(errors[0])

    def test_id_is_reserved(self):
        errors = resolve_errors("resource Post { model { field id: Integer } }")
        assert "'id' is implicit" in str(errors[0])

    @pytest.mark.parametrize(
        "member,name",
        [
            ("field class: String", "class"),
            ("field from?: Text", "from"),
            ("belongs_to import: Author", "import"),
            ("has_many lambda: Author", "lambda"),
        ],
    )
    def test_python_keywords_are_rejected(self, member: str, name: str):
        errors = resolve_errors(f"resource Post {{ model {{ {member} }} }}", AUTHOR)

        assert len(errors) == 1
        assert isinstance(errors[0], ResolutionError)
        assert f"name '{name}' is a reserved word" in str(errors[0])

    def test_keyword_resource_name(self):
        errors = resolve_errors("resource None { model { } }")
        assert "Resource name 'None' is a reserved word" in str(errors[0])


class TestAssociations:
    def test_target_inferred_from_singular_name(self):
        post = resolve_one("resource Post { model { belongs_to author } }", AUTHOR)
        assoc = post.associations[0]
        assert assoc.kind == AssociationKind.BELONGS_TO
        assert assoc.targets == ("Author",)

    def test_has_many_target_inferred_from_plural_name(self):
        author = resolve_one(
            "resource Author { model { has_many posts } }",
            "resource Post { model { } }",
        )
        assert author.associations[0].targets == ("Post",)

    def test_snake_case_name_becomes_pascal_case(self):
        post = resolve_one(
            "resource Post { model { belongs_to blog_category } }",
            "resource BlogCategory { model { } }",
        )
        assert post.associations[0].targets == ("BlogCategory",)

    def test_explicit_target_overrides_inference(self):
        post = resolve_one("resource Post { model { belongs_to writer: Author } }", AUTHOR)
        assert post.associations[0].targets == ("Author",)

    def test_unresolved_target(self):
        errors = resolve_errors("resource Post { model { belongs_to author } }")
        message = str(errors[0])
        assert "Cannot infer target of association 'author'" in message
        assert "belongs_to author: <Resource>" in message

    def test_ambiguous_target(self):
        errors = resolve_errors(
            "resource Post { model { belongs_to status } }",
            "resource Statu { model { } }",
            "resource Status { model { } }",
        )
        assert "Ambiguous target for association 'status'" in str(errors[0])

    def test_unknown_explicit_target(self):
        errors = resolve_errors("resource Post { model { belongs_to writer: Person } }")
        assert "targets unknown resource 'Person'" in str(errors[0])

    def test_polymorphic_candidates(self):
        comment = resolve_one(
            "resource Comment { model { belongs_to subject?: polymorphic [Post, Image] } }",
            "resource Post { model { } }",
            IMAGE,
        )
        assoc = comment.associations[0]
        assert assoc.kind == AssociationKind.POLYMORPHIC
        assert assoc.targets == ("Post", "Image")
        assert assoc.nullable

    def test_polymorphic_empty_candidates(self):
        errors = resolve_errors("resource Comment { model { belongs_to subject: polymorphic [] } }")
        assert "needs at least one candidate" in str(errors[0])

    def test_polymorphic_unknown_candidate(self):
        errors = resolve_errors(
            "resource Comment { model { belongs_to subject: polymorphic [Image, Video] } }",
            IMAGE,
        )
        assert len(errors) == 1
        assert "lists unknown resource 'Video'" in str(errors[0])

    def test_polymorphic_duplicate_candidate(self):
        errors = resolve_errors(
            "resource Comment { model { belongs_to subject: polymorphic [Image, Image] } }",
            IMAGE,
        )
        assert "listed twice" in str(errors[0])


class TestNaming:
    @pytest.mark.parametrize(
        "plural,singular",
        [("posts", "post"), ("categories", "category"), ("boxes", "box"), ("status", "statu")],
    )
    def test_singularize(self, plural: str, singular: str):
        assert singularize(plural) == singular

    def test_pluralize_inverts_singularize(self):
        for word in ["post", "category", "box", "blog_post"]:
            assert singularize(pluralize(word)) == word

    def test_candidates(self):
        assert association_target_candidates("comments") == ["Comment", "Comments"]
        assert association_target_candidates("author") == ["Author"]


class TestEditable:
    TEXT = """
    resource Post {
      model {
        field title: String
        field body?: Text
        field views: Integer default: 0
        belongs_to author
      }
      controller {
        params { editable { title, body, views, author } }
      }
    }
    """

    def test_expands_into_create_and_update(self):
        post = resolve_one(self.TEXT, AUTHOR)
        create, update = post.controller.profiles

        assert create.name == "create" and update.name == "update"
        assert create.expanded_from == "editable"
        assert [p.name for p in create.params] == ["title", "body", "views", "author"]
        assert [p.name for p in update.params] == ["title", "body", "views", "author"]

    def test_create_requires_non_nullable_fields_without_default(self):
        create = resolve_one(self.TEXT, AUTHOR).controller.profiles[0]
        assert {p.name: p.required for p in create.params} == {
            "title": True,
            "body": False,
            "views": False,
            "author": True,
        }

    def test_update_makes_everything_optional(self):
        update = resolve_one(self.TEXT, AUTHOR).controller.profiles[1]
        assert not any(p.required for p in update.params)

    def test_association_members_are_tagged(self):
        create = resolve_one(self.TEXT, AUTHOR).controller.profiles[0]
        assert create.params[-1].member == "association"
        assert create.params[0].member == "field"

    def test_unknown_field(self):
        errors = resolve_errors(
            """
            resource Post {
              model { field title: String }
              controller { params { editable { title, subtitle } } }
            }
            """
        )
        assert len(errors) == 1
        assert "references unknown field 'subtitle'" in str(errors[0])
        assert errors[0].context.line == 4

    def test_field_with_bad_type_is_reported_once(self):
        errors = resolve_errors(
            """
            resource Post {
              model { field title: String field note?: Txt }
              controller { params { editable { title, note } } }
            }
            """
        )
        assert len(errors) == 1
        assert "Unknown type 'Txt' for field 'note'" in str(errors[0])

    def test_keyword_field_is_reported_once(self):
        errors = resolve_errors(
            """
            resource Post {
              model { field class: String }
              controller { params { editable { class } } }
            }
            """
        )
        assert len(errors) == 1
        assert "reserved word" in str(errors[0])

    def test_hidden_field_cannot_be_a_param(self):
        errors = resolve_errors(
            """
            resource Post {
              model { field secret: String serialize: false }
              controller { params { editable { secret } } }
            }
            """
        )
        assert "serialize: false" in str(errors[0])

    def test_explicit_profile_honours_optional_marker(self):
        post = resolve_one(
            """
            resource Post {
              model { field title: String field slug: String }
              controller { params { publish { title, slug? } } }
            }
            """
        )
        profile = post.controller.profiles[0]
        assert profile.name == "publish"
        assert [(p.name, p.required) for p in profile.params] == [
            ("title", True),
            ("slug", False),
        ]

    def test_editable_clashing_with_explicit_create(self):
        errors = resolve_errors(
            """
            resource Post {
              model { field title: String }
              controller { params { create { title } editable { title } } }
            }
            """
        )
        assert "Duplicate params profile 'create'" in str(errors[0])


class TestControllers:
    def test_defaults(self):
        post = resolve_one("resource Post { model { } controller { } }")
        assert post.controller.formats == ("json",)
        assert [a.name for a in post.controller.actions] == [
            "index",
            "show",
            "create",
            "update",
            "destroy",
        ]

    def test_no_controller(self):
        assert resolve_one("resource Post { model { } }").controller is None

    def test_excluded_and_custom_actions(self):
        post = resolve_one(
            """
            resource Post {
              model { }
              controller {
                action publish
                actions auto_crud except [destroy, index]
                action show overridden
              }
            }
            """
        )
        actions = {a.name: a for a in post.controller.actions}
        assert list(actions) == ["show", "create", "update", "publish"]
        assert actions["show"].status == ActionStatus.OVERRIDDEN
        assert not actions["publish"].crud

    def test_ejected_action_gets_default_symbol(self):
        post = resolve_one(
            """
            resource Post {
              model { }
              controller { action show ejected "handlers/posts.py" }
            }
            """
        )
        show = post.controller.actions[1]
        assert show.status == ActionStatus.EJECTED
        assert str(show.reference) == "handlers/posts.py:show"

    def test_ejected_model_defaults_to_resource_name(self):
        post = resolve_one('resource Post { model ejected "lib/post.py" { } }')
        assert str(post.model_ejected) == "lib/post.py:Post"

    @pytest.mark.parametrize(
        "reference,message",
        [
            ("/abs/posts.py:show", "relative to the project root"),
            ("../outside.py:show", "relative to the project root"),
            ("handlers/posts.rb:show", "must point at a .py file"),
            ("handlers/posts.py:not-valid", "is not an identifier"),
            ("handlers/posts.py:import", "is a reserved word"),
        ],
    )
    def test_bad_ejection_reference(self, reference: str, message: str):
        errors = resolve_errors(
            f'resource Post {{ model {{ }} controller {{ action show ejected "{reference}" }} }}'
        )
        assert message in str(errors[0])

    @pytest.mark.parametrize("name", ["import", "except", "class"])
    def test_keyword_action_names_are_rejected(self, name: str):
        errors = resolve_errors(
            f"resource Post {{ model {{ }} controller {{ action {name} }} }}"
        )
        assert len(errors) == 1
        assert f"Action name '{name}' is a reserved word" in str(errors[0])

    def test_action_not_enabled(self):
        errors = resolve_errors(
            "resource Post { model { } controller { actions [index] action show overridden } }"
        )
        assert "Action 'show' is not enabled" in str(errors[0])

    def test_unknown_crud_action(self):
        errors = resolve_errors("resource Post { model { } controller { actions [index, list] } }")
        assert "Unknown CRUD action 'list'" in str(errors[0])

    def test_unknown_response_format(self):
        errors = resolve_errors(
            "resource Post { model { } controller { respond_with [json, xml] } }"
        )
        assert "Unknown response format 'xml'" in str(errors[0])


class TestBatch:
    def test_duplicate_resource_across_files(self):
        errors = resolve_errors("resource Post { model { } }", "resource Post { model { } }")
        assert isinstance(errors[0], ConsistencyError)
        assert "Duplicate resource 'Post' (first declared in app/r0.via:1)" in str(errors[0])

    def test_missing_model_block(self):
        errors = resolve_errors("resource Post { controller { } }")
        assert "has no model block" in str(errors[0])

    def test_order_is_input_order(self):
        texts = [f"resource R{i} {{ model {{ field x: String }} }}" for i in range(20)]
        resolved, errors = resolve(*texts)

        assert errors == []
        assert [r.name for r in resolved] == [f"R{i}" for i in range(20)]
        assert resolved[3].source == PurePosixPath("app/r3.via")

    def test_errors_from_every_resource_are_collected(self):
        resolved, errors = resolve(
            "resource A { model { field x: Nope } }",
            "resource B { model { field y: String } }",
            "resource C { model { belongs_to ghost } }",
        )
        assert [r.name for r in resolved] == ["B"]
        assert [e.context.resource for e in errors] == ["A", "C"]
