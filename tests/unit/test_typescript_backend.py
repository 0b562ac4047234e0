"""Tests for the TypeScript type stack and cross-emitter agreement."""

import re
from pathlib import PurePosixPath

import pytest

from via.core.ir import ClientShape, IRDocument
from via.stacks import get_backend
from via.stacks.base import GeneratorResult, RenderOptions
from via.stacks.fastapi import FastAPIBackend
from via.stacks.fastapi.utils import python_type
from via.stacks.typescript import TYPE_MAPPING, TypeScriptBackend

TS_MEMBER = re.compile(r"^  (\w+)(\??): (.+);$")
PY_ATTRIBUTE = re.compile(r"^    (\w+): ([^=]+?)(?: = .*)?$")


@pytest.fixture
def types(blog_document: IRDocument, render_options: RenderOptions) -> GeneratorResult:
    return TypeScriptBackend().render(blog_document, render_options)


def ts(result: GeneratorResult, path: str) -> str:
    return result.files[PurePosixPath(path)]


def interface_members(source: str, name: str) -> dict[str, tuple[bool, str]]:
    """``{member: (optional, type)}`` for one exported interface."""
    body = source.split(f"export interface {name} {{\n")[1].split("\n}")[0]
    members = {}
    for line in body.splitlines():
        match = TS_MEMBER.match(line)
        assert match, line
        members[match.group(1)] = (match.group(2) == "?", match.group(3))
    return members


def class_attributes(source: str, name: str) -> dict[str, str]:
    """``{attribute: annotation}`` for one generated pydantic class."""
    body = source.split(f"class {name}(BaseModel):\n")[1].split("\n\n\n")[0]
    attributes = {}
    for line in body.splitlines():
        match = PY_ATTRIBUTE.match(line)
        if match and match.group(1) != "model_config":
            attributes[match.group(1)] = match.group(2)
    return attributes


class TestLayout:
    def test_file_tree(self, types: GeneratorResult):
        assert sorted(p.as_posix() for p in types.files) == [
            "ts/index.ts",
            "ts/models/author.ts",
            "ts/models/comment.ts",
            "ts/models/image.ts",
            "ts/models/post.ts",
        ]

    def test_index_reexports_every_module(self, types: GeneratorResult):
        index = ts(types, "ts/index.ts")
        assert re.findall(r'export \* from "(.+)";', index) == [
            "./models/author",
            "./models/comment",
            "./models/image",
            "./models/post",
        ]

    def test_custom_types_dir(self, blog_document: IRDocument):
        result = TypeScriptBackend().render(blog_document, RenderOptions(types_dir="client/types"))
        assert PurePosixPath("client/types/index.ts") in result.files

    def test_registered_by_name(self):
        assert get_backend("typescript").get_capabilities().kind == "types"


class TestInterfaces:
    def test_resource_interface(self, types: GeneratorResult):
        members = interface_members(ts(types, "ts/models/post.ts"), "Post")
        assert members == {
            "id": (False, "number"),
            "title": (False, "string"),
            "body": (True, "string"),
            "published": (False, "boolean"),
            "authorId": (False, "number"),
        }

    def test_hidden_fields_are_absent(self, types: GeneratorResult):
        assert "internal_notes" not in ts(types, "ts/models/post.ts")
        assert "password_digest" not in ts(types, "ts/models/author.ts")

    def test_has_many_is_absent(self, types: GeneratorResult):
        assert "comments" not in ts(types, "ts/models/post.ts")

    def test_editable_profiles(self, types: GeneratorResult):
        post = ts(types, "ts/models/post.ts")

        assert interface_members(post, "PostCreateParams") == {
            "title": (False, "string"),
            "body": (True, "string"),
            "published": (True, "boolean"),
            "authorId": (False, "number"),
        }
        update = interface_members(post, "PostUpdateParams")
        assert set(update) == {"title", "body", "published", "authorId"}
        assert all(optional for optional, _ in update.values())

    def test_polymorphic_union(self, types: GeneratorResult):
        comment = ts(types, "ts/models/comment.ts")

        assert (
            'export type CommentSubjectRef = { type: "Post"; id: number } '
            '| { type: "Image"; id: number };'
        ) in comment
        assert interface_members(comment, "Comment")["subject"] == (False, "CommentSubjectRef")
        assert re.findall(r'type: "(\w+)"', comment) == ["Post", "Image"]

    def test_resource_without_controller_has_no_params(self, types: GeneratorResult):
        image = ts(types, "ts/models/image.ts")
        assert "Params" not in image
        assert interface_members(image, "Image")["caption"] == (True, "string")

    def test_editable_with_nullable_and_required(self, compile_document):
        document = compile_document(
            {
                "app/note.via": """
                resource Note {
                  model {
                    field a: String
                    field b?: String
                  }
                  controller { params { editable { a, b } } }
                }
                """
            }
        )
        note = ts(TypeScriptBackend().render(document, RenderOptions()), "ts/models/note.ts")

        assert interface_members(note, "NoteCreateParams") == {
            "a": (False, "string"),
            "b": (True, "string"),
        }
        assert interface_members(note, "NoteUpdateParams") == {
            "a": (True, "string"),
            "b": (True, "string"),
        }

    def test_property_names_are_camel_case(self, compile_document):
        document = compile_document(
            {
                "app/post.via": """
                resource Post {
                  model { field published_at?: Timestamp belongs_to lead_author: Post }
                  controller { params { editable { published_at, lead_author } } }
                }
                """
            }
        )
        post = ts(TypeScriptBackend().render(document, RenderOptions()), "ts/models/post.ts")

        assert list(interface_members(post, "Post")) == ["id", "publishedAt", "leadAuthorId"]
        assert list(interface_members(post, "PostCreateParams")) == [
            "publishedAt",
            "leadAuthorId",
        ]
        assert "published_at" not in post


class TestCrossEmitterAgreement:
    """The backend model, the IR, and the client types must describe the same fields."""

    def test_scalar_fields_agree(self, blog_document: IRDocument, render_options: RenderOptions):
        backend = FastAPIBackend().render(blog_document, render_options)
        types = TypeScriptBackend().render(blog_document, render_options)

        for resource in blog_document.resource_list:
            py = class_attributes(
                backend.files[PurePosixPath(f"blog_api/models/{resource.module}.py")],
                resource.name,
            )
            client = interface_members(
                types.files[PurePosixPath(f"ts/models/{resource.module}.ts")], resource.name
            )

            assert list(client) == resource.model.client_field_names

            for cf in resource.model.client_fields:
                optional, ts_type = client[cf.name]
                assert optional == cf.nullable, (resource.name, cf.name)
                if cf.shape == ClientShape.POLYMORPHIC:
                    continue

                column = cf.columns[0]
                field = resource.model.get_field(column)
                annotation = py[column]
                assert annotation.endswith(" | None") == field.nullable, (resource.name, column)
                assert annotation.removesuffix(" | None") == python_type(field.kind)
                assert ts_type == TYPE_MAPPING[field.kind]

    def test_hidden_fields_only_in_backend(self, blog_document: IRDocument):
        backend = FastAPIBackend().render(blog_document, RenderOptions())
        types = TypeScriptBackend().render(blog_document, RenderOptions())

        for resource in blog_document.resource_list:
            py = backend.files[PurePosixPath(f"via_generated/models/{resource.module}.py")]
            client = types.files[PurePosixPath(f"ts/models/{resource.module}.ts")]
            for hidden in resource.model.hidden_fields:
                assert f"    {hidden.name}: " in py
                assert hidden.name not in resource.model.client_field_names
                assert hidden.name not in client

    def test_params_agree(self, blog_document: IRDocument, render_options: RenderOptions):
        backend = FastAPIBackend().render(blog_document, render_options)
        types = TypeScriptBackend().render(blog_document, render_options)

        for resource in blog_document.resource_list:
            if resource.controller is None:
                continue
            py_source = backend.files[PurePosixPath(f"blog_api/models/{resource.module}.py")]
            ts_source = types.files[PurePosixPath(f"ts/models/{resource.module}.ts")]
            for profile in resource.controller.profiles:
                py = class_attributes(py_source, profile.type_name)
                client = interface_members(ts_source, profile.type_name)
                assert len(py) == len(client) == len(profile.params)
                for param in profile.params:
                    optional, _ = client[param.client_name]
                    assert optional == (not param.required)
