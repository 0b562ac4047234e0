"""
FastAPI stack for Via.

Renders a self-contained Python package:

    pyproject.toml
    <package>/__init__.py              register_routes(app)
    <package>/models/<module>.py       pydantic models and params bodies
    <package>/controllers/<module>.py  APIRouter + handlers + routes()
"""

from via.core.ir import IRDocument
from via.stacks import Backend, BackendCapabilities
from via.stacks.base import CompositeGenerator, Generator, GeneratorResult, RenderOptions

from .controllers import ControllersGenerator
from .models import ModelsGenerator
from .package import PackageGenerator


class FastAPIGenerator(CompositeGenerator):
    def get_generators(self) -> list[Generator]:
        return [
            PackageGenerator(self.document, self.options),
            ModelsGenerator(self.document, self.options),
            ControllersGenerator(self.document, self.options),
        ]


class FastAPIBackend(Backend):
    """Backend stack rendering FastAPI routers and pydantic models."""

    def render(self, document: IRDocument, options: RenderOptions) -> GeneratorResult:
        return FastAPIGenerator(document, options).generate()

    def get_capabilities(self) -> BackendCapabilities:
        return BackendCapabilities(
            name="fastapi",
            description="FastAPI routers and pydantic models as an importable package",
            kind="backend",
            output_formats=["py", "toml"],
        )


__all__ = ["FastAPIBackend", "FastAPIGenerator"]
