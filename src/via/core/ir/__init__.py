"""
Via Intermediate Representation (IR) types.

The IR is the single contract between the resolver and every emitter.
All types are frozen pydantic models and are re-exported from this package.
"""

# Controllers
from .controllers import (
    ActionIR,
    ControllerIR,
    ParamIR,
    ParamsProfileIR,
)

# Document
from .document import (
    IR_SCHEMA_VERSION,
    IRDocument,
    ResourceIR,
    dump_ir,
    load_ir_document,
)

# Models
from .fields import (
    AssociationIR,
    ClientFieldIR,
    ClientShape,
    FieldIR,
    FieldOrigin,
    ModelIR,
)

__all__ = [
    "ActionIR",
    "AssociationIR",
    "ClientFieldIR",
    "ClientShape",
    "ControllerIR",
    "FieldIR",
    "FieldOrigin",
    "IRDocument",
    "IR_SCHEMA_VERSION",
    "ModelIR",
    "ParamIR",
    "ParamsProfileIR",
    "ResourceIR",
    "dump_ir",
    "load_ir_document",
]
