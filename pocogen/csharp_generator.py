"""C# Generator - renders client declarations as C# source"""

import logging
from pathlib import Path
from typing import Optional, TextIO, Union

from .errors import InvalidArgumentError
from .type_registry import CSHARP_ALIASES
from .types import (
    ArrayRef, ClassDecl, ClientDeclaration, ClientNamespace, ClientTypeRef, CompileUnit,
    EnumDecl, GenericRef, MapRef, Member, MemberKind, MirroredTypeRef, OptionalRef,
    PairRef, PrimitiveRef, RawPlatformRef, TupleRef, ValueDecl,
)

logger = logging.getLogger(__name__)

INDENT = "    "
REQUIRED_ATTRIBUTE = "System.ComponentModel.DataAnnotations.Required()"

_KEYWORDS = {full_name: alias for alias, full_name in CSHARP_ALIASES.items()}


def to_csharp(type_ref: Optional[ClientTypeRef]) -> str:
    """Render a client type reference as C# type syntax"""
    if type_ref is None:
        return "void"
    if isinstance(type_ref, MirroredTypeRef):
        return type_ref.qualified_name
    if isinstance(type_ref, (PrimitiveRef, RawPlatformRef)):
        return _KEYWORDS.get(type_ref.name, type_ref.name)
    if isinstance(type_ref, ArrayRef):
        return f"{to_csharp(type_ref.element)}[{',' * (type_ref.rank - 1)}]"
    if isinstance(type_ref, OptionalRef):
        return f"System.Nullable<{to_csharp(type_ref.inner)}>"
    if isinstance(type_ref, TupleRef):
        return f"System.Tuple<{_join(type_ref.arguments)}>"
    if isinstance(type_ref, MapRef):
        return f"System.Collections.Generic.Dictionary<{_join((type_ref.key, type_ref.value))}>"
    if isinstance(type_ref, PairRef):
        return f"System.Collections.Generic.KeyValuePair<{_join((type_ref.key, type_ref.value))}>"
    if isinstance(type_ref, GenericRef):
        if not type_ref.arguments:
            return type_ref.name
        return f"{type_ref.name}<{_join(type_ref.arguments)}>"
    raise TypeError(f"Unknown client type reference: {type_ref!r}")


def _join(type_refs) -> str:
    return ", ".join(to_csharp(t) for t in type_refs)


class CSharpGenerator:
    """Generates C# source for a compile unit"""

    def __init__(self, unit: CompileUnit):
        self.unit = unit

    def generate(self) -> str:
        """Generate the complete C# document"""
        lines = [
            "//------------------------------------------------------------------------------",
            "// <auto-generated>",
            "//     This code was generated by pocogen.",
            "//     Changes to this file will be lost if the code is regenerated.",
            "// </auto-generated>",
            "//------------------------------------------------------------------------------",
            "",
        ]

        for namespace in self.unit.namespaces:
            lines.extend(self._generate_namespace(namespace))
            lines.append("")

        return "\n".join(lines)

    def write_code(self, writer: TextIO):
        if writer is None:
            raise InvalidArgumentError("No writer is defined")
        writer.write(self.generate())

    def save_code_to_file(self, file_name: Union[str, Path]) -> bool:
        """Write the document; write failures are reported, not raised"""
        if not file_name:
            raise InvalidArgumentError("A valid file name is not defined")
        try:
            with open(file_name, "w", encoding="utf-8") as f:
                self.write_code(f)
        except OSError as e:
            logger.warning("Cannot write %s: %s", file_name, e)
            return False
        return True

    def _generate_namespace(self, namespace: ClientNamespace) -> list[str]:
        lines = [f"namespace {namespace.name}", "{"]
        for i, decl in enumerate(namespace.declarations):
            if i:
                lines.append("")
            lines.extend(INDENT + line if line else line for line in self._generate_declaration(decl))
        lines.append("}")
        return lines

    def _generate_declaration(self, decl: ClientDeclaration) -> list[str]:
        lines = self._doc_comment(decl.doc)

        if isinstance(decl, EnumDecl):
            lines.append(f"public enum {decl.name}")
            lines.append("{")
            for member in decl.members:
                lines.extend(INDENT + line for line in self._doc_comment(member.doc))
                if member.value is None:
                    lines.append(f"{INDENT}{member.name},")
                else:
                    lines.append(f"{INDENT}{member.name} = {member.value},")
            lines.append("}")
            return lines

        name = decl.name
        if decl.type_parameters:
            name += f"<{', '.join(decl.type_parameters)}>"

        if isinstance(decl, ClassDecl):
            header = f"public class {name}"
            base = to_csharp(decl.base_type) if decl.base_type is not None else None
            if base and base not in ("object", "System.Object"):
                header += f" : {base}"
        elif isinstance(decl, ValueDecl):
            header = f"public struct {name}"
        else:
            raise TypeError(f"Unknown declaration: {decl!r}")

        lines.append(header)
        lines.append("{")
        for i, member in enumerate(decl.members):
            if i:
                lines.append("")
            lines.extend(INDENT + line for line in self._generate_member(member))
        lines.append("}")
        return lines

    def _generate_member(self, member: Member) -> list[str]:
        lines = self._doc_comment(member.doc)
        if member.required:
            lines.append(f"[{REQUIRED_ATTRIBUTE}]")
        type_name = to_csharp(member.type_ref)
        if member.kind == MemberKind.PROPERTY:
            lines.append(f"public {type_name} {member.name} {{ get; set; }}")
        else:
            lines.append(f"public {type_name} {member.name};")
        return lines

    @staticmethod
    def _doc_comment(doc: Optional[list[str]]) -> list[str]:
        if not doc:
            return []
        return ["/// <summary>", *(f"/// {line}" if line else "///" for line in doc), "/// </summary>"]
