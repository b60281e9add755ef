"""Data types for host type descriptors and generated client declarations"""

from dataclasses import FrozenInstanceError, dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Optional, Union


# ══════════════════════════════════════════════════════════════
# Host side
# ══════════════════════════════════════════════════════════════

class TypeKind(Enum):
    """Category of a host type"""
    CLASS = "class"
    STRUCT = "struct"
    ENUM = "enum"
    INTERFACE = "interface"
    ARRAY = "array"
    GENERIC_PARAMETER = "generic_parameter"


class MemberKind(Enum):
    """Property or field"""
    PROPERTY = "property"
    FIELD = "field"


@dataclass(frozen=True)
class Attribute:
    """Custom attribute applied to a type or member"""
    name: str
    arguments: tuple[tuple[str, str], ...] = ()

    def get(self, key: str) -> Optional[str]:
        for k, v in self.arguments:
            if k == key:
                return v
        return None


@dataclass
class HostMember:
    """Property or field declared on a host type"""
    name: str
    type: "HostType"
    kind: MemberKind = MemberKind.PROPERTY
    attributes: tuple[Attribute, ...] = ()
    is_public: bool = True
    is_static: bool = False

    def has_attribute(self, name: str) -> bool:
        return find_attribute(self.attributes, name) is not None


@dataclass
class EnumValue:
    """Enum member with its underlying integer value"""
    name: str
    value: int
    attributes: tuple[Attribute, ...] = ()


@dataclass(eq=False)
class HostType:
    """Read-only descriptor of a type from the host platform.

    Identity is the full name, so two descriptors built for the same
    instantiation or array compare equal.

    The parser fills in bases and members after registering a
    declaration, then freezes it; no field may change afterwards.
    """
    namespace: str
    name: str
    kind: TypeKind = TypeKind.CLASS
    base_type: Optional["HostType"] = field(default=None, repr=False)
    interfaces: tuple["HostType", ...] = field(default=(), repr=False)
    properties: tuple[HostMember, ...] = field(default=(), repr=False)
    fields: tuple[HostMember, ...] = field(default=(), repr=False)
    enum_values: tuple[EnumValue, ...] = field(default=(), repr=False)
    attributes: tuple[Attribute, ...] = field(default=(), repr=False)
    generic_parameters: tuple["HostType", ...] = field(default=(), repr=False)
    generic_definition: Optional["HostType"] = field(default=None, repr=False)
    generic_arguments: tuple["HostType", ...] = field(default=(), repr=False)
    element_type: Optional["HostType"] = field(default=None, repr=False)
    rank: int = 0
    is_public: bool = True
    _frozen: bool = field(default=False, init=False, repr=False)

    @property
    def full_name(self) -> str:
        if self.kind == TypeKind.GENERIC_PARAMETER:
            return self.name
        if self.kind == TypeKind.ARRAY:
            return f"{self.element_type.full_name}[{',' * (self.rank - 1)}]"
        if self.generic_definition is not None:
            args = ",".join(a.full_name for a in self.generic_arguments)
            return f"{self.generic_definition.full_name}[{args}]"
        name = f"{self.namespace}.{self.name}" if self.namespace else self.name
        if self.generic_parameters:
            name += f"`{len(self.generic_parameters)}"
        return name

    @property
    def is_generic_definition(self) -> bool:
        return bool(self.generic_parameters)

    @property
    def is_generic(self) -> bool:
        """True for generic definitions and their instantiations"""
        return self.generic_definition is not None or self.is_generic_definition

    @property
    def definition(self) -> Optional["HostType"]:
        """Generic definition of this type; a definition is its own"""
        if self.generic_definition is not None:
            return self.generic_definition
        return self if self.is_generic_definition else None

    @property
    def arguments(self) -> tuple["HostType", ...]:
        """Generic arguments, or the open parameters of a definition"""
        if self.generic_definition is not None:
            return self.generic_arguments
        return self.generic_parameters

    @property
    def is_array(self) -> bool:
        return self.kind == TypeKind.ARRAY

    @property
    def is_enum(self) -> bool:
        return self.kind == TypeKind.ENUM

    @property
    def is_value_type(self) -> bool:
        return self.kind in (TypeKind.STRUCT, TypeKind.ENUM)

    @property
    def is_class(self) -> bool:
        return self.kind == TypeKind.CLASS

    @property
    def is_class_or_struct(self) -> bool:
        return self.kind in (TypeKind.CLASS, TypeKind.STRUCT)

    @property
    def is_serializable(self) -> bool:
        return self.has_attribute("Serializable")

    def has_attribute(self, name: str) -> bool:
        return find_attribute(self.attributes, name) is not None

    def freeze(self) -> "HostType":
        object.__setattr__(self, "_frozen", True)
        return self

    def __setattr__(self, name, value):
        if self._frozen:
            raise FrozenInstanceError(f"cannot assign to field '{name}' of {self.full_name}")
        super().__setattr__(name, value)

    def __eq__(self, other):
        if not isinstance(other, HostType):
            return NotImplemented
        return self.full_name == other.full_name

    def __hash__(self):
        return hash(self.full_name)

    def __str__(self):
        return self.full_name


def find_attribute(attributes: Iterable[Attribute], name: str) -> Optional[Attribute]:
    """Find an attribute by name, with or without the Attribute suffix and namespace"""
    for attr in attributes:
        short = attr.name.rsplit(".", 1)[-1]
        if short.endswith("Attribute"):
            short = short[:-len("Attribute")]
        if short == name:
            return attr
    return None


class PendingTypeSet:
    """Immutable set of host types mirrored in one run"""

    def __init__(self, types: Iterable[HostType]):
        self._types = frozenset(types)

    def __contains__(self, host_type: object) -> bool:
        return host_type in self._types

    def __iter__(self) -> Iterator[HostType]:
        return iter(sorted(self._types, key=lambda t: t.full_name))

    def __len__(self) -> int:
        return len(self._types)

    @property
    def namespaces(self) -> frozenset[str]:
        return frozenset(t.namespace for t in self._types)


# ══════════════════════════════════════════════════════════════
# Client side
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class MirroredTypeRef:
    """Reference to a generated declaration"""
    namespace: str
    name: str

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name


@dataclass(frozen=True)
class PrimitiveRef:
    """Platform primitive, by host full name"""
    name: str


@dataclass(frozen=True)
class ArrayRef:
    element: "ClientTypeRef"
    rank: int = 1


@dataclass(frozen=True)
class GenericRef:
    """Instantiation of a generic type without a canonical client shape"""
    name: str
    arguments: tuple["ClientTypeRef", ...] = ()


@dataclass(frozen=True)
class TupleRef:
    arity: int
    arguments: tuple["ClientTypeRef", ...] = ()


@dataclass(frozen=True)
class MapRef:
    key: "ClientTypeRef"
    value: "ClientTypeRef"


@dataclass(frozen=True)
class PairRef:
    key: "ClientTypeRef"
    value: "ClientTypeRef"


@dataclass(frozen=True)
class OptionalRef:
    inner: "ClientTypeRef"


@dataclass(frozen=True)
class RawPlatformRef:
    """Type the client already understands under the same name"""
    name: str


ClientTypeRef = Union[
    MirroredTypeRef, PrimitiveRef, ArrayRef, GenericRef, TupleRef,
    MapRef, PairRef, OptionalRef, RawPlatformRef,
]


@dataclass
class Member:
    """Member of a generated class or struct"""
    name: str
    type_ref: Optional[ClientTypeRef]
    required: bool = False
    doc: Optional[list[str]] = None
    origin: MemberKind = MemberKind.PROPERTY
    kind: MemberKind = MemberKind.PROPERTY


@dataclass
class EnumMember:
    """Enum member; value is None when it equals the member's position"""
    name: str
    value: Optional[int] = None
    doc: Optional[list[str]] = None


@dataclass
class ClassDecl:
    name: str
    namespace: str
    base_type: Optional[ClientTypeRef] = None
    type_parameters: tuple[str, ...] = ()
    members: list[Member] = field(default_factory=list)
    doc: Optional[list[str]] = None


@dataclass
class ValueDecl:
    name: str
    namespace: str
    type_parameters: tuple[str, ...] = ()
    members: list[Member] = field(default_factory=list)
    doc: Optional[list[str]] = None


@dataclass
class EnumDecl:
    name: str
    namespace: str
    members: list[EnumMember] = field(default_factory=list)
    doc: Optional[list[str]] = None


ClientDeclaration = Union[ClassDecl, ValueDecl, EnumDecl]


@dataclass
class ClientNamespace:
    name: str
    declarations: list[ClientDeclaration] = field(default_factory=list)


@dataclass
class CompileUnit:
    """Output model of one or more generation runs"""
    namespaces: list[ClientNamespace] = field(default_factory=list)

    def merge(self, other: "CompileUnit") -> "CompileUnit":
        """Append the namespaces of another run, keeping both orders"""
        self.namespaces.extend(other.namespaces)
        return self

    def declarations(self) -> list[ClientDeclaration]:
        return [d for ns in self.namespaces for d in ns.declarations]

    def find(self, qualified_name: str) -> Optional[ClientDeclaration]:
        for decl in self.declarations():
            if f"{decl.namespace}.{decl.name}" == qualified_name:
                return decl
        return None
