"""
POCO Client Generator Package

Mirrors plain data types declared in C# sources into client declarations:
  1. Parses C#-subset POCO declarations into host type descriptors
  2. Picks the types and members exposed to clients
  3. Translates every member type into a client type reference
  4. Emits client classes, structs and enums grouped by namespace
  5. Renders the declarations as C# source
"""

from .types import (
    Attribute, HostMember, EnumValue, HostType, TypeKind, MemberKind, PendingTypeSet,
    MirroredTypeRef, PrimitiveRef, ArrayRef, GenericRef, TupleRef, MapRef, PairRef,
    OptionalRef, RawPlatformRef, Member, EnumMember, ClassDecl, ValueDecl, EnumDecl,
    ClientNamespace, CompileUnit,
)
from .errors import (
    PocoGenError, InvalidArgumentError, TupleArityError, DuplicateTypeError, ParseError,
)
from .type_registry import TypeRegistry
from .parser import PocoParser, ParsedAssembly, parse_files
from .cherry_picking import (
    CherryPickingMethods, CherryType, get_member_cherry_type, get_cherry_types, parse_methods,
)
from .doc_lookup import DocCommentLookup
from .type_mapper import TypeMapper
from .emitter import DeclarationEmitter, get_namespace_groups
from .csharp_generator import CSharpGenerator

__all__ = [
    'Attribute', 'HostMember', 'EnumValue', 'HostType', 'TypeKind', 'MemberKind',
    'PendingTypeSet', 'MirroredTypeRef', 'PrimitiveRef', 'ArrayRef', 'GenericRef',
    'TupleRef', 'MapRef', 'PairRef', 'OptionalRef', 'RawPlatformRef', 'Member',
    'EnumMember', 'ClassDecl', 'ValueDecl', 'EnumDecl', 'ClientNamespace', 'CompileUnit',
    'PocoGenError', 'InvalidArgumentError', 'TupleArityError', 'DuplicateTypeError',
    'ParseError', 'TypeRegistry', 'PocoParser', 'ParsedAssembly', 'parse_files',
    'CherryPickingMethods', 'CherryType', 'get_member_cherry_type', 'get_cherry_types',
    'parse_methods', 'DocCommentLookup', 'TypeMapper', 'DeclarationEmitter',
    'get_namespace_groups', 'CSharpGenerator',
]
