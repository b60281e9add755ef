"""Registry of host types known to a generation run"""

from typing import Iterable, Iterator, Optional

from .errors import DuplicateTypeError, InvalidArgumentError
from .types import Attribute, HostType, TypeKind


# C# keyword -> host full name
CSHARP_ALIASES = {
    'bool': 'System.Boolean',
    'byte': 'System.Byte',
    'sbyte': 'System.SByte',
    'char': 'System.Char',
    'short': 'System.Int16',
    'ushort': 'System.UInt16',
    'int': 'System.Int32',
    'uint': 'System.UInt32',
    'long': 'System.Int64',
    'ulong': 'System.UInt64',
    'float': 'System.Single',
    'double': 'System.Double',
    'decimal': 'System.Decimal',
    'string': 'System.String',
    'object': 'System.Object',
}

# Primitive value types: full name -> is value type
PRIMITIVE_TYPES = {
    'System.Boolean': True,
    'System.Byte': True,
    'System.SByte': True,
    'System.Char': True,
    'System.Int16': True,
    'System.UInt16': True,
    'System.Int32': True,
    'System.UInt32': True,
    'System.Int64': True,
    'System.UInt64': True,
    'System.Single': True,
    'System.Double': True,
    'System.Decimal': True,
    'System.DateTime': True,
    'System.DateTimeOffset': True,
    'System.TimeSpan': True,
    'System.Guid': True,
    'System.String': False,
    'System.Uri': False,
    'System.Object': False,
}

# (namespace, name, generic parameters, kind, supertypes as (name, parameter names))
_GENERIC_DEFINITIONS = [
    ('System', 'Nullable', ('T',), TypeKind.STRUCT, ()),
    ('System.Threading.Tasks', 'Task', ('TResult',), TypeKind.CLASS, ()),
    ('System.Threading.Tasks', 'ValueTask', ('TResult',), TypeKind.STRUCT, ()),
    ('System.Collections.Generic', 'IEnumerable', ('T',), TypeKind.INTERFACE, ()),
    ('System.Collections.Generic', 'ICollection', ('T',), TypeKind.INTERFACE,
     (('System.Collections.Generic.IEnumerable`1', ('T',)),)),
    ('System.Collections.Generic', 'IList', ('T',), TypeKind.INTERFACE,
     (('System.Collections.Generic.ICollection`1', ('T',)),)),
    ('System.Collections.Generic', 'IReadOnlyCollection', ('T',), TypeKind.INTERFACE,
     (('System.Collections.Generic.IEnumerable`1', ('T',)),)),
    ('System.Collections.Generic', 'IReadOnlyList', ('T',), TypeKind.INTERFACE,
     (('System.Collections.Generic.IReadOnlyCollection`1', ('T',)),)),
    ('System.Collections.Generic', 'List', ('T',), TypeKind.CLASS,
     (('System.Collections.Generic.IList`1', ('T',)),
      ('System.Collections.Generic.IReadOnlyList`1', ('T',)))),
    ('System.Collections.Generic', 'HashSet', ('T',), TypeKind.CLASS,
     (('System.Collections.Generic.ICollection`1', ('T',)),)),
    ('System.Linq', 'IQueryable', ('T',), TypeKind.INTERFACE,
     (('System.Collections.Generic.IEnumerable`1', ('T',)),)),
    ('System.Collections.ObjectModel', 'Collection', ('T',), TypeKind.CLASS,
     (('System.Collections.Generic.IList`1', ('T',)),)),
    ('System.Collections.ObjectModel', 'ObservableCollection', ('T',), TypeKind.CLASS,
     (('System.Collections.ObjectModel.Collection`1', ('T',)),)),
    ('System.Collections.Generic', 'KeyValuePair', ('TKey', 'TValue'), TypeKind.STRUCT, ()),
    ('System.Collections.Generic', 'IDictionary', ('TKey', 'TValue'), TypeKind.INTERFACE, ()),
    ('System.Collections.Generic', 'IReadOnlyDictionary', ('TKey', 'TValue'), TypeKind.INTERFACE, ()),
    ('System.Collections.Generic', 'Dictionary', ('TKey', 'TValue'), TypeKind.CLASS,
     (('System.Collections.Generic.IDictionary`2', ('TKey', 'TValue')),
      ('System.Collections.Generic.IReadOnlyDictionary`2', ('TKey', 'TValue')))),
    ('System.Collections.Generic', 'SortedDictionary', ('TKey', 'TValue'), TypeKind.CLASS,
     (('System.Collections.Generic.IDictionary`2', ('TKey', 'TValue')),)),
]

_TUPLE_PARAMETERS = ('T1', 'T2', 'T3', 'T4', 'T5', 'T6', 'T7', 'TRest')

_PLAIN_DEFINITIONS = [
    ('System.Web.Http', 'IHttpActionResult', TypeKind.INTERFACE),
    ('Microsoft.AspNetCore.Mvc', 'IActionResult', TypeKind.INTERFACE),
    ('Microsoft.AspNetCore.Mvc', 'ActionResult', TypeKind.CLASS),
    ('System.Net.Http', 'HttpResponseMessage', TypeKind.CLASS),
]


def instantiate(definition: HostType, arguments: Iterable[HostType]) -> HostType:
    """Build a generic instantiation descriptor without caching"""
    return HostType(
        namespace=definition.namespace,
        name=definition.name,
        kind=definition.kind,
        attributes=definition.attributes,
        generic_definition=definition,
        generic_arguments=tuple(arguments),
        is_public=definition.is_public,
    ).freeze()


def array_of(element: HostType, rank: int = 1) -> HostType:
    return HostType(
        namespace=element.namespace,
        name=f"{element.name}[{',' * (rank - 1)}]",
        kind=TypeKind.ARRAY,
        base_type=None,
        element_type=element,
        rank=rank,
        is_public=element.is_public,
    ).freeze()


def substitute(host_type: Optional[HostType], mapping: dict) -> Optional[HostType]:
    """Replace generic parameters, by name, throughout a type"""
    if host_type is None or not mapping:
        return host_type
    if host_type.kind == TypeKind.GENERIC_PARAMETER:
        return mapping.get(host_type.name, host_type)
    if host_type.is_array:
        return array_of(substitute(host_type.element_type, mapping), host_type.rank)
    if host_type.generic_definition is not None:
        return instantiate(host_type.generic_definition,
                           [substitute(a, mapping) for a in host_type.generic_arguments])
    return host_type


def supertypes(host_type: HostType) -> Iterator[HostType]:
    """Direct base type and interfaces, with generic arguments applied"""
    definition = host_type.generic_definition
    if definition is None:
        if host_type.base_type is not None:
            yield host_type.base_type
        yield from host_type.interfaces
        return

    mapping = {p.name: a for p, a in zip(definition.generic_parameters,
                                         host_type.generic_arguments)}
    if definition.base_type is not None:
        yield substitute(definition.base_type, mapping)
    for iface in definition.interfaces:
        yield substitute(iface, mapping)


def is_assignable_to(host_type: HostType, target: HostType) -> bool:
    """True when target is host_type itself or one of its transitive supertypes"""
    seen = set()
    pending = [host_type]
    while pending:
        current = pending.pop()
        if current == target:
            return True
        if current.full_name in seen:
            continue
        seen.add(current.full_name)
        pending.extend(supertypes(current))
    return False


class TypeRegistry:
    """Host types by full name, plus cached instantiations and arrays"""

    def __init__(self, builtins: bool = True):
        self._types: dict[str, HostType] = {}
        self._constructed: dict[str, HostType] = {}
        self._parameters: dict[str, HostType] = {}
        if builtins:
            self._register_builtins()

    def _register_builtins(self):
        obj = HostType('System', 'Object', TypeKind.CLASS,
                       attributes=(Attribute('Serializable'),))
        self.register(obj)
        value_type = HostType('System', 'ValueType', TypeKind.CLASS, base_type=obj)
        self.register(value_type)
        enum_type = HostType('System', 'Enum', TypeKind.CLASS, base_type=value_type)
        self.register(enum_type)

        for full_name, is_value in PRIMITIVE_TYPES.items():
            if full_name in self._types:
                continue
            namespace, name = full_name.rsplit('.', 1)
            self.register(HostType(
                namespace, name,
                TypeKind.STRUCT if is_value else TypeKind.CLASS,
                base_type=value_type if is_value else obj,
                attributes=(Attribute('Serializable'),),
            ))

        for namespace, name, kind in _PLAIN_DEFINITIONS:
            self.register(HostType(namespace, name, kind,
                                   base_type=obj if kind == TypeKind.CLASS else None))

        for namespace, name, params, kind, supers in _GENERIC_DEFINITIONS:
            definition = HostType(
                namespace, name, kind,
                base_type=obj if kind == TypeKind.CLASS else None,
                generic_parameters=tuple(self.generic_parameter(p) for p in params),
            )
            self.register(definition)
            definition.interfaces = tuple(
                self.make_generic(self._types[super_name],
                                  [self.generic_parameter(p) for p in super_params])
                for super_name, super_params in supers
            )

        for arity in range(1, 9):
            self.register(HostType(
                'System', 'Tuple', TypeKind.CLASS, base_type=obj,
                generic_parameters=tuple(self.generic_parameter(p)
                                         for p in _TUPLE_PARAMETERS[:arity]),
            ))

        for host_type in self._types.values():
            host_type.freeze()

    def register(self, host_type: HostType) -> HostType:
        key = host_type.full_name
        if key in self._types:
            raise DuplicateTypeError(f"Type already declared: {key}")
        self._types[key] = host_type
        return host_type

    def get(self, full_name: str) -> Optional[HostType]:
        return self._types.get(full_name)

    def find(self, name: str, arity: int = 0, namespaces: Iterable[str] = ()) -> Optional[HostType]:
        """Look a simple or qualified name up in the given namespaces, then globally"""
        suffix = f"`{arity}" if arity else ""
        for namespace in namespaces:
            found = self._types.get(f"{namespace}.{name}{suffix}" if namespace else f"{name}{suffix}")
            if found is not None:
                return found
        return self._types.get(f"{name}{suffix}")

    def make_generic(self, definition: HostType, arguments: Iterable[HostType]) -> HostType:
        arguments = tuple(arguments)
        if len(arguments) != len(definition.generic_parameters):
            raise InvalidArgumentError(
                f"{definition.full_name} expects {len(definition.generic_parameters)} "
                f"generic arguments, got {len(arguments)}")
        constructed = instantiate(definition, arguments)
        return self._constructed.setdefault(constructed.full_name, constructed)

    def make_array(self, element: HostType, rank: int = 1) -> HostType:
        if rank < 1:
            raise InvalidArgumentError(f"Array rank must be positive, got {rank}")
        constructed = array_of(element, rank)
        return self._constructed.setdefault(constructed.full_name, constructed)

    def generic_parameter(self, name: str) -> HostType:
        if name not in self._parameters:
            self._parameters[name] = HostType('', name, TypeKind.GENERIC_PARAMETER).freeze()
        return self._parameters[name]

    def types(self) -> list[HostType]:
        return list(self._types.values())

    def __contains__(self, full_name: str) -> bool:
        return full_name in self._types
