"""Type mapping from host types to client type references"""

import logging
from typing import Iterable, Optional

from .errors import TupleArityError
from .type_registry import PRIMITIVE_TYPES, instantiate, is_assignable_to, supertypes
from .types import (
    ArrayRef, ClientTypeRef, GenericRef, HostType, MapRef, MirroredTypeRef,
    OptionalRef, PairRef, PendingTypeSet, PrimitiveRef, RawPlatformRef, TupleRef,
)

logger = logging.getLogger(__name__)


def refine_custom_type(host_type: HostType, suffix: str) -> MirroredTypeRef:
    """Reference to the client declaration mirroring host_type"""
    return MirroredTypeRef(host_type.namespace + suffix, host_type.name)


class TypeMapper:
    """Maps host types to client type references.

    Rules are tried in a fixed order and the first match wins. Membership
    in the pending set beats every structural rule, so a mirrored generic
    or array type is always referenced by its generated declaration.
    """

    NULLABLE = 'System.Nullable`1'

    # Async wrappers are erased down to their result type
    ASYNC_TYPES = {
        'System.Threading.Tasks.Task`1',
        'System.Threading.Tasks.ValueTask`1',
    }

    # Single-argument generics that become one-dimensional arrays
    SEQUENCE_TYPES = {
        'System.Collections.Generic.IEnumerable`1',
        'System.Collections.Generic.IList`1',
        'System.Collections.Generic.ICollection`1',
        'System.Collections.Generic.IReadOnlyList`1',
        'System.Collections.Generic.IReadOnlyCollection`1',
        'System.Collections.Generic.List`1',
        'System.Linq.IQueryable`1',
        'System.Collections.ObjectModel.Collection`1',
        'System.Collections.ObjectModel.ObservableCollection`1',
    }

    TUPLE_ARITIES = {f'System.Tuple`{n}': n for n in range(1, 9)}

    DICTIONARY = 'System.Collections.Generic.IDictionary`2'
    KEY_VALUE_PAIR = 'System.Collections.Generic.KeyValuePair`2'

    HTTP_RESPONSE = 'System.Net.Http.HttpResponseMessage'
    HTTP_RESPONSE_TYPES = {
        'System.Web.Http.IHttpActionResult',
        'Microsoft.AspNetCore.Mvc.IActionResult',
        'Microsoft.AspNetCore.Mvc.ActionResult',
        'System.Net.Http.HttpResponseMessage',
    }
    DYNAMIC_OBJECT = 'Newtonsoft.Json.Linq.JObject'

    def __init__(self, pending: Iterable[HostType], suffix: str = ""):
        self.pending = pending if isinstance(pending, PendingTypeSet) else PendingTypeSet(pending)
        self.suffix = suffix

    def translate(self, host_type: Optional[HostType]) -> Optional[ClientTypeRef]:
        """Translate a host type; None means no type"""
        if host_type is None:
            return None

        if host_type in self.pending:
            return refine_custom_type(host_type, self.suffix)

        if host_type.is_generic:
            return self._translate_generic(host_type)

        if host_type.is_array:
            return ArrayRef(self.translate(host_type.element_type), host_type.rank)

        full_name = host_type.full_name
        if full_name in self.HTTP_RESPONSE_TYPES:
            return RawPlatformRef(self.HTTP_RESPONSE)

        if full_name == 'System.Object' and host_type.is_serializable:
            return RawPlatformRef(self.DYNAMIC_OBJECT)

        if full_name in PRIMITIVE_TYPES:
            return PrimitiveRef(full_name)

        logger.debug("Passing through unmapped type %s", full_name)
        return RawPlatformRef(full_name)

    def _translate_generic(self, host_type: HostType) -> ClientTypeRef:
        definition = host_type.definition
        arguments = host_type.arguments
        definition_name = definition.full_name

        if definition_name == self.NULLABLE:
            return OptionalRef(self.translate(arguments[0]))

        if definition_name in self.ASYNC_TYPES:
            return self.translate(arguments[0])

        if definition_name in self.SEQUENCE_TYPES and len(arguments) == 1:
            return ArrayRef(self.translate(arguments[0]), 1)

        arity = self.TUPLE_ARITIES.get(definition_name)
        if arity is not None:
            if len(arguments) != arity:
                raise TupleArityError(host_type.full_name, arity, len(arguments))
            return TupleRef(arity, tuple(self.translate(a) for a in arguments))

        if len(arguments) == 2:
            if definition_name == self.DICTIONARY or self._is_dictionary(host_type):
                return MapRef(self.translate(arguments[0]), self.translate(arguments[1]))

            if definition_name == self.KEY_VALUE_PAIR:
                return PairRef(self.translate(arguments[0]), self.translate(arguments[1]))

        if definition in self.pending:
            name = refine_custom_type(definition, self.suffix).qualified_name
        else:
            name = f"{definition.namespace}.{definition.name}" if definition.namespace else definition.name
        return GenericRef(name, tuple(self.translate(a) for a in arguments))

    def _is_dictionary(self, host_type: HostType) -> bool:
        """Check if type implements IDictionary over its own two arguments"""
        dictionary = self._find_supertype_definition(host_type, self.DICTIONARY)
        if dictionary is None:
            return False
        return is_assignable_to(host_type, instantiate(dictionary, host_type.arguments))

    @staticmethod
    def _find_supertype_definition(host_type: HostType, full_name: str) -> Optional[HostType]:
        """Locate a generic definition by name among a type's supertypes"""
        seen = set()
        pending = [host_type]
        while pending:
            current = pending.pop()
            definition = current.definition
            if definition is not None and definition.full_name == full_name:
                return definition
            if current.full_name in seen:
                continue
            seen.add(current.full_name)
            pending.extend(supertypes(current))
        return None
