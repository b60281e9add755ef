"""Declaration Emitter - builds client declarations for a batch of host types"""

import logging
from itertools import groupby
from typing import Callable, Iterable, Optional

from .cherry_picking import CherryPickingMethods, CherryType, get_member_cherry_type
from .doc_lookup import DocCommentLookup
from .errors import InvalidArgumentError
from .type_mapper import TypeMapper, refine_custom_type
from .types import (
    ClassDecl, ClientDeclaration, ClientNamespace, ClientTypeRef, CompileUnit,
    EnumDecl, EnumMember, GenericRef, HostMember, HostType, Member, MemberKind,
    PendingTypeSet, RawPlatformRef, ValueDecl,
)

logger = logging.getLogger(__name__)

MemberClassifier = Callable[[HostMember, CherryPickingMethods], CherryType]


def get_namespace_groups(types: Iterable[HostType]) -> list[tuple[str, list[HostType]]]:
    """Group types by namespace, ordinal order for namespaces and type names"""
    # full_name breaks ties between a type and a generic one of the same name
    ordered = sorted(types, key=lambda t: (t.namespace, t.name, t.full_name))
    return [(ns, list(group)) for ns, group in groupby(ordered, key=lambda t: t.namespace)]


class DeclarationEmitter:
    """Generates client declarations for mirrored host types"""

    def __init__(self, doc_lookup: Optional[DocCommentLookup] = None,
                 classify: MemberClassifier = get_member_cherry_type):
        self.doc_lookup = doc_lookup
        self.classify = classify

    def emit(self, types: Iterable[HostType], methods: CherryPickingMethods = CherryPickingMethods.ALL,
             suffix: str = "") -> CompileUnit:
        """Build one client namespace per host namespace.

        Every type given is treated as pending, so references between them
        resolve to the generated declarations.
        """
        if types is None:
            raise InvalidArgumentError("types is not defined")
        types = list(types)
        if not types:
            raise InvalidArgumentError("types is empty")

        pending = PendingTypeSet(types)
        mapper = TypeMapper(pending, suffix)
        unit = CompileUnit()
        for namespace, group in get_namespace_groups(types):
            unit.namespaces.append(self._emit_namespace(namespace, group, mapper, methods))
        return unit

    def _emit_namespace(self, namespace: str, types: list[HostType], mapper: TypeMapper,
                        methods: CherryPickingMethods) -> ClientNamespace:
        client_namespace = ClientNamespace(namespace + mapper.suffix)
        logger.debug("Generating types in namespace: %s ...", namespace)
        for host_type in types:
            decl = self._emit_type(host_type, client_namespace.name, mapper, methods)
            if decl is not None:
                client_namespace.declarations.append(decl)
        return client_namespace

    def _emit_type(self, host_type: HostType, namespace: str, mapper: TypeMapper,
                   methods: CherryPickingMethods) -> Optional[ClientDeclaration]:
        logger.debug("clientClass: %s  %s", namespace, host_type.name)
        type_parameters = tuple(p.name for p in host_type.generic_parameters)

        if host_type.is_class_or_struct:
            if host_type.is_value_type:
                decl = ValueDecl(host_type.name, namespace, type_parameters)
            else:
                decl = ClassDecl(host_type.name, namespace,
                                 base_type=self._translate_base_type(host_type.base_type, mapper),
                                 type_parameters=type_parameters)
            decl.doc = self._doc(f"T:{host_type.full_name}")
            decl.members.extend(self._emit_members(host_type, mapper, methods))
            return decl

        if host_type.is_enum:
            decl = EnumDecl(host_type.name, namespace, doc=self._doc(f"T:{host_type.full_name}"))
            decl.members.extend(self._emit_enum_members(host_type))
            return decl

        logger.warning("Not yet supported: %s", host_type.name)
        return None

    def _translate_base_type(self, base_type: Optional[HostType],
                             mapper: TypeMapper) -> Optional[ClientTypeRef]:
        """Suffix bases from mirrored namespaces; others are already client-visible"""
        if base_type is None:
            return None
        mirrored = base_type.namespace in mapper.pending.namespaces
        definition = base_type.generic_definition
        if definition is not None:
            if mirrored:
                name = refine_custom_type(definition, mapper.suffix).qualified_name
            else:
                name = f"{definition.namespace}.{definition.name}" if definition.namespace else definition.name
            return GenericRef(name, tuple(mapper.translate(a) for a in base_type.generic_arguments))
        if not mirrored:
            return RawPlatformRef(base_type.full_name)
        return refine_custom_type(base_type, mapper.suffix)

    def _emit_members(self, host_type: HostType, mapper: TypeMapper,
                      methods: CherryPickingMethods) -> list[Member]:
        members = []
        # Public fields of a class become properties, those of a struct stay fields
        field_kind = MemberKind.FIELD if host_type.is_value_type else MemberKind.PROPERTY
        for host_members, prefix, kind in ((host_type.properties, 'P', MemberKind.PROPERTY),
                                           (host_type.fields, 'F', field_kind)):
            selected = [m for m in host_members if m.is_public and not m.is_static]
            for host_member in sorted(selected, key=lambda m: m.name):
                cherry_type = self.classify(host_member, methods)
                if cherry_type == CherryType.NONE:
                    continue
                logger.debug("%s : %s", host_member.name, host_member.type.name)
                members.append(Member(
                    name=host_member.name,
                    type_ref=mapper.translate(host_member.type),
                    required=cherry_type == CherryType.BIG_CHERRY,
                    doc=self._doc(f"{prefix}:{host_type.full_name}.{host_member.name}"),
                    origin=host_member.kind,
                    kind=kind,
                ))
        return members

    def _emit_enum_members(self, host_type: HostType) -> list[EnumMember]:
        members = []
        for position, value in enumerate(host_type.enum_values):
            logger.debug("%s -- %d", value.name, value.value)
            members.append(EnumMember(
                name=value.name,
                value=value.value if value.value != position else None,
                doc=self._doc(f"F:{host_type.full_name}.{value.name}"),
            ))
        return members

    def _doc(self, key: str) -> Optional[list[str]]:
        if self.doc_lookup is None:
            return None
        return self.doc_lookup.lookup(key)
